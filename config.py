"""Simple JSON-based config store."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from model_store import MODELS
from models import DEFAULT_CAPTURE_SECONDS, OutputMode

logger = logging.getLogger(__name__)

DEFAULTS = {
    "model": "base",
    "output_mode": OutputMode.PASTE.value,
    "language": "en",
    "use_gpu": True,
    "capture_seconds": DEFAULT_CAPTURE_SECONDS,
    "hotkey": "Key.f9",
}


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "yap" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def get_model(self) -> str:
        value = str(self._get("model"))
        if value not in MODELS:
            logger.warning("Unknown model %r in config, using %s", value, DEFAULTS["model"])
            return DEFAULTS["model"]
        return value

    def set_model(self, name: str) -> None:
        self._set("model", name)

    def get_output_mode(self) -> str:
        value = str(self._get("output_mode"))
        if value not in {mode.value for mode in OutputMode}:
            return DEFAULTS["output_mode"]
        return value

    def set_output_mode(self, mode: str) -> None:
        self._set("output_mode", OutputMode(mode).value)

    def get_language(self) -> str:
        return str(self._get("language"))

    def get_use_gpu(self) -> bool:
        value = self._get("use_gpu")
        if not isinstance(value, bool):
            logger.warning("Invalid use_gpu %r in config, using %s", value, DEFAULTS["use_gpu"])
            return DEFAULTS["use_gpu"]
        return value

    def get_capture_seconds(self) -> float:
        try:
            value = float(self._get("capture_seconds"))
        except (TypeError, ValueError):
            return DEFAULTS["capture_seconds"]
        return value if value > 0 else DEFAULTS["capture_seconds"]

    def get_hotkey(self) -> str:
        return str(self._get("hotkey"))

    def set_hotkey(self, hotkey: str) -> None:
        self._set("hotkey", hotkey)

    def _get(self, key: str) -> object:
        return self._read_all().get(key, DEFAULTS[key])

    def _set(self, key: str, value: object) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            logger.warning("Ignoring unreadable config at %s", self._path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
