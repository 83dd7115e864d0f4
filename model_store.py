"""Local cache of speech-recognition model checkpoints."""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Optional

import requests

from errors import DownloadFailedError, UnknownModelError
from interfaces import StatusSink
from models import ModelDescriptor, Notification, NotificationStyle

logger = logging.getLogger(__name__)

_OPENAI_MODELS = "https://openaipublic.azureedge.net/main/whisper/models"

MODELS = {
    "tiny": ModelDescriptor(
        name="tiny",
        url=f"{_OPENAI_MODELS}/d3dd57d32accea0b295c96e26691aa14d8822fac7d9d27d5dc00b4ca2826dd03/tiny.en.pt",
        filename="tiny.en.pt",
    ),
    "base": ModelDescriptor(
        name="base",
        url=f"{_OPENAI_MODELS}/25a8566e1d0c1e2231d1c762132cd20e0f96a85d16145c3a00adf5d1ac670ead/base.en.pt",
        filename="base.en.pt",
    ),
}


def default_models_dir() -> Path:
    return Path.home() / ".yap" / "models"


class ModelStore:
    def __init__(
        self,
        models_dir: Path | None = None,
        status_sink: Optional[StatusSink] = None,
        session: Optional[requests.Session] = None,
        chunk_size: int = 1 << 20,
        request_timeout_s: float = 30.0,
    ) -> None:
        self._models_dir = models_dir or default_models_dir()
        self._models_dir.mkdir(parents=True, exist_ok=True)
        self._status_sink = status_sink
        self._http = session or requests.Session()
        self._chunk_size = chunk_size
        self._request_timeout_s = request_timeout_s
        self._registry_lock = threading.Lock()
        self._download_locks: dict[str, threading.Lock] = {}

    @property
    def models_dir(self) -> Path:
        return self._models_dir

    def model_path(self, name: str) -> Path:
        """Canonical cache location for ``name``; raises for unregistered names."""
        descriptor = MODELS.get(name)
        if descriptor is None:
            raise UnknownModelError(f"Unknown model: {name}")
        return self._models_dir / descriptor.filename

    def model_exists(self, name: str) -> bool:
        descriptor = MODELS.get(name)
        if descriptor is None:
            return False
        return (self._models_dir / descriptor.filename).exists()

    def get_model_path(self, name: str) -> str:
        path = self.model_path(name)
        if path.exists():
            return str(path)

        # Concurrent callers for the same model wait on one download.
        with self._lock_for(name):
            if not path.exists():
                self._download(MODELS[name], path)
        return str(path)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _lock_for(self, name: str) -> threading.Lock:
        with self._registry_lock:
            return self._download_locks.setdefault(name, threading.Lock())

    def _download(self, descriptor: ModelDescriptor, path: Path) -> None:
        self._notify(
            NotificationStyle.ANIMATED,
            f"Downloading {descriptor.name} model...",
            "This may take a few minutes",
        )
        logger.info("Downloading %s model from %s", descriptor.name, descriptor.url)
        partial = path.with_name(path.name + ".part")
        try:
            self._fetch_to(descriptor.url, partial)
            os.replace(partial, path)
        except Exception as exc:
            partial.unlink(missing_ok=True)
            error = exc if isinstance(exc, DownloadFailedError) else DownloadFailedError(
                f"Download failed: {exc}"
            )
            logger.error("Model download for %s failed: %s", descriptor.name, error)
            self._notify(NotificationStyle.FAILURE, "Download failed", str(error))
            error.notified = self._status_sink is not None
            if error is exc:
                raise
            raise error from exc

        logger.info("Model %s saved to %s", descriptor.name, path)
        self._notify(
            NotificationStyle.SUCCESS,
            "Model downloaded successfully",
            f"{descriptor.name} model ready to use",
        )

    def _fetch_to(self, url: str, destination: Path) -> None:
        try:
            response = self._http.get(url, stream=True, timeout=self._request_timeout_s)
        except requests.RequestException as exc:
            raise DownloadFailedError(f"Failed to download: {exc}") from exc

        with response:
            if not response.ok:
                raise DownloadFailedError(f"Failed to download: {response.status_code} {response.reason}")
            if response.raw is None:
                raise DownloadFailedError("Download failed: empty response body")

            written = 0
            with destination.open("wb") as fh:
                for chunk in response.iter_content(chunk_size=self._chunk_size):
                    if chunk:
                        fh.write(chunk)
                        written += len(chunk)
            if written == 0:
                raise DownloadFailedError("Download failed: empty response body")
            logger.debug("Wrote %d bytes to %s", written, destination)

    def _notify(self, style: NotificationStyle, title: str, message: str = "") -> None:
        if self._status_sink is not None:
            self._status_sink.notify(Notification(style=style, title=title, message=message))
