"""Speech-to-text adapter over an opaque transcription engine.

``Transcriber`` owns the text-shaping rules (segment joining, empty results)
and delegates recognition to any ``TranscriptionEngine``.  ``WhisperEngine``
is the default backend: it loads a local OpenAI Whisper checkpoint and runs
it on the captured samples without timestamps or console output.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional

from errors import EmptyResultError
from interfaces import TranscriptionEngine
from models import Segment, TranscriptionRequest

logger = logging.getLogger(__name__)

try:
    import whisper
except Exception:  # pragma: no cover
    whisper = None  # type: ignore

try:
    import torch
except Exception:  # pragma: no cover
    torch = None  # type: ignore


class Transcriber:
    def __init__(self, engine: TranscriptionEngine) -> None:
        self._engine = engine

    def transcribe(self, request: TranscriptionRequest) -> str:
        """Join segment texts with single spaces.

        Each segment is stripped before joining since Whisper prefixes segment
        text with a space. ``None`` from the engine raises ``EmptyResultError``;
        an empty segment list is silence and yields ``""``.
        """
        segments = self._engine.transcribe(request)
        if segments is None:
            raise EmptyResultError()
        text = " ".join(segment.text.strip() for segment in segments).strip()
        logger.debug("Transcribed %d segment(s) into %d chars", len(segments), len(text))
        return text


class WhisperEngine:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._models: dict[tuple[str, str], Any] = {}

    def transcribe(self, request: TranscriptionRequest) -> list[Segment]:
        if whisper is None:
            raise RuntimeError("openai-whisper is not installed")

        device = self._select_device(request.use_gpu)
        model = self._load(request.model_path, device)
        result = model.transcribe(
            request.samples.samples,
            language=request.language,
            fp16=(device == "cuda"),
            verbose=None,
            without_timestamps=True,
        )
        return [
            Segment(start=float(seg["start"]), end=float(seg["end"]), text=str(seg["text"]))
            for seg in result.get("segments", [])
        ]

    def _select_device(self, use_gpu: bool) -> str:
        if use_gpu and torch is not None and torch.cuda.is_available():
            return "cuda"
        return "cpu"

    def _load(self, model_path: str, device: str) -> Any:
        key = (model_path, device)
        with self._lock:
            model: Optional[Any] = self._models.get(key)
            if model is None:
                logger.info("Loading Whisper checkpoint %s on %s", model_path, device)
                model = whisper.load_model(model_path, device=device)
                self._models[key] = model
            return model
