"""State-machine based dictation orchestration."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from errors import AlreadyActiveError, DictationError
from interfaces import ModelProvider, OutputSink, Recorder, StatusSink
from models import (
    DEFAULT_CAPTURE_SECONDS,
    Notification,
    NotificationStyle,
    OutputMode,
    PipelineResult,
    PipelineStage,
    TranscriptionRequest,
)
from transcriber import Transcriber

logger = logging.getLogger(__name__)

StageCallback = Callable[[PipelineStage, PipelineStage], None]

PREVIEW_CHARS = 50

STATUS_DISPATCHED = "dispatched"
STATUS_NO_SPEECH = "no_speech"
STATUS_FAILED = "failed"


def preview(text: str, limit: int = PREVIEW_CHARS) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


class DictationController:
    def __init__(
        self,
        recorder: Recorder,
        model_store: ModelProvider,
        transcriber: Transcriber,
        output: OutputSink,
        status_sink: StatusSink,
        model_name: str = "base",
        output_mode: OutputMode = OutputMode.PASTE,
        language: str = "en",
        use_gpu: bool = True,
        capture_seconds: float = DEFAULT_CAPTURE_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        on_stage_change: Optional[StageCallback] = None,
    ) -> None:
        self._recorder = recorder
        self._model_store = model_store
        self._transcriber = transcriber
        self._output = output
        self._status_sink = status_sink
        self.model_name = model_name
        self.output_mode = OutputMode(output_mode)
        self.language = language
        self.use_gpu = use_gpu
        self.capture_seconds = capture_seconds
        self._sleep = sleep
        self._on_stage_change = on_stage_change

        self._run_lock = threading.Lock()
        self._stage = PipelineStage.IDLE

    @property
    def stage(self) -> PipelineStage:
        return self._stage

    def run(self) -> PipelineResult:
        """Record, transcribe and dispatch one utterance."""
        if not self._run_lock.acquire(blocking=False):
            error = AlreadyActiveError()
            self._report_failure(error)
            return PipelineResult(status=STATUS_FAILED, error=error)
        try:
            return self._run_stages()
        except Exception as exc:
            logger.exception("Voice-to-text failed")
            self._release_recorder()
            self._report_failure(exc)
            return PipelineResult(status=STATUS_FAILED, error=exc)
        finally:
            self._transition(PipelineStage.IDLE)
            self._run_lock.release()

    def _run_stages(self) -> PipelineResult:
        self._transition(PipelineStage.RECORDING)
        self._notify(NotificationStyle.ANIMATED, "Recording...")
        self._recorder.start()
        self._sleep(self.capture_seconds)
        samples = self._recorder.stop()
        logger.info("Captured %.2fs of audio", samples.duration_s)

        self._transition(PipelineStage.TRANSCRIBING)
        self._notify(NotificationStyle.ANIMATED, "Transcribing...")
        model_path = self._model_store.get_model_path(self.model_name)
        request = TranscriptionRequest(
            model_path=model_path,
            samples=samples,
            language=self.language,
            use_gpu=self.use_gpu,
        )
        text = self._transcriber.transcribe(request)

        if not text.strip():
            logger.info("No speech detected")
            self._notify(NotificationStyle.WARNING, "No speech detected")
            return PipelineResult(status=STATUS_NO_SPEECH)

        self._transition(PipelineStage.DISPATCHING)
        if self.output_mode == OutputMode.PASTE:
            self._output.paste(text)
            title = "Pasted"
        else:
            self._output.copy(text)
            title = "Copied"
        self._notify(NotificationStyle.SUCCESS, title, preview(text))
        return PipelineResult(status=STATUS_DISPATCHED, text=text)

    def _release_recorder(self) -> None:
        if not self._recorder.is_active():
            return
        try:
            self._recorder.stop()
        except (DictationError, OSError) as exc:
            logger.debug("Discarding recorder session after failure: %s", exc)

    def _report_failure(self, exc: Exception) -> None:
        if getattr(exc, "notified", False):
            return
        message = str(exc) or "Unknown error"
        self._notify(NotificationStyle.FAILURE, "Voice-to-text failed", message)

    def _notify(self, style: NotificationStyle, title: str, message: str = "") -> None:
        self._status_sink.notify(Notification(style=style, title=title, message=message))

    def _transition(self, to_stage: PipelineStage) -> None:
        from_stage = self._stage
        if from_stage == to_stage:
            return
        self._stage = to_stage
        if self._on_stage_change:
            self._on_stage_change(from_stage, to_stage)
