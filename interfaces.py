"""Protocol interfaces used by DictationController."""

from __future__ import annotations

from typing import Protocol

from models import Notification, SampleBuffer, Segment, TranscriptionRequest


class Recorder(Protocol):
    def start(self) -> None: ...

    def stop(self) -> SampleBuffer: ...

    def is_active(self) -> bool: ...


class ModelProvider(Protocol):
    def get_model_path(self, name: str) -> str: ...

    def model_exists(self, name: str) -> bool: ...


class TranscriptionEngine(Protocol):
    def transcribe(self, request: TranscriptionRequest) -> list[Segment] | None: ...


class OutputSink(Protocol):
    def paste(self, text: str) -> None: ...

    def copy(self, text: str) -> None: ...


class StatusSink(Protocol):
    def notify(self, notification: Notification) -> None: ...

