"""Core data models for the app."""

from __future__ import annotations

import subprocess
import threading
from dataclasses import dataclass, field
from enum import Enum
from queue import Queue
from typing import Optional

import numpy as np

SAMPLE_RATE = 16000
CHANNELS = 1
SAMPLE_WIDTH = 2
WAV_HEADER_SIZE = 44
DEFAULT_CAPTURE_SECONDS = 5.0


class RecorderState(str, Enum):
    IDLE = "IDLE"
    RECORDING = "RECORDING"
    STOPPING = "STOPPING"
    FAILED = "FAILED"


class PipelineStage(str, Enum):
    IDLE = "IDLE"
    RECORDING = "RECORDING"
    TRANSCRIBING = "TRANSCRIBING"
    DISPATCHING = "DISPATCHING"


class OutputMode(str, Enum):
    PASTE = "paste"
    COPY = "copy"


class NotificationStyle(str, Enum):
    ANIMATED = "animated"
    SUCCESS = "success"
    WARNING = "warning"
    FAILURE = "failure"


@dataclass(frozen=True)
class SampleBuffer:
    samples: np.ndarray
    sample_rate: int = SAMPLE_RATE
    channels: int = CHANNELS

    def __len__(self) -> int:
        return int(self.samples.shape[0])

    @property
    def duration_s(self) -> float:
        return len(self) / float(self.sample_rate)


@dataclass
class AudioSession:
    """One recording attempt, exclusively owned by a recorder instance."""

    process: subprocess.Popen
    state: RecorderState = RecorderState.RECORDING
    chunks: Queue[bytes | None] = field(default_factory=Queue)
    reader: Optional[threading.Thread] = None
    error: Optional[Exception] = None


@dataclass(frozen=True)
class ModelDescriptor:
    name: str
    url: str
    filename: str


@dataclass(frozen=True)
class TranscriptionRequest:
    model_path: str
    samples: SampleBuffer
    language: str = "en"
    use_gpu: bool = True


@dataclass(frozen=True)
class Segment:
    start: float
    end: float
    text: str


@dataclass(frozen=True)
class Notification:
    style: NotificationStyle
    title: str
    message: str = ""


@dataclass
class PipelineResult:
    status: str
    text: str = ""
    error: Optional[Exception] = None
