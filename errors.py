"""Shared error codes, user-facing messages and exception types."""

from __future__ import annotations

ALREADY_ACTIVE = "ALREADY_ACTIVE"
NOT_ACTIVE = "NOT_ACTIVE"
RECORDER_NOT_FOUND = "RECORDER_NOT_FOUND"
RECORDER_PROCESS_ERROR = "RECORDER_PROCESS_ERROR"
NO_AUDIO_CAPTURED = "NO_AUDIO_CAPTURED"
CORRUPTED_AUDIO = "CORRUPTED_AUDIO"
UNKNOWN_MODEL = "UNKNOWN_MODEL"
DOWNLOAD_FAILED = "DOWNLOAD_FAILED"
EMPTY_RESULT = "EMPTY_RESULT"
PASTE_FAILED = "PASTE_FAILED"
PERMISSION_DENIED = "PERMISSION_DENIED"

ERROR_MESSAGES = {
    ALREADY_ACTIVE: "Already recording",
    NOT_ACTIVE: "Not recording",
    RECORDER_NOT_FOUND: (
        "Could not find the `rec` binary. Install SoX (brew install sox) "
        "or set REC_PATH to its location."
    ),
    RECORDER_PROCESS_ERROR: "Recording failed. Make sure SoX is installed: brew install sox",
    NO_AUDIO_CAPTURED: "No audio captured. Try speaking again.",
    CORRUPTED_AUDIO: "Corrupted audio buffer received from recorder.",
    UNKNOWN_MODEL: "Unknown model",
    DOWNLOAD_FAILED: "Model download failed",
    EMPTY_RESULT: "No transcription result",
    PASTE_FAILED: "Failed to paste text.",
    PERMISSION_DENIED: "Failed to paste text. Ensure accessibility permissions are granted.",
}

REMEDIATIONS = {
    RECORDER_NOT_FOUND: "Install SoX or point REC_PATH at the rec binary.",
    RECORDER_PROCESS_ERROR: "Check the microphone and the SoX installation.",
    DOWNLOAD_FAILED: "Check the network connection and try again.",
    PERMISSION_DENIED: "Grant accessibility permission in the system settings.",
}


class DictationError(Exception):
    """Base class for every failure that ends a dictation run."""

    code = ""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or ERROR_MESSAGES.get(self.code, self.code))
        # Set once a user-visible notification has been shown for this error.
        self.notified = False

    @property
    def message(self) -> str:
        return str(self)

    @property
    def remediation(self) -> str:
        return REMEDIATIONS.get(self.code, "")


class AlreadyActiveError(DictationError):
    code = ALREADY_ACTIVE


class NotActiveError(DictationError):
    code = NOT_ACTIVE


class RecorderNotFoundError(DictationError):
    code = RECORDER_NOT_FOUND


class RecorderProcessError(DictationError):
    code = RECORDER_PROCESS_ERROR


class NoAudioCapturedError(DictationError):
    code = NO_AUDIO_CAPTURED


class CorruptedAudioError(DictationError):
    code = CORRUPTED_AUDIO


class UnknownModelError(DictationError):
    code = UNKNOWN_MODEL


class DownloadFailedError(DictationError):
    code = DOWNLOAD_FAILED


class EmptyResultError(DictationError):
    code = EMPTY_RESULT


class PasteFailedError(DictationError):
    code = PASTE_FAILED


class PermissionDeniedError(PasteFailedError):
    code = PERMISSION_DENIED
