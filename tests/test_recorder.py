"""Tests for SoxRecorder."""

from __future__ import annotations

import subprocess
import threading
import time
from queue import Queue

import pytest

import recorder as rec_mod
from errors import (
    AlreadyActiveError,
    NoAudioCapturedError,
    NotActiveError,
    RecorderNotFoundError,
    RecorderProcessError,
)
from models import Notification, NotificationStyle, RecorderState
from recorder import REC_ARGS, SoxRecorder, resolve_recorder_binary

HEADER = b"\x00" * 44


# ---------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------

class FakeProcess:
    """Stands in for a ``rec`` child process writing WAV bytes to stdout."""

    def __init__(self, chunks: list[bytes] | None = None) -> None:
        self._chunks: Queue[bytes] = Queue()
        for chunk in chunks or []:
            self._chunks.put(chunk)
        self._exited = threading.Event()
        self.returncode: int | None = None
        self.terminated = False
        self.killed = False
        self.closed = False
        self.stdout = self

    # stdout side
    def read1(self, size: int = -1) -> bytes:
        return self._chunks.get()

    def close(self) -> None:
        self.closed = True

    # process side
    def emit(self, chunk: bytes) -> None:
        self._chunks.put(chunk)

    def terminate(self) -> None:
        self.terminated = True
        self._exit(-15)

    def kill(self) -> None:
        self.killed = True
        self._exit(-9)

    def crash(self, code: int = 1) -> None:
        self._exit(code)

    def wait(self, timeout: float | None = None) -> int:
        if not self._exited.wait(timeout):
            raise subprocess.TimeoutExpired("rec", timeout)
        return self.returncode  # type: ignore[return-value]

    def _exit(self, code: int) -> None:
        if self._exited.is_set():
            return
        self.returncode = code
        self._chunks.put(b"")
        self._exited.set()


class FakePopen:
    def __init__(self, process: FakeProcess | None = None, error: Exception | None = None) -> None:
        self.process = process or FakeProcess()
        self.error = error
        self.calls: list[list[str]] = []

    def __call__(self, args, **kwargs):  # noqa: ANN001, ANN003
        self.calls.append(list(args))
        if self.error is not None:
            raise self.error
        return self.process


class RecordingSink:
    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.notifications.append(notification)


def _make_recorder(popen: FakePopen, sink: RecordingSink | None = None) -> SoxRecorder:
    return SoxRecorder(
        status_sink=sink,
        popen=popen,
        resolve_binary=lambda: "/usr/bin/rec",
        stop_timeout_s=1.0,
    )


def _wait_until(predicate, timeout: float = 2.0) -> None:  # noqa: ANN001
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return
        time.sleep(0.01)


# ---------------------------------------------------------------
# Binary resolution
# ---------------------------------------------------------------

def test_resolve_prefers_env_override(monkeypatch, tmp_path) -> None:  # noqa: ANN001
    binary = tmp_path / "rec"
    binary.write_text("")
    monkeypatch.setenv("REC_PATH", f"  {binary}  ")

    assert resolve_recorder_binary() == str(binary)


def test_resolve_skips_missing_override_and_falls_back_to_which(monkeypatch, tmp_path) -> None:  # noqa: ANN001
    monkeypatch.setenv("REC_PATH", str(tmp_path / "missing"))
    monkeypatch.setattr(rec_mod, "REC_CANDIDATES", ())
    monkeypatch.setattr(rec_mod.shutil, "which", lambda name: "/somewhere/rec")

    assert resolve_recorder_binary() == "/somewhere/rec"


def test_resolve_raises_when_nothing_found(monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.delenv("REC_PATH", raising=False)
    monkeypatch.setattr(rec_mod, "REC_CANDIDATES", ())
    monkeypatch.setattr(rec_mod.shutil, "which", lambda name: None)

    with pytest.raises(RecorderNotFoundError, match="SoX"):
        resolve_recorder_binary()


def test_start_without_binary_stays_idle(monkeypatch) -> None:  # noqa: ANN001
    popen = FakePopen()

    def missing() -> str:
        raise RecorderNotFoundError()

    recorder = SoxRecorder(popen=popen, resolve_binary=missing)
    with pytest.raises(RecorderNotFoundError):
        recorder.start()

    assert recorder.is_active() is False
    assert recorder.state == RecorderState.IDLE
    assert popen.calls == []


# ---------------------------------------------------------------
# Start / stop lifecycle
# ---------------------------------------------------------------

def test_start_spawns_rec_with_fixed_arguments() -> None:
    popen = FakePopen()
    recorder = _make_recorder(popen)

    recorder.start()

    assert popen.calls == [["/usr/bin/rec", *REC_ARGS]]
    assert REC_ARGS == ("-q", "-r", "16000", "-c", "1", "-b", "16", "-t", "wav", "-")
    assert recorder.is_active() is True
    assert recorder.state == RecorderState.RECORDING
    popen.process.emit(HEADER + b"\x00\x00")
    recorder.stop()


def test_stop_returns_samples_in_chunk_order_and_resets() -> None:
    process = FakeProcess([HEADER[:10], HEADER[10:], b"\x00\x80", b"\xff\x7f"])
    recorder = _make_recorder(FakePopen(process))

    recorder.start()
    buffer = recorder.stop()

    assert process.terminated is True
    assert process.closed is True
    assert len(buffer) == 2
    assert buffer.samples[0] == -1.0
    assert buffer.samples[1] == pytest.approx(0.999969, abs=1e-6)
    assert recorder.is_active() is False
    assert recorder.state == RecorderState.IDLE


def test_second_start_raises_and_keeps_first_session() -> None:
    popen = FakePopen(FakeProcess([HEADER, b"\x01\x00"]))
    recorder = _make_recorder(popen)

    recorder.start()
    with pytest.raises(AlreadyActiveError):
        recorder.start()

    assert len(popen.calls) == 1
    assert recorder.state == RecorderState.RECORDING
    assert len(recorder.stop()) == 1


def test_stop_without_session_raises_not_active() -> None:
    recorder = _make_recorder(FakePopen())

    with pytest.raises(NotActiveError):
        recorder.stop()


def test_conversion_error_propagates_and_still_resets() -> None:
    recorder = _make_recorder(FakePopen(FakeProcess([HEADER])))

    recorder.start()
    with pytest.raises(NoAudioCapturedError):
        recorder.stop()

    assert recorder.is_active() is False


def test_spawn_error_reverts_to_idle() -> None:
    recorder = _make_recorder(FakePopen(error=PermissionError("denied")))

    with pytest.raises(RecorderProcessError, match="denied"):
        recorder.start()

    assert recorder.is_active() is False
    assert recorder.state == RecorderState.IDLE


def test_stubborn_process_is_killed_after_timeout() -> None:
    process = FakeProcess([HEADER, b"\x00\x00"])
    process.terminate = lambda: None  # type: ignore[method-assign]
    recorder = SoxRecorder(
        popen=FakePopen(process),
        resolve_binary=lambda: "/usr/bin/rec",
        stop_timeout_s=0.05,
    )

    recorder.start()
    buffer = recorder.stop()

    assert process.killed is True
    assert len(buffer) == 1


# ---------------------------------------------------------------
# Process dies while recording
# ---------------------------------------------------------------

def test_unexpected_exit_marks_session_failed_and_notifies() -> None:
    process = FakeProcess([HEADER])
    sink = RecordingSink()
    recorder = _make_recorder(FakePopen(process), sink)

    recorder.start()
    process.crash(code=2)
    _wait_until(lambda: sink.notifications)

    assert recorder.state == RecorderState.FAILED
    assert len(sink.notifications) == 1
    assert sink.notifications[0].style == NotificationStyle.FAILURE
    assert sink.notifications[0].title == "Recording failed"

    with pytest.raises(RecorderProcessError, match="exit code 2") as excinfo:
        recorder.stop()
    assert excinfo.value.notified is True
    assert process.terminated is False
    assert recorder.is_active() is False


def test_failing_status_sink_does_not_break_reader() -> None:
    class ExplodingSink:
        def notify(self, notification: Notification) -> None:
            raise RuntimeError("ui gone")

    process = FakeProcess()
    recorder = _make_recorder(FakePopen(process), ExplodingSink())  # type: ignore[arg-type]

    recorder.start()
    process.crash()
    _wait_until(lambda: recorder.state == RecorderState.FAILED)

    with pytest.raises(RecorderProcessError):
        recorder.stop()
