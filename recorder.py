"""SoX ``rec`` subprocess recorder."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import threading
from queue import Empty
from typing import Callable, Optional

from errors import AlreadyActiveError, NotActiveError, RecorderNotFoundError, RecorderProcessError
from interfaces import StatusSink
from models import (
    CHANNELS,
    SAMPLE_RATE,
    AudioSession,
    Notification,
    NotificationStyle,
    RecorderState,
    SampleBuffer,
)
from sample_converter import pcm16_wav_to_samples

logger = logging.getLogger(__name__)

REC_BINARY = "rec"
REC_PATH_ENV = "REC_PATH"
REC_CANDIDATES = ("/opt/homebrew/bin/rec", "/usr/local/bin/rec", "/usr/bin/rec")
REC_ARGS = (
    "-q",
    "-r", str(SAMPLE_RATE),
    "-c", str(CHANNELS),
    "-b", "16",
    "-t", "wav",
    "-",
)


def resolve_recorder_binary() -> str:
    """Find ``rec``: REC_PATH override, then well-known paths, then PATH lookup."""
    candidates = []
    override = os.environ.get(REC_PATH_ENV, "").strip()
    if override:
        candidates.append(override)
    candidates.extend(REC_CANDIDATES)

    for candidate in candidates:
        if os.path.isabs(candidate) and os.path.exists(candidate):
            return candidate

    resolved = shutil.which(REC_BINARY)
    if resolved:
        return resolved
    raise RecorderNotFoundError()


class SoxRecorder:
    def __init__(
        self,
        status_sink: Optional[StatusSink] = None,
        popen: Callable[..., subprocess.Popen] = subprocess.Popen,
        resolve_binary: Callable[[], str] = resolve_recorder_binary,
        chunk_size: int = 4096,
        stop_timeout_s: float = 2.0,
    ) -> None:
        self._status_sink = status_sink
        self._popen = popen
        self._resolve_binary = resolve_binary
        self._chunk_size = chunk_size
        self._stop_timeout_s = stop_timeout_s
        self._lock = threading.Lock()
        self._session: Optional[AudioSession] = None

    @property
    def state(self) -> RecorderState:
        session = self._session
        return session.state if session is not None else RecorderState.IDLE

    def is_active(self) -> bool:
        return self._session is not None

    def start(self) -> None:
        with self._lock:
            if self._session is not None:
                raise AlreadyActiveError()
            binary = self._resolve_binary()
            try:
                process = self._popen(
                    [binary, *REC_ARGS],
                    stdout=subprocess.PIPE,
                    stderr=subprocess.DEVNULL,
                )
            except OSError as exc:
                logger.error("Failed to spawn recorder %s: %s", binary, exc)
                raise RecorderProcessError(f"Recording failed: {exc}") from exc

            session = AudioSession(process=process)
            session.reader = threading.Thread(
                target=self._pump_output,
                args=(session,),
                name="rec-reader",
                daemon=True,
            )
            self._session = session
            session.reader.start()
            logger.info("Recording started with %s", binary)

    def stop(self) -> SampleBuffer:
        with self._lock:
            session = self._session
            if session is None:
                raise NotActiveError()
            if session.state == RecorderState.FAILED:
                self._session = None
                self._release(session)
                raise session.error or RecorderProcessError()
            session.state = RecorderState.STOPPING

        try:
            process = session.process
            process.terminate()
            try:
                process.wait(timeout=self._stop_timeout_s)
            except subprocess.TimeoutExpired:
                logger.warning("Recorder ignored SIGTERM, killing it")
                process.kill()
                process.wait()
            if session.reader is not None:
                session.reader.join()
            raw = self._drain(session)
            logger.debug("Recorder produced %d bytes", len(raw))
            return pcm16_wav_to_samples(raw)
        finally:
            with self._lock:
                if self._session is session:
                    self._session = None
            self._release(session)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _pump_output(self, session: AudioSession) -> None:
        """Forward stdout chunks to the session queue until EOF, then watch the exit."""
        stream = session.process.stdout
        try:
            if stream is not None:
                for chunk in iter(lambda: stream.read1(self._chunk_size), b""):
                    session.chunks.put(chunk)
        except (OSError, ValueError) as exc:
            self._fail(session, RecorderProcessError(f"Recording failed: {exc}"))
        finally:
            session.chunks.put(None)

        returncode = session.process.wait()
        if session.state == RecorderState.RECORDING:
            self._fail(
                session,
                RecorderProcessError(f"Recorder exited unexpectedly (exit code {returncode})"),
            )

    def _fail(self, session: AudioSession, error: RecorderProcessError) -> None:
        with self._lock:
            if session.state != RecorderState.RECORDING:
                logger.debug("Ignoring recorder error after stop: %s", error)
                return
            session.state = RecorderState.FAILED
            session.error = error
        logger.error("Recorder failed: %s", error)
        if self._status_sink is None:
            return
        try:
            self._status_sink.notify(
                Notification(
                    style=NotificationStyle.FAILURE,
                    title="Recording failed",
                    message=str(error),
                )
            )
            error.notified = True
        except Exception:  # noqa: BLE001
            logger.exception("Status sink raised while reporting recorder failure")

    def _drain(self, session: AudioSession) -> bytes:
        chunks = []
        while True:
            try:
                chunk = session.chunks.get_nowait()
            except Empty:
                break
            if chunk is None:
                break
            chunks.append(chunk)
        return b"".join(chunks)

    def _release(self, session: AudioSession) -> None:
        stream = session.process.stdout
        if stream is not None:
            try:
                stream.close()
            except (OSError, ValueError):
                pass
