"""Raw WAV/PCM16 bytes to normalized float samples."""

from __future__ import annotations

import numpy as np

from errors import CorruptedAudioError, NoAudioCapturedError
from models import CHANNELS, SAMPLE_RATE, SAMPLE_WIDTH, WAV_HEADER_SIZE, SampleBuffer

_PCM16_SCALE = 32768.0


def pcm16_wav_to_samples(raw: bytes) -> SampleBuffer:
    """Skip the fixed WAV header and scale little-endian int16 samples to [-1.0, 1.0).

    Raises ``NoAudioCapturedError`` when nothing follows the header and
    ``CorruptedAudioError`` when the payload ends mid-sample.
    """
    if len(raw) <= WAV_HEADER_SIZE:
        raise NoAudioCapturedError()
    payload_len = len(raw) - WAV_HEADER_SIZE
    if payload_len % SAMPLE_WIDTH != 0:
        raise CorruptedAudioError()

    pcm = np.frombuffer(raw, dtype="<i2", offset=WAV_HEADER_SIZE)
    samples = pcm.astype(np.float32) / np.float32(_PCM16_SCALE)
    samples.setflags(write=False)
    return SampleBuffer(samples=samples, sample_rate=SAMPLE_RATE, channels=CHANNELS)
