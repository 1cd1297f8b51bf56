"""
soundboard_io - Testing Utilities

Tools for testing code that reads and writes audio files.

Components:
    MemoryFormat    - In-memory format backend with failure injection
    MemoryClip      - Audio stored by a MemoryFormat
    CallRecord      - Recorded reader/writer call
    create_test_tone - Deterministic multi-channel sine

Usage:
    from soundboard_io import FormatRegistry, ReadableAudioFile
    from soundboard_io.testing import MemoryFormat, create_test_tone

    memory = MemoryFormat()
    memory.add_clip("a.mem", create_test_tone(channels=2), 44100)
    with ReadableAudioFile("a.mem", registry=FormatRegistry([memory])) as f:
        audio = f.read(f.frames)
"""

from __future__ import annotations

import numpy as np

from soundboard_io.testing.mock import (
    CallRecord,
    MemoryClip,
    MemoryFormat,
    MemoryReader,
    MemoryWriter,
)


def create_test_tone(
    frames: int = 1000,
    channels: int = 1,
    frequency: float = 440.0,
    sample_rate: int = 44100,
    amplitude: float = 0.5,
) -> np.ndarray:
    """Create a float32 sine of shape (channels, frames).

    Each channel is phase-shifted so channels are distinguishable.
    """
    t = np.arange(frames) / sample_rate
    rows = [
        amplitude * np.sin(2 * np.pi * frequency * t + channel * np.pi / 4)
        for channel in range(channels)
    ]
    return np.array(rows, dtype=np.float32).reshape(channels, frames)


__all__ = [
    "CallRecord",
    "MemoryClip",
    "MemoryFormat",
    "MemoryReader",
    "MemoryWriter",
    "create_test_tone",
]
