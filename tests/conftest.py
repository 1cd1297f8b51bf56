"""
Shared fixtures for soundboard_io tests.

Provides:
    - In-memory format backends and registries
    - A small-chunk config so chunking is exercised on short buffers
"""

from __future__ import annotations

import numpy as np
import pytest

from soundboard_io import FormatRegistry, IOConfig
from soundboard_io.formats import MP3_FORMAT_NAME
from soundboard_io.testing import MemoryFormat


@pytest.fixture
def memory() -> MemoryFormat:
    """Integer-storing in-memory format (extension .mem)."""
    return MemoryFormat()


@pytest.fixture
def float_memory() -> MemoryFormat:
    """Float-storing in-memory format (extension .fmem)."""
    return MemoryFormat(
        name="Float memory file",
        extensions=("fmem",),
        bit_depths=(32,),
        floating_point=True,
    )


@pytest.fixture
def lossy_memory() -> MemoryFormat:
    """In-memory format with bitrate quality options (extension .lmem)."""
    return MemoryFormat(
        name="Lossy memory file",
        extensions=("lmem",),
        bit_depths=(16, 32),
        quality_options=("128 kbps", "192 kbps", "320 kbps"),
        floating_point=True,
    )


@pytest.fixture
def mp3_memory() -> MemoryFormat:
    """Read-only in-memory stand-in for the MP3 decoder."""
    return MemoryFormat(name=MP3_FORMAT_NAME, extensions=("mp3",), writable=False)


@pytest.fixture
def registry(memory, float_memory, lossy_memory, mp3_memory) -> FormatRegistry:
    return FormatRegistry([memory, float_memory, lossy_memory, mp3_memory])


@pytest.fixture
def small_chunks() -> IOConfig:
    """Config with 16-frame chunks."""
    return IOConfig(buffer_size_frames=16)


@pytest.fixture
def stereo_int16() -> np.ndarray:
    """Deterministic stereo int16 ramp, shape (2, 100)."""
    left = np.arange(-50, 50, dtype=np.int16) * 300
    right = -left
    return np.stack([left, right])
