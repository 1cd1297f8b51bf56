"""
I/O configuration for soundboard_io.

Defines the working-set size used for chunked reads and writes.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

DEFAULT_AUDIO_BUFFER_SIZE_FRAMES = 8192

VALID_BIT_DEPTHS = (8, 16, 24, 32, 64)


def _env_buffer_frames() -> int:
    value = os.environ.get("SOUNDBOARD_IO_BUFFER_FRAMES")
    if value is None or not value.strip():
        return DEFAULT_AUDIO_BUFFER_SIZE_FRAMES
    return int(value)


@dataclass
class IOConfig:
    """Configuration for audio file I/O.

    Args:
        buffer_size_frames: Frames converted per chunk. Bounds the scratch
            memory of every read and write regardless of request size.
        default_bit_depth: Bit depth used when a writer is opened without one.

    Example:
        config = IOConfig(buffer_size_frames=1024)
        with WriteableAudioFile("out.wav", 44100, config=config) as f:
            f.write(samples)
    """

    buffer_size_frames: int = field(default_factory=_env_buffer_frames)
    """Frames per conversion chunk (SOUNDBOARD_IO_BUFFER_FRAMES)."""

    default_bit_depth: int = 16
    """Bit depth for writers opened without an explicit one."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.buffer_size_frames < 1:
            raise ValueError("buffer_size_frames must be >= 1")
        if self.default_bit_depth not in VALID_BIT_DEPTHS:
            raise ValueError(
                f"default_bit_depth must be one of {VALID_BIT_DEPTHS}, "
                f"got {self.default_bit_depth}"
            )


_default_config: IOConfig | None = None


def get_config() -> IOConfig:
    """Get the process-wide default configuration."""
    global _default_config
    if _default_config is None:
        _default_config = IOConfig()
    return _default_config


def set_config(config: IOConfig | None) -> None:
    """Replace the process-wide default configuration (None resets it)."""
    global _default_config
    _default_config = config
