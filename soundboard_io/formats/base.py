"""
Format Base - decoder/encoder interfaces.

Every container format is a backend that knows how to open readers and
writers. The file objects never look at file bytes; they only talk to the
interfaces below.

READER CONTRACT:
    Readers MUST:
        - Report sample_rate, num_channels, bits_per_sample,
          uses_floating_point_data, length_in_samples and format_name
        - Fill dest (shape (channels, frames), int32 or float32) from
          start_frame, returning the number of frames actually decoded
        - Deliver integer audio left-aligned in int32 (16-bit v -> v << 16)
        - Raise IOFailureError when decoding fails

    Readers MAY:
        - Leave the tail of dest untouched on a short read

WRITER CONTRACT:
    Writers MUST:
        - Accept planar int32 (left-aligned fixed point) or float32 blocks
        - Convert float32 to fixed point themselves when storing integers
        - Return False from write()/flush() instead of raising on failure
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import numpy as np

# Content sniffing can mistake other formats for MP3.
MP3_FORMAT_NAME = "MP3 file"


@dataclass(frozen=True)
class FormatCapabilities:
    """
    What a format can do.

    Attributes:
        format_name: Human-readable name (e.g. "WAV file")
        extensions: Lower-case extensions without the dot
        sample_rates: Sample rates advertised for writing
        bit_depths: Bit depths accepted for writing
        quality_options: Ordered quality labels, worst to best
        readable: Whether files of this format can be opened for reading
        writable: Whether files of this format can be opened for writing
    """
    format_name: str
    extensions: tuple[str, ...]
    sample_rates: tuple[int, ...] = ()
    bit_depths: tuple[int, ...] = ()
    quality_options: tuple[str, ...] = ()
    readable: bool = True
    writable: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "format_name": self.format_name,
            "extensions": list(self.extensions),
            "sample_rates": list(self.sample_rates),
            "bit_depths": list(self.bit_depths),
            "quality_options": list(self.quality_options),
            "readable": self.readable,
            "writable": self.writable,
        }


class AudioStreamReader(ABC):
    """Decoder handle for one open file."""

    format_name: str = ""

    @property
    @abstractmethod
    def sample_rate(self) -> float:
        ...

    @property
    @abstractmethod
    def num_channels(self) -> int:
        ...

    @property
    @abstractmethod
    def bits_per_sample(self) -> int:
        ...

    @property
    @abstractmethod
    def uses_floating_point_data(self) -> bool:
        ...

    @property
    @abstractmethod
    def length_in_samples(self) -> int:
        ...

    @abstractmethod
    def read_samples(self, dest: np.ndarray, start_frame: int, num_frames: int) -> int:
        """Decode ``num_frames`` starting at ``start_frame`` into ``dest``.

        Args:
            dest: Planar destination, shape (channels, num_frames), dtype
                int32 or float32. May be a non-contiguous view.
            start_frame: Absolute frame to start from.
            num_frames: Frames requested.

        Returns:
            Frames actually decoded.
        """
        ...

    @abstractmethod
    def close(self) -> None:
        ...


class AudioStreamWriter(ABC):
    """Encoder handle for one open file."""

    format_name: str = ""

    @property
    @abstractmethod
    def sample_rate(self) -> float:
        ...

    @property
    @abstractmethod
    def num_channels(self) -> int:
        ...

    @property
    @abstractmethod
    def bits_per_sample(self) -> int:
        ...

    @property
    @abstractmethod
    def uses_floating_point_data(self) -> bool:
        ...

    @abstractmethod
    def write(self, block: np.ndarray) -> bool:
        """Encode a planar block, shape (channels, frames), int32 or float32."""
        ...

    @abstractmethod
    def flush(self) -> bool:
        """Force buffered data to disk. False if the target cannot flush."""
        ...

    @abstractmethod
    def close(self) -> None:
        ...


class AudioFormatBackend(ABC):
    """A container format: opens readers and writers for its files."""

    def __init__(self, capabilities: FormatCapabilities):
        self._capabilities = capabilities

    @property
    def name(self) -> str:
        return self._capabilities.format_name

    @property
    def capabilities(self) -> FormatCapabilities:
        return self._capabilities

    @property
    def extensions(self) -> tuple[str, ...]:
        return self._capabilities.extensions

    def handles_extension(self, extension: str) -> bool:
        """Check whether ``extension`` (with or without dot) belongs here."""
        return extension.lower().lstrip(".") in self._capabilities.extensions

    @abstractmethod
    def open_reader(self, path: str) -> AudioStreamReader | None:
        """Open ``path`` for reading, or return None if it is not this format."""
        ...

    def open_writer(
        self,
        path: str,
        sample_rate: float,
        num_channels: int,
        bit_depth: int,
        quality_index: int,
    ) -> AudioStreamWriter | None:
        """Create a writer, or return None if the parameters are unsupported."""
        return None
