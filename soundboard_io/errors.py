"""
Audio I/O Errors - Domain-specific error types.

Error hierarchy:
    AudioIOError (base)
    ├── UnsupportedFormatError
    ├── AudioFileNotFoundError
    ├── InvalidArgumentError
    ├── ClosedFileError
    ├── OutOfRangeError
    ├── ChannelMismatchError
    ├── AmbiguousShapeError
    ├── UnsupportedSampleRateError
    ├── UnsupportedBitDepthError
    ├── QualityNotSupportedError
    ├── InvalidQualityError
    ├── UnsupportedDatatypeError
    ├── FlushUnsupportedError
    ├── DoubleCloseError
    └── IOFailureError

Each error also derives from the closest builtin exception, so callers
can keep catching ValueError / TypeError / RuntimeError.
"""

from __future__ import annotations

from typing import Any


class AudioIOError(Exception):
    """Base error for all audio file errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class UnsupportedFormatError(AudioIOError, ValueError):
    """No decoder or encoder claims the file."""

    def __init__(
        self,
        message: str,
        filename: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.filename = filename


class AudioFileNotFoundError(AudioIOError, FileNotFoundError):
    """The file to read does not exist."""

    def __init__(self, filename: str):
        super().__init__(
            f"Failed to open audio file: file does not exist: {filename}",
            {"filename": filename},
        )
        self.filename = filename


class InvalidArgumentError(AudioIOError, ValueError):
    """An argument is outside what the operation accepts."""


class ClosedFileError(AudioIOError, ValueError):
    """I/O was attempted on a closed file."""

    def __init__(self, message: str = "I/O operation on a closed file."):
        super().__init__(message)


class OutOfRangeError(AudioIOError, ValueError):
    """A seek target lies outside [0, frames]."""

    def __init__(self, message: str, position: int, length: int):
        super().__init__(message, {"position": position, "length": length})
        self.position = position
        self.length = length


class ChannelMismatchError(AudioIOError, ValueError):
    """
    Raised when a buffer's channel count does not match the writer.

    Examples:
    - 1-D (mono) buffer passed to a stereo writer
    - (3, N) buffer passed to a stereo writer
    """

    def __init__(
        self,
        message: str,
        expected_channels: int,
        actual_channels: int | None = None,
    ):
        super().__init__(
            message,
            {"expected_channels": expected_channels, "actual_channels": actual_channels},
        )
        self.expected_channels = expected_channels
        self.actual_channels = actual_channels


class AmbiguousShapeError(AudioIOError, ValueError):
    """Both dimensions of a 2-D buffer equal the channel count."""

    def __init__(self, num_channels: int):
        super().__init__(
            "Unable to determine shape of audio input! Both dimensions have "
            f"the same shape. Expected {num_channels}-channel audio, with one "
            "dimension larger than the other.",
            {"num_channels": num_channels},
        )
        self.num_channels = num_channels


class UnsupportedSampleRateError(AudioIOError, ValueError):
    """The output format cannot be written at the requested sample rate."""

    def __init__(self, message: str, sample_rate: float, supported: list[int]):
        super().__init__(message, {"sample_rate": sample_rate, "supported": supported})
        self.sample_rate = sample_rate
        self.supported = supported


class UnsupportedBitDepthError(AudioIOError, ValueError):
    """The output format cannot be written at the requested bit depth."""

    def __init__(self, message: str, bit_depth: int, supported: list[int]):
        super().__init__(message, {"bit_depth": bit_depth, "supported": supported})
        self.bit_depth = bit_depth
        self.supported = supported


class QualityNotSupportedError(AudioIOError, ValueError):
    """A quality value was given for a format without quality options."""


class InvalidQualityError(AudioIOError, ValueError):
    """A quality value matched none of the format's options."""

    def __init__(self, message: str, quality: str, options: list[str]):
        super().__init__(message, {"quality": quality, "options": options})
        self.quality = quality
        self.options = options


class UnsupportedDatatypeError(AudioIOError, TypeError):
    """Sample data of this dtype or bit depth cannot be handled."""


class FlushUnsupportedError(AudioIOError, RuntimeError):
    """The destination cannot be flushed; close() will still flush."""


class DoubleCloseError(AudioIOError, RuntimeError):
    """close() was called on a writer that is already closed."""

    def __init__(self, message: str = "Cannot close closed file."):
        super().__init__(message)


class IOFailureError(AudioIOError, RuntimeError):
    """The underlying decoder or encoder reported a failure."""
