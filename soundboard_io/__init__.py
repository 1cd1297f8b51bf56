"""
soundboard_io - Format-agnostic audio file reading and writing.

Architecture:
    AudioFile → ChannelLayout → SampleConversion → Format backend → disk

Public API (stable):
    AudioFile            - Factory: AudioFile(path) / AudioFile(path, "w", samplerate)
    ReadableAudioFile    - Seekable chunked reads, float32 or native dtype
    WriteableAudioFile   - Chunked writes from int8/16/32 or float32/64 arrays
    get_supported_read_formats / get_supported_write_formats

Internals (for advanced users):
    soundboard_io.conversion   - Fixed/float conversion and the write table
    soundboard_io.layout       - Interleaved vs planar detection
    soundboard_io.quality      - Quality option resolution
    soundboard_io.formats      - Reader/Writer interfaces, FormatRegistry
    soundboard_io.testing      - MemoryFormat for tests

Example:
    from soundboard_io import AudioFile

    with AudioFile("speech.wav") as f:
        audio = f.read(f.frames)          # (channels, frames), float32

    with AudioFile("speech.ogg", "w", 24000, num_channels=1, quality="128 kbps") as f:
        f.write(audio)

    # Stream a long file in bounded memory
    with AudioFile("long.flac") as f:
        while f.tell() < f.frames:
            block = f.read(8192)
"""

__version__ = "0.1.0"

from soundboard_io.audiofile import (
    AudioFile,
    ReadableAudioFile,
    WriteableAudioFile,
    get_supported_read_formats,
    get_supported_write_formats,
)
from soundboard_io.config import IOConfig, get_config
from soundboard_io.errors import (
    AmbiguousShapeError,
    AudioFileNotFoundError,
    AudioIOError,
    ChannelMismatchError,
    ClosedFileError,
    DoubleCloseError,
    FlushUnsupportedError,
    InvalidArgumentError,
    InvalidQualityError,
    IOFailureError,
    OutOfRangeError,
    QualityNotSupportedError,
    UnsupportedBitDepthError,
    UnsupportedDatatypeError,
    UnsupportedFormatError,
    UnsupportedSampleRateError,
)
from soundboard_io.formats import FormatRegistry

__all__ = [
    # Version
    "__version__",
    # Core
    "AudioFile",
    "ReadableAudioFile",
    "WriteableAudioFile",
    "get_supported_read_formats",
    "get_supported_write_formats",
    "FormatRegistry",
    # Config
    "IOConfig",
    "get_config",
    # Errors
    "AudioIOError",
    "AmbiguousShapeError",
    "AudioFileNotFoundError",
    "ChannelMismatchError",
    "ClosedFileError",
    "DoubleCloseError",
    "FlushUnsupportedError",
    "InvalidArgumentError",
    "InvalidQualityError",
    "IOFailureError",
    "OutOfRangeError",
    "QualityNotSupportedError",
    "UnsupportedBitDepthError",
    "UnsupportedDatatypeError",
    "UnsupportedFormatError",
    "UnsupportedSampleRateError",
]
