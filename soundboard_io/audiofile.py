"""
Audio file objects.

ReadableAudioFile and WriteableAudioFile wrap one decoder or encoder
handle each and present audio as channel-major numpy arrays, shape
(channels, frames), whatever the container stores.

Each file object serializes its operations through its own lock. The
decode/encode and numpy conversion work runs in soundfile and numpy C code,
which releases the interpreter lock while it runs, so threads working on
different files proceed in parallel.
"""

from __future__ import annotations

import logging
import operator
import os
import threading
from abc import ABC
from pathlib import Path
from typing import Any

import numpy as np

from soundboard_io.config import IOConfig, get_config
from soundboard_io.conversion import (
    SampleType,
    decode_float,
    decode_native,
    describe_file_dtype,
    encode_frames,
)
from soundboard_io.errors import (
    ChannelMismatchError,
    ClosedFileError,
    DoubleCloseError,
    FlushUnsupportedError,
    InvalidArgumentError,
    IOFailureError,
    OutOfRangeError,
    UnsupportedBitDepthError,
    UnsupportedFormatError,
    UnsupportedSampleRateError,
)
from soundboard_io.formats.base import (
    MP3_FORMAT_NAME,
    AudioFormatBackend,
    AudioStreamReader,
    AudioStreamWriter,
)
from soundboard_io.formats.registry import FormatRegistry
from soundboard_io.layout import detect_channel_layout
from soundboard_io.quality import normalize_quality, resolve_quality_index

logger = logging.getLogger(__name__)

_WHOLE_FILE_MESSAGE = (
    "ReadableAudioFile will not read an entire file at once, due to the "
    "possibility that a file may be larger than available memory. Please "
    "pass a number of frames to read (available from the 'frames' attribute)."
)


def _format_rate(sample_rate: float) -> str:
    return str(int(sample_rate)) if float(sample_rate).is_integer() else str(sample_rate)


def _frame_count(value: Any) -> int:
    count = operator.index(value)
    if count == 0:
        raise InvalidArgumentError(_WHOLE_FILE_MESSAGE)
    if count < 0:
        raise InvalidArgumentError(f"Number of frames to read must be positive (got {count}).")
    return count


class AudioFile(ABC):
    """Open an audio file for reading or writing.

    ``AudioFile(path)`` or ``AudioFile(path, "r")`` returns a
    ReadableAudioFile; ``AudioFile(path, "w", samplerate, ...)`` returns a
    WriteableAudioFile.

    Example:
        with AudioFile("speech.wav") as f:
            audio = f.read(f.frames)

        with AudioFile("copy.flac", "w", 24000, num_channels=1) as f:
            f.write(audio)
    """

    def __new__(
        cls,
        filename: str | os.PathLike,
        mode: str = "r",
        samplerate: float | None = None,
        num_channels: int | None = None,
        bit_depth: int | None = None,
        quality: str | float | None = None,
        *,
        registry: FormatRegistry | None = None,
        config: IOConfig | None = None,
    ):
        if mode == "r":
            if any(v is not None for v in (samplerate, num_channels, bit_depth, quality)):
                raise InvalidArgumentError(
                    "Opening an audio file for reading does not require "
                    "samplerate, num_channels, bit_depth, or quality arguments - "
                    "these parameters will be read from the file."
                )
            return ReadableAudioFile(filename, registry=registry, config=config)

        if mode == "w":
            if samplerate is None:
                raise InvalidArgumentError(
                    "Opening an audio file for writing requires a samplerate "
                    "argument to be provided."
                )
            return WriteableAudioFile(
                filename,
                samplerate,
                num_channels=1 if num_channels is None else num_channels,
                bit_depth=bit_depth,
                quality=quality,
                registry=registry,
                config=config,
            )

        raise InvalidArgumentError(
            'AudioFile instances can only be opened in read mode ("r") '
            'and write mode ("w").'
        )


class ReadableAudioFile:
    """Seekable, chunked reader for one audio file.

    Example:
        with ReadableAudioFile("speech.flac") as f:
            while f.tell() < f.frames:
                chunk = f.read(4096)   # float32, (channels, <=4096)
    """

    def __init__(
        self,
        filename: str | os.PathLike,
        *,
        registry: FormatRegistry | None = None,
        config: IOConfig | None = None,
    ):
        self._reader: AudioStreamReader | None = None
        self._filename = os.fspath(filename)
        self._registry = registry or FormatRegistry.default()
        self._config = config or get_config()
        self._lock = threading.RLock()
        self._position = 0

        self._reader = self._open_reader()
        logger.debug(
            "Opened %s for reading (%s, %d channels, %d frames)",
            self._filename,
            self._reader.format_name,
            self._reader.num_channels,
            self._reader.length_in_samples,
        )

    def _open_reader(self) -> AudioStreamReader:
        reader = self._registry.find_reader_for(self._filename)
        if reader is not None:
            return reader

        reader = self._registry.sniff_reader_for(self._filename)
        if reader is not None and reader.format_name == MP3_FORMAT_NAME:
            if not self._filename.lower().endswith(".mp3"):
                reader.close()
                raise UnsupportedFormatError(
                    f'Failed to open audio file: file "{self._filename}" does not '
                    "seem to be of a known or supported format. (If trying to "
                    "open an MP3 file, ensure the filename ends with '.mp3'.)",
                    filename=self._filename,
                )

        if reader is None:
            raise UnsupportedFormatError(
                f'Failed to open audio file: file "{self._filename}" does not '
                "seem to be of a known or supported format.",
                filename=self._filename,
            )
        return reader

    def _require_open(self) -> AudioStreamReader:
        if self._reader is None:
            raise ClosedFileError()
        return self._reader

    # =========================================================================
    # Reading
    # =========================================================================

    def read(self, num_frames: int) -> np.ndarray:
        """Read up to ``num_frames`` frames as float32.

        Returns:
            Array of shape (channels, frames). Fewer frames than requested
            are returned near the end of the file; none at the end.

        Raises:
            InvalidArgumentError: If ``num_frames`` is zero or negative.
            ClosedFileError: If the file is closed.
        """
        count = _frame_count(num_frames)
        with self._lock:
            reader = self._require_open()
            count = max(0, min(count, reader.length_in_samples - self._position))
            buffer = decode_float(reader, self._position, count, self._config.buffer_size_frames)
            self._position += count
            return buffer

    def read_raw(self, num_frames: int) -> np.ndarray:
        """Read up to ``num_frames`` frames in the file's native dtype.

        Integer files come back as int8, int16 or int32 (24-bit audio is
        returned as int32 holding 24-bit values); float files as float32.
        """
        count = _frame_count(num_frames)
        with self._lock:
            reader = self._require_open()
            count = max(0, min(count, reader.length_in_samples - self._position))
            buffer = decode_native(reader, self._position, count, self._config.buffer_size_frames)
            self._position += count
            return buffer

    def seek(self, position: int) -> None:
        """Seek to an absolute frame position."""
        position = operator.index(position)
        with self._lock:
            reader = self._require_open()
            length = reader.length_in_samples
            if position > length:
                raise OutOfRangeError(
                    f"Cannot seek beyond end of file ({length} frames).",
                    position=position,
                    length=length,
                )
            if position < 0:
                raise OutOfRangeError(
                    "Cannot seek before start of file.",
                    position=position,
                    length=length,
                )
            self._position = position

    def tell(self) -> int:
        """Current position, in frames."""
        with self._lock:
            self._require_open()
            return self._position

    def seekable(self) -> bool:
        """True while the file is open."""
        with self._lock:
            return self._reader is not None

    def close(self) -> None:
        """Close the file. Closing twice is allowed."""
        with self._lock:
            reader, self._reader = self._reader, None
            if reader is not None:
                reader.close()
                logger.debug("Closed %s", self._filename)

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._reader is None

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def name(self) -> str:
        return self._filename

    @property
    def samplerate(self) -> float:
        """Sample rate in Hz."""
        with self._lock:
            return self._require_open().sample_rate

    @property
    def channels(self) -> int:
        with self._lock:
            return self._require_open().num_channels

    @property
    def frames(self) -> int:
        """Total frames (samples per channel) in the file."""
        with self._lock:
            return self._require_open().length_in_samples

    @property
    def duration(self) -> float:
        """Length in seconds."""
        with self._lock:
            reader = self._require_open()
            return reader.length_in_samples / reader.sample_rate

    @property
    def file_dtype(self) -> str:
        """The dtype stored on disk. read() always returns float32."""
        with self._lock:
            reader = self._require_open()
            return describe_file_dtype(reader.bits_per_sample, reader.uses_floating_point_data)

    @property
    def format_name(self) -> str:
        with self._lock:
            return self._require_open().format_name

    def __enter__(self) -> "ReadableAudioFile":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __del__(self):
        if getattr(self, "_reader", None) is not None:
            self.close()

    def __repr__(self) -> str:
        parts = ["<soundboard_io.ReadableAudioFile"]
        if self._filename:
            parts.append(f'filename="{self._filename}"')
        with self._lock:
            reader = self._reader
            if reader is None:
                parts.append("closed")
            else:
                parts.append(f"samplerate={_format_rate(reader.sample_rate)}")
                parts.append(f"num_channels={reader.num_channels}")
                parts.append(f"frames={reader.length_in_samples}")
                parts.append(
                    "file_dtype="
                    + describe_file_dtype(reader.bits_per_sample, reader.uses_floating_point_data)
                )
        parts.append(f"at {hex(id(self))}>")
        return " ".join(parts)


class WriteableAudioFile:
    """Chunked, shape-tolerant writer for one audio file.

    Accepts int8, int16, int32, float32 and float64 arrays, either
    (channels, frames) or (frames, channels), and converts them to what the
    output format stores.

    Example:
        with WriteableAudioFile("out.ogg", 44100, num_channels=2, quality="192 kbps") as f:
            f.write(stereo)          # (2, N) or (N, 2)
            print(f.frames, f.quality)
    """

    def __init__(
        self,
        filename: str | os.PathLike,
        samplerate: float,
        num_channels: int = 1,
        bit_depth: int | None = None,
        quality: str | float | None = None,
        *,
        registry: FormatRegistry | None = None,
        config: IOConfig | None = None,
    ):
        self._writer: AudioStreamWriter | None = None
        self._filename = os.fspath(filename)
        self._registry = registry or FormatRegistry.default()
        self._config = config or get_config()
        self._lock = threading.RLock()
        self._frames_written = 0
        self._quality: str | None = None

        samplerate = float(samplerate)
        if not samplerate.is_integer():
            raise InvalidArgumentError(
                "Opening an audio file for writing requires an integer sample rate."
            )
        if samplerate <= 0:
            raise InvalidArgumentError(
                "Opening an audio file for writing requires a non-zero sample rate."
            )

        num_channels = operator.index(num_channels)
        if num_channels < 1:
            raise InvalidArgumentError(
                "Opening an audio file for writing requires a non-zero num_channels."
            )

        if bit_depth is None:
            bit_depth = self._config.default_bit_depth
        bit_depth = operator.index(bit_depth)

        backend = self._writable_format()
        quality_string = normalize_quality(quality)
        options = backend.capabilities.quality_options
        quality_index = resolve_quality_index(quality_string, options, backend.name)
        if quality_index < len(options):
            self._quality = options[quality_index]

        writer = self._registry.find_writer_for(
            self._filename, samplerate, num_channels, bit_depth, quality_index
        )
        if writer is None:
            raise self._writer_failure(backend, samplerate, num_channels, bit_depth, quality_string)

        self._writer = writer
        logger.debug(
            "Opened %s for writing (%s, samplerate=%s, num_channels=%d, "
            "bit_depth=%d, quality=%s)",
            self._filename,
            backend.name,
            _format_rate(samplerate),
            num_channels,
            bit_depth,
            self._quality,
        )

    def _writable_format(self) -> AudioFormatBackend:
        extension = Path(self._filename).suffix
        if not extension:
            raise UnsupportedFormatError(
                "No file extension provided - cannot detect audio format to "
                f"write with for file path: {self._filename}",
                filename=self._filename,
            )

        backend = self._registry.format_for_extension(extension, writable=True)
        if backend is not None:
            return backend

        if self._registry.format_for_extension(extension) is not None:
            raise UnsupportedFormatError(
                f"{extension} audio files are not writable.",
                filename=self._filename,
            )
        raise UnsupportedFormatError(
            f"Unable to detect audio format for file extension: {extension}",
            filename=self._filename,
        )

    def _writer_failure(
        self,
        backend: AudioFormatBackend,
        samplerate: float,
        num_channels: int,
        bit_depth: int,
        quality: str,
    ) -> Exception:
        caps = backend.capabilities
        extension = Path(self._filename).suffix

        if not caps.sample_rates:
            return UnsupportedFormatError(
                f"{extension} audio files are not writable.", filename=self._filename
            )
        if int(samplerate) not in caps.sample_rates:
            return UnsupportedSampleRateError(
                f"{caps.format_name}s do not support the provided sample rate of "
                f"{_format_rate(samplerate)}Hz. Supported sample rates: "
                + ", ".join(str(r) for r in caps.sample_rates),
                sample_rate=samplerate,
                supported=list(caps.sample_rates),
            )

        if not caps.bit_depths:
            return UnsupportedFormatError(
                f"{extension} audio files are not writable.", filename=self._filename
            )
        if bit_depth not in caps.bit_depths:
            return UnsupportedBitDepthError(
                f"{caps.format_name}s do not support the provided bit depth of "
                f"{bit_depth} bits. Supported bit depths: "
                + ", ".join(str(d) for d in caps.bit_depths),
                bit_depth=bit_depth,
                supported=list(caps.bit_depths),
            )

        return IOFailureError(
            f"Unable to create audio file writer with samplerate="
            f"{_format_rate(samplerate)}, num_channels={num_channels}, "
            f"bit_depth={bit_depth}, and quality={quality or None}",
            {
                "samplerate": samplerate,
                "num_channels": num_channels,
                "bit_depth": bit_depth,
                "quality": quality or None,
            },
        )

    def _require_open(self) -> AudioStreamWriter:
        if self._writer is None:
            raise ClosedFileError()
        return self._writer

    # =========================================================================
    # Writing
    # =========================================================================

    def write(self, samples: np.ndarray) -> None:
        """Encode ``samples`` and append them to the file.

        Args:
            samples: 1-D (mono) or 2-D array in either channel layout, of
                dtype int8, int16, int32, float32 or float64.

        Raises:
            UnsupportedDatatypeError: Unsupported dtype.
            AmbiguousShapeError: Shape is (channels, channels).
            ChannelMismatchError: Channel count differs from the file's.
            IOFailureError: The encoder rejected the data.
        """
        samples = np.asarray(samples)
        with self._lock:
            writer = self._require_open()
            SampleType.from_dtype(samples.dtype)

            expected = writer.num_channels
            layout, channels, frames = detect_channel_layout(samples.shape, expected)
            if channels == 0:
                return
            if channels != expected:
                raise ChannelMismatchError(
                    f"WriteableAudioFile was opened with num_channels={expected}, "
                    f"but was passed an array containing {channels}-channel audio!",
                    expected_channels=expected,
                    actual_channels=channels,
                )

            if samples.ndim == 1:
                samples = samples.reshape(1, -1)

            encode_frames(writer, samples, layout, frames, self._config.buffer_size_frames)
            self._frames_written += frames

    def flush(self) -> None:
        """Flush written audio to disk.

        Raises:
            FlushUnsupportedError: If the destination cannot be flushed.
                close() still flushes reliably.
        """
        with self._lock:
            writer = self._require_open()
            if not writer.flush():
                raise FlushUnsupportedError(
                    "Unable to flush audio file; is the underlying file seekable?"
                )

    def close(self) -> None:
        """Flush and close the file.

        Raises:
            DoubleCloseError: If the file is already closed.
        """
        with self._lock:
            if self._writer is None:
                raise DoubleCloseError()
            writer, self._writer = self._writer, None
            writer.close()
            logger.debug("Closed %s after %d frames", self._filename, self._frames_written)

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._writer is None

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def name(self) -> str:
        return self._filename

    @property
    def samplerate(self) -> float:
        with self._lock:
            return self._require_open().sample_rate

    @property
    def channels(self) -> int:
        with self._lock:
            return self._require_open().num_channels

    @property
    def frames(self) -> int:
        """Frames written so far."""
        with self._lock:
            return self._frames_written

    @property
    def file_dtype(self) -> str:
        """The dtype stored on disk. write() accepts any supported dtype."""
        with self._lock:
            writer = self._require_open()
            return describe_file_dtype(writer.bits_per_sample, writer.uses_floating_point_data)

    @property
    def quality(self) -> str | None:
        """Resolved quality label, or None for formats without options."""
        return self._quality

    @property
    def format_name(self) -> str:
        with self._lock:
            return self._require_open().format_name

    def __enter__(self) -> "WriteableAudioFile":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        if not self.closed:
            self.close()

    def __del__(self):
        if getattr(self, "_writer", None) is not None:
            self.close()

    def __repr__(self) -> str:
        parts = ["<soundboard_io.WriteableAudioFile"]
        if self._filename:
            parts.append(f'filename="{self._filename}"')
        with self._lock:
            writer = self._writer
            if writer is None:
                parts.append("closed")
            else:
                parts.append(f"samplerate={_format_rate(writer.sample_rate)}")
                parts.append(f"num_channels={writer.num_channels}")
                if self._quality is not None:
                    parts.append(f'quality="{self._quality}"')
                parts.append(
                    "file_dtype="
                    + describe_file_dtype(writer.bits_per_sample, writer.uses_floating_point_data)
                )
        parts.append(f"at {hex(id(self))}>")
        return " ".join(parts)


AudioFile.register(ReadableAudioFile)
AudioFile.register(WriteableAudioFile)


def get_supported_read_formats(registry: FormatRegistry | None = None) -> list[str]:
    """Extensions that can be opened for reading on this platform."""
    return (registry or FormatRegistry.default()).supported_read_formats()


def get_supported_write_formats(registry: FormatRegistry | None = None) -> list[str]:
    """Extensions that can be opened for writing."""
    return (registry or FormatRegistry.default()).supported_write_formats()
