"""
soundfile (libsndfile) format backends.

Provides WAV, AIFF, FLAC and Ogg Vorbis reading and writing, plus MP3
reading when the installed libsndfile was built with MPEG support.

libsndfile already delivers integer audio left-aligned when read as int32
and scales int32 down to the stored width when writing, which is exactly
the reader/writer contract in formats/base.py.
"""

from __future__ import annotations

import logging
import os
from typing import Callable

import numpy as np
import soundfile as sf

from soundboard_io.errors import AudioFileNotFoundError, IOFailureError
from soundboard_io.formats.base import (
    MP3_FORMAT_NAME,
    AudioFormatBackend,
    AudioStreamReader,
    AudioStreamWriter,
    FormatCapabilities,
)

logger = logging.getLogger(__name__)


STANDARD_SAMPLE_RATES = (
    8000, 11025, 12000, 16000, 22050, 24000, 32000, 44100,
    48000, 88200, 96000, 176400, 192000, 352800, 384000,
)

OGG_SAMPLE_RATES = (
    8000, 11025, 12000, 16000, 22050, 24000, 32000, 44100,
    48000, 88200, 96000, 176400, 192000,
)

OGG_QUALITY_OPTIONS = (
    "64 kbps", "80 kbps", "96 kbps", "112 kbps", "128 kbps", "160 kbps",
    "192 kbps", "224 kbps", "256 kbps", "320 kbps", "500 kbps",
)

FLAC_QUALITY_OPTIONS = (
    "0 (Fastest)", "1", "2", "3", "4", "5 (Default)", "6", "7",
    "8 (Highest quality)",
)

# libsndfile subtype -> (bits per sample, floating point)
SUBTYPE_SAMPLE_INFO: dict[str, tuple[int, bool]] = {
    "PCM_S8": (8, False),
    "PCM_U8": (8, False),
    "PCM_16": (16, False),
    "PCM_24": (24, False),
    "PCM_32": (32, False),
    "ULAW": (16, False),
    "ALAW": (16, False),
    "ALAC_16": (16, False),
    "ALAC_32": (32, False),
    "FLOAT": (32, True),
    "DOUBLE": (64, True),
    "VORBIS": (32, True),
    "OPUS": (32, True),
    "MPEG_LAYER_I": (32, True),
    "MPEG_LAYER_II": (32, True),
    "MPEG_LAYER_III": (32, True),
}

# Compressed subtypes with no meaningful sample width (IMA ADPCM, GSM 6.10,
# ...) decode through float and report file_dtype "unknown".
UNKNOWN_SUBTYPE_SAMPLE_INFO = (0, True)

_FLOAT_SUBTYPES = {"FLOAT", "DOUBLE", "VORBIS", "OPUS"}


def _index_fraction(index: int, count: int) -> float:
    if count <= 1:
        return 1.0
    return min(max(index, 0), count - 1) / (count - 1)


def flac_compression_level(index: int) -> float:
    """FLAC option 0 is fastest, the last is the highest compression."""
    return _index_fraction(index, len(FLAC_QUALITY_OPTIONS))


def vorbis_compression_level(index: int) -> float:
    """Higher Vorbis bitrates mean less compression."""
    return 1.0 - _index_fraction(index, len(OGG_QUALITY_OPTIONS))


class SoundFileReader(AudioStreamReader):
    """Reader over an open ``soundfile.SoundFile``."""

    def __init__(self, sound_file: sf.SoundFile, format_name: str):
        self._file = sound_file
        self.format_name = format_name
        self._bits, self._floating = SUBTYPE_SAMPLE_INFO.get(
            sound_file.subtype, UNKNOWN_SUBTYPE_SAMPLE_INFO
        )

    @property
    def sample_rate(self) -> float:
        return float(self._file.samplerate)

    @property
    def num_channels(self) -> int:
        return self._file.channels

    @property
    def bits_per_sample(self) -> int:
        return self._bits

    @property
    def uses_floating_point_data(self) -> bool:
        return self._floating

    @property
    def length_in_samples(self) -> int:
        return self._file.frames

    def read_samples(self, dest: np.ndarray, start_frame: int, num_frames: int) -> int:
        try:
            self._file.seek(start_frame)
            data = self._file.read(num_frames, dtype=dest.dtype.name, always_2d=True)
        except RuntimeError as e:
            logger.warning("Decoding %s failed: %s", self._file.name, e)
            raise IOFailureError(
                "Failed to read from file.",
                {"start_frame": start_frame, "num_frames": num_frames},
            ) from e

        frames = data.shape[0]
        dest[:, :frames] = data.T
        return frames

    def close(self) -> None:
        self._file.close()


class SoundFileWriter(AudioStreamWriter):
    """Writer over an open ``soundfile.SoundFile``."""

    def __init__(
        self,
        sound_file: sf.SoundFile,
        format_name: str,
        bits_per_sample: int,
        floating_point: bool,
    ):
        self._file = sound_file
        self.format_name = format_name
        self._bits = bits_per_sample
        self._floating = floating_point

    @property
    def sample_rate(self) -> float:
        return float(self._file.samplerate)

    @property
    def num_channels(self) -> int:
        return self._file.channels

    @property
    def bits_per_sample(self) -> int:
        return self._bits

    @property
    def uses_floating_point_data(self) -> bool:
        return self._floating

    def write(self, block: np.ndarray) -> bool:
        try:
            self._file.write(np.ascontiguousarray(block.T))
        except RuntimeError as e:
            logger.warning("Encoding to %s failed: %s", self._file.name, e)
            return False
        return True

    def flush(self) -> bool:
        try:
            self._file.flush()
        except RuntimeError as e:
            logger.warning("Flushing %s failed: %s", self._file.name, e)
            return False
        return True

    def close(self) -> None:
        self._file.close()


class SoundFileFormat(AudioFormatBackend):
    """One libsndfile major format.

    Args:
        capabilities: What this format advertises.
        major_format: libsndfile major format name (e.g. "WAV").
        subtypes: Bit depth -> libsndfile subtype used when writing.
        compression_level: Maps a quality index to soundfile's
            ``compression_level`` (None if the format has no options).
        enforce_sample_rates: Refuse writers at unadvertised sample rates.
    """

    def __init__(
        self,
        capabilities: FormatCapabilities,
        major_format: str,
        subtypes: dict[int, str] | None = None,
        compression_level: Callable[[int], float] | None = None,
        enforce_sample_rates: bool = False,
    ):
        super().__init__(capabilities)
        self._major_format = major_format
        self._subtypes = subtypes or {}
        self._compression_level = compression_level
        self._enforce_sample_rates = enforce_sample_rates

    @property
    def major_format(self) -> str:
        return self._major_format

    def open_reader(self, path: str) -> AudioStreamReader | None:
        if not os.path.isfile(path):
            raise AudioFileNotFoundError(path)

        try:
            sound_file = sf.SoundFile(path)
        except RuntimeError as e:
            logger.debug("%s cannot open %s: %s", self.name, path, e)
            return None

        if sound_file.format != self._major_format:
            sound_file.close()
            return None
        return SoundFileReader(sound_file, self.name)

    def open_writer(
        self,
        path: str,
        sample_rate: float,
        num_channels: int,
        bit_depth: int,
        quality_index: int,
    ) -> AudioStreamWriter | None:
        if not self.capabilities.writable:
            return None

        subtype = self._subtypes.get(bit_depth)
        if subtype is None:
            return None
        if self._enforce_sample_rates and int(sample_rate) not in self.capabilities.sample_rates:
            return None

        kwargs = {}
        if self._compression_level is not None:
            kwargs["compression_level"] = self._compression_level(quality_index)

        try:
            sound_file = sf.SoundFile(
                path,
                mode="w",
                samplerate=int(sample_rate),
                channels=num_channels,
                subtype=subtype,
                format=self._major_format,
                **kwargs,
            )
        except (RuntimeError, ValueError, TypeError) as e:
            logger.debug(
                "%s cannot create writer for %s (samplerate=%s, channels=%s, "
                "bit_depth=%s): %s",
                self.name, path, sample_rate, num_channels, bit_depth, e,
            )
            return None

        return SoundFileWriter(
            sound_file,
            self.name,
            bits_per_sample=bit_depth,
            floating_point=subtype in _FLOAT_SUBTYPES,
        )


def soundfile_formats() -> list[SoundFileFormat]:
    """Build the backends supported by the installed libsndfile."""
    available = sf.available_formats()

    candidates = [
        SoundFileFormat(
            FormatCapabilities(
                format_name="WAV file",
                extensions=("wav", "bwf"),
                sample_rates=STANDARD_SAMPLE_RATES,
                bit_depths=(8, 16, 24, 32),
                writable=True,
            ),
            "WAV",
            subtypes={8: "PCM_U8", 16: "PCM_16", 24: "PCM_24", 32: "FLOAT"},
        ),
        SoundFileFormat(
            FormatCapabilities(
                format_name="AIFF file",
                extensions=("aiff", "aif"),
                sample_rates=STANDARD_SAMPLE_RATES,
                bit_depths=(8, 16, 24),
                writable=True,
            ),
            "AIFF",
            subtypes={8: "PCM_S8", 16: "PCM_16", 24: "PCM_24"},
        ),
        SoundFileFormat(
            FormatCapabilities(
                format_name="FLAC file",
                extensions=("flac",),
                sample_rates=STANDARD_SAMPLE_RATES,
                bit_depths=(16, 24),
                quality_options=FLAC_QUALITY_OPTIONS,
                writable=True,
            ),
            "FLAC",
            subtypes={16: "PCM_16", 24: "PCM_24"},
            compression_level=flac_compression_level,
        ),
        SoundFileFormat(
            FormatCapabilities(
                format_name="Ogg-Vorbis file",
                extensions=("ogg",),
                sample_rates=OGG_SAMPLE_RATES,
                bit_depths=(16, 32),
                quality_options=OGG_QUALITY_OPTIONS,
                writable=True,
            ),
            "OGG",
            subtypes={16: "VORBIS", 32: "VORBIS"},
            compression_level=vorbis_compression_level,
            enforce_sample_rates=True,
        ),
        SoundFileFormat(
            FormatCapabilities(
                format_name=MP3_FORMAT_NAME,
                extensions=("mp3",),
                writable=False,
            ),
            "MP3",
        ),
    ]

    return [backend for backend in candidates if backend.major_format in available]
