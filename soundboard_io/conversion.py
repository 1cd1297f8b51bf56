"""
Sample format conversion.

Converts between the sample representations decoders and encoders work in
(left-aligned 32-bit fixed point, or normalized float32) and the arrays
callers hand in or get back. All conversions run in bounded chunks, so the
scratch memory of a call never exceeds one chunk per channel.

Decoders hand integer audio back left-aligned in an int32: a 16-bit sample
``v`` arrives as ``v << 16``. Dividing that by INT32_MAX would lose the
bottom of the range, so float conversion uses a divisor matched to the real
bit width (see ``fixed_point_divisor``).
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterator

import numpy as np

from soundboard_io.errors import IOFailureError, UnsupportedDatatypeError
from soundboard_io.layout import ChannelLayout

if TYPE_CHECKING:
    from soundboard_io.formats.base import AudioStreamReader, AudioStreamWriter


INT32_MAX = 0x7FFFFFFF

# Largest positive sample of each width, already shifted into the top bits.
FIXED_POINT_DIVISORS = {
    24: 0x7FFFFF00,
    16: 0x7FFF0000,
    8: 0x7F000000,
}

# Native dtypes surfaced by raw reads. 24-bit has no numpy type.
NATIVE_INTEGER_DTYPES = {
    8: np.int8,
    16: np.int16,
    24: np.int32,
    32: np.int32,
}

_INT32_SCALE = np.float32(1.0) / np.float32(INT32_MAX)


class SampleType(Enum):
    """Element types accepted by write()."""

    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    FLOAT32 = "float32"
    FLOAT64 = "float64"

    @classmethod
    def from_dtype(cls, dtype: np.dtype) -> "SampleType":
        """Get the sample type for a numpy dtype.

        Raises:
            UnsupportedDatatypeError: If the dtype is not one of the five
                supported sample types.
        """
        name = np.dtype(dtype).name
        for member in cls:
            if member.value == name:
                return member
        raise UnsupportedDatatypeError(
            f"Unsupported sample dtype: {name}. Expected one of: "
            + ", ".join(m.value for m in cls)
        )

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(self.value)

    @property
    def is_integer(self) -> bool:
        return self in (SampleType.INT8, SampleType.INT16, SampleType.INT32)

    @property
    def digits(self) -> int:
        """Value bits of a signed integer type (sign bit excluded)."""
        return np.iinfo(self.dtype).bits - 1


def describe_file_dtype(bits_per_sample: int, floating_point: bool) -> str:
    """Name the dtype a file stores natively.

    Floating-point files that report 16 bits (Ogg Vorbis does) are float32
    internally.
    """
    if floating_point:
        return {16: "float32", 32: "float32", 64: "float64"}.get(bits_per_sample, "unknown")
    return {
        8: "int8",
        16: "int16",
        24: "int24",
        32: "int32",
        64: "int64",
    }.get(bits_per_sample, "unknown")


def fixed_point_divisor(bits_per_sample: int) -> int:
    """Divisor that maps left-aligned ``bits_per_sample`` data onto [-1, 1].

    Raises:
        UnsupportedDatatypeError: For widths other than 8, 16 or 24.
    """
    try:
        return FIXED_POINT_DIVISORS[bits_per_sample]
    except KeyError:
        raise UnsupportedDatatypeError(
            f"Not sure how to convert data from {bits_per_sample} bits per "
            "sample to floating point!"
        ) from None


def fixed_to_float(fixed: np.ndarray, bits_per_sample: int, out: np.ndarray) -> np.ndarray:
    """Convert left-aligned int32 samples to float32 in place into ``out``."""
    scale = np.float32(1.0) / np.float32(fixed_point_divisor(bits_per_sample))
    out[...] = fixed
    out *= scale
    return out


def fixed_to_native(fixed: np.ndarray, bits_per_sample: int, out: np.ndarray) -> np.ndarray:
    """Shift left-aligned int32 samples down to their native range."""
    out[...] = fixed >> (32 - bits_per_sample)
    return out


def iter_chunks(num_frames: int, chunk_frames: int) -> Iterator[tuple[int, int]]:
    """Yield ``(start, stop)`` frame ranges of at most ``chunk_frames``."""
    for start in range(0, num_frames, chunk_frames):
        yield start, min(start + chunk_frames, num_frames)


# =============================================================================
# Write-side conversion table
# =============================================================================

def _shift_to_fixed(chunk: np.ndarray, sample_type: SampleType) -> np.ndarray:
    return chunk.astype(np.int32) << (31 - sample_type.digits)


def _fixed_to_float32(fixed: np.ndarray) -> np.ndarray:
    out = fixed.astype(np.float32)
    out *= _INT32_SCALE
    return out


def _as_float32(chunk: np.ndarray) -> np.ndarray:
    return np.ascontiguousarray(chunk, dtype=np.float32)


def _as_int32(chunk: np.ndarray) -> np.ndarray:
    return np.ascontiguousarray(chunk, dtype=np.int32)


ChunkConversion = Callable[[np.ndarray], np.ndarray]

# Keyed by (caller sample type, encoder wants float).
# Encoders take left-aligned int32 or float32; int encoders convert float32
# to fixed point themselves.
WRITE_CONVERSIONS: dict[tuple[SampleType, bool], ChunkConversion] = {
    (SampleType.INT8, False): lambda c: _shift_to_fixed(c, SampleType.INT8),
    (SampleType.INT8, True): lambda c: _fixed_to_float32(_shift_to_fixed(c, SampleType.INT8)),
    (SampleType.INT16, False): lambda c: _shift_to_fixed(c, SampleType.INT16),
    (SampleType.INT16, True): lambda c: _fixed_to_float32(_shift_to_fixed(c, SampleType.INT16)),
    (SampleType.INT32, False): _as_int32,
    (SampleType.INT32, True): _fixed_to_float32,
    (SampleType.FLOAT32, False): _as_float32,
    (SampleType.FLOAT32, True): _as_float32,
    (SampleType.FLOAT64, False): _as_float32,
    (SampleType.FLOAT64, True): _as_float32,
}


def convert_for_encoder(
    chunk: np.ndarray,
    sample_type: SampleType,
    encoder_wants_float: bool,
) -> np.ndarray:
    """Convert one planar chunk to what an encoder accepts.

    Args:
        chunk: Planar samples, shape (channels, frames).
        sample_type: Element type of ``chunk``.
        encoder_wants_float: Whether the encoder stores floating-point data.

    Returns:
        A C-contiguous int32 (left-aligned fixed point) or float32 array.
    """
    return WRITE_CONVERSIONS[(sample_type, encoder_wants_float)](chunk)


# =============================================================================
# Chunked decode / encode
# =============================================================================

def decode_float(
    reader: AudioStreamReader,
    start_frame: int,
    num_frames: int,
    chunk_frames: int,
) -> np.ndarray:
    """Decode ``num_frames`` as normalized float32, shape (channels, frames).

    The result is zero-filled first because decoders do not reliably pad
    short reads at the end of a file.
    """
    channels = reader.num_channels
    out = np.zeros((channels, num_frames), dtype=np.float32)

    if reader.uses_floating_point_data or reader.bits_per_sample == 32:
        for start, stop in iter_chunks(num_frames, chunk_frames):
            reader.read_samples(out[:, start:stop], start_frame + start, stop - start)
        return out

    bits = reader.bits_per_sample
    # Unsupported widths fail here, before the decoder is touched.
    fixed_point_divisor(bits)

    scratch = np.empty((channels, min(chunk_frames, num_frames)), dtype=np.int32)
    for start, stop in iter_chunks(num_frames, chunk_frames):
        block = scratch[:, : stop - start]
        block.fill(0)
        reader.read_samples(block, start_frame + start, stop - start)
        fixed_to_float(block, bits, out[:, start:stop])
    return out


def decode_native(
    reader: AudioStreamReader,
    start_frame: int,
    num_frames: int,
    chunk_frames: int,
) -> np.ndarray:
    """Decode ``num_frames`` in the file's native dtype.

    Float files come back as float32; 24-bit integer files come back as
    int32 holding 24-bit values.

    Raises:
        UnsupportedDatatypeError: If the native integer width has no
            supported representation.
    """
    if reader.uses_floating_point_data:
        return decode_float(reader, start_frame, num_frames, chunk_frames)

    bits = reader.bits_per_sample
    if bits not in NATIVE_INTEGER_DTYPES:
        raise UnsupportedDatatypeError(f"Not sure how to read {bits}-bit audio data!")

    channels = reader.num_channels
    out = np.zeros((channels, num_frames), dtype=NATIVE_INTEGER_DTYPES[bits])

    if bits == 32:
        for start, stop in iter_chunks(num_frames, chunk_frames):
            reader.read_samples(out[:, start:stop], start_frame + start, stop - start)
        return out

    scratch = np.empty((channels, min(chunk_frames, num_frames)), dtype=np.int32)
    for start, stop in iter_chunks(num_frames, chunk_frames):
        block = scratch[:, : stop - start]
        block.fill(0)
        reader.read_samples(block, start_frame + start, stop - start)
        fixed_to_native(block, bits, out[:, start:stop])
    return out


def encode_frames(
    writer: AudioStreamWriter,
    samples: np.ndarray,
    layout: ChannelLayout,
    num_frames: int,
    chunk_frames: int,
) -> None:
    """Hand ``samples`` to ``writer`` one converted chunk at a time.

    Args:
        writer: Destination encoder.
        samples: 2-D buffer, (frames, channels) if interleaved, else
            (channels, frames).
        layout: Layout of ``samples``.
        num_frames: Frames in ``samples``.
        chunk_frames: Maximum frames per encoder call.

    Raises:
        IOFailureError: If the encoder rejects a chunk. Chunks written
            before the failure are not rolled back.
    """
    sample_type = SampleType.from_dtype(samples.dtype)
    convert = WRITE_CONVERSIONS[(sample_type, writer.uses_floating_point_data)]

    for start, stop in iter_chunks(num_frames, chunk_frames):
        if layout is ChannelLayout.INTERLEAVED:
            chunk = np.ascontiguousarray(samples[start:stop].T)
        else:
            chunk = samples[:, start:stop]

        if not writer.write(convert(chunk)):
            raise IOFailureError(
                "Unable to write data to audio file.",
                {"start_frame": start, "num_frames": stop - start},
            )
