"""
Channel layout detection.

Works out whether a caller's 2-D buffer is channel-major (planar) or
sample-major (interleaved) by comparing its shape against the channel count
the file was opened with.
"""

from __future__ import annotations

from enum import Enum
from typing import Sequence

from soundboard_io.errors import (
    AmbiguousShapeError,
    ChannelMismatchError,
    InvalidArgumentError,
)


class ChannelLayout(Enum):
    """Memory layout of a multi-channel buffer."""

    INTERLEAVED = "interleaved"
    """Shape (frames, channels): ch0[0], ch1[0], ..., ch0[1], ..."""

    NOT_INTERLEAVED = "not_interleaved"
    """Shape (channels, frames): all of ch0, then all of ch1, ..."""


def detect_channel_layout(
    shape: Sequence[int],
    num_channels: int,
) -> tuple[ChannelLayout, int, int]:
    """Resolve the layout of a buffer for a file with ``num_channels``.

    Args:
        shape: Buffer shape (1 or 2 dimensions).
        num_channels: Channel count the file was opened with.

    Returns:
        Tuple of (layout, channels in buffer, frames in buffer).

    Raises:
        AmbiguousShapeError: If both dimensions equal ``num_channels``.
        ChannelMismatchError: If neither dimension equals ``num_channels``.
        InvalidArgumentError: If the buffer is not 1-D or 2-D.

    Example:
        >>> detect_channel_layout((1024, 2), 2)
        (<ChannelLayout.INTERLEAVED: 'interleaved'>, 2, 1024)
    """
    if len(shape) == 1:
        return ChannelLayout.NOT_INTERLEAVED, 1, int(shape[0])

    if len(shape) != 2:
        raise InvalidArgumentError(
            f"Number of input dimensions must be 1 or 2 (got {len(shape)})."
        )

    rows, cols = int(shape[0]), int(shape[1])
    if rows == num_channels and cols == num_channels:
        raise AmbiguousShapeError(num_channels)
    if cols == num_channels:
        return ChannelLayout.INTERLEAVED, cols, rows
    if rows == num_channels:
        return ChannelLayout.NOT_INTERLEAVED, rows, cols

    raise ChannelMismatchError(
        f"Unable to determine shape of audio input! Expected "
        f"{num_channels}-channel audio, got shape {tuple(shape)}.",
        expected_channels=num_channels,
    )
