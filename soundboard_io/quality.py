"""
Quality option resolution.

Encoders expose discrete quality presets as an ordered list of labels
(e.g. "128 kbps", "192 kbps", "320 kbps"). Callers may ask for one with a
number or a loose string; this module maps that onto an option index.
"""

from __future__ import annotations

import numbers
from typing import Any, Sequence

from soundboard_io.errors import (
    InvalidArgumentError,
    InvalidQualityError,
    QualityNotSupportedError,
)


def normalize_quality(quality: Any) -> str:
    """Turn a user-supplied quality value into a trimmed string.

    Integer-valued numbers lose their fractional part, so ``320.0`` becomes
    ``"320"``.
    """
    if quality is None:
        return ""
    if isinstance(quality, str):
        return quality.strip()
    if isinstance(quality, numbers.Real) and not isinstance(quality, bool):
        value = float(quality)
        if value.is_integer():
            return str(int(value))
        return str(value)
    raise InvalidArgumentError(
        f"Quality must be a string or a number, got {type(quality).__name__}."
    )


def _leading_digits(text: str) -> str:
    end = 0
    while end < len(text) and text[end].isdigit():
        end += 1
    return text[:end]


def resolve_quality_index(
    quality: str,
    options: Sequence[str],
    format_name: str = "",
) -> int:
    """Pick the quality option matching ``quality``.

    Resolution order (first match wins):
        1. Case-insensitive exact match.
        2. Leading number: an option starting with the same number, not
           followed by another digit ("32" never selects "320 kbps").
        3. No leading number: case-insensitive substring match.

    Args:
        quality: Trimmed quality string; empty selects the best option.
        options: Ordered option labels, worst to best.
        format_name: Used in error messages.

    Returns:
        Index into ``options`` (0 when there are no options).

    Raises:
        QualityNotSupportedError: A quality was given but the format has
            no options.
        InvalidQualityError: Nothing matched.
    """
    quality = quality.strip()
    label = format_name or "This format"

    if not quality:
        return len(options) - 1 if options else 0

    if not options:
        raise QualityNotSupportedError(
            f"Unable to parse provided quality value ({quality}). "
            f"{label}s do not accept quality settings.",
            {"quality": quality, "format": format_name},
        )

    lowered = quality.lower()
    for index, option in enumerate(options):
        if option.lower() == lowered:
            return index

    number = _leading_digits(quality)
    if number:
        for index, option in enumerate(options):
            if (
                option.startswith(number)
                and len(option) > len(number)
                and not option[len(number)].isdigit()
            ):
                return index
    else:
        for index, option in enumerate(options):
            if lowered in option.lower():
                return index

    raise InvalidQualityError(
        f"Unable to parse provided quality value ({quality}). "
        f"Valid values for {label}s are: {', '.join(options)}",
        quality=quality,
        options=list(options),
    )
