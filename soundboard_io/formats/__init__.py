"""
Audio format backends.

Provides the decoder/encoder interfaces and the registry that picks a
backend for a file:
- AudioStreamReader / AudioStreamWriter handles
- AudioFormatBackend per container format
- FormatRegistry lookup by extension or content

Example:
    from soundboard_io.formats import FormatRegistry

    registry = FormatRegistry.default()
    print(registry.supported_write_formats())
"""

from soundboard_io.formats.base import (
    MP3_FORMAT_NAME,
    AudioFormatBackend,
    AudioStreamReader,
    AudioStreamWriter,
    FormatCapabilities,
)
from soundboard_io.formats.registry import FormatRegistry

__all__ = [
    "MP3_FORMAT_NAME",
    "AudioFormatBackend",
    "AudioStreamReader",
    "AudioStreamWriter",
    "FormatCapabilities",
    "FormatRegistry",
]
