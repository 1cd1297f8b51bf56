"""
Format registry for discovering decoders and encoders.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from soundboard_io.formats.base import (
    AudioFormatBackend,
    AudioStreamReader,
    AudioStreamWriter,
    FormatCapabilities,
)

logger = logging.getLogger(__name__)


class FormatRegistry:
    """Registry of container format backends.

    Selects a backend by file extension, falling back to letting every
    backend look at the file's content.

    Example:
        registry = FormatRegistry.default()

        # Open a decoder
        reader = registry.find_reader_for("song.flac")

        # What can FLAC writers do?
        caps = registry.capabilities_of(".flac")
        print(caps.quality_options)

        # Custom registry for tests
        registry = FormatRegistry([MemoryFormat()])
    """

    _instance: "FormatRegistry | None" = None
    _lock = threading.Lock()

    def __init__(self, backends: list[AudioFormatBackend] | None = None):
        self._backends: list[AudioFormatBackend] = []
        for backend in backends or []:
            self.register(backend)

    @classmethod
    def default(cls) -> "FormatRegistry":
        """Get the process-wide registry of soundfile-backed formats."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    from soundboard_io.formats.soundfile_backend import soundfile_formats

                    cls._instance = cls(soundfile_formats())
        return cls._instance

    @property
    def backends(self) -> list[AudioFormatBackend]:
        """All registered backends, in lookup order."""
        return list(self._backends)

    def register(self, backend: AudioFormatBackend) -> None:
        """Register a format backend.

        Raises:
            ValueError: If a backend with the same name exists.
        """
        if any(b.name == backend.name for b in self._backends):
            raise ValueError(f"Format '{backend.name}' already registered")
        self._backends.append(backend)

    def unregister(self, name: str) -> AudioFormatBackend | None:
        """Remove a backend by name, returning it (or None)."""
        for backend in self._backends:
            if backend.name == name:
                self._backends.remove(backend)
                return backend
        return None

    def format_for_extension(
        self,
        extension: str,
        writable: bool = False,
    ) -> AudioFormatBackend | None:
        """Find the backend that owns ``extension``.

        Args:
            extension: File extension, with or without the leading dot.
            writable: Only consider backends that can write.
        """
        if not extension:
            return None
        for backend in self._backends:
            if writable and not backend.capabilities.writable:
                continue
            if backend.handles_extension(extension):
                return backend
        return None

    def capabilities_of(self, extension: str) -> FormatCapabilities | None:
        """Get the capabilities of the format owning ``extension``."""
        backend = self.format_for_extension(extension)
        return backend.capabilities if backend else None

    def find_reader_for(self, path: str) -> AudioStreamReader | None:
        """Open a reader chosen by the file's extension only."""
        extension = Path(path).suffix
        for backend in self._backends:
            if not backend.capabilities.readable or not backend.handles_extension(extension):
                continue
            reader = backend.open_reader(path)
            if reader is not None:
                logger.debug("Opened %s with %s (by extension)", path, backend.name)
                return reader
        return None

    def sniff_reader_for(self, path: str) -> AudioStreamReader | None:
        """Open a reader by letting each backend inspect the file's content."""
        for backend in self._backends:
            if not backend.capabilities.readable:
                continue
            reader = backend.open_reader(path)
            if reader is not None:
                logger.debug("Opened %s with %s (by content)", path, backend.name)
                return reader
        return None

    def find_writer_for(
        self,
        path: str,
        sample_rate: float,
        num_channels: int,
        bit_depth: int,
        quality_index: int,
    ) -> AudioStreamWriter | None:
        """Create a writer for ``path`` using the format of its extension."""
        backend = self.format_for_extension(Path(path).suffix, writable=True)
        if backend is None:
            return None
        return backend.open_writer(path, sample_rate, num_channels, bit_depth, quality_index)

    def supported_read_formats(self) -> list[str]:
        """Every readable extension, dotted and sorted."""
        extensions = {
            "." + ext
            for backend in self._backends
            if backend.capabilities.readable
            for ext in backend.extensions
        }
        return sorted(extensions)

    def supported_write_formats(self) -> list[str]:
        """The main extension of each writable format, dotted and sorted."""
        return sorted(
            "." + backend.extensions[0]
            for backend in self._backends
            if backend.capabilities.writable and backend.extensions
        )
