"""Bounded-chunk file reader handed to the transcription client."""

import io
import os
from collections.abc import Callable
from pathlib import Path

DEFAULT_CHUNK_SIZE = 64 * 1024


class ChunkedMediaReader(io.RawIOBase):
    """Read-only stream that never returns more than ``chunk_size`` bytes per read.

    The HTTP client pulls the multipart body through this reader, so the
    whole media file is never held in memory at once.
    """

    def __init__(
        self,
        path: str | Path,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        on_progress: Callable[[int, int], None] | None = None,
    ) -> None:
        super().__init__()
        self.path = Path(path)
        self.chunk_size = chunk_size
        self.on_progress = on_progress
        self._handle = open(self.path, "rb")
        self.total_size = os.fstat(self._handle.fileno()).st_size
        self.bytes_read = 0
        self.chunks_read = 0

    @property
    def name(self) -> str:
        return self.path.name

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def fileno(self) -> int:
        return self._handle.fileno()

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        position = self._handle.seek(offset, whence)
        self.bytes_read = position
        return position

    def tell(self) -> int:
        return self._handle.tell()

    def readinto(self, buffer) -> int:
        view = memoryview(buffer)[: self.chunk_size]
        count = self._handle.readinto(view)
        if count:
            self.bytes_read += count
            self.chunks_read += 1
            if self.on_progress is not None:
                self.on_progress(self.bytes_read, self.total_size)
        return count or 0

    def close(self) -> None:
        if not self._handle.closed:
            self._handle.close()
        super().close()
