"""Chunk planning for large uploads."""

from dataclasses import dataclass
from typing import Iterator


@dataclass(frozen=True)
class ChunkRange:
    """A contiguous byte range of the source, sent as one request."""

    offset: int
    length: int

    @property
    def end(self) -> int:
        """Inclusive index of the last byte in the range."""
        return self.offset + self.length - 1

    def content_range(self, total_size: int) -> str:
        """Render the Content-Range header value for this range."""
        return f"bytes {self.offset}-{self.end}/{total_size}"


def iter_chunks(source_size: int, chunk_size: int) -> Iterator[ChunkRange]:
    """Yield the ranges covering ``[0, source_size)`` in ascending order.

    An empty source yields one zero-length range, since the service still
    expects a request for it.

    Args:
        source_size: Total byte length of the source
        chunk_size: Maximum bytes per range

    Raises:
        ValueError: If source_size is negative or chunk_size is not positive
    """
    if source_size < 0:
        raise ValueError(f"source_size must be >= 0, got {source_size}")
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be > 0, got {chunk_size}")

    if source_size == 0:
        yield ChunkRange(offset=0, length=0)
        return

    for offset in range(0, source_size, chunk_size):
        yield ChunkRange(offset=offset, length=min(chunk_size, source_size - offset))


def plan_chunks(source_size: int, chunk_size: int) -> list[ChunkRange]:
    """Return the full list of ranges for a source; see :func:`iter_chunks`."""
    return list(iter_chunks(source_size, chunk_size))
