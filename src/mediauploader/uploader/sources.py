"""Byte sources the upload engine reads chunks from."""

import io
import logging
from typing import BinaryIO, Protocol, runtime_checkable

from mediauploader.exceptions import UnknownLengthError

logger = logging.getLogger(__name__)


@runtime_checkable
class ByteSource(Protocol):
    """Random-access readable source of known total length."""

    def length(self) -> int:
        """Return the total byte length; raise UnknownLengthError if unknown."""
        ...

    def read_range(self, offset: int, length: int) -> bytes:
        """Return exactly ``length`` bytes starting at ``offset``."""
        ...


class BytesSource:
    """In-memory source."""

    def __init__(self, data: bytes | bytearray | memoryview, name: str = "file"):
        self._data = memoryview(bytes(data))
        self.name = name

    def length(self) -> int:
        return len(self._data)

    def read_range(self, offset: int, length: int) -> bytes:
        if offset < 0 or length < 0 or offset + length > len(self._data):
            raise ValueError(
                f"Range {offset}+{length} outside source of {len(self._data)} bytes"
            )
        return self._data[offset:offset + length].tobytes()


class FileObjectSource:
    """Source backed by a seekable binary file object.

    The length is found by seeking to the end, so pipes and sockets are
    rejected with UnknownLengthError. The caller keeps ownership of the
    file object and closes it.
    """

    def __init__(self, fileobj: BinaryIO, name: str | None = None):
        self._fileobj = fileobj
        self._length: int | None = None
        self.name = name or _basename(getattr(fileobj, "name", None)) or "file"

    def length(self) -> int:
        if self._length is None:
            try:
                if not self._fileobj.seekable():
                    raise UnknownLengthError("Source stream is not seekable")
                start = self._fileobj.tell()
                end = self._fileobj.seek(0, io.SEEK_END)
                self._fileobj.seek(start)
            except (OSError, AttributeError) as e:
                raise UnknownLengthError(f"Cannot determine source length: {e}") from e
            self._length = end
        return self._length

    def read_range(self, offset: int, length: int) -> bytes:
        self._fileobj.seek(offset)
        data = self._fileobj.read(length)
        if len(data) != length:
            raise OSError(
                f"Short read from source: expected {length} bytes at {offset}, got {len(data)}"
            )
        return data


def _basename(path: object) -> str | None:
    if not isinstance(path, str) or not path:
        return None
    return path.replace("\\", "/").rsplit("/", 1)[-1] or None


def as_byte_source(source: object) -> ByteSource:
    """Wrap bytes or a binary file object in a ByteSource.

    Args:
        source: ByteSource, bytes-like object or binary file object

    Returns:
        ByteSource for the input

    Raises:
        UnknownLengthError: If the input has no determinable length
    """
    if isinstance(source, (bytes, bytearray, memoryview)):
        return BytesSource(source)
    if isinstance(source, ByteSource):
        return source
    if hasattr(source, "read") and hasattr(source, "seek"):
        return FileObjectSource(source)  # type: ignore[arg-type]

    logger.warning(
        "Rejected upload source without a known length",
        extra={"source_type": type(source).__name__},
    )
    raise UnknownLengthError(f"Unsupported source of type {type(source).__name__}")
