"""
Fixed-size chunking of application packages.

AirWatch takes internal application binaries in pieces: each piece is
base64-encoded into one JSON request. This module turns a file into the
ordered sequence of those pieces.

Chunking Rules:

- Every chunk holds exactly ``chunk_size`` bytes except the last, which
  holds the remainder (or a full chunk when the size divides evenly).
- Chunks are numbered from 0 in file order; the wire sequence number is
  ``index + 1``.
- Reads are accumulated into a buffer until a chunk is full, so short reads
  from the underlying stream never produce short chunks mid-file.
- An empty stream yields no chunks. Callers that need at least one chunk
  (the uploader) reject empty files themselves.

Example:
    Iterate the chunks of a file:

    >>> from pathlib import Path
    >>> from pyairwatch.io.chunks import ByteSource
    >>> with ByteSource(Path("MyApp.ipa")) as source:
    ...     for chunk in source.chunks(35840):
    ...         print(chunk.sequence_number, chunk.size)
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import IO

from pyairwatch.config.loader import DEFAULT_CHUNK_SIZE
from pyairwatch.exceptions import ConfigError, UploadSourceError

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "ByteSource",
    "Chunk",
    "count_chunks",
    "iter_chunks",
    "validate_chunk_size",
]


@dataclass(frozen=True)
class Chunk:
    """One contiguous span of a file.

    Attributes:
        index: Zero-based position of the chunk in the file.
        data: Raw bytes of the chunk.
    """

    index: int
    data: bytes

    @property
    def sequence_number(self) -> int:
        """1-based number sent to the server as ChunkSequenceNumber."""
        return self.index + 1

    @property
    def size(self) -> int:
        return len(self.data)


def validate_chunk_size(chunk_size: int) -> None:
    """Raise ConfigError unless chunk_size is a positive integer."""
    if isinstance(chunk_size, bool) or not isinstance(chunk_size, int):
        raise ConfigError(f"chunk_size must be an integer, got {chunk_size!r}")
    if chunk_size <= 0:
        raise ConfigError(f"chunk_size must be positive, got {chunk_size}")


def count_chunks(total_size: int, chunk_size: int = DEFAULT_CHUNK_SIZE) -> int:
    """Number of chunks a file of total_size bytes splits into (ceil division)."""
    validate_chunk_size(chunk_size)
    return -(-total_size // chunk_size)


def iter_chunks(
    stream: IO[bytes],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    *,
    total_size: int | None = None,
) -> Iterator[Chunk]:
    """Split a binary stream into fixed-size chunks.

    The generator is lazy and single-pass: it reads from the stream only as
    chunks are requested and cannot be restarted.

    Args:
        stream: Binary stream positioned at the first byte to send.
        chunk_size: Bytes per chunk. Must be positive.
        total_size: If given, stop after this many bytes even if the stream
            holds more.

    Yields:
        Chunks in increasing index order.

    Raises:
        ConfigError: If chunk_size is not a positive integer.
    """
    validate_chunk_size(chunk_size)

    index = 0
    remaining = total_size
    buffer = bytearray()
    while remaining is None or remaining > 0:
        want = chunk_size if remaining is None else min(chunk_size, remaining)
        while len(buffer) < want:
            data = stream.read(want - len(buffer))
            if not data:
                break
            buffer += data
        if not buffer:
            return
        yield Chunk(index=index, data=bytes(buffer))
        if remaining is not None:
            remaining -= len(buffer)
        if len(buffer) < want:
            # End of stream reached mid-chunk.
            return
        index += 1
        buffer.clear()


class ByteSource:
    """Sequential reader over a file whose size is fixed up front.

    The size is read when the source is created, so an upload can announce
    TotalApplicationSize before the first chunk is read. Chunks produced by
    ``chunks()`` never go past that size.

    Raises:
        UploadSourceError: If the path does not exist, is not a regular
            file, or cannot be opened.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        try:
            stat = self.path.stat()
        except OSError as err:
            raise UploadSourceError(f"Cannot read upload file {self.path}: {err}") from err
        if not self.path.is_file():
            raise UploadSourceError(f"Upload source is not a regular file: {self.path}")
        self.size = stat.st_size
        self._stream: IO[bytes] | None = None

    def open(self) -> ByteSource:
        if self._stream is None:
            try:
                self._stream = self.path.open("rb")
            except OSError as err:
                raise UploadSourceError(
                    f"Cannot open upload file {self.path}: {err}"
                ) from err
        return self

    def close(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None

    @property
    def stream(self) -> IO[bytes]:
        if self._stream is None:
            raise UploadSourceError(f"Upload file is not open: {self.path}")
        return self._stream

    def chunks(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[Chunk]:
        """Lazily split the open file into chunks bounded by its recorded size."""
        return iter_chunks(self.stream, chunk_size, total_size=self.size)

    def __enter__(self) -> ByteSource:
        return self.open()

    def __exit__(self, *exc_info: object) -> None:
        self.close()
