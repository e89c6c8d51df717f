import logging
import lzma
import zlib
from pathlib import Path
from typing import BinaryIO, Iterable, Optional

from retail.file_functions.fs_mock import FS
from retail.flush.open_stream import DECOMPRESSORS, open_stream
from retail.protocols import OutputSink

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


class FlushError(Exception):
    """Streaming a log (or its predecessor) to the output sink failed."""

    def __init__(self, message: str, path: Path, original_exception: Exception):
        super().__init__(f"{message} [File: {path}]")
        self.path = path
        self.original_exception = original_exception


def copy_stream(
    source: BinaryIO,
    sink: OutputSink,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    limit: Optional[int] = None,
) -> int:
    """
    Copy chunks from `source` to `sink` until EOF, or until `limit` bytes
    have been copied. Returns the number of bytes written.
    """
    copied = 0
    while limit is None or copied < limit:
        want = chunk_size if limit is None else min(chunk_size, limit - copied)
        chunk = source.read(want)
        if not chunk:
            break
        sink.write(chunk)
        copied += len(chunk)
    return copied


def flush_file(
    *,
    path: Path,
    start_offset: int,
    sink: OutputSink,
    fs: FS,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    compression_suffixes: Iterable[str] = tuple(DECOMPRESSORS),
    limit: Optional[int] = None,
) -> int:
    """
    Stream `path` from `start_offset` to the sink and return the number of
    bytes delivered.

    `limit` bounds the copy (the live log is read only up to the size it had
    when it was stat'ed). The sink is flushed before returning.

    Raises:
        FlushError: on any failure to open, decompress, read or write.
    """
    try:
        with open_stream(path, start_offset, fs, compression_suffixes) as source:
            delivered = copy_stream(source, sink, chunk_size=chunk_size, limit=limit)
        sink.flush()
    except FileNotFoundError as e:
        raise FlushError("File disappeared before it could be read", path, e) from e
    except (OSError, EOFError, ValueError, zlib.error, lzma.LZMAError) as e:
        raise FlushError(f"Failed to stream file: {e}", path, e) from e

    logger.debug("Delivered %d bytes of %s from offset %d", delivered, path, start_offset)
    return delivered
