import bz2
import gzip
import logging
import lzma
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Callable, Iterable, Optional

from retail.file_functions.fs_mock import FS

logger = logging.getLogger(__name__)

SKIP_CHUNK_SIZE = 64 * 1024

# Suffix -> wrapper turning a raw binary file object into a decompressing one.
DECOMPRESSORS: dict[str, Callable[[BinaryIO], BinaryIO]] = {
    ".gz": lambda raw: gzip.GzipFile(fileobj=raw, mode="rb"),
    ".bz2": lambda raw: bz2.BZ2File(raw, mode="rb"),
    ".xz": lambda raw: lzma.LZMAFile(raw, mode="rb"),
    ".lzma": lambda raw: lzma.LZMAFile(raw, mode="rb"),
}


def compression_suffix_of(path: Path, suffixes: Iterable[str]) -> Optional[str]:
    """Return the compression suffix `path` ends with, if any."""
    name = path.name
    for suffix in suffixes:
        if name.endswith(suffix):
            return suffix
    return None


def _skip(stream: BinaryIO, count: int) -> int:
    """Read and discard up to `count` bytes; return how many were skipped."""
    skipped = 0
    while skipped < count:
        chunk = stream.read(min(SKIP_CHUNK_SIZE, count - skipped))
        if not chunk:
            break
        skipped += len(chunk)
    return skipped


@contextmanager
def open_stream(
    path: Path,
    start_offset: int,
    fs: FS,
    compression_suffixes: Iterable[str] = tuple(DECOMPRESSORS),
) -> Iterator[BinaryIO]:
    """
    Open `path` for streaming and position it at `start_offset`.

    Offsets always count bytes of the *decompressed* content: for a name
    ending in one of `compression_suffixes` the stream is decompressed on
    the fly and the first `start_offset` bytes are read and discarded; plain
    files are simply seeked. An offset past the end leaves the stream at EOF.

    Raises:
        OSError: opening or seeking failed (including corrupt compressed data
                 detected while skipping).
        ValueError: `start_offset` is negative or the suffix is not supported.
    """
    if start_offset < 0:
        raise ValueError(f"start_offset must be >= 0, got {start_offset}")

    suffix = compression_suffix_of(path, compression_suffixes)
    with fs.open(path, "rb") as raw:
        if suffix is None:
            raw.seek(start_offset)
            yield raw
            return

        wrapper = DECOMPRESSORS.get(suffix)
        if wrapper is None:
            raise ValueError(f"No decompressor for suffix '{suffix}'")
        logger.debug("Opening %s through %s decompression", path, suffix)
        with wrapper(raw) as stream:
            skipped = _skip(stream, start_offset)
            if skipped < start_offset:
                logger.debug(
                    "%s holds only %d decompressed bytes, start offset %d is past the end",
                    path,
                    skipped,
                    start_offset,
                )
            yield stream
