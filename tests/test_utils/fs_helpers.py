import os
import stat
import time
from pathlib import Path
from typing import Iterable, NamedTuple, Optional
from unittest.mock import MagicMock, Mock


class LogTestEnv(NamedTuple):
    """Paths used by a single retail run inside a pytest tmp_path."""

    log_dir: Path  # Directory holding the log and its rotated siblings
    log_path: Path  # The live log file ("app.log")
    offset_path: Path  # The state file ("offset.app.log")


def create_mock_stat_attrs(
    st_mode: int = stat.S_IFREG | 0o644,
    st_ino: int = 1,
    st_size: int = 1024,
    st_mtime: Optional[float] = None,
) -> MagicMock:
    """
    Creates a MagicMock object simulating os.stat_result with configurable attributes.
    Defaults to simulating a regular file.
    """
    res = MagicMock(spec=os.stat_result)
    res.st_mode = st_mode
    res.st_ino = st_ino
    res.st_size = st_size
    res.st_dev = 10
    res.st_nlink = 1
    res.st_mtime = st_mtime if st_mtime is not None else time.time()
    return res


def make_dir_entry(
    name: str,
    base_dir: Path,
    stat_result: Optional[MagicMock] = None,
    stat_error: Optional[Exception] = None,
) -> MagicMock:
    """
    Creates an os.DirEntry mock. `entry.stat()` returns `stat_result`, or
    raises `stat_error` when given.
    """
    entry = MagicMock(spec=os.DirEntry)
    entry.name = name
    entry.path = str(base_dir / name)
    if stat_error is not None:
        entry.stat = Mock(side_effect=stat_error)
    else:
        entry.stat = Mock(
            return_value=stat_result
            if stat_result is not None
            else create_mock_stat_attrs()
        )
    return entry


def make_scandir_cm(entries: Iterable[MagicMock]) -> MagicMock:
    """A context manager mock yielding an iterator over `entries`, like os.scandir."""
    cm = MagicMock(name="ScandirContextManager")
    cm.__enter__.return_value = iter(list(entries))
    cm.__exit__.return_value = None
    return cm


def write_file(path: Path, content: bytes, mtime: Optional[float] = None) -> Path:
    """Write `content` to `path` and optionally stamp its mtime (and atime)."""
    path.write_bytes(content)
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


def append_file(path: Path, content: bytes) -> None:
    with path.open("ab") as f:
        f.write(content)
