import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path

from retail.file_functions.file_exceptions import LogFileError
from retail.file_functions.fs_mock import FS
from retail.startup_code.load_config import ConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LiveFileStat:
    """Identity and length of the log file as observed at the start of a run."""

    inode: int
    size: int


def stat_live_file(path: Path, fs: FS) -> LiveFileStat:
    """
    Stat the log file and return its (inode, size).

    Unlike a best-effort stat, every failure here is fatal for the run: the
    log file is the one thing retail cannot proceed without. Symlinks are
    followed so that a link to the real log is tailed like the log itself.

    Args:
        path: The log file path.
        fs: The FS dependency object providing stat.

    Returns:
        LiveFileStat for the regular file behind `path`.

    Raises:
        ConfigError: If the path names a directory.
        LogFileError: If the path does not exist, cannot be stat'ed, or is
                      not a regular file.
    """
    try:
        stat_result: os.stat_result = fs.stat(path)
    except FileNotFoundError as e:
        raise LogFileError("Log file not found", path, e) from e
    except OSError as e:
        raise LogFileError(f"Cannot stat log file: {e}", path, e) from e

    if stat.S_ISDIR(stat_result.st_mode):
        raise ConfigError(f"Log path is a directory, expected a file: {path}")
    if not stat.S_ISREG(stat_result.st_mode):
        raise LogFileError("Log path is not a regular file", path)

    live = LiveFileStat(inode=stat_result.st_ino, size=stat_result.st_size)
    logger.debug("Live stat for %s: inode=%d size=%d", path, live.inode, live.size)
    return live
