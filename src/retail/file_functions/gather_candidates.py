import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path

from retail.file_functions.file_exceptions import ScanDirectoryError
from retail.file_functions.fs_mock import FS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RotationCandidate:
    """
    Stat info for one sibling of the log file that might be its rotated
    predecessor.
    """

    name: str
    path: Path
    inode: int
    mtime: float


def gather_rotation_candidates(
    directory: Path, base_name: str, fs: FS
) -> list[RotationCandidate]:
    """
    Implementation of the CandidateScanner protocol.

    Scans exactly one level of `directory` and returns a RotationCandidate for
    every regular file whose name is longer than `base_name`, in the order the
    filesystem yields them. Callers rely on that order for tie-breaking.

    Shorter or equal-length names can never be a rotated copy of the log
    (`app.log.1`, `app.log-20240101`, `app.log.1.gz`), which also keeps the
    live log itself out of the result. Entries are stat'ed following
    symlinks; entries that are not regular files are skipped.

    Args:
        directory: The directory holding the log file.
        base_name: The log file's name within `directory`.
        fs: An instance of the FS abstraction providing scandir.

    Returns:
        A list of RotationCandidate in scan order (possibly empty).

    Raises:
        ScanDirectoryError: If the directory cannot be scanned, or if any
                            entry that passed the name-length filter cannot be
                            stat'ed.
    """
    logger.debug("Gathering rotation candidates for '%s' in %s", base_name, directory)
    candidates: list[RotationCandidate] = []
    min_name_length = len(base_name)

    try:
        with fs.scandir(directory) as scanner:
            for entry in scanner:
                entry_name = entry.name
                if len(entry_name) <= min_name_length:
                    continue

                try:
                    stats: os.stat_result = entry.stat()
                except OSError as entry_error:
                    msg = "Cannot stat directory entry"
                    logger.error(
                        "%s '%s' in '%s': %s",
                        msg,
                        entry_name,
                        directory,
                        entry_error,
                    )
                    raise ScanDirectoryError(
                        msg, directory, entry_error, entry_name=entry_name
                    ) from entry_error

                if not stat.S_ISREG(stats.st_mode):
                    logger.debug("Skipping non-regular entry: %s", entry_name)
                    continue

                candidates.append(
                    RotationCandidate(
                        name=entry_name,
                        path=directory / entry_name,
                        inode=stats.st_ino,
                        mtime=stats.st_mtime,
                    )
                )

    except ScanDirectoryError:
        raise
    except FileNotFoundError as e:
        msg = "Directory not found during scan"
        logger.error("%s: %s", msg, directory)
        raise ScanDirectoryError(msg, directory, e) from e
    except NotADirectoryError as e:
        msg = "Path is not a directory during scan"
        logger.error("%s: %s", msg, directory)
        raise ScanDirectoryError(msg, directory, e) from e
    except PermissionError as e:
        msg = "Permission denied during scan setup"
        logger.error("%s: %s", msg, directory)
        raise ScanDirectoryError(msg, directory, e) from e
    except OSError as e:
        msg = "OS error during scan setup/iteration"
        logger.error("%s for directory %s: %s", msg, directory, e)
        raise ScanDirectoryError(msg, directory, e) from e

    logger.debug(
        "Gathered %d rotation candidates for '%s' in %s",
        len(candidates),
        base_name,
        directory,
    )
    return candidates
