import logging
from pathlib import Path
from typing import Optional

from retail.file_functions.fs_mock import FS
from retail.startup_code.load_config import ConfigError, DEFAULT_STATE_FILE_MODE
from retail.state.persisted_state import (
    PersistedState,
    StateFileError,
    StateFormatError,
    validate_state,
)
from retail.state.state_codec import decode_state, encode_state, is_legacy_record

logger = logging.getLogger(__name__)

# Anything larger than this cannot be a state record; don't slurp it.
_MAX_STATE_READ = 4096


def load_state(
    path: Path, fs: FS, accept_legacy: bool = True
) -> Optional[PersistedState]:
    """
    Read and validate the persisted state for a log.

    Returns:
        The decoded PersistedState, or None if no state file exists yet.

    Raises:
        ConfigError: If `path` is a directory.
        StateFileError: If the file exists but cannot be read.
        StateFormatError: If the contents cannot be decoded.
        StateConsistencyError: If the decoded offset exceeds the decoded size.
    """
    if fs.is_dir(path):
        raise ConfigError(f"State file path is a directory, expected a file: {path}")

    try:
        with fs.open(path, "rb") as f:
            data: bytes = f.read(_MAX_STATE_READ + 1)
    except FileNotFoundError:
        logger.info("No state file at %s; starting from the beginning of the log", path)
        return None
    except OSError as e:
        raise StateFileError(f"Cannot read state file: {e}", path, e) from e

    if len(data) > _MAX_STATE_READ:
        raise StateFormatError(f"State file is larger than {_MAX_STATE_READ} bytes", path)

    try:
        state = decode_state(data, accept_legacy=accept_legacy)
    except StateFormatError as e:
        raise StateFormatError(str(e), path) from e

    if is_legacy_record(data):
        logger.info(
            "State file %s is in the legacy format; it will be rewritten in the "
            "current format at the end of this run",
            path,
        )

    validate_state(state, path)
    logger.debug(
        "Loaded state from %s: inode=%d offset=%d size=%d",
        path,
        state.inode,
        state.offset,
        state.size,
    )
    return state


def _temp_path_for(path: Path) -> Path:
    # Leading dot: never extends the log's name, so never a rotation candidate
    return path.with_name(f".{path.name}.tmp")


def _discard_temp(temp_path: Path, fs: FS) -> None:
    try:
        fs.unlink(temp_path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Could not remove temporary state file %s: %s", temp_path, e)


def save_state(
    path: Path,
    state: PersistedState,
    fs: FS,
    file_mode: int = DEFAULT_STATE_FILE_MODE,
) -> None:
    """
    Replace the state file with `state`.

    The record is written to a temporary file beside `path`, given
    `file_mode`, then renamed over `path`. A failure at any step leaves the
    previously committed state file as it was.

    Raises:
        StateFileError: If the record cannot be written, its mode cannot be
                        set, or it cannot be moved into place.
    """
    validate_state(state, path)
    payload = encode_state(state)
    temp_path = _temp_path_for(path)
    try:
        with fs.open(temp_path, "wb") as f:
            f.write(payload)
        fs.chmod(temp_path, file_mode)
        fs.replace(temp_path, path)
    except OSError as e:
        _discard_temp(temp_path, fs)
        raise StateFileError(f"Cannot write state file: {e}", path, e) from e

    logger.debug(
        "Saved state to %s: inode=%d offset=%d size=%d",
        path,
        state.inode,
        state.offset,
        state.size,
    )


def state_file_inode(path: Path, fs: FS) -> Optional[int]:
    """
    Inode of the state file, or None if it does not exist.

    The state file may sit beside the log under a name that extends the
    log's name (`app.log.offset`); callers use this to keep it out of the
    rotation candidates.

    Raises:
        StateFileError: If the file exists but cannot be stat'ed.
    """
    try:
        return fs.stat(path).st_ino
    except FileNotFoundError:
        return None
    except OSError as e:
        raise StateFileError(f"Cannot stat state file: {e}", path, e) from e
