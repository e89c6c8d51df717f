import os
from pathlib import Path
from typing import Optional

from retail.file_functions.fs_mock import FS
from retail.startup_code.load_config import ConfigError

OFFSET_FILE_PREFIX = "offset."


def build_offset_path(
    log_path: Path, offset_arg: Optional[str], fs: FS = FS()
) -> Path:
    """
    Work out where the state file for `log_path` lives.

    - no `offset_arg`: beside the log, named ``offset.<log name>``
    - `offset_arg` ending in a separator, or naming an existing directory:
      ``offset.<log name>`` inside that directory
    - anything else: `offset_arg` itself
    """
    if not str(log_path) or not log_path.name:
        raise ConfigError(f"Log file path has no file name: '{log_path}'")

    offset_name = f"{OFFSET_FILE_PREFIX}{log_path.name}"

    if not offset_arg:
        return log_path.parent / offset_name

    if offset_arg.endswith((os.sep, "/")) or fs.is_dir(offset_arg):
        return Path(offset_arg) / offset_name

    return Path(offset_arg)
