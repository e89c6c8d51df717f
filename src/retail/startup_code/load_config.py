from configparser import (
    ConfigParser,
    MissingSectionHeaderError,
    ParsingError,
    NoOptionError,
)
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from retail.file_functions.fs_mock import FS

SUPPORTED_COMPRESSION_SUFFIXES: tuple[str, ...] = (".gz", ".bz2", ".xz", ".lzma")
DEFAULT_CHUNK_SIZE_BYTES = 64 * 1024
DEFAULT_STATE_FILE_MODE = 0o660


class ConfigError(Exception):
    """Raised when the configuration or the invocation is invalid."""

    pass


@dataclass(frozen=True)
class Config:
    """Tunables for a retail run. Every field has a built-in default."""

    # From [Output]
    chunk_size_bytes: int = DEFAULT_CHUNK_SIZE_BYTES

    # From [Rotation]
    compression_suffixes: tuple[str, ...] = field(
        default=SUPPORTED_COMPRESSION_SUFFIXES
    )

    # From [State]
    accept_legacy_format: bool = True
    state_file_mode: int = DEFAULT_STATE_FILE_MODE

    # From [Logging]
    logger_dir: Optional[Path] = None

    def __post_init__(self):
        if self.chunk_size_bytes < 1:
            raise ConfigError("[Output] chunk_size_bytes must be >= 1")
        unsupported = [
            s
            for s in self.compression_suffixes
            if s not in SUPPORTED_COMPRESSION_SUFFIXES
        ]
        if unsupported:
            raise ConfigError(
                f"[Rotation] unsupported compression suffixes {unsupported}; "
                f"supported: {', '.join(SUPPORTED_COMPRESSION_SUFFIXES)}"
            )
        if self.state_file_mode & 0o007:
            raise ConfigError(
                f"[State] file_mode {self.state_file_mode:04o} must not grant world access"
            )


# Helper functions for parsing options
def _get_string_option(
    cp: ConfigParser, section: str, option: str, allow_empty: bool = False
) -> str:
    if not cp.has_option(section, option):
        raise ConfigError(f"[{section}] missing option '{option}'")
    value = cp.get(section, option)
    if not allow_empty and not value.strip():
        raise ConfigError(f"[{section}] '{option}' cannot be empty")
    return value


def _get_int_option(
    cp: ConfigParser,
    section: str,
    option: str,
    min_value: Optional[int] = None,
    max_value: Optional[int] = None,
    base: int = 10,
) -> int:
    if not cp.has_option(section, option):
        raise ConfigError(f"[{section}] missing option '{option}'")
    raw_value = cp.get(section, option)
    try:
        value = int(raw_value, base)
    except ValueError:
        raise ConfigError(f"[{section}] '{option}' ('{raw_value}') must be an integer")
    if min_value is not None and value < min_value:
        raise ConfigError(f"[{section}] '{option}' ({value}) must be >= {min_value}")
    if max_value is not None and value > max_value:
        raise ConfigError(f"[{section}] '{option}' ({value}) must be <= {max_value}")
    return value


def _get_boolean_option(cp: ConfigParser, section: str, option: str) -> bool:
    if not cp.has_option(section, option):
        raise ConfigError(f"[{section}] missing option '{option}'")
    raw_value = cp.get(section, option)
    try:
        return cp.getboolean(section, option)
    except ValueError:
        raise ConfigError(
            f"[{section}] '{option}' ('{raw_value}') must be a boolean (e.g., true, false, yes, no, 1, 0)"
        )


def _parse_output_config(cp: ConfigParser) -> dict:
    if not cp.has_option("Output", "chunk_size_bytes"):
        return {}
    return {
        "chunk_size_bytes": _get_int_option(
            cp, "Output", "chunk_size_bytes", min_value=1
        )
    }


def _parse_rotation_config(cp: ConfigParser) -> dict:
    if not cp.has_option("Rotation", "compression_suffixes"):
        return {}
    raw = _get_string_option(cp, "Rotation", "compression_suffixes", allow_empty=True)
    suffixes = []
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        if not item.startswith("."):
            item = f".{item}"
        suffixes.append(item.lower())
    return {"compression_suffixes": tuple(suffixes)}


def _parse_state_config(cp: ConfigParser) -> dict:
    values: dict = {}
    if cp.has_option("State", "accept_legacy_format"):
        values["accept_legacy_format"] = _get_boolean_option(
            cp, "State", "accept_legacy_format"
        )
    if cp.has_option("State", "file_mode"):
        values["state_file_mode"] = _get_int_option(
            cp, "State", "file_mode", min_value=0o400, max_value=0o777, base=8
        )
    return values


def _parse_logging_config(cp: ConfigParser, fs: FS) -> dict:
    if not cp.has_option("Logging", "log_dir"):
        return {}
    log_dir = Path(_get_string_option(cp, "Logging", "log_dir")).expanduser()
    try:
        if not fs.exists(log_dir):
            raise ConfigError(f"[Logging] log_dir '{log_dir}' does not exist.")
        if not fs.is_dir(log_dir):
            raise ConfigError(f"[Logging] log_dir '{log_dir}' is not a directory.")
    except OSError as e:
        raise ConfigError(f"Error processing log_dir '{log_dir}': {e}") from e
    return {"logger_dir": log_dir}


def load_config(path: Optional[Union[str, Path]], fs: FS = FS()) -> Config:
    """
    Loads, parses, and validates configuration from an INI file.

    With no path, the built-in defaults are returned. Every section and
    option is optional; options that are present must be valid.
    """
    if path is None:
        return Config()

    config_path = Path(path)
    try:
        if not fs.is_file(config_path):
            if not fs.exists(config_path):
                raise ConfigError(f"Config file not found: {config_path}")
            else:
                raise ConfigError(f"Config path is not a file: {config_path}")
    except OSError as e:
        raise ConfigError(f"Error checking config path '{config_path}': {e}") from e

    cp = ConfigParser()
    try:
        with fs.open(str(config_path), "r", encoding="utf-8") as f:
            cp.read_file(f)
    except (OSError, UnicodeDecodeError, MissingSectionHeaderError, ParsingError) as e:
        raise ConfigError(
            f"[Config] error reading or parsing config file '{config_path}': {e}"
        ) from e

    try:
        values: dict = {}
        values.update(_parse_output_config(cp))
        values.update(_parse_rotation_config(cp))
        values.update(_parse_state_config(cp))
        values.update(_parse_logging_config(cp, fs))
    except ConfigError:
        raise
    except NoOptionError as e:
        raise ConfigError(f"Missing option in config file '{config_path}': {e}") from e

    # __post_init__ raises ConfigError for cross-field problems
    return Config(**values)
