import copy
import datetime
import json
import logging
import logging.config
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Type, Union

# A set of built-in LogRecord attributes.
LOG_RECORD_BUILTIN_ATTRS = {
    "args",
    "asctime",
    "created",
    "exc_info",
    "exc_text",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "message",
    "msg",
    "name",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "stack_info",
    "thread",
    "threadName",
    "taskName",
}

DEFAULT_LOG_FILENAME = "retail.log.jsonl"
FILE_LOG_MAX_BYTES = 5 * 1024 * 1024
FILE_LOG_BACKUP_COUNT = 3

NormalizedExcInfo = Tuple[Type[BaseException], BaseException, Any]


def _generate_utc_iso_timestamp(record: logging.LogRecord) -> str:
    """Generates an ISO 8601 formatted timestamp in UTC."""
    dt = datetime.datetime.fromtimestamp(record.created, tz=datetime.timezone.utc)
    iso = dt.isoformat(timespec="milliseconds")
    if iso.endswith("+00:00"):
        return iso[:-6] + "Z"
    return iso


def _normalize_exc_info(record: logging.LogRecord) -> Optional[NormalizedExcInfo]:
    """
    Coalesce record.exc_info (None, False, True, an exception instance or a
    3-tuple) into a (type, value, traceback) tuple, or None.
    """
    raw = record.exc_info
    if not raw:
        return None
    if raw is True:
        raw = sys.exc_info()
    elif isinstance(raw, BaseException):
        raw = (type(raw), raw, raw.__traceback__)

    if not (isinstance(raw, tuple) and len(raw) == 3):
        return None
    cls, val, tb = raw
    if not (isinstance(cls, type) and issubclass(cls, BaseException)):
        return None
    return cls, val, tb


class JSONFormatter(logging.Formatter):
    """Formats each record as one JSON object per line."""

    DEFAULT_FMT_KEYS: Dict[str, str] = {
        "timestamp": "asctime",
        "level": "levelname",
        "message": "message",
        "logger": "name",
        "function": "funcName",
        "line": "lineno",
    }
    DEFAULT_EXCEPTION_KEY: str = "exception"

    def __init__(
        self, fmt_keys: Optional[Dict[str, str]] = None, datefmt: Optional[str] = None
    ):
        super().__init__(datefmt=datefmt)
        self.fmt_keys: Dict[str, str] = (
            fmt_keys.copy() if fmt_keys is not None else dict(self.DEFAULT_FMT_KEYS)
        )

    def _prepare_log_dict(self, record: logging.LogRecord) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for output_key, attr_name in self.fmt_keys.items():
            if attr_name == "asctime":
                data[output_key] = _generate_utc_iso_timestamp(record)
            elif attr_name == "message":
                data[output_key] = record.getMessage()
            elif hasattr(record, attr_name):
                value = getattr(record, attr_name)
                if not callable(value):
                    data[output_key] = value

        exc_info = _normalize_exc_info(record)
        if exc_info and self.DEFAULT_EXCEPTION_KEY not in data:
            data[self.DEFAULT_EXCEPTION_KEY] = self.formatException(exc_info)

        # Anything passed via `extra=`
        mapped = set(self.fmt_keys.values())
        for attr_name, attr_value in record.__dict__.items():
            if (
                attr_name not in LOG_RECORD_BUILTIN_ATTRS
                and attr_name not in mapped
                and attr_name not in data
                and not callable(attr_value)
            ):
                data[attr_name] = attr_value
        return data

    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(self._prepare_log_dict(record), default=str)


FORMATTER_CLASS_PATH = f"{__name__}.JSONFormatter"

# stdout carries log data, so diagnostics only ever go to stderr.
BASE_LOGGING_CONFIG: dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "dev_console": {
            "format": "%(asctime)s %(levelname)-8s [%(name)s:%(lineno)s] %(message)s",
            "datefmt": "%Y-%m-%dT%H:%M:%S",
        },
        "json_file": {
            "()": FORMATTER_CLASS_PATH,
            "fmt_keys": JSONFormatter.DEFAULT_FMT_KEYS,
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": "WARNING",
            "formatter": "dev_console",
            "stream": "ext://sys.stderr",
        },
        "file_json": {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "DEBUG",
            "formatter": "json_file",
            "filename": DEFAULT_LOG_FILENAME,
            "maxBytes": FILE_LOG_MAX_BYTES,
            "backupCount": FILE_LOG_BACKUP_COUNT,
            "encoding": "utf8",
        },
    },
    "root": {
        "level": "DEBUG",
        "handlers": ["console", "file_json"],
    },
}


class LoggingConfigurationError(Exception):
    """Custom exception for errors during logging setup."""

    pass


def _get_level_num(level_input: Union[int, str], param_name_for_error: str) -> int:
    if isinstance(level_input, int):
        return level_input
    if isinstance(level_input, str):
        numeric_level = logging.getLevelName(level_input.upper())
        if isinstance(numeric_level, int):
            return numeric_level
        try:
            return int(level_input)
        except ValueError:
            raise LoggingConfigurationError(
                f"Invalid level string for {param_name_for_error}: '{level_input}'. "
                f"Must be a standard level name (e.g., 'DEBUG') or a number."
            )
    raise TypeError(
        f"{param_name_for_error} must be an int or string, not {type(level_input)}"
    )


def setup_logging(
    *,
    log_file_dir: Optional[Path] = None,
    console_level: Union[int, str] = logging.WARNING,
    file_level: Union[int, str] = logging.DEBUG,
) -> None:
    """
    Configure the root logger: human-readable diagnostics on stderr, plus a
    rotating JSON-lines file in `log_file_dir` when one is given.
    """
    root_logger = logging.getLogger()
    original_root_handlers = list(root_logger.handlers)

    try:
        cfg: dict[str, Any] = copy.deepcopy(BASE_LOGGING_CONFIG)
        console_lvl = _get_level_num(console_level, "console_level")
        file_lvl = _get_level_num(file_level, "file_level")

        cfg["handlers"]["console"]["level"] = logging.getLevelName(console_lvl)
        levels = [console_lvl]

        if log_file_dir is not None:
            final_path = (log_file_dir / DEFAULT_LOG_FILENAME).resolve()
            try:
                final_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise LoggingConfigurationError(
                    f"Failed to create log directory {final_path.parent}: {e}"
                ) from e
            cfg["handlers"]["file_json"]["filename"] = str(final_path)
            cfg["handlers"]["file_json"]["level"] = logging.getLevelName(file_lvl)
            levels.append(file_lvl)
        else:
            del cfg["handlers"]["file_json"]
            cfg["root"]["handlers"] = ["console"]

        cfg["root"]["level"] = logging.getLevelName(min(levels))
        logging.config.dictConfig(cfg)

        # dictConfig drops handlers installed before us (e.g. by a test harness)
        current_root_handlers = set(root_logger.handlers)
        for original_handler in original_root_handlers:
            if original_handler not in current_root_handlers:
                root_logger.addHandler(original_handler)

        logging.getLogger(__name__).debug(
            "Logging initialized: console=%s, file=%s",
            logging.getLevelName(console_lvl),
            cfg["handlers"].get("file_json", {}).get("filename", "disabled"),
        )

    except LoggingConfigurationError:
        raise
    except (OSError, KeyError, ValueError, TypeError) as err:
        raise LoggingConfigurationError(f"Failed to initialize logging: {err}") from err
