import logging
import sys
from pathlib import Path

from retail.check_log import check_log
from retail.file_functions.file_exceptions import LogFileError, ScanDirectoryError
from retail.flush.copy_stream import FlushError
from retail.startup_code.cli import UsageError, parse_args
from retail.startup_code.context import build_context
from retail.startup_code.load_config import ConfigError, load_config
from retail.startup_code.logger_setup import (
    LoggingConfigurationError,
    setup_logging,
)
from retail.startup_code.offset_path import build_offset_path
from retail.state.persisted_state import (
    StateConsistencyError,
    StateFileError,
    StateFormatError,
)

# For sysexits.h codes - for cron and wrappers
EX_OK = 0  # successful termination
EX_USAGE = 64  # command line usage error
EX_DATAERR = 65  # data format error
EX_NOINPUT = 66  # cannot open input
EX_SOFTWARE = 70  # internal software error
EX_IOERR = 74  # input/output error
EX_CONFIG = 78  # configuration error


def main_entrypoint(argv=None):
    """
    Run one incremental read of a log file and exit with a sysexits code.
    """
    # 1. Parse command-line arguments
    try:
        args = parse_args(argv)
    except UsageError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(EX_USAGE)

    # 2. Load optional configuration
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        print(
            f"CRITICAL: Failed to load configuration from '{args.config}': {e}",
            file=sys.stderr,
        )
        sys.exit(EX_CONFIG)

    # 3. Configure logging (stderr only; stdout carries log data)
    try:
        setup_logging(
            log_file_dir=cfg.logger_dir,
            file_level=logging.DEBUG,
            console_level=logging.DEBUG if args.dev else logging.WARNING,
        )
    except LoggingConfigurationError as e:
        print(f"CRITICAL: Failed to configure logging: {e}", file=sys.stderr)
        sys.exit(EX_CONFIG)

    logger = logging.getLogger("retail.main")
    logger.debug("Arguments: %s", args)

    # 4. Resolve paths and build context
    log_path = Path(args.logfile)
    try:
        offset_path = build_offset_path(log_path, args.offset)
    except ConfigError as e:
        logger.critical("Invalid invocation: %s", e)
        sys.exit(EX_CONFIG)

    context = build_context(cfg)
    logger.debug("Context: %s, offset file: %s", context, offset_path)

    # 5. Run
    try:
        check_log(log_path=log_path, offset_path=offset_path, context=context)
    except ConfigError as e:
        logger.critical("Configuration error: %s", e)
        sys.exit(EX_CONFIG)
    except LogFileError as e:
        logger.critical("%s", e)
        if isinstance(e.original_exception, FileNotFoundError):
            sys.exit(EX_NOINPUT)
        sys.exit(EX_IOERR)
    except (StateFormatError, StateConsistencyError) as e:
        logger.critical(
            "Refusing to continue with corrupt state; fix or remove the offset file: %s",
            e,
        )
        sys.exit(EX_DATAERR)
    except (StateFileError, ScanDirectoryError, FlushError) as e:
        logger.critical("I/O error, state not updated: %s", e)
        sys.exit(EX_IOERR)
    except Exception as e:
        logger.critical("Fatal unexpected error: %s", e, exc_info=True)
        sys.exit(EX_SOFTWARE)

    sys.exit(EX_OK)


# Guard for execution
if __name__ == "__main__":
    main_entrypoint()
