import argparse
from typing import Optional, Sequence

USAGE = "retail [-o OFFSET] [-c CONFIG] [--dev] LOGFILE"


class UsageError(Exception):
    """Raised instead of exiting when the command line cannot be parsed."""

    pass


class _RaisingArgumentParser(argparse.ArgumentParser):
    def error(self, message: str):  # type: ignore[override]
        raise UsageError(f"{message}\nusage: {USAGE}")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parses command-line arguments for retail.

    Defines the log file to tail, an optional offset (state) file or
    directory, an optional INI configuration file and a flag for debug
    diagnostics on stderr.

    Returns:
        argparse.Namespace: An object holding the parsed command-line arguments
                            as attributes.

    Raises:
        UsageError: If the arguments are invalid.
    """
    parser = _RaisingArgumentParser(
        prog="retail",
        usage=USAGE,
        description=(
            "Print the lines appended to a log file since the last run, "
            "following log rotation."
        ),
    )
    parser.add_argument("logfile", help="Path to the log file to tail")
    parser.add_argument(
        "--offset",
        "-o",
        default=None,
        help=(
            "Offset file, or a directory (ending in '/') to hold "
            "'offset.<logfile name>'. Defaults to the log file's directory."
        ),
    )
    parser.add_argument(
        "--config",
        "-c",
        default=None,
        help="Path to an optional INI configuration file",
    )
    parser.add_argument(
        "--dev", action="store_true", help="Enable debug logging to stderr"
    )
    return parser.parse_args(argv)
