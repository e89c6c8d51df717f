from pathlib import Path
from typing import Optional


class ScanDirectoryError(Exception):
    """Indicates a failure while scanning the log directory for a predecessor."""

    def __init__(
        self,
        message: str,
        directory: Path,
        original_exception: Exception,
        entry_name: Optional[str] = None,
    ):
        """
        Initializes the ScanDirectoryError.

        Args:
            message: A descriptive message explaining the error context.
            directory: The path to the directory where the scanning error occurred.
            original_exception: The original exception that triggered this error.
            entry_name: The directory entry being processed, if the failure was
                        specific to one entry (e.g. it could not be stat'ed).
        """
        location = f"{directory}/{entry_name}" if entry_name else str(directory)
        super().__init__(f"{message} [Directory: {location}]")
        self.directory = directory
        self.entry_name = entry_name
        self.original_exception = original_exception


class LogFileError(Exception):
    """The log file named on the command line cannot be used as a tail source."""

    def __init__(
        self,
        message: str,
        path: Path,
        original_exception: Optional[Exception] = None,
    ):
        super().__init__(f"{message} [Log file: {path}]")
        self.path = path
        self.original_exception = original_exception
