from pathlib import Path
from typing import Optional, Protocol

from retail.file_functions.fs_mock import FS
from retail.file_functions.gather_candidates import RotationCandidate


# --- Filesystem Related Protocols ---


class CandidateScanner(Protocol):
    """Protocol for a callable that lists possible rotated copies of a log."""

    def __call__(
        self, directory: Path, base_name: str, fs: FS
    ) -> list[RotationCandidate]:
        """Returns candidates in the order the directory yields them."""
        ...


# --- Rotation Related Protocols ---


class CandidatePredicate(Protocol):
    """
    One rotation strategy's test for "is this sibling the predecessor?".

    Implementations are pure: they see the log's base name, the candidate
    under test and the modification time of the best candidate accepted so
    far (None before the first acceptance).
    """

    def __call__(
        self,
        *,
        base_name: str,
        candidate: RotationCandidate,
        incumbent_mtime: Optional[float],
    ) -> bool: ...


# --- Output Related Protocols ---


class OutputSink(Protocol):
    """Where delivered log bytes go (normally sys.stdout.buffer)."""

    def write(self, data: bytes, /) -> int: ...

    def flush(self) -> None: ...

