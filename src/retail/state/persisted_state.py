from dataclasses import dataclass
from pathlib import Path
from typing import Optional


class StateFormatError(Exception):
    """The state file exists but its contents cannot be decoded."""

    def __init__(self, message: str, path: Optional[Path] = None):
        location = f" [State file: {path}]" if path is not None else ""
        super().__init__(f"{message}{location}")
        self.path = path


class StateConsistencyError(Exception):
    """A decoded state violates offset <= size; treated as corruption."""

    def __init__(self, state: "PersistedState", path: Optional[Path] = None):
        location = f" [State file: {path}]" if path is not None else ""
        super().__init__(
            f"Stored offset {state.offset} exceeds stored size {state.size}"
            f"{location}"
        )
        self.state = state
        self.path = path


class StateFileError(Exception):
    """The state file cannot be read or written."""

    def __init__(self, message: str, path: Path, original_exception: Exception):
        super().__init__(f"{message} [State file: {path}]")
        self.path = path
        self.original_exception = original_exception


@dataclass(frozen=True)
class PersistedState:
    """
    The durable (inode, offset, size) record written after each run.

    inode: file identity of the log when last observed (compared for
           equality only).
    offset: bytes of that file already delivered.
    size: length of that file when last observed.
    """

    inode: int
    offset: int
    size: int

    @classmethod
    def initial(cls, inode: int) -> "PersistedState":
        """State for a log that has never been seen: read from the start."""
        return cls(inode=inode, offset=0, size=0)


def validate_state(state: PersistedState, path: Optional[Path] = None) -> None:
    """Reject negative fields (StateFormatError) and offset > size (StateConsistencyError)."""
    if state.offset < 0 or state.size < 0 or state.inode < 0:
        raise StateFormatError(
            f"Negative field in state (inode={state.inode}, "
            f"offset={state.offset}, size={state.size})",
            path,
        )
    if state.offset > state.size:
        raise StateConsistencyError(state, path)
