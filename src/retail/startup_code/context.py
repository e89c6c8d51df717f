import sys
from typing import Optional

from retail.file_functions.fs_mock import FS as DefaultFSImplementation
from retail.file_functions.gather_candidates import (
    gather_rotation_candidates as default_candidate_scanner_implementation,
)
from retail.protocols import FS, CandidateScanner, OutputSink
from retail.startup_code.load_config import Config


class AppContext:
    def __init__(
        self,
        config: Config,
        fs: FS,
        output: OutputSink,
        candidate_scanner: CandidateScanner,
    ):
        self.config: Config = config
        self.fs: FS = fs
        self.output: OutputSink = output
        self.candidate_scanner: CandidateScanner = candidate_scanner

    def __str__(self) -> str:
        fs_repr = f"<{self.fs.__class__.__name__} instance>"
        output_repr = f"<{self.output.__class__.__name__} instance>"
        scanner_repr = getattr(
            self.candidate_scanner, "__name__", str(self.candidate_scanner)
        )
        return (
            f"{self.__class__.__name__}("
            f"config={self.config}, "
            f"fs={fs_repr}, "
            f"output={output_repr}, "
            f"candidate_scanner={scanner_repr}"
            f")"
        )

    __repr__ = __str__


def build_context(
    config: Config,
    fs_override: Optional[FS] = None,
    output_override: Optional[OutputSink] = None,
    candidate_scanner_override: Optional[CandidateScanner] = None,
) -> AppContext:
    """
    Factory function to create an AppContext instance.
    Allows overriding default dependencies for testing or alternative implementations.
    """
    fs_instance: FS = (
        fs_override if fs_override is not None else DefaultFSImplementation()
    )

    # Resolved at call time so that a replaced sys.stdout is honoured.
    output_instance: OutputSink = (
        output_override if output_override is not None else sys.stdout.buffer
    )

    scanner_instance: CandidateScanner = (
        candidate_scanner_override
        if candidate_scanner_override is not None
        else default_candidate_scanner_implementation
    )

    return AppContext(
        config=config,
        fs=fs_instance,
        output=output_instance,
        candidate_scanner=scanner_instance,
    )
