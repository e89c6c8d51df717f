from typing import Iterable, Optional

from retail.file_functions.gather_candidates import RotationCandidate

DEFAULT_COMPRESSION_SUFFIXES: tuple[str, ...] = (".gz", ".bz2", ".xz", ".lzma")


def _extends_base_name(base_name: str, candidate_name: str) -> bool:
    return len(candidate_name) > len(base_name) and candidate_name.startswith(
        base_name
    )


def _is_newer(candidate: RotationCandidate, incumbent_mtime: Optional[float]) -> bool:
    return incumbent_mtime is None or candidate.mtime > incumbent_mtime


class SameInodePredicate:
    """
    Rename rotation: the old file keeps its inode under a new name in the
    same directory (app.log -> app.log.1).
    """

    def __init__(self, prior_inode: int) -> None:
        self.prior_inode = prior_inode

    def __call__(
        self,
        *,
        base_name: str,
        candidate: RotationCandidate,
        incumbent_mtime: Optional[float],
    ) -> bool:
        return candidate.inode == self.prior_inode and candidate.name.startswith(
            base_name
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(prior_inode={self.prior_inode})"


class MostRecentByPrefixPredicate:
    """
    Truncate rotation: there is no inode to follow, so take the newest sibling
    whose name extends the log's name.
    """

    def __call__(
        self,
        *,
        base_name: str,
        candidate: RotationCandidate,
        incumbent_mtime: Optional[float],
    ) -> bool:
        return _extends_base_name(base_name, candidate.name) and _is_newer(
            candidate, incumbent_mtime
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class MostRecentCompressedPredicate(MostRecentByPrefixPredicate):
    """
    Rename rotation followed by immediate compression: the rotated file got a
    new inode when it was compressed, so fall back to the newest compressed
    sibling.
    """

    def __init__(
        self, suffixes: Iterable[str] = DEFAULT_COMPRESSION_SUFFIXES
    ) -> None:
        self.suffixes = tuple(suffixes)

    def __call__(
        self,
        *,
        base_name: str,
        candidate: RotationCandidate,
        incumbent_mtime: Optional[float],
    ) -> bool:
        return candidate.name.endswith(self.suffixes) and super().__call__(
            base_name=base_name,
            candidate=candidate,
            incumbent_mtime=incumbent_mtime,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(suffixes={self.suffixes!r})"
