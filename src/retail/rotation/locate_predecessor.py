import logging
from pathlib import Path
from typing import Collection, Iterable, Optional

from retail.file_functions.fs_mock import FS
from retail.file_functions.gather_candidates import (
    RotationCandidate,
    gather_rotation_candidates,
)
from retail.protocols import CandidatePredicate, CandidateScanner
from retail.rotation.predicates import (
    DEFAULT_COMPRESSION_SUFFIXES,
    MostRecentByPrefixPredicate,
    MostRecentCompressedPredicate,
    SameInodePredicate,
)
from retail.rotation.reconcile import RotationVerdict

logger = logging.getLogger(__name__)


def locate_predecessor(
    *,
    directory: Path,
    base_name: str,
    predicate: CandidatePredicate,
    fs: FS,
    scanner: CandidateScanner = gather_rotation_candidates,
    exclude_inodes: Collection[int] = (),
) -> Optional[Path]:
    """
    Scan `directory` once and return the path of the candidate selected by
    `predicate`, or None. Candidates whose inode is in `exclude_inodes` are
    never considered.

    An accepted candidate replaces the incumbent only if its mtime is strictly
    greater; on equal mtimes the earlier-scanned entry is kept.

    Raises:
        ScanDirectoryError: propagated from the scanner.
    """
    best: Optional[RotationCandidate] = None

    for candidate in scanner(directory, base_name, fs):
        if candidate.inode in exclude_inodes:
            logger.debug("Skipping %s: not a rotated copy of the log", candidate.name)
            continue
        incumbent_mtime = best.mtime if best is not None else None
        if not predicate(
            base_name=base_name,
            candidate=candidate,
            incumbent_mtime=incumbent_mtime,
        ):
            continue
        if best is None or candidate.mtime > best.mtime:
            logger.debug(
                "%r accepted %s (mtime %s, incumbent %s)",
                predicate,
                candidate.name,
                candidate.mtime,
                incumbent_mtime,
            )
            best = candidate

    if best is None:
        logger.debug("%r matched nothing in %s", predicate, directory)
        return None
    return best.path


def find_predecessor(
    *,
    verdict: RotationVerdict,
    log_path: Path,
    prior_inode: int,
    fs: FS,
    compression_suffixes: Iterable[str] = DEFAULT_COMPRESSION_SUFFIXES,
    scanner: CandidateScanner = gather_rotation_candidates,
    exclude_inodes: Collection[int] = (),
) -> Optional[Path]:
    """
    Apply the locator policy for `verdict`.

    TRUNCATE_ROTATION: newest sibling extending the log's name.
    RENAME_ROTATION: the sibling still carrying the prior inode; failing that,
    the newest compressed sibling.
    NO_ROTATION: nothing to look for.

    `exclude_inodes` names files in the directory that are never a
    predecessor, such as retail's own state file.
    """
    if verdict is RotationVerdict.NO_ROTATION:
        return None

    directory = log_path.parent
    base_name = log_path.name

    if verdict is RotationVerdict.TRUNCATE_ROTATION:
        strategies: list[CandidatePredicate] = [MostRecentByPrefixPredicate()]
    else:
        strategies = [
            SameInodePredicate(prior_inode),
            MostRecentCompressedPredicate(compression_suffixes),
        ]

    for predicate in strategies:
        found = locate_predecessor(
            directory=directory,
            base_name=base_name,
            predicate=predicate,
            fs=fs,
            scanner=scanner,
            exclude_inodes=exclude_inodes,
        )
        if found is not None:
            logger.info(
                "Predecessor of %s after %s: %s (via %r)",
                log_path,
                verdict.value,
                found,
                predicate,
            )
            return found

    return None
