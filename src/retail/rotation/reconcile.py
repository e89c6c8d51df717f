import logging
from enum import Enum

from retail.file_functions.stat_live_file import LiveFileStat
from retail.state.persisted_state import PersistedState

logger = logging.getLogger(__name__)


class RotationVerdict(Enum):
    NO_ROTATION = "no-rotation"
    TRUNCATE_ROTATION = "truncate-rotation"
    RENAME_ROTATION = "rename-rotation"


def reconcile(prior: PersistedState, live: LiveFileStat) -> RotationVerdict:
    """
    Classify what happened to the log since `prior` was committed.

    Same inode but smaller than last time: the content was copied out and the
    file truncated in place. Different inode: the file was moved aside and a
    new one created. Anything else is ordinary growth (or no change).

    A state synthesized for a never-seen log carries the live inode and size
    0, so it always reconciles to NO_ROTATION.
    """
    if prior.inode == live.inode and prior.size > live.size:
        verdict = RotationVerdict.TRUNCATE_ROTATION
    elif prior.inode != live.inode:
        verdict = RotationVerdict.RENAME_ROTATION
    else:
        verdict = RotationVerdict.NO_ROTATION

    logger.debug(
        "Reconciled prior (inode=%d, size=%d) with live (inode=%d, size=%d): %s",
        prior.inode,
        prior.size,
        live.inode,
        live.size,
        verdict.value,
    )
    return verdict
