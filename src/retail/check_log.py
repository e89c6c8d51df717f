import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from retail.file_functions.stat_live_file import stat_live_file
from retail.flush.copy_stream import flush_file
from retail.rotation.locate_predecessor import find_predecessor
from retail.rotation.reconcile import RotationVerdict, reconcile
from retail.startup_code.context import AppContext
from retail.state.persisted_state import PersistedState
from retail.state.state_file import load_state, save_state, state_file_inode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckResult:
    """What a single run did; returned for callers and tests."""

    verdict: RotationVerdict
    predecessor: Optional[Path]
    predecessor_bytes: int
    current_bytes: int
    new_state: PersistedState


def check_log(*, log_path: Path, offset_path: Path, context: AppContext) -> CheckResult:
    """
    Deliver everything appended to `log_path` since the state in
    `offset_path` was committed, following a rotation if one happened, then
    commit the new state.

    Nothing is written to the output before the stored state has been loaded
    and validated, and the state file is only rewritten after every byte has
    been delivered. Any exception therefore leaves the previous state intact.

    Raises:
        ConfigError, LogFileError: the log path is unusable.
        StateFileError, StateFormatError, StateConsistencyError: bad state.
        ScanDirectoryError: the predecessor search could not complete.
        FlushError: reading a source or writing the output failed.
    """
    cfg = context.config
    fs = context.fs

    live = stat_live_file(log_path, fs)
    prior = load_state(offset_path, fs, accept_legacy=cfg.accept_legacy_format)
    if prior is None:
        prior = PersistedState.initial(live.inode)

    verdict = reconcile(prior, live)
    start_offset = prior.offset
    predecessor: Optional[Path] = None
    predecessor_bytes = 0

    if verdict is not RotationVerdict.NO_ROTATION:
        logger.info(
            "Detected %s of %s (stored inode=%d size=%d, live inode=%d size=%d)",
            verdict.value,
            log_path,
            prior.inode,
            prior.size,
            live.inode,
            live.size,
        )
        own_inode = state_file_inode(offset_path, fs)
        predecessor = find_predecessor(
            verdict=verdict,
            log_path=log_path,
            prior_inode=prior.inode,
            fs=fs,
            compression_suffixes=cfg.compression_suffixes,
            scanner=context.candidate_scanner,
            exclude_inodes=() if own_inode is None else (own_inode,),
        )
        if predecessor is not None:
            # Any supported format is decoded, whichever rule picked the file
            predecessor_bytes = flush_file(
                path=predecessor,
                start_offset=prior.offset,
                sink=context.output,
                fs=fs,
                chunk_size=cfg.chunk_size_bytes,
            )
        else:
            logger.warning(
                "No rotated predecessor of %s found after %s; up to %d undelivered "
                "bytes of the previous file are skipped",
                log_path,
                verdict.value,
                prior.size - prior.offset,
            )
        start_offset = 0

    current_bytes = flush_file(
        path=log_path,
        start_offset=start_offset,
        sink=context.output,
        fs=fs,
        chunk_size=cfg.chunk_size_bytes,
        compression_suffixes=(),
        limit=live.size - start_offset,
    )

    new_state = PersistedState(
        inode=live.inode, offset=start_offset + current_bytes, size=live.size
    )
    save_state(offset_path, new_state, fs, file_mode=cfg.state_file_mode)

    logger.info(
        "Delivered %d bytes of %s (offset %d -> %d)%s",
        current_bytes,
        log_path,
        start_offset,
        new_state.offset,
        f" after {predecessor_bytes} bytes of {predecessor}" if predecessor else "",
    )
    return CheckResult(
        verdict=verdict,
        predecessor=predecessor,
        predecessor_bytes=predecessor_bytes,
        current_bytes=current_bytes,
        new_state=new_state,
    )
