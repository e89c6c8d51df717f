import io
import logging
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from retail.check_log import check_log
from retail.file_functions.file_exceptions import ScanDirectoryError
from retail.file_functions.fs_mock import FS
from retail.file_functions.gather_candidates import RotationCandidate
from retail.rotation.reconcile import RotationVerdict
from retail.startup_code.context import build_context
from retail.startup_code.load_config import Config
from retail.state.persisted_state import PersistedState
from retail.state.state_file import load_state, save_state
from tests.test_utils.fs_helpers import LogTestEnv, write_file
from tests.test_utils.logging_helpers import find_log_record


@pytest.fixture
def scanner() -> MagicMock:
    return MagicMock(name="candidate_scanner", return_value=[])


@pytest.fixture
def sink() -> io.BytesIO:
    return io.BytesIO()


@pytest.fixture
def context(real_fs: FS, sink: io.BytesIO, scanner: MagicMock):
    return build_context(
        Config(),
        fs_override=real_fs,
        output_override=sink,
        candidate_scanner_override=scanner,
    )


def run(env: LogTestEnv, context):
    return check_log(log_path=env.log_path, offset_path=env.offset_path, context=context)


def test_no_rotation_does_not_scan(log_env: LogTestEnv, context, scanner, sink):
    write_file(log_env.log_path, b"abc\n")

    result = run(log_env, context)

    assert result.verdict is RotationVerdict.NO_ROTATION
    scanner.assert_not_called()
    assert sink.getvalue() == b"abc\n"


def test_rotation_uses_injected_scanner(
    log_env: LogTestEnv, context, scanner, sink, real_fs: FS, tmp_path: Path
):
    write_file(log_env.log_path, b"new\n")
    rotated = write_file(tmp_path / "elsewhere.bin", b"OLD-TAIL\n")
    save_state(log_env.offset_path, PersistedState(inode=424242, offset=4, size=9), real_fs)
    scanner.return_value = [
        RotationCandidate(name="app.log.1", path=rotated, inode=424242, mtime=1.0)
    ]

    result = run(log_env, context)

    scanner.assert_called_once_with(log_env.log_dir, "app.log", real_fs)
    assert result.verdict is RotationVerdict.RENAME_ROTATION
    assert result.predecessor == rotated
    assert sink.getvalue() == b"TAIL\nnew\n"


def test_scan_failure_leaves_state_and_output_untouched(
    log_env: LogTestEnv, context, scanner, sink, real_fs: FS
):
    write_file(log_env.log_path, b"new\n")
    prior = PersistedState(inode=424242, offset=1, size=2)
    save_state(log_env.offset_path, prior, real_fs)
    scanner.side_effect = ScanDirectoryError("denied", log_env.log_dir, PermissionError())

    with pytest.raises(ScanDirectoryError):
        run(log_env, context)

    assert sink.getvalue() == b""
    assert load_state(log_env.offset_path, real_fs) == prior


def test_live_file_read_is_bounded_by_initial_stat(
    log_env: LogTestEnv, real_fs: FS, sink
):
    write_file(log_env.log_path, b"0123456789")
    real_stat = real_fs.stat

    def stat_then_grow(path):
        result = real_stat(path)
        with open(log_env.log_path, "ab") as f:
            f.write(b"LATE")
        return result

    fs = FS(stat=stat_then_grow)
    ctx = build_context(Config(), fs_override=fs, output_override=sink)

    result = run(log_env, ctx)

    assert sink.getvalue() == b"0123456789"
    assert result.new_state.offset == 10
    assert result.new_state.size == 10


def test_missing_predecessor_logs_warning(
    log_env: LogTestEnv, context, sink, real_fs: FS, caplog: pytest.LogCaptureFixture
):
    caplog.set_level(logging.WARNING)
    write_file(log_env.log_path, b"fresh\n")
    save_state(log_env.offset_path, PersistedState(inode=424242, offset=3, size=50), real_fs)

    result = run(log_env, context)

    assert result.predecessor is None
    assert sink.getvalue() == b"fresh\n"
    assert find_log_record(caplog, logging.WARNING, ["No rotated predecessor", "47"])


def test_state_file_is_excluded_from_candidates(
    log_env: LogTestEnv, context, scanner, sink, real_fs: FS
):
    write_file(log_env.log_path, b"new\n")
    save_state(log_env.offset_path, PersistedState(inode=424242, offset=4, size=9), real_fs)
    state_inode = log_env.offset_path.stat().st_ino
    scanner.return_value = [
        RotationCandidate(
            name="app.log.offset",
            path=log_env.offset_path,
            inode=state_inode,
            mtime=1e12,
        )
    ]

    result = run(log_env, context)

    assert result.predecessor is None
    assert sink.getvalue() == b"new\n"
