import io
from pathlib import Path

import pytest

import retail.main as main_module
from retail.file_functions.file_exceptions import ScanDirectoryError
from retail.flush.copy_stream import FlushError
from retail.startup_code.context import build_context
from retail.startup_code.logger_setup import LoggingConfigurationError
from retail.state.persisted_state import PersistedState
from retail.state.state_codec import encode_state
from tests.test_utils.fs_helpers import LogTestEnv


@pytest.fixture(autouse=True)
def no_global_logging(mocker):
    """main_entrypoint must not reconfigure the test process's logging."""
    return mocker.patch.object(main_module, "setup_logging")


@pytest.fixture
def sink(mocker) -> io.BytesIO:
    """Route the context's output into a BytesIO instead of stdout."""
    buffer = io.BytesIO()
    mocker.patch.object(
        main_module,
        "build_context",
        side_effect=lambda cfg: build_context(cfg, output_override=buffer),
    )
    return buffer


def run(argv: list) -> int:
    with pytest.raises(SystemExit) as exc_info:
        main_module.main_entrypoint(argv)
    return exc_info.value.code


def test_success_delivers_and_exits_ok(log_env: LogTestEnv, sink: io.BytesIO):
    log_env.log_path.write_bytes(b"first\nsecond\n")

    assert run([str(log_env.log_path)]) == main_module.EX_OK
    assert sink.getvalue() == b"first\nsecond\n"
    assert log_env.offset_path.exists()


def test_writes_to_real_stdout(log_env: LogTestEnv, capsysbinary):
    log_env.log_path.write_bytes(b"hello\n")

    assert run([str(log_env.log_path)]) == main_module.EX_OK
    assert capsysbinary.readouterr().out == b"hello\n"


def test_offset_directory_option(log_env: LogTestEnv, sink, tmp_path: Path):
    state_dir = tmp_path / "state"
    state_dir.mkdir()
    log_env.log_path.write_bytes(b"x\n")

    assert run(["-o", f"{state_dir}/", str(log_env.log_path)]) == main_module.EX_OK
    assert (state_dir / "offset.app.log").exists()
    assert not log_env.offset_path.exists()


def test_dev_flag_enables_debug_console(log_env: LogTestEnv, sink, no_global_logging):
    log_env.log_path.write_bytes(b"")

    run(["--dev", str(log_env.log_path)])

    _, kwargs = no_global_logging.call_args
    assert kwargs["console_level"] == main_module.logging.DEBUG


def test_usage_error(capsys):
    assert run([]) == main_module.EX_USAGE
    assert "ERROR:" in capsys.readouterr().err


def test_missing_config_file(log_env: LogTestEnv, tmp_path: Path, capsys):
    code = run(["-c", str(tmp_path / "absent.ini"), str(log_env.log_path)])

    assert code == main_module.EX_CONFIG
    assert "Config file not found" in capsys.readouterr().err


def test_logging_setup_failure(log_env: LogTestEnv, no_global_logging):
    no_global_logging.side_effect = LoggingConfigurationError("cannot open")

    assert run([str(log_env.log_path)]) == main_module.EX_CONFIG


def test_log_path_without_name():
    assert run(["/"]) == main_module.EX_CONFIG


def test_missing_log_file(log_env: LogTestEnv, sink: io.BytesIO):
    assert run([str(log_env.log_path)]) == main_module.EX_NOINPUT
    assert sink.getvalue() == b""
    assert not log_env.offset_path.exists()


def test_log_path_is_directory(log_env: LogTestEnv, sink):
    assert run([str(log_env.log_dir)]) == main_module.EX_CONFIG


def test_corrupt_state(log_env: LogTestEnv, sink: io.BytesIO):
    log_env.log_path.write_bytes(b"data\n")
    bad = encode_state(PersistedState(inode=1, offset=600, size=500))
    log_env.offset_path.write_bytes(bad)

    assert run([str(log_env.log_path)]) == main_module.EX_DATAERR
    assert sink.getvalue() == b""
    assert log_env.offset_path.read_bytes() == bad


def test_garbage_state(log_env: LogTestEnv, sink: io.BytesIO):
    log_env.log_path.write_bytes(b"data\n")
    log_env.offset_path.write_bytes(b"garbage")

    assert run([str(log_env.log_path)]) == main_module.EX_DATAERR
    assert sink.getvalue() == b""


@pytest.mark.parametrize(
    "error",
    [
        ScanDirectoryError("boom", Path("/logs"), OSError("boom")),
        FlushError("boom", Path("/logs/app.log"), OSError("boom")),
    ],
)
def test_io_errors_map_to_ioerr(log_env: LogTestEnv, mocker, error):
    mocker.patch.object(main_module, "check_log", side_effect=error)

    assert run([str(log_env.log_path)]) == main_module.EX_IOERR


def test_unexpected_error_is_software_error(
    log_env: LogTestEnv, mocker, caplog: pytest.LogCaptureFixture
):
    mocker.patch.object(main_module, "check_log", side_effect=RuntimeError("bug"))

    assert run([str(log_env.log_path)]) == main_module.EX_SOFTWARE
    assert "Fatal unexpected error" in caplog.text
