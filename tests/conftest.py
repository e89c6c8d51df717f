"""
Global pytest fixtures for the retail test suite.

This file provides:
- A real filesystem abstraction and a spec'd mock of it.
- Default configuration objects.
- A temporary log environment (log file, state file, byte sink) for
  integration-style tests.
"""

import io
import logging
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from retail.file_functions.fs_mock import FS as ConcreteFSImpl
from retail.protocols import FS as FSProtocol
from retail.startup_code.context import AppContext, build_context
from retail.startup_code.load_config import Config
from tests.test_utils.fs_helpers import LogTestEnv

logger = logging.getLogger(__name__)


# --- 1. Foundational Test Environment Fixtures ---


@pytest.fixture(scope="function")
def real_fs() -> FSProtocol:
    """A real filesystem interface instance backed by os/builtins."""
    return ConcreteFSImpl()


@pytest.fixture(scope="function")
def log_env(tmp_path: Path) -> LogTestEnv:
    """
    Creates an empty log directory. The log file itself is NOT created;
    tests write it with the content they need.
    """
    log_dir = tmp_path / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    env = LogTestEnv(
        log_dir=log_dir,
        log_path=log_dir / "app.log",
        offset_path=log_dir / "offset.app.log",
    )
    logger.debug("Created log test environment under %s", log_dir)
    return env


@pytest.fixture
def output_sink() -> io.BytesIO:
    """Collects delivered bytes in memory instead of stdout."""
    return io.BytesIO()


# --- 2. Configuration Fixtures ---


@pytest.fixture(scope="function")
def default_config() -> Config:
    """Built-in defaults; override fields with dataclasses.replace()."""
    return Config()


@pytest.fixture(scope="function")
def small_chunk_config() -> Config:
    """Tiny chunks so copy loops iterate many times over short test files."""
    return Config(chunk_size_bytes=7)


@pytest.fixture
def real_context(
    default_config: Config, real_fs: FSProtocol, output_sink: io.BytesIO
) -> AppContext:
    """AppContext on the real filesystem, writing to `output_sink`."""
    return build_context(
        default_config, fs_override=real_fs, output_override=output_sink
    )


# --- 3. Generic Mocking Fixtures for Protocols ---


@pytest.fixture
def mock_fs() -> MagicMock:
    """
    Provides a generic MagicMock for the FS (Filesystem) abstraction.
    `spec=FSProtocol` ensures only real FS fields can be used.
    """
    return MagicMock(spec=FSProtocol, name="MockFS")
