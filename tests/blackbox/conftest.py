import logging
import os
import subprocess
import sys
from pathlib import Path
from typing import Callable, NamedTuple

import pytest

logger = logging.getLogger(__name__)

SRC_DIR = Path(__file__).resolve().parents[2] / "src"
RUN_TIMEOUT_SECONDS = 30


class RetailRun(NamedTuple):
    returncode: int
    stdout: bytes
    stderr: str


@pytest.fixture
def run_retail(tmp_path: Path) -> Callable[..., RetailRun]:
    """
    Runs `python -m retail.main` in a child process, the way cron would,
    and captures its exit status and both output streams.
    """
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(
        p for p in (str(SRC_DIR), env.get("PYTHONPATH", "")) if p
    )

    def _run(*args: str) -> RetailRun:
        cmd = [sys.executable, "-m", "retail.main", *args]
        logger.debug("Running %s", cmd)
        proc = subprocess.run(
            cmd,
            capture_output=True,
            cwd=tmp_path,
            env=env,
            timeout=RUN_TIMEOUT_SECONDS,
        )
        result = RetailRun(
            returncode=proc.returncode,
            stdout=proc.stdout,
            stderr=proc.stderr.decode("utf-8", errors="replace"),
        )
        logger.debug("retail exited %d, stderr: %s", result.returncode, result.stderr)
        return result

    return _run
