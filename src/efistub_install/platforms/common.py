import logging
import os
import platform
import shlex
import shutil
import subprocess
from typing import List

log = logging.getLogger(__name__)


def is_admin() -> bool:
    try:
        return os.geteuid() == 0
    except AttributeError:
        return False


def which(cmd: str) -> str | None:
    return shutil.which(cmd)


def run(cmd: List[str]) -> subprocess.CompletedProcess:
    """Run a command with captured text output."""
    log.debug('running: %s', shlex.join(cmd))
    return subprocess.run(cmd, capture_output=True, text=True, check=False)


def machine() -> str:
    return platform.machine()
