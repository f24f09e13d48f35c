"""
Program-wide constants, shared console and logger, and tool detection.
"""

import logging
import shutil
import subprocess
from typing import Optional

from rich.console import Console

PROGRAM = "folderize"

# Platform housekeeping files that may always be replaced at the destination
OVERWRITABLE_NAMES = (".DS_Store", "Thumbs.db")

# Directory names never descended into during discovery
IGNORED_DIRECTORIES = ("node_modules",)

DEFAULT_INTERVAL_MINUTES = 60
LOG_FILE_PREFIX = f"{PROGRAM}_"
RUNS_LOG_NAME = "runs.log"

_console: Optional[Console] = None


def get_console() -> Console:
    """Return the process-wide rich console."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def get_logger(name: str = PROGRAM) -> logging.Logger:
    """Return the program logger, or a child of it."""
    if name != PROGRAM and not name.startswith(f"{PROGRAM}."):
        name = f"{PROGRAM}.{name}"
    return logging.getLogger(name)


def check_tool_availability(cmd: str, version_flag: str = "-ver") -> bool:
    """Check whether an external command is installed and runs."""
    if shutil.which(cmd) is None:
        return False
    try:
        subprocess.run([cmd, version_flag], capture_output=True, check=True, timeout=10)
        return True
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError):
        return False


exiftool_available = check_tool_availability("exiftool", "-ver")
