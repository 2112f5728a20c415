"""Executable discovery utilities for Badware.

The port reclaimer shells out to ``lsof`` / ``ss``. Those usually live in
``/usr/sbin`` or ``/sbin``, which are often missing from an unprivileged
user's PATH, so lookups fall back to the system binary directories.

Functions:
    find_executable: Locate an executable in PATH or the system sbin directories.
"""

from __future__ import annotations

import os
import shutil
from collections.abc import Iterable
from pathlib import Path

SYSTEM_BIN_DIRS = (
    Path("/usr/sbin"),
    Path("/sbin"),
    Path("/usr/bin"),
    Path("/bin"),
)


def find_executable(
    name: str, extra_dirs: Iterable[Path] = SYSTEM_BIN_DIRS
) -> str | None:
    """Find an executable in PATH or a list of fallback directories.

    Args:
        name: Name of the executable to find (e.g., 'lsof', 'ss').
        extra_dirs: Directories searched when PATH has no match.

    Returns:
        Full path to the executable if found, None otherwise.

    Examples:
        >>> find_executable('lsof')
        '/usr/bin/lsof'
    """
    found = shutil.which(name)
    if found:
        return found

    for directory in extra_dirs:
        candidate = directory / name
        if candidate.is_file() and os.access(candidate, os.X_OK):
            return str(candidate)

    return None
