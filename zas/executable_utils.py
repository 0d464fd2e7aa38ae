"""Executable discovery utilities for Zas.

Subcommands and MIME type plugins are separate programs named with the
``zas-`` prefix. They are looked up on the system PATH first, then in the
project's ``.zas/bin`` directory.

Functions:
    find_executable: Locate an executable in PATH or .zas/bin.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path

from .config import CONFIG_DIR

LOCAL_BIN_DIR = f"{CONFIG_DIR}/bin"


def find_executable(name: str, project_root: Path | None = None) -> str | None:
    """Find an executable in PATH or the project's local bin directory.

    Args:
        name: Name of the executable to find (e.g., 'zas-m-graphviz').
        project_root: Optional project root directory to search for
            project-local plugins.

    Returns:
        Full path to the executable if found, None otherwise.

    Examples:
        >>> find_executable('zas-m-dot')  # System PATH lookup
        '/usr/local/bin/zas-m-dot'

        >>> find_executable('zas-m-dot', Path('/my/site'))  # With local lookup
        '/my/site/.zas/bin/zas-m-dot'
    """
    found = shutil.which(name)
    if found:
        return found

    if project_root is not None:
        local = project_root / LOCAL_BIN_DIR / name
        if local.is_file() and os.access(local, os.X_OK):
            return str(local)

    return None
