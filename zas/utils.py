"""Utility functions for Zas.

Key functions:
    is_markdown: Check if a path is a Markdown file.
    is_html: Check if a path is an HTML file.
    is_hidden: Check if a name follows the hidden-file convention.
    ensure_clean_dir: Ensure a directory exists and is empty.
    format_error_message: Turn an exception into a short message.
"""

from __future__ import annotations

import shutil
from pathlib import Path

HIDDEN_PREFIX = "."


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown file.

    Args:
        path: Path to check.

    Returns:
        True if the file has .md extension.
    """
    return Path(path).suffix == ".md"


def is_html(path: Path) -> bool:
    """Check if a path is an HTML file.

    Args:
        path: Path to check.

    Returns:
        True if the file has .html extension.
    """
    return Path(path).suffix == ".html"


def is_hidden(name: str) -> bool:
    """Check if a file or directory name is hidden (starts with a dot)."""
    return name.startswith(HIDDEN_PREFIX)


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    If the directory exists, removes all contents. Creates the
    directory if it doesn't exist.

    Args:
        path: Directory path to clean or create.

    Raises:
        OSError: If the directory cannot be removed or created.
    """
    if path.exists():
        shutil.rmtree(str(path))
    path.mkdir(parents=True)


def format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message.

    Args:
        exc: The exception to format.

    Returns:
        A human-readable error message.
    """
    error_type = type(exc).__name__
    error_msg = str(exc)

    # Handle common Jinja2/template errors
    if error_type == "UndefinedError":
        return f"Undefined variable: {error_msg}"
    if error_type == "TypeError":
        return f"Type error: {error_msg}"
    if error_type == "AttributeError":
        return f"Attribute error: {error_msg}"

    return f"{error_type}: {error_msg}"
