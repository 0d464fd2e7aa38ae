"""Source tree walking for Zas.

The walk is lazy, single pass and top-down: a directory is always yielded
before its contents, so its counterpart in the deployment tree exists before
any file is written into it. Hidden entries (names starting with a dot) are
skipped along with everything under them.
"""

from __future__ import annotations

import enum
import os
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

from .errors import BuildError
from .utils import is_hidden, is_html, is_markdown


class EntryKind(enum.Enum):
    DIRECTORY = "directory"
    MARKDOWN = "markdown"
    HTML = "html"
    OTHER = "other"


@dataclass(frozen=True)
class Entry:
    """One filesystem entry of the source tree.

    Attributes:
        path: Path relative to the walk root.
        kind: How the entry is handled.
    """

    path: Path
    kind: EntryKind


def classify(path: Path, is_dir: bool = False) -> EntryKind:
    """Classify an entry by type and extension."""
    if is_dir:
        return EntryKind.DIRECTORY
    if is_markdown(path):
        return EntryKind.MARKDOWN
    if is_html(path):
        return EntryKind.HTML
    return EntryKind.OTHER


def _raise(error: OSError) -> None:
    raise BuildError(error.filename or ".", error.strerror or str(error), error)


def iter_entries(root: Path, exclude: Iterable[Path] = ()) -> Iterator[Entry]:
    """Yield the entries under root in sorted, top-down order.

    Args:
        root: Directory to walk. The root itself is not yielded.
        exclude: Absolute directories to skip with their subtrees.

    Raises:
        BuildError: On any filesystem error during the walk.
    """
    excluded = {Path(p).resolve() for p in exclude}
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
        current = Path(dirpath)
        # Pruning dirnames in place keeps os.walk out of skipped subtrees.
        dirnames[:] = sorted(
            name
            for name in dirnames
            if not is_hidden(name) and (current / name).resolve() not in excluded
        )
        rel_dir = current.relative_to(root)
        for name in dirnames:
            yield Entry(rel_dir / name, EntryKind.DIRECTORY)
        for name in sorted(filenames):
            if is_hidden(name):
                continue
            rel = rel_dir / name
            yield Entry(rel, classify(rel))
