"""Protocol definitions for Zas.

These protocols describe the seams where behaviour can be swapped: content
renderers chosen by file extension, and built-in embed handlers chosen by
plugin name.
"""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from bs4 import BeautifulSoup


@runtime_checkable
class ContentRenderer(Protocol):
    """Protocol for converting rendered template output to HTML.

    Implementations handle one source type (Markdown, HTML).
    """

    @abstractmethod
    def can_render(self, path: Path) -> bool:
        """Check if this renderer can handle the given file.

        Args:
            path: Path to the source file.

        Returns:
            True if this renderer can process the file.
        """
        ...

    @abstractmethod
    def render(self, content: str) -> str:
        """Convert content to HTML.

        Args:
            content: Output of the template stage.

        Returns:
            HTML text.
        """
        ...

    @property
    @abstractmethod
    def source_type(self) -> str:
        """Return the source type identifier (e.g., 'markdown', 'html')."""
        ...


@runtime_checkable
class EmbedHandler(Protocol):
    """Protocol for in-process embed handlers.

    A handler receives the marker's ``src``, the project root and the path of
    the page being rendered, and returns the fragment to splice in.
    """

    def __call__(
        self, src: str, root: Path, source_path: Path | str
    ) -> BeautifulSoup:
        ...
