"""Render context for Zas.

Every source file is rendered with a RenderContext: the data a template sees.
Values are looked up through an override chain: the page metadata block, then
the directory metadata file, then the ``site`` section of the site config.

Key classes:
- RenderContext: Per-file data handed to templates.
- ContextBuilder: Creates a RenderContext for a relative source path.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from markupsafe import Markup

from .config import Config
from .directories import DirectoryConfigCache
from .html_utils import join_root_url


def derive_url(path: Path | str) -> str:
    """Derive the site-relative URL of a source path.

    Examples:
        >>> derive_url("docs/intro.md")
        '/docs/intro.md'
    """
    posix = Path(path).as_posix()
    return "/" if posix == "." else f"/{posix}"


@dataclass
class RenderContext:
    """Data available to templates while one file is rendered.

    Attributes:
        path: Source path relative to the project root (POSIX separators).
        url: Site-relative URL derived from path.
        config: Site configuration (shared, read-only).
        directory: Directory metadata applying to this file.
        page: Page metadata parsed from the first HTML comment.
        body: Rendered body, set once post-processing is done.
        first_title: Text of the first level-1 heading.
    """

    path: str
    url: str
    config: Config
    directory: Config = field(default_factory=Config)
    page: Config = field(default_factory=Config)
    body: Markup = field(default_factory=Markup)
    first_title: str = ""

    def resolve(self, key: str) -> Any:
        """Return the first value found for key in page, directory, then site."""
        for scope in (self.page, self.directory):
            if key in scope:
                return scope.get(key)
        return self.config.lookup(f"/site/{key}")

    def raw(self, path: str) -> Any:
        """Return any config value by slash-delimited path."""
        return self.config.lookup(path)

    @property
    def title(self) -> str:
        override = self.page.get_string("title")
        if override:
            return override
        return self.first_title or str(self.resolve("title") or "")

    @property
    def language(self) -> str:
        return str(self.resolve("language") or "")

    @property
    def full_url(self) -> str:
        return join_root_url(self.config.lookup("/site/baseurl"), self.url)

    def image_url(self, name: str) -> str:
        """Return the URL of an image under the configured image URL."""
        base = self.config.lookup("/site/imageurl")
        if not base:
            return name
        return join_root_url(base, name)

    def template_vars(self) -> dict[str, Any]:
        return {
            "zas": self,
            "body": self.body,
            "title": self.title,
            "path": self.path,
            "url": self.url,
            "full_url": self.full_url,
            "language": self.language,
            "page": self.page,
            "directory": self.directory,
            "config": self.config,
            "resolve": self.resolve,
            "raw": self.raw,
            "image_url": self.image_url,
        }


class ContextBuilder:
    """Builds a RenderContext for each source file.

    Attributes:
        config: Site configuration.
        directories: Directory metadata cache shared across the build.
    """

    def __init__(self, config: Config, directories: DirectoryConfigCache):
        self.config = config
        self.directories = directories

    def build(self, path: Path | str) -> RenderContext:
        """Create the context for a source path relative to the project root."""
        rel = Path(path)
        directory, _ = self.directories.resolve(rel)
        return RenderContext(
            path=rel.as_posix(),
            url=derive_url(rel),
            config=self.config,
            directory=directory,
        )
