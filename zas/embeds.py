"""Embed resolution for Zas.

An ``<embed src="..." type="...">`` element marks a point where external
content is spliced into a page. The ``type`` attribute is looked up in the
``mimetypes`` section of the site config to get a plugin name. Built-in
handlers are tried first by name; any other name runs the external
``zas-m-<name>`` program.

Registering another plugin name for ``text/markdown`` replaces the built-in
Markdown handling without touching the pages that embed Markdown.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from bs4 import BeautifulSoup, Tag

from .config import Config
from .errors import EmbedError
from .html_utils import parse_html, splice
from .plugins import PluginInvoker
from .protocols import EmbedHandler
from .renderers import render_markdown


def resolve_src(root: Path, src: str) -> Path:
    """Return the file an embed ``src`` points at, relative to the project root."""
    return root / src.lstrip("/")


def embed_markdown(src: str, root: Path, source_path: Path | str) -> BeautifulSoup:
    """Built-in handler: render a Markdown file into an HTML fragment."""
    target = resolve_src(root, src)
    try:
        text = target.read_text(encoding="utf-8")
    except OSError as exc:
        raise EmbedError(source_path, f"cannot read embedded file {src}: {exc}", exc) from exc
    return parse_html(render_markdown(text))


BUILTIN_HANDLERS: dict[str, EmbedHandler] = {
    "markdown": embed_markdown,
}


class EmbedResolver:
    """Replaces <embed> markers with the content they reference.

    Attributes:
        mimetypes: MIME type to plugin name mapping.
        root: Project root; embed sources are relative to it.
        invoker: Runs external MIME type plugins.
        handlers: Built-in handlers by plugin name.
    """

    def __init__(
        self,
        config: Config,
        root: Path,
        invoker: PluginInvoker | None = None,
        handlers: Mapping[str, EmbedHandler] | None = None,
    ):
        self.mimetypes = config.section("mimetypes")
        self.root = root
        self.invoker = invoker or PluginInvoker(root)
        self.handlers: dict[str, EmbedHandler] = dict(
            BUILTIN_HANDLERS if handlers is None else handlers
        )

    def register(self, name: str, handler: EmbedHandler) -> None:
        """Register a built-in handler under a plugin name."""
        self.handlers[name] = handler

    def plugin_for(self, mimetype: str) -> str:
        """Return the plugin name registered for a MIME type, or ''."""
        return self.mimetypes.get_string(mimetype)

    def resolve(self, soup: BeautifulSoup, source_path: Path | str) -> int:
        """Resolve every marker in document order.

        Markers are collected before any is replaced, so content spliced in
        is never scanned again. The first failure stops resolution; later
        markers are left in place.

        Returns:
            Number of markers resolved.

        Raises:
            EmbedError: If a marker cannot be resolved.
        """
        markers = soup.find_all("embed")
        for marker in markers:
            fragment = self.fetch(marker, source_path)
            splice(marker, fragment)
        return len(markers)

    def fetch(self, marker: Tag, source_path: Path | str) -> BeautifulSoup:
        """Produce the fragment that replaces one marker."""
        src = marker.get("src")
        mimetype = marker.get("type")
        if not src:
            raise EmbedError(source_path, "<embed> without a src attribute")
        if not mimetype:
            raise EmbedError(source_path, f"<embed src=\"{src}\"> without a type attribute")
        plugin = self.plugin_for(mimetype)
        if not plugin:
            raise EmbedError(
                source_path, f"no plugin registered for MIME type '{mimetype}' ({src})"
            )
        handler = self.handlers.get(plugin)
        if handler is not None:
            return handler(src, self.root, source_path)
        return self.invoker.invoke(plugin, src, source_path)
