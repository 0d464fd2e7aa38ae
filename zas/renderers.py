"""Content renderers for Zas.

Every source file goes through two stages: its raw text is executed as a
Jinja template against the file's RenderContext, then the result is converted
to HTML by the content renderer registered for its extension.

Key classes:
- TemplateRenderer: Compiles and executes source files and the layout with Jinja2.
- MarkdownRenderer: Renders Markdown to HTML with syntax highlighting.
- HTMLRenderer: Passes through HTML content.
- RendererRegistry: Selects the content renderer for a path.
"""

from __future__ import annotations

import re
from pathlib import Path

from jinja2 import (
    Environment,
    FileSystemLoader,
    Template,
    TemplateNotFound,
    TemplateSyntaxError,
    select_autoescape,
)
import mistune
from markupsafe import escape
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .context import RenderContext
from .errors import BuildError, RenderError
from .protocols import ContentRenderer
from .utils import format_error_message, is_html, is_markdown


def _generate_heading_id(text: str) -> str:
    """Generate a URL-friendly ID from heading text.

    Args:
        text: The heading text.

    Returns:
        URL-friendly slug suitable for anchor links.
    """
    slug = re.sub(r"<[^>]+>", "", text).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-")


class _HighlightRenderer(mistune.HTMLRenderer):
    """Markdown renderer with heading anchors and syntax highlighting.

    Raw HTML in the source (comments, <embed> markers) passes through.
    """

    def __init__(self):
        super().__init__(escape=False)
        self._heading_id_counts: dict[str, int] = {}

    def heading(self, text: str, level: int, **attrs) -> str:
        """Render a heading with an auto-generated, de-duplicated ID."""
        base_id = _generate_heading_id(text)

        if base_id in self._heading_id_counts:
            self._heading_id_counts[base_id] += 1
            heading_id = f"{base_id}-{self._heading_id_counts[base_id]}"
        else:
            self._heading_id_counts[base_id] = 0
            heading_id = base_id

        if not heading_id:
            return f"<h{level}>{text}</h{level}>\n"
        return f'<h{level} id="{heading_id}">{text}</h{level}>\n'

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render a code block with Pygments syntax highlighting.

        Args:
            code: The code content.
            info: Language identifier (e.g., 'python', 'javascript').

        Returns:
            HTML string with highlighted code.
        """
        if info:
            try:
                lexer = get_lexer_by_name(info.split()[0], stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                formatter = HtmlFormatter(nowrap=False, cssclass="highlight")
                return highlight(code, lexer, formatter)
        escaped = escape(code)
        lang_class = f' class="language-{info.split()[0]}"' if info else ""
        return f"<pre><code{lang_class}>{escaped}</code></pre>\n"


def render_markdown(text: str) -> str:
    """Convert Markdown text to an HTML fragment."""
    markdown = mistune.create_markdown(
        renderer=_HighlightRenderer(),
        plugins=["strikethrough", "footnotes", "table", "url"],
    )
    return markdown(text)


class MarkdownRenderer:
    """Renders Markdown content to HTML."""

    @property
    def source_type(self) -> str:
        return "markdown"

    def can_render(self, path: Path) -> bool:
        return is_markdown(path)

    def render(self, content: str) -> str:
        return render_markdown(content)


class HTMLRenderer:
    """Passes through HTML content unchanged."""

    @property
    def source_type(self) -> str:
        return "html"

    def can_render(self, path: Path) -> bool:
        return is_html(path)

    def render(self, content: str) -> str:
        return content


class RendererRegistry:
    """Registry for content renderers.

    The first registered renderer that accepts a path wins.
    """

    def __init__(self):
        self._renderers: list[ContentRenderer] = []
        self.register(MarkdownRenderer())
        self.register(HTMLRenderer())

    def register(self, renderer: ContentRenderer) -> None:
        """Register a new renderer.

        Args:
            renderer: A ContentRenderer implementation.
        """
        self._renderers.append(renderer)

    def get_renderer(self, path: Path) -> ContentRenderer | None:
        """Get the appropriate renderer for a file, or None."""
        for renderer in self._renderers:
            if renderer.can_render(path):
                return renderer
        return None


default_renderer_registry = RendererRegistry()


class TemplateRenderer:
    """Template engine for source files and the layout, using Jinja2.

    Source files may include or extend other files relative to the project
    root.

    Attributes:
        root: Project root directory.
        env: Jinja2 environment shared by all source files.
    """

    def __init__(self, root: Path):
        self.root = root
        self.env = Environment(
            loader=FileSystemLoader(str(root)),
            autoescape=select_autoescape(["html", "xml"]),
            keep_trailing_newline=True,
        )

    def compile(self, source: str, path: Path | str) -> Template:
        """Compile the text of a source file.

        Raises:
            RenderError: If the source is not a valid template.
        """
        try:
            return self.env.from_string(source)
        except TemplateSyntaxError as exc:
            raise RenderError(
                path,
                f"Template syntax error on line {exc.lineno}: {exc.message}",
                exc,
            ) from exc

    def render(self, source: str, context: RenderContext) -> str:
        """Compile and execute a source file against its context.

        Raises:
            RenderError: If compilation or execution fails.
        """
        template = self.compile(source, context.path)
        return self._execute(template, context)

    def load_layout(self, layout_path: Path) -> Template:
        """Compile the site layout.

        Raises:
            BuildError: If the layout is missing or invalid.
        """
        env = self.env.overlay(
            loader=FileSystemLoader([str(layout_path.parent), str(self.root)])
        )
        try:
            return env.get_template(layout_path.name)
        except TemplateNotFound as exc:
            raise BuildError(layout_path, "layout not found", exc) from exc
        except TemplateSyntaxError as exc:
            raise BuildError(
                layout_path,
                f"Template syntax error on line {exc.lineno}: {exc.message}",
                exc,
            ) from exc

    def render_layout(self, layout: Template, context: RenderContext) -> str:
        """Render the layout around a processed page.

        Raises:
            RenderError: If execution fails.
        """
        return self._execute(layout, context)

    def _execute(self, template: Template, context: RenderContext) -> str:
        try:
            return template.render(**context.template_vars())
        except TemplateSyntaxError as exc:
            raise RenderError(
                context.path,
                f"Template syntax error in {exc.name or 'include'} on line {exc.lineno}: {exc.message}",
                exc,
            ) from exc
        except Exception as exc:
            raise RenderError(context.path, format_error_message(exc), exc) from exc
