from pathlib import Path

import pytest

from zas.config import Config
from zas.context import RenderContext
from zas.errors import BuildError, RenderError
from zas.protocols import ContentRenderer
from zas.renderers import (
    HTMLRenderer,
    MarkdownRenderer,
    RendererRegistry,
    TemplateRenderer,
    render_markdown,
)


def make_context(path="index.md") -> RenderContext:
    return RenderContext(
        path=path,
        url=f"/{path}",
        config=Config({"site": {"title": "Site", "language": "en"}}),
    )


def test_markdown_headings_get_unique_ids():
    html = render_markdown("# Intro\n\n## Intro\n\n## Hello, World!")
    assert '<h1 id="intro">Intro</h1>' in html
    assert '<h2 id="intro-1">Intro</h2>' in html
    assert '<h2 id="hello-world">Hello, World!</h2>' in html


def test_markdown_code_blocks():
    highlighted = render_markdown("```python\nprint('hi')\n```\n")
    assert 'class="highlight"' in highlighted

    unknown = render_markdown("```nosuchlang\na < b\n```\n")
    assert '<code class="language-nosuchlang">a &lt; b' in unknown

    plain = render_markdown("    x & y\n")
    assert "<pre><code>x &amp; y" in plain


def test_markdown_passes_comments_and_embeds_through():
    html = render_markdown(
        "<!-- title: Page -->\n\nText\n\n<embed src=\"a.md\" type=\"text/markdown\">\n"
    )
    assert "<!-- title: Page -->" in html
    assert '<embed src="a.md" type="text/markdown">' in html


def test_registry_selects_by_extension():
    registry = RendererRegistry()
    assert isinstance(registry.get_renderer(Path("a.md")), MarkdownRenderer)
    assert isinstance(registry.get_renderer(Path("a.html")), HTMLRenderer)
    assert registry.get_renderer(Path("a.txt")) is None
    assert HTMLRenderer().render("<p>x</p>") == "<p>x</p>"

    class TextRenderer:
        source_type = "text"

        def can_render(self, path):
            return path.suffix == ".txt"

        def render(self, content):
            return f"<pre>{content}</pre>"

    text = TextRenderer()
    assert isinstance(text, ContentRenderer)
    registry.register(text)
    assert registry.get_renderer(Path("a.txt")) is text


def test_template_renders_against_context(tmp_path):
    renderer = TemplateRenderer(tmp_path)
    out = renderer.render("{{ title }} {{ url }} {{ '<b>' }}", make_context())
    assert out == "Site /index.md &lt;b&gt;"


def test_template_errors_name_the_source(tmp_path):
    renderer = TemplateRenderer(tmp_path)
    with pytest.raises(RenderError) as excinfo:
        renderer.render("line\n{% endif %}", make_context("docs/a.md"))
    assert excinfo.value.source_path == Path("docs/a.md")
    assert "line 2" in excinfo.value.message

    with pytest.raises(RenderError) as excinfo:
        renderer.render("{{ missing.attr }}", make_context())
    assert "Undefined variable" in excinfo.value.message

    with pytest.raises(RenderError) as excinfo:
        renderer.render('{% include "nope.html" %}', make_context())
    assert "nope.html" in excinfo.value.message


def test_layout_loading(tmp_path):
    (tmp_path / ".zas").mkdir()
    (tmp_path / ".zas" / "base.html").write_text("[{{ body }}]", encoding="utf-8")
    (tmp_path / ".zas" / "layout.html").write_text(
        '{% extends "base.html" %}', encoding="utf-8"
    )
    renderer = TemplateRenderer(tmp_path)
    layout = renderer.load_layout(tmp_path / ".zas" / "layout.html")
    context = make_context()
    context.body = "<p>hi</p>"
    assert renderer.render_layout(layout, context) == "[&lt;p&gt;hi&lt;/p&gt;]"

    with pytest.raises(BuildError) as excinfo:
        renderer.load_layout(tmp_path / ".zas" / "missing.html")
    assert excinfo.value.message == "layout not found"
