from pathlib import Path

from zas.config import Config
from zas.context import ContextBuilder, RenderContext, derive_url
from zas.directories import DirectoryConfigCache


def site_config() -> Config:
    return Config(
        {
            "site": {
                "baseurl": "https://example.com/",
                "imageurl": "https://img.example.com",
                "language": "en",
                "title": "Site Title",
                "author": "Site Author",
            },
            "zas": {"deploy": "public"},
        }
    )


def test_derive_url():
    assert derive_url("index.md") == "/index.md"
    assert derive_url(Path("docs") / "intro.html") == "/docs/intro.html"


def test_resolve_precedence_page_directory_site():
    context = RenderContext(
        path="docs/a.md",
        url="/docs/a.md",
        config=site_config(),
        directory=Config({"author": "Dir Author", "language": "fr"}),
        page=Config({"language": "de"}),
    )
    assert context.resolve("language") == "de"
    assert context.resolve("author") == "Dir Author"
    assert context.resolve("title") == "Site Title"
    assert context.resolve("unknown") == ""
    assert context.language == "de"


def test_raw_bypasses_override_chain():
    context = RenderContext(
        path="a.md",
        url="/a.md",
        config=site_config(),
        page=Config({"language": "de"}),
    )
    assert context.raw("/site/language") == "en"
    assert context.raw("/zas/deploy") == "public"
    assert context.raw("/nope") == ""


def test_title_prefers_page_override_then_heading():
    config = site_config()
    context = RenderContext(path="a.md", url="/a.md", config=config)
    assert context.title == "Site Title"

    context.first_title = "Detected"
    assert context.title == "Detected"

    context.directory = Config({"title": "Directory"})
    assert context.title == "Detected"

    context.page = Config({"title": "Custom"})
    assert context.title == "Custom"


def test_urls_and_template_vars():
    context = RenderContext(path="docs/a.md", url="/docs/a.md", config=site_config())
    assert context.full_url == "https://example.com/docs/a.md"
    assert context.image_url("logo.png") == "https://img.example.com/logo.png"

    variables = context.template_vars()
    assert variables["zas"] is context
    assert variables["path"] == "docs/a.md"
    assert variables["url"] == "/docs/a.md"
    assert variables["resolve"]("author") == "Site Author"
    assert variables["raw"]("/site/language") == "en"


def test_builder_attaches_directory_metadata(tmp_path):
    (tmp_path / "docs").mkdir()
    (tmp_path / "docs" / ".zas.yml").write_text("author: Docs Team\n", encoding="utf-8")
    builder = ContextBuilder(site_config(), DirectoryConfigCache(tmp_path))

    context = builder.build(Path("docs") / "guide.md")
    assert context.path == "docs/guide.md"
    assert context.url == "/docs/guide.md"
    assert context.resolve("author") == "Docs Team"
    assert context.page == Config()

    top = builder.build("index.md")
    assert top.resolve("author") == "Site Author"
