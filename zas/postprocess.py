"""HTML post-processing for Zas.

After a source file is rendered, its HTML is parsed into a tree and cleaned
up before the layout is applied:

1. Paragraphs without any direct, non-blank text are unwrapped.
2. The first <h1> gives the detected title.
3. The first comment in the document is read as a YAML page metadata block.
4. The contents of <body> (or the whole fragment) become the page body.

Embed resolution runs between steps 3 and 4, so embedded content is never
cleaned or scanned for metadata.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from bs4 import BeautifulSoup, Comment, NavigableString, Tag
from bs4.element import PreformattedString

from .config import Config, load_yaml_mapping
from .errors import ConfigError
from .html_utils import inner_html


@dataclass
class PostProcessed:
    """Result of post-processing one document.

    Attributes:
        title: Text of the first <h1>, empty when there is none.
        page: Page metadata, empty when absent or malformed.
        warning: Why the page metadata was ignored, if it was.
    """

    title: str = ""
    page: Config = field(default_factory=Config)
    warning: str | None = None


def _has_text(tag: Tag) -> bool:
    for child in tag.children:
        # Comments, CDATA and doctypes are strings too but not text nodes.
        if isinstance(child, PreformattedString):
            continue
        if isinstance(child, NavigableString) and child.strip():
            return True
    return False


def clean_paragraphs(soup: BeautifulSoup) -> int:
    """Unwrap every <p> that has no direct non-blank text child.

    The children of an unwrapped paragraph take its place, in order.
    Running this twice changes nothing the second time.

    Returns:
        Number of paragraphs unwrapped.
    """
    paragraphs = soup.find_all("p")
    unwrapped = 0
    for paragraph in paragraphs:
        if not _has_text(paragraph):
            paragraph.unwrap()
            unwrapped += 1
    return unwrapped


def extract_title(soup: BeautifulSoup) -> str:
    """Return the text of the first level-1 heading, or an empty string."""
    heading = soup.find("h1")
    if heading is None:
        return ""
    return " ".join(heading.get_text().split())


def extract_page_config(soup: BeautifulSoup, path: Path | str) -> Config:
    """Parse the first comment in the document as page metadata.

    Raises:
        ConfigError: If the comment is not a YAML mapping.
    """
    comment = soup.find(string=lambda text: isinstance(text, Comment))
    if comment is None:
        return Config()
    return Config(load_yaml_mapping(str(comment), path))


def extract_body(soup: BeautifulSoup) -> str:
    """Return the inner HTML of <body>, or the whole fragment."""
    body = soup.find("body")
    if body is None:
        return soup.decode()
    return inner_html(body)


def process_document(soup: BeautifulSoup, path: Path | str) -> PostProcessed:
    """Clean the tree and extract title and page metadata.

    A malformed metadata comment is not an error: the page gets empty
    metadata and the reason is returned as a warning.
    """
    clean_paragraphs(soup)
    result = PostProcessed(title=extract_title(soup))
    try:
        result.page = extract_page_config(soup, path)
    except ConfigError as exc:
        result.warning = exc.message
    return result
