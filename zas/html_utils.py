"""HTML utility functions for Zas.

Thin helpers around BeautifulSoup used by the post-processor and the embed
resolver, plus URL joining.

Functions:
    parse_html: Parse HTML text into a navigable tree.
    inner_html: Serialize the children of a node.
    splice: Replace a node with the top-level nodes of a fragment.
    join_root_url: Join a base URL with a path.
"""

from __future__ import annotations

from bs4 import BeautifulSoup, Tag

_PARSER = "html.parser"


def parse_html(text: str) -> BeautifulSoup:
    """Parse HTML text into a tree.

    The ``html.parser`` backend keeps fragments as fragments: no implicit
    ``<html>`` or ``<body>`` wrapper is added.
    """
    return BeautifulSoup(text, _PARSER)


def inner_html(node: Tag) -> str:
    """Return the serialized children of a node."""
    return node.decode_contents()


def splice(marker: Tag, fragment: Tag) -> None:
    """Replace ``marker`` with the children of ``fragment``, in order.

    When the fragment is a full document, the children of its ``<body>`` are
    used instead of the whole tree.

    Args:
        marker: Node to replace. It is removed from its tree.
        fragment: Parsed fragment whose top-level nodes are inserted.
    """
    source = fragment.body or fragment
    for child in list(source.contents):
        marker.insert_before(child.extract())
    marker.decompose()


def join_root_url(root_url: str, path: str) -> str:
    """Safely join a root URL and a path, avoiding double slashes.

    Args:
        root_url: Base URL (e.g., https://example.com/blog).
        path: Path beginning with or without a leading slash.

    Returns:
        Combined URL with proper slash handling.

    Examples:
        >>> join_root_url('https://example.com', '/about')
        'https://example.com/about'

        >>> join_root_url('https://example.com/', 'about')
        'https://example.com/about'
    """
    if not root_url:
        return path if path.startswith("/") else f"/{path}"
    base = root_url.rstrip("/")
    suffix = path if path.startswith("/") else f"/{path}"
    return f"{base}{suffix}"
