"""Zas static site generator.

Zas walks a source tree and turns Markdown and HTML files into pages sharing
one layout. Every source file is a Jinja2 template; values come from the site
configuration, per-directory ``.zas.yml`` files and a YAML comment at the top
of each page. ``<embed>`` elements pull in other content, rendered either
in-process (Markdown) or by external plugins registered per MIME type.

The main entry point is the CLI module (``zas generate``).
"""

__all__ = ["__version__"]
__version__ = "0.2.0"
