"""MIME type plugin invocation for Zas.

A MIME type plugin is an external program named ``zas-m-<name>``: the
``zas-`` prefix shared with external subcommands, then the ``m-`` marker. It
is run with the path of the embedded file as its only argument and must write
an HTML fragment to standard output and exit with status 0. Its standard
error goes straight to the build's own standard error.

Standard output is drained by a reader thread started right after the process,
while the main thread waits for the process to exit. Reading only after the
exit would deadlock as soon as a plugin writes more than the pipe buffer holds.
There is no timeout: a plugin that never exits blocks the build.
"""

from __future__ import annotations

import queue
import subprocess
import threading
from pathlib import Path
from typing import IO

from bs4 import BeautifulSoup

from .config import MIME_PLUGIN_MARKER, PLUGIN_PREFIX
from .errors import PluginError
from .executable_utils import find_executable
from .html_utils import parse_html


def plugin_executable(name: str) -> str:
    """Return the executable name of a MIME type plugin.

    Examples:
        >>> plugin_executable("graphviz")
        'zas-m-graphviz'
    """
    return f"{PLUGIN_PREFIX}{MIME_PLUGIN_MARKER}{name}"


def _drain(stream: IO[bytes], handoff: queue.Queue) -> None:
    """Read a stream to its end and hand over (data, error) exactly once."""
    try:
        data = stream.read()
    except OSError as exc:
        handoff.put((b"", exc))
    else:
        handoff.put((data, None))
    finally:
        stream.close()


class PluginInvoker:
    """Runs MIME type plugins and parses their output.

    Attributes:
        root: Project root; plugins run with it as working directory.
    """

    def __init__(self, root: Path):
        self.root = root

    def invoke(self, name: str, src: str, source_path: Path | str) -> BeautifulSoup:
        """Run plugin ``name`` on ``src`` and parse its output as HTML.

        Args:
            name: Registered plugin name, without prefix.
            src: Path of the embedded file, passed as the only argument.
            source_path: Page being rendered, for error reporting.

        Returns:
            Parsed HTML fragment.

        Raises:
            PluginError: If the plugin is missing, fails, or writes output
                that cannot be decoded.
        """
        output = self.run(name, src, source_path)
        try:
            text = output.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise PluginError(
                name, source_path, f"wrote output for {src} that is not valid UTF-8", exc
            ) from exc
        return parse_html(text)

    def run(self, name: str, src: str, source_path: Path | str) -> bytes:
        """Run plugin ``name`` on ``src`` and return its raw standard output."""
        executable = find_executable(plugin_executable(name), self.root)
        if executable is None:
            raise PluginError(
                name, source_path, f"not found (no '{plugin_executable(name)}' executable)"
            )
        try:
            process = subprocess.Popen(
                [executable, src],
                cwd=str(self.root),
                stdout=subprocess.PIPE,
            )
        except OSError as exc:
            raise PluginError(name, source_path, f"could not be started: {exc}", exc) from exc

        handoff: queue.Queue = queue.Queue(maxsize=1)
        reader = threading.Thread(
            target=_drain, args=(process.stdout, handoff), daemon=True
        )
        reader.start()
        returncode = process.wait()
        output, error = handoff.get()
        reader.join()

        if returncode != 0:
            raise PluginError(
                name, source_path, f"exited with status {returncode} for {src}"
            )
        if error is not None:
            raise PluginError(
                name, source_path, f"output could not be read: {error}", error
            )
        return output
