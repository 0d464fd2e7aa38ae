"""Exception types for Zas.

Errors fall into two classes:
- Build-fatal (ConfigError, BuildError): the whole build stops.
- File-scoped (RenderError and subclasses): only the current file fails,
  the walk continues with the next entry.
"""

from __future__ import annotations

from pathlib import Path


class ZasError(Exception):
    """Base class for all Zas errors."""


class _PathError(ZasError):
    """Error with file context.

    Attributes:
        source_path: Path to the file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught, if any.
    """

    def __init__(
        self,
        source_path: Path | str,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = Path(source_path)
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


class ConfigError(_PathError):
    """Malformed configuration file or missing required key."""


class BuildError(_PathError):
    """Error that aborts the entire build."""


class RenderError(_PathError):
    """Error that aborts the render of a single file."""


class EmbedError(RenderError):
    """An <embed> marker could not be resolved."""


class PluginError(EmbedError):
    """A MIME type plugin failed.

    Attributes:
        plugin: Registered plugin name (without executable prefix).
    """

    def __init__(
        self,
        plugin: str,
        source_path: Path | str,
        message: str,
        original_error: Exception | None = None,
    ):
        self.plugin = plugin
        super().__init__(
            source_path, f"plugin '{plugin}' {message}", original_error
        )
