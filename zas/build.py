"""Site building functionality for Zas.

This module contains the core logic for building a deployable site from a
source tree. It loads configuration, walks the tree, renders Markdown and
HTML files through the layout and copies everything else verbatim.

Per file, the pipeline is:
    template -> Markdown (for .md) -> parse -> paragraph cleanup
    -> title and page metadata -> embed resolution -> body -> layout

Failures of a single file are reported and skipped; the walk continues.
Configuration, layout and filesystem failures abort the whole build.

Key objects:
- Generator: Runs one build.
- build_site: Main function to build the entire site.
- BuildResult: Summary of a build.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path

import click
from jinja2 import Template
from markupsafe import Markup

from .config import Config, load_config
from .context import ContextBuilder, RenderContext
from .directories import DirectoryConfigCache
from .embeds import EmbedResolver
from .errors import BuildError, RenderError
from .html_utils import parse_html
from .postprocess import extract_body, process_document
from .renderers import RendererRegistry, TemplateRenderer, default_renderer_registry
from .utils import ensure_clean_dir, format_error_message
from .walker import Entry, EntryKind, iter_entries

DIR_MODE = 0o755


@dataclass
class BuildWarning:
    """Non-fatal problem found while rendering a file."""

    path: Path
    message: str


@dataclass
class BuildResult:
    """Result of a site build.

    Attributes:
        deploy_dir: Directory the site was written to.
        rendered: Source paths rendered through the layout.
        copied: Source paths copied verbatim.
        failures: File-scoped errors; those files were not written.
        warnings: Non-fatal problems.
    """

    deploy_dir: Path
    rendered: list[Path] = field(default_factory=list)
    copied: list[Path] = field(default_factory=list)
    failures: list[RenderError] = field(default_factory=list)
    warnings: list[BuildWarning] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def check_deploy_dir(project_root: Path, deploy_dir: Path) -> None:
    """Refuse a deployment directory that would take the project with it.

    The deployment directory is removed before every build, so it must not
    be the project root or one of its parents (``.``, an empty value, ``..``).

    Raises:
        BuildError: If deploy_dir contains the project root.
    """
    root = project_root.resolve()
    target = deploy_dir.resolve()
    if target == root or target in root.parents:
        raise BuildError(
            deploy_dir,
            "deployment directory contains the project and cannot be replaced",
        )


class Generator:
    """Builds the deployment tree for one project.

    Attributes:
        project_root: Root of the source tree.
        config: Site configuration.
        deploy_dir: Absolute deployment directory.
        fail_fast: Turn the first file-scoped error into a build-fatal one.
    """

    def __init__(
        self,
        project_root: Path,
        config: Config,
        deploy_dir: Path | None = None,
        fail_fast: bool = False,
        renderer_registry: RendererRegistry | None = None,
        embed_resolver: EmbedResolver | None = None,
    ):
        self.project_root = project_root
        self.config = config
        self.deploy_dir = deploy_dir or (project_root / config.zas("deploy"))
        self.fail_fast = fail_fast
        self.templates = TemplateRenderer(project_root)
        self.renderer_registry = renderer_registry or default_renderer_registry
        self.directories = DirectoryConfigCache(project_root)
        self.contexts = ContextBuilder(config, self.directories)
        self.embeds = embed_resolver or EmbedResolver(config, project_root)
        self.layout: Template | None = None
        self.result = BuildResult(deploy_dir=self.deploy_dir)

    def deploy_path(self, rel: Path) -> Path:
        """Return the deployment path for a source path."""
        return self.deploy_dir / rel

    def run(self) -> BuildResult:
        """Run the build.

        Raises:
            BuildError: If the build cannot complete.
            ConfigError: If a configuration file is malformed.
        """
        self.layout = self.templates.load_layout(
            self.project_root / self.config.zas("layout")
        )
        self.prepare_deploy_dir()
        excluded = [self.deploy_dir, self.project_root / self.config.zas("deploy")]
        for entry in iter_entries(self.project_root, exclude=excluded):
            self.dispatch(entry)
        return self.result

    def prepare_deploy_dir(self) -> None:
        """Remove any previous deployment and recreate it empty."""
        check_deploy_dir(self.project_root, self.deploy_dir)
        try:
            ensure_clean_dir(self.deploy_dir)
        except OSError as exc:
            raise BuildError(
                self.deploy_dir, f"cannot create deployment directory: {exc}", exc
            ) from exc

    def dispatch(self, entry: Entry) -> None:
        """Handle one entry of the source tree."""
        if entry.kind is EntryKind.DIRECTORY:
            self._filesystem(self.deploy_path(entry.path).mkdir, entry.path, mode=DIR_MODE)
        elif entry.kind is EntryKind.OTHER:
            self.copy_file(entry.path)
        else:
            try:
                rendered = self.render_file(entry.path)
            except RenderError as exc:
                if self.fail_fast:
                    raise BuildError(exc.source_path, exc.message, exc) from exc
                self._report_failure(exc)
                return
            self._write(entry.path, rendered)
            self.result.rendered.append(entry.path)

    def copy_file(self, rel: Path) -> None:
        """Copy a file byte for byte into the deployment tree."""
        self._filesystem(
            shutil.copyfile, rel, self.project_root / rel, self.deploy_path(rel)
        )
        self.result.copied.append(rel)

    def render_file(self, rel: Path) -> str:
        """Render one Markdown or HTML source file to a full page.

        Raises:
            RenderError: If this file cannot be rendered.
            ConfigError: If a directory metadata file is malformed.
        """
        try:
            source = (self.project_root / rel).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise RenderError(rel, format_error_message(exc), exc) from exc

        context = self.contexts.build(rel)
        processed = self.templates.render(source, context)
        renderer = self.renderer_registry.get_renderer(rel)
        if renderer is not None:
            processed = renderer.render(processed)
        self._post_process(processed, context)
        return self.templates.render_layout(self.layout, context)

    def _post_process(self, html: str, context: RenderContext) -> None:
        soup = parse_html(html)
        document = process_document(soup, context.path)
        if document.warning:
            self._report_warning(Path(context.path), document.warning)
        context.page = document.page
        context.first_title = document.title
        self.embeds.resolve(soup, context.path)
        context.body = Markup(extract_body(soup))

    def _write(self, rel: Path, rendered: str) -> None:
        target = self.deploy_path(rel)
        self._filesystem(target.write_text, rel, rendered, encoding="utf-8")

    def _filesystem(self, operation, rel: Path, *args, **kwargs):
        try:
            return operation(*args, **kwargs)
        except OSError as exc:
            raise BuildError(rel, format_error_message(exc), exc) from exc

    def _report_warning(self, path: Path, message: str) -> None:
        self.result.warnings.append(BuildWarning(path, message))
        click.echo(
            click.style(f"Warning: {path}: ignoring page metadata: {message}", fg="yellow"),
            err=True,
        )

    def _report_failure(self, exc: RenderError) -> None:
        self.result.failures.append(exc)
        click.echo(click.style(f"Failed: {exc.source_path}", fg="red", bold=True), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)


def build_site(
    project_root: Path,
    fail_fast: bool = False,
    deploy_override: Path | None = None,
) -> BuildResult:
    """Build the entire site.

    Args:
        project_root: Root directory of the project.
        fail_fast: Abort on the first file that fails to render.
        deploy_override: Optional path to write the build output instead of
            the configured deployment path.

    Returns:
        BuildResult with rendered, copied and failed files.
    """
    config = load_config(project_root)
    generator = Generator(
        project_root, config, deploy_dir=deploy_override, fail_fast=fail_fast
    )
    return generator.run()
