import sys
from pathlib import Path

import pytest
from click.testing import CliRunner

from zas import __version__
from zas.build import BuildResult
from zas.cli import cli
from zas.errors import BuildError


def test_cli_init_scaffolds_project(tmp_path):
    runner = CliRunner()
    target = tmp_path / "mysite"
    result = runner.invoke(cli, ["init", str(target)])
    assert result.exit_code == 0
    assert (target / ".zas" / "config.yml").exists()
    assert (target / ".zas" / "layout.html").exists()
    assert (target / "index.md").exists()

    # refuses an existing project
    result = runner.invoke(cli, ["init", str(target)])
    assert result.exit_code != 0
    assert "Refusing" in result.output


def test_cli_generate_builds_scaffolded_project(monkeypatch, tmp_path):
    runner = CliRunner()
    runner.invoke(cli, ["init", str(tmp_path)])
    (tmp_path / "logo.svg").write_text("<svg/>", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(cli, ["generate"], catch_exceptions=False)
    assert result.exit_code == 0
    assert "Rendered 1 pages and copied 1 files" in result.output
    page = (tmp_path / ".zas" / "deploy" / "index.md").read_text(encoding="utf-8")
    assert "<title>Welcome</title>" in page
    assert '<html lang="en">' in page
    assert (tmp_path / ".zas" / "deploy" / "logo.svg").read_text(encoding="utf-8") == "<svg/>"


def test_cli_generate_reports_file_failures(monkeypatch, tmp_path):
    runner = CliRunner()
    runner.invoke(cli, ["init", str(tmp_path)])
    (tmp_path / "broken.html").write_text("{% if %}", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(cli, ["generate"])
    assert result.exit_code == 1
    assert "broken.html" in result.output
    assert "1 file(s) failed to render" in result.output
    assert (tmp_path / ".zas" / "deploy" / "index.md").exists()

    result = runner.invoke(cli, ["generate", "--fail-fast"])
    assert result.exit_code == 1
    assert "Build failed:" in result.output
    assert "File: broken.html" in result.output


def test_cli_generate_reports_fatal_errors(monkeypatch, tmp_path):
    runner = CliRunner()
    monkeypatch.chdir(tmp_path)

    def fake_build_site(root, fail_fast=False, deploy_override=None):
        raise BuildError(root / ".zas" / "layout.html", "layout not found")

    monkeypatch.setattr("zas.build.build_site", fake_build_site)
    result = runner.invoke(cli, ["generate"])
    assert result.exit_code == 1
    assert "File: .zas/layout.html" in result.output
    assert "layout not found" in result.output


def test_cli_generate_passes_fail_fast(monkeypatch, tmp_path):
    runner = CliRunner()
    monkeypatch.chdir(tmp_path)
    seen = {}

    def fake_build_site(root, fail_fast=False, deploy_override=None):
        seen["fail_fast"] = fail_fast
        return BuildResult(deploy_dir=root / "out")

    monkeypatch.setattr("zas.build.build_site", fake_build_site)
    result = runner.invoke(cli, ["generate", "--fail-fast"], catch_exceptions=False)
    assert result.exit_code == 0
    assert seen["fail_fast"] is True


def test_cli_serve_uses_dev_server(monkeypatch, tmp_path):
    runner = CliRunner()
    monkeypatch.chdir(tmp_path)
    called = {}

    class DummyServer:
        def __init__(self, root, http_port=None, ws_port=None):
            called["root"] = root
            called["port"] = http_port
            called["ws_port"] = ws_port

        def start(self):
            called["started"] = True

    monkeypatch.setattr("zas.server.DevServer", DummyServer)
    result = runner.invoke(
        cli, ["serve", "--port", "5050", "--ws-port", "5051"], catch_exceptions=False
    )
    assert result.exit_code == 0
    assert called == {
        "root": tmp_path,
        "port": 5050,
        "ws_port": 5051,
        "started": True,
    }


@pytest.mark.skipif(sys.platform == "win32", reason="subcommands are POSIX shell scripts")
def test_unknown_subcommand_runs_external_executable(monkeypatch, tmp_path):
    bin_dir = tmp_path / ".zas" / "bin"
    bin_dir.mkdir(parents=True)
    script = bin_dir / "zas-hello"
    script.write_text('#!/bin/sh\necho "$@" > args.txt\nexit 3\n', encoding="utf-8")
    script.chmod(0o755)
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli, ["hello", "--loud", "world"])
    assert result.exit_code == 3
    assert (tmp_path / "args.txt").read_text(encoding="utf-8").strip() == "--loud world"


def test_unknown_subcommand_without_executable(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("zas.executable_utils.shutil.which", lambda name: None)
    result = CliRunner().invoke(cli, ["nonexistent"])
    assert result.exit_code == 2
    assert "No such command" in result.output


def test_version_option():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_module_main_entrypoint():
    from zas.__main__ import main

    assert callable(main)


def test_main_invokes_cli(monkeypatch):
    import zas.cli as cli_mod

    called = {}

    def fake_cli():
        called["ran"] = True

    monkeypatch.setattr(cli_mod, "cli", fake_cli)
    cli_mod.main()
    assert called["ran"] is True


def test_scaffold_keeps_existing_files(tmp_path):
    from zas.cli import _scaffold

    (tmp_path / "index.md").write_text("# Mine", encoding="utf-8")
    _scaffold(tmp_path)
    assert (tmp_path / "index.md").read_text(encoding="utf-8") == "# Mine"
    assert Path(tmp_path / ".zas" / "config.yml").exists()
