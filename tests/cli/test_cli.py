from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterator, List

import pytest
from typer.testing import CliRunner

from devprops import __version__
from devprops.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolate(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    monkeypatch.delenv("DEVPROPS_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("devprops.config.DEFAULT_CONFIG_DIR_UNIX", tmp_path / "home-config")
    yield
    # The CLI installs root handlers bound to the runner's streams
    root = logging.getLogger()
    for h in [h for h in root.handlers if type(h) in (logging.StreamHandler, RotatingFileHandler)]:
        root.removeHandler(h)
        h.close()


def invoke(tmp_path: Path, args: List[str]):
    return runner.invoke(app, ["--base-dir", str(tmp_path), *args])


def test_version(tmp_path: Path) -> None:
    result = invoke(tmp_path, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_logs_dir_created(tmp_path: Path) -> None:
    invoke(tmp_path, ["version"])
    assert (tmp_path / "logs" / "devprops.log").exists()


def test_live_list_simulated(tmp_path: Path) -> None:
    overlay = tmp_path / "props.json"
    overlay.write_text(json.dumps({"ro.product.model": "Unit Phone"}), encoding="utf-8")
    result = invoke(tmp_path, ["live", "list", "--simulate", "--props", str(overlay)])
    assert result.exit_code == 0
    assert "ro.product.model=Unit Phone" in result.stdout


def test_live_get_simulated(tmp_path: Path) -> None:
    result = invoke(tmp_path, ["live", "get", "ro.build.version.sdk", "-s"])
    assert result.exit_code == 0
    assert result.stdout.strip().endswith("34")


def test_live_get_missing(tmp_path: Path) -> None:
    result = invoke(tmp_path, ["live", "get", "does.not.exist", "-s"])
    assert result.exit_code == 1


def test_live_set_simulated(tmp_path: Path) -> None:
    result = invoke(tmp_path, ["live", "set", "debug.flag", "1", "-s"])
    assert result.exit_code == 0


def test_file_commands(tmp_path: Path) -> None:
    prop = tmp_path / "build.prop"
    prop.write_text("# header\nro.a=1\nro.b=2\n", encoding="utf-8")

    result = invoke(tmp_path, ["file", "list"])
    assert result.exit_code == 0
    assert "ro.a=1" in result.stdout and "ro.b=2" in result.stdout

    assert invoke(tmp_path, ["file", "set", "ro.a", "9"]).exit_code == 0
    assert invoke(tmp_path, ["file", "set", "ro.c", "3"]).exit_code == 0
    assert prop.read_text(encoding="utf-8") == "# header\nro.a=9\nro.b=2\nro.c=3\n"

    result = invoke(tmp_path, ["file", "get", "ro.c"])
    assert result.exit_code == 0
    assert result.stdout.strip().endswith("3")

    assert invoke(tmp_path, ["file", "remove", "ro.b"]).exit_code == 0
    assert prop.read_text(encoding="utf-8") == "# header\nro.a=9\nro.c=3\n"

    assert invoke(tmp_path, ["file", "remove", "ro.b"]).exit_code == 1
    assert invoke(tmp_path, ["file", "get", "ro.b"]).exit_code == 1


def test_file_explicit_path(tmp_path: Path) -> None:
    prop = tmp_path / "vendor.prop"
    prop.write_text("vendor.x=y\n", encoding="utf-8")
    result = invoke(tmp_path, ["file", "get", "vendor.x", "--path", str(prop)])
    assert result.exit_code == 0
    assert result.stdout.strip().endswith("y")


def test_config_show(tmp_path: Path) -> None:
    (tmp_path / "devprops.toml").write_text('[device]\nserial = "emu-9"\n', encoding="utf-8")
    result = invoke(tmp_path, ["config", "show"])
    assert result.exit_code == 0
    assert "adb -s emu-9 shell" in result.stdout


def test_bad_config_exits(tmp_path: Path) -> None:
    result = invoke(tmp_path, ["--config", str(tmp_path / "missing.toml"), "version"])
    assert result.exit_code == 2
