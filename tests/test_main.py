"""Tests for the `python -m dbhelper` config checker."""

from __future__ import annotations

from pathlib import Path

import pytest

from dbhelper.__main__ import main


def _write_config(tmp_path: Path, body: str) -> Path:
    config_path = tmp_path / "db.toml"
    config_path.write_text(body)
    return config_path


def test_main_reports_each_helper(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config_path = _write_config(
        tmp_path,
        f"""
[databases.main]
dsn = "sqlite:///{tmp_path / 'main.db'}"

[databases.audit]
dsn = "sqlite:///{tmp_path / 'audit.db'}"
""",
    )

    exit_code = main([str(config_path)])

    out = capsys.readouterr().out.splitlines()
    assert exit_code == 0
    assert [line.split("\t")[0] for line in out] == ["main", "audit"]
    assert all(line.endswith("\tok") for line in out)


def test_main_rejects_invalid_config(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config_path = _write_config(tmp_path, "[database]\nusername = \"app\"\n")

    exit_code = main([str(config_path)])

    assert exit_code == 2
    assert "missing dsn" in capsys.readouterr().err


def test_main_reports_connection_failures(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config_path = _write_config(
        tmp_path,
        f"""
[database]
dsn = "sqlite:///{tmp_path / 'missing' / 'app.db'}"
""",
    )

    exit_code = main([str(config_path)])

    assert exit_code == 1
    assert "connection error" in capsys.readouterr().err
