from __future__ import annotations

import json
from pathlib import Path

import pytest
from conftest import comparison_row, dialog_row
from typer.testing import CliRunner

from comparison_stats.cli import app

runner = CliRunner()


def _write_snapshot(directory: Path) -> None:
    tables = {
        "ai_human_comparison": [
            comparison_row(id=1, ticket_id="T1"),
            comparison_row(id=2, ticket_id="T2", prompt_version="v2"),
            comparison_row(id=3, email="api@levhaolam.com"),
        ],
        "support_dialogs": [dialog_row("T1", "in", "2025-01-08T09:00:00+00:00")],
        "support_threads_data": [],
    }
    for table, rows in tables.items():
        (directory / f"{table}.json").write_text(json.dumps(rows), encoding="utf-8")


@pytest.fixture(autouse=True)
def _no_remote_credentials(monkeypatch) -> None:
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)


def test_cli_help() -> None:
    result = runner.invoke(app, ["--help"])

    assert result.exit_code == 0
    assert "detailed-stats" in result.stdout
    assert "taxonomy" in result.stdout


def test_detailed_stats_from_snapshot_writes_report(tmp_path: Path) -> None:
    snapshot = tmp_path / "snapshot"
    snapshot.mkdir()
    _write_snapshot(snapshot)
    output = tmp_path / "out" / "stats.json"

    result = runner.invoke(
        app,
        [
            "detailed-stats",
            "--from",
            "2025-01-01",
            "--to",
            "2025-02-01",
            "--snapshot-dir",
            str(snapshot),
            "--output",
            str(output),
        ],
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["totalCount"] == 4
    assert payload["totalPages"] == 1
    assert [(row["version"], row["sortOrder"]) for row in payload["data"]] == [
        ("v2", 1),
        ("v2", 2),
        ("v1", 1),
        ("v1", 2),
    ]
    assert payload["data"][2]["notResponded"] == 0
    assert sum(row["totalRecords"] for row in payload["data"] if row["dates"] is None) == 2


def test_detailed_stats_with_both_thread_kinds_hidden_writes_empty_report(
    tmp_path: Path,
) -> None:
    snapshot = tmp_path / "snapshot"
    snapshot.mkdir()
    _write_snapshot(snapshot)
    output = tmp_path / "stats.json"

    result = runner.invoke(
        app,
        [
            "detailed-stats",
            "--from",
            "2025-01-01",
            "--to",
            "2025-02-01",
            "--snapshot-dir",
            str(snapshot),
            "--hide-need-edit",
            "--hide-not-need-edit",
            "--output",
            str(output),
        ],
    )

    assert result.exit_code == 0, result.output
    assert json.loads(output.read_text(encoding="utf-8"))["data"] == []


def test_detailed_stats_requires_a_source() -> None:
    result = runner.invoke(app, ["detailed-stats", "--from", "2025-01-01", "--to", "2025-02-01"])

    assert result.exit_code == 1


def test_detailed_stats_pipeline_failure_exits_with_error(tmp_path: Path) -> None:
    output = tmp_path / "stats.json"

    result = runner.invoke(
        app,
        [
            "detailed-stats",
            "--from",
            "2025-01-01",
            "--to",
            "2025-02-01",
            "--snapshot-dir",
            str(tmp_path),
            "--output",
            str(output),
        ],
    )

    assert result.exit_code == 1
    assert not output.exists()


def test_taxonomy_command() -> None:
    result = runner.invoke(app, ["taxonomy"])

    assert result.exit_code == 0
    assert "Classification taxonomy" in result.stdout
