"""Tests for the command-line interface."""

import pytest

import cli
from timebudget import config

DAY = "2025-03-10"


@pytest.fixture(autouse=True)
def cli_user(monkeypatch, store):
    monkeypatch.setattr(config, "CLI_USER", "cli-user")


def test_add_and_day(capsys, allocations):
    assert cli.main(["add", "09:00", "10:00", "work", "Focus", "--date", DAY]) == 0
    assert "✓ Added Focus 09:00-10:00" in capsys.readouterr().out

    assert cli.main(["day", DAY]) == 0
    out = capsys.readouterr().out
    assert "09:00-10:00" in out
    assert allocations.list("cli-user", DAY)[0].label == "Focus"


def test_overlap_reports_error(capsys):
    cli.main(["add", "09:00", "10:00", "work", "--date", DAY])
    assert cli.main(["add", "09:30", "10:30", "admin", "--date", DAY]) == 1
    assert "Overlaps with existing block" in capsys.readouterr().out


def test_edit_and_rm(capsys, allocations):
    a = allocations.create("cli-user", DAY, "work", "09:00", "10:00", label="Focus")
    assert cli.main(["edit", a.id, "end_time=11:00", "label="]) == 0
    updated = allocations.get(a.id)
    assert updated.duration_minutes == 120
    assert updated.label is None

    assert cli.main(["edit", a.id, "duration_minutes=5"]) == 2
    assert cli.main(["rm", a.id]) == 0
    assert allocations.list("cli-user", DAY) == []


def test_prefs(capsys):
    assert cli.main(["prefs"]) == 0
    assert "06:00-23:00" in capsys.readouterr().out
    assert cli.main(["prefs", "22:00", "08:00"]) == 1
    assert cli.main(["prefs", "08:00", "18:00"]) == 0
    assert "08:00-18:00" in capsys.readouterr().out


def test_templates_round_trip(capsys, allocations, templates):
    allocations.create("cli-user", DAY, "work", "09:00", "10:00")
    assert cli.main(["save-template", "Workday", DAY]) == 0
    template = templates.list_templates("cli-user")[0]

    assert cli.main(["load-template", template.id, "2025-03-17"]) == 0
    assert "Loaded 1 blocks onto 2025-03-17" in capsys.readouterr().out
    assert cli.main(["templates"]) == 0
    assert "Workday" in capsys.readouterr().out


def test_summary_and_brief(capsys, allocations):
    allocations.create("cli-user", DAY, "work", "09:00", "10:00")
    assert cli.main(["summary", DAY]) == 0
    assert "Work" in capsys.readouterr().out
    assert cli.main(["brief", DAY]) == 0
    assert f"# Time Budget: {DAY}" in capsys.readouterr().out
