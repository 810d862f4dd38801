"""Tests for seed loading, CSV export and the command line."""

import pandas as pd
import pytest

from worklist.cli import main
from worklist.domain.db import get_session
from worklist.domain.repositories import InMemoryRepository, SqlAlchemyRepository
from worklist.exceptions import ConfigurationError
from worklist.io.seed import load_seed


SEED = """
members:
  - id: m-ana
    name: Ana
    role_tags: [lead]
    skill_ids: [sk-forklift]
    availability:
      - {day: Mon, start: "07:00", end: "17:00"}
  - id: m-ben
    name: Ben
    strengths: [register]
    availability:
      - {day: Monday, start: "07:00", end: "17:00"}
tasks:
  - id: t-unload
    code: T1
    name: Unload truck
    estimated_duration: 120
    skill_ids: [sk-forklift]
  - id: t-count
    code: T2
    name: Count drawer
    estimated_duration: 30
    skill_required: [register]
explicitRules:
  - id: r1
    task_id: t-count
    primary_selector: {mode: tag, value: clerk}
    fallback_selectors:
      - {kind: member, value: m-ben}
    reason_template: "{member} counts the drawer."
weekly_schedule:
  - id: d1
    date: "2025-11-24"
    shifts:
      - {id: s1, member_id: m-ana, start: "07:00", end: "15:00"}
      - {id: s2, member_id: m-ben, start: "09:00", end: "17:00"}
areas:
  - {id: area-floor, name: Floor}
staffing_targets:
  - {id: tg1, day: Mon, area_id: area-floor, start: "08:00", end: "12:00", required_count: 1}
manager_settings:
  overCapacityThreshold: 10
"""


@pytest.fixture
def seed_file(tmp_path):
    path = tmp_path / "seed.yaml"
    path.write_text(SEED)
    return path


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'worklist.db'}"


def test_load_seed_into_memory(seed_file):
    repo = InMemoryRepository()
    counts = load_seed(repo, seed_file)

    assert counts["members"] == 2
    assert counts["explicit_rules"] == 1
    assert "manager_settings" not in counts
    ben = repo.get("members", "m-ben")
    assert ben.skill_ids == ("register",)


def test_load_seed_rejects_bad_record(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("explicit_rules:\n  - {id: r1, task_id: t1, primary_selector: {kind: team, value: x}}\n")
    with pytest.raises(ConfigurationError):
        load_seed(InMemoryRepository(), path)


@pytest.mark.integration
def test_cli_end_to_end(seed_file, db_url, tmp_path, capsys):
    main(["--db", db_url, "init-db"])
    main(["--db", db_url, "load", str(seed_file)])
    out_csv = tmp_path / "assignments.csv"
    main(["--db", db_url, "generate", "--date", "2025-11-24", "--out", str(out_csv)])

    output = capsys.readouterr().out
    assert "[OK] Loaded 2 members" in output
    assert "[OK] 2025-11-24: 2 assignments, 0 unassigned" in output

    df = pd.read_csv(out_csv)
    assert set(df["code"]) == {"T1", "T2"}
    assert df.set_index("code").loc["T2", "reason"] == "Ben counts the drawer."

    session = get_session(db_url)
    try:
        stored = SqlAlchemyRepository(session).select("assignments")
    finally:
        session.close()
    assert len(stored) == 2


@pytest.mark.integration
def test_cli_autofill_and_conflicts(seed_file, db_url, capsys):
    main(["--db", db_url, "init-db"])
    main(["--db", db_url, "load", str(seed_file)])
    main(["--db", db_url, "conflicts", "--start", "2025-11-24", "--days", "1"])
    assert "under-coverage" in capsys.readouterr().out

    main(["--db", db_url, "autofill", "--start", "2025-11-24", "--days", "1"])
    assert "[OK] Generated 1 planned shifts" in capsys.readouterr().out

    main(["--db", db_url, "conflicts", "--start", "2025-11-24", "--days", "1"])
    assert "[OK] No conflicts" in capsys.readouterr().out


@pytest.mark.integration
def test_cli_rules_lists_selectors(seed_file, db_url, capsys):
    main(["--db", db_url, "init-db"])
    main(["--db", db_url, "load", str(seed_file)])
    main(["--db", db_url, "rules"])
    assert "T2: Count drawer: role_tag:clerk > Ben" in capsys.readouterr().out
