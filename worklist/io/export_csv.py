"""CSV export utilities."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pandas as pd

from worklist.domain.records import to_record
from worklist.domain.repositories import Repository
from worklist.validator import assignments_frame


def export_assignments_csv(repository: Repository, csv_path: str | Path, target_date: date | None = None) -> int:
    """
    Export assignments to CSV with member and task names resolved.

    Args:
        repository: Source repository
        csv_path: Output CSV path
        target_date: Optional date to filter

    Returns:
        Number of assignments exported
    """
    where = (lambda a: a.date == target_date) if target_date is not None else None
    assignments = repository.select("assignments", where)
    df = assignments_frame(assignments, repository.select("members"), repository.select("tasks"))
    df.to_csv(csv_path, index=False)
    print(f"[INFO] Exported {len(df)} assignments to {csv_path}")
    return len(df)


def export_planned_shifts_csv(repository: Repository, csv_path: str | Path) -> int:
    """Export planned shifts to CSV, one row per shift."""
    shifts = sorted(repository.select("planned_shifts"), key=lambda s: (s.date, s.start, s.member_id))
    columns = ["id", "member_id", "day", "date", "start", "end", "area_id", "source", "status", "reason"]
    df = pd.DataFrame([to_record(s) for s in shifts], columns=columns)
    df.to_csv(csv_path, index=False)
    print(f"[INFO] Exported {len(df)} planned shifts to {csv_path}")
    return len(df)
