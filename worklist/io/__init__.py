"""I/O utilities: seed loading and CSV export."""

from .export_csv import export_assignments_csv, export_planned_shifts_csv
from .seed import load_seed, read_seed

__all__ = [
    "load_seed",
    "read_seed",
    "export_assignments_csv",
    "export_planned_shifts_csv",
]
