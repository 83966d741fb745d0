#!/usr/bin/env python3
"""
Import historical costing rows from a CSV export of the Costing sheet.

Usage:
    python data/import_costing_csv.py path/to/costing_export.csv

The CSV header row must use the sheet's column labels ("Costing ID",
"Cu Strands", "Final PVC Round (Kgs/100 mtr)", ...). Rows are appended
verbatim — values are NOT recalculated, so historical figures (and their
rounding) are preserved. Rows whose Costing ID already exists are skipped.
"""

import csv
import sys
from pathlib import Path
from typing import Dict, List, Tuple

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


def load_costing_csv(filepath: Path) -> List[Dict[str, str]]:
    """Read the export into {column label: text} rows. Blank lines are dropped."""
    with open(filepath, newline="", encoding="utf-8-sig") as f:
        reader = csv.DictReader(f)
        rows = []
        for raw in reader:
            row = {(key or "").strip(): (value or "").strip() for key, value in raw.items()}
            if any(row.values()):
                rows.append(row)
    return rows


def import_rows(store, rows: List[Dict[str, str]], sheet_name: str = "Costing") -> Tuple[int, int]:
    """Append rows to the sheet, creating it first. Returns (imported, skipped)."""
    from wirecost.costing_service import COSTING_HEADERS
    from wirecost.store import DuplicateRowError

    if not store.sheet_exists(sheet_name):
        store.initialize_sheet(sheet_name, COSTING_HEADERS)

    imported = 0
    skipped = 0
    for row in rows:
        unknown = set(row) - set(COSTING_HEADERS)
        if unknown:
            print(f"  Ignoring unknown columns: {', '.join(sorted(unknown))}")
        try:
            store.append_row(sheet_name, row)
            imported += 1
        except DuplicateRowError as e:
            print(f"  Skipping: {e}")
            skipped += 1
    return imported, skipped


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print(__doc__)
        return 1

    filepath = Path(argv[0])
    if not filepath.exists():
        print(f"File {filepath} does not exist — nothing to import")
        return 1

    from wirecost.config import settings
    from wirecost.database import Base, SessionLocal, engine
    from wirecost.store import SqlRecordStore

    Base.metadata.create_all(bind=engine)

    print(f"Loading costing rows from {filepath}...")
    rows = load_costing_csv(filepath)
    print(f"  {len(rows)} rows read")

    db = SessionLocal()
    try:
        imported, skipped = import_rows(SqlRecordStore(db), rows, settings.COSTING_SHEET_NAME)
    finally:
        db.close()

    print("\n--- Summary ---")
    print(f"Imported: {imported}")
    print(f"Skipped (duplicate Costing ID): {skipped}")
    print("Done.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
