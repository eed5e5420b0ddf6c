#!/usr/bin/env python3
"""Import work records from exported YYYY-MM.txt month files."""

import logging
import sys
from pathlib import Path

import storage
from utils import month_key, parse_month_filename

logger = logging.getLogger(__name__)


def find_month_files(paths: list[Path]) -> list[Path]:
    """Expand directories into the month files they contain."""
    files = []
    for path in paths:
        if path.is_dir():
            files.extend(sorted(p for p in path.iterdir() if parse_month_filename(p.name)))
        else:
            files.append(path)
    return files


def import_files(paths: list[Path]) -> int:
    """Import each file into the month its name refers to. Returns total records."""
    storage.init_db()

    total_records = 0
    for path in find_month_files(paths):
        target = parse_month_filename(path.name)
        if not target:
            logger.warning("Skipping %s: name is not YYYY-MM.txt", path)
            continue

        try:
            year, month, records = storage.import_month_file(path, *target)
        except storage.ImportFormatError as e:
            logger.error("Skipping %s: %s", path, e)
            continue

        total_records += len(records)
        print(f"Imported {len(records)} days into {month_key(year, month)} from {path.name}")

    print(f"\nTotal: {total_records} days imported")
    return total_records


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    args = [Path(a) for a in sys.argv[1:]] or [Path.cwd()]
    import_files(args)
