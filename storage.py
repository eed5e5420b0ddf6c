from __future__ import annotations

import json
import logging
import os
import sqlite3
from datetime import date
from pathlib import Path

from models import Config, WorkRecord
from utils import date_key, is_date_key, month_key, parse_month_filename

logger = logging.getLogger(__name__)


class ImportFormatError(ValueError):
    """An imported file does not hold one month of work records."""


class ExportError(RuntimeError):
    """A month could not be exported."""


def _get_db_path() -> Path:
    """Get database path from environment variable or default location."""
    if env_path := os.environ.get("WORKHOURS_DB"):
        return Path(env_path)
    return Path(__file__).parent / "data" / "workhours.db"


DB_PATH = _get_db_path()


def get_connection() -> sqlite3.Connection:
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


def init_db():
    """Create tables if they don't exist."""
    conn = get_connection()
    conn.executescript("""
        CREATE TABLE IF NOT EXISTS month_data (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS holiday_overrides (
            date TEXT PRIMARY KEY,
            name TEXT,
            removed INTEGER DEFAULT 0
        );

        CREATE TABLE IF NOT EXISTS config (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        );
    """)
    conn.commit()
    conn.close()


def storage_key(year: int, month: int) -> str:
    return f"work-data-{month_key(year, month)}"


# --- Month data ---


def serialize_month(records: dict[str, WorkRecord]) -> str:
    """JSON text for one month, keyed by date."""
    return json.dumps(
        {key: records[key].to_dict() for key in sorted(records)},
        ensure_ascii=False,
        indent=2,
    )


def parse_month(text: str) -> dict[str, WorkRecord]:
    """Parse JSON month text, migrating legacy record shapes."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ImportFormatError(f"Not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ImportFormatError("Expected an object keyed by date")

    records = {}
    for key, value in data.items():
        if not isinstance(value, dict):
            raise ImportFormatError(f"Record for {key} is not an object")
        if not is_date_key(key):
            raise ImportFormatError(f"Invalid date key {key!r}, expected YYYY-MM-DD")
        records[key] = WorkRecord.from_dict(value)
    return records


def load_month(year: int, month: int) -> dict[str, WorkRecord]:
    """Load all records for a calendar month."""
    conn = get_connection()
    row = conn.execute(
        "SELECT value FROM month_data WHERE key = ?",
        (storage_key(year, month),)
    ).fetchone()
    conn.close()

    if not row:
        return {}
    try:
        return parse_month(row["value"])
    except ImportFormatError:
        logger.exception("Discarding unreadable data for %s", storage_key(year, month))
        return {}


def save_month(year: int, month: int, records: dict[str, WorkRecord]):
    """Replace the stored records for a month."""
    conn = get_connection()
    conn.execute(
        "INSERT OR REPLACE INTO month_data (key, value) VALUES (?, ?)",
        (storage_key(year, month), serialize_month(records)),
    )
    conn.commit()
    conn.close()
    logger.debug("Saved %d records for %s", len(records), month_key(year, month))


def save_record(d: date, record: WorkRecord) -> dict[str, WorkRecord]:
    """Insert or overwrite a single day's record. Returns the updated month."""
    records = load_month(d.year, d.month)
    records[date_key(d)] = record
    save_month(d.year, d.month, records)
    return records


def delete_record(d: date) -> dict[str, WorkRecord]:
    """Remove a day's record. Returns the updated month."""
    records = load_month(d.year, d.month)
    records.pop(date_key(d), None)
    save_month(d.year, d.month, records)
    return records


# --- Config ---


CLOUD_ENV = {
    "cloud_url": "WORKHOURS_CLOUD_URL",
    "cloud_user": "WORKHOURS_CLOUD_USER",
    "cloud_passphrase": "WORKHOURS_CLOUD_PASSPHRASE",
    "cloud_auth_token": "WORKHOURS_CLOUD_TOKEN",
}


def get_config() -> Config:
    """Load config from database, with cloud settings overridable from the environment."""
    conn = get_connection()
    rows = conn.execute("SELECT key, value FROM config").fetchall()
    conn.close()

    config = Config()
    for row in rows:
        if hasattr(config, row["key"]):
            setattr(config, row["key"], row["value"])

    for field, env_name in CLOUD_ENV.items():
        if env_value := os.environ.get(env_name):
            setattr(config, field, env_value)

    return config


def save_config(config: Config):
    """Save config to database."""
    conn = get_connection()
    for key in ("holiday_country", "cloud_url", "cloud_user", "cloud_passphrase", "cloud_auth_token"):
        conn.execute("INSERT OR REPLACE INTO config (key, value) VALUES (?, ?)",
                     (key, getattr(config, key)))
    conn.commit()
    conn.close()


# --- Holidays ---


def get_default_holidays(year: int, country: str = "KR") -> dict[str, str]:
    """Get public holidays for a country and year, keyed by date."""
    import holidays
    try:
        country_holidays = holidays.country_holidays(country, years=year)
    except NotImplementedError:
        logger.warning("No holiday calendar for %r, using weekends only", country)
        return {}
    return {date_key(d): name for d, name in sorted(country_holidays.items())}


def get_holiday_overrides() -> dict[str, str | None]:
    """User edits to the default holidays. None marks a removed default."""
    conn = get_connection()
    rows = conn.execute(
        "SELECT date, name, removed FROM holiday_overrides ORDER BY date"
    ).fetchall()
    conn.close()
    return {row["date"]: (None if row["removed"] else row["name"]) for row in rows}


def replace_holiday_overrides(overrides: dict[str, str | None]):
    """Replace all user holiday edits, e.g. with a restored backup."""
    conn = get_connection()
    conn.execute("DELETE FROM holiday_overrides")
    conn.executemany(
        "INSERT INTO holiday_overrides (date, name, removed) VALUES (?, ?, ?)",
        [(key, name, int(name is None)) for key, name in overrides.items()],
    )
    conn.commit()
    conn.close()


def get_holidays(year: int, country: str = "KR") -> dict[str, str]:
    """Effective holidays for a year: defaults plus user additions, minus removals."""
    result = get_default_holidays(year, country)
    prefix = f"{year}-"
    for key, name in get_holiday_overrides().items():
        if not key.startswith(prefix):
            continue
        if name is None:
            result.pop(key, None)
        else:
            result[key] = name
    return dict(sorted(result.items()))


def get_holidays_for_month(year: int, month: int, country: str = "KR") -> dict[str, str]:
    prefix = f"{month_key(year, month)}-"
    return {k: v for k, v in get_holidays(year, country).items() if k.startswith(prefix)}


def save_holiday(d: date, name: str):
    """Add or rename a holiday."""
    conn = get_connection()
    conn.execute(
        "INSERT OR REPLACE INTO holiday_overrides (date, name, removed) VALUES (?, ?, 0)",
        (date_key(d), name),
    )
    conn.commit()
    conn.close()


def remove_holiday(d: date):
    """Mark a date as a normal day even if it is a default holiday."""
    conn = get_connection()
    conn.execute(
        "INSERT OR REPLACE INTO holiday_overrides (date, name, removed) VALUES (?, NULL, 1)",
        (date_key(d),),
    )
    conn.commit()
    conn.close()


def restore_holiday(d: date):
    """Drop any user edit for a date, falling back to the default set."""
    conn = get_connection()
    conn.execute("DELETE FROM holiday_overrides WHERE date = ?", (date_key(d),))
    conn.commit()
    conn.close()


# --- Export / import files ---


def export_filename(year: int, month: int) -> str:
    return f"{month_key(year, month)}.txt"


def export_month(year: int, month: int, directory: Path) -> Path:
    """Write a month's records to <directory>/YYYY-MM.txt."""
    records = load_month(year, month)
    if not records:
        raise ExportError(f"No data to export for {month_key(year, month)}")

    directory.mkdir(parents=True, exist_ok=True)
    path = directory / export_filename(year, month)
    path.write_text(serialize_month(records), encoding="utf-8")
    logger.info("Exported %d records to %s", len(records), path)
    return path


def import_month_file(path: Path, year: int, month: int) -> tuple[int, int, dict[str, WorkRecord]]:
    """Import a month file.

    A file named YYYY-MM.txt goes to that month; any other name is applied
    to the given (current) month. Returns (year, month, records).
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ImportFormatError(f"Cannot read {path.name}: {e}") from e

    records = parse_month(text)
    if target := parse_month_filename(path.name):
        year, month = target

    save_month(year, month, records)
    logger.info("Imported %d records from %s into %s", len(records), path, month_key(year, month))
    return year, month, records
