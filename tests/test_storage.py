"""Tests for storage.py - database operations, holidays and month files."""

import json
from datetime import date

import pytest

from calc import monthly_stats
from models import Config, LeaveType, WorkRecord


class TestInitDb:
    """Tests for init_db function."""

    def test_creates_tables(self, temp_database):
        storage = temp_database
        conn = storage.get_connection()

        for table in ("month_data", "holiday_overrides", "config"):
            result = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name=?", (table,)
            ).fetchone()
            assert result is not None, table

        conn.close()

    def test_idempotent(self, temp_database):
        storage = temp_database
        storage.init_db()
        storage.init_db()


class TestMonthData:
    """Tests for loading and saving month buckets."""

    def test_storage_key(self, temp_database):
        assert temp_database.storage_key(2026, 3) == "work-data-2026-03"

    def test_load_empty_month(self, temp_database):
        assert temp_database.load_month(2026, 3) == {}

    def test_save_and_load_month(self, temp_database, sample_record, sample_leave_record):
        storage = temp_database
        records = {"2026-03-02": sample_record, "2026-03-03": sample_leave_record}

        storage.save_month(2026, 3, records)

        assert storage.load_month(2026, 3) == records

    def test_months_are_separate(self, temp_database, sample_record):
        storage = temp_database
        storage.save_month(2026, 3, {"2026-03-02": sample_record})

        assert storage.load_month(2026, 4) == {}
        assert storage.load_month(2025, 3) == {}

    def test_save_month_replaces_whole_bucket(self, temp_database, sample_record):
        storage = temp_database
        storage.save_month(2026, 3, {"2026-03-02": sample_record, "2026-03-03": sample_record})
        storage.save_month(2026, 3, {"2026-03-04": sample_record})

        assert list(storage.load_month(2026, 3)) == ["2026-03-04"]

    def test_save_record(self, temp_database, sample_record, sample_leave_record):
        storage = temp_database
        storage.save_record(date(2026, 3, 2), sample_record)
        records = storage.save_record(date(2026, 3, 3), sample_leave_record)

        assert records == {"2026-03-02": sample_record, "2026-03-03": sample_leave_record}
        assert storage.load_month(2026, 3) == records

    def test_save_record_overwrites(self, temp_database, sample_record, sample_leave_record):
        storage = temp_database
        storage.save_record(date(2026, 3, 2), sample_record)
        storage.save_record(date(2026, 3, 2), sample_leave_record)

        assert storage.load_month(2026, 3)["2026-03-02"] == sample_leave_record

    def test_delete_record(self, temp_database, sample_record):
        storage = temp_database
        storage.save_record(date(2026, 3, 2), sample_record)
        storage.save_record(date(2026, 3, 3), sample_record)

        records = storage.delete_record(date(2026, 3, 2))

        assert list(records) == ["2026-03-03"]
        assert list(storage.load_month(2026, 3)) == ["2026-03-03"]

    def test_legacy_record_migrated_on_load(self, temp_database):
        storage = temp_database
        conn = storage.get_connection()
        conn.execute(
            "INSERT INTO month_data (key, value) VALUES (?, ?)",
            ("work-data-2026-03", json.dumps({
                "2026-03-02": {"checkIn": "", "checkOut": "", "leaveType": "8H"},
            })),
        )
        conn.commit()
        conn.close()

        record = storage.load_month(2026, 3)["2026-03-02"]
        assert record.leave_types == (LeaveType.FULL_DAY,)

    def test_unreadable_month_loads_empty(self, temp_database):
        storage = temp_database
        conn = storage.get_connection()
        conn.execute(
            "INSERT INTO month_data (key, value) VALUES (?, ?)",
            ("work-data-2026-03", "{not json"),
        )
        conn.commit()
        conn.close()

        assert storage.load_month(2026, 3) == {}


class TestSerialization:
    """Tests for the JSON month format."""

    def test_round_trip_preserves_fields(self, temp_database):
        storage = temp_database
        records = {
            "2026-03-02": WorkRecord("08:59:59", "18:00:01", (LeaveType.NONE,), "08:00:02"),
            "2026-03-03": WorkRecord("", "", (LeaveType.FOUR_HOURS, LeaveType.TWO_HOURS), "06:00:00"),
            "2026-03-04": WorkRecord("09:00:00", "", (LeaveType.NONE,), None),
        }
        assert storage.parse_month(storage.serialize_month(records)) == records

    def test_serialized_shape(self, temp_database, sample_leave_record):
        text = temp_database.serialize_month({"2026-03-03": sample_leave_record})
        assert json.loads(text) == {
            "2026-03-03": {
                "checkIn": "",
                "checkOut": "",
                "leaveTypes": ["8H"],
                "resultTime": "08:00:00",
            }
        }

    def test_parse_rejects_invalid_json(self, temp_database):
        with pytest.raises(temp_database.ImportFormatError):
            temp_database.parse_month("not json")

    def test_parse_rejects_list(self, temp_database):
        with pytest.raises(temp_database.ImportFormatError):
            temp_database.parse_month("[]")

    def test_parse_rejects_bad_date_key(self, temp_database):
        with pytest.raises(temp_database.ImportFormatError):
            temp_database.parse_month('{"March 2": {"checkIn": ""}}')

    def test_parse_rejects_compact_date_key(self, temp_database):
        text = '{"20260601": {"checkIn": "09:00:00", "checkOut": "18:00:00", "leaveTypes": ["none"]}}'
        with pytest.raises(temp_database.ImportFormatError, match="20260601"):
            temp_database.parse_month(text)

    def test_parse_rejects_non_object_record(self, temp_database):
        with pytest.raises(temp_database.ImportFormatError):
            temp_database.parse_month('{"2026-03-02": "09:00"}')


class TestConfig:
    """Tests for config operations."""

    def test_get_default_config(self, temp_database):
        config = temp_database.get_config()
        assert config == Config()

    def test_save_and_get_config(self, temp_database, sample_config):
        storage = temp_database
        storage.save_config(sample_config)

        assert storage.get_config() == sample_config

    def test_environment_overrides_cloud_settings(self, temp_database, sample_config, monkeypatch):
        storage = temp_database
        storage.save_config(sample_config)
        monkeypatch.setenv("WORKHOURS_CLOUD_USER", "someone-else")

        config = storage.get_config()
        assert config.cloud_user == "someone-else"
        assert config.cloud_url == sample_config.cloud_url


class TestHolidays:
    """Tests for holiday-related functions."""

    def test_default_korean_holidays(self, temp_database):
        holidays = temp_database.get_default_holidays(2026, "KR")

        assert "2026-01-01" in holidays
        assert "2026-03-01" in holidays
        assert "2026-12-25" in holidays

    def test_default_other_country(self, temp_database):
        holidays = temp_database.get_default_holidays(2026, "GB")
        assert "2026-12-25" in holidays

    def test_unknown_country_gives_no_holidays(self, temp_database):
        assert temp_database.get_default_holidays(2026, "ZZ") == {}

    def test_add_holiday(self, temp_database, no_default_holidays):
        storage = temp_database
        storage.save_holiday(date(2026, 3, 9), "Company day")

        assert storage.get_holidays(2026) == {"2026-03-09": "Company day"}

    def test_rename_holiday(self, temp_database, no_default_holidays):
        storage = temp_database
        storage.save_holiday(date(2026, 3, 9), "Company day")
        storage.save_holiday(date(2026, 3, 9), "Founders day")

        assert storage.get_holidays(2026) == {"2026-03-09": "Founders day"}

    def test_remove_default_holiday(self, temp_database, monkeypatch):
        storage = temp_database
        monkeypatch.setattr(
            storage, "get_default_holidays",
            lambda year, country="KR": {"2026-05-05": "Children's Day", "2026-06-03": "Election Day"},
        )
        storage.remove_holiday(date(2026, 6, 3))

        assert storage.get_holidays(2026) == {"2026-05-05": "Children's Day"}

    def test_restore_holiday(self, temp_database, monkeypatch):
        storage = temp_database
        monkeypatch.setattr(
            storage, "get_default_holidays",
            lambda year, country="KR": {"2026-06-03": "Election Day"},
        )
        storage.remove_holiday(date(2026, 6, 3))
        storage.restore_holiday(date(2026, 6, 3))

        assert storage.get_holidays(2026) == {"2026-06-03": "Election Day"}

    def test_overrides_apply_to_their_year_only(self, temp_database, no_default_holidays):
        storage = temp_database
        storage.save_holiday(date(2025, 3, 10), "Last year")

        assert storage.get_holidays(2026) == {}
        assert storage.get_holidays(2025) == {"2025-03-10": "Last year"}

    def test_holidays_for_month(self, temp_database, no_default_holidays):
        storage = temp_database
        storage.save_holiday(date(2026, 3, 9), "March")
        storage.save_holiday(date(2026, 4, 9), "April")

        assert storage.get_holidays_for_month(2026, 3) == {"2026-03-09": "March"}

    def test_get_holiday_overrides(self, temp_database):
        storage = temp_database
        storage.save_holiday(date(2026, 3, 9), "Company day")
        storage.remove_holiday(date(2026, 3, 1))

        assert storage.get_holiday_overrides() == {
            "2026-03-01": None,
            "2026-03-09": "Company day",
        }

    def test_replace_holiday_overrides(self, temp_database):
        storage = temp_database
        storage.save_holiday(date(2026, 3, 9), "Old")

        storage.replace_holiday_overrides({"2026-04-01": "New", "2026-05-05": None})

        assert storage.get_holiday_overrides() == {"2026-04-01": "New", "2026-05-05": None}


class TestExportImport:
    """Tests for month export and import files."""

    def test_export_filename(self, temp_database):
        assert temp_database.export_filename(2026, 3) == "2026-03.txt"

    def test_export_month(self, temp_database, tmp_path, sample_record):
        storage = temp_database
        storage.save_record(date(2026, 3, 2), sample_record)

        path = storage.export_month(2026, 3, tmp_path / "out")

        assert path == tmp_path / "out" / "2026-03.txt"
        assert storage.parse_month(path.read_text(encoding="utf-8")) == {"2026-03-02": sample_record}

    def test_export_empty_month(self, temp_database, tmp_path):
        with pytest.raises(temp_database.ExportError):
            temp_database.export_month(2026, 3, tmp_path)

    def test_import_strict_name_targets_named_month(self, temp_database, tmp_path, sample_record):
        storage = temp_database
        path = tmp_path / "2025-11.txt"
        path.write_text(storage.serialize_month({"2025-11-03": sample_record}), encoding="utf-8")

        year, month, records = storage.import_month_file(path, 2026, 3)

        assert (year, month) == (2025, 11)
        assert storage.load_month(2025, 11) == records
        assert storage.load_month(2026, 3) == {}

    def test_import_other_name_targets_current_month(self, temp_database, tmp_path, sample_record):
        storage = temp_database
        path = tmp_path / "my backup.txt"
        path.write_text(storage.serialize_month({"2026-03-02": sample_record}), encoding="utf-8")

        year, month, records = storage.import_month_file(path, 2026, 3)

        assert (year, month) == (2026, 3)
        assert storage.load_month(2026, 3) == {"2026-03-02": sample_record}

    def test_import_replaces_month(self, temp_database, tmp_path, sample_record, sample_leave_record):
        storage = temp_database
        storage.save_record(date(2026, 3, 2), sample_record)
        path = tmp_path / "2026-03.txt"
        path.write_text(storage.serialize_month({"2026-03-05": sample_leave_record}), encoding="utf-8")

        storage.import_month_file(path, 2026, 3)

        assert storage.load_month(2026, 3) == {"2026-03-05": sample_leave_record}

    def test_import_invalid_content(self, temp_database, tmp_path):
        path = tmp_path / "2026-03.txt"
        path.write_text("hello", encoding="utf-8")

        with pytest.raises(temp_database.ImportFormatError):
            temp_database.import_month_file(path, 2026, 3)

    def test_import_non_string_time_still_counts(self, temp_database, tmp_path):
        storage = temp_database
        path = tmp_path / "2026-06.txt"
        path.write_text(json.dumps({
            "2026-06-01": {"checkIn": 9, "checkOut": "18:00:00", "leaveTypes": ["none"]},
            "2026-06-02": {"checkIn": "09:00:00", "checkOut": "18:00:00", "leaveTypes": ["none"]},
        }), encoding="utf-8")

        storage.import_month_file(path, 2026, 6)
        records = storage.load_month(2026, 6)
        result = monthly_stats(2026, 6, records, {}, date(2026, 6, 1))

        assert records["2026-06-01"].check_in == ""
        assert result.total_worked_seconds == 8 * 3600

    def test_import_missing_file(self, temp_database, tmp_path):
        with pytest.raises(temp_database.ImportFormatError):
            temp_database.import_month_file(tmp_path / "missing.txt", 2026, 3)

    def test_export_then_import(self, temp_database, tmp_path, sample_record):
        storage = temp_database
        storage.save_record(date(2026, 3, 2), sample_record)
        path = storage.export_month(2026, 3, tmp_path)
        storage.save_month(2026, 3, {})

        storage.import_month_file(path, 2000, 1)

        assert storage.load_month(2026, 3) == {"2026-03-02": sample_record}
