#!/usr/bin/env python3
"""Work hours tracker TUI application."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.widgets import Footer, DataTable
from textual.coordinate import Coordinate
from rich.text import Text

import storage
from calc import build_summary, daily_worked_seconds, finalize_record, is_working_day, monthly_stats
from cloud import CloudGate, CloudSyncError, now_millis
from models import CalculationResult, LeaveType, WorkRecord
from utils import date_key, format_seconds_to_clock, month_days, month_key, next_month, prev_month
from screens import ConfirmScreen, EditDayScreen, HolidayScreen, PassphraseScreen, PathScreen
from widgets import MonthHeader, MonthlySummaryPanel

logger = logging.getLogger(__name__)


class DayTable(DataTable):
    """DataTable that hands left/right to the app for month navigation."""

    def on_key(self, event) -> None:
        if event.key not in ("left", "right"):
            return
        if event.key == "left":
            self.app.action_prev_month()  # type: ignore[attr-defined]
        else:
            self.app.action_next_month()  # type: ignore[attr-defined]
        self.scroll_x = 0
        event.prevent_default()
        event.stop()


class WorkHoursApp(App):
    """Main work hours application."""

    CSS = """
    Screen {
        background: $surface;
    }

    #month-header {
        height: auto;
        background: $primary;
        color: $text;
        padding: 0 1;
        text-style: bold;
    }

    #day-table {
        height: 1fr;
        margin: 1 2;
    }

    #monthly-summary {
        height: auto;
        padding: 1 2;
        color: $text;
    }

    DataTable {
        height: 100%;
    }

    DataTable > .datatable--cursor {
        background: $secondary;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        # left/right handled in DayTable.on_key to allow Input cursor movement in modals
        Binding("t", "goto_today", "Today"),
        Binding("e", "edit_day", "Edit"),
        Binding("i", "stamp_in", "In now"),
        Binding("o", "stamp_out", "Out now"),
        Binding("x", "clear_day", "Clear", show=False),
        Binding("h", "holidays", "Holidays"),
        Binding("E", "export_month", "Export"),
        Binding("I", "import_month", "Import"),
        Binding("s", "cloud_save", "Backup"),
        Binding("l", "cloud_load", "Restore"),
    ]

    def __init__(self):
        super().__init__()
        storage.init_db()
        self.config = storage.get_config()
        self.cloud_gate = CloudGate(self.config)

        today = self._today()
        self.current_year = today.year
        self.current_month = today.month
        self.records: dict[str, WorkRecord] = {}
        self.holidays: dict[str, str] = {}

        # Last used export/import location
        self.last_path: Path = Path.home()

    def _today(self) -> date:
        return date.today()

    def compose(self) -> ComposeResult:
        yield MonthHeader(self.current_year, self.current_month, id="month-header")
        yield Container(DayTable(id="day-table"), id="day-table-container")
        yield MonthlySummaryPanel(id="monthly-summary")
        yield Footer()

    def on_mount(self):
        self._setup_day_table()
        self._load_month_data()
        self._refresh_display()
        self._select_date(self._today())
        self.query_one("#day-table", DataTable).focus()

    def _setup_day_table(self):
        table = self.query_one("#day-table", DataTable)
        table.cursor_type = "row"
        table.add_column("Day", width=4)
        table.add_column("Date", width=8)
        table.add_column("In", width=9)
        table.add_column("Out", width=9)
        table.add_column("Leave", width=12)
        table.add_column("Worked", width=9)
        table.add_column("Note", width=30)

    def _load_month_data(self):
        """Load records and holidays for the current month into memory."""
        self.records = storage.load_month(self.current_year, self.current_month)
        self.holidays = storage.get_holidays(self.current_year, self.config.holiday_country)

    def _get_stats(self) -> CalculationResult:
        return monthly_stats(
            self.current_year,
            self.current_month,
            self.records,
            self.holidays,
            self._today(),
        )

    def _format_worked(self, record: WorkRecord | None) -> str:
        if record is None or record.is_blank:
            return "-"
        # Only one of in/out recorded: day still in progress
        if bool(record.check_in) != bool(record.check_out) and not record.has_leave:
            return "…"
        return format_seconds_to_clock(
            daily_worked_seconds(record.check_in, record.check_out, record.leave_types)
        )

    def _format_leave(self, record: WorkRecord | None) -> str:
        if record is None or not record.has_leave:
            return ""
        return " ".join(t.label for t in record.leave_types if t is not LeaveType.NONE)

    def _refresh_display(self):
        header = self.query_one("#month-header", MonthHeader)
        header.year = self.current_year
        header.month = self.current_month
        prefix = f"{month_key(self.current_year, self.current_month)}-"
        month_holidays = [k for k in self.holidays if k.startswith(prefix)]
        header.update_display(
            holiday_count=len(month_holidays),
            synced=self.cloud_gate.unlocked,
        )

        table = self.query_one("#day-table", DataTable)
        table.clear()
        today = self._today()

        for day in month_days(self.current_year, self.current_month):
            key = date_key(day)
            record = self.records.get(key)
            working = is_working_day(day, self.holidays)

            if day == today:
                style = "bold"
            elif not working:
                style = "dim"
            else:
                style = ""

            table.add_row(
                Text(day.strftime("%a"), style=style),
                Text(day.strftime("%b %d"), style=style),
                Text(record.check_in if record else "", style=style),
                Text(record.check_out if record else "", style=style),
                Text(self._format_leave(record), style=style),
                Text(self._format_worked(record), style=style),
                Text(self.holidays.get(key, ""), style=style),
                key=key,
            )

        summary = self.query_one("#monthly-summary", MonthlySummaryPanel)
        summary.update_display(self._get_stats())

    def _get_selected_date(self) -> date | None:
        """Get the currently selected date from the table."""
        table = self.query_one("#day-table", DataTable)
        if table.row_count == 0:
            return None
        row_key = table.coordinate_to_cell_key(Coordinate(table.cursor_row, 0)).row_key
        if row_key:
            return date.fromisoformat(str(row_key.value))
        return None

    def _select_date(self, target: date):
        if target.year != self.current_year or target.month != self.current_month:
            return
        table = self.query_one("#day-table", DataTable)
        table.move_cursor(row=target.day - 1)

    def _navigate_to_month(self, year: int, month: int):
        self.current_year = year
        self.current_month = month
        self._load_month_data()
        self._refresh_display()
        self.query_one("#day-table", DataTable).move_cursor(row=0)

    def _commit_record(self, day: date, record: WorkRecord) -> None:
        self.records = storage.save_record(day, record)
        self._refresh_display()
        self._select_date(day)

    # --- Navigation ---

    def action_prev_month(self):
        self._navigate_to_month(*prev_month(self.current_year, self.current_month))

    def action_next_month(self):
        self._navigate_to_month(*next_month(self.current_year, self.current_month))

    def action_goto_today(self):
        today = self._today()
        if today.year != self.current_year or today.month != self.current_month:
            self._navigate_to_month(today.year, today.month)
        self._select_date(today)

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        if event.control.id == "day-table":
            self.action_edit_day()

    # --- Editing ---

    def action_edit_day(self):
        """Open edit modal for selected day."""
        selected = self._get_selected_date()
        if not selected:
            return
        record = self.records.get(date_key(selected)) or WorkRecord()
        holiday_name = self.holidays.get(date_key(selected))

        def on_complete(result: WorkRecord | None) -> None:
            if result:
                self._commit_record(selected, result)

        self.push_screen(EditDayScreen(selected, record, holiday_name), on_complete)

    def _stamp(self, field: str) -> None:
        selected = self._get_selected_date()
        if not selected:
            return
        record = self.records.get(date_key(selected)) or WorkRecord()
        if record.has_leave:
            self.notify("Leave is set for this day; edit it to record times", severity="warning")
            return

        now = datetime.now().strftime("%H:%M:%S")
        updated = finalize_record(replace(record, **{field: now}))
        self._commit_record(selected, updated)
        label = "Check-in" if field == "check_in" else "Check-out"
        self.notify(f"{label} {now} recorded for {selected.strftime('%b %d')}")

    def action_stamp_in(self) -> None:
        self._stamp("check_in")

    def action_stamp_out(self) -> None:
        self._stamp("check_out")

    def action_clear_day(self) -> None:
        selected = self._get_selected_date()
        if not selected:
            return
        if date_key(selected) not in self.records:
            self.notify("Nothing to clear")
            return

        def do_clear(confirmed: bool | None) -> None:
            if not confirmed:
                return
            self.records = storage.delete_record(selected)
            self._refresh_display()
            self._select_date(selected)
            self.notify(f"Cleared {selected.strftime('%b %d')}")

        self.push_screen(
            ConfirmScreen(f"Clear entry for {selected.strftime('%b %d')}?", confirm_label="Clear"),
            do_clear,
        )

    def action_holidays(self) -> None:
        def on_close(changed: bool | None) -> None:
            if changed:
                self._load_month_data()
                self._refresh_display()

        self.push_screen(
            HolidayScreen(self.current_year, self.current_month, self.config.holiday_country),
            on_close,
        )

    # --- Files ---

    def action_export_month(self) -> None:
        def do_export(directory: Path | None) -> None:
            if not directory:
                return
            try:
                path = storage.export_month(self.current_year, self.current_month, directory)
            except storage.ExportError as e:
                self.notify(str(e), severity="warning")
                return
            except OSError as e:
                logger.exception("Export failed")
                self.notify(f"Export failed: {e}", severity="error")
                return
            self.last_path = directory
            self.notify(f"Exported to {path}")

        self.push_screen(PathScreen("Export to directory", str(self.last_path)), do_export)

    def action_import_month(self) -> None:
        def do_import(path: Path | None) -> None:
            if not path:
                return
            try:
                year, month, records = storage.import_month_file(
                    path, self.current_year, self.current_month
                )
            except storage.ImportFormatError as e:
                logger.warning("Import of %s failed: %s", path, e)
                self.notify(f"Invalid data file: {e}", severity="error")
                return
            self.last_path = path.parent
            self._navigate_to_month(year, month)
            self.notify(f"Loaded {len(records)} days from {path.name} into {month_key(year, month)}")

        self.push_screen(PathScreen("Import file", str(self.last_path) + "/"), do_import)

    # --- Cloud ---

    def _with_cloud(self, action) -> None:
        """Run a cloud action, asking for the passphrase first if needed."""
        if not self.config.cloud_enabled:
            self.notify("Cloud sync is not configured", severity="warning")
            return
        if self.cloud_gate.unlocked:
            action()
            return

        def on_passphrase(passphrase: str | None) -> None:
            if passphrase is None:
                return
            if self.cloud_gate.unlock(passphrase):
                self._refresh_display()
                action()
            else:
                self.notify("Incorrect passphrase", severity="error")

        self.push_screen(PassphraseScreen(), on_passphrase)

    def _cloud_save(self) -> None:
        summary = build_summary(self._get_stats(), now_millis())
        try:
            client = self.cloud_gate.client()
            client.backup_month(self.current_year, self.current_month, self.records, summary)
            client.backup_holidays(storage.get_holiday_overrides())
        except CloudSyncError as e:
            self.notify(f"Backup failed: {e}", severity="error")
            return
        self.notify("Cloud backup complete")

    def _cloud_load(self) -> None:
        year, month = self.current_year, self.current_month
        try:
            client = self.cloud_gate.client()
            records = client.restore_month(year, month)
            overrides = client.restore_holidays()
        except CloudSyncError as e:
            self.notify(f"Restore failed: {e}", severity="error")
            return

        if records is None:
            self.notify("No cloud backup for this month", severity="warning")
            return

        def do_restore(confirmed: bool | None) -> None:
            if not confirmed:
                return
            storage.save_month(year, month, records)
            if overrides is not None:
                storage.replace_holiday_overrides(overrides)
            self._load_month_data()
            self._refresh_display()
            self.notify("Cloud data loaded")

        if self.records:
            self.push_screen(
                ConfirmScreen(
                    f"Replace local data for {month_key(year, month)} with the backup?",
                    confirm_label="Replace",
                    detail=f"{len(self.records)} local days will be overwritten by {len(records)} from the cloud.",
                ),
                do_restore,
            )
        else:
            do_restore(True)

    def action_cloud_save(self) -> None:
        self._with_cloud(self._cloud_save)

    def action_cloud_load(self) -> None:
        self._with_cloud(self._cloud_load)


def setup_logging(level: int = logging.INFO) -> Path:
    """Log to a file beside the database; the terminal belongs to the TUI."""
    log_path = storage.DB_PATH.with_name("workhours.log")
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=log_path,
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return log_path


def main():
    import sys
    if len(sys.argv) > 1 and sys.argv[1] == "--db-info":
        db_path = storage.DB_PATH
        print(f"Database: {db_path}")
        if db_path.exists():
            mtime = datetime.fromtimestamp(db_path.stat().st_mtime)
            size = db_path.stat().st_size
            print(f"Modified: {mtime.strftime('%Y-%m-%d %H:%M:%S')}")
            print(f"Size: {size:,} bytes")
        else:
            print("Status: Does not exist (will be created on first run)")
        return

    setup_logging(logging.DEBUG if "--debug" in sys.argv else logging.INFO)
    app = WorkHoursApp()
    app.run()


if __name__ == "__main__":
    main()
