"""Modal screens for the work hours application."""

from __future__ import annotations

import re
from datetime import date, datetime
from pathlib import Path

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.coordinate import Coordinate
from textual.widgets import Button, DataTable, Input, Label
from textual.screen import ModalScreen

from calc import daily_worked_seconds, finalize_record, toggle_leave
from models import LeaveType, WorkRecord
from utils import format_seconds_to_clock
import storage

CLOCK_PATTERN = re.compile(r"^(\d{1,2})(?::(\d{1,2}))?(?::(\d{1,2}))?$")


class ConfirmScreen(ModalScreen[bool]):
    """Asks before a stored day or month is overwritten or cleared."""

    CSS = """
    ConfirmScreen {
        align: center middle;
    }

    #confirm-dialog {
        width: 56;
        height: auto;
        padding: 1 2;
        background: $surface;
        border: round $error;
    }

    #confirm-detail {
        color: $text-muted;
        margin-top: 1;
    }

    #confirm-actions {
        height: auto;
        margin-top: 1;
        align-horizontal: right;
    }

    #confirm-actions Button {
        margin-left: 1;
    }
    """

    BINDINGS = [
        Binding("y", "confirm", "Yes"),
        Binding("n,escape", "keep", "Keep"),
    ]

    def __init__(self, message: str, confirm_label: str = "Yes", detail: str = ""):
        super().__init__()
        self.message = message
        self.confirm_label = confirm_label
        self.detail = detail

    def compose(self) -> ComposeResult:
        with Vertical(id="confirm-dialog"):
            yield Label(self.message, id="confirm-message")
            if self.detail:
                yield Label(self.detail, id="confirm-detail")
            with Horizontal(id="confirm-actions"):
                yield Button("Keep (N)", id="keep")
                yield Button(f"{self.confirm_label} (Y)", variant="error", id="confirm")

    def on_mount(self) -> None:
        # Default focus on the non-destructive choice
        self.query_one("#keep", Button).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "confirm")

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_keep(self) -> None:
        self.dismiss(False)


class EditDayScreen(ModalScreen[WorkRecord | None]):
    """Modal screen for editing a day's check-in, check-out and leave."""

    CSS = """
    EditDayScreen {
        align: center middle;
    }

    #edit-dialog {
        width: 70;
        height: auto;
        padding: 1 2;
        background: $surface;
        border: thick $primary;
    }

    #edit-title {
        width: 100%;
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    .field-group {
        width: 1fr;
        height: auto;
        margin: 0 1 0 0;
    }

    .field-label {
        height: 1;
        color: $text-muted;
    }

    .field-row {
        width: 100%;
        height: auto;
        margin-bottom: 1;
    }

    .field-row Input {
        width: 100%;
    }

    .now-button {
        width: auto;
        min-width: 8;
        margin-top: 1;
    }

    #leave-row Button {
        width: 1fr;
        min-width: 8;
        margin: 0 1 0 0;
    }

    #edit-preview {
        width: 100%;
        text-align: center;
        color: $text-muted;
    }

    #edit-buttons {
        width: 100%;
        height: auto;
        margin-top: 1;
        align: center middle;
    }

    #edit-buttons Button {
        width: auto;
        min-width: 12;
        margin: 0 2;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    FIELD_ORDER = ["check-in", "check-out"]

    def __init__(self, day: date, record: WorkRecord, holiday_name: str | None = None):
        super().__init__()
        self.day = day
        self.record = record
        self.holiday_name = holiday_name
        self.leave_types = record.leave_types

    def compose(self) -> ComposeResult:
        with Vertical(id="edit-dialog"):
            title = f"Edit {self.day.strftime('%a %b %d, %Y')}"
            if self.holiday_name:
                title += f" ({self.holiday_name})"
            yield Label(title, id="edit-title")

            with Horizontal(classes="field-row"):
                with Vertical(classes="field-group"):
                    yield Label("In (HH:MM:SS)", classes="field-label")
                    yield Input(value=self.record.check_in, placeholder="09:00:00", id="check-in")
                yield Button("Now", id="now-in", classes="now-button")
                with Vertical(classes="field-group"):
                    yield Label("Out (HH:MM:SS)", classes="field-label")
                    yield Input(value=self.record.check_out, placeholder="18:00:00", id="check-out")
                yield Button("Now", id="now-out", classes="now-button")

            yield Label("Leave", classes="field-label")
            with Horizontal(classes="field-row", id="leave-row"):
                for tag in LeaveType:
                    yield Button(tag.label, id=f"leave-{tag.value}")

            yield Label("", id="edit-preview")

            with Horizontal(id="edit-buttons"):
                yield Button("Save", variant="primary", id="save")
                yield Button("Cancel", variant="default", id="cancel")

    def on_mount(self) -> None:
        self._refresh_leave_buttons()
        self._refresh_preview()
        self.query_one("#check-in", Input).focus()

    def _refresh_leave_buttons(self) -> None:
        for tag in LeaveType:
            button = self.query_one(f"#leave-{tag.value}", Button)
            button.variant = "primary" if tag in self.leave_types else "default"

    def _refresh_preview(self) -> None:
        check_in = self.query_one("#check-in", Input).value.strip()
        check_out = self.query_one("#check-out", Input).value.strip()
        seconds = daily_worked_seconds(check_in, check_out, self.leave_types)
        preview = f"Worked {format_seconds_to_clock(seconds)}"
        if any(t is not LeaveType.NONE for t in self.leave_types) and (check_in or check_out):
            preview += "  (times are cleared when leave is set)"
        self.query_one("#edit-preview", Label).update(preview)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Move to next field on Enter, or save if on last field."""
        current_id = event.input.id
        if current_id in self.FIELD_ORDER:
            current_idx = self.FIELD_ORDER.index(current_id)
            if current_idx < len(self.FIELD_ORDER) - 1:
                next_id = self.FIELD_ORDER[current_idx + 1]
                self.query_one(f"#{next_id}", Input).focus()
            else:
                self._save_record()

    def on_input_changed(self, event: Input.Changed) -> None:
        self._refresh_preview()

    def toggle(self, tag: LeaveType) -> bool:
        """Toggle a leave tag. Returns False when the leave cap rejects it."""
        updated = toggle_leave(self.leave_types, tag)
        rejected = updated == self.leave_types and tag not in self.leave_types
        self.leave_types = updated
        return not rejected

    def _is_valid_time(self, val: str) -> bool:
        if not val:
            return True
        match = CLOCK_PATTERN.match(val)
        if not match:
            return False
        hours, minutes, seconds = (int(g) if g else 0 for g in match.groups())
        return hours < 24 and minutes < 60 and seconds < 60

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id or ""
        if button_id == "cancel":
            self.dismiss(None)
        elif button_id == "save":
            self._save_record()
        elif button_id in ("now-in", "now-out"):
            field = "#check-in" if button_id == "now-in" else "#check-out"
            self.query_one(field, Input).value = datetime.now().strftime("%H:%M:%S")
        elif button_id.startswith("leave-"):
            tag = LeaveType(button_id.removeprefix("leave-"))
            if not self.toggle(tag):
                self.app.bell()
            self._refresh_leave_buttons()
            self._refresh_preview()

    def action_cancel(self) -> None:
        self.dismiss(None)

    def _save_record(self) -> None:
        check_in = self.query_one("#check-in", Input).value.strip()
        check_out = self.query_one("#check-out", Input).value.strip()

        for label, val in (("check-in", check_in), ("check-out", check_out)):
            if not self._is_valid_time(val):
                self.app.notify(f"Invalid {label} time. Use HH:MM:SS", severity="error")
                return

        updated = finalize_record(
            WorkRecord(check_in=check_in, check_out=check_out, leave_types=self.leave_types)
        )
        self.dismiss(updated)


class HolidayScreen(ModalScreen[bool]):
    """Modal screen for viewing and editing a month's holidays."""

    CSS = """
    HolidayScreen {
        align: center middle;
    }

    #holidays-dialog {
        width: 70;
        height: 26;
        padding: 1 2;
        background: $surface;
        border: thick $primary;
    }

    #holidays-title {
        width: 100%;
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    #holidays-table {
        height: 1fr;
    }

    #holidays-controls {
        width: 100%;
        height: auto;
        margin-top: 1;
    }

    #holiday-date {
        width: 16;
    }

    #holiday-name {
        width: 1fr;
    }

    #holidays-footer {
        width: 100%;
        height: auto;
        margin-top: 1;
        align: center middle;
    }

    #holidays-footer Button {
        width: auto;
        min-width: 10;
        margin: 0 1;
    }
    """

    BINDINGS = [
        Binding("escape", "close", "Close"),
        Binding("d", "remove_holiday", "Remove"),
        Binding("r", "restore_holiday", "Restore"),
    ]

    def __init__(self, year: int, month: int, country: str = "KR"):
        super().__init__()
        self.year = year
        self.month = month
        self.country = country
        self.changed = False

    def compose(self) -> ComposeResult:
        with Vertical(id="holidays-dialog"):
            title = date(self.year, self.month, 1).strftime("Holidays: %B %Y")
            yield Label(title, id="holidays-title")
            yield DataTable(id="holidays-table")
            with Horizontal(id="holidays-controls"):
                yield Input(placeholder="YYYY-MM-DD", id="holiday-date")
                yield Input(placeholder="Name", id="holiday-name")
            with Horizontal(id="holidays-footer"):
                yield Button("Add", id="btn-add")
                yield Button("Remove [d]", id="btn-remove")
                yield Button("Restore [r]", id="btn-restore")
                yield Button("Close [Esc]", id="btn-close")

    def on_mount(self) -> None:
        table = self.query_one("#holidays-table", DataTable)
        table.cursor_type = "row"
        table.add_column("Date", width=12)
        table.add_column("Day", width=4)
        table.add_column("Name", width=40)
        self._refresh_table()

    def _refresh_table(self) -> None:
        table = self.query_one("#holidays-table", DataTable)
        table.clear()
        for key, name in storage.get_holidays_for_month(self.year, self.month, self.country).items():
            table.add_row(key, date.fromisoformat(key).strftime("%a"), name, key=key)

    def _get_selected_date(self) -> date | None:
        table = self.query_one("#holidays-table", DataTable)
        if table.row_count == 0:
            return None
        row_key = table.coordinate_to_cell_key(Coordinate(table.cursor_row, 0)).row_key
        return date.fromisoformat(str(row_key.value)) if row_key else None

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        """Copy the selected holiday into the inputs for renaming."""
        selected = self._get_selected_date()
        if selected:
            table = self.query_one("#holidays-table", DataTable)
            self.query_one("#holiday-date", Input).value = selected.isoformat()
            self.query_one("#holiday-name", Input).value = str(table.get_cell_at(Coordinate(table.cursor_row, 2)))
            self.query_one("#holiday-name", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "holiday-date":
            self.query_one("#holiday-name", Input).focus()
        else:
            self._add_holiday()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id
        if button_id == "btn-add":
            self._add_holiday()
        elif button_id == "btn-remove":
            self.action_remove_holiday()
        elif button_id == "btn-restore":
            self.action_restore_holiday()
        elif button_id == "btn-close":
            self.action_close()

    def _add_holiday(self) -> None:
        date_val = self.query_one("#holiday-date", Input).value.strip()
        name = self.query_one("#holiday-name", Input).value.strip()
        try:
            holiday_date = date.fromisoformat(date_val)
        except ValueError:
            self.app.notify("Invalid date. Use YYYY-MM-DD", severity="error")
            return
        if not name:
            self.app.notify("Holiday name is required", severity="error")
            return

        storage.save_holiday(holiday_date, name)
        self.changed = True
        self.query_one("#holiday-date", Input).value = ""
        self.query_one("#holiday-name", Input).value = ""
        self._refresh_table()
        self.app.notify(f"Holiday saved for {holiday_date.strftime('%b %d')}")

    def action_remove_holiday(self) -> None:
        selected = self._get_selected_date()
        if not selected:
            self.app.notify("No holiday selected", severity="warning")
            return
        storage.remove_holiday(selected)
        self.changed = True
        self._refresh_table()
        self.app.notify(f"{selected.strftime('%b %d')} is now a working day")

    def action_restore_holiday(self) -> None:
        """Undo edits for the date in the input, or the selected row."""
        date_val = self.query_one("#holiday-date", Input).value.strip()
        try:
            target = date.fromisoformat(date_val) if date_val else self._get_selected_date()
        except ValueError:
            self.app.notify("Invalid date. Use YYYY-MM-DD", severity="error")
            return
        if not target:
            return
        storage.restore_holiday(target)
        self.changed = True
        self._refresh_table()
        self.app.notify(f"Restored default for {target.strftime('%b %d')}")

    def action_close(self) -> None:
        self.dismiss(self.changed)


class PassphraseScreen(ModalScreen[str | None]):
    """Asks for the cloud sync passphrase."""

    CSS = """
    PassphraseScreen {
        align: center middle;
    }

    #passphrase-dialog {
        width: 50;
        height: auto;
        padding: 1 2;
        background: $surface;
        border: thick $primary;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def compose(self) -> ComposeResult:
        with Vertical(id="passphrase-dialog"):
            yield Label("Cloud sync passphrase")
            yield Input(password=True, id="passphrase")

    def on_mount(self) -> None:
        self.query_one("#passphrase", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.dismiss(event.value)

    def action_cancel(self) -> None:
        self.dismiss(None)


class PathScreen(ModalScreen[Path | None]):
    """Asks for a file or directory path."""

    CSS = """
    PathScreen {
        align: center middle;
    }

    #path-dialog {
        width: 70;
        height: auto;
        padding: 1 2;
        background: $surface;
        border: thick $primary;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, title: str, initial: str = ""):
        super().__init__()
        self.title_text = title
        self.initial = initial

    def compose(self) -> ComposeResult:
        with Vertical(id="path-dialog"):
            yield Label(self.title_text)
            yield Input(value=self.initial, id="path")

    def on_mount(self) -> None:
        self.query_one("#path", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        value = event.value.strip()
        self.dismiss(Path(value).expanduser() if value else None)

    def action_cancel(self) -> None:
        self.dismiss(None)
