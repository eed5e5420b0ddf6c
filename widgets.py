"""Custom widgets for the work hours application."""

from __future__ import annotations

from datetime import date

from textual.widgets import Static
from rich.text import Text

from models import CalculationResult
from utils import format_seconds_to_clock


class MonthHeader(Static):
    """Shows month name on left and month navigation on right."""

    def __init__(self, year: int, month: int, **kwargs):
        super().__init__(**kwargs)
        self.year = year
        self.month = month
        self.left_arrow_pos = 0
        self.right_arrow_pos = 0

    def update_display(self, holiday_count: int = 0, synced: bool = False):
        month_name = date(self.year, self.month, 1).strftime("%B %Y")
        nav = "◄ prev   next ►"

        text = Text()
        text.append(f"MONTH: {month_name}", style="bold")
        if holiday_count:
            text.append(f"  ({holiday_count} holiday{'s' if holiday_count != 1 else ''})", style="dim")
        if synced:
            text.append("  ☁", style="bold")

        # Right edge lines up with the summary panel
        target_end_col = 60
        text.append(" " * max(2, target_end_col - len(nav) - len(text.plain)))

        # Store positions for click detection
        self.left_arrow_pos = len(text.plain)
        self.right_arrow_pos = self.left_arrow_pos + len(nav) - 1

        text.append(nav, style="bold")
        self.update(text)

    def on_click(self, event) -> None:
        """Handle clicks on the arrows for month navigation."""
        click_col = event.x

        if self.left_arrow_pos <= click_col < self.left_arrow_pos + 2:
            self.app.action_prev_month()  # type: ignore[attr-defined]
        elif self.right_arrow_pos - 1 <= click_col <= self.right_arrow_pos:
            self.app.action_next_month()  # type: ignore[attr-defined]


class MonthlySummaryPanel(Static):
    """Shows the month's required vs. worked time."""

    def update_display(self, result: CalculationResult):
        required = format_seconds_to_clock(result.total_required_seconds)
        worked = format_seconds_to_clock(result.total_worked_seconds)
        deficit = format_seconds_to_clock(result.deficit_seconds)
        avg = format_seconds_to_clock(result.avg_daily_required_seconds)

        pct = (
            result.total_worked_seconds / result.total_required_seconds * 100
            if result.total_required_seconds else 0
        )

        text = Text()
        text.append(f"                       Working days  {result.total_working_days:>10}\n")
        text.append(
            f"                     Remaining days  {result.remaining_working_days:>10}\n",
            style="dim" if result.remaining_working_days == 0 else "",
        )
        text.append(f"                           Required  {required:>10}\n")
        text.append(f"                             Worked  {worked:>10}   ({pct:.1f}%)\n")
        text.append(
            f"                          Still due  {deficit:>10}\n",
            style="dim" if result.deficit_seconds == 0 else "",
        )
        # Target is never dimmed
        text.append(f"                     Target per day  {avg:>10}", style="bold")

        self.update(text)
