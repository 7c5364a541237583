"""
Calendar Renderer — builds the month view from the calendar state and keeps
it in sync with the log folder.

  - build_month_grid   — 7-column (Sunday-first) grid of day cells
  - build_detail_panel — events of the selected day with display times
  - CalendarController — owns the state, reloads on vault changes, and
                         notifies listeners after every change
"""

import calendar
import logging
import re
import threading
from dataclasses import dataclass, field
from datetime import date, datetime, tzinfo
from typing import Callable

from bm_calendar import config
from bm_calendar.services import calendar_state as cs
from bm_calendar.services.calendar_state import CalendarState, date_key
from bm_calendar.services.log_parser import EventRecord, LogFolderError, load_events
from bm_calendar.services.settings_store import Settings
from bm_calendar.services.vault import Vault, VaultFile, normalize_path

logger = logging.getLogger(__name__)

WEEKDAYS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
_TIME_LABEL_RE = re.compile(r"^time:\s*", re.IGNORECASE)


@dataclass(frozen=True)
class DayCell:
    day: int
    date: str
    event_count: int = 0
    is_today: bool = False
    is_future: bool = False
    is_selected: bool = False

    @property
    def has_events(self) -> bool:
        return self.event_count > 0

    def to_dict(self) -> dict:
        return {
            "day": self.day,
            "date": self.date,
            "eventCount": self.event_count,
            "isToday": self.is_today,
            "isFuture": self.is_future,
            "isSelected": self.is_selected,
        }


@dataclass(frozen=True)
class MonthGrid:
    year: int
    month: int
    cells: list  # leading None blanks, then one DayCell per day

    @property
    def month_name(self) -> str:
        return calendar.month_name[self.month]

    @property
    def title(self) -> str:
        return f"{self.month_name} {self.year}"

    @property
    def weeks(self) -> list[list]:
        cells = list(self.cells)
        cells += [None] * (-len(cells) % 7)
        return [cells[i:i + 7] for i in range(0, len(cells), 7)]

    def cell(self, day: int) -> DayCell:
        return [c for c in self.cells if c is not None][day - 1]

    def to_dict(self) -> dict:
        return {
            "year": self.year,
            "month": self.month,
            "title": self.title,
            "weekdays": WEEKDAYS,
            "cells": [c.to_dict() if c else None for c in self.cells],
        }


@dataclass(frozen=True)
class DetailItem:
    time: str
    time_display: str
    notes: str


@dataclass(frozen=True)
class DetailPanel:
    date: str
    items: list[DetailItem] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "events": [
                {"time": i.time, "timeDisplay": i.time_display, "notes": i.notes}
                for i in self.items
            ],
        }


@dataclass(frozen=True)
class DebugInfo:
    logs_folder: str
    dates_with_events: int
    counts: dict[str, int]


@dataclass(frozen=True)
class CalendarView:
    """Everything a front end needs to draw the panel."""
    state: CalendarState
    grid: MonthGrid | None = None
    detail: DetailPanel | None = None
    debug: DebugInfo | None = None

    @property
    def error(self) -> str | None:
        return self.state.error

    def to_dict(self) -> dict:
        payload = {
            "error": self.error,
            "selectedDate": self.state.selected_date,
            "grid": self.grid.to_dict() if self.grid else None,
            "detail": self.detail.to_dict() if self.detail else None,
        }
        if self.debug:
            payload["debug"] = {
                "logsFolder": self.debug.logs_folder,
                "datesWithEvents": self.debug.dates_with_events,
                "counts": self.debug.counts,
            }
        return payload


# ── Pure rendering helpers ────────────────────────────────────────────


def format_time(time_str: str, tz: tzinfo | None = None) -> str:
    """
    Best-effort short time (``HH:MM``) for an event's time value.

    Timestamps with an offset are converted to *tz* (local time when None).
    Anything that isn't an ISO-8601 timestamp is shown as written.
    """
    clean = _TIME_LABEL_RE.sub("", time_str).strip()
    candidate = clean[:-1] + "+00:00" if clean[-1:] in ("Z", "z") else clean
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        return clean
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(tz)
    return parsed.strftime("%H:%M")


def build_month_grid(
    year: int,
    month: int,
    events: dict[str, list[EventRecord]],
    selected: str | None = None,
    today: date | None = None,
) -> MonthGrid:
    today = today or date.today()
    first = date(year, month, 1)
    # date.weekday() is Monday=0; the grid starts on Sunday.
    leading = (first.weekday() + 1) % 7
    days_in_month = calendar.monthrange(year, month)[1]

    cells: list = [None] * leading
    for d in range(1, days_in_month + 1):
        day = date(year, month, d)
        key = date_key(day)
        cells.append(
            DayCell(
                day=d,
                date=key,
                event_count=len(events.get(key, [])),
                is_today=day == today,
                is_future=day > today,
                is_selected=key == selected,
            )
        )
    return MonthGrid(year=year, month=month, cells=cells)


def build_detail_panel(
    day: str, events: dict[str, list[EventRecord]], tz: tzinfo | None = None
) -> DetailPanel:
    items = [
        DetailItem(time=ev.time, time_display=format_time(ev.time, tz), notes=ev.notes)
        for ev in events.get(day, [])
    ]
    return DetailPanel(date=day, items=items)


def build_view(
    state: CalendarState,
    settings: Settings,
    today: date | None = None,
    tz: tzinfo | None = None,
) -> CalendarView:
    debug = None
    if settings.debug_mode:
        debug = DebugInfo(
            logs_folder=settings.logs_folder,
            dates_with_events=len(state.events),
            counts={d: len(evs) for d, evs in state.events.items()},
        )
    if state.error:
        return CalendarView(state=state, debug=debug)

    grid = build_month_grid(
        state.year, state.month, state.events, state.selected_date, today
    )
    detail = None
    if state.selected_date:
        detail = build_detail_panel(state.selected_date, state.events, tz)
    return CalendarView(state=state, grid=grid, detail=detail, debug=debug)


def render_text(view: CalendarView) -> str:
    """Plain-text rendering used by the CLI."""
    lines: list[str] = []
    if view.error:
        lines.append(view.error)
    else:
        grid = view.grid
        lines.append(grid.title.center(7 * 6))
        lines.append("".join(f"{w:^6}" for w in WEEKDAYS))
        for week in grid.weeks:
            row = []
            for cell in week:
                if cell is None:
                    row.append(" " * 6)
                    continue
                text = f"{cell.day:>2}"
                if cell.has_events:
                    text += f"·{cell.event_count}"
                if cell.is_selected:
                    text = f"[{text}]"
                elif cell.is_today:
                    text = f"*{text}"
                row.append(f"{text:^6}")
            lines.append("".join(row).rstrip())

        if view.detail:
            lines.append("")
            lines.append(f"Events for {view.detail.date}")
            if view.detail.items:
                for item in view.detail.items:
                    lines.append(f"  {item.time_display:<8} {item.notes}".rstrip())
            else:
                lines.append("  No events logged.")

    if view.debug:
        lines.append("")
        lines.append("Debug Info")
        lines.append(f"  Logs Folder: {view.debug.logs_folder}")
        lines.append(f"  Files found: {view.debug.dates_with_events}")
        for day, count in view.debug.counts.items():
            lines.append(f"  {day}: {count} events")
    return "\n".join(lines)


# ── Controller ────────────────────────────────────────────────────────


class CalendarController:
    """
    Owns the calendar state for one panel.

    Vault change notifications for files under the log folder trigger a full
    reload.  With a debounce delay, a burst of notifications collapses into a
    single reload once the vault has been quiet for that long.
    """

    def __init__(
        self,
        vault: Vault,
        settings: Settings,
        today: Callable[[], date] = date.today,
        tz: tzinfo | None = None,
        debounce: float | None = None,
    ):
        self.vault = vault
        self.settings = settings
        self._today = today
        self.tz = tz
        self.debounce = config.RELOAD_DEBOUNCE_SECONDS if debounce is None else debounce
        self.state = CalendarState.initial(today())
        self._listeners: list[Callable[[CalendarView], None]] = []
        self._lock = threading.Lock()
        self._generation = 0
        self._timer: threading.Timer | None = None
        self._subscribed = False
        self.last_result = None

    # ── Rendering ─────────────────────────────────────────────────────

    def view(self) -> CalendarView:
        return build_view(self.state, self.settings, self._today(), self.tz)

    def add_listener(self, callback: Callable[[CalendarView], None]) -> None:
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[CalendarView], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _apply(self, transition: Callable[[CalendarState], CalendarState]) -> CalendarState:
        """Read, transform and store the state under the lock; notify afterwards."""
        with self._lock:
            self.state = transition(self.state)
            state = self.state
        self._notify()
        return state

    def _notify(self) -> None:
        view = self.view()
        for callback in list(self._listeners):
            callback(view)

    # ── Loading ───────────────────────────────────────────────────────

    def reload(self) -> CalendarState:
        """Re-scan the log folder and replace the event map."""
        with self._lock:
            self._generation += 1
            generation = self._generation
        folder = self.settings.logs_folder

        error = None
        result = None
        try:
            result = load_events(self.vault, folder)
        except LogFolderError as e:
            logger.warning("%s", e)
            error = str(e)

        def finish(state: CalendarState) -> CalendarState:
            if generation != self._generation:
                logger.debug("Dropping stale reload of %s", folder)
                return state
            self.last_result = result
            if error is not None:
                return cs.load_failed(state, error)
            return cs.load_succeeded(state, result.events)

        # Applied to the state current at the end of the scan, so navigation
        # made meanwhile is kept.
        return self._apply(finish)

    def request_reload(self) -> None:
        if self.debounce <= 0:
            self.reload()
            return
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.debounce, self.reload)
            self._timer.daemon = True
            self._timer.start()

    def update_settings(self, settings: Settings) -> CalendarState:
        self.settings = settings
        return self.reload()

    def refresh_settings(self, settings: Settings) -> None:
        """Take settings that don't affect loading and re-render."""
        self.settings = settings
        self._notify()

    # ── Vault subscription ────────────────────────────────────────────

    def is_in_log_folder(self, path: str) -> bool:
        folder = normalize_path(self.settings.logs_folder)
        path = normalize_path(path)
        if folder == "/":
            return True
        return path == folder or path.startswith(folder + "/")

    def _on_vault_change(self, file: VaultFile, old_path: str | None = None) -> None:
        paths = [file.path] + ([old_path] if old_path else [])
        if any(self.is_in_log_folder(p) for p in paths):
            logger.debug("Change under log folder: %s", file.path)
            self.request_reload()

    def subscribe(self) -> None:
        if self._subscribed:
            return
        for event in ("modify", "create", "delete", "rename"):
            self.vault.on(event, self._on_vault_change)
        self._subscribed = True

    def unsubscribe(self) -> None:
        for event in ("modify", "create", "delete", "rename"):
            self.vault.off(event, self._on_vault_change)
        self._subscribed = False
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    # ── User actions ──────────────────────────────────────────────────

    def change_month(self, offset: int) -> CalendarState:
        return self._apply(lambda state: cs.month_changed(state, offset))

    def set_month(self, year: int, month: int) -> CalendarState:
        return self._apply(lambda state: cs.month_set(state, year, month))

    def select_date(self, day: str | None) -> CalendarState:
        return self._apply(lambda state: cs.date_selected(state, day))

    def jump_to_today(self) -> CalendarState:
        today = self._today()
        return self._apply(lambda state: cs.jumped_to_today(state, today))

    def log_file_path(self, day: str) -> str:
        return normalize_path(f"{self.settings.logs_folder}/{day}.md")

    def open_file(self, day: str | None = None) -> bool:
        """Open the log file for *day* (default: the selected day)."""
        day = day or self.state.selected_date
        if not day:
            return False
        file_path = self.log_file_path(day)
        file = self.vault.get_abstract_file_by_path(file_path)
        if not isinstance(file, VaultFile):
            logger.error("File not found at path: %s", file_path)
            return False
        try:
            self.vault.open_file(file)
        except (OSError, RuntimeError):
            logger.exception("Failed to open %s", file_path)
            return False
        return True
