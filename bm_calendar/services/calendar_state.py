"""
Calendar state and the transitions that move it.

The view never mutates state in place: every user action or reload outcome
is a pure function ``(state, ...) -> new state``.
"""

from dataclasses import dataclass, field, replace
from datetime import date

from bm_calendar.services.log_parser import EventRecord


def date_key(day: date) -> str:
    return day.strftime("%Y-%m-%d")


def check_month(year: int, month: int) -> tuple[int, int]:
    if not date.min.year <= year <= date.max.year:
        raise ValueError(f"Year out of range: {year}")
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")
    return year, month


def shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + offset
    return check_month(index // 12, index % 12 + 1)


@dataclass(frozen=True)
class CalendarState:
    year: int
    month: int
    selected_date: str | None = None
    events: dict[str, list[EventRecord]] = field(default_factory=dict)
    error: str | None = None

    @classmethod
    def initial(cls, today: date | None = None) -> "CalendarState":
        today = today or date.today()
        return cls(year=today.year, month=today.month)

    @property
    def current_month(self) -> tuple[int, int]:
        return self.year, self.month

    def events_for(self, day: str) -> list[EventRecord]:
        return self.events.get(day, [])


def load_succeeded(state: CalendarState, events: dict[str, list[EventRecord]]) -> CalendarState:
    return replace(state, events=dict(events), error=None)


def load_failed(state: CalendarState, message: str) -> CalendarState:
    return replace(state, events={}, error=message)


def month_changed(state: CalendarState, offset: int) -> CalendarState:
    year, month = shift_month(state.year, state.month, offset)
    return replace(state, year=year, month=month, selected_date=None)


def month_set(state: CalendarState, year: int, month: int) -> CalendarState:
    check_month(year, month)
    return replace(state, year=year, month=month, selected_date=None)


def date_selected(state: CalendarState, day: str | None) -> CalendarState:
    return replace(state, selected_date=day)


def jumped_to_today(state: CalendarState, today: date | None = None) -> CalendarState:
    today = today or date.today()
    return replace(
        state, year=today.year, month=today.month, selected_date=date_key(today)
    )
