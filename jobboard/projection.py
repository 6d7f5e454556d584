"""Read-only filtered and sorted views of the board."""

import re
from datetime import date
from typing import Iterable, Optional

from .models import BoardState, Column, JobRecord, SortMode, ViewState

DATE_PATTERN = re.compile(r"^(\d{1,2})[./-](\d{1,2})[./-](\d{4})$")

SEARCH_FIELDS = ("title", "company", "location", "description", "link", "tag")


def parse_date(text: Optional[str]) -> Optional[date]:
    """Parse D.M.YYYY (or with - or /) into a date. Returns None if unparsable."""
    if not text:
        return None
    match = DATE_PATTERN.match(text.strip())
    if not match:
        return None
    day, month, year = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def matches(record: JobRecord, query: str) -> bool:
    needle = query.strip().lower()
    if not needle:
        return True
    return any(needle in (getattr(record, field) or "").lower() for field in SEARCH_FIELDS)


def sort_records(records: Iterable[JobRecord], mode: SortMode) -> list[JobRecord]:
    """Order by date. Cards without a valid date always come last, in their original order."""
    records = list(records)
    if mode == SortMode.NONE:
        return records

    dated: list[tuple[date, JobRecord]] = []
    undated: list[JobRecord] = []
    for record in records:
        parsed = parse_date(record.date)
        if parsed is None:
            undated.append(record)
        else:
            dated.append((parsed, record))

    dated.sort(key=lambda pair: pair[0], reverse=mode == SortMode.DESCENDING)
    return [record for _, record in dated] + undated


def project(state: BoardState, view: ViewState) -> BoardState:
    """Apply the view's filter and sort to every column, leaving `state` untouched."""
    columns = {}
    for column in Column:
        items = [record for record in state.column(column) if matches(record, view.query)]
        columns[column] = tuple(sort_records(items, view.sort_mode(column)))
    return BoardState(columns=columns)


def toggle_sort(view: ViewState, column: Column) -> ViewState:
    """Advance one column's sort: none -> ascending -> descending -> none."""
    sort_modes = dict(view.sort_modes)
    sort_modes[column] = view.sort_mode(column).next()
    return view.model_copy(update={"sort_modes": sort_modes})


def drag_disabled(view: ViewState, focus_mode: bool = False) -> bool:
    """Drag-and-drop indices only line up with the board when nothing is filtered."""
    return focus_mode or bool(view.query.strip())
