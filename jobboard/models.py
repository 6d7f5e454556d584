"""Data models for the job application board."""

import re
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

LOCAL_ID_PREFIX = "self-"


class Column(Enum):
    """Pipeline stages, in board order. Values are the labels stored in the sheet."""

    NEW = "NEW"
    CV_SENT = "CV SENT"
    FOLLOWED_UP = "FOLLOWED UP"
    INTERVIEW = "INTERVIEW"
    REFUSAL = "REFUSAL"
    OFFER = "OFFER"
    ARCHIVE = "ARCHIVE"

    @classmethod
    def parse(cls, text: Optional[str]) -> Optional["Column"]:
        """Resolve a status cell to a column, or None if it names no stage."""
        if not text:
            return None
        key = re.sub(r"[\s_-]+", "_", text.strip().upper())
        try:
            return cls[key]
        except KeyError:
            return None


class SortMode(Enum):
    NONE = "none"
    ASCENDING = "ascending"
    DESCENDING = "descending"

    def next(self) -> "SortMode":
        order = list(SortMode)
        return order[(order.index(self) + 1) % len(order)]


class JobRecord(BaseModel):
    """A job application card."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str = ""
    company: str = ""
    location: str = ""
    link: str = ""
    date: str = ""  # D.M.YYYY, also tolerates - and /
    status: Column = Column.NEW
    notes: str = ""
    interview_date: str = ""
    contacts: str = ""
    tag: str = ""
    remote_row_index: Optional[int] = Field(default=None, ge=2)
    extras: dict[str, str] = Field(default_factory=dict)

    @property
    def is_local(self) -> bool:
        return self.id.startswith(LOCAL_ID_PREFIX)

    def editable_fields(self) -> dict[str, str]:
        """Fields sent to the remote store on create/update."""
        return {
            "ID": self.id,
            "Title": self.title,
            "Description": self.description,
            "Company": self.company,
            "Location": self.location,
            "Link": self.link,
            "Date": self.date,
            "Status": self.status.value,
            "Notes": self.notes,
            "Interview Date": self.interview_date,
            "Contacts": self.contacts,
            "Tag": self.tag,
        }


class BoardState(BaseModel):
    """Snapshot of every column's ordered cards.

    Snapshots are never changed after construction; mutations build a new one.
    """

    model_config = ConfigDict(frozen=True)

    columns: dict[Column, tuple[JobRecord, ...]]

    @classmethod
    def empty(cls) -> "BoardState":
        return cls(columns={column: () for column in Column})

    @classmethod
    def from_records(cls, records: Iterable[JobRecord]) -> "BoardState":
        grouped: dict[Column, list[JobRecord]] = {column: [] for column in Column}
        for record in records:
            grouped[record.status].append(record)
        return cls(columns={column: tuple(items) for column, items in grouped.items()})

    def column(self, column: Column) -> tuple[JobRecord, ...]:
        return self.columns.get(column, ())

    def find(self, record_id: str) -> Optional[tuple[Column, int, JobRecord]]:
        for column in Column:
            for index, record in enumerate(self.column(column)):
                if record.id == record_id:
                    return column, index, record
        return None

    def all_records(self) -> list[JobRecord]:
        return [record for column in Column for record in self.column(column)]

    def counts(self) -> dict[Column, int]:
        return {column: len(self.column(column)) for column in Column}

    def with_columns(self, updates: dict[Column, Iterable[JobRecord]]) -> "BoardState":
        """Return a new snapshot with the given columns replaced."""
        columns = {column: self.column(column) for column in Column}
        for column, items in updates.items():
            columns[column] = tuple(items)
        return BoardState(columns=columns)


class ViewState(BaseModel):
    """Display-only filter and per-column sort settings."""

    model_config = ConfigDict(frozen=True)

    query: str = ""
    sort_modes: dict[Column, SortMode] = Field(default_factory=dict)

    def sort_mode(self, column: Column) -> SortMode:
        return self.sort_modes.get(column, SortMode.NONE)
