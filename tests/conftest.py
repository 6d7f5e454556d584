"""Shared fixtures for board tests."""

from typing import Optional

import pytest

from jobboard.board import BoardManager
from jobboard.models import BoardState, Column, JobRecord
from jobboard.sync import SyncOutbox


class RecordingAdapter:
    """Sync adapter that records calls instead of talking to a sheet."""

    def __init__(self, next_row: int = 100, fail: bool = False):
        self.calls = []
        self.next_row = next_row
        self.fail = fail

    def _record(self, *call):
        self.calls.append(call)
        if self.fail:
            raise RuntimeError("sheet unavailable")

    def set_status(self, row_index: int, status: Column) -> None:
        self._record("set_status", row_index, status)

    def save_fields(self, row_index: int, fields: dict) -> None:
        self._record("save_fields", row_index, dict(fields))

    def upsert_record(self, fields: dict, row_index: Optional[int] = None) -> Optional[int]:
        self._record("upsert_record", dict(fields), row_index)
        if row_index is not None:
            return row_index
        row = self.next_row
        self.next_row += 1
        return row

    def delete_record(self, record_id: str, row_index: Optional[int] = None) -> None:
        self._record("delete_record", record_id, row_index)


def make_record(record_id: str, status: Column = Column.NEW, row: Optional[int] = None, **fields) -> JobRecord:
    fields.setdefault("title", record_id.title())
    return JobRecord(id=record_id, status=status, remote_row_index=row, **fields)


def assert_partitioned(state: BoardState) -> None:
    """Every id appears once, in the column matching its status."""
    seen = []
    for column in Column:
        for record in state.column(column):
            assert record.status == column
            seen.append(record.id)
    assert len(seen) == len(set(seen))


@pytest.fixture
def adapter():
    return RecordingAdapter()


@pytest.fixture
def outbox(adapter):
    return SyncOutbox(adapter)


@pytest.fixture
def board(outbox):
    return BoardManager(outbox=outbox)


@pytest.fixture
def seeded_board(board):
    """Board with two sheet rows in NEW, one in INTERVIEW and one local card in NEW."""
    board.replace(
        BoardState.from_records(
            [
                make_record("a", row=2, date="05.03.2024"),
                make_record("b", row=3, date="01.01.2024"),
                make_record("c", Column.INTERVIEW, row=4),
                make_record("self-d", title="Local"),
            ]
        )
    )
    return board
