"""Pending remote writes, keyed by record so a newer change replaces an older one."""

import logging
from collections import OrderedDict
from typing import Any, Literal, Optional, Protocol, Union

from pydantic import BaseModel, Field

from .models import Column

logger = logging.getLogger(__name__)


class SyncError(Exception):
    """A remote write was rejected or could not be delivered."""


class SetStatus(BaseModel):
    kind: Literal["set_status"] = "set_status"
    record_id: str
    row_index: int
    status: Column


class SaveFields(BaseModel):
    kind: Literal["save_fields"] = "save_fields"
    record_id: str
    row_index: int
    fields: dict[str, str] = Field(default_factory=dict)


class UpsertRecord(BaseModel):
    kind: Literal["upsert_record"] = "upsert_record"
    record_id: str
    fields: dict[str, str] = Field(default_factory=dict)
    row_index: Optional[int] = None


class DeleteRecord(BaseModel):
    kind: Literal["delete_record"] = "delete_record"
    record_id: str
    row_index: Optional[int] = None


SyncOp = Union[SetStatus, SaveFields, UpsertRecord, DeleteRecord]


class SyncAdapter(Protocol):
    """Write side of the remote sheet."""

    def set_status(self, row_index: int, status: Column) -> None: ...

    def save_fields(self, row_index: int, fields: dict[str, str]) -> None: ...

    def upsert_record(self, fields: dict[str, str], row_index: Optional[int] = None) -> Optional[int]: ...

    def delete_record(self, record_id: str, row_index: Optional[int] = None) -> None: ...


class SyncOutbox:
    """Queue of remote writes that callers submit without waiting.

    Only the latest pending operation per (record, kind) is kept. A delete
    drops everything else still pending for the same record. Failed
    operations are logged and dropped once `max_attempts` is used up; the
    local board is never rolled back.
    """

    def __init__(self, adapter: SyncAdapter, max_attempts: int = 1):
        self.adapter = adapter
        self.max_attempts = max(1, max_attempts)
        self._pending: "OrderedDict[tuple[str, str], SyncOp]" = OrderedDict()
        self._attempts: dict[tuple[str, str], int] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def pending(self) -> list[SyncOp]:
        return list(self._pending.values())

    def has_pending(self, record_id: str, kind: str) -> bool:
        return (record_id, kind) in self._pending

    def discard(self, record_id: str) -> int:
        """Drop every pending operation for a record. Returns how many were dropped."""
        keys = [k for k in self._pending if k[0] == record_id]
        for key in keys:
            self._drop(key)
        return len(keys)

    def submit(self, op: SyncOp) -> None:
        if isinstance(op, DeleteRecord):
            self.discard(op.record_id)

        key = (op.record_id, op.kind)
        if key in self._pending:
            logger.debug(f"Superseding pending {op.kind} for {op.record_id}")
            self._drop(key)
        self._pending[key] = op

    def _drop(self, key: tuple[str, str]) -> None:
        self._pending.pop(key, None)
        self._attempts.pop(key, None)

    def _dispatch(self, op: SyncOp) -> Any:
        if isinstance(op, SetStatus):
            return self.adapter.set_status(op.row_index, op.status)
        if isinstance(op, SaveFields):
            return self.adapter.save_fields(op.row_index, op.fields)
        if isinstance(op, UpsertRecord):
            return self.adapter.upsert_record(op.fields, op.row_index)
        return self.adapter.delete_record(op.record_id, op.row_index)

    def flush(self) -> list[tuple[SyncOp, Any]]:
        """Send everything pending, in submission order.

        Returns (operation, adapter result) for each operation that succeeded.
        """
        results: list[tuple[SyncOp, Any]] = []
        batch = list(self._pending.items())
        self._pending.clear()

        for key, op in batch:
            attempt = self._attempts.pop(key, 0) + 1
            try:
                result = self._dispatch(op)
            except Exception as e:
                logger.error(f"Sync {op.kind} failed for {op.record_id} (attempt {attempt}): {e}")
                if attempt < self.max_attempts and key not in self._pending:
                    self._pending[key] = op
                    self._attempts[key] = attempt
                continue
            logger.debug(f"Synced {op.kind} for {op.record_id}")
            results.append((op, result))

        return results
