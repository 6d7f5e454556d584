"""Board state manager: the in-memory board and its optimistic mutations."""

import logging
from typing import Callable, Optional

from .identity import derive_id, is_local_id
from .models import BoardState, Column, JobRecord
from .sync import DeleteRecord, SaveFields, SetStatus, SyncOutbox, UpsertRecord

logger = logging.getLogger(__name__)

Listener = Callable[[BoardState], None]

EDITABLE_TEXT_FIELDS = (
    "title",
    "description",
    "company",
    "location",
    "link",
    "date",
    "notes",
    "interview_date",
    "contacts",
    "tag",
)

# JobRecord field -> web app parameter for the details save
SAVED_FIELD_PARAMS = {
    "notes": "notes",
    "interview_date": "interviewDate",
    "contacts": "contacts",
    "tag": "tag",
}


class BoardManager:
    """Holds the current board snapshot and applies changes to it.

    Every change builds a new BoardState and swaps it in with a single
    assignment, so readers see either the old board or the new one. Remote
    writes are handed to the outbox and never awaited.
    """

    def __init__(self, outbox: Optional[SyncOutbox] = None, state: Optional[BoardState] = None):
        self.outbox = outbox
        self._state = state or BoardState.empty()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> BoardState:
        return self._state

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _commit(self, state: BoardState) -> None:
        self._state = state
        for listener in self._listeners:
            listener(state)

    def replace(self, state: BoardState) -> None:
        """Swap in a freshly ingested board (full reload)."""
        self._commit(state)
        logger.info(f"Board replaced: {sum(state.counts().values())} records")

    # --- Local placement ---

    def upsert_local(self, record: JobRecord) -> None:
        """Place a record in its status column, replacing any copy with the same id."""
        record = record.model_copy(update={"status": record.status or Column.NEW})
        state = self._state
        found = state.find(record.id)

        updates: dict[Column, list[JobRecord]] = {}
        for column in Column:
            items = [r for r in state.column(column) if r.id != record.id]
            if len(items) != len(state.column(column)):
                updates[column] = items

        target = updates.get(record.status, list(state.column(record.status)))
        if found is not None and found[0] == record.status:
            target.insert(found[1], record)
        else:
            target.insert(0, record)
        updates[record.status] = target

        self._commit(state.with_columns(updates))

    def remove_local(self, record_id: str) -> None:
        """Remove a record from every column."""
        state = self._state
        updates = {
            column: [r for r in state.column(column) if r.id != record_id]
            for column in Column
            if any(r.id == record_id for r in state.column(column))
        }
        if updates:
            self._commit(state.with_columns(updates))

    # --- Moves ---

    def move_to_column(self, record_id: str, target: Column) -> bool:
        """Move a card to the front of another column.

        Returns False without changing anything when the card is unknown or
        already in `target`.
        """
        found = self._state.find(record_id)
        if found is None or found[0] == target:
            return False
        return self._move(found, target, 0)

    def move_across_columns(self, from_column: Column, to_column: Column, target_index: int, record_id: str) -> bool:
        """Drag-and-drop move with an explicit drop position."""
        if from_column == to_column:
            return False
        found = self._state.find(record_id)
        if found is None or found[0] != from_column:
            return False
        return self._move(found, to_column, target_index)

    def _move(self, found: tuple[Column, int, JobRecord], target: Column, index: int) -> bool:
        source, position, record = found
        state = self._state

        source_items = list(state.column(source))
        del source_items[position]
        moved = record.model_copy(update={"status": target})
        target_items = list(state.column(target))
        index = min(max(index, 0), len(target_items))
        target_items.insert(index, moved)

        self._commit(state.with_columns({source: source_items, target: target_items}))
        logger.debug(f"Moved {record.id} from {source.name} to {target.name}")
        self._sync_status(moved)
        return True

    def _sync_status(self, record: JobRecord) -> None:
        if record.remote_row_index is not None:
            self._submit(SetStatus(record_id=record.id, row_index=record.remote_row_index, status=record.status))
        else:
            self._local_upsert_cycle(record)

    def _local_upsert_cycle(self, record: JobRecord) -> None:
        self.upsert_local(record)
        # A create still waiting in the outbox must carry the new status.
        if self.outbox is not None and self.outbox.has_pending(record.id, "upsert_record"):
            self._submit(UpsertRecord(record_id=record.id, fields=record.editable_fields()))

    def reorder_within_column(self, column: Column, from_index: int, to_index: int) -> bool:
        """Move a card inside one column. Position is local only and never synced."""
        items = list(self._state.column(column))
        if not 0 <= from_index < len(items) or from_index == to_index:
            return False
        moved = items.pop(from_index)
        items.insert(min(max(to_index, 0), len(items)), moved)
        self._commit(self._state.with_columns({column: items}))
        return True

    # --- Editing ---

    def save_fields(self, record_id: str, **fields: str) -> bool:
        """Update notes, interview date, contacts or tag in place."""
        unknown = set(fields) - set(SAVED_FIELD_PARAMS)
        if unknown:
            raise ValueError(f"Cannot save fields: {', '.join(sorted(unknown))}")
        found = self._state.find(record_id)
        if found is None:
            return False

        column, index, record = found
        updated = record.model_copy(update=fields)
        items = list(self._state.column(column))
        items[index] = updated
        self._commit(self._state.with_columns({column: items}))

        if updated.remote_row_index is not None:
            params = {param: getattr(updated, field) for field, param in SAVED_FIELD_PARAMS.items()}
            self._submit(SaveFields(record_id=record_id, row_index=updated.remote_row_index, fields=params))
        elif self.outbox is not None and self.outbox.has_pending(record_id, "upsert_record"):
            # No row yet: the queued create has to carry the edit.
            self._submit(UpsertRecord(record_id=record_id, fields=updated.editable_fields()))
        return True

    def submit_record(self, record: JobRecord) -> JobRecord:
        """Create or edit a card from the editor form.

        The title is required. A self- id or the id of a card already on the
        board is kept; a new card gets a derived self- id.
        """
        values = {name: (getattr(record, name) or "").strip() for name in EDITABLE_TEXT_FIELDS}
        if not values["title"]:
            raise ValueError("Title is required")

        if record.id and (is_local_id(record.id) or self._state.find(record.id) is not None):
            record_id = record.id
        else:
            record_id = derive_id(values["title"], values["company"], values["location"])
        record = record.model_copy(update={**values, "id": record_id})

        self.upsert_local(record)
        self._submit(
            UpsertRecord(record_id=record.id, fields=record.editable_fields(), row_index=record.remote_row_index)
        )
        logger.info(f"Saved {record.id} in {record.status.name}")
        return record

    def delete_record(self, record_id: str) -> bool:
        """Delete a card created on this board. Cards from the sheet cannot be deleted here."""
        if not is_local_id(record_id):
            logger.warning(f"Refusing to delete {record_id}: only self- records can be deleted")
            return False
        found = self._state.find(record_id)
        if found is None:
            return False

        record = found[2]
        self.remove_local(record_id)
        if (
            record.remote_row_index is None
            and self.outbox is not None
            and self.outbox.has_pending(record_id, "upsert_record")
        ):
            # Never reached the sheet, so there is nothing to delete remotely.
            self.outbox.discard(record_id)
        else:
            self._submit(DeleteRecord(record_id=record_id, row_index=record.remote_row_index))
        logger.info(f"Deleted {record_id}")
        return True

    # --- Remote sync ---

    def attach_row_index(self, record_id: str, row_index: int) -> bool:
        """Record the sheet row assigned to a newly created card."""
        found = self._state.find(record_id)
        if found is None:
            return False
        self.upsert_local(found[2].model_copy(update={"remote_row_index": row_index}))
        return True

    def _submit(self, op) -> None:
        if self.outbox is None:
            logger.debug(f"No outbox configured, dropping {op.kind} for {op.record_id}")
            return
        self.outbox.submit(op)

    def flush_sync(self) -> int:
        """Send pending remote writes and attach any row indices the sheet assigned."""
        if self.outbox is None:
            return 0
        results = self.outbox.flush()
        for op, result in results:
            if isinstance(op, UpsertRecord) and isinstance(result, int) and op.row_index is None:
                self.attach_row_index(op.record_id, result)
        return len(results)
