"""Turn a raw sheet payload into a board snapshot."""

import logging
from typing import Any, Callable, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from .models import BoardState, Column, JobRecord

logger = logging.getLogger(__name__)

HEADER_ROW_OFFSET = 2  # one for the header row, one for 1-based rows

# Lowercased sheet header -> JobRecord field
CANONICAL_FIELDS = {
    "id": "id",
    "title": "title",
    "description": "description",
    "company": "company",
    "location": "location",
    "link": "link",
    "date": "date",
    "status": "status",
    "notes": "notes",
    "interview date": "interview_date",
    "contacts": "contacts",
    "tag": "tag",
}


class BoardLoaded(BaseModel):
    """Successful load. Rows with an unknown status are listed in `unplaced`."""

    state: BoardState
    unplaced: list[JobRecord] = Field(default_factory=list)


class LoadFailed(BaseModel):
    reason: str


IngestResult = Union[BoardLoaded, LoadFailed]


def normalize_header(header: Any) -> str:
    """Strip a leading byte-order mark and surrounding whitespace."""
    return str(header).lstrip("\ufeff").strip()


def _cell(row: list[Any], index: int) -> str:
    if index >= len(row) or row[index] is None:
        return ""
    return str(row[index])


def _row_to_record(headers: list[str], row: list[Any], row_index: int) -> tuple[JobRecord, Optional[Column]]:
    values: dict[str, str] = {}
    extras: dict[str, str] = {}
    for position, header in enumerate(headers):
        field = CANONICAL_FIELDS.get(header.lower())
        if field is None:
            if header:
                extras[header] = _cell(row, position)
        elif field not in values:
            values[field] = _cell(row, position)

    status_text = values.pop("status", "")
    column = Column.parse(status_text)
    if column is None and status_text:
        extras.setdefault("Status", status_text)

    record_id = values.pop("id", "").strip() or f"row-{row_index}"
    title = values.pop("title", "")
    record = JobRecord(
        id=record_id,
        title=title,
        status=column or Column.NEW,
        remote_row_index=row_index,
        extras=extras,
        **values,
    )
    return record, column


def ingest(values: Any) -> IngestResult:
    """Build a full board from sheet values (row 0 is the header row).

    Never raises; any problem with the payload comes back as LoadFailed.
    """
    try:
        if not isinstance(values, list) or not values:
            return LoadFailed(reason="Sheet returned no rows")
        header_row = values[0]
        if not isinstance(header_row, list):
            return LoadFailed(reason="Header row is not a list of cells")
        headers = [normalize_header(h) for h in header_row]

        placed: list[JobRecord] = []
        unplaced: list[JobRecord] = []
        seen_ids: set[str] = set()

        for position, row in enumerate(values[1:]):
            if not isinstance(row, list):
                return LoadFailed(reason=f"Row {position + HEADER_ROW_OFFSET} is not a list of cells")
            if not any(str(cell).strip() for cell in row if cell is not None):
                continue

            row_index = position + HEADER_ROW_OFFSET
            record, column = _row_to_record(headers, row, row_index)

            if record.id in seen_ids:
                unique_id = f"{record.id}#{row_index}"
                logger.warning(f"Duplicate ID {record.id!r} on row {row_index}, using {unique_id!r}")
                record = record.model_copy(update={"id": unique_id})
            seen_ids.add(record.id)

            if column is None:
                unplaced.append(record)
            else:
                placed.append(record)

    except (ValidationError, TypeError, ValueError) as e:
        logger.error(f"Failed to parse sheet payload: {e}")
        return LoadFailed(reason=f"Malformed sheet payload: {e}")

    if unplaced:
        logger.warning(
            f"{len(unplaced)} rows have an unknown status and were left off the board: "
            + ", ".join(f"row {r.remote_row_index} ({r.extras.get('Status', '')!r})" for r in unplaced)
        )

    state = BoardState.from_records(placed)
    logger.info(f"Ingested {len(placed)} records into {len(Column)} columns")
    return BoardLoaded(state=state, unplaced=unplaced)


def load_board(fetch: Callable[[], Any]) -> IngestResult:
    """Fetch sheet values and ingest them, reporting any failure as LoadFailed."""
    try:
        values = fetch()
    except Exception as e:
        logger.error(f"Failed to fetch sheet values: {e}")
        return LoadFailed(reason=f"Could not load sheet: {e}")
    return ingest(values)
