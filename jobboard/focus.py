"""Focus mode: walk one column's cards one at a time."""

import logging
from typing import Callable, Optional

from .board import BoardManager
from .models import BoardState, Column, JobRecord, ViewState
from .preferences import ViewPreferences
from .projection import drag_disabled, project

logger = logging.getLogger(__name__)


class ActionDisabledError(Exception):
    """A quick action was requested that the UI shows as disabled."""


class FocusNavigator:
    """Cursor over the filtered and sorted list of one column.

    The index is re-clamped whenever the board or the view changes, so it
    always points at a card or is 0 on an empty list.

    Column and sort modes start from `preferences`. Every column switch or
    view change updates them and hands the result to `save`, if given.
    """

    def __init__(
        self,
        board: BoardManager,
        view: Optional[ViewState] = None,
        column: Optional[Column] = None,
        preferences: Optional[ViewPreferences] = None,
        save: Optional[Callable[[ViewPreferences], None]] = None,
    ):
        self.board = board
        self.preferences = preferences or ViewPreferences()
        self.view = view or self.preferences.to_view()
        self.column = column if column is not None else self.preferences.focus_column
        self.index = 0
        self._save = save
        board.subscribe(self._on_board_change)

    def _on_board_change(self, state: BoardState) -> None:
        self.clamp()

    def _remember(self) -> None:
        self.preferences = self.preferences.with_view(self.view).model_copy(update={"focus_column": self.column})
        if self._save is not None:
            self._save(self.preferences)

    @property
    def drag_disabled(self) -> bool:
        return drag_disabled(self.view, self.preferences.focus_mode_enabled)

    def items(self) -> tuple[JobRecord, ...]:
        return project(self.board.state, self.view).column(self.column)

    def clamp(self) -> None:
        length = len(self.items())
        self.index = max(min(self.index, length - 1), 0)

    def next(self) -> None:
        length = len(self.items())
        if length == 0:
            return
        self.index = min(self.index + 1, length - 1)

    def prev(self) -> None:
        self.index = max(self.index - 1, 0)

    def switch_column(self, column: Column) -> None:
        self.column = column
        self.index = 0
        self._remember()

    def set_view(self, view: ViewState) -> None:
        self.view = view
        self.clamp()
        self._remember()

    def current(self) -> Optional[JobRecord]:
        items = self.items()
        if not items:
            return None
        return items[min(self.index, len(items) - 1)]

    def position(self) -> str:
        length = len(self.items())
        return f"{self.index + 1}/{length}" if length else "0/0"

    def can_move_to(self, target: Column) -> bool:
        return target != self.column and self.current() is not None

    def move_current(self, target: Column) -> JobRecord:
        """Quick action: send the current card to `target`."""
        record = self.current()
        if record is None or target == self.column:
            raise ActionDisabledError(f"Cannot move to {target.name} from {self.column.name}")
        self.board.move_to_column(record.id, target)
        logger.debug(f"Focus action moved {record.id} to {target.name}")
        return record
