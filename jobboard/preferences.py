"""View preferences kept between runs (focus mode, focus column, sort modes)."""

import logging
import os
from pathlib import Path
from typing import Literal, Optional

from filelock import FileLock
from pydantic import BaseModel, Field, ValidationError

from .models import Column, SortMode, ViewState

logger = logging.getLogger(__name__)

PREFERENCES_VERSION = 1
DEFAULT_PATH = Path(__file__).parent.parent / "data" / "preferences.json"


def _default_sort_modes() -> dict[Column, SortMode]:
    return {column: SortMode.NONE for column in Column}


class ViewPreferences(BaseModel):
    """Persisted view settings. Anything missing falls back to these defaults."""

    version: Literal[1] = PREFERENCES_VERSION
    focus_mode_enabled: bool = True
    focus_column: Column = Column.NEW
    sort_modes: dict[Column, SortMode] = Field(default_factory=_default_sort_modes)

    def to_view(self, query: str = "") -> ViewState:
        return ViewState(query=query, sort_modes={**_default_sort_modes(), **self.sort_modes})

    def with_view(self, view: ViewState) -> "ViewPreferences":
        return self.model_copy(update={"sort_modes": {**_default_sort_modes(), **view.sort_modes}})


def load_preferences(path: Optional[Path] = None) -> ViewPreferences:
    """Load preferences, silently using defaults if the file is missing or unusable."""
    path = path or DEFAULT_PATH
    if not path.exists():
        logger.debug(f"No preferences at {path}, using defaults")
        return ViewPreferences()
    try:
        return ViewPreferences.model_validate_json(path.read_text())
    except (ValidationError, ValueError, OSError) as e:
        logger.warning(f"Ignoring unreadable preferences {path}: {e}")
        return ViewPreferences()


def save_preferences(prefs: ViewPreferences, path: Optional[Path] = None) -> None:
    """Write preferences atomically."""
    path = path or DEFAULT_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with FileLock(str(path) + ".lock", timeout=5):
        tmp_path.write_text(prefs.model_dump_json(indent=2))
        os.replace(tmp_path, path)
    logger.debug(f"Saved preferences to {path}")
