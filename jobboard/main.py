"""Command line entry point for the job board."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from filelock import FileLock, Timeout

from .board import BoardManager
from .config import get_config, load_config
from .focus import ActionDisabledError, FocusNavigator
from .ingest import LoadFailed
from .models import Column, SortMode
from .preferences import load_preferences, save_preferences
from .projection import project
from .sheets import AppsScriptAdapter, load_remote_board
from .sync import SyncOutbox

LOCK_FILE = Path("/tmp/jobboard.lock")
LOG_DIR = Path(__file__).parent.parent / "logs"


def setup_logging() -> None:
    """Configure logging for the application."""
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    log_file = LOG_DIR / "app.log"

    config = get_config()
    level = getattr(logging, config.log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(sys.stdout),
        ],
    )


def parse_column(text: str) -> Column:
    column = Column.parse(text)
    if column is None:
        raise argparse.ArgumentTypeError(
            f"unknown column {text!r} (choose from {', '.join(c.name for c in Column)})"
        )
    return column


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jobboard", description="Job application board")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("summary", help="Show how many cards each column holds")

    list_cmd = sub.add_parser("list", help="List the cards in one column")
    list_cmd.add_argument("column", type=parse_column)
    list_cmd.add_argument("--query", default="", help="Filter by title, company, location, ...")
    list_cmd.add_argument("--sort", choices=["none", "asc", "desc"], default=None)

    move_cmd = sub.add_parser("move", help="Move a card to another column")
    move_cmd.add_argument("record_id")
    move_cmd.add_argument("column", type=parse_column)

    focus_cmd = sub.add_parser("focus", help="Show the focused card of a column")
    focus_cmd.add_argument("column", type=parse_column, nargs="?", default=None, help="Column to focus")
    focus_cmd.add_argument("--skip", type=int, default=0, help="Advance this many cards")
    focus_cmd.add_argument("--move", type=parse_column, default=None, help="Send the focused card here")

    return parser


def build_board() -> BoardManager:
    config = get_config()
    outbox = None
    if config.webapp_url:
        outbox = SyncOutbox(AppsScriptAdapter.from_config(config), max_attempts=config.sync_max_attempts)
    return BoardManager(outbox=outbox)


def run_command(args: argparse.Namespace, board: BoardManager) -> int:
    """Load the board and run one command against it."""
    logger = logging.getLogger(__name__)
    config = get_config()

    result = load_remote_board(config)
    if isinstance(result, LoadFailed):
        logger.error(f"Load failed: {result.reason}")
        return 1
    board.replace(result.state)
    for record in result.unplaced:
        logger.warning(f"Row {record.remote_row_index} ({record.title}) has no known status")

    command = args.command or "summary"

    if command == "summary":
        for column, count in board.state.counts().items():
            print(f"{column.value:<12} {count}")
        return 0

    if command == "list":
        prefs = load_preferences(config.preferences_path)
        if args.sort is not None:
            mode = {"none": SortMode.NONE, "asc": SortMode.ASCENDING, "desc": SortMode.DESCENDING}[args.sort]
            prefs = prefs.model_copy(update={"sort_modes": {**prefs.sort_modes, args.column: mode}})
            save_preferences(prefs, config.preferences_path)
        view = prefs.to_view(args.query)
        for record in project(board.state, view).column(args.column):
            print(f"{record.id}\t{record.date}\t{record.title}\t{record.company}")
        return 0

    if command == "move":
        if not board.move_to_column(args.record_id, args.column):
            logger.warning(f"Nothing to move: {args.record_id} is unknown or already in {args.column.name}")
            return 1
        sent = board.flush_sync()
        logger.info(f"Moved {args.record_id} to {args.column.name} ({sent} remote updates sent)")
        return 0

    if command == "focus":
        nav = FocusNavigator(
            board,
            preferences=load_preferences(config.preferences_path),
            save=lambda prefs: save_preferences(prefs, config.preferences_path),
        )
        if args.column is not None and args.column != nav.column:
            nav.switch_column(args.column)
        for _ in range(args.skip):
            nav.next()

        if args.move is not None:
            try:
                record = nav.move_current(args.move)
            except ActionDisabledError as e:
                logger.warning(str(e))
                return 1
            sent = board.flush_sync()
            logger.info(f"Moved {record.id} to {args.move.name} ({sent} remote updates sent)")

        record = nav.current()
        print(f"{nav.column.value} {nav.position()}" + (" (drag disabled)" if nav.drag_disabled else ""))
        if record is not None:
            print(f"{record.id}\t{record.date}\t{record.title}\t{record.company}")
        return 0

    logger.error(f"Unknown command: {command}")
    return 1


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point with concurrency protection."""
    args = build_parser().parse_args(argv)

    try:
        load_config(args.config)
        setup_logging()
    except FileNotFoundError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    logger = logging.getLogger(__name__)

    try:
        with FileLock(LOCK_FILE, timeout=10):
            logger.debug("Acquired lock")
            return run_command(args, build_board())

    except Timeout:
        logger.warning("Could not acquire lock - another instance is running")
        return 0

    except Exception as e:
        logger.exception(f"Command failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
