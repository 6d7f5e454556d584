"""Tests for the command line entry point."""

import pytest

from jobboard import config as config_module
from jobboard import main as main_module
from jobboard.board import BoardManager
from jobboard.config import Config
from jobboard.ingest import LoadFailed, ingest
from jobboard.models import Column
from jobboard.preferences import load_preferences
from jobboard.sync import SyncOutbox

from conftest import RecordingAdapter

PAYLOAD = [
    ["ID", "Title", "Company", "Date", "Status"],
    ["1", "Backend Dev", "Acme", "02.01.2024", "NEW"],
    ["2", "Frontend Dev", "Globex", "01.01.2024", "NEW"],
    ["3", "Data Eng", "Initech", "", "INTERVIEW"],
]


@pytest.fixture
def configured(tmp_path, monkeypatch):
    config_module._config = Config(spreadsheet_id="abc", preferences_path=tmp_path / "prefs.json")
    monkeypatch.setattr(main_module, "load_remote_board", lambda config: ingest(PAYLOAD))
    yield
    config_module.reset_config()


def run(argv, board=None):
    args = main_module.build_parser().parse_args(argv)
    return main_module.run_command(args, board or BoardManager())


class TestRunCommand:
    def test_summary(self, configured, capsys):
        assert run(["summary"]) == 0

        out = capsys.readouterr().out
        assert "NEW          2" in out
        assert "INTERVIEW    1" in out

    def test_list_sorted_and_saved(self, configured, capsys, tmp_path):
        assert run(["list", "new", "--sort", "asc"]) == 0

        lines = capsys.readouterr().out.strip().splitlines()
        assert [line.split("\t")[0] for line in lines] == ["2", "1"]
        assert (tmp_path / "prefs.json").exists()

    def test_list_with_query(self, configured, capsys):
        assert run(["list", "NEW", "--query", "globex"]) == 0

        assert capsys.readouterr().out.startswith("2\t")

    def test_move_flushes_status(self, configured):
        adapter = RecordingAdapter()
        board = BoardManager(outbox=SyncOutbox(adapter))

        assert run(["move", "1", "cv_sent"], board) == 0

        assert board.state.column(Column.CV_SENT)[0].id == "1"
        assert adapter.calls == [("set_status", 2, Column.CV_SENT)]

    def test_move_to_same_column_fails(self, configured):
        assert run(["move", "3", "INTERVIEW"]) == 1

    def test_load_failure(self, configured, monkeypatch):
        monkeypatch.setattr(main_module, "load_remote_board", lambda config: LoadFailed(reason="offline"))

        assert run(["summary"]) == 1


class TestFocusCommand:
    def test_switch_is_remembered(self, configured, capsys, tmp_path):
        assert run(["focus", "interview"]) == 0
        assert run(["focus"]) == 0

        lines = capsys.readouterr().out.strip().splitlines()
        assert lines[-2] == "INTERVIEW 1/1 (drag disabled)"
        assert lines[-1].startswith("3\t")
        assert load_preferences(tmp_path / "prefs.json").focus_column == Column.INTERVIEW

    def test_uses_saved_sort(self, configured, capsys):
        run(["list", "new", "--sort", "asc"])
        capsys.readouterr()

        assert run(["focus", "--skip", "1"]) == 0

        assert capsys.readouterr().out.splitlines() == [
            "NEW 2/2 (drag disabled)",
            "1\t02.01.2024\tBackend Dev\tAcme",
        ]

    def test_quick_move_flushes_status(self, configured):
        adapter = RecordingAdapter()
        board = BoardManager(outbox=SyncOutbox(adapter))

        assert run(["focus", "--move", "offer"], board) == 0

        assert board.state.column(Column.OFFER)[0].id == "1"
        assert adapter.calls == [("set_status", 2, Column.OFFER)]

    def test_quick_move_to_same_column_fails(self, configured):
        assert run(["focus", "--move", "new"]) == 1


class TestParser:
    def test_rejects_unknown_column(self):
        with pytest.raises(SystemExit):
            main_module.build_parser().parse_args(["list", "LIMBO"])
