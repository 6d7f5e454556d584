"""Tests for filtering, sorting and date parsing."""

from datetime import date

from jobboard.models import BoardState, Column, SortMode, ViewState
from jobboard.projection import drag_disabled, matches, parse_date, project, sort_records, toggle_sort

from conftest import make_record


class TestParseDate:
    def test_separators_are_equivalent(self):
        assert parse_date("5.3.2024") == parse_date("5-3-2024") == parse_date("5/3/2024") == date(2024, 3, 5)

    def test_two_digit_parts_and_whitespace(self):
        assert parse_date(" 05.03.2024 ") == date(2024, 3, 5)

    def test_unparsable_returns_none(self):
        for text in ("", None, "2024-03-05", "5.3.24", "tomorrow", "31.02.2024", "1.13.2024"):
            assert parse_date(text) is None


class TestMatches:
    def test_searches_fixed_fields(self):
        record = make_record("a", title="Backend Dev", company="Acme", tag="Remote", notes="secret")

        assert matches(record, "acme")
        assert matches(record, "  REMOTE ")
        assert not matches(record, "secret")
        assert matches(record, "")


class TestSortRecords:
    def records(self):
        return [
            make_record("x", date="bad"),
            make_record("b", date="02.01.2024"),
            make_record("y", date=""),
            make_record("a", date="01.01.2024"),
            make_record("c", date="3/1/2024"),
        ]

    def test_none_keeps_order(self):
        assert [r.id for r in sort_records(self.records(), SortMode.NONE)] == ["x", "b", "y", "a", "c"]

    def test_ascending_puts_undated_last(self):
        assert [r.id for r in sort_records(self.records(), SortMode.ASCENDING)] == ["a", "b", "c", "x", "y"]

    def test_descending_still_puts_undated_last(self):
        assert [r.id for r in sort_records(self.records(), SortMode.DESCENDING)] == ["c", "b", "a", "x", "y"]

    def test_equal_dates_keep_relative_order(self):
        records = [make_record("p", date="1.1.2024"), make_record("q", date="01-01-2024")]

        assert [r.id for r in sort_records(records, SortMode.DESCENDING)] == ["p", "q"]


class TestProject:
    def state(self):
        return BoardState.from_records(
            [
                make_record("a", title="Backend Dev", date="05.03.2024"),
                make_record("b", title="Frontend Dev", date="01.01.2024"),
                make_record("c", title="Data Eng", status=Column.OFFER),
            ]
        )

    def test_filter_round_trip(self):
        state = self.state()

        filtered = project(state, ViewState(query="backend"))
        restored = project(state, ViewState(query=""))

        assert [r.id for r in filtered.column(Column.NEW)] == ["a"]
        assert filtered.column(Column.OFFER) == ()
        assert restored.columns == state.columns

    def test_does_not_touch_state(self):
        state = self.state()

        project(state, ViewState(sort_modes={Column.NEW: SortMode.ASCENDING}))

        assert [r.id for r in state.column(Column.NEW)] == ["a", "b"]

    def test_sort_is_per_column(self):
        view = ViewState(sort_modes={Column.NEW: SortMode.ASCENDING})

        assert [r.id for r in project(self.state(), view).column(Column.NEW)] == ["b", "a"]


class TestToggleSort:
    def test_three_toggles_return_to_none(self):
        view = ViewState()
        seen = []
        for _ in range(3):
            view = toggle_sort(view, Column.NEW)
            seen.append(view.sort_mode(Column.NEW))

        assert seen == [SortMode.ASCENDING, SortMode.DESCENDING, SortMode.NONE]
        assert view.sort_mode(Column.OFFER) == SortMode.NONE


class TestDragDisabled:
    def test_query_or_focus_mode_disables(self):
        assert not drag_disabled(ViewState())
        assert not drag_disabled(ViewState(query="   "))
        assert drag_disabled(ViewState(query="dev"))
        assert drag_disabled(ViewState(), focus_mode=True)
