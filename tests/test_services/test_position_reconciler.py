"""Tests for position-based reconciliation."""

import pytest

from spreadsheet_translator.services.position_reconciler import PositionReconciler
from spreadsheet_translator.sheet_document import Cell, CellRef
from spreadsheet_translator.utils.exceptions import ReconciliationError


def _grid() -> list[list[Cell]]:
    return [
        [Cell("Yes"), Cell("No")],
        [Cell("Yes"), Cell("ABC")],
    ]


class TestPositionReconciler:
    def test_places_results_by_position(self) -> None:
        grid = _grid()
        refs = [CellRef(grid[0][0], 0, 0), CellRef(grid[1][0], 1, 0)]
        results = [
            grid[0][0].with_translation("हाँ (1)"),
            grid[1][0].with_translation("हाँ (2)"),
        ]

        reconciled = PositionReconciler().reconcile(grid, refs, results)

        # Duplicate values land on their own positions.
        assert reconciled.rows[0][0].translated == "हाँ (1)"
        assert reconciled.rows[1][0].translated == "हाँ (2)"
        assert reconciled.rows[0][1].translated is None
        assert reconciled.rows[1][1].value == "ABC"
        assert reconciled.conflicts == 0

    def test_input_grid_not_mutated(self) -> None:
        grid = _grid()
        refs = [CellRef(grid[0][1], 0, 1)]

        reconciled = PositionReconciler().reconcile(
            grid, refs, [grid[0][1].with_translation("नहीं")]
        )

        assert grid[0][1].translated is None
        assert reconciled.rows[0][1].translated == "नहीं"
        assert reconciled.rows[0][0] is not grid[0][0]

    def test_value_mismatch_counted_as_conflict(self) -> None:
        grid = _grid()
        refs = [CellRef(grid[0][1], 0, 1)]

        reconciled = PositionReconciler().reconcile(
            grid, refs, [Cell("Maybe", translated="शायद")]
        )

        assert reconciled.conflicts == 1
        assert reconciled.rows[0][1].translated == "शायद"

    def test_length_mismatch_raises(self) -> None:
        grid = _grid()
        with pytest.raises(ReconciliationError):
            PositionReconciler().reconcile(grid, [CellRef(grid[0][0], 0, 0)], [])

    @pytest.mark.parametrize(("row", "col"), [(2, 0), (0, 2), (-1, 0)])
    def test_out_of_range_position_raises(self, row: int, col: int) -> None:
        grid = _grid()
        with pytest.raises(ReconciliationError):
            PositionReconciler().reconcile(
                grid, [CellRef(Cell("Yes"), row, col)], [Cell("Yes")]
            )
