"""Place translated cells back into the grid by position."""

from collections.abc import Sequence
from dataclasses import dataclass, replace

from spreadsheet_translator.sheet_document import Cell, CellRef
from spreadsheet_translator.utils.exceptions import ReconciliationError
from spreadsheet_translator.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ReconciliationResult:
    rows: list[list[Cell]]
    conflicts: int = 0


class PositionReconciler:
    """Write translation results into a copy of the grid.

    Identity is the ``(row, col)`` pair carried by each ``CellRef``. The
    cell value is only compared as a consistency check: a result whose
    value disagrees with the grid is still placed, and the disagreement is
    logged and counted as a conflict.
    """

    def reconcile(
        self,
        rows: Sequence[Sequence[Cell]],
        refs: Sequence[CellRef],
        results: Sequence[Cell],
    ) -> ReconciliationResult:
        """Build a new grid with ``results[k]`` at ``refs[k]``'s position.

        Raises:
            ReconciliationError: If ``refs`` and ``results`` differ in length
                or a position lies outside the grid.
        """
        if len(refs) != len(results):
            raise ReconciliationError(
                "Result count does not match submitted cell count",
                details={"submitted": len(refs), "returned": len(results)},
            )

        grid = [[replace(cell) for cell in row] for row in rows]
        conflicts = 0

        for ref, result in zip(refs, results, strict=True):
            if not (
                0 <= ref.row_index < len(grid)
                and 0 <= ref.col_index < len(grid[ref.row_index])
            ):
                raise ReconciliationError(
                    "Cell position lies outside the grid",
                    details={"row_index": ref.row_index, "col_index": ref.col_index},
                )

            current = grid[ref.row_index][ref.col_index]
            if current.value != result.value:
                conflicts += 1
                logger.warning(
                    "Translated cell value differs from grid value",
                    row_index=ref.row_index,
                    col_index=ref.col_index,
                )
            grid[ref.row_index][ref.col_index] = result

        return ReconciliationResult(rows=grid, conflicts=conflicts)
