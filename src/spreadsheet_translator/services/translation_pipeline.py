"""End-to-end translation of a decoded workbook.

For each included sheet, in order:

1. Classify every cell and collect the eligible ones with their positions.
2. Translate the eligible cells in batches.
3. Place the results back into a copy of the grid by position.
4. Store the new grid on the sheet as ``translated_rows``.

Progress reported to the caller is overall progress across all included
sheets. A cancellation stops the run after the in-flight batch; sheets
not reached keep no translated grid.
"""

import asyncio
import time
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from spreadsheet_translator.config import settings as app_settings
from spreadsheet_translator.services.batch_translator import BatchTranslator
from spreadsheet_translator.services.cell_classifier import (
    AnnotatedGrid,
    CellClassifier,
)
from spreadsheet_translator.services.position_reconciler import PositionReconciler
from spreadsheet_translator.sheet_document import (
    GlossaryTerm,
    Sheet,
    TranslationSettings,
    TranslationStats,
    Workbook,
)
from spreadsheet_translator.utils.exceptions import (
    ErrorCode,
    NoEligibleContentError,
    ValidationError,
)
from spreadsheet_translator.utils.logging import (
    LogContext,
    PerformanceMetrics,
    get_logger,
    timed_operation,
)

logger = get_logger(__name__)

ProgressCallback = Callable[[float], None]


@dataclass
class TranslationRun:
    """Outcome of ``TranslationPipeline.run``."""

    workbook: Workbook
    stats: TranslationStats = field(default_factory=TranslationStats)
    cancelled: bool = False
    run_id: str = ""


class TranslationPipeline:
    """Drive classification, batch translation and reconciliation."""

    def __init__(
        self,
        translator: BatchTranslator,
        classifier: CellClassifier | None = None,
        reconciler: PositionReconciler | None = None,
        max_cells_per_sheet: int | None = None,
    ) -> None:
        self.translator = translator
        self.classifier = classifier or translator.classifier
        self.reconciler = reconciler or PositionReconciler()
        self.max_cells_per_sheet = (
            max_cells_per_sheet or app_settings.max_cells_per_sheet
        )

    def validate(self, workbook: Workbook) -> None:
        """Reject workbooks the pipeline cannot process.

        Raises:
            ValidationError: If the workbook has no sheets, or an included
                sheet is too large or has rows wider than its column labels.
        """
        if not workbook.sheets:
            raise ValidationError(
                "Workbook contains no sheets",
                field="sheets",
                details={"file_name": workbook.file_name},
            )

        for sheet in workbook.included_sheets():
            if sheet.cell_count > self.max_cells_per_sheet:
                raise ValidationError(
                    f"Sheet '{sheet.name}' has too many cells",
                    field="sheets",
                    error_code=ErrorCode.GRID_TOO_LARGE,
                    details={
                        "sheet": sheet.name,
                        "cell_count": sheet.cell_count,
                        "max_cells": self.max_cells_per_sheet,
                    },
                )
            # Sheets built without labels are not checked.
            if sheet.column_labels and sheet.column_count > len(sheet.column_labels):
                raise ValidationError(
                    f"Sheet '{sheet.name}' has rows wider than its column labels",
                    field="sheets",
                    error_code=ErrorCode.MALFORMED_GRID,
                    details={
                        "sheet": sheet.name,
                        "column_count": sheet.column_count,
                        "label_count": len(sheet.column_labels),
                    },
                )

    def compute_stats(
        self, workbook: Workbook, glossary: Sequence[GlossaryTerm] = ()
    ) -> TranslationStats:
        """Count total and skipped cells of the included sheets without translating."""
        stats = TranslationStats()
        for sheet in workbook.included_sheets():
            stats.merge(self.classifier.annotate_grid(sheet, glossary).stats)
        return stats

    async def run(
        self,
        workbook: Workbook,
        settings: TranslationSettings,
        glossary: Sequence[GlossaryTerm] = (),
        on_progress: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> TranslationRun:
        """Translate every included sheet of ``workbook`` in place.

        Raises:
            ValidationError: If the workbook fails validation.
            NoEligibleContentError: If no included sheet has a cell to send.
        """
        self.validate(workbook)

        sheets = workbook.included_sheets()
        grids = [self.classifier.annotate_grid(sheet, glossary) for sheet in sheets]
        if not any(grid.refs for grid in grids):
            raise NoEligibleContentError(
                details={
                    "file_name": workbook.file_name,
                    "included_sheets": [sheet.name for sheet in sheets],
                }
            )

        for sheet in workbook.sheets:
            sheet.translated_rows = None

        run = TranslationRun(workbook=workbook, run_id=uuid.uuid4().hex[:12])
        start_time = time.time()

        with LogContext(run_id=run.run_id), timed_operation(
            logger, "translate_workbook"
        ) as metrics:
            logger.info(
                "Starting translation run",
                file_name=workbook.file_name,
                sheets=len(sheets),
                target_language=settings.target_language.value,
                domain=settings.domain.value,
            )

            reached = 0
            for sheet_index, (sheet, grid) in enumerate(
                zip(sheets, grids, strict=True)
            ):
                if cancel_event is not None and cancel_event.is_set():
                    run.cancelled = True
                    break

                reached += 1

                with LogContext(sheet=sheet.name):
                    sheet_stats = await self._translate_sheet(
                        sheet,
                        grid,
                        settings,
                        glossary,
                        self._sheet_progress(on_progress, sheet_index, len(sheets)),
                        cancel_event,
                        run,
                        metrics,
                    )
                run.stats.merge(sheet_stats)
                metrics.cells_processed += len(grid.refs)
                if run.cancelled:
                    break
                if on_progress is not None:
                    on_progress((sheet_index + 1) / len(sheets))

            metrics.failed_batches = run.stats.failed_batches
            metrics.custom_metrics["conflicts"] = run.stats.conflicts

            # Sheets never reached still count towards the totals.
            for grid in grids[reached:]:
                run.stats.merge(grid.stats)
                run.stats.untranslated += len(grid.refs)

        logger.log_translation_result(
            run_id=run.run_id,
            duration_seconds=time.time() - start_time,
            total=run.stats.total,
            translated=run.stats.translated,
            skipped=run.stats.skipped,
            untranslated=run.stats.untranslated,
            failed_batches=run.stats.failed_batches,
            cancelled=run.cancelled,
        )
        return run

    async def _translate_sheet(
        self,
        sheet: Sheet,
        grid: AnnotatedGrid,
        settings: TranslationSettings,
        glossary: Sequence[GlossaryTerm],
        on_progress: ProgressCallback | None,
        cancel_event: asyncio.Event | None,
        run: TranslationRun,
        metrics: PerformanceMetrics,
    ) -> TranslationStats:
        stats = TranslationStats(
            total=grid.stats.total,
            skipped=grid.stats.skipped,
            skip_reasons=dict(grid.stats.skip_reasons),
        )
        logger.info(
            "Translating sheet",
            eligible=len(grid.refs),
            skipped=grid.stats.skipped,
        )

        result = await self.translator.translate(
            [ref.cell for ref in grid.refs],
            settings,
            glossary,
            on_progress=on_progress,
            cancel_event=cancel_event,
        )
        reconciled = self.reconciler.reconcile(grid.rows, grid.refs, result.cells)
        sheet.set_translated_rows(reconciled.rows)

        stats.translated = result.translated_count
        stats.untranslated = result.untranslated_count
        stats.failed_batches = result.failed_batches
        stats.conflicts = reconciled.conflicts
        metrics.batches += result.batches_total
        metrics.api_calls += result.batches_total
        run.cancelled = result.cancelled
        return stats

    @staticmethod
    def _sheet_progress(
        on_progress: ProgressCallback | None, sheet_index: int, sheet_count: int
    ) -> ProgressCallback | None:
        if on_progress is None:
            return None

        def report(fraction: float) -> None:
            on_progress((sheet_index + fraction) / sheet_count)

        return report
