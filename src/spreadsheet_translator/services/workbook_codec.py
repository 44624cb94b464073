"""Read and write xlsx workbooks with openpyxl."""

from __future__ import annotations

import io
import zipfile
from collections.abc import Iterable
from pathlib import PurePath
from typing import Any

from openpyxl import Workbook as OpenpyxlWorkbook
from openpyxl import load_workbook
from openpyxl.cell import Cell as OpenpyxlCell
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.worksheet.worksheet import Worksheet

from spreadsheet_translator.config import settings
from spreadsheet_translator.services.cell_classifier import is_email, is_url
from spreadsheet_translator.sheet_document import Cell, CellKind, Sheet, Workbook
from spreadsheet_translator.utils.exceptions import (
    ErrorCode,
    FileError,
    FileTooLargeError,
    UnsupportedFormatError,
    WorkbookReadError,
)
from spreadsheet_translator.utils.logging import get_logger

logger = get_logger(__name__)

SUPPORTED_EXTENSIONS = frozenset({".xlsx", ".xlsm"})
TRANSLATED_SUFFIX = "_translated"


def translated_file_name(file_name: str) -> str:
    """``report.xlsx`` -> ``report_translated.xlsx``."""
    path = PurePath(file_name)
    base = path.stem if path.suffix.lower() in {".xlsx", ".xlsm", ".xls"} else path.name
    return f"{base}{TRANSLATED_SUFFIX}.xlsx"


class WorkbookCodec:
    """Convert between xlsx bytes and ``Workbook`` documents."""

    def __init__(self, max_file_size_bytes: int | None = None) -> None:
        self.max_file_size_bytes = max_file_size_bytes or settings.max_file_size_bytes

    def decode(self, data: bytes, file_name: str) -> Workbook:
        """Decode an uploaded workbook.

        Every sheet is read in full and padded to a rectangle. Columns are
        labelled with spreadsheet letters.

        Raises:
            UnsupportedFormatError: If the extension is not xlsx/xlsm.
            FileTooLargeError: If ``data`` exceeds the configured limit.
            WorkbookReadError: If the bytes are not a readable workbook.
        """
        extension = PurePath(file_name).suffix.lower()
        if extension not in SUPPORTED_EXTENSIONS:
            raise UnsupportedFormatError(
                f"Unsupported file type '{extension or file_name}'. "
                "Upload an .xlsx workbook.",
                extension=extension or None,
                file_name=file_name,
            )
        if len(data) > self.max_file_size_bytes:
            raise FileTooLargeError(
                file_size=len(data),
                max_size=self.max_file_size_bytes,
                file_name=file_name,
            )

        try:
            # Load twice: once for formulas, once for cached values.
            workbook = load_workbook(io.BytesIO(data), data_only=False)
            computed_wb = load_workbook(io.BytesIO(data), data_only=True)
        except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
            raise WorkbookReadError(
                f"Could not read workbook: {e}",
                file_name=file_name,
                details={"original_error": str(e)},
            ) from e

        sheets = [
            self._decode_sheet(workbook[name], computed_wb[name])
            for name in workbook.sheetnames
        ]
        logger.info(
            "Workbook decoded",
            file_name=file_name,
            sheets=len(sheets),
            cells=sum(sheet.cell_count for sheet in sheets),
        )
        return Workbook(file_name=file_name, sheets=sheets)

    def encode(self, workbook: Workbook) -> bytes:
        """Write every sheet that has a translated grid to xlsx bytes.

        Cells carry their translation when present, otherwise their original
        value. Only formula cells are written as formulas, and characters
        that cannot be stored in a worksheet are dropped.

        Raises:
            FileError: If no sheet has been translated.
        """
        translated = [s for s in workbook.sheets if s.translated_rows is not None]
        if not translated:
            raise FileError(
                "Workbook has no translated sheets to export",
                error_code=ErrorCode.WORKBOOK_WRITE_ERROR,
                file_name=workbook.file_name,
            )

        output = OpenpyxlWorkbook()
        output.remove(output.active)
        for sheet in translated:
            worksheet = output.create_sheet(title=sheet.name)
            for row_index, row in enumerate(sheet.translated_rows or [], start=1):
                for col_index, cell in enumerate(row, start=1):
                    self._write_cell(worksheet, row_index, col_index, cell)

        buffer = io.BytesIO()
        output.save(buffer)
        logger.info(
            "Workbook encoded",
            file_name=translated_file_name(workbook.file_name),
            sheets=len(translated),
        )
        return buffer.getvalue()

    def _decode_sheet(self, sheet: Worksheet, computed_sheet: Worksheet) -> Sheet:
        column_count = sheet.max_column
        rows: list[list[Cell]] = []
        row_iter: Iterable[tuple[OpenpyxlCell, ...]] = sheet.iter_rows(
            max_col=column_count
        )
        computed_iter = computed_sheet.iter_rows(
            max_col=column_count, values_only=True
        )

        for row_cells, computed_values in zip(row_iter, computed_iter, strict=True):
            row = [
                self._build_cell(cell, computed_value)
                for cell, computed_value in zip(row_cells, computed_values, strict=True)
            ]
            row.extend(Cell(value=None) for _ in range(column_count - len(row)))
            rows.append(row)

        return Sheet(
            name=sheet.title,
            rows=rows,
            column_labels=[get_column_letter(i) for i in range(1, column_count + 1)],
        )

    @staticmethod
    def _build_cell(cell: OpenpyxlCell, computed_value: Any) -> Cell:
        note = cell.comment.text if cell.comment is not None else None
        if cell.data_type == "f":
            return Cell(value=str(cell.value), kind=CellKind.FORMULA, note=note)
        value = cell.value if cell.value is not None else computed_value
        return Cell(value=value, kind=WorkbookCodec._map_kind(cell, value), note=note)

    @staticmethod
    def _map_kind(cell: OpenpyxlCell, value: Any) -> CellKind:
        if getattr(cell, "is_date", False):
            return CellKind.DATE
        if isinstance(value, bool):
            return CellKind.BOOLEAN
        if isinstance(value, (int, float)):
            return CellKind.NUMBER
        if cell.hyperlink is not None:
            return CellKind.HYPERLINK
        if isinstance(value, str) and (is_email(value.strip()) or is_url(value.strip())):
            return CellKind.HYPERLINK
        return CellKind.STRING

    @staticmethod
    def _write_cell(
        worksheet: Worksheet, row_index: int, col_index: int, cell: Cell
    ) -> None:
        value = WorkbookCodec._output_value(cell)
        if value is None:
            return
        target = worksheet.cell(row=row_index, column=col_index, value=value)
        # openpyxl reads any leading "=" as a formula.
        if (
            isinstance(value, str)
            and value.startswith("=")
            and cell.kind != CellKind.FORMULA
        ):
            target.data_type = "s"

    @staticmethod
    def _output_value(cell: Cell) -> Any:
        if cell.translated is not None:
            return ILLEGAL_CHARACTERS_RE.sub("", cell.translated)
        if isinstance(cell.value, str):
            return ILLEGAL_CHARACTERS_RE.sub("", cell.value)
        return cell.value
