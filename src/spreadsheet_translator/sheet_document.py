"""Dataclasses representing a workbook moving through the translation pipeline."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import asdict, dataclass, field, replace
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Union

from spreadsheet_translator.utils.exceptions import ReconciliationError

CellValue = Union[str, int, float, bool, datetime, date, time, None]


class CellKind(str, Enum):
    """Type tag assigned to a cell when the workbook is decoded."""

    STRING = "string"
    NUMBER = "number"
    DATE = "date"
    FORMULA = "formula"
    HYPERLINK = "hyperlink"
    BOOLEAN = "boolean"


class SkipReason(str, Enum):
    """Why a cell was exempted from translation."""

    EMPTY = "empty"
    PROTECTED = "protected"
    FORMULA = "formula"
    DATE = "date"
    EMAIL = "email"
    URL = "url"
    GLOSSARY = "glossary"
    CODE = "code"


class TargetLanguage(str, Enum):
    """Supported target languages, keyed by locale code."""

    HINDI = "hi-IN"
    MARATHI = "mr-IN"


class Tone(str, Enum):
    FORMAL = "formal"
    NEUTRAL = "neutral"
    CONVERSATIONAL = "conversational"


class Domain(str, Enum):
    EDUCATION = "education"
    ADMIN = "admin"
    MARKETING = "marketing"
    TECHNICAL = "technical"


class QualityLevel(str, Enum):
    FAST = "fast"
    BALANCED = "balanced"
    HIGH = "high"


def format_cell_value(value: CellValue) -> str:
    """Render a cell value the way it is shown to the backend.

    Integral floats drop their trailing ``.0`` so ``3.0`` is sent as ``3``.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


@dataclass
class Cell:
    """A single spreadsheet cell.

    ``value`` and ``kind`` are fixed at decode time. ``translated``, ``skip``
    and ``skip_reason`` are only ever set by the pipeline, on copies.
    """

    value: CellValue
    kind: CellKind = CellKind.STRING
    note: str | None = None
    translated: str | None = None
    skip: bool = False
    skip_reason: SkipReason | None = None

    @property
    def text(self) -> str:
        """The cell value as text."""
        return format_cell_value(self.value)

    @property
    def effective_text(self) -> str:
        """Translated text when present, otherwise the original text."""
        return self.translated if self.translated is not None else self.text

    @property
    def is_translatable_value(self) -> bool:
        """Whether the value is text or a number (booleans excluded)."""
        if isinstance(self.value, bool):
            return False
        return isinstance(self.value, (str, int, float)) and self.text.strip() != ""

    def annotate(self, skip: bool, reason: SkipReason | None = None) -> Cell:
        """Return a copy carrying a classification decision."""
        return replace(self, skip=skip, skip_reason=reason if skip else None)

    def with_translation(self, translated: str | None) -> Cell:
        """Return a copy carrying a translation."""
        return replace(self, translated=translated)


@dataclass(frozen=True)
class CellRef:
    """A cell together with the grid position it was taken from."""

    cell: Cell
    row_index: int
    col_index: int


@dataclass
class Sheet:
    """A single worksheet and, after a run, its translated grid."""

    name: str
    rows: list[list[Cell]]
    column_labels: list[str] = field(default_factory=list)
    included: bool = True
    protected_columns: set[str] = field(default_factory=set)
    translated_rows: list[list[Cell]] | None = None

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return max((len(row) for row in self.rows), default=0)

    @property
    def cell_count(self) -> int:
        return sum(len(row) for row in self.rows)

    def column_label(self, col_index: int) -> str:
        """Label for a column index, or an empty string past the last label."""
        if 0 <= col_index < len(self.column_labels):
            return self.column_labels[col_index]
        return ""

    def iter_cells(self) -> Iterator[tuple[int, int, Cell]]:
        """Yield ``(row_index, col_index, cell)`` in row-major order."""
        for row_index, row in enumerate(self.rows):
            for col_index, cell in enumerate(row):
                yield row_index, col_index, cell

    def set_translated_rows(self, rows: list[list[Cell]]) -> None:
        """Replace the translated grid, enforcing identical dimensions."""
        if len(rows) != len(self.rows):
            raise ReconciliationError(
                "Translated grid row count does not match the source sheet",
                details={
                    "sheet": self.name,
                    "expected_rows": len(self.rows),
                    "actual_rows": len(rows),
                },
            )
        for row_index, (source_row, translated_row) in enumerate(
            zip(self.rows, rows, strict=True)
        ):
            if len(source_row) != len(translated_row):
                raise ReconciliationError(
                    "Translated grid column count does not match the source sheet",
                    details={
                        "sheet": self.name,
                        "row_index": row_index,
                        "expected_columns": len(source_row),
                        "actual_columns": len(translated_row),
                    },
                )
        self.translated_rows = rows


@dataclass
class Workbook:
    """A decoded workbook."""

    file_name: str
    sheets: list[Sheet]

    def included_sheets(self) -> list[Sheet]:
        return [sheet for sheet in self.sheets if sheet.included]

    def get_sheet(self, name: str) -> Sheet | None:
        for sheet in self.sheets:
            if sheet.name == name:
                return sheet
        return None


@dataclass(frozen=True)
class GlossaryTerm:
    """A term whose presence in a cell keeps the cell untranslated."""

    term: str
    keep_as: str | None = None


def parse_glossary(text: str) -> list[GlossaryTerm]:
    """Parse a glossary written one ``term[,keep_as]`` entry per line."""
    terms: list[GlossaryTerm] = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        term, _, keep_as = line.partition(",")
        term = term.strip()
        if not term:
            continue
        terms.append(GlossaryTerm(term=term, keep_as=keep_as.strip() or term))
    return terms


@dataclass(frozen=True)
class TranslationSettings:
    """User-selected options for a translation run."""

    target_language: TargetLanguage = TargetLanguage.HINDI
    tone: Tone = Tone.NEUTRAL
    domain: Domain = Domain.ADMIN
    quality: QualityLevel = QualityLevel.BALANCED


@dataclass
class TranslationStats:
    """Counters reported after a translation run.

    Attributes:
        total: Non-empty text/number cells in the included sheets.
        translated: Cells whose output came from the backend.
        skipped: Cells exempted by classification.
        untranslated: Cells sent for translation that kept their source text
            because their batch failed or the response was short.
        conflicts: Cells whose placed value disagreed with the grid value.
        failed_batches: Backend calls that raised.
        skip_reasons: Skipped-cell counts per reason.
    """

    total: int = 0
    translated: int = 0
    skipped: int = 0
    untranslated: int = 0
    conflicts: int = 0
    failed_batches: int = 0
    skip_reasons: dict[str, int] = field(default_factory=dict)

    def record_skip(self, reason: SkipReason | None) -> None:
        self.skipped += 1
        if reason is not None:
            self.skip_reasons[reason.value] = self.skip_reasons.get(reason.value, 0) + 1

    def merge(self, other: TranslationStats) -> None:
        """Add another sheet's counters into this one."""
        self.total += other.total
        self.translated += other.translated
        self.skipped += other.skipped
        self.untranslated += other.untranslated
        self.conflicts += other.conflicts
        self.failed_batches += other.failed_batches
        for reason, count in other.skip_reasons.items():
            self.skip_reasons[reason] = self.skip_reasons.get(reason, 0) + count

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
