"""Cell eligibility classification.

Decides, per cell, whether it is sent for translation or kept verbatim.
The decision is an ordered table of ``ClassificationRule`` entries; the
first rule whose predicate matches determines the skip reason. A cell that
matches no rule is translated. Bare numbers are deliberately translatable:
the backend transliterates them into target-script digits.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Collection, Iterable, Sequence
from dataclasses import dataclass, field
from urllib.parse import urlsplit

from spreadsheet_translator.sheet_document import (
    Cell,
    CellKind,
    CellRef,
    GlossaryTerm,
    Sheet,
    SkipReason,
    TranslationStats,
)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
CODE_RE = re.compile(r"^[A-Z\-_]+$")
CODE_MAX_LENGTH = 10
OPAQUE_URL_SCHEMES = frozenset({"mailto", "tel", "urn", "data", "file"})


def is_email(value: str) -> bool:
    return bool(EMAIL_RE.match(value))


def is_url(value: str) -> bool:
    """Whether ``value`` is a well-formed absolute URL.

    Requires a scheme plus a network location (``https://host/...``), or one
    of the opaque schemes such as ``mailto:`` with a non-empty body.
    """
    if not value or any(ch.isspace() for ch in value):
        return False
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    scheme = parts.scheme.lower()
    if not scheme or not re.match(r"^[a-z][a-z0-9+.\-]*$", scheme):
        return False
    if scheme in OPAQUE_URL_SCHEMES:
        return bool(parts.path or parts.netloc)
    return bool(parts.netloc)


def is_code(value: str) -> bool:
    """Uppercase identifier shapes such as ``SKU_A`` or ``HR-IT``."""
    return len(value) <= CODE_MAX_LENGTH and bool(CODE_RE.match(value))


def looks_like_formula(cell: Cell, value: str) -> bool:
    """Formula cells, and literal text that reads as one (``=...``)."""
    return cell.kind == CellKind.FORMULA or value.startswith("=")


def matches_glossary(value: str, glossary: Iterable[GlossaryTerm]) -> bool:
    lowered = value.lower()
    return any(term.term and term.term.lower() in lowered for term in glossary)


@dataclass(frozen=True)
class Classification:
    """Outcome of classifying one cell."""

    skip: bool
    reason: SkipReason | None = None


TRANSLATE = Classification(skip=False)


@dataclass(frozen=True)
class ClassificationInput:
    """Everything a rule predicate may look at."""

    cell: Cell
    text: str
    column_label: str
    protected_columns: Collection[str]
    glossary: Sequence[GlossaryTerm]


@dataclass(frozen=True)
class ClassificationRule:
    reason: SkipReason
    predicate: Callable[[ClassificationInput], bool]


DEFAULT_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(SkipReason.EMPTY, lambda c: c.text == ""),
    ClassificationRule(
        SkipReason.PROTECTED, lambda c: c.column_label in c.protected_columns
    ),
    ClassificationRule(
        SkipReason.FORMULA, lambda c: looks_like_formula(c.cell, c.text)
    ),
    ClassificationRule(SkipReason.DATE, lambda c: c.cell.kind == CellKind.DATE),
    ClassificationRule(SkipReason.EMAIL, lambda c: is_email(c.text)),
    ClassificationRule(SkipReason.URL, lambda c: is_url(c.text)),
    ClassificationRule(
        SkipReason.GLOSSARY, lambda c: matches_glossary(c.text, c.glossary)
    ),
    ClassificationRule(SkipReason.CODE, lambda c: is_code(c.text)),
)


@dataclass
class AnnotatedGrid:
    """A sheet's rows after classification.

    Attributes:
        rows: Copies of the sheet rows with ``skip``/``skip_reason`` set.
        refs: Eligible cells with their positions, in row-major order.
        stats: ``total`` and ``skipped`` counters for the sheet.
    """

    rows: list[list[Cell]]
    refs: list[CellRef] = field(default_factory=list)
    stats: TranslationStats = field(default_factory=TranslationStats)


class CellClassifier:
    """Apply the ordered skip rules to cells and whole sheets."""

    def __init__(self, rules: Sequence[ClassificationRule] = DEFAULT_RULES) -> None:
        self.rules = tuple(rules)

    def classify(
        self,
        cell: Cell,
        column_label: str = "",
        protected_columns: Collection[str] = frozenset(),
        glossary: Sequence[GlossaryTerm] = (),
    ) -> Classification:
        """Classify one cell; the first matching rule wins."""
        candidate = ClassificationInput(
            cell=cell,
            text=cell.text.strip(),
            column_label=column_label,
            protected_columns=protected_columns,
            glossary=glossary,
        )
        for rule in self.rules:
            if rule.predicate(candidate):
                return Classification(skip=True, reason=rule.reason)
        return TRANSLATE

    def is_eligible(
        self,
        cell: Cell,
        column_label: str = "",
        protected_columns: Collection[str] = frozenset(),
        glossary: Sequence[GlossaryTerm] = (),
    ) -> bool:
        """Whether a cell would be sent to the backend."""
        if cell.skip or not cell.is_translatable_value:
            return False
        return not self.classify(cell, column_label, protected_columns, glossary).skip

    def annotate_grid(
        self, sheet: Sheet, glossary: Sequence[GlossaryTerm] = ()
    ) -> AnnotatedGrid:
        """Classify every cell of a sheet without mutating it."""
        stats = TranslationStats()
        rows: list[list[Cell]] = []
        refs: list[CellRef] = []

        for row_index, row in enumerate(sheet.rows):
            annotated_row: list[Cell] = []
            for col_index, cell in enumerate(row):
                counted = cell.is_translatable_value
                if counted:
                    stats.total += 1

                if cell.skip:
                    annotated = cell
                else:
                    decision = self.classify(
                        cell,
                        sheet.column_label(col_index),
                        sheet.protected_columns,
                        glossary,
                    )
                    annotated = cell.annotate(decision.skip, decision.reason)

                if annotated.skip:
                    if counted:
                        stats.record_skip(annotated.skip_reason)
                elif counted:
                    refs.append(CellRef(annotated, row_index, col_index))
                annotated_row.append(annotated)
            rows.append(annotated_row)

        return AnnotatedGrid(rows=rows, refs=refs, stats=stats)
