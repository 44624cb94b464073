from __future__ import annotations

import io
from collections.abc import Callable, Sequence

import pytest
from openpyxl import Workbook as OpenpyxlWorkbook

from spreadsheet_translator.services.language_rules import HINDI_RULES
from spreadsheet_translator.sheet_document import (
    Cell,
    CellKind,
    Sheet,
    TranslationSettings,
    Workbook,
)
from spreadsheet_translator.utils.exceptions import BackendError


class FakeBackend:
    """Backend double that records requests and replies from a script.

    ``replies`` may hold strings, exceptions, or callables taking the user
    prompt. When it runs out, every input line is echoed back as
    ``"<i>. HI:<text>"``.
    """

    def __init__(self, replies: Sequence[object] = ()) -> None:
        self.replies = list(replies)
        self.calls: list[tuple[str, str]] = []

    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append((system_prompt, user_prompt))
        if self.replies:
            reply = self.replies.pop(0)
            if isinstance(reply, BaseException):
                raise reply
            if callable(reply):
                return reply(user_prompt)
            return str(reply)
        return echo_translation(user_prompt)


def numbered_lines(user_prompt: str) -> list[str]:
    """Extract the ``"i. text"`` lines the prompt builder emitted."""
    lines = []
    for line in user_prompt.splitlines():
        head, sep, rest = line.partition(". ")
        if sep and head.isdigit():
            lines.append(rest)
    return lines


def echo_translation(user_prompt: str) -> str:
    return "\n".join(
        f"{i}. HI:{text}" for i, text in enumerate(numbered_lines(user_prompt), 1)
    )


def make_sheet(
    name: str,
    values: list[list[object]],
    kinds: dict[tuple[int, int], CellKind] | None = None,
) -> Sheet:
    """Build a rectangular sheet with spreadsheet-letter column labels."""
    kinds = kinds or {}
    width = max((len(row) for row in values), default=0)
    rows = []
    for r, row in enumerate(values):
        cells = []
        for c in range(width):
            value = row[c] if c < len(row) else None
            kind = kinds.get((r, c))
            if kind is None:
                kind = (
                    CellKind.NUMBER
                    if isinstance(value, (int, float)) and not isinstance(value, bool)
                    else CellKind.STRING
                )
            cells.append(Cell(value=value, kind=kind))
        rows.append(cells)
    labels = [chr(ord("A") + i) for i in range(width)]
    return Sheet(name=name, rows=rows, column_labels=labels)


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def backend_failure() -> BackendError:
    return BackendError("connection reset", model="test-model")


@pytest.fixture
def hindi_settings() -> TranslationSettings:
    return TranslationSettings()


@pytest.fixture
def hindi_rules():
    return HINDI_RULES


@pytest.fixture
def sheet_factory() -> Callable[..., Sheet]:
    return make_sheet


@pytest.fixture
def quiz_workbook() -> Workbook:
    """Two-sheet workbook with headers, skippable values and plain text."""
    quiz = make_sheet(
        "Quiz",
        [
            ["Question", "Option1", "Code"],
            ["What is 2+2?", 4, "ABC"],
            ["Contact", "a@b.co", "https://example.com"],
        ],
    )
    notes = make_sheet("Notes", [["Hello world"], [None]])
    return Workbook(file_name="quiz.xlsx", sheets=[quiz, notes])


def build_xlsx(sheets: dict[str, list[list[object]]]) -> bytes:
    """Serialize plain values to xlsx bytes with openpyxl."""
    wb = OpenpyxlWorkbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(name)
        for row in rows:
            ws.append(row)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
