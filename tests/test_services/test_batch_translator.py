"""Tests for the batched translator."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from conftest import FakeBackend
from spreadsheet_translator.services.batch_translator import (
    BatchOutcome,
    BatchTranslator,
    parse_translation_response,
)
from spreadsheet_translator.sheet_document import (
    Cell,
    CellKind,
    GlossaryTerm,
    TranslationSettings,
)
from spreadsheet_translator.utils.exceptions import (
    BackendError,
    BackendRateLimitError,
    ErrorCode,
)


def _cells(*values: object) -> list[Cell]:
    return [
        Cell(
            v,
            kind=CellKind.NUMBER if isinstance(v, (int, float)) else CellKind.STRING,
        )
        for v in values
    ]


def _translator(backend: FakeBackend, **kwargs) -> BatchTranslator:
    kwargs.setdefault("batch_size", 2)
    kwargs.setdefault("batch_delay_seconds", 0.1)
    kwargs.setdefault("sleep", AsyncMock())
    return BatchTranslator(backend, **kwargs)


class TestParseTranslationResponse:
    def test_strips_ordinals_and_whitespace(self) -> None:
        response = "1. नमस्ते\n  2.दुनिया  \n3.   तीन"
        assert parse_translation_response(response, 3) == ["नमस्ते", "दुनिया", "तीन"]

    def test_blank_lines_dropped(self) -> None:
        assert parse_translation_response("\n1. एक\n\n   \n2. दो\n", 2) == ["एक", "दो"]

    def test_extra_lines_truncated(self) -> None:
        assert parse_translation_response("a\nb\nc", 2) == ["a", "b"]

    def test_short_reply_padded(self) -> None:
        assert parse_translation_response("1. एक", 3) == ["एक", "", ""]

    def test_empty_reply(self) -> None:
        assert parse_translation_response("", 2) == ["", ""]

    def test_line_with_only_ordinal_is_dropped(self) -> None:
        assert parse_translation_response("1.\n2. दो", 1) == ["दो"]

    def test_devanagari_ordinal_kept(self) -> None:
        assert parse_translation_response("१. एक", 1) == ["१. एक"]


class TestBatchOutcome:
    def test_missing_counts(self) -> None:
        assert BatchOutcome(index=0, size=5, received=3).missing == 2
        failed = BatchOutcome(index=0, size=5, error="boom")
        assert failed.failed
        assert failed.missing == 5


class TestBatchTranslator:
    def test_invalid_batch_size(self, fake_backend: FakeBackend) -> None:
        with pytest.raises(ValueError, match="batch_size"):
            BatchTranslator(fake_backend, batch_size=-1)

    async def test_translates_eligible_cells_only(
        self, fake_backend: FakeBackend, hindi_settings: TranslationSettings
    ) -> None:
        cells = _cells("Hello", "ABC", None, "World")

        result = await _translator(fake_backend).translate(cells, hindi_settings)

        assert [c.translated for c in result.cells] == [
            "HI:Hello",
            None,
            None,
            "HI:World",
        ]
        assert [c.value for c in result.cells] == ["Hello", "ABC", None, "World"]
        assert len(fake_backend.calls) == 1
        assert "1. Hello\n2. World" in fake_backend.calls[0][1]
        assert result.eligible == 2
        assert result.translated_count == 2
        assert result.untranslated_count == 0

    async def test_numbers_sent_as_text(
        self, fake_backend: FakeBackend, hindi_settings: TranslationSettings
    ) -> None:
        result = await _translator(fake_backend).translate(
            _cells(3.0, 0), hindi_settings
        )

        assert "1. 3\n2. 0" in fake_backend.calls[0][1]
        assert [c.translated for c in result.cells] == ["HI:3", "HI:0"]

    async def test_nothing_eligible_makes_no_calls(
        self, fake_backend: FakeBackend, hindi_settings: TranslationSettings
    ) -> None:
        result = await _translator(fake_backend).translate(
            _cells("ABC", "a@b.co", None), hindi_settings
        )

        assert fake_backend.calls == []
        assert result.eligible == 0
        assert result.batches_total == 0

    async def test_glossary_terms_not_sent(
        self, fake_backend: FakeBackend, hindi_settings: TranslationSettings
    ) -> None:
        result = await _translator(fake_backend).translate(
            _cells("Open Excel", "Close the door"),
            hindi_settings,
            glossary=[GlossaryTerm("excel")],
        )

        assert result.cells[0].translated is None
        assert result.cells[1].translated == "HI:Close the door"

    async def test_batches_sequential_with_delay(
        self, fake_backend: FakeBackend, hindi_settings: TranslationSettings
    ) -> None:
        sleep = AsyncMock()
        translator = _translator(fake_backend, batch_delay_seconds=0.5, sleep=sleep)

        result = await translator.translate(
            _cells("One", "Two", "Three", "Four", "Five"), hindi_settings
        )

        assert result.batches_total == 3
        assert len(fake_backend.calls) == 3
        assert "1. Five" in fake_backend.calls[2][1]
        assert sleep.await_count == 2
        sleep.assert_awaited_with(0.5)

    async def test_no_pause_when_delay_is_zero(
        self, fake_backend: FakeBackend, hindi_settings: TranslationSettings
    ) -> None:
        sleep = AsyncMock()
        translator = _translator(fake_backend, batch_delay_seconds=0, sleep=sleep)

        await translator.translate(_cells("One", "Two", "Three"), hindi_settings)

        sleep.assert_not_awaited()

    async def test_failed_batch_does_not_stop_run(
        self, hindi_settings: TranslationSettings
    ) -> None:
        backend = FakeBackend([BackendError("connection reset")])

        result = await _translator(backend).translate(
            _cells("One", "Two", "Three", "Four"), hindi_settings
        )

        assert len(backend.calls) == 2
        assert [c.translated for c in result.cells] == [
            None,
            None,
            "HI:Three",
            "HI:Four",
        ]
        assert result.failed_batches == 1
        assert result.failed_cells == 2
        assert result.translated_count == 2
        assert result.untranslated_count == 2
        assert result.batches[0].error == "connection reset"

    async def test_rate_limited_batch_is_recorded_as_failure(
        self, hindi_settings: TranslationSettings
    ) -> None:
        backend = FakeBackend([BackendRateLimitError()])

        result = await _translator(backend).translate(_cells("One"), hindi_settings)

        assert result.failed_batches == 1
        assert result.cells[0].translated is None

    async def test_configuration_error_is_fatal(
        self, hindi_settings: TranslationSettings
    ) -> None:
        backend = FakeBackend(
            [BackendError("no key", error_code=ErrorCode.CONFIGURATION_ERROR)]
        )

        with pytest.raises(BackendError) as exc_info:
            await _translator(backend).translate(
                _cells("One", "Two", "Three"), hindi_settings
            )

        assert exc_info.value.error_code == ErrorCode.CONFIGURATION_ERROR
        assert len(backend.calls) == 1

    async def test_short_reply_falls_back_to_source(
        self, hindi_settings: TranslationSettings
    ) -> None:
        backend = FakeBackend(["1. अल्फा"])

        result = await _translator(backend, batch_size=3).translate(
            _cells("Alpha", "Beta", "Gamma"), hindi_settings
        )

        assert [c.translated for c in result.cells] == ["अल्फा", "Beta", "Gamma"]
        assert result.translated_count == 1
        assert result.untranslated_count == 2
        assert result.missing_lines == 2

    async def test_header_override_applies_to_fallback(
        self, hindi_settings: TranslationSettings
    ) -> None:
        backend = FakeBackend(["1. नमस्ते"])

        result = await _translator(backend).translate(
            _cells("Hello", "Question"), hindi_settings
        )

        assert [c.translated for c in result.cells] == ["नमस्ते", "प्रश्न"]

    async def test_header_override_replaces_backend_output(
        self, hindi_settings: TranslationSettings
    ) -> None:
        backend = FakeBackend(["1. 1. सवाल\n2. प्रक्रिया समझें"])

        result = await _translator(backend).translate(
            _cells("Question", "Understand the process"), hindi_settings
        )

        assert [c.translated for c in result.cells] == ["प्रश्न", "तरीका समझें"]

    async def test_progress_is_monotonic_and_completes(
        self, fake_backend: FakeBackend, hindi_settings: TranslationSettings
    ) -> None:
        progress: list[float] = []

        await _translator(fake_backend).translate(
            _cells("One", "Two", "Three", "Four", "Five"),
            hindi_settings,
            on_progress=progress.append,
        )

        assert progress == [0.4, 0.8, 1.0]

    async def test_cancel_between_batches(
        self, fake_backend: FakeBackend, hindi_settings: TranslationSettings
    ) -> None:
        cancel_event = asyncio.Event()

        result = await _translator(fake_backend, batch_size=1).translate(
            _cells("One", "Two", "Three"),
            hindi_settings,
            on_progress=lambda _: cancel_event.set(),
            cancel_event=cancel_event,
        )

        assert result.cancelled is True
        assert len(fake_backend.calls) == 1
        assert [c.translated for c in result.cells] == ["HI:One", None, None]
        assert result.untranslated_count == 2

    async def test_cancelled_before_start(
        self, fake_backend: FakeBackend, hindi_settings: TranslationSettings
    ) -> None:
        cancel_event = asyncio.Event()
        cancel_event.set()

        result = await _translator(fake_backend).translate(
            _cells("One"), hindi_settings, cancel_event=cancel_event
        )

        assert result.cancelled is True
        assert fake_backend.calls == []
