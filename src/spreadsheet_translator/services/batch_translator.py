"""Batched cell translation against a text-generation backend.

Eligible cells are split into fixed-size batches. Each batch becomes one
backend request whose reply is parsed back into one line per cell.
Batches run strictly one after another with a short pause in between;
a cancellation event is honoured only between batches.

A failed batch is logged and skipped: its cells carry no translation and
keep their source text downstream. A short reply is padded so that every
position still receives a value, falling back to the source text.
Header normalization and lexical substitution run on every filled
position before it is written back.
"""

import asyncio
import re
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

from spreadsheet_translator.config import settings as app_settings
from spreadsheet_translator.services.backend import TextGenerationBackend
from spreadsheet_translator.services.cell_classifier import CellClassifier
from spreadsheet_translator.services.language_rules import get_rule_set
from spreadsheet_translator.services.post_processor import postprocess_batch
from spreadsheet_translator.services.prompt_builder import PromptBuilder
from spreadsheet_translator.sheet_document import (
    Cell,
    GlossaryTerm,
    TranslationSettings,
)
from spreadsheet_translator.utils.exceptions import BackendError, ErrorCode
from spreadsheet_translator.utils.logging import ProgressTracker, get_logger

logger = get_logger(__name__)

ProgressCallback = Callable[[float], None]

_ORDINAL_RE = re.compile(r"^[0-9]+\.\s*")


def parse_translation_response(response: str, expected_count: int) -> list[str]:
    """Recover one translation per input line from a backend reply.

    Non-empty lines are trimmed and stripped of a leading ``"<digits>. "``
    ordinal. The first ``expected_count`` lines are kept; a short reply is
    padded with empty strings.
    """
    translations = []
    for line in response.splitlines():
        cleaned = _ORDINAL_RE.sub("", line.strip(), count=1).strip()
        if cleaned:
            translations.append(cleaned)
        if len(translations) == expected_count:
            break

    translations.extend("" for _ in range(expected_count - len(translations)))
    return translations


@dataclass
class BatchOutcome:
    """What happened to one batch.

    Attributes:
        index: Zero-based batch number.
        size: Cells in the batch.
        received: Non-empty lines recovered from the reply.
        error: Failure message when the backend call raised.
    """

    index: int
    size: int
    received: int = 0
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def missing(self) -> int:
        """Positions that fell back to source text."""
        return self.size if self.failed else self.size - self.received


@dataclass
class BatchTranslationResult:
    """Cells returned by ``BatchTranslator.translate`` plus run counters.

    ``cells`` is positionally aligned with the input sequence.
    """

    cells: list[Cell]
    batches: list[BatchOutcome] = field(default_factory=list)
    eligible: int = 0
    cancelled: bool = False

    @property
    def translated_count(self) -> int:
        return sum(b.received for b in self.batches if not b.failed)

    @property
    def untranslated_count(self) -> int:
        """Eligible cells that kept their source text."""
        return self.eligible - self.translated_count

    @property
    def failed_batches(self) -> int:
        return sum(1 for b in self.batches if b.failed)

    @property
    def failed_cells(self) -> int:
        return sum(b.size for b in self.batches if b.failed)

    @property
    def batches_total(self) -> int:
        return len(self.batches)

    @property
    def missing_lines(self) -> int:
        """Positions padded because a reply was short."""
        return sum(b.missing for b in self.batches if not b.failed)


class BatchTranslator:
    """Translate cells in sequential fixed-size batches."""

    def __init__(
        self,
        backend: TextGenerationBackend,
        prompt_builder: PromptBuilder | None = None,
        classifier: CellClassifier | None = None,
        batch_size: int | None = None,
        batch_delay_seconds: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the translator.

        Args:
            backend: Text-generation backend.
            prompt_builder: Prompt composer. Defaults to built-in prompts.
            classifier: Eligibility classifier for cells not yet annotated.
            batch_size: Cells per request. Defaults to settings.batch_size.
            batch_delay_seconds: Pause between batches. Defaults to settings.
            sleep: Awaitable used for the pause.
        """
        self.backend = backend
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.classifier = classifier or CellClassifier()
        self.batch_size = batch_size or app_settings.batch_size
        self.batch_delay_seconds = (
            batch_delay_seconds
            if batch_delay_seconds is not None
            else app_settings.batch_delay_seconds
        )
        self._sleep = sleep

        if self.batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {self.batch_size}")

    async def translate(
        self,
        cells: Sequence[Cell],
        settings: TranslationSettings,
        glossary: Sequence[GlossaryTerm] = (),
        on_progress: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> BatchTranslationResult:
        """Translate every eligible cell.

        Args:
            cells: Cells in order; skipped and ineligible cells pass through.
            settings: Target language, tone, domain and quality.
            glossary: Terms that keep a cell untranslated.
            on_progress: Called after each batch with the processed fraction.
            cancel_event: When set, no further batch is started.

        Returns:
            Result whose ``cells`` has the same length and order as ``cells``.
        """
        results = list(cells)
        eligible = [
            index
            for index, cell in enumerate(cells)
            if self.classifier.is_eligible(cell, glossary=glossary)
        ]
        result = BatchTranslationResult(cells=results, eligible=len(eligible))
        if not eligible:
            return result

        batches = [
            eligible[start : start + self.batch_size]
            for start in range(0, len(eligible), self.batch_size)
        ]
        tracker = ProgressTracker(logger, "Translating cells", total=len(eligible))
        logger.info(
            "Starting batch translation",
            cells=len(eligible),
            batches=len(batches),
            batch_size=self.batch_size,
            target_language=settings.target_language.value,
        )

        for batch_index, positions in enumerate(batches):
            if cancel_event is not None and cancel_event.is_set():
                logger.warning(
                    "Translation cancelled",
                    completed_batches=batch_index,
                    remaining_batches=len(batches) - batch_index,
                )
                result.cancelled = True
                break

            outcome = await self._translate_batch(
                batch_index, positions, results, settings
            )
            result.batches.append(outcome)

            tracker.update(len(positions), details=f"batch {batch_index + 1}")
            if on_progress is not None:
                on_progress(tracker.fraction)

            if batch_index < len(batches) - 1 and self.batch_delay_seconds > 0:
                await self._sleep(self.batch_delay_seconds)

        tracker.complete()
        return result

    async def _translate_batch(
        self,
        batch_index: int,
        positions: list[int],
        results: list[Cell],
        settings: TranslationSettings,
    ) -> BatchOutcome:
        """Translate one batch, writing translations into ``results``."""
        outcome = BatchOutcome(index=batch_index, size=len(positions))
        texts = [results[position].text for position in positions]
        prompt = self.prompt_builder.build(texts, settings)

        logger.debug(
            "Processing batch",
            batch=batch_index + 1,
            first_cell=positions[0] + 1,
            last_cell=positions[-1] + 1,
        )

        try:
            response = await self.backend.generate(
                prompt.system_prompt, prompt.user_prompt
            )
        except BackendError as e:
            if e.error_code == ErrorCode.CONFIGURATION_ERROR:
                raise
            outcome.error = e.message
            logger.error(
                "Translation batch failed",
                batch=batch_index + 1,
                cells=len(positions),
                error=e.message,
            )
            return outcome

        translations = parse_translation_response(response, len(positions))
        outcome.received = sum(1 for text in translations if text)
        if outcome.received < len(positions):
            logger.warning(
                "Backend returned fewer lines than cells sent",
                batch=batch_index + 1,
                sent=len(positions),
                received=outcome.received,
            )

        filled = [
            translation or source
            for translation, source in zip(translations, texts, strict=True)
        ]
        corrected = postprocess_batch(
            filled, texts, get_rule_set(settings.target_language)
        )
        for position, translation in zip(positions, corrected, strict=True):
            results[position] = results[position].with_translation(translation)

        return outcome
