"""Services for spreadsheet translation."""

from spreadsheet_translator.services.batch_translator import (
    BatchTranslationResult,
    BatchTranslator,
)
from spreadsheet_translator.services.quality_checker import QualityChecker
from spreadsheet_translator.services.translation_pipeline import (
    TranslationPipeline,
    TranslationRun,
)
from spreadsheet_translator.services.workbook_codec import WorkbookCodec

__all__ = [
    "BatchTranslationResult",
    "BatchTranslator",
    "QualityChecker",
    "TranslationPipeline",
    "TranslationRun",
    "WorkbookCodec",
]
