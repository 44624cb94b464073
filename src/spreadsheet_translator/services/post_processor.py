"""Deterministic corrections applied to backend translations.

Two corrections run in order:

1. Header normalization: a cell whose original text is a known column
   header always receives the canonical label from the language rule set,
   whatever the backend produced.
2. Lexical substitution: in every other cell, formal vocabulary is
   replaced by its primary colloquial alternative, every occurrence.
"""

from collections.abc import Sequence

from spreadsheet_translator.services.language_rules import (
    LanguageRuleSet,
    strip_ordinal_prefix,
)
from spreadsheet_translator.utils.logging import get_logger

logger = get_logger(__name__)


def normalize_header(
    translated_text: str, original_text: str, rules: LanguageRuleSet
) -> str | None:
    """Canonical header label for a header cell, or None for other cells."""
    canonical = rules.canonical_header(original_text)
    if canonical is None:
        return None
    cleaned = strip_ordinal_prefix(translated_text.strip())
    if cleaned != canonical:
        logger.debug(
            "Fixing column header",
            original=original_text.strip(),
            received=cleaned,
            canonical=canonical,
        )
    return canonical


def substitute_formal_words(text: str, rules: LanguageRuleSet) -> str:
    """Replace each formal term with its colloquial alternative."""
    for formal, colloquial in rules.substitutions.items():
        if formal in text:
            text = text.replace(formal, colloquial)
            logger.debug("Replacing formal word", formal=formal, colloquial=colloquial)
    return text


def postprocess(translated_text: str, original_text: str, rules: LanguageRuleSet) -> str:
    """Apply header normalization, or lexical substitution for non-headers."""
    header = normalize_header(translated_text, original_text, rules)
    if header is not None:
        return header
    return substitute_formal_words(translated_text, rules)


def postprocess_batch(
    translations: Sequence[str],
    originals: Sequence[str],
    rules: LanguageRuleSet,
) -> list[str]:
    """Post-process a batch of translations against their source texts."""
    return [
        postprocess(translated, original, rules)
        for translated, original in zip(translations, originals, strict=True)
    ]
