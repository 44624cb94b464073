"""Compose backend instructions for one batch of cell texts."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from spreadsheet_translator.services.language_rules import (
    LanguageRuleSet,
    get_rule_set,
)
from spreadsheet_translator.services.template_repository import TemplateRepository
from spreadsheet_translator.sheet_document import Domain, Tone, TranslationSettings

_LINE_BREAK_RE = re.compile(r"\s*[\r\n]+\s*")

DEFAULT_INTRO = (
    "You are a professional translator for Indian languages. "
    "Translate the provided Excel cell texts into {language}."
)

DOMAIN_RULES: dict[Domain, str] = {
    Domain.EDUCATION: """EDUCATIONAL CONTEXT RULES:
- Use student-friendly, accessible language
- Prefer simple, clear explanations over complex terminology
- Use examples and analogies familiar to Indian students
- Maintain academic rigor while being approachable""",
    Domain.TECHNICAL: """TECHNICAL CONTEXT RULES:
- Keep product names, units and technical identifiers unchanged
- Prefer widely used everyday terms over coined formal equivalents
- Use short, direct sentences for instructions""",
}

TONE_GUIDANCE: dict[Tone, str] = {
    Tone.FORMAL: "Use a respectful, professional register throughout.",
    Tone.NEUTRAL: "Use a standard, professional register throughout.",
    Tone.CONVERSATIONAL: "Use a friendly, approachable register throughout.",
}


@dataclass(frozen=True)
class ComposedPrompt:
    system_prompt: str
    user_prompt: str


def number_texts(texts: Sequence[str]) -> str:
    """Render texts as ``"1. text"`` lines.

    Line breaks inside a cell are folded to spaces so that every input
    occupies exactly one line.
    """
    return "\n".join(
        f"{index}. {_LINE_BREAK_RE.sub(' ', text.strip())}"
        for index, text in enumerate(texts, start=1)
    )


def digit_rules(rules: LanguageRuleSet) -> str:
    mapping = ", ".join(f"{arabic}→{native}" for arabic, native in rules.digit_map.items())
    return f"""MANDATORY NUMBER TRANSLATION RULES:
- ALWAYS convert ALL Arabic numerals (0-9) to {rules.name} numerals
- {mapping}
- This includes standalone numbers, numbers in text, and any numeric content
- NEVER leave Arabic numerals untranslated"""


INVARIANT_RULES = """CRITICAL RULES:
- NEVER change meaning or context
- Preserve placeholders, dates, codes, emails, URLs, formulas exactly as they appear
- For each input line, return exactly one translated line in the same order
- Use natural, locale-accurate phrasing and idioms
- Be consistent with terminology throughout the translation
- If a term appears multiple times, translate it consistently
- Ensure complete translation - do not leave any English text untranslated"""

CLOSING_INSTRUCTION = (
    "Return only the translated strings, one per line, "
    "in the exact same order as input."
)


class PromptBuilder:
    """Build system and user instructions for the translation backend.

    When the injected template repository has an active template, its
    system prompt replaces the built-in introduction and its user prompt
    wraps the numbered texts. Digit, language, domain and invariant rules
    are always appended to the system prompt.
    """

    def __init__(self, templates: TemplateRepository | None = None) -> None:
        self.templates = templates

    def build(self, texts: Sequence[str], settings: TranslationSettings) -> ComposedPrompt:
        return ComposedPrompt(
            system_prompt=self.build_system_prompt(settings),
            user_prompt=self.build_user_prompt(texts, settings),
        )

    def build_system_prompt(self, settings: TranslationSettings) -> str:
        rules = get_rule_set(settings.target_language)
        active = self.templates.get_active() if self.templates else None
        intro = (
            active.system_prompt
            if active is not None
            else DEFAULT_INTRO.format(language=rules.name)
        )

        sections = [
            intro,
            f"TARGET LANGUAGE: {rules.name} ({rules.native_name})",
            digit_rules(rules),
            INVARIANT_RULES,
            f"TONE: {TONE_GUIDANCE[settings.tone]}",
        ]
        language_rules = rules.render_prompt_rules()
        if language_rules:
            sections.append(language_rules)
        domain_rules = DOMAIN_RULES.get(settings.domain)
        if domain_rules:
            sections.append(domain_rules)
        sections.append(CLOSING_INSTRUCTION)
        return "\n\n".join(sections)

    def build_user_prompt(
        self, texts: Sequence[str], settings: TranslationSettings
    ) -> str:
        numbered = number_texts(texts)
        active = self.templates.get_active() if self.templates else None
        if active is not None:
            return active.render_user_prompt(numbered)

        rules = get_rule_set(settings.target_language)
        digits = ", ".join(f"{a}→{n}" for a, n in rules.digit_map.items())
        return f"""Translate these Excel cell contents into {rules.name}. Translate ALL text content completely:

{numbered}

CRITICAL REQUIREMENTS:
- Translate every word and phrase completely
- Do not leave any English text untranslated
- ALWAYS convert ALL numbers to {rules.name} numerals ({digits})
- Be consistent with terminology
- For column headers (Question, Option1, Option2, etc.), translate exactly without adding serial numbers

Provide translations in the same order, one per line:"""
