"""Tests for prompt composition."""

from spreadsheet_translator.services.prompt_builder import (
    CLOSING_INSTRUCTION,
    PromptBuilder,
    number_texts,
)
from spreadsheet_translator.services.template_repository import (
    InMemoryTemplateRepository,
)
from spreadsheet_translator.sheet_document import (
    Domain,
    TargetLanguage,
    Tone,
    TranslationSettings,
)


class TestNumberTexts:
    def test_numbering_starts_at_one(self) -> None:
        assert number_texts(["Hello", "World"]) == "1. Hello\n2. World"

    def test_line_breaks_folded(self) -> None:
        assert number_texts(["Line one\nLine two", " padded "]) == (
            "1. Line one Line two\n2. padded"
        )


class TestBuiltInPrompt:
    def test_system_prompt_sections(self) -> None:
        prompt = PromptBuilder().build(["Hello"], TranslationSettings())

        assert "into Hindi" in prompt.system_prompt
        assert "TARGET LANGUAGE: Hindi (हिंदी)" in prompt.system_prompt
        assert "0→०" in prompt.system_prompt
        assert "HINDI TRANSLATION QUALITY RULES" in prompt.system_prompt
        assert prompt.system_prompt.endswith(CLOSING_INSTRUCTION)

    def test_user_prompt_contains_numbered_texts(self) -> None:
        prompt = PromptBuilder().build(["Hello", "4"], TranslationSettings())

        assert "1. Hello\n2. 4" in prompt.user_prompt
        assert "Hindi numerals" in prompt.user_prompt

    def test_domain_rules_only_for_configured_domains(self) -> None:
        builder = PromptBuilder()
        education = builder.build_system_prompt(
            TranslationSettings(domain=Domain.EDUCATION)
        )
        admin = builder.build_system_prompt(TranslationSettings(domain=Domain.ADMIN))

        assert "EDUCATIONAL CONTEXT RULES" in education
        assert "CONTEXT RULES" not in admin

    def test_tone_guidance(self) -> None:
        prompt = PromptBuilder().build_system_prompt(
            TranslationSettings(tone=Tone.CONVERSATIONAL)
        )
        assert "TONE: Use a friendly, approachable register" in prompt

    def test_marathi_prompt(self) -> None:
        settings = TranslationSettings(target_language=TargetLanguage.MARATHI)
        prompt = PromptBuilder().build(["Hello"], settings)

        assert "TARGET LANGUAGE: Marathi (मराठी)" in prompt.system_prompt
        assert "HINDI TRANSLATION QUALITY RULES" not in prompt.system_prompt
        assert "into Marathi" in prompt.user_prompt


class TestActiveTemplate:
    def test_active_template_replaces_intro_and_user_prompt(self) -> None:
        templates = InMemoryTemplateRepository()
        template = templates.create(
            "Quiz", "You translate school quizzes.", "Items:\n{texts}\nDone."
        )
        templates.set_active(template.id)

        prompt = PromptBuilder(templates).build(["Hello"], TranslationSettings())

        assert prompt.system_prompt.startswith("You translate school quizzes.")
        # Rule sections are still appended.
        assert "MANDATORY NUMBER TRANSLATION RULES" in prompt.system_prompt
        assert prompt.user_prompt == "Items:\n1. Hello\nDone."

    def test_inactive_repository_uses_built_in_prompt(self) -> None:
        templates = InMemoryTemplateRepository()
        prompt = PromptBuilder(templates).build(["Hello"], TranslationSettings())

        assert prompt.system_prompt.startswith("You are a professional translator")
