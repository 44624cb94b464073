"""Repository of reusable prompt templates.

Templates are held by an explicit repository object that is injected into
prompt composition. ``InMemoryTemplateRepository`` keeps templates for the
lifetime of the process only.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any, Protocol

from spreadsheet_translator.utils.exceptions import (
    ErrorCode,
    TemplateError,
    TemplateNotFoundError,
)
from spreadsheet_translator.utils.logging import get_logger

logger = get_logger(__name__)

TEXTS_PLACEHOLDER = "{texts}"

DEFAULT_TEMPLATE_ID = "general-prompt"

DEFAULT_SYSTEM_PROMPT = """You are a professional translator for Indian languages. Translate the provided Excel cell texts into the target language.

TRANSLATION QUALITY RULES:
- Use natural, accessible language over overly formal phrases
- Adapt tone to match the content type (formal for business, casual for general content)
- Maintain consistency in terminology throughout the translation
- Preserve the original meaning and context
- Use clear, understandable phrasing
- Adapt to the target language's natural expression patterns"""

DEFAULT_USER_PROMPT = """Translate these Excel cell contents into the target language. Translate ALL text content completely:

{texts}

CRITICAL REQUIREMENTS:
- Translate every word and phrase completely
- Do not leave any English text untranslated
- ALWAYS convert ALL numbers to target language numerals
- Be consistent with terminology
- Use natural, accessible language
- Avoid overly formal or bureaucratic language

Provide translations in the same order, one per line:"""


@dataclass(frozen=True)
class PromptTemplate:
    """A named pair of system and user prompts.

    The user prompt must contain ``{texts}``, which is replaced by the
    numbered list of cell texts for each batch.
    """

    id: str
    name: str
    system_prompt: str
    user_prompt: str
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def render_user_prompt(self, texts_block: str) -> str:
        return self.user_prompt.replace(TEXTS_PLACEHOLDER, texts_block)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "system_prompt": self.system_prompt,
            "user_prompt": self.user_prompt,
            "updated_at": self.updated_at.isoformat(),
        }


DEFAULT_TEMPLATE = PromptTemplate(
    id=DEFAULT_TEMPLATE_ID,
    name="General Translation Prompt",
    system_prompt=DEFAULT_SYSTEM_PROMPT,
    user_prompt=DEFAULT_USER_PROMPT,
)


def validate_template_fields(name: str, system_prompt: str, user_prompt: str) -> None:
    """Reject templates the prompt builder cannot render.

    Raises:
        TemplateError: If a field is blank or ``{texts}`` is missing.
    """
    errors = []
    if not name.strip():
        errors.append("name must not be empty")
    if not system_prompt.strip():
        errors.append("system_prompt must not be empty")
    if TEXTS_PLACEHOLDER not in user_prompt:
        errors.append(f"user_prompt must contain the {TEXTS_PLACEHOLDER} placeholder")
    if errors:
        raise TemplateError(
            "Invalid prompt template: " + "; ".join(errors),
            error_code=ErrorCode.TEMPLATE_INVALID,
            details={"validation_errors": errors},
        )


class TemplateRepository(Protocol):
    """Storage interface for prompt templates."""

    def list_templates(self) -> list[PromptTemplate]: ...

    def get(self, template_id: str) -> PromptTemplate: ...

    def create(
        self, name: str, system_prompt: str, user_prompt: str
    ) -> PromptTemplate: ...

    def update(
        self,
        template_id: str,
        *,
        name: str | None = None,
        system_prompt: str | None = None,
        user_prompt: str | None = None,
    ) -> PromptTemplate: ...

    def delete(self, template_id: str) -> None: ...

    def get_active(self) -> PromptTemplate | None: ...

    def set_active(self, template_id: str) -> PromptTemplate: ...

    def reset_active(self) -> None: ...


class InMemoryTemplateRepository:
    """Process-local template store.

    Seeded with the general translation template. No template is active
    until ``set_active`` is called; the prompt builder then falls back to
    its built-in prompt.
    """

    def __init__(self, seed: list[PromptTemplate] | None = None) -> None:
        self._templates: dict[str, PromptTemplate] = {}
        self._active_id: str | None = None
        for template in seed if seed is not None else [DEFAULT_TEMPLATE]:
            self._templates[template.id] = template

    def list_templates(self) -> list[PromptTemplate]:
        return sorted(self._templates.values(), key=lambda t: t.name.lower())

    def get(self, template_id: str) -> PromptTemplate:
        try:
            return self._templates[template_id]
        except KeyError:
            raise TemplateNotFoundError(template_id) from None

    def create(self, name: str, system_prompt: str, user_prompt: str) -> PromptTemplate:
        validate_template_fields(name, system_prompt, user_prompt)
        template = PromptTemplate(
            id=str(uuid.uuid4()),
            name=name.strip(),
            system_prompt=system_prompt,
            user_prompt=user_prompt,
        )
        self._templates[template.id] = template
        logger.info("Prompt template created", template_id=template.id)
        return template

    def update(
        self,
        template_id: str,
        *,
        name: str | None = None,
        system_prompt: str | None = None,
        user_prompt: str | None = None,
    ) -> PromptTemplate:
        current = self.get(template_id)
        updated = replace(
            current,
            name=name.strip() if name is not None else current.name,
            system_prompt=(
                system_prompt if system_prompt is not None else current.system_prompt
            ),
            user_prompt=user_prompt if user_prompt is not None else current.user_prompt,
            updated_at=datetime.now(UTC),
        )
        validate_template_fields(updated.name, updated.system_prompt, updated.user_prompt)
        self._templates[template_id] = updated
        logger.info("Prompt template updated", template_id=template_id)
        return updated

    def delete(self, template_id: str) -> None:
        self.get(template_id)
        del self._templates[template_id]
        if self._active_id == template_id:
            self._active_id = None
        logger.info("Prompt template deleted", template_id=template_id)

    def get_active(self) -> PromptTemplate | None:
        if self._active_id is None:
            return None
        return self._templates.get(self._active_id)

    def set_active(self, template_id: str) -> PromptTemplate:
        template = self.get(template_id)
        self._active_id = template_id
        return template

    def reset_active(self) -> None:
        self._active_id = None
