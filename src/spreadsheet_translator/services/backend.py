"""Text-generation backend used to translate cell batches.

The pipeline depends only on ``TextGenerationBackend``: one awaitable call
taking a system and a user instruction and returning a single text blob.
``ChatOpenAIBackend`` implements it with LangChain's OpenAI chat model.
"""

import time
from typing import Any, Protocol

from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from spreadsheet_translator.config import settings
from spreadsheet_translator.utils.exceptions import (
    BackendError,
    BackendRateLimitError,
    ErrorCode,
)
from spreadsheet_translator.utils.logging import get_logger

logger = get_logger(__name__)


class TextGenerationBackend(Protocol):
    """Request/response text generation capability."""

    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        """Return the model's text for one composed request.

        Raises:
            BackendError: If the request fails.
        """
        ...


def _is_rate_limit(error: Exception) -> bool:
    return (
        getattr(error, "status_code", None) == 429
        or type(error).__name__ == "RateLimitError"
    )


def _content_to_text(content: Any) -> str:
    """Flatten LangChain message content (string or content blocks) to text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(str(block.get("text", "")))
        return "".join(parts)
    return str(content)


class ChatOpenAIBackend:
    """OpenAI chat model backend via LangChain."""

    SERVICE_NAME = "openai"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> None:
        """Initialize the backend.

        Args:
            api_key: OpenAI API key. Defaults to settings.
            model: Model name. Defaults to settings.openai_model.
            temperature: Sampling temperature. Defaults to settings.
            max_tokens: Maximum response tokens. Defaults to settings.
        """
        self.api_key = api_key if api_key is not None else settings.get_openai_api_key()
        self.model = model or settings.openai_model
        self.temperature = (
            temperature if temperature is not None else settings.openai_temperature
        )
        self.max_tokens = max_tokens or settings.openai_max_tokens

        self._llm: ChatOpenAI | None = None

    @property
    def llm(self) -> ChatOpenAI:
        """Get or create the LangChain ChatOpenAI instance.

        Raises:
            BackendError: If the API key is not configured.
        """
        if self._llm is None:
            if not self.api_key:
                raise BackendError(
                    "OpenAI API key not configured",
                    error_code=ErrorCode.CONFIGURATION_ERROR,
                    details={"missing": "openai_api_key"},
                )

            self._llm = ChatOpenAI(
                api_key=self.api_key,  # type: ignore[arg-type]
                model=self.model,
                temperature=self.temperature,
                max_completion_tokens=self.max_tokens,
            )

        return self._llm

    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        messages: list[BaseMessage] = [
            SystemMessage(content=system_prompt),
            HumanMessage(content=user_prompt),
        ]
        llm = self.llm
        start_time = time.time()

        try:
            response = await llm.ainvoke(messages)
        except Exception as e:
            logger.log_api_call(
                service=self.SERVICE_NAME,
                operation="translate_batch",
                duration_seconds=time.time() - start_time,
                success=False,
                error_message=str(e),
            )
            if _is_rate_limit(e):
                raise BackendRateLimitError(model=self.model) from e
            raise BackendError(
                f"Translation backend request failed: {e}",
                model=self.model,
                details={"original_error": str(e)},
            ) from e

        logger.log_api_call(
            service=self.SERVICE_NAME,
            operation="translate_batch",
            duration_seconds=time.time() - start_time,
        )
        return _content_to_text(response.content)
