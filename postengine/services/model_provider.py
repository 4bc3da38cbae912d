"""
Model Provider Protocol - Provider-agnostic interface to the generative model.

The model is a black box: structured prompt in, free-form text out.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from openai import APIError, APIStatusError, APITimeoutError, AsyncOpenAI
from structlog import get_logger

from postengine.config import ConfigurationError, Settings
from postengine.exceptions import UpstreamError, UpstreamTimeoutError

logger = get_logger(__name__)


@dataclass(frozen=True)
class TextPart:
    """Text segment of a user message."""

    text: str


@dataclass(frozen=True)
class ImagePart:
    """Image reference (data URL or http(s) URL) in a user message."""

    url: str


ContentPart = TextPart | ImagePart


class ModelProvider(Protocol):
    """
    Generative model provider protocol.

    Any provider (OpenAI, a local model, a test stub) must implement this
    interface.
    """

    async def complete(
        self,
        system_instruction: str,
        user_content: Sequence[ContentPart],
        *,
        call: str,
        temperature: float,
        json_object: bool = False,
    ) -> str:
        """
        Run one completion and return the raw text.

        Args:
            system_instruction: Output contract for the model
            user_content: Ordered text and image parts
            call: Name of the logical call, for errors and metrics
            temperature: Sampling temperature
            json_object: Ask the provider for a JSON object response

        Raises:
            UpstreamTimeoutError: Provider exceeded its deadline
            UpstreamError: Provider returned a failure
        """
        ...


def _to_openai_content(parts: Sequence[ContentPart]) -> list[dict[str, Any]]:
    """Convert content parts to chat completion message content."""
    content: list[dict[str, Any]] = []
    for part in parts:
        if isinstance(part, ImagePart):
            content.append({"type": "image_url", "image_url": {"url": part.url}})
        else:
            content.append({"type": "text", "text": part.text})
    return content


class OpenAIProvider:
    """OpenAI chat completions provider. One attempt per call, no retries."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        timeout_seconds: float = 30.0,
        base_url: str | None = None,
        client: AsyncOpenAI | None = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("OPENAI_API_KEY is required to call the model provider")
        self.model = model
        self.timeout_seconds = timeout_seconds
        self._client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
            max_retries=0,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAIProvider":
        """Build a provider from application settings."""
        return cls(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            timeout_seconds=settings.openai_timeout_seconds,
            base_url=settings.openai_base_url,
        )

    async def complete(
        self,
        system_instruction: str,
        user_content: Sequence[ContentPart],
        *,
        call: str,
        temperature: float,
        json_object: bool = False,
    ) -> str:
        """Run one chat completion and return the first choice text."""
        kwargs: dict[str, Any] = {
            "model": self.model,
            "temperature": temperature,
            "messages": [
                {"role": "system", "content": system_instruction},
                {"role": "user", "content": _to_openai_content(user_content)},
            ],
        }
        if json_object:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            completion = await self._client.chat.completions.create(**kwargs)
        except APITimeoutError as e:
            raise UpstreamTimeoutError(call, self.timeout_seconds) from e
        except APIStatusError as e:
            raise UpstreamError(call, e.message, status_code=e.status_code) from e
        except APIError as e:
            raise UpstreamError(call, e.message) from e

        if not completion.choices:
            logger.warning("model_returned_no_choices", call=call, model=self.model)
            return ""
        return completion.choices[0].message.content or ""
