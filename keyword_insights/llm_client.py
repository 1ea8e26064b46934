"""
LLM Completion Client Module.

Defines the text-completion capability consumed by the LLM-backed
pipeline stages and an OpenAI implementation of it with:
- Automatic retries with exponential backoff
- Request timeouts
- Token usage logging
- Helpers for pulling JSON payloads out of free-form replies
"""

from __future__ import annotations

import logging
import re
import time
from typing import Optional, Protocol, TypeVar, runtime_checkable

from openai import OpenAI
from pydantic import TypeAdapter, ValidationError

from keyword_insights.config import Settings

# * Configuration
MAX_RETRIES = 3
RETRY_DELAY = 1.0
MAX_COMPLETION_TOKENS = 1500

T = TypeVar("T")

logger = logging.getLogger("keyword_insights.llm")

_JSON_ARRAY_RE = re.compile(r"\[.*\]", re.DOTALL)
_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


class LLMCallError(RuntimeError):
    """Raised when a completion cannot be obtained or parsed."""


@runtime_checkable
class CompletionClient(Protocol):
    """Anything that turns a prompt into reply text."""

    def complete(self, prompt: str) -> str:
        ...


class OfflineCompletionClient:
    """Completion client for runs without LLM access; every call fails."""

    def complete(self, prompt: str) -> str:
        raise LLMCallError("LLM access disabled (offline mode)")


class LLMClient:
    """
    OpenAI chat-completions client implementing CompletionClient.

    Supports:
    - Plain text completions for a single user prompt
    - Automatic retries with exponential backoff
    - Per-request timeout taken from settings
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        temperature: Optional[float] = 0.3,
        timeout: float = 60.0,
        system_prompt: Optional[str] = None,
        client: Optional[OpenAI] = None,
    ):
        """
        Initialize the LLM client.

        Args:
            api_key: OpenAI API key. Required unless client is given.
            model: Model to use for chat completions.
            temperature: Sampling temperature (None to use the model default).
            timeout: Request timeout in seconds.
            system_prompt: Optional system prompt sent with every request.
            client: Pre-built OpenAI client (mainly for tests).
        """
        if client is None:
            if not api_key:
                raise ValueError(
                    "OpenAI API key not found. Set OPENAI_API_KEY environment variable "
                    "or pass api_key to the constructor."
                )
            client = OpenAI(api_key=api_key, timeout=timeout, max_retries=0)

        self.client = client
        self.model = model
        self.temperature = temperature
        self.system_prompt = system_prompt

    @classmethod
    def from_settings(cls, settings: Settings) -> "LLMClient":
        return cls(
            api_key=settings.openai_api_key,
            model=settings.model,
            temperature=settings.temperature,
            timeout=settings.timeout,
        )

    def complete(self, prompt: str) -> str:
        """
        Send a chat completion request and return the reply text.

        Args:
            prompt: User prompt.

        Returns:
            Reply content.

        Raises:
            LLMCallError: If every attempt failed or the reply was empty.
        """
        messages = self._build_messages(prompt)

        for attempt in range(MAX_RETRIES):
            try:
                start = time.perf_counter()
                response = self.client.chat.completions.create(**self._build_chat_kwargs(messages))
                duration = time.perf_counter() - start

                return self._parse_chat_response(response, duration)

            except Exception as e:
                if attempt < MAX_RETRIES - 1:
                    delay = RETRY_DELAY * (2 ** attempt)
                    logger.warning(
                        "LLM completion retry %s/%s in %.1fs due to: %s",
                        attempt + 1,
                        MAX_RETRIES,
                        delay,
                        e,
                    )
                    time.sleep(delay)
                else:
                    logger.error("LLM completion failed after retries: %s", e)
                    raise LLMCallError(f"Failed after {MAX_RETRIES} attempts: {e}") from e

        raise LLMCallError("Unexpected error in complete")

    def _build_messages(self, prompt: str) -> list[dict]:
        """Build messages list for chat completion."""
        messages = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        messages.append({"role": "user", "content": prompt})
        return messages

    def _build_chat_kwargs(self, messages: list[dict]) -> dict:
        """Build kwargs for chat completion request."""
        request_kwargs = {
            "model": self.model,
            "messages": messages,
            "max_completion_tokens": MAX_COMPLETION_TOKENS,
        }

        if self.temperature is not None:
            request_kwargs["temperature"] = self.temperature

        return request_kwargs

    def _parse_chat_response(self, response, duration: float) -> str:
        """Extract reply text from a chat completion response."""
        usage = getattr(response, "usage", None)
        token_summary = ""
        if usage:
            token_summary = (
                f" prompt={getattr(usage, 'prompt_tokens', None)}"
                f" completion={getattr(usage, 'completion_tokens', None)}"
                f" total={getattr(usage, 'total_tokens', None)}"
            )

        content = response.choices[0].message.content
        if content is None or not content.strip():
            raise ValueError("Received empty content from LLM")

        logger.info(
            "LLM completion success model=%s duration=%.3fs%s",
            self.model,
            duration,
            token_summary,
        )
        return content


def parse_json_reply(reply: str, adapter: TypeAdapter[T], expect: str = "object") -> T:
    """
    Validate the JSON payload embedded in an LLM reply.

    The model may wrap JSON in prose or code fences, so the outermost
    array or object block is located first.

    Args:
        reply: Raw reply text.
        adapter: Pydantic TypeAdapter describing the expected payload.
        expect: "array" or "object".

    Returns:
        Validated payload.

    Raises:
        LLMCallError: If no valid payload could be found.
    """
    pattern = _JSON_ARRAY_RE if expect == "array" else _JSON_OBJECT_RE
    match = pattern.search(reply or "")
    candidate = match.group(0) if match else (reply or "").strip()

    try:
        return adapter.validate_json(candidate)
    except ValidationError as e:
        raise LLMCallError(f"Unparsable LLM reply: {e.error_count()} validation error(s)") from e
