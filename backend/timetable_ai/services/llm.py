"""Abstraction layer around the OpenAI chat-completions API.

Every public method is one stateless request/response cycle against the
upstream API. Failures are logged with their full detail and re-raised as a
category error (:class:`GenerationError`, :class:`StreamError`,
:class:`ChatError`, :class:`AnalysisError`) carrying a fixed message; the
upstream exception stays reachable through ``.cause`` / ``__cause__``.
There are no retries and no fallbacks.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Iterable, Mapping, Optional, Union

from openai import AsyncOpenAI

from timetable_ai.config import Settings
from timetable_ai.exceptions import (
    AnalysisError,
    ChatError,
    GenerationError,
    StreamError,
)
from timetable_ai.models.chat import ChatMessage, GenerationOptions
from timetable_ai.services.prompts import AnalysisType, build_analysis_prompt

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_MAX_TOKENS = 1000
DEFAULT_TEMPERATURE = 0.7

HistoryItem = Union[ChatMessage, Mapping[str, Any]]


def _message_payload(item: HistoryItem) -> dict[str, Any]:
    if isinstance(item, ChatMessage):
        return item.to_openai()
    return {"role": item["role"], "content": item["content"]}


def _first_choice_text(completion: Any) -> str:
    return completion.choices[0].message.content or ""


class CompletionService:
    """Request-shaping wrapper around a shared :class:`AsyncOpenAI` client.

    The instance holds only the read-only client handle and the default model,
    so one instance can serve concurrent requests.
    """

    def __init__(self, client: AsyncOpenAI, model: str = DEFAULT_MODEL) -> None:
        self.client = client
        self.model = model

    @classmethod
    def from_settings(cls, settings: Settings) -> "CompletionService":
        return cls(AsyncOpenAI(api_key=settings.OPENAI_API_KEY))

    async def generate_text(self, prompt: str, options: Optional[GenerationOptions] = None) -> str:
        """Single-turn completion for ``prompt``.

        Args:
            prompt: The user prompt, sent as the only message.
            options: Optional model / max_tokens / temperature overrides.

        Returns:
            The text of the first completion choice.

        Raises:
            GenerationError: On any transport or API failure.
        """
        options = options or GenerationOptions()
        try:
            completion = await self.client.chat.completions.create(
                model=options.model or self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=options.max_tokens if options.max_tokens is not None else DEFAULT_MAX_TOKENS,
                temperature=options.temperature if options.temperature is not None else DEFAULT_TEMPERATURE,
            )
            return _first_choice_text(completion)
        except Exception as exc:
            logger.error("Error generating text with OpenAI: %s", exc, exc_info=True)
            raise GenerationError(exc) from exc

    async def generate_text_stream(self, prompt: str) -> AsyncIterator[str]:
        """Open a streaming completion and return an iterator of text fragments.

        The upstream stream is established before this coroutine returns, so a
        connection or API error surfaces here as :class:`StreamError`. The
        returned async generator is finite and forward-only. An error while
        reading raises :class:`StreamError` from the iteration; fragments that
        were already yielded stay delivered. Closing the generator early closes
        the upstream stream.
        """
        try:
            stream = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                stream=True,
            )
        except Exception as exc:
            logger.error("Error generating streaming text with OpenAI: %s", exc, exc_info=True)
            raise StreamError(exc) from exc

        return self._iter_fragments(stream)

    async def _iter_fragments(self, stream: Any) -> AsyncIterator[str]:
        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                fragment = chunk.choices[0].delta.content
                if fragment:
                    yield fragment
        except Exception as exc:
            logger.error("OpenAI stream failed mid-response: %s", exc, exc_info=True)
            raise StreamError(exc) from exc
        finally:
            await stream.close()

    async def chat(self, history: Optional[Iterable[HistoryItem]], message: str) -> str:
        """Multi-turn completion: ``history`` followed by one new user ``message``."""
        try:
            messages = [_message_payload(item) for item in history or []]
            messages.append({"role": "user", "content": message})

            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=DEFAULT_MAX_TOKENS,
            )
            return _first_choice_text(completion)
        except Exception as exc:
            logger.error("Error in chat with OpenAI: %s", exc, exc_info=True)
            raise ChatError(exc) from exc

    async def analyze_timetable(
        self, timetable_data: Any, analysis_type: Any = AnalysisType.GENERAL
    ) -> str:
        """Wrap ``timetable_data`` in the template for ``analysis_type`` and generate."""
        try:
            prompt = build_analysis_prompt(timetable_data, analysis_type)
            return await self.generate_text(prompt)
        except Exception as exc:
            logger.error("Error analyzing timetable: %s", exc, exc_info=True)
            raise AnalysisError(exc) from exc
