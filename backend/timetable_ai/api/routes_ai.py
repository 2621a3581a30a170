"""Endpoints that forward prompts, chats and timetable analyses to OpenAI."""

from __future__ import annotations

import logging
from typing import AsyncIterator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from ..dependencies import get_completion_service
from ..exceptions import StreamError
from ..models.chat import (
    AnalyzeRequest,
    ChatRequest,
    GenerateRequest,
    StreamRequest,
    TextResponse,
)
from ..services.llm import CompletionService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/generate", response_model=TextResponse)
async def generate(
    body: GenerateRequest,
    service: CompletionService = Depends(get_completion_service),
) -> TextResponse:
    """Single-turn text generation."""
    content = await service.generate_text(body.prompt, body.options)
    return TextResponse(content=content)


@router.post("/generate/stream")
async def generate_stream(
    body: StreamRequest,
    service: CompletionService = Depends(get_completion_service),
) -> StreamingResponse:
    """Stream generated text as plain-text fragments.

    A failure to open the upstream stream is reported as a normal 502. Once
    the body has started the status is already sent, so a mid-stream failure
    is logged and the body simply ends.
    """
    fragments = await service.generate_text_stream(body.prompt)

    async def _body() -> AsyncIterator[str]:
        try:
            async for fragment in fragments:
                yield fragment
        except StreamError:
            logger.warning("Streaming response truncated after upstream failure")

    return StreamingResponse(_body(), media_type="text/plain; charset=utf-8")


@router.post("/chat", response_model=TextResponse)
async def chat(
    body: ChatRequest,
    service: CompletionService = Depends(get_completion_service),
) -> TextResponse:
    """Multi-turn chat; the caller sends the full history each time."""
    content = await service.chat(body.history, body.message)
    return TextResponse(content=content)


@router.post("/timetable/analyze", response_model=TextResponse)
async def analyze_timetable(
    body: AnalyzeRequest,
    service: CompletionService = Depends(get_completion_service),
) -> TextResponse:
    """Run one of the fixed timetable analyses (conflicts, optimization, load, general)."""
    content = await service.analyze_timetable(body.timetable_data, body.analysis_type)
    return TextResponse(content=content)
