# Re-export the public models so callers can ``from timetable_ai.models import ChatMessage``.
from .chat import (  # noqa: F401
    AnalyzeRequest,
    ChatMessage,
    ChatRequest,
    ChatRole,
    GenerateRequest,
    GenerationOptions,
    StreamRequest,
    TextResponse,
)
