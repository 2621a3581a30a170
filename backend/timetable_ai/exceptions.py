"""Custom exceptions for the Timetable AI backend."""

from __future__ import annotations

from typing import Optional


class AppBaseException(Exception):
    """Domain-level base exception so we can map to JSON responses easily."""

    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


class ConfigurationError(AppBaseException):
    """A required environment variable is missing. Fatal at startup."""

    def __init__(self, detail: str) -> None:
        super().__init__(status_code=500, detail=detail)


class CompletionError(AppBaseException):
    """Upstream completion call failed.

    ``detail`` is a fixed, caller-facing message per operation. The upstream
    error is kept on ``cause`` for diagnostics and never rendered to clients.
    """

    message = "Completion request failed"

    def __init__(self, cause: Optional[BaseException] = None) -> None:
        super().__init__(status_code=502, detail=self.message)
        self.cause = cause


class GenerationError(CompletionError):
    message = "Failed to generate text response"


class StreamError(CompletionError):
    message = "Failed to generate streaming response"


class ChatError(CompletionError):
    message = "Failed to process chat message"


class AnalysisError(CompletionError):
    message = "Failed to analyze timetable data"
