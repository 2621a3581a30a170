# timetable_ai/dependencies.py
from fastapi import Request

from timetable_ai.exceptions import ConfigurationError
from timetable_ai.services.llm import CompletionService


async def get_completion_service(request: Request) -> CompletionService:
    """FastAPI dependency returning the service built for this app at startup."""
    service = getattr(request.app.state, "completion_service", None)
    if service is None:
        # Only reachable if startup was skipped (e.g. a TestClient used without a context manager).
        raise ConfigurationError("Completion service is not configured. Check OPENAI_API_KEY and startup logs.")
    return service
