"""Timetable AI backend: a thin HTTP layer over an OpenAI chat-completion client."""

__version__ = "0.1.0"
