"""Prompt templates for timetable analysis."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any


class AnalysisType(str, Enum):
    """Closed set of timetable analyses. Unknown labels map to ``GENERAL``."""

    CONFLICTS = "conflicts"
    OPTIMIZATION = "optimization"
    LOAD = "load"
    GENERAL = "general"

    @classmethod
    def from_value(cls, value: Any) -> "AnalysisType":
        if isinstance(value, cls):
            return value
        # Exact, case-sensitive match on the label; anything else is a general analysis.
        if isinstance(value, str):
            for member in cls:
                if member.value == value:
                    return member
        return cls.GENERAL


PROMPT_TEMPLATES: dict[AnalysisType, str] = {
    AnalysisType.CONFLICTS: (
        "Analyze the following timetable data for scheduling conflicts "
        "and provide recommendations: {timetable}"
    ),
    AnalysisType.OPTIMIZATION: (
        "Suggest optimizations for the following timetable to improve efficiency: {timetable}"
    ),
    AnalysisType.LOAD: (
        "Analyze the workload distribution in this timetable and suggest improvements: {timetable}"
    ),
    AnalysisType.GENERAL: "Provide a general analysis of this timetable data: {timetable}",
}


def serialize_timetable(timetable_data: Any) -> str:
    """Compact JSON, byte-for-byte what a browser's ``JSON.stringify`` would send.

    Raises ``TypeError`` for non-JSON values and ``ValueError`` for cycles or NaN.
    """
    return json.dumps(
        timetable_data,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def build_analysis_prompt(timetable_data: Any, analysis_type: Any = AnalysisType.GENERAL) -> str:
    kind = AnalysisType.from_value(analysis_type)
    return PROMPT_TEMPLATES[kind].format(timetable=serialize_timetable(timetable_data))
