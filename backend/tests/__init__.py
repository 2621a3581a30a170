# Safe defaults for the test run; must be set before ``timetable_ai.config`` is imported.
from __future__ import annotations

import os
import tempfile

os.environ.setdefault("OPENAI_API_KEY", "sk-test-key")
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "timetable_ai_test_logs"))
