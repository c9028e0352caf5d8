from __future__ import annotations

import os

os.environ.setdefault("JOB_STORE_BACKEND", "memory")
os.environ.setdefault("GEMINI_API_KEY", "test-key")
