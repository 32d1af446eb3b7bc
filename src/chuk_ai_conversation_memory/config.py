# chuk_ai_conversation_memory/config.py
from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

# Central model config: can be overridden by environment variable
DEFAULT_TOKEN_MODEL = os.getenv("CHUK_DEFAULT_MODEL", "gpt-4o")

# Memory window budget
DEFAULT_MAX_TOKENS = int(os.getenv("CHUK_MEMORY_MAX_TOKENS", "8000"))
DEFAULT_RESERVE_TOKENS = int(os.getenv("CHUK_MEMORY_RESERVE_TOKENS", "1000"))

# Content externalization
DEFAULT_REFERENCE_THRESHOLD_BYTES = int(os.getenv("CHUK_REFERENCE_THRESHOLD_BYTES", str(10 * 1024)))
DEFAULT_STORE_TIMEOUT_SECONDS = float(os.getenv("CHUK_STORE_TIMEOUT_SECONDS", "10.0"))
