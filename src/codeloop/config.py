# codeloop: Environment-driven configuration constants, kept in one module so the client, the session loop and the CLI import them without circular dependencies.

import os

# OpenAI env (Responses API)
OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY", "")
AI_MODEL = os.environ.get("AI_MODEL", "gpt-5")  # OpenAI model id
OPENAI_BASE_URL = os.environ.get("OPENAI_BASE_URL", "https://api.openai.com/v1")

# Output token budget per model call
MAX_COMPLETION_TOKENS = int(os.environ.get("CODELOOP_MAX_COMPLETION_TOKENS", "16384"))

# Turn ceiling used by the CLI; the session core always takes it as an explicit argument
MAX_TURNS = int(os.environ.get("CODELOOP_MAX_TURNS", "15"))

# HTTP transport timeout in seconds (no retries are layered on top)
HTTP_TIMEOUT_SEC = int(os.environ.get("CODELOOP_HTTP_TIMEOUT", "240"))

# read_files returns at most this many paths per call
READ_FILES_CAP = 10

# Snapshot loading: files larger than this are left out of the working set
SNAPSHOT_MAX_BYTES = int(os.environ.get("CODELOOP_SNAPSHOT_MAX_BYTES", str(512_000)))
