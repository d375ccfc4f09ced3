from __future__ import annotations

import os


def _get_bool(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "y", "on")


def _get_int(name: str, default: str) -> int:
    return int(os.getenv(name, default).strip() or default)


def _get_float(name: str, default: str) -> float:
    return float(os.getenv(name, default).strip() or default)


def _get_str(name: str, default: str = "") -> str:
    return (os.getenv(name, default) or default).strip()


# --------------------------------------------------
# Logging
# --------------------------------------------------
LOG_LEVEL = _get_str("LOG_LEVEL", "INFO").upper()

# --------------------------------------------------
# Stores (catalog + prices + settings, one file per store)
# --------------------------------------------------
STORES_DIR = _get_str("STORES_DIR", "stores")

# Web chat tester has no dialled number; fall back to this store phone
DEFAULT_STORE_TO = _get_str("DEFAULT_STORE_TO", "")

# --------------------------------------------------
# Sessions
# --------------------------------------------------
SESSION_TTL_SECONDS = _get_int("SESSION_TTL_SECONDS", "1800")

# --------------------------------------------------
# OpenAI (optional AI interpreter)
# --------------------------------------------------
AI_INTERPRETER_ENABLED = _get_bool("AI_INTERPRETER_ENABLED", "0")
AI_TIMEOUT_SEC = _get_float("AI_TIMEOUT_SEC", "6.0")

OPENAI_API_KEY = _get_str("OPENAI_API_KEY", "")
OPENAI_CHAT_MODEL = _get_str("OPENAI_CHAT_MODEL", "gpt-4o-mini")

# --------------------------------------------------
# DB (tickets + telemetry)
# --------------------------------------------------
DATABASE_URL = _get_str("DATABASE_URL", "")
TICKETS_SCHEMA = _get_str("TICKETS_SCHEMA", "public")

TELEMETRY_ENABLED = _get_bool("TELEMETRY_ENABLED", "1")
TELEMETRY_SCHEMA = _get_str("TELEMETRY_SCHEMA", "public")
TELEMETRY_TABLE = _get_str("TELEMETRY_TABLE", "telemetry_events")
