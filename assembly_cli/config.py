"""Configuration constants, API endpoints, and .env loading.

WHY: Centralizes every configurable value (endpoints, polling cadence,
feature defaults, accepted file types) so they are easy to find, update,
and override without touching the tracker or the CLI.

HOW: python-dotenv loads the .env file on import. Constants are plain
module-level values read from the environment with fallbacks. The
load_api_key() function provides a clear error when the key is missing.

RULES:
- API key is loaded from .env via python-dotenv, never hardcoded
- All defaults can be overridden via environment variables
- Polling constants have no canonical upstream values; they are config
- ASSEMBLYAI_MAX_POLL_FAILURES=0 disables the consecutive-failure ceiling
- Polling overrides are parsed by load_polling_config(), not at import
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, Optional

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, "true" if default else "false").strip().lower() == "true"


# ---------------------------------------------------------------------------
# API endpoints
# ---------------------------------------------------------------------------

ASSEMBLYAI_BASE_URL = os.getenv("ASSEMBLYAI_BASE_URL", "https://api.assemblyai.com")
UPLOAD_PATH = "/v2/upload"
TRANSCRIPT_PATH = "/v2/transcript"
QUESTION_ANSWER_PATH = "/lemur/v3/generate/question-answer"
LEMUR_FINAL_MODEL = os.getenv("ASSEMBLYAI_LEMUR_MODEL", "basic")

# ---------------------------------------------------------------------------
# Polling defaults
# ---------------------------------------------------------------------------

DEFAULT_POLL_INTERVAL_S = 10.0
DEFAULT_POLL_TIMEOUT_S = 60.0 * 60
DEFAULT_MAX_POLL_FAILURES = 5
STATUS_REQUEST_TIMEOUT_S = 30.0
"""Read timeout for a single status query; uploads keep the long client timeout."""


@dataclass(frozen=True)
class PollingConfig:
    """Polling settings after environment overrides are applied."""

    interval_s: float
    timeout_s: float
    max_failures: Optional[int]
    """Consecutive transient poll failures tolerated; None means only the timeout bounds them."""


def _env_number(name: str, default: float, cast: Callable[[str], float]) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def load_polling_config() -> PollingConfig:
    """Read the polling settings from the environment.

    WHY: A malformed override should produce a message naming the
    variable, not a traceback while the package is being imported.

    HOW: Called when a tracker or the argument parser needs defaults,
    so parse errors surface where the CLI already reports ValueError.

    RULES:
    - ASSEMBLYAI_POLL_INTERVAL and ASSEMBLYAI_POLL_TIMEOUT must be positive
    - ASSEMBLYAI_MAX_POLL_FAILURES must be a non-negative integer; 0 disables the ceiling
    - Raises ValueError naming the offending variable
    """
    interval = _env_number("ASSEMBLYAI_POLL_INTERVAL", DEFAULT_POLL_INTERVAL_S, float)
    timeout = _env_number("ASSEMBLYAI_POLL_TIMEOUT", DEFAULT_POLL_TIMEOUT_S, float)
    max_failures = int(_env_number("ASSEMBLYAI_MAX_POLL_FAILURES", DEFAULT_MAX_POLL_FAILURES, int))
    for name, value in (("ASSEMBLYAI_POLL_INTERVAL", interval), ("ASSEMBLYAI_POLL_TIMEOUT", timeout)):
        if not value > 0:
            raise ValueError(f"{name} must be positive, got {value!r}")
    if max_failures < 0:
        raise ValueError(f"ASSEMBLYAI_MAX_POLL_FAILURES must not be negative, got {max_failures!r}")
    return PollingConfig(
        interval_s=interval,
        timeout_s=timeout,
        max_failures=max_failures if max_failures > 0 else None,
    )


# ---------------------------------------------------------------------------
# Transcription feature defaults
# ---------------------------------------------------------------------------

DEFAULT_ENTITY_DETECTION = _env_bool("ASSEMBLYAI_ENTITY_DETECTION", True)
DEFAULT_TOPIC_DETECTION = _env_bool("ASSEMBLYAI_TOPIC_DETECTION", True)

# ---------------------------------------------------------------------------
# Supported audio/video file extensions
# ---------------------------------------------------------------------------

SUPPORTED_FORMATS: set[str] = {
    ".3ga", ".8svx", ".aac", ".ac3", ".aif", ".aiff", ".alac", ".amr",
    ".ape", ".au", ".dss", ".flac", ".flv", ".m4a", ".m4b", ".m4p",
    ".m4r", ".m4v", ".mov", ".mp2", ".mp3", ".mp4", ".mpga", ".ogg",
    ".oga", ".mogg", ".opus", ".qcp", ".tta", ".voc", ".wav", ".webm",
    ".wma", ".wv",
}
"""Audio/video file extensions accepted for upload (lowercase, with dot)."""


def load_api_key() -> str:
    """Load the AssemblyAI API key from the environment.

    WHY: The API key is required for every AssemblyAI call. Loading it
    from the environment (via .env) keeps it out of source code.

    HOW: Reads ASSEMBLYAI_API_KEY from os.environ (populated by python-dotenv).

    RULES:
    - Raises ValueError if the key is missing or empty
    - Never returns a default/placeholder value
    """
    key = os.getenv("ASSEMBLYAI_API_KEY", "").strip()
    if not key:
        raise ValueError(
            "AssemblyAI API key not configured. "
            "Set ASSEMBLYAI_API_KEY in the environment or in a .env file."
        )
    return key
