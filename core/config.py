# =============================================================================
# core/config.py  —  Runtime settings read from the environment
# =============================================================================
#
# All knobs are plain environment variables.  main.py calls load_dotenv()
# first, so a local .env file works too.  Tool-server subprocesses inherit
# the parent's environment and build their own Settings the same way.
#
# Invalid numeric values fall back to the default instead of crashing at
# import time.
# =============================================================================

import os
from dataclasses import dataclass
from typing import Optional


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except ValueError:
        return default


def _env_optional_float(name: str) -> Optional[float]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


@dataclass(frozen=True)
class Settings:
    """Snapshot of every setting the planner uses."""

    # --- Language model (LiteLLM model string) ---
    llm_model: str = "openrouter/openai/gpt-4o"
    llm_temperature: float = 0.2

    # --- Conversation loop ---
    max_round_trips: int = 10          # model calls per turn before giving up

    # --- Tool servers ---
    tool_server_mode: str = "subprocess"   # "subprocess" or "in_process"
    handshake_timeout_sec: float = 15.0
    tool_call_timeout_sec: float = 60.0

    # --- Outbound HTTP (geocoder, Overpass, Wikivoyage) ---
    http_timeout_sec: float = 10.0
    http_user_agent: str = "TripGPT/1.0 (Educational Project; contact@example.com)"
    nominatim_base: str = "https://nominatim.openstreetmap.org"
    overpass_url: str = "https://overpass-api.de/api/interpreter"
    wikivoyage_api: str = "https://en.wikivoyage.org/w/api.php"

    # --- Knowledge cache ---
    knowledge_cache_dir: str = os.path.join("data", "wikivoyage_cache")
    knowledge_cache_ttl_sec: Optional[float] = None    # None = never expire

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls()
        return cls(
            llm_model=os.environ.get("LLM_MODEL", defaults.llm_model),
            llm_temperature=_env_float("LLM_TEMPERATURE", defaults.llm_temperature),
            max_round_trips=max(1, _env_int("MAX_ROUND_TRIPS", defaults.max_round_trips)),
            tool_server_mode=os.environ.get("TOOL_SERVER_MODE", defaults.tool_server_mode).lower(),
            handshake_timeout_sec=_env_float("HANDSHAKE_TIMEOUT_SEC", defaults.handshake_timeout_sec),
            tool_call_timeout_sec=_env_float("TOOL_CALL_TIMEOUT_SEC", defaults.tool_call_timeout_sec),
            http_timeout_sec=_env_float("HTTP_TIMEOUT_SEC", defaults.http_timeout_sec),
            http_user_agent=os.environ.get("HTTP_USER_AGENT", defaults.http_user_agent),
            nominatim_base=os.environ.get("NOMINATIM_BASE", defaults.nominatim_base),
            overpass_url=os.environ.get("OVERPASS_URL", defaults.overpass_url),
            wikivoyage_api=os.environ.get("WIKIVOYAGE_API", defaults.wikivoyage_api),
            knowledge_cache_dir=os.environ.get("KNOWLEDGE_CACHE_DIR", defaults.knowledge_cache_dir),
            knowledge_cache_ttl_sec=_env_optional_float("KNOWLEDGE_CACHE_TTL_SEC"),
            log_level=os.environ.get("LOG_LEVEL", defaults.log_level).upper(),
        )
