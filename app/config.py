"""
Router Configuration

Centralized configuration for the intent routing core.
Environment overrides are applied in load_settings(); secrets are read
separately by the completion client.
"""

from typing import Dict, FrozenSet, Optional

from pydantic import BaseModel, Field

from infra.env import env_float, env_int, env_str


# ═══════════════════════════════════════════════════════════════════════════════
# LLM CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════

# Default model used for intent classification
MODEL_NAME: str = "gpt-4o-mini"

# OpenAI-compatible base URL (None = provider default)
BASE_URL: Optional[str] = None

# Low temperature keeps routing consistent between identical prompts
CLASSIFICATION_TEMPERATURE: float = 0.1

# Routing JSON is short; anything longer is noise
CLASSIFICATION_MAX_TOKENS: int = 300


# ═══════════════════════════════════════════════════════════════════════════════
# VOCABULARIES
# ═══════════════════════════════════════════════════════════════════════════════

VALID_INTENTS: FrozenSet[str] = frozenset({
    "CREATE_TASK",
    "DELETE_TASK",
    "LIST_TASKS",
    "UPDATE_TASK",
    "COMPLETE_TASK",
    "PLAY_MUSIC",
    "PAUSE_MUSIC",
    "STOP_MUSIC",
    "SKIP_MUSIC",
    "PREVIOUS_MUSIC",
    "START_TIMER",
    "STOP_TIMER",
    "PAUSE_TIMER",
    "RESET_TIMER",
    "GENERAL_CHAT",
    "EXPLAIN",
    "HELP",
})

# Handler -> action tag of its domain
HANDLER_ACTIONS: Dict[str, str] = {
    "PlanningHandler": "planning",
    "MusicHandler": "music",
    "PomodoroHandler": "pomodoro",
    "ChatHandler": "chat",
}

VALID_HANDLERS: FrozenSet[str] = frozenset(HANDLER_ACTIONS)
VALID_ACTIONS: FrozenSet[str] = frozenset(HANDLER_ACTIONS.values())

DEFAULT_INTENT: str = "GENERAL_CHAT"
DEFAULT_HANDLER: str = "ChatHandler"
DEFAULT_ACTION: str = "chat"


# ═══════════════════════════════════════════════════════════════════════════════
# CACHE & SESSION LIMITS
# ═══════════════════════════════════════════════════════════════════════════════

CACHE_MAX_SIZE: int = 1000
CACHE_TTL_SECONDS: float = 5 * 60
CACHE_CLEANUP_INTERVAL_SECONDS: float = 60

# Normalized keys longer than this are truncated
MAX_KEY_LENGTH: int = 200

SESSION_TIMEOUT_SECONDS: float = 15 * 60
SESSION_CLEANUP_INTERVAL_SECONDS: float = 5 * 60

# Turns kept per session / turns shown to the classifier
SESSION_HISTORY_LIMIT: int = 5
PROMPT_HISTORY_LIMIT: int = 3


# ═══════════════════════════════════════════════════════════════════════════════
# TIMING BUDGETS
# ═══════════════════════════════════════════════════════════════════════════════

# Completion call budget (seconds)
CLASSIFICATION_TIMEOUT_SECONDS: float = 0.25

# Routes slower than this are logged as warnings
SLOW_ROUTE_THRESHOLD_MS: int = 300


# ═══════════════════════════════════════════════════════════════════════════════
# FALLBACK CONFIDENCE
# ═══════════════════════════════════════════════════════════════════════════════

# Unknown intent from the model is capped here after coercion
COERCED_CONFIDENCE_CAP: float = 0.6
DEFAULT_CONFIDENCE: float = 0.5
DEFAULT_REASONING: str = "Automated routing decision"

FALLBACK_CONFIDENCE = {
    "keyword": 0.6,        # keyword rule matched
    "unreachable": 0.2,    # timeout / provider failure, no keyword
    "malformed": 0.15      # parse / validation failure, no keyword
}


# ═══════════════════════════════════════════════════════════════════════════════
# LOGGING CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════

LOG_LEVEL: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL

ENABLE_FILE_LOGGING: bool = False

LOG_FILE_PATH: str = "runtime/logs/router.log"

# Log prompt and raw completion sizes (development only)
LOG_LLM_CALLS: bool = False


# ═══════════════════════════════════════════════════════════════════════════════
# SETTINGS MODEL
# ═══════════════════════════════════════════════════════════════════════════════

class RouterSettings(BaseModel):
    """
    Runtime settings handed to the router at construction.

    Defaults mirror the module constants above; load_settings() applies
    environment overrides on top.
    """
    model_name: str = MODEL_NAME
    base_url: Optional[str] = BASE_URL

    temperature: float = Field(CLASSIFICATION_TEMPERATURE, ge=0.0, le=2.0)
    max_tokens: int = Field(CLASSIFICATION_MAX_TOKENS, gt=0)
    classification_timeout: float = Field(CLASSIFICATION_TIMEOUT_SECONDS, gt=0)

    cache_max_size: int = Field(CACHE_MAX_SIZE, gt=0)
    cache_ttl: float = Field(CACHE_TTL_SECONDS, gt=0)
    cache_cleanup_interval: float = Field(CACHE_CLEANUP_INTERVAL_SECONDS, gt=0)

    session_timeout: float = Field(SESSION_TIMEOUT_SECONDS, gt=0)
    session_cleanup_interval: float = Field(SESSION_CLEANUP_INTERVAL_SECONDS, gt=0)

    slow_route_threshold_ms: int = Field(SLOW_ROUTE_THRESHOLD_MS, ge=0)
    preload_patterns: bool = True


def load_settings(**overrides) -> RouterSettings:
    """
    Build RouterSettings from defaults, ROUTER_* environment variables
    and explicit keyword overrides (highest priority).
    """
    values = {
        "model_name": env_str("ROUTER_MODEL_NAME", MODEL_NAME),
        "base_url": env_str("ROUTER_BASE_URL", BASE_URL),
        "classification_timeout": env_float(
            "ROUTER_CLASSIFICATION_TIMEOUT", CLASSIFICATION_TIMEOUT_SECONDS
        ),
        "cache_max_size": env_int("ROUTER_CACHE_MAX_SIZE", CACHE_MAX_SIZE),
        "cache_ttl": env_float("ROUTER_CACHE_TTL", CACHE_TTL_SECONDS),
        "session_timeout": env_float("ROUTER_SESSION_TIMEOUT", SESSION_TIMEOUT_SECONDS),
    }
    values.update(overrides)
    return RouterSettings(**values)


# ═══════════════════════════════════════════════════════════════════════════════
# HELPER FUNCTIONS
# ═══════════════════════════════════════════════════════════════════════════════

def action_for_handler(handler: str) -> str:
    """Action tag for a handler, chat for anything unknown"""
    return HANDLER_ACTIONS.get(handler, DEFAULT_ACTION)


def validate_config():
    """Validate configuration on startup"""
    assert DEFAULT_INTENT in VALID_INTENTS, f"Invalid DEFAULT_INTENT: {DEFAULT_INTENT}"
    assert DEFAULT_HANDLER in VALID_HANDLERS, f"Invalid DEFAULT_HANDLER: {DEFAULT_HANDLER}"
    assert HANDLER_ACTIONS[DEFAULT_HANDLER] == DEFAULT_ACTION, "Default handler/action mismatch"
    assert CACHE_MAX_SIZE > 0, "CACHE_MAX_SIZE must be positive"
    assert 0 < PROMPT_HISTORY_LIMIT <= SESSION_HISTORY_LIMIT, "Invalid history limits"
    assert 0 <= FALLBACK_CONFIDENCE["malformed"] < FALLBACK_CONFIDENCE["unreachable"] < 0.3, \
        "Fallback defaults must stay below keyword confidence"
    assert FALLBACK_CONFIDENCE["keyword"] <= COERCED_CONFIDENCE_CAP, "Invalid keyword confidence"


# Validate on import
validate_config()
