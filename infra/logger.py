"""
Centralized Logging Configuration

Provides structured logging for the routing core with:
- Component-specific loggers
- Consistent formatting
- Timing information
- Fallback tracking
"""

import logging
import sys
from pathlib import Path
from typing import Optional


# ═══════════════════════════════════════════════════════════════════════════════
# LOGGER CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO", log_file: Optional[str] = None):
    """
    Configure logging for the entire application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path to write logs to
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    console_formatter = logging.Formatter(
        fmt="%(asctime)s | %(name)-17s | %(levelname)-8s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    file_formatter = logging.Formatter(
        fmt="%(asctime)s | %(name)s | %(levelname)s | %(filename)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(console_formatter)

    root_logger = logging.getLogger()

    # Prevent duplicate logs if setup_logging() is called again
    if root_logger.handlers:
        root_logger.handlers.clear()

    root_logger.setLevel(log_level)
    root_logger.addHandler(console_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

    # Silence noisy third-party loggers
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# ═══════════════════════════════════════════════════════════════════════════════
# COMPONENT LOGGERS
# ═══════════════════════════════════════════════════════════════════════════════

logger_cache = logging.getLogger("router.cache")
logger_session = logging.getLogger("router.session")
logger_classifier = logging.getLogger("router.classifier")
logger_dispatch = logging.getLogger("router.dispatch")
logger_api = logging.getLogger("router.api")


# ═══════════════════════════════════════════════════════════════════════════════
# STRUCTURED LOGGING HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

class LogContext:
    """Helper for consistent structured logging"""

    @staticmethod
    def format_dict(data: dict) -> str:
        """Format dictionary for logging"""
        return " | ".join(f"{k}={v}" for k, v in data.items())

    @staticmethod
    def format_text(text: str, limit: int = 30) -> str:
        """Truncate user text for log lines"""
        if text is None:
            return ""
        return text if len(text) <= limit else text[:limit] + "..."

    @staticmethod
    def format_timing(duration_seconds: float) -> str:
        """Format timing information"""
        return f"{duration_seconds * 1000:.2f}ms"


# ═══════════════════════════════════════════════════════════════════════════════
# LOGGING UTILITIES
# ═══════════════════════════════════════════════════════════════════════════════

def log_cache_store(key: str, intent: str, size: int):
    """Log a decision written to the cache"""
    context = {"key": LogContext.format_text(key), "intent": intent, "size": size}
    logger_cache.debug(f"CACHE_STORE | {LogContext.format_dict(context)}")


def log_cache_hit(key: str, intent: str, access_count: int):
    """Log a cache hit"""
    context = {"key": LogContext.format_text(key), "intent": intent, "access_count": access_count}
    logger_cache.debug(f"CACHE_HIT | {LogContext.format_dict(context)}")


def log_cache_expired(key: str, age_seconds: float):
    """Log lazy expiry of a stale entry"""
    context = {"key": LogContext.format_text(key), "age": LogContext.format_timing(age_seconds)}
    logger_cache.debug(f"CACHE_EXPIRED | {LogContext.format_dict(context)}")


def log_cache_evict(key: str, idle_seconds: float):
    """Log capacity eviction"""
    context = {"key": LogContext.format_text(key), "idle": LogContext.format_timing(idle_seconds)}
    logger_cache.info(f"CACHE_EVICT | {LogContext.format_dict(context)}")


def log_sweep(logger: logging.Logger, removed: int, remaining: int):
    """Log a background sweep that removed something"""
    if removed > 0:
        logger.info(f"SWEEP_COMPLETE | removed={removed} | remaining={remaining}")


def log_route_start(utterance: str, session_id: Optional[str] = None):
    """Log the start of a routing request"""
    context = {"utterance": LogContext.format_text(utterance, 50)}
    if session_id:
        context["session"] = LogContext.format_text(session_id, 8)
    logger_api.debug(f"ROUTE_START | {LogContext.format_dict(context)}")


def log_route_complete(intent: str, handler: str, confidence: float, duration_ms: float, cache_hit: bool):
    """Log routing result"""
    context = {
        "intent": intent,
        "handler": handler,
        "confidence": f"{confidence:.2f}",
        "duration_ms": f"{duration_ms:.2f}",
        "cache_hit": cache_hit
    }
    logger_api.info(f"ROUTE_COMPLETE | {LogContext.format_dict(context)}")


def log_slow_route(utterance: str, duration_ms: float, threshold_ms: int, cache_hit: bool):
    """Warn about routing slower than the budget"""
    context = {
        "utterance": LogContext.format_text(utterance, 50),
        "duration_ms": f"{duration_ms:.2f}",
        "threshold_ms": threshold_ms,
        "cache_hit": cache_hit
    }
    logger_api.warning(f"SLOW_ROUTE | {LogContext.format_dict(context)}")


def log_fallback(failure_type: str, intent: str, confidence: float, error: str):
    """Log a classification that fell back to keyword heuristics"""
    context = {
        "failure": failure_type,
        "intent": intent,
        "confidence": f"{confidence:.2f}",
        "error": error[:100]
    }
    logger_classifier.warning(f"FALLBACK | {LogContext.format_dict(context)}")
