import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def require_env(key: str) -> str:
    value = os.getenv(key)
    if not value:
        raise RuntimeError(f"Missing required environment variable: {key}")
    return value


def env_str(key: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(key)
    return value if value else default


def env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise RuntimeError(f"Environment variable {key} must be an integer, got {value!r}")


def env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        raise RuntimeError(f"Environment variable {key} must be a number, got {value!r}")
