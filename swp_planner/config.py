"""Runtime settings and logging setup.

Settings come from env vars so the API process can be tuned without code
changes:

  PLANNER_STORAGE_PATH=<path.json>      -> where scenarios are persisted
  PLANNER_LOG_LEVEL=INFO                -> root log level
  PLANNER_MAX_SWP_MONTHS=600            -> withdrawal horizon cap
  PLANNER_MAX_TOTAL_MONTHS=1200         -> growth + withdrawal cap
  PLANNER_COMPOUNDING_MODE=simple       -> simple | geometric monthly rate
  PLANNER_CAP_SIP_TERM=1                -> stop SIP contributions at declared years
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from .errors import InvalidInputError

DEFAULT_STORAGE_PATH = "user_data/scenarios.json"
DEFAULT_MAX_SWP_MONTHS = 50 * 12
DEFAULT_MAX_TOTAL_MONTHS = 100 * 12
COMPOUNDING_MODES = ("simple", "geometric")

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class Settings:
    storage_path: str = DEFAULT_STORAGE_PATH
    log_level: str = "INFO"
    max_swp_months: int = DEFAULT_MAX_SWP_MONTHS
    max_total_months: int = DEFAULT_MAX_TOTAL_MONTHS
    compounding_mode: str = "simple"
    cap_contributions_at_declared_term: bool = True


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    if not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise InvalidInputError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise InvalidInputError(f"{name} must be positive, got {value}")
    return value


def settings_from_env() -> Settings:
    mode = os.getenv("PLANNER_COMPOUNDING_MODE", "simple").strip().lower() or "simple"
    if mode not in COMPOUNDING_MODES:
        raise InvalidInputError(f"PLANNER_COMPOUNDING_MODE must be one of {COMPOUNDING_MODES}, got {mode!r}")
    cap_raw = os.getenv("PLANNER_CAP_SIP_TERM")
    return Settings(
        storage_path=os.getenv("PLANNER_STORAGE_PATH", DEFAULT_STORAGE_PATH) or DEFAULT_STORAGE_PATH,
        log_level=os.getenv("PLANNER_LOG_LEVEL", "INFO").upper(),
        max_swp_months=_env_int("PLANNER_MAX_SWP_MONTHS", DEFAULT_MAX_SWP_MONTHS),
        max_total_months=_env_int("PLANNER_MAX_TOTAL_MONTHS", DEFAULT_MAX_TOTAL_MONTHS),
        compounding_mode=mode,
        cap_contributions_at_declared_term=True if cap_raw is None else cap_raw.strip().lower() in _TRUTHY,
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
