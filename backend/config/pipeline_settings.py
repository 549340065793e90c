"""
Tunables for the saved-search notification pipeline.

Values come from the environment (with .env support) so the scheduler can
adjust batch size and time budgets without a deploy.
"""

import os
from dataclasses import dataclass
from datetime import timedelta

from dotenv import load_dotenv

FREQUENCIES = ("instant", "daily")


@dataclass(frozen=True)
class PipelineSettings:
    """Settings consumed by the saved-search batch runner."""

    batch_size: int = 20
    max_matches: int = 50
    run_budget_seconds: float = 300.0
    retrieval_timeout_seconds: float = 20.0
    dispatch_timeout_seconds: float = 15.0
    write_timeout_seconds: float = 10.0
    overfetch_multiplier: int = 4
    max_fetch_rows: int = 500
    run_lock_ttl_seconds: int = 600
    # First-run lookbacks: instant exceeds one 15 minute schedule interval,
    # daily exceeds 24h to absorb timezone/DST skew.
    instant_lookback: timedelta = timedelta(minutes=20)
    daily_lookback: timedelta = timedelta(hours=25)

    def lookback_for(self, frequency: str) -> timedelta:
        if frequency == "instant":
            return self.instant_lookback
        if frequency == "daily":
            return self.daily_lookback
        raise ValueError(f"Unsupported frequency: {frequency}")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return int(value)


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return float(value)


def load_pipeline_settings() -> PipelineSettings:
    """Build PipelineSettings from SAVED_SEARCH_* environment variables."""
    load_dotenv()
    defaults = PipelineSettings()

    settings = PipelineSettings(
        batch_size=_env_int("SAVED_SEARCH_BATCH_SIZE", defaults.batch_size),
        max_matches=_env_int("SAVED_SEARCH_MAX_MATCHES", defaults.max_matches),
        run_budget_seconds=_env_float(
            "SAVED_SEARCH_RUN_BUDGET_SECONDS", defaults.run_budget_seconds
        ),
        retrieval_timeout_seconds=_env_float(
            "SAVED_SEARCH_RETRIEVAL_TIMEOUT_SECONDS",
            defaults.retrieval_timeout_seconds,
        ),
        dispatch_timeout_seconds=_env_float(
            "SAVED_SEARCH_DISPATCH_TIMEOUT_SECONDS",
            defaults.dispatch_timeout_seconds,
        ),
        write_timeout_seconds=_env_float(
            "SAVED_SEARCH_WRITE_TIMEOUT_SECONDS", defaults.write_timeout_seconds
        ),
        overfetch_multiplier=_env_int(
            "SAVED_SEARCH_OVERFETCH_MULTIPLIER", defaults.overfetch_multiplier
        ),
        max_fetch_rows=_env_int("SAVED_SEARCH_MAX_FETCH_ROWS", defaults.max_fetch_rows),
        run_lock_ttl_seconds=_env_int(
            "SAVED_SEARCH_RUN_LOCK_TTL_SECONDS", defaults.run_lock_ttl_seconds
        ),
    )

    if settings.batch_size < 1:
        raise ValueError("SAVED_SEARCH_BATCH_SIZE must be at least 1")
    if settings.max_matches < 1:
        raise ValueError("SAVED_SEARCH_MAX_MATCHES must be at least 1")

    return settings
