from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping

from leaguelore.api.client import SleeperClient
from leaguelore.constants import DEFAULT_BASE_URL


def _float_or_none(raw: str | None) -> float | None:
    try:
        return float(raw) if raw else None
    except ValueError:
        return None


@dataclass(frozen=True, slots=True)
class Settings:
    """Runtime settings read from the environment.

    SLEEPER_BASE_URL         API root (default https://api.sleeper.com/v1)
    SLEEPER_RPM_LIMIT        requests per minute; invalid values are ignored
    SLEEPER_MIN_INTERVAL_MS  minimum gap between requests; invalid values are ignored
    LEAGUELORE_LOG_LEVEL     logging level name (default WARNING)
    LEAGUELORE_FIXTURE       default YAML fixture for the CLI
    """

    base_url: str = DEFAULT_BASE_URL
    rpm_limit: float | None = None
    min_interval_ms: float | None = None
    log_level: str = "WARNING"
    fixture: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        level = (env.get("LEAGUELORE_LOG_LEVEL") or "WARNING").strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            level = "WARNING"
        return cls(
            base_url=env.get("SLEEPER_BASE_URL") or DEFAULT_BASE_URL,
            rpm_limit=_float_or_none(env.get("SLEEPER_RPM_LIMIT")),
            min_interval_ms=_float_or_none(env.get("SLEEPER_MIN_INTERVAL_MS")),
            log_level=level,
            fixture=env.get("LEAGUELORE_FIXTURE") or None,
        )

    def make_client(self) -> SleeperClient:
        return SleeperClient(
            self.base_url, rpm_limit=self.rpm_limit, min_interval_ms=self.min_interval_ms
        )
