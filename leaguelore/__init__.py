"""Top-level leaguelore package.

League analytics over weekly fantasy results: standings, head-to-head tables,
streaks and playoff bracket labels. Subpackages: ``compute`` (the engine),
``api`` (Sleeper HTTP client), ``report`` (markdown/JSON output), ``cli``.
"""

from .errors import (
    DataIntegrityError,
    LeagueLoreError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from .models import (
    LeagueInfo,
    ManagerIdentity,
    MatchupRecord,
    Result,
    SeasonPlayoffConfig,
    WeeklyScoreRecord,
)
from .service import LeagueAnalyticsService

__version__ = "0.1.0"

__all__ = [
    "DataIntegrityError",
    "LeagueLoreError",
    "NotFoundError",
    "UpstreamError",
    "ValidationError",
    "LeagueInfo",
    "ManagerIdentity",
    "MatchupRecord",
    "Result",
    "SeasonPlayoffConfig",
    "WeeklyScoreRecord",
    "LeagueAnalyticsService",
]
