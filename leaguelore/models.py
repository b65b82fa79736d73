from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from leaguelore.constants import (
    DEFAULT_PLAYOFF_TEAMS,
    DEFAULT_PLAYOFF_WEEK_START,
    DEFAULT_TOTAL_ROSTERS,
    UNKNOWN_MANAGER,
)
from leaguelore.errors import ValidationError


class Result(str, Enum):
    """Weekly outcome for one win-definition (head-to-head or median)."""

    WIN = "W"
    LOSS = "L"
    NO_RESULT = "-"

    @classmethod
    def from_optional_bool(cls, value: bool | None) -> "Result":
        # Stores encode the outcome as a nullable boolean column
        if value is None:
            return cls.NO_RESULT
        return cls.WIN if value else cls.LOSS

    @property
    def decided(self) -> bool:
        return self is not Result.NO_RESULT


@dataclass(frozen=True, slots=True)
class WeeklyScoreRecord:
    """One manager's result for one week of one season."""

    manager_id: str
    season: int
    week: int
    points_for: float
    points_against: float
    h2h_result: Result = Result.NO_RESULT
    median_result: Result = Result.NO_RESULT
    allplay_wins: int = 0
    allplay_losses: int = 0
    opponent_id: str | None = None
    matchup_id: int | None = None
    weekly_rank: int | None = None

    def __post_init__(self) -> None:
        if not self.manager_id:
            raise ValidationError("weekly score is missing manager_id")
        if self.week < 1:
            raise ValidationError(f"week must be >= 1, got {self.week}")
        if self.points_for < 0 or self.points_against < 0:
            raise ValidationError(
                f"negative points for manager {self.manager_id} "
                f"(season {self.season}, week {self.week})"
            )
        if self.allplay_wins < 0 or self.allplay_losses < 0:
            raise ValidationError("all-play counts must be non-negative")

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.season, self.week)

    def to_dict(self) -> dict[str, Any]:
        return {
            "manager_id": self.manager_id,
            "season": self.season,
            "week": self.week,
            "matchup_id": self.matchup_id,
            "opponent_id": self.opponent_id,
            "points_for": self.points_for,
            "points_against": self.points_against,
            "h2h_result": self.h2h_result.value,
            "median_result": self.median_result.value,
            "weekly_rank": self.weekly_rank,
            "allplay_wins": self.allplay_wins,
            "allplay_losses": self.allplay_losses,
        }


@dataclass(frozen=True, slots=True)
class MatchupRecord:
    """One head-to-head pairing; both sides are carried on the row."""

    season: int
    week: int
    matchup_id: int
    team1_manager_id: str
    team1_points: float
    team2_manager_id: str
    team2_points: float
    winner_manager_id: str | None = None
    is_playoff: bool = False
    is_toilet_bowl: bool = False
    playoff_round: int | None = None

    def __post_init__(self) -> None:
        if self.team1_manager_id == self.team2_manager_id:
            raise ValidationError(
                f"matchup {self.matchup_id} (season {self.season}, week {self.week}) "
                f"pairs manager {self.team1_manager_id} with itself"
            )
        if self.team1_points < 0 or self.team2_points < 0:
            raise ValidationError(f"matchup {self.matchup_id} has negative points")
        if self.winner_manager_id is not None and self.winner_manager_id not in (
            self.team1_manager_id,
            self.team2_manager_id,
        ):
            raise ValidationError(
                f"matchup {self.matchup_id} winner {self.winner_manager_id} is not a participant"
            )

    @property
    def point_differential(self) -> float:
        return abs(self.team1_points - self.team2_points)

    @property
    def loser_manager_id(self) -> str | None:
        if self.winner_manager_id is None:
            return None
        if self.winner_manager_id == self.team1_manager_id:
            return self.team2_manager_id
        return self.team1_manager_id


@dataclass(frozen=True, slots=True)
class SeasonPlayoffConfig:
    """Playoff settings for one (league, season)."""

    season: int
    playoff_week_start: int = DEFAULT_PLAYOFF_WEEK_START
    playoff_teams: int = DEFAULT_PLAYOFF_TEAMS
    total_rosters: int = DEFAULT_TOTAL_ROSTERS
    playoff_round_type: int = 0  # 0=one week, 1=two week champ, 2=two weeks all
    playoff_seed_type: int = 0  # 0=fixed bracket, 1=re-seed
    playoff_type: int = 0
    loser_bracket_type: int = 0  # 0=toilet bowl, 1=consolation

    @property
    def toilet_bowl_teams(self) -> int:
        return self.total_rosters - self.playoff_teams

    @property
    def regular_season_weeks(self) -> int:
        return self.playoff_week_start - 1

    @classmethod
    def from_settings(
        cls,
        season: int,
        league_settings: dict | None = None,
        scoring_settings: dict | None = None,
    ) -> "SeasonPlayoffConfig":
        """Build a config from stored settings blobs.

        The playoff start is read from league settings first, then scoring
        settings; zero or missing values fall through to the default.
        """
        ls = league_settings or {}
        ss = scoring_settings or {}
        start = ls.get("playoff_week_start") or ss.get("playoff_week_start")
        return cls(
            season=int(season),
            playoff_week_start=int(start or DEFAULT_PLAYOFF_WEEK_START),
            playoff_teams=int(ls.get("playoff_teams") or DEFAULT_PLAYOFF_TEAMS),
            total_rosters=int(ls.get("total_rosters") or DEFAULT_TOTAL_ROSTERS),
            playoff_round_type=int(ls.get("playoff_round_type") or 0),
            playoff_seed_type=int(ls.get("playoff_seed_type") or 0),
            playoff_type=int(ls.get("playoff_type") or 0),
            loser_bracket_type=int(ls.get("loser_bracket_type") or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "season": self.season,
            "playoff_week_start": self.playoff_week_start,
            "playoff_teams": self.playoff_teams,
            "total_rosters": self.total_rosters,
            "toilet_bowl_teams": self.toilet_bowl_teams,
            "format": {
                "round_type": _ROUND_TYPES.get(self.playoff_round_type, _ROUND_TYPES[0]),
                "seed_type": "re-seed" if self.playoff_seed_type == 1 else "fixed-bracket",
                "lower_bracket": "consolation" if self.loser_bracket_type == 1 else "toilet-bowl",
                "playoff_type": self.playoff_type,
            },
        }


_ROUND_TYPES = {
    0: "one-week-per-round",
    1: "two-week-championship",
    2: "two-weeks-per-round",
}


@dataclass(frozen=True, slots=True)
class ManagerIdentity:
    id: str
    username: str | None = None
    display_name: str | None = None
    nickname: str | None = None
    is_active: bool = True
    extra: dict = field(default_factory=dict, compare=False)

    @property
    def label(self) -> str:
        return self.nickname or self.display_name or self.username or UNKNOWN_MANAGER

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.label,
            "username": self.username,
            "display_name": self.display_name,
            "nickname": self.nickname,
            "is_active": self.is_active,
        }


@dataclass(frozen=True, slots=True)
class LeagueInfo:
    id: str
    name: str | None = None
    current_season: int | None = None
    first_season: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "current_season": self.current_season,
            "first_season": self.first_season,
        }


def name_map(managers: list[ManagerIdentity] | None) -> dict[str, str]:
    """manager_id -> display label."""
    return {m.id: m.label for m in managers or []}
