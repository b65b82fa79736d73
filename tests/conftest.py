from pathlib import Path

import pytest

from leaguelore.models import MatchupRecord, Result, WeeklyScoreRecord
from leaguelore.repository import InMemoryRepository
from leaguelore.service import LeagueAnalyticsService

FIXTURE = Path(__file__).parent / "fixtures" / "league.yaml"
LEAGUE_ID = "demo-league"


@pytest.fixture
def repo() -> InMemoryRepository:
    return InMemoryRepository.from_yaml(FIXTURE)


@pytest.fixture
def service(repo) -> LeagueAnalyticsService:
    return LeagueAnalyticsService(repo)


def week(manager_id, season, wk, pf, pa=0.0, h2h=None, median=None, ap=(0, 0)):
    """Shorthand weekly score; ``h2h`` / ``median`` take "W", "L" or None."""
    return WeeklyScoreRecord(
        manager_id=manager_id,
        season=season,
        week=wk,
        points_for=pf,
        points_against=pa,
        h2h_result=Result(h2h) if h2h else Result.NO_RESULT,
        median_result=Result(median) if median else Result.NO_RESULT,
        allplay_wins=ap[0],
        allplay_losses=ap[1],
    )


def game(season, wk, mid, a, ap, b, bp, winner=None, playoff=False, toilet=False, rnd=None):
    return MatchupRecord(
        season=season,
        week=wk,
        matchup_id=mid,
        team1_manager_id=a,
        team1_points=ap,
        team2_manager_id=b,
        team2_points=bp,
        winner_manager_id=winner,
        is_playoff=playoff,
        is_toilet_bowl=toilet,
        playoff_round=rnd,
    )
