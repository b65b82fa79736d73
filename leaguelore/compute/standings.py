from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from leaguelore.constants import PCT_PLACES, POINTS_PLACES, UNKNOWN_MANAGER
from leaguelore.models import ManagerIdentity, Result, SeasonPlayoffConfig, WeeklyScoreRecord

from .core import filter_records, rank_by, round_to, win_pct


@dataclass(slots=True)
class StandingRow:
    manager_id: str
    season: int
    name: str = UNKNOWN_MANAGER
    h2h_wins: int = 0
    h2h_losses: int = 0
    median_wins: int = 0
    median_losses: int = 0
    allplay_wins: int = 0
    allplay_losses: int = 0
    points_for: float = 0.0
    points_against: float = 0.0
    weeks_played: int = 0
    rank: int = 0
    season_rank: int = 0
    points_for_rank: int = 0
    points_against_rank: int = 0
    allplay_rank: int = 0

    @property
    def key(self) -> tuple[str, int]:
        return (self.manager_id, self.season)

    @property
    def combined_wins(self) -> int:
        return self.h2h_wins + self.median_wins

    @property
    def combined_losses(self) -> int:
        return self.h2h_losses + self.median_losses

    @property
    def avg_points_per_week(self) -> float:
        if self.weeks_played == 0:
            return 0.0
        return round_to(self.points_for / self.weeks_played, POINTS_PLACES)

    def fold(self, rec: WeeklyScoreRecord) -> None:
        if rec.h2h_result is Result.WIN:
            self.h2h_wins += 1
        elif rec.h2h_result is Result.LOSS:
            self.h2h_losses += 1
        if rec.median_result is Result.WIN:
            self.median_wins += 1
        elif rec.median_result is Result.LOSS:
            self.median_losses += 1
        self.allplay_wins += rec.allplay_wins
        self.allplay_losses += rec.allplay_losses
        self.points_for += rec.points_for
        self.points_against += rec.points_against
        self.weeks_played += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "rank": self.rank,
            "season_rank": self.season_rank,
            "manager_id": self.manager_id,
            "name": self.name,
            "season": self.season,
            "record": {
                "h2h": {"wins": self.h2h_wins, "losses": self.h2h_losses},
                "median": {"wins": self.median_wins, "losses": self.median_losses},
                "combined": {"wins": self.combined_wins, "losses": self.combined_losses},
                "all_play": {
                    "wins": self.allplay_wins,
                    "losses": self.allplay_losses,
                    "rank": self.allplay_rank,
                },
            },
            "points": {
                "for": round_to(self.points_for, POINTS_PLACES),
                "against": round_to(self.points_against, POINTS_PLACES),
                "avg_per_week": self.avg_points_per_week,
                "for_rank": self.points_for_rank,
                "against_rank": self.points_against_rank,
            },
            "weeks_played": self.weeks_played,
        }


@dataclass(slots=True)
class StandingsTable:
    rows: list[StandingRow] = field(default_factory=list)
    season: int | None = None
    include_playoffs: bool = False

    @property
    def no_data(self) -> bool:
        return not self.rows

    @property
    def seasons(self) -> list[int]:
        return sorted({r.season for r in self.rows}, reverse=True)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "season": self.season if self.season is not None else "all",
            "include_playoffs": self.include_playoffs,
            "total_entries": len(self.rows),
            "seasons": self.seasons,
            "standings": [r.to_dict() for r in self.rows],
        }
        if self.no_data:
            payload["message"] = "No data found for this league"
        return payload


def _primary_key(row: StandingRow) -> tuple[int, float]:
    # Points compared at reporting precision so float noise cannot flip a tie
    return (row.combined_wins, round_to(row.points_for, POINTS_PLACES))


def aggregate_standings(records: Iterable[WeeklyScoreRecord]) -> dict[tuple[str, int], StandingRow]:
    """Fold rows into per-(manager, season) accumulators, in encounter order."""
    table: dict[tuple[str, int], StandingRow] = {}
    for rec in records or []:
        key = (rec.manager_id, rec.season)
        row = table.get(key)
        if row is None:
            row = table[key] = StandingRow(manager_id=rec.manager_id, season=rec.season)
        row.fold(rec)
    return table


def compute_standings(
    records: Iterable[WeeklyScoreRecord],
    *,
    configs: Mapping[int, SeasonPlayoffConfig] | None = None,
    season: int | None = None,
    include_playoffs: bool = False,
    names: Mapping[str, str] | None = None,
) -> StandingsTable:
    filtered = filter_records(
        records, configs=configs, season=season, include_playoffs=include_playoffs
    )
    rows = list(aggregate_standings(filtered).values())
    names = names or {}
    for row in rows:
        row.name = names.get(row.manager_id, UNKNOWN_MANAGER)

    # Season ranks: same ordering, independently within each season
    by_season: dict[int, list[StandingRow]] = {}
    for row in rows:
        by_season.setdefault(row.season, []).append(row)
    for season_rows in by_season.values():
        ranks = rank_by(season_rows, _primary_key, lambda r: r.key)
        for row in season_rows:
            row.season_rank = ranks[row.key]

    rows.sort(key=_primary_key, reverse=True)
    for rank, row in enumerate(rows, start=1):
        row.rank = rank

    pf_ranks = rank_by(rows, lambda r: round_to(r.points_for, POINTS_PLACES), lambda r: r.key)
    pa_ranks = rank_by(rows, lambda r: round_to(r.points_against, POINTS_PLACES), lambda r: r.key)
    ap_ranks = rank_by(rows, lambda r: r.allplay_wins, lambda r: r.key)
    for row in rows:
        row.points_for_rank = pf_ranks[row.key]
        row.points_against_rank = pa_ranks[row.key]
        row.allplay_rank = ap_ranks[row.key]

    return StandingsTable(rows=rows, season=season, include_playoffs=include_playoffs)


@dataclass(slots=True)
class CareerRecord:
    manager: ManagerIdentity
    total: StandingRow
    rank: int = 0
    combined_rank: int = 0
    points_for_rank: int = 0
    points_against_rank: int = 0

    @property
    def combined_win_pct(self) -> float:
        return win_pct(self.total.combined_wins, self.total.combined_losses, PCT_PLACES)

    def to_dict(self) -> dict[str, Any]:
        t = self.total
        return {
            "rank": self.rank,
            **self.manager.to_dict(),
            "career": {
                "total_weeks": t.weeks_played,
                "combined": {
                    "wins": t.combined_wins,
                    "losses": t.combined_losses,
                    "win_pct": self.combined_win_pct,
                    "rank": self.combined_rank,
                },
                "h2h": {
                    "wins": t.h2h_wins,
                    "losses": t.h2h_losses,
                    "win_pct": win_pct(t.h2h_wins, t.h2h_losses),
                },
                "median": {
                    "wins": t.median_wins,
                    "losses": t.median_losses,
                    "win_pct": win_pct(t.median_wins, t.median_losses),
                },
                "all_play": {
                    "wins": t.allplay_wins,
                    "losses": t.allplay_losses,
                    "win_pct": win_pct(t.allplay_wins, t.allplay_losses),
                },
                "points": {
                    "total_pf": round_to(t.points_for, POINTS_PLACES),
                    "total_pa": round_to(t.points_against, POINTS_PLACES),
                    "avg_per_week": t.avg_points_per_week,
                    "pf_rank": self.points_for_rank,
                    "pa_rank": self.points_against_rank,
                },
            },
        }


def compute_career_records(
    records: Iterable[WeeklyScoreRecord],
    managers: list[ManagerIdentity],
    *,
    configs: Mapping[int, SeasonPlayoffConfig] | None = None,
) -> list[CareerRecord]:
    """Regular-season totals per manager across every season on record."""
    totals: dict[str, StandingRow] = {
        m.id: StandingRow(manager_id=m.id, season=0, name=m.label) for m in managers
    }
    for rec in filter_records(records, configs=configs):
        row = totals.get(rec.manager_id)
        if row is not None:
            row.fold(rec)

    careers = [CareerRecord(manager=m, total=totals[m.id]) for m in managers]
    combined = rank_by(careers, lambda c: c.combined_win_pct, lambda c: c.manager.id)
    pf = rank_by(careers, lambda c: round_to(c.total.points_for), lambda c: c.manager.id)
    pa = rank_by(careers, lambda c: round_to(c.total.points_against), lambda c: c.manager.id)
    for c in careers:
        c.combined_rank = combined[c.manager.id]
        c.points_for_rank = pf[c.manager.id]
        c.points_against_rank = pa[c.manager.id]

    careers.sort(key=lambda c: (c.combined_win_pct, round_to(c.total.points_for)), reverse=True)
    for rank, c in enumerate(careers, start=1):
        c.rank = rank
    return careers
