"""Derive per-team weekly results from raw matchup rows.

Stores normally hold these results precomputed; this module is how they are
produced from a week of raw ``{"manager_id", "matchup_id", "points"}`` rows
(the shape the Sleeper matchups endpoint returns once rosters are mapped to
managers).
"""

from __future__ import annotations

import logging
import statistics
from dataclasses import dataclass, field
from typing import Any, Sequence

from leaguelore.constants import POINTS_PLACES, UNKNOWN_MANAGER
from leaguelore.errors import DataIntegrityError
from leaguelore.models import MatchupRecord, Result, WeeklyScoreRecord

from .core import _coerce_float, _coerce_int, is_playoff_week, round_to

logger = logging.getLogger(__name__)


def calculate_median(scores: Sequence[float]) -> float:
    if not scores:
        return 0.0
    return float(statistics.median(scores))


def calculate_all_play(score: float, all_scores: Sequence[float]) -> tuple[int, int]:
    """Record against every other score of the week.

    Equal scores, the team's own included, are neither a win nor a loss.
    """
    wins = 0
    losses = 0
    for other in all_scores:
        if other == score:
            continue
        if score > other:
            wins += 1
        else:
            losses += 1
    return wins, losses


def calculate_weekly_rank(score: float, all_scores: Sequence[float]) -> int:
    """1 = highest scorer; equal scores share the better rank."""
    ordered = sorted(all_scores, reverse=True)
    try:
        return ordered.index(score) + 1
    except ValueError:
        return len(ordered) + 1


def group_rows(rows: list[dict]) -> dict[int, list[dict]]:
    groups: dict[int, list[dict]] = {}
    for idx, row in enumerate(rows or []):
        mid_raw = row.get("matchup_id")
        if mid_raw is None:
            # Create deterministic synthetic id when missing (bye / not in bracket)
            rid_int = _coerce_int(row.get("roster_id"), idx)
            mid = -100000 - rid_int
        else:
            mid = _coerce_int(mid_raw, -1)
        groups.setdefault(mid, []).append(row)
    return groups


def _pair(matchup_id: int, entries: list[dict]) -> tuple[dict, dict]:
    if len(entries) != 2:
        raise DataIntegrityError(
            f"Matchup {matchup_id} has {len(entries)} teams, expected 2",
            details={"matchup_id": matchup_id, "teams": len(entries)},
        )
    return entries[0], entries[1]


@dataclass(slots=True)
class WeekDerivation:
    season: int
    week: int
    scores: list[WeeklyScoreRecord] = field(default_factory=list)
    matchups: list[MatchupRecord] = field(default_factory=list)
    median: float = 0.0
    skipped_groups: int = 0


def _h2h(points: float, opp_points: float, unplayed: bool) -> Result:
    if unplayed:
        return Result.NO_RESULT
    # an exact tie is a loss for both sides
    return Result.WIN if points > opp_points else Result.LOSS


def derive_week(
    season: int,
    week: int,
    rows: list[dict],
    *,
    playoff_week_start: int,
    toilet_bowl_matchups: set[int] | None = None,
) -> WeekDerivation:
    """Turn one week of raw per-team rows into weekly scores and matchups.

    Groups that do not pair exactly two teams are skipped and counted; a week
    where every team scored zero has not been played and yields nothing.
    """
    out = WeekDerivation(season=season, week=week)
    groups = group_rows(rows)
    pool = [
        _coerce_float(r.get("points"))
        for mid, entries in groups.items()
        if mid > -100000
        for r in entries
    ]
    if not pool or not any(pool):
        return out
    median = calculate_median(pool)
    out.median = median
    playoff = is_playoff_week(week, playoff_week_start)

    for mid, entries in sorted(groups.items()):
        if mid <= -100000:
            logger.debug("season %s week %s: %s has no matchup (bye)", season, week, entries)
            continue
        try:
            a, b = _pair(mid, entries)
        except DataIntegrityError as exc:
            out.skipped_groups += 1
            logger.warning("season %s week %s: skipping group: %s", season, week, exc)
            continue
        a_id = str(a.get("manager_id") or "")
        b_id = str(b.get("manager_id") or "")
        if not a_id or not b_id:
            out.skipped_groups += 1
            logger.warning("season %s week %s: matchup %s missing manager id", season, week, mid)
            continue
        ap = _coerce_float(a.get("points"))
        bp = _coerce_float(b.get("points"))
        unplayed = ap == 0 and bp == 0
        for me, pf, opp, pa in ((a_id, ap, b_id, bp), (b_id, bp, a_id, ap)):
            ap_w, ap_l = calculate_all_play(pf, pool)
            out.scores.append(
                WeeklyScoreRecord(
                    manager_id=me,
                    season=season,
                    week=week,
                    points_for=pf,
                    points_against=pa,
                    h2h_result=_h2h(pf, pa, unplayed),
                    median_result=(
                        Result.NO_RESULT
                        if unplayed
                        else (Result.WIN if pf > median else Result.LOSS)
                    ),
                    allplay_wins=ap_w,
                    allplay_losses=ap_l,
                    opponent_id=opp,
                    matchup_id=mid,
                    weekly_rank=calculate_weekly_rank(pf, pool),
                )
            )
        winner = None
        if ap > bp:
            winner = a_id
        elif bp > ap:
            winner = b_id
        out.matchups.append(
            MatchupRecord(
                season=season,
                week=week,
                matchup_id=mid,
                team1_manager_id=a_id,
                team1_points=ap,
                team2_manager_id=b_id,
                team2_points=bp,
                winner_manager_id=winner,
                is_playoff=playoff,
                is_toilet_bowl=playoff and mid in (toilet_bowl_matchups or set()),
                playoff_round=(week - playoff_week_start + 1) if playoff else None,
            )
        )
    return out


@dataclass(slots=True)
class WeekSummary:
    season: int
    week: int
    median: float
    average: float
    highest: float
    lowest: float
    top_scorer: str | None
    bottom_scorer: str | None
    teams_above_median: int
    teams_below_median: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "season": self.season,
            "week": self.week,
            "median": self.median,
            "average": self.average,
            "highest": self.highest,
            "lowest": self.lowest,
            "top_scorer": self.top_scorer,
            "bottom_scorer": self.bottom_scorer,
            "teams_above_median": self.teams_above_median,
            "teams_below_median": self.teams_below_median,
        }


def week_summary(
    season: int,
    week: int,
    scores: list[WeeklyScoreRecord],
    names: dict[str, str] | None = None,
) -> WeekSummary:
    names = names or {}
    points = [s.points_for for s in scores]
    if not points:
        return WeekSummary(season, week, 0.0, 0.0, 0.0, 0.0, None, None, 0, 0)
    median = calculate_median(points)
    highest = max(points)
    lowest = min(points)
    top = next(s for s in scores if s.points_for == highest)
    bottom = next(s for s in scores if s.points_for == lowest)
    return WeekSummary(
        season=season,
        week=week,
        median=round_to(median, POINTS_PLACES),
        average=round_to(statistics.fmean(points), POINTS_PLACES),
        highest=highest,
        lowest=lowest,
        top_scorer=names.get(top.manager_id, UNKNOWN_MANAGER),
        bottom_scorer=names.get(bottom.manager_id, UNKNOWN_MANAGER),
        teams_above_median=sum(1 for p in points if p > median),
        teams_below_median=sum(1 for p in points if p < median),
    )
