"""Pairwise head-to-head tables built from stored matchup rows.

Pairs are keyed by ``(team1, team2)`` exactly as stored, so a row where A is
team1 against B is never credited to the ``(B, A)`` pair. Stores that keep a
single row per matchup therefore only ever describe the team1 perspective;
``merge_directions=True`` folds the team2 perspective in as well for callers
that explicitly want symmetric tables.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from leaguelore.constants import PCT_PLACES, POINTS_PLACES, UNKNOWN_MANAGER
from leaguelore.errors import ValidationError
from leaguelore.models import MatchupRecord

from .core import round_to, win_pct

MATCHUP_TYPES = ("all", "regular", "playoff")


@dataclass(slots=True)
class HeadToHeadRecord:
    manager1_id: str
    manager2_id: str
    manager1_name: str = UNKNOWN_MANAGER
    manager2_name: str = UNKNOWN_MANAGER
    matchups: int = 0
    wins: int = 0
    losses: int = 0
    points_for: float = 0.0
    points_against: float = 0.0

    @property
    def win_pct(self) -> float:
        return win_pct(self.wins, self.losses, PCT_PLACES)

    @property
    def avg_margin(self) -> float:
        if self.matchups == 0:
            return 0.0
        return round_to((self.points_for - self.points_against) / self.matchups, POINTS_PLACES)

    def to_dict(self) -> dict[str, Any]:
        return {
            "manager1": {"id": self.manager1_id, "name": self.manager1_name},
            "manager2": {"id": self.manager2_id, "name": self.manager2_name},
            "matchups": self.matchups,
            "wins": self.wins,
            "losses": self.losses,
            "win_pct": self.win_pct,
            "points_for": round_to(self.points_for, POINTS_PLACES),
            "points_against": round_to(self.points_against, POINTS_PLACES),
            "avg_margin": self.avg_margin,
        }


def filter_matchup_type(
    matchups: Iterable[MatchupRecord], matchup_type: str = "all"
) -> list[MatchupRecord]:
    if matchup_type not in MATCHUP_TYPES:
        raise ValidationError(
            f"Unsupported matchup type: {matchup_type!r} (expected one of {', '.join(MATCHUP_TYPES)})"
        )
    if matchup_type == "regular":
        return [m for m in matchups or [] if not m.is_playoff]
    if matchup_type == "playoff":
        return [m for m in matchups or [] if m.is_playoff]
    return list(matchups or [])


def _accumulate(
    table: dict[tuple[str, str], HeadToHeadRecord],
    me: str,
    opp: str,
    my_points: float,
    opp_points: float,
    won: bool,
) -> None:
    rec = table.get((me, opp))
    if rec is None:
        rec = table[(me, opp)] = HeadToHeadRecord(manager1_id=me, manager2_id=opp)
    rec.matchups += 1
    rec.points_for += my_points
    rec.points_against += opp_points
    # Absent winner (tie / unplayed) is not modelled separately: it is a loss
    if won:
        rec.wins += 1
    else:
        rec.losses += 1


def compute_head_to_head(
    matchups: Iterable[MatchupRecord],
    *,
    manager_id: str | None = None,
    matchup_type: str = "all",
    names: Mapping[str, str] | None = None,
    merge_directions: bool = False,
) -> list[HeadToHeadRecord]:
    table: dict[tuple[str, str], HeadToHeadRecord] = {}
    for m in filter_matchup_type(matchups, matchup_type):
        _accumulate(
            table,
            m.team1_manager_id,
            m.team2_manager_id,
            m.team1_points,
            m.team2_points,
            m.winner_manager_id == m.team1_manager_id,
        )
        if merge_directions:
            _accumulate(
                table,
                m.team2_manager_id,
                m.team1_manager_id,
                m.team2_points,
                m.team1_points,
                m.winner_manager_id == m.team2_manager_id,
            )

    names = names or {}
    records = list(table.values())
    for rec in records:
        rec.manager1_name = names.get(rec.manager1_id, UNKNOWN_MANAGER)
        rec.manager2_name = names.get(rec.manager2_id, UNKNOWN_MANAGER)
    if manager_id:
        records = [r for r in records if r.manager1_id == manager_id]
    records.sort(key=lambda r: (r.win_pct, r.wins), reverse=True)
    return records


def head_to_head_grid(
    records: Iterable[HeadToHeadRecord], manager_ids: list[str], names: Mapping[str, str] | None = None
) -> list[list[str]]:
    """Square W-L grid (row manager as team1) for markdown output."""
    names = names or {}
    lookup = {(r.manager1_id, r.manager2_id): r for r in records}
    header = [""] + [names.get(mid, UNKNOWN_MANAGER) for mid in manager_ids]
    rows = [header]
    for a in manager_ids:
        row = [names.get(a, UNKNOWN_MANAGER)]
        for b in manager_ids:
            if a == b:
                row.append("-")
                continue
            rec = lookup.get((a, b))
            row.append(f"{rec.wins}-{rec.losses}" if rec else "0-0")
        rows.append(row)
    return rows
