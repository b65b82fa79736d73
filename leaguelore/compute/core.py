"""Shared helpers for the analytics engine: coercion, rounding, ranks, playoff filters."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Callable, Iterable, Mapping, Sequence, TypeVar

from leaguelore.constants import DEFAULT_PLAYOFF_WEEK_START, PCT_PLACES, POINTS_PLACES
from leaguelore.models import SeasonPlayoffConfig, WeeklyScoreRecord

T = TypeVar("T")


def _coerce_int(value: object, default: int = 0) -> int:
    """Best‑effort int conversion (supports int, float, str of digits)."""
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int | float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return default
    return default


def _coerce_float(value: object, default: float = 0.0) -> float:
    """Numeric columns may arrive as strings (e.g. "100.50") from the store."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return default
    return default


def round_to(value: float, places: int = POINTS_PLACES) -> float:
    """Round half-up to ``places`` decimals (2.675 -> 2.68, not banker's rounding)."""
    try:
        q = Decimal(repr(float(value))).quantize(
            Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP
        )
    except InvalidOperation:
        return float(value)
    return float(q)


def win_pct(wins: int, losses: int, places: int = PCT_PLACES) -> float:
    """Percentage of decided games won (0-100); 0 when nothing was decided."""
    total = wins + losses
    if total == 0:
        return 0.0
    return round_to(wins / total * 100, places)


def rank_by(
    items: Sequence[T],
    value: Callable[[T], Any],
    ident: Callable[[T], Any],
    *,
    ascending: bool = False,
) -> dict[Any, int]:
    """Assign 1-based ranks by ``value`` without reordering ``items``.

    Ties keep their original relative order (stable sort).
    """
    ordered = sorted(items, key=value, reverse=not ascending)
    return {ident(item): i for i, item in enumerate(ordered, start=1)}


def playoff_week_start_for(
    season: int, configs: Mapping[int, SeasonPlayoffConfig] | None
) -> int:
    cfg = (configs or {}).get(season)
    if cfg is None or not cfg.playoff_week_start:
        return DEFAULT_PLAYOFF_WEEK_START
    return cfg.playoff_week_start


def is_playoff_week(week: int, playoff_week_start: int) -> bool:
    return week >= playoff_week_start


def filter_records(
    records: Iterable[WeeklyScoreRecord],
    *,
    configs: Mapping[int, SeasonPlayoffConfig] | None = None,
    season: int | None = None,
    include_playoffs: bool = False,
) -> list[WeeklyScoreRecord]:
    """Apply the season filter and, unless requested, drop playoff weeks.

    The playoff boundary is looked up per record season.
    """
    out: list[WeeklyScoreRecord] = []
    for rec in records or []:
        if season is not None and rec.season != season:
            continue
        if not include_playoffs and is_playoff_week(
            rec.week, playoff_week_start_for(rec.season, configs)
        ):
            continue
        out.append(rec)
    return out


def group_by_manager(
    records: Iterable[WeeklyScoreRecord],
) -> dict[str, list[WeeklyScoreRecord]]:
    groups: dict[str, list[WeeklyScoreRecord]] = {}
    for rec in records or []:
        groups.setdefault(rec.manager_id, []).append(rec)
    return groups
