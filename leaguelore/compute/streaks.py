"""Current and longest win/loss streaks for h2h, median and combined results.

The combined definition interleaves both signals week by week, median result
first and h2h result second, so one week can extend a streak by two.
Longest streaks run over the whole supplied history and do not reset at
season boundaries; the reported ``season`` is where the run started.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from leaguelore.constants import UNKNOWN_MANAGER
from leaguelore.errors import ValidationError
from leaguelore.models import ManagerIdentity, Result, WeeklyScoreRecord

from .core import group_by_manager

KINDS = ("h2h", "median", "combined")
TARGETS = (Result.WIN, Result.LOSS)

# (season, week, outcome)
Entry = tuple[int, int, Result]


@dataclass(frozen=True, slots=True)
class CurrentStreak:
    type: Result | None = None
    length: int = 0

    @property
    def display(self) -> str:
        if self.type is None:
            return "-"
        return f"{self.length}{self.type.value}"

    @property
    def signed(self) -> int:
        if self.type is Result.WIN:
            return self.length
        if self.type is Result.LOSS:
            return -self.length
        return 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value if self.type else None,
            "length": self.length,
            "display": self.display,
        }


@dataclass(frozen=True, slots=True)
class LongestStreak:
    length: int = 0
    season: int = 0
    start_week: int = 0
    end_week: int = 0
    end_season: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "length": self.length,
            "season": self.season,
            "start_week": self.start_week,
            "end_week": self.end_week,
            "end_season": self.end_season,
        }


def _check_kind(kind: str, allowed: tuple[str, ...] = KINDS) -> None:
    if kind not in allowed:
        raise ValidationError(f"Unsupported streak kind: {kind!r}")


def flatten_results(
    records: Iterable[WeeklyScoreRecord], kind: str, *, descending: bool = False
) -> list[Entry]:
    """Chronological outcome sequence with NO_RESULT entries dropped."""
    _check_kind(kind)
    ordered = sorted(records or [], key=lambda r: r.sort_key, reverse=descending)
    out: list[Entry] = []
    for rec in ordered:
        if kind == "h2h":
            values = (rec.h2h_result,)
        elif kind == "median":
            values = (rec.median_result,)
        else:
            values = (rec.median_result, rec.h2h_result)
        for value in values:
            if value.decided:
                out.append((rec.season, rec.week, value))
    return out


def _leading_run(entries: list[Entry]) -> CurrentStreak:
    if not entries:
        return CurrentStreak()
    first = entries[0][2]
    length = 0
    for _, _, value in entries:
        if value is not first:
            break
        length += 1
    return CurrentStreak(type=first, length=length)


def current_streak(records: Iterable[WeeklyScoreRecord], kind: str) -> CurrentStreak:
    """Most recent run of identical outcomes for ``h2h`` or ``median``."""
    _check_kind(kind, ("h2h", "median"))
    return _leading_run(flatten_results(records, kind, descending=True))


def current_combined_streak(records: Iterable[WeeklyScoreRecord]) -> CurrentStreak:
    return _leading_run(flatten_results(records, "combined", descending=True))


def longest_streak(
    records: Iterable[WeeklyScoreRecord], kind: str, target: Result
) -> LongestStreak:
    """Longest run of ``target``; ties keep the earliest run."""
    if target not in TARGETS:
        raise ValidationError(f"Longest streak target must be WIN or LOSS, got {target!r}")
    entries = flatten_results(records, kind)
    best = LongestStreak()
    cur_len = 0
    cur_start = 0
    for i, (_, _, value) in enumerate(entries):
        if value is not target:
            cur_len = 0
            continue
        if cur_len == 0:
            cur_start = i
        cur_len += 1
        if cur_len > best.length:
            start, end = entries[cur_start], entries[i]
            best = LongestStreak(
                length=cur_len,
                season=start[0],
                start_week=start[1],
                end_week=end[1],
                end_season=end[0],
            )
    return best


@dataclass(slots=True)
class ManagerStreaks:
    manager_id: str
    name: str = UNKNOWN_MANAGER
    current: dict[str, CurrentStreak] = field(default_factory=dict)
    longest: dict[str, dict[Result, LongestStreak]] = field(default_factory=dict)
    weeks_played: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "manager_id": self.manager_id,
            "name": self.name,
            "current_streaks": {k: v.to_dict() for k, v in self.current.items()},
            "longest_streaks": {
                k: {"win": v[Result.WIN].to_dict(), "loss": v[Result.LOSS].to_dict()}
                for k, v in self.longest.items()
            },
            "weeks_played": self.weeks_played,
        }


def manager_streaks(
    manager_id: str, records: list[WeeklyScoreRecord], name: str = UNKNOWN_MANAGER
) -> ManagerStreaks:
    sheet = ManagerStreaks(manager_id=manager_id, name=name, weeks_played=len(records))
    sheet.current = {
        "h2h": current_streak(records, "h2h"),
        "median": current_streak(records, "median"),
        "combined": current_combined_streak(records),
    }
    sheet.longest = {
        kind: {target: longest_streak(records, kind, target) for target in TARGETS}
        for kind in KINDS
    }
    return sheet


@dataclass(frozen=True, slots=True)
class RecordHolder:
    length: int = 0
    manager: str | None = None
    manager_id: str | None = None
    season: int | None = None
    start_week: int | None = None
    end_week: int | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"length": self.length}
        if self.manager_id is not None:
            out.update(
                manager=self.manager,
                manager_id=self.manager_id,
                season=self.season,
                start_week=self.start_week,
                end_week=self.end_week,
            )
        return out


def find_record_holder(sheets: Iterable[ManagerStreaks], kind: str, target: Result) -> RecordHolder:
    best = RecordHolder()
    for sheet in sheets:
        streak = sheet.longest[kind][target]
        if streak.length > best.length:
            best = RecordHolder(
                length=streak.length,
                manager=sheet.name,
                manager_id=sheet.manager_id,
                season=streak.season,
                start_week=streak.start_week,
                end_week=streak.end_week,
            )
    return best


@dataclass(slots=True)
class StreakReport:
    streaks: list[ManagerStreaks]
    league_records: dict[str, RecordHolder]
    all_seasons: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_all_seasons": self.all_seasons,
            "streaks": [s.to_dict() for s in self.streaks],
            "league_records": {k: v.to_dict() for k, v in self.league_records.items()},
        }


def compute_streak_report(
    records: Iterable[WeeklyScoreRecord],
    managers: list[ManagerIdentity] | None = None,
    *,
    all_seasons: bool,
) -> StreakReport:
    """Streak sheets for every manager plus league-wide record holders.

    ``records`` must already be filtered by season / playoff inclusion. With
    ``managers`` given, every listed manager appears (empty sheets for
    managers with no rows); otherwise managers appear in encounter order.
    """
    grouped = group_by_manager(records)
    if managers is not None:
        roster = [(m.id, m.label) for m in managers]
    else:
        roster = [(mid, UNKNOWN_MANAGER) for mid in grouped]
    sheets = [manager_streaks(mid, grouped.get(mid, []), name) for mid, name in roster]

    if all_seasons:
        sheets.sort(key=lambda s: s.longest["combined"][Result.WIN].length, reverse=True)
    else:
        sheets.sort(key=lambda s: s.current["combined"].signed, reverse=True)

    # Holders are resolved over the presentation order: equal lengths go to the earlier sheet
    league_records = {
        f"{kind}_{'win' if target is Result.WIN else 'loss'}": find_record_holder(sheets, kind, target)
        for kind in KINDS
        for target in TARGETS
    }
    return StreakReport(streaks=sheets, league_records=league_records, all_seasons=all_seasons)
