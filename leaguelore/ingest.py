"""Parse store-shaped rows into strict engine records.

Rows arrive as loosely typed dicts (snake_case column names, numeric columns
possibly as strings, results as nullable booleans, joined manager objects).
Everything is validated here so the engine only ever sees well-formed
records; a malformed row raises ``ValidationError`` naming its index.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, TypeVar

from leaguelore.errors import ValidationError
from leaguelore.models import (
    LeagueInfo,
    ManagerIdentity,
    MatchupRecord,
    Result,
    SeasonPlayoffConfig,
    WeeklyScoreRecord,
)

T = TypeVar("T")


def _req(row: dict, key: str) -> Any:
    value = row.get(key)
    if value is None or value == "":
        raise ValidationError(f"missing required field {key!r}")
    return value


def _int(row: dict, key: str, *, required: bool = True, default: int | None = None) -> int | None:
    value = _req(row, key) if required else row.get(key)
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValidationError(f"field {key!r} must be an integer, got {value!r}")
    try:
        return int(str(value).strip()) if isinstance(value, str) else int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"field {key!r} must be an integer, got {value!r}") from exc


def _float(row: dict, key: str, default: float = 0.0) -> float:
    value = row.get(key)
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValidationError(f"field {key!r} must be numeric, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"field {key!r} must be numeric, got {value!r}") from exc


def _result(row: dict, key: str) -> Result:
    value = row.get(key)
    if isinstance(value, Result):
        return value
    if value is None or isinstance(value, bool):
        return Result.from_optional_bool(value)
    if isinstance(value, str):
        token = value.strip().upper()
        if token in {"W", "WIN", "TRUE"}:
            return Result.WIN
        if token in {"L", "LOSS", "FALSE"}:
            return Result.LOSS
        if token in {"", "-", "NONE", "NULL", "NO_RESULT"}:
            return Result.NO_RESULT
    raise ValidationError(f"field {key!r} is not a recognised result: {value!r}")


def _bool(row: dict, key: str) -> bool:
    value = row.get(key)
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes"}
    return bool(value)


def _opt_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def parse_weekly_score(row: dict) -> WeeklyScoreRecord:
    return WeeklyScoreRecord(
        manager_id=str(_req(row, "manager_id")),
        season=_int(row, "season"),
        week=_int(row, "week"),
        points_for=_float(row, "points_for"),
        points_against=_float(row, "points_against"),
        h2h_result=_result(row, "h2h_win"),
        median_result=_result(row, "median_win"),
        allplay_wins=_int(row, "allplay_wins", required=False, default=0),
        allplay_losses=_int(row, "allplay_losses", required=False, default=0),
        opponent_id=_opt_str(row.get("opponent_id")),
        matchup_id=_int(row, "matchup_id", required=False),
        weekly_rank=_int(row, "weekly_rank", required=False),
    )


def parse_matchup(row: dict) -> MatchupRecord:
    return MatchupRecord(
        season=_int(row, "season"),
        week=_int(row, "week"),
        matchup_id=_int(row, "matchup_id"),
        team1_manager_id=str(_req(row, "team1_manager_id")),
        team1_points=_float(row, "team1_points"),
        team2_manager_id=str(_req(row, "team2_manager_id")),
        team2_points=_float(row, "team2_points"),
        winner_manager_id=_opt_str(row.get("winner_manager_id")),
        is_playoff=_bool(row, "is_playoff"),
        is_toilet_bowl=_bool(row, "is_toilet_bowl"),
        playoff_round=_int(row, "playoff_round", required=False),
    )


def parse_manager(row: dict) -> ManagerIdentity:
    return ManagerIdentity(
        id=str(_req(row, "id")),
        username=_opt_str(row.get("current_username") or row.get("username")),
        display_name=_opt_str(row.get("display_name")),
        nickname=_opt_str(row.get("nickname")),
        is_active=row.get("is_active", True) is not False,
    )


def parse_league(row: dict) -> LeagueInfo:
    return LeagueInfo(
        id=str(_req(row, "id")),
        name=_opt_str(row.get("name")),
        current_season=_int(row, "current_season", required=False),
        first_season=_int(row, "first_season", required=False),
    )


def parse_settings_history(rows: Iterable[dict]) -> dict[int, SeasonPlayoffConfig]:
    """season -> playoff config from ``league_settings_history``-shaped rows."""
    configs: dict[int, SeasonPlayoffConfig] = {}
    for idx, row in enumerate(rows or []):
        try:
            season = _int(row, "season")
            configs[season] = SeasonPlayoffConfig.from_settings(
                season, row.get("league_settings"), row.get("scoring_settings")
            )
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"settings row {idx}: {exc}") from exc
    return configs


def _parse_all(rows: Iterable[dict], parse: Callable[[dict], T], kind: str) -> list[T]:
    out: list[T] = []
    for idx, row in enumerate(rows or []):
        if not isinstance(row, dict):
            raise ValidationError(f"{kind} row {idx} is not a mapping")
        try:
            out.append(parse(row))
        except ValidationError as exc:
            raise ValidationError(f"{kind} row {idx}: {exc.message}", details={"row": idx}) from exc
    return out


def parse_weekly_scores(rows: Iterable[dict]) -> list[WeeklyScoreRecord]:
    records = _parse_all(rows, parse_weekly_score, "weekly score")
    seen: set[tuple[str, int, int]] = set()
    for rec in records:
        key = (rec.manager_id, rec.season, rec.week)
        if key in seen:
            raise ValidationError(
                f"duplicate weekly score for manager {rec.manager_id} "
                f"(season {rec.season}, week {rec.week})"
            )
        seen.add(key)
    return records


def parse_matchups(rows: Iterable[dict]) -> list[MatchupRecord]:
    return _parse_all(rows, parse_matchup, "matchup")


def parse_managers(rows: Iterable[dict]) -> list[ManagerIdentity]:
    return _parse_all(rows, parse_manager, "manager")
