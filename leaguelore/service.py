"""Request-shaped entry points over the analytics engine.

Each method resolves configuration and rows through the injected repository,
hands them to the engine and answers with a JSON-ready success envelope.
``handle`` turns ``LeagueLoreError`` into the matching error envelope and
status so a hosting layer never has to inspect exception types.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from leaguelore.compute.bracket import (
    LOWER_BRACKET,
    PLACE_BRACKET,
    PLAYOFF_BRACKET,
    classify_bracket,
    compute_seedings,
    group_bracket,
    label_matchups,
    postseason_outcome,
    summarize_matchups,
)
from leaguelore.compute.core import filter_records
from leaguelore.compute.h2h import MATCHUP_TYPES, compute_head_to_head, head_to_head_grid
from leaguelore.compute.results import week_summary
from leaguelore.compute.standings import compute_career_records, compute_standings
from leaguelore.compute.streaks import compute_streak_report
from leaguelore.constants import SCHEMA_VERSION, UNKNOWN_MANAGER
from leaguelore.errors import LeagueLoreError, NotFoundError, ValidationError
from leaguelore.models import LeagueInfo, SeasonPlayoffConfig, name_map
from leaguelore.repository import LeagueRepository

logger = logging.getLogger(__name__)

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off", ""}


def parse_bool(raw: Any, name: str = "value", default: bool = False) -> bool:
    if raw is None:
        return default
    if isinstance(raw, bool):
        return raw
    token = str(raw).strip().lower()
    if token in _TRUE:
        return True
    if token in _FALSE:
        return False
    raise ValidationError(f"Invalid {name}: {raw!r} (expected true or false)")


def parse_int(raw: Any, name: str, *, minimum: int | None = None) -> int | None:
    if raw is None or raw == "" or raw == "all":
        return None
    if isinstance(raw, bool):
        raise ValidationError(f"Invalid {name}: {raw!r}")
    try:
        value = int(str(raw).strip())
    except ValueError as exc:
        raise ValidationError(f"Invalid {name}: {raw!r}") from exc
    if minimum is not None and value < minimum:
        raise ValidationError(f"Invalid {name}: {value} (must be >= {minimum})")
    return value


def parse_season(raw: Any) -> int | None:
    return parse_int(raw, "season", minimum=1)


def parse_query(params: Mapping[str, Any]) -> dict[str, Any]:
    """Validate raw request parameters into keyword arguments.

    Accepts both camelCase and snake_case names. ``playoff`` selects playoff
    (true) or regular-season (false) matchups; ``playoffs`` /
    ``include_playoffs`` widen standings and streaks to playoff weeks.
    """
    out: dict[str, Any] = {}
    league_id = params.get("league_id") or params.get("leagueId")
    if league_id is not None:
        out["league_id"] = str(league_id).strip()
    if "season" in params:
        out["season"] = parse_season(params.get("season"))
    if "week" in params:
        out["week"] = parse_int(params.get("week"), "week", minimum=1)
    manager_id = params.get("manager_id") or params.get("managerId")
    if manager_id:
        out["manager_id"] = str(manager_id)
    for key in ("include_playoffs", "includePlayoffs", "playoffs"):
        if key in params:
            out["include_playoffs"] = parse_bool(params[key], key)
            break
    matchup_type = params.get("matchup_type") or params.get("type")
    if matchup_type is not None:
        matchup_type = str(matchup_type).strip().lower()
        if matchup_type not in MATCHUP_TYPES:
            raise ValidationError(
                f"Invalid matchup type: {matchup_type!r} (expected one of {', '.join(MATCHUP_TYPES)})"
            )
        out["matchup_type"] = matchup_type
    if "playoff" in params and params["playoff"] is not None:
        out["playoff"] = parse_bool(params["playoff"], "playoff")
    return out


def handle(fn: Callable[..., dict], *args: Any, **kwargs: Any) -> tuple[dict, int]:
    """Call a service method and return ``(body, status)``."""
    try:
        return fn(*args, **kwargs), 200
    except LeagueLoreError as exc:
        if exc.status >= 500:
            logger.error("%s failed: %s", getattr(fn, "__name__", fn), exc.message)
        else:
            logger.info("%s rejected: %s", getattr(fn, "__name__", fn), exc.message)
        return exc.to_dict(), exc.status


class LeagueAnalyticsService:
    def __init__(self, repository: LeagueRepository) -> None:
        self.repository = repository

    def _league(self, league_id: str | None) -> LeagueInfo:
        if not league_id:
            raise ValidationError("league_id is required")
        league = self.repository.get_league(league_id)
        if league is None:
            raise NotFoundError(f"League not found: {league_id}")
        return league

    def _names(self, league_id: str) -> dict[str, str]:
        return name_map(self.repository.get_managers(league_id))

    def _envelope(self, league_id: str, payload: dict) -> dict:
        return {
            "success": True,
            "schema_version": SCHEMA_VERSION,
            "league_id": league_id,
            "skipped_groups": self.repository.get_skipped_groups(league_id),
            **payload,
        }

    def _season_windows(self, league_id: str, season: int | None) -> dict:
        """Regular-season length and playoff start for the seasons in view."""
        configs = self.repository.get_playoff_configs(league_id)
        windows = []
        for s in [season] if season is not None else sorted(configs):
            config = configs.get(s) or SeasonPlayoffConfig(season=s)
            windows.append(
                {
                    "season": s,
                    "playoff_week_start": config.playoff_week_start,
                    "regular_season_weeks": config.regular_season_weeks,
                }
            )
        single = windows[0] if season is not None else {}
        return {
            "playoff_week_start": single.get("playoff_week_start"),
            "regular_season_weeks": single.get("regular_season_weeks"),
            "season_windows": windows,
        }

    def standings(
        self, league_id: str, season: int | None = None, include_playoffs: bool = False
    ) -> dict:
        self._league(league_id)
        table = compute_standings(
            self.repository.get_weekly_scores(league_id, season=season),
            configs=self.repository.get_playoff_configs(league_id),
            season=season,
            include_playoffs=include_playoffs,
            names=self._names(league_id),
        )
        return self._envelope(
            league_id, {**table.to_dict(), **self._season_windows(league_id, season)}
        )

    def head_to_head(
        self,
        league_id: str,
        manager_id: str | None = None,
        matchup_type: str = "all",
        merge_directions: bool = False,
    ) -> dict:
        self._league(league_id)
        names = self._names(league_id)
        records = compute_head_to_head(
            self.repository.get_matchups(league_id),
            manager_id=manager_id,
            matchup_type=matchup_type,
            names=names,
            merge_directions=merge_directions,
        )
        grid = None
        if manager_id is None:
            # league order first, then any ids seen only in matchups
            present = {r.manager1_id for r in records} | {r.manager2_id for r in records}
            order = [mid for mid in names if mid in present]
            order += sorted(present - set(order))
            grid = head_to_head_grid(records, order, names)
        return self._envelope(
            league_id,
            {
                "manager_id": manager_id,
                "matchup_type": matchup_type,
                "merge_directions": merge_directions,
                "total_pairs": len(records),
                "head_to_head": [r.to_dict() for r in records],
                "grid": grid,
            },
        )

    def streaks(
        self, league_id: str, season: int | None = None, include_playoffs: bool = False
    ) -> dict:
        self._league(league_id)
        records = filter_records(
            self.repository.get_weekly_scores(league_id, season=season),
            configs=self.repository.get_playoff_configs(league_id),
            season=season,
            include_playoffs=include_playoffs,
        )
        report = compute_streak_report(
            records, self.repository.get_managers(league_id), all_seasons=season is None
        )
        return self._envelope(
            league_id,
            {
                "season": season if season is not None else "all",
                "include_playoffs": include_playoffs,
                **report.to_dict(),
                **self._season_windows(league_id, season),
            },
        )

    def matchups(
        self,
        league_id: str,
        season: int | None = None,
        week: int | None = None,
        playoff: bool | None = None,
        manager_id: str | None = None,
    ) -> dict:
        self._league(league_id)
        rows = self.repository.get_matchups(league_id, season=season, week=week, is_playoff=playoff)
        if manager_id:
            rows = [m for m in rows if manager_id in (m.team1_manager_id, m.team2_manager_id)]
        views = label_matchups(
            rows,
            configs=self.repository.get_playoff_configs(league_id),
            names=self._names(league_id),
        )
        return self._envelope(
            league_id,
            {
                "filters": {
                    "season": season if season is not None else "all",
                    "week": week if week is not None else "all",
                    "playoff": "all" if playoff is None else playoff,
                    "manager_id": manager_id or "all",
                },
                "summary": summarize_matchups(views).to_dict(),
                "matchups": [v.to_dict() for v in views],
            },
        )

    def weekly(
        self,
        league_id: str,
        season: int | None = None,
        week: int | None = None,
        manager_id: str | None = None,
    ) -> dict:
        self._league(league_id)
        names = self._names(league_id)
        scores = self.repository.get_weekly_scores(
            league_id, season=season, week=week, manager_id=manager_id
        )
        scores = sorted(
            scores, key=lambda s: (s.season, s.week, s.weekly_rank if s.weekly_rank is not None else 0)
        )
        summary = None
        if season is not None and week is not None:
            summary = week_summary(season, week, scores, names).to_dict()
        return self._envelope(
            league_id,
            {
                "filters": {
                    "season": season if season is not None else "all",
                    "week": week if week is not None else "all",
                    "manager_id": manager_id or "all",
                },
                "count": len(scores),
                "summary": summary,
                "scores": [
                    {
                        **s.to_dict(),
                        "manager_name": names.get(s.manager_id, UNKNOWN_MANAGER),
                        "opponent_name": (
                            names.get(s.opponent_id, UNKNOWN_MANAGER) if s.opponent_id else None
                        ),
                    }
                    for s in scores
                ],
            },
        )

    def managers(self, league_id: str) -> dict:
        self._league(league_id)
        careers = compute_career_records(
            self.repository.get_weekly_scores(league_id),
            self.repository.get_managers(league_id),
            configs=self.repository.get_playoff_configs(league_id),
        )
        return self._envelope(
            league_id,
            {"total_managers": len(careers), "managers": [c.to_dict() for c in careers]},
        )

    def manager(self, league_id: str, manager_id: str) -> dict:
        self._league(league_id)
        found = next(
            (m for m in self.repository.get_managers(league_id) if m.id == manager_id), None
        )
        if found is None:
            raise NotFoundError(f"Manager not found: {manager_id}")
        return self._envelope(league_id, {"manager": found.to_dict()})

    def postseason(self, league_id: str, season: int | None = None) -> dict:
        self._league(league_id)
        if season is None:
            raise ValidationError("Season parameter is required")
        config = self.repository.get_playoff_configs(league_id).get(season) or SeasonPlayoffConfig(
            season=season
        )
        names = self._names(league_id)
        seedings = compute_seedings(
            self.repository.get_weekly_scores(league_id, season=season), config, names
        )
        views = label_matchups(
            self.repository.get_matchups(league_id, season=season, is_playoff=True),
            configs={season: config},
            names=names,
        )
        games = classify_bracket(views, seedings, config)
        brackets = group_bracket(games, config, seedings)

        def rounds(bracket: str) -> dict:
            return {
                "rounds": {str(wk): rnd.to_dict() for wk, rnd in sorted(brackets[bracket].items())}
            }

        return self._envelope(
            league_id,
            {
                "season": season,
                "settings": config.to_dict(),
                "seedings": [s.to_dict() for s in seedings],
                "summary": postseason_outcome(games).to_dict(),
                "playoff": rounds(PLAYOFF_BRACKET),
                "place_games": rounds(PLACE_BRACKET),
                "toilet_bowl": rounds(LOWER_BRACKET),
            },
        )
