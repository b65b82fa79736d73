"""Read-only data access for league analytics.

The service talks to a ``LeagueRepository``; two implementations ship:

- ``InMemoryRepository`` holds parsed records per league and loads YAML
  fixture documents.
- ``SleeperRepository`` reads a league's full history from the Sleeper API,
  walking the ``previous_league_id`` chain and deriving weekly results from
  raw matchup rows.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Protocol

import yaml

from leaguelore.api.client import SleeperClient
from leaguelore.compute.core import _coerce_int
from leaguelore.compute.results import derive_week
from leaguelore.constants import MAX_SEASON_WEEKS
from leaguelore.errors import NotFoundError, UpstreamError, ValidationError
from leaguelore.ingest import (
    parse_league,
    parse_managers,
    parse_matchups,
    parse_settings_history,
    parse_weekly_scores,
)
from leaguelore.models import (
    LeagueInfo,
    ManagerIdentity,
    MatchupRecord,
    SeasonPlayoffConfig,
    WeeklyScoreRecord,
)

logger = logging.getLogger(__name__)


class LeagueRepository(Protocol):
    """What the analytics service needs from a backing store."""

    def get_league(self, league_id: str) -> LeagueInfo | None: ...

    def get_managers(self, league_id: str) -> list[ManagerIdentity]: ...

    def get_playoff_configs(self, league_id: str) -> dict[int, SeasonPlayoffConfig]: ...

    def get_weekly_scores(
        self,
        league_id: str,
        season: int | None = None,
        week: int | None = None,
        manager_id: str | None = None,
    ) -> list[WeeklyScoreRecord]: ...

    def get_matchups(
        self,
        league_id: str,
        season: int | None = None,
        week: int | None = None,
        is_playoff: bool | None = None,
    ) -> list[MatchupRecord]: ...

    def get_skipped_groups(self, league_id: str) -> int: ...


@dataclass(slots=True)
class LeagueData:
    league: LeagueInfo
    managers: list[ManagerIdentity] = field(default_factory=list)
    configs: dict[int, SeasonPlayoffConfig] = field(default_factory=dict)
    weekly_scores: list[WeeklyScoreRecord] = field(default_factory=list)
    matchups: list[MatchupRecord] = field(default_factory=list)
    # matchup groups dropped while deriving results (not exactly two teams)
    skipped_groups: int = 0


class InMemoryRepository:
    def __init__(self, leagues: Iterable[LeagueData] | None = None) -> None:
        self._leagues: dict[str, LeagueData] = {}
        for data in leagues or []:
            self.add_league(data)

    def add_league(self, data: LeagueData) -> None:
        self._leagues[data.league.id] = data

    def league_ids(self) -> list[str]:
        return list(self._leagues)

    def _data(self, league_id: str) -> LeagueData | None:
        return self._leagues.get(str(league_id))

    def get_league(self, league_id: str) -> LeagueInfo | None:
        data = self._data(league_id)
        return data.league if data else None

    def get_managers(self, league_id: str) -> list[ManagerIdentity]:
        data = self._data(league_id)
        return list(data.managers) if data else []

    def get_playoff_configs(self, league_id: str) -> dict[int, SeasonPlayoffConfig]:
        data = self._data(league_id)
        return dict(data.configs) if data else {}

    def get_weekly_scores(
        self,
        league_id: str,
        season: int | None = None,
        week: int | None = None,
        manager_id: str | None = None,
    ) -> list[WeeklyScoreRecord]:
        data = self._data(league_id)
        if data is None:
            return []
        return [
            r
            for r in data.weekly_scores
            if (season is None or r.season == season)
            and (week is None or r.week == week)
            and (manager_id is None or r.manager_id == manager_id)
        ]

    def get_matchups(
        self,
        league_id: str,
        season: int | None = None,
        week: int | None = None,
        is_playoff: bool | None = None,
    ) -> list[MatchupRecord]:
        data = self._data(league_id)
        if data is None:
            return []
        out = [
            m
            for m in data.matchups
            if (season is None or m.season == season)
            and (week is None or m.week == week)
            and (is_playoff is None or m.is_playoff == is_playoff)
        ]
        out.sort(key=lambda m: (-m.season, -m.week, m.matchup_id))
        return out

    def get_skipped_groups(self, league_id: str) -> int:
        data = self._data(league_id)
        return data.skipped_groups if data else 0

    @classmethod
    def from_document(cls, doc: Any) -> "InMemoryRepository":
        """Build from a fixture document: ``{"leagues": [{...}, ...]}``.

        Each league entry carries ``id`` plus optional ``name``,
        ``current_season``, ``first_season``, ``managers``,
        ``settings_history``, ``weekly_scores`` and ``matchups`` lists in
        store row shape.
        """
        if not isinstance(doc, dict) or not isinstance(doc.get("leagues"), list):
            raise ValidationError("fixture document must contain a 'leagues' list")
        repo = cls()
        for idx, entry in enumerate(doc["leagues"]):
            if not isinstance(entry, dict):
                raise ValidationError(f"league entry {idx} is not a mapping")
            league = parse_league(entry)
            scores = parse_weekly_scores(entry.get("weekly_scores") or [])
            seasons = sorted({r.season for r in scores})
            if seasons and league.current_season is None:
                league = LeagueInfo(league.id, league.name, seasons[-1], league.first_season)
            if seasons and league.first_season is None:
                league = LeagueInfo(league.id, league.name, league.current_season, seasons[0])
            repo.add_league(
                LeagueData(
                    league=league,
                    managers=parse_managers(entry.get("managers") or []),
                    configs=parse_settings_history(entry.get("settings_history") or []),
                    weekly_scores=scores,
                    matchups=parse_matchups(entry.get("matchups") or []),
                    skipped_groups=_coerce_int(entry.get("skipped_groups"), 0),
                )
            )
        return repo

    @classmethod
    def from_yaml(cls, path: str | Path) -> "InMemoryRepository":
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise NotFoundError(f"Fixture not found: {path}") from exc
        try:
            doc = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ValidationError(f"Fixture {path} is not valid YAML: {exc}") from exc
        return cls.from_document(doc)


def _owner_of(roster: dict, users: set[str]) -> str | None:
    owner = roster.get("owner_id")
    if owner and owner in users:
        return str(owner)
    co = roster.get("co_owners") or []
    if not isinstance(co, list):
        co = []
    for uid in co:
        if uid in users:
            return str(uid)
    # Owners who have since left the league still identify the roster
    if owner:
        return str(owner)
    return str(co[0]) if co else None


def _toilet_bowl_matchups(
    bracket: list[dict] | None,
    rows_by_week: dict[int, list[dict]],
    playoff_week_start: int,
) -> dict[int, set[int]]:
    """week -> matchup ids that are lower-bracket games.

    Bracket entries name a round and two roster ids; the matchup id is looked
    up from that week's rows.
    """
    out: dict[int, set[int]] = {}
    for game in bracket or []:
        rnd = _coerce_int(game.get("r"), 0)
        if rnd < 1:
            continue
        week = playoff_week_start + rnd - 1
        teams = {game.get("t1"), game.get("t2")}
        for row in rows_by_week.get(week, []):
            if row.get("roster_id") in teams and row.get("matchup_id") is not None:
                out.setdefault(week, set()).add(_coerce_int(row.get("matchup_id"), -1))
    return out


class SleeperRepository:
    """Read-only adapter over the Sleeper API.

    A league's history is fetched once per league id and held in an
    ``InMemoryRepository``; all reads are served from there.
    """

    def __init__(self, client: SleeperClient, max_seasons: int = 12) -> None:
        self.client = client
        self.max_seasons = max_seasons
        self._store = InMemoryRepository()
        self._loaded: set[str] = set()

    def _league_chain(self, league_id: str) -> list[dict]:
        league = self.client.get_json(f"/league/{league_id}")
        if not league:
            raise NotFoundError(f"League not found: {league_id}")
        chain = [league]
        guard = 0
        while guard < self.max_seasons - 1:
            prev_id = league.get("previous_league_id")
            if not prev_id or prev_id == "0":
                break
            league = self.client.get_json(f"/league/{prev_id}")
            if not league:
                break
            chain.append(league)
            guard += 1
        return chain

    def _load_season(
        self, league: dict, managers: dict[str, ManagerIdentity], active: bool
    ) -> tuple[SeasonPlayoffConfig, list[WeeklyScoreRecord], list[MatchupRecord], int]:
        lid = str(league.get("league_id"))
        season = int(league.get("season"))
        config = SeasonPlayoffConfig.from_settings(
            season, league.get("settings"), league.get("scoring_settings")
        )
        users = self.client.get_json(f"/league/{lid}/users") or []
        rosters = self.client.get_json(f"/league/{lid}/rosters") or []
        for u in users:
            uid = u.get("user_id")
            if not uid or uid in managers:
                continue
            meta = u.get("metadata") or {}
            managers[uid] = ManagerIdentity(
                id=str(uid),
                username=u.get("username"),
                display_name=u.get("display_name"),
                nickname=meta.get("team_name") if isinstance(meta, dict) else None,
                is_active=active,
            )
        user_ids = {str(u.get("user_id")) for u in users if u.get("user_id")}
        owner_by_roster: dict[int, str | None] = {
            r.get("roster_id"): _owner_of(r, user_ids) for r in rosters
        }

        settings = league.get("settings") or {}
        start_week = int(settings.get("start_week", 1) or 1)
        rows_by_week: dict[int, list[dict]] = {}
        for wk in range(start_week, MAX_SEASON_WEEKS + 1):
            rows = self.client.get_json(f"/league/{lid}/matchups/{wk}") or []
            for row in rows:
                owner = owner_by_roster.get(row.get("roster_id"))
                if owner is None:
                    logger.warning(
                        "season %s week %s: roster %s has no owner", season, wk, row.get("roster_id")
                    )
                row["manager_id"] = owner
            rows_by_week[wk] = rows
        logger.debug("season %s: fetched %d weeks for league %s", season, len(rows_by_week), lid)

        bracket = self.client.get_json(f"/league/{lid}/losers_bracket")
        toilet = _toilet_bowl_matchups(bracket, rows_by_week, config.playoff_week_start)

        scores: list[WeeklyScoreRecord] = []
        matchups: list[MatchupRecord] = []
        skipped = 0
        for wk, rows in rows_by_week.items():
            derived = derive_week(
                season,
                wk,
                rows,
                playoff_week_start=config.playoff_week_start,
                toilet_bowl_matchups=toilet.get(wk),
            )
            scores.extend(derived.scores)
            matchups.extend(derived.matchups)
            skipped += derived.skipped_groups
        return config, scores, matchups, skipped

    def _ensure(self, league_id: str) -> None:
        league_id = str(league_id)
        if league_id in self._loaded:
            return
        try:
            chain = self._league_chain(league_id)
        except UpstreamError as exc:
            if (exc.details or {}).get("status") == 404:
                raise NotFoundError(f"League not found: {league_id}") from exc
            raise
        managers: dict[str, ManagerIdentity] = {}
        data = LeagueData(
            league=LeagueInfo(
                id=league_id,
                name=chain[0].get("name"),
                current_season=_coerce_int(chain[0].get("season"), 0) or None,
                first_season=_coerce_int(chain[-1].get("season"), 0) or None,
            )
        )
        # newest season first so current identities win
        for idx, league in enumerate(chain):
            try:
                config, scores, matchups, skipped = self._load_season(
                    league, managers, active=idx == 0
                )
            except (TypeError, ValueError) as exc:
                raise UpstreamError(
                    f"Unexpected Sleeper payload for league {league.get('league_id')}: {exc}"
                ) from exc
            data.configs[config.season] = config
            data.weekly_scores.extend(scores)
            data.matchups.extend(matchups)
            data.skipped_groups += skipped
        if data.skipped_groups:
            logger.warning(
                "league %s: %d matchup groups skipped while deriving results",
                league_id,
                data.skipped_groups,
            )
        data.managers = list(managers.values())
        self._store.add_league(data)
        self._loaded.add(league_id)

    def get_league(self, league_id: str) -> LeagueInfo | None:
        try:
            self._ensure(league_id)
        except NotFoundError:
            return None
        return self._store.get_league(league_id)

    def get_managers(self, league_id: str) -> list[ManagerIdentity]:
        self._ensure(league_id)
        return self._store.get_managers(league_id)

    def get_playoff_configs(self, league_id: str) -> dict[int, SeasonPlayoffConfig]:
        self._ensure(league_id)
        return self._store.get_playoff_configs(league_id)

    def get_weekly_scores(
        self,
        league_id: str,
        season: int | None = None,
        week: int | None = None,
        manager_id: str | None = None,
    ) -> list[WeeklyScoreRecord]:
        self._ensure(league_id)
        return self._store.get_weekly_scores(league_id, season, week, manager_id)

    def get_matchups(
        self,
        league_id: str,
        season: int | None = None,
        week: int | None = None,
        is_playoff: bool | None = None,
    ) -> list[MatchupRecord]:
        self._ensure(league_id)
        return self._store.get_matchups(league_id, season, week, is_playoff)

    def get_skipped_groups(self, league_id: str) -> int:
        self._ensure(league_id)
        return self._store.get_skipped_groups(league_id)
