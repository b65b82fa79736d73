from __future__ import annotations

import argparse
import logging
import sys
from typing import Any

from leaguelore.config import Settings
from leaguelore.errors import LeagueLoreError
from leaguelore.report.formatters import format_json, format_markdown
from leaguelore.repository import InMemoryRepository, LeagueRepository, SleeperRepository
from leaguelore.service import LeagueAnalyticsService, parse_season


def _season_arg(raw: str) -> int | None:
    try:
        return parse_season(raw)
    except LeagueLoreError as exc:
        raise argparse.ArgumentTypeError(exc.message) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="leaguelore",
        description="League analytics: standings, head-to-head, streaks and playoff brackets",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--fixture", default=None, help="YAML fixture document (default from env)")
    source.add_argument(
        "--sleeper-league-id", default=None, help="Read league history from the Sleeper API"
    )
    parser.add_argument(
        "--league-id",
        default=None,
        help="League id inside the fixture (defaults to the only league it holds)",
    )
    parser.add_argument("--format", choices=("markdown", "json"), default="markdown")
    parser.set_defaults(json_pretty=True)
    parser.add_argument(
        "--json-compact",
        dest="json_pretty",
        action="store_false",
        help="Use compact JSON (no whitespace)",
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging to stderr")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("standings", help="Per-season standings")
    p.add_argument("--season", type=_season_arg, default=None)
    p.add_argument("--include-playoffs", action="store_true")

    p = sub.add_parser("h2h", help="Head-to-head records")
    p.add_argument("--manager-id", default=None)
    p.add_argument("--type", dest="matchup_type", choices=("all", "regular", "playoff"), default="all")
    p.add_argument(
        "--merge-directions",
        action="store_true",
        help="Also credit each matchup to the team2 perspective",
    )

    p = sub.add_parser("streaks", help="Current and longest streaks")
    p.add_argument("--season", type=_season_arg, default=None)
    p.add_argument("--include-playoffs", action="store_true")

    p = sub.add_parser("matchups", help="Labelled matchups with summary statistics")
    p.add_argument("--season", type=_season_arg, default=None)
    p.add_argument("--week", type=int, default=None)
    p.add_argument("--manager-id", default=None)
    kind = p.add_mutually_exclusive_group()
    kind.add_argument("--playoff", dest="playoff", action="store_true", default=None)
    kind.add_argument("--regular", dest="playoff", action="store_false")
    p.set_defaults(playoff=None)

    p = sub.add_parser("weekly", help="Weekly scores (summary when season and week are given)")
    p.add_argument("--season", type=_season_arg, default=None)
    p.add_argument("--week", type=int, default=None)
    p.add_argument("--manager-id", default=None)

    sub.add_parser("managers", help="Career records per manager")

    p = sub.add_parser("manager", help="Identity of a single manager")
    p.add_argument("--manager-id", required=True)

    p = sub.add_parser("postseason", help="Seedings, bracket games and outcome for one season")
    p.add_argument("--season", type=_season_arg, required=True)
    return parser


def _configure_logging(verbose: bool, settings: Settings) -> None:
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level, logging.WARNING)
    logging.basicConfig(
        level=level, stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s"
    )


def _open_repository(args: argparse.Namespace, settings: Settings) -> tuple[LeagueRepository, str]:
    if args.sleeper_league_id:
        return SleeperRepository(settings.make_client()), str(args.sleeper_league_id)
    fixture = args.fixture or settings.fixture
    if not fixture:
        raise ValueError("No data source: pass --fixture, --sleeper-league-id or set LEAGUELORE_FIXTURE")
    repo = InMemoryRepository.from_yaml(fixture)
    league_id = args.league_id
    if league_id is None:
        ids = repo.league_ids()
        if len(ids) != 1:
            raise ValueError(f"Fixture holds {len(ids)} leagues; pass --league-id")
        league_id = ids[0]
    return repo, league_id


def run(args: argparse.Namespace, service: LeagueAnalyticsService, league_id: str) -> dict[str, Any]:
    cmd = args.command
    if cmd == "standings":
        return service.standings(league_id, args.season, args.include_playoffs)
    if cmd == "h2h":
        return service.head_to_head(
            league_id, args.manager_id, args.matchup_type, args.merge_directions
        )
    if cmd == "streaks":
        return service.streaks(league_id, args.season, args.include_playoffs)
    if cmd == "matchups":
        return service.matchups(league_id, args.season, args.week, args.playoff, args.manager_id)
    if cmd == "weekly":
        return service.weekly(league_id, args.season, args.week, args.manager_id)
    if cmd == "managers":
        return service.managers(league_id)
    if cmd == "manager":
        return service.manager(league_id, args.manager_id)
    if cmd == "postseason":
        return service.postseason(league_id, args.season)
    raise ValueError(f"Unsupported command: {cmd}")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = Settings.from_env()
    _configure_logging(args.verbose, settings)

    try:
        repo, league_id = _open_repository(args, settings)
        payload = run(args, LeagueAnalyticsService(repo), league_id)
    except LeagueLoreError as e:
        print(f"{e.code}: {e.message}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.format == "json":
        print(format_json(payload, pretty=args.json_pretty))
    else:
        print(format_markdown(args.command, payload), end="")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
