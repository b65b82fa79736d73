from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from leaguelore.constants import (
    BLOWOUT_MARGIN,
    CLOSE_GAME_MARGIN,
    POINTS_PLACES,
    REGULAR_SEASON_LABEL,
    UNKNOWN_MANAGER,
)
from leaguelore.models import MatchupRecord, SeasonPlayoffConfig, WeeklyScoreRecord

from .core import filter_records, playoff_week_start_for, round_to
from .standings import aggregate_standings

_PLAYOFF_ROUNDS = {1: "Playoff Quarterfinal", 2: "Playoff Semifinal", 3: "Championship"}
_TOILET_ROUNDS = {1: "Toilet Bowl Rd 1", 2: "Toilet Bowl Rd 2", 3: "Toilet Bowl Final"}

PLAYOFF_BRACKET = "playoff"
PLACE_BRACKET = "place_game"
LOWER_BRACKET = "toilet_bowl"
BRACKETS = (PLAYOFF_BRACKET, PLACE_BRACKET, LOWER_BRACKET)


def classify_playoff_round(
    week: int,
    playoff_week_start: int,
    is_toilet_bowl: bool,
    playoff_round_override: int | None = None,
) -> str:
    """Human label for a postseason matchup.

    A stored round override wins over the week offset; round 0 is not a
    valid round and is treated as absent.
    """
    rnd = playoff_round_override if playoff_round_override else week - playoff_week_start + 1
    if is_toilet_bowl:
        return _TOILET_ROUNDS.get(rnd, f"Toilet Bowl Rd {rnd}")
    return _PLAYOFF_ROUNDS.get(rnd, f"Playoff Rd {rnd}")


def is_close_game(point_differential: float) -> bool:
    # margins are compared at display precision
    return abs(round_to(point_differential, POINTS_PLACES)) < CLOSE_GAME_MARGIN


def is_blowout(point_differential: float) -> bool:
    return abs(round_to(point_differential, POINTS_PLACES)) > BLOWOUT_MARGIN


@dataclass(slots=True)
class MatchupView:
    """A stored matchup with names, its round label and margin flags."""

    matchup: MatchupRecord
    label: str
    team1_name: str = UNKNOWN_MANAGER
    team2_name: str = UNKNOWN_MANAGER

    @property
    def point_differential(self) -> float:
        return round_to(self.matchup.point_differential, POINTS_PLACES)

    @property
    def is_close_game(self) -> bool:
        return is_close_game(self.matchup.point_differential)

    @property
    def is_blowout(self) -> bool:
        return is_blowout(self.matchup.point_differential)

    @property
    def winner_name(self) -> str | None:
        m = self.matchup
        if m.winner_manager_id is None:
            return None
        return self.team1_name if m.winner_manager_id == m.team1_manager_id else self.team2_name

    def to_dict(self) -> dict[str, Any]:
        m = self.matchup
        return {
            "season": m.season,
            "week": m.week,
            "matchup_id": m.matchup_id,
            "team1": {"manager_id": m.team1_manager_id, "name": self.team1_name, "points": m.team1_points},
            "team2": {"manager_id": m.team2_manager_id, "name": self.team2_name, "points": m.team2_points},
            "winner": {"manager_id": m.winner_manager_id, "name": self.winner_name},
            "point_differential": self.point_differential,
            "is_playoff": m.is_playoff,
            "is_toilet_bowl": m.is_toilet_bowl,
            "playoff_round": m.playoff_round,
            "matchup_type": self.label,
            "is_close_game": self.is_close_game,
            "is_blowout": self.is_blowout,
        }


def label_matchups(
    matchups: Iterable[MatchupRecord],
    *,
    configs: Mapping[int, SeasonPlayoffConfig] | None = None,
    names: Mapping[str, str] | None = None,
) -> list[MatchupView]:
    names = names or {}
    views: list[MatchupView] = []
    for m in matchups or []:
        if m.is_playoff:
            label = classify_playoff_round(
                m.week,
                playoff_week_start_for(m.season, configs),
                m.is_toilet_bowl,
                m.playoff_round,
            )
        else:
            label = REGULAR_SEASON_LABEL
        views.append(
            MatchupView(
                matchup=m,
                label=label,
                team1_name=names.get(m.team1_manager_id, UNKNOWN_MANAGER),
                team2_name=names.get(m.team2_manager_id, UNKNOWN_MANAGER),
            )
        )
    return views


@dataclass(slots=True)
class MatchupSummary:
    total_matchups: int = 0
    regular_season: int = 0
    playoffs: int = 0
    toilet_bowl: int = 0
    close_games: int = 0
    blowouts: int = 0
    avg_point_diff: float = 0.0
    biggest_blowout: MatchupView | None = None
    closest_game: MatchupView | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_matchups": self.total_matchups,
            "regular_season": self.regular_season,
            "playoffs": self.playoffs,
            "toilet_bowl": self.toilet_bowl,
            "close_games": self.close_games,
            "blowouts": self.blowouts,
            "avg_point_diff": self.avg_point_diff,
            "biggest_blowout": self.biggest_blowout.to_dict() if self.biggest_blowout else None,
            "closest_game": self.closest_game.to_dict() if self.closest_game else None,
        }


def summarize_matchups(views: list[MatchupView]) -> MatchupSummary:
    summary = MatchupSummary(total_matchups=len(views))
    if not views:
        return summary
    total_diff = 0.0
    for v in views:
        m = v.matchup
        if not m.is_playoff:
            summary.regular_season += 1
        elif not m.is_toilet_bowl:
            summary.playoffs += 1
        if m.is_toilet_bowl:
            summary.toilet_bowl += 1
        if v.is_close_game:
            summary.close_games += 1
        if v.is_blowout:
            summary.blowouts += 1
        diff = v.point_differential
        total_diff += diff
        # strict comparisons: the first encountered keeps a tie
        big = summary.biggest_blowout
        if big is None or diff > big.point_differential:
            summary.biggest_blowout = v
        close = summary.closest_game
        if close is None or diff < close.point_differential:
            summary.closest_game = v
    summary.avg_point_diff = round_to(total_diff / len(views), POINTS_PLACES)
    return summary


def bye_seeds(playoff_teams: int) -> list[int]:
    if playoff_teams in (8, 4, 2):
        return []
    return [1, 2]


@dataclass(slots=True)
class Seeding:
    seed: int
    manager_id: str
    name: str
    combined_wins: int
    points_for: float
    bracket: str
    has_bye: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "seed": self.seed,
            "manager_id": self.manager_id,
            "name": self.name,
            "combined_wins": self.combined_wins,
            "points_for": self.points_for,
            "bracket": self.bracket,
            "has_bye": self.has_bye,
        }


def compute_seedings(
    records: Iterable[WeeklyScoreRecord],
    config: SeasonPlayoffConfig,
    names: Mapping[str, str] | None = None,
) -> list[Seeding]:
    """Seeds from regular-season combined wins, then points for."""
    names = names or {}
    regular = filter_records(
        records, configs={config.season: config}, season=config.season, include_playoffs=False
    )
    rows = list(aggregate_standings(regular).values())
    rows.sort(key=lambda r: (r.combined_wins, round_to(r.points_for)), reverse=True)
    byes = bye_seeds(config.playoff_teams)
    return [
        Seeding(
            seed=seed,
            manager_id=row.manager_id,
            name=names.get(row.manager_id, UNKNOWN_MANAGER),
            combined_wins=row.combined_wins,
            points_for=round_to(row.points_for, POINTS_PLACES),
            bracket=PLAYOFF_BRACKET if seed <= config.playoff_teams else LOWER_BRACKET,
            has_bye=seed in byes,
        )
        for seed, row in enumerate(rows, start=1)
    ]


# Bracket-aware labels for the postseason view. Unlike classify_playoff_round
# these depend on the season's bracket size and format.


def playoff_rounds_needed(playoff_teams: int) -> int:
    if playoff_teams <= 2:
        return 1
    if playoff_teams <= 4:
        return 2
    if playoff_teams <= 8:
        return 3
    return 4


def _effective_round(rnd: int, config: SeasonPlayoffConfig) -> int:
    if config.playoff_round_type == 2:
        return (rnd + 1) // 2
    if config.playoff_round_type == 1:
        return min(rnd, playoff_rounds_needed(config.playoff_teams))
    return rnd


def round_name(rnd: int, total_rounds: int, playoff_teams: int) -> str:
    from_end = total_rounds - rnd + 1
    if from_end == 1:
        return "Championship"
    if from_end == 2:
        return "Semifinal"
    if from_end == 3:
        return "Quarterfinal" if playoff_teams >= 8 else "Wildcard"
    if from_end == 4:
        return "Wildcard"
    return f"Round {rnd}"


def is_two_week_round(rnd: int, config: SeasonPlayoffConfig) -> bool:
    if config.playoff_round_type == 1:
        return rnd >= playoff_rounds_needed(config.playoff_teams)
    return config.playoff_round_type == 2


def playoff_bracket_label(rnd: int, config: SeasonPlayoffConfig) -> str:
    return round_name(
        _effective_round(rnd, config),
        playoff_rounds_needed(config.playoff_teams),
        config.playoff_teams,
    )


def place_game_label(rnd: int, config: SeasonPlayoffConfig) -> str:
    """Games between teams already knocked out of the winners' bracket."""
    from_end = playoff_rounds_needed(config.playoff_teams) - _effective_round(rnd, config) + 1
    if from_end == 1:
        return "3rd Place"
    if from_end == 2:
        return "5th Place"
    return "Place Game"


def ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def lower_bracket_label(
    rnd: int,
    config: SeasonPlayoffConfig,
    team1_won_first: bool | None = None,
    team2_won_first: bool | None = None,
) -> str:
    """Label for a toilet bowl or consolation game.

    ``team*_won_first`` is each team's result in its first lower-bracket game;
    in a four-team lower bracket they decide which placement game is played.
    """
    consolation = config.loser_bracket_type == 1
    bracket_name = "Consolation" if consolation else "Toilet Bowl"
    teams = config.toilet_bowl_teams
    best_place = f"{ordinal(config.playoff_teams + 1)} Place"
    worst_place = f"{ordinal(config.total_rosters - 1)} Place" if consolation else "Last Place"
    if teams == 2:
        return best_place if consolation else worst_place
    if teams == 4 and rnd > 1:
        if team1_won_first and team2_won_first:
            return best_place
        if team1_won_first is False and team2_won_first is False:
            return worst_place
    return f"{bracket_name} Round {rnd}"


@dataclass(slots=True)
class BracketGame:
    """A postseason matchup placed in its bracket, with seeds."""

    view: MatchupView
    bracket: str
    label: str
    round_number: int
    team1_seed: int | None = None
    team2_seed: int | None = None
    is_two_week: bool = False
    # both weeks summed, set on the second week of a two-week matchup
    aggregate_points: tuple[float, float] | None = None

    @property
    def matchup(self) -> MatchupRecord:
        return self.view.matchup

    @property
    def winner_id(self) -> str | None:
        m = self.matchup
        if self.aggregate_points is None:
            return m.winner_manager_id
        a, b = self.aggregate_points
        if a > b:
            return m.team1_manager_id
        if b > a:
            return m.team2_manager_id
        return None

    @property
    def loser_id(self) -> str | None:
        winner = self.winner_id
        if winner is None:
            return None
        m = self.matchup
        return m.team2_manager_id if winner == m.team1_manager_id else m.team1_manager_id

    def seed_of(self, manager_id: str | None) -> int | None:
        if manager_id is None:
            return None
        return self.team1_seed if manager_id == self.matchup.team1_manager_id else self.team2_seed

    def points_of(self, manager_id: str) -> float:
        m = self.matchup
        return m.team1_points if manager_id == m.team1_manager_id else m.team2_points

    def to_dict(self) -> dict[str, Any]:
        out = self.view.to_dict()
        winner = self.winner_id
        out["team1"].update(seed=self.team1_seed, is_winner=winner == self.matchup.team1_manager_id)
        out["team2"].update(seed=self.team2_seed, is_winner=winner == self.matchup.team2_manager_id)
        out["winner"] = {
            "manager_id": winner,
            "name": _name_of(self.view, winner) if winner else None,
            "seed": self.seed_of(winner),
        }
        out["matchup_type"] = self.label
        out["bracket_type"] = self.bracket
        out["round_number"] = self.round_number
        out["is_two_week_matchup"] = self.is_two_week
        out["aggregate_points"] = (
            {"team1": round_to(self.aggregate_points[0]), "team2": round_to(self.aggregate_points[1])}
            if self.aggregate_points
            else None
        )
        return out


def _outside_field(seed: int | None, config: SeasonPlayoffConfig) -> bool:
    return seed is None or seed > config.playoff_teams


def classify_bracket(
    views: Iterable[MatchupView],
    seedings: Iterable[Seeding],
    config: SeasonPlayoffConfig,
) -> list[BracketGame]:
    """Place each postseason matchup in the winners', place-game or lower bracket.

    Matchups are walked in week order. A game is lower-bracket when it is
    flagged as a toilet bowl game or both seeds sit outside the playoff
    field; a winners'-bracket game between two teams that already lost in the
    winners' bracket is a place game. Two-week matchups are decided on the
    summed points once their second week is seen.
    """
    seeds = {s.manager_id: s.seed for s in seedings or []}
    knocked_out: set[str] = set()
    lower_first: dict[str, bool] = {}
    pending: dict[frozenset[str], BracketGame] = {}
    games: list[BracketGame] = []
    ordered = sorted(views or [], key=lambda v: (v.matchup.week, v.matchup.matchup_id))
    for v in ordered:
        m = v.matchup
        t1, t2 = m.team1_manager_id, m.team2_manager_id
        s1, s2 = seeds.get(t1), seeds.get(t2)
        rnd = m.week - config.playoff_week_start + 1
        if m.is_toilet_bowl or (_outside_field(s1, config) and _outside_field(s2, config)):
            label = lower_bracket_label(rnd, config, lower_first.get(t1), lower_first.get(t2))
            game = BracketGame(v, LOWER_BRACKET, label, rnd, s1, s2)
            for mid in (t1, t2):
                lower_first.setdefault(mid, m.winner_manager_id == mid)
        elif t1 in knocked_out and t2 in knocked_out:
            game = BracketGame(v, PLACE_BRACKET, place_game_label(rnd, config), rnd, s1, s2)
        else:
            two_week = is_two_week_round(rnd, config)
            game = BracketGame(
                v, PLAYOFF_BRACKET, playoff_bracket_label(rnd, config), rnd, s1, s2, two_week
            )
            decided = True
            if two_week:
                key = frozenset((t1, t2))
                first = pending.pop(key, None)
                if first is None:
                    pending[key] = game
                    decided = False
                else:
                    game.aggregate_points = (
                        m.team1_points + first.points_of(t1),
                        m.team2_points + first.points_of(t2),
                    )
            if decided and game.loser_id is not None:
                knocked_out.add(game.loser_id)
        games.append(game)
    return games


@dataclass(slots=True)
class BracketRound:
    name: str
    week: int
    games: list[BracketGame] = field(default_factory=list)
    byes: list[Seeding] | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "name": self.name,
            "week": self.week,
            "matchups": [g.to_dict() for g in self.games],
        }
        if self.byes is not None:
            out["byes"] = [
                {"seed": s.seed, "name": s.name, "manager_id": s.manager_id} for s in self.byes
            ]
        return out


def group_bracket(
    games: Iterable[BracketGame],
    config: SeasonPlayoffConfig,
    seedings: Iterable[Seeding] = (),
) -> dict[str, dict[int, BracketRound]]:
    """bracket -> week -> round; the first winners' round lists the bye seeds."""
    out: dict[str, dict[int, BracketRound]] = {b: {} for b in BRACKETS}
    for g in games or []:
        rounds = out[g.bracket]
        week = g.matchup.week
        if week not in rounds:
            rounds[week] = BracketRound(name=g.label, week=week)
        rounds[week].games.append(g)
    byes = bye_seeds(config.playoff_teams)
    first = out[PLAYOFF_BRACKET].get(config.playoff_week_start)
    if byes and first is not None:
        first.byes = [s for s in seedings or [] if s.seed in byes]
    return out


@dataclass(slots=True)
class PostseasonOutcome:
    champion: str | None = None
    champion_id: str | None = None
    champion_seed: int | None = None
    runner_up: str | None = None
    runner_up_id: str | None = None
    runner_up_seed: int | None = None
    third_place: str | None = None
    third_place_id: str | None = None
    third_place_seed: int | None = None
    toilet_bowl_loser: str | None = None
    toilet_bowl_loser_id: str | None = None
    toilet_bowl_loser_seed: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "champion": self.champion,
            "champion_id": self.champion_id,
            "champion_seed": self.champion_seed,
            "runner_up": self.runner_up,
            "runner_up_id": self.runner_up_id,
            "runner_up_seed": self.runner_up_seed,
            "third_place": self.third_place,
            "third_place_id": self.third_place_id,
            "third_place_seed": self.third_place_seed,
            "toilet_bowl_loser": self.toilet_bowl_loser,
            "toilet_bowl_loser_id": self.toilet_bowl_loser_id,
            "toilet_bowl_loser_seed": self.toilet_bowl_loser_seed,
        }


def _name_of(view: MatchupView, manager_id: str) -> str:
    return view.team1_name if manager_id == view.matchup.team1_manager_id else view.team2_name


def postseason_outcome(games: Iterable[BracketGame]) -> PostseasonOutcome:
    """Champion and runner-up from the title game, the third-place winner and
    the loser of the last-place game.

    A two-week title game is read from its second week, which carries the
    summed points.
    """
    out = PostseasonOutcome()
    games = list(games or [])
    finals = [g for g in games if g.bracket == PLAYOFF_BRACKET and g.label == "Championship"]
    if finals and finals[-1].winner_id is not None:
        final = finals[-1]
        out.champion_id = final.winner_id
        out.champion = _name_of(final.view, final.winner_id)
        out.champion_seed = final.seed_of(final.winner_id)
        out.runner_up_id = final.loser_id
        out.runner_up = _name_of(final.view, final.loser_id)
        out.runner_up_seed = final.seed_of(final.loser_id)
    third = next((g for g in games if g.label == "3rd Place"), None)
    if third is not None and third.winner_id is not None:
        out.third_place_id = third.winner_id
        out.third_place = _name_of(third.view, third.winner_id)
        out.third_place_seed = third.seed_of(third.winner_id)
    last = next((g for g in games if g.bracket == LOWER_BRACKET and g.label == "Last Place"), None)
    if last is not None and last.loser_id is not None:
        out.toilet_bowl_loser_id = last.loser_id
        out.toilet_bowl_loser = _name_of(last.view, last.loser_id)
        out.toilet_bowl_loser_seed = last.seed_of(last.loser_id)
    return out
