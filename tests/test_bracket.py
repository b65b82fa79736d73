import pytest

from leaguelore.compute.bracket import (
    Seeding,
    bye_seeds,
    classify_bracket,
    classify_playoff_round,
    compute_seedings,
    group_bracket,
    is_blowout,
    is_close_game,
    label_matchups,
    lower_bracket_label,
    ordinal,
    place_game_label,
    playoff_bracket_label,
    postseason_outcome,
    summarize_matchups,
)
from leaguelore.models import SeasonPlayoffConfig, name_map

from conftest import game, week


@pytest.mark.parametrize(
    "args,label",
    [
        ((15, 15, False, None), "Playoff Quarterfinal"),
        ((16, 15, False, None), "Playoff Semifinal"),
        ((17, 15, False, None), "Championship"),
        ((18, 15, False, None), "Playoff Rd 4"),
        ((15, 15, True, None), "Toilet Bowl Rd 1"),
        ((16, 15, True, None), "Toilet Bowl Rd 2"),
        ((17, 15, True, None), "Toilet Bowl Final"),
        ((18, 15, True, None), "Toilet Bowl Rd 4"),
        ((15, 15, False, 3), "Championship"),
        ((16, 15, False, 0), "Playoff Semifinal"),
    ],
)
def test_classify_playoff_round(args, label):
    assert classify_playoff_round(*args) == label


def test_margin_flags_use_strict_bounds():
    assert is_close_game(9.99) and not is_close_game(10.0)
    assert is_blowout(40.01) and not is_blowout(40.0)
    # compared at two decimals, as displayed
    assert not is_close_game(9.996) and is_close_game(9.994)
    assert not is_blowout(40.004)


def test_regular_season_label_and_names(repo):
    views = label_matchups(
        repo.get_matchups("demo-league", season=2023, week=1),
        configs=repo.get_playoff_configs("demo-league"),
        names=name_map(repo.get_managers("demo-league")),
    )
    assert {v.label for v in views} == {"Regular Season"}
    first = views[0].to_dict()
    assert first["team1"]["name"] == "Ace" and first["winner"]["name"] == "Ace"
    assert first["point_differential"] == 22.5


def test_unknown_manager_label():
    views = label_matchups([game(2023, 1, 1, "x", 1.0, "y", 2.0, winner="y")])
    assert views[0].team1_name == "Unknown"
    assert views[0].winner_name == "Unknown"


def test_playoff_labels_use_season_config():
    configs = {2023: SeasonPlayoffConfig(season=2023, playoff_week_start=14)}
    views = label_matchups(
        [
            game(2023, 15, 1, "a", 1.0, "b", 2.0, playoff=True),
            game(2022, 15, 1, "a", 1.0, "b", 2.0, playoff=True, toilet=True),
        ],
        configs=configs,
    )
    # 2022 has no config, so the default start week applies
    assert [v.label for v in views] == ["Playoff Semifinal", "Toilet Bowl Rd 1"]


def test_summarize_fixture(repo):
    views = label_matchups(
        repo.get_matchups("demo-league"), configs=repo.get_playoff_configs("demo-league")
    )
    s = summarize_matchups(views)
    assert (s.total_matchups, s.regular_season, s.playoffs, s.toilet_bowl) == (8, 6, 1, 1)
    assert (s.close_games, s.blowouts) == (2, 2)
    assert s.avg_point_diff == 25.28
    assert s.biggest_blowout.matchup.point_differential == 80.0
    assert s.closest_game.matchup.point_differential == 0.0


def test_summarize_ties_keep_first():
    views = label_matchups(
        [
            game(2023, 1, 1, "a", 100.0, "b", 90.0, winner="a"),
            game(2023, 1, 2, "c", 100.0, "d", 90.0, winner="c"),
        ]
    )
    s = summarize_matchups(views)
    assert s.biggest_blowout.matchup.matchup_id == 1
    assert s.closest_game.matchup.matchup_id == 1


def test_summarize_empty():
    s = summarize_matchups([])
    assert s.total_matchups == 0 and s.biggest_blowout is None
    assert s.to_dict()["closest_game"] is None


@pytest.mark.parametrize("teams,byes", [(6, [1, 2]), (8, []), (4, []), (2, []), (5, [1, 2])])
def test_bye_seeds(teams, byes):
    assert bye_seeds(teams) == byes


def test_seedings_and_outcome(repo):
    configs = repo.get_playoff_configs("demo-league")
    names = name_map(repo.get_managers("demo-league"))
    seeds = compute_seedings(repo.get_weekly_scores("demo-league", season=2023), configs[2023], names)
    assert [(s.seed, s.manager_id, s.bracket) for s in seeds] == [
        (1, "m3", "playoff"),
        (2, "m2", "playoff"),
        (3, "m1", "toilet_bowl"),
        (4, "m4", "toilet_bowl"),
    ]
    assert not any(s.has_bye for s in seeds)

    views = label_matchups(
        repo.get_matchups("demo-league", season=2023, is_playoff=True), configs=configs, names=names
    )
    assert sorted(v.label for v in views) == ["Championship", "Toilet Bowl Final"]
    out = postseason_outcome(classify_bracket(views, seeds, configs[2023]))
    assert (out.champion_id, out.champion) == ("m3", "carol")
    assert (out.runner_up_id, out.runner_up) == ("m1", "Ace")
    assert (out.toilet_bowl_loser_id, out.toilet_bowl_loser) == ("m2", "Bobby")


def test_seedings_with_byes():
    config = SeasonPlayoffConfig(season=2023, playoff_week_start=15, playoff_teams=6)
    recs = [week(f"t{i}", 2023, 1, 100.0 - i, h2h="W" if i < 4 else "L") for i in range(8)]
    seeds = compute_seedings(recs, config)
    assert [s.has_bye for s in seeds[:3]] == [True, True, False]
    assert seeds[6].bracket == "toilet_bowl"


def test_outcome_without_final():
    out = postseason_outcome([])
    assert out.champion is None and out.champion_seed is None
    assert out.third_place is None and out.toilet_bowl_loser is None


def _seeds(n, playoff_teams):
    byes = bye_seeds(playoff_teams)
    return [
        Seeding(i, f"t{i}", f"Team {i}", 0, 0.0, "playoff" if i <= playoff_teams else "toilet_bowl", i in byes)
        for i in range(1, n + 1)
    ]


def _playoff_game(wk, mid, a, ap, b, bp, toilet=False):
    winner = a if ap > bp else b
    return game(2023, wk, mid, a, ap, b, bp, winner=winner, playoff=True, toilet=toilet)


def test_six_team_bracket_with_places_and_toilet_bowl():
    config = SeasonPlayoffConfig(season=2023, playoff_week_start=15, playoff_teams=6, total_rosters=10)
    seeds = _seeds(10, 6)
    views = label_matchups(
        [
            _playoff_game(15, 1, "t3", 110, "t6", 100),
            _playoff_game(15, 2, "t4", 90, "t5", 95),
            _playoff_game(15, 3, "t7", 100, "t10", 80),
            _playoff_game(15, 4, "t8", 70, "t9", 75),
            _playoff_game(16, 1, "t1", 120, "t5", 100),
            _playoff_game(16, 2, "t2", 99, "t3", 101),
            _playoff_game(16, 3, "t6", 88, "t4", 87),
            _playoff_game(16, 4, "t7", 90, "t9", 91),
            _playoff_game(16, 5, "t10", 60, "t8", 65),
            _playoff_game(17, 1, "t1", 100, "t3", 130),
            _playoff_game(17, 2, "t5", 90, "t2", 110),
        ]
    )
    games = classify_bracket(views, seeds, config)
    assert [(g.matchup.week, g.bracket, g.label) for g in games] == [
        (15, "playoff", "Wildcard"),
        (15, "playoff", "Wildcard"),
        (15, "toilet_bowl", "Toilet Bowl Round 1"),
        (15, "toilet_bowl", "Toilet Bowl Round 1"),
        (16, "playoff", "Semifinal"),
        (16, "playoff", "Semifinal"),
        (16, "place_game", "5th Place"),
        (16, "toilet_bowl", "7th Place"),
        (16, "toilet_bowl", "Last Place"),
        (17, "playoff", "Championship"),
        (17, "place_game", "3rd Place"),
    ]
    final = games[9].to_dict()
    assert final["team1"] == {"manager_id": "t1", "name": "Unknown", "points": 100, "seed": 1, "is_winner": False}
    assert final["winner"]["seed"] == 3 and final["bracket_type"] == "playoff"
    assert final["round_number"] == 3 and final["aggregate_points"] is None

    out = postseason_outcome(games)
    assert (out.champion_id, out.champion_seed) == ("t3", 3)
    assert (out.runner_up_id, out.runner_up_seed) == ("t1", 1)
    assert (out.third_place_id, out.third_place_seed) == ("t2", 2)
    assert (out.toilet_bowl_loser_id, out.toilet_bowl_loser_seed) == ("t10", 10)

    grouped = group_bracket(games, config, seeds)
    assert sorted(grouped["playoff"]) == [15, 16, 17]
    assert sorted(grouped["place_game"]) == [16, 17]
    first = grouped["playoff"][15].to_dict()
    assert first["name"] == "Wildcard"
    assert first["byes"] == [
        {"seed": 1, "name": "Team 1", "manager_id": "t1"},
        {"seed": 2, "name": "Team 2", "manager_id": "t2"},
    ]
    assert "byes" not in grouped["playoff"][16].to_dict()


def test_two_week_championship_uses_aggregate():
    config = SeasonPlayoffConfig(
        season=2023, playoff_week_start=15, playoff_teams=4, total_rosters=4, playoff_round_type=1
    )
    views = label_matchups(
        [
            _playoff_game(15, 1, "t1", 100, "t4", 90),
            _playoff_game(15, 2, "t2", 100, "t3", 110),
            _playoff_game(16, 1, "t1", 100, "t3", 90),
            _playoff_game(16, 2, "t4", 80, "t2", 85),
            _playoff_game(17, 1, "t3", 120, "t1", 80),
        ]
    )
    games = classify_bracket(views, _seeds(4, 4), config)
    assert [g.label for g in games] == ["Semifinal", "Semifinal", "Championship", "3rd Place", "Championship"]
    assert [g.is_two_week for g in games] == [False, False, True, False, True]
    assert games[2].aggregate_points is None
    # t1 won week one 100-90 but loses 180-210 over both weeks
    assert games[4].aggregate_points == (210, 180)
    assert games[4].to_dict()["aggregate_points"] == {"team1": 210.0, "team2": 180.0}
    out = postseason_outcome(games)
    assert (out.champion_id, out.runner_up_id, out.third_place_id) == ("t3", "t1", "t2")


@pytest.mark.parametrize(
    "rnd,round_type,label",
    [(1, 0, "Quarterfinal"), (2, 0, "Semifinal"), (3, 0, "Championship"), (2, 2, "Quarterfinal"), (6, 2, "Championship")],
)
def test_playoff_bracket_label_for_eight_teams(rnd, round_type, label):
    config = SeasonPlayoffConfig(season=2023, playoff_teams=8, total_rosters=12, playoff_round_type=round_type)
    assert playoff_bracket_label(rnd, config) == label


def test_place_and_lower_bracket_labels():
    config = SeasonPlayoffConfig(season=2023, playoff_teams=6, total_rosters=10)
    assert [place_game_label(r, config) for r in (1, 2, 3)] == ["Place Game", "5th Place", "3rd Place"]
    consolation = SeasonPlayoffConfig(season=2023, playoff_teams=6, total_rosters=10, loser_bracket_type=1)
    assert lower_bracket_label(1, consolation) == "Consolation Round 1"
    assert lower_bracket_label(2, consolation, True, True) == "7th Place"
    assert lower_bracket_label(2, consolation, False, False) == "9th Place"
    assert lower_bracket_label(2, consolation, True, False) == "Consolation Round 2"
    wide = SeasonPlayoffConfig(season=2023, playoff_teams=6, total_rosters=12)
    assert lower_bracket_label(2, wide, False, False) == "Toilet Bowl Round 2"
    assert [ordinal(n) for n in (1, 2, 3, 4, 11, 12, 13, 21, 22)] == [
        "1st", "2nd", "3rd", "4th", "11th", "12th", "13th", "21st", "22nd"
    ]
