import pytest

from leaguelore.compute.results import (
    _pair,
    calculate_all_play,
    calculate_median,
    calculate_weekly_rank,
    derive_week,
    group_rows,
    week_summary,
)
from leaguelore.errors import DataIntegrityError
from leaguelore.models import Result

SCORES = [120.5, 98.0, 110.0, 85.25]


def _rows(*teams):
    return [{"manager_id": m, "roster_id": i, "matchup_id": mid, "points": p} for i, (m, mid, p) in enumerate(teams, 1)]


def test_median_even_count_is_mean_of_middles():
    assert calculate_median(SCORES) == 104.0
    assert calculate_median([1.0, 2.0, 3.0]) == 2.0
    assert calculate_median([]) == 0.0


def test_all_play_extremes_and_ties():
    assert calculate_all_play(120.5, SCORES) == (3, 0)
    assert calculate_all_play(85.25, SCORES) == (0, 3)
    # equal scores are neither beaten nor lost to
    assert calculate_all_play(100.0, [100.0, 100.0, 90.0]) == (1, 0)
    assert calculate_all_play(90.0, [100.0, 100.0, 90.0]) == (0, 2)


def test_weekly_rank_highest_is_one():
    assert calculate_weekly_rank(120.5, SCORES) == 1
    assert calculate_weekly_rank(85.25, SCORES) == 4
    assert calculate_weekly_rank(100.0, [100.0, 100.0, 90.0]) == 1


def test_group_rows_with_missing_matchup_id():
    rows = [
        {"roster_id": 1, "points": 100},
        {"roster_id": 2, "points": 90},
    ]
    groups = group_rows(rows)
    # With no matchup_id, a synthetic id is created per roster
    assert len(groups) == 2
    for _, entries in groups.items():
        assert len(entries) == 1


def test_pair_rejects_groups_that_are_not_two_sides():
    with pytest.raises(DataIntegrityError) as err:
        _pair(7, [{"manager_id": "a"}])
    assert err.value.details == {"matchup_id": 7, "teams": 1}


def test_derive_week_results():
    out = derive_week(
        2023,
        1,
        _rows(("a", 1, 120.5), ("b", 1, 98.0), ("c", 2, 110.0), ("d", 2, 85.25)),
        playoff_week_start=15,
    )
    assert out.median == 104.0
    assert out.skipped_groups == 0
    by_id = {s.manager_id: s for s in out.scores}
    assert by_id["a"].h2h_result is Result.WIN and by_id["a"].median_result is Result.WIN
    assert by_id["b"].h2h_result is Result.LOSS and by_id["b"].median_result is Result.LOSS
    assert by_id["c"].median_result is Result.WIN
    assert by_id["d"].median_result is Result.LOSS
    assert (by_id["a"].allplay_wins, by_id["a"].allplay_losses) == (3, 0)
    assert by_id["b"].opponent_id == "a" and by_id["b"].points_against == 120.5
    assert [s.weekly_rank for s in out.scores] == [1, 3, 2, 4]
    assert [m.winner_manager_id for m in out.matchups] == ["a", "c"]
    assert not any(m.is_playoff for m in out.matchups)


def test_derive_week_tie_and_unplayed():
    out = derive_week(
        2023,
        2,
        _rows(("a", 1, 100.0), ("b", 1, 100.0), ("c", 2, 0.0), ("d", 2, 0.0)),
        playoff_week_start=15,
    )
    by_id = {s.manager_id: s for s in out.scores}
    # an exact tie is a loss for both sides
    assert by_id["a"].h2h_result is Result.LOSS
    assert by_id["b"].h2h_result is Result.LOSS
    assert by_id["a"].median_result is Result.WIN
    assert (by_id["a"].allplay_wins, by_id["a"].allplay_losses) == (2, 0)
    assert by_id["c"].h2h_result is Result.NO_RESULT
    assert by_id["c"].median_result is Result.NO_RESULT
    assert out.matchups[0].winner_manager_id is None


def test_derive_week_skips_bad_groups_and_byes(caplog):
    rows = _rows(("a", 1, 100.0), ("b", 1, 90.0), ("c", 2, 80.0))
    rows.append({"manager_id": "e", "roster_id": 9, "matchup_id": None, "points": 150.0})
    with caplog.at_level("WARNING"):
        out = derive_week(2023, 3, rows, playoff_week_start=15)
    assert out.skipped_groups == 1
    assert "expected 2" in caplog.text
    assert {s.manager_id for s in out.scores} == {"a", "b"}
    # the bye row is not part of the median pool
    assert out.median == 90.0


def test_derive_week_all_zero_yields_nothing():
    out = derive_week(2023, 9, _rows(("a", 1, 0), ("b", 1, 0)), playoff_week_start=15)
    assert out.scores == [] and out.matchups == []


def test_derive_week_playoff_flags():
    out = derive_week(
        2023,
        16,
        _rows(("a", 1, 100.0), ("b", 1, 90.0), ("c", 2, 80.0), ("d", 2, 70.0)),
        playoff_week_start=15,
        toilet_bowl_matchups={2},
    )
    first, second = out.matchups
    assert first.is_playoff and not first.is_toilet_bowl and first.playoff_round == 2
    assert second.is_toilet_bowl


def test_week_summary(repo):
    scores = repo.get_weekly_scores("demo-league", season=2023, week=1)
    names = {"m1": "Ace", "m4": "dave"}
    s = week_summary(2023, 1, scores, names)
    assert s.median == 104.0
    assert s.average == 103.44
    assert (s.highest, s.lowest) == (120.5, 85.25)
    assert s.top_scorer == "Ace" and s.bottom_scorer == "dave"
    assert (s.teams_above_median, s.teams_below_median) == (2, 2)


def test_week_summary_empty():
    s = week_summary(2023, 1, [])
    assert s.top_scorer is None and s.median == 0.0
