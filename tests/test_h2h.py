import pytest

from leaguelore.compute.h2h import compute_head_to_head, filter_matchup_type, head_to_head_grid
from leaguelore.errors import ValidationError

from conftest import game


def _pairs(records):
    return {(r.manager1_id, r.manager2_id): r for r in records}


def test_pairs_are_directional():
    recs = compute_head_to_head([game(2023, 1, 1, "A", 110.0, "B", 100.0, winner="A")])
    table = _pairs(recs)
    assert table[("A", "B")].wins == 1
    assert ("B", "A") not in table


def test_fixture_table(repo):
    recs = compute_head_to_head(repo.get_matchups("demo-league"))
    assert [(r.manager1_id, r.manager2_id) for r in recs] == [
        ("m3", "m4"),
        ("m3", "m1"),
        ("m1", "m2"),
        ("m2", "m4"),
        ("m1", "m3"),
    ]
    m1_m2 = _pairs(recs)[("m1", "m2")]
    # the 2024 tie has no winner and counts as a loss for team1
    assert (m1_m2.matchups, m1_m2.wins, m1_m2.losses) == (2, 1, 1)
    assert m1_m2.points_for == 220.5 and m1_m2.points_against == 198.0
    assert m1_m2.win_pct == 50.0
    assert m1_m2.avg_margin == 11.25


def test_matchup_type_filter(repo):
    regular = _pairs(compute_head_to_head(repo.get_matchups("demo-league"), matchup_type="regular"))
    assert ("m3", "m1") not in regular
    assert (regular[("m2", "m4")].wins, regular[("m2", "m4")].losses) == (1, 0)

    playoff = _pairs(compute_head_to_head(repo.get_matchups("demo-league"), matchup_type="playoff"))
    assert set(playoff) == {("m3", "m1"), ("m2", "m4")}


def test_unknown_matchup_type_is_rejected():
    with pytest.raises(ValidationError):
        filter_matchup_type([], "consolation")


def test_manager_filter_keeps_team1_pairs(repo):
    recs = compute_head_to_head(repo.get_matchups("demo-league"), manager_id="m1")
    assert {(r.manager1_id, r.manager2_id) for r in recs} == {("m1", "m2"), ("m1", "m3")}


def test_merge_directions_is_opt_in(repo):
    merged = _pairs(compute_head_to_head(repo.get_matchups("demo-league"), merge_directions=True))
    m2_m1 = merged[("m2", "m1")]
    assert (m2_m1.matchups, m2_m1.wins, m2_m1.losses) == (2, 0, 2)
    assert m2_m1.points_for == 198.0


def test_names_and_grid():
    names = {"A": "Ann", "B": "Ben"}
    recs = compute_head_to_head(
        [
            game(2023, 1, 1, "A", 110.0, "B", 100.0, winner="A"),
            game(2023, 2, 1, "A", 90.0, "B", 100.0, winner="B"),
        ],
        names=names,
    )
    assert recs[0].manager1_name == "Ann" and recs[0].manager2_name == "Ben"
    assert recs[0].to_dict()["win_pct"] == 50.0
    grid = head_to_head_grid(recs, ["A", "B"], names)
    assert grid == [["", "Ann", "Ben"], ["Ann", "-", "1-1"], ["Ben", "0-0", "-"]]


def test_empty_input():
    assert compute_head_to_head([]) == []
