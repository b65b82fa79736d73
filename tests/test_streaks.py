import pytest

from leaguelore.compute.core import filter_records
from leaguelore.compute.streaks import (
    compute_streak_report,
    current_combined_streak,
    current_streak,
    flatten_results,
    longest_streak,
)
from leaguelore.errors import ValidationError
from leaguelore.models import ManagerIdentity, Result

from conftest import week


def _h2h_season(results, season=2023):
    return [week("a", season, i, 100.0, h2h=r) for i, r in enumerate(results, 1)]


def test_current_and_longest_h2h():
    recs = _h2h_season(["W", "W", "L", "W", "W"])
    cur = current_streak(recs, "h2h")
    assert (cur.type, cur.length, cur.display) == (Result.WIN, 2, "2W")
    best = longest_streak(recs, "h2h", Result.WIN)
    # equal-length runs keep the earliest
    assert (best.length, best.season, best.start_week, best.end_week) == (2, 2023, 1, 2)
    assert longest_streak(recs, "h2h", Result.LOSS).length == 1


def test_no_result_weeks_are_skipped():
    recs = _h2h_season(["L", None, "L", None])
    cur = current_streak(recs, "h2h")
    assert (cur.type, cur.length) == (Result.LOSS, 2)
    best = longest_streak(recs, "h2h", Result.LOSS)
    assert (best.start_week, best.end_week) == (1, 3)


def test_no_decided_results():
    recs = _h2h_season([None, None])
    cur = current_streak(recs, "h2h")
    assert cur.type is None and cur.display == "-" and cur.signed == 0
    assert longest_streak(recs, "h2h", Result.WIN).length == 0


def test_input_order_does_not_matter():
    recs = _h2h_season(["W", "L", "L"])
    assert current_streak(list(reversed(recs)), "h2h").length == 2


def test_combined_flattens_median_then_h2h():
    recs = [
        week("a", 2023, 1, 100.0, h2h="W", median="W"),
        week("a", 2023, 2, 100.0, h2h="W", median="L"),
    ]
    assert [v for _, _, v in flatten_results(recs, "combined")] == [
        Result.WIN,
        Result.WIN,
        Result.LOSS,
        Result.WIN,
    ]
    # most recent week, median first: L then W
    cur = current_combined_streak(recs)
    assert (cur.type, cur.length) == (Result.LOSS, 1)
    best = longest_streak(recs, "combined", Result.WIN)
    assert (best.length, best.start_week, best.end_week) == (2, 1, 1)


def test_longest_runs_across_seasons():
    recs = [
        week("a", 2023, 13, 1.0, h2h="W"),
        week("a", 2023, 14, 1.0, h2h="W"),
        week("a", 2024, 1, 1.0, h2h="W"),
        week("a", 2024, 2, 1.0, h2h="L"),
    ]
    best = longest_streak(recs, "h2h", Result.WIN)
    assert (best.length, best.season, best.start_week, best.end_season, best.end_week) == (
        3,
        2023,
        13,
        2024,
        1,
    )


def test_invalid_kind_and_target():
    with pytest.raises(ValidationError):
        current_streak([], "combined")
    with pytest.raises(ValidationError):
        longest_streak([], "allplay", Result.WIN)
    with pytest.raises(ValidationError):
        longest_streak([], "h2h", Result.NO_RESULT)


def _report(repo, season=None):
    records = filter_records(
        repo.get_weekly_scores("demo-league", season=season),
        configs=repo.get_playoff_configs("demo-league"),
        season=season,
    )
    return compute_streak_report(
        records, repo.get_managers("demo-league"), all_seasons=season is None
    )


def test_report_all_seasons(repo):
    report = _report(repo)
    # ordered by longest combined win streak
    assert [s.manager_id for s in report.streaks] == ["m3", "m1", "m2", "m4"]
    m3 = report.streaks[0]
    best = m3.longest["combined"][Result.WIN]
    assert (best.length, best.season, best.end_season) == (6, 2023, 2024)
    m1 = report.streaks[1]
    assert m1.current["h2h"].display == "1L"
    assert m1.current["median"].display == "2L"
    assert m1.current["combined"].display == "3L"
    holder = report.league_records["combined_win"]
    assert (holder.manager_id, holder.length, holder.manager) == ("m3", 6, "carol")
    assert report.league_records["combined_loss"].manager_id == "m4"


def test_report_single_season_orders_by_current(repo):
    report = _report(repo, season=2023)
    assert not report.all_seasons
    assert [s.manager_id for s in report.streaks] == ["m3", "m2", "m1", "m4"]
    assert [s.current["combined"].signed for s in report.streaks] == [4, 2, -2, -4]


def test_report_lists_managers_without_rows():
    report = compute_streak_report([], [ManagerIdentity(id="x", username="ghost")], all_seasons=True)
    sheet = report.streaks[0]
    assert sheet.weeks_played == 0
    assert sheet.to_dict()["current_streaks"]["combined"]["display"] == "-"
    assert report.league_records["h2h_win"].to_dict() == {"length": 0}
