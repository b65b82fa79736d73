from . import bracket, core, h2h, results, standings, streaks

filter_records = core.filter_records
round_to = core.round_to
win_pct = core.win_pct

calculate_median = results.calculate_median
calculate_all_play = results.calculate_all_play
calculate_weekly_rank = results.calculate_weekly_rank
derive_week = results.derive_week
week_summary = results.week_summary

compute_standings = standings.compute_standings
compute_career_records = standings.compute_career_records

compute_head_to_head = h2h.compute_head_to_head

current_streak = streaks.current_streak
current_combined_streak = streaks.current_combined_streak
longest_streak = streaks.longest_streak
compute_streak_report = streaks.compute_streak_report

classify_playoff_round = bracket.classify_playoff_round
label_matchups = bracket.label_matchups
summarize_matchups = bracket.summarize_matchups
compute_seedings = bracket.compute_seedings
postseason_outcome = bracket.postseason_outcome

__all__ = [
    "filter_records",
    "round_to",
    "win_pct",
    "calculate_median",
    "calculate_all_play",
    "calculate_weekly_rank",
    "derive_week",
    "week_summary",
    "compute_standings",
    "compute_career_records",
    "compute_head_to_head",
    "current_streak",
    "current_combined_streak",
    "longest_streak",
    "compute_streak_report",
    "classify_playoff_round",
    "label_matchups",
    "summarize_matchups",
    "compute_seedings",
    "postseason_outcome",
]
