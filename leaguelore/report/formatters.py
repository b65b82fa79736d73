"""Output format helpers for service payloads.

JSON output is the payload as-is (keys sorted for stable diffs). Markdown
output renders each payload kind as a heading plus one or more tables built
with ``md_table``; every value shown is read from the payload, never
recomputed.
"""

from __future__ import annotations

import json
from typing import Any, Callable

from .render import md_table


def format_json(payload: dict[str, Any], *, pretty: bool = True) -> str:
    if pretty:
        return json.dumps(payload, indent=2, sort_keys=True)
    return json.dumps(payload, separators=(",", ":"), sort_keys=True)


def _wl(rec: dict[str, Any]) -> str:
    return f"{rec['wins']}-{rec['losses']}"


def _span(streak: dict[str, Any]) -> str:
    if not streak.get("length"):
        return "-"
    if streak["season"] == streak.get("end_season", streak["season"]):
        return f"{streak['length']} ({streak['season']} wk{streak['start_week']}-{streak['end_week']})"
    return (
        f"{streak['length']} ({streak['season']} wk{streak['start_week']}"
        f"-{streak['end_season']} wk{streak['end_week']})"
    )


def _standings(p: dict[str, Any]) -> list[str]:
    lines = [f"# Standings ({p['season']})", ""]
    if p.get("regular_season_weeks") is not None:
        lines += [
            f"Regular season: weeks 1-{p['regular_season_weeks']}, "
            f"playoffs from week {p['playoff_week_start']}",
            "",
        ]
    if not p["standings"]:
        return lines + [p.get("message", "No data"), ""]
    rows = [
        [
            r["rank"],
            r["name"],
            r["season"],
            _wl(r["record"]["combined"]),
            _wl(r["record"]["h2h"]),
            _wl(r["record"]["median"]),
            _wl(r["record"]["all_play"]),
            r["points"]["for"],
            r["points"]["against"],
            r["points"]["avg_per_week"],
        ]
        for r in p["standings"]
    ]
    headers = ["Rank", "Manager", "Season", "Combined", "H2H", "Median", "All-Play", "PF", "PA", "Avg"]
    return lines + md_table(headers, rows) + [""]


def _h2h(p: dict[str, Any]) -> list[str]:
    lines = [f"# Head to Head ({p['matchup_type']})", ""]
    rows = [
        [
            r["manager1"]["name"],
            r["manager2"]["name"],
            r["matchups"],
            _wl(r),
            f"{r['win_pct']:.1f}%",
            r["points_for"],
            r["points_against"],
            r["avg_margin"],
        ]
        for r in p["head_to_head"]
    ]
    headers = ["Manager", "Opponent", "Games", "W-L", "Win %", "PF", "PA", "Avg Margin"]
    lines += md_table(headers, rows) + [""]
    grid = p.get("grid")
    if grid:
        lines += ["## Grid", ""] + md_table(grid[0], grid[1:]) + [""]
    return lines


def _streaks(p: dict[str, Any]) -> list[str]:
    lines = [f"# Streaks ({p['season']})", ""]
    rows = []
    for s in p["streaks"]:
        cur = s["current_streaks"]
        longest = s["longest_streaks"]
        rows.append(
            [
                s["name"],
                cur["combined"]["display"],
                cur["h2h"]["display"],
                cur["median"]["display"],
                _span(longest["combined"]["win"]),
                _span(longest["combined"]["loss"]),
            ]
        )
    headers = ["Manager", "Combined", "H2H", "Median", "Longest Win", "Longest Loss"]
    lines += md_table(headers, rows) + ["", "## League Records", ""]
    rec_rows = [
        [key, holder["length"], holder.get("manager"), holder.get("season")]
        for key, holder in p["league_records"].items()
    ]
    return lines + md_table(["Category", "Length", "Manager", "Season"], rec_rows) + [""]


def _matchup_row(m: dict[str, Any]) -> list[Any]:
    return [
        m["season"],
        m["week"],
        m["matchup_type"],
        m["team1"]["name"],
        m["team1"]["points"],
        m["team2"]["name"],
        m["team2"]["points"],
        m["winner"]["name"],
        m["point_differential"],
    ]


_MATCHUP_HEADERS = ["Season", "Week", "Type", "Team 1", "Pts", "Team 2", "Pts", "Winner", "Diff"]


def _matchups(p: dict[str, Any]) -> list[str]:
    s = p["summary"]
    lines = ["# Matchups", ""]
    lines += md_table(
        ["Total", "Regular", "Playoff", "Toilet Bowl", "Close", "Blowouts", "Avg Diff"],
        [
            [
                s["total_matchups"],
                s["regular_season"],
                s["playoffs"],
                s["toilet_bowl"],
                s["close_games"],
                s["blowouts"],
                s["avg_point_diff"],
            ]
        ],
    )
    lines.append("")
    return lines + md_table(_MATCHUP_HEADERS, [_matchup_row(m) for m in p["matchups"]]) + [""]


def _weekly(p: dict[str, Any]) -> list[str]:
    f = p["filters"]
    lines = [f"# Weekly Scores (season {f['season']}, week {f['week']})", ""]
    s = p.get("summary")
    if s:
        lines += [
            f"- Median: {s['median']:.2f}",
            f"- Average: {s['average']:.2f}",
            f"- High: {s['highest']:.2f} ({s['top_scorer']})",
            f"- Low: {s['lowest']:.2f} ({s['bottom_scorer']})",
            "",
        ]
    rows = [
        [
            r["season"],
            r["week"],
            r["manager_name"],
            r["points_for"],
            r["points_against"],
            r["opponent_name"],
            r["h2h_result"],
            r["median_result"],
            f"{r['allplay_wins']}-{r['allplay_losses']}",
            r["weekly_rank"],
        ]
        for r in p["scores"]
    ]
    headers = ["Season", "Week", "Manager", "PF", "PA", "Opponent", "H2H", "Median", "All-Play", "Rank"]
    return lines + md_table(headers, rows) + [""]


def _managers(p: dict[str, Any]) -> list[str]:
    lines = ["# Managers", ""]
    rows = []
    for m in p["managers"]:
        c = m["career"]
        rows.append(
            [
                m["rank"],
                m["name"],
                c["total_weeks"],
                f"{_wl(c['combined'])} ({c['combined']['win_pct']:.1f}%)",
                _wl(c["h2h"]),
                _wl(c["median"]),
                _wl(c["all_play"]),
                c["points"]["total_pf"],
                c["points"]["avg_per_week"],
            ]
        )
    headers = ["Rank", "Manager", "Weeks", "Combined", "H2H", "Median", "All-Play", "PF", "Avg"]
    return lines + md_table(headers, rows) + [""]


def _seeded(team: dict[str, Any]) -> str:
    if team.get("seed") is None:
        return team["name"]
    return f"({team['seed']}) {team['name']}"


def _bracket_row(m: dict[str, Any]) -> list[Any]:
    agg = m.get("aggregate_points")
    return [
        m["week"],
        m["matchup_type"],
        _seeded(m["team1"]),
        m["team1"]["points"],
        _seeded(m["team2"]),
        m["team2"]["points"],
        f"{agg['team1']:.2f}-{agg['team2']:.2f}" if agg else None,
        m["winner"]["name"],
    ]


def _postseason(p: dict[str, Any]) -> list[str]:
    s = p["summary"]
    lines = [f"# Postseason {p['season']}", ""]
    lines += [
        f"- Champion: {s['champion'] or '-'}",
        f"- Runner-up: {s['runner_up'] or '-'}",
        f"- Third place: {s['third_place'] or '-'}",
        f"- Toilet bowl loser: {s['toilet_bowl_loser'] or '-'}",
        "",
        "## Seedings",
        "",
    ]
    lines += md_table(
        ["Seed", "Manager", "Combined Wins", "PF", "Bracket", "Bye"],
        [
            [x["seed"], x["name"], x["combined_wins"], x["points_for"], x["bracket"], x["has_bye"]]
            for x in p["seedings"]
        ],
    )
    headers = ["Week", "Type", "Team 1", "Pts", "Team 2", "Pts", "Aggregate", "Winner"]
    for title, key in (("Playoff", "playoff"), ("Place Games", "place_games"), ("Toilet Bowl", "toilet_bowl")):
        rounds = list(p[key]["rounds"].values())
        if not rounds:
            continue
        lines += ["", f"## {title}", ""]
        lines += md_table(headers, [_bracket_row(g) for rnd in rounds for g in rnd["matchups"]])
        for rnd in rounds:
            if rnd.get("byes"):
                byes = ", ".join(f"({b['seed']}) {b['name']}" for b in rnd["byes"])
                lines += ["", f"Byes in week {rnd['week']}: {byes}"]
    return lines + [""]


def _manager(p: dict[str, Any]) -> list[str]:
    m = p["manager"]
    return [f"# {m['name']}", ""] + md_table(
        ["Id", "Username", "Display Name", "Nickname", "Active"],
        [[m["id"], m["username"], m["display_name"], m["nickname"], m["is_active"]]],
    ) + [""]


MARKDOWN_RENDERERS: dict[str, Callable[[dict[str, Any]], list[str]]] = {
    "standings": _standings,
    "h2h": _h2h,
    "streaks": _streaks,
    "matchups": _matchups,
    "weekly": _weekly,
    "managers": _managers,
    "manager": _manager,
    "postseason": _postseason,
}


def format_markdown(kind: str, payload: dict[str, Any]) -> str:
    try:
        render = MARKDOWN_RENDERERS[kind]
    except KeyError:
        raise ValueError(f"Unsupported report kind: {kind}") from None
    lines = render(payload)
    skipped = payload.get("skipped_groups")
    if skipped:
        lines = lines + [f"_{skipped} malformed matchup group(s) skipped while deriving results._"]
    return "\n".join(lines).rstrip("\n") + "\n"
