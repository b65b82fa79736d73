import json

import pytest

from leaguelore.cli.analytics import build_parser, main
from leaguelore.report.formatters import format_markdown
from leaguelore.report.render import md_table

from conftest import FIXTURE


def _run(capsys, *argv):
    code = main(["--fixture", str(FIXTURE), *argv])
    out, err = capsys.readouterr()
    return code, out, err


def test_md_table_escapes_and_formats():
    lines = md_table(["A|B", "Pts"], [["x|y", 1.5], [None, True]])
    assert lines == [
        "| A\\|B | Pts |",
        "| :--- | :--- |",
        "| x\\|y | 1.50 |",
        "| - | yes |",
    ]


def test_standings_markdown(capsys):
    code, out, _ = _run(capsys, "standings", "--season", "2023")
    assert code == 0
    assert out.startswith("# Standings (2023)\n")
    assert "| 1 | carol | 2023 | 4-0 |" in out
    assert "Regular season: weeks 1-2, playoffs from week 3" in out


def test_json_output_compact(capsys):
    code, out, _ = _run(capsys, "--format", "json", "--json-compact", "h2h", "--manager-id", "m1")
    assert code == 0
    assert "\n" not in out.strip()
    body = json.loads(out)
    assert body["success"] is True and body["total_pairs"] == 2


@pytest.mark.parametrize(
    "argv,expected",
    [
        (["streaks"], "## League Records"),
        (["matchups", "--season", "2023", "--playoff"], "Championship"),
        (["weekly", "--season", "2023", "--week", "1"], "- Median: 104.00"),
        (["managers"], "| 1 | carol |"),
        (["manager", "--manager-id", "m2"], "# Bobby"),
        (["h2h"], "| Ace | - | 1-1 | 0-1 | 0-0 |"),
        (["postseason", "--season", "2023"], "- Champion: carol"),
    ],
)
def test_each_command_renders(capsys, argv, expected):
    code, out, _ = _run(capsys, *argv)
    assert code == 0
    assert expected in out


def test_unknown_league_exits_1(capsys):
    code, out, err = _run(capsys, "--league-id", "nope", "standings")
    assert code == 1 and out == ""
    assert "NOT_FOUND" in err


def test_missing_source(capsys, monkeypatch):
    monkeypatch.delenv("LEAGUELORE_FIXTURE", raising=False)
    assert main(["standings"]) == 1
    assert "No data source" in capsys.readouterr().err


def test_fixture_from_env(capsys, monkeypatch):
    monkeypatch.setenv("LEAGUELORE_FIXTURE", str(FIXTURE))
    assert main(["managers"]) == 0
    assert "# Managers" in capsys.readouterr().out


def test_argument_errors():
    parser = build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["postseason"])
    with pytest.raises(SystemExit):
        parser.parse_args(["manager"])
    with pytest.raises(SystemExit):
        parser.parse_args(["standings", "--season", "20x3"])
    args = parser.parse_args(["matchups"])
    assert args.playoff is None
    assert parser.parse_args(["matchups", "--regular"]).playoff is False


def test_unknown_report_kind():
    with pytest.raises(ValueError):
        format_markdown("bogus", {})


def test_manager_not_found_exits_1(capsys):
    code, out, err = _run(capsys, "manager", "--manager-id", "zz")
    assert code == 1 and out == ""
    assert "Manager not found: zz" in err
