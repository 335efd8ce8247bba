"""Tests for the command-line interface."""

import json

import pytest

from conftest import MATCH_HEADER, match_row
from preference_index.cli import build_parser, main
from preference_index.config import SAMPLE_CUTOFF_ENV


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    monkeypatch.delenv(SAMPLE_CUTOFF_ENV, raising=False)


@pytest.fixture
def analyze_args(census_files, write_csv):
    general, hispanic = census_files
    rows = [match_row(f"w{i}", convo=1, last_reply="Them", flags=("white_caucasian",)) for i in range(12)]
    rows += [match_row(f"b{i}", convo=1, last_reply="Met", flags=("black_african_descent",)) for i in range(4)]
    matches = write_csv("matches.csv", MATCH_HEADER, rows)
    return [
        "analyze",
        "--matches", str(matches),
        "--demographics", str(general),
        "--hispanic-demographics", str(hispanic),
    ]


class TestAnalyzeCommand:
    """Tests for `analyze`."""

    def test_prints_report(self, analyze_args, capsys):
        assert main(analyze_args) == 0

        out = capsys.readouterr().out
        assert "Total Profiles: 16" in out
        assert "WhiteCaucasian" in out
        assert "0.667" in out

    def test_cutoff_flag(self, analyze_args, capsys):
        assert main(analyze_args + ["--cutoff", "0"]) == 0
        assert "Sample cutoff: 0" in capsys.readouterr().out

    def test_cutoff_from_environment(self, analyze_args, monkeypatch, capsys):
        monkeypatch.setenv(SAMPLE_CUTOFF_ENV, "5")
        assert main(analyze_args) == 0
        out = capsys.readouterr().out
        assert "Sample cutoff: 5" in out
        # Black (4 matches) falls under the cutoff
        assert "NOT ENOUGH SAMPLES" in out

    def test_invalid_environment_cutoff(self, analyze_args, monkeypatch):
        monkeypatch.setenv(SAMPLE_CUTOFF_ENV, "lots")
        assert main(analyze_args) == 1

    def test_missing_baseline(self, analyze_args, tmp_path):
        args = list(analyze_args)
        args[args.index("--demographics") + 1] = str(tmp_path / "missing.csv")
        assert main(args) == 1

    def test_missing_matches(self, analyze_args, tmp_path):
        args = list(analyze_args)
        args[args.index("--matches") + 1] = str(tmp_path / "missing.csv")
        assert main(args) == 1

    def test_met_only(self, analyze_args, capsys):
        assert main(analyze_args + ["--met-only", "--cutoff", "0"]) == 0
        out = capsys.readouterr().out
        assert "Total Profiles: 4" in out
        assert "Filters: met_only" in out

    def test_output_json(self, analyze_args, tmp_path):
        output = tmp_path / "report.json"
        assert main(analyze_args + ["-o", str(output)]) == 0
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["total_profiles"] == 16


class TestOtherCommands:
    """Tests for `baseline` and `classify`."""

    def test_baseline(self, census_files, capsys):
        general, hispanic = census_files
        assert main(["baseline", "--demographics", str(general),
                     "--hispanic-demographics", str(hispanic)]) == 0
        out = capsys.readouterr().out
        assert "Race Weights" in out
        assert "Hispanic Race Weights" in out

    def test_baseline_missing(self, tmp_path):
        assert main(["baseline", "--demographics", str(tmp_path / "a.csv"),
                     "--hispanic-demographics", str(tmp_path / "b.csv")]) == 1

    def test_classify(self, capsys):
        assert main(["classify", "east_asian,hispanic_latino"]) == 0
        out = capsys.readouterr().out
        assert "Race:       Hispanic (rule: hispanic_any)" in out
        assert "Sub-race:   Asian" in out

    def test_classify_unsupported(self, capsys):
        assert main(["classify", "middle_eastern"]) == 0
        assert "unclassifiable (UnsupportedOnly)" in capsys.readouterr().out

    def test_classify_unknown_name(self):
        assert main(["classify", "martian"]) == 1


def test_no_command():
    assert main([]) == 1


def test_verbose_is_global():
    args = build_parser().parse_args(["-v", "classify", "other"])
    assert args.verbose
    assert args.command == "classify"
