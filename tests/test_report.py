"""Tests for report rendering and export."""

import json

import pytest

from conftest import MATCH_HEADER, match_row
from preference_index.config import AnalysisConfig
from preference_index.pipeline import run_analysis
from preference_index.report import (
    NOT_ENOUGH_SAMPLES,
    ReportExporter,
    format_baseline,
    format_report,
)


@pytest.fixture
def report(census_files, write_csv):
    general, hispanic = census_files
    rows = [match_row(f"w{i}", convo=1, last_reply="Met", flags=("white_caucasian",)) for i in range(3)]
    rows.append(match_row("b0", convo=1, last_reply="You", flags=("black_african_descent",)))
    rows.append(match_row("x0", last_reply="Soon"))
    matches = write_csv("matches.csv", MATCH_HEADER, rows)
    return run_analysis(AnalysisConfig(
        matches_path=matches,
        demographics_path=general,
        hispanic_demographics_path=hispanic,
        sample_cutoff=2,
    ))


class TestFormatReport:
    """Tests for the console report."""

    def test_headline_counts(self, report):
        text = format_report(report)
        assert "Total Profiles: 4" in text
        assert "Total Profiles with Background Info: 4" in text

    def test_suppressed_entries_are_marked(self, report):
        text = format_report(report)
        black_line = next(line for line in text.splitlines() if "BlackAfrican " in line and NOT_ENOUGH_SAMPLES in line)
        assert black_line

    def test_sections(self, report):
        text = format_report(report)
        assert "Race Counts" in text
        assert "Hispanic Race Counts" in text
        assert "Conversation Funnel" in text
        assert "Skipped rows: 1" in text

    def test_show_baseline(self, report):
        assert "Race Weights" not in format_report(report)
        assert "Hispanic Race Weights" in format_report(report, show_baseline=True)

    def test_format_baseline(self, report):
        text = format_baseline(report.baseline)
        assert "WhiteCaucasian" in text
        assert "0.6000" in text


class TestReportExporter:
    """Tests for ReportExporter."""

    def test_export_json(self, report, tmp_path):
        path = ReportExporter().export(report, str(tmp_path / "out" / "report.json"))

        with open(path, encoding="utf-8") as f:
            data = json.load(f)

        assert data["total_profiles"] == 4
        assert data["preferences"][0]["label"] == "WhiteCaucasian"
        assert data["skipped_rows"][0]["line_number"] == 6

    def test_export_markdown(self, report, tmp_path):
        path = ReportExporter().export(report, str(tmp_path / "report.md"))

        with open(path, encoding="utf-8") as f:
            content = f.read()

        assert content.startswith("# Match Preference Index")
        assert "| 1 | WhiteCaucasian | 1.000 | 3 |" in content
        assert NOT_ENOUGH_SAMPLES in content
        assert "## Skipped Rows (1)" in content
