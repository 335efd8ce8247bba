"""
Report rendering and export.

Supports:
- Plain text (console)
- Markdown
- JSON
"""

import json
from datetime import datetime
from pathlib import Path
from typing import List

from .census_data import DemographicBaseline, RaceWeightDistribution
from .pipeline import AnalysisReport

NOT_ENOUGH_SAMPLES = "NOT ENOUGH SAMPLES"

FUNNEL_LABELS = {
    "interested": "You reached out",
    "they_failed": "No conversation, they dropped it",
    "no_one_interested": "No one reached out",
    "starter_success": "Conversation started (of your attempts)",
    "starter_failed": "Opener failed (of your attempts)",
    "you_ghost_them": "You ghosted them (of conversations)",
    "them_ghost_you": "They ghosted you (of conversations)",
    "date_rate": "Dates (of conversations)",
    "date_given_interest": "Dates (of your attempts)",
}


def _distribution_lines(title: str, distribution: RaceWeightDistribution) -> List[str]:
    lines = [f"{title} (population {distribution.total:,})"]
    for race, share in distribution.values.items():
        lines.append(f"  {race.value:<18} {share:8.4f}  ({distribution.raw_counts[race]:,})")
    return lines


def format_baseline(baseline: DemographicBaseline) -> str:
    """Plain text listing of both baseline distributions."""
    lines = _distribution_lines("Race Weights", baseline.general)
    lines.append("")
    lines.extend(_distribution_lines("Hispanic Race Weights", baseline.hispanic))
    if baseline.skipped:
        lines.extend(["", f"Skipped census rows: {len(baseline.skipped)}"])
        lines.extend(f"  {skipped.describe()}" for skipped in baseline.skipped)
    return "\n".join(lines)


def format_report(report: AnalysisReport, show_baseline: bool = False) -> str:
    """Render a human-readable report for the console."""
    lines = [
        "=" * 60,
        "MATCH PREFERENCE INDEX",
        "=" * 60,
        f"Total Profiles: {report.total_profiles}",
        f"Total Profiles with Background Info: {report.profiles_with_background_info}",
        f"Sample cutoff: {report.sample_cutoff}",
        f"Filters: {report.filter_description}",
    ]

    if show_baseline:
        lines.extend(["", format_baseline(report.baseline)])

    lines.extend(["", "Race Counts"])
    for race, count in report.race_counts.items():
        lines.append(f"  {race.value:<18} {count:>5}")

    lines.extend(["", "Hispanic Race Counts"])
    for race, count in report.hispanic_race_counts.items():
        lines.append(f"  {race.value:<18} {count:>5}")

    lines.extend(["", "Preference Index", "-" * 60])
    if report.index_error:
        lines.append(f"  {report.index_error}")
    else:
        lines.append(f"  {'#':>2}  {'Race':<26} {'Weight':>18} {'Count':>6}")
        for rank, pref in enumerate(report.preferences, 1):
            weight = NOT_ENOUGH_SAMPLES if pref.suppressed else f"{pref.weight:.3f}"
            lines.append(f"  {rank:>2}  {pref.label:<26} {weight:>18} {pref.count:>6}")

    lines.extend(["", "Conversation Funnel", "-" * 60])
    if report.funnel_error:
        lines.append(f"  {report.funnel_error}")
    elif report.funnel is not None:
        for name, pct in report.funnel.as_percentages().items():
            lines.append(f"  {FUNNEL_LABELS[name]:<40} {pct:6.1f}%")

    if report.skipped:
        lines.extend(["", f"Skipped rows: {report.skipped_count}"])
        for skipped in report.skipped[:10]:
            lines.append(f"  {skipped.describe()}")
        if report.skipped_count > 10:
            lines.append(f"  ... and {report.skipped_count - 10} more")

    return "\n".join(lines)


class ReportExporter:
    """Write an analysis report to disk."""

    def export_json(self, report: AnalysisReport, filepath: str) -> None:
        """Export the report as JSON."""
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(report.to_dict(), f, indent=2, ensure_ascii=False)

    def export_markdown(self, report: AnalysisReport, filepath: str) -> None:
        """
        Export the report as Markdown.

        Args:
            report: Report to export
            filepath: Output path
        """
        lines = [
            "# Match Preference Index",
            "",
            f"Generated: {datetime.now().isoformat()}",
            f"Total profiles: {report.total_profiles}",
            f"Profiles with background info: {report.profiles_with_background_info}",
            f"Sample cutoff: {report.sample_cutoff}",
            f"Filters: {report.filter_description}",
            "",
            "## Preference Index",
            "",
        ]

        if report.index_error:
            lines.append(f"_{report.index_error}_")
        else:
            lines.extend([
                "| Rank | Race | Weight | Count |",
                "|------|------|--------|-------|",
            ])
            for rank, pref in enumerate(report.preferences, 1):
                weight = NOT_ENOUGH_SAMPLES if pref.suppressed else f"{pref.weight:.3f}"
                lines.append(f"| {rank} | {pref.label} | {weight} | {pref.count} |")

        lines.extend(["", "## Conversation Funnel", ""])
        if report.funnel_error:
            lines.append(f"_{report.funnel_error}_")
        elif report.funnel is not None:
            lines.extend([
                "| Metric | Percent |",
                "|--------|---------|",
            ])
            for name, pct in report.funnel.as_percentages().items():
                lines.append(f"| {FUNNEL_LABELS[name]} | {pct:.1f}% |")

        lines.extend([
            "",
            "## Baseline",
            "",
            "| Race | General | Within Hispanic |",
            "|------|---------|-----------------|",
        ])
        for race, share in report.baseline.general.values.items():
            within = report.baseline.hispanic.values.get(race)
            within_text = f"{within:.4f}" if within is not None else "-"
            lines.append(f"| {race.value} | {share:.4f} | {within_text} |")

        if report.skipped:
            lines.extend(["", f"## Skipped Rows ({report.skipped_count})", ""])
            for skipped in report.skipped:
                lines.append(f"- {skipped.describe()}")

        with open(filepath, "w", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")

    def export(self, report: AnalysisReport, filepath: str) -> str:
        """Export by file suffix (.json, otherwise Markdown). Returns the path written."""
        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)
        if path.suffix.lower() == ".json":
            self.export_json(report, str(path))
        else:
            self.export_markdown(report, str(path))
        return str(path)
