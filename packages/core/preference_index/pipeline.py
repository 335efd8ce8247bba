"""
End-to-end analysis run.

Baselines are loaded first so that a bad census file aborts the run
before any match data is touched. Thin data does not abort: a degenerate
index or an empty funnel is recorded on the report instead.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .census_data import DemographicBaseline
from .config import AnalysisConfig
from .exceptions import DegenerateDistributionError, InsufficientDataError
from .filters import ProfileFilter
from .funnel import FunnelMetrics, compute_funnel_metrics
from .loaders import load_baseline, load_profiles
from .models import Profile, RacialPreference, Race, SkippedRow
from .preference import (
    PreferenceIndexCalculator,
    aggregate_hispanic_subrace_counts,
    aggregate_race_counts,
)

logger = logging.getLogger(__name__)


@dataclass
class AnalysisReport:
    """Everything one run produces."""
    baseline: DemographicBaseline
    sample_cutoff: int
    total_profiles: int
    profiles_with_background_info: int
    race_counts: Dict[Race, int]
    hispanic_race_counts: Dict[Race, int]
    preferences: List[RacialPreference] = field(default_factory=list)
    funnel: Optional[FunnelMetrics] = None
    index_error: Optional[str] = None
    funnel_error: Optional[str] = None
    skipped: List[SkippedRow] = field(default_factory=list)
    filter_description: str = "none"

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    @property
    def is_complete(self) -> bool:
        return not self.index_error and not self.funnel_error and not self.skipped

    def to_dict(self) -> dict:
        return {
            "sample_cutoff": self.sample_cutoff,
            "filters": self.filter_description,
            "total_profiles": self.total_profiles,
            "profiles_with_background_info": self.profiles_with_background_info,
            "race_counts": {race.value: count for race, count in self.race_counts.items()},
            "hispanic_race_counts": {race.value: count for race, count in self.hispanic_race_counts.items()},
            "preferences": [p.to_dict() for p in self.preferences],
            "index_error": self.index_error,
            "funnel": self.funnel.to_dict() if self.funnel else None,
            "funnel_error": self.funnel_error,
            "skipped_rows": [
                {"source": s.source, "line_number": s.line_number, "reason": s.reason, "kind": s.kind}
                for s in self.skipped
            ],
            "baseline": self.baseline.to_dict(),
        }


def analyze_profiles(
    profiles: List[Profile],
    baseline: DemographicBaseline,
    sample_cutoff: int,
    profile_filter: Optional[ProfileFilter] = None,
    skipped: Optional[List[SkippedRow]] = None,
) -> AnalysisReport:
    """
    Compute the index and funnel over already-loaded profiles.

    Never raises for thin data; see AnalysisReport.index_error and
    AnalysisReport.funnel_error.
    """
    profile_filter = profile_filter or ProfileFilter()
    profiles = profile_filter.apply(profiles)

    race_counts = aggregate_race_counts(profiles)
    hispanic_counts = aggregate_hispanic_subrace_counts(profiles)

    report = AnalysisReport(
        baseline=baseline,
        sample_cutoff=sample_cutoff,
        total_profiles=len(profiles),
        profiles_with_background_info=sum(1 for p in profiles if p.has_background_info),
        race_counts=race_counts,
        hispanic_race_counts=hispanic_counts,
        skipped=list(skipped or []),
        filter_description=profile_filter.describe(),
    )

    calculator = PreferenceIndexCalculator(sample_cutoff=sample_cutoff)
    try:
        report.preferences = calculator.compute(race_counts, hispanic_counts, baseline)
    except DegenerateDistributionError as e:
        logger.warning(str(e))
        report.index_error = str(e)

    try:
        report.funnel = compute_funnel_metrics(profiles)
    except InsufficientDataError as e:
        logger.warning(str(e))
        report.funnel_error = str(e)

    return report


def run_analysis(config: AnalysisConfig) -> AnalysisReport:
    """
    Run the full pipeline described by ``config``.

    Raises:
        BaselineError: if either census file is missing, empty or zero
        InputFileError: if the match log is missing or unreadable
    """
    logger.info(f"Loading baselines from {config.demographics_path} and {config.hispanic_demographics_path}")
    baseline = load_baseline(config.demographics_path, config.hispanic_demographics_path)

    logger.info(f"Loading matches from {config.matches_path}")
    loaded = load_profiles(config.matches_path)

    return analyze_profiles(
        loaded.profiles,
        baseline,
        sample_cutoff=config.sample_cutoff,
        profile_filter=config.profile_filter,
        skipped=baseline.skipped + loaded.skipped,
    )
