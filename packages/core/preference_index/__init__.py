"""
Match Preference Index

Compares who you match with on a dating app against the racial make-up
of your area, and breaks your conversations down into a funnel.

Basic usage:
    from preference_index import AnalysisConfig, run_analysis
    from preference_index.report import format_report

    report = run_analysis(AnalysisConfig(sample_cutoff=2))
    print(format_report(report))

CLI usage:
    python -m preference_index analyze --matches matches.csv
    python -m preference_index baseline --demographics demographics.csv
"""

__version__ = "0.1.0"

from .models import (
    Ethnicity,
    Race,
    WhoLastReplied,
    Profile,
    RacialPreference,
)
from .classifier import classify, classify_hispanic_subrace, try_classify
from .census_data import (
    DemographicBaseline,
    RaceWeightDistribution,
    build_baseline,
)
from .preference import (
    PreferenceIndexCalculator,
    aggregate_race_counts,
    aggregate_hispanic_subrace_counts,
    compute_preference_index,
)
from .funnel import FunnelCounts, FunnelMetrics, compute_funnel_metrics
from .filters import ProfileFilter
from .config import AnalysisConfig
from .loaders import ProfileValidator, load_baseline, load_profiles
from .pipeline import AnalysisReport, analyze_profiles, run_analysis
from .exceptions import (
    PreferenceIndexError,
    BaselineError,
    ClassificationError,
    ConfigurationError,
    DegenerateDistributionError,
    InputFileError,
    InsufficientDataError,
    ProfileValidationError,
    RecordParseError,
)

__all__ = [
    "Ethnicity",
    "Race",
    "WhoLastReplied",
    "Profile",
    "RacialPreference",
    "classify",
    "classify_hispanic_subrace",
    "try_classify",
    "DemographicBaseline",
    "RaceWeightDistribution",
    "build_baseline",
    "PreferenceIndexCalculator",
    "aggregate_race_counts",
    "aggregate_hispanic_subrace_counts",
    "compute_preference_index",
    "FunnelCounts",
    "FunnelMetrics",
    "compute_funnel_metrics",
    "ProfileFilter",
    "AnalysisConfig",
    "ProfileValidator",
    "load_baseline",
    "load_profiles",
    "AnalysisReport",
    "analyze_profiles",
    "run_analysis",
    "PreferenceIndexError",
    "BaselineError",
    "ClassificationError",
    "ConfigurationError",
    "DegenerateDistributionError",
    "InputFileError",
    "InsufficientDataError",
    "ProfileValidationError",
    "RecordParseError",
]
