"""
Population baselines from county census counts.

Two distributions are built per run:
1. General population, over all eight races (Hispanic included)
2. Hispanic subpopulation, over the seven races other than Hispanic

Records for several counties of the same area are additive. Each
distribution is normalized independently and must sum to 1.0.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .exceptions import BaselineError
from .models import (
    CountyHispanicPopulationRecord,
    CountyPopulationRecord,
    Race,
    SkippedRow,
)

logger = logging.getLogger(__name__)

SUM_TOLERANCE = 1e-9

# Census column -> race
GENERAL_COLUMNS: Dict[str, Race] = {
    "white_alone": Race.WHITE_CAUCASIAN,
    "black_african_american_alone": Race.BLACK_AFRICAN,
    "american_indian_alaska_native_alone": Race.NATIVE_AMERICAN,
    "asian_alone": Race.ASIAN,
    "native_hawaiian_pacific_islander_alone": Race.PACIFIC_ISLANDER,
    "two_or_more_races": Race.MULTIRACIAL,
    "hispanic_latino": Race.HISPANIC,
    "some_other_race_alone": Race.OTHER,
}

HISPANIC_COLUMNS: Dict[str, Race] = {
    "white_hispanic": Race.WHITE_CAUCASIAN,
    "black_african_american_hispanic": Race.BLACK_AFRICAN,
    "american_indian_alaska_native_hispanic": Race.NATIVE_AMERICAN,
    "asian_hispanic": Race.ASIAN,
    "native_hawaiian_pacific_islander_hispanic": Race.PACIFIC_ISLANDER,
    "two_or_more_races_hispanic": Race.MULTIRACIAL,
    "some_other_race_hispanic": Race.OTHER,
}


@dataclass(frozen=True)
class RaceWeightDistribution:
    """
    Share of the population per race.

    Attributes:
        values: Race -> fraction in [0, 1]
        raw_counts: Summed population counts the fractions came from
        total: Grand total of raw_counts
        source: Label for where the counts came from
        counties: County labels that contributed
    """
    values: Dict[Race, float]
    raw_counts: Dict[Race, int]
    total: int
    source: str = "census"
    counties: List[str] = field(default_factory=list)

    def __getitem__(self, race: Race) -> float:
        return self.values[race]

    @property
    def domain(self) -> List[Race]:
        return list(self.values.keys())

    def validate(self, tolerance: float = SUM_TOLERANCE) -> bool:
        """Validate that fractions sum to ~1.0."""
        return abs(sum(self.values.values()) - 1.0) <= tolerance

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "total": self.total,
            "counties": list(self.counties),
            "values": {race.value: share for race, share in self.values.items()},
            "raw_counts": {race.value: count for race, count in self.raw_counts.items()},
        }


@dataclass(frozen=True)
class DemographicBaseline:
    """
    The pair of distributions a run normalizes against.

    ``skipped`` lists census rows that could not be read; the
    distributions were built without them.
    """
    general: RaceWeightDistribution
    hispanic: RaceWeightDistribution
    skipped: List[SkippedRow] = field(default_factory=list)

    @property
    def hispanic_share(self) -> float:
        return self.general[Race.HISPANIC]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "general": self.general.to_dict(),
            "hispanic": self.hispanic.to_dict(),
        }


def sum_counts(
    records: Iterable[Any],
    columns: Dict[str, Race],
) -> Dict[Race, int]:
    """Fold records into fresh per-race totals (every mapped race present)."""
    totals: Dict[Race, int] = {race: 0 for race in columns.values()}
    for record in records:
        for column, race in columns.items():
            totals[race] += getattr(record, column)
    return totals


def normalize_counts(
    counts: Dict[Race, int],
    source: str = "census",
    counties: Optional[List[str]] = None,
) -> RaceWeightDistribution:
    """
    Divide each count by the grand total.

    Raises:
        BaselineError: if the grand total is zero
    """
    total = sum(counts.values())
    if total <= 0:
        raise BaselineError(f"Population total for {source} baseline is zero", source=source)

    distribution = RaceWeightDistribution(
        values={race: count / total for race, count in counts.items()},
        raw_counts=dict(counts),
        total=total,
        source=source,
        counties=list(counties or []),
    )
    if not distribution.validate():
        logger.warning(f"{source} baseline sums to {sum(distribution.values.values())!r}")
    return distribution


def build_general_distribution(records: Sequence[CountyPopulationRecord]) -> RaceWeightDistribution:
    """Build the all-races distribution from county records."""
    if not records:
        raise BaselineError("General population baseline has no records", source="general")
    counts = sum_counts(records, GENERAL_COLUMNS)
    return normalize_counts(counts, source="general", counties=[r.county for r in records])


def build_hispanic_distribution(records: Sequence[CountyHispanicPopulationRecord]) -> RaceWeightDistribution:
    """Build the within-Hispanic distribution from county records."""
    if not records:
        raise BaselineError("Hispanic population baseline has no records", source="hispanic")
    counts = sum_counts(records, HISPANIC_COLUMNS)
    return normalize_counts(counts, source="hispanic", counties=[r.county for r in records])


def build_baseline(
    general_records: Sequence[CountyPopulationRecord],
    hispanic_records: Sequence[CountyHispanicPopulationRecord],
    skipped: Optional[List[SkippedRow]] = None,
) -> DemographicBaseline:
    """
    Build both baseline distributions.

    Args:
        general_records: County rows with counts for all races
        hispanic_records: County rows with counts inside the Hispanic population
        skipped: Census rows dropped while reading the records

    Returns:
        DemographicBaseline with general and Hispanic distributions

    Raises:
        BaselineError: if either record set is empty or totals zero
    """
    general = build_general_distribution(general_records)
    hispanic = build_hispanic_distribution(hispanic_records)

    logger.info(
        f"Baseline built from {len(general_records)} general and "
        f"{len(hispanic_records)} Hispanic county records "
        f"(population {general.total:,}, Hispanic {hispanic.total:,})"
    )
    return DemographicBaseline(general=general, hispanic=hispanic, skipped=list(skipped or []))
