"""
Population-adjusted preference index.

Observed match counts per race are divided by the share of the local
population that race makes up, so a race matched exactly in proportion
to its population share scores the same as any other. Hispanic matches
are broken down by sub-race and double normalized: by the Hispanic share
of the population, then by the sub-race share within the Hispanic
population.

All raw weights (zeros included) are normalized into one distribution
and ranked. Counts below the sample cutoff are zeroed rather than
reported as unstable ratios.
"""

import logging
from collections import Counter
from typing import Dict, Iterable, List, Tuple

import numpy as np

from .census_data import DemographicBaseline
from .classifier import classify_hispanic_subrace
from .exceptions import ClassificationError, DegenerateDistributionError
from .models import HISPANIC_SUBRACES, Profile, RacialPreference, Race

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_CUTOFF = 2


def _zeroed(races: Iterable[Race], counts: Counter) -> Dict[Race, int]:
    return {race: counts.get(race, 0) for race in races}


def aggregate_race_counts(profiles: Iterable[Profile]) -> Dict[Race, int]:
    """Count classified profiles per race; every race is present."""
    counts = Counter(p.race for p in profiles if p.race is not None)
    return _zeroed(Race, counts)


def aggregate_hispanic_subrace_counts(profiles: Iterable[Profile]) -> Dict[Race, int]:
    """
    Count Hispanic-tagged profiles per sub-race.

    Profiles whose non-Hispanic flags have no race mapping are skipped.
    """
    subraces = []
    for profile in profiles:
        if not profile.ethnicity.is_hispanic:
            continue
        try:
            subraces.append(classify_hispanic_subrace(profile.ethnicity))
        except ClassificationError as e:
            logger.debug(f"No Hispanic sub-race for {profile.name}: {e}")
    return _zeroed(HISPANIC_SUBRACES, Counter(subraces))


class PreferenceIndexCalculator:
    """
    Ranks races by observed-over-expected match rate.

    Usage:
        calculator = PreferenceIndexCalculator(sample_cutoff=2)
        ranking = calculator.compute(general_counts, hispanic_counts, baseline)
    """

    def __init__(self, sample_cutoff: int = DEFAULT_SAMPLE_CUTOFF):
        """
        Initialize calculator.

        Args:
            sample_cutoff: Minimum count before a race is scored (0 scores everything)
        """
        if sample_cutoff < 0:
            raise ValueError("sample_cutoff must be non-negative")
        self.sample_cutoff = sample_cutoff

    def _entries(
        self,
        general_counts: Dict[Race, int],
        hispanic_counts: Dict[Race, int],
        baseline: DemographicBaseline,
    ) -> List[Tuple[Race, bool, int, float]]:
        """(race, hispanic, count, expected share) for every scored entry."""
        entries = []
        for race in baseline.general.domain:
            if race is Race.HISPANIC:
                # reported only through the sub-race breakdown
                continue
            entries.append((race, False, general_counts.get(race, 0), baseline.general[race]))

        for race in baseline.hispanic.domain:
            expected = baseline.hispanic_share * baseline.hispanic[race]
            entries.append((race, True, hispanic_counts.get(race, 0), expected))
        return entries

    def raw_weights(
        self,
        general_counts: Dict[Race, int],
        hispanic_counts: Dict[Race, int],
        baseline: DemographicBaseline,
    ) -> List[RacialPreference]:
        """Unnormalized count / expected-share weights, in domain order."""
        entries = self._entries(general_counts, hispanic_counts, baseline)

        counts = np.array([e[2] for e in entries], dtype=float)
        expected = np.array([e[3] for e in entries], dtype=float)
        suppressed = counts < self.sample_cutoff
        scorable = ~suppressed & (expected > 0)

        raw = np.zeros_like(counts)
        np.divide(counts, expected, out=raw, where=scorable)

        for (race, hispanic, count, _), ok, low in zip(entries, scorable, suppressed):
            if not ok and not low and count > 0:
                label = f"{race.value}Hispanic" if hispanic else race.value
                logger.warning(f"{label}: {count} matches but zero population share; weight set to 0")

        return [
            RacialPreference(
                race=race,
                hispanic=hispanic,
                weight=float(weight),
                count=int(count),
                suppressed=bool(low),
            )
            for (race, hispanic, count, _), weight, low in zip(entries, raw, suppressed)
        ]

    def compute(
        self,
        general_counts: Dict[Race, int],
        hispanic_counts: Dict[Race, int],
        baseline: DemographicBaseline,
    ) -> List[RacialPreference]:
        """
        Compute the ranked, normalized preference index.

        Args:
            general_counts: Observed matches per race
            hispanic_counts: Observed Hispanic matches per sub-race
            baseline: Population distributions for the area

        Returns:
            Entries sorted by descending weight; ties broken by race
            declaration order, then non-Hispanic before Hispanic

        Raises:
            DegenerateDistributionError: if every weight is zero
        """
        raw = self.raw_weights(general_counts, hispanic_counts, baseline)

        total = float(np.sum([p.weight for p in raw]))
        if total <= 0:
            raise DegenerateDistributionError(
                f"No race reaches the sample cutoff of {self.sample_cutoff}; "
                f"not enough data to compute the preference index"
            )

        normalized = [
            RacialPreference(
                race=p.race,
                hispanic=p.hispanic,
                weight=p.weight / total,
                count=p.count,
                suppressed=p.suppressed,
            )
            for p in raw
        ]
        return sorted(normalized, key=lambda p: (-p.weight, p.race.rank, p.hispanic))


def compute_preference_index(
    profiles: List[Profile],
    baseline: DemographicBaseline,
    sample_cutoff: int = DEFAULT_SAMPLE_CUTOFF,
) -> List[RacialPreference]:
    """Aggregate profiles and compute the ranked index in one call."""
    calculator = PreferenceIndexCalculator(sample_cutoff=sample_cutoff)
    return calculator.compute(
        aggregate_race_counts(profiles),
        aggregate_hispanic_subrace_counts(profiles),
        baseline,
    )
