"""
Conversation funnel metrics.

Every match lands in one bucket by (convo, who_last_replied):

    convo  who_last_replied  bucket
    -----  ----------------  ---------------------------
    no     None              no_convo_attempted
    no     You               no_convo_you_failed
    no     Them              no_convo_they_failed
    yes    You               convo_started_you_failed
    yes    Them              convo_started_they_failed
    yes    Met               you_met

The ratios then describe where matches drop out (no contact,
conversation, date) and who let the conversation die.
"""

import logging
from collections import Counter
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Dict, Iterable, Tuple

from .exceptions import InsufficientDataError
from .models import Profile, WhoLastReplied

logger = logging.getLogger(__name__)


class FunnelBucket(Enum):
    """Where a match ended up in the conversation funnel."""
    NO_CONVO_ATTEMPTED = "no_convo_attempted"
    NO_CONVO_YOU_FAILED = "no_convo_you_failed"
    NO_CONVO_THEY_FAILED = "no_convo_they_failed"
    CONVO_STARTED_YOU_FAILED = "convo_started_you_failed"
    CONVO_STARTED_THEY_FAILED = "convo_started_they_failed"
    YOU_MET = "you_met"


BUCKETS: Dict[Tuple[bool, WhoLastReplied], FunnelBucket] = {
    (False, WhoLastReplied.NONE): FunnelBucket.NO_CONVO_ATTEMPTED,
    (False, WhoLastReplied.YOU): FunnelBucket.NO_CONVO_YOU_FAILED,
    (False, WhoLastReplied.THEM): FunnelBucket.NO_CONVO_THEY_FAILED,
    (True, WhoLastReplied.YOU): FunnelBucket.CONVO_STARTED_YOU_FAILED,
    (True, WhoLastReplied.THEM): FunnelBucket.CONVO_STARTED_THEY_FAILED,
    (True, WhoLastReplied.MET): FunnelBucket.YOU_MET,
}


def bucket_for(profile: Profile) -> FunnelBucket:
    """Funnel bucket for a validated profile."""
    key = (profile.convo, profile.who_last_replied)
    if key not in BUCKETS:
        # Profile validation rejects (no convo, Met) and (convo, None)
        raise ValueError(f"Unreachable funnel state for {profile.name}: {key}")
    return BUCKETS[key]


@dataclass(frozen=True)
class FunnelCounts:
    """Raw bucket tallies."""
    no_convo_attempted: int = 0
    no_convo_you_failed: int = 0
    no_convo_they_failed: int = 0
    convo_started_you_failed: int = 0
    convo_started_they_failed: int = 0
    you_met: int = 0

    @classmethod
    def tally(cls, profiles: Iterable[Profile]) -> "FunnelCounts":
        counts = Counter(bucket_for(p) for p in profiles)
        return cls(**{bucket.value: counts.get(bucket, 0) for bucket in FunnelBucket})

    @property
    def total(self) -> int:
        return (
            self.no_convo_attempted
            + self.no_convo_you_failed
            + self.no_convo_they_failed
            + self.convo_started_you_failed
            + self.convo_started_they_failed
            + self.you_met
        )

    @property
    def convo_started(self) -> int:
        return self.convo_started_you_failed + self.convo_started_they_failed + self.you_met

    @property
    def convo_you_attempted(self) -> int:
        return self.total - self.no_convo_attempted - self.no_convo_they_failed

    def to_dict(self) -> Dict[str, int]:
        data = asdict(self)
        data.update(
            total=self.total,
            convo_started=self.convo_started,
            convo_you_attempted=self.convo_you_attempted,
        )
        return data


@dataclass(frozen=True)
class FunnelMetrics:
    """Derived funnel ratios, each a fraction of its stated denominator."""
    counts: FunnelCounts
    interested: float
    they_failed: float
    no_one_interested: float
    starter_success: float
    starter_failed: float
    you_ghost_them: float
    them_ghost_you: float
    date_rate: float
    date_given_interest: float

    def ratios(self) -> Dict[str, float]:
        data = asdict(self)
        data.pop("counts")
        return data

    def as_percentages(self) -> Dict[str, float]:
        return {name: value * 100.0 for name, value in self.ratios().items()}

    def to_dict(self) -> Dict[str, object]:
        return {"counts": self.counts.to_dict(), "ratios": self.ratios()}


def metrics_from_counts(counts: FunnelCounts) -> FunnelMetrics:
    """
    Derive the funnel ratios from bucket tallies.

    Raises:
        InsufficientDataError: if total, convo_you_attempted or
            convo_started is zero
    """
    for name, value in (
        ("total", counts.total),
        ("convo_you_attempted", counts.convo_you_attempted),
        ("convo_started", counts.convo_started),
    ):
        if value == 0:
            raise InsufficientDataError(
                f"Not enough data to compute funnel metrics: {name} is zero",
                denominator=name,
            )

    total = counts.total
    attempted = counts.convo_you_attempted
    started = counts.convo_started

    starter_success = started / attempted
    date_rate = counts.you_met / started

    return FunnelMetrics(
        counts=counts,
        interested=attempted / total,
        they_failed=counts.no_convo_they_failed / total,
        no_one_interested=counts.no_convo_attempted / total,
        starter_success=starter_success,
        starter_failed=counts.no_convo_you_failed / attempted,
        you_ghost_them=counts.convo_started_you_failed / started,
        them_ghost_you=counts.convo_started_they_failed / started,
        date_rate=date_rate,
        date_given_interest=starter_success * date_rate,
    )


def compute_funnel_metrics(profiles: Iterable[Profile]) -> FunnelMetrics:
    """Tally profiles into buckets and derive the funnel ratios."""
    counts = FunnelCounts.tally(profiles)
    logger.debug(f"Funnel counts: {counts.to_dict()}")
    return metrics_from_counts(counts)
