"""
Ethnicity-to-race classification.

Self-reported ethnicity is multi-valued, so a match may carry several
overlapping flags. The classifier resolves a flag set into exactly one
race by walking an ordered rule list; the first rule that fires wins.

Precedence:
1. Empty set fails (EmptyEthnicity)
2. Middle Eastern is dropped; nothing left fails (UnsupportedOnly)
3. A single remaining flag maps directly
4. Any combination of Asian flags is Asian
5. Anything carrying Hispanic/Latino is Hispanic
6. Everything else is Multiracial
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from .exceptions import ClassificationError, ClassificationFailure
from .models import Ethnicity, Race

logger = logging.getLogger(__name__)

UNSUPPORTED_ETHNICITIES = Ethnicity.MIDDLE_EASTERN
ASIAN_ETHNICITIES = Ethnicity.of(
    Ethnicity.SOUTHEAST_ASIAN,
    Ethnicity.EAST_ASIAN,
    Ethnicity.SOUTH_ASIAN,
)

SINGLE_FLAG_RACES: Dict[Ethnicity, Race] = {
    Ethnicity.NATIVE_AMERICAN: Race.NATIVE_AMERICAN,
    Ethnicity.SOUTHEAST_ASIAN: Race.ASIAN,
    Ethnicity.BLACK_AFRICAN_DESCENT: Race.BLACK_AFRICAN,
    Ethnicity.EAST_ASIAN: Race.ASIAN,
    Ethnicity.PACIFIC_ISLANDER: Race.PACIFIC_ISLANDER,
    Ethnicity.SOUTH_ASIAN: Race.ASIAN,
    Ethnicity.WHITE_CAUCASIAN: Race.WHITE_CAUCASIAN,
    Ethnicity.HISPANIC_LATINO: Race.HISPANIC,
    Ethnicity.OTHER: Race.OTHER,
}


@dataclass(frozen=True)
class ClassificationRule:
    """
    One precedence step.

    ``resolve`` receives the supported flags (Middle Eastern already removed)
    and returns a race, or None to fall through to the next rule.
    """
    name: str
    resolve: Callable[[Ethnicity], Optional[Race]]


def _single_flag(supported: Ethnicity) -> Optional[Race]:
    return SINGLE_FLAG_RACES.get(supported)


def _asian_combination(supported: Ethnicity) -> Optional[Race]:
    if supported and (int(supported) & ~int(ASIAN_ETHNICITIES)) == 0:
        return Race.ASIAN
    return None


def _hispanic_any(supported: Ethnicity) -> Optional[Race]:
    return Race.HISPANIC if supported.is_hispanic else None


def _multiracial(supported: Ethnicity) -> Optional[Race]:
    # at least two disjoint groupings remain at this point
    return Race.MULTIRACIAL


CLASSIFICATION_RULES: List[ClassificationRule] = [
    ClassificationRule("single_flag", _single_flag),
    ClassificationRule("asian_combination", _asian_combination),
    ClassificationRule("hispanic_any", _hispanic_any),
    ClassificationRule("multiracial", _multiracial),
]


def supported_flags(ethnicity: Ethnicity) -> Ethnicity:
    """
    Strip flags with no race mapping.

    Raises:
        ClassificationError: if the set is empty, or empty once stripped
    """
    if not ethnicity:
        raise ClassificationError(
            ClassificationFailure.EMPTY_ETHNICITY,
            "Ethnicity is empty",
        )

    supported = ethnicity.without(UNSUPPORTED_ETHNICITIES)
    if not supported:
        raise ClassificationError(
            ClassificationFailure.UNSUPPORTED_ONLY,
            "Ethnicity only contains values that are not supported to be converted to a race",
        )
    return supported


def _resolve(ethnicity: Ethnicity) -> Tuple[ClassificationRule, Race]:
    supported = supported_flags(ethnicity)
    for rule in CLASSIFICATION_RULES:
        race = rule.resolve(supported)
        if race is not None:
            return rule, race
    # the multiracial rule always resolves
    raise AssertionError("classification rules are not exhaustive")


def matching_rule(ethnicity: Ethnicity) -> ClassificationRule:
    """Return the first rule that resolves ``ethnicity``."""
    return _resolve(ethnicity)[0]


def classify(ethnicity: Ethnicity) -> Race:
    """
    Map an ethnicity set to a single race.

    Args:
        ethnicity: Flag set to classify

    Returns:
        The race selected by the first matching rule

    Raises:
        ClassificationError: EMPTY_ETHNICITY or UNSUPPORTED_ONLY
    """
    rule, race = _resolve(ethnicity)
    logger.debug(f"{ethnicity!r} -> {race.value} via {rule.name}")
    return race


def try_classify(ethnicity: Ethnicity) -> Optional[Race]:
    """Like classify, but returns None when there is no race mapping."""
    try:
        return classify(ethnicity)
    except ClassificationError:
        return None


def classify_hispanic_subrace(ethnicity: Ethnicity) -> Race:
    """
    Race within the Hispanic subpopulation.

    Only meaningful for Hispanic-tagged sets. The Hispanic flag is dropped;
    a set that was purely Hispanic carries no further signal and maps to
    Other. The result is never Race.HISPANIC.

    Raises:
        ClassificationError: EMPTY_ETHNICITY for an empty set, or
            UNSUPPORTED_ONLY if what remains only has unsupported flags
    """
    if not ethnicity:
        raise ClassificationError(
            ClassificationFailure.EMPTY_ETHNICITY,
            "Ethnicity is empty",
        )
    remainder = ethnicity.without(Ethnicity.HISPANIC_LATINO)
    if not remainder:
        return Race.OTHER
    return classify(remainder)


def parse_ethnicity_names(names: List[str]) -> Ethnicity:
    """
    Build a flag set from names such as ``east_asian`` or ``EAST_ASIAN``.

    Raises:
        ValueError: on an unknown name
    """
    result = Ethnicity.empty()
    for raw in names:
        key = raw.strip().upper().replace("-", "_").replace(" ", "_")
        if not key:
            continue
        try:
            result |= Ethnicity[key]
        except KeyError:
            valid = ", ".join(member.name.lower() for member in Ethnicity)
            raise ValueError(f"Unknown ethnicity '{raw}'. Valid: {valid}") from None
    return result
