"""
Data models for match profiles and population baselines.

Defines the ethnicity flag set, the race categories derived from it,
the validated match profile, and the raw CSV row schemas. Row schemas
are pydantic models so that malformed rows fail loudly at ingestion.
"""

from dataclasses import dataclass
from enum import Enum, IntFlag
from typing import Annotated, Dict, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    PlainValidator,
    computed_field,
    model_validator,
)


class Ethnicity(IntFlag):
    """
    Self-reported ethnicity flags.

    A composite value is an ethnicity set; ``Ethnicity(0)`` is the empty set.
    The bit layout is fixed so that sets can round-trip through integers.
    """
    NATIVE_AMERICAN = 0x0001
    SOUTHEAST_ASIAN = 0x0002
    BLACK_AFRICAN_DESCENT = 0x0004
    EAST_ASIAN = 0x0008
    HISPANIC_LATINO = 0x0010
    MIDDLE_EASTERN = 0x0020
    PACIFIC_ISLANDER = 0x0040
    SOUTH_ASIAN = 0x0080
    WHITE_CAUCASIAN = 0x0100
    OTHER = 0x8000

    @classmethod
    def empty(cls) -> "Ethnicity":
        return cls(0)

    @classmethod
    def all_bits(cls) -> int:
        bits = 0
        for member in cls:
            bits |= member.value
        return bits

    @classmethod
    def of(cls, *flags: "Ethnicity") -> "Ethnicity":
        """Build a set from individual flags."""
        result = cls(0)
        for flag in flags:
            result |= flag
        return result

    def without(self, flag: "Ethnicity") -> "Ethnicity":
        """Return a copy of this set with ``flag`` cleared."""
        return Ethnicity(int(self) & ~int(flag))

    def members(self) -> List["Ethnicity"]:
        """Individual flags in declaration order."""
        return [member for member in Ethnicity if int(self) & member.value]

    @property
    def is_hispanic(self) -> bool:
        return bool(self & Ethnicity.HISPANIC_LATINO)


# CSV indicator column -> flag, in match log column order
ETHNICITY_COLUMNS: Dict[str, Ethnicity] = {
    "native_american": Ethnicity.NATIVE_AMERICAN,
    "southeast_asian": Ethnicity.SOUTHEAST_ASIAN,
    "black_african_descent": Ethnicity.BLACK_AFRICAN_DESCENT,
    "east_asian": Ethnicity.EAST_ASIAN,
    "hispanic_latino": Ethnicity.HISPANIC_LATINO,
    "middle_eastern": Ethnicity.MIDDLE_EASTERN,
    "pacific_islander": Ethnicity.PACIFIC_ISLANDER,
    "south_asian": Ethnicity.SOUTH_ASIAN,
    "white_caucasian": Ethnicity.WHITE_CAUCASIAN,
    "other": Ethnicity.OTHER,
}


def _coerce_ethnicity(value) -> Ethnicity:
    if isinstance(value, Ethnicity):
        return value
    bits = int(value)
    if bits < 0 or bits & ~Ethnicity.all_bits():
        raise ValueError(f"Unknown ethnicity bits: {bits:#06x}")
    return Ethnicity(bits)


EthnicitySet = Annotated[
    Ethnicity,
    PlainValidator(_coerce_ethnicity),
    PlainSerializer(int, return_type=int),
]


class Race(Enum):
    """
    Race categories derived from ethnicity sets.

    Declaration order doubles as the tie-break order when ranking.
    """
    WHITE_CAUCASIAN = "WhiteCaucasian"
    BLACK_AFRICAN = "BlackAfrican"
    NATIVE_AMERICAN = "NativeAmerican"
    ASIAN = "Asian"
    PACIFIC_ISLANDER = "PacificIslander"
    MULTIRACIAL = "Multiracial"
    HISPANIC = "Hispanic"
    OTHER = "Other"

    @property
    def rank(self) -> int:
        return list(Race).index(self)


# Races inside the Hispanic subpopulation ("Hispanic" is not a label there)
HISPANIC_SUBRACES: List[Race] = [race for race in Race if race is not Race.HISPANIC]


class WhoLastReplied(Enum):
    """Who sent the last message, or whether the match ended in a date."""
    YOU = "You"
    THEM = "Them"
    MET = "Met"
    NONE = "None"


class Profile(BaseModel):
    """
    A validated match.

    Invariants:
        who_last_replied == MET requires convo
        who_last_replied == NONE requires not convo
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Display name of the match")
    matched: bool = Field(..., description="Whether the like became a match")
    convo: bool = Field(..., description="Whether a message-based conversation happened")
    who_last_replied: WhoLastReplied
    ethnicity_specified: bool = Field(default=False, description="Whether the match filled in ethnicity")
    ethnicity: EthnicitySet = Field(default_factory=Ethnicity.empty)

    @model_validator(mode="after")
    def _check_reply_state(self) -> "Profile":
        if self.who_last_replied is WhoLastReplied.MET and not self.convo:
            raise ValueError("who_last_replied=Met requires convo")
        if self.who_last_replied is WhoLastReplied.NONE and self.convo:
            raise ValueError("who_last_replied=None requires no convo")
        return self

    @computed_field
    @property
    def race(self) -> Optional[Race]:
        from .classifier import try_classify
        return try_classify(self.ethnicity)

    @property
    def has_background_info(self) -> bool:
        """True when the profile contributes to either race breakdown."""
        return self.race is not None or self.ethnicity.is_hispanic


class MatchRecord(BaseModel):
    """One row of the match log CSV."""

    name: str
    matched: int = Field(..., ge=0)
    convo: int = Field(..., ge=0)
    last_reply: str
    specified: int = Field(..., ge=0)
    native_american: int = Field(..., ge=0)
    southeast_asian: int = Field(..., ge=0)
    black_african_descent: int = Field(..., ge=0)
    east_asian: int = Field(..., ge=0)
    hispanic_latino: int = Field(..., ge=0)
    middle_eastern: int = Field(..., ge=0)
    pacific_islander: int = Field(..., ge=0)
    south_asian: int = Field(..., ge=0)
    white_caucasian: int = Field(..., ge=0)
    other: int = Field(..., ge=0)

    def ethnicity(self) -> Ethnicity:
        """Fold the indicator columns into a flag set (nonzero means set)."""
        result = Ethnicity.empty()
        for column, flag in ETHNICITY_COLUMNS.items():
            if getattr(self, column):
                result |= flag
        return result


class CountyPopulationRecord(BaseModel):
    """One row of the general population baseline CSV."""

    county: str
    white_alone: int = Field(..., ge=0)
    black_african_american_alone: int = Field(..., ge=0)
    american_indian_alaska_native_alone: int = Field(..., ge=0)
    asian_alone: int = Field(..., ge=0)
    native_hawaiian_pacific_islander_alone: int = Field(..., ge=0)
    some_other_race_alone: int = Field(..., ge=0)
    two_or_more_races: int = Field(..., ge=0)
    hispanic_latino: int = Field(..., ge=0)


class CountyHispanicPopulationRecord(BaseModel):
    """One row of the Hispanic subpopulation baseline CSV."""

    county: str
    white_hispanic: int = Field(..., ge=0)
    black_african_american_hispanic: int = Field(..., ge=0)
    american_indian_alaska_native_hispanic: int = Field(..., ge=0)
    asian_hispanic: int = Field(..., ge=0)
    native_hawaiian_pacific_islander_hispanic: int = Field(..., ge=0)
    some_other_race_hispanic: int = Field(..., ge=0)
    two_or_more_races_hispanic: int = Field(..., ge=0)


@dataclass(frozen=True)
class RacialPreference:
    """One ranked entry of the preference index."""
    race: Race
    hispanic: bool
    weight: float
    count: int
    suppressed: bool = False

    @property
    def label(self) -> str:
        return f"{self.race.value}Hispanic" if self.hispanic else self.race.value

    def to_dict(self) -> dict:
        return {
            "race": self.race.value,
            "hispanic": self.hispanic,
            "label": self.label,
            "weight": self.weight,
            "count": self.count,
            "suppressed": self.suppressed,
        }


@dataclass(frozen=True)
class SkippedRow:
    """A row left out of the run, and why."""
    source: str
    line_number: Optional[int]
    reason: str
    kind: str = "parse"  # "parse" or "validation"

    def describe(self) -> str:
        where = f"line {self.line_number}" if self.line_number is not None else "unknown line"
        return f"{self.source} {where}: {self.reason}"
