"""Test configuration for local imports and shared CSV fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
CORE_PATH = PROJECT_ROOT / "packages" / "core"

if str(CORE_PATH) not in sys.path:
    sys.path.insert(0, str(CORE_PATH))


MATCH_HEADER = (
    "name,matched,convo,last_reply,specified,native_american,southeast_asian,"
    "black_african_descent,east_asian,hispanic_latino,middle_eastern,"
    "pacific_islander,south_asian,white_caucasian,other"
)

GENERAL_HEADER = (
    "county,white_alone,black_african_american_alone,american_indian_alaska_native_alone,"
    "asian_alone,native_hawaiian_pacific_islander_alone,some_other_race_alone,"
    "two_or_more_races,hispanic_latino"
)

HISPANIC_HEADER = (
    "county,white_hispanic,black_african_american_hispanic,"
    "american_indian_alaska_native_hispanic,asian_hispanic,"
    "native_hawaiian_pacific_islander_hispanic,some_other_race_hispanic,"
    "two_or_more_races_hispanic"
)

ETHNICITY_ORDER = [
    "native_american", "southeast_asian", "black_african_descent", "east_asian",
    "hispanic_latino", "middle_eastern", "pacific_islander", "south_asian",
    "white_caucasian", "other",
]


def match_row(name, matched=1, convo=0, last_reply="None", specified=1, flags=()):
    """Build one match log line; ``flags`` names the ethnicity columns set to 1."""
    indicators = ["1" if column in flags else "0" for column in ETHNICITY_ORDER]
    return ",".join([name, str(matched), str(convo), last_reply, str(specified)] + indicators)


@pytest.fixture
def write_csv(tmp_path):
    """Write a header plus lines to a file under tmp_path and return its path."""

    def _write(filename, header, lines):
        path = tmp_path / filename
        path.write_text("\n".join([header] + list(lines)) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture
def census_files(write_csv):
    """General population: 60% White, 40% Black. Hispanic subpopulation is all White."""
    general = write_csv(
        "demographics.csv",
        GENERAL_HEADER,
        ["Travis,600,400,0,0,0,0,0,0"],
    )
    hispanic = write_csv(
        "hispanic_demographics.csv",
        HISPANIC_HEADER,
        ["Travis,10,0,0,0,0,0,0"],
    )
    return general, hispanic
