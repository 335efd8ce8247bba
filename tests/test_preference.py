"""Tests for the population-adjusted preference index."""

import logging

import pytest

from preference_index.census_data import build_baseline
from preference_index.exceptions import DegenerateDistributionError
from preference_index.models import (
    CountyHispanicPopulationRecord,
    CountyPopulationRecord,
    Ethnicity,
    Profile,
    Race,
    WhoLastReplied,
)
from preference_index.preference import (
    PreferenceIndexCalculator,
    aggregate_hispanic_subrace_counts,
    aggregate_race_counts,
    compute_preference_index,
)


def make_baseline(general=None, hispanic=None):
    general_values = {
        "white_alone": 0,
        "black_african_american_alone": 0,
        "american_indian_alaska_native_alone": 0,
        "asian_alone": 0,
        "native_hawaiian_pacific_islander_alone": 0,
        "some_other_race_alone": 0,
        "two_or_more_races": 0,
        "hispanic_latino": 0,
    }
    general_values.update(general or {})
    hispanic_values = {
        "white_hispanic": 1,
        "black_african_american_hispanic": 0,
        "american_indian_alaska_native_hispanic": 0,
        "asian_hispanic": 0,
        "native_hawaiian_pacific_islander_hispanic": 0,
        "some_other_race_hispanic": 0,
        "two_or_more_races_hispanic": 0,
    }
    hispanic_values.update(hispanic or {})
    return build_baseline(
        [CountyPopulationRecord(county="Travis", **general_values)],
        [CountyHispanicPopulationRecord(county="Travis", **hispanic_values)],
    )


def make_profiles(ethnicity, n, prefix="p"):
    return [
        Profile(
            name=f"{prefix}{i}",
            matched=True,
            convo=False,
            who_last_replied=WhoLastReplied.NONE,
            ethnicity=ethnicity,
        )
        for i in range(n)
    ]


class TestAggregation:
    """Tests for per-race tallies."""

    def test_race_counts_include_every_race(self):
        counts = aggregate_race_counts(make_profiles(Ethnicity.OTHER, 3))
        assert counts[Race.OTHER] == 3
        assert set(counts) == set(Race)
        assert counts[Race.ASIAN] == 0

    def test_unclassifiable_profiles_are_not_counted(self):
        profiles = make_profiles(Ethnicity.empty(), 2) + make_profiles(Ethnicity.MIDDLE_EASTERN, 2)
        assert sum(aggregate_race_counts(profiles).values()) == 0

    def test_hispanic_subrace_counts(self):
        profiles = (
            make_profiles(Ethnicity.HISPANIC_LATINO, 2, "a")
            + make_profiles(Ethnicity.of(Ethnicity.HISPANIC_LATINO, Ethnicity.BLACK_AFRICAN_DESCENT), 1, "b")
            + make_profiles(Ethnicity.of(Ethnicity.HISPANIC_LATINO, Ethnicity.MIDDLE_EASTERN), 1, "c")
            + make_profiles(Ethnicity.WHITE_CAUCASIAN, 5, "d")
        )
        general = aggregate_race_counts(profiles)
        subraces = aggregate_hispanic_subrace_counts(profiles)

        assert general[Race.HISPANIC] == 4
        assert subraces[Race.OTHER] == 2
        assert subraces[Race.BLACK_AFRICAN] == 1
        assert subraces[Race.WHITE_CAUCASIAN] == 0
        assert Race.HISPANIC not in subraces
        assert sum(subraces.values()) == 3


class TestPreferenceIndex:
    """Tests for PreferenceIndexCalculator."""

    def test_reference_scenario(self):
        baseline = make_baseline({"white_alone": 60, "black_african_american_alone": 40})
        profiles = make_profiles(Ethnicity.WHITE_CAUCASIAN, 12, "w") + make_profiles(Ethnicity.BLACK_AFRICAN_DESCENT, 4, "b")

        ranking = compute_preference_index(profiles, baseline, sample_cutoff=2)

        assert ranking[0].race is Race.WHITE_CAUCASIAN and not ranking[0].hispanic
        assert ranking[0].weight == pytest.approx(2 / 3, abs=1e-3)
        assert ranking[1].race is Race.BLACK_AFRICAN
        assert ranking[1].weight == pytest.approx(1 / 3, abs=1e-3)
        assert sum(p.weight for p in ranking) == pytest.approx(1.0)

    def test_every_entry_is_reported(self):
        baseline = make_baseline({"white_alone": 60, "black_african_american_alone": 40})
        ranking = compute_preference_index(make_profiles(Ethnicity.WHITE_CAUCASIAN, 3), baseline)
        # seven general races (Hispanic excluded) plus seven Hispanic sub-races
        assert len(ranking) == 14
        assert all(p.race is not Race.HISPANIC for p in ranking)

    def test_below_cutoff_is_suppressed(self):
        baseline = make_baseline({"white_alone": 50, "some_other_race_alone": 50})
        profiles = make_profiles(Ethnicity.WHITE_CAUCASIAN, 5, "w") + make_profiles(Ethnicity.OTHER, 1, "o")

        ranking = compute_preference_index(profiles, baseline, sample_cutoff=2)
        other = next(p for p in ranking if p.race is Race.OTHER and not p.hispanic)

        assert other.suppressed
        assert other.weight == 0.0
        assert other.count == 1
        assert ranking[0].weight == pytest.approx(1.0)

    def test_zero_cutoff_scores_single_matches(self):
        baseline = make_baseline({"white_alone": 50, "some_other_race_alone": 50})
        profiles = make_profiles(Ethnicity.WHITE_CAUCASIAN, 3, "w") + make_profiles(Ethnicity.OTHER, 1, "o")

        ranking = compute_preference_index(profiles, baseline, sample_cutoff=0)
        other = next(p for p in ranking if p.race is Race.OTHER and not p.hispanic)

        assert not other.suppressed
        assert other.weight == pytest.approx(0.25)

    def test_nothing_above_cutoff_is_degenerate(self):
        baseline = make_baseline({"white_alone": 60, "black_african_american_alone": 40})
        with pytest.raises(DegenerateDistributionError):
            compute_preference_index(make_profiles(Ethnicity.WHITE_CAUCASIAN, 1), baseline, sample_cutoff=2)

    def test_no_profiles_is_degenerate(self):
        baseline = make_baseline({"white_alone": 1})
        with pytest.raises(DegenerateDistributionError):
            compute_preference_index([], baseline)

    def test_zero_population_share_gets_zero_weight(self, caplog):
        baseline = make_baseline({"white_alone": 100})
        profiles = make_profiles(Ethnicity.WHITE_CAUCASIAN, 4, "w") + make_profiles(Ethnicity.PACIFIC_ISLANDER, 3, "p")

        with caplog.at_level(logging.WARNING, logger="preference_index.preference"):
            ranking = compute_preference_index(profiles, baseline, sample_cutoff=2)

        islander = next(p for p in ranking if p.race is Race.PACIFIC_ISLANDER and not p.hispanic)
        assert islander.weight == 0.0
        assert not islander.suppressed
        assert "zero population share" in caplog.text

    def test_hispanic_double_normalization(self):
        baseline = make_baseline(
            {"white_alone": 50, "hispanic_latino": 50},
            {"white_hispanic": 80, "some_other_race_hispanic": 20},
        )
        general = {race: 0 for race in Race}
        general[Race.WHITE_CAUCASIAN] = 5
        hispanic = {race: 0 for race in Race if race is not Race.HISPANIC}
        hispanic[Race.WHITE_CAUCASIAN] = 4
        hispanic[Race.OTHER] = 2

        ranking = PreferenceIndexCalculator(sample_cutoff=2).compute(general, hispanic, baseline)

        # raw: White 5/0.5 = 10, WhiteHispanic 4/0.4 = 10, OtherHispanic 2/0.1 = 20
        assert ranking[0].label == "OtherHispanic"
        assert ranking[0].weight == pytest.approx(0.5)
        # tie broken non-Hispanic first
        assert ranking[1].label == "WhiteCaucasian"
        assert ranking[2].label == "WhiteCaucasianHispanic"
        assert ranking[1].weight == pytest.approx(ranking[2].weight)

    def test_ties_follow_race_order(self):
        baseline = make_baseline({"white_alone": 50, "black_african_american_alone": 50})
        profiles = make_profiles(Ethnicity.BLACK_AFRICAN_DESCENT, 3, "b") + make_profiles(Ethnicity.WHITE_CAUCASIAN, 3, "w")

        ranking = compute_preference_index(profiles, baseline)

        assert [p.label for p in ranking[:2]] == ["WhiteCaucasian", "BlackAfrican"]
        zero_labels = [p.label for p in ranking[2:]]
        assert zero_labels[:4] == [
            "WhiteCaucasianHispanic",
            "BlackAfricanHispanic",
            "NativeAmerican",
            "NativeAmericanHispanic",
        ]

    def test_negative_cutoff_rejected(self):
        with pytest.raises(ValueError):
            PreferenceIndexCalculator(sample_cutoff=-1)
