# Copyright 2025 Gowtham Rao <rao@ohdsi.org>
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Tests for the title similarity matcher and the class usage correlator."""

import pytest

from conftest import assert_partition, make_outcome, make_trial
from py_ctgov_report.config import Settings
from py_ctgov_report.engine import ClusteringEngine
from py_ctgov_report.matchers import (
    BaseMatcher,
    ClassUsageCorrelator,
    TitleSimilarityMatcher,
)


def _engine(*outcomes, **settings):
    return ClusteringEngine(make_trial(*outcomes), Settings(**settings), matchers=[])


def test_base_matcher_is_abstract():
    with pytest.raises(TypeError):
        BaseMatcher()


# Title similarity


def test_near_duplicate_titles_are_grouped():
    """
    Tests that two near-identical outcomes end up in one group with their units.
    """
    engine = _engine(
        make_outcome("a", "Number of Participants With Adverse Events"),
        make_outcome("b", "Number of Participants With Serious Adverse Events"),
    )

    calls = TitleSimilarityMatcher().apply(engine)

    # Each outcome finds the other once
    assert calls == 2
    assert len(engine.registry) == 1
    group = next(iter(engine.registry))
    assert sorted(group.outcome_ids) == ["a", "b"]
    assert group.common_units == "Participants"


def test_dissimilar_titles_are_not_grouped():
    engine = _engine(
        make_outcome("a", "Number of Participants With Adverse Events"),
        make_outcome("b", "Time to First Hospitalization for Heart Failure"),
    )

    assert TitleSimilarityMatcher().apply(engine) == 0
    assert len(engine.registry) == 0


def test_threshold_is_inclusive():
    """
    Tests that a pair scoring exactly the threshold is grouped. "abcd" and
    "abef" share "ab": 2 * 2 / 8 = 50%.
    """
    pair = (make_outcome("a", "A", key="abcd"), make_outcome("b", "B", key="abef"))

    at_threshold = _engine(*pair, similarity_threshold=50)
    TitleSimilarityMatcher().apply(at_threshold)
    assert len(at_threshold.registry) == 1

    pair = (make_outcome("a", "A", key="abcd"), make_outcome("b", "B", key="abef"))
    above_threshold = _engine(*pair, similarity_threshold=50.0001)
    TitleSimilarityMatcher().apply(above_threshold)
    assert len(above_threshold.registry) == 0


@pytest.mark.parametrize(
    "other, parity_setting",
    [
        (dict(units="mmHg"), "units_parity_required"),
        (dict(groups=("O1", "O2", "O3")), "groups_parity_required"),
        (dict(classes=("Scalar", "Week 4")), "classes_parity_required"),
    ],
)
def test_parity_filters(other, parity_setting):
    """
    Tests that each parity filter rejects a similar title with a mismatched
    attribute, and that switching it off lets the pair through.
    """
    title = "Number of Participants With Adverse Events"
    key = "secondary/x/" + title

    strict = _engine(make_outcome("a", title, key=key), make_outcome("b", title, key=key, **other))
    TitleSimilarityMatcher().apply(strict)
    assert len(strict.registry) == 0

    relaxed = _engine(
        make_outcome("a", title, key=key),
        make_outcome("b", title, key=key, **other),
        **{parity_setting: False},
    )
    TitleSimilarityMatcher().apply(relaxed)
    assert len(relaxed.registry) == 1


def test_parity_ignores_order_of_arms_and_classes():
    title = "Change From Baseline in Weight"
    engine = _engine(
        make_outcome("a", title, groups=("O1", "O2"), classes=("Baseline", "Week 4")),
        make_outcome("b", title, groups=("O2", "O1"), classes=("Week 4", "Baseline")),
    )

    TitleSimilarityMatcher().apply(engine)

    assert len(engine.registry) == 1


def test_outcome_is_not_its_own_candidate():
    matcher = TitleSimilarityMatcher()
    outcome = make_outcome("a", "Weight")

    assert not matcher.is_candidate(outcome, outcome, Settings())


def test_similarity_is_cached_per_pair():
    matcher = TitleSimilarityMatcher()
    first, second = make_outcome("a", "Weight"), make_outcome("b", "Height")

    score = matcher.similarity(first, second)

    assert matcher.similarity(second, first) == score
    assert len(matcher._scores) == 1


# Class usage


@pytest.fixture
def correlated_outcomes():
    """Three outcomes with unrelated titles and units that all report the same visits."""
    visits = ("Baseline", "Week 4", "Week 8")
    return (
        make_outcome("a", "Systolic Blood Pressure", units="mmHg", classes=visits),
        make_outcome("b", "Heart Rate", units="beats per minute", classes=visits),
        make_outcome("c", "Body Weight", units="kg", classes=visits),
    )


def test_shared_classes_group_outcomes(correlated_outcomes):
    """
    Tests that outcomes sharing at least the threshold of classes are grouped
    even when their titles and units differ.
    """
    engine = _engine(*correlated_outcomes)

    calls = ClassUsageCorrelator().apply(engine)

    assert calls == 6
    assert len(engine.registry) == 1
    group = next(iter(engine.registry))
    assert sorted(group.outcome_ids) == ["a", "b", "c"]
    assert group.classes == ["Baseline", "Week 4", "Week 8"]
    assert group.common_units is None


def test_count_shared_usage(correlated_outcomes):
    engine = _engine(*correlated_outcomes)

    counts = ClassUsageCorrelator().count_shared_usage(engine)

    assert counts == {
        "a": {"b": 3, "c": 3},
        "b": {"a": 3, "c": 3},
        "c": {"a": 3, "b": 3},
    }


def test_count_shared_usage_is_repeatable(correlated_outcomes):
    engine = _engine(*correlated_outcomes)
    correlator = ClassUsageCorrelator()

    assert correlator.count_shared_usage(engine) == correlator.count_shared_usage(engine)


@pytest.mark.parametrize("threshold, expected_groups", [(1, 1), (2, 0)])
def test_single_shared_class_respects_threshold(threshold, expected_groups):
    """
    Tests that two outcomes sharing only "Scalar" are grouped at threshold 1
    but not at the default of 2.
    """
    engine = _engine(
        make_outcome("a", "Weight", units="kg"),
        make_outcome("b", "Height", units="cm"),
        common_class_usage_threshold=threshold,
    )

    ClassUsageCorrelator().apply(engine)

    assert len(engine.registry) == expected_groups


def test_fully_matched_classes_are_skipped(correlated_outcomes):
    """
    Tests that a class whose outcomes already share one render group adds
    nothing to the counters.
    """
    engine = _engine(*correlated_outcomes)
    engine.registry.associate(["a", "b", "c"])

    assert ClassUsageCorrelator().count_shared_usage(engine) == {}
    assert ClassUsageCorrelator().apply(engine) == 0


def test_partially_grouped_classes_are_counted(correlated_outcomes):
    engine = _engine(*correlated_outcomes)
    engine.registry.associate(["a", "b"])

    ClassUsageCorrelator().apply(engine)

    assert len(engine.registry) == 1
    assert_partition(engine.registry, engine.outcomes)
