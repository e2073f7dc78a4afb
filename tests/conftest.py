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

"""Shared fixtures for the test suite."""

from pathlib import Path

import pytest

from py_ctgov_report.models import Outcome, TrialRecord, TrialSummary
from py_ctgov_report.similarity import comparison_key
from py_ctgov_report.utils import content_hash

DATA_DIR = Path(__file__).parent / "data"

SAMPLE_TITLES = {
    "sbp": "Change From Baseline in Systolic Blood Pressure",
    "dbp": "Change From Baseline in Diastolic Blood Pressure",
    "ae": "Number of Participants With Adverse Events",
    "sae": "Number of Participants With Serious Adverse Events",
    "hr": "Heart Rate",
}


@pytest.fixture
def sample_path() -> Path:
    """Path to a small but complete trial results document."""
    return DATA_DIR / "NCT00000001.xml"


def make_outcome(
    outcome_id: str,
    title: str,
    *,
    outcome_type: str = "secondary",
    units: str = "Participants",
    groups: tuple[str, ...] = ("O1", "O2"),
    classes: tuple[str, ...] = ("Scalar",),
    key: str | None = None,
) -> Outcome:
    """Build an outcome directly, without going through a document."""
    return Outcome(
        id=outcome_id,
        type=outcome_type,
        title=title,
        comparison_key=key if key is not None else comparison_key(outcome_type, units, title),
        measure={"units": units},
        groups={group_id: f"Arm {group_id}" for group_id in groups},
        classes={content_hash("class", title): title for title in classes},
    )


def make_trial(*outcomes: Outcome) -> TrialRecord:
    """Wrap outcomes into a trial record with a matching class usage index."""
    trial = TrialRecord(summary=TrialSummary(title="Test Trial"))
    for outcome in outcomes:
        trial.outcomes[outcome.id] = outcome
        for class_id in outcome.classes:
            trial.class_usage.setdefault(class_id, []).append(outcome.id)
    return trial


def assert_partition(registry, outcomes) -> None:
    """Every outcome is in exactly one render group, and groups only hold known outcomes."""
    members = [outcome_id for group in registry for outcome_id in group.outcome_ids]
    assert sorted(members) == sorted(outcomes)
    assert len(members) == len(set(members))
    for group in registry:
        for outcome_id in group.outcome_ids:
            assert outcomes[outcome_id].render_group_id == group.id
