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
"""Clusters a trial's outcomes into render groups and builds the report model."""

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from .config import Settings
from .extractor import TrialExtractor
from .matchers import BaseMatcher, ClassUsageCorrelator, TitleSimilarityMatcher
from .models import TrialRecord
from .parser import load_document
from .registry import RenderGroupRegistry

logger = logging.getLogger(__name__)


class ClusteringEngine:
    """Owns the outcome map, class usage index and render group registry of a run.

    ``run`` applies the matchers in order, then puts every outcome that is still
    ungrouped into a group of its own. Afterwards every outcome belongs to
    exactly one render group.
    """

    def __init__(
        self,
        trial: TrialRecord,
        settings: Settings,
        matchers: list[BaseMatcher] | None = None,
    ) -> None:
        self.trial = trial
        self.settings = settings
        self.outcomes = trial.outcomes
        self.class_usage = trial.class_usage
        self.registry = RenderGroupRegistry(self.outcomes)
        self.matchers = matchers if matchers is not None else [
            TitleSimilarityMatcher(),
            ClassUsageCorrelator(),
        ]

    def run(self) -> RenderGroupRegistry:
        logger.info("Associating similar outcomes...")
        for matcher in self.matchers:
            calls = matcher.apply(self)
            logger.info("%s made %d association(s)", type(matcher).__name__, calls)

        singles = 0
        for outcome in self.outcomes.values():
            if outcome.render_group_id is None:
                self.registry.associate([outcome.id])
                singles += 1

        logger.info(
            "Clustered %d outcomes into %d render groups (%d single).",
            len(self.outcomes),
            len(self.registry),
            singles,
        )
        return self.registry


class ReportResult(BaseModel):
    """The finalized model handed to a report writer."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    trial: TrialRecord
    registry: RenderGroupRegistry


def build_report(path: str | Path, settings: Settings) -> ReportResult:
    """Load, extract and cluster a trial results document."""
    root = load_document(path)
    trial = TrialExtractor(root).extract()
    registry = ClusteringEngine(trial, settings).run()
    return ReportResult(trial=trial, registry=registry)
