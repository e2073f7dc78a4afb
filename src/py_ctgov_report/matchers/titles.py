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
"""Groups outcomes whose titles are near-duplicates."""

import logging
from typing import TYPE_CHECKING

from ..config import Settings
from ..models import Outcome
from ..similarity import similarity_percent
from .base import BaseMatcher

if TYPE_CHECKING:
    from ..engine import ClusteringEngine

logger = logging.getLogger(__name__)


class TitleSimilarityMatcher(BaseMatcher):
    """Associates outcomes whose comparison keys are similar enough.

    Candidates must also pass the parity filters enabled in the settings:
    identical units, the same set of arms, the same set of classes.
    """

    def __init__(self) -> None:
        self._scores: dict[frozenset[str], float] = {}

    def similarity(self, first: Outcome, second: Outcome) -> float:
        """Similarity of two outcomes' comparison keys, cached per pair."""
        pair = frozenset((first.id, second.id))
        if pair not in self._scores:
            self._scores[pair] = similarity_percent(
                first.comparison_key, second.comparison_key,
            )
        return self._scores[pair]

    def is_candidate(self, outcome: Outcome, other: Outcome, settings: Settings) -> bool:
        """Whether ``other`` may be rendered with ``outcome``."""
        if other.id == outcome.id:
            return False
        if self.similarity(outcome, other) < settings.similarity_threshold:
            return False
        if settings.units_parity_required and other.measure.units != outcome.measure.units:
            return False
        if settings.groups_parity_required and other.groups.keys() != outcome.groups.keys():
            return False
        if settings.classes_parity_required and other.classes.keys() != outcome.classes.keys():
            return False
        return True

    def apply(self, engine: "ClusteringEngine") -> int:
        calls = 0
        outcomes = engine.outcomes
        for outcome in outcomes.values():
            candidates = [outcome.id]
            candidates.extend(
                other.id
                for other in outcomes.values()
                if self.is_candidate(outcome, other, engine.settings)
            )
            if len(candidates) > 1:
                logger.debug(
                    "%s matches %d other outcome(s) by title",
                    outcome.title,
                    len(candidates) - 1,
                )
                engine.registry.associate(candidates, common_units=outcome.measure.units)
                calls += 1
        return calls
