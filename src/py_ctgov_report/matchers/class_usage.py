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
"""Groups outcomes that report under the same measurement classes."""

import logging
from typing import TYPE_CHECKING

from .base import BaseMatcher

if TYPE_CHECKING:
    from ..engine import ClusteringEngine

logger = logging.getLogger(__name__)


class ClassUsageCorrelator(BaseMatcher):
    """Associates outcome pairs that share enough measurement classes.

    Classes whose outcomes already sit together in a single render group are
    ignored, so outcomes grouped by title do not keep pulling each other in.
    """

    def count_shared_usage(self, engine: "ClusteringEngine") -> dict[str, dict[str, int]]:
        """Count, for every outcome, the classes it shares with each other outcome.

        The registry is only read, so calling this twice without associating in
        between yields the same counters.

        Returns:
            A mapping outcome id -> partner outcome id -> shared class count.
            Outcomes appear in the order they are first seen in the class usage
            index.
        """
        shared: dict[str, dict[str, int]] = {}
        for class_id, outcome_ids in engine.class_usage.items():
            if len(outcome_ids) < 2:
                continue

            render_groups = {engine.registry.membership.get(outcome_id) for outcome_id in outcome_ids}
            if len(render_groups) == 1 and None not in render_groups:
                logger.debug("Class %s already fully matched", class_id)
                continue

            for outcome_id in outcome_ids:
                partners = shared.setdefault(outcome_id, {})
                for partner_id in outcome_ids:
                    if partner_id != outcome_id:
                        partners[partner_id] = partners.get(partner_id, 0) + 1
        return shared

    def apply(self, engine: "ClusteringEngine") -> int:
        threshold = engine.settings.common_class_usage_threshold
        calls = 0
        for outcome_id, partners in self.count_shared_usage(engine).items():
            for partner_id, count in partners.items():
                if count >= threshold:
                    logger.debug(
                        "%s shares %d classes with %s", outcome_id, count, partner_id,
                    )
                    engine.registry.associate([outcome_id, partner_id])
                    calls += 1
        return calls
