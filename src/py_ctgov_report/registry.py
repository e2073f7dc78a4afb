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
"""Keeps track of which outcomes are rendered together."""

import logging
from collections.abc import Iterable, Mapping

from .models import BASELINE_CLASS_TITLE, Outcome, RenderGroup
from .utils import natural_sorted

logger = logging.getLogger(__name__)


class RenderGroupRegistry:
    """The table of render groups plus a pointer from each outcome to its group.

    Groups are only ever created by ``associate``. A new group absorbs every
    group its members previously belonged to, so each outcome is always in at
    most one group and no member is ever dropped.
    """

    def __init__(self, outcomes: Mapping[str, Outcome]) -> None:
        self.outcomes = outcomes
        self.groups: dict[str, RenderGroup] = {}
        self.membership: dict[str, str] = {}
        self._sequence = 0

    def __len__(self) -> int:
        return len(self.groups)

    def __iter__(self):
        return iter(self.groups.values())

    def __contains__(self, group_id: object) -> bool:
        return group_id in self.groups

    def group_of(self, outcome_id: str) -> RenderGroup | None:
        group_id = self.membership.get(outcome_id)
        return self.groups.get(group_id) if group_id else None

    def _next_id(self) -> str:
        self._sequence += 1
        return f"rendergroup-{self._sequence}"

    def associate(
        self, outcome_ids: Iterable[str], common_units: str | None = None,
    ) -> str:
        """Create a render group holding the given outcomes.

        Any group one of the outcomes already belonged to is folded into the
        new group and removed from the registry.

        Args:
            outcome_ids: Ids of the outcomes to render together.
            common_units: Optional units label shared by the outcomes.

        Returns:
            The id of the new render group.
        """
        group = RenderGroup(id=self._next_id())
        self.groups[group.id] = group

        defunct: list[str] = []
        for outcome_id in natural_sorted(outcome_ids):
            previous = self.membership.get(outcome_id)
            if previous and previous != group.id and previous not in defunct:
                defunct.append(previous)
            self._add_member(group, outcome_id)

        for defunct_id in defunct:
            absorbed = self.groups.pop(defunct_id, None)
            if absorbed is None:
                continue
            for outcome_id in absorbed.outcome_ids:
                self._add_member(group, outcome_id)
            # An explicit hint wins, otherwise the first absorbed hint is kept
            if not common_units and not group.common_units and absorbed.common_units:
                group.common_units = absorbed.common_units
            logger.debug("Render group %s absorbed into %s", defunct_id, group.id)

        if BASELINE_CLASS_TITLE in group.classes[1:]:
            group.classes.remove(BASELINE_CLASS_TITLE)
            group.classes.insert(0, BASELINE_CLASS_TITLE)

        if common_units:
            group.common_units = common_units

        logger.debug(
            "Associated %d outcome(s) into %s", len(group.outcome_ids), group.id,
        )
        return group.id

    def _add_member(self, group: RenderGroup, outcome_id: str) -> None:
        if outcome_id not in group.outcome_ids:
            group.outcome_ids.append(outcome_id)
        self.membership[outcome_id] = group.id

        outcome = self.outcomes[outcome_id]
        outcome.render_group_id = group.id
        for class_title in outcome.classes.values():
            if class_title not in group.classes:
                group.classes.append(class_title)
