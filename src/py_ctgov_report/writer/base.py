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
"""Defines the abstract base class for report writers."""

import abc
from collections.abc import Iterable, Mapping
from pathlib import Path

from ..models import Outcome, RenderGroup, TrialSummary


class BaseReportWriter(abc.ABC):
    """Abstract Base Class for all report writers.

    A writer receives the finalized model once clustering is complete: the
    trial summary, the render groups in registry order, and the full outcome
    map. It must not modify any of them.
    """

    @abc.abstractmethod
    def build(
        self,
        summary: TrialSummary,
        render_groups: Iterable[RenderGroup],
        outcomes: Mapping[str, Outcome],
    ) -> None:
        """Lay out the report in memory.

        Args:
            summary: Descriptive fields of the trial.
            render_groups: Render groups in the order they should appear.
            outcomes: Every outcome, keyed by id.

        """
        raise NotImplementedError

    @abc.abstractmethod
    def save(self, path: str | Path) -> None:
        """Write the built report to ``path``."""
        raise NotImplementedError
