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
"""Defines the abstract base class for outcome matchers."""

import abc
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..engine import ClusteringEngine


class BaseMatcher(abc.ABC):
    """Abstract Base Class for all outcome matchers.

    A matcher scans the engine's outcomes and calls the engine's registry
    ``associate`` for every set of outcomes it decides belong together. Matchers
    run one after another and never concurrently, since ``associate`` mutates
    the shared registry.
    """

    @abc.abstractmethod
    def apply(self, engine: "ClusteringEngine") -> int:
        """Associate qualifying outcomes in the engine's registry.

        Args:
            engine: The engine owning the outcomes, settings and registry.

        Returns:
            The number of ``associate`` calls made.

        """
        raise NotImplementedError
