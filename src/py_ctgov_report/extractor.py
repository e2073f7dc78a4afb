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
"""Provides a class to extract a typed trial model from a results document."""

import logging

from lxml import etree as ET

from .exceptions import UnexpectedShapeError
from .models import (
    SCALAR_CLASS_TITLE,
    AnalyzedResult,
    ClassMeasurements,
    Group,
    MeasurementClass,
    Measure,
    Outcome,
    Period,
    TrialRecord,
    TrialSummary,
)
from .similarity import comparison_key
from .utils import content_hash, natural_sorted

logger = logging.getLogger(__name__)


class TrialExtractor:
    """Extractor for the clinical results section of a ClinicalTrials.gov study.

    The extractor walks the document with XPath and builds a ``TrialRecord``.
    Outcome ids are content hashes salted with the outcome's position in the
    document, so two runs over the same file produce the same ids.
    """

    GROUPS_PATH = "clinical_results/participant_flow/group_list/group"
    PERIODS_PATH = "clinical_results/participant_flow/period_list/period"
    OUTCOMES_PATH = "clinical_results/outcome_list/outcome"

    def __init__(self, root: ET._Element) -> None:
        """Initialize the extractor with the document's root element."""
        self.root = root

    def extract(self) -> TrialRecord:
        """Extract the summary, arms, periods and outcomes of the trial."""
        record = TrialRecord(summary=self._extract_summary())
        logger.info("Trial: %s", record.summary.title)

        record.groups = self._extract_groups()
        record.periods = self._extract_periods()

        for sequence, node in enumerate(self.root.xpath(self.OUTCOMES_PATH), start=1):
            outcome = self._extract_outcome(node, sequence)
            record.outcomes[outcome.id] = outcome

            for class_id, class_title in outcome.classes.items():
                record.classes.setdefault(
                    class_id, MeasurementClass(id=class_id, title=class_title),
                )
                record.class_usage.setdefault(class_id, []).append(outcome.id)

        logger.info(
            "Extracted %d groups, %d periods and %d outcomes.",
            len(record.groups),
            len(record.periods),
            len(record.outcomes),
        )
        return record

    def _extract_summary(self) -> TrialSummary:
        root = self.root
        return TrialSummary(
            title=root.findtext("brief_title", default=""),
            official_title=root.findtext("official_title", default=""),
            url=root.findtext("required_header/url", default=""),
            nct_id=root.findtext("id_info/nct_id", default=""),
            start_date=root.findtext("start_date", default=""),
            completion_date=root.findtext("completion_date", default=""),
        )

    def _extract_groups(self) -> dict[str, Group]:
        groups = {}
        for node in self.root.xpath(self.GROUPS_PATH):
            group = Group(id=node.get("group_id", ""), title=node.findtext("title", default=""))
            groups[group.id] = group
            logger.debug("Group [%s] %s", group.id, group.title)
        return groups

    def _extract_periods(self) -> list[Period]:
        periods = []
        for sequence, node in enumerate(self.root.xpath(self.PERIODS_PATH), start=1):
            # dict keys keep the first occurrence of each referenced arm
            referenced = {
                participants.get("group_id"): True
                for participants in node.xpath(".//milestone//participants")
                if participants.get("group_id")
            }
            period = Period(
                sequence=sequence,
                title=node.findtext("title", default=""),
                group_ids=tuple(natural_sorted(referenced)),
            )
            periods.append(period)
            logger.debug("Period [PERIOD%d] %s", period.sequence, period.title)
        return periods

    def _extract_outcome(self, node: ET._Element, sequence: int) -> Outcome:
        outcome_type = node.findtext("type", default="").lower()
        title = node.findtext("title", default="")
        timeframe = node.findtext("time_frame", default="")

        measure_node = node.find("measure")
        if measure_node is None:
            raise UnexpectedShapeError(f"Outcome '{title}' has no measure block.")

        units = measure_node.findtext("units", default="")
        outcome_id = content_hash("outcome", outcome_type, title, timeframe, str(sequence))

        groups = {
            group.get("group_id", ""): group.findtext("title", default="")
            for group in node.xpath(".//group_list/group")
        }

        classes: dict[str, str] = {}
        raw: list[ClassMeasurements] = []
        keys: list[str] = []
        width = 1
        for class_node in measure_node.xpath(".//class_list/class"):
            class_title = class_node.findtext("title", default="") or SCALAR_CLASS_TITLE
            classes[content_hash("class", class_title)] = class_title

            measurements = ClassMeasurements(class_title=class_title)
            for measurement in class_node.xpath(".//measurement_list/measurement"):
                attributes = dict(measurement.attrib)
                measurements.data[measurement.get("group_id", "")] = attributes
                width = max(width, len(attributes) - 1)
                if not keys:
                    keys = list(attributes)
            raw.append(measurements)

        outcome = Outcome(
            id=outcome_id,
            type=outcome_type,
            title=title,
            description=node.findtext("description", default=""),
            population=node.findtext("population", default=""),
            timeframe=timeframe,
            comparison_key=comparison_key(outcome_type, units, title),
            measure=Measure(
                units=units,
                param=measure_node.findtext("param", default=""),
                dispersion=(measure_node.findtext("dispersion") or "none").lower(),
                width=width,
                keys=keys,
                analyzed=self._extract_analyzed(measure_node, title),
                raw=raw,
            ),
            groups=groups,
            classes=classes,
        )
        logger.debug("Outcome [%s] %s", outcome.type, outcome.title)
        return outcome

    @staticmethod
    def _extract_analyzed(measure_node: ET._Element, title: str) -> AnalyzedResult:
        analyzed_nodes = measure_node.xpath("analyzed_list/analyzed")
        if not analyzed_nodes:
            raise UnexpectedShapeError(
                f"Outcome '{title}' has no analyzed result block."
            )

        analyzed = analyzed_nodes[0]
        return AnalyzedResult(
            units=analyzed.findtext("units", default=""),
            scope=analyzed.findtext("scope", default=""),
            data={
                count.get("group_id", ""): dict(count.attrib)
                for count in analyzed.xpath(".//count")
            },
        )
