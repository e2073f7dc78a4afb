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
"""Defines the Pydantic data models for the application."""

from pydantic import BaseModel, ConfigDict, Field

SCALAR_CLASS_TITLE = "Scalar"
BASELINE_CLASS_TITLE = "Baseline"


class XmlDiagnostic(BaseModel):
    """A single syntax error reported while parsing the input document."""

    level: int = Field(..., description="1 = warning, 2 = error, 3 = fatal.")
    code: int = 0
    line: int
    column: int
    message: str
    filename: str | None = None


class TrialSummary(BaseModel):
    """Top-level descriptive fields of a trial."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    official_title: str = ""
    url: str = ""
    nct_id: str = ""
    start_date: str = ""
    completion_date: str = ""


class Group(BaseModel):
    """A trial arm as listed in the participant flow."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str


class Period(BaseModel):
    """A participant flow period and the arms it references."""

    model_config = ConfigDict(frozen=True)

    sequence: int
    title: str
    group_ids: tuple[str, ...] = ()


class MeasurementClass(BaseModel):
    """A measurement class, identified by a hash of its lower-cased title."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = SCALAR_CLASS_TITLE


class ClassMeasurements(BaseModel):
    """The raw measurements reported under one class, keyed by group id.

    Each measurement keeps every attribute of the source element in document
    order, including ``group_id``.
    """

    class_title: str
    data: dict[str, dict[str, str]] = Field(default_factory=dict)


class AnalyzedResult(BaseModel):
    """The study-wide analyzed population reported for a measure."""

    units: str = ""
    scope: str = ""
    data: dict[str, dict[str, str]] = Field(default_factory=dict)


class Measure(BaseModel):
    """The measure block of an outcome.

    ``keys`` holds the attribute names of the first measurement encountered;
    later classes are assumed to share that shape.
    """

    units: str = ""
    param: str = ""
    dispersion: str = "none"
    width: int = 1
    keys: list[str] = Field(default_factory=list)
    analyzed: AnalyzedResult | None = None
    raw: list[ClassMeasurements] = Field(default_factory=list)


class Outcome(BaseModel):
    """A reported outcome measure.

    Everything but ``render_group_id`` is fixed at extraction time; the render
    group is assigned by the registry while clustering.
    """

    id: str
    type: str
    title: str
    description: str = ""
    population: str = ""
    timeframe: str = ""
    comparison_key: str
    measure: Measure = Field(default_factory=Measure)
    groups: dict[str, str] = Field(default_factory=dict)
    classes: dict[str, str] = Field(default_factory=dict)
    render_group_id: str | None = None


class RenderGroup(BaseModel):
    """A set of outcomes that are rendered together."""

    id: str
    outcome_ids: list[str] = Field(default_factory=list)
    classes: list[str] = Field(default_factory=list)
    common_units: str | None = None


class TrialRecord(BaseModel):
    """Everything extracted from one trial results document."""

    summary: TrialSummary
    groups: dict[str, Group] = Field(default_factory=dict)
    periods: list[Period] = Field(default_factory=list)
    classes: dict[str, MeasurementClass] = Field(default_factory=dict)
    outcomes: dict[str, Outcome] = Field(default_factory=dict)
    class_usage: dict[str, list[str]] = Field(default_factory=dict)
