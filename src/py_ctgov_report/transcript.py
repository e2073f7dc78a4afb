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
"""Human-readable listings of an extracted trial, printed by the CLI."""

import json

from .models import Outcome, TrialRecord
from .registry import RenderGroupRegistry
from .utils import natural_sorted


def format_trial(trial: TrialRecord) -> str:
    """Title, arms and periods of a trial."""
    lines = [f"Trial: {trial.summary.title}", "Groups:"]
    lines += [f"  [{group.id}] {group.title}" for group in trial.groups.values()]
    lines += ["", "Periods:"]
    for period in trial.periods:
        lines.append(f"  [PERIOD{period.sequence}] {period.title}")
        for group_id in period.group_ids:
            group = trial.groups.get(group_id)
            lines.append(f"    + {group.title if group else group_id}")
    lines.append("")
    return "\n".join(lines)


def format_outcome(outcome: Outcome, registry: RenderGroupRegistry, outcomes: dict[str, Outcome]) -> str:
    lines = [
        f"  [{outcome.type:>9}] {outcome.title}",
        f"{'timeframe':>14}: {outcome.timeframe}",
        f"{'units':>14}: {outcome.measure.units}",
        f"{'param':>14}: {outcome.measure.param}",
        f"{'dispersion':>14}: {outcome.measure.dispersion}",
        "",
    ]
    lines += [f"    + {title}" for title in outcome.groups.values()]
    lines.append("")
    lines += [f"    - {title}" for title in outcome.classes.values()]
    lines.append("")

    group = registry.group_of(outcome.id)
    if group is not None:
        lines += ["    Render with:", f"      group: {group.id}"]
        titles = natural_sorted(outcomes[member].title for member in group.outcome_ids)
        lines += [f"      {title}" for title in titles]
        lines.append("")
    return "\n".join(lines)


def format_outcomes(trial: TrialRecord, registry: RenderGroupRegistry) -> str:
    lines = [f"Outcomes ({len(trial.outcomes)}):"]
    lines += [
        format_outcome(outcome, registry, trial.outcomes)
        for outcome in trial.outcomes.values()
    ]
    return "\n".join(lines)


def dump_outcomes(trial: TrialRecord) -> str:
    """The full outcome map as indented JSON, for debugging."""
    return json.dumps(
        {outcome_id: outcome.model_dump() for outcome_id, outcome in trial.outcomes.items()},
        indent=2,
    )
