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
"""Command-line entry point: turn a trial results XML file into a workbook."""

import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from py_ctgov_report.config import build_settings
from py_ctgov_report.engine import ClusteringEngine
from py_ctgov_report.exceptions import (
    ConfigurationError,
    DocumentReadError,
    InputNotFoundError,
    MalformedDocumentError,
    UnexpectedShapeError,
)
from py_ctgov_report.extractor import TrialExtractor
from py_ctgov_report.parser import format_diagnostic, load_document
from py_ctgov_report.transcript import dump_outcomes, format_outcomes, format_trial
from py_ctgov_report.writer import XlsxReportWriter

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False)


def output_path_for(input_file: Path) -> Path:
    """The workbook is written next to the input, e.g. ``NCT01.xml.xlsx``."""
    return Path(f"{input_file}.xlsx")


@app.command()
def run(
    ctx: typer.Context,
    input_file: Optional[Path] = typer.Argument(
        None, help="Trial results XML file from ClinicalTrials.gov."
    ),
    config_file: Optional[Path] = typer.Option(
        None, "--config", help="Path to YAML config file."
    ),
    similarity_threshold: Optional[float] = typer.Option(
        None, help="Minimum title similarity (0-100) for grouping outcomes."
    ),
    units_parity: Optional[bool] = typer.Option(
        None, "--units-parity/--no-units-parity", help="Require identical units."
    ),
    groups_parity: Optional[bool] = typer.Option(
        None, "--groups-parity/--no-groups-parity", help="Require identical arms."
    ),
    classes_parity: Optional[bool] = typer.Option(
        None, "--classes-parity/--no-classes-parity", help="Require identical classes."
    ),
    class_usage_threshold: Optional[int] = typer.Option(
        None, help="Shared classes needed to group two outcomes."
    ),
    debug: Optional[bool] = typer.Option(
        None, "--debug/--no-debug", help="Dump the full outcome model."
    ),
):
    """Group near-duplicate outcomes of a trial and write them to a workbook."""
    if input_file is None:
        typer.echo(ctx.get_usage())
        raise typer.Exit()

    try:
        settings = build_settings(
            config_file,
            similarity_threshold=similarity_threshold,
            units_parity_required=units_parity,
            groups_parity_required=groups_parity,
            classes_parity_required=classes_parity,
            common_class_usage_threshold=class_usage_threshold,
            debug=debug,
        )
    except (ValidationError, ConfigurationError) as e:
        typer.echo(f"Invalid configuration: {e}", err=True)
        raise typer.Exit(code=2)

    try:
        root = load_document(input_file)
    except (InputNotFoundError, DocumentReadError) as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)
    except MalformedDocumentError as e:
        typer.echo("Supplied input file is not valid XML and could not be parsed.")
        source_lines = input_file.read_text(errors="replace").splitlines()
        for diagnostic in e.diagnostics:
            typer.echo(format_diagnostic(diagnostic, source_lines), nl=False)
        raise typer.Exit(code=1)

    typer.echo(f"Successfully opened {input_file}\n")

    try:
        trial = TrialExtractor(root).extract()
    except UnexpectedShapeError as e:
        logger.error("Extraction failed: %s", e)
        typer.echo(f"Unexpected document structure: {e}", err=True)
        raise typer.Exit(code=1)

    typer.echo(format_trial(trial))

    typer.echo("Associate similar outcomes...\n")
    registry = ClusteringEngine(trial, settings).run()

    if settings.debug:
        typer.echo(dump_outcomes(trial))

    typer.echo(format_outcomes(trial, registry))

    output_path = output_path_for(input_file)
    typer.echo("Saving to disk")
    writer = XlsxReportWriter()
    writer.build(trial.summary, registry, trial.outcomes)
    writer.save(output_path)
    typer.echo(f"  {output_path}")


def main():
    app()


if __name__ == "__main__":
    main()
