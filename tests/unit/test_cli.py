import shutil

import openpyxl
import pytest
from typer.testing import CliRunner

from py_ctgov_report.cli import app, output_path_for

pytestmark = pytest.mark.unit

runner = CliRunner()


@pytest.fixture
def trial_file(sample_path, tmp_path):
    """A copy of the sample document, so the workbook lands in tmp_path."""
    target = tmp_path / sample_path.name
    shutil.copy(sample_path, target)
    return target


def test_output_path_appends_extension(tmp_path):
    assert output_path_for(tmp_path / "NCT01.xml") == tmp_path / "NCT01.xml.xlsx"


def test_no_arguments_prints_usage():
    """Tests that running without an input prints usage and exits cleanly."""
    result = runner.invoke(app, [])

    assert result.exit_code == 0
    assert "Usage" in result.output


def test_missing_input_file(tmp_path):
    result = runner.invoke(app, [str(tmp_path / "missing.xml")])

    assert result.exit_code == 1
    assert "does not exist" in result.output


def test_malformed_input_file(tmp_path):
    """Tests that a syntax error is reported with its diagnostics and no workbook is written."""
    broken = tmp_path / "broken.xml"
    broken.write_text("<clinical_study>\n  <brief_title>Unclosed\n</clinical_study>\n")

    result = runner.invoke(app, [str(broken)])

    assert result.exit_code == 1
    assert "not valid XML" in result.output
    assert "Fatal Error" in result.output
    assert "  Line: " in result.output
    assert not output_path_for(broken).exists()


def test_unexpected_document_structure(tmp_path):
    document = tmp_path / "shape.xml"
    document.write_text(
        "<clinical_study><clinical_results><outcome_list><outcome>"
        "<type>Primary</type><title>Weight</title>"
        "</outcome></outcome_list></clinical_results></clinical_study>"
    )

    result = runner.invoke(app, [str(document)])

    assert result.exit_code == 1
    assert "Unexpected document structure" in result.output
    assert not output_path_for(document).exists()


def test_invalid_threshold(trial_file):
    result = runner.invoke(app, [str(trial_file), "--similarity-threshold", "150"])

    assert result.exit_code == 2
    assert "Invalid configuration" in result.output


def test_run_writes_workbook(trial_file):
    """Tests the full run: transcript on stdout and a workbook next to the input."""
    result = runner.invoke(app, [str(trial_file)])

    assert result.exit_code == 0, result.output
    assert f"Successfully opened {trial_file}" in result.output
    assert "Trial: Drug A Versus Placebo in Hypertension" in result.output
    assert "Outcomes (5):" in result.output
    assert "Saving to disk" in result.output

    output = output_path_for(trial_file)
    assert output.exists()
    assert openpyxl.load_workbook(output).sheetnames == [
        "Summary",
        "Render Group 1",
        "Render Group 2",
    ]


def test_options_override_defaults(trial_file):
    """Tests that an unreachable threshold leaves one sheet per outcome."""
    result = runner.invoke(
        app,
        [
            str(trial_file),
            "--similarity-threshold",
            "100",
            "--class-usage-threshold",
            "10",
        ],
    )

    assert result.exit_code == 0, result.output
    workbook = openpyxl.load_workbook(output_path_for(trial_file))
    assert len(workbook.sheetnames) == 6


def test_debug_dumps_outcomes(trial_file):
    result = runner.invoke(app, [str(trial_file), "--debug"])

    assert result.exit_code == 0, result.output
    assert '"comparison_key": "primary/mmHg/' in result.output


def test_unreadable_input_path(tmp_path):
    """Tests that a directory given as input is reported, not raised."""
    result = runner.invoke(app, [str(tmp_path)])

    assert result.exit_code == 1
    assert "could not be read" in result.output
    assert not isinstance(result.exception, OSError)


@pytest.mark.parametrize("content", ["- 70\n", "similarity_threshold: [70\n"])
def test_invalid_config_file(trial_file, tmp_path, content):
    """Tests that a malformed YAML config exits like any other invalid setting."""
    config_file = tmp_path / "config.yaml"
    config_file.write_text(content)

    result = runner.invoke(app, [str(trial_file), "--config", str(config_file)])

    assert result.exit_code == 2
    assert "Invalid configuration" in result.output
    assert not output_path_for(trial_file).exists()


def test_success_reported_once(trial_file):
    result = runner.invoke(app, [str(trial_file)])

    assert result.exit_code == 0, result.output
    assert result.output.count("Successfully opened") == 1
