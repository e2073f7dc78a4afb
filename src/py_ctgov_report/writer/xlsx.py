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
"""Provides an Excel workbook writer built on openpyxl."""

import logging
import math
from collections.abc import Iterable, Mapping
from pathlib import Path

import openpyxl
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.utils.cell import range_boundaries
from openpyxl.worksheet.worksheet import Worksheet

from ..models import Outcome, RenderGroup, TrialSummary
from .base import BaseReportWriter

logger = logging.getLogger(__name__)

_THIN = Side(style="thin")
_BOX = Border(left=_THIN, right=_THIN, top=_THIN, bottom=_THIN)
_CENTER = Alignment(horizontal="center", vertical="center", wrap_text=True)

STYLES = {
    "title": {"font": Font(bold=True, size=16)},
    "subtitle": {"font": Font(italic=True, size=11, color="595959")},
    "keyvalue": {"font": Font(bold=True), "alignment": Alignment(horizontal="left")},
    "rendergroup": {"font": Font(bold=True), "alignment": _CENTER},
    "box": {"border": _BOX},
    "outcome": {"font": Font(size=11)},
    "header": {
        "font": Font(bold=True, color="FFFFFF"),
        "fill": PatternFill(start_color="2F5496", end_color="2F5496", fill_type="solid"),
        "alignment": _CENTER,
    },
    "headerunits": {"font": Font(italic=True), "alignment": _CENTER},
    "group": {
        "font": Font(bold=True),
        "fill": PatternFill(start_color="D9E1F2", end_color="D9E1F2", fill_type="solid"),
        "alignment": _CENTER,
    },
    "metric": {"font": Font(italic=True, size=9), "alignment": _CENTER},
    "metricvalue": {"alignment": Alignment(horizontal="center")},
    "class": {"font": Font(bold=True), "alignment": Alignment(vertical="center", wrap_text=True)},
    "arclass": {"font": Font(bold=True, italic=True), "alignment": Alignment(vertical="center")},
    "analyzedresult": {"font": Font(italic=True), "alignment": _CENTER},
}

ANALYZED_RESULT_LABEL = "Analyzed Result"


def _apply_style(ws: Worksheet, cell_range: str, name: str) -> None:
    min_col, min_row, max_col, max_row = range_boundaries(cell_range)
    for row in ws.iter_rows(min_row=min_row, max_row=max_row, min_col=min_col, max_col=max_col):
        for cell in row:
            for attribute, value in STYLES[name].items():
                setattr(cell, attribute, value)


def _merge(ws: Worksheet, cell_range: str) -> None:
    min_col, min_row, max_col, max_row = range_boundaries(cell_range)
    if (min_col, min_row) != (max_col, max_row):
        ws.merge_cells(cell_range)


def _cell_value(value: str):
    """Store numeric strings as numbers so the workbook can compute with them."""
    for cast in (int, float):
        try:
            number = cast(value)
        except (TypeError, ValueError):
            continue
        if math.isfinite(number):
            return number
    return value


def _metric_label(key: str) -> str:
    return key.replace("_", " ").title()


def units_label(outcome: Outcome) -> str:
    """E.g. "Mean, as mmHg, with standard deviation"."""
    label = outcome.measure.param
    if outcome.measure.units:
        label += f", as {outcome.measure.units}"
    if outcome.measure.dispersion:
        label += f", with {outcome.measure.dispersion}"
    return label


class XlsxReportWriter(BaseReportWriter):
    """Writes one summary sheet plus one sheet per render group.

    Each render group sheet lists its outcomes side by side: one column block
    per outcome, one sub-block per arm, one column per reported metric, and
    one row per measurement class.
    """

    SUMMARY_SHEET = "Summary"
    TOP_ROW = 5
    HEADER_SIZE = 6
    FIRST_DATA_COLUMN = 3

    def __init__(self) -> None:
        self.workbook: openpyxl.Workbook | None = None

    def build(
        self,
        summary: TrialSummary,
        render_groups: Iterable[RenderGroup],
        outcomes: Mapping[str, Outcome],
    ) -> None:
        self.workbook = openpyxl.Workbook()
        ws = self.workbook.active
        ws.title = self.SUMMARY_SHEET
        self._write_summary(ws, summary)

        row = 9
        for index, group in enumerate(render_groups, start=1):
            sheet_name = f"Render Group {index}"
            self._write_render_group(sheet_name, group, outcomes)
            if not group.outcome_ids:
                continue

            start_row = row
            for outcome_id in group.outcome_ids:
                ws[f"B{row}"] = outcomes[outcome_id].title
                row += 1
            end_row = row - 1

            ws[f"H{start_row}"] = sheet_name
            _apply_style(ws, f"H{start_row}", "rendergroup")
            _apply_style(ws, f"B{start_row}:H{end_row}", "box")
            _merge(ws, f"H{start_row}:H{end_row}")

    def _write_summary(self, ws: Worksheet, summary: TrialSummary) -> None:
        ws["B2"] = summary.title
        _apply_style(ws, "B2:Z2", "title")
        ws["B3"] = summary.url
        if summary.url:
            ws["B3"].hyperlink = summary.url
        _apply_style(ws, "B3:Z3", "subtitle")

        # Dates stay text; the registry publishes them as "Month Year"
        ws["B5"], ws["C5"] = "NCT ID", summary.nct_id
        ws["B6"], ws["C6"] = "Started", summary.start_date
        ws["B7"], ws["C7"] = "Completed", summary.completion_date

        ws.column_dimensions["A"].width = 6
        ws.column_dimensions["B"].width = 14
        for column in range(3, 13):
            ws.column_dimensions[get_column_letter(column)].width = 20

        _apply_style(ws, "C5:C7", "keyvalue")
        for row in (5, 6, 7):
            _merge(ws, f"C{row}:F{row}")

    def _write_render_group(
        self, sheet_name: str, group: RenderGroup, outcomes: Mapping[str, Outcome],
    ) -> None:
        ws = self.workbook.create_sheet(sheet_name)
        ws.column_dimensions["A"].width = 6
        ws.column_dimensions["B"].width = 24
        ws.freeze_panes = "C1"
        for column in range(3, 13):
            ws.column_dimensions[get_column_letter(column)].width = 14

        ws["B2"] = sheet_name
        _apply_style(ws, "B2:Z2", "title")
        ws["B3"] = "Grouped Outcomes"
        _apply_style(ws, "B3:Z3", "subtitle")

        data_top = self.TOP_ROW + len(group.outcome_ids)
        header_row = data_top + 2
        units_row = data_top + 3
        group_row = data_top + 4
        metric_row = data_top + 5

        # Analyzed result takes two rows above the classes
        analyzed_start = data_top + self.HEADER_SIZE
        analyzed_end = analyzed_start + 1
        ws[f"B{analyzed_start}"] = ANALYZED_RESULT_LABEL
        _apply_style(ws, f"B{analyzed_start}:B{analyzed_end}", "arclass")
        _merge(ws, f"B{analyzed_start}:B{analyzed_end}")

        class_rows: dict[str, int] = {}
        row = analyzed_end + 1
        for class_title in group.classes:
            if class_title:
                ws[f"B{row}"] = class_title
                class_rows[class_title] = row
            row += 1
        first_class_row, last_class_row = analyzed_start, row - 1
        _apply_style(ws, f"B{first_class_row}:B{last_class_row}", "class")

        column = self.FIRST_DATA_COLUMN
        for outcome_row, outcome_id in enumerate(group.outcome_ids, start=self.TOP_ROW):
            outcome = outcomes[outcome_id]
            group_width = outcome.measure.width
            block_width = max(len(outcome.groups), 1) * group_width
            start_col = get_column_letter(column)
            end_col = get_column_letter(column + block_width - 1)

            min_width = 28 if group_width == 1 else 14
            for index in range(column, column + block_width):
                ws.column_dimensions[get_column_letter(index)].width = min_width

            ws[f"B{outcome_row}"] = outcome.title
            _apply_style(ws, f"B{outcome_row}:Z{outcome_row}", "outcome")

            ws[f"{start_col}{header_row}"] = outcome.title
            _apply_style(ws, f"{start_col}{header_row}:{end_col}{header_row}", "header")
            _merge(ws, f"{start_col}{header_row}:{end_col}{header_row}")

            ws[f"{start_col}{units_row}"] = units_label(outcome)
            _apply_style(ws, f"{start_col}{units_row}:{end_col}{units_row}", "headerunits")
            _merge(ws, f"{start_col}{units_row}:{end_col}{units_row}")
            _apply_style(ws, f"{start_col}{header_row}:{end_col}{units_row}", "box")

            group_columns = self._write_arms(
                ws, outcome, column, group_row, metric_row, first_class_row, last_class_row,
            )
            self._write_analyzed(ws, outcome, group_columns, analyzed_start, analyzed_end)
            self._write_measurements(ws, outcome, group_columns, class_rows)

            column += block_width

        logger.debug("Wrote sheet %s with %d outcome(s)", sheet_name, len(group.outcome_ids))

    @staticmethod
    def _write_arms(
        ws: Worksheet,
        outcome: Outcome,
        column: int,
        group_row: int,
        metric_row: int,
        first_class_row: int,
        last_class_row: int,
    ) -> dict[str, int]:
        """Write the arm headers and metric labels; return each arm's first column."""
        group_width = outcome.measure.width
        group_columns = {}
        for group_id, group_title in outcome.groups.items():
            start_col = get_column_letter(column)
            end_col = get_column_letter(column + group_width - 1)

            ws[f"{start_col}{group_row}"] = group_title
            _apply_style(ws, f"{start_col}{group_row}:{end_col}{group_row}", "group")
            _merge(ws, f"{start_col}{group_row}:{end_col}{group_row}")
            group_columns[group_id] = column

            labels = [key for key in outcome.measure.keys if key != "group_id"]
            for offset, key in enumerate(labels):
                cell = ws.cell(row=metric_row, column=column + offset, value=_metric_label(key))
                for attribute, value in STYLES["metric"].items():
                    setattr(cell, attribute, value)

            _apply_style(ws, f"{start_col}{metric_row}:{end_col}{metric_row}", "box")
            value_range = f"{start_col}{first_class_row}:{end_col}{last_class_row}"
            _apply_style(ws, value_range, "box")
            _apply_style(ws, value_range, "metricvalue")

            column += group_width
        return group_columns

    @staticmethod
    def _write_analyzed(
        ws: Worksheet,
        outcome: Outcome,
        group_columns: dict[str, int],
        analyzed_start: int,
        analyzed_end: int,
    ) -> None:
        analyzed = outcome.measure.analyzed
        if analyzed is None:
            return

        group_width = outcome.measure.width
        for group_id, count in analyzed.data.items():
            if group_id not in group_columns:
                continue
            start_col = get_column_letter(group_columns[group_id])
            end_col = get_column_letter(group_columns[group_id] + group_width - 1)

            ws[f"{start_col}{analyzed_start}"] = analyzed.units
            ws[f"{start_col}{analyzed_end}"] = _cell_value(count.get("value", ""))
            _apply_style(ws, f"{start_col}{analyzed_start}:{end_col}{analyzed_end}", "analyzedresult")
            _apply_style(ws, f"{start_col}{analyzed_start}:{end_col}{analyzed_end}", "box")
            _merge(ws, f"{start_col}{analyzed_start}:{end_col}{analyzed_start}")
            _merge(ws, f"{start_col}{analyzed_end}:{end_col}{analyzed_end}")

    @staticmethod
    def _write_measurements(
        ws: Worksheet,
        outcome: Outcome,
        group_columns: dict[str, int],
        class_rows: dict[str, int],
    ) -> None:
        for class_measurements in outcome.measure.raw:
            row = class_rows.get(class_measurements.class_title)
            if row is None:
                continue
            for group_id, attributes in class_measurements.data.items():
                if group_id not in group_columns:
                    continue
                values = [value for key, value in attributes.items() if key != "group_id"]
                for offset, value in enumerate(values):
                    ws.cell(row=row, column=group_columns[group_id] + offset, value=_cell_value(value))

    def save(self, path: str | Path) -> None:
        if self.workbook is None:
            msg = "Nothing to save. Call build() before save()."
            raise RuntimeError(msg)
        self.workbook.save(path)
        logger.info("Saved workbook to %s", path)
