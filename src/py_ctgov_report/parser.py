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

"""Loads trial results documents and reports their syntax errors."""

import logging
from pathlib import Path

from lxml import etree as ET

from .exceptions import DocumentReadError, InputNotFoundError, MalformedDocumentError
from .models import XmlDiagnostic

logger = logging.getLogger(__name__)

_LEVEL_LABELS = {1: "Warning", 2: "Error", 3: "Fatal Error"}


def _diagnostics_from_log(error_log) -> list[XmlDiagnostic]:
    return [
        XmlDiagnostic(
            level=entry.level,
            code=entry.type,
            line=entry.line,
            column=entry.column,
            message=entry.message,
            filename=entry.filename or None,
        )
        for entry in error_log
    ]


def load_document(path: str | Path) -> ET._Element:
    """
    Parses a trial results XML document.

    Args:
        path: Location of the document on disk.

    Returns:
        The root element of the parsed document.

    Raises:
        InputNotFoundError: If the file does not exist.
        MalformedDocumentError: If the file is not well-formed XML. Every
            entry of the parser's error log is carried as a diagnostic.
        DocumentReadError: If the path exists but cannot be read, e.g. a
            directory.
    """
    path = Path(path)
    if not path.exists():
        raise InputNotFoundError(str(path))
    if not path.is_file():
        raise DocumentReadError(str(path), "not a regular file")

    parser = ET.XMLParser(recover=False)
    try:
        tree = ET.parse(str(path), parser=parser)
    except ET.XMLSyntaxError as e:
        diagnostics = _diagnostics_from_log(parser.error_log) or _diagnostics_from_log(
            e.error_log,
        )
        if not diagnostics:
            diagnostics = [
                XmlDiagnostic(
                    level=3,
                    code=e.code or 0,
                    line=e.lineno or 0,
                    column=e.offset or 0,
                    message=e.msg,
                    filename=e.filename,
                )
            ]
        raise MalformedDocumentError(str(path), diagnostics) from e
    except OSError as e:
        raise DocumentReadError(str(path), e.strerror or str(e)) from e

    root = tree.getroot()
    logger.debug("Parsed %s, root element <%s>", path, root.tag)
    return root


def format_diagnostic(diagnostic: XmlDiagnostic, source_lines: list[str]) -> str:
    """
    Formats a syntax error as a human-readable block.

    The block shows the offending source line with a caret under the column,
    followed by the severity, code, message and location.
    """
    if 0 < diagnostic.line <= len(source_lines):
        source_line = source_lines[diagnostic.line - 1]
    else:
        source_line = ""

    label = _LEVEL_LABELS.get(diagnostic.level, "Error")
    block = [
        source_line,
        "-" * diagnostic.column + "^",
        f"{label} {diagnostic.code}: {diagnostic.message.strip()}",
        f"  Line: {diagnostic.line}",
        f"  Column: {diagnostic.column}",
    ]
    if diagnostic.filename:
        block.append(f"  File: {diagnostic.filename}")

    return "\n".join(block) + "\n\n" + "-" * 44 + "\n\n"
