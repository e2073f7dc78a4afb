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
"""Errors raised while loading and extracting a trial results document."""

from .models import XmlDiagnostic


class CtgovReportError(Exception):
    """Base class for all errors raised by this package."""


class InputNotFoundError(CtgovReportError):
    """The input document does not exist."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Supplied trial data file '{path}' does not exist.")


class MalformedDocumentError(CtgovReportError):
    """The input document is not well-formed XML.

    Carries one diagnostic per syntax error reported by the parser.
    """

    def __init__(self, path: str, diagnostics: list[XmlDiagnostic]) -> None:
        self.path = path
        self.diagnostics = diagnostics
        super().__init__(
            f"Supplied input file '{path}' is not valid XML "
            f"({len(diagnostics)} error(s))."
        )


class UnexpectedShapeError(CtgovReportError):
    """The document parsed but an expected substructure is missing."""


class DocumentReadError(CtgovReportError):
    """The input path exists but could not be read as a file."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"Supplied trial data file '{path}' could not be read: {reason}")


class ConfigurationError(CtgovReportError):
    """The YAML configuration file is not a valid mapping of settings."""
