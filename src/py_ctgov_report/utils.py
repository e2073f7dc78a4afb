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
"""Utility functions for the application."""

import hashlib
import re
from collections.abc import Iterable

_DIGITS = re.compile(r"(\d+)")


def natural_sort_key(value: str) -> tuple:
    """Sort key that orders embedded numbers numerically ("P2" before "P10")."""
    return tuple(
        (0, int(part), part) if part.isdigit() else (1, 0, part)
        for part in _DIGITS.split(value)
        if part
    )


def natural_sorted(values: Iterable[str]) -> list[str]:
    return sorted(values, key=natural_sort_key)


def content_hash(prefix: str, *parts: str) -> str:
    """Build a stable identifier from the lower-cased, dash-joined parts."""
    digest = hashlib.sha256("-".join(parts).lower().encode("utf-8")).hexdigest()
    return f"{prefix}-{digest}"
