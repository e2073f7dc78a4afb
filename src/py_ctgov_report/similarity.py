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
"""String similarity used to find near-duplicate outcomes.

Similarity is a recursive longest-common-substring count: find the longest
run of characters the two strings share, then repeat on the pieces to its
left and to its right. The score is the matched character count relative to
the combined length of both strings.
"""

from difflib import SequenceMatcher


def comparison_key(outcome_type: str, units: str, title: str) -> str:
    """Build the "type/units/title" string outcomes are compared on."""
    return f"{outcome_type.lower()}/{units}/{title}"


def _directed_match_length(first: str, second: str) -> int:
    # autojunk would drop frequent characters from long strings
    matcher = SequenceMatcher(None, first, second, autojunk=False)

    def _match(lo1: int, hi1: int, lo2: int, hi2: int) -> int:
        if lo1 >= hi1 or lo2 >= hi2:
            return 0
        # Earliest run in `first`, then earliest in `second`, wins a tie.
        pos1, pos2, length = matcher.find_longest_match(lo1, hi1, lo2, hi2)
        if length == 0:
            return 0
        return (
            length
            + _match(lo1, pos1, lo2, pos2)
            + _match(pos1 + length, hi1, pos2 + length, hi2)
        )

    return _match(0, len(first), 0, len(second))


def match_length(first: str, second: str) -> int:
    """Count the characters matched between two strings.

    The tie-break on the first longest run depends on argument order, so both
    orders are evaluated and the larger count is kept. This keeps the measure
    symmetric.
    """
    return max(
        _directed_match_length(first, second),
        _directed_match_length(second, first),
    )


def similarity_percent(first: str, second: str) -> float:
    """Similarity of two strings as a percentage in [0, 100]."""
    total = len(first) + len(second)
    if total == 0:
        return 0.0
    return match_length(first, second) * 200 / total
