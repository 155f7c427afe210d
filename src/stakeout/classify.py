"""Pass/fail classification of a command run.

Policy, first match wins:

1. A unit-test summary line, ``N tests, N assertions, N failures[, N errors]``.
   Fail when failures + errors > 0, else Pass. The summary is the matched text.
2. Only with ``spec_summaries`` enabled: a spec-runner summary line,
   ``N examples, N failures[, N pending]``. Fail when failures > 0.
3. The command did not finish (no exit status): Unknown.
4. Non-zero exit status: Fail, "Error code N. See the log for details."
5. Otherwise Pass, with the whole output as the summary.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

TEST_SUMMARY = re.compile(
    r"(?P<tests>\d+) tests?, (?P<assertions>\d+) assertions?, (?P<failures>\d+) failures?"
    r"(?:, (?P<errors>\d+) errors?)?"
)

SPEC_SUMMARY = re.compile(
    r"(?P<examples>\d+) examples?, (?P<failures>\d+) failures?"
    r"(?:, (?P<pending>\d+) (?:pending|not implemented))?"
)

UNFINISHED_SUMMARY = "Command did not finish. See the log for details."


class Verdict(Enum):
    """Outcome of a run."""

    PASS = "pass"
    FAIL = "fail"
    UNKNOWN = "unknown"


@dataclass
class Classification:
    """A verdict plus the text shown to the operator."""

    verdict: Verdict
    summary: str
    counts: dict[str, int] = field(default_factory=dict)

    @property
    def passed(self) -> bool:
        return self.verdict is Verdict.PASS


def _counts(match: re.Match[str]) -> dict[str, int]:
    # Missing optional groups count as zero
    return {name: int(value or "0", 10) for name, value in match.groupdict().items()}


class ResultClassifier:
    """Turns captured output and exit status into a Classification."""

    def __init__(self, spec_summaries: bool = False) -> None:
        self.spec_summaries = spec_summaries

    def classify(self, output: str, exit_code: int | None) -> Classification:
        match = TEST_SUMMARY.search(output)
        if match:
            counts = _counts(match)
            failed = counts["failures"] + counts["errors"] > 0
            return Classification(
                Verdict.FAIL if failed else Verdict.PASS, match.group(0), counts
            )

        if self.spec_summaries:
            match = SPEC_SUMMARY.search(output)
            if match:
                counts = _counts(match)
                return Classification(
                    Verdict.FAIL if counts["failures"] > 0 else Verdict.PASS,
                    match.group(0),
                    counts,
                )

        if exit_code is None:
            return Classification(Verdict.UNKNOWN, UNFINISHED_SUMMARY)

        if exit_code != 0:
            return Classification(
                Verdict.FAIL, f"Error code {exit_code}. See the log for details."
            )

        return Classification(Verdict.PASS, output)
