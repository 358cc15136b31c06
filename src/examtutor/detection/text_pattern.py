"""
Deterministic question boundary detection from per-page OCR text.
"""

import re
from dataclasses import dataclass, field

from examtutor.schema import Page, QuestionBoundary, normalize_question_number

__all__ = ["QUESTION_PATTERNS", "match_question_marker", "TextPatternDetector"]

# Ordered: earlier patterns take priority for a line.
QUESTION_PATTERNS: list[re.Pattern[str]] = [
    # "Question 3", "Q3", "Q.3", "q 2a"
    re.compile(r"^\s*(?:question|q)\s*\.?\s*(\d+[a-z]?)\b", re.IGNORECASE),
    # bare leading number followed by a delimiter: "1 Calculate", "2. Solve", "3a) Find"
    re.compile(r"^\s*(\d{1,2}[a-z]?)(?=[\s.):])", re.IGNORECASE),
]


def match_question_marker(line: str) -> str | None:
    """
    Return the normalized question label if `line` starts with a question marker.

    Args:
        line (str): One line of OCR text.

    Returns:
        str | None: Normalized label of the first matching pattern, or None.
    """
    line = line.rstrip()
    for pattern in QUESTION_PATTERNS:
        match = pattern.match(line)
        if match:
            label = normalize_question_number(match.group(1))
            if label:
                return label
    return None


@dataclass
class _Run:
    label: str
    pages: set[int] = field(default_factory=set)
    lines: list[str] = field(default_factory=list)

    def add(self, page_number: int, line: str | None = None) -> None:
        self.pages.add(page_number)
        if line is not None and line.strip():
            self.lines.append(line.strip())


class TextPatternDetector:
    """
    Scans OCR text line by line for leading question markers.

    A run begins at a marker line and takes every following line, across pages,
    until the next marker. Pages without a marker attach to the open run. A page
    with text that arrives before any marker opens an implicit question "1".
    Runs sharing a label are folded into the first boundary with that label.

    Attributes:
        scan_window (int | None): Only the first N lines of each page are checked
            for markers; remaining lines still accumulate into the open run.
    """

    def __init__(self, scan_window: int | None = None):
        self.scan_window = scan_window

    def _marker(self, index: int, line: str) -> str | None:
        if self.scan_window is not None and index >= self.scan_window:
            return None
        return match_question_marker(line)

    def detect(self, pages: list[Page]) -> list[QuestionBoundary]:
        runs: dict[str, _Run] = {}
        current: _Run | None = None

        for page in sorted(pages, key=lambda p: p.page_number):
            lines = page.ocr_text.splitlines()
            markers = [self._marker(i, line) for i, line in enumerate(lines)]

            if not any(markers):
                if current is None:
                    if not page.ocr_text.strip():
                        continue
                    current = runs.setdefault("1", _Run(label="1"))
                current.add(page.page_number)

            for line, label in zip(lines, markers):
                if label is not None:
                    current = runs.setdefault(label, _Run(label=label))
                    current.add(page.page_number, line)
                elif current is not None and line.strip():
                    current.add(page.page_number, line)

        boundaries: list[QuestionBoundary] = []
        for run in runs.values():
            boundaries.append(
                QuestionBoundary(
                    question_number=run.label,
                    start_page=min(run.pages),
                    end_page=max(run.pages),
                    full_text="\n".join(run.lines),
                )
            )
        return boundaries
