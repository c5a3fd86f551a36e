"""Chart marker text protocol.

Enriched answers embed charts as ``[[CHART:<identifier>]]``.  The enrichment
pipeline writes markers and the Slack views read them back, so both sides go
through the helpers below.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional

CHART_MARKER_RE = re.compile(r"\[\[CHART:(\w+)\]\]")
# Capturing variant: re.split keeps the full marker as its own part
_SPLIT_RE = re.compile(r"(\[\[CHART:\w+\]\])")


class ChartId(str, Enum):
    """Every chart the assistant knows how to draw."""

    AGE_GROUPS = "ageGroups"
    ZONES = "zones"
    TRANSPORT = "transport"
    FREQUENCY = "frequency"
    VISIT_REASON = "visitReason"
    COMPETITORS = "competitors"
    CHOICE_REASON = "choiceReason"
    SATISFACTION = "satisfaction"
    PREFERRED_DEPARTMENT = "preferredDepartment"
    NAME_CHANGE_AWARENESS = "nameChangeAwareness"
    EXPERIENCE_CHANGES = "experienceChanges"

    @classmethod
    def parse(cls, identifier: str | None) -> Optional["ChartId"]:
        """Return the matching member, or ``None`` for unknown identifiers."""
        try:
            return cls(identifier)
        except ValueError:
            return None


def chart_tag(identifier: str | ChartId) -> str:
    """Return the marker for *identifier*."""
    value = identifier.value if isinstance(identifier, ChartId) else identifier
    return f"[[CHART:{value}]]"


def split_on_markers(text: str) -> List[str]:
    """Split *text* around markers; ``"".join(result) == text`` always holds."""
    return _SPLIT_RE.split(text or "")


def strip_chart_markers(text: str) -> str:
    """Remove every chart marker from *text*."""
    return CHART_MARKER_RE.sub("", text or "")


@dataclass(frozen=True)
class Segment:
    """Piece of an enriched message: either plain text or one chart marker."""

    text: str
    chart: Optional[str] = None  # raw identifier when this segment is a marker

    @property
    def is_chart(self) -> bool:
        return self.chart is not None


def iter_segments(text: str) -> Iterator[Segment]:
    """Yield the display segments of *text*.

    Whitespace-only text between markers is dropped; the first segment is
    always kept so callers can rely on a leading text part.
    """
    for index, part in enumerate(split_on_markers(text)):
        match = CHART_MARKER_RE.fullmatch(part)
        if match:
            yield Segment(text=part, chart=match.group(1))
            continue
        if not part.strip() and index != 0:
            continue
        yield Segment(text=part)
