"""Derived metrics computed from a :class:`SurveyDataset` snapshot.

Nothing here is stored: every value is recomputed per request from the
dataset the caller passes in, so the numbers always match what is displayed.
"""
from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from src.survey.dataset import SimpleDataPoint, SurveyDataset

__all__ = [
    "SeriesSummary",
    "SummaryMetrics",
    "series_total",
    "compute_top_entry",
    "is_satisfied_label",
    "count_satisfied",
    "compute_summary_metrics",
]

# Compared after lower-casing, accent removal and whitespace collapsing
_SATISFIED_LABELS = frozenset({"satisfait", "satisfaits", "tres satisfait", "tres satisfaits"})


def series_total(series: Iterable[SimpleDataPoint] | None) -> int:
    """Sum of values in *series*, floored to 1 so it can divide safely."""
    return sum(point.value for point in series or ()) or 1


def compute_top_entry(series: Sequence[SimpleDataPoint] | None) -> Optional[SimpleDataPoint]:
    """Return the entry with the highest value; the first one wins ties."""
    top: Optional[SimpleDataPoint] = None
    for point in series or ():
        if top is None or point.value > top.value:
            top = point
    return top


def _normalise_label(label: str) -> str:
    decomposed = unicodedata.normalize("NFKD", label)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return " ".join(stripped.lower().split())


def is_satisfied_label(label: str) -> bool:
    """Return *True* only for ``Satisfait`` and ``Très satisfait`` (any case or accents).

    Qualified labels such as ``Moyennement satisfait``, ``Pas du tout
    satisfait`` or ``Insatisfait`` are not counted as satisfied customers.
    """
    return _normalise_label(label) in _SATISFIED_LABELS


def count_satisfied(series: Iterable[SimpleDataPoint] | None) -> int:
    """Sum the values of every satisfied label in *series*."""
    return sum(point.value for point in series or () if is_satisfied_label(point.name))


@dataclass(frozen=True, slots=True)
class SeriesSummary:
    """Dominant entry of one series and the series total (floored to 1)."""

    top: Optional[SimpleDataPoint]
    total: int

    @property
    def top_share(self) -> float:
        if self.top is None:
            return 0.0
        return self.top.value / self.total * 100


@dataclass(frozen=True, slots=True)
class SummaryMetrics:
    """Bundle of indicators used by the summary table and narrative."""

    zones: SeriesSummary
    visit_reason: SeriesSummary
    frequency: SeriesSummary
    preferred_department: SeriesSummary
    satisfaction_total: int
    satisfied_count: int
    has_satisfaction: bool

    @property
    def satisfied_share(self) -> float:
        return self.satisfied_count / self.satisfaction_total * 100


def _summarise(series: Sequence[SimpleDataPoint]) -> SeriesSummary:
    return SeriesSummary(top=compute_top_entry(series), total=series_total(series))


def compute_summary_metrics(dataset: SurveyDataset) -> SummaryMetrics:
    """Compute the summary bundle for *dataset*."""
    satisfaction = dataset.series("satisfaction")
    return SummaryMetrics(
        zones=_summarise(dataset.series("zones")),
        visit_reason=_summarise(dataset.series("visitReason")),
        frequency=_summarise(dataset.series("frequency")),
        preferred_department=_summarise(dataset.series("preferredDepartment")),
        satisfaction_total=series_total(satisfaction),
        satisfied_count=count_satisfied(satisfaction),
        has_satisfaction=bool(satisfaction),
    )
