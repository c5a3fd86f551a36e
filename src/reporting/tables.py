"""Markdown tables built straight from the dataset.

Every table is deterministic: same dataset in, same text out.  Builders
return an empty string when there is nothing to show and let the caller
decide on a placeholder.
"""
from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from src.reporting.formatting import format_number, format_percent
from src.reporting.metrics import SeriesSummary, compute_summary_metrics, series_total
from src.survey.dataset import (
    COMPARISON_SERIES_KEY,
    SIMPLE_SERIES_KEYS,
    ComparisonDataPoint,
    SimpleDataPoint,
    SurveyDataset,
)
from src.survey.questions import QUESTIONS_BY_KEY

NO_DATA_PLACEHOLDER = "_Aucune donnée disponible._"


def _row(cells: Iterable[str]) -> str:
    return "| " + " | ".join(cells) + " |"


def _table(header: Sequence[str], align: Sequence[str], rows: List[List[str]]) -> str:
    lines = [_row(header), _row(align)]
    lines.extend(_row(cells) for cells in rows)
    return "\n".join(lines)


def build_simple_table(series: Sequence[SimpleDataPoint] | None) -> str:
    """Return ``| Réponse | Effectif | Part |`` rows in series order."""
    if not series:
        return ""
    total = series_total(series)
    rows = [
        [point.name, format_number(point.value), format_percent(point.value / total * 100)]
        for point in series
    ]
    return _table(("Réponse", "Effectif", "Part"), ("---", "---:", "---:"), rows)


def build_comparison_table(series: Sequence[ComparisonDataPoint] | None) -> str:
    """Return one row per category with positive and negative shares."""
    if not series:
        return ""
    rows = []
    for point in series:
        total = point.total or 1
        rows.append(
            [
                point.category,
                f"{format_number(point.positive)} ({format_percent(point.positive / total * 100)})",
                f"{format_number(point.negative)} ({format_percent(point.negative / total * 100)})",
            ]
        )
    return _table(("Catégorie", "Positif", "Négatif"), ("---", "---:", "---:"), rows)


def build_table_for_key(dataset: SurveyDataset, key: str) -> str:
    """Build the table matching dataset series *key* (``""`` if unknown)."""
    if key == COMPARISON_SERIES_KEY:
        return build_comparison_table(dataset.series(key))
    if key in SIMPLE_SERIES_KEYS:
        return build_simple_table(dataset.series(key))
    return ""


def _source(key: str) -> str:
    mapping = QUESTIONS_BY_KEY[key]
    return f"{mapping.id} – {mapping.text}"


def _indicator_row(label: str, summary: SeriesSummary, key: str) -> Optional[List[str]]:
    if summary.top is None:
        return None
    return [
        label,
        f"{summary.top.name} ({format_number(summary.top.value)})",
        format_percent(summary.top_share),
        _source(key),
    ]


def build_summary_table(dataset: SurveyDataset) -> str:
    """Return the five-indicator report table, or ``""`` when nothing qualifies."""
    metrics = compute_summary_metrics(dataset)
    candidates = [
        _indicator_row("Zone dominante", metrics.zones, "zones"),
        _indicator_row("Motif de visite dominant", metrics.visit_reason, "visitReason"),
        _indicator_row("Fréquence dominante", metrics.frequency, "frequency"),
        _indicator_row("Rayon préféré", metrics.preferred_department, "preferredDepartment"),
    ]
    if metrics.has_satisfaction:
        candidates.append(
            [
                "Clients satisfaits",
                format_number(metrics.satisfied_count),
                format_percent(metrics.satisfied_share),
                _source("satisfaction"),
            ]
        )
    rows = [row for row in candidates if row is not None]
    if not rows:
        return ""
    return _table(
        ("Indicateur", "Valeur", "Part", "Source"), ("---", "---", "---:", "---"), rows
    )
