"""Template-based French narrative for the consolidated survey report."""
from __future__ import annotations

from typing import List

from src.reporting.formatting import format_number, format_percent
from src.reporting.metrics import compute_summary_metrics
from src.survey.dataset import SurveyDataset


def build_summary_narrative(dataset: SurveyDataset) -> str:
    """Return up to four sentences describing the dominant answers.

    A sentence is skipped when the series it needs is empty, so the result
    may be an empty string for an empty dataset.
    """

    metrics = compute_summary_metrics(dataset)
    sentences: List[str] = []

    zone = metrics.zones.top
    if zone is not None:
        sentences.append(
            f"La zone {zone.name} concentre la plus grande part des répondants "
            f"({format_number(zone.value)} réponses, soit {format_percent(metrics.zones.top_share)})."
        )

    reason = metrics.visit_reason.top
    if reason is not None:
        sentence = (
            f"Le principal motif de visite est « {reason.name} » "
            f"({format_percent(metrics.visit_reason.top_share)} des réponses)"
        )
        frequency = metrics.frequency.top
        if frequency is not None:
            sentence += (
                f", et la fréquence la plus citée est « {frequency.name} » "
                f"({format_percent(metrics.frequency.top_share)})"
            )
        sentences.append(sentence + ".")

    department = metrics.preferred_department.top
    if department is not None:
        sentences.append(
            f"Le rayon préféré des clients est {department.name} "
            f"({format_percent(metrics.preferred_department.top_share)})."
        )

    if metrics.has_satisfaction:
        sentences.append(
            f"Au total, {format_number(metrics.satisfied_count)} clients se déclarent "
            f"satisfaits ou très satisfaits, soit {format_percent(metrics.satisfied_share)} des avis exprimés."
        )

    return " ".join(sentences)
