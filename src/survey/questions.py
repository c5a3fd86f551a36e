"""Static registry of survey questions ``Q0``..``Q10``."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple


@dataclass(frozen=True, slots=True)
class QuestionMapping:
    """Link between a question id, its dataset series and its chart."""

    id: str
    text: str
    dataset_key: str
    chart_key: str


QUESTION_MAPPINGS: Tuple[QuestionMapping, ...] = (
    QuestionMapping("Q0", "Répartition des âges", "ageGroups", "ageGroups"),
    QuestionMapping("Q1", "Zone de résidence", "zones", "zones"),
    QuestionMapping("Q2", "Moyen de transport", "transport", "transport"),
    QuestionMapping("Q3", "Fréquence de visite", "frequency", "frequency"),
    QuestionMapping("Q4", "Motif principal de venue", "visitReason", "visitReason"),
    QuestionMapping("Q5", "Magasin le plus fréquenté", "competitors", "competitors"),
    QuestionMapping("Q6", "Raison du choix", "choiceReason", "choiceReason"),
    QuestionMapping("Q7", "Satisfaction de la visite", "satisfaction", "satisfaction"),
    QuestionMapping("Q8", "Rayon préféré", "preferredDepartment", "preferredDepartment"),
    QuestionMapping("Q9", "Changement de nom remarqué", "nameChangeAwareness", "nameChangeAwareness"),
    QuestionMapping("Q10", "Différences d'expérience d'achat", "experienceChanges", "experienceChanges"),
)

# Upper-cased id → mapping
QUESTION_CONFIG_MAP: Dict[str, QuestionMapping] = {
    mapping.id.upper(): mapping for mapping in QUESTION_MAPPINGS
}

# dataset key → mapping (used for chart titles and editor labels)
QUESTIONS_BY_KEY: Dict[str, QuestionMapping] = {
    mapping.dataset_key: mapping for mapping in QUESTION_MAPPINGS
}


def get_question(question_id: str | None) -> Optional[QuestionMapping]:
    """Return the mapping for *question_id* (case-insensitive) or ``None``."""
    if not question_id:
        return None
    return QUESTION_CONFIG_MAP.get(question_id.strip().upper())
