"""Survey dataset model.

The dataset is a fixed record of eleven series.  Ten of them are simple
``name → count`` lists; ``experienceChanges`` holds positive/negative splits.
Instances are immutable: editing goes through :mod:`src.survey.store`, which
publishes a whole new :class:`SurveyDataset` on save.

Field names follow the camelCase keys used in chart markers and in the JSON
handed to the language model, so ``dataset.series("zones")`` and
``[[CHART:zones]]`` always agree.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from src.exceptions import DatasetValidationError

logger = logging.getLogger(__name__)

__all__ = [
    "SimpleDataPoint",
    "ComparisonDataPoint",
    "SurveyDataset",
    "SIMPLE_SERIES_KEYS",
    "COMPARISON_SERIES_KEY",
    "DATASET_KEYS",
    "SURVEY_DATA",
]


@dataclass(frozen=True, slots=True)
class SimpleDataPoint:
    """One answer category and its response count."""

    name: str
    value: int

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "value": self.value}


@dataclass(frozen=True, slots=True)
class ComparisonDataPoint:
    """Positive/negative split for one category (Q10 only)."""

    category: str
    positive: int
    negative: int
    label_positive: str
    label_negative: str

    @property
    def total(self) -> int:
        return self.positive + self.negative

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "positive": self.positive,
            "negative": self.negative,
            "labelPositive": self.label_positive,
            "labelNegative": self.label_negative,
        }


SimpleSeries = Tuple[SimpleDataPoint, ...]
ComparisonSeries = Tuple[ComparisonDataPoint, ...]


@dataclass(frozen=True, slots=True)
class SurveyDataset:
    """Immutable snapshot of all survey results."""

    ageGroups: SimpleSeries = field(default_factory=tuple)
    zones: SimpleSeries = field(default_factory=tuple)
    transport: SimpleSeries = field(default_factory=tuple)
    frequency: SimpleSeries = field(default_factory=tuple)
    visitReason: SimpleSeries = field(default_factory=tuple)
    competitors: SimpleSeries = field(default_factory=tuple)
    choiceReason: SimpleSeries = field(default_factory=tuple)
    satisfaction: SimpleSeries = field(default_factory=tuple)
    preferredDepartment: SimpleSeries = field(default_factory=tuple)
    nameChangeAwareness: SimpleSeries = field(default_factory=tuple)
    experienceChanges: ComparisonSeries = field(default_factory=tuple)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    def series(self, key: str) -> tuple:
        """Return the series stored under *key* (empty tuple if unknown)."""
        if key not in DATASET_KEYS:
            return ()
        return getattr(self, key) or ()

    # ------------------------------------------------------------------
    # (De)serialisation
    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        """Return the camelCase, JSON-ready representation."""
        return {key: [point.to_dict() for point in self.series(key)] for key in DATASET_KEYS}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "SurveyDataset":
        """Build a dataset from a JSON-style mapping.

        Missing or ``None`` series become empty tuples.  Unknown keys are
        ignored (logged at debug).  Negative or non-integer counts raise
        :class:`DatasetValidationError`.
        """
        unknown = set(payload) - set(DATASET_KEYS)
        if unknown:
            logger.debug("Ignoring unknown dataset keys: %s", sorted(unknown))

        values: Dict[str, tuple] = {}
        for key in DATASET_KEYS:
            raw = payload.get(key) or ()
            if key == COMPARISON_SERIES_KEY:
                values[key] = tuple(_parse_comparison(key, raw))
            else:
                values[key] = tuple(_parse_simple(key, raw))
        return cls(**values)


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def _parse_count(raw: Any, where: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise DatasetValidationError(f"{where}: count must be a number, got {raw!r}.", field=where)
    if isinstance(raw, float) and not raw.is_integer():
        raise DatasetValidationError(f"{where}: count must be a whole number, got {raw!r}.", field=where)
    count = int(raw)
    if count < 0:
        raise DatasetValidationError(f"{where}: count must not be negative, got {count}.", field=where)
    return count


def _parse_simple(key: str, items: Iterable[Any]) -> Iterable[SimpleDataPoint]:
    for index, item in enumerate(items):
        if isinstance(item, SimpleDataPoint):
            _parse_count(item.value, f"{key}[{index}]")
            yield item
            continue
        where = f"{key}[{index}]"
        if not isinstance(item, Mapping):
            raise DatasetValidationError(f"{where}: expected an object, got {item!r}.", field=where)
        yield SimpleDataPoint(
            name=str(item.get("name", "")),
            value=_parse_count(item.get("value", 0), where),
        )


def _parse_comparison(key: str, items: Iterable[Any]) -> Iterable[ComparisonDataPoint]:
    for index, item in enumerate(items):
        where = f"{key}[{index}]"
        if isinstance(item, ComparisonDataPoint):
            _parse_count(item.positive, where)
            _parse_count(item.negative, where)
            yield item
            continue
        if not isinstance(item, Mapping):
            raise DatasetValidationError(f"{where}: expected an object, got {item!r}.", field=where)
        yield ComparisonDataPoint(
            category=str(item.get("category", "")),
            positive=_parse_count(item.get("positive", 0), where),
            negative=_parse_count(item.get("negative", 0), where),
            label_positive=str(item.get("labelPositive", "")),
            label_negative=str(item.get("labelNegative", "")),
        )


COMPARISON_SERIES_KEY = "experienceChanges"
DATASET_KEYS: Tuple[str, ...] = tuple(f.name for f in fields(SurveyDataset))
SIMPLE_SERIES_KEYS: Tuple[str, ...] = tuple(
    key for key in DATASET_KEYS if key != COMPARISON_SERIES_KEY
)


# Reference survey results, used at start-up and by "reset".
SURVEY_DATA = SurveyDataset.from_dict(
    {
        "ageGroups": [
            {"name": "< 20 ans", "value": 17},
            {"name": "20-30 ans", "value": 185},
            {"name": "30-50 ans", "value": 138},
        ],
        "zones": [
            {"name": "Heron", "value": 23},
            {"name": "Centre Ville", "value": 178},
            {"name": "Haramous", "value": 21},
            {"name": "Gabode", "value": 35},
            {"name": "Balbala", "value": 199},
        ],
        "transport": [
            {"name": "Taxi/Bus", "value": 102},
            {"name": "Vehicule Personnel", "value": 301},
            {"name": "A Pied", "value": 20},
            {"name": "Autre", "value": 0},
        ],
        "frequency": [
            {"name": "Très rarement", "value": 48},
            {"name": "1-3 fois/mois", "value": 97},
            {"name": "1 fois/semaine", "value": 72},
            {"name": "Plusieurs fois/semaine", "value": 199},
        ],
        "visitReason": [
            {"name": "Courses Hypermarche", "value": 123},
            {"name": "Promenade", "value": 78},
            {"name": "Restaurer", "value": 117},
            {"name": "Cinema", "value": 52},
            {"name": "Jeux Enfants", "value": 55},
            {"name": "Autre", "value": 15},
        ],
        "competitors": [
            {"name": "Boutique Quartier", "value": 47},
            {"name": "Cash Center", "value": 45},
            {"name": "Algamil", "value": 70},
            {"name": "Nougaprix", "value": 62},
            {"name": "Napoleon", "value": 37},
            {"name": "Casino Haramous", "value": 71},
            {"name": "Bawadi Mall", "value": 250},
            {"name": "Autre", "value": 25},
        ],
        "choiceReason": [
            {"name": "Proximité", "value": 151},
            {"name": "Choix", "value": 70},
            {"name": "Moins cher", "value": 114},
            {"name": "Produits adaptés", "value": 111},
            {"name": "Promos", "value": 45},
            {"name": "Autre", "value": 15},
        ],
        "satisfaction": [
            {"name": "Pas du tout", "value": 45},
            {"name": "Moyennement", "value": 52},
            {"name": "Satisfait", "value": 228},
            {"name": "Très satisfait", "value": 118},
        ],
        "preferredDepartment": [
            {"name": "Bazar/Non-Alim", "value": 40},
            {"name": "Epicerie", "value": 40},
            {"name": "Boissons", "value": 60},
            {"name": "Beauté/Soin", "value": 45},
            {"name": "Entretien", "value": 35},
            {"name": "Surgelés", "value": 30},
            {"name": "Cremerie", "value": 30},
            {"name": "Fruits/Legumes", "value": 50},
            {"name": "Boucherie", "value": 25},
            {"name": "Cafeteriat", "value": 80},
            {"name": "Autres", "value": 85},
        ],
        "nameChangeAwareness": [
            {"name": "Oui", "value": 187},
            {"name": "Non", "value": 207},
        ],
        "experienceChanges": [
            {"category": "Prix", "positive": 38, "negative": 45, "labelPositive": "+ Cher", "labelNegative": "- Cher"},
            {"category": "Choix", "positive": 35, "negative": 20, "labelPositive": "+ De Choix", "labelNegative": "- De Choix"},
            {"category": "Promos", "positive": 35, "negative": 40, "labelPositive": "+ De Promo", "labelNegative": "- De Promo"},
            {"category": "Ambiance", "positive": 10, "negative": 5, "labelPositive": "+ Ambiance", "labelNegative": "- Ambiance"},
        ],
    }
)
