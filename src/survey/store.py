import logging
import threading
from typing import Any, Dict, List, Optional

from src.exceptions import DatasetValidationError
from src.survey.dataset import (
    COMPARISON_SERIES_KEY,
    DATASET_KEYS,
    SURVEY_DATA,
    SurveyDataset,
)


class DatasetStore:
    """A thread-safe holder for the published survey dataset.

    Readers always get a complete, immutable :class:`SurveyDataset` snapshot.
    Writers never mutate that snapshot; they publish a replacement.
    """

    def __init__(self, initial: Optional[SurveyDataset] = None):
        """Create a new :class:`DatasetStore`.

        Args:
            initial: Dataset published at start-up and restored by
                :py:meth:`reset`.  Defaults to :data:`SURVEY_DATA`.
        """
        self._initial = initial if initial is not None else SURVEY_DATA
        self._current = self._initial
        self._version = 0
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def current(self) -> SurveyDataset:
        """Return the dataset snapshot currently published."""
        with self._lock:
            return self._current

    @property
    def version(self) -> int:
        """Monotonic counter bumped on every publish (0 at start-up)."""
        with self._lock:
            return self._version

    def publish(self, dataset: SurveyDataset) -> None:
        """Atomically replace the published dataset with *dataset*."""
        if not isinstance(dataset, SurveyDataset):
            raise TypeError(f"Expected SurveyDataset, got {type(dataset).__name__}.")
        with self._lock:
            self._current = dataset
            self._version += 1
            version = self._version
        self._logger.info("dataset_published", extra={"dataset_version": version})

    def reset(self) -> SurveyDataset:
        """Publish the initial dataset again and return it."""
        self.publish(self._initial)
        return self._initial

    def editor(self) -> "DatasetEditor":
        """Return an editor working on a private copy of the current dataset."""
        return DatasetEditor(self)


def _coerce_count(raw: Any) -> int:
    """Convert editor input to a count; blank or non-numeric input becomes 0."""
    if raw is None:
        return 0
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return int(raw)
    text = str(raw).strip().replace(",", ".")
    if not text:
        return 0
    try:
        return int(float(text))
    except ValueError:
        return 0


class DatasetEditor:
    """Private working copy of the dataset with an explicit save step.

    Edits are applied to plain dict rows and only become visible to the rest
    of the system when :py:meth:`save` publishes a validated
    :class:`SurveyDataset` through the owning :class:`DatasetStore`.
    """

    def __init__(self, store: DatasetStore):
        self._store = store
        self._working: Dict[str, List[Dict[str, Any]]] = store.current().to_dict()
        self._logger = logging.getLogger(__name__)

    def rows(self, key: str) -> List[Dict[str, Any]]:
        """Return a copy of the working rows for *key*."""
        self._check_key(key)
        return [dict(row) for row in self._working[key]]

    def update_simple(
        self,
        key: str,
        index: int,
        *,
        name: Optional[str] = None,
        value: Any = None,
    ) -> None:
        """Change the label and/or count of row *index* in simple series *key*."""
        self._check_key(key)
        if key == COMPARISON_SERIES_KEY:
            raise DatasetValidationError(
                f"'{key}' is a comparison series; use update_comparison().", field=key
            )
        row = self._row(key, index)
        if name is not None:
            row["name"] = name
        if value is not None:
            row["value"] = _coerce_count(value)

    def update_comparison(
        self,
        index: int,
        *,
        positive: Any = None,
        negative: Any = None,
    ) -> None:
        """Change the positive and/or negative count of comparison row *index*."""
        row = self._row(COMPARISON_SERIES_KEY, index)
        if positive is not None:
            row["positive"] = _coerce_count(positive)
        if negative is not None:
            row["negative"] = _coerce_count(negative)

    def build(self) -> SurveyDataset:
        """Validate the working copy and return it as a dataset (unpublished)."""
        return SurveyDataset.from_dict(self._working)

    def save(self) -> SurveyDataset:
        """Validate and publish the working copy.

        Raises
        ------
        DatasetValidationError
            If a row holds an invalid count; nothing is published.
        """
        dataset = self.build()
        self._store.publish(dataset)
        self._logger.info("dataset_saved", extra={"dataset_version": self._store.version})
        return dataset

    def reset(self) -> SurveyDataset:
        """Discard edits and restore the store's initial dataset."""
        dataset = self._store.reset()
        self._working = dataset.to_dict()
        return dataset

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_key(self, key: str) -> None:
        if key not in DATASET_KEYS:
            raise DatasetValidationError(f"Unknown dataset series '{key}'.", field=key)

    def _row(self, key: str, index: int) -> Dict[str, Any]:
        rows = self._working[key]
        if not 0 <= index < len(rows):
            raise DatasetValidationError(
                f"{key}[{index}] does not exist ({len(rows)} row(s)).", field=f"{key}[{index}]"
            )
        return rows[index]
