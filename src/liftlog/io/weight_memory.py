"""
Per-exercise last-used load.

Backed by a single JSON object {exercise_id: weight}.  A missing or
corrupt blob reads as an empty mapping; reads never raise.
"""

import json
import logging

from ..core.config import EXERCISE_WEIGHTS_KEY
from .local_store import LocalStore

logger = logging.getLogger(__name__)


class WeightMemory:
    """Suggests the next load from the last one recorded for an exercise."""

    def __init__(self, store: LocalStore, key: str = EXERCISE_WEIGHTS_KEY):
        self.store = store
        self.key = key

    def _load(self) -> dict[str, float]:
        text = self.store.get(self.key)
        if not text:
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning("Ignoring corrupt exercise weights: %s", e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring exercise weights: expected an object")
            return {}
        weights: dict[str, float] = {}
        for exercise_id, value in data.items():
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                weights[str(exercise_id)] = float(value)
        return weights

    def all_weights(self) -> dict[str, float]:
        """Return a copy of the whole mapping."""
        return dict(self._load())

    def get_last_weight(self, exercise_id: str) -> float | None:
        """Return the last load used for exercise_id, or None."""
        return self._load().get(exercise_id)

    def set_last_weight(self, exercise_id: str, weight: float) -> None:
        """
        Record weight as the last load for exercise_id.

        Raises:
            ValueError: If weight is negative
            OSError: If the blob cannot be written
        """
        if weight < 0:
            raise ValueError("weight must be non-negative")
        weights = self._load()
        weights[exercise_id] = float(weight)
        self.store.set(self.key, json.dumps(weights, indent=2, sort_keys=True))
