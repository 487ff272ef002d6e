"""
Client for the workout REST API.

The API stores finished workouts in a document store.  liftlog only
creates workouts (completion records) and lists them for the history
view; every other CRUD route is left to other clients.
"""

import logging
from typing import Any

import httpx

from ..core.config import DEFAULT_API_BASE_URL, DEFAULT_API_TIMEOUT_SECONDS, WORKOUTS_ENDPOINT
from ..core.errors import PersistenceUnavailable
from ..core.models import CompletionRecord
from .serializers import completion_record_to_payload

logger = logging.getLogger(__name__)


def normalize_document(raw: dict[str, Any]) -> dict[str, Any]:
    """Map the document store's ``_id`` to a string ``id``."""
    doc = dict(raw)
    doc_id = doc.pop("_id", None)
    if doc.get("id") is None and doc_id is not None:
        doc["id"] = str(doc_id)
    elif doc.get("id") is not None:
        doc["id"] = str(doc["id"])
    return doc


class WorkoutApiClient:
    """Synchronous httpx client for the /workouts collection."""

    def __init__(
        self,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout: float = DEFAULT_API_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: API root, e.g. http://localhost:8000/api
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "WorkoutApiClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, f"/{endpoint}", **kwargs)
        except httpx.HTTPError as e:
            logger.warning("API %s %s failed: %s", method, endpoint, e)
            raise PersistenceUnavailable(f"API {method} to {endpoint} failed: {e}") from e
        if response.is_error:
            logger.warning("API %s %s returned %s", method, endpoint, response.status_code)
            raise PersistenceUnavailable(
                f"API {method} to {endpoint} failed: {response.status_code} {response.text}"
            )
        return response

    def add_workout(self, record: CompletionRecord) -> dict[str, Any]:
        """
        Create a workout from a completion record.

        Returns:
            The stored workout document, with ``id`` normalised

        Raises:
            PersistenceUnavailable: On transport errors or non-2xx responses
        """
        response = self._request("POST", WORKOUTS_ENDPOINT, json=completion_record_to_payload(record))
        logger.info("Workout saved via API")
        try:
            body = response.json()
        except ValueError:
            return {}
        return normalize_document(body) if isinstance(body, dict) else {}

    def list_workouts(self) -> list[dict[str, Any]]:
        """
        Fetch all stored workouts.

        Raises:
            PersistenceUnavailable: On transport errors, non-2xx responses or
                a body that is not a JSON list
        """
        response = self._request("GET", WORKOUTS_ENDPOINT)
        try:
            body = response.json()
        except ValueError as e:
            raise PersistenceUnavailable(f"API returned invalid JSON: {e}") from e
        if not isinstance(body, list):
            raise PersistenceUnavailable("API returned an unexpected workouts payload")
        return [normalize_document(doc) for doc in body if isinstance(doc, dict)]
