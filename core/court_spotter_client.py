# =============================================================================
# core/court_spotter_client.py  -  HTTP Client for the Court Spotter API
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Talks to the two Court Spotter endpoints this project needs:
#     - GET /api/padel-clubs            → the club directory
#     - GET /api/court-availabilities   → bookable slots for a time window
#   and turns their JSON into the dataclasses from core/models.py.
#
# ERROR CONTRACT:
#   - Transport problems and non-2xx answers surface as httpx.HTTPError
#     (httpx.TimeoutException for timeouts).
#   - A body that is not JSON, or JSON of the wrong shape, raises
#     MalformedResponseError.
#   - A body that is literally `null` returns None.
#   Classifying these into user-facing messages is the handler's job.
#
# CONNECTION POOLING:
#   One instance wraps one httpx.AsyncClient; create it once and share it
#   across tool calls.  Nothing else in the instance changes after __init__.
# =============================================================================

import logging
from decimal import Decimal
from typing import Any, Optional, Sequence

import httpx

from core import config
from core.models import AvailabilityRecord, ClubDirectoryEntry, MalformedResponseError

logger = logging.getLogger(__name__)

PADEL_CLUBS_PATH = "api/padel-clubs"
COURT_AVAILABILITIES_PATH = "api/court-availabilities"

DEFAULT_HEADERS: dict[str, str] = {
    "User-Agent": "CourtSpotterMcp/0.1",
    "Accept": "application/json",
}


class CourtSpotterClient:
    """Async client for the Court Spotter aggregation API."""

    def __init__(
        self,
        base_url: str = config.COURT_SPOTTER_BASE_URL,
        timeout: float = config.HTTP_TIMEOUT_SECONDS,
        connect_retries: int = config.HTTP_CONNECT_RETRIES,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=DEFAULT_HEADERS,
            timeout=timeout,
            transport=transport or httpx.AsyncHTTPTransport(retries=connect_retries),
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "CourtSpotterClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ── /api/padel-clubs ─────────────────────────────────────────────────

    async def get_padel_clubs(self) -> Optional[list[ClubDirectoryEntry]]:
        """Fetch the full club directory."""
        payload = await self._get_json(PADEL_CLUBS_PATH)
        if payload is None:
            return None
        clubs = _list_field(payload, "clubs")
        return [ClubDirectoryEntry.from_api(item) for item in clubs]

    # ── /api/court-availabilities ────────────────────────────────────────

    async def get_court_availabilities(
        self, params: Sequence[tuple[str, Any]]
    ) -> Optional[list[AvailabilityRecord]]:
        """Fetch availability records matching the query parameters.

        `params` is a sequence of (name, value) pairs so that repeated
        parameters (durations, clubIds) survive as repeated query keys.
        """
        payload = await self._get_json(COURT_AVAILABILITIES_PATH, params=list(params))
        if payload is None:
            return None
        records = _list_field(payload, "courtAvailabilities")
        return [AvailabilityRecord.from_api(item) for item in records]

    async def _get_json(self, path: str, params: Optional[list[tuple[str, Any]]] = None) -> Any:
        logger.debug("GET %s params=%s", path, params)
        response = await self._client.get(path, params=params)
        response.raise_for_status()
        try:
            # Prices are decoded straight to Decimal, never through float.
            return response.json(parse_float=Decimal)
        except (ValueError, RecursionError) as exc:
            raise MalformedResponseError(f"Response from {path} is not valid JSON") from exc


def _list_field(payload: Any, name: str) -> list:
    if not isinstance(payload, dict):
        raise MalformedResponseError(f"Expected a JSON object, got {type(payload).__name__}")
    items = payload.get(name)
    if items is None:
        return []
    if not isinstance(items, list):
        raise MalformedResponseError(f"Field {name!r} is not a list")
    return items
