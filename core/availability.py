# =============================================================================
# core/availability.py  -  Court Availability Search
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Answers "which padel courts are free between these two dates?" by
#   combining the two Court Spotter endpoints:
#
#     1. Validate the caller's dates and the 14-day booking horizon
#     2. Fetch the club directory (ids + timezones)
#     3. Build the availability query (window + advisory filters)
#     4. Fetch the availabilities
#     5. Re-express every start time in its club's local time
#
#   Every outcome, good or bad, comes back as an AvailabilitiesSearchResult.
#   Nothing raised by the HTTP layer escapes `find_court_availabilities`,
#   except cancellation by the host, which is left to propagate.
#
# TIME HANDLING:
#   - Caller dates are calendar days in the default (reference) timezone.
#   - The upstream API speaks UTC instants.
#   - Results are naive wall-clock times at each club.
#   The current time comes from an injected `clock` so tests can pin "today".
# =============================================================================

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Callable, Iterable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import httpx

from core import config
from core.court_spotter_client import CourtSpotterClient
from core.models import (
    AvailabilitiesSearchResult,
    AvailabilityRecord,
    ClubDirectoryEntry,
    CourtType,
    MalformedResponseError,
    NormalizedAvailability,
    QueryFilters,
)

logger = logging.getLogger(__name__)

ALLOWED_DURATIONS = (60, 90, 120)

INVALID_DATE_FORMAT = "Invalid date format. Please use YYYY-MM-DD."
RANGE_EXCEEDED = "Requested date range exceeds the maximum allowed range of {end} days."
CLUB_LOOKUP_FAILED = "Failed to retrieve club information for timezone conversion"
NETWORK_ERROR = (
    "Network error: Unable to connect to the court availability service. "
    "Please check your internet connection and try again."
)
TIMEOUT_ERROR = (
    "Request timed out. The server took too long to respond. "
    "Please try again with a smaller date range."
)
PARSE_ERROR = "Failed to parse the server response. The data format may be incorrect."
EMPTY_RESPONSE = "Failed to parse response from court-availabilities endpoint"
UNEXPECTED_ERROR = (
    "An unexpected error occurred while fetching court availabilities. "
    "Please try again later."
)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SearchWindow:
    """Full-day span of the request, local (reference zone) and UTC."""

    end_of_day_local: datetime
    start_utc: datetime
    end_utc: datetime

    @classmethod
    def for_days(cls, start_day: date, end_day: date, tz: ZoneInfo) -> "SearchWindow":
        start_local = datetime.combine(start_day, time.min)
        end_local = datetime.combine(end_day, time.max)
        return cls(
            end_of_day_local=end_local,
            start_utc=start_local.replace(tzinfo=tz).astimezone(timezone.utc),
            end_utc=end_local.replace(tzinfo=tz).astimezone(timezone.utc),
        )


@dataclass(frozen=True)
class ClubLookups:
    """Directory indexes built once per request."""

    timezone_by_name: dict[str, Optional[str]]   # exact display name
    id_by_name: dict[str, str]                   # lower-cased display name

    @classmethod
    def from_directory(cls, clubs: Iterable[ClubDirectoryEntry]) -> "ClubLookups":
        timezone_by_name: dict[str, Optional[str]] = {}
        id_by_name: dict[str, str] = {}
        for club in clubs:
            if not club.name:
                continue
            timezone_by_name[club.name] = club.time_zone
            id_by_name[club.name.lower()] = club.club_id
        return cls(timezone_by_name=timezone_by_name, id_by_name=id_by_name)


# =============================================================================
# Pure helpers
# =============================================================================
def parse_calendar_date(value: str) -> date:
    """Parse a YYYY-MM-DD string, raising ValueError / TypeError otherwise."""
    return datetime.strptime(value.strip(), "%Y-%m-%d").date()


def format_instant(value: datetime) -> str:
    """ISO-8601 UTC instant with microseconds, e.g. 2024-01-14T23:00:00.000000Z."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def exceeds_horizon(window: SearchWindow, now: datetime, max_days_ahead: int) -> bool:
    today = now.astimezone(timezone.utc).date()
    today_start = datetime.combine(today, time.min, tzinfo=timezone.utc)
    return (window.end_utc - today_start).days > max_days_ahead


def build_query_params(
    window: SearchWindow,
    filters: QueryFilters,
    lookups: ClubLookups,
) -> list[tuple[str, str]]:
    """Translate the filters into repeated query parameters.

    Unknown durations, unmatched club names and unknown court types are
    dropped rather than rejected.
    """
    params = [
        ("startDate", format_instant(window.start_utc)),
        ("endDate", format_instant(window.end_utc)),
    ]

    for duration in filters.durations:
        if duration in ALLOWED_DURATIONS and not isinstance(duration, bool):
            params.append(("durations", str(int(duration))))
        else:
            logger.info("Ignoring unsupported duration filter: %r", duration)

    for name in filters.club_names:
        club_id = lookups.id_by_name.get(name.lower()) if isinstance(name, str) else None
        if club_id:
            params.append(("clubIds", club_id))
        else:
            logger.warning("Club name %r not found in directory, dropping it from the filter", name)

    court_type = filters.court_type
    if court_type is not None:
        if court_type in (CourtType.INDOOR, CourtType.OUTDOOR) and not isinstance(court_type, bool):
            params.append(("courtType", str(int(court_type))))
        else:
            logger.info("Ignoring unsupported court type filter: %r", court_type)

    return params


def resolve_timezone(name: Optional[str], fallback: ZoneInfo) -> ZoneInfo:
    if not name:
        return fallback
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, falling back to %s", name, fallback.key)
        return fallback


def normalize_records(
    records: Iterable[AvailabilityRecord],
    lookups: ClubLookups,
    fallback: ZoneInfo,
) -> list[NormalizedAvailability]:
    """Convert each record's UTC start into its club's wall-clock time."""
    zones: dict[Optional[str], ZoneInfo] = {}
    normalized = []
    for record in records:
        zone_name = lookups.timezone_by_name.get(record.club_name)
        if zone_name not in zones:
            zones[zone_name] = resolve_timezone(zone_name, fallback)
        local = record.start_time.astimezone(zones[zone_name]).replace(tzinfo=None)
        normalized.append(NormalizedAvailability.from_record(record, local))
    return normalized


# =============================================================================
# The handler
# =============================================================================
class CourtAvailabilityFinder:
    """Stateless request handler behind the get_court_availabilities tool."""

    def __init__(
        self,
        client: CourtSpotterClient,
        clock: Clock = utc_now,
        default_timezone: str = config.DEFAULT_TIMEZONE,
        max_days_ahead: int = config.MAX_DAYS_AHEAD,
    ) -> None:
        self._client = client
        self._clock = clock
        self._default_tz = ZoneInfo(default_timezone)
        self._max_days_ahead = max_days_ahead

    @property
    def default_timezone(self) -> ZoneInfo:
        return self._default_tz

    async def aclose(self) -> None:
        await self._client.close()

    async def __aenter__(self) -> "CourtAvailabilityFinder":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def find_court_availabilities(
        self,
        start_date: str,
        end_date: str,
        durations: Optional[Iterable[int]] = None,
        club_names: Optional[Iterable[str]] = None,
        court_type: Optional[int] = None,
    ) -> AvailabilitiesSearchResult:
        try:
            start_day = parse_calendar_date(start_date)
            end_day = parse_calendar_date(end_date)
            window = SearchWindow.for_days(start_day, end_day, self._default_tz)
        except (TypeError, ValueError, AttributeError, OverflowError):
            logger.warning("Invalid date format provided. Start date: %r, End date: %r", start_date, end_date)
            return AvailabilitiesSearchResult.failure(INVALID_DATE_FORMAT)

        filters = QueryFilters(
            start_date=start_day,
            end_date=end_day,
            durations=list(durations or []),
            club_names=list(club_names or []),
            court_type=court_type,
        )

        if exceeds_horizon(window, self._clock(), self._max_days_ahead):
            logger.warning(
                "Requested date range exceeds the maximum allowed range of %d days. "
                "Start date: %s, End date: %s",
                self._max_days_ahead, start_date, end_date,
            )
            # The message carries the end-of-day timestamp, not the day limit.
            return AvailabilitiesSearchResult.failure(RANGE_EXCEEDED.format(end=window.end_of_day_local))

        lookups = await self._load_club_lookups()
        if lookups is None:
            return AvailabilitiesSearchResult.failure(CLUB_LOOKUP_FAILED)

        params = build_query_params(window, filters, lookups)

        try:
            records = await self._client.get_court_availabilities(params)
        except httpx.TimeoutException:
            logger.exception("Request timeout fetching court availabilities for %s to %s", start_date, end_date)
            return AvailabilitiesSearchResult.failure(TIMEOUT_ERROR)
        except httpx.HTTPError:
            logger.exception("Network error fetching court availabilities for %s to %s", start_date, end_date)
            return AvailabilitiesSearchResult.failure(NETWORK_ERROR)
        except MalformedResponseError:
            logger.exception("JSON parsing error for court availabilities response")
            return AvailabilitiesSearchResult.failure(PARSE_ERROR)
        except Exception:
            logger.exception("Unexpected error fetching court availabilities for %s to %s", start_date, end_date)
            return AvailabilitiesSearchResult.failure(UNEXPECTED_ERROR)

        if records is None:
            logger.warning("Failed to parse response from court-availabilities endpoint")
            return AvailabilitiesSearchResult.failure(EMPTY_RESPONSE)

        try:
            availabilities = normalize_records(records, lookups, self._default_tz)
        except Exception:
            logger.exception("Unexpected error converting court availabilities")
            return AvailabilitiesSearchResult.failure(UNEXPECTED_ERROR)

        logger.info("Found %d court availabilities for %s to %s", len(availabilities), start_date, end_date)
        return AvailabilitiesSearchResult.ok(availabilities)

    async def _load_club_lookups(self) -> Optional[ClubLookups]:
        try:
            clubs = await self._client.get_padel_clubs()
        except (httpx.HTTPError, MalformedResponseError):
            logger.exception("Failed to retrieve club information")
            return None
        except Exception:
            logger.exception("Unexpected error retrieving club information")
            return None
        if clubs is None:
            logger.warning("Club directory response was empty")
            return None
        return ClubLookups.from_directory(clubs)
