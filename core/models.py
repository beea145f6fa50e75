# =============================================================================
# core/models.py  -  Data Models (the "nouns" of the system)
# =============================================================================
#
# These dataclasses define the *shape* of every piece of information that
# flows between the Court Spotter API, the availability handler, and the MCP
# tool.  Everything here is request-scoped: built fresh for one tool call,
# thrown away once the JSON answer has been returned.
#
# TWO SIDES OF THE WIRE:
#   - Upstream models (ClubDirectoryEntry, AvailabilityRecord) know how to
#     read themselves from the API's camelCase JSON (`from_api`).
#   - Output models (NormalizedAvailability, AvailabilitiesSearchResult)
#     know how to write themselves back out as camelCase JSON (`to_dict`).
#   Parsing failures raise MalformedResponseError so the handler can turn
#   them into the right error envelope.
# =============================================================================

import json
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import IntEnum
from typing import Any, Optional


class MalformedResponseError(ValueError):
    """The Court Spotter API answered with a body we cannot interpret."""


# -----------------------------------------------------------------------------
# CourtType - Indoor / Outdoor
# -----------------------------------------------------------------------------
# The API serializes this enum as its integer value.  Some deployments emit
# the member name instead ("Indoor"), so `parse` accepts both.
# -----------------------------------------------------------------------------
class CourtType(IntEnum):
    INDOOR = 0
    OUTDOOR = 1

    @classmethod
    def parse(cls, value: Any) -> "CourtType":
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise MalformedResponseError(f"Unknown court type: {value!r}") from None
        if isinstance(value, bool) or not isinstance(value, int):
            raise MalformedResponseError(f"Unknown court type: {value!r}")
        try:
            return cls(value)
        except ValueError:
            raise MalformedResponseError(f"Unknown court type: {value!r}") from None


# -----------------------------------------------------------------------------
# ClubDirectoryEntry - one row of GET /api/padel-clubs
# -----------------------------------------------------------------------------
@dataclass
class ClubDirectoryEntry:
    """A padel club known to the Court Spotter directory."""

    club_id: str
    name: str
    time_zone: Optional[str] = None      # IANA name, e.g. "Europe/Warsaw"
    provider: Optional[str] = None       # Booking platform the club lives on
    pages_count: Optional[int] = None

    @classmethod
    def from_api(cls, payload: Any) -> "ClubDirectoryEntry":
        if not isinstance(payload, dict):
            raise MalformedResponseError(f"Club entry is not an object: {payload!r}")
        return cls(
            club_id=_optional_str(payload.get("clubId")) or "",
            name=_optional_str(payload.get("name")) or "",
            time_zone=_optional_str(payload.get("timeZone")),
            provider=_optional_str(payload.get("provider")),
            pages_count=payload.get("pagesCount"),
        )


# -----------------------------------------------------------------------------
# AvailabilityRecord - one row of GET /api/court-availabilities
# -----------------------------------------------------------------------------
# `start_time` is always an aware UTC datetime.  The API sends instants such
# as "2024-01-15T14:00:00Z"; a value without an offset is read as UTC.
# -----------------------------------------------------------------------------
@dataclass
class AvailabilityRecord:
    """A bookable slot exactly as the upstream API reports it."""

    availability_id: str
    club_id: str
    club_name: str
    court_name: str
    start_time: datetime
    duration_in_minutes: int
    price: Decimal
    booking_url: str
    booking_platform: str
    court_type: CourtType = CourtType.INDOOR

    @classmethod
    def from_api(cls, payload: Any) -> "AvailabilityRecord":
        if not isinstance(payload, dict):
            raise MalformedResponseError(f"Availability entry is not an object: {payload!r}")

        court_type = payload.get("courtType")
        return cls(
            availability_id=_optional_str(payload.get("id")) or "",
            club_id=_optional_str(payload.get("clubId")) or "",
            club_name=_optional_str(payload.get("clubName")) or "",
            court_name=_optional_str(payload.get("courtName")) or "",
            start_time=_parse_instant(payload.get("dateTime")),
            duration_in_minutes=_parse_int(payload.get("durationInMinutes"), "durationInMinutes"),
            price=_parse_decimal(payload.get("price")),
            booking_url=_optional_str(payload.get("bookingUrl")) or "",
            booking_platform=_optional_str(payload.get("provider")) or "",
            court_type=CourtType.INDOOR if court_type is None else CourtType.parse(court_type),
        )


# -----------------------------------------------------------------------------
# NormalizedAvailability - what the tool hands back to the agent
# -----------------------------------------------------------------------------
# Same facts as AvailabilityRecord, but the start time is wall-clock time at
# the club (naive datetime, no offset attached).
# -----------------------------------------------------------------------------
@dataclass
class NormalizedAvailability:
    """A slot with its start time expressed in the club's local time."""

    availability_id: str
    padel_club_id: str
    padel_club_name: str
    court_name: str
    start_time_local: datetime
    price: Decimal
    booking_url: str
    booking_platform: str
    duration_in_minutes: int
    court_type: CourtType

    @classmethod
    def from_record(cls, record: AvailabilityRecord, start_time_local: datetime) -> "NormalizedAvailability":
        return cls(
            availability_id=record.availability_id,
            padel_club_id=record.club_id,
            padel_club_name=record.club_name,
            court_name=record.court_name,
            start_time_local=start_time_local,
            price=record.price,
            booking_url=record.booking_url,
            booking_platform=record.booking_platform,
            duration_in_minutes=record.duration_in_minutes,
            court_type=record.court_type,
        )

    def to_dict(self) -> dict:
        return {
            "availabilityId": self.availability_id,
            "padelClubId": self.padel_club_id,
            "padelClubName": self.padel_club_name,
            "courtName": self.court_name,
            "availabilityStartTimeAtLocalTimeZone": self.start_time_local.isoformat(),
            "price": _price_number(self.price),
            "bookingUrl": self.booking_url,
            "bookingPlatform": self.booking_platform,
            "durationInMinutes": self.duration_in_minutes,
            "courtType": int(self.court_type),
        }


# -----------------------------------------------------------------------------
# QueryFilters - the caller's request after date parsing
# -----------------------------------------------------------------------------
@dataclass
class QueryFilters:
    """Inclusive date range plus the optional advisory filters."""

    start_date: date
    end_date: date
    durations: list[int] = field(default_factory=list)
    club_names: list[str] = field(default_factory=list)
    court_type: Optional[int] = None


# -----------------------------------------------------------------------------
# AvailabilitiesSearchResult - the envelope every tool call returns
# -----------------------------------------------------------------------------
# Failure envelopes never carry availabilities; `failure()` is the only way
# the handler builds one.
# -----------------------------------------------------------------------------
@dataclass
class AvailabilitiesSearchResult:
    """Uniform success / error / payload wrapper."""

    success: bool
    error_message: Optional[str] = None
    court_availabilities: list[NormalizedAvailability] = field(default_factory=list)

    @classmethod
    def failure(cls, error_message: str) -> "AvailabilitiesSearchResult":
        return cls(success=False, error_message=error_message, court_availabilities=[])

    @classmethod
    def ok(cls, availabilities: list[NormalizedAvailability]) -> "AvailabilitiesSearchResult":
        return cls(success=True, error_message=None, court_availabilities=list(availabilities))

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "errorMessage": self.error_message,
            "courtAvailabilities": [a.to_dict() for a in self.court_availabilities],
        }

    def to_json(self) -> str:
        """Compact JSON, no insignificant whitespace."""
        return json.dumps(self.to_dict(), separators=(",", ":"))


# =============================================================================
# Parsing helpers
# =============================================================================
def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _parse_instant(value: Any) -> datetime:
    if not isinstance(value, str) or not value:
        raise MalformedResponseError(f"Missing or invalid dateTime: {value!r}")
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise MalformedResponseError(f"Invalid dateTime: {value!r}") from None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _parse_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedResponseError(f"Invalid {name}: {value!r}")
    return value


def _parse_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, bool):
        raise MalformedResponseError(f"Invalid price: {value!r}")
    try:
        price = Decimal(str(value))
    except InvalidOperation:
        raise MalformedResponseError(f"Invalid price: {value!r}") from None
    if not price.is_finite():
        raise MalformedResponseError(f"Invalid price: {value!r}")
    return price


def _price_number(value: Decimal) -> Any:
    """JSON number for a price: int when whole, otherwise the float whose
    shortest repr spells the same digits (exact up to 15 significant digits).
    """
    if value == value.to_integral_value():
        return int(value)
    return float(value)
