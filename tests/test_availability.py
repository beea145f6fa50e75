from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import httpx
import pytest

from core.availability import (
    CLUB_LOOKUP_FAILED,
    EMPTY_RESPONSE,
    INVALID_DATE_FORMAT,
    NETWORK_ERROR,
    PARSE_ERROR,
    TIMEOUT_ERROR,
    UNEXPECTED_ERROR,
    ClubLookups,
    SearchWindow,
    build_query_params,
    exceeds_horizon,
    parse_calendar_date,
    resolve_timezone,
)
from core.models import ClubDirectoryEntry, QueryFilters
from tests.fakes import NOW, FakeCourtSpotter, availability, club, make_finder

WARSAW = ZoneInfo("Europe/Warsaw")


# ── Input validation ──────────────────────────────────────────────────────


class TestDateValidation:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "start_date,end_date",
        [
            ("invalid-date", "2024-01-16"),
            ("2024-01-15", "16/01/2024"),
            ("2024-13-01", "2024-01-16"),
            ("", "2024-01-16"),
        ],
    )
    async def test_invalid_dates_fail_without_network(self, fake, finder, start_date, end_date):
        result = await finder.find_court_availabilities(start_date, end_date)

        assert result.success is False
        assert result.error_message == INVALID_DATE_FORMAT
        assert result.court_availabilities == []
        assert fake.requests == []

    @pytest.mark.asyncio
    async def test_range_beyond_horizon_is_rejected(self, fake, finder):
        result = await finder.find_court_availabilities("2024-01-15", "2024-02-15")

        assert result.success is False
        assert "maximum allowed range" in result.error_message
        assert result.court_availabilities == []
        assert fake.requests == []

    @pytest.mark.asyncio
    async def test_range_message_reports_end_of_day_timestamp(self, finder):
        result = await finder.find_court_availabilities("2024-01-15", "2024-02-15")

        assert result.error_message == (
            "Requested date range exceeds the maximum allowed range of "
            "2024-02-15 23:59:59.999999 days."
        )

    @pytest.mark.asyncio
    async def test_last_day_of_horizon_is_accepted(self, finder):
        result = await finder.find_court_availabilities("2024-01-28", "2024-01-29")
        assert result.success is True

    @pytest.mark.asyncio
    async def test_day_after_horizon_is_rejected(self, finder):
        result = await finder.find_court_availabilities("2024-01-29", "2024-01-30")
        assert result.success is False


# ── Timezone conversion ───────────────────────────────────────────────────


class TestTimezoneConversion:
    @pytest.mark.asyncio
    async def test_uses_each_clubs_timezone(self, finder):
        result = await finder.find_court_availabilities("2024-01-15", "2024-01-16")

        assert result.success is True
        assert result.error_message is None
        by_club = {a.padel_club_name: a for a in result.court_availabilities}
        assert by_club["Warsaw Club"].start_time_local == datetime(2024, 1, 15, 15, 0)
        assert by_club["London Club"].start_time_local == datetime(2024, 1, 15, 14, 0)

    @pytest.mark.asyncio
    async def test_other_fields_are_copied(self, finder):
        result = await finder.find_court_availabilities("2024-01-15", "2024-01-16")

        london = result.court_availabilities[1]
        assert london.availability_id == "2"
        assert london.padel_club_id == "club2"
        assert london.court_name == "Court 2"
        assert float(london.price) == 120.0
        assert london.booking_url == "https://test.com/book"
        assert london.booking_platform == "TestPlatform"
        assert london.duration_in_minutes == 90
        assert int(london.court_type) == 0

    @pytest.mark.asyncio
    async def test_preserves_upstream_order(self):
        fake = FakeCourtSpotter(
            clubs=[club("club1", "Warsaw Club")],
            availabilities=[
                availability("b", "Warsaw Club", "2024-01-15T18:00:00Z"),
                availability("a", "Warsaw Club", "2024-01-15T08:00:00Z"),
                availability("c", "Warsaw Club", "2024-01-15T12:00:00Z"),
            ],
        )
        async with make_finder(fake) as finder:
            result = await finder.find_court_availabilities("2024-01-15", "2024-01-15")

        assert [a.availability_id for a in result.court_availabilities] == ["b", "a", "c"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("time_zone", [None, "", "Mars/Olympus_Mons", "Central European Standard Time"])
    async def test_unresolvable_timezone_falls_back_to_default(self, time_zone):
        fake = FakeCourtSpotter(
            clubs=[club("club9", "Nowhere Club", time_zone)],
            availabilities=[availability("1", "Nowhere Club", "2024-07-01T10:00:00Z", club_id="club9")],
        )
        async with make_finder(fake) as finder:
            result = await finder.find_court_availabilities("2024-01-15", "2024-01-16")

        assert result.success is True
        # Europe/Warsaw is UTC+2 in July
        assert result.court_availabilities[0].start_time_local == datetime(2024, 7, 1, 12, 0)

    @pytest.mark.asyncio
    async def test_club_missing_from_directory_falls_back_to_default(self):
        fake = FakeCourtSpotter(
            clubs=[club("club2", "London Club", "Europe/London")],
            availabilities=[availability("1", "Unlisted Club")],
        )
        async with make_finder(fake) as finder:
            result = await finder.find_court_availabilities("2024-01-15", "2024-01-16")

        assert result.court_availabilities[0].start_time_local == datetime(2024, 1, 15, 15, 0)

    @pytest.mark.asyncio
    async def test_timezone_lookup_is_case_sensitive(self):
        fake = FakeCourtSpotter(
            clubs=[club("club2", "London Club", "Europe/London")],
            availabilities=[availability("1", "london club", club_id="club2")],
        )
        async with make_finder(fake) as finder:
            result = await finder.find_court_availabilities("2024-01-15", "2024-01-16")

        # Exact-name miss: default Europe/Warsaw applies, not Europe/London.
        assert result.court_availabilities[0].start_time_local == datetime(2024, 1, 15, 15, 0)


# ── Query construction ────────────────────────────────────────────────────


class TestQueryConstruction:
    @pytest.mark.asyncio
    async def test_window_is_full_days_in_default_timezone(self, fake, finder):
        await finder.find_court_availabilities("2024-01-15", "2024-01-16")

        params = fake.availability_requests[0].url.params
        assert params["startDate"] == "2024-01-14T23:00:00.000000Z"
        assert params["endDate"] == "2024-01-16T22:59:59.999999Z"

    @pytest.mark.asyncio
    async def test_filters_are_forwarded(self, fake, finder):
        result = await finder.find_court_availabilities(
            "2024-01-15", "2024-01-16",
            durations=[90], club_names=["Warsaw Club"], court_type=0,
        )

        assert result.success is True
        params = fake.availability_requests[0].url.params
        assert params.get_list("durations") == ["90"]
        assert params.get_list("clubIds") == ["club1"]
        assert params.get_list("courtType") == ["0"]

    @pytest.mark.asyncio
    async def test_invalid_durations_are_dropped(self, fake, finder):
        await finder.find_court_availabilities("2024-01-15", "2024-01-16", durations=[45, 60, 120, 150])

        params = fake.availability_requests[0].url.params
        assert params.get_list("durations") == ["60", "120"]

    @pytest.mark.asyncio
    async def test_club_names_match_case_insensitively(self, fake, finder):
        await finder.find_court_availabilities(
            "2024-01-15", "2024-01-16", club_names=["WARSAW CLUB", "london club"],
        )

        params = fake.availability_requests[0].url.params
        assert params.get_list("clubIds") == ["club1", "club2"]

    @pytest.mark.asyncio
    async def test_unknown_club_names_are_dropped(self, fake, finder):
        result = await finder.find_court_availabilities(
            "2024-01-15", "2024-01-16", club_names=["Warsaw Club", "NonExistent Club"],
        )

        assert result.success is True
        request = fake.availability_requests[0]
        assert request.url.params.get_list("clubIds") == ["club1"]
        assert "NonExistent" not in str(request.url)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("court_type", [2, -1])
    async def test_invalid_court_type_is_dropped(self, fake, finder, court_type):
        await finder.find_court_availabilities("2024-01-15", "2024-01-16", court_type=court_type)

        assert "courtType" not in fake.availability_requests[0].url.params

    @pytest.mark.asyncio
    async def test_club_ids_are_url_escaped(self):
        fake = FakeCourtSpotter(clubs=[club("id with/slash&amp", "Odd Club")])
        async with make_finder(fake) as finder:
            await finder.find_court_availabilities("2024-01-15", "2024-01-16", club_names=["Odd Club"])

        request = fake.availability_requests[0]
        assert request.url.params.get_list("clubIds") == ["id with/slash&amp"]
        assert "slash&amp" not in str(request.url)

    @pytest.mark.asyncio
    async def test_directory_is_queried_before_availabilities(self, fake, finder):
        await finder.find_court_availabilities("2024-01-15", "2024-01-16")

        assert [r.url.path for r in fake.requests] == [
            "/api/padel-clubs",
            "/api/court-availabilities",
        ]


# ── Error classification ──────────────────────────────────────────────────


class TestErrorHandling:
    @pytest.mark.asyncio
    async def test_directory_failure(self, fake, finder):
        fake.clubs_response = httpx.Response(500)

        result = await finder.find_court_availabilities("2024-01-15", "2024-01-16")

        assert result.success is False
        assert result.error_message == CLUB_LOOKUP_FAILED
        assert fake.availability_requests == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, content=b"<html>oops</html>"),
            httpx.Response(200, content=b"null"),
        ],
    )
    async def test_directory_unparsable(self, fake, finder, response):
        fake.clubs_response = response

        result = await finder.find_court_availabilities("2024-01-15", "2024-01-16")

        assert result.error_message == CLUB_LOOKUP_FAILED
        assert result.court_availabilities == []

    @pytest.mark.asyncio
    async def test_directory_network_failure(self, fake, finder):
        fake.clubs_response = httpx.ConnectError("Network error")

        result = await finder.find_court_availabilities("2024-01-15", "2024-01-16")

        assert result.error_message == CLUB_LOOKUP_FAILED

    @pytest.mark.asyncio
    async def test_directory_unexpected_failure(self, fake, finder):
        fake.clubs_response = RuntimeError("boom")

        result = await finder.find_court_availabilities("2024-01-15", "2024-01-16")

        assert result.success is False
        assert result.error_message == CLUB_LOOKUP_FAILED
        assert fake.availability_requests == []

    @pytest.mark.asyncio
    async def test_directory_deeply_nested_body(self, fake, finder):
        fake.clubs_response = httpx.Response(200, content=b"[" * 100000 + b"]" * 100000)

        result = await finder.find_court_availabilities("2024-01-15", "2024-01-16")

        assert result.error_message == CLUB_LOOKUP_FAILED
        assert fake.availability_requests == []

    @pytest.mark.asyncio
    async def test_network_error(self, fake, finder):
        fake.availabilities_response = httpx.ConnectError("Network error")

        result = await finder.find_court_availabilities("2024-01-15", "2024-01-16")

        assert result.success is False
        assert result.error_message == NETWORK_ERROR
        assert result.court_availabilities == []

    @pytest.mark.asyncio
    async def test_error_status_is_a_network_error(self, fake, finder):
        fake.availabilities_response = httpx.Response(503)

        result = await finder.find_court_availabilities("2024-01-15", "2024-01-16")

        assert result.error_message == NETWORK_ERROR

    @pytest.mark.asyncio
    async def test_timeout(self, fake, finder):
        fake.availabilities_response = httpx.ReadTimeout("too slow")

        result = await finder.find_court_availabilities("2024-01-15", "2024-01-16")

        assert result.error_message == TIMEOUT_ERROR
        assert result.court_availabilities == []

    @pytest.mark.asyncio
    async def test_malformed_json(self, fake, finder):
        fake.availabilities_response = httpx.Response(200, content=b"{not json")

        result = await finder.find_court_availabilities("2024-01-15", "2024-01-16")

        assert result.error_message == PARSE_ERROR

    @pytest.mark.asyncio
    async def test_malformed_record_does_not_partially_populate(self, fake, finder):
        fake.availabilities_response = {
            "totalCount": 2,
            "courtAvailabilities": [
                availability("1", "Warsaw Club"),
                availability("2", "Warsaw Club", date_time="not-a-date"),
            ],
        }

        result = await finder.find_court_availabilities("2024-01-15", "2024-01-16")

        assert result.error_message == PARSE_ERROR
        assert result.court_availabilities == []

    @pytest.mark.asyncio
    async def test_null_body(self, fake, finder):
        fake.availabilities_response = httpx.Response(200, content=b"null")

        result = await finder.find_court_availabilities("2024-01-15", "2024-01-16")

        assert result.error_message == EMPTY_RESPONSE

    @pytest.mark.asyncio
    async def test_unexpected_error(self, fake, finder):
        fake.availabilities_response = RuntimeError("boom")

        result = await finder.find_court_availabilities("2024-01-15", "2024-01-16")

        assert result.error_message == UNEXPECTED_ERROR
        assert result.court_availabilities == []

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, fake, finder):
        fake.availabilities_response = asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await finder.find_court_availabilities("2024-01-15", "2024-01-16")


class TestIdempotence:
    @pytest.mark.asyncio
    async def test_repeated_calls_produce_identical_envelopes(self, finder):
        first = await finder.find_court_availabilities("2024-01-15", "2024-01-16", durations=[90])
        second = await finder.find_court_availabilities("2024-01-15", "2024-01-16", durations=[90])

        assert first.to_json() == second.to_json()
        assert json.loads(first.to_json())["success"] is True


# ── Pure helpers ──────────────────────────────────────────────────────────


class TestHelpers:
    def test_parse_calendar_date(self):
        assert parse_calendar_date("2024-01-15").isoformat() == "2024-01-15"

    def test_window_across_dst_change(self):
        # Europe/Warsaw switches to CEST on 2024-03-31
        window = SearchWindow.for_days(
            parse_calendar_date("2024-03-30"), parse_calendar_date("2024-03-31"), WARSAW
        )
        assert window.start_utc == datetime(2024, 3, 29, 23, 0, tzinfo=timezone.utc)
        assert window.end_utc == datetime(2024, 3, 31, 21, 59, 59, 999999, tzinfo=timezone.utc)

    def test_exceeds_horizon_counts_whole_days(self):
        within = SearchWindow.for_days(parse_calendar_date("2024-01-29"), parse_calendar_date("2024-01-29"), WARSAW)
        beyond = SearchWindow.for_days(parse_calendar_date("2024-01-30"), parse_calendar_date("2024-01-30"), WARSAW)

        assert exceeds_horizon(within, NOW, 14) is False
        assert exceeds_horizon(beyond, NOW, 14) is True

    def test_lookups_keep_last_duplicate_name(self):
        lookups = ClubLookups.from_directory([
            ClubDirectoryEntry(club_id="a", name="Padel Club", time_zone="Europe/Warsaw"),
            ClubDirectoryEntry(club_id="b", name="PADEL CLUB", time_zone="Europe/London"),
        ])

        assert lookups.id_by_name == {"padel club": "b"}
        assert lookups.timezone_by_name == {"Padel Club": "Europe/Warsaw", "PADEL CLUB": "Europe/London"}

    def test_build_query_params_without_filters(self):
        window = SearchWindow.for_days(parse_calendar_date("2024-01-15"), parse_calendar_date("2024-01-15"), WARSAW)
        filters = QueryFilters(start_date=parse_calendar_date("2024-01-15"), end_date=parse_calendar_date("2024-01-15"))

        params = build_query_params(window, filters, ClubLookups.from_directory([]))

        assert [name for name, _ in params] == ["startDate", "endDate"]

    def test_resolve_timezone(self):
        assert resolve_timezone("Europe/London", WARSAW).key == "Europe/London"
        assert resolve_timezone("../etc/passwd", WARSAW) is WARSAW
