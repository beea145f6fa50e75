"""Shared test fixtures: a two-club fake upstream and a finder wired to it."""

from __future__ import annotations

from typing import AsyncIterator

import pytest
import pytest_asyncio

from core.availability import CourtAvailabilityFinder
from tests.fakes import FakeCourtSpotter, availability, club, make_finder


@pytest.fixture()
def fake() -> FakeCourtSpotter:
    return FakeCourtSpotter(
        clubs=[
            club("club1", "Warsaw Club", "Europe/Warsaw"),
            club("club2", "London Club", "Europe/London"),
        ],
        availabilities=[
            availability("1", "Warsaw Club", club_id="club1"),
            availability("2", "London Club", club_id="club2", courtName="Court 2", price=120.0),
        ],
    )


@pytest_asyncio.fixture()
async def finder(fake: FakeCourtSpotter) -> AsyncIterator[CourtAvailabilityFinder]:
    async with make_finder(fake) as finder:
        yield finder
