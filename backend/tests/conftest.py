"""Shared fakes for the selection pipeline tests.

The fakes are deterministic: travel time is a pure function of the two
coordinates, so identical inputs always give identical matrices.
"""

import math

import pytest

from meetpoint.services.selection.geo import distance_sq
from meetpoint.services.selection.models import (
    FAILED_LEG,
    Candidate,
    Coordinate,
    Hub,
    LegResult,
    ResolvedParticipant,
)
from meetpoint.services.station_service import HubDirectory
from meetpoint.services.suggestion_gateway import NO_VERDICT, Verdict

WATERLOO = Hub("940GZZLUWLO", "Waterloo Underground Station", 51.5036, -0.1143, 1, ("Bakerloo", "Jubilee", "Northern"))
BANK = Hub("940GZZLUBNK", "Bank Underground Station", 51.5133, -0.0886, 1, ("Central", "Northern", "Waterloo & City"))
KINGS_CROSS = Hub("940GZZLUKSX", "King's Cross St. Pancras Underground Station", 51.5308, -0.1238, 1, ("Victoria", "Piccadilly"))
OXFORD_CIRCUS = Hub("940GZZLUOXC", "Oxford Circus Underground Station", 51.5152, -0.1419, 1, ("Central", "Victoria", "Bakerloo"))
LONDON_BRIDGE = Hub("940GZZLULNB", "London Bridge Underground Station", 51.5052, -0.0864, 1, ("Jubilee", "Northern"))
EMBANKMENT = Hub("940GZZLUEMB", "Embankment Underground Station", 51.5074, -0.1223, 1, ("District", "Circle", "Bakerloo"))
CHARING_CROSS = Hub("940GZZLUCHX", "Charing Cross Underground Station", 51.5080, -0.1247, 1, ("Bakerloo", "Northern"))
STRATFORD = Hub("940GZZLUSTD", "Stratford Underground Station", 51.5416, -0.0042, 3, ("Central", "Jubilee"))
BRIXTON = Hub("940GZZLUBXN", "Brixton Underground Station", 51.4627, -0.1145, 2, ("Victoria",))
CAMDEN = Hub("940GZZLUCTN", "Camden Town Underground Station", 51.5392, -0.1426, 2, ("Northern",))

ALL_HUBS = [
    WATERLOO, BANK, KINGS_CROSS, OXFORD_CIRCUS, LONDON_BRIDGE,
    EMBANKMENT, CHARING_CROSS, STRATFORD, BRIXTON, CAMDEN,
]


def km_between(a: Coordinate, b: Coordinate) -> float:
    return math.sqrt(distance_sq(a, b)) * 111


def transit_minutes(a: Coordinate, b: Coordinate) -> int:
    return round(5 + km_between(a, b) * 3)


def walking_minutes(a: Coordinate, b: Coordinate) -> int:
    return round(km_between(a, b) * 12)


class FakeRouting:
    """Distance-based routing; coordinates in ``failing`` never route."""

    def __init__(self, failing: set[Coordinate] | None = None, down: bool = False):
        self.failing = failing or set()
        self.down = down
        self.calls: list[tuple[str, int, int]] = []

    def _cell(self, a: Coordinate, b: Coordinate, mode: str) -> LegResult:
        if self.down or a in self.failing or b in self.failing:
            return FAILED_LEG
        minutes = transit_minutes(a, b) if mode == "transit" else walking_minutes(a, b)
        return LegResult(minutes, True)

    async def duration(self, origin, destination, mode="transit"):
        return self._cell(origin, destination, mode)

    async def matrix(self, origins, destinations, mode="transit"):
        self.calls.append((mode, len(origins), len(destinations)))
        return [[self._cell(o, d, mode) for d in destinations] for o in origins]


class TableRouting:
    """Routing from an explicit table of (origin, destination, mode) → minutes."""

    def __init__(self, table: dict):
        self.table = table
        self.calls: list[tuple[str, int, int]] = []

    async def duration(self, origin, destination, mode="transit"):
        minutes = self.table.get((origin, destination, mode))
        return LegResult(minutes, True) if minutes is not None else FAILED_LEG

    async def matrix(self, origins, destinations, mode="transit"):
        self.calls.append((mode, len(origins), len(destinations)))
        return [[await self.duration(o, d, mode) for d in destinations] for o in origins]


class FakeSuggestions:
    """Scripted scout answers (one list per attempt) and a fixed verdict."""

    def __init__(self, scout_answers: list[list[str]] | None = None, verdict: Verdict = NO_VERDICT):
        self.scout_answers = list(scout_answers or [])
        self.verdict = verdict
        self.scout_calls = 0
        self.judged: list[list[str]] = []
        self.judged_names: list[dict[str, str]] = []

    async def suggest_hubs(self, context, meeting_time):
        self.scout_calls += 1
        if not self.scout_answers:
            return []
        if len(self.scout_answers) == 1:
            return list(self.scout_answers[0])
        return list(self.scout_answers.pop(0))

    async def judge_candidates(self, candidates, context, participant_names=None):
        self.judged.append([sc.candidate.name for sc in candidates])
        self.judged_names.append(dict(participant_names or {}))
        return self.verdict


class FakePlaces:
    def __init__(self, venues: list[Candidate] | None = None, summaries: dict[str, str] | None = None):
        self.venues = venues or []
        self.summaries = summaries or {}
        self.searches: list[tuple[Coordinate, int, list[str]]] = []
        self.enriched: list[str] = []
        self.labelled: list[Coordinate] = []

    async def search_nearby(self, center, radius_meters, tags=None):
        self.searches.append((center, radius_meters, list(tags or [])))
        return list(self.venues)

    async def enrich(self, candidate):
        self.enriched.append(candidate.id)
        return self.summaries.get(candidate.id, f"A highly rated local favourite with a {candidate.rating:g} star rating.")

    async def reverse_label(self, coordinate):
        self.labelled.append(coordinate)
        return "Soho"


class SleepRecorder:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float):
        self.delays.append(seconds)


def resolved(pid: str, start: Coordinate, end: Coordinate | None = None, name: str | None = None) -> ResolvedParticipant:
    end = end or start
    return ResolvedParticipant(
        id=pid,
        name=name or pid.title(),
        start_location=start,
        start_label="start",
        end_location=end,
        end_label="end",
    )


@pytest.fixture
def directory() -> HubDirectory:
    return HubDirectory(ALL_HUBS)


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()
