import pytest
from fastapi.testclient import TestClient

from conftest import ALL_HUBS, BANK, WATERLOO, FakePlaces, FakeRouting, FakeSuggestions, SleepRecorder
from meetpoint.dependencies import get_hub_directory, get_hub_selector, get_venue_selector
from meetpoint.main import app
from meetpoint.services.selection.hub_selector import HubSelector
from meetpoint.services.selection.models import Candidate, Coordinate
from meetpoint.services.selection.scorer import CandidateScorer
from meetpoint.services.selection.venue_selector import VenueSelector
from meetpoint.services.station_service import HubDirectory

VENUES = [
    Candidate("p1", "The Hope", Coordinate(51.5040, -0.1130), "Lower Marsh", 4.4, "Lower Marsh"),
    Candidate("p2", "The Kings Arms", Coordinate(51.5050, -0.1100), "Roupell St", 4.6, "Roupell St"),
]

PARTICIPANTS = [
    {"id": "ana", "name": "Ana", "start": {"type": "station", "station_id": WATERLOO.id}},
    {"id": "ben", "name": "Ben", "start": {"type": "custom", "lat": 51.52, "lng": -0.08, "label": "Office"}},
    {"id": "cat", "name": "Cat", "status": "pending", "start": {"type": "live", "lat": 51.49, "lng": -0.2}},
]


@pytest.fixture
def client():
    directory = HubDirectory(ALL_HUBS)
    suggestions = FakeSuggestions([["Waterloo", "Bank", "London Bridge"]])

    app.dependency_overrides[get_hub_directory] = lambda: directory
    app.dependency_overrides[get_hub_selector] = lambda: HubSelector(
        directory, CandidateScorer(FakeRouting()), suggestions, labeller=FakePlaces(), sleep=SleepRecorder()
    )
    app.dependency_overrides[get_venue_selector] = lambda: VenueSelector(
        directory, CandidateScorer(FakeRouting()), FakePlaces(VENUES)
    )
    # No context manager: the lifespan would try to reach the database
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "service": "meetpoint"}


def test_select_hub(client):
    resp = client.post("/api/hubs/select", json={"participants": PARTICIPANTS, "meeting_time": "19:00"})
    assert resp.status_code == 200

    data = resp.json()
    assert data["used_fallback"] is False
    recs = data["recommendations"]
    assert 1 <= len(recs) <= 3
    assert [r["rank"] for r in recs] == list(range(1, len(recs) + 1))
    top = recs[0]
    assert set(top["travel_legs"]) == {"ana", "ben"}
    assert top["stats"]["worst_participant"] in ("Ana", "Ben")
    assert top["fairness_score"] >= top["total_minutes"]


def test_select_hub_rejects_unknown_location_type(client):
    bad = [{"id": "ana", "name": "Ana", "start": {"type": "teleport"}}]
    assert client.post("/api/hubs/select", json={"participants": bad}).status_code == 422


def test_select_venue(client):
    resp = client.post("/api/venues/select", json={
        "hub_center": {"lat": WATERLOO.lat, "lng": WATERLOO.lng},
        "participants": PARTICIPANTS,
        "tags": ["quiet"],
    })
    assert resp.status_code == 200

    recs = resp.json()["recommendations"]
    assert {r["id"] for r in recs} == {"p1", "p2"}
    for r in recs:
        for leg in r["travel_legs"].values():
            assert leg["outbound_minutes"] == leg["return_minutes"]
        assert r["rationale"].startswith("A highly rated local favourite")


def test_select_venue_validates_radius(client):
    body = {"hub_center": {"lat": 51.5, "lng": -0.1}, "participants": PARTICIPANTS, "radius_meters": 50}
    assert client.post("/api/venues/select", json=body).status_code == 422


def test_station_search(client):
    resp = client.get("/api/stations/search", params={"q": "bank"})
    assert resp.status_code == 200
    names = [s["name"] for s in resp.json()]
    # prefix matches first
    assert names[0] == BANK.name
    assert "Embankment Underground Station" in names


def test_nearest_station(client):
    resp = client.get("/api/stations/nearest", params={"lat": 51.5030, "lng": -0.1140})
    assert resp.status_code == 200
    data = resp.json()
    assert data["id"] == WATERLOO.id
    assert data["distance_meters"] < 100


def test_nearest_station_without_data(client):
    app.dependency_overrides[get_hub_directory] = lambda: HubDirectory([])
    assert client.get("/api/stations/nearest", params={"lat": 51.5, "lng": -0.1}).status_code == 404
