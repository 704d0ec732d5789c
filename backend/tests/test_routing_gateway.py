from urllib.parse import unquote

import httpx
import pytest

from meetpoint.services.routing_gateway import GoogleDistanceMatrixGateway, TfLJourneyGateway
from meetpoint.services.selection.models import FAILED_LEG, Coordinate, LegResult

A = Coordinate(51.5, -0.1)
B = Coordinate(51.6, -0.2)


def google(handler, api_key="test-key", cache=None):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="https://maps.test/api")
    return GoogleDistanceMatrixGateway(api_key=api_key, client=client, cache=cache, timeout=5)


def tfl(handler, app_id="", app_key=""):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="https://tfl.test")
    return TfLJourneyGateway(app_id=app_id, app_key=app_key, client=client, timeout=5)


def ok_element(seconds):
    return {"status": "OK", "duration": {"value": seconds, "text": ""}}


class MemoryCache:
    def __init__(self):
        self.store = {}

    async def get_matrix(self, mode, origins, destinations):
        return self.store.get((mode, tuple(origins), tuple(destinations)))

    async def set_matrix(self, mode, origins, destinations, data):
        self.store[(mode, tuple(origins), tuple(destinations))] = data


# ---- Google Distance Matrix ----


async def test_google_parses_each_element():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={
            "status": "OK",
            "rows": [
                {"elements": [ok_element(600)]},
                {"elements": [{"status": "ZERO_RESULTS"}]},
            ],
        })

    grid = await google(handler).matrix([A, B], [A], "transit")

    assert grid == [[LegResult(10, True)], [FAILED_LEG]]
    params = seen[0].url.params
    assert seen[0].url.path == "/api/distancematrix/json"
    assert params["origins"] == "51.5,-0.1|51.6,-0.2"
    assert params["destinations"] == "51.5,-0.1"
    assert params["mode"] == "transit"
    assert params["key"] == "test-key"


async def test_google_top_level_error_fails_every_cell():
    def handler(request):
        return httpx.Response(200, json={"status": "REQUEST_DENIED", "error_message": "bad key"})

    grid = await google(handler).matrix([A, B], [A, B])
    assert grid == [[FAILED_LEG, FAILED_LEG], [FAILED_LEG, FAILED_LEG]]


async def test_google_http_error_fails_every_cell():
    grid = await google(lambda request: httpx.Response(500)).matrix([A], [B])
    assert grid == [[FAILED_LEG]]


async def test_google_transport_error_fails_every_cell():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    assert await google(handler).duration(A, B) == FAILED_LEG


async def test_google_without_key_makes_no_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"status": "OK", "rows": []})

    grid = await google(handler, api_key="").matrix([A], [B])
    assert grid == [[FAILED_LEG]]
    assert calls == []


async def test_google_chunks_large_matrices_and_keeps_alignment():
    origins = [Coordinate(51.4 + r / 100, -0.1) for r in range(3)]
    destinations = [Coordinate(51.0 + c / 1000, 0.1) for c in range(40)]
    requests = []

    def handler(request):
        requests.append(request)
        origin_count = len(request.url.params["origins"].split("|"))
        dests = request.url.params["destinations"].split("|")
        assert origin_count * len(dests) <= 100
        # minutes = destination index + 1
        row = [ok_element((round((float(d.split(",")[0]) - 51.0) * 1000) + 1) * 60) for d in dests]
        return httpx.Response(200, json={"status": "OK", "rows": [{"elements": row}] * origin_count})

    grid = await google(handler).matrix(origins, destinations)

    assert len(requests) == 2
    assert len(grid) == 3
    for row in grid:
        assert [cell.minutes for cell in row] == list(range(1, 41))
        assert all(cell.ok for cell in row)


async def test_google_caps_destinations_per_request():
    destinations = [Coordinate(51.0 + c / 1000, 0.1) for c in range(60)]
    sizes = []

    def handler(request):
        dests = request.url.params["destinations"].split("|")
        sizes.append(len(dests))
        return httpx.Response(200, json={"status": "OK", "rows": [{"elements": [ok_element(300)] * len(dests)}]})

    grid = await google(handler).matrix([A], destinations)

    assert sorted(sizes) == [10, 25, 25]
    assert len(grid[0]) == 60
    assert all(cell == LegResult(5, True) for cell in grid[0])


async def test_google_caches_only_complete_matrices():
    cache = MemoryCache()
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"status": "OK", "rows": [{"elements": [ok_element(900)]}]})

    gateway = google(handler, cache=cache)
    first = await gateway.matrix([A], [B])
    second = await gateway.matrix([A], [B])

    assert first == second == [[LegResult(15, True)]]
    assert len(calls) == 1

    def failing(request):
        return httpx.Response(200, json={"status": "OK", "rows": [{"elements": [{"status": "NOT_FOUND"}]}]})

    cache = MemoryCache()
    await google(failing, cache=cache).matrix([A], [B])
    assert cache.store == {}


# ---- TfL Journey Planner ----


async def test_tfl_reads_first_journey_duration():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"journeys": [{"duration": 23}, {"duration": 31}]})

    leg = await tfl(handler).duration(A, B, "transit")

    assert leg == LegResult(23, True)
    assert unquote(seen[0].url.path) == "/Journey/JourneyResults/51.5,-0.1/to/51.6,-0.2"
    assert "mode" not in seen[0].url.params
    assert "app_key" not in seen[0].url.params


async def test_tfl_walking_and_credentials():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"journeys": [{"duration": 44}]})

    await tfl(handler, app_id="id", app_key="secret").duration(A, B, "walking")

    params = seen[0].url.params
    assert params["mode"] == "walking"
    assert params["app_id"] == "id"
    assert params["app_key"] == "secret"


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(404, json={"message": "No journey found"}),
        httpx.Response(200, json={"journeys": []}),
        httpx.Response(200, json={"journeys": [{"legs": []}]}),
    ],
)
async def test_tfl_failures(response):
    assert await tfl(lambda request: response).duration(A, B) == FAILED_LEG


async def test_tfl_matrix_shape():
    def handler(request):
        return httpx.Response(200, json={"journeys": [{"duration": 12}]})

    grid = await tfl(handler).matrix([A, B], [A, B, Coordinate(51.7, -0.3)])
    assert len(grid) == 2
    assert all(len(row) == 3 for row in grid)
    assert all(cell == LegResult(12, True) for row in grid for cell in row)
