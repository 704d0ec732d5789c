"""Routing gateway: travel durations between coordinates.

Two backends share one contract:
    GoogleDistanceMatrixGateway  native batch (Distance Matrix API)
    TfLJourneyGateway            native single journey (TfL Journey Planner)

Every cell of a matrix succeeds or fails on its own. Failures come back as
``LegResult(ok=False)``; nothing raises past this module and nothing is
retried here.
"""

import asyncio
import logging
from abc import ABC, abstractmethod

import httpx

from meetpoint.config import settings
from meetpoint.services.cache_service import CacheService
from meetpoint.services.selection.models import FAILED_LEG, Coordinate, LegResult

logger = logging.getLogger(__name__)

# Distance Matrix request limits
MAX_ORIGINS_PER_REQUEST = 25
MAX_DESTINATIONS_PER_REQUEST = 25
MAX_ELEMENTS_PER_REQUEST = 100


def _failed_grid(rows: int, cols: int) -> list[list[LegResult]]:
    return [[FAILED_LEG] * cols for _ in range(rows)]


def _chunks(items: list, size: int) -> list[tuple[int, list]]:
    return [(i, items[i:i + size]) for i in range(0, len(items), size)]


class RoutingGateway(ABC):
    """Travel time between two points for a given mode."""

    @abstractmethod
    async def duration(self, origin: Coordinate, destination: Coordinate, mode: str = "transit") -> LegResult:
        ...

    @abstractmethod
    async def matrix(
        self, origins: list[Coordinate], destinations: list[Coordinate], mode: str = "transit"
    ) -> list[list[LegResult]]:
        """Grid indexed [origin][destination], aligned with the input lists."""
        ...

    async def close(self):
        pass


class GoogleDistanceMatrixGateway(RoutingGateway):
    """Adapter for the Google Distance Matrix API."""

    def __init__(
        self,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
        cache: CacheService | None = None,
        timeout: float | None = None,
    ):
        self._api_key = settings.google_maps_api_key if api_key is None else api_key
        self._client = client
        self._cache = cache
        self._timeout = settings.routing_timeout_seconds if timeout is None else timeout
        if not self._api_key:
            logger.warning("GOOGLE_MAPS_API_KEY missing, distance matrix lookups disabled")

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=settings.google_maps_base_url,
                timeout=self._timeout,
            )
        return self._client

    async def duration(self, origin: Coordinate, destination: Coordinate, mode: str = "transit") -> LegResult:
        grid = await self.matrix([origin], [destination], mode)
        return grid[0][0]

    async def matrix(
        self, origins: list[Coordinate], destinations: list[Coordinate], mode: str = "transit"
    ) -> list[list[LegResult]]:
        grid = _failed_grid(len(origins), len(destinations))
        if not origins or not destinations or not self._api_key:
            return grid

        origin_params = [o.as_param() for o in origins]
        dest_params = [d.as_param() for d in destinations]

        if self._cache:
            cached = await self._cache.get_matrix(mode, origin_params, dest_params)
            if cached:
                return [[LegResult(minutes, True) for minutes in row] for row in cached]

        origin_chunk = min(MAX_ORIGINS_PER_REQUEST, len(origins))
        dest_chunk = max(1, min(MAX_DESTINATIONS_PER_REQUEST, MAX_ELEMENTS_PER_REQUEST // origin_chunk))

        jobs = [
            (oi, di, o_part, d_part)
            for oi, o_part in _chunks(origin_params, origin_chunk)
            for di, d_part in _chunks(dest_params, dest_chunk)
        ]
        results = await asyncio.gather(
            *(self._fetch_chunk(o_part, d_part, mode) for _, _, o_part, d_part in jobs)
        )

        for (oi, di, _, _), block in zip(jobs, results):
            for r, row in enumerate(block):
                for c, cell in enumerate(row):
                    grid[oi + r][di + c] = cell

        if self._cache and all(cell.ok for row in grid for cell in row):
            await self._cache.set_matrix(
                mode, origin_params, dest_params, [[cell.minutes for cell in row] for row in grid]
            )
        return grid

    async def _fetch_chunk(self, origins: list[str], destinations: list[str], mode: str) -> list[list[LegResult]]:
        failed = _failed_grid(len(origins), len(destinations))
        params = {
            "origins": "|".join(origins),
            "destinations": "|".join(destinations),
            "mode": mode,
            "key": self._api_key,
        }
        try:
            client = await self._get_client()
            resp = await asyncio.wait_for(
                client.get("/distancematrix/json", params=params),
                timeout=self._timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except Exception as e:
            logger.warning(f"Distance matrix ({mode}) request failed: {e!r}")
            return failed

        if data.get("status") != "OK":
            logger.warning(f"Distance matrix ({mode}) status {data.get('status')}: {data.get('error_message', '')}")
            return failed

        rows = data.get("rows") or []
        for r in range(len(origins)):
            elements = rows[r].get("elements", []) if r < len(rows) else []
            for c in range(len(destinations)):
                element = elements[c] if c < len(elements) else {}
                seconds = (element.get("duration") or {}).get("value")
                if element.get("status") == "OK" and isinstance(seconds, (int, float)):
                    failed[r][c] = LegResult(round(seconds / 60), True)
        return failed

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None


class TfLJourneyGateway(RoutingGateway):
    """Adapter for the TfL Journey Planner. Works without keys at a lower rate limit."""

    def __init__(
        self,
        app_id: str | None = None,
        app_key: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
        concurrency: int = 8,
    ):
        self._app_id = settings.tfl_app_id if app_id is None else app_id
        self._app_key = settings.tfl_app_key if app_key is None else app_key
        self._client = client
        self._timeout = settings.routing_timeout_seconds if timeout is None else timeout
        self._semaphore = asyncio.Semaphore(concurrency)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=settings.tfl_base_url,
                timeout=self._timeout,
            )
        return self._client

    async def duration(self, origin: Coordinate, destination: Coordinate, mode: str = "transit") -> LegResult:
        params = {"timeIs": "Departing", "journeyPreference": "LeastTime"}
        if mode == "walking":
            params["mode"] = "walking"
        if self._app_id and self._app_key:
            params["app_id"] = self._app_id
            params["app_key"] = self._app_key

        url = f"/Journey/JourneyResults/{origin.as_param()}/to/{destination.as_param()}"
        try:
            async with self._semaphore:
                client = await self._get_client()
                resp = await asyncio.wait_for(client.get(url, params=params), timeout=self._timeout)
            if resp.status_code != 200:
                logger.warning(f"TfL journey error {resp.status_code} for {url}")
                return FAILED_LEG
            journeys = resp.json().get("journeys") or []
        except Exception as e:
            logger.warning(f"TfL journey request failed: {e!r}")
            return FAILED_LEG

        if not journeys:
            return FAILED_LEG
        minutes = journeys[0].get("duration")
        if not isinstance(minutes, (int, float)):
            return FAILED_LEG
        return LegResult(int(minutes), True)

    async def matrix(
        self, origins: list[Coordinate], destinations: list[Coordinate], mode: str = "transit"
    ) -> list[list[LegResult]]:
        cells = await asyncio.gather(
            *(self.duration(o, d, mode) for o in origins for d in destinations)
        )
        width = len(destinations)
        return [list(cells[r * width:(r + 1) * width]) for r in range(len(origins))]

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None


def build_routing_gateway(cache: CacheService | None = None) -> RoutingGateway:
    """Gateway for the configured backend."""
    if settings.routing_backend == "tfl":
        return TfLJourneyGateway()
    return GoogleDistanceMatrixGateway(cache=cache)
