"""Places gateway: venue search, venue summaries and area labels (Google Maps)."""

import asyncio
import logging

import httpx

from meetpoint.config import settings
from meetpoint.services.cache_service import CacheService
from meetpoint.services.selection.config import selection_config
from meetpoint.services.selection.models import Candidate, Coordinate

logger = logging.getLogger(__name__)

cfg = selection_config

UNKNOWN_AREA = "Unknown Area"
DEFAULT_AREA = "London"

# Most specific first
_AREA_COMPONENT_TYPES = ("neighborhood", "sublocality", "locality")


def rating_sentence(rating: float | None) -> str:
    if rating:
        return f"A highly rated local favourite with a {rating:g} star rating."
    return "A local spot close to the station."


class PlacesGateway:
    """Adapter for Google Places Nearby Search, Place Details and Geocoding."""

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
        self._timeout = settings.places_timeout_seconds if timeout is None else timeout
        if not self._api_key:
            logger.warning("GOOGLE_MAPS_API_KEY missing, places search and enrichment disabled")

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=settings.google_maps_base_url,
                timeout=self._timeout,
            )
        return self._client

    async def _get_json(self, path: str, params: dict) -> dict | None:
        """GET with deadline. None on any transport or HTTP failure."""
        try:
            client = await self._get_client()
            resp = await asyncio.wait_for(
                client.get(path, params={**params, "key": self._api_key}),
                timeout=self._timeout,
            )
            resp.raise_for_status()
            return resp.json()
        except Exception as e:
            logger.warning(f"Google Maps {path} failed: {e!r}")
            return None

    async def search_nearby(
        self, center: Coordinate, radius_meters: int, tags: list[str] | None = None
    ) -> list[Candidate]:
        """Venues around ``center``, capped so the routing matrix stays small."""
        if not self._api_key:
            return []

        keyword = " ".join([cfg.venues.default_keyword, *(tags or [])])
        data = await self._get_json(
            "/place/nearbysearch/json",
            {
                "location": center.as_param(),
                "radius": radius_meters,
                "type": cfg.venues.place_type,
                "keyword": keyword,
            },
        )
        if not data:
            return []
        if data.get("status") not in ("OK", "ZERO_RESULTS"):
            logger.warning(f"Places search status {data.get('status')}: {data.get('error_message', '')}")
            return []

        candidates = []
        for place in data.get("results", []):
            location = (place.get("geometry") or {}).get("location") or {}
            if not place.get("place_id") or "lat" not in location or "lng" not in location:
                continue
            candidates.append(Candidate(
                id=place["place_id"],
                name=place.get("name", "Unnamed venue"),
                center=Coordinate(float(location["lat"]), float(location["lng"])),
                description=place.get("vicinity", ""),
                rating=place.get("rating"),
                vicinity=place.get("vicinity", ""),
            ))
            if len(candidates) >= cfg.venues.search_cap:
                break
        return candidates

    async def enrich(self, candidate: Candidate) -> str:
        """One-line summary: editorial blurb, then best review, then rating."""
        fallback = rating_sentence(candidate.rating)
        if not self._api_key:
            return fallback

        data = await self._get_json(
            "/place/details/json",
            {
                "place_id": candidate.id,
                "fields": "editorial_summary,reviews,rating,user_ratings_total",
            },
        )
        result = (data or {}).get("result") or {}

        overview = (result.get("editorial_summary") or {}).get("overview")
        if isinstance(overview, str) and overview.strip():
            return overview.strip()

        snippet = best_review_snippet(result.get("reviews") or [])
        if snippet:
            return snippet

        return rating_sentence(result.get("rating") or candidate.rating)

    async def reverse_label(self, coordinate: Coordinate) -> str:
        """Human name for the area around a coordinate."""
        if not self._api_key or not coordinate.is_resolved:
            return UNKNOWN_AREA

        if self._cache:
            cached = await self._cache.get_area_label(coordinate.lat, coordinate.lng)
            if cached:
                return cached

        data = await self._get_json(
            "/geocode/json",
            {
                "latlng": coordinate.as_param(),
                "result_type": "|".join((*_AREA_COMPONENT_TYPES[:2], "political")),
            },
        )
        if data is None:
            return UNKNOWN_AREA

        results = data.get("results") or []
        if not results:
            return UNKNOWN_AREA

        components = results[0].get("address_components") or []
        label = DEFAULT_AREA
        for wanted in _AREA_COMPONENT_TYPES:
            match = next((c.get("long_name") for c in components if wanted in c.get("types", [])), None)
            if match:
                label = match
                break

        if self._cache:
            await self._cache.set_area_label(coordinate.lat, coordinate.lng, label)
        return label

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None


def best_review_snippet(reviews: list[dict]) -> str | None:
    """Longest review over the minimum length, cut to the summary budget."""
    texts = [
        r.get("text", "").strip()
        for r in reviews
        if isinstance(r.get("text"), str) and len(r["text"].strip()) >= cfg.enrichment.min_review_chars
    ]
    if not texts:
        return None
    text = " ".join(max(texts, key=len).split())
    limit = cfg.enrichment.max_summary_chars
    if len(text) > limit:
        text = text[: limit - 1].rstrip() + "…"
    return text
