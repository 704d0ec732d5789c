"""Station service: reference transit hubs, lookup by id, name and proximity."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from meetpoint.models.station import Station
from meetpoint.services.selection.geo import approx_meters, distance_sq
from meetpoint.services.selection.models import Coordinate, Hub

logger = logging.getLogger(__name__)


class HubDirectory:
    """In-memory view of the station table for one selection run."""

    def __init__(self, hubs: list[Hub]):
        self._hubs = list(hubs)
        self._by_id = {h.id: h for h in self._hubs}

    def __len__(self) -> int:
        return len(self._hubs)

    def all(self) -> list[Hub]:
        return list(self._hubs)

    def get(self, hub_id: str) -> Hub | None:
        return self._by_id.get(hub_id)

    def search(self, query: str, limit: int = 10) -> list[Hub]:
        """Case-insensitive name search, prefix matches first."""
        q = (query or "").strip().lower()
        if len(q) < 2:
            return []
        matches = [h for h in self._hubs if q in h.name.lower()]
        matches.sort(key=lambda h: (not h.name.lower().startswith(q), h.name))
        return matches[:limit]

    def nearest_to(self, point: Coordinate, limit: int) -> list[Hub]:
        """Hubs ordered by squared degree distance to ``point``."""
        ranked = sorted(self._hubs, key=lambda h: distance_sq(h.center, point))
        return ranked[:limit]

    def nearest(self, point: Coordinate) -> dict | None:
        """Closest hub with a rough distance, for confirming a live location."""
        if not self._hubs:
            return None
        best = min(self._hubs, key=lambda h: distance_sq(h.center, point))
        return {
            "id": best.id,
            "name": best.name,
            "distance_meters": approx_meters(distance_sq(best.center, point)),
            "zone": best.zone,
        }

    def match_name(self, name: str) -> Hub | None:
        """Fuzzy match a free-text station name.

        Exact (case-insensitive) name first, then a name starting with the
        query, then substring containment in either direction, so "Bank"
        finds "Bank Underground Station" rather than "Embankment".
        """
        best = None
        for hub in self._hubs:
            tier = match_tier(name, hub.name)
            if tier is not None and (best is None or tier < best[0]):
                best = (tier, hub)
        return best[1] if best else None


def match_tier(query: str, name: str) -> int | None:
    """How well ``query`` names ``name``: 0 exact, 1 prefix, 2 containment, None no match."""
    needle = (query or "").strip().lower()
    hay = (name or "").strip().lower()
    if not needle or not hay:
        return None
    if needle == hay:
        return 0
    if hay.startswith(needle) or needle.startswith(hay):
        return 1
    if needle in hay or hay in needle:
        return 2
    return None


def pair_names(queries: list[str], names: list[str]) -> dict[int, int]:
    """Pair free-text queries with names one-to-one, best tier first.

    Returns {query index: name index}. Each query and each name is used at
    most once; ties go to the earlier query, then the earlier name.
    """
    options = sorted(
        (tier, qi, ni)
        for qi, query in enumerate(queries)
        for ni, name in enumerate(names)
        if (tier := match_tier(query, name)) is not None
    )
    pairs: dict[int, int] = {}
    used: set[int] = set()
    for _, qi, ni in options:
        if qi in pairs or ni in used:
            continue
        pairs[qi] = ni
        used.add(ni)
    return pairs


def hub_from_row(row: Station) -> Hub:
    return Hub(
        id=row.id,
        name=row.name,
        lat=float(row.lat or 0),
        lng=float(row.lng or 0),
        zone=row.zone,
        lines=tuple(row.lines or ()),
    )


class StationService:
    """Loads reference stations from the database."""

    async def load_directory(self, db: AsyncSession) -> HubDirectory:
        result = await db.execute(select(Station).order_by(Station.name))
        rows = result.scalars().all()
        hubs = [hub_from_row(r) for r in rows if r.lat and r.lng]
        if len(hubs) < len(rows):
            logger.warning(f"Skipped {len(rows) - len(hubs)} stations without coordinates")
        return HubDirectory(hubs)


station_service = StationService()
