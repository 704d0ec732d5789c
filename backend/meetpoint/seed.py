"""Seed the stations table from the TfL StopPoint API."""

import asyncio

import httpx

from meetpoint.config import settings
from meetpoint.database import Base, async_session_factory, engine
from meetpoint.models.station import Station

# Rail modes that make sensible meeting hubs (buses excluded)
MODES = ["tube", "dlr", "overground", "elizabeth-line"]


async def fetch_stop_points(client: httpx.AsyncClient, mode: str) -> list[dict]:
    params = {}
    if settings.tfl_app_id and settings.tfl_app_key:
        params = {"app_id": settings.tfl_app_id, "app_key": settings.tfl_app_key}
    resp = await client.get(f"/StopPoint/Mode/{mode}", params=params)
    resp.raise_for_status()
    return resp.json().get("stopPoints") or []


def parse_zone(stop: dict) -> int | None:
    """First integer zone from the 'Zone' property ("2+3" → 2)."""
    for prop in stop.get("additionalProperties") or []:
        if prop.get("key") == "Zone":
            digits = ""
            for ch in str(prop.get("value", "")):
                if not ch.isdigit():
                    break
                digits += ch
            return int(digits) if digits else None
    return None


def build_stations(stop_points: list[dict]) -> list[dict]:
    """One row per common name; repeated entrances merge their lines."""
    stations: dict[str, dict] = {}
    for stop in stop_points:
        name = stop.get("commonName") or ""
        if not name or "Bus Station" in name:
            continue
        if stop.get("lat") is None or stop.get("lon") is None:
            continue

        lines = [line["name"] for line in stop.get("lines") or [] if line.get("name")]
        existing = stations.get(name)
        if existing is None:
            stations[name] = {
                "id": stop["naptanId"],
                "name": name,
                "lat": float(stop["lat"]),
                "lng": float(stop["lon"]),
                "zone": parse_zone(stop),
                "lines": lines,
            }
        else:
            existing["lines"] = existing["lines"] + [l for l in lines if l not in existing["lines"]]
            if existing["zone"] is None:
                existing["zone"] = parse_zone(stop)
    return list(stations.values())


async def seed():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    stop_points: list[dict] = []
    async with httpx.AsyncClient(base_url=settings.tfl_base_url, timeout=60.0) as client:
        for mode in MODES:
            try:
                points = await fetch_stop_points(client, mode)
                print(f"Fetched {len(points)} {mode} stop points")
                stop_points.extend(points)
            except httpx.HTTPError as e:
                print(f"Failed to fetch {mode}: {e}")

    rows = build_stations(stop_points)
    print(f"Prepared {len(rows)} unique stations")

    async with async_session_factory() as db:
        for row in rows:
            await db.merge(Station(**row))
        await db.commit()
    print("Seed complete.")


if __name__ == "__main__":
    asyncio.run(seed())
