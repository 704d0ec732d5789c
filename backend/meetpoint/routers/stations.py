"""Station router: autocomplete and nearest-station lookup."""

from fastapi import APIRouter, Depends, HTTPException, Query

from meetpoint.dependencies import get_hub_directory
from meetpoint.schemas.meetup import NearestStationOut, StationOut
from meetpoint.services.selection.models import Coordinate
from meetpoint.services.station_service import HubDirectory

router = APIRouter()


@router.get("/search", response_model=list[StationOut])
async def search_stations(
    q: str = Query(..., min_length=1),
    limit: int = Query(10, ge=1, le=50),
    directory: HubDirectory = Depends(get_hub_directory),
):
    """Search stations by name."""
    return [h.to_dict() for h in directory.search(q, limit)]


@router.get("/nearest", response_model=NearestStationOut)
async def nearest_station(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    directory: HubDirectory = Depends(get_hub_directory),
):
    """Closest station to a point, used to confirm a live location."""
    nearest = directory.nearest(Coordinate(lat, lng))
    if nearest is None:
        raise HTTPException(status_code=404, detail="No stations loaded")
    return nearest
