"""Venue selection router: venues near a confirmed hub."""

from fastapi import APIRouter, Depends

from meetpoint.dependencies import get_venue_selector
from meetpoint.schemas.meetup import VenueSelectRequest, VenueSelectResponse
from meetpoint.services.selection.venue_selector import VenueSelector

router = APIRouter()


@router.post("/select", response_model=VenueSelectResponse)
async def select_venue(
    body: VenueSelectRequest,
    selector: VenueSelector = Depends(get_venue_selector),
):
    recommendations = await selector.select_venue(
        body.hub_center.to_domain(),
        [p.to_domain() for p in body.participants],
        tags=body.tags,
        radius_meters=body.radius_meters,
    )
    return {"recommendations": [r.to_dict() for r in recommendations]}
