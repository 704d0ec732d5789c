"""Hub selection router: fairest meeting stations for a group."""

from fastapi import APIRouter, Depends

from meetpoint.dependencies import get_hub_selector
from meetpoint.schemas.meetup import HubSelectRequest, HubSelectResponse
from meetpoint.services.selection.hub_selector import HubSelector

router = APIRouter()


@router.post("/select", response_model=HubSelectResponse)
async def select_hub(
    body: HubSelectRequest,
    selector: HubSelector = Depends(get_hub_selector),
):
    """Rank up to three hubs by round-trip fairness, with AI rationale when available."""
    participants = [p.to_domain() for p in body.participants]
    result = await selector.select_hub(participants, body.meeting_time)
    return result.to_dict()
