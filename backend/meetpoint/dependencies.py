"""FastAPI dependencies: wire gateways and selectors for a request."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from meetpoint.database import get_db
from meetpoint.services.cache_service import cache_service
from meetpoint.services.places_gateway import PlacesGateway
from meetpoint.services.routing_gateway import RoutingGateway, build_routing_gateway
from meetpoint.services.selection.hub_selector import HubSelector
from meetpoint.services.selection.scorer import CandidateScorer
from meetpoint.services.selection.venue_selector import VenueSelector
from meetpoint.services.station_service import HubDirectory, station_service
from meetpoint.services.suggestion_gateway import SuggestionGateway, suggestion_gateway

# Shared across requests
_routing: RoutingGateway | None = None
_places: PlacesGateway | None = None


def get_routing_gateway() -> RoutingGateway:
    global _routing
    if _routing is None:
        _routing = build_routing_gateway(cache=cache_service)
    return _routing


def get_places_gateway() -> PlacesGateway:
    global _places
    if _places is None:
        _places = PlacesGateway(cache=cache_service)
    return _places


def get_suggestion_gateway() -> SuggestionGateway:
    return suggestion_gateway


async def get_hub_directory(db: AsyncSession = Depends(get_db)) -> HubDirectory:
    return await station_service.load_directory(db)


def get_hub_selector(
    directory: HubDirectory = Depends(get_hub_directory),
    routing: RoutingGateway = Depends(get_routing_gateway),
    places: PlacesGateway = Depends(get_places_gateway),
    suggestions: SuggestionGateway = Depends(get_suggestion_gateway),
) -> HubSelector:
    return HubSelector(directory, CandidateScorer(routing), suggestions, labeller=places)


def get_venue_selector(
    directory: HubDirectory = Depends(get_hub_directory),
    routing: RoutingGateway = Depends(get_routing_gateway),
    places: PlacesGateway = Depends(get_places_gateway),
) -> VenueSelector:
    return VenueSelector(directory, CandidateScorer(routing), places)


async def close_gateways():
    global _routing, _places
    if _routing is not None:
        await _routing.close()
        _routing = None
    if _places is not None:
        await _places.close()
        _places = None
