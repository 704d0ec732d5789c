"""Venue selector: fairest venues within walking distance of a confirmed hub."""

import asyncio
import logging
from typing import Protocol

from meetpoint.services.selection.config import SelectionConfig, selection_config
from meetpoint.services.selection.location_resolver import LocationResolver
from meetpoint.services.selection.models import Candidate, Coordinate, Participant, Recommendation
from meetpoint.services.selection.scorer import CandidateScorer, rank_scored, summarize
from meetpoint.services.station_service import HubDirectory

logger = logging.getLogger(__name__)


class VenueSource(Protocol):
    async def search_nearby(self, center: Coordinate, radius_meters: int, tags: list[str] | None = None) -> list[Candidate]: ...

    async def enrich(self, candidate: Candidate) -> str: ...

    async def reverse_label(self, coordinate: Coordinate) -> str: ...


class VenueSelector:
    """Search → score (symmetric return) → enrich top results."""

    def __init__(
        self,
        directory: HubDirectory,
        scorer: CandidateScorer,
        places: VenueSource,
        config: SelectionConfig | None = None,
    ):
        self._scorer = scorer
        self._places = places
        self._resolver = LocationResolver(directory, places)
        self._cfg = config or selection_config

    async def select_venue(
        self,
        hub_center: Coordinate,
        participants: list[Participant],
        tags: list[str] | None = None,
        radius_meters: int | None = None,
    ) -> list[Recommendation]:
        radius = radius_meters or self._cfg.venues.default_radius_meters

        active, venues = await asyncio.gather(
            self._resolver.resolve_active(participants),
            self._places.search_nearby(hub_center, radius, tags or []),
        )
        if not active or not venues:
            logger.info(f"Venue selection short-circuit: {len(active)} participants, {len(venues)} venues")
            return []

        # Return leg mirrors the outbound one
        scored = rank_scored(
            await self._scorer.score(venues[: self._cfg.venues.search_cap], active, symmetric_return=True)
        )
        top = scored[: self._cfg.venues.enrich_top]
        summaries = await asyncio.gather(*(self._places.enrich(sc.candidate) for sc in top))

        return [
            Recommendation(scored=sc, rationale=summary, rank=rank, **summarize(sc, active))
            for rank, (sc, summary) in enumerate(zip(top, summaries), start=1)
        ]
