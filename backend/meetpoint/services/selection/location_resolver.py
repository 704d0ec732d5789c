"""Flatten participant location sources into coordinate + label pairs."""

import asyncio
import logging
from typing import Protocol

from meetpoint.services.selection.models import (
    UNRESOLVED,
    Coordinate,
    CustomLocation,
    LiveLocation,
    LocationSource,
    Participant,
    ResolvedParticipant,
    StationRef,
    STATUS_READY,
)
from meetpoint.services.station_service import HubDirectory

logger = logging.getLogger(__name__)


class AreaLabeller(Protocol):
    async def reverse_label(self, coordinate: Coordinate) -> str: ...


class LocationResolver:
    """Resolves each participant once, before any scoring happens."""

    def __init__(self, directory: HubDirectory, labeller: AreaLabeller | None = None):
        self._directory = directory
        self._labeller = labeller

    async def resolve_active(self, participants: list[Participant]) -> list[ResolvedParticipant]:
        """Ready participants whose start point resolved, in input order."""
        ready = [p for p in participants if p.status == STATUS_READY]
        resolved = await asyncio.gather(*(self.resolve(p) for p in ready))
        active = [r for r in resolved if r.start_location.is_resolved]
        if len(active) < len(ready):
            logger.info(f"{len(ready) - len(active)} ready participants have no usable start location")
        return active

    async def resolve(self, participant: Participant) -> ResolvedParticipant:
        start, start_label = await self._resolve_source(participant.start)

        if participant.end is None:
            end, end_label = start, start_label
        else:
            end, end_label = await self._resolve_source(participant.end)
            if not end.is_resolved:
                # An unresolvable return point falls back to the start
                end, end_label = start, start_label

        return ResolvedParticipant(
            id=participant.id,
            name=participant.name,
            start_location=start,
            start_label=start_label,
            end_location=end,
            end_label=end_label,
        )

    async def _resolve_source(self, source: LocationSource) -> tuple[Coordinate, str]:
        if isinstance(source, StationRef):
            hub = self._directory.get(source.station_id)
            if hub is None:
                logger.warning(f"Unknown station id {source.station_id}")
                return UNRESOLVED, ""
            return hub.center, hub.name

        if isinstance(source, CustomLocation) and source.label.strip():
            return source.coordinate, source.label.strip()

        if isinstance(source, (LiveLocation, CustomLocation)):
            coordinate = source.coordinate
            if not coordinate.is_resolved:
                return UNRESOLVED, ""
            label = "Current location"
            if self._labeller is not None:
                label = await self._labeller.reverse_label(coordinate)
            return coordinate, label

        raise TypeError(f"Unsupported location source: {source!r}")
