from typing import Literal

from pydantic import BaseModel, Field

from meetpoint.services.selection.models import (
    Coordinate,
    CustomLocation,
    LiveLocation,
    LocationSource,
    Participant,
    StationRef,
)


class CoordinateIn(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    def to_domain(self) -> Coordinate:
        return Coordinate(self.lat, self.lng)


class LocationIn(BaseModel):
    type: Literal["station", "live", "custom"]
    station_id: str | None = None
    lat: float | None = None
    lng: float | None = None
    label: str = ""

    def to_domain(self) -> LocationSource:
        if self.type == "station":
            return StationRef(self.station_id or "")
        coordinate = Coordinate(self.lat or 0.0, self.lng or 0.0)
        if self.type == "live":
            return LiveLocation(coordinate)
        return CustomLocation(coordinate, self.label)


class ParticipantIn(BaseModel):
    id: str
    name: str
    status: Literal["pending", "ready"] = "ready"
    start: LocationIn
    end: LocationIn | None = None  # None = same as start

    def to_domain(self) -> Participant:
        return Participant(
            id=self.id,
            name=self.name,
            status=self.status,
            start=self.start.to_domain(),
            end=self.end.to_domain() if self.end else None,
        )


class HubSelectRequest(BaseModel):
    participants: list[ParticipantIn]
    meeting_time: str = ""


class VenueSelectRequest(BaseModel):
    hub_center: CoordinateIn
    participants: list[ParticipantIn]
    tags: list[str] = []
    radius_meters: int | None = Field(None, ge=100, le=5000)


class TravelLegOut(BaseModel):
    outbound_minutes: int
    return_minutes: int


class StatsOut(BaseModel):
    avg_minutes: float
    max_minutes: int
    penalty: float
    worst_participant: str | None = None


class RecommendationOut(BaseModel):
    id: str
    name: str
    description: str
    center: CoordinateIn
    rating: float | None = None
    vicinity: str = ""
    travel_legs: dict[str, TravelLegOut]
    total_minutes: int
    worst_case_minutes: int
    fairness_score: float
    incomplete_participants: list[str] = []
    rationale: str
    rank: int
    stats: StatsOut
    is_ai_pick: bool = False


class HubSelectResponse(BaseModel):
    narrative: str
    used_fallback: bool = False
    recommendations: list[RecommendationOut]


class VenueSelectResponse(BaseModel):
    recommendations: list[RecommendationOut]


class StationOut(BaseModel):
    id: str
    name: str
    lat: float
    lng: float
    zone: int | None = None
    lines: list[str] = []


class NearestStationOut(BaseModel):
    id: str
    name: str
    distance_meters: int
    zone: int | None = None
