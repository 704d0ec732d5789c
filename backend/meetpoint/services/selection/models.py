"""Data structures flowing through the hub and venue selection pipeline.

Everything here is built fresh per selection run and thrown away once the
caller has persisted the winning recommendation.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float

    @property
    def is_resolved(self) -> bool:
        """(0, 0) marks a location that never resolved."""
        return not (self.lat == 0 and self.lng == 0)

    def as_param(self) -> str:
        return f"{self.lat},{self.lng}"

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng}


UNRESOLVED = Coordinate(0.0, 0.0)


# ---------- Location sources ----------


@dataclass(frozen=True)
class StationRef:
    """Participant picked a known station from the reference list."""
    station_id: str


@dataclass(frozen=True)
class LiveLocation:
    """Device-reported position, no human label."""
    coordinate: Coordinate


@dataclass(frozen=True)
class CustomLocation:
    """Pin dropped on the map, optionally labelled by the participant."""
    coordinate: Coordinate
    label: str = ""


LocationSource = StationRef | LiveLocation | CustomLocation


# ---------- Participants ----------

STATUS_PENDING = "pending"
STATUS_READY = "ready"


@dataclass
class Participant:
    """A group member as submitted by the caller.

    ``end`` of None means the participant returns to where they started.
    """
    id: str
    name: str
    start: LocationSource
    end: LocationSource | None = None
    status: str = STATUS_READY


@dataclass(frozen=True)
class ResolvedParticipant:
    """Participant with every location flattened to coordinate + label."""
    id: str
    name: str
    start_location: Coordinate
    start_label: str
    end_location: Coordinate
    end_label: str


# ---------- Reference hubs ----------


@dataclass(frozen=True)
class Hub:
    """A known transit station."""
    id: str
    name: str
    lat: float
    lng: float
    zone: int | None = None
    lines: tuple[str, ...] = ()

    @property
    def center(self) -> Coordinate:
        return Coordinate(self.lat, self.lng)

    @property
    def description(self) -> str:
        zone = self.zone if self.zone is not None else "?"
        line = self.lines[0] if self.lines else "Transport"
        return f"Zone {zone} • {line}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "lat": self.lat,
            "lng": self.lng,
            "zone": self.zone,
            "lines": list(self.lines),
        }


# ---------- Candidates and scores ----------


@dataclass(frozen=True)
class Candidate:
    """A hub or venue under consideration."""
    id: str
    name: str
    center: Coordinate
    description: str = ""
    rating: float | None = None
    vicinity: str = ""

    @classmethod
    def from_hub(cls, hub: Hub) -> "Candidate":
        return cls(id=hub.id, name=hub.name, center=hub.center, description=hub.description)


@dataclass(frozen=True)
class LegResult:
    """One routing lookup. ``ok=False`` means the minutes are meaningless."""
    minutes: int = 0
    ok: bool = False


FAILED_LEG = LegResult()


@dataclass(frozen=True)
class TravelLeg:
    """Outbound and return minutes for one participant; 0 = unknown."""
    outbound_minutes: int
    return_minutes: int

    @property
    def round_trip(self) -> int:
        return self.outbound_minutes + self.return_minutes

    def to_dict(self) -> dict:
        return {"outbound_minutes": self.outbound_minutes, "return_minutes": self.return_minutes}


@dataclass
class ScoredCandidate:
    candidate: Candidate
    travel_legs: dict[str, TravelLeg]
    total_minutes: int
    worst_case_minutes: int
    fairness_score: float
    # Participant ids whose outbound or return lookup failed
    incomplete_participants: list[str] = field(default_factory=list)

    @property
    def incomplete(self) -> bool:
        return bool(self.incomplete_participants)

    @property
    def penalty(self) -> float:
        return self.fairness_score - self.total_minutes


@dataclass
class Recommendation:
    """A scored candidate ready to hand back to the caller."""
    scored: ScoredCandidate
    rationale: str
    rank: int
    avg_minutes: float = 0.0
    max_minutes: int = 0
    penalty: float = 0.0
    worst_participant: str | None = None
    is_ai_pick: bool = False

    @property
    def candidate(self) -> Candidate:
        return self.scored.candidate

    def to_dict(self) -> dict:
        c = self.scored.candidate
        return {
            "id": c.id,
            "name": c.name,
            "description": c.description,
            "center": c.center.to_dict(),
            "rating": c.rating,
            "vicinity": c.vicinity,
            "travel_legs": {pid: leg.to_dict() for pid, leg in self.scored.travel_legs.items()},
            "total_minutes": self.scored.total_minutes,
            "worst_case_minutes": self.scored.worst_case_minutes,
            "fairness_score": self.scored.fairness_score,
            "incomplete_participants": list(self.scored.incomplete_participants),
            "rationale": self.rationale,
            "rank": self.rank,
            "stats": {
                "avg_minutes": self.avg_minutes,
                "max_minutes": self.max_minutes,
                "penalty": self.penalty,
                "worst_participant": self.worst_participant,
            },
            "is_ai_pick": self.is_ai_pick,
        }


@dataclass
class HubSelection:
    """Output of the hub stage."""
    narrative: str
    recommendations: list[Recommendation] = field(default_factory=list)
    used_fallback: bool = False

    def to_dict(self) -> dict:
        return {
            "narrative": self.narrative,
            "used_fallback": self.used_fallback,
            "recommendations": [r.to_dict() for r in self.recommendations],
        }
