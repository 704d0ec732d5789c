"""Candidate scorer: round-trip travel matrices and the fairness score.

For every (participant, candidate) pair the scorer needs an outbound leg
(participant start → candidate) and a return leg (candidate → participant
end). Each direction is requested once per mode as a whole matrix, all
requests run concurrently, and the fastest successful mode wins per cell.

    total    = Σ (outbound_i + return_i)
    worst    = max (outbound_i + return_i)
    fairness = total + penalty(worst)

A failed lookup is never read as "0 minutes": the participant is recorded
as incomplete for that candidate, contributes nothing to total/worst, and
incomplete candidates always rank behind complete ones.
"""

import asyncio
import logging

from meetpoint.services.routing_gateway import RoutingGateway
from meetpoint.services.selection.config import SelectionConfig, selection_config
from meetpoint.services.selection.models import (
    FAILED_LEG,
    Candidate,
    LegResult,
    ResolvedParticipant,
    ScoredCandidate,
    TravelLeg,
)

logger = logging.getLogger(__name__)


def fastest(results: list[LegResult]) -> LegResult:
    """Fastest successful result; ok legs are at least one minute."""
    ok = [r for r in results if r.ok]
    if not ok:
        return FAILED_LEG
    best = min(ok, key=lambda r: r.minutes)
    return LegResult(max(1, best.minutes), True)


def rank_scored(scored: list[ScoredCandidate]) -> list[ScoredCandidate]:
    """Complete before incomplete, then fairness ascending; stable on ties."""
    return sorted(scored, key=lambda s: (s.incomplete, s.fairness_score))


class CandidateScorer:
    """Scores candidates for a resolved group of participants."""

    def __init__(self, routing: RoutingGateway, config: SelectionConfig | None = None):
        self._routing = routing
        self._cfg = config or selection_config

    async def score(
        self,
        candidates: list[Candidate],
        participants: list[ResolvedParticipant],
        symmetric_return: bool = False,
    ) -> list[ScoredCandidate]:
        """Score candidates in input order; candidates with no usable leg are dropped."""
        if not candidates or not participants:
            return []

        starts = [p.start_location for p in participants]
        ends = [p.end_location for p in participants]
        centers = [c.center for c in candidates]

        outbound_task = self._best_matrix(starts, centers)
        if symmetric_return:
            outbound = await outbound_task
            inbound = None
        else:
            outbound, inbound = await asyncio.gather(outbound_task, self._best_matrix(centers, ends))

        scored = []
        for ci, candidate in enumerate(candidates):
            legs: dict[str, TravelLeg] = {}
            incomplete: list[str] = []
            total = 0
            worst = 0

            for pi, participant in enumerate(participants):
                out_leg = outbound[pi][ci]
                back_leg = out_leg if inbound is None else inbound[ci][pi]
                legs[participant.id] = TravelLeg(
                    outbound_minutes=out_leg.minutes if out_leg.ok else 0,
                    return_minutes=back_leg.minutes if back_leg.ok else 0,
                )
                if not (out_leg.ok and back_leg.ok):
                    incomplete.append(participant.id)
                    continue
                round_trip = out_leg.minutes + back_leg.minutes
                total += round_trip
                worst = max(worst, round_trip)

            if total == 0:
                logger.info(f"Dropping {candidate.name}: every routing lookup failed")
                continue
            if incomplete:
                logger.info(f"{candidate.name}: incomplete legs for {len(incomplete)} participant(s)")

            scored.append(ScoredCandidate(
                candidate=candidate,
                travel_legs=legs,
                total_minutes=total,
                worst_case_minutes=worst,
                fairness_score=total + self._cfg.scoring.penalty(worst),
                incomplete_participants=incomplete,
            ))
        return scored

    async def _best_matrix(self, origins, destinations) -> list[list[LegResult]]:
        """One matrix per mode, merged cell by cell on the fastest success."""
        modes = self._cfg.transit_modes
        grids = await asyncio.gather(
            *(self._routing.matrix(origins, destinations, mode) for mode in modes)
        )
        return [
            [fastest([grid[r][c] for grid in grids]) for c in range(len(destinations))]
            for r in range(len(origins))
        ]


def summarize(sc: ScoredCandidate, participants: list[ResolvedParticipant]) -> dict:
    """Average and worst round trip over participants with complete legs."""
    names = {p.id: p.name for p in participants}
    complete = {pid: leg for pid, leg in sc.travel_legs.items() if pid not in sc.incomplete_participants}
    if not complete:
        return {"avg_minutes": 0.0, "max_minutes": 0, "penalty": sc.penalty, "worst_participant": None}

    worst_id = max(complete, key=lambda pid: complete[pid].round_trip)
    return {
        "avg_minutes": round(sc.total_minutes / len(complete), 1),
        "max_minutes": complete[worst_id].round_trip,
        "penalty": sc.penalty,
        "worst_participant": names.get(worst_id, worst_id),
    }
