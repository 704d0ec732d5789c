"""Hub selector: picks the fairest transit hubs for a group.

Pipeline:
    resolve locations → build context → scout (AI, up to 3 attempts)
    → [math fallback if the scout under-delivers] → score shortlist
    → deduplicate nearby entrances → judge (AI) → format top 3

Every AI step is optional: when the scout or judge is unavailable the
pipeline still returns a fully scored result, with the narrative saying so.
"""

import asyncio
import logging
from dataclasses import dataclass

from meetpoint.services.selection.config import (
    BEST_BALANCE_RATIONALE,
    DEFAULT_RATIONALE,
    FALLBACK_ANNOTATION,
    SelectionConfig,
    selection_config,
)
from meetpoint.services.selection.geo import centroid, is_near
from meetpoint.services.selection.location_resolver import AreaLabeller, LocationResolver
from meetpoint.services.selection.models import (
    Candidate,
    Hub,
    HubSelection,
    Participant,
    Recommendation,
    ResolvedParticipant,
    ScoredCandidate,
)
from meetpoint.services.selection.retry import Sleep, retry_until
from meetpoint.services.selection.scorer import CandidateScorer, rank_scored, summarize
from meetpoint.services.station_service import HubDirectory, pair_names
from meetpoint.services.suggestion_gateway import SuggestionGateway, Verdict

logger = logging.getLogger(__name__)


@dataclass
class Shortlist:
    hubs: list[Hub]
    from_scout: bool
    attempts: int


def build_context(participants: list[ResolvedParticipant]) -> str:
    """Plain-text description of the group for the scout and judge."""
    lines = []
    for p in participants:
        start = f"{p.start_label or 'unnamed spot'} ({p.start_location.lat:.4f},{p.start_location.lng:.4f})"
        if p.end_location == p.start_location:
            back = "returning to the same place"
        else:
            back = (
                f"returning to {p.end_label or 'unnamed spot'} "
                f"({p.end_location.lat:.4f},{p.end_location.lng:.4f})"
            )
        lines.append(f"- {p.name} [{p.id}]: starting at {start}, {back}")
    return "\n".join(lines)


def match_suggestions(names: list[str], directory: HubDirectory) -> list[Hub]:
    """Map free-text hub names onto known hubs, deduplicated, in suggestion order."""
    matched: list[Hub] = []
    seen = set()
    for name in names:
        hub = directory.match_name(name)
        if hub is None:
            logger.debug(f"Scout suggestion {name!r} matched no station")
            continue
        if hub.id not in seen:
            seen.add(hub.id)
            matched.append(hub)
    return matched


def deduplicate(
    ranked: list[ScoredCandidate], threshold_deg_sq: float, limit: int
) -> list[ScoredCandidate]:
    """Walk the ranking and keep candidates not near any already kept."""
    accepted: list[ScoredCandidate] = []
    for sc in ranked:
        if any(is_near(sc.candidate.center, a.candidate.center, threshold_deg_sq) for a in accepted):
            continue
        accepted.append(sc)
        if len(accepted) >= limit:
            break
    return accepted


def resolve_verdict(verdict: Verdict, judged: list[ScoredCandidate]) -> tuple[str | None, dict[str, str]]:
    """Map the judge's free-text names onto the candidates it was shown.

    Returns the winning candidate id (or None) and rationales keyed by
    candidate id. Each name resolves to at most one candidate.
    """
    if not verdict.ok:
        return None, {}
    names = [sc.candidate.name for sc in judged]

    winner_id = None
    if verdict.winner:
        pairs = pair_names([verdict.winner], names)
        if 0 in pairs:
            winner_id = judged[pairs[0]].candidate.id

    keys = list(verdict.rationales)
    rationales = {
        judged[ni].candidate.id: verdict.rationales[keys[qi]]
        for qi, ni in pair_names(keys, names).items()
    }
    return winner_id, rationales


class HubSelector:
    """Orchestrates hub selection over injected gateways."""

    def __init__(
        self,
        directory: HubDirectory,
        scorer: CandidateScorer,
        suggestions: SuggestionGateway,
        labeller: AreaLabeller | None = None,
        config: SelectionConfig | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self._directory = directory
        self._scorer = scorer
        self._suggestions = suggestions
        self._resolver = LocationResolver(directory, labeller)
        self._cfg = config or selection_config
        self._sleep = sleep

    async def select_hub(self, participants: list[Participant], meeting_time: str = "") -> HubSelection:
        active = await self._resolver.resolve_active(participants)
        if not active:
            return HubSelection(narrative="No ready participants with a usable location.")
        if not len(self._directory):
            return HubSelection(narrative="No reference stations available.")

        context = build_context(active)
        shortlist = await self._scout(context, meeting_time)
        if not shortlist.from_scout:
            shortlist = self._math_shortlist(active)

        candidates = [Candidate.from_hub(h) for h in shortlist.hubs[: self._cfg.shortlist.scoring_size]]
        scored = rank_scored(await self._scorer.score(candidates, active, symmetric_return=False))
        if not scored:
            narrative = "Routing was unavailable for every shortlisted hub, so no hub could be scored."
            if not shortlist.from_scout:
                narrative += f" ({FALLBACK_ANNOTATION})"
            return HubSelection(narrative=narrative, used_fallback=not shortlist.from_scout)

        finalists = deduplicate(scored, self._cfg.dedup.threshold_deg_sq, self._cfg.shortlist.result_size)
        judged = scored[: self._cfg.shortlist.judge_size]
        verdict = await self._suggestions.judge_candidates(judged, context, {p.id: p.name for p in active})

        recommendations = self._format(finalists, active, verdict, judged)
        narrative = self._narrative(shortlist, verdict, recommendations)
        logger.info(
            f"Hub selection: {len(active)} participants, {len(candidates)} scored, "
            f"{len(recommendations)} recommended (scout={'yes' if shortlist.from_scout else 'no'})"
        )
        return HubSelection(
            narrative=narrative,
            recommendations=recommendations,
            used_fallback=not shortlist.from_scout,
        )

    # ---- Stages ----

    async def _scout(self, context: str, meeting_time: str) -> Shortlist:
        scout = self._cfg.scout

        async def attempt(n: int) -> list[Hub]:
            names = await self._suggestions.suggest_hubs(context, meeting_time)
            matched = match_suggestions(names, self._directory)
            logger.info(f"Scout attempt {n}: {len(names)} suggested, {len(matched)} matched")
            return matched

        matched, attempts = await retry_until(
            attempt,
            lambda hubs: len(hubs) >= scout.min_matches,
            max_attempts=scout.max_attempts,
            backoff_seconds=scout.backoff_seconds,
            sleep=self._sleep,
        )
        matched = matched or []
        return Shortlist(hubs=matched, from_scout=len(matched) >= scout.min_matches, attempts=attempts)

    def _math_shortlist(self, participants: list[ResolvedParticipant]) -> Shortlist:
        points = [p.start_location for p in participants] + [p.end_location for p in participants]
        center = centroid(points)
        logger.info(f"Scout under-delivered, falling back to hubs nearest {center.lat:.4f},{center.lng:.4f}")
        hubs = self._directory.nearest_to(center, self._cfg.shortlist.fallback_size)
        return Shortlist(hubs=hubs, from_scout=False, attempts=self._cfg.scout.max_attempts)

    def _format(
        self,
        finalists: list[ScoredCandidate],
        participants: list[ResolvedParticipant],
        verdict: Verdict,
        judged: list[ScoredCandidate],
    ) -> list[Recommendation]:
        winner_id, rationales = resolve_verdict(verdict, judged)
        recommendations = []
        for rank, sc in enumerate(finalists, start=1):
            is_pick = winner_id is not None and sc.candidate.id == winner_id
            recommendations.append(Recommendation(
                scored=sc,
                rationale=self._rationale(sc, rank, verdict, rationales),
                rank=rank,
                is_ai_pick=is_pick,
                **summarize(sc, participants),
            ))
        return recommendations

    @staticmethod
    def _rationale(sc: ScoredCandidate, rank: int, verdict: Verdict, rationales: dict[str, str]) -> str:
        if verdict.ok:
            return rationales.get(sc.candidate.id, DEFAULT_RATIONALE)
        return BEST_BALANCE_RATIONALE if rank == 1 else DEFAULT_RATIONALE

    @staticmethod
    def _narrative(shortlist: Shortlist, verdict: Verdict, recommendations: list[Recommendation]) -> str:
        parts = []
        if verdict.ok and verdict.strategy:
            parts.append(verdict.strategy)
        elif recommendations:
            top = recommendations[0]
            parts.append(
                f"{top.candidate.name} gives the best balance: {top.scored.total_minutes} minutes "
                f"of round trips in total, longest {top.max_minutes} minutes."
            )

        if not shortlist.from_scout:
            parts.append(
                f"AI scouting returned too few known stations after {shortlist.attempts} attempts; "
                f"{FALLBACK_ANNOTATION} (nearest stations to the group's midpoint)."
            )
        if not verdict.ok:
            parts.append("AI judging unavailable; ranked purely by fairness score.")
        if any(r.scored.incomplete for r in recommendations):
            parts.append("Some journeys could not be routed and are marked incomplete.")
        return " ".join(parts)
