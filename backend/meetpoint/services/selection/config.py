"""Selection pipeline configuration: single source for all thresholds."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ScoringThresholds:
    """Round-trip fairness penalty.

    Any single participant whose round trip exceeds the threshold adds
    multiplier × (minutes over threshold) to the candidate's score.
    """
    penalty_threshold_minutes: int = 90
    penalty_multiplier: float = 5.0

    def penalty(self, worst_case_minutes: int) -> float:
        if worst_case_minutes <= self.penalty_threshold_minutes:
            return 0.0
        return self.penalty_multiplier * (worst_case_minutes - self.penalty_threshold_minutes)


@dataclass(frozen=True)
class DedupThresholds:
    """Two candidates closer than this are the same place (degrees squared)."""
    threshold_deg_sq: float = 0.003 ** 2   # ~330m in central London


@dataclass(frozen=True)
class ScoutConfig:
    """AI scouting retry policy."""
    max_attempts: int = 3
    backoff_seconds: float = 1.5
    min_matches: int = 3


@dataclass(frozen=True)
class ShortlistLimits:
    """How many hubs survive each stage (bounds routing API cost)."""
    fallback_size: int = 15     # nearest hubs to the centroid
    scoring_size: int = 5       # hubs sent to the distance matrix
    judge_size: int = 5         # scored hubs shown to the judge
    result_size: int = 3        # recommendations returned


@dataclass(frozen=True)
class VenueLimits:
    """Venue search and enrichment caps."""
    search_cap: int = 10
    enrich_top: int = 3
    default_radius_meters: int = 800
    default_keyword: str = "pub"
    place_type: str = "bar"


@dataclass(frozen=True)
class EnrichmentLimits:
    """Review snippet selection for venue summaries."""
    min_review_chars: int = 40
    max_summary_chars: int = 140


@dataclass(frozen=True)
class LLMParams:
    """Parameters for the scout and judge LLM calls."""
    scout_max_tokens: int = 600
    scout_temperature: float = 0.4
    judge_max_tokens: int = 800
    judge_temperature: float = 0.1
    rationale_max_chars: int = 200


DEFAULT_RATIONALE = "Strategic option."
BEST_BALANCE_RATIONALE = "Best balance of total travel time and fairness."
FALLBACK_ANNOTATION = "standard optimization used"


@dataclass(frozen=True)
class SelectionConfig:
    """Top-level config aggregating all sub-configs."""
    scoring: ScoringThresholds = field(default_factory=ScoringThresholds)
    dedup: DedupThresholds = field(default_factory=DedupThresholds)
    scout: ScoutConfig = field(default_factory=ScoutConfig)
    shortlist: ShortlistLimits = field(default_factory=ShortlistLimits)
    venues: VenueLimits = field(default_factory=VenueLimits)
    enrichment: EnrichmentLimits = field(default_factory=EnrichmentLimits)
    llm: LLMParams = field(default_factory=LLMParams)
    transit_modes: tuple = ("transit", "walking")


# Singleton — import this everywhere
selection_config = SelectionConfig()
