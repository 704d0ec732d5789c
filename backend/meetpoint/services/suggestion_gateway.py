"""Suggestion gateway: AI scout (hub ideas) and AI judge (pick + rationale).

Both calls treat the model output as untrusted text: the first balanced JSON
value is cut out of the response and parsed, and anything unexpected turns
into an empty / not-ok result instead of an exception.
"""

import json
import logging
from dataclasses import dataclass, field

from meetpoint.services.llm_client import LLMClient, llm_client
from meetpoint.services.selection.config import selection_config
from meetpoint.services.selection.models import ScoredCandidate
from meetpoint.services.selection.prompts import load_prompt

logger = logging.getLogger(__name__)

cfg = selection_config

_SCOUT_PROMPT = load_prompt("scout.md")
_JUDGE_PROMPT = load_prompt("judge.md")

_CLOSERS = {"[": "]", "{": "}"}


@dataclass
class Verdict:
    """Judge output. ``ok`` is False whenever the judge could not be used."""
    ok: bool
    winner: str | None = None
    rationales: dict[str, str] = field(default_factory=dict)
    strategy: str = ""


NO_VERDICT = Verdict(ok=False)


def extract_json(text: str):
    """Return the first balanced JSON array/object embedded in ``text``.

    Brackets inside JSON strings are ignored. Returns None when nothing
    parseable is found.
    """
    if not text:
        return None

    start = 0
    while True:
        positions = [p for p in (text.find("[", start), text.find("{", start)) if p != -1]
        if not positions:
            return None
        begin = min(positions)
        end = _balanced_end(text, begin)
        if end is not None:
            try:
                return json.loads(text[begin:end + 1])
            except json.JSONDecodeError:
                pass
        start = begin + 1


def _balanced_end(text: str, begin: int) -> int | None:
    stack = []
    in_string = False
    escaped = False
    for i in range(begin, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
        elif ch in ("]", "}"):
            if not stack or stack.pop() != ch:
                return None
            if not stack:
                return i
    return None


class SuggestionGateway:
    """Scout and judge over the unified LLM client."""

    def __init__(self, client: LLMClient | None = None):
        self._client = client or llm_client
        self._warned_missing = False

    def _ready(self) -> bool:
        if self._client.available:
            return True
        if not self._warned_missing:
            logger.warning("No LLM API key configured, AI scout and judge disabled")
            self._warned_missing = True
        return False

    async def suggest_hubs(self, context: str, meeting_time: str) -> list[str]:
        """Named hub suggestions, or [] on any failure."""
        if not self._ready():
            return []

        user = f"Meeting time: {meeting_time or 'not specified'}\n\nGroup:\n{context}"
        try:
            raw = await self._client.complete(
                system=_SCOUT_PROMPT,
                user=user,
                max_tokens=cfg.llm.scout_max_tokens,
                temperature=cfg.llm.scout_temperature,
                json_mode=True,
            )
        except Exception as e:
            logger.warning(f"Scout call failed: {e}")
            return []

        logger.debug(f"Scout raw output: {raw[:500]}")
        parsed = extract_json(raw)
        if isinstance(parsed, dict):
            parsed = parsed.get("hubs") or parsed.get("stations") or []
        if not isinstance(parsed, list):
            logger.warning("Scout output had no JSON list of hubs")
            return []

        names = []
        for item in parsed:
            if isinstance(item, dict):
                item = item.get("name")
            if isinstance(item, str) and item.strip():
                names.append(item.strip())
        return names

    async def judge_candidates(
        self,
        candidates: list[ScoredCandidate],
        context: str,
        participant_names: dict[str, str] | None = None,
    ) -> Verdict:
        """Pick a winner among scored candidates, with a rationale per name.

        ``participant_names`` maps participant ids to the names used in ``context``.
        """
        if not candidates or not self._ready():
            return NO_VERDICT

        try:
            raw = await self._client.complete(
                system=_JUDGE_PROMPT,
                user=self._build_judge_prompt(candidates, context, participant_names or {}),
                max_tokens=cfg.llm.judge_max_tokens,
                temperature=cfg.llm.judge_temperature,
                json_mode=True,
            )
        except Exception as e:
            logger.warning(f"Judge call failed: {e}")
            return NO_VERDICT

        logger.debug(f"Judge raw output: {raw[:500]}")
        parsed = extract_json(raw)
        if not isinstance(parsed, dict):
            logger.warning("Judge output had no JSON object")
            return NO_VERDICT

        winner = parsed.get("winner")
        if not isinstance(winner, str) or not winner.strip():
            logger.warning("Judge output missing winner")
            return NO_VERDICT

        rationales = {}
        raw_rationales = parsed.get("rationales")
        if isinstance(raw_rationales, dict):
            for name, reason in raw_rationales.items():
                if isinstance(reason, str) and reason.strip():
                    rationales[str(name)] = _truncate(reason.strip(), cfg.llm.rationale_max_chars)

        strategy = parsed.get("strategy")
        return Verdict(
            ok=True,
            winner=winner.strip(),
            rationales=rationales,
            strategy=_truncate(strategy.strip(), 300) if isinstance(strategy, str) else "",
        )

    @staticmethod
    def _build_judge_prompt(
        candidates: list[ScoredCandidate], context: str, names: dict[str, str]
    ) -> str:
        lines = [f"Group:\n{context}", "", "Candidates:"]
        for sc in candidates:
            legs = ", ".join(
                f"{names.get(pid, pid)}: no route"
                if pid in sc.incomplete_participants
                else f"{names.get(pid, pid)}: {leg.outbound_minutes}m out / {leg.return_minutes}m back"
                for pid, leg in sc.travel_legs.items()
            )
            lines.append(
                f"- {sc.candidate.name} ({sc.candidate.description}): total={sc.total_minutes}m, "
                f"worst={sc.worst_case_minutes}m, fairness={sc.fairness_score:.0f} [{legs}]"
            )
        return "\n".join(lines)


def _truncate(text: str, max_len: int) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


suggestion_gateway = SuggestionGateway()
