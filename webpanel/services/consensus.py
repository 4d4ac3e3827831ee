"""
Consensus engine: turn the five panel evaluations into one weighted,
industry-aware verdict.

Pure and deterministic. Every table it reads lives in ``webpanel.config``.
"""

from __future__ import annotations

import re
from statistics import fmean, pvariance
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Sequence, Tuple

from webpanel.config import (
    ANOMALY_THRESHOLD,
    CATEGORIES,
    EXCELLENT_FINAL_MINIMUM,
    EXCELLENT_THRESHOLDS,
    FINAL_BLEND,
    INDUSTRY_KEYWORDS,
    INDUSTRY_WEIGHTS,
    VERDICT_CUTOFFS,
)

from .errors import AggregationInputViolation
from .models import AgentKind, ConsensusResult, ExpertEvaluation, VerdictTier, verdict_from_bands
from .utils import clamp

DEFAULT_INDUSTRY = "default"
FALLBACK_CATEGORY = "content"

AGENT_CATEGORIES = MappingProxyType({
    AgentKind.UX_DESIGNER: "ux",
    AgentKind.PRODUCT_DESIGNER: "visual",
    AgentKind.CONVERSION_STRATEGIST: "conversion",
    AgentKind.SEO_SPECIALIST: "seo",
    AgentKind.BRAND_ANALYST: "brand",
})

_INDUSTRY_PATTERNS = tuple(
    (industry, re.compile(r"\b(?:" + "|".join(re.escape(k) for k in keywords) + ")", re.I))
    for industry, keywords in INDUSTRY_KEYWORDS
)


def detect_industry(url: str, body_text: str) -> str:
    """First industry (in priority order) whose keywords occur in the URL or text."""
    haystack = f"{url or ''} {body_text or ''}"
    for industry, pattern in _INDUSTRY_PATTERNS:
        if pattern.search(haystack):
            return industry
    return DEFAULT_INDUSTRY


def select_weights(industry: str) -> Mapping[str, float]:
    return INDUSTRY_WEIGHTS.get(industry, INDUSTRY_WEIGHTS[DEFAULT_INDUSTRY])


def category_for(agent) -> str:
    """Scoring category for an agent kind or its display name."""
    try:
        return AGENT_CATEGORIES[AgentKind(agent)]
    except ValueError:
        return FALLBACK_CATEGORY


def normalize(evaluations: Iterable[ExpertEvaluation]) -> Dict[str, float]:
    return {category_for(ev.agent): clamp(ev.score, 0.0, 10.0) for ev in evaluations}


def weighted_composite(scores: Mapping[str, float], weights: Mapping[str, float]) -> float:
    """0-10 category scores blended to 0-100; unscored categories add nothing."""
    total = sum(scores.get(category, 0.0) * weight * 10 for category, weight in weights.items())
    return clamp(total, 0.0, 100.0)


def detect_anomalies(scores: Mapping[str, float],
                     threshold: float = ANOMALY_THRESHOLD) -> Tuple[str, ...]:
    if not scores:
        return ()
    mean = fmean(scores.values())
    return tuple(
        f"{category} score ({score:.1f}) deviates significantly from the mean ({mean:.1f})"
        for category, score in scores.items()
        if abs(score - mean) > threshold
    )


def expert_agreement(scores: Mapping[str, float]) -> float:
    values = list(scores.values())
    if not values:
        return 100.0
    return clamp(100.0 - 10.0 * pvariance(values), 0.0, 100.0)


def meets_excellent_criteria(scores: Mapping[str, float]) -> bool:
    """Every canonical category at or above its threshold; a missing one fails."""
    return all(scores.get(category, 0.0) >= minimum
               for category, minimum in EXCELLENT_THRESHOLDS.items())


def final_weighted_score(weighted_score: float, perception_total: float) -> float:
    """Headline 0-100 score. The consensus result itself is never blended."""
    blended = (weighted_score * FINAL_BLEND["consensus"]
               + perception_total * FINAL_BLEND["perception"])
    return round(blended, 1)


def qualifies_as_excellent(scores: Mapping[str, float], final_score: float) -> bool:
    return meets_excellent_criteria(scores) and final_score >= EXCELLENT_FINAL_MINIMUM


def determine_verdict(weighted_score: float, scores: Mapping[str, float]) -> VerdictTier:
    tier = verdict_from_bands(weighted_score, VERDICT_CUTOFFS)
    if tier.rank >= VerdictTier.EXCELLENT.rank and not meets_excellent_criteria(scores):
        return VerdictTier.GOOD
    return tier


def _check_panel(evaluations: Sequence[ExpertEvaluation]):
    seen = [ev.agent for ev in evaluations]
    missing = [kind.value for kind in AgentKind if kind not in seen]
    if missing or len(seen) != len(AgentKind):
        raise AggregationInputViolation(
            f"expected one evaluation per expert, got {len(seen)} (missing: {', '.join(missing) or 'none'})")
    for ev in evaluations:
        if not 0.0 <= ev.score <= 10.0:
            raise AggregationInputViolation(f"score {ev.score!r} outside [0, 10]",
                                            agent=ev.agent.value)


def build_consensus(evaluations: Sequence[ExpertEvaluation], url: str,
                    body_text: str) -> ConsensusResult:
    _check_panel(evaluations)
    industry = detect_industry(url, body_text)
    weights = select_weights(industry)
    scores = normalize(evaluations)
    # canonical order keeps serialized output stable
    scores = {c: scores[c] for c in CATEGORIES if c in scores}
    weighted = weighted_composite(scores, weights)
    return ConsensusResult(
        industry=industry,
        weights=dict(weights),
        normalized_scores=scores,
        weighted_score=weighted,
        anomalies=detect_anomalies(scores),
        final_verdict=determine_verdict(weighted, scores),
        expert_agreement=expert_agreement(scores),
    )
