"""Data contracts shared by the capture, panel, perception and consensus stages.

Everything here is immutable once built and serializes to plain
JSON-compatible structures through ``to_dict()``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from webpanel.config import AGENT_VERDICT_BANDS


class VerdictTier(str, Enum):
    """Ordered verdict scale, worst first."""
    POOR = "Poor"
    OK = "OK"
    GOOD = "Good"
    EXCELLENT = "Excellent"
    WORLD_CLASS = "World-Class"

    @property
    def rank(self) -> int:
        return list(VerdictTier).index(self)


class AgentKind(str, Enum):
    UX_DESIGNER = "UX Designer"
    PRODUCT_DESIGNER = "Product Designer"
    CONVERSION_STRATEGIST = "Conversion Strategist"
    SEO_SPECIALIST = "SEO Specialist"
    BRAND_ANALYST = "Brand Identity Analyst"

    @property
    def slug(self) -> str:
        return self.value.lower().replace(" ", "-")


class Level(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ── Capture ─────────────────────────────────────────────────

@dataclass(frozen=True)
class Viewport:
    name: str
    width: int
    height: int


@dataclass(frozen=True)
class Color:
    """Quantized RGB triplet."""
    r: int
    g: int
    b: int

    @property
    def hex(self) -> str:
        return "#{:02X}{:02X}{:02X}".format(self.r, self.g, self.b)

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.r, self.g, self.b)


@dataclass(frozen=True)
class RenderCapture:
    """One rasterized viewport and the features derived from it."""
    viewport: Viewport
    path: str
    dominant_colors: Tuple[Color, ...] = ()
    layout_rhythm: Optional[float] = None         # desktop only
    component_tags: Tuple[str, ...] = ()          # desktop only
    navigation_type: Optional[str] = None         # mobile only: hamburger | stacked | none
    readability_score: Optional[float] = None     # mobile only

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["dominant_colors"] = [c.hex for c in self.dominant_colors]
        out["component_tags"] = list(self.component_tags)
        return out


@dataclass(frozen=True)
class CaptureSet:
    """The three viewport captures plus the desktop page and its text."""
    desktop: RenderCapture
    tablet: RenderCapture
    mobile: RenderCapture
    page: Any                     # PageQuery for the desktop render
    html: str
    body_text: str
    title: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "desktop": self.desktop.to_dict(),
            "tablet": self.tablet.to_dict(),
            "mobile": self.mobile.to_dict(),
            "title": self.title,
        }


# ── Expert panel details ────────────────────────────────────

@dataclass(frozen=True)
class UsabilityChecklist:
    score: float
    violations: Tuple[str, ...] = ()


@dataclass(frozen=True)
class UXDetails:
    heuristics: UsabilityChecklist
    nav_exists: bool
    nav_link_count: int
    nav_has_logo: bool
    nav_is_sticky: bool
    h1_count: int
    h2_count: int
    h3_count: int
    tap_targets_total: int
    tap_targets_adequate: int
    layout_rhythm: float


@dataclass(frozen=True)
class ProductDetails:
    color_count: int
    font_families: Tuple[str, ...]
    has_modern_font: bool
    size_variety: int
    has_type_hierarchy: bool
    has_gradients: bool
    has_shadows: bool
    has_rounded: bool
    high_quality_images: int
    layout_rhythm: float
    section_count: int
    padding_variety: int
    is_consistent: bool


@dataclass(frozen=True)
class ConversionDetails:
    strong_ctas: int
    above_fold_cta: bool
    testimonials: bool
    certifications: bool
    social_proof: bool
    guarantees: bool
    has_phone: bool
    has_email: bool
    has_form: bool
    funnel_hero: bool
    funnel_value: bool
    funnel_proof: bool
    funnel_action: bool
    popups: int
    required_fields: int


@dataclass(frozen=True)
class SEODetails:
    title: str
    meta_description: str
    h1_count: int
    h2_count: int
    h3_count: int
    has_schema: bool
    alt_coverage: float
    word_count: int
    internal_links: int


@dataclass(frozen=True)
class BrandDetails:
    has_generic_voice: bool
    has_logo: bool
    svg_count: int
    icon_count: int
    images_total: int
    images_custom: int
    images_high_quality: int
    has_story: bool
    has_tagline: bool
    color_count: int
    has_custom_hero: bool
    has_animations: bool
    has_unique_layout: bool
    is_generic_template: bool


AgentDetails = Union[UXDetails, ProductDetails, ConversionDetails, SEODetails, BrandDetails]


@dataclass(frozen=True)
class ExpertEvaluation:
    agent: AgentKind
    focus: str
    score: float
    strengths: Tuple[str, ...]
    weaknesses: Tuple[str, ...]
    verdict: VerdictTier
    details: Optional[AgentDetails] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "agent": self.agent.value,
            "focus": self.focus,
            "score": self.score,
            "strengths": list(self.strengths),
            "weaknesses": list(self.weaknesses),
            "verdict": self.verdict.value,
            "details": asdict(self.details) if self.details is not None else None,
            "error": self.error,
        }


# ── Perception ──────────────────────────────────────────────

@dataclass(frozen=True)
class PerceptionBreakdown:
    trust: Level
    premium: Level
    memorable: Level


@dataclass(frozen=True)
class PerceptionScore:
    first_impression: float
    emotional_resonance: float
    cohesion: float
    identity_recognition: float
    total_score: float
    breakdown: PerceptionBreakdown

    def to_dict(self) -> Dict[str, Any]:
        return {
            "firstImpression": self.first_impression,
            "emotionalResonance": self.emotional_resonance,
            "cohesion": self.cohesion,
            "identityRecognition": self.identity_recognition,
            "totalScore": self.total_score,
            "breakdown": {
                "trust": self.breakdown.trust.value,
                "premium": self.breakdown.premium.value,
                "memorable": self.breakdown.memorable.value,
            },
        }


# ── Consensus ───────────────────────────────────────────────

@dataclass(frozen=True)
class ConsensusResult:
    industry: str
    weights: Mapping[str, float]
    normalized_scores: Mapping[str, float]
    weighted_score: float
    anomalies: Tuple[str, ...]
    final_verdict: VerdictTier
    expert_agreement: float

    def __post_init__(self):
        # frozen only guards the attributes, so freeze the tables too
        object.__setattr__(self, "weights", MappingProxyType(dict(self.weights)))
        object.__setattr__(self, "normalized_scores", MappingProxyType(dict(self.normalized_scores)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "industry": self.industry,
            "weights": dict(self.weights),
            "normalizedScores": dict(self.normalized_scores),
            "weightedScore": self.weighted_score,
            "anomalies": list(self.anomalies),
            "finalVerdict": self.final_verdict.value,
            "expertAgreement": self.expert_agreement,
        }


@dataclass(frozen=True)
class AssessmentResult:
    """Terminal output of one pipeline run."""
    url: str
    timestamp: str
    captures: CaptureSet
    evaluations: Tuple[ExpertEvaluation, ...]
    consensus: ConsensusResult
    perception: PerceptionScore
    final_weighted_score: float = 0.0
    meets_excellent_criteria: bool = False
    files: Dict[str, str] = field(default_factory=dict)

    def evaluation_for(self, kind: AgentKind) -> ExpertEvaluation:
        for ev in self.evaluations:
            if ev.agent == kind:
                return ev
        raise KeyError(kind.value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "timestamp": self.timestamp,
            "captures": self.captures.to_dict(),
            "expertPanel": [ev.to_dict() for ev in self.evaluations],
            "consensus": self.consensus.to_dict(),
            "perception": self.perception.to_dict(),
            "finalWeightedScore": self.final_weighted_score,
            "meetsExcellentCriteria": self.meets_excellent_criteria,
            "files": dict(self.files),
        }


def verdict_from_bands(score: float, bands) -> VerdictTier:
    for cutoff, label in bands:
        if score < cutoff:
            return VerdictTier(label)
    return VerdictTier.WORLD_CLASS


def agent_verdict(score: float) -> VerdictTier:
    return verdict_from_bands(score, AGENT_VERDICT_BANDS)
