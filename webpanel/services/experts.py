"""
Five heuristic experts. Each reads the rendered page, its HTML, the visible
text and the viewport captures, starts from a base score and moves it per
detected signal. Scores are clamped to [0, 10] where they are produced.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .insights import HERO, find_font_families, parse_px
from .models import (
    AgentKind,
    BrandDetails,
    CaptureSet,
    ConversionDetails,
    ExpertEvaluation,
    ProductDetails,
    SEODetails,
    UsabilityChecklist,
    UXDetails,
    agent_verdict,
)
from .page import PageQuery
from .utils import clamp

# --- shared signal vocabulary

STRONG_CTA_RE = re.compile(
    r"book a consultation|schedule a call|get started|start free trial|"
    r"sign up now|try for free|buy now|add to cart", re.I)

TRUST_RES = {
    "testimonials": re.compile(r"testimonial|review|customer quote|client testimonial", re.I),
    "certifications": re.compile(r"certified|award|trusted|verified|secure|ssl|badge", re.I),
    "social_proof": re.compile(r"clients|customers|users|followers", re.I),
    "guarantees": re.compile(r"guarantee|money back|satisfaction|warranty", re.I),
}

PHONE_RE = re.compile(r"(\+?\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}")
EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
VALUE_RE = re.compile(r"value|benefit|feature|advantage", re.I)
PROOF_RE = re.compile(r"testimonial|review|case study|client", re.I)
HELP_RE = re.compile(r"faq|help|support|documentation|guide", re.I)
GENERIC_TITLE_RE = re.compile(r"^(home|services|about|contact)\s*\|", re.I)

GENERIC_VOICE_RES = (
    re.compile(r"we deliver exceptional quality", re.I),
    re.compile(r"quality, integrity, and customer satisfaction", re.I),
    re.compile(r"we are the best", re.I),
    re.compile(r"we provide excellent service", re.I),
)
STORY_RE = re.compile(r"story|journey|mission|vision|founded|since \d{4}", re.I)
TAGLINE_RE = re.compile(r"tagline|slogan|motto", re.I)
GENERIC_TEMPLATE_RE = re.compile(r"confetti|dots|playful|template|demo|lorem ipsum", re.I)

MODERN_FONTS = ("Inter", "SF Pro", "Helvetica Neue", "IBM Plex", "Roboto", "Open Sans")
STOCK_HOSTS = ("unsplash.com", "pexels.com", "pixabay.com")

NAV_ROOT = 'nav, [role="navigation"]'
NAV_LOGO = ('nav img, nav svg, nav [class*="logo"], [role="navigation"] img, '
            '[role="navigation"] svg, [role="navigation"] [class*="logo"]')
INTERACTIVE = 'button, a, [role="button"]'
SECTIONS = 'section, [class*="section"]'
LOGO = 'img[alt*="logo"], [class*="logo"], svg[class*="logo"]'
ICONS = '[class*="icon"], svg'
ANIMATED = '[style*="animation"], [class*="animate"]'
CUSTOM_HERO = 'section.hero, .hero-section'
UNIQUE_LAYOUT = '[class*="custom"], [class*="unique"]'
GRADIENTS = '[style*="gradient"], [class*="gradient"]'
SHADOWS = '[style*="shadow"], [class*="shadow"]'
ROUNDED = '[style*="border-radius"], [class*="rounded"]'
POPUPS = '[class*="popup"], [class*="modal"], [id*="popup"]'

HIGH_RES_WIDTH = 800
MIN_TAP = 44


@dataclass(frozen=True)
class PanelInputs:
    """Everything an expert may read. Shared read-only across threads."""
    page: PageQuery
    html: str
    body_text: str
    captures: Optional[CaptureSet] = None

    @classmethod
    def from_captures(cls, captures: CaptureSet) -> "PanelInputs":
        return cls(page=captures.page, html=captures.html,
                   body_text=captures.body_text, captures=captures)

    @property
    def layout_rhythm(self) -> float:
        if self.captures is None or self.captures.desktop.layout_rhythm is None:
            return 5.0
        return self.captures.desktop.layout_rhythm

    @property
    def color_count(self) -> int:
        if self.captures is None:
            return 0
        return len(self.captures.desktop.dominant_colors)


class _Tally:
    """Running score with rationale."""

    def __init__(self, base: float):
        self.score = base
        self.strengths: List[str] = []
        self.weaknesses: List[str] = []

    def plus(self, points: float, strength: Optional[str] = None):
        self.score += points
        if strength:
            self.strengths.append(strength)

    def minus(self, points: float, weakness: Optional[str] = None):
        self.score -= points
        if weakness:
            self.weaknesses.append(weakness)

    def note(self, weakness: str):
        self.weaknesses.append(weakness)


class Evaluator(ABC):
    kind: AgentKind
    focus: str
    base_score: float = 5.0

    @abstractmethod
    def evaluate(self, inputs: PanelInputs) -> ExpertEvaluation: ...

    def _finish(self, tally: _Tally, details) -> ExpertEvaluation:
        score = clamp(tally.score, 0.0, 10.0)
        return ExpertEvaluation(
            agent=self.kind,
            focus=self.focus,
            score=score,
            strengths=tuple(tally.strengths),
            weaknesses=tuple(tally.weaknesses),
            verdict=agent_verdict(score),
            details=details,
        )

    def neutral(self, error: str) -> ExpertEvaluation:
        """Stand-in used when ``evaluate`` raised."""
        return ExpertEvaluation(
            agent=self.kind,
            focus=self.focus,
            score=self.base_score,
            strengths=(),
            weaknesses=(),
            verdict=agent_verdict(self.base_score),
            details=None,
            error=error,
        )


# --- usability checklist

def usability_checklist(page: PageQuery) -> UsabilityChecklist:
    """Ten usability heuristics; 5.0 baseline, clamped to [0, 10]."""
    score = 5.0
    violations = []
    text = page.body_text or ""
    lowered = text.lower()

    # 1. visibility of system status
    if not (page.exists('[class*="loading"], [class*="spinner"]') or "Loading" in text):
        score += 0.2

    # 2. match with the real world
    if "lorem ipsum" not in lowered and len(text) > 100:
        score += 0.5
    else:
        violations.append("Unclear language or placeholder text")

    # 3. user control and freedom
    if page.history_length > 1 or page.exists('[aria-label*="back"], [class*="back"]'):
        score += 0.3

    # 4. consistency and standards
    button_bgs = set(page.computed_style("button", "background-color"))
    if len(button_bgs) <= 3 and page.count_matching("button") >= 2:
        score += 0.5
    else:
        violations.append("Inconsistent button styles")

    # 5. error prevention
    if page.exists('input[required], input[type="email"], input[pattern]'):
        score += 0.3

    # 6. recognition rather than recall
    fields = "input, select, textarea"
    labelled_ids = {v for v in page.attributes("label[for]", "for") if v}
    aria = page.attributes(fields, "aria-label")
    ids = page.attributes(fields, "id")
    labelled = sum(1 for a, i in zip(aria, ids) if a or (i and i in labelled_ids))
    if labelled / max(len(ids), 1) >= 0.8:
        score += 0.5
    else:
        violations.append("Some form fields lack labels")

    # 7. flexibility and efficiency
    if page.exists("[accesskey], [title]"):
        score += 0.2

    # 8. aesthetic and minimalist design
    if 3 <= page.count_matching(SECTIONS) <= 10:
        score += 0.5
    else:
        violations.append("Design may be cluttered")

    # 9. error recognition and recovery
    if (page.exists('[class*="error"], [role="alert"]')
            or "error" in text or "invalid" in text):
        score += 0.3

    # 10. help and documentation
    if HELP_RE.search(text) or page.exists('[class*="help"], [class*="faq"]'):
        score += 0.2

    return UsabilityChecklist(score=clamp(score, 0.0, 10.0), violations=tuple(violations))


class UXDesigner(Evaluator):
    kind = AgentKind.UX_DESIGNER
    focus = "Layout, flow, spacing, navigation logic"

    def evaluate(self, inputs: PanelInputs) -> ExpertEvaluation:
        page = inputs.page
        t = _Tally(self.base_score)

        heuristics = usability_checklist(page)
        t.plus(heuristics.score * 0.3)

        nav_exists = page.exists(NAV_ROOT)
        link_count = page.count_within_first(NAV_ROOT, "a")
        positions = page.computed_style(NAV_ROOT, "position")
        if nav_exists and link_count >= 3:
            t.plus(1.0, "Clear navigation structure")
        else:
            t.minus(1.0, "Navigation unclear or missing")

        h1, h2, h3 = (page.count_matching(h) for h in ("h1", "h2", "h3"))
        if h1 == 1 and h2 >= 3:
            t.plus(1.0, "Proper heading hierarchy")
        else:
            t.minus(1.0, "Heading structure needs improvement")

        if (page.exists(HERO)
                and page.count_matching('button, [class*="cta"], a[class*="button"]') >= 3
                and page.exists("footer")):
            t.plus(0.5, "Clear user journey")

        total = page.count_matching(INTERACTIVE)
        adequate = sum(1 for b in page.bounding_boxes(INTERACTIVE)
                       if b.width >= MIN_TAP and b.height >= MIN_TAP)
        if adequate / max(total, 1) >= 0.8:
            t.plus(0.5, "Adequate tap target sizes")
        else:
            t.minus(0.5, "Some tap targets too small")

        # choice complexity
        if 3 <= link_count <= 7:
            t.plus(0.5, "Optimal navigation complexity")
        elif link_count > 10:
            t.minus(0.5, "Too many navigation choices")

        rhythm = inputs.layout_rhythm
        t.plus(rhythm / 10 * 0.5, "Consistent spacing and grouping" if rhythm >= 7 else None)

        return self._finish(t, UXDetails(
            heuristics=heuristics,
            nav_exists=nav_exists,
            nav_link_count=link_count,
            nav_has_logo=page.exists(NAV_LOGO),
            nav_is_sticky=any(p in ("sticky", "fixed") for p in positions),
            h1_count=h1,
            h2_count=h2,
            h3_count=h3,
            tap_targets_total=total,
            tap_targets_adequate=adequate,
            layout_rhythm=rhythm,
        ))


class ProductDesigner(Evaluator):
    kind = AgentKind.PRODUCT_DESIGNER
    focus = "Visual design, typography, brand identity, spacing rhythm"

    def evaluate(self, inputs: PanelInputs) -> ExpertEvaluation:
        page = inputs.page
        t = _Tally(self.base_score)

        colors = inputs.color_count
        if 3 <= colors <= 8:
            t.plus(1.5, "Cohesive color palette")
        elif colors < 2:
            t.minus(1.0, "Limited color palette")

        families = _unique(page.computed_style("h1, h2, h3", "font-family"))
        if not families:
            families = find_font_families(inputs.html)
        sizes = [s for s in (parse_px(v) for v in page.computed_style("h1, h2, h3", "font-size"))
                 if s]
        has_modern = any(mf in f for f in families for mf in MODERN_FONTS)
        hierarchy = len(sizes) >= 3 and max(sizes) / min(sizes) >= 1.5
        if hierarchy:
            t.plus(1.0, "Clear typography hierarchy")
        if has_modern:
            t.plus(0.5, "Modern font selection")
        if len(families) >= 2:
            t.plus(0.5, "Typography system")

        gradients = page.exists(GRADIENTS)
        shadows = page.exists(SHADOWS)
        rounded = page.exists(ROUNDED)
        hq_images = high_res_count(page)
        if hq_images >= 3:
            t.plus(1.0, "High-quality imagery")
        if shadows or rounded:
            t.plus(0.5, "Modern design details")

        rhythm = inputs.layout_rhythm
        t.plus(rhythm / 10 * 1.0)
        if rhythm >= 8:
            t.strengths.append("Excellent spacing rhythm")
        elif rhythm < 5:
            t.note("Inconsistent spacing")

        section_count = page.count_matching(SECTIONS)
        paddings = set(page.computed_style(SECTIONS, "padding-top"))
        consistent = len(paddings) <= 3 and section_count >= 3
        if consistent:
            t.plus(0.5, "Consistent visual system")

        return self._finish(t, ProductDetails(
            color_count=colors,
            font_families=tuple(families),
            has_modern_font=has_modern,
            size_variety=len(set(sizes)),
            has_type_hierarchy=hierarchy,
            has_gradients=gradients,
            has_shadows=shadows,
            has_rounded=rounded,
            high_quality_images=hq_images,
            layout_rhythm=rhythm,
            section_count=section_count,
            padding_variety=len(paddings),
            is_consistent=consistent,
        ))


class ConversionStrategist(Evaluator):
    kind = AgentKind.CONVERSION_STRATEGIST
    focus = "CTAs, trust, funnels, messaging clarity"
    base_score = 3.0

    def evaluate(self, inputs: PanelInputs) -> ExpertEvaluation:
        page = inputs.page
        text = inputs.body_text or ""
        t = _Tally(self.base_score)

        strong = count_strong_ctas(page)
        if strong >= 3:
            t.plus(2.5, "Multiple strong, action-oriented CTAs")
        elif strong >= 1:
            t.plus(1.5, "Strong CTA present")
        else:
            t.minus(0.5, "Weak or missing CTAs")

        fold = page.viewport_height * 0.8
        above_fold = any(b.top < fold for b in
                         page.bounding_boxes('button, a[class*="button"], [class*="cta"]'))
        if above_fold:
            t.plus(1.0, "CTA visible above fold")
        else:
            t.note("No CTA above fold")

        trust = {name: bool(rx.search(text)) for name, rx in TRUST_RES.items()}
        trust_count = sum(trust.values())
        if trust_count >= 3:
            t.plus(2.0, "Strong trust elements")
        elif trust_count >= 2:
            t.plus(1.0, "Some trust elements")
        else:
            t.minus(0.5, "Limited trust elements")

        has_phone = bool(PHONE_RE.search(text))
        has_email = bool(EMAIL_RE.search(text))
        has_form = page.exists("form")
        if has_phone and has_email and has_form:
            t.plus(1.5, "Multiple contact methods")
        elif (has_phone or has_email) and has_form:
            t.plus(1.0, "Contact options available")
        else:
            t.note("Limited contact options")

        hero = page.exists(HERO)
        value = bool(VALUE_RE.search(text))
        proof = bool(PROOF_RE.search(text))
        action = page.count_matching('button, [class*="cta"]') >= 1
        if hero and value and proof and action:
            t.plus(1.5, "Complete conversion funnel")
        elif hero and action:
            t.plus(0.5, "Basic funnel present")
        else:
            t.note("Incomplete conversion funnel")

        popups = page.count_matching(POPUPS)
        if popups > 2:
            t.minus(0.5, "Too many popups (friction)")

        return self._finish(t, ConversionDetails(
            strong_ctas=strong,
            above_fold_cta=above_fold,
            testimonials=trust["testimonials"],
            certifications=trust["certifications"],
            social_proof=trust["social_proof"],
            guarantees=trust["guarantees"],
            has_phone=has_phone,
            has_email=has_email,
            has_form=has_form,
            funnel_hero=hero,
            funnel_value=value,
            funnel_proof=proof,
            funnel_action=action,
            popups=popups,
            required_fields=page.count_matching("input[required], select[required]"),
        ))


class SEOSpecialist(Evaluator):
    kind = AgentKind.SEO_SPECIALIST
    focus = "Structure, metadata, keyword strategy, helpful content"

    def evaluate(self, inputs: PanelInputs) -> ExpertEvaluation:
        page = inputs.page
        html = inputs.html or ""
        t = _Tally(self.base_score)

        title = page.title or ""
        if 30 <= len(title) <= 60:
            t.plus(1.0, "Optimal title length")
        else:
            t.note("Title length not optimal (30-60 chars)")
        if not GENERIC_TITLE_RE.match(title):
            t.plus(0.5, "Keyword-rich title")
        else:
            t.note("Generic title")

        meta = next(iter(page.attributes('meta[name="description"]', "content")), "").strip()
        if 120 <= len(meta) <= 165:
            t.plus(1.0, "Optimal meta description")
        elif meta:
            t.note("Meta description length not optimal")
        else:
            t.note("Missing meta description")

        h1, h2, h3 = (page.count_matching(h) for h in ("h1", "h2", "h3"))
        if h1 == 1:
            t.plus(1.0, "One H1 per page")
        elif h1 == 0:
            t.minus(0.5, "Missing H1")
        else:
            t.minus(min(1.0, 0.25 * (h1 - 1)), f"Multiple H1s ({h1})")
        if h2 >= 3:
            t.plus(0.5, "Good H2 structure")

        has_schema = "application/ld+json" in html or "schema.org" in html
        if has_schema:
            t.plus(1.5, "Schema markup present")
        else:
            t.note("Missing schema markup")

        alts = page.attributes("img", "alt")
        coverage = sum(1 for a in alts if a) / len(alts) if alts else 1.0
        if coverage >= 0.9:
            t.plus(1.0, "Excellent alt text coverage")
        elif coverage >= 0.7:
            t.plus(0.5, "Good alt text coverage")
        else:
            t.note("Poor alt text coverage")

        words = word_count(inputs.body_text)
        if words >= 2000:
            t.plus(1.0, "Deep, helpful content")
        elif words >= 1000:
            t.plus(0.5, "Adequate content depth")
        elif words < 300:
            t.minus(1.0, "Content too thin")

        internal = internal_link_count(page)
        if internal >= 10:
            t.plus(0.5, "Good internal linking")

        if len(title) >= 40 and len(meta) >= 50:
            t.plus(0.5, "Keyword optimization")

        return self._finish(t, SEODetails(
            title=title,
            meta_description=meta,
            h1_count=h1,
            h2_count=h2,
            h3_count=h3,
            has_schema=has_schema,
            alt_coverage=coverage,
            word_count=words,
            internal_links=internal,
        ))


class BrandAnalyst(Evaluator):
    kind = AgentKind.BRAND_ANALYST
    focus = "Uniqueness, consistency, narrative voice, memorable impression"

    def evaluate(self, inputs: PanelInputs) -> ExpertEvaluation:
        page = inputs.page
        text = inputs.body_text or ""
        t = _Tally(self.base_score)

        generic_voice = any(rx.search(text) for rx in GENERIC_VOICE_RES)
        if not generic_voice:
            t.plus(1.5, "Unique brand voice")
        else:
            t.minus(1.0, "Generic, template-sounding content")

        has_logo = page.exists(LOGO)
        icons = page.count_matching(ICONS)
        if has_logo:
            t.plus(0.5, "Logo present")
        if icons >= 5:
            t.plus(1.0, "Consistent icon system")

        sources = page.image_sources()
        custom = sum(1 for s in sources if not any(h in s for h in STOCK_HOSTS))
        hq_images = high_res_count(page)
        if custom >= 3 and hq_images >= 2:
            t.plus(1.5, "Branded, high-quality photography")
        elif custom >= 1:
            t.plus(0.5, "Some custom imagery")
        else:
            t.note("Generic stock imagery")

        story = bool(STORY_RE.search(text))
        tagline = bool(TAGLINE_RE.search(text)) or page.exists('meta[property="og:description"]')
        if story and tagline:
            t.plus(1.5, "Strong brand narrative")
        elif story or tagline:
            t.plus(0.5, "Some brand narrative")
        else:
            t.note("Missing brand story")

        colors = inputs.color_count
        if colors >= 4:
            t.plus(0.5, "Strong color identity")

        custom_hero = page.exists(CUSTOM_HERO)
        animated = page.exists(ANIMATED)
        if custom_hero and animated:
            t.plus(1.0, "Memorable design elements")

        generic_template = bool(GENERIC_TEMPLATE_RE.search(inputs.html or ""))
        if not generic_template and len(text) >= 500:
            t.plus(0.5, "Not generic template")
        elif generic_template:
            t.minus(1.0, "Generic template appearance")

        return self._finish(t, BrandDetails(
            has_generic_voice=generic_voice,
            has_logo=has_logo,
            svg_count=page.count_matching("svg"),
            icon_count=icons,
            images_total=len(sources),
            images_custom=custom,
            images_high_quality=hq_images,
            has_story=story,
            has_tagline=tagline,
            color_count=colors,
            has_custom_hero=custom_hero,
            has_animations=animated,
            has_unique_layout=page.exists(UNIQUE_LAYOUT),
            is_generic_template=generic_template,
        ))


DEFAULT_PANEL: Tuple[Evaluator, ...] = (
    UXDesigner(),
    ProductDesigner(),
    ConversionStrategist(),
    SEOSpecialist(),
    BrandAnalyst(),
)


# --- helpers shared with the perception model

def count_strong_ctas(page: PageQuery, pattern: re.Pattern = STRONG_CTA_RE) -> int:
    return sum(1 for txt in page.texts(INTERACTIVE) if pattern.search(txt.lower()))


def word_count(text: str) -> int:
    return len((text or "").split())


def internal_link_count(page: PageQuery) -> int:
    host = page.hostname
    hrefs = page.attributes("a[href]", "href")
    return sum(1 for h in hrefs if h.startswith("/") or (host and host in h))


def high_res_count(page: PageQuery) -> int:
    return sum(1 for w in page.natural_widths("img") if w >= HIGH_RES_WIDTH)


def _unique(values) -> List[str]:
    out = []
    for v in values:
        if v and v not in out:
            out.append(v)
    return out
