"""
Human perception model: four 0-25 impressions summed to a 0-100 score.

Independent of the expert panel; it reads the same inputs and is reported
next to the consensus result, never blended into it.
"""

from __future__ import annotations

import re

from .experts import (
    ANIMATED,
    CUSTOM_HERO,
    GENERIC_TEMPLATE_RE,
    LOGO,
    ROUNDED,
    SHADOWS,
    TAGLINE_RE,
    UNIQUE_LAYOUT,
    PanelInputs,
    count_strong_ctas,
    high_res_count,
)
from .models import Level, PerceptionBreakdown, PerceptionScore
from .page import PageQuery
from .utils import clamp

BASE = 12.5
MAX_DIMENSION = 25.0

STYLED_COLOR = '[style*="color"], [style*="background"]'

TESTIMONIAL_RE = re.compile(r"testimonial|review|customer", re.I)
TESTIMONIAL_QUOTE_RE = re.compile(r"testimonial|review|customer quote", re.I)
CERTIFICATION_RE = re.compile(r"certified|award|trusted|verified", re.I)
CONTACT_RE = re.compile(r"phone|email|contact|address", re.I)
CONTACT_DETAIL_RE = re.compile(r"phone|email|address", re.I)
SECURITY_RE = re.compile(r"secure|ssl|https|privacy", re.I)
ENGAGING_CTA_RE = re.compile(r"get started|start free|try now|book now", re.I)
STORY_RE = re.compile(r"story|journey|mission|vision|founded", re.I)


def _band(points: int, high: int, medium: int, full: float = 5.0) -> float:
    if points >= high:
        return full
    if points >= medium:
        return full / 2
    return 0.0


def _distinct_colors(page: PageQuery, selector: str) -> int:
    return len(set(page.computed_style(selector, "color")))


def first_impression(inputs: PanelInputs) -> float:
    """Would a visitor trust the site within five seconds?"""
    page = inputs.page
    text = inputs.body_text or ""
    score = BASE

    polish = (int(page.exists('[style*="gradient"]')) + int(page.exists(SHADOWS))
              + int(page.exists(ROUNDED)) + (2 if high_res_count(page) >= 3 else 0))
    score += _band(polish, 4, 2)

    professional = (int(page.exists(LOGO)) + int(page.exists('nav, [role="navigation"]'))
                    + int(page.exists("footer")) + int(bool(CONTACT_RE.search(text))))
    score += _band(professional, 3, 2)

    credibility = (int(bool(TESTIMONIAL_RE.search(text)))
                   + int(bool(CERTIFICATION_RE.search(text)))
                   + int(page.exists('script[type="application/ld+json"]')))
    if credibility >= 2:
        score += 2.5

    return clamp(score, 0.0, MAX_DIMENSION)


def emotional_resonance(inputs: PanelInputs) -> float:
    """Premium, trustworthy, exciting?"""
    page = inputs.page
    text = inputs.body_text or ""
    score = BASE

    premium = (int(page.exists(ANIMATED)) + int(page.exists('[style*="transition"]'))
               + int(page.count_matching("svg") >= 5)
               + int(_distinct_colors(page, STYLED_COLOR) >= 3))
    score += _band(premium, 3, 2)

    trust = (int(bool(TESTIMONIAL_QUOTE_RE.search(text)))
             + int(bool(CERTIFICATION_RE.search(text)))
             + int(bool(CONTACT_DETAIL_RE.search(text)))
             + int(bool(SECURITY_RE.search(text))))
    score += _band(trust, 3, 2)

    engagement = (int(page.exists('video, iframe[src*="youtube"], iframe[src*="vimeo"]'))
                  + int(page.exists('[onclick], [class*="interactive"], [class*="hover"]'))
                  + int(count_strong_ctas(page, ENGAGING_CTA_RE) >= 1))
    if engagement >= 2:
        score += 2.5

    return clamp(score, 0.0, MAX_DIMENSION)


def cohesion(inputs: PanelInputs) -> float:
    """Does everything look like it belongs together?"""
    page = inputs.page
    score = BASE

    consistency = (int(len(set(page.computed_style("button", "background-color"))) <= 2)
                   + int(len(set(page.computed_style("button", "font-family"))) <= 2)
                   + int(len(set(page.computed_style('section, [class*="section"]',
                                                     "padding-top"))) <= 3))
    score += _band(consistency, 2, 1)

    scheme = _distinct_colors(page, '[style*="color"]')
    brand = (int(page.exists('img[alt*="logo"], [class*="logo"]'))
             + int(page.count_matching("svg") >= 3)
             + int(2 <= scheme <= 6))
    score += _band(brand, 2, 1)

    score += inputs.layout_rhythm / 10 * 2.5
    return clamp(score, 0.0, MAX_DIMENSION)


def identity_recognition(inputs: PanelInputs) -> float:
    """Does the site have a personality of its own?"""
    page = inputs.page
    text = inputs.body_text or ""
    score = BASE

    distinctive = (int(page.exists(CUSTOM_HERO)) + int(page.exists(UNIQUE_LAYOUT))
                   + int(_distinct_colors(page, STYLED_COLOR) >= 3))
    score += _band(distinctive, 2, 1)

    memorable = (int(bool(STORY_RE.search(text))) + int(bool(TAGLINE_RE.search(text)))
                 + int(page.count_matching("svg") >= 5) + int(page.exists(ANIMATED)))
    score += _band(memorable, 3, 2)

    generic = bool(GENERIC_TEMPLATE_RE.search(inputs.html or ""))
    if not generic and len(text) >= 500:
        score += 2.5
    elif generic:
        score -= 2.5

    return clamp(score, 0.0, MAX_DIMENSION)


def _level(value: float, high: float, medium: float) -> Level:
    if value >= high:
        return Level.HIGH
    if value >= medium:
        return Level.MEDIUM
    return Level.LOW


def calculate_perception(inputs: PanelInputs) -> PerceptionScore:
    fi = first_impression(inputs)
    er = emotional_resonance(inputs)
    co = cohesion(inputs)
    ir = identity_recognition(inputs)
    total = fi + er + co + ir
    return PerceptionScore(
        first_impression=fi,
        emotional_resonance=er,
        cohesion=co,
        identity_recognition=ir,
        total_score=total,
        breakdown=PerceptionBreakdown(
            trust=_level(total, 80, 60),
            premium=_level(er, 20, 15),
            memorable=_level(ir, 20, 15),
        ),
    )
