# webpanel/services/insights.py
from __future__ import annotations

import re
from typing import List, Optional, Sequence

import numpy as np
from bs4 import BeautifulSoup

from .errors import Extraction, FeatureExtractionFailure
from .page import Box, PageQuery
from .utils import clamp

HERO = 'section.hero, .hero-section, header h1'
CARDS = '.card, [class*="card"], [class*="Card"]'
CTA = 'button, [class*="cta"], [class*="CTA"], a[class*="button"]'
FOOTER = 'footer, [class*="footer"]'
NAV = 'nav, [class*="nav"], [class*="Nav"]'
NAV_TOGGLE = '[class*="hamburger"], [class*="menu-toggle"], [aria-label*="menu"]'
NAV_LINKS = 'nav a, [class*="nav"] a'

OVERLAP_LIMIT = 5

_font_family_re = re.compile(r"font-family\s*:\s*([^;}{]+)", re.I)
_px_re = re.compile(r"^\s*(-?[0-9.]+)\s*px\s*$", re.I)


def parse_px(value: Optional[str]) -> Optional[float]:
    m = _px_re.match(value or "")
    return float(m.group(1)) if m else None


def find_font_families(html: str) -> List[str]:
    """Font families declared by the markup (font links, style blocks, inline styles)."""
    fams = []
    soup = BeautifulSoup(html or "", "html.parser")
    for ln in soup.find_all("link", href=True):
        href = ln["href"]
        if "fonts.googleapis.com" in href:
            # e.g. family=Inter:wght@400;700
            fams.extend(x.replace("+", " ") for x in re.findall(r"family=([^:&]+)", href))
        if "use.typekit.net" in href:
            fams.append("Adobe Fonts (Typekit)")
    for st in soup.find_all("style"):
        fams.extend(m.strip() for m in _font_family_re.findall(st.get_text() or ""))
    for el in soup.find_all(style=True):
        fams.extend(m.strip() for m in _font_family_re.findall(el.get("style") or ""))

    # split stacks: "Inter, system-ui, -apple-system"
    clean = []
    for f in fams:
        for p in (p.strip().strip("'\"") for p in re.split(r",\s*", f)):
            if p and p not in clean:
                clean.append(p)
    return clean[:8]


# --- structural components (desktop)

def detect_components(page: PageQuery) -> List[str]:
    components = []
    if page.exists(HERO):
        components.append("hero")
    if page.count_matching(CARDS) >= 3:
        components.append("card-grid")
    if page.exists(CTA):
        components.append("cta")
    if page.exists(FOOTER):
        components.append("footer")
    if page.exists(NAV):
        components.append("navigation")
    return components


def extract_components(page: PageQuery, viewport: str = "desktop") -> Extraction[List[str]]:
    try:
        return Extraction.ok(detect_components(page))
    except Exception as exc:
        return Extraction.failed(FeatureExtractionFailure(str(exc), "components", viewport))


# --- mobile

def detect_mobile_navigation(page: PageQuery) -> str:
    if page.exists(NAV_TOGGLE):
        return "hamburger"
    if page.count_matching(NAV_LINKS) >= 3:
        return "stacked"
    return "none"


def extract_mobile_navigation(page: PageQuery, viewport: str = "mobile") -> Extraction[str]:
    try:
        return Extraction.ok(detect_mobile_navigation(page))
    except Exception as exc:
        return Extraction.failed(FeatureExtractionFailure(str(exc), "navigation_type", viewport))


def count_overlaps(boxes: Sequence[Box], limit: int = OVERLAP_LIMIT) -> int:
    """Pairwise intersecting boxes, counting stops once ``limit`` is reached."""
    if len(boxes) < 2:
        return 0
    arr = np.array([(b.top, b.bottom, b.left, b.right) for b in boxes], dtype=np.float64)
    top, bottom, left, right = arr.T
    count = 0
    for i in range(len(arr) - 1):
        j = slice(i + 1, None)
        hits = ((top[i] < bottom[j]) & (bottom[i] > top[j]) &
                (left[i] < right[j]) & (right[i] > left[j]))
        count += int(hits.sum())
        if count >= limit:
            return count
    return count


def mobile_readability(page: PageQuery) -> float:
    score = 5.0
    font_size = next(iter(page.computed_style("body", "font-size")), None)
    line_height = next(iter(page.computed_style("body", "line-height")), None)
    size = parse_px(font_size)
    if size:
        if size >= 16:
            score += 2.0
        elif size >= 14:
            score += 1.0
        lh = parse_px(line_height)
        ratio = lh / size if lh is not None else None
        if ratio is not None:
            if 1.5 <= ratio <= 1.8:
                score += 2.0
            elif 1.3 <= ratio <= 2.0:
                score += 1.0
    if count_overlaps(page.all_boxes()) < OVERLAP_LIMIT:
        score += 1.0
    return clamp(score, 0.0, 10.0)


def extract_mobile_readability(page: PageQuery, viewport: str = "mobile") -> Extraction[float]:
    try:
        return Extraction.ok(mobile_readability(page))
    except Exception as exc:
        return Extraction.failed(FeatureExtractionFailure(str(exc), "readability", viewport))
