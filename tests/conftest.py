# tests/conftest.py
# Shared pages and capture builders. Nothing here launches a browser:
# pages are RenderedPage objects built straight from HTML.

import pytest

from webpanel.services.experts import PanelInputs
from webpanel.services.models import CaptureSet, Color, RenderCapture, Viewport
from webpanel.services.page import RenderedPage

POOR_URL = "https://acme.example/"
RICH_URL = "https://harborlegal.example/"

# no nav, no CTA, thin boilerplate copy, one stock image without alt
POOR_HTML = """<html><head><title>Home | Acme</title></head>
<body>
<div class="content">
<p>Welcome to Acme Widgets. We deliver exceptional quality to every order we ship.</p>
<p>We are the best at what we do and we provide excellent service to all.</p>
<img src="https://images.unsplash.com/photo-123.jpg">
</div>
</body></html>"""

RICH_HTML = """<!DOCTYPE html>
<html><head>
<title>Harbor Legal Group | Boston Personal Injury Attorneys</title>
<meta name="description" content="Harbor Legal Group represents injured workers and families across Boston. Free case reviews, no fees unless we win, and direct access to your attorney.">
<meta property="og:description" content="Justice, close to home.">
<link rel="stylesheet" href="https://fonts.googleapis.com/css2?family=Inter:wght@400;700&display=swap">
<script type="application/ld+json">{"@context": "https://schema.org", "@type": "LegalService"}</script>
</head>
<body style="font-size: 16px; line-height: 24px">
<nav style="position: sticky">
  <img class="logo" alt="Harbor Legal logo" src="/static/logo.svg">
  <a href="/">Home</a>
  <a href="/practice-areas">Practice Areas</a>
  <a href="/team">Our Team</a>
  <a href="/contact">Contact</a>
</nav>
<section class="hero" style="padding-top: 64px">
  <h1 style="font-size: 48px; font-family: Inter">Boston injury attorneys who fight for you</h1>
  <button style="background-color: #1d4ed8; border-radius: 8px">Book a consultation</button>
</section>
<section class="practice" style="padding-top: 64px">
  <h2 style="font-size: 32px; font-family: Inter">Practice areas</h2>
  <div class="card shadow">Workplace injuries</div>
  <div class="card shadow">Car accidents</div>
  <div class="card shadow">Medical malpractice</div>
</section>
<section class="testimonials" style="padding-top: 64px">
  <h2 style="font-size: 32px; font-family: Inter">Client testimonials</h2>
  <p>"They treated my family with respect from the first call to the final settlement."
     Over 2,000 clients served. Certified trial advocates, satisfaction guaranteed.</p>
</section>
<section class="about" style="padding-top: 64px">
  <h2 style="font-size: 32px; font-family: Inter">Our story</h2>
  <h3 style="font-size: 20px; font-family: Inter">Founded in 1998</h3>
  <p>Our mission is simple: injured people deserve a lawyer who answers the phone.</p>
</section>
<form>
  <label for="email">Email</label>
  <input id="email" type="email" required>
  <button style="background-color: #1d4ed8; border-radius: 8px">Schedule a call</button>
</form>
<footer>Call (617) 555-0142 or email intake@harborlegal.com. 1 Harbor St, Boston.</footer>
</body></html>"""

RICH_COLORS = (Color(32, 64, 192), Color(224, 224, 224), Color(0, 0, 0), Color(192, 160, 32))


def build_captures(html, url=POOR_URL, colors=(), rhythm=None, components=()):
    page = RenderedPage(html, url=url)
    desktop = RenderCapture(
        viewport=Viewport("desktop", 1440, 900),
        path="desktop.png",
        dominant_colors=tuple(colors),
        layout_rhythm=rhythm,
        component_tags=tuple(components),
    )
    tablet = RenderCapture(viewport=Viewport("tablet", 768, 1024), path="tablet.png",
                           dominant_colors=tuple(colors))
    mobile = RenderCapture(viewport=Viewport("mobile", 390, 844), path="mobile.png",
                           dominant_colors=tuple(colors), navigation_type="none",
                           readability_score=5.0)
    return CaptureSet(desktop=desktop, tablet=tablet, mobile=mobile, page=page,
                      html=html, body_text=page.body_text, title=page.title)


@pytest.fixture
def make_captures():
    return build_captures


@pytest.fixture
def poor_captures():
    return build_captures(POOR_HTML, POOR_URL, colors=(Color(224, 224, 224),))


@pytest.fixture
def rich_captures():
    return build_captures(RICH_HTML, RICH_URL, colors=RICH_COLORS, rhythm=8.0)


@pytest.fixture
def poor_inputs(poor_captures):
    return PanelInputs.from_captures(poor_captures)


@pytest.fixture
def rich_inputs(rich_captures):
    return PanelInputs.from_captures(rich_captures)


@pytest.fixture
def poor_result(poor_captures):
    from webpanel.services.pipeline import evaluate_capture
    return evaluate_capture(poor_captures, POOR_URL)
