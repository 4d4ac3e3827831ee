import os

import pytest
from PIL import Image
from playwright.async_api import Error as PlaywrightError

from webpanel.config import Settings
from webpanel.services.errors import NavigationFailure
from webpanel.services.models import Color
from webpanel.services.screenshot import capture

HTML = """<html><head><title>Fake Studio</title></head>
<body style="font-size: 16px; line-height: 24px">
<header><button class="menu-toggle">Menu</button></header>
<nav><a href="/">Home</a><a href="/work">Work</a><a href="/contact">Contact</a></nav>
<section class="hero"><h1>We make things</h1><button>Get started</button></section>
<footer>hello@studio.example</footer>
</body></html>"""


class FakePage:
    def __init__(self, browser, viewport):
        self.browser = browser
        self.viewport = viewport

    async def goto(self, url, wait_until=None, timeout=None):
        self.browser.calls.append(("goto", self.viewport["width"], wait_until, timeout))
        if self.viewport["width"] in self.browser.fail_widths:
            raise PlaywrightError("net::ERR_NAME_NOT_RESOLVED")

    async def wait_for_timeout(self, ms):
        self.browser.calls.append(("settle", ms))

    async def screenshot(self, path, full_page=False):
        self.browser.calls.append(("screenshot", os.path.basename(path), full_page))
        img = Image.new("RGB", (200, 150), (255, 255, 255))
        img.paste((20, 20, 20), (0, 40, 200, 41))
        img.paste((20, 20, 20), (0, 80, 200, 81))
        img.paste((20, 20, 20), (0, 120, 200, 121))
        img.save(path)

    async def evaluate(self, script, props):
        return {
            "nodes": [],
            "title": "Fake Studio",
            "viewport": [self.viewport["width"], self.viewport["height"]],
            "historyLength": 1,
            "bodyText": "Menu Home Work Contact We make things Get started hello@studio.example",
        }

    async def content(self):
        return HTML


class FakeContext:
    def __init__(self, browser, viewport):
        self.browser = browser
        self.viewport = viewport
        self.closed = False

    async def new_page(self):
        return FakePage(self.browser, self.viewport)

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, fail_widths=()):
        self.fail_widths = set(fail_widths)
        self.contexts = []
        self.calls = []
        self.closed = False

    async def new_context(self, viewport, user_agent=None):
        # one context at a time
        assert all(c.closed for c in self.contexts)
        ctx = FakeContext(self, viewport)
        self.contexts.append(ctx)
        return ctx

    async def close(self):
        self.closed = True


class FakeChromium:
    def __init__(self, browser, launch_error=None):
        self.browser = browser
        self.launch_error = launch_error
        self.launch_kwargs = None

    async def launch(self, **kwargs):
        self.launch_kwargs = kwargs
        if self.launch_error:
            raise self.launch_error
        return self.browser


class FakePlaywright:
    def __init__(self, browser, launch_error=None):
        self.chromium = FakeChromium(browser, launch_error)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=str(tmp_path), settle_ms=0)


def test_capture_writes_three_viewports(tmp_path, settings):
    browser = FakeBrowser()
    pw = FakePlaywright(browser)

    captures = capture("https://studio.example/", str(tmp_path), settings,
                       playwright_factory=lambda: pw)

    assert [c.viewport["width"] for c in browser.contexts] == [1440, 768, 390]
    assert all(c.closed for c in browser.contexts)
    assert browser.closed
    assert pw.chromium.launch_kwargs["headless"] is True

    for name in ("desktop", "tablet", "mobile"):
        shot = getattr(captures, name)
        assert shot.viewport.name == name
        assert shot.path == os.path.join(str(tmp_path), f"{name}.png")
        assert os.path.isfile(shot.path)
        assert shot.dominant_colors[0] == Color(224, 224, 224)

    assert captures.desktop.layout_rhythm == pytest.approx(10.0)
    assert captures.desktop.component_tags == ("hero", "cta", "footer", "navigation")
    assert captures.tablet.layout_rhythm is None
    assert captures.mobile.navigation_type == "hamburger"
    assert captures.mobile.readability_score == 10.0
    assert captures.title == "Fake Studio"
    assert "Get started" in captures.body_text


def test_navigation_uses_network_idle_and_timeout(tmp_path, settings):
    browser = FakeBrowser()
    capture("https://studio.example/", str(tmp_path), settings,
            playwright_factory=lambda: FakePlaywright(browser))

    gotos = [c for c in browser.calls if c[0] == "goto"]
    assert gotos[0] == ("goto", 1440, "networkidle", 30000)
    assert ("screenshot", "desktop.png", False) in browser.calls


def test_navigation_failure_aborts_and_releases(tmp_path, settings):
    browser = FakeBrowser(fail_widths={768})

    with pytest.raises(NavigationFailure) as exc:
        capture("https://studio.example/", str(tmp_path), settings,
                playwright_factory=lambda: FakePlaywright(browser))

    assert exc.value.viewport == "tablet"
    assert exc.value.stage == "capture"
    assert "ERR_NAME_NOT_RESOLVED" in str(exc.value)
    assert browser.closed
    assert all(c.closed for c in browser.contexts)
    # mobile never started
    assert len(browser.contexts) == 2


def test_launch_failure_is_a_navigation_failure(tmp_path, settings):
    browser = FakeBrowser()
    pw = FakePlaywright(browser, launch_error=PlaywrightError("Executable doesn't exist"))

    with pytest.raises(NavigationFailure):
        capture("https://studio.example/", str(tmp_path), settings, playwright_factory=lambda: pw)
    assert browser.contexts == []


class ContextRefusingBrowser(FakeBrowser):
    def __init__(self, refuse_width):
        super().__init__()
        self.refuse_width = refuse_width

    async def new_context(self, viewport, user_agent=None):
        if viewport["width"] == self.refuse_width:
            raise PlaywrightError("Target page, context or browser has been closed")
        return await super().new_context(viewport, user_agent)


def test_context_creation_failure_is_a_navigation_failure(tmp_path, settings):
    browser = ContextRefusingBrowser(refuse_width=768)

    with pytest.raises(NavigationFailure) as exc:
        capture("https://studio.example/", str(tmp_path), settings,
                playwright_factory=lambda: FakePlaywright(browser))

    assert exc.value.viewport == "tablet"
    assert exc.value.stage == "capture"
    assert isinstance(exc.value.__cause__, PlaywrightError)
    assert browser.closed
    assert len(browser.contexts) == 1


class StickyContext(FakeContext):
    async def close(self):
        self.closed = True
        raise PlaywrightError("Connection closed")


class StickyBrowser(FakeBrowser):
    async def new_context(self, viewport, user_agent=None):
        ctx = StickyContext(self, viewport)
        self.contexts.append(ctx)
        return ctx

    async def close(self):
        self.closed = True
        raise PlaywrightError("Browser has been closed")


def test_close_errors_do_not_mask_the_navigation_failure(tmp_path, settings):
    browser = StickyBrowser(fail_widths={1440})

    with pytest.raises(NavigationFailure) as exc:
        capture("https://studio.example/", str(tmp_path), settings,
                playwright_factory=lambda: FakePlaywright(browser))

    assert exc.value.viewport == "desktop"
    assert "ERR_NAME_NOT_RESOLVED" in str(exc.value)
    assert browser.closed
    assert len(browser.contexts) == 1
