# webpanel/services/screenshot.py
import asyncio
import logging
import os
import threading
from typing import Optional, Tuple

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from webpanel.config import VIEWPORTS, Settings, load_settings

from .errors import NavigationFailure
from .insights import extract_components, extract_mobile_navigation, extract_mobile_readability
from .layout import DEFAULT_RHYTHM, extract_layout_rhythm
from .models import CaptureSet, RenderCapture, Viewport
from .page import RenderedPage, snapshot_page
from .palette import extract_dominant_colors
from .utils import ensure_dir

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/122.0.0.0 Safari/537.36"
)

BROWSER_ARGS = ["--disable-dev-shm-usage", "--no-sandbox"]


async def _close_quietly(handle, what: str):
    # a failed close must not replace the error that got us here
    try:
        await handle.close()
    except PlaywrightError as exc:
        logger.warning("Closing %s failed: %s", what, exc)


async def _render(browser, url: str, viewport: Viewport, out_dir: str,
                  settings: Settings) -> Tuple[str, RenderedPage]:
    """Navigate, settle, rasterize and snapshot one viewport in a fresh context."""
    out_path = os.path.join(out_dir, f"{viewport.name}.png")
    context = None
    try:
        context = await browser.new_context(
            viewport={"width": viewport.width, "height": viewport.height},
            user_agent=USER_AGENT,
        )
        page = await context.new_page()
        await page.goto(url, wait_until="networkidle", timeout=settings.nav_timeout_ms)
        # let transitions/animations finish before the raster
        await page.wait_for_timeout(settings.settle_ms)
        await page.screenshot(path=out_path, full_page=False)
        snapshot = await snapshot_page(page, url)
    except PlaywrightError as exc:
        logger.error("Render failed for %s at %s: %s", url, viewport.name, exc)
        raise NavigationFailure(str(exc), viewport=viewport.name, url=url) from exc
    finally:
        if context is not None:
            await _close_quietly(context, viewport.name)
    logger.info("Captured %s (%dx%d) -> %s", viewport.name, viewport.width, viewport.height, out_path)
    return out_path, snapshot


def _desktop(viewport: Viewport, path: str, page: RenderedPage) -> RenderCapture:
    return RenderCapture(
        viewport=viewport,
        path=path,
        dominant_colors=tuple(extract_dominant_colors(path, viewport.name).or_default([])),
        layout_rhythm=extract_layout_rhythm(path, viewport.name).or_default(DEFAULT_RHYTHM),
        component_tags=tuple(extract_components(page, viewport.name).or_default([])),
    )


def _tablet(viewport: Viewport, path: str, page: RenderedPage) -> RenderCapture:
    return RenderCapture(
        viewport=viewport,
        path=path,
        dominant_colors=tuple(extract_dominant_colors(path, viewport.name).or_default([])),
    )


def _mobile(viewport: Viewport, path: str, page: RenderedPage) -> RenderCapture:
    return RenderCapture(
        viewport=viewport,
        path=path,
        dominant_colors=tuple(extract_dominant_colors(path, viewport.name).or_default([])),
        navigation_type=extract_mobile_navigation(page, viewport.name).or_default("none"),
        readability_score=extract_mobile_readability(page, viewport.name).or_default(5.0),
    )


_FEATURES = {"desktop": _desktop, "tablet": _tablet, "mobile": _mobile}


async def capture_async(url: str, out_dir: str, settings: Optional[Settings] = None,
                        playwright_factory=async_playwright) -> CaptureSet:
    """
    Render ``url`` at desktop, tablet and mobile widths, one context at a time,
    writing desktop.png / tablet.png / mobile.png into ``out_dir``.
    Any render failure aborts the whole capture.
    """
    settings = settings or load_settings()
    ensure_dir(out_dir)
    captures = {}
    desktop_page = None
    async with playwright_factory() as p:
        try:
            browser = await p.chromium.launch(headless=settings.headless, args=BROWSER_ARGS)
        except PlaywrightError as exc:
            raise NavigationFailure(f"browser launch failed: {exc}", url=url) from exc
        try:
            for name, width, height in VIEWPORTS:
                viewport = Viewport(name, width, height)
                path, page = await _render(browser, url, viewport, out_dir, settings)
                captures[name] = _FEATURES[name](viewport, path, page)
                if name == "desktop":
                    desktop_page = page
        finally:
            await _close_quietly(browser, "browser")

    return CaptureSet(
        desktop=captures["desktop"],
        tablet=captures["tablet"],
        mobile=captures["mobile"],
        page=desktop_page,
        html=desktop_page.html,
        body_text=desktop_page.body_text,
        title=desktop_page.title,
    )


def capture(url: str, out_dir: str, settings: Optional[Settings] = None, **kwargs) -> CaptureSet:
    """Blocking wrapper usable from plain code, worker threads and running event loops."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(capture_async(url, out_dir, settings, **kwargs))

    # called from inside a running loop: drive a private loop on a helper thread
    box = {}

    def _runner():
        try:
            box["result"] = asyncio.run(capture_async(url, out_dir, settings, **kwargs))
        except BaseException as exc:
            box["error"] = exc

    t = threading.Thread(target=_runner, name="webpanel-capture")
    t.start()
    t.join()
    if "error" in box:
        raise box["error"]
    return box["result"]
