"""Page access for the heuristics.

Evaluators never talk to the browser. The capture stage takes one snapshot
of the rendered DOM (tagged HTML plus per-node computed styles and
geometry) and wraps it in a ``RenderedPage``; everything downstream asks
questions through the ``PageQuery`` interface.

A ``RenderedPage`` can also be built from plain HTML with no layout data,
in which case computed styles fall back to inline ``style`` declarations
and geometry queries return nothing.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence
from urllib.parse import urlparse

from bs4 import BeautifulSoup

NODE_ATTR = "data-wqa-node"

STYLE_PROPERTIES = (
    "font-size",
    "font-family",
    "line-height",
    "color",
    "background-color",
    "padding-top",
    "position",
)

# Tags every element, then reports layout for each tag index.
SNAPSHOT_JS = """
(props) => {
  const nodes = [];
  document.querySelectorAll('*').forEach((el, i) => {
    el.setAttribute('%s', String(i));
    const r = el.getBoundingClientRect();
    const cs = window.getComputedStyle(el);
    const styles = {};
    for (const p of props) styles[p] = cs.getPropertyValue(p);
    const node = {id: i, box: [r.left, r.top, r.width, r.height], styles: styles};
    if (el.tagName === 'IMG') {
      node.naturalWidth = el.naturalWidth;
      node.src = el.currentSrc || el.src || '';
    }
    nodes.push(node);
  });
  return {
    nodes: nodes,
    title: document.title,
    viewport: [window.innerWidth, window.innerHeight],
    historyLength: window.history.length,
    bodyText: document.body ? document.body.innerText : ''
  };
}
""" % NODE_ATTR

_inline_decl_re = re.compile(r"([a-zA-Z-]+)\s*:\s*([^;]+)")


@dataclass(frozen=True)
class Box:
    """Axis-aligned bounding box in CSS pixels."""
    x: float
    y: float
    width: float
    height: float

    @property
    def top(self) -> float:
        return self.y

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def left(self) -> float:
        return self.x

    @property
    def right(self) -> float:
        return self.x + self.width

    def intersects(self, other: "Box") -> bool:
        return (self.top < other.bottom and self.bottom > other.top and
                self.left < other.right and self.right > other.left)


@dataclass(frozen=True)
class NodeLayout:
    box: Box
    styles: Mapping[str, str]
    natural_width: Optional[int] = None
    src: Optional[str] = None


class PageQuery(ABC):
    """Read-only structural/style questions about one rendered page."""

    url: str
    title: str
    body_text: str
    viewport_width: int
    viewport_height: int
    history_length: int

    @property
    def hostname(self) -> str:
        return urlparse(self.url or "").hostname or ""

    @abstractmethod
    def count_matching(self, selector: str) -> int: ...

    def exists(self, selector: str) -> bool:
        return self.count_matching(selector) > 0

    @abstractmethod
    def count_within_first(self, root: str, selector: str) -> int:
        """Matches of ``selector`` inside the first ``root`` match, 0 without one."""

    @abstractmethod
    def computed_style(self, selector: str, prop: str) -> List[str]:
        """Values of ``prop`` for each match whose style is known."""

    @abstractmethod
    def bounding_boxes(self, selector: str) -> List[Box]:
        """Boxes for each match whose geometry is known."""

    @abstractmethod
    def texts(self, selector: str) -> List[str]: ...

    @abstractmethod
    def attributes(self, selector: str, name: str) -> List[str]:
        """Attribute value per match ("" when absent)."""

    @abstractmethod
    def natural_widths(self, selector: str) -> List[int]: ...

    @abstractmethod
    def image_sources(self) -> List[str]: ...

    @abstractmethod
    def all_boxes(self) -> List[Box]: ...


class RenderedPage(PageQuery):
    def __init__(
        self,
        html: str,
        layout: Optional[Mapping[int, NodeLayout]] = None,
        url: str = "",
        title: Optional[str] = None,
        body_text: Optional[str] = None,
        viewport: Sequence[int] = (1440, 900),
        history_length: int = 1,
    ):
        self.html = html or ""
        self._soup = BeautifulSoup(self.html, "html.parser")
        self._layout: Dict[int, NodeLayout] = dict(layout or {})
        self.url = url
        if title is None:
            title = self._soup.title.get_text() if self._soup.title else ""
        self.title = title.strip()
        if body_text is None:
            body = self._soup.body or self._soup
            body_text = body.get_text(" ", strip=True)
        self.body_text = body_text
        self.viewport_width, self.viewport_height = int(viewport[0]), int(viewport[1])
        self.history_length = history_length

    @classmethod
    def from_snapshot(cls, html: str, snapshot: Mapping, url: str = "") -> "RenderedPage":
        layout = {}
        for node in snapshot.get("nodes") or []:
            x, y, w, h = (node.get("box") or [0, 0, 0, 0])[:4]
            nw = node.get("naturalWidth")
            layout[int(node["id"])] = NodeLayout(
                box=Box(float(x), float(y), float(w), float(h)),
                styles=dict(node.get("styles") or {}),
                natural_width=int(nw) if nw is not None else None,
                src=node.get("src"),
            )
        viewport = snapshot.get("viewport") or (1440, 900)
        return cls(
            html,
            layout=layout,
            url=url,
            title=snapshot.get("title") or "",
            body_text=snapshot.get("bodyText") or "",
            viewport=viewport,
            history_length=int(snapshot.get("historyLength") or 1),
        )

    # --- helpers
    def _select(self, selector: str):
        return self._soup.select(selector)

    def _node(self, el) -> Optional[NodeLayout]:
        raw = el.get(NODE_ATTR)
        if raw is None:
            return None
        try:
            return self._layout.get(int(raw))
        except ValueError:
            return None

    @staticmethod
    def _inline_style(el, prop: str) -> Optional[str]:
        for name, value in _inline_decl_re.findall(el.get("style") or ""):
            if name.strip().lower() == prop:
                return value.strip()
        return None

    # --- PageQuery
    def count_matching(self, selector: str) -> int:
        return len(self._select(selector))

    def exists(self, selector: str) -> bool:
        return self._soup.select_one(selector) is not None

    def count_within_first(self, root: str, selector: str) -> int:
        first = self._soup.select_one(root)
        return len(first.select(selector)) if first is not None else 0

    def computed_style(self, selector: str, prop: str) -> List[str]:
        out = []
        for el in self._select(selector):
            node = self._node(el)
            value = node.styles.get(prop) if node else None
            if value is None:
                value = self._inline_style(el, prop)
            if value is not None:
                out.append(value)
        return out

    def bounding_boxes(self, selector: str) -> List[Box]:
        out = []
        for el in self._select(selector):
            node = self._node(el)
            if node is not None:
                out.append(node.box)
        return out

    def texts(self, selector: str) -> List[str]:
        return [el.get_text(" ", strip=True) for el in self._select(selector)]

    def attributes(self, selector: str, name: str) -> List[str]:
        out = []
        for el in self._select(selector):
            value = el.get(name)
            if isinstance(value, list):
                value = " ".join(value)
            out.append(value or "")
        return out

    def natural_widths(self, selector: str) -> List[int]:
        out = []
        for el in self._select(selector):
            node = self._node(el)
            if node is not None and node.natural_width is not None:
                out.append(node.natural_width)
            elif str(el.get("width") or "").isdigit():
                out.append(int(el.get("width")))
        return out

    def image_sources(self) -> List[str]:
        out = []
        for el in self._select("img"):
            node = self._node(el)
            src = node.src if node is not None and node.src else el.get("src")
            out.append(src or "")
        return out

    def all_boxes(self) -> List[Box]:
        return [self._layout[k].box for k in sorted(self._layout)]


async def snapshot_page(page, url: str) -> RenderedPage:
    """Snapshot an open Playwright page into a ``RenderedPage``."""
    data = await page.evaluate(SNAPSHOT_JS, list(STYLE_PROPERTIES))
    html = await page.content()
    return RenderedPage.from_snapshot(html, data, url=url)
