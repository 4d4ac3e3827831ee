"""Dominant palette extraction from a viewport raster."""

from __future__ import annotations

from typing import List, Optional

import numpy as np
from PIL import Image

from .errors import Extraction, FeatureExtractionFailure
from .models import Color

SAMPLE_SIZE = (100, 100)
SAMPLE_STRIDE = 10
BUCKET = 32
TOP_N = 5


def quantize(r: int, g: int, b: int, bucket: int = BUCKET) -> Color:
    return Color((r // bucket) * bucket, (g // bucket) * bucket, (b // bucket) * bucket)


def dominant_colors(pil_image: Image.Image, top_n: int = TOP_N) -> List[Color]:
    """
    Top quantized colors of a 100x100 downscale, sampling every 10th pixel.
    Ties keep first-seen order (dict insertion order + stable sort).
    """
    base = pil_image.convert("RGB").resize(SAMPLE_SIZE)
    arr = np.asarray(base, dtype=np.uint8).reshape(-1, 3)
    counts = {}
    for r, g, b in arr[::SAMPLE_STRIDE].tolist():
        key = quantize(r, g, b)
        counts[key] = counts.get(key, 0) + 1
    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
    return [c for c, _ in ranked[:top_n]]


def extract_dominant_colors(image, viewport: Optional[str] = None) -> Extraction[List[Color]]:
    """``image`` is a PIL image or a path to one."""
    try:
        if isinstance(image, Image.Image):
            return Extraction.ok(dominant_colors(image))
        with Image.open(image) as im:
            return Extraction.ok(dominant_colors(im))
    except Exception as exc:
        return Extraction.failed(FeatureExtractionFailure(str(exc), "dominant_colors", viewport))
