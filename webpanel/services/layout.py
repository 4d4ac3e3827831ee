# webpanel/services/layout.py
from typing import List, Optional

import numpy as np
from PIL import Image

from .errors import Extraction, FeatureExtractionFailure
from .utils import clamp

DARK_BELOW = 200      # greyscale brightness counted as "ink"
MIN_GAP = 10          # px; shorter runs are ignored
STRIPS = 10
DEFAULT_RHYTHM = 5.0


def spacing_gaps(gray: np.ndarray) -> List[int]:
    """
    Walk vertical strips top-to-bottom; whenever a dark pixel sits more than
    MIN_GAP px below the last recorded one, record that distance.
    """
    height, width = gray.shape[:2]
    stride = max(1, width // STRIPS)
    gaps = []
    for x in range(0, width, stride):
        last = 0
        for y in np.flatnonzero(gray[:, x] < DARK_BELOW).tolist():
            if y - last > MIN_GAP:
                gaps.append(y - last)
                last = y
    return gaps


def rhythm_score(gaps: List[int]) -> float:
    """10 for perfectly even spacing, falling with the squared coefficient of variation."""
    if len(gaps) < 2:
        return DEFAULT_RHYTHM
    arr = np.asarray(gaps, dtype=np.float64)
    mean = float(arr.mean())
    variance = float(arr.var())
    return clamp(10.0 - 10.0 * variance / (mean * mean), 0.0, 10.0)


def layout_rhythm(pil_image: Image.Image) -> float:
    gray = np.asarray(pil_image.convert("L"), dtype=np.uint8)
    return rhythm_score(spacing_gaps(gray))


def extract_layout_rhythm(image, viewport: Optional[str] = None) -> Extraction[float]:
    try:
        if isinstance(image, Image.Image):
            return Extraction.ok(layout_rhythm(image))
        with Image.open(image) as im:
            return Extraction.ok(layout_rhythm(im))
    except Exception as exc:
        return Extraction.failed(FeatureExtractionFailure(str(exc), "layout_rhythm", viewport))
