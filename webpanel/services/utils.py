# webpanel/services/utils.py
import os
import re
from datetime import datetime, timezone
from urllib.parse import urlparse


def iso_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def ensure_dir(path: str):
    os.makedirs(path, exist_ok=True)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def validate_url(url: str) -> str:
    url = (url or "").strip()
    if not (url.startswith("http://") or url.startswith("https://")):
        raise ValueError(f"Please enter a valid URL including http(s)://: {url!r}")
    if not urlparse(url).hostname:
        raise ValueError(f"URL has no host: {url!r}")
    return url


def run_dir_name(url: str) -> str:
    # <host>-<UTC timestamp>, filesystem safe
    host = urlparse(url).hostname or "site"
    host = re.sub(r"[^A-Za-z0-9]+", "-", host).strip("-")
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    return f"{host}-{stamp}"
