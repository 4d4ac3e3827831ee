# webpanel/config.py
import logging
import os
from dataclasses import dataclass
from types import MappingProxyType

from dotenv import load_dotenv

# Viewports captured per run (name, width, height), in capture order
VIEWPORTS = (
    ("desktop", 1440, 900),
    ("tablet", 768, 1024),
    ("mobile", 390, 844),
)

NAV_TIMEOUT_MS = 30000
SETTLE_MS = 2000

# Canonical scoring categories
CATEGORIES = ("ux", "visual", "content", "conversion", "seo", "brand")

# Industry detection rules, checked in this order (first match wins)
INDUSTRY_KEYWORDS = (
    ("law", ("attorney", "lawyer", "law firm", "legal services", "litigation", "paralegal")),
    ("saas", ("saas", "software as a service", "free trial", "start free", "api",
              "integrations", "per month", "dashboard")),
    ("creative-agency", ("creative agency", "design agency", "design studio",
                         "branding agency", "our work", "portfolio")),
    ("ecommerce", ("add to cart", "shop now", "checkout", "free shipping", "in stock", "buy now")),
    ("medical", ("clinic", "patient", "physician", "medical", "dental", "healthcare", "doctor")),
    ("real-estate", ("real estate", "realtor", "listings", "homes for sale", "property", "mortgage")),
    ("automotive", ("dealership", "vehicle", "test drive", "auto repair", "car dealer", "automotive")),
)

# Weighted categories per industry (each profile sums to 1.0)
INDUSTRY_WEIGHTS = MappingProxyType({
    "default": MappingProxyType({
        "ux": 0.20, "visual": 0.20, "content": 0.15,
        "conversion": 0.15, "seo": 0.15, "brand": 0.15,
    }),
    "law": MappingProxyType({
        "ux": 0.20, "visual": 0.15, "content": 0.20,
        "conversion": 0.20, "seo": 0.15, "brand": 0.10,
    }),
    "saas": MappingProxyType({
        "ux": 0.20, "visual": 0.15, "content": 0.15,
        "conversion": 0.25, "seo": 0.10, "brand": 0.15,
    }),
    "creative-agency": MappingProxyType({
        "ux": 0.15, "visual": 0.30, "content": 0.10,
        "conversion": 0.10, "seo": 0.05, "brand": 0.30,
    }),
    "ecommerce": MappingProxyType({
        "ux": 0.20, "visual": 0.15, "content": 0.10,
        "conversion": 0.30, "seo": 0.15, "brand": 0.10,
    }),
    "medical": MappingProxyType({
        "ux": 0.20, "visual": 0.10, "content": 0.25,
        "conversion": 0.15, "seo": 0.15, "brand": 0.15,
    }),
    "real-estate": MappingProxyType({
        "ux": 0.15, "visual": 0.25, "content": 0.15,
        "conversion": 0.20, "seo": 0.15, "brand": 0.10,
    }),
    "automotive": MappingProxyType({
        "ux": 0.20, "visual": 0.20, "content": 0.10,
        "conversion": 0.25, "seo": 0.15, "brand": 0.10,
    }),
})

# Minimum normalized score per category for Excellent / World-Class
EXCELLENT_THRESHOLDS = MappingProxyType({
    "ux": 8.0,
    "visual": 8.0,
    "content": 8.0,
    "conversion": 7.5,
    "seo": 7.5,
    "brand": 7.0,
})

# Headline score: consensus blended with perception, and the floor it must
# clear before a run is reported as meeting the Excellent criteria
FINAL_BLEND = MappingProxyType({"consensus": 0.7, "perception": 0.3})
EXCELLENT_FINAL_MINIMUM = 75.0

# Composite (0-100) verdict cutoffs
VERDICT_CUTOFFS = (
    (40.0, "Poor"),
    (60.0, "OK"),
    (75.0, "Good"),
    (90.0, "Excellent"),
)

# Per-agent (0-10) verdict bands
AGENT_VERDICT_BANDS = (
    (4.0, "Poor"),
    (6.0, "OK"),
    (7.5, "Good"),
    (8.5, "Excellent"),
)

ANOMALY_THRESHOLD = 2.5


@dataclass(frozen=True)
class Settings:
    data_dir: str
    nav_timeout_ms: int = NAV_TIMEOUT_MS
    settle_ms: int = SETTLE_MS
    headless: bool = True
    panel_workers: int = 6
    log_level: str = "INFO"


def load_settings() -> Settings:
    load_dotenv()
    base_dir = os.path.abspath(os.path.dirname(__file__))
    default_data = os.path.normpath(os.path.join(base_dir, "..", "data"))
    headless = os.environ.get("WEBPANEL_HEADLESS", "1").strip().lower() not in ("0", "false", "no")
    return Settings(
        data_dir=os.environ.get("WEBPANEL_DATA_DIR", default_data),
        nav_timeout_ms=int(os.environ.get("WEBPANEL_NAV_TIMEOUT_MS", NAV_TIMEOUT_MS)),
        settle_ms=int(os.environ.get("WEBPANEL_SETTLE_MS", SETTLE_MS)),
        headless=headless,
        panel_workers=int(os.environ.get("WEBPANEL_PANEL_WORKERS", 6)),
        log_level=os.environ.get("WEBPANEL_LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
