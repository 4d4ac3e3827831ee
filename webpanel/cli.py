# webpanel/cli.py
import argparse
import json
import sys

from webpanel.config import configure_logging, load_settings
from webpanel.services.errors import NavigationFailure
from webpanel.services.pipeline import assess
from webpanel.services.utils import validate_url


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="webpanel",
        description="Capture a website at three viewports and score it with a five-expert panel.",
    )
    parser.add_argument("url", help="Page URL including http(s)://")
    parser.add_argument("--out", default=None, help="Output directory (default: a new run dir under WEBPANEL_DATA_DIR)")
    parser.add_argument("--no-report", action="store_true", help="Skip JSON/Markdown/PDF reports")
    parser.add_argument("--json", action="store_true", help="Print the full result as JSON")
    args = parser.parse_args(argv)

    settings = load_settings()
    configure_logging(settings.log_level)

    try:
        url = validate_url(args.url)
    except ValueError as exc:
        print(f"Invalid URL: {exc}", file=sys.stderr)
        return 1

    try:
        result = assess(url, out_dir=args.out, settings=settings,
                        write_report=not args.no_report)
    except NavigationFailure as exc:
        print(f"Could not load page: {exc}", file=sys.stderr)
        return 2

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        c = result.consensus
        print(f"{result.url}: {c.weighted_score:.1f}/100 {c.final_verdict.value} "
              f"(industry={c.industry}, agreement={c.expert_agreement:.0f}%, "
              f"perception={result.perception.total_score:.1f})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
