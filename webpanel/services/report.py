# webpanel/services/report.py
# ------------------------------------------------------------
# Run artifacts written next to the rasters:
#  - expert-panel/<agent>.json, consensus.json, perception.json,
#    final-score.json
#  - summary.md
#  - report.pdf
#      page 1: blue header with UTC date, URL + title, desktop raster
#      page 2: score table + line chart of the five experts (0-100)
#      page 3: recommendations (weaknesses + anomalies)
# ------------------------------------------------------------
import io
import json
import logging
import os
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from PIL import Image
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas
from reportlab.platypus import Table, TableStyle

from .models import AgentKind, AssessmentResult
from .utils import ensure_dir

logger = logging.getLogger(__name__)

PAGE_W, PAGE_H = A4
MARGIN = 14 * mm
LINE_H = 6 * mm
REPORT_TITLE = "Website Quality Assessment"

# One color per expert, in panel order
AGENT_COLORS = {
    AgentKind.UX_DESIGNER.value: colors.HexColor("#60A5FA"),
    AgentKind.PRODUCT_DESIGNER.value: colors.HexColor("#F87171"),
    AgentKind.CONVERSION_STRATEGIST.value: colors.HexColor("#FBBF24"),
    AgentKind.SEO_SPECIALIST.value: colors.HexColor("#34D399"),
    AgentKind.BRAND_ANALYST.value: colors.HexColor("#A78BFA"),
}


# ------------------------------------------------------------
# JSON / Markdown
# ------------------------------------------------------------
def _dump(path: str, payload) -> str:
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(payload, fh, indent=2, ensure_ascii=False)
    return path


def final_score(result: AssessmentResult) -> Dict:
    return {
        "url": result.url,
        "timestamp": result.timestamp,
        "expertScores": {ev.agent.value: ev.score for ev in result.evaluations},
        "consensusScore": result.consensus.weighted_score,
        "perceptionScore": result.perception.total_score,
        "finalWeightedScore": result.final_weighted_score,
        "verdict": result.consensus.final_verdict.value,
        "meetsExcellentCriteria": result.meets_excellent_criteria,
    }


def recommendations(result: AssessmentResult) -> List[str]:
    tips = []
    for ev in result.evaluations:
        tips.extend(f"{ev.agent.value}: {w}" for w in ev.weaknesses)
    tips.extend(f"Anomaly: {a}" for a in result.consensus.anomalies)
    return tips


def render_summary(result: AssessmentResult) -> str:
    c = result.consensus
    p = result.perception
    lines = [
        f"# {REPORT_TITLE}",
        "",
        f"**URL:** {result.url}",
        f"**Date:** {result.timestamp}",
        f"**Industry:** {c.industry}",
        "",
        "## Final Score",
        "",
        f"**{c.weighted_score:.2f}/100 - {c.final_verdict.value}**",
        "",
        f"Blended with perception: {result.final_weighted_score:.1f}/100",
        "",
        f"Meets Excellent criteria: {'yes' if result.meets_excellent_criteria else 'no'}",
        "",
        "## Expert Panel",
        "",
        "| Expert | Score | Verdict |",
        "|--------|-------|---------|",
    ]
    lines += [f"| {ev.agent.value} | {ev.score:.1f}/10 | {ev.verdict.value} |"
              for ev in result.evaluations]
    lines += [
        "",
        f"**Expert agreement:** {c.expert_agreement:.0f}%",
        "",
        "## Normalized Scores",
        "",
    ]
    lines += [f"- {cat}: {score:.1f}/10 (weight {c.weights.get(cat, 0.0):.2f})"
              for cat, score in c.normalized_scores.items()]
    lines += ["", "## Anomalies", ""]
    lines += [f"- {a}" for a in c.anomalies] or ["- none"]
    lines += [
        "",
        "## Human Perception",
        "",
        f"**{p.total_score:.1f}/100**",
        "",
        f"- First impression: {p.first_impression:.1f}/25",
        f"- Emotional resonance: {p.emotional_resonance:.1f}/25",
        f"- Cohesion: {p.cohesion:.1f}/25",
        f"- Identity recognition: {p.identity_recognition:.1f}/25",
        "",
        f"Trust: {p.breakdown.trust.value} | Premium: {p.breakdown.premium.value}"
        f" | Memorable: {p.breakdown.memorable.value}",
        "",
        "## Expert Notes",
    ]
    for ev in result.evaluations:
        lines += ["", f"### {ev.agent.value}", "", f"_{ev.focus}_", ""]
        if ev.error:
            lines.append(f"Evaluation failed, neutral score used: {ev.error}")
        lines += [f"- + {s}" for s in ev.strengths]
        lines += [f"- - {w}" for w in ev.weaknesses]
    return "\n".join(lines) + "\n"


def write_reports(result: AssessmentResult, out_dir: str, pdf: bool = True) -> Dict[str, str]:
    """Write every run artifact into ``out_dir``; returns name -> path."""
    panel_dir = os.path.join(out_dir, "expert-panel")
    ensure_dir(panel_dir)
    files = {}
    for ev in result.evaluations:
        files[ev.agent.slug] = _dump(os.path.join(panel_dir, f"{ev.agent.slug}.json"), ev.to_dict())
    files["consensus"] = _dump(os.path.join(out_dir, "consensus.json"), result.consensus.to_dict())
    files["perception"] = _dump(os.path.join(out_dir, "perception.json"), result.perception.to_dict())
    files["final-score"] = _dump(os.path.join(out_dir, "final-score.json"), final_score(result))

    summary_path = os.path.join(out_dir, "summary.md")
    with open(summary_path, "w", encoding="utf-8") as fh:
        fh.write(render_summary(result))
    files["summary"] = summary_path

    if pdf:
        pdf_path = os.path.join(out_dir, "report.pdf")
        try:
            build_pdf(pdf_path, result)
            files["pdf"] = pdf_path
        except Exception:
            logger.exception("PDF report failed for %s, skipping", result.url)
    logger.info("Wrote %d report files to %s", len(files), out_dir)
    return files


# ------------------------------------------------------------
# PDF drawing
# ------------------------------------------------------------
def _draw_header(c: canvas.Canvas, title: str, when_text: str):
    bar_h = 14 * mm
    c.setFillColor(colors.HexColor("#2563EB"))
    c.roundRect(MARGIN, PAGE_H - MARGIN - bar_h, PAGE_W - 2 * MARGIN, bar_h, 6, stroke=0, fill=1)

    c.setFillColor(colors.white)
    c.setFont("Helvetica-Bold", 16)
    c.drawString(MARGIN + 8, PAGE_H - MARGIN - bar_h + 4, title)

    if when_text:
        c.setFont("Helvetica", 10)
        c.drawRightString(PAGE_W - MARGIN - 8, PAGE_H - MARGIN - bar_h + 6, when_text)


def _kv(c: canvas.Canvas, x: float, y: float, k: str, v: str):
    c.setFont("Helvetica-Bold", 10)
    c.setFillColor(colors.black)
    c.drawString(x, y, k)
    c.setFont("Helvetica", 10)
    c.setFillColor(colors.HexColor("#0B0F24"))
    c.drawString(x + 70, y, v or "-")


def _wrap_lines(c: canvas.Canvas, text: str, font: str, size: int, max_w: float) -> List[str]:
    c.setFont(font, size)
    lines, line = [], ""
    for w in text.split():
        test = f"{line} {w}".strip()
        if c.stringWidth(test, font, size) <= max_w:
            line = test
        else:
            if line:
                lines.append(line)
            line = w
    if line:
        lines.append(line)
    return lines or [""]


def _draw_img_buf(c: canvas.Canvas, pil_img: Image.Image, x: float, y: float, w: float, h: float):
    buf = io.BytesIO()
    pil_img.save(buf, format="JPEG", quality=92, optimize=True)
    buf.seek(0)
    c.drawImage(ImageReader(buf), x, y, width=w, height=h, preserveAspectRatio=False, mask="auto")


def _draw_raster(c: canvas.Canvas, img_path: str, top_free_pts: float):
    """Desktop raster at usable width, shrunk to fit the room left on the page."""
    usable_w = PAGE_W - 2 * MARGIN
    room = PAGE_H - 2 * MARGIN - top_free_pts
    with Image.open(img_path) as im:
        im = im.convert("RGB")
        img_w, img_h = im.size
        scale = min(usable_w / float(img_w), room / float(img_h))
        w, h = img_w * scale, img_h * scale
        resized = im.resize((max(1, int(w)), max(1, int(h))), Image.LANCZOS)
    _draw_img_buf(c, resized, MARGIN, PAGE_H - MARGIN - top_free_pts - h, w, h)


def _table_scores(c: canvas.Canvas, x: float, y_top: float, rows: List[List[str]], w: float):
    table = Table(rows, colWidths=[w * 0.45, w * 0.25, w * 0.30])
    table.setStyle(TableStyle([
        ("FONT", (0, 0), (-1, 0), "Helvetica-Bold", 11),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.black),
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#E5F0FF")),
        ("FONT", (0, 1), (-1, -1), "Helvetica", 10),
        ("TEXTCOLOR", (0, 1), (-1, -1), colors.HexColor("#0B0F24")),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.HexColor("#BFD7FF")),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.whitesmoke, colors.HexColor("#F6FAFF")]),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("ALIGN", (1, 1), (1, -1), "RIGHT"),
    ]))
    _, th = table.wrapOn(c, w, PAGE_H)
    table.drawOn(c, x, y_top - th)
    return th


def _line_chart(c: canvas.Canvas, x: float, y_top: float, w: float, h: float,
                series: List[Tuple[str, float]]):
    """
    Simple line chart:
      - Y axis 0-100 with grid at 0, 25, 50, 75, 100
      - one point per expert, connected
      - expert labels underneath
    """
    c.setLineWidth(0.7)
    c.setStrokeColor(colors.HexColor("#CBD5E1"))
    c.rect(x, y_top - h, w, h, stroke=1, fill=0)

    c.setLineWidth(0.5)
    for v in (0, 25, 50, 75, 100):
        yy = (y_top - h) + (v / 100.0) * h
        c.setStrokeColor(colors.HexColor("#E5E7EB") if v not in (0, 100) else colors.HexColor("#CBD5E1"))
        c.line(x, yy, x + w, yy)
        c.setFont("Helvetica", 7)
        c.setFillColor(colors.HexColor("#6B7280"))
        c.drawString(x - 18, yy - 3, f"{v}")

    if not series:
        return

    step = w / max(1, len(series) - 1)
    pts = []
    for i, (_, val) in enumerate(series):
        val = max(0.0, min(100.0, float(val)))
        pts.append((x + i * step, (y_top - h) + (val / 100.0) * h))

    c.setStrokeColor(colors.HexColor("#2563EB"))
    c.setLineWidth(1.4)
    for (x0, y0), (x1, y1) in zip(pts, pts[1:]):
        c.line(x0, y0, x1, y1)

    for (xx, yy), (_, val) in zip(pts, series):
        c.setFillColor(colors.white)
        c.setStrokeColor(colors.HexColor("#2563EB"))
        c.setLineWidth(1)
        c.circle(xx, yy, 2.8, stroke=1, fill=1)
        c.setFont("Helvetica-Bold", 8)
        c.setFillColor(colors.HexColor("#1F2937"))
        c.drawString(xx - 6, min(y_top - 7, yy + 6), f"{int(round(val))}")

    c.setFont("Helvetica", 8)
    for i, (name, _) in enumerate(series):
        c.setFillColor(AGENT_COLORS.get(name, colors.HexColor("#6B7280")))
        # first word only, labels get crowded
        c.drawCentredString(x + i * step, y_top - h - 12, name.split()[0])


def _recommendations(c: canvas.Canvas, tips: List[str], y_start: float):
    y = y_start
    x = MARGIN
    w = PAGE_W - 2 * MARGIN

    c.setFont("Helvetica-Bold", 12)
    c.setFillColor(colors.black)
    c.drawString(x, y - 12, "Recommendations")
    y -= 18

    if not tips:
        c.setFont("Helvetica-Oblique", 10)
        c.setFillColor(colors.HexColor("#222833"))
        c.drawString(x, y - 10, "No recommendations. Looks great!")
        return

    c.setFont("Helvetica", 10)
    for tip in tips:
        if y - 14 < MARGIN:
            c.showPage()
            _draw_header(c, REPORT_TITLE, "")
            y = PAGE_H - MARGIN - 18 * mm
            c.setFont("Helvetica", 10)
        c.setFillColor(colors.HexColor("#2563EB"))
        c.circle(x + 2, y - 6, 2, stroke=0, fill=1)
        c.setFillColor(colors.HexColor("#222833"))
        lines = _wrap_lines(c, tip, "Helvetica", 10, w - 14)
        c.drawString(x + 10, y - 10, lines[0])
        yy = y - 10
        for ln in lines[1:]:
            yy -= 12
            c.drawString(x + 10, yy, ln)
        y = yy - 8


def build_pdf(out_path: str, result: AssessmentResult, when: Optional[datetime] = None):
    when_str = (when or datetime.now(timezone.utc)).strftime("%Y-%m-%d %H:%M:%S UTC")
    consensus = result.consensus
    c = canvas.Canvas(out_path, pagesize=A4)

    # ===== page 1: header + meta + desktop raster =====
    _draw_header(c, REPORT_TITLE, when_str)
    y = PAGE_H - MARGIN - 18 * mm
    c.setFont("Helvetica", 10)
    c.setFillColor(colors.HexColor("#0B0F24"))
    c.drawString(MARGIN, y, f"Report generated for: {result.url or '-'}")
    y -= LINE_H
    _kv(c, MARGIN, y, "Title:", result.captures.title)
    y -= LINE_H
    _kv(c, MARGIN, y, "Industry:", consensus.industry)
    y -= 8

    raster = result.captures.desktop.path
    if raster and os.path.isfile(raster):
        _draw_raster(c, raster, PAGE_H - y - MARGIN)
    else:
        c.setFont("Helvetica-Oblique", 10)
        c.drawString(MARGIN, y - LINE_H, "Screenshot could not be rendered.")

    # ===== page 2: scores + line chart =====
    c.showPage()
    _draw_header(c, REPORT_TITLE, when_str)
    y = PAGE_H - MARGIN - 18 * mm

    rows = [["Metric", "Score", "Verdict"],
            ["Consensus", f"{consensus.weighted_score:.1f}/100", consensus.final_verdict.value],
            ["Perception", f"{result.perception.total_score:.1f}/100", ""],
            ["Final (70/30)", f"{result.final_weighted_score:.1f}/100", ""],
            ["Agreement", f"{consensus.expert_agreement:.0f}%", ""]]
    for ev in result.evaluations:
        rows.append([ev.agent.value, f"{int(round(ev.score * 10)):d}/100", ev.verdict.value])
    th = _table_scores(c, MARGIN, y, rows, w=PAGE_W - 2 * MARGIN)
    y -= th + 18

    series = [(ev.agent.value, ev.score * 10) for ev in result.evaluations]
    _line_chart(c, MARGIN + 18, y, PAGE_W - 2 * MARGIN - 18, 60 * mm, series)

    # ===== page 3: recommendations =====
    c.showPage()
    _draw_header(c, REPORT_TITLE, when_str)
    _recommendations(c, recommendations(result), PAGE_H - MARGIN - 18 * mm)

    c.save()
