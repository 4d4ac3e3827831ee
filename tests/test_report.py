import json
import logging
import os

from webpanel.services import report


def test_write_reports_layout(tmp_path, poor_result):
    files = report.write_reports(poor_result, str(tmp_path))

    panel_dir = tmp_path / "expert-panel"
    assert sorted(os.listdir(panel_dir)) == [
        "brand-identity-analyst.json",
        "conversion-strategist.json",
        "product-designer.json",
        "seo-specialist.json",
        "ux-designer.json",
    ]
    for name in ("consensus.json", "perception.json", "final-score.json", "summary.md", "report.pdf"):
        assert (tmp_path / name).is_file()
    assert files["pdf"] == str(tmp_path / "report.pdf")


def test_json_payloads(tmp_path, poor_result):
    report.write_reports(poor_result, str(tmp_path), pdf=False)

    consensus = json.loads((tmp_path / "consensus.json").read_text(encoding="utf-8"))
    assert consensus["finalVerdict"] == "Poor"
    assert consensus["industry"] == "default"

    final = json.loads((tmp_path / "final-score.json").read_text(encoding="utf-8"))
    assert final["verdict"] == "Poor"
    assert final["meetsExcellentCriteria"] is False
    assert final["finalWeightedScore"] == 39.4
    assert final["consensusScore"] == poor_result.consensus.weighted_score
    assert set(final["expertScores"]) == {
        "UX Designer", "Product Designer", "Conversion Strategist",
        "SEO Specialist", "Brand Identity Analyst",
    }

    ux = json.loads((tmp_path / "expert-panel" / "ux-designer.json").read_text(encoding="utf-8"))
    assert ux["agent"] == "UX Designer"
    assert ux["details"]["nav_exists"] is False
    assert not (tmp_path / "report.pdf").exists()


def test_summary_markdown(poor_result):
    md = report.render_summary(poor_result)

    assert md.startswith("# Website Quality Assessment")
    assert "| UX Designer |" in md
    assert "**Expert agreement:**" in md
    assert "## Anomalies\n\n- none" in md
    assert "Navigation unclear or missing" in md


def test_recommendations_come_from_weaknesses(poor_result):
    tips = report.recommendations(poor_result)
    assert "UX Designer: Navigation unclear or missing" in tips
    assert "SEO Specialist: Missing H1" in tips


def test_pdf_failure_is_skipped(monkeypatch, tmp_path, poor_result, caplog):
    def broken(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(report, "build_pdf", broken)
    with caplog.at_level(logging.ERROR, logger="webpanel.services.report"):
        files = report.write_reports(poor_result, str(tmp_path))

    assert "pdf" not in files
    assert "consensus" in files
    assert "PDF report failed" in caplog.text


def test_pdf_embeds_desktop_raster(tmp_path, poor_result):
    from dataclasses import replace

    from PIL import Image

    raster = tmp_path / "desktop.png"
    Image.new("RGB", (1440, 900), (240, 240, 240)).save(raster)
    captures = replace(poor_result.captures,
                       desktop=replace(poor_result.captures.desktop, path=str(raster)))
    result = replace(poor_result, captures=captures)

    out = tmp_path / "report.pdf"
    report.build_pdf(str(out), result)

    data = out.read_bytes()
    assert data.startswith(b"%PDF")
    assert b"/Image" in data or b"/XObject" in data
