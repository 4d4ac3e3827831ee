# webpanel/services/pipeline.py
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Sequence

from webpanel.config import Settings, load_settings

from .consensus import build_consensus, final_weighted_score, qualifies_as_excellent
from .experts import DEFAULT_PANEL, Evaluator, PanelInputs
from .models import AssessmentResult, CaptureSet
from .panel import run_panel
from .perception import calculate_perception
from .report import write_reports
from .screenshot import capture
from .utils import ensure_dir, iso_now, run_dir_name, validate_url

logger = logging.getLogger(__name__)


def evaluate_capture(captures: CaptureSet, url: str,
                     evaluators: Sequence[Evaluator] = DEFAULT_PANEL,
                     workers: int = 6) -> AssessmentResult:
    """
    Score an existing capture: panel and perception run side by side,
    consensus waits for the full panel. No browser involved.
    """
    inputs = PanelInputs.from_captures(captures)
    with ThreadPoolExecutor(max_workers=max(workers, 2),
                            thread_name_prefix="webpanel-panel") as pool:
        perception_future = pool.submit(calculate_perception, inputs)
        evaluations = run_panel(inputs, evaluators, pool)
        perception = perception_future.result()

    for ev in evaluations:
        logger.debug("%s: %.2f (%s)", ev.agent.value, ev.score, ev.verdict.value)

    consensus = build_consensus(evaluations, url, captures.body_text)
    final = final_weighted_score(consensus.weighted_score, perception.total_score)
    logger.info("Consensus for %s: %.2f/100 %s (industry=%s, agreement=%.0f%%, perception=%.1f, final=%.1f)",
                url, consensus.weighted_score, consensus.final_verdict.value,
                consensus.industry, consensus.expert_agreement, perception.total_score, final)
    return AssessmentResult(
        url=url,
        timestamp=iso_now(),
        captures=captures,
        evaluations=evaluations,
        consensus=consensus,
        perception=perception,
        final_weighted_score=final,
        meets_excellent_criteria=qualifies_as_excellent(consensus.normalized_scores, final),
    )


def assess(url: str, out_dir: Optional[str] = None, settings: Optional[Settings] = None,
           write_report: bool = True) -> AssessmentResult:
    """Capture ``url`` at three viewports, run the panel and return the verdict."""
    url = validate_url(url)
    settings = settings or load_settings()
    if out_dir is None:
        out_dir = os.path.join(settings.data_dir, run_dir_name(url))
    ensure_dir(out_dir)
    logger.info("Assessing %s -> %s", url, out_dir)

    captures = capture(url, out_dir, settings)
    result = evaluate_capture(captures, url, workers=settings.panel_workers)

    if write_report:
        files = write_reports(result, out_dir)
        result.files.update(files)
    logger.info("Finished %s: %s", url, result.consensus.final_verdict.value)
    return result
