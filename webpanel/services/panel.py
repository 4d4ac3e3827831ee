# webpanel/services/panel.py
import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Optional, Sequence, Tuple

from .errors import EvaluatorFailure
from .experts import DEFAULT_PANEL, Evaluator, PanelInputs
from .models import ExpertEvaluation

logger = logging.getLogger(__name__)


def evaluate_isolated(evaluator: Evaluator, inputs: PanelInputs) -> ExpertEvaluation:
    """Run one expert; a failure yields its neutral evaluation instead of raising."""
    try:
        return evaluator.evaluate(inputs)
    except Exception as exc:
        failure = EvaluatorFailure(f"{type(exc).__name__}: {exc}", agent=evaluator.kind.value)
        logger.warning("Expert isolated, using neutral score %.1f: %s",
                       evaluator.base_score, failure, exc_info=True)
        return evaluator.neutral(str(failure))


def run_panel(inputs: PanelInputs,
              evaluators: Sequence[Evaluator] = DEFAULT_PANEL,
              executor: Optional[Executor] = None) -> Tuple[ExpertEvaluation, ...]:
    """
    Evaluate concurrently and wait for every expert. Results keep the order
    of ``evaluators``.
    """
    if executor is None:
        with ThreadPoolExecutor(max_workers=max(1, len(evaluators)),
                                thread_name_prefix="webpanel-expert") as pool:
            return run_panel(inputs, evaluators, pool)
    futures = [executor.submit(evaluate_isolated, ev, inputs) for ev in evaluators]
    return tuple(f.result() for f in futures)
