# webpanel/services/errors.py
import logging
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AssessmentError(Exception):
    """Base error; carries the pipeline stage and, when known, viewport/agent."""

    def __init__(self, message: str, stage: str,
                 viewport: Optional[str] = None, agent: Optional[str] = None):
        self.stage = stage
        self.viewport = viewport
        self.agent = agent
        self.detail = message
        super().__init__(self._format())

    def _format(self) -> str:
        where = [self.stage]
        if self.viewport:
            where.append(f"viewport={self.viewport}")
        if self.agent:
            where.append(f"agent={self.agent}")
        return f"[{' '.join(where)}] {self.detail}"


class NavigationFailure(AssessmentError):
    """The renderer could not load or settle the page. Fatal."""

    def __init__(self, message: str, viewport: Optional[str] = None, url: Optional[str] = None):
        self.url = url
        super().__init__(message, stage="capture", viewport=viewport)


class FeatureExtractionFailure(AssessmentError):
    """A color/rhythm/component extractor failed. Recovered with a default."""

    def __init__(self, message: str, feature: str, viewport: Optional[str] = None):
        self.feature = feature
        super().__init__(f"{feature}: {message}", stage="features", viewport=viewport)


class EvaluatorFailure(AssessmentError):
    """One expert raised. Isolated by the panel; never propagated."""

    def __init__(self, message: str, agent: str):
        super().__init__(message, stage="panel", agent=agent)


class AggregationInputViolation(AssessmentError, ValueError):
    """The consensus engine received an incomplete or out-of-range panel."""

    def __init__(self, message: str, agent: Optional[str] = None):
        super().__init__(message, stage="consensus", agent=agent)


@dataclass(frozen=True)
class Extraction(Generic[T]):
    """Outcome of a feature extractor: a value or the failure that prevented it."""
    value: Optional[T] = None
    error: Optional[FeatureExtractionFailure] = None

    @classmethod
    def ok(cls, value: T) -> "Extraction[T]":
        return cls(value=value)

    @classmethod
    def failed(cls, error: FeatureExtractionFailure) -> "Extraction[T]":
        return cls(error=error)

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def or_default(self, default: T) -> T:
        if self.error is None:
            return self.value
        logger.warning("Using default %r after extraction failure: %s", default, self.error)
        return default
