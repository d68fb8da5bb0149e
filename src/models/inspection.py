"""
Inspection result models.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from .geometry import Point


class ComparisonStatus(str, Enum):
    """Outcome for one template feature or one unmatched detection."""
    PASSED = "PASSED"
    DEVIATION_EXCEEDED = "DEVIATION_EXCEEDED"
    MISSING = "MISSING"
    EXTRA = "EXTRA"
    TYPE_MISMATCH = "TYPE_MISMATCH"


# Statuses that claim a detected object.
MATCHED_STATUSES = (
    ComparisonStatus.PASSED,
    ComparisonStatus.DEVIATION_EXCEEDED,
    ComparisonStatus.TYPE_MISMATCH,
)


def _point_list(p: Optional[Point]) -> Optional[list]:
    return [p.x, p.y] if p is not None else None


@dataclass(frozen=True)
class FeatureComparison:
    """
    Comparison record for one template feature (or one EXTRA detection).

    Attributes:
        feature_id: Template feature id, or ``extra_{i}`` for EXTRA entries.
        feature_name: Template feature name, or the detected label for EXTRA entries.
        class_id: Expected class id (detected class id for EXTRA entries).
        class_name: Label of the matched detection when known.
        template_position: Expected position, None for EXTRA entries.
        detected_position: Detected position in detector frame, None when MISSING.
        x_error: Horizontal deviation used for classification.
        y_error: Vertical deviation used for classification.
        total_error: Euclidean deviation, always reported.
        tolerance_x: Horizontal tolerance applied.
        tolerance_y: Vertical tolerance applied.
        status: Classification outcome.
        confidence: Detection confidence, 0 when nothing was matched.
        detected_index: Index of the claimed detection in the input list.
        expected_feature_name: For EXTRA entries, nearest template feature.
        expected_position: For EXTRA entries, that feature's position.
    """
    feature_id: str
    feature_name: str
    class_id: int
    status: ComparisonStatus
    class_name: Optional[str] = None
    template_position: Optional[Point] = None
    detected_position: Optional[Point] = None
    x_error: float = 0.0
    y_error: float = 0.0
    total_error: float = 0.0
    tolerance_x: float = 0.0
    tolerance_y: float = 0.0
    confidence: float = 0.0
    detected_index: Optional[int] = None
    expected_feature_name: Optional[str] = None
    expected_position: Optional[Point] = None

    @property
    def is_match(self) -> bool:
        return self.status in MATCHED_STATUSES

    def to_dict(self) -> Dict[str, Any]:
        return {
            "feature_id": self.feature_id,
            "feature_name": self.feature_name,
            "class_id": self.class_id,
            "class_name": self.class_name,
            "template_position": _point_list(self.template_position),
            "detected_position": _point_list(self.detected_position),
            "x_error": self.x_error,
            "y_error": self.y_error,
            "total_error": self.total_error,
            "tolerance_x": self.tolerance_x,
            "tolerance_y": self.tolerance_y,
            "status": self.status.value,
            "confidence": self.confidence,
            "detected_index": self.detected_index,
            "expected_feature_name": self.expected_feature_name,
            "expected_position": _point_list(self.expected_position),
        }


@dataclass(frozen=True)
class InspectionSummary:
    """Per-status comparison counts."""
    total: int = 0
    passed: int = 0
    deviation: int = 0
    missing: int = 0
    extra: int = 0
    type_mismatch: int = 0

    @classmethod
    def from_comparisons(cls, comparisons: Iterable[FeatureComparison]) -> "InspectionSummary":
        counts = Counter(c.status for c in comparisons)
        return cls(
            total=sum(counts.values()),
            passed=counts[ComparisonStatus.PASSED],
            deviation=counts[ComparisonStatus.DEVIATION_EXCEEDED],
            missing=counts[ComparisonStatus.MISSING],
            extra=counts[ComparisonStatus.EXTRA],
            type_mismatch=counts[ComparisonStatus.TYPE_MISMATCH],
        )

    def __str__(self) -> str:
        return (
            f"total={self.total}, passed={self.passed}, deviation={self.deviation}, "
            f"missing={self.missing}, extra={self.extra}, type_mismatch={self.type_mismatch}"
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "passed": self.passed,
            "deviation": self.deviation,
            "missing": self.missing,
            "extra": self.extra,
            "type_mismatch": self.type_mismatch,
        }


@dataclass(frozen=True)
class InspectionResult:
    """
    Outcome of one inspection call.

    ``passed`` is True only when the inspection ran and no comparison
    failed. Runs that could not start carry an explanatory message and
    no comparisons. Processing time is excluded from equality so repeated runs
    over identical inputs compare equal.
    """
    template_id: str
    passed: bool
    comparisons: Tuple[FeatureComparison, ...] = ()
    message: str = ""
    strategy: Optional[str] = None
    label_counts: Optional[Dict[str, int]] = None
    processing_time_ms: float = field(default=0.0, compare=False)

    @classmethod
    def from_comparisons(
        cls,
        template_id: str,
        comparisons: Iterable[FeatureComparison],
        strategy: str,
        processing_time_ms: float = 0.0,
        note: Optional[str] = None,
        label_counts: Optional[Dict[str, int]] = None,
    ) -> "InspectionResult":
        """
        Assemble a result, deriving ``passed`` and the summary message.

        ``label_counts`` is the per-label tally of every inspected detection,
        claimed or not.
        """
        comparisons = tuple(comparisons)
        passed = all(c.status is ComparisonStatus.PASSED for c in comparisons)
        summary = InspectionSummary.from_comparisons(comparisons)
        verdict = "passed" if passed else "failed"
        message = f"Inspection {verdict} ({strategy}) - {summary}"
        if note:
            message = f"{message}; {note}"
        return cls(
            template_id=template_id,
            passed=passed,
            comparisons=comparisons,
            message=message,
            strategy=strategy,
            label_counts=dict(label_counts) if label_counts is not None else None,
            processing_time_ms=processing_time_ms,
        )

    @classmethod
    def failure(cls, template_id: str, message: str, strategy: Optional[str] = None) -> "InspectionResult":
        """Result for an inspection that could not run."""
        return cls(
            template_id=template_id,
            passed=False,
            comparisons=(),
            message=message,
            strategy=strategy,
        )

    def summary(self) -> InspectionSummary:
        return InspectionSummary.from_comparisons(self.comparisons)

    def detected_counts(self) -> Dict[str, int]:
        """
        Count detected objects per label.

        Uses the tally of every inspected detection when the matcher recorded
        one, so unclaimed detections still count. Otherwise every comparison
        that references a detection contributes once, keyed by its class name
        (or class id when unnamed).
        """
        if self.label_counts is not None:
            return dict(self.label_counts)
        counts: Dict[str, int] = {}
        for c in self.comparisons:
            if c.detected_index is None:
                continue
            label = c.class_name if c.class_name is not None else str(c.class_id)
            counts[label] = counts.get(label, 0) + 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "template_id": self.template_id,
            "passed": self.passed,
            "strategy": self.strategy,
            "message": self.message,
            "processing_time_ms": self.processing_time_ms,
            "summary": self.summary().to_dict(),
            "detected_counts": self.detected_counts(),
            "comparisons": [c.to_dict() for c in self.comparisons],
        }

    def __str__(self) -> str:
        status = "PASSED" if self.passed else "FAILED"
        return f"InspectionResult[{self.template_id}: {status}, {self.summary()}]"
