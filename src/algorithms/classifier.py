"""
Per-feature classification of a correspondence (or its absence).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from models.detection import DetectedObject
from models.geometry import Point
from models.inspection import ComparisonStatus, FeatureComparison
from models.template import TemplateFeature


@dataclass(frozen=True)
class Match:
    """
    A claimed pairing between one template feature and one detection.

    Attributes:
        detected_index: Index of the detection in the matcher input.
        detected: The detection as reported, in detector frame.
        position: Detection position in the frame the errors are measured in.
        type_mismatch: True when the claimed detection has a different class.
    """
    detected_index: int
    detected: DetectedObject
    position: Point
    type_mismatch: bool = False


def detection_label(obj: DetectedObject) -> str:
    return obj.class_name if obj.class_name is not None else str(obj.class_id)


def classify_feature(
    feature: TemplateFeature,
    match: Optional[Match],
    tolerance_factor: float = 1.0,
) -> Optional[FeatureComparison]:
    """
    Classify one template feature.

    | match                     | status                      |
    |---------------------------|-----------------------------|
    | none, required            | MISSING                     |
    | none, optional            | None (omitted)              |
    | different class           | TYPE_MISMATCH               |
    | same class, within tol    | PASSED                      |
    | same class, outside tol   | DEVIATION_EXCEEDED          |

    Tolerances are inclusive. ``tolerance_factor`` widens both axes; the
    widened values are the ones reported on matched comparisons. MISSING
    entries report the feature's own tolerance.
    """
    tol_x = feature.tolerance_x * tolerance_factor
    tol_y = feature.tolerance_y * tolerance_factor

    if match is None:
        if not feature.required:
            return None
        return FeatureComparison(
            feature_id=feature.feature_id,
            feature_name=feature.name,
            class_id=feature.class_id,
            class_name=feature.class_name,
            status=ComparisonStatus.MISSING,
            template_position=feature.position,
            tolerance_x=feature.tolerance_x,
            tolerance_y=feature.tolerance_y,
        )

    x_error = abs(match.position.x - feature.position.x)
    y_error = abs(match.position.y - feature.position.y)

    if match.type_mismatch:
        status = ComparisonStatus.TYPE_MISMATCH
    elif x_error <= tol_x and y_error <= tol_y:
        status = ComparisonStatus.PASSED
    else:
        status = ComparisonStatus.DEVIATION_EXCEEDED

    return FeatureComparison(
        feature_id=feature.feature_id,
        feature_name=feature.name,
        class_id=feature.class_id,
        class_name=detection_label(match.detected),
        status=status,
        template_position=feature.position,
        detected_position=match.detected.center,
        x_error=x_error,
        y_error=y_error,
        total_error=math.hypot(x_error, y_error),
        tolerance_x=tol_x,
        tolerance_y=tol_y,
        confidence=match.detected.confidence,
        detected_index=match.detected_index,
    )
