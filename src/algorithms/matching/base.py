"""
Shared pieces of the correspondence matchers.

Every matcher has the same shape: place the detections in the frame the
template is compared in, claim at most one detection per feature, classify
each feature, then optionally report unclaimed detections as EXTRA.
"""

from __future__ import annotations

import logging
import time
from collections import Counter
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from models.detection import DetectedObject
from models.geometry import Point
from models.inspection import ComparisonStatus, FeatureComparison, InspectionResult
from models.template import Template, TemplateFeature

from ..classifier import Match, classify_feature, detection_label


@dataclass(frozen=True)
class MatchSettings:
    """
    Matcher tunables.

    Attributes:
        max_match_distance: Search radius for a candidate, in pixels.
        treat_extra_as_error: Report unclaimed detections as EXTRA comparisons.
        type_mismatch_factor: Fraction of the search radius within which a
            different-class detection is claimed as a TYPE_MISMATCH.
        rotation_tolerance_factor: Tolerance widening for centroid-relative matching.
        extra_search_factor: Radius multiplier when looking up the template
            feature an EXTRA detection most likely belongs to.
        recenter: Remove translation before direct-coordinate matching.
    """
    max_match_distance: float = 200.0
    treat_extra_as_error: bool = False
    type_mismatch_factor: float = 0.8
    rotation_tolerance_factor: float = 2.0
    extra_search_factor: float = 1.5
    recenter: bool = True


MatchFunction = Callable[..., InspectionResult]


def assign_nearest(
    features: Sequence[TemplateFeature],
    detections: Sequence[DetectedObject],
    positions: Sequence[Point],
    max_distance: float,
) -> List[Optional[Match]]:
    """
    Greedy nearest same-class assignment in template order.

    ``positions[i]`` is detection ``i`` expressed in the template frame. Each
    feature claims the closest unclaimed same-class detection within
    ``max_distance``; ties go to the lower detection index.
    """
    claimed = set()
    matches: List[Optional[Match]] = []
    for feature in features:
        best_index = None
        best_distance = 0.0
        for i, det in enumerate(detections):
            if i in claimed or det.class_id != feature.class_id:
                continue
            distance = feature.position.distance_to(positions[i])
            if distance > max_distance:
                continue
            if best_index is None or distance < best_distance:
                best_index = i
                best_distance = distance
        if best_index is None:
            matches.append(None)
        else:
            claimed.add(best_index)
            matches.append(Match(best_index, detections[best_index], positions[best_index]))
    return matches


def classify_all(
    features: Sequence[TemplateFeature],
    matches: Sequence[Optional[Match]],
    tolerance_factor: float = 1.0,
) -> List[FeatureComparison]:
    comparisons = []
    for feature, m in zip(features, matches):
        comparison = classify_feature(feature, m, tolerance_factor)
        if comparison is not None:
            comparisons.append(comparison)
    return comparisons


def _expected_feature(
    template: Template,
    det: DetectedObject,
    position: Point,
    radius: float,
) -> Optional[TemplateFeature]:
    best = None
    best_distance = 0.0
    for feature in template.features:
        if feature.class_id != det.class_id:
            continue
        distance = feature.position.distance_to(position)
        if distance <= radius and (best is None or distance < best_distance):
            best = feature
            best_distance = distance
    return best


def unmatched_detections(
    template: Template,
    detections: Sequence[DetectedObject],
    positions: Sequence[Point],
    matches: Sequence[Optional[Match]],
    settings: MatchSettings,
) -> List[FeatureComparison]:
    """
    EXTRA comparisons for detections no feature claimed.

    Returns an empty list unless ``treat_extra_as_error`` is set; otherwise
    the unclaimed count is only logged.
    """
    claimed = {m.detected_index for m in matches if m is not None}
    unclaimed = [i for i in range(len(detections)) if i not in claimed]
    if not unclaimed:
        return []
    if not settings.treat_extra_as_error:
        logging.info(f"{len(unclaimed)} unmatched detections not reported (extra reporting disabled)")
        return []

    radius = settings.max_match_distance * settings.extra_search_factor
    extras = []
    for i in unclaimed:
        det = detections[i]
        expected = _expected_feature(template, det, positions[i], radius)
        label = detection_label(det)
        extras.append(
            FeatureComparison(
                feature_id=f"extra_{i}",
                feature_name=label,
                class_id=det.class_id,
                class_name=label,
                status=ComparisonStatus.EXTRA,
                detected_position=det.center,
                confidence=det.confidence,
                detected_index=i,
                expected_feature_name=expected.name if expected else None,
                expected_position=expected.position if expected else None,
            )
        )
    return extras


def count_labels(detections: Sequence[DetectedObject]) -> Dict[str, int]:
    """Per-label tally of all detections, claimed or not."""
    return dict(Counter(detection_label(d) for d in detections))


def build_result(
    template: Template,
    detections: Sequence[DetectedObject],
    comparisons: List[FeatureComparison],
    strategy: str,
    started: float,
    note: Optional[str] = None,
) -> InspectionResult:
    elapsed_ms = (time.perf_counter() - started) * 1000.0
    result = InspectionResult.from_comparisons(
        template.template_id,
        comparisons,
        strategy=strategy,
        processing_time_ms=elapsed_ms,
        note=note,
        label_counts=count_labels(detections),
    )
    logging.info(f"{template.template_id}: {result.message}")
    return result
