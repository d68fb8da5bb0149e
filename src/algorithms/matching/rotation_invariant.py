"""
Centroid-relative matching.

Each feature is characterised by its distance from the template centroid and
each detection by its distance from the detections' centroid. Those
distances do not change when the part is rotated or shifted, so candidates
are searched by the difference between the two.
"""

from __future__ import annotations

import time
from typing import List, Optional, Sequence

from models.detection import DetectedObject
from models.geometry import Point, centroid
from models.inspection import InspectionResult
from models.template import Template, TemplateFeature

from ..classifier import Match
from .base import MatchSettings, build_result, classify_all, unmatched_detections

STRATEGY_NAME = "rotation_invariant"


def _find_candidate(
    feature: TemplateFeature,
    feature_radius: float,
    detections: Sequence[DetectedObject],
    radii: Sequence[float],
    claimed: set,
    settings: MatchSettings,
) -> Optional[Match]:
    best_same = None
    best_same_err = 0.0
    best_other = None
    best_other_err = 0.0
    mismatch_limit = settings.max_match_distance * settings.type_mismatch_factor

    for i, det in enumerate(detections):
        if i in claimed:
            continue
        err = abs(feature_radius - radii[i])
        if det.class_id == feature.class_id:
            if err <= settings.max_match_distance and (best_same is None or err < best_same_err):
                best_same = i
                best_same_err = err
        elif err <= mismatch_limit and (best_other is None or err < best_other_err):
            best_other = i
            best_other_err = err

    if best_same is not None:
        return Match(best_same, detections[best_same], detections[best_same].center)
    if best_other is not None:
        return Match(best_other, detections[best_other], detections[best_other].center, type_mismatch=True)
    return None


def match_rotation_invariant(
    template: Template,
    detections: Sequence[DetectedObject],
    settings: MatchSettings,
    detected_anchors: Optional[Sequence[Point]] = None,
) -> InspectionResult:
    started = time.perf_counter()

    detected_centroid = centroid(d.center for d in detections)
    radii = [d.center.distance_to(detected_centroid) for d in detections]

    claimed = set()
    matches: List[Optional[Match]] = []
    for feature in template.features:
        m = _find_candidate(
            feature,
            feature.relative_position.norm(),
            detections,
            radii,
            claimed,
            settings,
        )
        if m is not None:
            claimed.add(m.detected_index)
        matches.append(m)

    comparisons = classify_all(template.features, matches, settings.rotation_tolerance_factor)
    positions = [d.center for d in detections]
    comparisons.extend(unmatched_detections(template, detections, positions, matches, settings))
    return build_result(template, detections, comparisons, STRATEGY_NAME, started)
