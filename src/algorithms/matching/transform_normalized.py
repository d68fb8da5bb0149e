"""
Transform-normalized matching.

A similarity transform is estimated between the template and the detections,
the detections are mapped into the template frame, and direct-coordinate
matching runs there without any further recentering.
"""

from __future__ import annotations

import logging
import time
from typing import Optional, Sequence

from models.detection import DetectedObject
from models.errors import InputError
from models.geometry import Point
from models.inspection import InspectionResult
from models.template import Template

from ..transform import SimilarityTransform, estimate_similarity, translation_only
from .base import MatchSettings, assign_nearest, build_result, classify_all, unmatched_detections

STRATEGY_NAME = "transform_normalized"

REFINEMENT_ROUNDS = 3


def estimate_from_anchors(template: Template, detected_anchors: Sequence[Point]) -> SimilarityTransform:
    if not template.anchors:
        raise InputError(f"Template {template.template_id} defines no anchors")
    if len(detected_anchors) != len(template.anchors):
        raise InputError(
            f"Got {len(detected_anchors)} detected anchors for "
            f"{len(template.anchors)} template anchors"
        )
    return estimate_similarity([a.position for a in template.anchors], list(detected_anchors))


def estimate_from_features(
    template: Template,
    detections: Sequence[DetectedObject],
    settings: MatchSettings,
) -> SimilarityTransform:
    """
    Start from centroid translation, then alternate nearest same-class
    pairing and Procrustes estimation for a bounded number of rounds.
    """
    transform = translation_only([f.position for f in template.features], [d.center for d in detections])
    for _ in range(REFINEMENT_ROUNDS):
        positions = [transform.to_template(d.center) for d in detections]
        matches = assign_nearest(template.features, detections, positions, settings.max_match_distance)
        pairs = [(f.position, m.detected.center) for f, m in zip(template.features, matches) if m]
        if len(pairs) < 2:
            break
        refined = estimate_similarity([t for t, _ in pairs], [d for _, d in pairs])
        if refined == transform:
            break
        transform = refined
    return transform


def match_transform_normalized(
    template: Template,
    detections: Sequence[DetectedObject],
    settings: MatchSettings,
    detected_anchors: Optional[Sequence[Point]] = None,
) -> InspectionResult:
    started = time.perf_counter()

    if detected_anchors is not None:
        transform = estimate_from_anchors(template, detected_anchors)
    elif detections:
        transform = estimate_from_features(template, detections, settings)
    else:
        transform = None

    if transform is not None:
        logging.debug(f"{template.template_id}: {transform}")
        aligned = [transform.detection_to_template(d) for d in detections]
        positions = [a.center for a in aligned]
    else:
        positions = []

    matches = assign_nearest(template.features, detections, positions, settings.max_match_distance)
    comparisons = classify_all(template.features, matches)
    comparisons.extend(unmatched_detections(template, detections, positions, matches, settings))
    note = str(transform) if transform is not None else None
    return build_result(template, detections, comparisons, STRATEGY_NAME, started, note)
