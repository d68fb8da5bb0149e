"""
Direct-coordinate matching.

Features and detections are compared in absolute coordinates after both sets
are shifted onto their own bounding-box centers. This absorbs translation of
the part but not rotation, so it suits fixtures that hold parts square.
"""

from __future__ import annotations

import time
from typing import Optional, Sequence

from models.detection import DetectedObject
from models.geometry import BoundingBox, Point
from models.inspection import InspectionResult
from models.template import Template

from .base import MatchSettings, assign_nearest, build_result, classify_all, unmatched_detections

STRATEGY_NAME = "direct"


def recentering_offset(template: Template, detections: Sequence[DetectedObject]) -> Point:
    """Offset that moves the detections' box center onto the template's."""
    if not detections:
        return Point(0.0, 0.0)
    t_center = BoundingBox.from_points(f.position for f in template.features).center
    d_center = BoundingBox.from_points(d.center for d in detections).center
    return t_center - d_center


def match_direct(
    template: Template,
    detections: Sequence[DetectedObject],
    settings: MatchSettings,
    detected_anchors: Optional[Sequence[Point]] = None,
) -> InspectionResult:
    started = time.perf_counter()

    offset = recentering_offset(template, detections) if settings.recenter else Point(0.0, 0.0)
    positions = [d.center + offset for d in detections]

    matches = assign_nearest(template.features, detections, positions, settings.max_match_distance)
    comparisons = classify_all(template.features, matches)
    comparisons.extend(unmatched_detections(template, detections, positions, matches, settings))

    note = None
    if settings.recenter and detections:
        note = f"recentered by ({offset.x:.2f}, {offset.y:.2f})"
    return build_result(template, detections, comparisons, STRATEGY_NAME, started, note)
