"""
Similarity transform estimation between corresponded point sets.

A similarity transform here is translation + one rotation angle + one
isotropic scale. Parameters are stored in the detected->template direction:

    to_template(p) = c_t + s * R(theta) * (p - c_d)
    to_detected(p) = c_d + (1 / s) * R(-theta) * (p - c_t)

where c_t / c_d are the template / detected centroids.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

from models.detection import DetectedObject
from models.errors import InputError
from models.geometry import Point, centroid

# Below this the detected points are treated as coincident.
DEGENERATE_EPSILON = 1e-12


@dataclass(frozen=True)
class SimilarityTransform:
    """
    Attributes:
        template_centroid: Centroid of the template points.
        detected_centroid: Centroid of the detected points.
        rotation: Angle in radians rotating detected offsets onto template offsets.
        scale: Factor scaling detected offsets onto template offsets.
    """
    template_centroid: Point
    detected_centroid: Point
    rotation: float = 0.0
    scale: float = 1.0

    @property
    def rotation_degrees(self) -> float:
        return math.degrees(self.rotation)

    @property
    def translation(self) -> Point:
        return self.detected_centroid - self.template_centroid

    def is_translation_only(self) -> bool:
        return self.rotation == 0.0 and self.scale == 1.0

    def to_template(self, p: Point) -> Point:
        """Map a detector-frame point into the template frame (inverse)."""
        dx = p.x - self.detected_centroid.x
        dy = p.y - self.detected_centroid.y
        cos_t = math.cos(self.rotation)
        sin_t = math.sin(self.rotation)
        return Point(
            self.template_centroid.x + self.scale * (cos_t * dx - sin_t * dy),
            self.template_centroid.y + self.scale * (sin_t * dx + cos_t * dy),
        )

    def to_detected(self, p: Point) -> Point:
        """Map a template-frame point into the detector frame (forward)."""
        tx = p.x - self.template_centroid.x
        ty = p.y - self.template_centroid.y
        cos_t = math.cos(self.rotation)
        sin_t = math.sin(self.rotation)
        return Point(
            self.detected_centroid.x + (cos_t * tx + sin_t * ty) / self.scale,
            self.detected_centroid.y + (-sin_t * tx + cos_t * ty) / self.scale,
        )

    def detection_to_template(self, obj: DetectedObject) -> DetectedObject:
        """New DetectedObject expressed in the template frame."""
        return obj.with_center(self.to_template(obj.center), scale=self.scale)

    def __str__(self) -> str:
        t = self.translation
        return (
            f"transform(dx={t.x:.2f}, dy={t.y:.2f}, "
            f"rotation={self.rotation_degrees:.2f}deg, scale={self.scale:.4f})"
        )


def translation_only(template_points: Sequence[Point], detected_points: Sequence[Point]) -> SimilarityTransform:
    return SimilarityTransform(
        template_centroid=centroid(template_points),
        detected_centroid=centroid(detected_points),
    )


def estimate_similarity(
    template_points: Sequence[Point],
    detected_points: Sequence[Point],
) -> SimilarityTransform:
    """
    Closed-form least-squares (Procrustes) similarity between paired points.

    Args:
        template_points: Template-frame points.
        detected_points: Detector-frame points, ``detected_points[i]`` paired
            with ``template_points[i]``.

    Returns:
        The transform. One pair gives a translation-only transform, as do
        detected points that all coincide.

    Raises:
        InputError: The sets are empty or differ in length.
    """
    if len(template_points) != len(detected_points):
        raise InputError(
            f"Point sets differ in size: {len(template_points)} template vs "
            f"{len(detected_points)} detected"
        )
    if not template_points:
        raise InputError("Cannot estimate a transform from zero point pairs")

    base = translation_only(template_points, detected_points)
    if len(template_points) == 1:
        return base

    c_t = base.template_centroid
    c_d = base.detected_centroid
    sigma = 0.0
    delta = 0.0
    denom = 0.0
    for t, d in zip(template_points, detected_points):
        tx, ty = t.x - c_t.x, t.y - c_t.y
        dx, dy = d.x - c_d.x, d.y - c_d.y
        sigma += tx * dx + ty * dy
        delta += ty * dx - tx * dy
        denom += dx * dx + dy * dy

    if denom < DEGENERATE_EPSILON:
        logging.warning("Detected points coincide; using translation-only transform")
        return base

    scale = math.hypot(sigma, delta) / denom
    if scale < DEGENERATE_EPSILON:
        logging.warning("Estimated scale is zero; using translation-only transform")
        return base

    transform = SimilarityTransform(
        template_centroid=c_t,
        detected_centroid=c_d,
        rotation=math.atan2(delta, sigma),
        scale=scale,
    )
    logging.debug(f"Estimated {transform} from {len(template_points)} pairs")
    return transform
