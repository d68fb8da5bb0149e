"""
Template construction from detector output or manual annotations.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from models.config import InspectionConfig
from models.detection import DetectedObject
from models.errors import InputError
from models.geometry import BoundingBox, Point
from models.template import (
    DEFAULT_TOLERANCE,
    AnchorPoint,
    AnchorType,
    Template,
    TemplateFeature,
)


@dataclass
class TemplateBuilderConfig:
    """Defaults applied to built templates."""
    padding: float = 10.0
    tolerance_x: float = DEFAULT_TOLERANCE
    tolerance_y: float = DEFAULT_TOLERANCE


def anchors_for_box(bbox: BoundingBox) -> List[AnchorPoint]:
    """Geometric center plus the four edge centers of a box."""
    c = bbox.center
    return [
        AnchorPoint("A0", AnchorType.CENTER, c),
        AnchorPoint("A1", AnchorType.TOP_CENTER, Point(c.x, bbox.y1)),
        AnchorPoint("A2", AnchorType.BOTTOM_CENTER, Point(c.x, bbox.y2)),
        AnchorPoint("A3", AnchorType.LEFT_CENTER, Point(bbox.x1, c.y)),
        AnchorPoint("A4", AnchorType.RIGHT_CENTER, Point(bbox.x2, c.y)),
    ]


class TemplateBuilder:
    """Builds Templates from a reference set of detections."""

    def __init__(self, config: Optional[TemplateBuilderConfig] = None):
        self.config = config or TemplateBuilderConfig()

    def from_detections(
        self,
        template_id: str,
        detections: Sequence[DetectedObject],
        part_type: Optional[str] = None,
        description: str = "",
        source: str = "detection",
    ) -> Template:
        """
        Build a template with one feature per detection.

        Features are named ``F{i}`` in detection order. The bounding box
        covers every detection box plus the configured padding.

        Raises:
            InputError: No detections were supplied.
        """
        if not detections:
            raise InputError(f"Cannot build template {template_id} without detections")

        extent = BoundingBox(
            x1=min(d.bbox.x1 for d in detections),
            y1=min(d.bbox.y1 for d in detections),
            x2=max(d.bbox.x2 for d in detections),
            y2=max(d.bbox.y2 for d in detections),
        )
        bbox = extent.expand(self.config.padding)
        anchors = anchors_for_box(bbox)

        features = [
            TemplateFeature(
                feature_id=f"F{i}",
                name=d.class_name or f"F{i}",
                class_id=d.class_id,
                position=d.center,
                tolerance_x=self.config.tolerance_x,
                tolerance_y=self.config.tolerance_y,
                class_name=d.class_name,
            )
            for i, d in enumerate(detections)
        ]

        template = Template(
            template_id=template_id,
            features=tuple(features),
            bounding_box=bbox,
            tolerance_x=self.config.tolerance_x,
            tolerance_y=self.config.tolerance_y,
            part_type=part_type,
            anchors=tuple(anchors),
            description=description,
            metadata={
                "total_features": len(features),
                "anchor_count": len(anchors),
                "source": source,
            },
        )
        logging.info(f"Built template {template_id} with {len(features)} features")
        return template

    def from_yolo_labels(
        self,
        template_id: str,
        lines: Iterable[str],
        image_width: int,
        image_height: int,
        class_names: Optional[Sequence[str]] = None,
        part_type: Optional[str] = None,
    ) -> Template:
        detections = parse_yolo_labels(lines, image_width, image_height, class_names)
        return self.from_detections(template_id, detections, part_type=part_type, source="annotation")


def parse_yolo_labels(
    lines: Iterable[str],
    image_width: int,
    image_height: int,
    class_names: Optional[Sequence[str]] = None,
) -> List[DetectedObject]:
    """
    Parse ``class cx cy w h`` label lines normalised to the image size.

    Blank lines and lines starting with ``#`` are skipped.

    Raises:
        InputError: A line is malformed or the image size is invalid.
    """
    if image_width <= 0 or image_height <= 0:
        raise InputError(f"Invalid image size {image_width}x{image_height}")

    detections = []
    for lineno, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split()
        if len(parts) < 5:
            raise InputError(f"Label line {lineno}: expected 5 fields, got {len(parts)}")
        try:
            class_id = int(parts[0])
            cx, cy, w, h = (float(v) for v in parts[1:5])
        except ValueError as e:
            raise InputError(f"Label line {lineno}: {e}") from e

        name = None
        if class_names is not None and 0 <= class_id < len(class_names):
            name = class_names[class_id]
        detections.append(
            DetectedObject(
                class_id=class_id,
                center=Point(cx * image_width, cy * image_height),
                width=w * image_width,
                height=h * image_height,
                confidence=1.0,
                class_name=name,
            )
        )
    return detections


def create_builder_from_config(cfg: InspectionConfig, padding: float = 10.0) -> TemplateBuilder:
    """Builder whose features carry the configured default tolerances."""
    return TemplateBuilder(
        TemplateBuilderConfig(padding=padding, tolerance_x=cfg.tolerance_x, tolerance_y=cfg.tolerance_y)
    )
