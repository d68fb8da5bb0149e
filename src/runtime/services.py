from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence, Union

import numpy as np

from algorithms.matching import MatchStrategy, match, resolve_strategy
from inference.letterbox import LetterboxParams
from models.detection import DetectedObject
from models.errors import InputError
from models.geometry import Point
from models.inspection import InspectionResult
from models.quality import QualityEvaluation
from models.template import Template
from runtime.context import RuntimeContext


class InspectionService:
    """
    Entry point for inspections.

    Looks templates up through the shared cache, runs the configured matcher
    and turns inputs that cannot be inspected into failed results instead of
    raising. Configuration problems are not caught here; they are rejected
    when the context is built.
    """

    def __init__(self, ctx: RuntimeContext):
        self.ctx = ctx

    def inspect(
        self,
        template_id: str,
        detections: Optional[Sequence[DetectedObject]],
        detected_anchors: Optional[Sequence[Point]] = None,
        strategy: Optional[Union[str, MatchStrategy]] = None,
    ) -> InspectionResult:
        try:
            template = self.ctx.template_cache.get(template_id)
        except (InputError, KeyError) as e:
            logging.error(f"Cannot inspect against template {template_id}: {e}")
            return InspectionResult.failure(template_id, f"Template {template_id} unavailable: {e}")
        return self.inspect_template(template, detections, detected_anchors, strategy)

    def inspect_template(
        self,
        template: Template,
        detections: Optional[Sequence[DetectedObject]],
        detected_anchors: Optional[Sequence[Point]] = None,
        strategy: Optional[Union[str, MatchStrategy]] = None,
    ) -> InspectionResult:
        resolved = resolve_strategy(strategy) if strategy is not None else self.ctx.strategy
        try:
            return match(
                template,
                detections,
                strategy=resolved,
                settings=self.ctx.settings,
                detected_anchors=detected_anchors,
            )
        except InputError as e:
            template_id = template.template_id if template is not None else "unknown"
            logging.error(f"Inspection of {template_id} could not run: {e}")
            return InspectionResult.failure(template_id, f"Inspection could not run: {e}", resolved.value)

    def inspect_raw(
        self,
        template_id: str,
        output: np.ndarray,
        params: LetterboxParams,
        detected_anchors: Optional[Sequence[Point]] = None,
    ) -> InspectionResult:
        """Decode raw detector output and inspect the resulting detections."""
        try:
            detections = self.ctx.postprocessor.process(output, params)
        except InputError as e:
            logging.error(f"Detector output for {template_id} could not be decoded: {e}")
            return InspectionResult.failure(template_id, f"Detector output rejected: {e}")
        return self.inspect(template_id, detections, detected_anchors)

    def evaluate_quality(
        self,
        part_type: Optional[str],
        observed: Union[InspectionResult, Mapping[str, int]],
    ) -> QualityEvaluation:
        """
        Apply the part type's standards to observed counts.

        ``observed`` is either a per-label count mapping or an inspection
        result whose detected labels are counted.
        """
        counts = observed.detected_counts() if isinstance(observed, InspectionResult) else observed
        return self.ctx.evaluator.evaluate(part_type, counts)

    def update_template(self, template: Template) -> None:
        """Replace a cached template after an external update."""
        self.ctx.template_cache.evict(template.template_id)
        self.ctx.template_cache.put(template)
