"""
Inference backend interface and detection post-processing.

Backends run the network and return the raw output tensor; everything after
that (decode, suppression, class naming) happens here so that results are the
same regardless of which runtime executed the model.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

import numpy as np

from models.config import ModelConfig
from models.detection import DetectedObject

from .decoder import decode_predictions
from .letterbox import LetterboxParams, prepare_input
from .nms import non_max_suppression


class RawInferenceBackend(Protocol):
    def infer(self, blob: np.ndarray) -> np.ndarray:
        ...


@dataclass(frozen=True)
class DetectionPostprocessor:
    """Decode -> NMS -> DetectedObject conversion."""
    conf_threshold: float = 0.5
    nms_threshold: float = 0.45
    class_names: Optional[Sequence[str]] = None

    def label_for(self, class_id: int) -> str:
        if self.class_names is not None and 0 <= class_id < len(self.class_names):
            return self.class_names[class_id]
        return str(class_id)

    def process(self, output: np.ndarray, params: LetterboxParams) -> List[DetectedObject]:
        candidates = decode_predictions(output, params, self.conf_threshold)
        kept = non_max_suppression(candidates, self.nms_threshold)
        logging.debug(f"Postprocess: {len(candidates)} candidates, {len(kept)} kept after NMS")
        return [c.to_detected_object(self.label_for(c.class_id)) for c in kept]


def create_postprocessor_from_config(model_cfg: ModelConfig) -> DetectionPostprocessor:
    return DetectionPostprocessor(
        conf_threshold=model_cfg.conf_threshold,
        nms_threshold=model_cfg.nms_threshold,
        class_names=tuple(model_cfg.class_names) if model_cfg.class_names else None,
    )


class DetectorEngine:
    """Runs letterbox preprocessing, a raw backend and post-processing on a frame."""

    def __init__(
        self,
        backend: RawInferenceBackend,
        postprocessor: DetectionPostprocessor,
        input_size: Sequence[int] = (640, 640),
    ):
        self.backend = backend
        self.postprocessor = postprocessor
        self.input_size = tuple(input_size)

    def detect(self, frame: np.ndarray) -> List[DetectedObject]:
        blob, params = prepare_input(frame, self.input_size)
        output = self.backend.infer(blob)
        return self.postprocessor.process(output, params)
