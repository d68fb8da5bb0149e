"""
Detector output handling: letterbox, decode and suppression.
"""

from .letterbox import LetterboxParams, letterbox, prepare_input
from .decoder import decode_predictions
from .nms import calculate_iou, non_max_suppression
from .backend import (
    DetectionPostprocessor,
    DetectorEngine,
    RawInferenceBackend,
    create_postprocessor_from_config,
)

__all__ = [
    "LetterboxParams",
    "letterbox",
    "prepare_input",
    "decode_predictions",
    "calculate_iou",
    "non_max_suppression",
    "DetectionPostprocessor",
    "DetectorEngine",
    "RawInferenceBackend",
    "create_postprocessor_from_config",
]
