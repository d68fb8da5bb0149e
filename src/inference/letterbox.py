"""
Letterbox preprocessing for fixed-size detector inputs.

The image is scaled to fit the network input while keeping its aspect ratio,
then padded evenly on both sides. The recorded parameters are what the
decoder needs to map boxes back into the original frame.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

import cv2
import numpy as np

from models.errors import InputError

PAD_COLOR = (114, 114, 114)


@dataclass(frozen=True)
class LetterboxParams:
    """
    Scale and padding applied to an image before inference.

    Attributes:
        scale: Uniform resize ratio (letterboxed / original).
        pad_x: Horizontal padding added on the left, in letterboxed pixels.
        pad_y: Vertical padding added on the top, in letterboxed pixels.
        original_width: Width of the source image.
        original_height: Height of the source image.
    """
    scale: float = 1.0
    pad_x: float = 0.0
    pad_y: float = 0.0
    original_width: int = 0
    original_height: int = 0

    @classmethod
    def identity(cls, width: int = 0, height: int = 0) -> "LetterboxParams":
        return cls(scale=1.0, pad_x=0.0, pad_y=0.0, original_width=width, original_height=height)

    @classmethod
    def for_size(cls, width: int, height: int, input_size: Sequence[int]) -> "LetterboxParams":
        """
        Compute parameters for an image of ``width`` x ``height``.

        Odd padding puts the extra pixel on the right/bottom, so ``pad_x`` and
        ``pad_y`` are the whole-pixel left/top borders actually applied.
        """
        if width <= 0 or height <= 0:
            raise InputError(f"Invalid image size {width}x{height}")
        in_w, in_h = int(input_size[0]), int(input_size[1])
        scale = min(in_w / width, in_h / height)
        new_w = int(round(width * scale))
        new_h = int(round(height * scale))
        return cls(
            scale=scale,
            pad_x=float(int(round((in_w - new_w) / 2 - 0.1))),
            pad_y=float(int(round((in_h - new_h) / 2 - 0.1))),
            original_width=width,
            original_height=height,
        )


def letterbox(
    image: np.ndarray,
    input_size: Sequence[int] = (640, 640),
    color: Tuple[int, int, int] = PAD_COLOR,
) -> Tuple[np.ndarray, LetterboxParams]:
    """
    Resize and pad an image to ``input_size`` (width, height).

    Args:
        image: BGR image as loaded by OpenCV.
        input_size: Network input (width, height).
        color: Border colour.

    Returns:
        Tuple of (padded image, parameters used).
    """
    if image is None or image.size == 0:
        raise InputError("Cannot letterbox an empty image")

    h, w = image.shape[:2]
    params = LetterboxParams.for_size(w, h, input_size)
    in_w, in_h = int(input_size[0]), int(input_size[1])
    new_w = int(round(w * params.scale))
    new_h = int(round(h * params.scale))

    if (new_w, new_h) != (w, h):
        image = cv2.resize(image, (new_w, new_h), interpolation=cv2.INTER_LINEAR)

    top = int(params.pad_y)
    left = int(params.pad_x)
    bottom = in_h - new_h - top
    right = in_w - new_w - left
    padded = cv2.copyMakeBorder(image, top, bottom, left, right, cv2.BORDER_CONSTANT, value=color)
    return padded, params


def prepare_input(image: np.ndarray, input_size: Sequence[int] = (640, 640)) -> Tuple[np.ndarray, LetterboxParams]:
    """
    Build a normalised 1x3xHxW float32 RGB blob from a BGR image.
    """
    padded, params = letterbox(image, input_size)
    rgb = cv2.cvtColor(padded, cv2.COLOR_BGR2RGB)
    blob = rgb.astype(np.float32) / 255.0
    blob = np.transpose(blob, (2, 0, 1))[np.newaxis, ...]
    return np.ascontiguousarray(blob), params
