"""
Decoding of raw detector output into candidate boxes.

The expected layout is ``[channels, anchors]`` where the first four channels
are the box (center x, center y, width, height in letterboxed pixels) and the
remaining channels are per-class scores.
"""

from __future__ import annotations

import logging
from typing import List

import numpy as np

from models.detection import CandidateBox
from models.errors import InputError

from .letterbox import LetterboxParams

BOX_CHANNELS = 4


def _as_channels_first(output: np.ndarray) -> np.ndarray:
    arr = np.asarray(output, dtype=np.float32)
    if arr.ndim == 3:
        if arr.shape[0] != 1:
            raise InputError(f"Expected a single-image batch, got shape {arr.shape}")
        arr = arr[0]
    if arr.ndim != 2:
        raise InputError(f"Expected output shaped [channels, anchors], got shape {arr.shape}")
    if arr.shape[0] <= BOX_CHANNELS:
        raise InputError(
            f"Output has {arr.shape[0]} channels; need {BOX_CHANNELS} box channels plus class scores"
        )
    return arr


def decode_predictions(
    output: np.ndarray,
    params: LetterboxParams,
    conf_threshold: float,
) -> List[CandidateBox]:
    """
    Convert a raw output tensor into candidate boxes in original-image pixels.

    For every anchor the arg-max class is taken (lowest class id on ties) and
    anchors scoring below ``conf_threshold`` are discarded. Boxes are converted
    to corner form, unpadded and then unscaled. Boxes that end up with no
    extent are dropped.

    Args:
        output: Raw tensor shaped [4 + num_classes, anchors] or [1, 4 + num_classes, anchors].
        params: Letterbox parameters recorded during preprocessing.
        conf_threshold: Minimum class score to keep an anchor.

    Returns:
        Candidates ordered by anchor index.
    """
    arr = _as_channels_first(output)
    if params.scale <= 0:
        raise InputError(f"Letterbox scale must be positive, got {params.scale}")

    scores = arr[BOX_CHANNELS:]
    class_ids = np.argmax(scores, axis=0)
    best = scores[class_ids, np.arange(arr.shape[1])]

    keep = np.nonzero(best >= np.float32(conf_threshold))[0]
    if keep.size == 0:
        logging.debug("Decoder: no anchors above confidence threshold")
        return []

    cx, cy, w, h = arr[0, keep], arr[1, keep], arr[2, keep], arr[3, keep]
    pad_x = np.float32(params.pad_x)
    pad_y = np.float32(params.pad_y)
    scale = np.float32(params.scale)

    x1 = ((cx - w / 2) - pad_x) / scale
    y1 = ((cy - h / 2) - pad_y) / scale
    x2 = ((cx + w / 2) - pad_x) / scale
    y2 = ((cy + h / 2) - pad_y) / scale

    candidates: List[CandidateBox] = []
    for i, anchor in enumerate(keep):
        if x1[i] >= x2[i] or y1[i] >= y2[i]:
            continue
        candidates.append(
            CandidateBox(
                x1=float(x1[i]),
                y1=float(y1[i]),
                x2=float(x2[i]),
                y2=float(y2[i]),
                score=float(best[anchor]),
                class_id=int(class_ids[anchor]),
                anchor_index=int(anchor),
            )
        )

    logging.debug(f"Decoder: {len(candidates)} candidates from {arr.shape[1]} anchors")
    return candidates
