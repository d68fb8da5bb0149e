"""
Per-class non-maximum suppression.
"""

from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from models.detection import CandidateBox


def calculate_iou(box1: Tuple[float, float, float, float], box2: Tuple[float, float, float, float]) -> float:
    """
    Calculate Intersection over Union (IoU) between two boxes.

    Args:
        box1: First box (x1, y1, x2, y2)
        box2: Second box (x1, y1, x2, y2)

    Returns:
        IoU value between 0 and 1. Boxes without area have IoU 0.
    """
    x1_1, y1_1, x2_1, y2_1 = box1
    x1_2, y1_2, x2_2, y2_2 = box2

    area1 = (x2_1 - x1_1) * (y2_1 - y1_1)
    area2 = (x2_2 - x1_2) * (y2_2 - y1_2)
    if x2_1 <= x1_1 or y2_1 <= y1_1 or x2_2 <= x1_2 or y2_2 <= y1_2:
        return 0.0

    x1_i = max(x1_1, x1_2)
    y1_i = max(y1_1, y1_2)
    x2_i = min(x2_1, x2_2)
    y2_i = min(y2_1, y2_2)

    if x2_i <= x1_i or y2_i <= y1_i:
        return 0.0

    intersection = (x2_i - x1_i) * (y2_i - y1_i)
    union = area1 + area2 - intersection
    if union <= 0:
        return 0.0
    return intersection / union


def non_max_suppression(candidates: Sequence[CandidateBox], iou_threshold: float) -> List[CandidateBox]:
    """
    Suppress overlapping candidates of the same class.

    Within each class, candidates are visited by descending score; ties keep
    their input order (stable sort). A candidate is suppressed when its IoU
    with an already kept box exceeds ``iou_threshold``.

    Returns:
        Kept candidates grouped by ascending class id, each group by
        descending score. Feeding the output back in returns it unchanged.
    """
    groups: Dict[int, List[CandidateBox]] = {}
    for c in candidates:
        groups.setdefault(c.class_id, []).append(c)

    kept: List[CandidateBox] = []
    for class_id in sorted(groups):
        ordered = sorted(groups[class_id], key=lambda c: -c.score)
        class_kept: List[CandidateBox] = []
        for cand in ordered:
            box = (cand.x1, cand.y1, cand.x2, cand.y2)
            if all(
                calculate_iou((k.x1, k.y1, k.x2, k.y2), box) <= iou_threshold
                for k in class_kept
            ):
                class_kept.append(cand)
        kept.extend(class_kept)
    return kept
