#!/usr/bin/env python3
"""
Build a template JSON document from a YOLO label file.

The reference image is only read for its size, which the normalised label
coordinates are scaled by.

Usage:
    python tools/build_template.py --image ref.jpg --labels ref.txt --id PART_01
    python tools/build_template.py --image ref.jpg --labels ref.txt --id PART_01 \
        --part-type EKS --class-names hole nut --out templates/PART_01.json
"""

from __future__ import annotations

import argparse
import os
import sys

# Add project directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

import cv2

from models.errors import InputError
from templates.builder import TemplateBuilder, TemplateBuilderConfig
from templates.store import save_template_file


def main() -> int:
    parser = argparse.ArgumentParser(
        description='Build a part template from YOLO annotations',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('--image', type=str, required=True,
                        help='Reference image the labels were drawn on')
    parser.add_argument('--labels', type=str, required=True,
                        help='YOLO label file (class cx cy w h per line)')
    parser.add_argument('--id', type=str, required=True,
                        help='Template id')
    parser.add_argument('--part-type', type=str, default=None,
                        help='Part type used for quality standards')
    parser.add_argument('--class-names', type=str, nargs='+',
                        help='Class names indexed by class id')
    parser.add_argument('--tolerance', type=float, default=5.0,
                        help='Per-axis feature tolerance in pixels (default: 5.0)')
    parser.add_argument('--padding', type=float, default=10.0,
                        help='Bounding box padding in pixels (default: 10.0)')
    parser.add_argument('--out', type=str, default=None,
                        help='Output path (default: templates/<id>.json)')
    args = parser.parse_args()

    image = cv2.imread(args.image)
    if image is None:
        print(f"❌ Cannot read image: {args.image}")
        return 1
    height, width = image.shape[:2]

    builder = TemplateBuilder(
        TemplateBuilderConfig(padding=args.padding, tolerance_x=args.tolerance, tolerance_y=args.tolerance)
    )
    try:
        with open(args.labels, "r") as f:
            template = builder.from_yolo_labels(
                args.id,
                f,
                width,
                height,
                class_names=args.class_names,
                part_type=args.part_type,
            )
    except (OSError, InputError) as e:
        print(f"❌ {e}")
        return 1

    out = args.out or os.path.join("templates", f"{args.id}.json")
    save_template_file(template, out)
    print(f"✅ Wrote template {template.template_id} ({len(template.features)} features) to {out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
