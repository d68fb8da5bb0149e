"""
Template building, loading and caching.
"""

from .builder import (
    TemplateBuilder,
    TemplateBuilderConfig,
    anchors_for_box,
    create_builder_from_config,
    parse_yolo_labels,
)
from .cache import TemplateCache
from .store import (
    TemplateDirectory,
    create_template_directory_from_config,
    load_template_file,
    save_template_file,
)

__all__ = [
    "TemplateBuilder",
    "TemplateBuilderConfig",
    "anchors_for_box",
    "create_builder_from_config",
    "parse_yolo_labels",
    "TemplateCache",
    "TemplateDirectory",
    "create_template_directory_from_config",
    "load_template_file",
    "save_template_file",
]
