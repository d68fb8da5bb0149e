"""
Directory-backed template loader (one JSON document per template).
"""

from __future__ import annotations

import json
import os

from models.config import InspectionConfig
from models.errors import InputError
from models.template import DEFAULT_TOLERANCE, Template


def load_template_file(
    path: str,
    default_tolerance_x: float = DEFAULT_TOLERANCE,
    default_tolerance_y: float = DEFAULT_TOLERANCE,
) -> Template:
    """
    Read a template document.

    Raises:
        InputError: The file is missing, is not JSON or is not a valid template.
    """
    if not os.path.exists(path):
        raise InputError(f"Template file not found: {path}")
    with open(path, "r") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise InputError(f"Template file {path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise InputError(f"Template file {path} must hold a JSON object")
    try:
        return Template.from_dict(data, default_tolerance_x, default_tolerance_y)
    except InputError as e:
        raise InputError(f"Template file {path}: {e}") from e


def save_template_file(template: Template, path: str) -> None:
    directory = os.path.dirname(path)
    if directory and not os.path.exists(directory):
        os.makedirs(directory)
    with open(path, "w") as f:
        json.dump(template.to_dict(), f, indent=2)


class TemplateDirectory:
    """Loads ``<template_id>.json`` files from a directory."""

    def __init__(
        self,
        directory: str,
        default_tolerance_x: float = DEFAULT_TOLERANCE,
        default_tolerance_y: float = DEFAULT_TOLERANCE,
    ):
        self.directory = directory
        self.default_tolerance_x = default_tolerance_x
        self.default_tolerance_y = default_tolerance_y

    def path_for(self, template_id: str) -> str:
        return os.path.join(self.directory, f"{template_id}.json")

    def __call__(self, template_id: str) -> Template:
        template = load_template_file(
            self.path_for(template_id),
            self.default_tolerance_x,
            self.default_tolerance_y,
        )
        if template.template_id != template_id:
            raise InputError(
                f"Template file {self.path_for(template_id)} holds id {template.template_id}"
            )
        return template

    def save(self, template: Template) -> str:
        path = self.path_for(template.template_id)
        save_template_file(template, path)
        return path


def create_template_directory_from_config(directory: str, cfg: InspectionConfig) -> TemplateDirectory:
    """Directory loader whose templates default to the configured tolerances."""
    return TemplateDirectory(directory, cfg.tolerance_x, cfg.tolerance_y)
