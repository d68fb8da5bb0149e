from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from algorithms.matching import MatchSettings, MatchStrategy, create_settings_from_config, resolve_strategy
from inference.backend import DetectionPostprocessor, create_postprocessor_from_config
from models.config import Config
from quality.evaluator import QualityRuleEvaluator
from templates.cache import TemplateCache, TemplateLoader
from templates.store import create_template_directory_from_config


@dataclass
class RuntimeContext:
    """Holds resolved configuration and shared services; avoids global singletons."""

    config: Config
    strategy: MatchStrategy
    settings: MatchSettings
    template_cache: TemplateCache
    evaluator: QualityRuleEvaluator
    postprocessor: DetectionPostprocessor


def create_context_from_config(
    config: Config,
    loader: Optional[TemplateLoader] = None,
    template_cache: Optional[TemplateCache] = None,
    template_dir: Optional[str] = None,
) -> RuntimeContext:
    """
    Resolve configuration into ready-to-use services.

    Args:
        config: Typed configuration.
        loader: Template loader for the cache.
        template_cache: Shared cache; a new one is created when omitted.
        template_dir: Directory of template JSON files, used when no loader
            is given. Its templates default to the configured tolerances.

    Raises:
        ConfigurationError: The configured strategy is unknown.
    """
    if loader is None and template_dir is not None:
        loader = create_template_directory_from_config(template_dir, config.inspection)
    return RuntimeContext(
        config=config,
        strategy=resolve_strategy(config.inspection.match_strategy),
        settings=create_settings_from_config(config.inspection),
        template_cache=template_cache if template_cache is not None else TemplateCache(loader),
        evaluator=QualityRuleEvaluator(config.quality_standards),
        postprocessor=create_postprocessor_from_config(config.model),
    )
