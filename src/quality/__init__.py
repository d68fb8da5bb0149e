"""
Quality rule evaluation.
"""

from .evaluator import QualityRuleEvaluator, evaluate_operator

__all__ = ["QualityRuleEvaluator", "evaluate_operator"]
