"""Benefits domain - Conditional plan discounts and their evaluation"""

from .evaluator import BenefitEvaluator, describe_benefit
from .router import router

__all__ = ["BenefitEvaluator", "describe_benefit", "router"]
