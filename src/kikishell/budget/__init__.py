"""Token estimation and context budgets."""

from kikishell.budget.budget import (
    DEFAULT_FLOOR,
    DEFAULT_HEADROOM,
    Budget,
    BudgetTracker,
)
from kikishell.budget.estimator import HeuristicEstimator, estimate_tokens

__all__ = [
    "Budget",
    "BudgetTracker",
    "DEFAULT_FLOOR",
    "DEFAULT_HEADROOM",
    "HeuristicEstimator",
    "estimate_tokens",
]
