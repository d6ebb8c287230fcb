"""Calculators and data models of the projection engine."""

from .entities import (
    Account,
    Goal,
    Liability,
    RecurringObligation,
)
from .numeric_safety import OVERFLOW_CEILING, NumericSafetyGuard
from .amortization import (
    SIMULATION_HORIZON_MONTHS,
    AmortizationConfig,
    AmortizationSimulator,
    BalanceSample,
    LiabilityPayoff,
    SimulationParameters,
    SimulationResult,
    SimulationSummary,
)
from .loan_math import LoanCalculator, LoanDetails
from .compound_growth import (
    CompoundGrowthSimulator,
    DebtCostComparison,
    GrowthConfig,
    GrowthSummary,
    WealthPoint,
    WealthProjection,
)
from .liquidity import (
    DUE_WINDOW_DAYS,
    CardSpend,
    LiquidityConfig,
    LiquidityDecisionEngine,
    LiquiditySnapshot,
    NextDue,
    QuickFix,
)
from .health_score import UNBOUNDED_RATIO, HealthScoreCalculator, HealthScoreResult
from .protocols import TransferHandler

__all__ = [
    "Account",
    "Goal",
    "Liability",
    "RecurringObligation",
    "OVERFLOW_CEILING",
    "NumericSafetyGuard",
    "SIMULATION_HORIZON_MONTHS",
    "AmortizationConfig",
    "AmortizationSimulator",
    "BalanceSample",
    "LiabilityPayoff",
    "SimulationParameters",
    "SimulationResult",
    "SimulationSummary",
    "LoanCalculator",
    "LoanDetails",
    "CompoundGrowthSimulator",
    "DebtCostComparison",
    "GrowthConfig",
    "GrowthSummary",
    "WealthPoint",
    "WealthProjection",
    "DUE_WINDOW_DAYS",
    "CardSpend",
    "LiquidityConfig",
    "LiquidityDecisionEngine",
    "LiquiditySnapshot",
    "NextDue",
    "QuickFix",
    "UNBOUNDED_RATIO",
    "HealthScoreCalculator",
    "HealthScoreResult",
    "TransferHandler",
]
