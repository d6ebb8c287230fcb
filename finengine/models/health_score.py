"""
Rule-based financial health score.

The score starts at a neutral 50 and is adjusted by three banded ratios:
savings rate, debt-to-annualized-income ratio and spending ratio. The result
is clamped to [0, 100].
"""

import logging
import math
from datetime import date
from typing import Optional

from pydantic import Field

from .entities import EngineModel
from .numeric_safety import NumericSafetyGuard

logger = logging.getLogger(__name__)

BASE_SCORE = 50
MIN_SCORE = 0
MAX_SCORE = 100
MONTHS_PER_YEAR = 12

# Reported in place of an infinite ratio (e.g. debt with no income)
UNBOUNDED_RATIO = 999.0


class HealthScoreResult(EngineModel):
    """Health score together with the ratios that produced it."""

    score: int = Field(..., ge=MIN_SCORE, le=MAX_SCORE)
    label: str = Field(..., description="Excellent, Good, Fair or Needs Attention")
    savings_rate: float
    debt_ratio: float = Field(..., ge=0)
    spending_ratio: float = Field(..., ge=0)
    annualized_income: float = Field(..., ge=0)


class HealthScoreCalculator:
    """Calculator for the weighted financial health score."""

    @staticmethod
    def savings_points(savings_rate: float) -> int:
        if savings_rate >= 0.4:
            return 30
        if savings_rate >= 0.2:
            return 20
        if savings_rate >= 0.1:
            return 10
        if savings_rate > 0:
            return 5
        return -20

    @staticmethod
    def debt_points(debt_ratio: float) -> int:
        if debt_ratio == 0:
            return 20
        if debt_ratio <= 0.3:
            return 10
        if debt_ratio <= 0.6:
            return -10
        if debt_ratio <= 1.0:
            return -30
        return -50

    @staticmethod
    def spending_points(spending_ratio: float) -> int:
        if spending_ratio <= 0.5:
            return 20
        if spending_ratio <= 0.7:
            return 10
        if spending_ratio <= 0.9:
            return 0
        return -10

    @staticmethod
    def score_from_ratios(
        savings_rate: float, debt_ratio: float, spending_ratio: float
    ) -> int:
        """
        Apply the banding rules to already computed ratios.

        Args:
            savings_rate: (income - expenses) / income
            debt_ratio: debt / annualized income (may be infinite)
            spending_ratio: expenses / income (may be infinite)

        Returns:
            Score clamped to [0, 100] and rounded to an integer
        """
        score = (
            BASE_SCORE
            + HealthScoreCalculator.savings_points(savings_rate)
            + HealthScoreCalculator.debt_points(debt_ratio)
            + HealthScoreCalculator.spending_points(spending_ratio)
        )
        clamped = NumericSafetyGuard.clamp(score, MIN_SCORE, MAX_SCORE)
        return int(NumericSafetyGuard.round_half_up(clamped))

    @staticmethod
    def label_for(score: int) -> str:
        if score >= 80:
            return "Excellent"
        if score >= 60:
            return "Good"
        if score >= 40:
            return "Fair"
        return "Needs Attention"

    @staticmethod
    def months_between(first: Optional[date], today: Optional[date] = None) -> int:
        """
        Count the months a user has been active, floored at 1.

        A partially elapsed month counts as a full one.
        """
        if first is None:
            return 1
        today = today or date.today()
        months = (today.year - first.year) * 12 + (today.month - first.month)
        if today.day > first.day:
            months += 1
        return max(1, months)

    def calculate(
        self,
        total_income: float,
        total_expenses: float,
        total_debt: float,
        months_active: int = MONTHS_PER_YEAR,
    ) -> HealthScoreResult:
        """
        Compute the health score from all-time totals.

        Args:
            total_income: Sum of all income since the first transaction
            total_expenses: Sum of all expenses since the first transaction
            total_debt: Outstanding debt
            months_active: Months since the first transaction, used to
                annualize income (floored at 1)

        Returns:
            HealthScoreResult with score, label and ratios
        """
        income = NumericSafetyGuard.non_negative(total_income)
        expenses = NumericSafetyGuard.non_negative(total_expenses)
        debt = NumericSafetyGuard.non_negative(total_debt)
        months = NumericSafetyGuard.clamp(months_active, 1.0)

        if income == 0 and debt == 0:
            return HealthScoreResult(
                score=BASE_SCORE,
                label=self.label_for(BASE_SCORE),
                savings_rate=0.0,
                debt_ratio=0.0,
                spending_ratio=0.0,
                annualized_income=0.0,
            )

        annualized_income = income / months * MONTHS_PER_YEAR
        savings_rate = NumericSafetyGuard.safe_divide(income - expenses, income)

        if annualized_income == 0:
            debt_ratio = float("inf") if debt > 0 else 0.0
        else:
            debt_ratio = debt / annualized_income

        if income == 0:
            spending_ratio = float("inf") if expenses > 0 else 0.0
        else:
            spending_ratio = expenses / income

        score = self.score_from_ratios(savings_rate, debt_ratio, spending_ratio)
        logger.debug(
            f"Health score {score}: savings={savings_rate:.3f}, "
            f"debt={debt_ratio:.3f}, spending={spending_ratio:.3f}"
        )

        return HealthScoreResult(
            score=score,
            label=self.label_for(score),
            savings_rate=savings_rate,
            debt_ratio=self._reportable(debt_ratio),
            spending_ratio=self._reportable(spending_ratio),
            annualized_income=annualized_income,
        )

    @staticmethod
    def _reportable(ratio: float) -> float:
        return UNBOUNDED_RATIO if math.isinf(ratio) else ratio
