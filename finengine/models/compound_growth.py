"""
Compound growth projection for a fixed monthly investment.

Contributions are added at the start of each month and the whole balance
compounds monthly. The projection is sampled once per year and guarded
against overflow: a balance that becomes non-finite or exceeds the ceiling is
clamped and the simulation stops early.
"""

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, Field

from .amortization import AmortizationSimulator
from .entities import EngineModel, Liability
from .numeric_safety import OVERFLOW_CEILING, NumericSafetyGuard

logger = logging.getLogger(__name__)

MIN_ANNUAL_RETURN_PCT = -90.0
MIN_YEARS = 1
MAX_YEARS = 100
MONTHS_PER_YEAR = 12


class GrowthConfig(BaseModel):
    """Configuration for the compound growth simulator."""

    overflow_ceiling: float = Field(
        default=OVERFLOW_CEILING, gt=0, description="Largest allowed wealth value"
    )
    max_years: int = Field(
        default=MAX_YEARS, ge=MIN_YEARS, le=MAX_YEARS, description="Horizon cap"
    )


class WealthPoint(EngineModel):
    """Wealth at the end of a simulated year, rounded to whole units."""

    year: int = Field(..., ge=1)
    invested: float = Field(..., ge=0, description="Cumulative contributions")
    wealth: float = Field(..., description="Portfolio value")
    returns: float = Field(..., ge=0, description="Gains over contributions")


class GrowthSummary(EngineModel):
    """Final state of a growth projection."""

    invested: float = Field(..., ge=0)
    wealth: float
    returns: float = Field(..., ge=0)
    years: int = Field(..., ge=MIN_YEARS, description="Requested horizon after clamping")
    months_simulated: int = Field(..., ge=0)
    truncated: bool = Field(
        ..., description="True if the overflow guard stopped the simulation early"
    )


class WealthProjection(EngineModel):
    """Yearly wealth series and final summary."""

    wealth_series: List[WealthPoint]
    summary: GrowthSummary

    def to_arrays(self) -> Dict[str, NDArray[np.float64]]:
        """Return the yearly series as numpy arrays keyed by column name."""
        return {
            "year": np.array([p.year for p in self.wealth_series], dtype=float),
            "invested": np.array([p.invested for p in self.wealth_series], dtype=float),
            "wealth": np.array([p.wealth for p in self.wealth_series], dtype=float),
            "returns": np.array([p.returns for p in self.wealth_series], dtype=float),
        }


class DebtCostComparison(EngineModel):
    """Comparison of the average debt rate with an expected investment return."""

    average_debt_rate: float = Field(..., ge=0, description="Weighted debt rate (%)")
    expected_return_pct: float
    debt_costs_more: bool = Field(
        ..., description="True if paying down debt beats investing"
    )


class CompoundGrowthSimulator:
    """Simulator for monthly-contribution wealth growth."""

    def __init__(self, config: Optional[GrowthConfig] = None):
        self.config = config or GrowthConfig()

    def simulate(
        self,
        monthly_investment: float,
        expected_annual_return_pct: float,
        years: int,
    ) -> WealthProjection:
        """
        Project wealth built by a fixed monthly investment.

        Args:
            monthly_investment: Amount invested each month (floored at 0)
            expected_annual_return_pct: Expected annual return in percent
                (floored at -90)
            years: Horizon in years (clamped to [1, 100])

        Returns:
            WealthProjection with one point per completed year
        """
        investment = NumericSafetyGuard.non_negative(monthly_investment)
        annual_return = (
            NumericSafetyGuard.clamp(expected_annual_return_pct, MIN_ANNUAL_RETURN_PCT)
            / 100
        )
        monthly_rate = annual_return / MONTHS_PER_YEAR
        horizon_years = int(
            NumericSafetyGuard.clamp(years, MIN_YEARS, self.config.max_years)
        )
        months = horizon_years * MONTHS_PER_YEAR
        ceiling = self.config.overflow_ceiling

        series: List[WealthPoint] = []
        wealth = 0.0
        invested = 0.0
        months_simulated = 0
        truncated = False

        for month in range(1, months + 1):
            wealth = (wealth + investment) * (1 + monthly_rate)
            invested += investment
            months_simulated = month

            if NumericSafetyGuard.exceeds_ceiling(wealth, ceiling):
                wealth = ceiling
                truncated = True
                logger.warning(
                    f"Wealth exceeded {ceiling:.0e} at month {month}; "
                    "stopping projection early"
                )
                break

            if month % MONTHS_PER_YEAR == 0:
                series.append(
                    WealthPoint(
                        year=month // MONTHS_PER_YEAR,
                        invested=NumericSafetyGuard.round_half_up(invested),
                        wealth=NumericSafetyGuard.round_half_up(wealth),
                        returns=NumericSafetyGuard.round_half_up(
                            max(0.0, wealth - invested)
                        ),
                    )
                )

        return WealthProjection(
            wealth_series=series,
            summary=GrowthSummary(
                invested=invested,
                wealth=wealth,
                returns=max(0.0, wealth - invested),
                years=horizon_years,
                months_simulated=months_simulated,
                truncated=truncated,
            ),
        )

    @staticmethod
    def compare_debt_cost(
        liabilities: Sequence[Liability], expected_annual_return_pct: float
    ) -> DebtCostComparison:
        """Check whether existing debt costs more than the expected return."""
        average_rate = AmortizationSimulator.weighted_average_rate(liabilities)
        expected = NumericSafetyGuard.clamp(
            expected_annual_return_pct, MIN_ANNUAL_RETURN_PCT
        )
        return DebtCostComparison(
            average_debt_rate=average_rate,
            expected_return_pct=expected,
            debt_costs_more=average_rate > expected,
        )
