"""
Debt payoff projection for a portfolio of liabilities.

This module simulates two repayment tracks month by month:

- a baseline track where every liability is repaid with its EMI only;
- an optimized track where liabilities are prioritized (avalanche or
  snowball), a one-off lump sum is applied before the first month, a monthly
  extra payment is distributed greedily and the refinance reduction lowers
  every rate.

Balances are sampled every few months for charting, and summary metrics
report payoff months and total interest for both tracks.
"""

import logging
from typing import Dict, List, Literal, Optional, Sequence

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, Field, field_validator

from .entities import EngineModel, Liability
from .numeric_safety import OVERFLOW_CEILING, NumericSafetyGuard

logger = logging.getLogger(__name__)

SIMULATION_HORIZON_MONTHS = 360
SAMPLE_INTERVAL_MONTHS = 6
MAX_REFINANCE_REDUCTION_PCT = 5.0

PayoffStrategy = Literal["avalanche", "snowball"]


class SimulationParameters(EngineModel):
    """User-controlled levers of the optimized payoff track."""

    strategy: PayoffStrategy = Field(
        default="avalanche", description="Prioritization strategy"
    )
    monthly_extra: float = Field(
        default=0.0, ge=0, description="Extra amount paid every month"
    )
    lump_sum: float = Field(
        default=0.0, ge=0, description="One-off payment applied before month 1"
    )
    refinance_reduction_pct: float = Field(
        default=0.0,
        ge=0,
        le=MAX_REFINANCE_REDUCTION_PCT,
        description="Percentage points removed from every interest rate",
    )

    @field_validator("monthly_extra", "lump_sum", mode="before")
    @classmethod
    def sanitize_amount(cls, v):
        return NumericSafetyGuard.non_negative(v)

    @field_validator("refinance_reduction_pct", mode="before")
    @classmethod
    def sanitize_reduction(cls, v):
        return NumericSafetyGuard.clamp(v, 0.0, MAX_REFINANCE_REDUCTION_PCT)


class AmortizationConfig(BaseModel):
    """Configuration for the amortization simulator."""

    horizon_months: int = Field(
        default=SIMULATION_HORIZON_MONTHS,
        ge=1,
        le=1200,
        description="Hard iteration bound of the monthly loop",
    )
    sample_interval_months: int = Field(
        default=SAMPLE_INTERVAL_MONTHS, ge=1, description="Months between samples"
    )


class BalanceSample(EngineModel):
    """Total outstanding balance of both tracks at one month."""

    month_index: int = Field(..., ge=0, description="Months since today")
    baseline_balance: float = Field(..., ge=0, description="Baseline total balance")
    optimized_balance: float = Field(..., ge=0, description="Optimized total balance")


class LiabilityPayoff(EngineModel):
    """Payoff outcome of a single liability on the optimized track."""

    liability_id: str
    name: str
    priority: int = Field(..., ge=1, description="Position in the payoff order")
    months_to_zero: int = Field(..., ge=0)
    baseline_months_to_zero: int = Field(..., ge=0)
    interest_paid: float = Field(..., ge=0)
    resolved: bool = Field(
        ..., description="False if the balance was still positive at the horizon"
    )


class SimulationSummary(EngineModel):
    """Scalar outcome of a payoff simulation."""

    months_to_zero_baseline: int = Field(..., ge=0)
    months_to_zero_optimized: int = Field(..., ge=0)
    total_interest_baseline: float = Field(..., ge=0)
    total_interest_optimized: float = Field(..., ge=0)
    baseline_resolved: bool = Field(
        ..., description="Whether the baseline track reached zero within the horizon"
    )
    optimized_resolved: bool = Field(
        ..., description="Whether the optimized track reached zero within the horizon"
    )
    months_saved: int = Field(..., description="Baseline minus optimized months")
    interest_saved: float = Field(
        ..., description="Baseline minus optimized interest (negative if worse)"
    )
    total_debt: float = Field(..., ge=0, description="Sum of outstanding balances")
    horizon_months: int = Field(..., ge=1)


class SimulationResult(EngineModel):
    """Sampled balance series plus summary of a payoff simulation."""

    strategy: PayoffStrategy
    samples: List[BalanceSample]
    summary: SimulationSummary
    payoffs: List[LiabilityPayoff] = Field(default_factory=list)

    def to_arrays(self) -> Dict[str, NDArray[np.float64]]:
        """Return the sampled series as numpy arrays keyed by column name."""
        return {
            "month_index": np.array([s.month_index for s in self.samples], dtype=float),
            "baseline_balance": np.array(
                [s.baseline_balance for s in self.samples], dtype=float
            ),
            "optimized_balance": np.array(
                [s.optimized_balance for s in self.samples], dtype=float
            ),
        }


class _PayoffTrack:
    """Mutable per-liability balances of one simulated repayment track."""

    def __init__(self, liabilities: Sequence[Liability], rate_reduction: float = 0.0):
        self.liabilities = list(liabilities)
        self.balances = [loan.outstanding for loan in self.liabilities]
        self.rates = [
            max(0.0, loan.interest_rate - rate_reduction) for loan in self.liabilities
        ]
        self.emis = [loan.emi_amount for loan in self.liabilities]
        self.interest = [0.0] * len(self.liabilities)
        self.months_to_zero: List[Optional[int]] = [
            0 if balance <= 0 else None for balance in self.balances
        ]

    def total_balance(self) -> float:
        return sum(balance for balance in self.balances if balance > 0)

    def apply_lump_sum(self, amount: float) -> None:
        remaining = amount
        for i, balance in enumerate(self.balances):
            if remaining <= 0:
                break
            if balance <= 0:
                continue
            deduction = min(balance, remaining)
            self.balances[i] = balance - deduction
            remaining -= deduction
        self.mark_paid(0)

    def accrue_month(self) -> None:
        """Charge one month of interest and pay each EMI."""
        for i, balance in enumerate(self.balances):
            if balance <= 0:
                continue
            interest = balance * (self.rates[i] / 12 / 100)
            principal = min(balance, self.emis[i] - interest)
            self.interest[i] = min(self.interest[i] + interest, OVERFLOW_CEILING)
            new_balance = balance - principal
            # EMI below interest grows the balance; keep it finite
            if NumericSafetyGuard.exceeds_ceiling(new_balance):
                new_balance = OVERFLOW_CEILING
            self.balances[i] = new_balance

    def apply_extra(self, amount: float) -> None:
        remaining = amount
        for i, balance in enumerate(self.balances):
            if remaining <= 0:
                break
            if balance <= 0:
                continue
            deduction = min(balance, remaining)
            self.balances[i] = balance - deduction
            remaining -= deduction

    def mark_paid(self, month: int) -> None:
        for i, balance in enumerate(self.balances):
            if self.months_to_zero[i] is None and balance <= 0:
                self.months_to_zero[i] = month

    def is_resolved(self) -> bool:
        return all(months is not None for months in self.months_to_zero)

    def months_for(self, index: int, horizon: int) -> int:
        months = self.months_to_zero[index]
        return horizon if months is None else months

    def months_to_zero_total(self, horizon: int) -> int:
        if not self.liabilities:
            return 0
        return max(self.months_for(i, horizon) for i in range(len(self.liabilities)))

    def total_interest(self) -> float:
        return sum(self.interest)


class AmortizationSimulator:
    """Simulator comparing baseline EMI repayment with an optimized plan."""

    def __init__(self, config: Optional[AmortizationConfig] = None):
        """Initialize the simulator.

        Args:
            config: Horizon and sampling configuration
        """
        self.config = config or AmortizationConfig()

    @staticmethod
    def order_liabilities(
        liabilities: Sequence[Liability], strategy: PayoffStrategy
    ) -> List[Liability]:
        """
        Order liabilities by payoff priority.

        Avalanche puts the highest interest rate first, snowball the smallest
        outstanding balance first. The sort is stable, so ties keep the input
        order.
        """
        return [
            liabilities[i]
            for i in AmortizationSimulator._priority_order(liabilities, strategy)
        ]

    @staticmethod
    def _priority_order(
        liabilities: Sequence[Liability], strategy: PayoffStrategy
    ) -> List[int]:
        indices = range(len(liabilities))
        if strategy == "avalanche":
            return sorted(indices, key=lambda i: -liabilities[i].interest_rate)
        return sorted(indices, key=lambda i: liabilities[i].outstanding)

    @staticmethod
    def weighted_average_rate(liabilities: Sequence[Liability]) -> float:
        """Outstanding-weighted average annual interest rate in percent."""
        outstanding = sum(loan.outstanding for loan in liabilities)
        weighted = sum(loan.interest_rate * loan.outstanding for loan in liabilities)
        return NumericSafetyGuard.safe_divide(weighted, outstanding)

    def simulate(
        self,
        liabilities: Sequence[Liability],
        parameters: Optional[SimulationParameters] = None,
    ) -> SimulationResult:
        """
        Run the baseline and optimized payoff tracks side by side.

        Args:
            liabilities: Liability snapshots; never modified
            parameters: Strategy, extra payment, lump sum and refinance levers

        Returns:
            SimulationResult with sampled balances and summary metrics
        """
        liabilities = list(liabilities)
        params = parameters or SimulationParameters()
        horizon = self.config.horizon_months
        interval = self.config.sample_interval_months

        logger.debug(
            f"Simulating payoff of {len(liabilities)} liabilities "
            f"({params.strategy}, extra={params.monthly_extra}, "
            f"lump_sum={params.lump_sum}, "
            f"reduction={params.refinance_reduction_pct})"
        )

        order = self._priority_order(liabilities, params.strategy)
        ordered = [liabilities[i] for i in order]
        baseline = _PayoffTrack(liabilities)
        optimized = _PayoffTrack(ordered, rate_reduction=params.refinance_reduction_pct)
        optimized.apply_lump_sum(params.lump_sum)

        samples = [self._sample(0, baseline, optimized)]
        month = 0
        while (
            baseline.total_balance() > 0 or optimized.total_balance() > 0
        ) and month < horizon:
            month += 1

            baseline.accrue_month()
            baseline.mark_paid(month)

            optimized.accrue_month()
            optimized.apply_extra(params.monthly_extra)
            optimized.mark_paid(month)

            if month % interval == 0:
                samples.append(self._sample(month, baseline, optimized))

        if samples[-1].month_index != month:
            samples.append(self._sample(month, baseline, optimized))

        summary = self._summarize(liabilities, baseline, optimized, horizon)
        if not summary.baseline_resolved or not summary.optimized_resolved:
            logger.warning(
                f"Payoff did not resolve within {horizon} months "
                f"(baseline={summary.baseline_resolved}, "
                f"optimized={summary.optimized_resolved})"
            )

        return SimulationResult(
            strategy=params.strategy,
            samples=samples,
            summary=summary,
            payoffs=self._payoffs(order, baseline, optimized, horizon),
        )

    @staticmethod
    def _sample(
        month: int, baseline: _PayoffTrack, optimized: _PayoffTrack
    ) -> BalanceSample:
        return BalanceSample(
            month_index=month,
            baseline_balance=NumericSafetyGuard.round_half_up(baseline.total_balance()),
            optimized_balance=NumericSafetyGuard.round_half_up(
                optimized.total_balance()
            ),
        )

    @staticmethod
    def _summarize(
        liabilities: Sequence[Liability],
        baseline: _PayoffTrack,
        optimized: _PayoffTrack,
        horizon: int,
    ) -> SimulationSummary:
        baseline_months = baseline.months_to_zero_total(horizon)
        optimized_months = optimized.months_to_zero_total(horizon)
        baseline_interest = baseline.total_interest()
        optimized_interest = optimized.total_interest()
        return SimulationSummary(
            months_to_zero_baseline=baseline_months,
            months_to_zero_optimized=optimized_months,
            total_interest_baseline=baseline_interest,
            total_interest_optimized=optimized_interest,
            baseline_resolved=baseline.is_resolved(),
            optimized_resolved=optimized.is_resolved(),
            months_saved=baseline_months - optimized_months,
            interest_saved=baseline_interest - optimized_interest,
            total_debt=sum(loan.outstanding for loan in liabilities),
            horizon_months=horizon,
        )

    @staticmethod
    def _payoffs(
        order: List[int],
        baseline: _PayoffTrack,
        optimized: _PayoffTrack,
        horizon: int,
    ) -> List[LiabilityPayoff]:
        # order[i] is the input position of the i-th optimized liability
        payoffs = []
        for i, loan in enumerate(optimized.liabilities):
            payoffs.append(
                LiabilityPayoff(
                    liability_id=loan.id,
                    name=loan.name,
                    priority=i + 1,
                    months_to_zero=optimized.months_for(i, horizon),
                    baseline_months_to_zero=baseline.months_for(order[i], horizon),
                    interest_paid=optimized.interest[i],
                    resolved=optimized.months_to_zero[i] is not None,
                )
            )
        return payoffs
