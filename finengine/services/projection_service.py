"""
Projection service wiring settings into the engine calculators.

This service is the entry point used by the presentation layer. It accepts
raw snapshots (model instances or camelCase dictionaries), runs the requested
calculator with the configured thresholds and logs each run. It holds no
state between calls and performs no caching.
"""

import logging
from datetime import date
from typing import Any, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel

from finengine.config import Settings, get_global_settings
from finengine.exceptions import ConfigurationError
from finengine.models.amortization import (
    AmortizationSimulator,
    SimulationParameters,
    SimulationResult,
)
from finengine.models.compound_growth import (
    CompoundGrowthSimulator,
    DebtCostComparison,
    WealthProjection,
)
from finengine.models.entities import (
    Account,
    EngineModel,
    Goal,
    Liability,
    RecurringObligation,
)
from finengine.models.health_score import HealthScoreCalculator, HealthScoreResult
from finengine.models.liquidity import LiquidityDecisionEngine, LiquiditySnapshot
from finengine.models.protocols import TransferHandler

ModelT = TypeVar("ModelT", bound=BaseModel)

logger = logging.getLogger(__name__)


class DashboardReport(EngineModel):
    """Liquidity and health results for one dashboard refresh."""

    currency: str
    liquidity: LiquiditySnapshot
    health: HealthScoreResult


def _coerce(model: Type[ModelT], items: Optional[Iterable[Any]]) -> List[ModelT]:
    """Validate raw snapshot items into model instances."""
    if not items:
        return []
    return [item if isinstance(item, model) else model.model_validate(item) for item in items]


class ProjectionService:
    """Service running the projection and liquidity calculators."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """Initialize the service.

        Args:
            settings: Engine settings (defaults to the global settings)
        """
        self.settings = settings or get_global_settings()
        self.logger = logging.getLogger(__name__)
        self.amortization = AmortizationSimulator(self.settings.amortization_config())
        self.growth = CompoundGrowthSimulator(self.settings.growth_config())
        self.liquidity = LiquidityDecisionEngine(self.settings.liquidity_config())
        self.health = HealthScoreCalculator()

    def project_debt_payoff(
        self,
        liabilities: Iterable[Any],
        parameters: Optional[Any] = None,
    ) -> SimulationResult:
        """Simulate baseline and optimized debt payoff.

        Args:
            liabilities: Liability snapshots
            parameters: SimulationParameters or an equivalent dictionary

        Returns:
            SimulationResult
        """
        loans = _coerce(Liability, liabilities)
        params = (
            _coerce(SimulationParameters, [parameters])[0]
            if parameters is not None
            else SimulationParameters()
        )
        result = self.amortization.simulate(loans, params)
        self.logger.info(
            f"Debt payoff projected for {len(loans)} liabilities: "
            f"{result.summary.months_to_zero_baseline} -> "
            f"{result.summary.months_to_zero_optimized} months"
        )
        return result

    def project_wealth(
        self,
        monthly_investment: float,
        expected_annual_return_pct: float,
        years: int,
    ) -> WealthProjection:
        """Project compound growth of a monthly investment."""
        projection = self.growth.simulate(
            monthly_investment, expected_annual_return_pct, years
        )
        self.logger.info(
            f"Wealth projected over {projection.summary.years} years "
            f"(truncated={projection.summary.truncated})"
        )
        return projection

    def compare_debt_cost(
        self, liabilities: Iterable[Any], expected_annual_return_pct: float
    ) -> DebtCostComparison:
        """Compare the average debt rate with an expected investment return."""
        return self.growth.compare_debt_cost(
            _coerce(Liability, liabilities), expected_annual_return_pct
        )

    def evaluate_liquidity(
        self,
        accounts: Iterable[Any],
        obligations: Iterable[Any],
        goals: Iterable[Any],
        today: Optional[date] = None,
    ) -> LiquiditySnapshot:
        """Compute the Safe-to-Spend snapshot."""
        snapshot = self.liquidity.evaluate(
            _coerce(Account, accounts),
            _coerce(RecurringObligation, obligations),
            _coerce(Goal, goals),
            today=today,
        )
        self.logger.info(
            f"Liquidity evaluated: status={snapshot.status}, "
            f"safe_to_spend={snapshot.safe_to_spend_global:.2f} {self.settings.currency}"
        )
        return snapshot

    def score_health(
        self,
        total_income: float,
        total_expenses: float,
        total_debt: float,
        months_active: int = 12,
    ) -> HealthScoreResult:
        """Compute the financial health score."""
        result = self.health.calculate(
            total_income, total_expenses, total_debt, months_active
        )
        self.logger.info(f"Health score computed: {result.score} ({result.label})")
        return result

    def build_dashboard(
        self,
        accounts: Iterable[Any],
        obligations: Iterable[Any],
        goals: Iterable[Any],
        liabilities: Iterable[Any],
        total_income: float,
        total_expenses: float,
        first_transaction_date: Optional[date] = None,
        today: Optional[date] = None,
    ) -> DashboardReport:
        """
        Compute liquidity and health for a dashboard refresh.

        Total debt is the sum of outstanding liability balances; months active
        are counted from the first transaction date.
        """
        loans = _coerce(Liability, liabilities)
        months_active = self.health.months_between(first_transaction_date, today)
        return DashboardReport(
            currency=self.settings.currency,
            liquidity=self.evaluate_liquidity(accounts, obligations, goals, today),
            health=self.score_health(
                total_income,
                total_expenses,
                sum(loan.outstanding for loan in loans),
                months_active,
            ),
        )

    def dispatch_quick_fix(
        self, snapshot: LiquiditySnapshot, handler: Optional[TransferHandler]
    ) -> bool:
        """
        Hand a snapshot's suggested transfer to an injected transfer handler.

        Args:
            snapshot: Liquidity snapshot that may carry a quick fix
            handler: Collaborator that executes transfers

        Returns:
            True if a transfer was dispatched and accepted, False if there was
            nothing to do or the handler declined

        Raises:
            ConfigurationError: If a quick fix exists but no usable handler
                was supplied
        """
        quick_fix = snapshot.quick_fix
        if quick_fix is None:
            return False
        if handler is None or not isinstance(handler, TransferHandler):
            raise ConfigurationError("A TransferHandler is required to apply a quick fix")

        self.logger.info(
            f"Dispatching quick fix: {quick_fix.amount:.2f} from "
            f"{quick_fix.from_account_id} to {quick_fix.to_account_id}"
        )
        accepted = bool(
            handler.transfer(
                quick_fix.from_account_id, quick_fix.to_account_id, quick_fix.amount
            )
        )
        if not accepted:
            self.logger.warning("Quick fix transfer was declined by the handler")
        return accepted
