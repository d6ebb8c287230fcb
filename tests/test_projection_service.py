"""
Tests for the projection service.
"""

import logging
import os
from datetime import date
from unittest.mock import patch

import pytest

from finengine.config import Settings
from finengine.exceptions import ConfigurationError, EngineError
from finengine.models.liquidity import LiquiditySnapshot, QuickFix
from finengine.services import DashboardReport, ProjectionService


class RecordingTransferHandler:
    """Transfer handler that records calls."""

    def __init__(self, accept=True):
        self.accept = accept
        self.calls = []

    def transfer(self, from_account_id, to_account_id, amount):
        self.calls.append((from_account_id, to_account_id, amount))
        return self.accept


@pytest.fixture
def settings():
    with patch.dict(os.environ, {"CURRENCY": "EUR"}, clear=True):
        return Settings(_env_file=None)


@pytest.fixture
def service(settings):
    return ProjectionService(settings)


@pytest.fixture
def raw_accounts():
    """Accounts as the data layer sends them."""
    return [
        {"id": "b1", "name": "Bills", "type": "bank", "balance": 1000},
        {"id": "b2", "name": "Savings", "type": "bank", "balance": 50000},
        {
            "id": "c1",
            "name": "Card",
            "type": "credit_card",
            "balance": 10000,
            "creditLimit": 50000,
            "safeLimitPercentage": 20,
        },
    ]


@pytest.fixture
def raw_obligations():
    return [
        {
            "id": "o1",
            "accountId": "b1",
            "type": "expense",
            "amount": 3000,
            "startDate": "2024-03-12",
            "description": "Electricity",
        }
    ]


def critical_snapshot():
    return LiquiditySnapshot(
        liquid_balance=1000,
        upcoming_dues=3000,
        reserved_amount=0,
        liquid_safe_spend=-2000,
        credit_safe_spend=0,
        safe_to_spend_global=-2000,
        status="CRITICAL",
        quick_fix=QuickFix(from_account_id="b2", to_account_id="b1", amount=2000),
    )


class TestProjectionService:
    """Test cases for ProjectionService."""

    def test_uses_global_settings_by_default(self):
        """Test that the service falls back to global settings."""
        with patch.dict(os.environ, {"DUE_WINDOW_DAYS": "3"}, clear=True):
            service = ProjectionService()
            assert service.liquidity.config.due_window_days == 3

    def test_project_debt_payoff_accepts_dicts(self, service, caplog):
        """Test debt payoff projection from camelCase dictionaries."""
        liabilities = [
            {
                "id": "l1",
                "name": "Personal Loan",
                "principal": 12000,
                "outstanding": 12000,
                "interestRate": 0,
                "emiAmount": 1000,
            }
        ]

        with caplog.at_level(logging.INFO, logger="finengine"):
            result = service.project_debt_payoff(
                liabilities, {"strategy": "snowball", "monthlyExtra": 1000}
            )

        assert result.strategy == "snowball"
        assert result.summary.months_to_zero_baseline == 12
        assert result.summary.months_to_zero_optimized == 6
        assert "Debt payoff projected for 1 liabilities" in caplog.text

    def test_project_debt_payoff_default_parameters(self, service, sample_liabilities):
        """Test that omitted parameters mean no levers."""
        result = service.project_debt_payoff(sample_liabilities)

        assert result.strategy == "avalanche"
        assert result.summary.months_saved == 0

    def test_project_wealth(self, service):
        """Test wealth projection through the service."""
        projection = service.project_wealth(1000, 0, 1)
        assert projection.summary.wealth == 12000

    def test_overflow_ceiling_from_settings(self):
        """Test that the configured ceiling reaches the growth simulator."""
        with patch.dict(os.environ, {"OVERFLOW_CEILING": "100000"}, clear=True):
            service = ProjectionService(Settings(_env_file=None))

        projection = service.project_wealth(10000, 12, 10)
        assert projection.summary.wealth == 100000
        assert projection.summary.truncated

    def test_compare_debt_cost(self, service):
        """Test the debt-versus-return comparison with raw liabilities."""
        comparison = service.compare_debt_cost(
            [{"id": "l1", "outstanding": 5000, "interestRate": 24}], 12
        )
        assert comparison.debt_costs_more

    def test_evaluate_liquidity_accepts_dicts(
        self, service, raw_accounts, raw_obligations, today
    ):
        """Test liquidity evaluation from raw snapshots."""
        snapshot = service.evaluate_liquidity(
            raw_accounts, raw_obligations, [{"currentAmount": 1000}], today=today
        )

        assert snapshot.liquid_balance == 51000
        assert snapshot.upcoming_dues == 3000
        assert snapshot.reserved_amount == 1000
        assert snapshot.credit_safe_spend == 10000
        assert snapshot.status == "CRITICAL"
        assert snapshot.quick_fix.amount == 2000
        assert snapshot.next_due.title == "Electricity"
        assert snapshot.next_due.days_remaining == 2

    def test_evaluate_liquidity_with_undated_obligation(self, service, today):
        """Test that a null start date does not break the evaluation."""
        snapshot = service.evaluate_liquidity(
            [{"id": "b", "type": "bank", "balance": 10000}],
            [
                {
                    "id": "r1",
                    "accountId": "b",
                    "type": "expense",
                    "amount": 500,
                    "startDate": None,
                }
            ],
            [],
            today=today,
        )

        assert snapshot.upcoming_dues == 0
        assert snapshot.liquid_safe_spend == 10000
        assert snapshot.next_due is None

    def test_snapshot_dumps_camel_case(self, service, raw_accounts, today):
        """Test that results serialize with camelCase keys."""
        payload = service.evaluate_liquidity(raw_accounts, [], [], today=today).model_dump(
            by_alias=True
        )

        assert "safeToSpendGlobal" in payload
        assert "suggestedAccountId" in payload

    def test_score_health(self, service):
        """Test health scoring through the service."""
        result = service.score_health(100000, 40000, 0)
        assert result.score == 100

    def test_build_dashboard(self, service, raw_accounts, raw_obligations, today):
        """Test the combined dashboard report."""
        report = service.build_dashboard(
            raw_accounts,
            raw_obligations,
            [],
            [{"id": "l1", "outstanding": 60000, "interestRate": 10}],
            total_income=60000,
            total_expenses=30000,
            first_transaction_date=date(2023, 9, 10),
            today=today,
        )

        assert isinstance(report, DashboardReport)
        assert report.currency == "EUR"
        assert report.liquidity.status == "CRITICAL"
        # six months of activity annualize 60000 to 120000
        assert report.health.annualized_income == 120000
        assert report.health.debt_ratio == pytest.approx(0.5)

    def test_build_dashboard_without_history(self, service, today):
        """Test an empty dashboard."""
        report = service.build_dashboard([], [], [], [], 0, 0, today=today)

        assert report.health.score == 50
        assert report.liquidity.safe_to_spend_global == 0


class TestDispatchQuickFix:
    """Test cases for handing quick fixes to a transfer handler."""

    def test_dispatches_transfer(self, service):
        """Test that the handler receives the suggested transfer."""
        handler = RecordingTransferHandler()

        assert service.dispatch_quick_fix(critical_snapshot(), handler) is True
        assert handler.calls == [("b2", "b1", 2000)]

    def test_declined_transfer(self, service, caplog):
        """Test a handler that declines the transfer."""
        handler = RecordingTransferHandler(accept=False)

        with caplog.at_level(logging.WARNING, logger="finengine"):
            assert service.dispatch_quick_fix(critical_snapshot(), handler) is False

        assert "declined" in caplog.text

    def test_no_quick_fix(self, service, raw_accounts, today):
        """Test that nothing is dispatched without a quick fix."""
        snapshot = service.evaluate_liquidity(raw_accounts, [], [], today=today)
        handler = RecordingTransferHandler()

        assert service.dispatch_quick_fix(snapshot, handler) is False
        assert handler.calls == []

    def test_missing_handler(self, service):
        """Test that a quick fix without a handler is a configuration error."""
        with pytest.raises(ConfigurationError):
            service.dispatch_quick_fix(critical_snapshot(), None)

    def test_invalid_handler(self, service):
        """Test that an object without a transfer method is rejected."""
        with pytest.raises(EngineError):
            service.dispatch_quick_fix(critical_snapshot(), object())
