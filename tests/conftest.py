"""
Pytest configuration and shared fixtures for the engine tests.
"""

from datetime import date

import pytest

from finengine.config import reset_global_settings
from finengine.models.entities import Account, Goal, Liability, RecurringObligation


@pytest.fixture(autouse=True)
def clean_settings():
    """Make sure no test leaks a cached global settings instance."""
    reset_global_settings()
    yield
    reset_global_settings()


@pytest.fixture
def today():
    """Fixed reference date for date-window calculations."""
    return date(2024, 3, 10)


@pytest.fixture
def sample_liabilities():
    """Three loans with distinct rates and balances."""
    return [
        Liability(
            id="car",
            name="Car Loan",
            principal=500000,
            outstanding=300000,
            interest_rate=9.0,
            emi_amount=12000,
        ),
        Liability(
            id="card",
            name="Credit Card EMI",
            principal=60000,
            outstanding=40000,
            interest_rate=18.0,
            emi_amount=3000,
        ),
        Liability(
            id="home",
            name="Home Loan",
            principal=3000000,
            outstanding=2500000,
            interest_rate=8.5,
            emi_amount=30000,
        ),
    ]


@pytest.fixture
def bank_account():
    return Account(id="bank-1", name="Main Bank", type="bank", balance=50000)


@pytest.fixture
def make_obligation(today):
    """Factory for expense obligations due a number of days from today."""

    def _make(account_id, amount, days_ahead, obligation_type="expense", **kwargs):
        return RecurringObligation(
            id=kwargs.pop("id", f"{account_id}-{days_ahead}-{amount}"),
            account_id=account_id,
            type=obligation_type,
            amount=amount,
            start_date=date.fromordinal(today.toordinal() + days_ahead),
            **kwargs,
        )

    return _make


@pytest.fixture
def sample_goal():
    return Goal(id="goal-1", name="Emergency Fund", current_amount=10000)
