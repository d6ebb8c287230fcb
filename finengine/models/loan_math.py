"""
Reducing-balance loan calculations.

This module provides the closed-form loan formulas used when a liability is
created or edited: installment (EMI) amount, tenure, implied interest rate and
a full repayment breakdown.
"""

import calendar
import math
from datetime import date
from typing import Optional, Union

from pydantic import Field

from .entities import EngineModel, parse_date
from .numeric_safety import NumericSafetyGuard

RATE_SOLVER_MAX_ITERATIONS = 20
RATE_SOLVER_TOLERANCE = 1e-6


class LoanDetails(EngineModel):
    """Repayment breakdown of a reducing-balance loan."""

    emi: float = Field(..., ge=0, description="Monthly installment")
    total_interest: float = Field(..., description="Interest paid over the tenure")
    total_payment: float = Field(..., ge=0, description="Sum of all installments")
    outstanding: float = Field(..., ge=0, description="Balance still owed today")
    closure_date: Optional[date] = Field(
        default=None, description="Start date plus the tenure, if a start date is known"
    )


class LoanCalculator:
    """Calculator for reducing-balance loan formulas."""

    @staticmethod
    def calculate_emi(
        principal: float, annual_rate_pct: float, tenure_months: int
    ) -> float:
        """
        Calculate the monthly installment using the standard annuity formula.

        Args:
            principal: Loan principal amount
            annual_rate_pct: Annual interest rate in percent (e.g. 9.5)
            tenure_months: Loan tenure in months

        Returns:
            Monthly installment amount
        """
        principal = NumericSafetyGuard.safe_number(principal)
        tenure_months = int(NumericSafetyGuard.safe_number(tenure_months))
        if principal <= 0 or tenure_months <= 0:
            return 0.0

        monthly_rate = NumericSafetyGuard.non_negative(annual_rate_pct) / 12 / 100
        if monthly_rate == 0:
            return principal / tenure_months

        try:
            growth = (1 + monthly_rate) ** tenure_months
        except OverflowError:
            return principal * monthly_rate
        if growth == 1:
            return principal / tenure_months
        return principal * monthly_rate * growth / (growth - 1)

    @staticmethod
    def calculate_tenure(principal: float, emi: float, annual_rate_pct: float) -> int:
        """
        Calculate the number of months needed to repay a loan.

        Returns 0 when the installment does not even cover the monthly
        interest, i.e. the loan never amortizes.
        """
        principal = NumericSafetyGuard.safe_number(principal)
        emi = NumericSafetyGuard.safe_number(emi)
        annual_rate_pct = NumericSafetyGuard.safe_number(annual_rate_pct)
        if principal <= 0 or emi <= 0 or annual_rate_pct < 0:
            return 0

        monthly_rate = annual_rate_pct / 12 / 100
        if monthly_rate == 0:
            return math.ceil(principal / emi)
        if emi <= principal * monthly_rate:
            return 0

        months = math.log(emi / (emi - principal * monthly_rate)) / math.log1p(
            monthly_rate
        )
        return math.ceil(months)

    @staticmethod
    def calculate_annual_rate(principal: float, emi: float, tenure_months: int) -> float:
        """
        Solve for the annual rate implied by an installment (Newton-Raphson).

        The iteration count is bounded; the last estimate is returned if the
        tolerance is not reached.

        Args:
            principal: Loan principal amount
            emi: Monthly installment
            tenure_months: Loan tenure in months

        Returns:
            Annual interest rate in percent, rounded to 2 decimals
        """
        principal = NumericSafetyGuard.safe_number(principal)
        emi = NumericSafetyGuard.safe_number(emi)
        tenure_months = int(NumericSafetyGuard.safe_number(tenure_months))
        if (
            principal <= 0
            or emi <= 0
            or tenure_months <= 0
            or emi * tenure_months <= principal
        ):
            return 0.0

        rate = 0.1 / 12  # initial guess: 10% annual
        for _ in range(RATE_SOLVER_MAX_ITERATIONS):
            try:
                growth = (1 + rate) ** tenure_months
                growth_prev = (1 + rate) ** (tenure_months - 1)
            except OverflowError:
                break
            f = emi * (growth - 1) - principal * rate * growth
            df = emi * tenure_months * growth_prev - principal * (
                growth + rate * tenure_months * growth_prev
            )
            if df == 0:
                break
            new_rate = rate - f / df
            converged = abs(new_rate - rate) < RATE_SOLVER_TOLERANCE
            rate = new_rate
            if converged:
                break

        if not math.isfinite(rate) or rate < 0:
            return 0.0
        return round(rate * 12 * 100, 2)

    @staticmethod
    def months_elapsed(start: date, today: date) -> int:
        """Whole months between two dates; a partial month does not count."""
        months = (today.year - start.year) * 12 + (today.month - start.month)
        if today.day < start.day:
            months -= 1
        return max(0, months)

    @staticmethod
    def calculate_closure_date(
        start_date: Union[date, str, None], tenure_months: int
    ) -> Optional[date]:
        """
        Loan closure date, ``tenure_months`` after the start date.

        The day is clamped to the end of a shorter target month (Jan 31 plus
        one month is Feb 28/29). Returns None for a missing or unparseable
        start date and the start date itself for a non-positive tenure.
        """
        start = parse_date(start_date)
        if start is None:
            return None
        tenure_months = int(NumericSafetyGuard.safe_number(tenure_months))
        if tenure_months <= 0:
            return start

        month_index = start.month - 1 + tenure_months
        year = start.year + month_index // 12
        month = month_index % 12 + 1
        if year > date.max.year:
            return None
        day = min(start.day, calendar.monthrange(year, month)[1])
        return date(year, month, day)

    @staticmethod
    def calculate_loan_details(
        principal: float,
        annual_rate_pct: float,
        tenure_months: int,
        start_date: Union[date, str, None] = None,
        today: Optional[date] = None,
    ) -> LoanDetails:
        """
        Calculate installment, interest totals and today's outstanding balance.

        Args:
            principal: Loan principal amount
            annual_rate_pct: Annual interest rate in percent
            tenure_months: Loan tenure in months
            start_date: First installment date (date or ISO string); without
                a valid one the full principal is considered outstanding
            today: Reference date (defaults to the current date)

        Returns:
            LoanDetails with amounts rounded to cents
        """
        principal = NumericSafetyGuard.safe_number(principal)
        tenure_months = int(NumericSafetyGuard.safe_number(tenure_months))
        start = parse_date(start_date)
        if principal <= 0 or tenure_months <= 0:
            return LoanDetails(emi=0, total_interest=0, total_payment=0, outstanding=0)

        emi = LoanCalculator.calculate_emi(principal, annual_rate_pct, tenure_months)
        total_payment = emi * tenure_months
        total_interest = total_payment - principal

        outstanding = principal
        if start is not None:
            today = today or date.today()
            if start <= today:
                paid = min(LoanCalculator.months_elapsed(start, today), tenure_months)
                monthly_rate = NumericSafetyGuard.non_negative(annual_rate_pct) / 12 / 100
                if monthly_rate == 0:
                    outstanding = principal - emi * paid
                else:
                    try:
                        growth = (1 + monthly_rate) ** tenure_months
                        outstanding = (
                            principal
                            * (growth - (1 + monthly_rate) ** paid)
                            / (growth - 1)
                        )
                    except (OverflowError, ZeroDivisionError):
                        outstanding = principal

        return LoanDetails(
            emi=round(emi, 2),
            total_interest=round(total_interest, 2),
            total_payment=round(total_payment, 2),
            outstanding=round(max(0.0, outstanding), 2),
            closure_date=LoanCalculator.calculate_closure_date(start, tenure_months),
        )
