"""
Safe-to-Spend liquidity decisions.

This module computes how much the user can safely spend today. It starts from
the balances of liquid (non-credit) accounts, subtracts expense obligations
due within the due window and money reserved for goals, then adds the safe
share of available credit on credit cards. The result is classified as SAFE,
TIGHT or CRITICAL. It also carries a spend-account suggestion, the most
urgent alert, the next due payment and, when an account cannot cover its own
dues, a suggested transfer (quick fix).

The engine only describes the transfer; executing it is up to the caller.
"""

import logging
from datetime import date, timedelta
from typing import List, Literal, Optional, Sequence

from pydantic import BaseModel, Field

from .entities import Account, EngineModel, Goal, RecurringObligation
from .numeric_safety import NumericSafetyGuard

logger = logging.getLogger(__name__)

DUE_WINDOW_DAYS = 7
DEFAULT_SAFE_LIMIT_PERCENTAGE = 30.0
TIGHT_RATIO = 0.10
TIGHT_FLOOR = 2000.0
UTILIZATION_ALERT_RATIO = 0.70

SUGGESTED_REASON = "Highest free buffer after upcoming payments"
DEFAULT_DUE_TITLE = "Upcoming Payment"

LiquidityStatus = Literal["SAFE", "TIGHT", "CRITICAL"]


class LiquidityConfig(BaseModel):
    """Thresholds used by the liquidity decision engine."""

    due_window_days: int = Field(
        default=DUE_WINDOW_DAYS, ge=0, description="Days ahead counted as due soon"
    )
    default_safe_limit_percentage: float = Field(
        default=DEFAULT_SAFE_LIMIT_PERCENTAGE,
        ge=0,
        le=100,
        description="Safe share of a card limit when the card sets none",
    )
    tight_ratio: float = Field(
        default=TIGHT_RATIO,
        ge=0,
        le=1,
        description="Safe spend below this share of liquid balance is TIGHT",
    )
    tight_floor: float = Field(
        default=TIGHT_FLOOR, ge=0, description="Safe spend below this amount is TIGHT"
    )
    utilization_alert_ratio: float = Field(
        default=UTILIZATION_ALERT_RATIO,
        ge=0,
        description="Card utilization above which an alert is raised",
    )


class QuickFix(EngineModel):
    """A suggested transfer that would cover an account's upcoming dues."""

    from_account_id: str
    to_account_id: str
    amount: float = Field(..., gt=0)


class NextDue(EngineModel):
    """The nearest upcoming expense obligation."""

    title: str
    amount: float = Field(..., ge=0)
    days_remaining: int = Field(..., ge=0)


class CardSpend(EngineModel):
    """Safe spending capacity of one credit card."""

    account_id: str
    available_credit: float = Field(..., ge=0)
    safety_cap: float = Field(..., ge=0)
    safe_card_spend: float = Field(..., ge=0)
    utilization: float = Field(..., ge=0)


class LiquiditySnapshot(EngineModel):
    """Computed, ephemeral Safe-to-Spend view of the user's finances."""

    liquid_balance: float
    upcoming_dues: float = Field(..., ge=0)
    reserved_amount: float = Field(..., ge=0)
    liquid_safe_spend: float
    credit_safe_spend: float = Field(..., ge=0)
    safe_to_spend_global: float
    status: LiquidityStatus
    suggested_account_id: Optional[str] = None
    suggested_account_name: Optional[str] = None
    suggested_reason: Optional[str] = None
    top_alert: Optional[str] = None
    quick_fix: Optional[QuickFix] = None
    next_due: Optional[NextDue] = None
    card_breakdown: List[CardSpend] = Field(default_factory=list)


class LiquidityDecisionEngine:
    """Engine computing Safe-to-Spend snapshots."""

    def __init__(self, config: Optional[LiquidityConfig] = None):
        """Initialize the engine.

        Args:
            config: Thresholds and window length
        """
        self.config = config or LiquidityConfig()

    def evaluate(
        self,
        accounts: Sequence[Account],
        obligations: Sequence[RecurringObligation],
        goals: Sequence[Goal],
        today: Optional[date] = None,
    ) -> LiquiditySnapshot:
        """
        Compute the Safe-to-Spend snapshot.

        Args:
            accounts: Account snapshots (bank, cash, credit cards, ...)
            obligations: Recurring expense and income obligations
            goals: Savings goals whose current amounts are reserved
            today: Reference date (defaults to the current date)

        Returns:
            LiquiditySnapshot describing spendable money and risk status
        """
        today = today or date.today()
        window_end = today + timedelta(days=self.config.due_window_days)

        liquid_accounts = [a for a in accounts if not a.is_credit_card]
        credit_cards = [a for a in accounts if a.is_credit_card]
        due_soon = [
            o
            for o in obligations
            if o.is_expense
            and o.start_date is not None
            and today <= o.start_date <= window_end
        ]

        liquid_balance = sum(a.balance for a in liquid_accounts)
        upcoming_dues = sum(o.amount for o in due_soon)
        reserved_amount = sum(g.current_amount for g in goals)
        liquid_safe_spend = liquid_balance - upcoming_dues - reserved_amount

        card_breakdown = [self.card_spend(card) for card in credit_cards]
        credit_safe_spend = sum(c.safe_card_spend for c in card_breakdown)
        safe_to_spend_global = liquid_safe_spend + credit_safe_spend

        account_dues = {
            a.id: sum(o.amount for o in due_soon if o.account_id == a.id)
            for a in liquid_accounts
        }
        suggested = self._suggest_account(liquid_accounts, account_dues)
        underfunded = next(
            (a for a in liquid_accounts if a.balance < account_dues[a.id]), None
        )

        status = self._classify(liquid_safe_spend, liquid_balance, underfunded)
        top_alert = self._top_alert(status, underfunded, card_breakdown, credit_cards)

        quick_fix = None
        if (
            status == "CRITICAL"
            and underfunded is not None
            and suggested is not None
            and suggested.id != underfunded.id
        ):
            quick_fix = QuickFix(
                from_account_id=suggested.id,
                to_account_id=underfunded.id,
                amount=account_dues[underfunded.id] - underfunded.balance,
            )

        logger.debug(
            f"Liquidity status {status}: liquid={liquid_balance}, "
            f"dues={upcoming_dues}, reserved={reserved_amount}, "
            f"credit={credit_safe_spend}"
        )

        return LiquiditySnapshot(
            liquid_balance=liquid_balance,
            upcoming_dues=upcoming_dues,
            reserved_amount=reserved_amount,
            liquid_safe_spend=liquid_safe_spend,
            credit_safe_spend=credit_safe_spend,
            safe_to_spend_global=safe_to_spend_global,
            status=status,
            suggested_account_id=suggested.id if suggested else None,
            suggested_account_name=suggested.display_name if suggested else None,
            suggested_reason=SUGGESTED_REASON if suggested else None,
            top_alert=top_alert,
            quick_fix=quick_fix,
            next_due=self.next_due(obligations, today),
            card_breakdown=card_breakdown,
        )

    def card_spend(self, card: Account) -> CardSpend:
        """
        Compute the safe spend of one credit card.

        The safe spend is the smaller of the available credit and the safety
        cap (a percentage of the limit).
        """
        limit = card.credit_limit or 0.0
        balance = card.balance
        percentage = card.safe_limit_percentage
        if percentage is None:
            percentage = self.config.default_safe_limit_percentage

        available_credit = max(0.0, limit - balance)
        safety_cap = limit * percentage / 100
        return CardSpend(
            account_id=card.id,
            available_credit=available_credit,
            safety_cap=safety_cap,
            safe_card_spend=min(available_credit, safety_cap),
            utilization=NumericSafetyGuard.non_negative(
                NumericSafetyGuard.safe_divide(balance, limit)
            ),
        )

    @staticmethod
    def next_due(
        obligations: Sequence[RecurringObligation], today: date
    ) -> Optional[NextDue]:
        """Find the earliest expense obligation that is not already past due."""
        upcoming = [
            (o, (o.start_date - today).days)
            for o in obligations
            if o.is_expense and o.start_date is not None and o.start_date >= today
        ]
        if not upcoming:
            return None
        # min() keeps the first of equal candidates
        obligation, days = min(upcoming, key=lambda item: item[1])
        return NextDue(
            title=obligation.description or DEFAULT_DUE_TITLE,
            amount=obligation.amount,
            days_remaining=days,
        )

    @staticmethod
    def _suggest_account(
        liquid_accounts: Sequence[Account], account_dues: dict
    ) -> Optional[Account]:
        suggested = None
        best_buffer = float("-inf")
        for account in liquid_accounts:
            free_buffer = (
                account.balance - account_dues[account.id] - (account.min_buffer or 0.0)
            )
            if free_buffer > best_buffer:
                best_buffer = free_buffer
                suggested = account
        return suggested

    def _classify(
        self,
        liquid_safe_spend: float,
        liquid_balance: float,
        underfunded: Optional[Account],
    ) -> LiquidityStatus:
        if liquid_safe_spend < 0 or underfunded is not None:
            return "CRITICAL"
        if (
            liquid_safe_spend < self.config.tight_ratio * liquid_balance
            or liquid_safe_spend < self.config.tight_floor
        ):
            return "TIGHT"
        return "SAFE"

    def _top_alert(
        self,
        status: LiquidityStatus,
        underfunded: Optional[Account],
        card_breakdown: Sequence[CardSpend],
        credit_cards: Sequence[Account],
    ) -> Optional[str]:
        if underfunded is not None:
            return (
                f"Payment risk: {underfunded.display_name} insufficient for "
                "upcoming dues."
            )
        if status == "TIGHT":
            return "Low Safe-to-Spend: Consider postponing large purchases."
        for card, spend in zip(credit_cards, card_breakdown):
            if spend.utilization > self.config.utilization_alert_ratio:
                threshold = round(self.config.utilization_alert_ratio * 100)
                return (
                    f"High credit utilization on {card.display_name} "
                    f"(>{threshold}%)."
                )
        return None
