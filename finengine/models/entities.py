"""
Pydantic models for the entity snapshots consumed by the engine.

The data layer owns and mutates accounts, liabilities, recurring obligations
and goals. The engine only receives read-only snapshots of them, validated and
sanitized through the models defined here. Field names are snake_case but the
collaborator's camelCase names are accepted as aliases.
"""

from datetime import date, datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .numeric_safety import NumericSafetyGuard

CREDIT_CARD_TYPE = "credit_card"


class EngineModel(BaseModel):
    """Base model accepting both snake_case and camelCase field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )


def parse_date(value: Any) -> Optional[date]:
    """Parse a date, datetime or ISO string; anything unparseable is None."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        # ISO timestamps: keep the calendar day only
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


class Liability(EngineModel):
    """An outstanding loan repaid through a fixed monthly installment (EMI)."""

    id: str = Field(..., description="Liability identifier")
    name: str = Field(default="", description="Display name")
    principal: float = Field(default=0.0, ge=0, description="Original loan amount")
    outstanding: float = Field(default=0.0, ge=0, description="Current balance owed")
    interest_rate: float = Field(
        default=0.0, ge=0, description="Annual interest rate in percent (e.g. 9.5)"
    )
    emi_amount: float = Field(
        default=0.0, ge=0, description="Fixed monthly installment amount"
    )

    @field_validator(
        "principal", "outstanding", "interest_rate", "emi_amount", mode="before"
    )
    @classmethod
    def sanitize_amount(cls, v: Any) -> float:
        return NumericSafetyGuard.non_negative(v)

    @model_validator(mode="after")
    def validate_outstanding_within_principal(self) -> "Liability":
        """Keep ``outstanding <= principal`` by raising the principal if needed."""
        if self.outstanding > self.principal:
            self.principal = self.outstanding
        return self


class Account(EngineModel):
    """A bank, cash or credit-card account."""

    id: str = Field(..., description="Account identifier")
    name: Optional[str] = Field(default=None, description="Display name")
    type: str = Field(
        default="bank", description="Account type (bank, cash, credit_card, ...)"
    )
    balance: float = Field(
        default=0.0,
        description="Current balance; outstanding debt for credit cards",
    )
    credit_limit: Optional[float] = Field(
        default=None, ge=0, description="Credit limit (credit cards only)"
    )
    safe_limit_percentage: Optional[float] = Field(
        default=None,
        ge=0,
        le=100,
        description="Share of the credit limit considered safe to use",
    )
    min_buffer: Optional[float] = Field(
        default=None, ge=0, description="Minimum balance the user wants to keep"
    )

    @field_validator("balance", mode="before")
    @classmethod
    def sanitize_balance(cls, v: Any) -> float:
        return NumericSafetyGuard.safe_number(v)

    @field_validator("credit_limit", "min_buffer", mode="before")
    @classmethod
    def sanitize_optional_amount(cls, v: Any) -> Optional[float]:
        if v is None:
            return None
        return NumericSafetyGuard.non_negative(v)

    @field_validator("safe_limit_percentage", mode="before")
    @classmethod
    def sanitize_percentage(cls, v: Any) -> Optional[float]:
        if v is None:
            return None
        return NumericSafetyGuard.clamp(v, 0.0, 100.0)

    @property
    def is_credit_card(self) -> bool:
        return self.type == CREDIT_CARD_TYPE

    @property
    def display_name(self) -> str:
        return self.name or self.id


class RecurringObligation(EngineModel):
    """A recurring expense or income commitment tied to an account."""

    id: str = Field(..., description="Obligation identifier")
    account_id: str = Field(..., description="Account the obligation is paid from")
    type: Literal["expense", "income"] = Field(..., description="Direction of flow")
    amount: float = Field(default=0.0, ge=0, description="Amount per occurrence")
    start_date: Optional[date] = Field(
        default=None, description="Next due date (None if missing or invalid)"
    )
    description: Optional[str] = Field(default=None, description="Display title")
    frequency: Optional[Literal["daily", "weekly", "monthly", "yearly"]] = Field(
        default=None, description="Recurrence frequency"
    )

    @field_validator("amount", mode="before")
    @classmethod
    def sanitize_amount(cls, v: Any) -> float:
        return NumericSafetyGuard.non_negative(v)

    @field_validator("start_date", mode="before")
    @classmethod
    def parse_start_date(cls, v: Any) -> Optional[date]:
        return parse_date(v)

    @property
    def is_expense(self) -> bool:
        return self.type == "expense"


class Goal(EngineModel):
    """A savings goal; its current amount is reserved money."""

    id: Optional[str] = Field(default=None, description="Goal identifier")
    name: Optional[str] = Field(default=None, description="Display name")
    current_amount: float = Field(default=0.0, ge=0, description="Amount saved so far")
    target_amount: Optional[float] = Field(
        default=None, ge=0, description="Target amount"
    )

    @field_validator("current_amount", mode="before")
    @classmethod
    def sanitize_current_amount(cls, v: Any) -> float:
        return NumericSafetyGuard.non_negative(v)

    @field_validator("target_amount", mode="before")
    @classmethod
    def sanitize_target_amount(cls, v: Any) -> Optional[float]:
        if v is None:
            return None
        return NumericSafetyGuard.non_negative(v)
