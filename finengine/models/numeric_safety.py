"""
Numeric safety helpers shared by every calculator.

This module centralizes the guards that keep the projection engine from
emitting NaN or infinite values: coercion of invalid inputs to zero, clamping
to valid ranges, safe division and the overflow ceiling used by compounding.
"""

import logging
import math
from typing import Any, Optional

logger = logging.getLogger(__name__)

# Largest magnitude any simulated balance may reach before it is clamped.
OVERFLOW_CEILING = 1e18


class NumericSafetyGuard:
    """Stateless helpers for sanitizing numeric inputs and outputs."""

    @staticmethod
    def safe_number(value: Any, default: float = 0.0) -> float:
        """
        Coerce an arbitrary value to a finite float.

        Args:
            value: Raw input (number, numeric string, None, ...)
            default: Value returned when the input is absent or not finite

        Returns:
            A finite float
        """
        if value is None or isinstance(value, bool):
            return default
        try:
            number = float(value)
        except (TypeError, ValueError):
            logger.warning(f"Coercing non-numeric value {value!r} to {default}")
            return default
        if not math.isfinite(number):
            logger.warning(f"Coercing non-finite value {number} to {default}")
            return default
        return number

    @staticmethod
    def clamp(value: Any, lower: float, upper: Optional[float] = None) -> float:
        """
        Clamp a value into ``[lower, upper]`` after NaN-guarding it.

        Invalid inputs are treated as 0 before clamping, so the result always
        lies inside the range.
        """
        number = NumericSafetyGuard.safe_number(value)
        if number < lower:
            return lower
        if upper is not None and number > upper:
            return upper
        return number

    @staticmethod
    def non_negative(value: Any) -> float:
        """Return the value floored at zero."""
        return NumericSafetyGuard.clamp(value, 0.0)

    @staticmethod
    def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
        """
        Divide two numbers, returning ``default`` instead of NaN or infinity.

        Args:
            numerator: Dividend
            denominator: Divisor
            default: Value returned when the divisor is zero or the quotient
                is not finite

        Returns:
            The quotient or the default
        """
        if denominator == 0:
            return default
        result = numerator / denominator
        if not math.isfinite(result):
            return default
        return result

    @staticmethod
    def exceeds_ceiling(value: float, ceiling: float = OVERFLOW_CEILING) -> bool:
        """Check whether a running value has overflowed."""
        return not math.isfinite(value) or value > ceiling

    @staticmethod
    def round_half_up(value: float) -> float:
        """Round to the nearest whole unit with halves rounded up (not banker's rounding)."""
        return float(math.floor(value + 0.5))
