"""
Abstract base class for costing calculators.

Input: raw form fields dict (values may be numbers or free text)
Output: dict of derived fields

Form input arrives as text, so every calculator parses defensively:
an unparseable numeric field falls back to its default, never raises.
"""

import math
import re
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

# Longest leading decimal number: "30 strands" -> 30, "1.5mm" -> 1.5, "abc" -> no match
_LEADING_NUMBER = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


class BaseCalculator(ABC):
    """All costing calculators inherit from this."""

    @abstractmethod
    def calculate(self, fields: dict, **kwargs) -> dict:
        """
        Takes the raw input fields.
        Returns a dict of derived values.
        """
        pass

    # --- Parsing helpers ---

    def parse_number(self, value, default: float = 0.0) -> float:
        """Parse a numeric value from user input. Uses the leading number of text input."""
        if value is None or isinstance(value, bool):
            return default
        if isinstance(value, (int, float)):
            raw = value
        else:
            match = _LEADING_NUMBER.match(str(value))
            if not match:
                return default
            raw = match.group(0)
        try:
            # ints past float range overflow rather than going to inf
            number = float(raw)
        except (ValueError, OverflowError):
            return default
        return number if math.isfinite(number) else default

    def parse_text(self, value, default: str = "") -> str:
        """Pass text through; None becomes the default."""
        if value is None:
            return default
        return str(value)

    # --- Rounding helpers ---

    def round_half_up(self, value: float, places: int) -> float:
        """Round half away from zero (Decimal ROUND_HALF_UP on the shortest repr)."""
        if not math.isfinite(value):
            return value
        quantum = Decimal(1).scaleb(-places)
        try:
            rounded = Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP)
        except InvalidOperation:
            # Too many digits for the decimal context — already beyond display precision
            return value
        if rounded == 0:
            return 0.0
        return float(rounded)

    def format_fixed(self, value: float, places: int) -> str:
        """Fixed-decimal string, e.g. format_fixed(9.84361, 4) -> '9.8436'."""
        return f"{self.round_half_up(value, places):.{places}f}"

    def format_plain(self, value: float) -> str:
        """
        Compact number text for pass-through inputs: 30.0 -> '30', 0.203 -> '0.203'.
        Always positional, never exponent form: 0.00001 -> '0.00001'.
        """
        value = float(value)
        if value.is_integer():
            return str(int(value))
        return format(Decimal(repr(value)), "f")
