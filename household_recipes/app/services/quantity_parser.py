import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Tuple

LEADING_QUANTITY_RE = re.compile(r"^(\d+\s+\d+/\d+|\d+/\d+|\d+(?:\.\d+)?)")

ONE_DECIMAL = Decimal("0.1")


def _fraction(num_str: str, denom_str: str) -> Optional[Decimal]:
    num = Decimal(num_str)
    denom = Decimal(denom_str)
    if num == 0 or denom == 0:
        return None
    return num / denom


def parse_quantity_display(raw: Optional[str]) -> Optional[Decimal]:
    """Parse "2", "1.5", "1/2" or "1 1/2" into a Decimal."""
    if raw is None:
        return None
    value = " ".join(raw.split())
    if not value:
        return None

    try:
        if "/" not in value and " " not in value:
            result = Decimal(value)
            return result if result.is_finite() else None
        if " " in value:
            whole_part, frac_part = value.split(" ", 1)
            num_str, denom_str = frac_part.split("/", 1)
            fraction = _fraction(num_str, denom_str)
            if fraction is None:
                return None
            return Decimal(whole_part) + fraction
        num_str, denom_str = value.split("/", 1)
        return _fraction(num_str, denom_str)
    except (InvalidOperation, ValueError):
        return None


def split_leading_quantity(text: str) -> Tuple[Optional[Decimal], str]:
    """Return (quantity, remainder) for a leading mixed number, fraction or decimal."""
    match = LEADING_QUANTITY_RE.match(text)
    if not match:
        return None, text
    quantity = parse_quantity_display(match.group(1))
    if quantity is None:
        return None, text
    return quantity, text[match.end():].strip()


def format_quantity(value: Decimal) -> str:
    if value == value.to_integral_value():
        return str(int(value))
    text = format(value.quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP), "f")
    if text.endswith(".0"):
        text = text[:-2]
    return text
