import math
from typing import Any


def round_money(value: Any) -> int:
    try:
        amount = float(value if value is not None else 0)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(amount):
        return 0
    # halves round up
    return int(math.floor(amount + 0.5))


def group_indian(number: int) -> str:
    """12345678 -> '1,23,45,678' (last three digits, then groups of two)."""
    sign = "-" if number < 0 else ""
    digits = str(abs(number))
    if len(digits) <= 3:
        return sign + digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return sign + ",".join(groups + [tail])


def format_inr(value: Any) -> str:
    return f"₹{group_indian(round_money(value))}"
