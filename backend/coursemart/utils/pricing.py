"""
Price and rating arithmetic shared by the catalog, cart and checkout.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Dict


CENT = Decimal("0.01")


def discounted_price(price: float, discount: int) -> float:
    """
    Price after a percentage discount, rounded half-up to two decimals.

    >>> discounted_price(100, 25)
    75.0
    >>> discounted_price(19.99, 10)
    17.99
    """
    price_d = Decimal(str(price))
    amount = price_d - (Decimal(discount) * price_d) / 100
    return float(amount.quantize(CENT, rounding=ROUND_HALF_UP))


def floor_average(values: Iterable[int]) -> int:
    """Average of integer ratings rounded down, 0 for no ratings."""
    values = list(values)
    if not values:
        return 0
    return sum(values) // len(values)


def cart_totals(prices: Iterable[tuple]) -> Dict[str, float]:
    """
    Totals for a list of ``(price, discount)`` pairs.

    Returns the undiscounted total, the payable subtotal and the savings.
    """
    total = Decimal("0")
    subtotal = Decimal("0")
    for price, discount in prices:
        total += Decimal(str(price))
        subtotal += Decimal(str(discounted_price(price, discount)))

    total = total.quantize(CENT, rounding=ROUND_HALF_UP)
    subtotal = subtotal.quantize(CENT, rounding=ROUND_HALF_UP)
    return {
        "total": float(total),
        "subtotal": float(subtotal),
        "savings": float(total - subtotal),
    }
