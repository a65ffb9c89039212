"""
Bulk-discount pricing

A product carries at most one discount: when the ordered quantity reaches
``bulk_discount_threshold`` the whole line is priced at
``base_price * (1 - bulk_discount_percentage / 100)``. Unit prices are rounded
half-up to paise; line totals are exact multiples of the rounded unit price.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

CENT = Decimal('0.01')
ZERO = Decimal('0.00')
HUNDRED = Decimal('100')

# Per-line quantity cap, well inside a 32-bit integer column
MAX_QUANTITY = 1_000_000
# Largest amount a 12-digit, 2-decimal money column holds
MAX_AMOUNT = Decimal('9999999999.99')


@dataclass(frozen=True)
class LinePrice:
    quantity: int
    base_price: Decimal
    unit_price: Decimal
    discount_applied: Decimal
    total_price: Decimal

    @property
    def base_total(self) -> Decimal:
        return self.base_price * self.quantity

    @property
    def savings(self) -> Decimal:
        return self.base_total - self.total_price


@dataclass(frozen=True)
class PriceSummary:
    total_items: int
    total_amount: Decimal
    total_savings: Decimal


def calculate_discount(product, quantity: int) -> Decimal:
    """Discount percentage that applies to ``quantity`` units of ``product``"""
    threshold = product.bulk_discount_threshold or 0
    percentage = Decimal(product.bulk_discount_percentage or 0)
    if threshold > 0 and percentage > 0 and quantity >= threshold:
        return percentage
    return ZERO


def discounted_unit_price(base_price, discount_percentage) -> Decimal:
    base_price = Decimal(base_price)
    price = base_price * (1 - Decimal(discount_percentage) / HUNDRED)
    return price.quantize(CENT, rounding=ROUND_HALF_UP)


def price_line(product, quantity: int) -> LinePrice:
    if quantity < 1:
        raise ValueError(f"Quantity must be at least 1, got {quantity}")
    discount = calculate_discount(product, quantity)
    unit_price = discounted_unit_price(product.base_price, discount)
    return LinePrice(
        quantity=quantity,
        base_price=Decimal(product.base_price),
        unit_price=unit_price,
        discount_applied=discount,
        total_price=unit_price * quantity,
    )


def summarize(lines: Iterable[LinePrice]) -> PriceSummary:
    lines = list(lines)
    return PriceSummary(
        total_items=sum(line.quantity for line in lines),
        total_amount=sum((line.total_price for line in lines), ZERO),
        total_savings=sum((line.savings for line in lines), ZERO),
    )
