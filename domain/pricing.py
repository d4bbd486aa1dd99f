from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, NamedTuple

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    """Coerce a price (str, int, float or Decimal) to a two-place Decimal."""
    if isinstance(value, float):
        # go through str so 49.99 stays 49.99 rather than its binary expansion
        value = repr(value)
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


class BookingPricing(NamedTuple):
    service_price: Decimal
    add_ons_price: Decimal
    subtotal: Decimal
    # tax, platform_fee, tip and discount are carried for a future pricing
    # model and are always zero today
    tax: Decimal
    platform_fee: Decimal
    tip: Decimal
    discount: Decimal
    total: Decimal
    currency: str

    def to_dict(self) -> dict:
        out = {}
        for key, value in self._asdict().items():
            out[key] = str(value) if isinstance(value, Decimal) else value
        return out


def compute_pricing(service_price, add_on_prices: Iterable = (), currency: str = "USD") -> BookingPricing:
    service = to_money(service_price)
    add_ons = sum((to_money(p) for p in add_on_prices), ZERO)
    subtotal = service + add_ons
    return BookingPricing(
        service_price=service,
        add_ons_price=add_ons,
        subtotal=subtotal,
        tax=ZERO,
        platform_fee=ZERO,
        tip=ZERO,
        discount=ZERO,
        total=subtotal,
        currency=currency,
    )
