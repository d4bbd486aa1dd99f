from decimal import Decimal

from domain.pricing import compute_pricing, to_money


def test_total_is_service_plus_add_ons():
    pricing = compute_pricing("49.99", ["10.00", "5.50"])

    assert pricing.service_price == Decimal("49.99")
    assert pricing.add_ons_price == Decimal("15.50")
    assert pricing.subtotal == Decimal("65.49")
    assert pricing.total == Decimal("65.49")


def test_float_prices_do_not_drift():
    assert compute_pricing(49.99, [10.0, 5.5]).total == Decimal("65.49")
    assert to_money(0.1) + to_money(0.2) == Decimal("0.30")


def test_no_add_ons():
    pricing = compute_pricing(Decimal("30"))
    assert pricing.add_ons_price == Decimal("0.00")
    assert pricing.total == Decimal("30.00")


def test_reserved_components_are_zero():
    pricing = compute_pricing("20.00", ["5.00"], currency="EUR")
    assert pricing.tax == pricing.platform_fee == pricing.tip == pricing.discount == Decimal("0.00")
    assert pricing.currency == "EUR"


def test_to_dict_renders_money_as_strings():
    body = compute_pricing("49.99", ["10.00"]).to_dict()
    assert body["total"] == "59.99"
    assert body["currency"] == "USD"
