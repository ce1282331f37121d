import pytest

from wardrobe.calculations import (
    CRITICAL,
    LOW,
    OK,
    WARNING,
    cart_total,
    format_money,
    generate_number,
    line_total,
    order_summary,
    profit_percentage,
    stock_percentage,
    stock_severity,
    summarize_orders,
    to_number,
)


def test_profit_percentage():
    assert profit_percentage(100, 150) == 50.00
    assert profit_percentage("100", "120") == 20.00
    assert profit_percentage(3, 4) == 33.33


@pytest.mark.parametrize("cost, selling", [(0, 150), (-5, 10), (100, 0), ("abc", 10), (None, 10), (100, "")])
def test_profit_percentage_not_computed(cost, selling):
    assert profit_percentage(cost, selling) is None


def test_to_number_is_lenient():
    assert to_number(" 12.5 ") == 12.5
    assert to_number("") == 0.0
    assert to_number("x", None) is None
    assert to_number(True, None) is None


def test_cart_total_pairs_and_dicts():
    assert cart_total([(10, 2), (5, 3)]) == 35.00
    items = [{"sellingPrice": 10, "quantity": 2}, {"unitPrice": 5, "qty": 3}]
    assert cart_total(items) == 35.00


def test_cart_total_keeps_full_precision():
    total = cart_total([(0.333, 3)])
    assert total == pytest.approx(0.999)
    assert format_money(total) == "1.00"


def test_line_total():
    assert line_total("3", "2.5") == 7.5
    assert line_total(None, 10) == 0.0


def test_order_summary_charges_shipping_below_threshold():
    summary = order_summary(1000)
    assert summary["tax"] == pytest.approx(100)
    assert summary["shipping"] == 500
    assert summary["total"] == pytest.approx(1600)
    assert summary["free_shipping_gap"] == 4000


def test_order_summary_free_shipping():
    summary = order_summary(5000)
    assert summary["shipping"] == 0
    assert summary["total"] == pytest.approx(5500)
    assert summary["free_shipping_gap"] == 0


def test_order_summary_empty_cart():
    assert order_summary(0)["total"] == 0


@pytest.mark.parametrize("current, reorder, expected", [
    (20, 100, CRITICAL),
    (25, 100, CRITICAL),
    (40, 100, LOW),
    (60, 100, WARNING),
    (100, 100, WARNING),
    (150, 100, OK),
    (5, 0, OK),
])
def test_stock_severity(current, reorder, expected):
    assert stock_severity(current, reorder) == expected


def test_stock_percentage_is_capped():
    assert stock_percentage(20, 100) == 20
    assert stock_percentage(150, 100) == 100
    assert stock_percentage(1, 3) == 33
    assert stock_percentage(5, 0) == 100


def test_summarize_orders():
    orders = [
        {"totalPrice": 100, "orderStatus": {"value": "Pending"}},
        {"totalPrice": "50.5", "orderStatus": {"value": "Pending"}},
        {"totalPrice": None},
    ]
    summary = summarize_orders(orders)
    assert summary["total"] == 3
    assert summary["total_value"] == pytest.approx(150.5)
    assert summary["status_counts"] == {"Pending": 2, "Unknown": 1}


def test_generate_number():
    assert generate_number("EMP", now_ms=1718000123456, rand=7) == "EMP123456007"
    number = generate_number("ORD")
    assert number.startswith("ORD")
    assert len(number) == 12
    assert number[3:].isdigit()


@pytest.mark.parametrize("raw", ["inf", "-inf", "nan", "1e999", float("inf"), float("nan"), 10 ** 400])
def test_to_number_rejects_non_finite(raw):
    assert to_number(raw, None) is None
    assert to_number(raw) == 0.0


@pytest.mark.parametrize("cost, selling", [(100, "inf"), ("nan", 150), (100, "1e999"), (1e-300, 1e300)])
def test_profit_percentage_with_non_finite_input_is_undefined(cost, selling):
    assert profit_percentage(cost, selling) is None
