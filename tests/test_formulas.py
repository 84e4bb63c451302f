from math import isclose

import pytest

from fluctus.domain.formulas import (
    discounted_price,
    fixed_cost_per_unit,
    margin_on_price,
    quoted_price_for_supplier,
    realized_margin,
    resolve_price,
    suggest_price,
    unit_cost,
)


QUOTES = [
    {"id": 1, "supplierId": 10, "price": 50.0},
    {"id": 2, "supplierId": 20, "price": 42.0},
    {"id": 3, "supplierId": 30, "price": 47.0},
]


@pytest.mark.parametrize(
    "item, expected",
    [
        ({"quotes": QUOTES, "selectedQuoteId": 3, "price": 99}, 47.0),
        ({"quotes": QUOTES, "selectedQuoteId": 999, "price": 99}, 42.0),
        ({"quotes": QUOTES, "price": 99}, 42.0),
        ({"quotes": [], "price": 12.5}, 12.5),
        ({"quotes": []}, 0.0),
        (None, 0.0),
    ],
)
def test_resolve_price_order(item, expected):
    assert resolve_price(item) == expected


def test_resolve_price_selected_id_compares_as_text():
    item = {"quotes": QUOTES, "selectedQuoteId": "1"}
    assert resolve_price(item) == 50.0


def test_quoted_price_for_supplier():
    item = {"quotes": QUOTES, "price": 5.0}
    assert quoted_price_for_supplier(item, 30) == 47.0
    # fornecedor sem cotação: preço de referência do item
    assert quoted_price_for_supplier(item, 77) == 5.0
    assert quoted_price_for_supplier({**item, "selectedQuoteId": 1}, 77) == 50.0
    assert quoted_price_for_supplier(None, 30) == 0.0


@pytest.mark.parametrize(
    "price, yld, expected",
    [
        (45.50, 3.5, 13.00),
        (300.00, 1000, 0.30),
        (25.00, 50, 0.50),
        (1.00, 3, 0.34),
        (10.00, 0, 10.00),
        (10.00, -2, 10.00),
        (0.001, 1, 0.01),
        (0.1 * 3, 1, 0.30),
        (0, 5, 0.0),
    ],
)
def test_unit_cost_rounds_up(price, yld, expected):
    assert isclose(unit_cost(price, yld), expected, abs_tol=1e-9)


@pytest.mark.parametrize("price, yld", [(0.0001, 1), (0.01, 1000), (1, 10 ** 6), (3.33, 7)])
def test_unit_cost_positive_never_zero(price, yld):
    assert unit_cost(price, yld) >= 0.01


def test_fixed_cost_per_unit():
    assert fixed_cost_per_unit({"total": 2500, "estimatedSales": 500}) == 5.0
    assert fixed_cost_per_unit({"total": 2500, "estimatedSales": 0}) == 0.0
    assert fixed_cost_per_unit({"total": 2500, "estimatedSales": -10}) == 0.0
    assert fixed_cost_per_unit(None) == 0.0


def test_suggest_price_round_trip():
    price = suggest_price(100, 12, 10, 0, 30)
    assert isclose(price, 100 / 0.48, rel_tol=1e-12)
    assert isclose(price, 208.33, abs_tol=0.01)
    assert isclose(realized_margin(100, 12, 10, 0, price), 30.0, abs_tol=1e-9)
    assert isclose(realized_margin(100, 12, 10, 0, 208.33), 30.0, abs_tol=0.01)


@pytest.mark.parametrize(
    "tax, commission, fee, margin",
    [(40, 30, 10, 20), (50, 0, 0, 60), (0, 0, 0, 100), (4, 0, 0, 100)],
)
def test_suggest_price_degenerate_divisor_doubles_cost(tax, commission, fee, margin):
    assert suggest_price(24.55, tax, commission, fee, margin) == 24.55 * 2


def test_realized_margin_zero_price():
    assert realized_margin(100, 10, 0, 0, 0) == 0.0
    assert realized_margin(100, 10, 0, 0, -5) == 0.0


def test_realized_margin_can_go_negative():
    assert realized_margin(100, 10, 0, 0, 50) < 0


def test_discounted_price_final_wins():
    assert isclose(discounted_price(139.80, 5), 132.81, abs_tol=1e-9)
    assert discounted_price(139.80, 5, 129.90) == 129.90


def test_margin_on_price():
    assert isclose(margin_on_price(200, 50), 75.0)
    assert margin_on_price(0, 50) == 0.0
