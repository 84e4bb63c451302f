"""
Pricing formulas for the garment costing engine.

These functions implement the leaf rules of the cost model: which
supplier quote prices an item, how a purchase price becomes a cost per
use-unit, how monthly fixed costs are spread over the expected sales
volume, and how a target margin is inverted into a sale price.

All functions are pure: they depend solely on their inputs and do
not modify any external state. Degenerate inputs (zero yield, a
pricing divisor that is not positive, a zero price) never raise; they
are replaced by a safe fallback value.
"""

from typing import Any, Mapping, Optional

from fluctus.domain.policies import arredonda_para_cima, safe_val, same_id


def _selected_quote(item: Mapping[str, Any]) -> Optional[Mapping[str, Any]]:
    selected = item.get("selectedQuoteId")
    if selected is None:
        return None
    for quote in item.get("quotes") or []:
        if same_id(quote.get("id"), selected):
            return quote
    return None


def resolve_price(item: Optional[Mapping[str, Any]]) -> float:
    """Return the purchase price used for a material or an extra.

    Resolution order:

    1. the quote referenced by ``selectedQuoteId``, if it still exists;
    2. the cheapest quote;
    3. the item's own ``price``;
    4. ``0``.

    Materials and extras follow exactly the same rule.
    """
    if not item:
        return 0.0
    quote = _selected_quote(item)
    if quote is not None:
        return safe_val(quote.get("price"))
    quotes = sorted(item.get("quotes") or [], key=lambda q: safe_val(q.get("price")))
    if quotes:
        return safe_val(quotes[0].get("price"))
    return safe_val(item.get("price"))


def quoted_price_for_supplier(item: Optional[Mapping[str, Any]], supplier_id: Any) -> float:
    """Return the price a given supplier quoted for ``item``.

    Used to pre-fill invoice lines during a shopping trip. When the
    supplier has no quote for the item, the selected quote (or the
    item's fallback price) is used instead.
    """
    if not item:
        return 0.0
    for quote in item.get("quotes") or []:
        if same_id(quote.get("supplierId"), supplier_id):
            return safe_val(quote.get("price"))
    quote = _selected_quote(item)
    if quote is not None and safe_val(quote.get("price")):
        return safe_val(quote.get("price"))
    return safe_val(item.get("price"))


def unit_cost(price: Any, yield_val: Any) -> float:
    """Compute the cost of one use-unit.

    ``price / yield``, with a non-positive yield treated as ``1``. The
    result is rounded *up* to two decimals so that a small positive cost
    never shows as ``0.00``. Callers multiply this value by the line
    quantity and sum without rounding again.
    """
    y = safe_val(yield_val)
    return arredonda_para_cima(safe_val(price) / (y if y > 0 else 1.0))


def fixed_cost_per_unit(fixed_costs: Optional[Mapping[str, Any]]) -> float:
    """Spread the monthly fixed-cost pool over the estimated unit sales."""
    if not fixed_costs:
        return 0.0
    estimated = safe_val(fixed_costs.get("estimatedSales"))
    if estimated <= 0:
        return 0.0
    return safe_val(fixed_costs.get("total")) / estimated


def suggest_price(total_cost: Any, tax: Any, commission: Any, platform_fee: Any, margin: Any) -> float:
    """Invert the deduction structure into a suggested sale price.

    Tax, commission, platform fee and margin are all percentages of the
    sale price ``P``, so ``P * (1 - sum/100) = total_cost``. When the
    percentages reach 100 % the divisor is not positive and the price
    falls back to twice the cost.
    """
    cost = safe_val(total_cost)
    divisor = 1.0 - (safe_val(tax) + safe_val(commission) + safe_val(platform_fee) + safe_val(margin)) / 100.0
    if divisor <= 0:
        return cost * 2
    return cost / divisor


def realized_margin(total_cost: Any, tax: Any, commission: Any, platform_fee: Any, final_price: Any) -> float:
    """Compute the margin (in %) actually obtained at ``final_price``."""
    price = safe_val(final_price)
    if price <= 0:
        return 0.0
    deductions = safe_val(tax) + safe_val(commission) + safe_val(platform_fee)
    costs_at_price = safe_val(total_cost) + price * deductions / 100.0
    return (price - costs_at_price) / price * 100.0


def discounted_price(raw_total: Any, discount: Any, final_price: Any = 0) -> float:
    """An explicit final price wins; otherwise apply the % discount."""
    final = safe_val(final_price)
    if final > 0:
        return final
    return safe_val(raw_total) * (1.0 - safe_val(discount) / 100.0)


def margin_on_price(price: Any, cost: Any) -> float:
    """Gross margin (in %) of ``price`` over ``cost``; ``0`` for a zero price."""
    p = safe_val(price)
    if p <= 0:
        return 0.0
    return (p - safe_val(cost)) / p * 100.0
