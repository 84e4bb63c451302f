"""
Totais das viagens de compras e do fundo de logística.

Funções puras: recebem os registros (dicionários) e devolvem os totais.
A gravação dos totais desnormalizados fica a cargo dos casos de uso.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from fluctus.domain.models import FundSummary, TripTotals
from fluctus.domain.policies import safe_val


def item_counts(item: Mapping[str, Any]) -> bool:
    """Linhas marcadas com ``includeInTotal=False`` não entram no total."""
    return item.get("includeInTotal") is not False


def invoice_items_total(invoice: Mapping[str, Any]) -> float:
    return sum(
        safe_val(it.get("qty")) * safe_val(it.get("price"))
        for it in invoice.get("items") or []
        if item_counts(it)
    )


def invoice_discount(invoice: Mapping[str, Any], items_total: Optional[float] = None) -> float:
    """Desconto da nota: percentual sobre os itens ou valor fixo."""
    if items_total is None:
        items_total = invoice_items_total(invoice)
    discount = safe_val(invoice.get("discount"))
    if invoice.get("discountType") == "percent":
        return items_total * discount / 100.0
    return discount


def invoice_total(invoice: Mapping[str, Any]) -> float:
    items_total = invoice_items_total(invoice)
    return items_total - invoice_discount(invoice, items_total)


def trip_totals(trip: Mapping[str, Any]) -> TripTotals:
    """Logística + mercadorias (notas já descontadas) de uma viagem."""
    total_logistics = sum(safe_val(l.get("value")) for l in trip.get("logistics") or [])
    total_goods = sum(invoice_total(inv) for inv in trip.get("invoices") or [])
    return TripTotals(
        total_logistics=total_logistics,
        total_goods=total_goods,
        grand_total=total_logistics + total_goods,
    )


def fund_summary(fund: Optional[Mapping[str, Any]], trips: Iterable[Mapping[str, Any]]) -> FundSummary:
    """Saldo do fundo: depósitos menos a logística das viagens confirmadas.

    Saldo negativo é um estado válido (o fundo precisa de reforço).
    """
    deposits = (fund or {}).get("deposits") or []
    total_deposited = sum(safe_val(d.get("value")) for d in deposits)
    total_spent = sum(
        safe_val(t.get("totalLogistics"))
        for t in trips or []
        if t.get("logisticsConfirmed") is True
    )
    return FundSummary(
        total_deposited=total_deposited,
        total_spent=total_spent,
        balance=total_deposited - total_spent,
    )


def total_spent_on_trips(trips: Iterable[Mapping[str, Any]]) -> float:
    """Total gasto em todas as viagens (painel)."""
    return sum(safe_val(t.get("grandTotal")) for t in trips or [])
