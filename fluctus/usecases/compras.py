"""
UC: Viagens de compras (logística, notas fiscais e itens).

Regras:
- Toda alteração de logística, nota ou item recalcula e grava os totais
  da viagem (totalLogistics, totalGoods, grandTotal) no mesmo passo.
- Itens com includeInTotal=False aparecem na nota mas não somam.
- Se a viagem já tinha a logística confirmada, o fundo é recalculado junto.
"""
from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import Any, Callable, Dict, Optional

from fluctus.domain.composicao import find_by_id
from fluctus.domain.formulas import quoted_price_for_supplier
from fluctus.domain.fundo import refresh_fund
from fluctus.domain.models import InvoiceItem, LogisticsItem
from fluctus.domain.policies import safe_val, same_id
from fluctus.domain.totais import trip_totals
from fluctus.infra.logger import log_compra, log_transaction
from fluctus.infra.repositories import TripRepo, catalog_for, next_id
from fluctus.infra.storage import DataStore


LOGISTICS_TYPES = ("transport", "food")
ITEM_TYPES = ("material", "extra", "other")
DISCOUNT_TYPES = ("value", "percent")


def with_totals(trip: Dict[str, Any]) -> Dict[str, Any]:
    """Devolve a viagem com os totais desnormalizados atualizados."""
    t = dict(trip)
    totals = trip_totals(t)
    t["totalLogistics"] = totals.total_logistics
    t["totalGoods"] = totals.total_goods
    t["grandTotal"] = totals.grand_total
    return t


def _mutate_trip(store: DataStore, trip_id: Any, action: str, edit: Callable[[Dict[str, Any], Dict[str, Any]], Dict[str, Any]], **log_kw) -> Dict[str, Any]:
    try:
        with store.transaction() as data:
            repo = TripRepo(data)
            trip = dict(repo.require(trip_id))
            rec = repo.replace(trip_id, with_totals(edit(trip, data)))
            if rec.get("logisticsConfirmed") is True:
                data["logisticsFund"] = refresh_fund(data.get("logisticsFund"), data["shoppingTrips"])
        log_compra(action, trip_id, grandTotal=rec["grandTotal"], **log_kw)
        return rec
    except Exception as e:
        log_transaction(f"viagem_{action}", {"trip_id": trip_id, **log_kw}, error=str(e))
        raise


def _find_invoice(trip: Dict[str, Any], invoice_id: Any) -> int:
    for i, inv in enumerate(trip.get("invoices") or []):
        if same_id(inv.get("id"), invoice_id):
            return i
    raise KeyError(f"Nota {invoice_id} não encontrada na viagem {trip.get('id')}")


# -------------------------
# Viagem
# -------------------------

def create_trip(store: DataStore, day: Optional[str] = None) -> Dict[str, Any]:
    trip = with_totals({
        "date": day or date.today().isoformat(),
        "status": "open",
        "logistics": [],
        "invoices": [],
        "logisticsConfirmed": False,
    })
    with store.transaction() as data:
        rec = TripRepo(data).add(trip)
    log_compra("create", rec["id"], date=rec["date"])
    log_transaction("criar_viagem", rec, result="success")
    return rec


def toggle_trip_status(store: DataStore, trip_id: Any) -> Dict[str, Any]:
    def edit(t, _data):
        t["status"] = "open" if t.get("status") == "completed" else "completed"
        return t
    return _mutate_trip(store, trip_id, "toggle_status", edit)


def delete_trip(store: DataStore, trip_id: Any) -> bool:
    with store.transaction() as data:
        removed = TripRepo(data).remove(trip_id)
        data["logisticsFund"] = refresh_fund(data.get("logisticsFund"), data["shoppingTrips"])
    log_compra("delete", trip_id, removed=removed)
    return removed


# -------------------------
# Logística
# -------------------------

def add_logistics(store: DataStore, trip_id: Any, type_: str, desc: str, value: Any) -> Dict[str, Any]:
    if type_ not in LOGISTICS_TYPES:
        raise ValueError(f"tipo de logística inválido: {type_!r}")

    def edit(t, _data):
        items = list(t.get("logistics") or [])
        items.append(asdict(LogisticsItem(id=next_id(items), type=type_, desc=desc, value=safe_val(value))))
        t["logistics"] = items
        return t
    return _mutate_trip(store, trip_id, "add_logistics", edit, value=value)


def remove_logistics(store: DataStore, trip_id: Any, item_id: Any) -> Dict[str, Any]:
    def edit(t, _data):
        t["logistics"] = [l for l in t.get("logistics") or [] if not same_id(l.get("id"), item_id)]
        return t
    return _mutate_trip(store, trip_id, "remove_logistics", edit, item_id=item_id)


# -------------------------
# Notas fiscais
# -------------------------

def start_invoice(store: DataStore, trip_id: Any, supplier_id: Any) -> Dict[str, Any]:
    """Abre uma nota (vazia) de um fornecedor dentro da viagem."""
    def edit(t, _data):
        invoices = list(t.get("invoices") or [])
        invoices.append({
            "id": next_id(invoices),
            "supplierId": supplier_id,
            "discount": 0,
            "discountValue": 0,
            "discountType": "value",
            "items": [],
        })
        t["invoices"] = invoices
        return t
    return _mutate_trip(store, trip_id, "start_invoice", edit, supplier_id=supplier_id)


def add_invoice_item(
    store: DataStore,
    trip_id: Any,
    invoice_id: Any,
    type_: str,
    qty: Any,
    item_id: Any = None,
    price: Any = None,
    description: Optional[str] = None,
    include_in_total: bool = True,
) -> Dict[str, Any]:
    """Acrescenta um item à nota.

    Sem ``price`` explícito, o preço é pré-preenchido com a cotação do
    fornecedor da nota para o insumo/extra (ou o preço de referência).
    """
    if type_ not in ITEM_TYPES:
        raise ValueError(f"tipo de item inválido: {type_!r}")

    def edit(t, data):
        invoices = list(t.get("invoices") or [])
        idx = _find_invoice(t, invoice_id)
        inv = dict(invoices[idx])
        unit_price = price
        if unit_price is None:
            item = find_by_id(catalog_for(data, type_).rows, item_id) if type_ != "other" else None
            unit_price = quoted_price_for_supplier(item, inv.get("supplierId"))
        line = asdict(InvoiceItem(
            id=item_id,
            type=type_,
            qty=safe_val(qty),
            price=safe_val(unit_price),
            description=description,
            includeInTotal=bool(include_in_total),
        ))
        inv["items"] = list(inv.get("items") or []) + [line]
        invoices[idx] = inv
        t["invoices"] = invoices
        return t
    return _mutate_trip(store, trip_id, "add_item", edit, invoice_id=invoice_id, qty=qty)


def remove_invoice_item(store: DataStore, trip_id: Any, invoice_id: Any, index: int) -> Dict[str, Any]:
    """Remove o item pela posição na nota (ids de item repetem o insumo)."""
    def edit(t, _data):
        invoices = list(t.get("invoices") or [])
        idx = _find_invoice(t, invoice_id)
        inv = dict(invoices[idx])
        items = list(inv.get("items") or [])
        if not 0 <= index < len(items):
            raise KeyError(f"item {index} não existe na nota {invoice_id}")
        del items[index]
        inv["items"] = items
        invoices[idx] = inv
        t["invoices"] = invoices
        return t
    return _mutate_trip(store, trip_id, "remove_item", edit, invoice_id=invoice_id, index=index)


def finalize_invoice(store: DataStore, trip_id: Any, invoice_id: Any, discount: Any = 0, discount_type: str = "value") -> Dict[str, Any]:
    """Fecha a nota aplicando o desconto (valor fixo ou percentual)."""
    if discount_type not in DISCOUNT_TYPES:
        raise ValueError(f"tipo de desconto inválido: {discount_type!r}")

    def edit(t, _data):
        invoices = list(t.get("invoices") or [])
        idx = _find_invoice(t, invoice_id)
        inv = dict(invoices[idx])
        inv["discount"] = safe_val(discount)
        inv["discountType"] = discount_type
        inv["discountValue"] = safe_val(discount) if discount_type == "value" else 0
        invoices[idx] = inv
        t["invoices"] = invoices
        return t
    return _mutate_trip(store, trip_id, "finalize_invoice", edit, invoice_id=invoice_id, discount=discount)


def remove_invoice(store: DataStore, trip_id: Any, invoice_id: Any) -> Dict[str, Any]:
    def edit(t, _data):
        idx = _find_invoice(t, invoice_id)
        invoices = list(t.get("invoices") or [])
        del invoices[idx]
        t["invoices"] = invoices
        return t
    return _mutate_trip(store, trip_id, "remove_invoice", edit, invoice_id=invoice_id)
