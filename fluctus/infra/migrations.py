# fluctus/infra/migrations.py
"""
Migrações da raiz de dados (documento JSON) usando a chave ``schemaVersion``.

V1: chaves de topo ausentes recebem a forma vazia/zero
V2: campos aninhados opcionais (tags, purchases, comments, discounts,
    logisticsConfirmed, listas e percentuais de produto, cotações)
V3: referências explícitas nos kits (productId/extraId) e chaves das
    opções de variação

Cada passo apenas completa o que falta, então a migração roda em toda
carga (inclusive restauração de backup) sem alterar dados já completos.
"""

from __future__ import annotations

import copy
from typing import Any, Callable, Dict, List

from fluctus.config import DEFAULTS
from fluctus.domain.policies import safe_val
from fluctus.domain.fundo import refresh_fund
from fluctus.domain.totais import trip_totals
from fluctus.domain.variacoes import ensure_option_keys


CURRENT_VERSION = 3

COLLECTIONS: List[str] = [
    "materials",
    "extras",
    "suppliers",
    "polos",
    "clients",
    "products",
    "expenses",
    "kits",
    "shoppingTrips",
    "promotions",
]


def empty_data() -> Dict[str, Any]:
    """Raiz de dados vazia, já na versão atual."""
    return migrate_data({})


def _ensure(rec: Dict[str, Any], key: str, factory: Callable[[], Any]) -> None:
    """Preenche ``rec[key]`` se ausente ou nulo."""
    if rec.get(key) is None:
        rec[key] = factory()


def _apply_v1(data: Dict[str, Any]) -> None:
    for name in COLLECTIONS:
        if not isinstance(data.get(name), list):
            data[name] = []

    fixed = data.get("fixedCosts")
    if not isinstance(fixed, dict):
        fixed = {}
        data["fixedCosts"] = fixed
    _ensure(fixed, "items", list)
    _ensure(fixed, "estimatedSales", lambda: DEFAULTS.estimated_sales)
    _ensure(fixed, "total", lambda: sum(safe_val(i.get("value")) for i in fixed["items"]))

    fund = data.get("logisticsFund")
    if not isinstance(fund, dict):
        fund = {}
        data["logisticsFund"] = fund
    _ensure(fund, "deposits", list)


def _apply_v2(data: Dict[str, Any]) -> None:
    for item in data["materials"] + data["extras"]:
        _ensure(item, "quotes", list)

    for client in data["clients"]:
        _ensure(client, "tags", list)
        _ensure(client, "purchases", list)
        _ensure(client, "comments", list)
        _ensure(client, "discounts", list)

    for trip in data["shoppingTrips"]:
        _ensure(trip, "logistics", list)
        _ensure(trip, "invoices", list)
        _ensure(trip, "status", lambda: "open")
        _ensure(trip, "logisticsConfirmed", lambda: False)
        for inv in trip["invoices"]:
            _ensure(inv, "items", list)
            _ensure(inv, "discount", lambda: 0)
            _ensure(inv, "discountType", lambda: "value")
        if any(trip.get(k) is None for k in ("totalLogistics", "totalGoods", "grandTotal")):
            totals = trip_totals(trip)
            trip["totalLogistics"] = totals.total_logistics
            trip["totalGoods"] = totals.total_goods
            trip["grandTotal"] = totals.grand_total

    for product in data["products"]:
        for key in ("materials", "selectedExtras", "variationTypes", "variations"):
            _ensure(product, key, list)
        for key in ("laborCost", "tax", "commission", "platformFee", "margin",
                    "finalPrice", "totalCost", "suggestedPrice", "realMargin",
                    "materialCost", "extrasCost", "fixedCostPerUnit"):
            _ensure(product, key, lambda: 0)

    for kit in data["kits"]:
        _ensure(kit, "items", list)
        _ensure(kit, "kitExtras", list)
        for key in ("discount", "finalPrice", "totalProductionCost", "displayPrice", "margin", "rawTotal"):
            _ensure(kit, key, lambda: 0)

    for promo in data["promotions"]:
        _ensure(promo, "totalGiven", lambda: 0)
        _ensure(promo, "totalUsed", lambda: 0)
        _ensure(promo, "targetType", lambda: "all")
        _ensure(promo, "active", lambda: True)


def _apply_v3(data: Dict[str, Any]) -> None:
    for kit in data["kits"]:
        for item in kit["items"]:
            if item.get("productId") is None and item.get("id") is not None:
                item["productId"] = item["id"]
        for ke in kit["kitExtras"]:
            if ke.get("extraId") is None and ke.get("id") is not None:
                ke["extraId"] = ke["id"]

    for product in data["products"]:
        product["variationTypes"] = [ensure_option_keys(vt) for vt in product["variationTypes"]]


def migrate_data(raw: Any) -> Dict[str, Any]:
    """Devolve uma cópia migrada da raiz de dados (a entrada não é alterada)."""
    data: Dict[str, Any] = copy.deepcopy(raw) if isinstance(raw, dict) else {}
    _apply_v1(data)
    _apply_v2(data)
    _apply_v3(data)
    data["logisticsFund"] = refresh_fund(data["logisticsFund"], data["shoppingTrips"])
    data["schemaVersion"] = CURRENT_VERSION
    return data
