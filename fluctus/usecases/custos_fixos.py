"""
UC: Custos fixos mensais e estimativa de vendas (rateio).

Incluir, alterar ou remover um item recalcula ``total`` como a soma dos
itens; mudar a estimativa de vendas não mexe no total. Produtos já gravados não mudam
quando o rateio muda (veja ``precificacao.recalculate_all``).
"""
from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from fluctus.domain.formulas import fixed_cost_per_unit
from fluctus.domain.models import FixedCostItem
from fluctus.domain.policies import safe_val, same_id
from fluctus.infra.logger import log_transaction
from fluctus.infra.repositories import next_id
from fluctus.infra.storage import DataStore


def _with_total(fixed: Dict[str, Any]) -> Dict[str, Any]:
    fixed["total"] = sum(safe_val(i.get("value")) for i in fixed.get("items") or [])
    return fixed


def _fixed(data: Dict[str, Any]) -> Dict[str, Any]:
    fixed = dict(data.get("fixedCosts") or {})
    fixed["items"] = list(fixed.get("items") or [])
    return fixed


def add_fixed_cost_item(store: DataStore, name: str, value: Any) -> Dict[str, Any]:
    if not str(name or "").strip():
        raise ValueError("custo fixo precisa de um nome")
    with store.transaction() as data:
        fixed = _fixed(data)
        item = asdict(FixedCostItem(id=next_id(fixed["items"]), name=str(name).strip(), value=safe_val(value)))
        fixed["items"].append(item)
        data["fixedCosts"] = _with_total(fixed)
    log_transaction("custo_fixo_add", item, result={"total": store.data["fixedCosts"]["total"]})
    return store.data["fixedCosts"]


def update_fixed_cost_item(store: DataStore, item_id: Any, name: Any = None, value: Any = None) -> Dict[str, Any]:
    with store.transaction() as data:
        fixed = _fixed(data)
        for i, it in enumerate(fixed["items"]):
            if same_id(it.get("id"), item_id):
                it = dict(it)
                if name is not None:
                    it["name"] = str(name).strip()
                if value is not None:
                    it["value"] = safe_val(value)
                fixed["items"][i] = it
                break
        else:
            raise KeyError(f"custo fixo {item_id} não encontrado")
        data["fixedCosts"] = _with_total(fixed)
    log_transaction("custo_fixo_update", {"id": item_id}, result={"total": store.data["fixedCosts"]["total"]})
    return store.data["fixedCosts"]


def remove_fixed_cost_item(store: DataStore, item_id: Any) -> Dict[str, Any]:
    with store.transaction() as data:
        fixed = _fixed(data)
        fixed["items"] = [i for i in fixed["items"] if not same_id(i.get("id"), item_id)]
        data["fixedCosts"] = _with_total(fixed)
    log_transaction("custo_fixo_remove", {"id": item_id}, result={"total": store.data["fixedCosts"]["total"]})
    return store.data["fixedCosts"]


def set_estimated_sales(store: DataStore, estimated: Any) -> Dict[str, Any]:
    # zero desliga o rateio (custo fixo por unidade = 0)
    if safe_val(estimated) < 0:
        raise ValueError("a estimativa de vendas não pode ser negativa")
    with store.transaction() as data:
        fixed = _fixed(data)
        fixed["estimatedSales"] = safe_val(estimated)
        data["fixedCosts"] = fixed
    log_transaction("estimativa_vendas", {"estimatedSales": estimated},
                    result={"perUnit": fixed_cost_per_unit(store.data["fixedCosts"])})
    return store.data["fixedCosts"]
