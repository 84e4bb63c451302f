"""
UC: Kits (combinações de produtos vendidas juntas).

O kit usa os preços e custos GRAVADOS nos produtos (retrato do momento
em que cada produto foi salvo). Os totais do kit também são um retrato:
use ``recalculate_kit`` depois de recalcular os produtos.
"""
from __future__ import annotations

import copy
from typing import Any, Dict, Mapping

from fluctus.domain.composicao import compose_kit, sync_kit_extras
from fluctus.domain.policies import safe_val
from fluctus.infra.logger import log_precificacao, log_transaction
from fluctus.infra.repositories import KitRepo
from fluctus.infra.storage import DataStore


COPY_SUFFIX = " (Cópia)"


def _clean_items(items) -> list:
    out = []
    for it in items or []:
        pid = it.get("productId", it.get("id"))
        if pid is None:
            continue
        qty = it.get("qty")
        if qty is None or qty == "":
            qty = 1
        elif safe_val(qty) <= 0:
            raise ValueError(f"quantidade inválida para o produto {pid}: {qty}")
        out.append({
            "productId": pid,
            "qty": safe_val(qty),
            "withoutPackaging": bool(it.get("withoutPackaging", False)),
        })
    return out


def _clean_extras(extras) -> list:
    return [
        {"extraId": ke.get("extraId", ke.get("id")), "qty": safe_val(ke.get("qty"))}
        for ke in extras or []
        if ke.get("extraId", ke.get("id")) is not None
    ]


def derive_kit(kit: Mapping[str, Any], data: Mapping[str, Any]) -> Dict[str, Any]:
    """Devolve o kit com rawTotal / totalProductionCost / displayPrice / margin."""
    totals = compose_kit(kit, data.get("products"), data.get("extras"))
    out = dict(kit)
    out.update(
        rawTotal=totals.raw_total,
        totalProductionCost=totals.total_production_cost,
        displayPrice=totals.display_price,
        margin=totals.margin,
    )
    return out


def save_kit(store: DataStore, form: Mapping[str, Any], kit_id: Any = None) -> Dict[str, Any]:
    """Cria (ou edita) um kit. ``finalPrice`` 0 significa "usar o desconto"."""
    name = str(form.get("name") or "").strip()
    if not name:
        raise ValueError("kit precisa de um nome")
    try:
        with store.transaction() as data:
            repo = KitRepo(data)
            base = dict(repo.require(kit_id)) if kit_id is not None else {}
            base["name"] = name
            if "items" in form or "items" not in base:
                base["items"] = _clean_items(form.get("items"))
            if "kitExtras" in form or "kitExtras" not in base:
                base["kitExtras"] = _clean_extras(form.get("kitExtras"))
            for key in ("discount", "finalPrice"):
                if key in form or key not in base:
                    base[key] = safe_val(form.get(key))
            rec = derive_kit(base, data)
            rec = repo.replace(kit_id, rec) if kit_id is not None else repo.add(rec)
        log_precificacao("save", "kit", rec["id"], displayPrice=rec["displayPrice"], margin=rec["margin"])
        log_transaction("salvar_kit", {"id": rec["id"], "name": name}, result="success")
        return rec
    except Exception as e:
        log_transaction("salvar_kit", {"id": kit_id, "name": name}, error=str(e))
        raise


def recalculate_kit(store: DataStore, kit_id: Any) -> Dict[str, Any]:
    with store.transaction() as data:
        repo = KitRepo(data)
        rec = repo.replace(kit_id, derive_kit(repo.require(kit_id), data))
    log_precificacao("recalculate", "kit", kit_id, displayPrice=rec["displayPrice"])
    return rec


def duplicate_kit(store: DataStore, kit_id: Any) -> Dict[str, Any]:
    with store.transaction() as data:
        repo = KitRepo(data)
        clone = copy.deepcopy(repo.require(kit_id))
        clone["id"] = None
        clone["name"] = f"{clone.get('name', '')}{COPY_SUFFIX}"
        rec = repo.add(clone)
    log_precificacao("duplicate", "kit", rec["id"], source=kit_id)
    return rec


def apply_kit_extras_sync(store: DataStore, kit_id: Any) -> Dict[str, Any]:
    """Preenche as embalagens do kit com as embalagens dos seus produtos."""
    with store.transaction() as data:
        repo = KitRepo(data)
        kit = dict(repo.require(kit_id))
        kit["kitExtras"] = sync_kit_extras(kit, data.get("products"))
        rec = repo.replace(kit_id, derive_kit(kit, data))
    log_precificacao("sync_extras", "kit", kit_id, extras=len(rec["kitExtras"]))
    return rec


def delete_kit(store: DataStore, kit_id: Any) -> bool:
    with store.transaction() as data:
        removed = KitRepo(data).remove(kit_id)
    log_precificacao("delete", "kit", kit_id, removed=removed)
    return removed
