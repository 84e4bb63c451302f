"""
UC: Precificar produtos (gravar, recalcular, detalhar) e editar variações.

Fluxo de gravação:
1) Compõe o custo (insumos + embalagens + mão de obra + custo fixo rateado).
2) Inverte impostos/comissão/taxa/margem em um preço sugerido.
3) Mede a margem real no preço final escolhido (ou no sugerido).
4) Grava os campos derivados junto com o produto.

Obs.:
- Os campos derivados são um retrato do momento da gravação. Mudanças
  posteriores no preço dos insumos ou na estimativa de vendas NÃO
  alteram produtos já gravados; use ``recalculate_product`` /
  ``recalculate_all`` para atualizá-los explicitamente.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from fluctus.domain import variacoes
from fluctus.domain.composicao import (
    compose_cost,
    compose_kit,
    compose_variation_cost,
    find_by_id,
    kit_item_product_id,
)
from fluctus.domain.formulas import (
    fixed_cost_per_unit,
    realized_margin,
    resolve_price,
    suggest_price,
    unit_cost,
)
from fluctus.domain.models import PricingResult
from fluctus.domain.policies import margin_below_target, safe_val, same_id
from fluctus.infra.logger import log_precificacao, log_transaction
from fluctus.infra.repositories import KitRepo, ProductRepo
from fluctus.infra.storage import DataStore


INPUT_FIELDS = ("name", "description", "laborCost", "tax", "commission", "platformFee",
                "margin", "finalPrice", "materials", "selectedExtras", "variationTypes", "variations")


def price_product(product: Mapping[str, Any], total_cost: float) -> PricingResult:
    """Preço sugerido e margem real de um produto para um custo total."""
    tax = product.get("tax")
    commission = product.get("commission")
    fee = product.get("platformFee")
    suggested = suggest_price(total_cost, tax, commission, fee, product.get("margin"))
    final = safe_val(product.get("finalPrice"))
    real = realized_margin(total_cost, tax, commission, fee, final or suggested)
    return PricingResult(
        suggested_price=suggested,
        final_price=final,
        real_margin=real,
        below_target=margin_below_target(real, product.get("margin")),
    )


def derive_product(product: Mapping[str, Any], data: Mapping[str, Any], fixed_cpu: Optional[float] = None) -> Dict[str, Any]:
    """Devolve o produto com todos os campos derivados recalculados.

    Sem preço final informado, o sugerido passa a ser o preço final.
    """
    if fixed_cpu is None:
        fixed_cpu = fixed_cost_per_unit(data.get("fixedCosts"))
    cost = compose_cost(product, data.get("materials"), data.get("extras"), fixed_cpu)
    pricing = price_product(product, cost.total_cost)
    out = dict(product)
    out.update(
        materialCost=cost.material_cost,
        extrasCost=cost.extras_cost,
        fixedCostPerUnit=cost.fixed_cost_per_unit,
        totalCost=cost.total_cost,
        suggestedPrice=pricing.suggested_price,
        finalPrice=pricing.final_price or pricing.suggested_price,
        realMargin=pricing.real_margin,
    )
    return out


def save_product(store: DataStore, form: Mapping[str, Any], product_id: Any = None) -> Dict[str, Any]:
    """Cria (ou edita, se ``product_id``) um produto gravando o retrato de custos."""
    name = str(form.get("name") or "").strip()
    if not name:
        raise ValueError("produto precisa de um nome")
    try:
        with store.transaction() as data:
            repo = ProductRepo(data)
            base = dict(repo.require(product_id)) if product_id is not None else {}
            base.update({k: form[k] for k in INPUT_FIELDS if k in form})
            base["name"] = name
            for key in ("materials", "selectedExtras", "variationTypes", "variations"):
                base.setdefault(key, [])
            for key in ("laborCost", "tax", "commission", "platformFee", "margin", "finalPrice"):
                base[key] = safe_val(base.get(key))
            rec = derive_product(base, data)
            rec = repo.replace(product_id, rec) if product_id is not None else repo.add(rec)
        log_precificacao("save", "product", rec["id"], totalCost=rec["totalCost"], suggestedPrice=rec["suggestedPrice"])
        log_transaction("salvar_produto", {"id": rec["id"], "name": name}, result="success")
        return rec
    except Exception as e:
        log_transaction("salvar_produto", {"id": product_id, "name": name}, error=str(e))
        raise


def recalculate_product(store: DataStore, product_id: Any) -> Dict[str, Any]:
    """Atualiza explicitamente o retrato de custos com os preços atuais."""
    with store.transaction() as data:
        repo = ProductRepo(data)
        old = repo.require(product_id)
        rec = repo.replace(product_id, derive_product(old, data))
    log_precificacao("recalculate", "product", product_id,
                     before=old.get("totalCost"), after=rec["totalCost"])
    return rec


def recalculate_all(store: DataStore, recalculate_kits: bool = False) -> Dict[str, int]:
    """Recalcula todos os produtos (e, se pedido, todos os kits)."""
    with store.transaction() as data:
        repo = ProductRepo(data)
        fixed_cpu = fixed_cost_per_unit(data.get("fixedCosts"))
        for p in repo.get_all():
            repo.replace(p["id"], derive_product(p, data, fixed_cpu))
        kits = 0
        if recalculate_kits:
            from fluctus.usecases.kits import derive_kit
            kit_repo = KitRepo(data)
            for k in kit_repo.get_all():
                kit_repo.replace(k["id"], derive_kit(k, data))
                kits += 1
    result = {"products": len(store.data["products"]), "kits": kits}
    log_transaction("recalcular_tudo", {}, result=result)
    return result


def delete_product(store: DataStore, product_id: Any) -> bool:
    with store.transaction() as data:
        removed = ProductRepo(data).remove(product_id)
    log_precificacao("delete", "product", product_id, removed=removed)
    return removed


def kits_using_product(data: Mapping[str, Any], product_id: Any) -> List[Mapping[str, Any]]:
    return [
        k for k in data.get("kits") or []
        if any(same_id(kit_item_product_id(it), product_id) for it in k.get("items") or [])
    ]


# -------------------------
# Detalhamento (ficha técnica)
# -------------------------

def _breakdown_lines(lines, catalog, ref_key: str, missing_label: str) -> List[Dict[str, Any]]:
    out = []
    for ln in lines or []:
        item = find_by_id(catalog, ln.get(ref_key))
        qty = safe_val(ln.get("quantity"))
        if item is None:
            out.append({"nome": missing_label, "qtd": qty, "unidade": "", "custo_unit": 0.0, "custo": 0.0})
            continue
        uc = unit_cost(resolve_price(item), item.get("yield"))
        out.append({
            "nome": item.get("name"),
            "qtd": qty,
            "unidade": item.get("useUnit") or "",
            "custo_unit": uc,
            "custo": uc * qty,
        })
    return out


def product_breakdown(data: Mapping[str, Any], product_id: Any) -> Dict[str, Any]:
    """Ficha técnica ao vivo de um produto, comparada ao retrato gravado."""
    product = find_by_id(data.get("products"), product_id)
    if product is None:
        raise KeyError(f"Produto {product_id} não encontrado")
    fixed_cpu = fixed_cost_per_unit(data.get("fixedCosts"))
    live = compose_cost(product, data.get("materials"), data.get("extras"), fixed_cpu)
    pricing = price_product(product, live.total_cost)
    variations = []
    for v in product.get("variations") or []:
        vc = compose_variation_cost(product, v, data.get("materials"), data.get("extras"), fixed_cpu)
        variations.append({"nome": v.get("name"), "ativa": bool(v.get("active", True)), "custo": vc.total_cost})
    return {
        "produto": product.get("name"),
        "insumos": _breakdown_lines(product.get("materials"), data.get("materials"), "materialId", "Material não encontrado"),
        "embalagens": _breakdown_lines(product.get("selectedExtras"), data.get("extras"), "extraId", "Extra não encontrado"),
        "custo_atual": live,
        "preco_atual": pricing,
        "custo_gravado": safe_val(product.get("totalCost")),
        "desatualizado": abs(live.total_cost - safe_val(product.get("totalCost"))) > 0.005,
        "variacoes": variations,
    }


def kit_margins_for_product(data: Mapping[str, Any], product_id: Any) -> List[Dict[str, Any]]:
    """Margens ao vivo dos kits que usam o produto (para avaliar um recálculo)."""
    out = []
    for kit in kits_using_product(data, product_id):
        totals = compose_kit(kit, data.get("products"), data.get("extras"))
        out.append({"kit": kit.get("name"), "margem": totals.margin})
    return out


# -------------------------
# Variações
# -------------------------

def _edit_product(store: DataStore, product_id: Any, edit) -> Dict[str, Any]:
    with store.transaction() as data:
        repo = ProductRepo(data)
        rec = repo.replace(product_id, edit(repo.require(product_id)))
    log_precificacao("variations", "product", product_id, count=len(rec.get("variations") or []))
    return rec


def add_variation_type(store: DataStore, product_id: Any, name: str, options: List[str]) -> Dict[str, Any]:
    return _edit_product(store, product_id, lambda p: variacoes.add_variation_type(p, name, options))


def remove_variation_type(store: DataStore, product_id: Any, type_id: Any) -> Dict[str, Any]:
    return _edit_product(store, product_id, lambda p: variacoes.remove_variation_type(p, type_id))


def add_option(store: DataStore, product_id: Any, type_id: Any, option: str) -> Dict[str, Any]:
    return _edit_product(store, product_id, lambda p: variacoes.add_option(p, type_id, option))


def rename_option(store: DataStore, product_id: Any, type_id: Any, old: str, new: str) -> Dict[str, Any]:
    return _edit_product(store, product_id, lambda p: variacoes.rename_option(p, type_id, old, new))


def remove_option(store: DataStore, product_id: Any, type_id: Any, option: str) -> Dict[str, Any]:
    return _edit_product(store, product_id, lambda p: variacoes.remove_option(p, type_id, option))


def toggle_variation(store: DataStore, product_id: Any, variation_id: Any) -> Dict[str, Any]:
    return _edit_product(store, product_id, lambda p: variacoes.toggle_variation(p, variation_id))


def set_variation_lines(
    store: DataStore,
    product_id: Any,
    variation_id: Any,
    materials: Optional[List[Dict[str, Any]]] = None,
    selected_extras: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """Personaliza as listas de uma variação (somente as informadas)."""
    def edit(p):
        p = dict(p)
        found = False
        new_vars = []
        for v in p.get("variations") or []:
            if same_id(v.get("id"), variation_id):
                v = dict(v)
                if materials is not None:
                    v["materials"] = list(materials)
                if selected_extras is not None:
                    v["selectedExtras"] = list(selected_extras)
                found = True
            new_vars.append(v)
        if not found:
            raise KeyError(f"variação {variation_id} não encontrada")
        p["variations"] = new_vars
        return p
    return _edit_product(store, product_id, edit)
