"""
Composição de custos: produto, variação e kit.

Os compositores somam as linhas de insumos e embalagens de um produto
(custo unitário arredondado para cima uma única vez por linha,
multiplicado pela quantidade) e agregam os produtos de um kit.

Referências pendentes (insumo, embalagem ou produto excluído) não
geram erro: a linha contribui com custo zero.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Mapping, Optional

from fluctus.domain.formulas import (
    discounted_price,
    margin_on_price,
    resolve_price,
    unit_cost,
)
from fluctus.domain.models import KitTotals, ProductCost
from fluctus.domain.policies import safe_val, same_id


def find_by_id(collection: Optional[Iterable[Mapping[str, Any]]], item_id: Any) -> Optional[Mapping[str, Any]]:
    """Busca por id; ``None`` quando o registro não existe mais."""
    for rec in collection or []:
        if same_id(rec.get("id"), item_id):
            return rec
    return None


def line_cost(item: Optional[Mapping[str, Any]], quantity: Any) -> float:
    """Custo de uma linha da ficha técnica (zero se o item sumiu do catálogo)."""
    if item is None:
        return 0.0
    return unit_cost(resolve_price(item), item.get("yield")) * safe_val(quantity)


def _lines_cost(lines, catalog, ref_key: str) -> float:
    return sum(line_cost(find_by_id(catalog, ln.get(ref_key)), ln.get("quantity")) for ln in lines or [])


def compose_cost(
    product: Mapping[str, Any],
    materials_catalog: Iterable[Mapping[str, Any]],
    extras_catalog: Iterable[Mapping[str, Any]],
    fixed_cost_per_unit: float,
) -> ProductCost:
    """Custo total = insumos + embalagens + mão de obra + custo fixo rateado."""
    materials_catalog = list(materials_catalog or [])
    extras_catalog = list(extras_catalog or [])
    material_cost = _lines_cost(product.get("materials"), materials_catalog, "materialId")
    extras_cost = _lines_cost(product.get("selectedExtras"), extras_catalog, "extraId")
    labor = safe_val(product.get("laborCost"))
    fixed = safe_val(fixed_cost_per_unit)
    return ProductCost(
        material_cost=material_cost,
        extras_cost=extras_cost,
        labor_cost=labor,
        fixed_cost_per_unit=fixed,
        total_cost=material_cost + extras_cost + labor + fixed,
    )


def compose_variation_cost(
    product: Mapping[str, Any],
    variation: Mapping[str, Any],
    materials_catalog: Iterable[Mapping[str, Any]],
    extras_catalog: Iterable[Mapping[str, Any]],
    fixed_cost_per_unit: float,
) -> ProductCost:
    """Mesmo cálculo do produto, usando as listas próprias da variação.

    Uma lista ausente (``None``) herda a do produto base; uma lista vazia
    é uma personalização válida (a variação não usa nenhum item).
    """
    materials = variation.get("materials")
    extras = variation.get("selectedExtras")
    merged = dict(product)
    merged["materials"] = product.get("materials") if materials is None else materials
    merged["selectedExtras"] = product.get("selectedExtras") if extras is None else extras
    return compose_cost(merged, materials_catalog, extras_catalog, fixed_cost_per_unit)


# -------------------------
# Kits
# -------------------------

def kit_item_product_id(item: Mapping[str, Any]) -> Any:
    # Itens antigos guardavam o produto em "id"
    pid = item.get("productId")
    return item.get("id") if pid is None else pid


def kit_extra_id(kit_extra: Mapping[str, Any]) -> Any:
    eid = kit_extra.get("extraId")
    return kit_extra.get("id") if eid is None else eid


def product_unit_price(product: Mapping[str, Any]) -> float:
    """Preço de venda cheio de um produto: o final, ou o sugerido."""
    return safe_val(product.get("finalPrice")) or safe_val(product.get("suggestedPrice"))


def compose_kit(
    kit: Mapping[str, Any],
    products_catalog: Iterable[Mapping[str, Any]],
    extras_catalog: Iterable[Mapping[str, Any]],
) -> KitTotals:
    """Totais do kit a partir dos produtos gravados e das embalagens do kit.

    Com ``withoutPackaging`` o custo de embalagens do produto é retirado
    tanto do preço cheio quanto do custo de produção.
    """
    products_catalog = list(products_catalog or [])
    extras_catalog = list(extras_catalog or [])

    raw_total = 0.0
    production_cost = 0.0
    for item in kit.get("items") or []:
        product = find_by_id(products_catalog, kit_item_product_id(item))
        if product is None:
            continue
        qty = safe_val(item.get("qty"))
        packaging = safe_val(product.get("extrasCost")) if item.get("withoutPackaging") else 0.0
        raw_total += (product_unit_price(product) - packaging) * qty
        production_cost += (safe_val(product.get("totalCost")) - packaging) * qty

    for ke in kit.get("kitExtras") or []:
        production_cost += line_cost(find_by_id(extras_catalog, kit_extra_id(ke)), ke.get("qty"))

    display_price = discounted_price(raw_total, kit.get("discount"), kit.get("finalPrice"))
    return KitTotals(
        raw_total=raw_total,
        total_production_cost=production_cost,
        display_price=display_price,
        margin=margin_on_price(display_price, production_cost),
    )


def sync_kit_extras(kit: Mapping[str, Any], products_catalog: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Soma as embalagens dos produtos do kit (× quantidade) por extraId.

    Ação pontual de conveniência: o resultado substitui ``kitExtras`` uma
    vez e não fica vinculado aos produtos.
    """
    products_catalog = list(products_catalog or [])
    totals: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
    for item in kit.get("items") or []:
        product = find_by_id(products_catalog, kit_item_product_id(item))
        if product is None:
            continue
        qty = safe_val(item.get("qty"))
        for pe in product.get("selectedExtras") or []:
            extra_id = pe.get("extraId")
            if extra_id is None:
                continue
            key = str(extra_id)
            if key not in totals:
                totals[key] = {"extraId": extra_id, "qty": 0.0}
            totals[key]["qty"] += safe_val(pe.get("quantity")) * qty
    return list(totals.values())
