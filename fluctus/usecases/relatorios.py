"""
Relatórios do painel:
- visão geral (contagens, total gasto em viagens, saldo do fundo)
- produtos com margem real x alvo
- kits com preço de venda e margem
- viagens com totais e situação da logística
- próximos aniversariantes
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from fluctus.domain.composicao import find_by_id
from fluctus.domain.formulas import fixed_cost_per_unit
from fluctus.domain.policies import margin_below_target, safe_val
from fluctus.domain.totais import fund_summary, total_spent_on_trips
from fluctus.domain.variacoes import active_variations
from fluctus.infra.logger import log_system_event
from fluctus.infra.repositories import SupplierRepo
from fluctus.usecases.promocoes import is_promotion_expired, upcoming_birthdays


def total_spent(trips) -> float:
    """Total gasto em compras (mercadorias + logística) de todas as viagens."""
    return total_spent_on_trips(trips)


def visao_geral(data: Mapping[str, Any], today: Optional[date] = None) -> Dict[str, Any]:
    log_system_event("relatorio_visao_geral")
    fund = fund_summary(data.get("logisticsFund"), data.get("shoppingTrips"))
    promos = data.get("promotions") or []
    return {
        "materiais": len(data.get("materials") or []),
        "extras": len(data.get("extras") or []),
        "produtos": len(data.get("products") or []),
        "kits": len(data.get("kits") or []),
        "clientes": len(data.get("clients") or []),
        "viagens": len(data.get("shoppingTrips") or []),
        "total_gasto": total_spent(data.get("shoppingTrips")),
        "saldo_fundo": fund.balance,
        "custo_fixo_unitario": fixed_cost_per_unit(data.get("fixedCosts")),
        "promocoes_ativas": sum(1 for p in promos if p.get("active", True) and not is_promotion_expired(p, today)),
        "aniversariantes": upcoming_birthdays(data.get("clients"), today),
    }


def relatorio_produtos(data: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """Linhas do catálogo de produtos (valores gravados na última gravação)."""
    rows = []
    for p in data.get("products") or []:
        final = safe_val(p.get("finalPrice"))
        rows.append({
            "id": p.get("id"),
            "nome": p.get("name"),
            "custo": safe_val(p.get("totalCost")),
            "sugerido": safe_val(p.get("suggestedPrice")),
            "final": final,
            "margem_alvo": safe_val(p.get("margin")),
            "margem_real": safe_val(p.get("realMargin")),
            "abaixo_alvo": margin_below_target(p.get("realMargin"), p.get("margin")),
            "variacoes_ativas": len(active_variations(p)),
        })
    return rows


def relatorio_kits(data: Mapping[str, Any]) -> List[Dict[str, Any]]:
    rows = []
    for k in data.get("kits") or []:
        rows.append({
            "id": k.get("id"),
            "nome": k.get("name"),
            "itens": sum(safe_val(i.get("qty")) for i in k.get("items") or []),
            "preco_cheio": safe_val(k.get("rawTotal")),
            "preco_venda": safe_val(k.get("displayPrice")),
            "custo": safe_val(k.get("totalProductionCost")),
            "margem": safe_val(k.get("margin")),
        })
    return rows


def relatorio_viagens(data: Mapping[str, Any]) -> List[Dict[str, Any]]:
    suppliers = SupplierRepo(dict(data))
    rows = []
    for t in data.get("shoppingTrips") or []:
        rows.append({
            "id": t.get("id"),
            "data": t.get("date"),
            "status": t.get("status"),
            "fornecedores": ", ".join(suppliers.name_of(inv.get("supplierId")) for inv in t.get("invoices") or []),
            "logistica": safe_val(t.get("totalLogistics")),
            "mercadorias": safe_val(t.get("totalGoods")),
            "total": safe_val(t.get("grandTotal")),
            "confirmada": t.get("logisticsConfirmed") is True,
        })
    return rows


def item_label(data: Mapping[str, Any], item: Mapping[str, Any]) -> str:
    """Nome exibido de um item de nota (placeholder se o cadastro sumiu)."""
    kind = item.get("type")
    if kind == "material":
        rec = find_by_id(data.get("materials"), item.get("id"))
        return rec.get("name") if rec else "Material desconhecido"
    if kind == "extra":
        rec = find_by_id(data.get("extras"), item.get("id"))
        return rec.get("name") if rec else "Extra desconhecido"
    return item.get("description") or "Item avulso"
