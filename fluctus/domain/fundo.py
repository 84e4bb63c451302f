"""
Livro-caixa do fundo de logística.

O fundo recebe depósitos e paga a logística (transporte, alimentação)
das viagens de compras cuja despesa foi confirmada. A confirmação é um
estado por viagem, independente de a viagem estar aberta ou concluída.

Todas as funções devolvem estruturas novas; nada é alterado no lugar.
"""

from __future__ import annotations

from dataclasses import asdict, is_dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from fluctus.domain.policies import safe_val, same_id
from fluctus.domain.totais import fund_summary


def refresh_fund(fund: Optional[Mapping[str, Any]], trips: Iterable[Mapping[str, Any]]) -> Dict[str, Any]:
    """Recalcula totalDeposited / totalSpent / balance do fundo."""
    out = dict(fund or {})
    out["deposits"] = list(out.get("deposits") or [])
    summary = fund_summary(out, trips)
    out["totalDeposited"] = summary.total_deposited
    out["totalSpent"] = summary.total_spent
    out["balance"] = summary.balance
    return out


def record_deposit(fund: Optional[Mapping[str, Any]], deposit: Any) -> Dict[str, Any]:
    """Acrescenta um depósito. Valores não positivos são recusados."""
    dep = asdict(deposit) if is_dataclass(deposit) else dict(deposit)
    if safe_val(dep.get("value")) <= 0:
        raise ValueError("o valor do depósito deve ser positivo")
    out = dict(fund or {})
    deposits = list(out.get("deposits") or [])
    if dep.get("id") is None:
        dep["id"] = max([int(safe_val(d.get("id"))) for d in deposits] or [0]) + 1
    dep["value"] = safe_val(dep.get("value"))
    deposits.append(dep)
    out["deposits"] = deposits
    out["totalDeposited"] = sum(safe_val(d.get("value")) for d in deposits)
    out["balance"] = out["totalDeposited"] - safe_val(out.get("totalSpent"))
    return out


def remove_deposit(fund: Optional[Mapping[str, Any]], deposit_id: Any) -> Dict[str, Any]:
    out = dict(fund or {})
    deposits = [d for d in out.get("deposits") or [] if not same_id(d.get("id"), deposit_id)]
    if len(deposits) == len(out.get("deposits") or []):
        raise KeyError(f"depósito {deposit_id} não encontrado")
    out["deposits"] = deposits
    out["totalDeposited"] = sum(safe_val(d.get("value")) for d in deposits)
    out["balance"] = out["totalDeposited"] - safe_val(out.get("totalSpent"))
    return out


def _set_confirmed(trips: Iterable[Mapping[str, Any]], trip_id: Any, confirmed: bool) -> List[Dict[str, Any]]:
    out = []
    found = False
    for t in trips or []:
        t = dict(t)
        if same_id(t.get("id"), trip_id):
            t["logisticsConfirmed"] = confirmed
            found = True
        out.append(t)
    if not found:
        raise KeyError(f"Viagem {trip_id} não encontrada")
    return out


def confirm_expense(trips: Iterable[Mapping[str, Any]], trip_id: Any) -> List[Dict[str, Any]]:
    """Marca a logística da viagem como paga pelo fundo (idempotente)."""
    return _set_confirmed(trips, trip_id, True)


def unconfirm_expense(trips: Iterable[Mapping[str, Any]], trip_id: Any) -> List[Dict[str, Any]]:
    return _set_confirmed(trips, trip_id, False)
