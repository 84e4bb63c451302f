"""
UC: Fundo de logística (depósitos e confirmação de despesas de viagem).

Após qualquer alteração o fundo é recalculado por inteiro:
- totalDeposited = soma dos depósitos
- totalSpent     = soma de totalLogistics das viagens confirmadas
- balance        = totalDeposited - totalSpent (pode ficar negativo)
"""
from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional

from fluctus.domain import fundo
from fluctus.domain.models import FundSummary, LogisticsFundDeposit
from fluctus.domain.totais import fund_summary
from fluctus.infra.logger import log_compra, log_transaction
from fluctus.infra.storage import DataStore


def _commit_fund(data: Dict[str, Any]) -> None:
    data["logisticsFund"] = fundo.refresh_fund(data.get("logisticsFund"), data.get("shoppingTrips"))


def depositar(store: DataStore, value: Any, description: Optional[str] = None, day: Optional[str] = None) -> Dict[str, Any]:
    """Registra um depósito no fundo (valor > 0)."""
    dep = LogisticsFundDeposit(id=None, date=day or date.today().isoformat(), value=value, description=description)
    try:
        with store.transaction() as data:
            data["logisticsFund"] = fundo.record_deposit(data.get("logisticsFund"), dep)
            _commit_fund(data)
            rec = data["logisticsFund"]["deposits"][-1]
        log_compra("deposit", None, value=rec["value"], balance=store.data["logisticsFund"]["balance"])
        log_transaction("deposito_fundo", rec, result="success")
        return rec
    except Exception as e:
        log_transaction("deposito_fundo", {"value": value}, error=str(e))
        raise


def remover_deposito(store: DataStore, deposit_id: Any) -> Dict[str, Any]:
    with store.transaction() as data:
        data["logisticsFund"] = fundo.remove_deposit(data.get("logisticsFund"), deposit_id)
        _commit_fund(data)
    log_compra("remove_deposit", None, deposit_id=deposit_id)
    return store.data["logisticsFund"]


def confirmar_logistica(store: DataStore, trip_id: Any) -> Dict[str, Any]:
    """Confirma que a logística da viagem saiu do fundo."""
    with store.transaction() as data:
        data["shoppingTrips"] = fundo.confirm_expense(data.get("shoppingTrips"), trip_id)
        _commit_fund(data)
    log_compra("confirm", trip_id, balance=store.data["logisticsFund"]["balance"])
    return store.data["logisticsFund"]


def desconfirmar_logistica(store: DataStore, trip_id: Any) -> Dict[str, Any]:
    with store.transaction() as data:
        data["shoppingTrips"] = fundo.unconfirm_expense(data.get("shoppingTrips"), trip_id)
        _commit_fund(data)
    log_compra("unconfirm", trip_id, balance=store.data["logisticsFund"]["balance"])
    return store.data["logisticsFund"]


def resumo_fundo(data: Dict[str, Any]) -> FundSummary:
    return fund_summary(data.get("logisticsFund"), data.get("shoppingTrips"))
