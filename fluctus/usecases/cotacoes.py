"""
UC: Cotações de fornecedores para insumos e embalagens.

- Sem cotação selecionada, a mais barata vale (veja ``resolve_price``).
- Excluir a cotação selecionada limpa a seleção.
"""
from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional

from fluctus.domain.models import Quote
from fluctus.domain.policies import safe_val, same_id
from fluctus.infra.logger import log_transaction
from fluctus.infra.repositories import catalog_for, next_id
from fluctus.infra.storage import DataStore


def add_quote(store: DataStore, kind: str, item_id: Any, supplier_id: Any, price: Any, obs: Optional[str] = None) -> Dict[str, Any]:
    if safe_val(price) <= 0:
        raise ValueError("o preço da cotação deve ser positivo")
    with store.transaction() as data:
        repo = catalog_for(data, kind)
        item = dict(repo.require(item_id))
        quotes = list(item.get("quotes") or [])
        quotes.append(asdict(Quote(id=next_id(quotes), supplierId=supplier_id, price=safe_val(price), obs=obs)))
        item["quotes"] = quotes
        rec = repo.replace(item_id, item)
    log_transaction("cotacao_add", {"kind": kind, "item": item_id, "supplier": supplier_id, "price": price}, result="success")
    return rec


def remove_quote(store: DataStore, kind: str, item_id: Any, quote_id: Any) -> Dict[str, Any]:
    with store.transaction() as data:
        repo = catalog_for(data, kind)
        item = dict(repo.require(item_id))
        item["quotes"] = [q for q in item.get("quotes") or [] if not same_id(q.get("id"), quote_id)]
        if same_id(item.get("selectedQuoteId"), quote_id):
            item["selectedQuoteId"] = None
        rec = repo.replace(item_id, item)
    log_transaction("cotacao_remove", {"kind": kind, "item": item_id, "quote": quote_id}, result="success")
    return rec


def select_quote(store: DataStore, kind: str, item_id: Any, quote_id: Any = None) -> Dict[str, Any]:
    """Seleciona a cotação usada no custo (``None`` volta para a mais barata)."""
    with store.transaction() as data:
        repo = catalog_for(data, kind)
        item = dict(repo.require(item_id))
        if quote_id is not None and not any(same_id(q.get("id"), quote_id) for q in item.get("quotes") or []):
            raise KeyError(f"cotação {quote_id} não encontrada")
        item["selectedQuoteId"] = quote_id
        rec = repo.replace(item_id, item)
    log_transaction("cotacao_select", {"kind": kind, "item": item_id, "quote": quote_id}, result="success")
    return rec
