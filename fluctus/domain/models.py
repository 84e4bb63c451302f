# fluctus/domain/models.py
"""
Modelos (dataclasses) do domínio.

Observação importante:
- A raiz de dados é um documento JSON; as entidades circulam como
  dicionários com chaves em camelCase (mesmo formato do backup).
- As dataclasses de entidade são opcionais e servem para tipagem/clareza
  ao criar registros novos (os repositórios convertem com ``asdict``).
- As dataclasses de resultado (``ProductCost``, ``KitTotals``...) são o
  retorno dos compositores de custo.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional


# -------------------------
# Entidades
# -------------------------

@dataclass
class Quote:
    """Cotação de um fornecedor para um insumo ou embalagem."""
    id: Any
    supplierId: Any
    price: float
    obs: Optional[str] = None


@dataclass
class Material:
    """Insumo (tecido, elástico...). ``yield`` = unidades de uso por unidade de compra."""
    id: Any
    name: str
    buyUnit: str = "kg"
    useUnit: str = "m"
    yield_: float = 1.0
    price: float = 0.0
    composition: Optional[str] = None
    quotes: List[dict] = field(default_factory=list)
    selectedQuoteId: Optional[Any] = None

    def to_record(self) -> dict:
        # "yield" é palavra reservada em Python
        rec = {k: v for k, v in self.__dict__.items() if k != "yield_"}
        rec["yield"] = self.yield_
        return rec


@dataclass
class Extra(Material):
    """Embalagem/aviamento extra (caixa, tag...). Mesmo formato do insumo."""
    buyUnit: str = "un"
    useUnit: str = "un"


@dataclass
class FixedCostItem:
    id: Any
    name: str
    value: float


@dataclass
class LogisticsItem:
    """Gasto de logística de uma viagem de compras (transporte ou alimentação)."""
    id: Any
    type: str  # 'transport' | 'food'
    desc: str
    value: float


@dataclass
class InvoiceItem:
    """Linha de nota fiscal. ``id`` referencia o insumo/extra comprado."""
    id: Any
    type: str  # 'material' | 'extra' | 'other'
    qty: float
    price: float
    description: Optional[str] = None
    includeInTotal: bool = True


@dataclass
class LogisticsFundDeposit:
    id: Any
    date: str
    value: float
    description: Optional[str] = None


# -------------------------
# Resultados de cálculo
# -------------------------

@dataclass
class ProductCost:
    """Composição de custo de um produto (ou de uma variação)."""
    material_cost: float
    extras_cost: float
    labor_cost: float
    fixed_cost_per_unit: float
    total_cost: float


@dataclass
class PricingResult:
    """Saída do solucionador de preço para um produto."""
    suggested_price: float
    final_price: float
    real_margin: float
    below_target: bool


@dataclass
class KitTotals:
    raw_total: float
    total_production_cost: float
    display_price: float
    margin: float


@dataclass
class TripTotals:
    total_logistics: float
    total_goods: float
    grand_total: float


@dataclass
class FundSummary:
    total_deposited: float
    total_spent: float
    balance: float
