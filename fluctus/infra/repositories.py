# fluctus/infra/repositories.py
"""
Repositórios para acesso e manipulação das coleções da raiz de dados.

Os repositórios trabalham sobre o dicionário entregue por
``DataStore.transaction()`` (ou sobre ``store.data`` para leitura).
Toda alteração substitui o registro inteiro na lista.

Classes:
- MaterialRepo / ExtraRepo
- SupplierRepo
- ProductRepo
- KitRepo
- TripRepo
- ClientRepo
- PromotionRepo
"""

from __future__ import annotations

from dataclasses import asdict, is_dataclass
from typing import Any, Dict, List, Mapping, Optional

from fluctus.domain.composicao import find_by_id
from fluctus.domain.policies import safe_val, same_id


# -------------------------
# Helpers
# -------------------------

def _as_dict(row: Any) -> Dict[str, Any]:
    if isinstance(row, dict):
        return dict(row)
    if is_dataclass(row):
        to_record = getattr(row, "to_record", None)
        return to_record() if to_record else asdict(row)
    raise TypeError("row must be dict or dataclass")


def next_id(rows: List[Mapping[str, Any]]) -> int:
    """Próximo id inteiro livre da lista."""
    ids = [int(safe_val(r.get("id"))) for r in rows]
    return (max(ids) if ids else 0) + 1


# -------------------------
# Coleções
# -------------------------

class CollectionRepo:
    collection: str = ""
    label: str = "Registro"

    def __init__(self, data: Dict[str, Any]):
        self.data = data
        self.data.setdefault(self.collection, [])

    @property
    def rows(self) -> List[Dict[str, Any]]:
        return self.data[self.collection]

    def get_all(self) -> List[Dict[str, Any]]:
        return list(self.rows)

    def get(self, item_id: Any) -> Optional[Dict[str, Any]]:
        return find_by_id(self.rows, item_id)

    def require(self, item_id: Any) -> Dict[str, Any]:
        rec = self.get(item_id)
        if rec is None:
            raise KeyError(f"{self.label} {item_id} não encontrado")
        return rec

    def add(self, row: Any) -> Dict[str, Any]:
        rec = _as_dict(row)
        if rec.get("id") is None:
            rec["id"] = next_id(self.rows)
        self.rows.append(rec)
        return rec

    def replace(self, item_id: Any, row: Any) -> Dict[str, Any]:
        rec = _as_dict(row)
        for i, old in enumerate(self.rows):
            if same_id(old.get("id"), item_id):
                rec["id"] = old.get("id")
                self.rows[i] = rec
                return rec
        raise KeyError(f"{self.label} {item_id} não encontrado")

    def update(self, item_id: Any, **changes: Any) -> Dict[str, Any]:
        return self.replace(item_id, {**self.require(item_id), **changes})

    def remove(self, item_id: Any) -> bool:
        before = len(self.rows)
        self.data[self.collection] = [r for r in self.rows if not same_id(r.get("id"), item_id)]
        return len(self.rows) != before


class MaterialRepo(CollectionRepo):
    collection = "materials"
    label = "Material"


class ExtraRepo(CollectionRepo):
    collection = "extras"
    label = "Extra"


class SupplierRepo(CollectionRepo):
    collection = "suppliers"
    label = "Fornecedor"

    def name_of(self, supplier_id: Any) -> str:
        rec = self.get(supplier_id)
        return rec.get("name") if rec else "Fornecedor desconhecido"


class ProductRepo(CollectionRepo):
    collection = "products"
    label = "Produto"


class KitRepo(CollectionRepo):
    collection = "kits"
    label = "Kit"


class TripRepo(CollectionRepo):
    collection = "shoppingTrips"
    label = "Viagem"


class ClientRepo(CollectionRepo):
    collection = "clients"
    label = "Cliente"


class PromotionRepo(CollectionRepo):
    collection = "promotions"
    label = "Promoção"


def catalog_for(data: Dict[str, Any], kind: str) -> CollectionRepo:
    """Repositório de itens precificáveis: 'material' ou 'extra'."""
    if kind in ("material", "materials"):
        return MaterialRepo(data)
    if kind in ("extra", "extras"):
        return ExtraRepo(data)
    raise ValueError(f"tipo de catálogo desconhecido: {kind!r}")
