"""
UC: Importar insumos/embalagens de uma planilha XLSX.

- Itens com o mesmo nome (sem diferenciar maiúsculas) são atualizados,
  os demais são criados.
- Se a linha informa um fornecedor, ele é criado quando não existe e o
  preço da linha entra como cotação desse fornecedor (substituindo uma
  cotação anterior do mesmo fornecedor).
"""
from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

from fluctus.adapters.planilhas import load_catalogo_from_xlsx
from fluctus.domain.models import Extra, Material, Quote
from fluctus.domain.policies import same_id
from fluctus.infra.logger import log_file_operation, log_system_event, log_transaction, print_system
from fluctus.infra.repositories import SupplierRepo, catalog_for, next_id
from fluctus.infra.storage import DataStore


def _supplier_id(repo: SupplierRepo, name: str) -> Any:
    for s in repo.get_all():
        if str(s.get("name") or "").strip().lower() == name.lower():
            return s["id"]
    return repo.add({"name": name})["id"]


def run_importacao(store: DataStore, path: str, kind: str = "material") -> Dict[str, Any]:
    """Lê a planilha e grava os itens no catálogo ``kind`` ('material' ou 'extra')."""
    log_system_event("importacao_start", {"file_path": path, "kind": kind})
    log_file_operation("import", path)
    try:
        units = ("kg", "m") if kind in ("material", "materials") else ("un", "un")
        rows: List[Dict[str, Any]] = load_catalogo_from_xlsx(path, default_units=units)
        created = updated = 0
        with store.transaction() as data:
            repo = catalog_for(data, kind)
            suppliers = SupplierRepo(data)
            by_name = {str(r.get("name")).strip().lower(): r for r in repo.get_all()}
            for row in rows:
                supplier = row.pop("supplier", None)
                obs = row.pop("obs", None)
                existing = by_name.get(row["name"].lower())
                if existing is None:
                    cls = Material if kind in ("material", "materials") else Extra
                    rec = repo.add(cls(
                        id=None,
                        name=row["name"],
                        buyUnit=row["buyUnit"],
                        useUnit=row["useUnit"],
                        yield_=row["yield"],
                        price=row["price"],
                        composition=row["composition"],
                    ))
                    created += 1
                else:
                    rec = repo.update(existing["id"], **{k: v for k, v in row.items() if v is not None})
                    updated += 1
                by_name[rec["name"].lower()] = rec
                if supplier and row["price"] > 0:
                    sup_id = _supplier_id(suppliers, supplier)
                    quotes = [q for q in rec.get("quotes") or [] if not same_id(q.get("supplierId"), sup_id)]
                    quotes.append(asdict(Quote(id=next_id(rec.get("quotes") or []), supplierId=sup_id, price=row["price"], obs=obs)))
                    rec = repo.update(rec["id"], quotes=quotes)
                    by_name[rec["name"].lower()] = rec
        result = {"arquivo": path, "criados": created, "atualizados": updated}
        log_file_operation("import", path, rows_processed=len(rows), kind=kind)
        print_system(f">> Importação concluída: {created} criado(s), {updated} atualizado(s).")
        log_transaction("importar_catalogo", {"file": path, "kind": kind}, result=result)
        return result
    except Exception as e:
        log_transaction("importar_catalogo", {"file": path, "kind": kind}, error=str(e))
        log_system_event("importacao_error", {"file_path": path, "error": str(e)}, level="error")
        raise
