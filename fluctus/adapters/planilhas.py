# fluctus/adapters/planilhas.py
"""
Loader de planilha (XLSX) do catálogo de insumos e embalagens.

Essa função:
- lê a planilha usando pandas;
- normaliza cabeçalhos (acentos, variações, sinônimos);
- retorna uma lista de dicionários no formato de ``Material``/``Extra``,
  com o nome do fornecedor (se houver) em ``supplier``.

Observações:
- Preços aceitam "R$ 45,50", "45.50" etc. (veja ``parse_valor_brl``).
- Rendimento ausente ou inválido vira 1.
- Linhas sem nome são ignoradas.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

import pandas as pd

from fluctus.adapters.parsers import parse_valor_brl


# ---------------------------
# utilitários de normalização
# ---------------------------

def _slug(s: Any) -> str:
    """Normaliza cabeçalhos: minúsculas, sem acentos, sem não-alfanumérico."""
    if s is None:
        return ""
    s = str(s).strip().lower()
    acentos = dict(zip("áàâãäéèêëíìîïóòôõöúùûüç", "aaaaaeeeeiiiiooooouuuuc"))
    s = "".join(acentos.get(ch, ch) for ch in s)
    s = re.sub(r"[^a-z0-9]+", " ", s)
    s = re.sub(r"\s+", " ", s).strip()
    return s


def _safe_get(row, key) -> Optional[str]:
    """Valor da linha sem NA; strings vazias viram None."""
    val = row.get(key)
    if val is None or pd.isna(val):
        return None
    val = str(val).strip()
    return val or None


ALIASES = {
    "nome": "name",
    "item": "name",
    "material": "name",
    "insumo": "name",
    "descricao": "name",

    "unidade compra": "buyUnit",
    "unid compra": "buyUnit",
    "un compra": "buyUnit",
    "compra": "buyUnit",

    "unidade uso": "useUnit",
    "unid uso": "useUnit",
    "un uso": "useUnit",
    "uso": "useUnit",

    "rendimento": "yield",
    "rend": "yield",
    "yield": "yield",

    "preco": "price",
    "valor": "price",
    "preco unitario": "price",
    "custo": "price",

    "fornecedor": "supplier",
    "fornec": "supplier",

    "composicao": "composition",

    "obs": "obs",
    "observacao": "obs",
}


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Renomeia colunas com base em sinônimos/variações."""
    new_cols = {}
    for col in df.columns:
        key = _slug(col)
        new_cols[col] = ALIASES.get(key, key)  # se não houver alias, mantém slug
    return df.rename(columns=new_cols)


# ---------------------------
# loader público (XLSX)
# ---------------------------

def load_catalogo_from_xlsx(path: str, default_units: tuple = ("kg", "m")) -> List[Dict[str, Any]]:
    """Lê XLSX do catálogo e retorna registros prontos para importação.

    Campos de saída (chaves do dict por linha):
      - name: str
      - buyUnit / useUnit: str (padrão ``default_units``)
      - yield: float (> 0)
      - price: float
      - composition: str | None
      - supplier: str | None (nome do fornecedor da cotação)
      - obs: str | None
    """
    df = pd.read_excel(path, dtype="string")
    df = _normalize_columns(df)
    out: List[Dict[str, Any]] = []
    for _, row in df.iterrows():
        name = _safe_get(row, "name")
        if not name:
            continue
        rend = parse_valor_brl(_safe_get(row, "yield"))
        out.append({
            "name": name,
            "buyUnit": _safe_get(row, "buyUnit") or default_units[0],
            "useUnit": _safe_get(row, "useUnit") or default_units[1],
            "yield": rend if rend and rend > 0 else 1.0,
            "price": parse_valor_brl(_safe_get(row, "price")) or 0.0,
            "composition": _safe_get(row, "composition"),
            "supplier": _safe_get(row, "supplier"),
            "obs": _safe_get(row, "obs"),
        })
    return out
