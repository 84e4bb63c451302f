"""
Utilidades de parsing para valores digitados na linha de comando ou
lidos de planilhas.

Os valores monetários aparecem em formatos variados ("R$ 1.234,56",
"45,50", "45.50", "1,234.56"). As listas de opções de variação chegam
como texto separado por vírgula ("P, M, G"). As linhas de ficha técnica
chegam como "<id>=<quantidade>".
"""

from __future__ import annotations

import re
from typing import Any, List, Optional, Tuple

_NUM_RE = re.compile(r"[-+]?[\d.,]+")
_PLAIN_RE = re.compile(r"^[-+]?\d+(\.\d+)?$")
_MILHAR_RE = re.compile(r"^[-+]?\d{1,3}(\.\d{3})+$")
_SEP_RE = re.compile(r"[,;/|]")


def parse_valor_brl(txt: Any) -> Optional[float]:
    """Interpreta um valor monetário ou percentual.

    - Número simples com ponto ("0.125", "45.50") é lido como está; é o
      formato que o pandas entrega para células numéricas da planilha.
    - Só vírgula ("45,50", "0,125"): a vírgula é o separador decimal.
    - Vírgula e ponto juntos: o último é o decimal, o outro é milhar.
    - Ponto como milhar ("1.500", "1.234.567") só é aceito quando o texto
      traz "R$" ou tem mais de um grupo de milhar.

    Exemplos:
        "R$ 1.234,56" → 1234.56
        "45,50"       → 45.5
        "0.125"       → 0.125
        "1,234.56"    → 1234.56
        "12%"         → 12.0
        "R$ 1.500"    → 1500.0

    Returns:
        O número, ou None se não houver número no texto.
    """
    if txt is None:
        return None
    if isinstance(txt, (int, float)) and not isinstance(txt, bool):
        return float(txt)
    s = str(txt).strip()
    moeda = "R$" in s.upper()
    m = _NUM_RE.search(s.replace(" ", ""))
    if not m:
        return None
    num = m.group(0).strip(".,")
    if not num or num in "+-":
        return None
    if _PLAIN_RE.match(num):
        if moeda and _MILHAR_RE.match(num):
            return float(num.replace(".", ""))
        return float(num)
    if "," in num and "." in num:
        dec = "," if num.rfind(",") > num.rfind(".") else "."
        milhar = "." if dec == "," else ","
        num = num.replace(milhar, "").replace(dec, ".")
    elif "," in num:
        if num.count(",") > 1:
            num = num.replace(",", "")
        else:
            num = num.replace(",", ".")
    elif _MILHAR_RE.match(num):
        num = num.replace(".", "")
    try:
        return float(num)
    except ValueError:
        return None


def parse_opcoes(txt: Any) -> List[str]:
    """Divide "P, M, G" (ou "P;M;G", "P/M/G") em opções sem repetição."""
    if txt is None:
        return []
    out: List[str] = []
    for part in _SEP_RE.split(str(txt)):
        part = part.strip()
        if part and part not in out:
            out.append(part)
    return out


def parse_linha_ficha(txt: str) -> Tuple[Optional[str], Optional[float]]:
    """Interpreta "<id>=<quantidade>" (ex.: "3=0,3") de uma ficha técnica."""
    if txt is None or "=" not in str(txt):
        return None, None
    ref, qtd = str(txt).split("=", 1)
    ref = ref.strip() or None
    return ref, parse_valor_brl(qtd)
