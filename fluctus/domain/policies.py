"""
Políticas de arredondamento e utilidades numéricas do Fluctus.

Este módulo concentra as regras de negócio que não são fórmulas de
custo propriamente ditas: o arredondamento para cima dos custos
unitários, a conversão segura de valores vindos dos registros (que
podem estar vazios ou malformados) e a formatação monetária em BRL.
"""

from __future__ import annotations

from math import ceil
from typing import Any

from fluctus.config import DEFAULTS


def safe_val(val: Any) -> float:
    """Converte ``val`` para float, retornando ``0.0`` quando não for possível.

    Registros antigos ou digitados à mão podem trazer ``None``, strings
    vazias ou textos. Nenhuma dessas situações deve interromper um cálculo.
    """
    if val is None or isinstance(val, bool):
        return 0.0
    try:
        num = float(val)
    except (TypeError, ValueError):
        return 0.0
    # NaN e infinitos não são valores monetários
    if num != num or num in (float("inf"), float("-inf")):
        return 0.0
    return num


def arredonda_para_cima(valor: float, casas: int = DEFAULTS.decimal_places) -> float:
    """Arredonda ``valor`` para cima (teto) em ``casas`` decimais.

    Um valor positivo nunca vira zero: o menor resultado possível é
    ``10 ** -casas``. Ruído de ponto flutuante (ex.: ``0.1 * 3``) é
    descartado antes do teto para não inflar o centavo.

    Args:
        valor: Valor a arredondar.
        casas: Número de casas decimais.

    Returns:
        ``ceil(valor * 10**casas) / 10**casas``.
    """
    fator = 10 ** casas
    unidades = ceil(round(valor * fator, 6))
    if valor > 0 and unidades < 1:
        unidades = 1
    return unidades / fator


def format_brl(val: Any) -> str:
    """Formata um valor como moeda brasileira: ``R$ 1.234,56``."""
    num = safe_val(val)
    txt = f"{abs(num):,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
    sinal = "-" if num < 0 else ""
    return f"{sinal}R$ {txt}"


def margin_below_target(real_margin: Any, target_margin: Any) -> bool:
    """Sinaliza quando a margem realizada ficou abaixo da margem alvo."""
    return safe_val(real_margin) < safe_val(target_margin)


def same_id(a: Any, b: Any) -> bool:
    """Compara ids pela forma textual (dados antigos misturam número e texto)."""
    if a is None or b is None:
        return False
    return _id_key(a) == _id_key(b)


def _id_key(val: Any) -> str:
    if isinstance(val, float) and val.is_integer():
        val = int(val)
    return str(val).strip()
