"""
Geração das variações de um produto (cor × tamanho × ...).

Cada variação corresponde a uma combinação de opções de todos os tipos
de variação. A identidade estável da combinação é a ``key``, montada a
partir do id do tipo e da chave de cada opção (``optionKeys``, paralela
a ``options``). Renomear uma opção não muda a chave, então ativação e
personalizações de insumos/embalagens sobrevivem à regeneração.
Registros antigos sem ``key`` são casados pelo nome gerado
(``"Preta / P"``).
"""

from __future__ import annotations

import copy
from itertools import product as cartesian
from typing import Any, Dict, List, Mapping, Optional, Sequence

from fluctus.domain.policies import safe_val, same_id


def _next_id(records: Sequence[Mapping[str, Any]]) -> int:
    ids = [int(safe_val(r.get("id"))) for r in records]
    return (max(ids) if ids else 0) + 1


def ensure_option_keys(variation_type: Mapping[str, Any]) -> Dict[str, Any]:
    """Garante ``optionKeys`` do mesmo tamanho de ``options``."""
    vt = dict(variation_type)
    options = list(vt.get("options") or [])
    keys = list(vt.get("optionKeys") or [])
    if len(keys) != len(options):
        keys = keys[: len(options)]
        used = set(keys)
        n = 1
        while len(keys) < len(options):
            candidate = f"k{n}"
            n += 1
            if candidate not in used:
                keys.append(candidate)
                used.add(candidate)
    vt["options"] = options
    vt["optionKeys"] = keys
    return vt


def _new_option_key(keys: Sequence[str]) -> str:
    n = len(keys) + 1
    while f"k{n}" in keys:
        n += 1
    return f"k{n}"


def generate_variations(
    variation_types: Sequence[Mapping[str, Any]],
    base_materials: Optional[Sequence[Mapping[str, Any]]] = None,
    base_extras: Optional[Sequence[Mapping[str, Any]]] = None,
    previous: Optional[Sequence[Mapping[str, Any]]] = None,
) -> List[Dict[str, Any]]:
    """Produto cartesiano das opções, preservando variações já existentes.

    Variações novas herdam uma cópia das listas do produto base; a partir
    daí a lista da variação é independente. Combinações que deixaram de
    existir são descartadas.
    """
    types = [ensure_option_keys(vt) for vt in variation_types or []]
    types = [vt for vt in types if vt["options"]]
    if not types:
        return []

    previous = list(previous or [])
    by_key = {v["key"]: v for v in previous if v.get("key")}
    by_name = {v.get("name"): v for v in previous if not v.get("key")}
    next_id = _next_id(previous)

    axes = [
        [(vt["id"], key, opt) for key, opt in zip(vt["optionKeys"], vt["options"])]
        for vt in types
    ]
    out: List[Dict[str, Any]] = []
    for combo in cartesian(*axes):
        key = "|".join(f"{type_id}:{opt_key}" for type_id, opt_key, _ in combo)
        combination = [opt for _, _, opt in combo]
        name = " / ".join(combination)
        old = by_key.get(key) or by_name.get(name)
        if old is not None:
            var = copy.deepcopy(dict(old))
        else:
            var = {
                "id": next_id,
                "active": True,
                "materials": copy.deepcopy(list(base_materials or [])),
                "selectedExtras": copy.deepcopy(list(base_extras or [])),
            }
            next_id += 1
        var["key"] = key
        var["name"] = name
        var["combination"] = combination
        out.append(var)
    return out


def _regenerate(product: Mapping[str, Any], types: List[Dict[str, Any]]) -> Dict[str, Any]:
    p = dict(product)
    p["variationTypes"] = types
    p["variations"] = generate_variations(
        types, p.get("materials"), p.get("selectedExtras"), p.get("variations")
    )
    return p


def add_variation_type(product: Mapping[str, Any], name: str, options: Sequence[str]) -> Dict[str, Any]:
    opts = [str(o).strip() for o in options if str(o).strip()]
    if not str(name).strip() or not opts:
        raise ValueError("tipo de variação precisa de nome e ao menos uma opção")
    types = [ensure_option_keys(vt) for vt in product.get("variationTypes") or []]
    types.append(ensure_option_keys({"id": _next_id(types), "name": str(name).strip(), "options": opts}))
    return _regenerate(product, types)


def remove_variation_type(product: Mapping[str, Any], type_id: Any) -> Dict[str, Any]:
    types = [ensure_option_keys(vt) for vt in product.get("variationTypes") or [] if not same_id(vt.get("id"), type_id)]
    return _regenerate(product, types)


def _edit_type(product: Mapping[str, Any], type_id: Any, edit) -> Dict[str, Any]:
    types = []
    found = False
    for vt in product.get("variationTypes") or []:
        vt = ensure_option_keys(vt)
        if same_id(vt.get("id"), type_id):
            vt = edit(vt)
            found = True
        types.append(vt)
    if not found:
        raise KeyError(f"tipo de variação {type_id} não encontrado")
    return _regenerate(product, types)


def add_option(product: Mapping[str, Any], type_id: Any, option: str) -> Dict[str, Any]:
    def edit(vt):
        vt["optionKeys"] = vt["optionKeys"] + [_new_option_key(vt["optionKeys"])]
        vt["options"] = vt["options"] + [str(option).strip()]
        return vt
    return _edit_type(product, type_id, edit)


def rename_option(product: Mapping[str, Any], type_id: Any, old: str, new: str) -> Dict[str, Any]:
    """Renomeia uma opção mantendo a chave (e as personalizações)."""
    def edit(vt):
        if old not in vt["options"]:
            raise KeyError(f"opção {old!r} não encontrada")
        vt["options"] = [str(new).strip() if o == old else o for o in vt["options"]]
        return vt
    return _edit_type(product, type_id, edit)


def remove_option(product: Mapping[str, Any], type_id: Any, option: str) -> Dict[str, Any]:
    def edit(vt):
        pairs = [(k, o) for k, o in zip(vt["optionKeys"], vt["options"]) if o != option]
        vt["optionKeys"] = [k for k, _ in pairs]
        vt["options"] = [o for _, o in pairs]
        return vt
    return _edit_type(product, type_id, edit)


def toggle_variation(product: Mapping[str, Any], variation_id: Any) -> Dict[str, Any]:
    p = dict(product)
    p["variations"] = [
        {**v, "active": not v.get("active", True)} if same_id(v.get("id"), variation_id) else v
        for v in product.get("variations") or []
    ]
    return p


def active_variations(product: Mapping[str, Any]) -> List[Mapping[str, Any]]:
    return [v for v in product.get("variations") or [] if v.get("active", True)]
