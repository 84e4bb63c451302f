"""
UC: Promoções, cupons e aniversariantes.

Distribuição:
- Cada cliente recebe no máximo um cupom por promoção; quem já tem é pulado.
- ``totalGiven`` soma apenas os cupons efetivamente entregues.
- Marcar um cupom como usado incrementa ``totalUsed`` da promoção.
"""
from __future__ import annotations

import random
import string
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from fluctus.config import DEFAULTS
from fluctus.domain.policies import safe_val, same_id
from fluctus.infra.logger import log_transaction
from fluctus.infra.repositories import ClientRepo, PromotionRepo, next_id
from fluctus.infra.storage import DataStore


PROMOTION_TYPES = (
    "take_x_pay_y",
    "time_coupon",
    "free_shipping",
    "cross_selling",
    "seasonal",
    "progressive",
    "first_purchase",
    "percentage",
    "fixed_value",
)
TARGET_TYPES = ("all", "tags", "individual")
COUPON_CHARS = string.ascii_uppercase + string.digits


def generate_coupon_code(length: int = 8, rng: Optional[random.Random] = None) -> str:
    rng = rng or random
    return "".join(rng.choice(COUPON_CHARS) for _ in range(length))


def _num(val: Any) -> str:
    n = safe_val(val)
    return str(int(n)) if n.is_integer() else str(n)


def promotion_discount_text(promo: Mapping[str, Any]) -> str:
    """Rótulo curto do benefício da promoção."""
    kind = promo.get("type")
    if kind == "percentage":
        return f"{_num(promo.get('discountPercent'))}% off"
    if kind == "fixed_value":
        return f"R$ {_num(promo.get('discountValue'))} off"
    if kind == "take_x_pay_y":
        return f"Leve {_num(promo.get('takeQuantity'))}, Pague {_num(promo.get('payQuantity'))}"
    if kind == "free_shipping":
        return f"Frete grátis +R$ {_num(promo.get('minOrderValue'))}"
    if kind == "first_purchase":
        return f"{_num(promo.get('discountPercent'))}% primeira compra"
    return promo.get("description") or ""


def _parse_day(val: Any) -> Optional[date]:
    if not val:
        return None
    try:
        return datetime.fromisoformat(str(val)[:10]).date()
    except ValueError:
        return None


def is_promotion_expired(promo: Mapping[str, Any], today: Optional[date] = None) -> bool:
    """Expirada quando a data final já passou (a data final ainda vale)."""
    end = _parse_day(promo.get("endDate"))
    return end is not None and end < (today or date.today())


def clients_for_promotion(promo: Mapping[str, Any], clients: Iterable[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    """Clientes do público-alvo: todos, por etiqueta (qualquer uma) ou individual."""
    clients = list(clients or [])
    target = promo.get("targetType") or "all"
    if target == "all":
        return clients
    if target == "tags" and promo.get("targetTags"):
        wanted = set(promo["targetTags"])
        return [c for c in clients if wanted.intersection(c.get("tags") or [])]
    if target == "individual" and promo.get("targetClientIds"):
        ids = promo["targetClientIds"]
        return [c for c in clients if any(same_id(c.get("id"), i) for i in ids)]
    return []


def clients_with_promotion(promo_id: Any, clients: Iterable[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    return [
        c for c in clients or []
        if any(same_id(d.get("promotionId"), promo_id) for d in c.get("discounts") or [])
    ]


def save_promotion(store: DataStore, form: Mapping[str, Any], promo_id: Any = None) -> Dict[str, Any]:
    name = str(form.get("name") or "").strip()
    if not name:
        raise ValueError("promoção precisa de um nome")
    kind = form.get("type") or "percentage"
    if kind not in PROMOTION_TYPES:
        raise ValueError(f"tipo de promoção inválido: {kind!r}")
    target = form.get("targetType") or "all"
    if target not in TARGET_TYPES:
        raise ValueError(f"público-alvo inválido: {target!r}")

    with store.transaction() as data:
        repo = PromotionRepo(data)
        rec = dict(repo.require(promo_id)) if promo_id is not None else {
            "totalGiven": 0,
            "totalUsed": 0,
            "createdAt": datetime.now().isoformat(timespec="seconds"),
        }
        rec.update({k: v for k, v in form.items() if k not in ("id", "totalGiven", "totalUsed", "createdAt")})
        rec.update(name=name, type=kind, targetType=target)
        rec["code"] = form.get("code") or rec.get("code") or generate_coupon_code()
        rec.setdefault("active", True)
        today = date.today().isoformat()
        rec["startDate"] = rec.get("startDate") or today
        rec["endDate"] = rec.get("endDate") or today
        rec = repo.replace(promo_id, rec) if promo_id is not None else repo.add(rec)
    log_transaction("salvar_promocao", {"id": rec["id"], "name": name, "type": kind}, result="success")
    return rec


def distribute_promotion(store: DataStore, promo_id: Any, client_ids: Optional[Sequence[Any]] = None) -> int:
    """Entrega cupons da promoção; sem ``client_ids`` usa o público-alvo.

    Retorna quantos cupons foram efetivamente entregues.
    """
    try:
        with store.transaction() as data:
            promos = PromotionRepo(data)
            clients = ClientRepo(data)
            promo = promos.require(promo_id)
            if client_ids is None:
                targets = clients_for_promotion(promo, clients.get_all())
            else:
                targets = [clients.require(cid) for cid in client_ids]
            given = 0
            for target in targets:
                client = clients.require(target["id"])
                discounts = list(client.get("discounts") or [])
                if any(same_id(d.get("promotionId"), promo_id) for d in discounts):
                    continue
                discounts.append({
                    "id": next_id(discounts),
                    "promotionId": promo["id"],
                    "code": promo.get("code") or generate_coupon_code(),
                    "description": promo.get("description"),
                    "validUntil": promo.get("endDate"),
                    "dateGiven": datetime.now().isoformat(timespec="seconds"),
                    "used": False,
                })
                clients.update(client["id"], discounts=discounts)
                given += 1
            promos.update(promo_id, totalGiven=int(safe_val(promo.get("totalGiven"))) + given)
        log_transaction("distribuir_promocao", {"promo": promo_id}, result={"given": given})
        return given
    except Exception as e:
        log_transaction("distribuir_promocao", {"promo": promo_id}, error=str(e))
        raise


def mark_discount_used(store: DataStore, client_id: Any, discount_id: Any) -> Dict[str, Any]:
    with store.transaction() as data:
        clients = ClientRepo(data)
        client = clients.require(client_id)
        discount = next((d for d in client.get("discounts") or [] if same_id(d.get("id"), discount_id)), None)
        if discount is None:
            raise KeyError(f"cupom {discount_id} não encontrado")
        if discount.get("used"):
            return dict(discount)
        used = {**discount, "used": True, "usedAt": datetime.now().isoformat(timespec="seconds")}
        clients.update(client_id, discounts=[
            used if same_id(d.get("id"), discount_id) else d for d in client.get("discounts") or []
        ])
        promos = PromotionRepo(data)
        promo = promos.get(discount.get("promotionId"))
        if promo is not None:
            promos.update(promo["id"], totalUsed=int(safe_val(promo.get("totalUsed"))) + 1)
    log_transaction("cupom_usado", {"client": client_id, "discount": discount_id}, result="success")
    return used


# -------------------------
# Aniversariantes
# -------------------------

def _next_birthday(birth: date, today: date) -> date:
    def on(year: int) -> date:
        try:
            return date(year, birth.month, birth.day)
        except ValueError:
            # 29/02 em ano não bissexto
            return date(year, 3, 1)
    nxt = on(today.year)
    return nxt if nxt >= today else on(today.year + 1)


def upcoming_birthdays(clients: Iterable[Mapping[str, Any]], today: Optional[date] = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """Próximos aniversariantes, ordenados pelos dias que faltam."""
    today = today or date.today()
    limit = DEFAULTS.birthday_window if limit is None else limit
    rows = []
    for c in clients or []:
        birth = _parse_day(c.get("birthDate"))
        if birth is None:
            continue
        nxt = _next_birthday(birth, today)
        rows.append({
            "id": c.get("id"),
            "name": c.get("name"),
            "nextBirthday": nxt,
            "daysUntil": (nxt - today).days,
            "displayDate": f"{birth.day}/{birth.month:02d}",
        })
    rows.sort(key=lambda r: r["daysUntil"])
    return rows[:limit]
