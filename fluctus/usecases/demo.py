"""
UC: Popular a raiz de dados com um conjunto de demonstração.

Substitui catálogos, produtos, kits, clientes e viagens; promoções e o
fundo de logística são mantidos. Os campos derivados são calculados
pelas mesmas funções usadas na gravação normal.
"""
from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional

from fluctus.domain.variacoes import generate_variations
from fluctus.infra.logger import log_system_event, log_transaction, print_system
from fluctus.infra.migrations import migrate_data
from fluctus.infra.storage import DataStore
from fluctus.usecases.compras import with_totals
from fluctus.usecases.kits import derive_kit
from fluctus.usecases.precificacao import derive_product


def demo_data(today: Optional[date] = None) -> Dict[str, Any]:
    today = today or date.today()
    polo_id, sup1, sup2 = 1, 1, 2
    mat1, mat2 = 1, 2
    box_id, tag_id = 1, 2
    prod_id = 1

    variation_types = [
        {"id": 1, "name": "Cor", "options": ["Preta", "Azul"]},
        {"id": 2, "name": "Tamanho", "options": ["P", "M", "G"]},
    ]
    materials_lines = [
        {"id": 1, "materialId": mat1, "quantity": 0.3},
        {"id": 2, "materialId": mat2, "quantity": 0.7},
    ]
    extras_lines = [{"id": 1, "extraId": tag_id, "quantity": 1}]
    variations = generate_variations(variation_types, materials_lines, extras_lines)
    for v in variations:
        if v["name"] == "Azul / M":
            v["active"] = False

    return {
        "polos": [{
            "id": polo_id, "name": "Polo Brás", "cep": "03001000", "rua": "Rua Miller",
            "numero": "500", "bairro": "Brás", "cidade": "São Paulo", "estado": "SP",
        }],
        "suppliers": [
            {"id": sup1, "name": "Têxtil Santos", "contact": "Carlos", "phone": "11999998888", "poloId": polo_id,
             "cep": "03001000", "rua": "Rua Miller", "numero": "500", "bairro": "Brás",
             "cidade": "São Paulo", "estado": "SP"},
            {"id": sup2, "name": "Aviamentos Silva", "contact": "Ana", "phone": "21988887777",
             "cep": "25685100", "rua": "Rua Teresa", "numero": "150", "bairro": "Alto da Serra",
             "cidade": "Petrópolis", "estado": "RJ"},
        ],
        "materials": [
            {"id": mat1, "name": "Suplex Poliamida", "buyUnit": "kg", "useUnit": "m", "yield": 3.5,
             "quotes": [{"id": 1, "supplierId": sup1, "price": 45.50, "obs": "Preço à vista"}]},
            {"id": mat2, "name": "Elástico 30mm", "buyUnit": "rolo", "useUnit": "m", "yield": 50,
             "quotes": [{"id": 1, "supplierId": sup2, "price": 25.00, "obs": "Rolo fechado"}]},
        ],
        "extras": [
            {"id": box_id, "name": "Caixa Padrão", "buyUnit": "un", "useUnit": "un", "yield": 1, "price": 1.50,
             "quotes": [{"id": 1, "supplierId": sup2, "price": 1.50, "obs": "Padrão"}]},
            {"id": tag_id, "name": "Tag da Marca", "buyUnit": "milheiro", "useUnit": "un", "yield": 1000, "price": 0.30,
             "quotes": [{"id": 1, "supplierId": sup2, "price": 300.00, "obs": "Milheiro"}]},
        ],
        "products": [{
            "id": prod_id,
            "name": "Sunga Boxer Clássica",
            "description": "Modelo tradicional",
            "laborCost": 15.00,
            "tax": 4,
            "commission": 0,
            "platformFee": 0,
            "margin": 100,
            "finalPrice": 69.90,
            "variationTypes": variation_types,
            "variations": variations,
            "materials": materials_lines,
            "selectedExtras": extras_lines,
        }],
        "kits": [{
            "id": 1,
            "name": "Kit Pai e Filho Verão",
            "items": [{"productId": prod_id, "qty": 2, "withoutPackaging": False}],
            "kitExtras": [{"extraId": box_id, "qty": 1}],
            "discount": 5,
            "finalPrice": 129.90,
        }],
        "clients": [{
            "id": 1, "name": "João da Silva", "phone": "21999991234", "email": "joao@teste.com",
            "cpf": "123.456.789-00", "birthDate": today.isoformat(), "cep": "20000-000",
            "rua": "Rua Teste", "numero": "123", "bairro": "Centro", "cidade": "Rio", "estado": "RJ",
            "tags": ["VIP"], "purchases": [],
        }],
        "expenses": [],
        "shoppingTrips": [{
            "id": 1,
            "date": "2025-12-05",
            "status": "completed",
            "logisticsConfirmed": False,
            "logistics": [
                {"id": 1, "type": "transport", "desc": "Uber Ida", "value": 25.00},
                {"id": 2, "type": "food", "desc": "Lanche", "value": 18.50},
                {"id": 3, "type": "transport", "desc": "Uber Volta", "value": 28.00},
            ],
            "invoices": [{
                "id": 101,
                "supplierId": sup1,
                "discount": 10.00,
                "discountValue": 10.00,
                "discountType": "value",
                "items": [{"id": mat1, "type": "material", "qty": 20, "price": 44.00}],
            }],
        }],
        "fixedCosts": {
            "total": 2500,
            "estimatedSales": 500,
            "items": [{"id": 1, "name": "Aluguel", "value": 1500}],
        },
    }


def seed(store: DataStore, today: Optional[date] = None) -> Dict[str, int]:
    """Grava o conjunto de demonstração na raiz de dados do ``store``."""
    log_system_event("seed_start")
    with store.transaction() as data:
        data.update(demo_data(today))
        migrated = migrate_data(data)
        data.clear()
        data.update(migrated)
        data["shoppingTrips"] = [with_totals(t) for t in data["shoppingTrips"]]
        data["products"] = [derive_product(p, data) for p in data["products"]]
        data["kits"] = [derive_kit(k, data) for k in data["kits"]]
    counts = {name: len(store.data[name]) for name in ("materials", "extras", "products", "kits", "clients", "shoppingTrips")}
    log_transaction("seed", {}, result=counts)
    print_system(">> Dados de demonstração gravados.")
    return counts
