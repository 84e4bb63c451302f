from math import isclose

import pytest

from fluctus.usecases import precificacao as uc
from fluctus.usecases.cotacoes import add_quote, select_quote
from fluctus.usecases.custos_fixos import set_estimated_sales


def test_seeded_product_snapshot(seeded):
    p = seeded.data["products"][0]
    assert isclose(p["materialCost"], 4.25)
    assert isclose(p["extrasCost"], 0.30)
    assert p["fixedCostPerUnit"] == 5.0
    assert isclose(p["totalCost"], 24.55)
    # imposto 4% + margem 100%: divisor <= 0, preço = 2 x custo
    assert isclose(p["suggestedPrice"], 49.10)
    assert isclose(p["realMargin"], (69.90 - 24.55 - 69.90 * 0.04) / 69.90 * 100)


def test_save_product_round_trips_target_margin(store):
    p = uc.save_product(store, {"name": "Top", "laborCost": 100, "tax": 12, "commission": 10, "margin": 30})
    assert p["id"] == 1
    assert p["fixedCostPerUnit"] == 0
    assert isclose(p["suggestedPrice"], 208.3333333, rel_tol=1e-6)
    assert isclose(p["realMargin"], 30.0)
    assert p["finalPrice"] == p["suggestedPrice"]


def test_save_product_requires_name(store):
    with pytest.raises(ValueError):
        uc.save_product(store, {"laborCost": 10})
    assert store.data["products"] == []


def test_edit_unknown_product(store):
    with pytest.raises(KeyError):
        uc.save_product(store, {"name": "X"}, product_id=7)


def test_dangling_material_costs_zero(seeded):
    p = uc.save_product(seeded, {"name": "Solto", "laborCost": 5, "materials": [{"materialId": 99, "quantity": 3}]})
    assert p["materialCost"] == 0
    assert isclose(p["totalCost"], 10.0)
    detail = uc.product_breakdown(seeded.data, p["id"])
    assert detail["insumos"][0]["nome"] == "Material não encontrado"


def test_price_change_does_not_touch_saved_product(seeded):
    add_quote(seeded, "material", 1, 2, 91.0)
    select_quote(seeded, "material", 1, 2)
    assert isclose(seeded.data["products"][0]["totalCost"], 24.55)

    detail = uc.product_breakdown(seeded.data, 1)
    assert detail["desatualizado"] is True
    assert isclose(detail["custo_gravado"], 24.55)
    # 91 / 3.5 = 26.00 por metro; 0.3 m
    assert isclose(detail["custo_atual"].total_cost, 28.45)

    p = uc.recalculate_product(seeded, 1)
    assert isclose(p["totalCost"], 28.45)
    assert uc.product_breakdown(seeded.data, 1)["desatualizado"] is False


def test_estimated_sales_change_waits_for_recalculation(seeded):
    set_estimated_sales(seeded, 250)
    assert seeded.data["products"][0]["fixedCostPerUnit"] == 5.0
    uc.recalculate_all(seeded)
    assert seeded.data["products"][0]["fixedCostPerUnit"] == 10.0
    assert isclose(seeded.data["products"][0]["totalCost"], 29.55)
    # kits só mudam quando pedidos
    assert isclose(seeded.data["kits"][0]["totalProductionCost"], 50.60)


def test_breakdown_lists_variations(seeded):
    detail = uc.product_breakdown(seeded.data, 1)
    assert detail["produto"] == "Sunga Boxer Clássica"
    assert len(detail["variacoes"]) == 6
    inactive = [v for v in detail["variacoes"] if not v["ativa"]]
    assert [v["nome"] for v in inactive] == ["Azul / M"]
    assert isclose(detail["embalagens"][0]["custo"], 0.30)
    with pytest.raises(KeyError):
        uc.product_breakdown(seeded.data, 42)


def test_kits_using_product(seeded):
    assert [k["id"] for k in uc.kits_using_product(seeded.data, 1)] == [1]
    margins = uc.kit_margins_for_product(seeded.data, 1)
    assert margins[0]["kit"] == "Kit Pai e Filho Verão"


def test_variation_use_cases(seeded):
    p = uc.add_option(seeded, 1, 2, "GG")
    assert len(p["variations"]) == 8
    target = next(v for v in p["variations"] if v["name"] == "Preta / GG")
    p = uc.set_variation_lines(seeded, 1, target["id"], materials=[])
    detail = uc.product_breakdown(seeded.data, 1)
    custom = next(v for v in detail["variacoes"] if v["nome"] == "Preta / GG")
    assert isclose(custom["custo"], 24.55 - 4.25)

    p = uc.rename_option(seeded, 1, 1, "Preta", "Black")
    renamed = next(v for v in p["variations"] if v["name"] == "Black / GG")
    assert renamed["materials"] == []

    p = uc.toggle_variation(seeded, 1, renamed["id"])
    assert next(v for v in p["variations"] if v["id"] == renamed["id"])["active"] is False

    p = uc.remove_option(seeded, 1, 2, "GG")
    assert len(p["variations"]) == 6
    p = uc.remove_variation_type(seeded, 1, 1)
    assert [v["name"] for v in p["variations"]] == ["P", "M", "G"]
    p = uc.add_variation_type(seeded, 1, "Estampa", ["Lisa"])
    assert len(p["variations"]) == 3
    with pytest.raises(KeyError):
        uc.set_variation_lines(seeded, 1, 999, materials=[])


def test_delete_product(seeded):
    assert uc.delete_product(seeded, 1) is True
    assert seeded.data["products"] == []


def test_final_price_defaults_to_suggested_and_feeds_kits(store):
    p = uc.save_product(store, {"name": "Legging", "laborCost": 20, "margin": 100})
    assert isclose(p["suggestedPrice"], 40.0)
    assert isclose(p["finalPrice"], 40.0)

    chosen = uc.save_product(store, {"name": "Top", "laborCost": 20, "margin": 100, "finalPrice": 55})
    assert chosen["finalPrice"] == 55.0

    from fluctus.usecases.kits import save_kit
    kit = save_kit(store, {"name": "Par", "items": [{"productId": p["id"], "qty": 2}]})
    assert isclose(kit["rawTotal"], 80.0)
