from math import isclose

import pytest

from fluctus.usecases import kits
from fluctus.usecases.precificacao import recalculate_all


def test_seeded_kit_totals(seeded):
    kit = seeded.data["kits"][0]
    assert isclose(kit["rawTotal"], 139.80)
    assert isclose(kit["totalProductionCost"], 50.60)
    assert kit["displayPrice"] == 129.90
    assert isclose(kit["margin"], (129.90 - 50.60) / 129.90 * 100)


def test_save_kit_with_discount(seeded):
    kit = kits.save_kit(seeded, {"name": "Dupla", "items": [{"productId": 1, "qty": 2}], "discount": 5})
    assert kit["id"] == 2
    assert isclose(kit["rawTotal"], 139.80)
    assert isclose(kit["displayPrice"], 132.81)
    assert isclose(kit["totalProductionCost"], 49.10)
    assert kit["items"] == [{"productId": 1, "qty": 2.0, "withoutPackaging": False}]


def test_save_kit_requires_name(seeded):
    with pytest.raises(ValueError):
        kits.save_kit(seeded, {"name": "  "})


def test_save_kit_rejects_non_positive_qty(seeded):
    before = [dict(k) for k in seeded.data["kits"]]
    for qty in (0, -2, "abc"):
        with pytest.raises(ValueError):
            kits.save_kit(seeded, {"name": "Kit Verão", "items": [{"productId": 1, "qty": qty}]}, kit_id=1)
    assert seeded.data["kits"] == before
    kit = kits.save_kit(seeded, {"name": "Sem quantidade", "items": [{"productId": 1}]})
    assert kit["items"][0]["qty"] == 1.0


def test_edit_keeps_unspecified_fields(seeded):
    kit = kits.save_kit(seeded, {"name": "Kit Verão"}, kit_id=1)
    assert kit["name"] == "Kit Verão"
    assert kit["finalPrice"] == 129.90
    assert kit["kitExtras"] == [{"extraId": 1, "qty": 1}]


def test_duplicate_kit(seeded):
    clone = kits.duplicate_kit(seeded, 1)
    assert clone["id"] == 2
    assert clone["name"] == "Kit Pai e Filho Verão (Cópia)"
    assert clone["items"] == seeded.data["kits"][0]["items"]


def test_sync_kit_extras(seeded):
    kit = kits.apply_kit_extras_sync(seeded, 1)
    assert kit["kitExtras"] == [{"extraId": 2, "qty": 2.0}]
    assert isclose(kit["totalProductionCost"], 49.10 + 0.60)


def test_kit_is_a_snapshot_until_recalculated(seeded):
    seeded.data["products"][0]["totalCost"] = 30.0
    assert isclose(seeded.data["kits"][0]["totalProductionCost"], 50.60)
    kit = kits.recalculate_kit(seeded, 1)
    assert isclose(kit["totalProductionCost"], 61.50)


def test_recalculate_all_with_kits(seeded):
    result = recalculate_all(seeded, recalculate_kits=True)
    assert result == {"products": 1, "kits": 1}


def test_delete_kit(seeded):
    assert kits.delete_kit(seeded, 1) is True
    assert kits.delete_kit(seeded, 1) is False
    assert seeded.data["kits"] == []
