import pytest

from fluctus.domain.variacoes import (
    active_variations,
    add_option,
    add_variation_type,
    ensure_option_keys,
    generate_variations,
    remove_option,
    remove_variation_type,
    rename_option,
    toggle_variation,
)

BASE = {
    "id": 1,
    "materials": [{"materialId": 1, "quantity": 0.3}],
    "selectedExtras": [{"extraId": 2, "quantity": 1}],
    "variationTypes": [],
    "variations": [],
}


def _product():
    p = add_variation_type(BASE, "Cor", ["Preta", "Azul"])
    return add_variation_type(p, "Tamanho", ["P", "M"])


def _by_name(product, name):
    return next(v for v in product["variations"] if v["name"] == name)


def test_ensure_option_keys_fills_missing():
    vt = ensure_option_keys({"id": 1, "options": ["P", "M", "G"], "optionKeys": ["k2"]})
    assert vt["optionKeys"] == ["k2", "k1", "k3"]


def test_cartesian_product_in_type_order():
    p = _product()
    assert [v["name"] for v in p["variations"]] == ["Preta / P", "Preta / M", "Azul / P", "Azul / M"]
    assert p["variations"][0]["combination"] == ["Preta", "P"]
    assert p["variations"][0]["key"] == "1:k1|2:k1"
    assert len({v["id"] for v in p["variations"]}) == 4


def test_new_variations_copy_base_lists():
    p = _product()
    v = p["variations"][0]
    assert v["materials"] == BASE["materials"]
    v["materials"].append({"materialId": 9, "quantity": 1})
    assert len(p["variations"][1]["materials"]) == 1
    assert len(BASE["materials"]) == 1


def test_no_types_means_no_variations():
    assert generate_variations([]) == []
    assert generate_variations([{"id": 1, "name": "Cor", "options": []}]) == []


def test_rename_keeps_customisation():
    p = _product()
    target = _by_name(p, "Preta / P")
    p = toggle_variation(p, target["id"])
    p["variations"] = [dict(v, materials=[]) if v["id"] == target["id"] else v for v in p["variations"]]

    renamed = rename_option(p, 1, "Preta", "Black")
    v = _by_name(renamed, "Black / P")
    assert v["id"] == target["id"]
    assert v["active"] is False
    assert v["materials"] == []
    assert v["key"] == target["key"]


def test_add_option_keeps_existing_and_adds_new():
    p = _product()
    p = toggle_variation(p, _by_name(p, "Azul / M")["id"])
    grown = add_option(p, 2, "G")
    assert len(grown["variations"]) == 6
    assert _by_name(grown, "Azul / M")["active"] is False
    assert _by_name(grown, "Preta / G")["active"] is True


def test_removed_then_added_option_gets_fresh_key():
    p = _product()
    p = remove_option(p, 2, "P")
    assert [v["name"] for v in p["variations"]] == ["Preta / M", "Azul / M"]
    p = add_option(p, 2, "P")
    keys = p["variationTypes"][1]["optionKeys"]
    assert len(set(keys)) == len(keys)


def test_remove_variation_type_drops_combinations():
    p = remove_variation_type(_product(), 2)
    assert [v["name"] for v in p["variations"]] == ["Preta", "Azul"]


def test_legacy_variations_matched_by_name():
    types = [{"id": 1, "name": "Cor", "options": ["Preta"]}]
    previous = [{"id": 7, "name": "Preta", "active": False, "materials": []}]
    out = generate_variations(types, [{"materialId": 1, "quantity": 1}], [], previous)
    assert out[0]["id"] == 7
    assert out[0]["active"] is False
    assert out[0]["key"] == "1:k1"


def test_invalid_edits():
    with pytest.raises(ValueError):
        add_variation_type(BASE, "Cor", [" ", ""])
    with pytest.raises(KeyError):
        add_option(_product(), 99, "X")
    with pytest.raises(KeyError):
        rename_option(_product(), 1, "Verde", "Roxo")


def test_active_variations():
    p = _product()
    p = toggle_variation(p, p["variations"][0]["id"])
    assert len(active_variations(p)) == 3
    p = toggle_variation(p, p["variations"][0]["id"])
    assert len(active_variations(p)) == 4
