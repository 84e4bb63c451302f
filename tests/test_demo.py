from datetime import date

from fluctus.infra.storage import DataStore
from fluctus.usecases.demo import demo_data, seed


def test_demo_data_variations():
    data = demo_data(date(2025, 6, 1))
    variations = data["products"][0]["variations"]
    assert len(variations) == 6
    assert [v["name"] for v in variations if not v["active"]] == ["Azul / M"]
    assert data["clients"][0]["birthDate"] == "2025-06-01"


def test_seed_keeps_fund_and_promotions():
    store = DataStore(None)
    with store.transaction() as data:
        data["promotions"].append({"id": 1, "name": "Antiga"})
        data["logisticsFund"]["deposits"].append({"id": 1, "value": 50})
    counts = seed(store, today=date(2025, 6, 1))
    assert counts == {"materials": 2, "extras": 2, "products": 1, "kits": 1, "clients": 1, "shoppingTrips": 1}
    assert store.data["promotions"][0]["name"] == "Antiga"
    assert store.data["logisticsFund"]["balance"] == 50
    trip = store.data["shoppingTrips"][0]
    assert trip["grandTotal"] == 941.5
