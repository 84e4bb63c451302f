from pathlib import Path

import pandas as pd
import pytest

from fluctus.adapters.planilhas import _slug, load_catalogo_from_xlsx
from fluctus.domain.formulas import resolve_price
from fluctus.usecases.importar_catalogo import run_importacao


def _write_xlsx(path: Path, rows):
    pd.DataFrame(rows).to_excel(path, index=False)
    return path


def test_slug():
    assert _slug("Preço Unitário") == "preco unitario"
    assert _slug("  Unid. Compra ") == "unid compra"
    assert _slug(None) == ""


def test_load_catalogo_normalizes_headers(tmp_path: Path):
    xlsx = _write_xlsx(tmp_path / "cat.xlsx", [
        {"Nome": "Suplex", "Unidade Compra": "kg", "Unidade Uso": "m", "Rendimento": 3.5,
         "Preço": "R$ 45,50", "Fornecedor": "Têxtil Santos", "Composição": "90% PA"},
        {"Nome": "Linha", "Unidade Compra": None, "Unidade Uso": None, "Rendimento": None,
         "Preço": "12", "Fornecedor": None, "Composição": None},
        {"Nome": None, "Unidade Compra": "kg", "Unidade Uso": "m", "Rendimento": 1,
         "Preço": "1", "Fornecedor": None, "Composição": None},
    ])
    rows = load_catalogo_from_xlsx(str(xlsx))
    assert len(rows) == 2
    first, second = rows
    assert first["name"] == "Suplex"
    assert first["yield"] == 3.5
    assert first["price"] == 45.5
    assert first["supplier"] == "Têxtil Santos"
    assert first["composition"] == "90% PA"
    assert second["buyUnit"] == "kg" and second["useUnit"] == "m"
    assert second["yield"] == 1.0
    assert second["supplier"] is None


def test_importacao_upserts_and_quotes(tmp_path: Path, store):
    xlsx = _write_xlsx(tmp_path / "cat.xlsx", [
        {"Nome": "Suplex", "Rendimento": "3,5", "Preço": "45,50", "Fornecedor": "Têxtil Santos"},
        {"Nome": "Elástico", "Rendimento": "50", "Preço": "25", "Fornecedor": None},
    ])
    res = run_importacao(store, str(xlsx))
    assert res["criados"] == 2 and res["atualizados"] == 0
    assert [s["name"] for s in store.data["suppliers"]] == ["Têxtil Santos"]
    suplex = store.data["materials"][0]
    assert suplex["quotes"][0]["supplierId"] == 1
    assert resolve_price(suplex) == 45.5

    xlsx2 = _write_xlsx(tmp_path / "cat2.xlsx", [
        {"Nome": "suplex", "Rendimento": "3,5", "Preço": "47,00", "Fornecedor": "têxtil santos"},
    ])
    res = run_importacao(store, str(xlsx2))
    assert res["criados"] == 0 and res["atualizados"] == 1
    assert len(store.data["materials"]) == 2
    assert len(store.data["suppliers"]) == 1
    suplex = store.data["materials"][0]
    assert len(suplex["quotes"]) == 1
    assert resolve_price(suplex) == 47.0


def test_importacao_extras_default_units(tmp_path: Path, store):
    xlsx = _write_xlsx(tmp_path / "emb.xlsx", [{"Item": "Caixa", "Valor": "1,50"}])
    run_importacao(store, str(xlsx), kind="extra")
    caixa = store.data["extras"][0]
    assert caixa["buyUnit"] == "un" and caixa["useUnit"] == "un"
    assert caixa["yield"] == 1.0
    assert resolve_price(caixa) == 1.5


def test_importacao_missing_file(tmp_path: Path, store):
    with pytest.raises(FileNotFoundError):
        run_importacao(store, str(tmp_path / "nao-existe.xlsx"))
    assert store.data["materials"] == []


def test_load_catalogo_keeps_fractional_yield_and_price(tmp_path: Path):
    xlsx = _write_xlsx(tmp_path / "cat.xlsx", [
        {"Nome": "Botão", "Rendimento": 0.125, "Preço": 2.345},
        {"Nome": "Viés", "Rendimento": "0,125", "Preço": "R$ 1.500"},
    ])
    botao, vies = load_catalogo_from_xlsx(str(xlsx))
    assert botao["yield"] == pytest.approx(0.125)
    assert botao["price"] == pytest.approx(2.345)
    assert vies["yield"] == pytest.approx(0.125)
    assert vies["price"] == pytest.approx(1500.0)
