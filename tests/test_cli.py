import json
from pathlib import Path

import pandas as pd
from typer.testing import CliRunner

from fluctus.adapters.cli import app

runner = CliRunner()


def _seeded(tmp_path: Path) -> str:
    data = tmp_path / "fluctus.json"
    result = runner.invoke(app, ["seed", "--data", str(data)])
    assert result.exit_code == 0, result.output
    return str(data)


def test_cli_migrate_creates_current_file(tmp_path: Path):
    data = tmp_path / "novo.json"
    result = runner.invoke(app, ["migrate", "--data", str(data)])
    assert result.exit_code == 0, result.output
    assert "versão 3" in result.stdout
    saved = json.loads(data.read_text(encoding="utf-8"))
    assert saved["schemaVersion"] == 3
    assert saved["products"] == []


def test_cli_seed_and_listings(tmp_path: Path):
    data = _seeded(tmp_path)
    for cmd in (["produtos"], ["kits"], ["viagens"], ["promocoes"], ["aniversarios"], ["custos-fixos", "show"]):
        result = runner.invoke(app, cmd + ["--data", data])
        assert result.exit_code == 0, (cmd, result.output)


def test_cli_produto_breakdown(tmp_path: Path):
    data = _seeded(tmp_path)
    result = runner.invoke(app, ["produto", "ver", "1", "--data", data])
    assert result.exit_code == 0, result.output
    assert "Custo total: R$ 24,55 (gravado: R$ 24,55)" in result.stdout
    assert "Preço sugerido: R$ 49,10" in result.stdout


def test_cli_produto_inexistente(tmp_path: Path):
    data = _seeded(tmp_path)
    result = runner.invoke(app, ["produto", "ver", "99", "--data", data])
    assert result.exit_code == 1
    assert "Produto 99 não encontrado" in result.stdout


def test_cli_preco():
    result = runner.invoke(app, ["preco", "--custo", "100", "--imposto", "12", "--comissao", "10", "--margem", "30"])
    assert result.exit_code == 0, result.output
    assert "R$ 208,33" in result.stdout
    assert "30.00%" in result.stdout


def test_cli_fundo(tmp_path: Path):
    data = _seeded(tmp_path)
    result = runner.invoke(app, ["fundo", "deposito", "200", "--desc", "Pix", "--data", data])
    assert result.exit_code == 0, result.output
    assert "Saldo: R$ 200,00" in result.stdout

    result = runner.invoke(app, ["fundo", "confirmar", "1", "--data", data])
    assert result.exit_code == 0, result.output
    assert "Saldo: R$ 128,50" in result.stdout

    result = runner.invoke(app, ["fundo", "deposito", "0", "--data", data])
    assert result.exit_code == 1

    result = runner.invoke(app, ["fundo", "confirmar", "42", "--data", data])
    assert result.exit_code == 1
    assert "Viagem 42 não encontrada" in result.stdout


def test_cli_custos_fixos_and_recalcular(tmp_path: Path):
    data = _seeded(tmp_path)
    result = runner.invoke(app, ["custos-fixos", "estimativa", "250", "--data", data])
    assert result.exit_code == 0, result.output
    assert "Rateio por unidade: R$ 10,00" in result.stdout

    result = runner.invoke(app, ["recalcular", "--kits", "--data", data])
    assert result.exit_code == 0, result.output
    assert "1 produto(s) e 1 kit(s)" in result.stdout
    saved = json.loads(Path(data).read_text(encoding="utf-8"))
    assert abs(saved["products"][0]["totalCost"] - 29.55) < 1e-9

    result = runner.invoke(app, ["custos-fixos", "estimativa", "-1", "--data", data])
    assert result.exit_code != 0


def test_cli_backup_and_restore(tmp_path: Path):
    data = _seeded(tmp_path)
    out_dir = tmp_path / "backups"
    result = runner.invoke(app, ["backup", "--dir", str(out_dir), "--data", data])
    assert result.exit_code == 0, result.output
    backups = list(out_dir.glob("fluctus-backup-*.json"))
    assert len(backups) == 1

    original = Path(data).read_text(encoding="utf-8")
    bad = tmp_path / "bad.json"
    bad.write_text("isto não é json", encoding="utf-8")
    result = runner.invoke(app, ["restore", str(bad), "--data", data])
    assert result.exit_code == 1
    assert Path(data).read_text(encoding="utf-8") == original

    other = tmp_path / "outro.json"
    result = runner.invoke(app, ["restore", str(backups[0]), "--data", str(other)])
    assert result.exit_code == 0, result.output
    assert json.loads(other.read_text(encoding="utf-8")) == json.loads(original)


def test_cli_importar(tmp_path: Path):
    data = tmp_path / "fluctus.json"
    xlsx = tmp_path / "cat.xlsx"
    pd.DataFrame([{"Nome": "Suplex", "Rendimento": 3.5, "Preço": "45,50"}]).to_excel(xlsx, index=False)
    result = runner.invoke(app, ["importar", str(xlsx), "--data", str(data)])
    assert result.exit_code == 0, result.output
    saved = json.loads(data.read_text(encoding="utf-8"))
    assert saved["materials"][0]["name"] == "Suplex"

    result = runner.invoke(app, ["importar", str(xlsx), "--tipo", "produto", "--data", str(data)])
    assert result.exit_code == 1


def _saved(data: str) -> dict:
    return json.loads(Path(data).read_text(encoding="utf-8"))


def test_cli_produto_salvar_sem_final_usa_sugerido(tmp_path: Path):
    data = str(tmp_path / "fluctus.json")
    result = runner.invoke(app, [
        "produto", "salvar", "--nome", "Top", "--mao-de-obra", "100",
        "--imposto", "12", "--comissao", "10", "--margem", "30", "--data", data,
    ])
    assert result.exit_code == 0, result.output
    assert "Preço sugerido: R$ 208,33" in result.stdout
    assert "Preço final: R$ 208,33" in result.stdout
    assert abs(_saved(data)["products"][0]["finalPrice"] - 208.3333333) < 1e-6


def test_cli_produto_salvar_editar_remover(tmp_path: Path):
    data = _seeded(tmp_path)
    result = runner.invoke(app, [
        "produto", "salvar", "--nome", "Sunga Lisa", "--mao-de-obra", "15", "--imposto", "4",
        "--margem", "100", "--material", "1=0,3", "--extra", "2=1", "--data", data,
    ])
    assert result.exit_code == 0, result.output
    novo = _saved(data)["products"][1]
    assert novo["id"] == 2
    assert novo["materials"] == [{"id": 1, "materialId": 1, "quantity": 0.3}]
    assert novo["selectedExtras"] == [{"id": 1, "extraId": 2, "quantity": 1.0}]
    # 0.3 m x 13,00 + tag 0,30 + mão de obra 15 + rateio 5
    assert abs(novo["totalCost"] - 24.2) < 1e-9

    result = runner.invoke(app, ["produto", "salvar", "--id", "2", "--nome", "Sunga Lisa", "--final", "50", "--data", data])
    assert result.exit_code == 0, result.output
    editado = _saved(data)["products"][1]
    assert editado["finalPrice"] == 50
    assert editado["materials"] == novo["materials"]

    result = runner.invoke(app, ["produto", "salvar", "--nome", "X", "--material", "sem-quantidade", "--data", data])
    assert result.exit_code == 1
    assert "linha inválida" in result.stdout

    result = runner.invoke(app, ["produto", "remover", "2", "--data", data])
    assert result.exit_code == 0, result.output
    result = runner.invoke(app, ["produto", "remover", "2", "--data", data])
    assert result.exit_code == 1
    assert "Produto 2 não encontrado" in result.stdout


def test_cli_variacoes(tmp_path: Path):
    data = _seeded(tmp_path)

    def run(*args):
        result = runner.invoke(app, ["produto", *args, "--data", data])
        assert result.exit_code == 0, (args, result.output)
        return _saved(data)["products"][0]

    p = run("alternar-variacao", "1", "1")
    assert p["variations"][0]["active"] is False

    p = run("ficha-variacao", "1", "2", "--material", "1=0,5")
    assert p["variations"][1]["materials"] == [{"id": 1, "materialId": 1, "quantity": 0.5}]

    p = run("renomear-opcao", "1", "2", "G", "GG")
    assert "Preta / GG" in [v["name"] for v in p["variations"]]
    assert p["variations"][0]["active"] is False

    p = run("remover-opcao", "1", "2", "GG")
    assert len(p["variations"]) == 4
    p = run("opcao", "1", "2", "GG")
    assert len(p["variations"]) == 6

    p = run("variacao-tipo", "1", "Estampa", "Lisa, Listrada; Lisa")
    assert p["variationTypes"][-1]["options"] == ["Lisa", "Listrada"]
    assert len(p["variations"]) == 12
    p = run("remover-tipo", "1", "3")
    assert len(p["variations"]) == 6

    result = runner.invoke(app, ["produto", "renomear-opcao", "1", "2", "XX", "YY", "--data", data])
    assert result.exit_code == 1
    assert "não encontrada" in result.stdout


def test_cli_kit(tmp_path: Path):
    data = _seeded(tmp_path)
    result = runner.invoke(app, ["kit", "salvar", "--nome", "Dupla", "--item", "1=2", "--desconto", "5", "--data", data])
    assert result.exit_code == 0, result.output
    assert "Preço de venda: R$ 132,81" in result.stdout
    assert _saved(data)["kits"][1]["items"] == [{"productId": 1, "qty": 2.0, "withoutPackaging": False}]

    result = runner.invoke(app, ["kit", "salvar", "--nome", "Zerado", "--item", "1=0", "--data", data])
    assert result.exit_code == 1
    assert "quantidade inválida" in result.stdout
    assert len(_saved(data)["kits"]) == 2

    result = runner.invoke(app, ["kit", "duplicar", "1", "--data", data])
    assert result.exit_code == 0, result.output
    assert _saved(data)["kits"][2]["name"] == "Kit Pai e Filho Verão (Cópia)"

    for cmd in (["kit", "recalcular", "1"], ["kit", "sync", "1"]):
        result = runner.invoke(app, cmd + ["--data", data])
        assert result.exit_code == 0, (cmd, result.output)

    result = runner.invoke(app, ["kit", "remover", "3", "--data", data])
    assert result.exit_code == 0, result.output
    result = runner.invoke(app, ["kit", "remover", "3", "--data", data])
    assert result.exit_code == 1


def test_cli_viagem(tmp_path: Path):
    data = _seeded(tmp_path)

    def run(*args):
        result = runner.invoke(app, ["viagem", *args, "--data", data])
        assert result.exit_code == 0, (args, result.output)
        return result

    run("criar", "--dia", "2026-01-10")
    run("logistica", "2", "transport", "Uber", "25")
    run("nota", "2", "1")
    run("item", "2", "1", "material", "10", "--id", "1")
    run("item", "2", "1", "other", "1", "--preco", "30", "--desc", "Sacolas", "--fora-do-total")
    run("finalizar", "2", "1", "--desconto", "10", "--percentual")
    trip = _saved(data)["shoppingTrips"][1]
    # 10 x 45,50 (cotação do fornecedor 1) - 10%; sacolas fora do total
    assert abs(trip["totalGoods"] - 409.5) < 1e-9
    assert abs(trip["grandTotal"] - 434.5) < 1e-9

    result = run("ver", "2")
    assert "Suplex Poliamida" in result.stdout
    assert "Sacolas" in result.stdout

    run("remover-item", "2", "1", "2")
    run("status", "2")
    trip = _saved(data)["shoppingTrips"][1]
    assert len(trip["invoices"][0]["items"]) == 1
    assert trip["status"] == "completed"

    run("remover-logistica", "2", "1")
    run("remover-nota", "2", "1")
    assert _saved(data)["shoppingTrips"][1]["grandTotal"] == 0

    result = runner.invoke(app, ["viagem", "logistica", "1", "aviao", "Voo", "10", "--data", data])
    assert result.exit_code == 1
    assert "tipo de logística inválido" in result.stdout

    run("remover", "2")
    result = runner.invoke(app, ["viagem", "remover", "2", "--data", data])
    assert result.exit_code == 1
    assert "Viagem 2 não encontrada" in result.stdout


def test_cli_cotacao(tmp_path: Path):
    data = _seeded(tmp_path)
    result = runner.invoke(app, ["cotacao", "add", "material", "1", "2", "40", "--obs", "Promo", "--data", data])
    assert result.exit_code == 0, result.output
    assert "Aviamentos Silva" in result.stdout
    assert len(_saved(data)["materials"][0]["quotes"]) == 2

    result = runner.invoke(app, ["cotacao", "selecionar", "material", "1", "1", "--data", data])
    assert result.exit_code == 0, result.output
    assert _saved(data)["materials"][0]["selectedQuoteId"] == 1

    result = runner.invoke(app, ["cotacao", "selecionar", "material", "1", "--data", data])
    assert result.exit_code == 0, result.output
    assert _saved(data)["materials"][0]["selectedQuoteId"] is None

    result = runner.invoke(app, ["cotacao", "remover", "material", "1", "2", "--data", data])
    assert result.exit_code == 0, result.output
    assert len(_saved(data)["materials"][0]["quotes"]) == 1

    for bad in (["material", "1", "2", "0"], ["produto", "1", "2", "10"]):
        result = runner.invoke(app, ["cotacao", "add", *bad, "--data", data])
        assert result.exit_code == 1, bad


def test_cli_custos_fixos_editar(tmp_path: Path):
    data = _seeded(tmp_path)
    result = runner.invoke(app, ["custos-fixos", "editar", "1", "--valor", "2000", "--data", data])
    assert result.exit_code == 0, result.output
    assert "Rateio por unidade: R$ 4,00" in result.stdout
    assert _saved(data)["fixedCosts"]["total"] == 2000

    result = runner.invoke(app, ["custos-fixos", "estimativa", "0", "--data", data])
    assert result.exit_code == 0, result.output
    assert "Rateio por unidade: R$ 0,00" in result.stdout

    result = runner.invoke(app, ["custos-fixos", "editar", "9", "--valor", "1", "--data", data])
    assert result.exit_code == 1
    assert "custo fixo 9 não encontrado" in result.stdout


def test_cli_promocao(tmp_path: Path):
    data = _seeded(tmp_path)
    result = runner.invoke(app, [
        "promocao", "salvar", "--nome", "VIP 10", "--percentual", "10", "--alvo", "tags",
        "--etiqueta", "VIP", "--cupom", "VIP10", "--data", data,
    ])
    assert result.exit_code == 0, result.output
    assert "cupom VIP10" in result.stdout

    result = runner.invoke(app, ["promocao", "distribuir", "1", "--data", data])
    assert result.exit_code == 0, result.output
    assert "1 cupom(ns)" in result.stdout
    result = runner.invoke(app, ["promocao", "distribuir", "1", "--data", data])
    assert "0 cupom(ns)" in result.stdout

    result = runner.invoke(app, ["promocao", "clientes", "1", "--data", data])
    assert result.exit_code == 0, result.output
    assert "João da Silva" in result.stdout

    result = runner.invoke(app, ["promocao", "usar", "1", "1", "--data", data])
    assert result.exit_code == 0, result.output
    assert "Cupom VIP10 usado" in result.stdout
    assert _saved(data)["promotions"][0]["totalUsed"] == 1

    result = runner.invoke(app, ["promocao", "salvar", "--nome", "X", "--tipo", "sorteio", "--data", data])
    assert result.exit_code == 1
    assert "tipo de promoção inválido" in result.stdout
