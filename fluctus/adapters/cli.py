# fluctus/adapters/cli.py
"""
CLI do Fluctus (Typer).

Comandos principais:
- migrate                       -> carrega, migra e grava a raiz de dados
- seed                          -> grava o conjunto de demonstração
- produtos                      -> catálogo de produtos
- produto ver/salvar/remover    -> ficha técnica e cadastro de produtos
- produto variacao-tipo/...     -> tipos, opções e variações de um produto
- recalcular                    -> atualiza o retrato de custos dos produtos (e kits)
- preco                         -> calculadora de preço sugerido / margem real
- kits                          -> kits com preço de venda e margem
- kit salvar/duplicar/remover/recalcular/sync
- viagens                       -> viagens de compras com totais
- viagem criar/ver/logistica/nota/item/finalizar/status/remover ...
- cotacao add/remover/selecionar
- custos-fixos show/add/editar/remover/estimativa
- fundo show/deposito/remover/confirmar/desconfirmar
- aniversarios / promocoes      -> painel de clientes e campanhas
- promocao salvar/distribuir/usar/clientes
- backup / restore <arquivo>    -> cópia de segurança da raiz de dados
- importar <xlsx>               -> importa insumos/embalagens de uma planilha
- logs [tipo]                   -> últimas linhas dos logs de operação
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from fluctus.adapters.parsers import parse_linha_ficha, parse_opcoes
from fluctus.config import DATA_PATH
from fluctus.domain.formulas import fixed_cost_per_unit, realized_margin, suggest_price
from fluctus.domain.policies import format_brl, margin_below_target, same_id
from fluctus.infra.logger import get_log_summary
from fluctus.infra.repositories import SupplierRepo, TripRepo
from fluctus.infra.storage import BackupInvalidoError, DataStore, restore_backup, write_backup
from fluctus.usecases import compras, cotacoes, custos_fixos, fundo_logistica, kits as kits_uc, precificacao, promocoes
from fluctus.usecases.demo import seed
from fluctus.usecases.importar_catalogo import run_importacao
from fluctus.usecases.precificacao import product_breakdown, recalculate_all, recalculate_product
from fluctus.usecases.promocoes import is_promotion_expired, promotion_discount_text, upcoming_birthdays
from fluctus.usecases.relatorios import item_label, relatorio_kits, relatorio_produtos, relatorio_viagens, visao_geral


app = typer.Typer(help="Fluctus: precificação e custos para confecção")
console = Console()

DataOpt = typer.Option(DATA_PATH, "--data", help="Caminho do arquivo JSON de dados")

MONEY_COLS = {"custo", "sugerido", "final", "preco_cheio", "preco_venda", "logistica",
              "mercadorias", "total", "custo_unit", "valor", "saldo"}
PERCENT_COLS = {"margem", "margem_alvo", "margem_real"}


# -----------------------
# util
# -----------------------

def _fmt(col: str, val: Any) -> str:
    if isinstance(val, bool):
        return "sim" if val else "não"
    if isinstance(val, (int, float)):
        if col in MONEY_COLS:
            return format_brl(val)
        if col in PERCENT_COLS:
            return f"{val:.1f}%".replace(".", ",")
        if isinstance(val, int):
            return str(val)
        return f"{val:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
    if isinstance(val, (date, datetime)):
        return val.strftime("%d/%m/%Y")
    return "" if val is None else str(val)


def _display_table(data: List[Dict[str, Any]], title: str = "Resultado", highlight: Optional[Callable[[Dict[str, Any]], bool]] = None) -> None:
    """Exibe uma lista de dicionários como tabela Rich."""
    if not data:
        console.print(Panel("Nenhum dado encontrado", title=title, border_style="yellow"))
        return
    table = Table(title=title, box=box.ROUNDED)
    columns = list(data[0].keys())
    for column in columns:
        if column in MONEY_COLS or column in PERCENT_COLS or column in ("qtd", "itens"):
            table.add_column(column, justify="right")
        else:
            table.add_column(column)
    for row in data:
        values = [_fmt(col, row.get(col)) for col in columns]
        if highlight and highlight(row):
            values = [f"[bold red]{v}[/]" for v in values]
        table.add_row(*values)
    console.print(table)


def _open(data_path: str) -> DataStore:
    return DataStore.open(data_path)


def _fail(e: Exception) -> None:
    msg = e.args[0] if isinstance(e, KeyError) and e.args else str(e)
    console.print(f"[bold red]Erro:[/] {msg}")
    raise typer.Exit(code=1)


# erros de uso que viram "Erro: ..." + código 1
USO_INVALIDO = (BackupInvalidoError, KeyError, ValueError)


def _ref(txt: Any) -> Any:
    """Ids numéricos digitados na linha de comando voltam a ser int."""
    txt = str(txt).strip()
    return int(txt) if txt.isdigit() else txt


def _ficha(linhas: Optional[List[str]], ref_key: str) -> List[Dict[str, Any]]:
    """Converte ["1=0,3", "2=0,7"] em linhas de ficha técnica."""
    out = []
    for n, linha in enumerate(linhas or [], start=1):
        ref, qtd = parse_linha_ficha(linha)
        if ref is None or qtd is None:
            raise ValueError(f"linha inválida {linha!r}; use <id>=<quantidade>")
        out.append({"id": n, ref_key: _ref(ref), "quantity": qtd})
    return out


# -----------------------
# comandos de infra
# -----------------------

@app.command("migrate")
def cmd_migrate(data_path: str = DataOpt):
    """Carrega o arquivo, completa campos ausentes e grava na versão atual."""
    try:
        store = _open(data_path)
    except BackupInvalidoError as e:
        _fail(e)
    store.save()
    typer.echo(f">> Dados migrados (versão {store.data['schemaVersion']}) em: {data_path}")


@app.command("seed")
def cmd_seed(data_path: str = DataOpt):
    """Grava o conjunto de dados de demonstração."""
    try:
        counts = seed(_open(data_path))
    except BackupInvalidoError as e:
        _fail(e)
    console.print(Panel("\n".join(f"{k}: {v}" for k, v in counts.items()), title="Dados de demonstração"))


@app.command("backup")
def cmd_backup(
    directory: str = typer.Option(".", "--dir", help="Pasta de destino"),
    data_path: str = DataOpt,
):
    """Grava fluctus-backup-<data>.json com a raiz de dados completa."""
    try:
        target = write_backup(_open(data_path), directory)
    except (BackupInvalidoError, OSError) as e:
        _fail(e)
    typer.echo(f">> Backup gravado em: {target}")


@app.command("restore")
def cmd_restore(
    source: str = typer.Argument(..., help="Arquivo de backup (JSON)"),
    data_path: str = DataOpt,
):
    """Substitui a raiz de dados pelo conteúdo do backup."""
    try:
        store = _open(data_path)
    except BackupInvalidoError:
        # arquivo atual ilegível: o backup substitui tudo mesmo
        store = DataStore(data_path)
    try:
        restore_backup(store, source)
    except BackupInvalidoError as e:
        _fail(e)
    typer.echo(f">> Backup restaurado: {source}")


@app.command("importar")
def cmd_importar(
    path: str = typer.Argument(..., help="Planilha XLSX do catálogo"),
    tipo: str = typer.Option("material", "--tipo", help="material | extra"),
    data_path: str = DataOpt,
):
    """Importa insumos ou embalagens de uma planilha."""
    try:
        info = run_importacao(_open(data_path), path, kind=tipo)
    except (BackupInvalidoError, ValueError, OSError) as e:
        _fail(e)
    _display_table([info], title="Importação do Catálogo")


# -----------------------
# precificação
# -----------------------

@app.command("produtos")
def cmd_produtos(data_path: str = DataOpt):
    """Lista os produtos; margem real abaixo da alvo aparece em vermelho."""
    try:
        rows = relatorio_produtos(_open(data_path).data)
    except BackupInvalidoError as e:
        _fail(e)
    _display_table(rows, title="Produtos", highlight=lambda r: r["abaixo_alvo"])


produto_app = typer.Typer(help="Cadastro, ficha técnica e variações de produtos.")
app.add_typer(produto_app, name="produto")


def _show_produto(rec: Dict[str, Any]) -> None:
    console.print(Panel(
        f"Custo total: {format_brl(rec.get('totalCost'))}\n"
        f"Preço sugerido: {format_brl(rec.get('suggestedPrice'))}\n"
        f"Preço final: {format_brl(rec.get('finalPrice'))}\n"
        f"Margem real: {rec.get('realMargin', 0):.1f}%",
        title=f"#{rec.get('id')} {rec.get('name')}",
    ))


def _show_variacoes(rec: Dict[str, Any]) -> None:
    tipos = [
        {"id": vt.get("id"), "tipo": vt.get("name"), "opcoes": ", ".join(vt.get("options") or [])}
        for vt in rec.get("variationTypes") or []
    ]
    _display_table(tipos, title=f"{rec.get('name')}: tipos de variação")
    rows = [{"id": v.get("id"), "nome": v.get("name"), "ativa": bool(v.get("active", True))} for v in rec.get("variations") or []]
    _display_table(rows, title="Variações", highlight=lambda r: not r["ativa"])


@produto_app.command("ver")
def cmd_produto_ver(product_id: str = typer.Argument(..., help="Id do produto"), data_path: str = DataOpt):
    """Ficha técnica com custos atuais e comparação com o valor gravado."""
    try:
        data = _open(data_path).data
        info = product_breakdown(data, product_id)
    except (BackupInvalidoError, KeyError) as e:
        _fail(e)
    _display_table(info["insumos"], title=f"{info['produto']}: insumos")
    _display_table(info["embalagens"], title="Embalagens")
    cost, price = info["custo_atual"], info["preco_atual"]
    lines = [
        f"Insumos: {format_brl(cost.material_cost)}",
        f"Embalagens: {format_brl(cost.extras_cost)}",
        f"Mão de obra: {format_brl(cost.labor_cost)}",
        f"Custo fixo (rateio): {format_brl(cost.fixed_cost_per_unit)}",
        f"Custo total: {format_brl(cost.total_cost)} (gravado: {format_brl(info['custo_gravado'])})",
        f"Preço sugerido: {format_brl(price.suggested_price)}",
        f"Margem real: {price.real_margin:.1f}%",
    ]
    if info["desatualizado"]:
        lines.append("[yellow]Custos mudaram desde a última gravação; use 'recalcular'.[/]")
    if price.below_target:
        lines.append("[bold red]Margem real abaixo da margem alvo.[/]")
    console.print(Panel("\n".join(lines), title="Resumo"))
    _display_table(info["variacoes"], title="Variações")
    _display_table(precificacao.kit_margins_for_product(data, product_id), title="Kits com este produto")


@produto_app.command("salvar")
def cmd_produto_salvar(
    nome: str = typer.Option(..., "--nome"),
    product_id: Optional[str] = typer.Option(None, "--id", help="Editar este produto em vez de criar"),
    descricao: Optional[str] = typer.Option(None, "--descricao"),
    mao_de_obra: Optional[float] = typer.Option(None, "--mao-de-obra", help="Custo de mão de obra (R$)"),
    imposto: Optional[float] = typer.Option(None, "--imposto", help="Imposto (%)"),
    comissao: Optional[float] = typer.Option(None, "--comissao", help="Comissão (%)"),
    taxa: Optional[float] = typer.Option(None, "--taxa", help="Taxa da plataforma (%)"),
    margem: Optional[float] = typer.Option(None, "--margem", help="Margem alvo (%)"),
    final: Optional[float] = typer.Option(None, "--final", help="Preço final praticado (0 = usar o sugerido)"),
    materiais: Optional[List[str]] = typer.Option(None, "--material", help="<id>=<quantidade>, repetível"),
    extras: Optional[List[str]] = typer.Option(None, "--extra", help="<id>=<quantidade>, repetível"),
    data_path: str = DataOpt,
):
    """Cria ou edita um produto e grava o retrato de custos."""
    form: Dict[str, Any] = {"name": nome}
    for key, val in (("description", descricao), ("laborCost", mao_de_obra), ("tax", imposto),
                     ("commission", comissao), ("platformFee", taxa), ("margin", margem), ("finalPrice", final)):
        if val is not None:
            form[key] = val
    try:
        if materiais:
            form["materials"] = _ficha(materiais, "materialId")
        if extras:
            form["selectedExtras"] = _ficha(extras, "extraId")
        rec = precificacao.save_product(_open(data_path), form, product_id=product_id)
    except USO_INVALIDO as e:
        _fail(e)
    _show_produto(rec)
    if margin_below_target(rec.get("realMargin"), rec.get("margin")):
        console.print("[bold red]Margem real abaixo da margem alvo.[/]")


@produto_app.command("remover")
def cmd_produto_remover(product_id: str = typer.Argument(...), data_path: str = DataOpt):
    """Remove um produto (kits que o usam passam a ignorá-lo)."""
    try:
        store = _open(data_path)
        usados = [k.get("name") for k in precificacao.kits_using_product(store.data, product_id)]
        removed = precificacao.delete_product(store, product_id)
    except BackupInvalidoError as e:
        _fail(e)
    if not removed:
        _fail(KeyError(f"Produto {product_id} não encontrado"))
    typer.echo(f">> Produto {product_id} removido.")
    if usados:
        console.print(f"[yellow]Kits que usavam o produto: {', '.join(usados)}[/]")


@produto_app.command("variacao-tipo")
def cmd_variacao_tipo(
    product_id: str = typer.Argument(...),
    nome: str = typer.Argument(..., help="Ex.: Tamanho"),
    opcoes: str = typer.Argument(..., help='Ex.: "P, M, G"'),
    data_path: str = DataOpt,
):
    """Acrescenta um tipo de variação e gera as combinações."""
    try:
        rec = precificacao.add_variation_type(_open(data_path), product_id, nome, parse_opcoes(opcoes))
    except USO_INVALIDO as e:
        _fail(e)
    _show_variacoes(rec)


@produto_app.command("remover-tipo")
def cmd_remover_tipo(product_id: str = typer.Argument(...), type_id: str = typer.Argument(...), data_path: str = DataOpt):
    """Remove um tipo de variação."""
    try:
        rec = precificacao.remove_variation_type(_open(data_path), product_id, type_id)
    except USO_INVALIDO as e:
        _fail(e)
    _show_variacoes(rec)


@produto_app.command("opcao")
def cmd_opcao(
    product_id: str = typer.Argument(...),
    type_id: str = typer.Argument(...),
    opcao: str = typer.Argument(...),
    data_path: str = DataOpt,
):
    """Acrescenta uma opção a um tipo de variação."""
    try:
        rec = precificacao.add_option(_open(data_path), product_id, type_id, opcao)
    except USO_INVALIDO as e:
        _fail(e)
    _show_variacoes(rec)


@produto_app.command("renomear-opcao")
def cmd_renomear_opcao(
    product_id: str = typer.Argument(...),
    type_id: str = typer.Argument(...),
    antiga: str = typer.Argument(...),
    nova: str = typer.Argument(...),
    data_path: str = DataOpt,
):
    """Renomeia uma opção mantendo as personalizações das variações."""
    try:
        rec = precificacao.rename_option(_open(data_path), product_id, type_id, antiga, nova)
    except USO_INVALIDO as e:
        _fail(e)
    _show_variacoes(rec)


@produto_app.command("remover-opcao")
def cmd_remover_opcao(
    product_id: str = typer.Argument(...),
    type_id: str = typer.Argument(...),
    opcao: str = typer.Argument(...),
    data_path: str = DataOpt,
):
    """Remove uma opção; as combinações com ela somem."""
    try:
        rec = precificacao.remove_option(_open(data_path), product_id, type_id, opcao)
    except USO_INVALIDO as e:
        _fail(e)
    _show_variacoes(rec)


@produto_app.command("alternar-variacao")
def cmd_alternar_variacao(product_id: str = typer.Argument(...), variation_id: str = typer.Argument(...), data_path: str = DataOpt):
    """Ativa ou desativa uma variação."""
    try:
        rec = precificacao.toggle_variation(_open(data_path), product_id, variation_id)
    except USO_INVALIDO as e:
        _fail(e)
    _show_variacoes(rec)


@produto_app.command("ficha-variacao")
def cmd_ficha_variacao(
    product_id: str = typer.Argument(...),
    variation_id: str = typer.Argument(...),
    materiais: Optional[List[str]] = typer.Option(None, "--material", help="<id>=<quantidade>, repetível"),
    extras: Optional[List[str]] = typer.Option(None, "--extra", help="<id>=<quantidade>, repetível"),
    data_path: str = DataOpt,
):
    """Personaliza insumos e/ou embalagens de uma variação."""
    try:
        store = _open(data_path)
        precificacao.set_variation_lines(
            store, product_id, variation_id,
            materials=_ficha(materiais, "materialId") if materiais else None,
            selected_extras=_ficha(extras, "extraId") if extras else None,
        )
    except USO_INVALIDO as e:
        _fail(e)
    info = product_breakdown(store.data, product_id)
    _display_table(info["variacoes"], title=f"{info['produto']}: custo das variações")


@app.command("recalcular")
def cmd_recalcular(
    product_id: Optional[str] = typer.Option(None, "--id", help="Somente este produto"),
    kits: bool = typer.Option(False, "--kits", help="Recalcular também os kits"),
    data_path: str = DataOpt,
):
    """Atualiza o retrato de custos com os preços e o rateio atuais."""
    try:
        store = _open(data_path)
        if product_id is not None:
            rec = recalculate_product(store, product_id)
            typer.echo(f">> {rec['name']}: custo {format_brl(rec['totalCost'])}")
            return
        res = recalculate_all(store, recalculate_kits=kits)
    except (BackupInvalidoError, KeyError) as e:
        _fail(e)
    typer.echo(f">> {res['products']} produto(s) e {res['kits']} kit(s) recalculados.")


@app.command("preco")
def cmd_preco(
    custo: float = typer.Option(..., help="Custo total unitário"),
    imposto: float = typer.Option(0.0, help="Imposto (%)"),
    comissao: float = typer.Option(0.0, help="Comissão (%)"),
    taxa: float = typer.Option(0.0, help="Taxa da plataforma (%)"),
    margem: float = typer.Option(0.0, help="Margem alvo (%)"),
    final: float = typer.Option(0.0, help="Preço final praticado (0 = usar o sugerido)"),
):
    """Calcula o preço sugerido e a margem real sem gravar nada."""
    sugerido = suggest_price(custo, imposto, comissao, taxa, margem)
    real = realized_margin(custo, imposto, comissao, taxa, final or sugerido)
    cor = "bold red" if margin_below_target(real, margem) else "green"
    console.print(Panel(
        f"Preço sugerido: {format_brl(sugerido)}\nMargem real: [{cor}]{real:.2f}%[/]",
        title="Precificação",
    ))


@app.command("kits")
def cmd_kits(data_path: str = DataOpt):
    """Lista os kits com preço de venda e margem."""
    try:
        rows = relatorio_kits(_open(data_path).data)
    except BackupInvalidoError as e:
        _fail(e)
    _display_table(rows, title="Kits", highlight=lambda r: r["margem"] < 0)


kit_app = typer.Typer(help="Kits (combinações de produtos vendidas juntas).")
app.add_typer(kit_app, name="kit")


def _show_kit(rec: Dict[str, Any]) -> None:
    console.print(Panel(
        f"Preço cheio: {format_brl(rec.get('rawTotal'))}\n"
        f"Custo de produção: {format_brl(rec.get('totalProductionCost'))}\n"
        f"Preço de venda: {format_brl(rec.get('displayPrice'))}\n"
        f"Margem: {rec.get('margin', 0):.1f}%",
        title=f"#{rec.get('id')} {rec.get('name')}",
    ))


@kit_app.command("salvar")
def cmd_kit_salvar(
    nome: str = typer.Option(..., "--nome"),
    kit_id: Optional[str] = typer.Option(None, "--id", help="Editar este kit em vez de criar"),
    itens: Optional[List[str]] = typer.Option(None, "--item", help="<produto>=<quantidade>, repetível"),
    embalagens: Optional[List[str]] = typer.Option(None, "--embalagem", help="<extra>=<quantidade>, repetível"),
    desconto: Optional[float] = typer.Option(None, "--desconto", help="Desconto sobre o preço cheio (%)"),
    final: Optional[float] = typer.Option(None, "--final", help="Preço final (0 = usar o desconto)"),
    data_path: str = DataOpt,
):
    """Cria ou edita um kit."""
    form: Dict[str, Any] = {"name": nome}
    if desconto is not None:
        form["discount"] = desconto
    if final is not None:
        form["finalPrice"] = final
    try:
        if itens:
            form["items"] = [{"productId": ln["ref"], "qty": ln["quantity"]} for ln in _ficha(itens, "ref")]
        if embalagens:
            form["kitExtras"] = [{"extraId": ln["ref"], "qty": ln["quantity"]} for ln in _ficha(embalagens, "ref")]
        rec = kits_uc.save_kit(_open(data_path), form, kit_id=kit_id)
    except USO_INVALIDO as e:
        _fail(e)
    _show_kit(rec)


@kit_app.command("duplicar")
def cmd_kit_duplicar(kit_id: str = typer.Argument(...), data_path: str = DataOpt):
    """Cria uma cópia do kit."""
    try:
        rec = kits_uc.duplicate_kit(_open(data_path), kit_id)
    except USO_INVALIDO as e:
        _fail(e)
    _show_kit(rec)


@kit_app.command("remover")
def cmd_kit_remover(kit_id: str = typer.Argument(...), data_path: str = DataOpt):
    try:
        removed = kits_uc.delete_kit(_open(data_path), kit_id)
    except BackupInvalidoError as e:
        _fail(e)
    if not removed:
        _fail(KeyError(f"Kit {kit_id} não encontrado"))
    typer.echo(f">> Kit {kit_id} removido.")


@kit_app.command("recalcular")
def cmd_kit_recalcular(kit_id: str = typer.Argument(...), data_path: str = DataOpt):
    """Atualiza os totais do kit com os valores gravados nos produtos."""
    try:
        rec = kits_uc.recalculate_kit(_open(data_path), kit_id)
    except USO_INVALIDO as e:
        _fail(e)
    _show_kit(rec)


@kit_app.command("sync")
def cmd_kit_sync(kit_id: str = typer.Argument(..., help="Id do kit"), data_path: str = DataOpt):
    """Preenche as embalagens do kit a partir das embalagens dos produtos."""
    try:
        rec = kits_uc.apply_kit_extras_sync(_open(data_path), kit_id)
    except USO_INVALIDO as e:
        _fail(e)
    typer.echo(f">> {rec['name']}: {len(rec['kitExtras'])} embalagem(ns), margem {rec['margin']:.1f}%")


# -----------------------
# compras
# -----------------------

@app.command("viagens")
def cmd_viagens(data_path: str = DataOpt):
    """Lista as viagens de compras com totais."""
    try:
        data = _open(data_path).data
    except BackupInvalidoError as e:
        _fail(e)
    _display_table(relatorio_viagens(data), title="Viagens de Compras")
    info = visao_geral(data)
    console.print(f"[dim]Total gasto em viagens: {format_brl(info['total_gasto'])}[/dim]")


viagem_app = typer.Typer(help="Viagens de compras: logística, notas e itens.")
app.add_typer(viagem_app, name="viagem")


def _show_viagem(data: Dict[str, Any], trip: Dict[str, Any]) -> None:
    suppliers = SupplierRepo(data)
    logistica = [
        {"id": l.get("id"), "tipo": l.get("type"), "descricao": l.get("desc"), "valor": l.get("value")}
        for l in trip.get("logistics") or []
    ]
    _display_table(logistica, title=f"Viagem #{trip.get('id')} ({trip.get('date')}): logística")
    for inv in trip.get("invoices") or []:
        rows = [
            {
                "n": n,
                "item": item_label(data, it),
                "qtd": it.get("qty"),
                "valor": it.get("price"),
                "no_total": it.get("includeInTotal", True) is not False,
            }
            for n, it in enumerate(inv.get("items") or [], start=1)
        ]
        desconto = inv.get("discount") or 0
        sufixo = f"{desconto:g}%" if inv.get("discountType") == "percent" else format_brl(desconto)
        _display_table(rows, title=f"Nota #{inv.get('id')}: {suppliers.name_of(inv.get('supplierId'))} (desconto {sufixo})")
    console.print(
        f"Logística: {format_brl(trip.get('totalLogistics'))} | "
        f"Mercadorias: {format_brl(trip.get('totalGoods'))} | "
        f"Total: {format_brl(trip.get('grandTotal'))} | Status: {trip.get('status')}"
    )


def _mutate_viagem(data_path: str, action: Callable[[DataStore], Dict[str, Any]]) -> None:
    try:
        store = _open(data_path)
        trip = action(store)
    except USO_INVALIDO as e:
        _fail(e)
    _show_viagem(store.data, trip)


@viagem_app.command("criar")
def cmd_viagem_criar(
    dia: Optional[str] = typer.Option(None, "--dia", help="AAAA-MM-DD (padrão: hoje)"),
    data_path: str = DataOpt,
):
    """Abre uma viagem de compras."""
    _mutate_viagem(data_path, lambda s: compras.create_trip(s, day=dia))


@viagem_app.command("ver")
def cmd_viagem_ver(trip_id: str = typer.Argument(...), data_path: str = DataOpt):
    """Logística, notas com itens e totais de uma viagem."""
    try:
        data = _open(data_path).data
        trip = TripRepo(data).require(trip_id)
    except USO_INVALIDO as e:
        _fail(e)
    _show_viagem(data, trip)


@viagem_app.command("logistica")
def cmd_viagem_logistica(
    trip_id: str = typer.Argument(...),
    tipo: str = typer.Argument(..., help="transport | food"),
    descricao: str = typer.Argument(...),
    valor: float = typer.Argument(...),
    data_path: str = DataOpt,
):
    """Lança um gasto de logística (transporte ou alimentação)."""
    _mutate_viagem(data_path, lambda s: compras.add_logistics(s, trip_id, tipo, descricao, valor))


@viagem_app.command("remover-logistica")
def cmd_viagem_remover_logistica(trip_id: str = typer.Argument(...), item_id: str = typer.Argument(...), data_path: str = DataOpt):
    _mutate_viagem(data_path, lambda s: compras.remove_logistics(s, trip_id, item_id))


@viagem_app.command("nota")
def cmd_viagem_nota(trip_id: str = typer.Argument(...), supplier_id: str = typer.Argument(..., help="Id do fornecedor"), data_path: str = DataOpt):
    """Abre uma nota de um fornecedor na viagem."""
    _mutate_viagem(data_path, lambda s: compras.start_invoice(s, trip_id, _ref(supplier_id)))


@viagem_app.command("item")
def cmd_viagem_item(
    trip_id: str = typer.Argument(...),
    invoice_id: str = typer.Argument(...),
    tipo: str = typer.Argument(..., help="material | extra | other"),
    qtd: float = typer.Argument(...),
    item_id: Optional[str] = typer.Option(None, "--id", help="Id do insumo/embalagem"),
    preco: Optional[float] = typer.Option(None, "--preco", help="Preço unitário (padrão: cotação do fornecedor)"),
    descricao: Optional[str] = typer.Option(None, "--desc"),
    fora_do_total: bool = typer.Option(False, "--fora-do-total", help="Lista na nota sem somar no total"),
    data_path: str = DataOpt,
):
    """Acrescenta um item à nota."""
    _mutate_viagem(data_path, lambda s: compras.add_invoice_item(
        s, trip_id, invoice_id, tipo, qtd,
        item_id=_ref(item_id) if item_id is not None else None,
        price=preco,
        description=descricao,
        include_in_total=not fora_do_total,
    ))


@viagem_app.command("remover-item")
def cmd_viagem_remover_item(
    trip_id: str = typer.Argument(...),
    invoice_id: str = typer.Argument(...),
    n: int = typer.Argument(..., help="Posição do item na nota (1, 2, ...)"),
    data_path: str = DataOpt,
):
    _mutate_viagem(data_path, lambda s: compras.remove_invoice_item(s, trip_id, invoice_id, n - 1))


@viagem_app.command("finalizar")
def cmd_viagem_finalizar(
    trip_id: str = typer.Argument(...),
    invoice_id: str = typer.Argument(...),
    desconto: float = typer.Option(0.0, "--desconto"),
    percentual: bool = typer.Option(False, "--percentual", help="Desconto em % em vez de R$"),
    data_path: str = DataOpt,
):
    """Fecha a nota aplicando o desconto."""
    _mutate_viagem(data_path, lambda s: compras.finalize_invoice(
        s, trip_id, invoice_id, discount=desconto, discount_type="percent" if percentual else "value",
    ))


@viagem_app.command("remover-nota")
def cmd_viagem_remover_nota(trip_id: str = typer.Argument(...), invoice_id: str = typer.Argument(...), data_path: str = DataOpt):
    _mutate_viagem(data_path, lambda s: compras.remove_invoice(s, trip_id, invoice_id))


@viagem_app.command("status")
def cmd_viagem_status(trip_id: str = typer.Argument(...), data_path: str = DataOpt):
    """Alterna a viagem entre aberta e concluída."""
    _mutate_viagem(data_path, lambda s: compras.toggle_trip_status(s, trip_id))


@viagem_app.command("remover")
def cmd_viagem_remover(trip_id: str = typer.Argument(...), data_path: str = DataOpt):
    """Remove a viagem (o fundo de logística é recalculado)."""
    try:
        removed = compras.delete_trip(_open(data_path), trip_id)
    except BackupInvalidoError as e:
        _fail(e)
    if not removed:
        _fail(KeyError(f"Viagem {trip_id} não encontrada"))
    typer.echo(f">> Viagem {trip_id} removida.")


# -----------------------
# cotações
# -----------------------

cotacao_app = typer.Typer(help="Cotações de fornecedores para insumos e embalagens.")
app.add_typer(cotacao_app, name="cotacao")


def _show_cotacoes(data: Dict[str, Any], item: Dict[str, Any]) -> None:
    suppliers = SupplierRepo(data)
    selected = item.get("selectedQuoteId")
    rows = [
        {
            "id": q.get("id"),
            "fornecedor": suppliers.name_of(q.get("supplierId")),
            "valor": q.get("price"),
            "obs": q.get("obs") or "",
            "selecionada": same_id(q.get("id"), selected),
        }
        for q in item.get("quotes") or []
    ]
    _display_table(rows, title=f"Cotações: {item.get('name')}")


@cotacao_app.command("add")
def cmd_cotacao_add(
    tipo: str = typer.Argument(..., help="material | extra"),
    item_id: str = typer.Argument(...),
    supplier_id: str = typer.Argument(..., help="Id do fornecedor"),
    preco: float = typer.Argument(...),
    obs: Optional[str] = typer.Option(None, "--obs"),
    data_path: str = DataOpt,
):
    """Registra a cotação de um fornecedor."""
    try:
        store = _open(data_path)
        item = cotacoes.add_quote(store, tipo, item_id, _ref(supplier_id), preco, obs)
    except USO_INVALIDO as e:
        _fail(e)
    _show_cotacoes(store.data, item)


@cotacao_app.command("remover")
def cmd_cotacao_remover(
    tipo: str = typer.Argument(..., help="material | extra"),
    item_id: str = typer.Argument(...),
    quote_id: str = typer.Argument(...),
    data_path: str = DataOpt,
):
    try:
        store = _open(data_path)
        item = cotacoes.remove_quote(store, tipo, item_id, quote_id)
    except USO_INVALIDO as e:
        _fail(e)
    _show_cotacoes(store.data, item)


@cotacao_app.command("selecionar")
def cmd_cotacao_selecionar(
    tipo: str = typer.Argument(..., help="material | extra"),
    item_id: str = typer.Argument(...),
    quote_id: Optional[str] = typer.Argument(None, help="Sem id volta para a mais barata"),
    data_path: str = DataOpt,
):
    """Escolhe a cotação usada no custo."""
    try:
        store = _open(data_path)
        item = cotacoes.select_quote(store, tipo, item_id, _ref(quote_id) if quote_id is not None else None)
    except USO_INVALIDO as e:
        _fail(e)
    _show_cotacoes(store.data, item)


custos_app = typer.Typer(help="Custos fixos mensais e estimativa de vendas.")
app.add_typer(custos_app, name="custos-fixos")


def _show_custos(fixed: Dict[str, Any]) -> None:
    rows = [{"id": i.get("id"), "nome": i.get("name"), "valor": i.get("value")} for i in fixed.get("items") or []]
    _display_table(rows, title="Custos Fixos")
    sales = fixed.get("estimatedSales") or 0
    per_unit = fixed_cost_per_unit(fixed)
    console.print(
        f"Total: {format_brl(fixed.get('total'))} | Vendas estimadas: {sales:g} | "
        f"Rateio por unidade: {format_brl(per_unit)}"
    )


@custos_app.command("show")
def cmd_custos_show(data_path: str = DataOpt):
    """Mostra os custos fixos e o rateio por unidade."""
    try:
        _show_custos(_open(data_path).data["fixedCosts"])
    except BackupInvalidoError as e:
        _fail(e)


@custos_app.command("add")
def cmd_custos_add(
    nome: str = typer.Argument(...),
    valor: float = typer.Argument(...),
    data_path: str = DataOpt,
):
    """Acrescenta um custo fixo mensal."""
    try:
        _show_custos(custos_fixos.add_fixed_cost_item(_open(data_path), nome, valor))
    except (BackupInvalidoError, ValueError) as e:
        _fail(e)


@custos_app.command("editar")
def cmd_custos_editar(
    item_id: str = typer.Argument(...),
    nome: Optional[str] = typer.Option(None, "--nome"),
    valor: Optional[float] = typer.Option(None, "--valor"),
    data_path: str = DataOpt,
):
    """Altera o nome e/ou o valor de um custo fixo."""
    try:
        _show_custos(custos_fixos.update_fixed_cost_item(_open(data_path), item_id, name=nome, value=valor))
    except USO_INVALIDO as e:
        _fail(e)


@custos_app.command("remover")
def cmd_custos_remover(item_id: str = typer.Argument(...), data_path: str = DataOpt):
    """Remove um custo fixo."""
    try:
        _show_custos(custos_fixos.remove_fixed_cost_item(_open(data_path), item_id))
    except BackupInvalidoError as e:
        _fail(e)


@custos_app.command("estimativa")
def cmd_custos_estimativa(vendas: float = typer.Argument(..., help="Vendas mensais estimadas"), data_path: str = DataOpt):
    """Altera a estimativa de vendas usada no rateio."""
    try:
        _show_custos(custos_fixos.set_estimated_sales(_open(data_path), vendas))
    except (BackupInvalidoError, ValueError) as e:
        _fail(e)


# -----------------------
# fundo de logística
# -----------------------

fundo_app = typer.Typer(help="Fundo de logística das viagens de compras.")
app.add_typer(fundo_app, name="fundo")


def _show_fundo(data: Dict[str, Any]) -> None:
    summary = fundo_logistica.resumo_fundo(data)
    rows = [
        {"id": d.get("id"), "data": d.get("date"), "valor": d.get("value"), "descricao": d.get("description") or ""}
        for d in data["logisticsFund"].get("deposits") or []
    ]
    _display_table(rows, title="Depósitos")
    cor = "bold red" if summary.balance < 0 else "green"
    console.print(Panel(
        f"Depositado: {format_brl(summary.total_deposited)}\n"
        f"Gasto (confirmado): {format_brl(summary.total_spent)}\n"
        f"Saldo: [{cor}]{format_brl(summary.balance)}[/]",
        title="Fundo de Logística",
    ))


@fundo_app.command("show")
def cmd_fundo_show(data_path: str = DataOpt):
    """Mostra depósitos, gastos confirmados e saldo."""
    try:
        _show_fundo(_open(data_path).data)
    except BackupInvalidoError as e:
        _fail(e)


@fundo_app.command("deposito")
def cmd_fundo_deposito(
    valor: float = typer.Argument(...),
    descricao: Optional[str] = typer.Option(None, "--desc"),
    data_path: str = DataOpt,
):
    """Registra um depósito (valor positivo)."""
    try:
        store = _open(data_path)
        fundo_logistica.depositar(store, valor, descricao)
    except (BackupInvalidoError, ValueError) as e:
        _fail(e)
    _show_fundo(store.data)


@fundo_app.command("remover")
def cmd_fundo_remover(deposit_id: str = typer.Argument(...), data_path: str = DataOpt):
    """Remove um depósito."""
    try:
        store = _open(data_path)
        fundo_logistica.remover_deposito(store, deposit_id)
    except (BackupInvalidoError, KeyError) as e:
        _fail(e)
    _show_fundo(store.data)


@fundo_app.command("confirmar")
def cmd_fundo_confirmar(trip_id: str = typer.Argument(...), data_path: str = DataOpt):
    """Confirma que a logística da viagem foi paga pelo fundo."""
    try:
        store = _open(data_path)
        fundo_logistica.confirmar_logistica(store, trip_id)
    except (BackupInvalidoError, KeyError) as e:
        _fail(e)
    _show_fundo(store.data)


@fundo_app.command("desconfirmar")
def cmd_fundo_desconfirmar(trip_id: str = typer.Argument(...), data_path: str = DataOpt):
    """Desfaz a confirmação da logística de uma viagem."""
    try:
        store = _open(data_path)
        fundo_logistica.desconfirmar_logistica(store, trip_id)
    except (BackupInvalidoError, KeyError) as e:
        _fail(e)
    _show_fundo(store.data)


# -----------------------
# clientes e promoções
# -----------------------

@app.command("aniversarios")
def cmd_aniversarios(
    limite: int = typer.Option(5, help="Quantos clientes mostrar"),
    data_path: str = DataOpt,
):
    """Próximos aniversariantes."""
    try:
        clients = _open(data_path).data["clients"]
    except BackupInvalidoError as e:
        _fail(e)
    rows = [
        {"nome": r["name"], "data": r["displayDate"], "faltam": f"{r['daysUntil']} dia(s)"}
        for r in upcoming_birthdays(clients, limit=limite)
    ]
    _display_table(rows, title="Aniversariantes")


@app.command("promocoes")
def cmd_promocoes(data_path: str = DataOpt):
    """Lista as promoções com benefício, uso e situação."""
    try:
        promos = _open(data_path).data["promotions"]
    except BackupInvalidoError as e:
        _fail(e)
    rows = []
    for p in promos:
        expired = is_promotion_expired(p)
        rows.append({
            "id": p.get("id"),
            "nome": p.get("name"),
            "cupom": p.get("code") or "",
            "beneficio": promotion_discount_text(p),
            "enviados": p.get("totalGiven", 0),
            "usados": p.get("totalUsed", 0),
            "situacao": "expirada" if expired else ("ativa" if p.get("active", True) else "inativa"),
        })
    _display_table(rows, title="Promoções", highlight=lambda r: r["situacao"] == "expirada")


promocao_app = typer.Typer(help="Cadastro e distribuição de promoções.")
app.add_typer(promocao_app, name="promocao")


@promocao_app.command("salvar")
def cmd_promocao_salvar(
    nome: str = typer.Option(..., "--nome"),
    promo_id: Optional[str] = typer.Option(None, "--id", help="Editar esta promoção em vez de criar"),
    tipo: str = typer.Option("percentage", "--tipo", help="percentage | fixed_value | take_x_pay_y | free_shipping | ..."),
    alvo: str = typer.Option("all", "--alvo", help="all | tags | individual"),
    etiquetas: Optional[List[str]] = typer.Option(None, "--etiqueta", help="Etiqueta do público, repetível"),
    clientes: Optional[List[str]] = typer.Option(None, "--cliente", help="Id de cliente do público, repetível"),
    percentual: Optional[float] = typer.Option(None, "--percentual", help="Desconto (%)"),
    valor: Optional[float] = typer.Option(None, "--valor", help="Desconto (R$)"),
    leve: Optional[int] = typer.Option(None, "--leve"),
    pague: Optional[int] = typer.Option(None, "--pague"),
    minimo: Optional[float] = typer.Option(None, "--minimo", help="Valor mínimo do pedido"),
    fim: Optional[str] = typer.Option(None, "--fim", help="Data final AAAA-MM-DD"),
    descricao: Optional[str] = typer.Option(None, "--descricao"),
    cupom: Optional[str] = typer.Option(None, "--cupom", help="Código do cupom (padrão: gerado)"),
    data_path: str = DataOpt,
):
    """Cria ou edita uma promoção."""
    form: Dict[str, Any] = {"name": nome, "type": tipo, "targetType": alvo}
    for key, val in (("discountPercent", percentual), ("discountValue", valor), ("takeQuantity", leve),
                     ("payQuantity", pague), ("minOrderValue", minimo), ("endDate", fim),
                     ("description", descricao), ("code", cupom)):
        if val is not None:
            form[key] = val
    if etiquetas:
        form["targetTags"] = list(etiquetas)
    if clientes:
        form["targetClientIds"] = [_ref(c) for c in clientes]
    try:
        rec = promocoes.save_promotion(_open(data_path), form, promo_id=promo_id)
    except USO_INVALIDO as e:
        _fail(e)
    typer.echo(f">> Promoção #{rec['id']} {rec['name']}: {promotion_discount_text(rec)} (cupom {rec['code']})")


@promocao_app.command("distribuir")
def cmd_promocao_distribuir(
    promo_id: str = typer.Argument(...),
    clientes: Optional[List[str]] = typer.Option(None, "--cliente", help="Id de cliente, repetível (padrão: público-alvo)"),
    data_path: str = DataOpt,
):
    """Entrega o cupom da promoção aos clientes."""
    try:
        given = promocoes.distribute_promotion(
            _open(data_path), promo_id, [_ref(c) for c in clientes] if clientes else None,
        )
    except USO_INVALIDO as e:
        _fail(e)
    typer.echo(f">> {given} cupom(ns) entregue(s).")


@promocao_app.command("usar")
def cmd_promocao_usar(client_id: str = typer.Argument(...), discount_id: str = typer.Argument(..., help="Id do cupom do cliente"), data_path: str = DataOpt):
    """Marca o cupom de um cliente como usado."""
    try:
        used = promocoes.mark_discount_used(_open(data_path), client_id, discount_id)
    except USO_INVALIDO as e:
        _fail(e)
    typer.echo(f">> Cupom {used.get('code')} usado.")


@promocao_app.command("clientes")
def cmd_promocao_clientes(promo_id: str = typer.Argument(...), data_path: str = DataOpt):
    """Clientes que receberam o cupom da promoção."""
    try:
        clients = _open(data_path).data["clients"]
    except BackupInvalidoError as e:
        _fail(e)
    rows = []
    for c in promocoes.clients_with_promotion(promo_id, clients):
        cupom = next(d for d in c.get("discounts") or [] if same_id(d.get("promotionId"), promo_id))
        rows.append({"id": c.get("id"), "nome": c.get("name"), "cupom": cupom.get("id"), "usado": bool(cupom.get("used"))})
    _display_table(rows, title=f"Clientes da promoção {promo_id}")


# -----------------------
# logs
# -----------------------

@app.command("logs")
def cmd_logs(
    tipo: str = typer.Argument("transactions", help="transactions | precificacao | compras | storage | system"),
    linhas: int = typer.Option(50, "--linhas", help="Quantas linhas mostrar"),
):
    """Mostra as linhas mais recentes de um log."""
    content = get_log_summary(tipo, lines=linhas)
    if content is None:
        typer.echo("Logging desabilitado (ENABLE_LOGGING = False).")
        return
    console.print(Panel(content.rstrip() or "(vazio)", title=f"Log: {tipo}"))


def main():
    app()


if __name__ == "__main__":
    main()
