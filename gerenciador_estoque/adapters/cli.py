# gerenciador_estoque/adapters/cli.py
"""
CLI do gerenciador de estoque (Typer).

Comandos principais:
- init                          -> cria/migra o banco e grava o snapshot inicial
- login                         -> confere usuário/senha
- logs                          -> últimas linhas de um arquivo de log
- produto add/rm/list/import/atribuir-setor/limpar
- estoque mov/list/nao-contados/historico/limpar
- setor add/edit/rm/list
- rel csv/xlsx/resumo           -> relatórios por setor
- usuario add/perm/rm/list

Opções globais `--db`, `--usuario` e `--senha` (ou ESTOQUE_DB, ESTOQUE_USUARIO,
ESTOQUE_SENHA). Com usuário informado, as operações rodam numa `Sessao`
e respeitam as permissões dele.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from gerenciador_estoque.config import DB_PATH
from gerenciador_estoque.adapters.parsers import parse_quantidade
from gerenciador_estoque.domain.models import Permissoes, Sessao
from gerenciador_estoque.infra.logger import get_log_summary
from gerenciador_estoque.usecases.estoque_store import EstoqueStore
from gerenciador_estoque.usecases.relatorios import exportar_xlsx, relatorio_dataframe


app = typer.Typer(help="Gerenciador de Estoque — CLI")
console = Console()


class _Ctx:
    def __init__(self, db_path: str, usuario: Optional[str], senha: Optional[str], setor: Optional[str]):
        self.db_path = db_path
        self.usuario = usuario
        self.senha = senha
        self.setor = setor
        self._store: Optional[EstoqueStore] = None

    @property
    def store(self) -> EstoqueStore:
        if self._store is None:
            self._store = EstoqueStore.open(self.db_path)
        return self._store

    @property
    def sessao(self) -> Optional[Sessao]:
        if not self.usuario:
            return None
        sessao = self.store.authenticate(self.usuario, self.senha or "", setor_ativo=self.setor)
        if sessao is None:
            _falha("Usuário ou senha inválidos.")
        return sessao


@app.callback()
def main_callback(
    ctx: typer.Context,
    db_path: str = typer.Option(DB_PATH, "--db", envvar="ESTOQUE_DB", help="Caminho do SQLite"),
    usuario: Optional[str] = typer.Option(None, "--usuario", envvar="ESTOQUE_USUARIO", help="Usuário da sessão"),
    senha: Optional[str] = typer.Option(None, "--senha", envvar="ESTOQUE_SENHA", help="Senha do usuário"),
    setor_ativo: Optional[str] = typer.Option(None, "--setor-ativo", help="Restringe movimentações a um setor"),
):
    ctx.obj = _Ctx(db_path, usuario, senha, setor_ativo)


# -----------------------
# util
# -----------------------

def _print_json(obj) -> None:
    typer.echo(json.dumps(obj, ensure_ascii=False, indent=2))


def _falha(msg: str) -> None:
    console.print(f"[bold red]{msg}[/]")
    raise typer.Exit(code=1)


def _ok(msg: str) -> None:
    console.print(f"[green]>> {msg}[/]")


def _fmt_num(val: float) -> str:
    return f"{val:,.1f}".replace(",", "X").replace(".", ",").replace("X", ".")


def _display_table(data: List[Dict[str, Any]], title: str = "Resultado", as_json: bool = False) -> None:
    """Exibe uma lista de registros em tabela Rich (ou JSON)."""
    if as_json:
        _print_json(data)
        return
    if not data:
        console.print(Panel("Nenhum dado encontrado", title=title, border_style="yellow"))
        return

    table = Table(title=title, box=box.ROUNDED)
    columns = list(data[0].keys())
    for column in columns:
        if column in ("total", "quantidade", "novo_total", "produtos", "contados"):
            table.add_column(column, justify="right")
        else:
            table.add_column(column)

    for row in data:
        values = []
        for col in columns:
            val = row.get(col, "")
            if isinstance(val, bool):
                values.append("[green]sim[/]" if val else "[dim]não[/]")
            elif isinstance(val, float):
                values.append(_fmt_num(val))
            elif val is None:
                values.append("")
            else:
                values.append(str(val))
        table.add_row(*values)
    console.print(table)


def _ctx(ctx: typer.Context) -> _Ctx:
    return ctx.obj


# -----------------------
# infra / sessão
# -----------------------

@app.command("init")
def cmd_init(ctx: typer.Context):
    """Cria (ou migra) o banco e grava o snapshot com setores padrão e admin."""
    c = _ctx(ctx)
    c.store.salvar()
    typer.echo(f">> Banco pronto em: {c.db_path}")


@app.command("login")
def cmd_login(ctx: typer.Context):
    """Confere as credenciais de --usuario/--senha."""
    c = _ctx(ctx)
    if not c.usuario:
        _falha("Informe --usuario e --senha.")
    sessao = c.sessao
    u = sessao.usuario
    _display_table([{
        "username": u.username,
        "admin": u.is_admin,
        "produtos": u.can_edit_products,
        "estoque": u.can_edit_inventory,
        "relatorios": u.can_view_reports,
        "usuarios": u.can_manage_users,
    }], title="Sessão")


@app.command("logs")
def cmd_logs(
    tipo: str = typer.Argument("transactions", help="transactions | movimentos | database | system"),
    linhas: int = typer.Option(50, "--linhas", "-n", help="Últimas N linhas"),
):
    """Mostra o final de um arquivo de log (requer ESTOQUE_LOGGING=1)."""
    typer.echo(get_log_summary(tipo, linhas))


# -----------------------
# produtos
# -----------------------

produto_app = typer.Typer(help="Cadastro de produtos.")
app.add_typer(produto_app, name="produto")


@produto_app.command("add")
def cmd_produto_add(
    ctx: typer.Context,
    codigo: str = typer.Argument(..., help="Código do produto"),
    descricao: str = typer.Argument(..., help="Descrição"),
    setor: str = typer.Argument(..., help="Setor"),
):
    """Cadastra ou atualiza um produto."""
    c = _ctx(ctx)
    if not c.store.upsert_produto(codigo, descricao, setor, sessao=c.sessao):
        _falha("Produto não salvo (campos em branco ou sem permissão).")
    _ok(f"Produto {codigo} salvo.")


@produto_app.command("rm")
def cmd_produto_rm(ctx: typer.Context, codigo: str = typer.Argument(...)):
    """Remove um produto (e seu item de estoque)."""
    c = _ctx(ctx)
    if not c.store.delete_produto(codigo, sessao=c.sessao):
        _falha("Sem permissão para remover produtos.")
    _ok(f"Produto {codigo} removido.")


@produto_app.command("list")
def cmd_produto_list(
    ctx: typer.Context,
    setor: Optional[str] = typer.Option(None, help="Filtra por setor"),
    as_json: bool = typer.Option(False, "--json", help="Saída em JSON"),
):
    """Lista produtos."""
    store = _ctx(ctx).store
    rows = [asdict(p) for p in store.produtos if setor is None or p.setor.casefold() == setor.casefold()]
    _display_table(rows, title="Produtos", as_json=as_json)


@produto_app.command("import")
def cmd_produto_import(
    ctx: typer.Context,
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV ou XLSX de produtos"),
    setor_pendentes: Optional[str] = typer.Option(None, "--setor-pendentes", help="Setor para linhas sem setor"),
):
    """Importa produtos de CSV (`;` ou `,`) ou XLSX."""
    c = _ctx(ctx)
    store = c.store
    sessao = c.sessao
    if path.suffix.lower() in (".xlsx", ".xls"):
        res = store.import_produtos_xlsx(str(path), sessao=sessao)
    else:
        res = store.import_produtos_csv(path.read_text(encoding="utf-8-sig"), sessao=sessao)
    if res.recusado:
        _falha("Sem permissão para importar produtos.")

    linhas = [
        f"Importados: {res.importados}",
        f"Sem setor: {res.pendentes}",
        f"Linhas ignoradas: {res.ignoradas}",
    ]
    console.print(Panel("\n".join(linhas), title=f"Importação de {path.name}"))
    if res.pendentes and setor_pendentes:
        n = store.assign_setor_pendentes(setor_pendentes, sessao=sessao)
        _ok(f"{n} produto(s) sem setor atribuídos a {setor_pendentes}.")


@produto_app.command("atribuir-setor")
def cmd_produto_atribuir(
    ctx: typer.Context,
    setor: str = typer.Argument(..., help="Setor de destino"),
    codigos: List[str] = typer.Argument(..., help="Códigos dos produtos"),
):
    """Atribui um setor a produtos existentes."""
    c = _ctx(ctx)
    n = c.store.assign_setor_produtos(codigos, setor, sessao=c.sessao)
    _ok(f"{n} produto(s) atualizados.")


@produto_app.command("limpar")
def cmd_produto_limpar(
    ctx: typer.Context,
    setor: Optional[str] = typer.Option(None, help="Apaga só os produtos deste setor"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Confirma sem perguntar"),
):
    """Apaga produtos (com estoque e histórico)."""
    if not yes:
        typer.confirm("Apagar produtos, estoque e histórico?", abort=True)
    c = _ctx(ctx)
    if setor:
        n = c.store.clear_produtos_do_setor(setor, sessao=c.sessao)
        _ok(f"{n} produto(s) do setor {setor} removidos.")
        return
    if not c.store.clear_produtos(sessao=c.sessao):
        _falha("Sem permissão para apagar produtos.")
    _ok("Produtos, estoque e histórico apagados.")


# -----------------------
# estoque
# -----------------------

estoque_app = typer.Typer(help="Contagem e movimentação de estoque.")
app.add_typer(estoque_app, name="estoque")


@estoque_app.command("mov")
def cmd_estoque_mov(
    ctx: typer.Context,
    codigo: str = typer.Argument(..., help="Código do produto"),
    quantidade: str = typer.Argument(..., help="Quantidade (aceita vírgula; negativa para saída)"),
    descricao: str = typer.Option("", help="Descrição (opcional)"),
    setor: str = typer.Option("", help="Setor (opcional)"),
):
    """Soma uma quantidade ao estoque do produto."""
    c = _ctx(ctx)
    qtd = parse_quantidade(quantidade)
    if qtd is None:
        _falha(f"Quantidade inválida: {quantidade}")
    if not c.store.update_estoque(codigo, descricao, setor, qtd, sessao=c.sessao):
        _falha("Movimentação recusada (código em branco, sem permissão ou fora do setor ativo).")
    _ok(f"{codigo}: total {_fmt_num(c.store.total_atual(codigo))}")


@estoque_app.command("list")
def cmd_estoque_list(
    ctx: typer.Context,
    setor: Optional[str] = typer.Option(None, help="Filtra por setor"),
    as_json: bool = typer.Option(False, "--json", help="Saída em JSON"),
):
    """Itens contados (total diferente de zero)."""
    rows = [asdict(i) for i in _ctx(ctx).store.itens_contados(setor)]
    _display_table(rows, title="Estoque", as_json=as_json)


@estoque_app.command("nao-contados")
def cmd_estoque_nao_contados(
    ctx: typer.Context,
    setor: Optional[str] = typer.Option(None, help="Filtra por setor"),
    as_json: bool = typer.Option(False, "--json", help="Saída em JSON"),
):
    """Produtos ainda sem contagem."""
    rows = [asdict(p) for p in _ctx(ctx).store.itens_nao_contados(setor)]
    _display_table(rows, title="Não contados", as_json=as_json)


@estoque_app.command("historico")
def cmd_estoque_historico(
    ctx: typer.Context,
    codigo: Optional[str] = typer.Option(None, help="Filtra por código"),
    as_json: bool = typer.Option(False, "--json", help="Saída em JSON"),
):
    """Movimentações em ordem de registro."""
    rows = [asdict(m) for m in _ctx(ctx).store.historico_de(codigo)]
    _display_table(rows, title="Histórico", as_json=as_json)


@estoque_app.command("limpar")
def cmd_estoque_limpar(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Confirma sem perguntar"),
):
    """Zera estoque e histórico (produtos permanecem)."""
    if not yes:
        typer.confirm("Zerar estoque e histórico?", abort=True)
    c = _ctx(ctx)
    if not c.store.clear_estoque(sessao=c.sessao):
        _falha("Sem permissão para zerar o estoque.")
    _ok("Estoque e histórico apagados.")


# -----------------------
# setores
# -----------------------

setor_app = typer.Typer(help="Gerenciar setores.")
app.add_typer(setor_app, name="setor")


@setor_app.command("add")
def cmd_setor_add(ctx: typer.Context, nome: str = typer.Argument(...)):
    c = _ctx(ctx)
    if not c.store.add_setor(nome, sessao=c.sessao):
        _falha(f"Setor não adicionado (em branco ou já existe): {nome}")
    _ok(f"Setor {nome} adicionado.")


@setor_app.command("edit")
def cmd_setor_edit(ctx: typer.Context, antigo: str = typer.Argument(...), novo: str = typer.Argument(...)):
    """Renomeia um setor em produtos, estoque e histórico."""
    c = _ctx(ctx)
    if not c.store.edit_setor(antigo, novo, sessao=c.sessao):
        _falha(f"Setor não renomeado: {antigo} -> {novo}")
    _ok(f"Setor {antigo} renomeado para {novo}.")


@setor_app.command("rm")
def cmd_setor_rm(
    ctx: typer.Context,
    nome: str = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y", help="Confirma sem perguntar"),
):
    """Remove um setor e tudo que pertence a ele."""
    if not yes:
        typer.confirm(f"Remover o setor {nome} com seus produtos e estoque?", abort=True)
    c = _ctx(ctx)
    if not c.store.delete_setor(nome, sessao=c.sessao):
        _falha(f"Setor não encontrado: {nome}")
    _ok(f"Setor {nome} removido.")


@setor_app.command("list")
def cmd_setor_list(ctx: typer.Context, as_json: bool = typer.Option(False, "--json", help="Saída em JSON")):
    store = _ctx(ctx).store
    if as_json:
        _print_json(store.setores)
        return
    _display_table(store.resumo_por_setor(), title="Setores")


# -----------------------
# relatórios
# -----------------------

rel_app = typer.Typer(help="Relatórios por setor.")
app.add_typer(rel_app, name="rel")


def _checa_permissao(c: _Ctx, permissao: str, msg: str) -> None:
    sessao = c.sessao
    if sessao is not None and not sessao.pode(permissao):
        _falha(msg)


def _checa_relatorio(c: _Ctx) -> None:
    _checa_permissao(c, "can_view_reports", "Sem permissão para relatórios.")


@rel_app.command("csv")
def rel_csv(
    ctx: typer.Context,
    setor: str = typer.Option(..., help="Setor do relatório"),
    produtos: bool = typer.Option(False, "--produtos", help="Lista de produtos em vez do estoque"),
    out: Optional[Path] = typer.Option(None, "--out", help="Arquivo de saída (padrão: stdout)"),
):
    """Gera o CSV (`;`) do estoque ou dos produtos de um setor."""
    c = _ctx(ctx)
    _checa_relatorio(c)
    texto = c.store.gerar_csv_produtos(setor) if produtos else c.store.gerar_csv_estoque(setor)
    if out is None:
        typer.echo(texto, nl=False)
        return
    out.write_text(texto, encoding="utf-8")
    _ok(f"Relatório gravado em {out}")


@rel_app.command("xlsx")
def rel_xlsx(
    ctx: typer.Context,
    out: Path = typer.Argument(..., help="Arquivo .xlsx de saída"),
    setor: str = typer.Option(..., help="Setor do relatório"),
    produtos: bool = typer.Option(False, "--produtos", help="Lista de produtos em vez do estoque"),
):
    """Exporta o relatório do setor para XLSX."""
    c = _ctx(ctx)
    _checa_relatorio(c)
    if produtos:
        regs = [p for p in c.store.produtos if p.setor.casefold() == setor.casefold()]
        df = relatorio_dataframe(regs, tipo="produtos")
    else:
        regs = [i for i in c.store.estoque if i.setor.casefold() == setor.casefold()]
        df = relatorio_dataframe(regs, tipo="estoque")
    exportar_xlsx(df, str(out), sheet_name=setor)
    _ok(f"Relatório gravado em {out}")


@rel_app.command("resumo")
def rel_resumo(ctx: typer.Context, as_json: bool = typer.Option(False, "--json", help="Saída em JSON")):
    """Resumo de produtos e totais por setor."""
    c = _ctx(ctx)
    _checa_relatorio(c)
    _display_table(c.store.resumo_por_setor(), title="Resumo por setor", as_json=as_json)


# -----------------------
# usuários
# -----------------------

usuario_app = typer.Typer(help="Gerenciar usuários e permissões.")
app.add_typer(usuario_app, name="usuario")


def _permissoes(produtos: bool, estoque: bool, relatorios: bool, usuarios: bool) -> Permissoes:
    return Permissoes(
        can_edit_products=produtos,
        can_edit_inventory=estoque,
        can_view_reports=relatorios,
        can_manage_users=usuarios,
    )


@usuario_app.command("add")
def cmd_usuario_add(
    ctx: typer.Context,
    username: str = typer.Argument(...),
    password: str = typer.Option(..., "--password", prompt=True, hide_input=True, confirmation_prompt=True),
    produtos: bool = typer.Option(False, "--produtos", help="Pode editar produtos"),
    estoque: bool = typer.Option(False, "--estoque", help="Pode editar estoque"),
    relatorios: bool = typer.Option(False, "--relatorios", help="Pode ver relatórios"),
    usuarios: bool = typer.Option(False, "--usuarios", help="Pode gerenciar usuários"),
):
    """Cria um usuário."""
    c = _ctx(ctx)
    perms = _permissoes(produtos, estoque, relatorios, usuarios)
    if not c.store.add_usuario(username, password, perms, sessao=c.sessao):
        _falha(f"Usuário não criado (já existe, campos em branco ou sem permissão): {username}")
    _ok(f"Usuário {username} criado.")


@usuario_app.command("perm")
def cmd_usuario_perm(
    ctx: typer.Context,
    username: str = typer.Argument(...),
    produtos: bool = typer.Option(False, "--produtos/--sem-produtos"),
    estoque: bool = typer.Option(False, "--estoque/--sem-estoque"),
    relatorios: bool = typer.Option(False, "--relatorios/--sem-relatorios"),
    usuarios: bool = typer.Option(False, "--usuarios/--sem-usuarios"),
):
    """Substitui as permissões de um usuário."""
    c = _ctx(ctx)
    perms = _permissoes(produtos, estoque, relatorios, usuarios)
    if not c.store.update_permissoes(username, perms, sessao=c.sessao):
        _falha(f"Permissões não alteradas: {username}")
    _ok(f"Permissões de {username} atualizadas.")


@usuario_app.command("rm")
def cmd_usuario_rm(ctx: typer.Context, username: str = typer.Argument(...)):
    """Remove um usuário (o admin não pode ser removido)."""
    c = _ctx(ctx)
    if not c.store.delete_usuario(username, sessao=c.sessao):
        _falha(f"Usuário não removido: {username}")
    _ok(f"Usuário {username} removido.")


@usuario_app.command("list")
def cmd_usuario_list(ctx: typer.Context, as_json: bool = typer.Option(False, "--json", help="Saída em JSON")):
    c = _ctx(ctx)
    _checa_permissao(c, "can_manage_users", "Sem permissão para gerenciar usuários.")
    rows = []
    for u in c.store.usuarios:
        d = asdict(u)
        d.pop("password_hash")
        rows.append(d)
    _display_table(rows, title="Usuários", as_json=as_json)


# Entry point opcional:
def main():
    app()


if __name__ == "__main__":
    main()
