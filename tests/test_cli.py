import json

import pytest
from typer.testing import CliRunner

from gerenciador_estoque.adapters.cli import app
from gerenciador_estoque.config import DEFAULTS
from gerenciador_estoque.usecases.estoque_store import EstoqueStore

runner = CliRunner()


@pytest.fixture
def cli(db_path, monkeypatch):
    for var in ("ESTOQUE_USUARIO", "ESTOQUE_SENHA"):
        monkeypatch.delenv(var, raising=False)

    def _run(*args, input=None):
        return runner.invoke(app, ["--db", db_path, *args], input=input)

    return _run


def test_init_grava_setores_padrao(cli, db_path):
    result = cli("init")
    assert result.exit_code == 0
    assert db_path in result.stdout

    result = cli("setor", "list", "--json")
    assert json.loads(result.stdout) == list(DEFAULTS.setores_padrao)


def test_produto_add_e_list(cli):
    assert cli("produto", "add", "P1", "Picanha", "Açougue").exit_code == 0
    assert cli("produto", "add", "P2", "Alface", "Hortifruti").exit_code == 0

    result = cli("produto", "list", "--setor", "açougue", "--json")
    assert result.exit_code == 0
    assert json.loads(result.stdout) == [{"codigo": "P1", "descricao": "Picanha", "setor": "Açougue"}]


def test_produto_add_em_branco_falha(cli):
    result = cli("produto", "add", "P1", " ", "Açougue")
    assert result.exit_code == 1


def test_estoque_mov_aceita_virgula(cli, db_path):
    cli("produto", "add", "P1", "Picanha", "Açougue")
    assert cli("estoque", "mov", "P1", "1,5").exit_code == 0
    assert cli("estoque", "mov", "--", "P1", "-0,5").exit_code == 0

    store = EstoqueStore.open(db_path)
    assert store.total_atual("P1") == 1.0
    assert [m.tipo for m in store.historico] == ["Entrada", "Saída"]

    result = cli("estoque", "historico", "--codigo", "P1", "--json")
    assert [m["quantidade"] for m in json.loads(result.stdout)] == [1.5, -0.5]


def test_estoque_mov_quantidade_invalida(cli):
    result = cli("estoque", "mov", "P1", "abc")
    assert result.exit_code == 1


def test_estoque_list_e_nao_contados(cli):
    cli("produto", "add", "P1", "Picanha", "Açougue")
    cli("produto", "add", "P2", "Alcatra", "Açougue")
    cli("estoque", "mov", "P1", "2")

    contados = json.loads(cli("estoque", "list", "--setor", "Açougue", "--json").stdout)
    assert [i["codigo"] for i in contados] == ["P1"]
    assert contados[0]["total"] == 2.0

    faltam = json.loads(cli("estoque", "nao-contados", "--setor", "Açougue", "--json").stdout)
    assert [p["codigo"] for p in faltam] == ["P2"]


def test_produto_import_csv(cli, tmp_path):
    arq = tmp_path / "produtos.csv"
    arq.write_text("codigo;descricao;setor\nP1;Picanha;Açougue\nP2;Sal\nlixo\n", encoding="utf-8")

    result = cli("produto", "import", str(arq), "--setor-pendentes", "Mercearia")
    assert result.exit_code == 0

    produtos = json.loads(cli("produto", "list", "--json").stdout)
    assert {p["codigo"]: p["setor"] for p in produtos} == {"P1": "Açougue", "P2": "Mercearia"}


def test_rel_csv_stdout_e_arquivo(cli, tmp_path):
    cli("estoque", "mov", "P1", "2", "--descricao", "Picanha", "--setor", "Açougue")

    result = cli("rel", "csv", "--setor", "Açougue")
    assert result.exit_code == 0
    assert result.stdout == "codigo;descricao;setor;total\nP1;Picanha;Açougue;2.0\n"

    out = tmp_path / "rel.csv"
    assert cli("rel", "csv", "--setor", "Açougue", "--produtos", "--out", str(out)).exit_code == 0
    assert out.read_text(encoding="utf-8") == "codigo;descricao;setor\n"


def test_rel_xlsx(cli, tmp_path):
    import pandas as pd

    cli("estoque", "mov", "P1", "2", "--descricao", "Picanha", "--setor", "Açougue")
    out = tmp_path / "rel.xlsx"
    assert cli("rel", "xlsx", str(out), "--setor", "Açougue").exit_code == 0
    df = pd.read_excel(out)
    assert df["codigo"].tolist() == ["P1"]


def test_setor_edit_e_rm(cli):
    cli("produto", "add", "P1", "Picanha", "Açougue")
    assert cli("setor", "edit", "Açougue", "Carnes").exit_code == 0
    assert cli("setor", "rm", "Carnes", "--yes").exit_code == 0
    assert json.loads(cli("produto", "list", "--json").stdout) == []
    assert cli("setor", "rm", "Carnes", "--yes").exit_code == 1


def test_usuarios_e_permissoes(cli):
    result = cli("usuario", "add", "ana", "--password", "segredo", "--relatorios")
    assert result.exit_code == 0

    usuarios = json.loads(cli("usuario", "list", "--json").stdout)
    ana = next(u for u in usuarios if u["username"] == "ana")
    assert "password_hash" not in ana
    assert ana["can_view_reports"] is True
    assert ana["can_edit_products"] is False

    # ana não pode cadastrar produtos
    result = cli("--usuario", "ana", "--senha", "segredo", "produto", "add", "P1", "Picanha", "Açougue")
    assert result.exit_code == 1
    # mas pode ver relatórios
    result = cli("--usuario", "ana", "--senha", "segredo", "rel", "resumo", "--json")
    assert result.exit_code == 0

    assert cli("usuario", "perm", "ana", "--produtos").exit_code == 0
    result = cli("--usuario", "ana", "--senha", "segredo", "produto", "add", "P1", "Picanha", "Açougue")
    assert result.exit_code == 0

    assert cli("usuario", "rm", "admin").exit_code == 1
    assert cli("usuario", "rm", "ana").exit_code == 0


def test_login_senha_errada(cli):
    result = cli("--usuario", "admin", "--senha", "errada", "login")
    assert result.exit_code == 1
    result = cli("--usuario", "admin", "--senha", DEFAULTS.admin_password, "login")
    assert result.exit_code == 0


def test_usuario_list_exige_gerenciar_usuarios(cli):
    cli("usuario", "add", "ana", "--password", "segredo", "--relatorios")

    result = cli("--usuario", "ana", "--senha", "segredo", "usuario", "list", "--json")
    assert result.exit_code == 1

    result = cli("--usuario", "admin", "--senha", DEFAULTS.admin_password, "usuario", "list", "--json")
    assert result.exit_code == 0
    assert {u["username"] for u in json.loads(result.stdout)} == {"admin", "ana"}
