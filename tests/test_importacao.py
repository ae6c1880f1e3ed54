import pandas as pd

from gerenciador_estoque.adapters.planilha_loader import load_produtos_from_xlsx


def test_import_csv_com_cabecalho(store, kv):
    res = store.import_produtos_csv("codigo;descricao;setor\nP1;Widget;Açougue")
    assert res.importados == 1
    assert res.ignoradas == 0
    assert [p.codigo for p in store.produtos] == ["P1"]
    assert store.get_produto("P1").setor == "Açougue"
    # uma única gravação para o lote
    assert kv.writes == 1


def test_import_csv_cabecalho_com_acento(store):
    res = store.import_produtos_csv("Código,Descrição\r\nP1,Widget\r\n")
    assert res.importados == 1
    assert store.get_produto("P1").descricao == "Widget"


def test_import_csv_linhas_malformadas(store):
    conteudo = "\n".join([
        "P1;Picanha;Açougue",
        "sem_separador",
        ";Sem codigo;Outros",
        "",
        "P2;Alface;Hortifruti",
    ])
    res = store.import_produtos_csv(conteudo)
    assert res.importados == 2
    assert res.ignoradas == 2
    assert res.linhas_ignoradas == [2, 3]
    assert [p.codigo for p in store.produtos] == ["P1", "P2"]


def test_import_csv_aspas_removidas(store):
    store.import_produtos_csv('"P1";"Picanha";"Açougue"')
    p = store.get_produto("P1")
    assert (p.codigo, p.descricao, p.setor) == ("P1", "Picanha", "Açougue")


def test_import_csv_atualiza_existente(store):
    store.upsert_produto("P1", "Picanha", "Açougue")
    store.import_produtos_csv("P1;Picanha Premium;Açougue")
    assert len(store.produtos) == 1
    assert store.get_produto("P1").descricao == "Picanha Premium"


def test_import_csv_registra_setores(store):
    store.import_produtos_csv("P1;Pão;Padaria\nP2;Bolo;PADARIA")
    assert store.setores.count("Padaria") == 1
    assert "PADARIA" not in store.setores


def test_import_csv_pendentes_e_atribuicao(store):
    res = store.import_produtos_csv("P1;Picanha\nP2;Alface;Hortifruti\nP3;Sal")
    assert res.pendentes == 2
    assert [p.codigo for p in store.pendentes] == ["P1", "P3"]

    assert store.assign_setor_pendentes("Mercearia") == 2
    assert store.pendentes == []
    assert store.get_produto("P1").setor == "Mercearia"
    assert store.get_produto("P3").setor == "Mercearia"
    assert "Mercearia" in store.setores


def test_import_csv_reimportado_com_setor_sai_de_pendentes(store):
    store.import_produtos_csv("P1;Picanha")
    store.import_produtos_csv("P1;Picanha;Açougue")
    assert store.pendentes == []


def test_assign_setor_produtos(store):
    store.import_produtos_csv("P1;A\nP2;B\nP3;C")
    assert store.assign_setor_produtos(["P1", "P3", "NAO_EXISTE"], "Outros") == 2
    assert [p.codigo for p in store.pendentes] == ["P2"]
    assert store.assign_setor_produtos(["P2"], " ") == 0


def test_import_csv_vazio(store, kv):
    res = store.import_produtos_csv("")
    assert res.importados == 0
    assert kv.writes == 1


def test_load_xlsx(tmp_path):
    path = tmp_path / "produtos.xlsx"
    pd.DataFrame(
        {
            "Código": ["P1", "P2", None],
            "Descrição": ["Picanha", None, "Sem código"],
            "Departamento": ["Açougue", "Outros", "Outros"],
        }
    ).to_excel(path, index=False)

    linhas = load_produtos_from_xlsx(str(path))
    assert linhas == [(2, ("P1", "Picanha", "Açougue")), (3, None), (4, None)]


def test_import_xlsx(store, tmp_path):
    path = tmp_path / "produtos.xlsx"
    pd.DataFrame(
        {"codigo": ["P1", "P2"], "produto": ["Picanha", "Alface"], "setor": ["Açougue", None]}
    ).to_excel(path, index=False)

    res = store.import_produtos_xlsx(str(path))
    assert res.importados == 2
    assert res.pendentes == 1
    assert store.get_produto("P2").setor == ""
