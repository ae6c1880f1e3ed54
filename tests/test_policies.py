import pytest

from gerenciador_estoque.domain.policies import (
    arredonda_decimo,
    em_branco,
    localiza_setor,
    mesmo_setor,
    para_decimos,
    quantidade_valida,
    soma_em_decimos,
    tipo_movimento,
)


@pytest.mark.parametrize(
    "x,esperado",
    [
        (0.1, 1),
        (0.15, 2),
        (-0.15, -2),
        (2.04, 20),
        ("1.25", 13),
        (float("nan"), 0),
        (float("inf"), 0),
        ("-Infinity", 0),
        (None, 0),
        ("abc", 0),
    ],
)
def test_para_decimos(x, esperado):
    assert para_decimos(x) == esperado


def test_soma_em_decimos_nao_acumula_erro():
    total = 0.0
    for _ in range(10):
        total = soma_em_decimos(total, 0.1)
        total = soma_em_decimos(total, 0.2)
    assert total == 3.0


def test_soma_em_decimos_arredonda_cada_parcela():
    # (round(1.04*10) + round(0.06*10)) / 10 = (10 + 1) / 10
    assert soma_em_decimos(1.04, 0.06) == 1.1
    assert soma_em_decimos(5.0, -7.5) == -2.5


def test_arredonda_decimo():
    assert arredonda_decimo(0.3333) == 0.3
    assert arredonda_decimo(2.25) == 2.3


@pytest.mark.parametrize("x,ok", [(1, True), (-0.5, True), ("2", True), (float("nan"), False), (float("inf"), False), (None, False), ("x", False)])
def test_quantidade_valida(x, ok):
    assert quantidade_valida(x) is ok


def test_tipo_movimento():
    assert tipo_movimento(3) == "Entrada"
    assert tipo_movimento(-0.1) == "Saída"


def test_setores_sem_diferenciar_caixa():
    setores = ["Açougue", "Hortifruti", "Outros"]
    assert mesmo_setor("açougue", "AÇOUGUE")
    assert localiza_setor(setores, " hortifruti ") == 1
    assert localiza_setor(setores, "Padaria") is None
    assert localiza_setor(setores, "") is None


def test_em_branco():
    assert em_branco("a", " ")
    assert em_branco(None)
    assert not em_branco("a", "b")
