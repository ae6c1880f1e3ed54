import logging

import pytest

from gerenciador_estoque.infra import logger as log_mod
from gerenciador_estoque.infra.repositories import MemoryKeyValueRepo
from gerenciador_estoque.usecases.estoque_store import EstoqueStore


@pytest.fixture
def logging_ligado(monkeypatch, tmp_path):
    """Liga o logging e redireciona os arquivos para tmp_path."""
    monkeypatch.setattr(log_mod, "ENABLE_LOGGING", True)
    paths = {k: tmp_path / v.name for k, v in log_mod.LOG_FILES.items()}
    monkeypatch.setattr(log_mod, "LOG_FILES", paths)
    loggers = {
        "transaction_logger": "transactions",
        "movimento_logger": "movimentos",
        "database_logger": "database",
        "system_logger": "system",
    }
    for attr, key in loggers.items():
        lg = getattr(log_mod, attr)
        handler = log_mod._LazyDirFileHandler(str(paths[key]), encoding="utf-8", delay=True)
        handler.setFormatter(logging.Formatter(log_mod.LOG_FORMAT, log_mod.DATE_FORMAT))
        monkeypatch.setattr(lg, "handlers", [handler])
    yield paths
    for attr in loggers:
        for h in getattr(log_mod, attr).handlers:
            h.close()


def test_logging_desligado_nao_cria_arquivos(logging_ligado, monkeypatch):
    monkeypatch.setattr(log_mod, "ENABLE_LOGGING", False)
    store = EstoqueStore(MemoryKeyValueRepo())
    store.update_estoque("P1", "Picanha", "Açougue", 1)
    assert not any(p.exists() for p in logging_ligado.values())


def test_movimento_e_transacao_logados(logging_ligado, store):
    store.update_estoque("P1", "Picanha", "Açougue", 1.5)
    for lg in (log_mod.movimento_logger, log_mod.transaction_logger):
        for h in lg.handlers:
            h.flush()

    movs = logging_ligado["movimentos"].read_text(encoding="utf-8")
    assert "MOV_ENTRADA" in movs
    assert "'novo_total': 1.5" in movs

    trans = logging_ligado["transactions"].read_text(encoding="utf-8")
    assert "TRANSACTION_SUCCESS: update_estoque" in trans


def test_get_log_summary(logging_ligado):
    for i in range(5):
        log_mod.log_system_event(f"evento_{i}")
    for h in log_mod.system_logger.handlers:
        h.flush()

    resumo = log_mod.get_log_summary("system", lines=2)
    assert "evento_3" in resumo
    assert "evento_4" in resumo
    assert "evento_2" not in resumo


def test_get_log_summary_inexistente(logging_ligado):
    assert "não encontrado" in log_mod.get_log_summary("nao_existe")
    assert "não encontrado" in log_mod.get_log_summary("database")


def test_falha_de_gravacao_e_logada_e_propagada(logging_ligado, store, monkeypatch):
    def quebra(pares):
        raise OSError("disco cheio")

    monkeypatch.setattr(store._repo.kv, "set_many", quebra)
    with pytest.raises(OSError):
        store.add_setor("Padaria")
    for h in log_mod.transaction_logger.handlers:
        h.flush()
    assert "TRANSACTION_FAILED: add_setor - disco cheio" in logging_ligado["transactions"].read_text(encoding="utf-8")


def test_cli_logs(logging_ligado):
    from typer.testing import CliRunner

    from gerenciador_estoque.adapters.cli import app

    log_mod.log_movimento("P1", 2.0, 2.0, "Entrada")
    for h in log_mod.movimento_logger.handlers:
        h.flush()
    result = CliRunner().invoke(app, ["logs", "movimentos", "-n", "5"])
    assert result.exit_code == 0
    assert "MOV_ENTRADA" in result.stdout
