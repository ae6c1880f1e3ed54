# gerenciador_estoque/infra/logger.py
"""
Sistema de logging das operações do estoque.

Este módulo configura e fornece loggers para registrar as operações
do `EstoqueStore`: mutações do snapshot, movimentações de quantidade,
gravações no armazenamento chave/valor e eventos de sistema.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Any, Optional

from gerenciador_estoque.config import LOGS_DIR


# Flag global para habilitar/desabilitar logging
ENABLE_LOGGING = os.environ.get("ESTOQUE_LOGGING", "0").strip().lower() in {"1", "true", "sim", "yes"}

# Configuração base dos loggers
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

LOG_FILES = {
    "transactions": LOGS_DIR / "transactions.log",
    "movimentos": LOGS_DIR / "movimentos.log",
    "database": LOGS_DIR / "database.log",
    "system": LOGS_DIR / "system.log",
}


def setup_logger(name: str, log_file: str, level: int = logging.INFO) -> logging.Logger:
    """
    Configura um logger específico com arquivo de saída.

    O arquivo só é aberto na primeira mensagem (``delay=True``), então
    importar este módulo não cria arquivos quando o logging está desligado.

    Args:
        name: Nome do logger
        log_file: Caminho do arquivo de log
        level: Nível de logging (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Logger configurado
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    while logger.handlers:
        logger.removeHandler(logger.handlers[0])

    file_handler = _LazyDirFileHandler(log_file, encoding='utf-8', delay=True)
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(file_handler)

    return logger


class _LazyDirFileHandler(logging.FileHandler):
    """FileHandler que cria o diretório de logs apenas ao abrir o arquivo."""

    def _open(self):
        Path(self.baseFilename).parent.mkdir(parents=True, exist_ok=True)
        return super()._open()


transaction_logger = setup_logger('gerenciador_estoque.transactions', str(LOG_FILES["transactions"]))
movimento_logger = setup_logger('gerenciador_estoque.movimentos', str(LOG_FILES["movimentos"]))
database_logger = setup_logger('gerenciador_estoque.database', str(LOG_FILES["database"]))
system_logger = setup_logger('gerenciador_estoque.system', str(LOG_FILES["system"]))


def log_transaction(operation: str, data: Dict[str, Any], result: Optional[Any] = None, error: Optional[str] = None) -> None:
    """
    Registra uma operação do store no log de transações.

    Args:
        operation: Nome da operação (upsert_produto, update_estoque, ...)
        data: Argumentos da operação
        result: Resultado da operação (opcional)
        error: Mensagem de erro (opcional)
    """
    if not ENABLE_LOGGING:
        return
    if error:
        transaction_logger.error(f"TRANSACTION_FAILED: {operation} - {error} - Data: {data}")
    else:
        transaction_logger.info(f"TRANSACTION_SUCCESS: {operation} - Result: {result} - Data: {data}")


def log_movimento(codigo: str, quantidade: float, novo_total: float, tipo: str, **kwargs) -> None:
    """Log específico para movimentações de quantidade."""
    if not ENABLE_LOGGING:
        return
    log_data = {
        "codigo": codigo,
        "quantidade": quantidade,
        "novo_total": novo_total,
        **kwargs
    }
    movimento_logger.info(f"MOV_{tipo.upper()}: {log_data}")


def log_database_operation(chave: str, operation: str, size: int = 0, **kwargs) -> None:
    """
    Log para leituras/gravações no armazenamento chave/valor.

    Args:
        chave: Chave da coleção (products, inventory, ...)
        operation: GET | SET | MIGRATE
        size: Quantidade de registros da coleção
    """
    if not ENABLE_LOGGING:
        return
    log_data = {
        "chave": chave,
        "operation": operation,
        "size": size,
        **kwargs
    }
    database_logger.info(f"KV_{operation}: {log_data}")


def log_system_event(event: str, details: Dict[str, Any] = None, level: str = "info") -> None:
    """
    Log para eventos do sistema.

    Args:
        event: Descrição do evento
        details: Detalhes adicionais (opcional)
        level: Nível do log (info, warning, error)
    """
    if not ENABLE_LOGGING:
        return
    log_data = {
        "event": event,
        "details": details or {}
    }
    log_method = getattr(system_logger, level.lower(), system_logger.info)
    log_method(f"SYSTEM_EVENT: {event} - {log_data}")


def log_file_operation(operation: str, file_path: str, rows_processed: int = 0, **kwargs) -> None:
    """Log para importação/exportação de arquivos."""
    if not ENABLE_LOGGING:
        return
    log_data = {
        "operation": operation,
        "file_path": file_path,
        "rows_processed": rows_processed,
        **kwargs
    }
    system_logger.info(f"FILE_{operation.upper()}: {log_data}")


def get_log_summary(log_type: str = "transactions", lines: int = 100) -> str:
    """
    Obtém as últimas linhas de um log.

    Args:
        log_type: transactions | movimentos | database | system
        lines: Número de linhas a retornar
    """
    log_file = LOG_FILES.get(log_type)
    if not log_file or not log_file.exists():
        return f"Log {log_type} não encontrado."

    try:
        with open(log_file, 'r', encoding='utf-8') as f:
            all_lines = f.readlines()
    except OSError as e:
        return f"Erro ao ler log {log_type}: {e}"
    return ''.join(all_lines[-lines:])
