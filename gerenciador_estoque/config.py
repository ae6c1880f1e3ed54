# gerenciador_estoque/config.py
"""
Configurações globais e valores padrão do gerenciador de estoque.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple


# Caminho padrão do banco SQLite que guarda o snapshot chave/valor
DB_PATH = os.environ.get("ESTOQUE_DB", os.path.join(os.getcwd(), "estoque.db"))

# Diretório dos arquivos de log
LOGS_DIR = Path(os.environ.get("ESTOQUE_LOGS_DIR", Path(__file__).parent / "logs"))


@dataclass
class DefaultConfig:
    """Valores padrão para parâmetros do sistema."""
    setores_padrao: Tuple[str, ...] = ("Açougue", "Hortifruti", "Outros")
    admin_username: str = "admin"
    admin_password: str = field(default_factory=lambda: os.environ.get("ESTOQUE_ADMIN_PASSWORD", "admin"))
    bcrypt_rounds: int = field(default_factory=lambda: int(os.environ.get("ESTOQUE_BCRYPT_ROUNDS", "12")))
    casas_decimais: int = 1      # totais guardados em múltiplos de 0.1
    separador_csv: str = ";"


# Instância global dos valores padrão
DEFAULTS = DefaultConfig()
