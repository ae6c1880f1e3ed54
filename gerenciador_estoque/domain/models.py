# gerenciador_estoque/domain/models.py
"""
Modelos (dataclasses) do domínio.

Observação importante:
- A camada de persistência converte JSON <-> dataclasses na borda
  (ver `infra/repositories.py`); o restante do sistema só enxerga
  estes tipos.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional


@dataclass
class Produto:
    """Cadastro de produto. `codigo` é a identidade; descrição e setor são editáveis."""
    codigo: str
    descricao: str
    setor: str = ""


@dataclass
class ItemEstoque:
    """Quantidade atual em estoque de um código (pode existir sem `Produto`)."""
    codigo: str
    descricao: str
    setor: str
    total: float = 0.0


@dataclass(frozen=True)
class Movimentacao:
    """Registro imutável de uma alteração de quantidade."""
    codigo: str
    descricao: str
    setor: str
    quantidade: float
    timestamp: int                    # epoch em milissegundos
    tipo: str = ""                    # 'Entrada' | 'Saída' (informativo)
    novo_total: Optional[float] = None

    def com_setor(self, setor: str) -> "Movimentacao":
        return replace(self, setor=setor)


@dataclass
class Usuario:
    """Usuário e suas permissões. A senha é guardada apenas como hash bcrypt."""
    username: str
    password_hash: str
    can_edit_products: bool = False
    can_edit_inventory: bool = False
    can_view_reports: bool = False
    can_manage_users: bool = False
    is_admin: bool = False


@dataclass
class Permissoes:
    """As quatro permissões editáveis de um usuário."""
    can_edit_products: bool = False
    can_edit_inventory: bool = False
    can_view_reports: bool = False
    can_manage_users: bool = False

    @classmethod
    def todas(cls) -> "Permissoes":
        return cls(True, True, True, True)


@dataclass
class Sessao:
    """Sessão autenticada, passada explicitamente às operações que exigem permissão."""
    usuario: Usuario
    setor_ativo: Optional[str] = None

    def pode(self, permissao: str) -> bool:
        if self.usuario.is_admin:
            return True
        return bool(getattr(self.usuario, permissao, False))


@dataclass
class ResultadoImportacao:
    """Resumo de uma importação de produtos."""
    importados: int = 0
    pendentes: int = 0
    ignoradas: int = 0
    recusado: bool = False
    linhas_ignoradas: list = field(default_factory=list)
