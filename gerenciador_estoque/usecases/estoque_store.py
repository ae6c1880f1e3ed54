# gerenciador_estoque/usecases/estoque_store.py
"""
UC: EstoqueStore, dono das coleções (produtos, estoque, histórico, setores,
usuários) e das regras para alterá-las de forma consistente.

Fluxo de toda operação de escrita:
1) Valida argumentos e permissões (falha -> retorna False/0/None, nada muda).
2) Altera as coleções em memória.
3) Grava o snapshot completo no armazenamento chave/valor.

Obs.:
- Tudo é síncrono; não há threads nem API assíncrona.
- `Sessao` é opcional: sem sessão o store age como biblioteca sem
  controle de acesso; com sessão, as permissões do usuário são checadas.
"""
from __future__ import annotations

import time
from typing import Callable, Iterable, List, Optional, Tuple

from gerenciador_estoque.config import DB_PATH, DEFAULTS
from gerenciador_estoque.adapters.parsers import iter_linhas_produto
from gerenciador_estoque.adapters.planilha_loader import load_produtos_from_xlsx
from gerenciador_estoque.domain.models import (
    ItemEstoque,
    Movimentacao,
    Permissoes,
    Produto,
    ResultadoImportacao,
    Sessao,
    Usuario,
)
from gerenciador_estoque.domain.policies import (
    arredonda_decimo,
    em_branco,
    localiza_setor,
    mesmo_nome,
    mesmo_setor,
    quantidade_valida,
    soma_em_decimos,
    tipo_movimento,
)
from gerenciador_estoque.infra.logger import (
    log_file_operation,
    log_movimento,
    log_system_event,
    log_transaction,
)
from gerenciador_estoque.infra.repositories import (
    KeyValueRepo,
    Snapshot,
    SnapshotRepo,
    SqliteKeyValueRepo,
)
from gerenciador_estoque.infra.security import (
    get_password_hash,
    is_password_hash,
    senha_aceita,
    verify_password,
)
from gerenciador_estoque.usecases import relatorios

LinhaProduto = Tuple[int, Optional[Tuple[str, str, str]]]


class EstoqueStore:
    def __init__(self, kv: KeyValueRepo, clock: Optional[Callable[[], int]] = None):
        self._repo = SnapshotRepo(kv)
        self._clock = clock or (lambda: int(time.time() * 1000))
        snap = self._repo.load()
        self.produtos: List[Produto] = snap.produtos
        self.estoque: List[ItemEstoque] = snap.estoque
        self.historico: List[Movimentacao] = snap.historico
        self.setores: List[str] = snap.setores
        self.usuarios: List[Usuario] = snap.usuarios
        self.pendentes: List[Produto] = []

        if not self.setores:
            self.setores.extend(DEFAULTS.setores_padrao)
        admins = [u for u in self.usuarios if u.is_admin]
        if not admins:
            self._seed_admin()
        for extra in admins[1:]:
            extra.is_admin = False
        log_system_event("store_loaded", {
            "produtos": len(self.produtos),
            "estoque": len(self.estoque),
            "historico": len(self.historico),
        })

    @classmethod
    def open(cls, db_path: str = DB_PATH) -> "EstoqueStore":
        """Abre (e migra, se preciso) o banco SQLite em `db_path`."""
        return cls(SqliteKeyValueRepo(db_path))

    # ----------------------
    # util
    # ----------------------

    def _seed_admin(self) -> None:
        # o admin sempre existe e ocupa o início da lista
        self.usuarios = [u for u in self.usuarios if not mesmo_nome(u.username, DEFAULTS.admin_username)]
        self.usuarios.insert(0, Usuario(
            username=DEFAULTS.admin_username,
            password_hash=get_password_hash(DEFAULTS.admin_password),
            can_edit_products=True,
            can_edit_inventory=True,
            can_view_reports=True,
            can_manage_users=True,
            is_admin=True,
        ))

    def salvar(self) -> None:
        """Grava o snapshot atual (usado ao criar um banco novo)."""
        self._persist("salvar", {})

    def _persist(self, operation: str, data: dict) -> None:
        snap = Snapshot(self.produtos, self.estoque, self.historico, self.setores, self.usuarios)
        try:
            self._repo.save(snap)
        except Exception as e:
            log_transaction(operation, data, error=str(e))
            raise
        log_transaction(operation, data, result="ok")

    def _registra_setor(self, setor: str) -> None:
        if setor and setor.strip() and localiza_setor(self.setores, setor) is None:
            self.setores.append(setor.strip())

    @staticmethod
    def _permitido(sessao: Optional[Sessao], permissao: str) -> bool:
        return sessao is None or sessao.pode(permissao)

    def _idx_produto(self, codigo: str) -> Optional[int]:
        for i, p in enumerate(self.produtos):
            if p.codigo == codigo:
                return i
        return None

    def _idx_item(self, codigo: str) -> Optional[int]:
        for i, item in enumerate(self.estoque):
            if item.codigo == codigo:
                return i
        return None

    # ----------------------
    # consultas
    # ----------------------

    def get_produto(self, codigo: str) -> Optional[Produto]:
        i = self._idx_produto(codigo)
        return self.produtos[i] if i is not None else None

    def get_item(self, codigo: str) -> Optional[ItemEstoque]:
        i = self._idx_item(codigo)
        return self.estoque[i] if i is not None else None

    def total_atual(self, codigo: str) -> float:
        item = self.get_item(codigo)
        return item.total if item else 0.0

    def historico_de(self, codigo: Optional[str] = None) -> List[Movimentacao]:
        if codigo is None:
            return list(self.historico)
        return [m for m in self.historico if m.codigo == codigo]

    def get_usuario(self, username: str) -> Optional[Usuario]:
        for u in self.usuarios:
            if mesmo_nome(u.username, username):
                return u
        return None

    # ----------------------
    # produtos
    # ----------------------

    def upsert_produto(self, codigo: str, descricao: str, setor: str, sessao: Optional[Sessao] = None) -> bool:
        """Cria ou atualiza (descrição/setor) um produto. Falha se algum campo estiver em branco."""
        if em_branco(codigo, descricao, setor):
            return False
        if not self._permitido(sessao, "can_edit_products"):
            return False
        self._upsert(codigo.strip(), descricao.strip(), setor.strip())
        self._persist("upsert_produto", {"codigo": codigo, "setor": setor})
        return True

    def _upsert(self, codigo: str, descricao: str, setor: str) -> None:
        i = self._idx_produto(codigo)
        if i is not None:
            self.produtos[i].descricao = descricao
            self.produtos[i].setor = setor
        else:
            self.produtos.append(Produto(codigo, descricao, setor))
        self._registra_setor(setor)

    def delete_produto(self, codigo: str, sessao: Optional[Sessao] = None) -> bool:
        """Remove o produto e seu item de estoque. Idempotente: código ausente também retorna True."""
        if not self._permitido(sessao, "can_edit_products"):
            return False
        self.produtos = [p for p in self.produtos if p.codigo != codigo]
        self.estoque = [i for i in self.estoque if i.codigo != codigo]
        self.pendentes = [p for p in self.pendentes if p.codigo != codigo]
        self._persist("delete_produto", {"codigo": codigo})
        return True

    def clear_produtos(self, sessao: Optional[Sessao] = None) -> bool:
        """Apaga produtos, estoque e histórico."""
        if not self._permitido(sessao, "can_edit_products"):
            return False
        self.produtos = []
        self.estoque = []
        self.historico = []
        self.pendentes = []
        self._persist("clear_produtos", {})
        return True

    def clear_produtos_do_setor(self, setor: str, sessao: Optional[Sessao] = None) -> int:
        """Apaga os produtos do setor (com estoque e histórico) e retorna quantos produtos saíram."""
        if em_branco(setor) or not self._permitido(sessao, "can_edit_products"):
            return 0
        codigos = {p.codigo for p in self.produtos if mesmo_setor(p.setor, setor)}
        if not codigos:
            return 0
        self.produtos = [p for p in self.produtos if p.codigo not in codigos]
        self.estoque = [i for i in self.estoque if i.codigo not in codigos]
        self.historico = [m for m in self.historico if m.codigo not in codigos]
        self.pendentes = [p for p in self.pendentes if p.codigo not in codigos]
        self._persist("clear_produtos_do_setor", {"setor": setor, "removidos": len(codigos)})
        return len(codigos)

    # ----------------------
    # importação
    # ----------------------

    def import_produtos_rows(
        self, linhas: Iterable[LinhaProduto], origem: str = "rows", sessao: Optional[Sessao] = None,
    ) -> ResultadoImportacao:
        """Aplica linhas `(n, (codigo, descricao, setor) | None)` e persiste uma única vez."""
        res = ResultadoImportacao()
        if not self._permitido(sessao, "can_edit_products"):
            res.recusado = True
            return res
        for n, dados in linhas:
            if dados is None:
                res.ignoradas += 1
                res.linhas_ignoradas.append(n)
                continue
            codigo, descricao, setor = dados
            self._upsert(codigo, descricao, setor)
            res.importados += 1
            self.pendentes = [p for p in self.pendentes if p.codigo != codigo]
            if not setor:
                self.pendentes.append(self.get_produto(codigo))
                res.pendentes += 1
        self._persist("import_produtos", {
            "origem": origem,
            "importados": res.importados,
            "pendentes": res.pendentes,
            "ignoradas": res.ignoradas,
        })
        return res

    def import_produtos_csv(self, conteudo: str, sessao: Optional[Sessao] = None) -> ResultadoImportacao:
        """Importa produtos de um texto CSV (`;` ou `,`, cabeçalho e setor opcionais)."""
        return self.import_produtos_rows(iter_linhas_produto(conteudo), origem="csv", sessao=sessao)

    def import_produtos_xlsx(self, path: str, sessao: Optional[Sessao] = None) -> ResultadoImportacao:
        """Importa produtos de uma planilha XLSX."""
        log_file_operation("import", path)
        linhas = load_produtos_from_xlsx(path)
        log_file_operation("import", path, rows_processed=len(linhas))
        return self.import_produtos_rows(linhas, origem=path, sessao=sessao)

    def assign_setor_produtos(self, codigos: Iterable[str], setor: str, sessao: Optional[Sessao] = None) -> int:
        """Atribui `setor` aos produtos dos códigos informados; retorna quantos foram alterados."""
        if em_branco(setor) or not self._permitido(sessao, "can_edit_products"):
            return 0
        setor = setor.strip()
        alvo = set(codigos)
        n = 0
        for p in self.produtos:
            if p.codigo in alvo:
                p.setor = setor
                n += 1
        self._registra_setor(setor)
        self.pendentes = [p for p in self.pendentes if p.codigo not in alvo]
        self._persist("assign_setor_produtos", {"setor": setor, "alterados": n})
        return n

    def assign_setor_pendentes(self, setor: str, sessao: Optional[Sessao] = None) -> int:
        """Atribui `setor` a todos os produtos pendentes e esvazia a lista."""
        if em_branco(setor) or not self._permitido(sessao, "can_edit_products"):
            return 0
        codigos = [p.codigo for p in self.pendentes]
        n = self.assign_setor_produtos(codigos, setor, sessao=sessao)
        self.pendentes = []
        return n

    # ----------------------
    # estoque
    # ----------------------

    def update_estoque(
        self,
        codigo: str,
        descricao: str,
        setor: str,
        quantidade: float,
        sessao: Optional[Sessao] = None,
    ) -> bool:
        """Soma `quantidade` ao total do código (cria o item se não existir).

        Descrição/setor em branco não apagam os valores atuais; se o item for
        novo, são completados a partir do cadastro do produto.
        """
        if em_branco(codigo) or not quantidade_valida(quantidade):
            return False
        if not self._permitido(sessao, "can_edit_inventory"):
            return False
        codigo = codigo.strip()
        descricao = (descricao or "").strip()
        setor = (setor or "").strip()
        quantidade = float(quantidade)

        i = self._idx_item(codigo)
        produto = self.get_produto(codigo)
        base = self.estoque[i] if i is not None else produto
        setor_final = setor or (base.setor if base else "")
        descricao_final = descricao or (base.descricao if base else "")

        setor_checado = produto.setor if produto is not None and produto.setor else setor_final
        if sessao is not None and sessao.setor_ativo and not mesmo_setor(setor_checado, sessao.setor_ativo):
            log_system_event("update_estoque_setor_recusado", {
                "codigo": codigo, "setor": setor_checado, "setor_ativo": sessao.setor_ativo,
            }, level="warning")
            return False

        if i is not None:
            item = self.estoque[i]
            item.total = soma_em_decimos(item.total, quantidade)
            item.descricao = descricao_final
            item.setor = setor_final
        else:
            item = ItemEstoque(codigo, descricao_final, setor_final, arredonda_decimo(quantidade))
            self.estoque.append(item)

        self._registra_setor(setor_final)
        if quantidade != 0:
            tipo = tipo_movimento(quantidade)
            self.historico.append(Movimentacao(
                codigo=codigo,
                descricao=item.descricao,
                setor=item.setor,
                quantidade=quantidade,
                timestamp=self._clock(),
                tipo=tipo,
                novo_total=item.total,
            ))
            log_movimento(codigo, quantidade, item.total, tipo, setor=item.setor)
        self._persist("update_estoque", {"codigo": codigo, "quantidade": quantidade})
        return True

    def clear_estoque(self, sessao: Optional[Sessao] = None) -> bool:
        """Zera estoque e histórico; produtos ficam."""
        if not self._permitido(sessao, "can_edit_inventory"):
            return False
        self.estoque = []
        self.historico = []
        self._persist("clear_estoque", {})
        return True

    # ----------------------
    # setores
    # ----------------------

    def add_setor(self, nome: str, sessao: Optional[Sessao] = None) -> bool:
        if not self._permitido(sessao, "can_edit_products"):
            return False
        if em_branco(nome) or localiza_setor(self.setores, nome) is not None:
            return False
        self.setores.append(nome.strip())
        self._persist("add_setor", {"setor": nome})
        return True

    def edit_setor(self, antigo: str, novo: str, sessao: Optional[Sessao] = None) -> bool:
        """Renomeia o setor e propaga para produtos, estoque e histórico."""
        if em_branco(novo) or not self._permitido(sessao, "can_edit_products"):
            return False
        novo = novo.strip()
        idx = localiza_setor(self.setores, antigo)
        if idx is None:
            return False
        outro = localiza_setor(self.setores, novo)
        if outro is not None and outro != idx:
            return False
        self.setores[idx] = novo
        for p in self.produtos:
            if mesmo_setor(p.setor, antigo):
                p.setor = novo
        for item in self.estoque:
            if mesmo_setor(item.setor, antigo):
                item.setor = novo
        self.historico = [m.com_setor(novo) if mesmo_setor(m.setor, antigo) else m for m in self.historico]
        self._persist("edit_setor", {"antigo": antigo, "novo": novo})
        return True

    def delete_setor(self, nome: str, sessao: Optional[Sessao] = None) -> bool:
        """Remove o setor e tudo que o referencia (produtos, estoque, histórico)."""
        if not self._permitido(sessao, "can_edit_products"):
            return False
        idx = localiza_setor(self.setores, nome)
        if idx is None:
            return False
        del self.setores[idx]
        self.produtos = [p for p in self.produtos if not mesmo_setor(p.setor, nome)]
        self.estoque = [i for i in self.estoque if not mesmo_setor(i.setor, nome)]
        self.historico = [m for m in self.historico if not mesmo_setor(m.setor, nome)]
        codigos = {p.codigo for p in self.produtos}
        self.pendentes = [p for p in self.pendentes if p.codigo in codigos]
        self._persist("delete_setor", {"setor": nome})
        return True

    # ----------------------
    # relatórios
    # ----------------------

    def gerar_csv_estoque(self, setor: Optional[str]) -> str:
        return relatorios.gerar_csv_estoque(self.estoque, setor)

    def gerar_csv_produtos(self, setor: Optional[str]) -> str:
        return relatorios.gerar_csv_produtos(self.produtos, setor)

    def itens_contados(self, setor: Optional[str]) -> List[ItemEstoque]:
        return relatorios.itens_contados(self.estoque, setor)

    def itens_nao_contados(self, setor: Optional[str]) -> List[Produto]:
        return relatorios.itens_nao_contados(self.produtos, self.estoque, setor)

    def resumo_por_setor(self) -> List[dict]:
        return relatorios.resumo_por_setor(self.setores, self.produtos, self.estoque)

    # ----------------------
    # usuários
    # ----------------------

    def authenticate(self, username: str, password: str, setor_ativo: Optional[str] = None) -> Optional[Sessao]:
        """Retorna uma `Sessao` se usuário/senha conferem; senão None.

        Senhas em texto puro herdadas de versões antigas são aceitas uma vez
        e regravadas como hash bcrypt.
        """
        if em_branco(username) or password is None:
            return None
        u = self.get_usuario(username.strip())
        if u is None:
            log_system_event("login_failed", {"username": username}, level="warning")
            return None
        if is_password_hash(u.password_hash):
            ok = verify_password(password, u.password_hash)
        else:
            # senha gravada vazia nunca confere
            ok = bool(u.password_hash) and u.password_hash == password
            if ok and senha_aceita(password):
                u.password_hash = get_password_hash(password)
                self._persist("rehash_password", {"username": u.username})
        if not ok:
            log_system_event("login_failed", {"username": username}, level="warning")
            return None
        log_system_event("login_ok", {"username": u.username})
        return Sessao(usuario=u, setor_ativo=setor_ativo)

    def add_usuario(
        self,
        username: str,
        password: str,
        permissoes: Optional[Permissoes] = None,
        sessao: Optional[Sessao] = None,
    ) -> bool:
        if em_branco(username, password) or not senha_aceita(password):
            return False
        if not self._permitido(sessao, "can_manage_users"):
            return False
        if self.get_usuario(username.strip()) is not None:
            return False
        p = permissoes or Permissoes()
        self.usuarios.append(Usuario(
            username=username.strip(),
            password_hash=get_password_hash(password),
            can_edit_products=p.can_edit_products,
            can_edit_inventory=p.can_edit_inventory,
            can_view_reports=p.can_view_reports,
            can_manage_users=p.can_manage_users,
            is_admin=False,
        ))
        self._persist("add_usuario", {"username": username})
        return True

    def update_permissoes(self, username: str, permissoes: Permissoes, sessao: Optional[Sessao] = None) -> bool:
        if not self._permitido(sessao, "can_manage_users"):
            return False
        u = self.get_usuario(username or "")
        if u is None or u.is_admin:
            return False
        u.can_edit_products = permissoes.can_edit_products
        u.can_edit_inventory = permissoes.can_edit_inventory
        u.can_view_reports = permissoes.can_view_reports
        u.can_manage_users = permissoes.can_manage_users
        self._persist("update_permissoes", {"username": u.username})
        return True

    def delete_usuario(self, username: str, sessao: Optional[Sessao] = None) -> bool:
        if not self._permitido(sessao, "can_manage_users"):
            return False
        u = self.get_usuario(username or "")
        if u is None or u.is_admin:
            return False
        self.usuarios = [x for x in self.usuarios if x is not u]
        self._persist("delete_usuario", {"username": u.username})
        return True
