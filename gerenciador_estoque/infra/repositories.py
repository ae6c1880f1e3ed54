# gerenciador_estoque/infra/repositories.py
"""
Repositórios de persistência chave/valor e codec do snapshot.

Classes:
- SqliteKeyValueRepo  -> tabela `kv_store` (uma linha por coleção)
- MemoryKeyValueRepo  -> dicionário em memória (embutir / testes)
- SnapshotRepo        -> converte as coleções do domínio <-> JSON

Formato gravado (uma string JSON por chave):
    products  -> [{codigo, descricao, setor}, ...]
    inventory -> [{codigo, descricao, setor, total}, ...]
    history   -> [{codigo, descricao, setor, quantidade, timestamp, tipo, novo_total}, ...]
    sectors   -> ["Açougue", ...]
    users     -> [{username, password, canEditProducts, canEditInventory,
                   canViewReports, canManageUsers, isAdmin}, ...]
"""

from __future__ import annotations

import json
import math
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Tuple

from .db import connect
from .migrations import apply_migrations
from .logger import log_database_operation, log_system_event
from gerenciador_estoque.domain.models import ItemEstoque, Movimentacao, Produto, Usuario


K_PRODUTOS = "products"
K_ESTOQUE = "inventory"
K_HISTORICO = "history"
K_SETORES = "sectors"
K_USUARIOS = "users"

CHAVES = (K_PRODUTOS, K_ESTOQUE, K_HISTORICO, K_SETORES, K_USUARIOS)


# -------------------------
# Substratos chave/valor
# -------------------------

class KeyValueRepo(Protocol):
    def get(self, key: str, default: Optional[str] = None) -> Optional[str]: ...

    def set_many(self, items: Iterable[Tuple[str, str]]) -> None: ...


class SqliteKeyValueRepo:
    def __init__(self, db_path: str, migrate: bool = True):
        self.db_path = db_path
        if migrate:
            apply_migrations(db_path)

    def set_many(self, items: Iterable[Tuple[str, str]]) -> None:
        agora = datetime.now().isoformat(timespec="seconds")
        with connect(self.db_path) as c:
            c.executemany(
                """
                INSERT INTO kv_store (chave, valor, atualizado_em)
                VALUES (?, ?, ?)
                ON CONFLICT(chave) DO UPDATE SET
                    valor=excluded.valor,
                    atualizado_em=excluded.atualizado_em
                """,
                [(k, v, agora) for k, v in items],
            )

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        with connect(self.db_path) as c:
            row = c.execute("SELECT valor FROM kv_store WHERE chave = ?", (key,)).fetchone()
            return row[0] if row else default

    def keys(self) -> List[str]:
        with connect(self.db_path) as c:
            return [r[0] for r in c.execute("SELECT chave FROM kv_store ORDER BY chave")]


class MemoryKeyValueRepo:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})
        self.writes = 0

    def set_many(self, items: Iterable[Tuple[str, str]]) -> None:
        self.data.update(dict(items))
        self.writes += 1

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.data.get(key, default)


# -------------------------
# Helpers de decodificação
# -------------------------

def _now_ms() -> int:
    return int(time.time() * 1000)


def _str(obj: Dict[str, Any], key: str) -> str:
    val = obj.get(key)
    if val is None:
        return ""
    return str(val)


def _float(obj: Dict[str, Any], key: str, default: Optional[float] = 0.0) -> Optional[float]:
    try:
        val = float(obj.get(key))
    except (TypeError, ValueError):
        return default
    # json aceita NaN e Infinity
    return val if math.isfinite(val) else default


def _to_bool(val: Any) -> bool:
    if isinstance(val, bool):
        return val
    if val is None:
        return False
    s = str(val).strip().lower()
    return s in {"1", "true", "t", "sim", "s", "y", "yes"}


def _objects(raw: List[Any]) -> Iterable[Dict[str, Any]]:
    for obj in raw:
        if isinstance(obj, dict):
            yield obj


# -------------------------
# Encoders / decoders por coleção
# -------------------------

def encode_produtos(produtos: Iterable[Produto]) -> str:
    return json.dumps(
        [{"codigo": p.codigo, "descricao": p.descricao, "setor": p.setor} for p in produtos],
        ensure_ascii=False,
    )


def decode_produtos(raw: List[Any]) -> List[Produto]:
    out = []
    vistos = set()
    for obj in _objects(raw):
        codigo = _str(obj, "codigo")
        if codigo.strip() and codigo not in vistos:
            vistos.add(codigo)
            out.append(Produto(codigo, _str(obj, "descricao"), _str(obj, "setor")))
    return out


def encode_estoque(itens: Iterable[ItemEstoque]) -> str:
    return json.dumps(
        [
            {"codigo": i.codigo, "descricao": i.descricao, "setor": i.setor, "total": i.total}
            for i in itens
        ],
        ensure_ascii=False,
    )


def decode_estoque(raw: List[Any]) -> List[ItemEstoque]:
    out = []
    vistos = set()
    for obj in _objects(raw):
        codigo = _str(obj, "codigo")
        if codigo.strip() and codigo not in vistos:
            vistos.add(codigo)
            out.append(ItemEstoque(codigo, _str(obj, "descricao"), _str(obj, "setor"), _float(obj, "total")))
    return out


def encode_historico(movs: Iterable[Movimentacao]) -> str:
    return json.dumps(
        [
            {
                "codigo": m.codigo,
                "descricao": m.descricao,
                "setor": m.setor,
                "quantidade": m.quantidade,
                "timestamp": m.timestamp,
                "tipo": m.tipo,
                "novo_total": m.novo_total,
            }
            for m in movs
        ],
        ensure_ascii=False,
    )


def decode_historico(raw: List[Any]) -> List[Movimentacao]:
    out = []
    for obj in _objects(raw):
        codigo = _str(obj, "codigo")
        if not codigo.strip():
            continue
        try:
            ts = int(obj.get("timestamp"))
        except (TypeError, ValueError, OverflowError):
            ts = _now_ms()
        out.append(
            Movimentacao(
                codigo=codigo,
                descricao=_str(obj, "descricao"),
                setor=_str(obj, "setor"),
                quantidade=_float(obj, "quantidade"),
                timestamp=ts,
                tipo=_str(obj, "tipo"),
                novo_total=_float(obj, "novo_total", None),
            )
        )
    return out


def encode_setores(setores: Iterable[str]) -> str:
    return json.dumps(list(setores), ensure_ascii=False)


def decode_setores(raw: List[Any]) -> List[str]:
    return [s for s in raw if isinstance(s, str) and s.strip()]


def encode_usuarios(usuarios: Iterable[Usuario]) -> str:
    return json.dumps(
        [
            {
                "username": u.username,
                "password": u.password_hash,
                "canEditProducts": u.can_edit_products,
                "canEditInventory": u.can_edit_inventory,
                "canViewReports": u.can_view_reports,
                "canManageUsers": u.can_manage_users,
                "isAdmin": u.is_admin,
            }
            for u in usuarios
        ],
        ensure_ascii=False,
    )


def decode_usuarios(raw: List[Any]) -> List[Usuario]:
    out = []
    for obj in _objects(raw):
        username = _str(obj, "username")
        if not username.strip():
            continue
        out.append(
            Usuario(
                username=username,
                password_hash=_str(obj, "password"),
                can_edit_products=_to_bool(obj.get("canEditProducts")),
                can_edit_inventory=_to_bool(obj.get("canEditInventory")),
                can_view_reports=_to_bool(obj.get("canViewReports")),
                can_manage_users=_to_bool(obj.get("canManageUsers")),
                is_admin=_to_bool(obj.get("isAdmin")),
            )
        )
    return out


_DECODERS: Dict[str, Callable[[List[Any]], list]] = {
    K_PRODUTOS: decode_produtos,
    K_ESTOQUE: decode_estoque,
    K_HISTORICO: decode_historico,
    K_SETORES: decode_setores,
    K_USUARIOS: decode_usuarios,
}


# -------------------------
# Snapshot
# -------------------------

@dataclass
class Snapshot:
    produtos: List[Produto] = field(default_factory=list)
    estoque: List[ItemEstoque] = field(default_factory=list)
    historico: List[Movimentacao] = field(default_factory=list)
    setores: List[str] = field(default_factory=list)
    usuarios: List[Usuario] = field(default_factory=list)


class SnapshotRepo:
    """Lê e grava o snapshot completo sobre um `KeyValueRepo`."""

    def __init__(self, kv: KeyValueRepo):
        self.kv = kv

    def _load_key(self, key: str) -> list:
        txt = self.kv.get(key)
        if txt is None:
            return []
        try:
            raw = json.loads(txt)
            if not isinstance(raw, list):
                raise ValueError(f"esperado array JSON, veio {type(raw).__name__}")
            items = _DECODERS[key](raw)
        except (ValueError, TypeError, RecursionError) as e:
            # JSON corrompido: a coleção é tratada como vazia
            log_system_event("snapshot_corrupt_key", {"chave": key, "error": str(e)}, level="warning")
            return []
        log_database_operation(key, "GET", len(items))
        return items

    def load(self) -> Snapshot:
        return Snapshot(
            produtos=self._load_key(K_PRODUTOS),
            estoque=self._load_key(K_ESTOQUE),
            historico=self._load_key(K_HISTORICO),
            setores=self._load_key(K_SETORES),
            usuarios=self._load_key(K_USUARIOS),
        )

    def save(self, snap: Snapshot) -> None:
        self.kv.set_many(
            [
                (K_PRODUTOS, encode_produtos(snap.produtos)),
                (K_ESTOQUE, encode_estoque(snap.estoque)),
                (K_HISTORICO, encode_historico(snap.historico)),
                (K_SETORES, encode_setores(snap.setores)),
                (K_USUARIOS, encode_usuarios(snap.usuarios)),
            ]
        )
        log_database_operation(
            "*", "SET", len(snap.produtos),
            estoque=len(snap.estoque), historico=len(snap.historico),
        )
