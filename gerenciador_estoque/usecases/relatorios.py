# gerenciador_estoque/usecases/relatorios.py
"""
Relatórios de estoque:
- CSV do estoque e CSV de produtos de um setor
- itens contados / não contados de um setor
- resumo por setor
- exportação XLSX (pandas) das mesmas tabelas

Todas as funções são puras: recebem as coleções e não alteram nada.
"""

from __future__ import annotations

import csv
import io
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from gerenciador_estoque.config import DEFAULTS
from gerenciador_estoque.domain.models import ItemEstoque, Produto
from gerenciador_estoque.domain.policies import mesmo_setor
from gerenciador_estoque.infra.logger import log_file_operation

CABECALHO_ESTOQUE = ["codigo", "descricao", "setor", "total"]
CABECALHO_PRODUTOS = ["codigo", "descricao", "setor"]


# ----------------------
# util
# ----------------------

def _fmt_total(total: float) -> str:
    return f"{float(total):.{DEFAULTS.casas_decimais}f}"


def _csv(linhas: Iterable[List[str]]) -> str:
    """Monta o texto com ';' e '\\n'. Campos com ';', aspas ou quebra de linha são citados."""
    buf = io.StringIO()
    w = csv.writer(buf, delimiter=DEFAULTS.separador_csv, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    w.writerows(linhas)
    return buf.getvalue()


def _do_setor(registros: Iterable[Any], setor: Optional[str]) -> List[Any]:
    if setor is None:
        return list(registros)
    return [r for r in registros if mesmo_setor(r.setor, setor)]


# ----------------------
# 1) CSV
# ----------------------

def gerar_csv_estoque(estoque: Iterable[ItemEstoque], setor: Optional[str]) -> str:
    """CSV do estoque do setor: `codigo;descricao;setor;total` com total em uma casa decimal."""
    linhas = [CABECALHO_ESTOQUE]
    for item in _do_setor(estoque, setor):
        linhas.append([item.codigo, item.descricao, item.setor, _fmt_total(item.total)])
    return _csv(linhas)


def gerar_csv_produtos(produtos: Iterable[Produto], setor: Optional[str]) -> str:
    """CSV de produtos do setor: `codigo;descricao;setor`."""
    linhas = [CABECALHO_PRODUTOS]
    for p in _do_setor(produtos, setor):
        linhas.append([p.codigo, p.descricao, p.setor])
    return _csv(linhas)


# ----------------------
# 2) Contados / não contados
# ----------------------

def itens_contados(estoque: Iterable[ItemEstoque], setor: Optional[str]) -> List[ItemEstoque]:
    """Itens do setor com total diferente de zero, ordenados por descrição."""
    itens = [i for i in _do_setor(estoque, setor) if i.total != 0]
    return sorted(itens, key=lambda i: i.descricao.casefold())


def itens_nao_contados(
    produtos: Iterable[Produto],
    estoque: Iterable[ItemEstoque],
    setor: Optional[str],
) -> List[Produto]:
    """Produtos do setor sem item de estoque ou com total zero, ordenados por descrição."""
    totais = {i.codigo: i.total for i in estoque}
    faltam = [p for p in _do_setor(produtos, setor) if totais.get(p.codigo, 0.0) == 0]
    return sorted(faltam, key=lambda p: p.descricao.casefold())


# ----------------------
# 3) Resumo por setor
# ----------------------

def resumo_por_setor(
    setores: Iterable[str],
    produtos: Iterable[Produto],
    estoque: Iterable[ItemEstoque],
) -> List[Dict[str, Any]]:
    """Uma linha por setor: quantidade de produtos, itens contados e soma dos totais."""
    produtos = list(produtos)
    estoque = list(estoque)
    out: List[Dict[str, Any]] = []
    for s in setores:
        itens = _do_setor(estoque, s)
        out.append(
            {
                "setor": s,
                "produtos": len(_do_setor(produtos, s)),
                "contados": sum(1 for i in itens if i.total != 0),
                "total": round(sum(i.total for i in itens), DEFAULTS.casas_decimais),
            }
        )
    return out


# ----------------------
# 4) XLSX
# ----------------------

def relatorio_dataframe(registros: Iterable[Any], tipo: str = "estoque") -> pd.DataFrame:
    """DataFrame com as mesmas colunas do CSV correspondente."""
    cols = CABECALHO_ESTOQUE if tipo == "estoque" else CABECALHO_PRODUTOS
    rows = [{c: getattr(r, c) for c in cols} for r in registros]
    return pd.DataFrame(rows, columns=cols)


def exportar_xlsx(df: pd.DataFrame, path: str, sheet_name: str = "Relatorio") -> str:
    """Grava o DataFrame em XLSX e devolve o caminho."""
    df.to_excel(path, index=False, sheet_name=sheet_name[:31])
    log_file_operation("export", path, rows_processed=len(df))
    return path
