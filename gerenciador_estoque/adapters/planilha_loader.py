# gerenciador_estoque/adapters/planilha_loader.py
"""
Loader de planilhas (XLSX) de cadastro de produtos.

Essa função:
- lê a planilha usando pandas;
- normaliza cabeçalhos (acentos, variações, sinônimos);
- retorna tuplas (codigo, descricao, setor) no mesmo formato do import CSV.

Observações:
- Linhas sem código ou descrição voltam como `None` para serem contadas
  como ignoradas pelo store.
- Setor ausente vira string vazia (produto fica pendente de setor).
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

import pandas as pd

from gerenciador_estoque.adapters.parsers import _slug, limpa_campo


def _slug_coluna(s) -> str:
    """Normaliza cabeçalhos: minúsculas, sem acentos, sem não-alfanumérico."""
    s = _slug(s)
    s = re.sub(r"[^a-z0-9]+", " ", s)
    return re.sub(r"\s+", " ", s).strip()


def _safe_get(row, key) -> str:
    """Lê um valor da linha tratando NA do pandas."""
    val = row.get(key)
    if val is None or pd.isna(val):
        return ""
    return limpa_campo(val)


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Renomeia colunas com base em sinônimos/variações."""
    aliases = {
        "codigo": "codigo",
        "cod": "codigo",
        "id": "codigo",
        "sku": "codigo",
        "codigo produto": "codigo",

        "descricao": "descricao",
        "produto": "descricao",
        "nome": "descricao",
        "nome do produto": "descricao",

        "setor": "setor",
        "departamento": "setor",
        "secao": "setor",
        "categoria": "setor",
    }
    new_cols = {}
    for col in df.columns:
        key = _slug_coluna(col)
        new_cols[col] = aliases.get(key, key)  # se não houver alias, mantém slug
    return df.rename(columns=new_cols)


def load_produtos_from_xlsx(path: str) -> List[Tuple[int, Optional[Tuple[str, str, str]]]]:
    """Lê XLSX de produtos.

    Returns:
        Lista de ``(numero_linha, (codigo, descricao, setor) | None)``; a
        numeração considera o cabeçalho como linha 1.
    """
    df = pd.read_excel(path, dtype="string")
    df = _normalize_columns(df)
    out: List[Tuple[int, Optional[Tuple[str, str, str]]]] = []
    for idx, row in df.iterrows():
        codigo = _safe_get(row, "codigo")
        descricao = _safe_get(row, "descricao")
        setor = _safe_get(row, "setor")
        linha = int(idx) + 2
        if not codigo or not descricao:
            out.append((linha, None))
        else:
            out.append((linha, (codigo, descricao, setor)))
    return out
