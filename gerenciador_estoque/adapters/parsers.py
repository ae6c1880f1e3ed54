"""
Utilidades de parsing para importação de produtos e entrada de quantidades.

Este módulo interpreta o texto CSV de cadastro de produtos (vindo de
arquivos exportados de planilhas ou de outros sistemas) e as quantidades
digitadas pelo usuário, que podem usar vírgula ou ponto como separador
decimal.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Iterator, List, Optional, Tuple

_NUM_RE = re.compile(r"^[-+]?\d+(?:[.,]\d+)?$")
_SPLIT_RE = re.compile(r"[;,]")

CABECALHO_CODIGO = "codigo"


def _slug(s: Optional[str]) -> str:
    """Minúsculas e sem acentos: 'Código' -> 'codigo'."""
    if s is None:
        return ""
    s = unicodedata.normalize("NFKD", str(s).strip().lower())
    return "".join(ch for ch in s if not unicodedata.combining(ch))


def limpa_campo(campo: Optional[str]) -> str:
    """Remove espaços e aspas duplas das pontas de um campo."""
    if campo is None:
        return ""
    return str(campo).strip().strip('"').strip()


def split_linha(linha: str) -> List[str]:
    """Divide uma linha em campos por ';' ou ','. Aspas não protegem separadores."""
    return [limpa_campo(p) for p in _SPLIT_RE.split(linha)]


def eh_cabecalho(campos: List[str]) -> bool:
    return bool(campos) and _slug(campos[0]) == CABECALHO_CODIGO


def iter_linhas_produto(conteudo: Optional[str]) -> Iterator[Tuple[int, Optional[Tuple[str, str, str]]]]:
    """Percorre o CSV de produtos.

    Regras:
        - linhas separadas por ``\\n`` (``\\r`` final é descartado);
        - linhas em branco são puladas;
        - a primeira linha não vazia é pulada se o primeiro campo for ``codigo``;
        - são exigidos código e descrição; o setor (terceiro campo) é opcional.

    Yields:
        ``(numero_linha, (codigo, descricao, setor))`` para linhas válidas e
        ``(numero_linha, None)`` para linhas malformadas.
    """
    if not conteudo:
        return
    primeira = True
    for n, linha in enumerate(conteudo.split("\n"), start=1):
        linha = linha.strip()
        if not linha:
            continue
        campos = split_linha(linha)
        if primeira:
            primeira = False
            if eh_cabecalho(campos):
                continue
        if len(campos) < 2:
            yield n, None
            continue
        codigo, descricao = campos[0], campos[1]
        setor = campos[2] if len(campos) >= 3 else ""
        if not codigo or not descricao:
            yield n, None
            continue
        yield n, (codigo, descricao, setor)


def parse_quantidade(txt) -> Optional[float]:
    """Interpreta uma quantidade digitada.

    Exemplos:
        "2"     -> 2.0
        "1,5"   -> 1.5
        "-0.3"  -> -0.3
        "abc"   -> None

    Args:
        txt: Texto (ou número) a ser interpretado.

    Returns:
        O valor como float, ou None se não for um número.
    """
    if txt is None:
        return None
    if isinstance(txt, (int, float)) and not isinstance(txt, bool):
        return float(txt)
    s = str(txt).strip().replace(" ", "")
    if not _NUM_RE.match(s):
        return None
    return float(s.replace(",", "."))
