"""
Políticas de negócio do gerenciador de estoque.

Este módulo contém as regras puras usadas pelo `EstoqueStore`:
arredondamento dos totais em décimos, classificação do tipo de
movimentação e comparação de nomes de setor.
"""

from __future__ import annotations

import math
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Iterable, Optional

ENTRADA = "Entrada"
SAIDA = "Saída"

_ESCALA = 10


def para_decimos(x: Optional[float]) -> int:
    """Converte uma quantidade para um inteiro em décimos (arredondamento half-up).

    A conversão passa por ``str`` para que ``0.15`` vire ``2`` e não ``1``,
    o que aconteceria ao multiplicar o float binário diretamente.

    Args:
        x: Quantidade (float, int ou string numérica). ``None`` vale zero.

    Returns:
        ``round(x * 10)`` com empate arredondado para longe do zero.
    """
    if x is None:
        return 0
    try:
        d = Decimal(str(x))
    except (InvalidOperation, ValueError):
        return 0
    if not d.is_finite():
        return 0
    return int((d * _ESCALA).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def soma_em_decimos(total_atual: Optional[float], delta: Optional[float]) -> float:
    """Soma ``delta`` ao total usando aritmética inteira em décimos.

    Regra: ``(round(total*10) + round(delta*10)) / 10``. Evita o acúmulo de erro
    do ponto flutuante: somar 0.1 e 0.2 dez vezes cada resulta exatamente em 3.0.
    """
    return (para_decimos(total_atual) + para_decimos(delta)) / _ESCALA


def arredonda_decimo(x: Optional[float]) -> float:
    return para_decimos(x) / _ESCALA


def quantidade_valida(x) -> bool:
    """True se ``x`` é um número finito."""
    try:
        return math.isfinite(float(x))
    except (TypeError, ValueError):
        return False


def tipo_movimento(delta: float) -> str:
    """``'Entrada'`` para delta positivo, ``'Saída'`` caso contrário."""
    return ENTRADA if delta > 0 else SAIDA


def mesmo_setor(a: Optional[str], b: Optional[str]) -> bool:
    """Compara nomes de setor sem diferenciar maiúsculas/minúsculas."""
    return (a or "").strip().casefold() == (b or "").strip().casefold()


def localiza_setor(setores: Iterable[str], nome: Optional[str]) -> Optional[int]:
    """Índice do setor ``nome`` na lista (case-insensitive) ou ``None``."""
    if not nome or not nome.strip():
        return None
    for i, s in enumerate(setores):
        if mesmo_setor(s, nome):
            return i
    return None


def em_branco(*valores: Optional[str]) -> bool:
    """True se algum dos valores for ``None`` ou só espaços."""
    return any(v is None or not str(v).strip() for v in valores)


def mesmo_nome(a: Optional[str], b: Optional[str]) -> bool:
    """Compara nomes de usuário sem diferenciar maiúsculas/minúsculas."""
    return mesmo_setor(a, b)
