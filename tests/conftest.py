# tests/conftest.py
import os

# bcrypt com custo mínimo para os testes (precisa vir antes de importar o pacote)
os.environ.setdefault("ESTOQUE_BCRYPT_ROUNDS", "4")

import itertools

import pytest

from gerenciador_estoque.infra.repositories import MemoryKeyValueRepo
from gerenciador_estoque.usecases.estoque_store import EstoqueStore


@pytest.fixture
def kv():
    return MemoryKeyValueRepo()


@pytest.fixture
def clock():
    """Relógio determinístico: 1000, 2000, 3000, ..."""
    counter = itertools.count(1)
    return lambda: next(counter) * 1000


@pytest.fixture
def store(kv, clock):
    return EstoqueStore(kv, clock=clock)


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "estoque_test.sqlite")
