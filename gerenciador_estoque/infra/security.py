"""
Hash de senhas dos usuários (bcrypt).
"""

import bcrypt

from gerenciador_estoque.config import DEFAULTS

# bcrypt só considera os primeiros 72 bytes (e a versão 5 recusa mais que isso)
MAX_SENHA_BYTES = 72


def senha_aceita(password: str) -> bool:
    """True se a senha não é vazia e cabe no limite do bcrypt."""
    return bool(password) and len(password.encode('utf-8')) <= MAX_SENHA_BYTES


def get_password_hash(password: str, rounds: int = None) -> str:
    """Gera hash bcrypt (com salt) da senha"""
    salt = bcrypt.gensalt(rounds=rounds or DEFAULTS.bcrypt_rounds)
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def is_password_hash(value: str) -> bool:
    """True se o valor parece um hash bcrypt ($2a$, $2b$, $2y$)."""
    return isinstance(value, str) and value.startswith(("$2a$", "$2b$", "$2y$"))


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verifica senha usando bcrypt"""
    if not is_password_hash(hashed_password) or not senha_aceita(plain_password):
        return False
    try:
        return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))
    except ValueError:
        return False
