import logging

import bcrypt

# Configurar logging
logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 12


def _truncate_password_safely(password: str) -> bytes:
    """
    Truncar contraseña de forma segura a 72 bytes para bcrypt.
    Retorna bytes directamente para evitar problemas de codificación.
    """
    password_bytes = password.encode("utf-8")
    if len(password_bytes) <= 72:
        return password_bytes
    return password_bytes[:72]


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verificar contraseña plana contra hash usando bcrypt"""
    safe_password_bytes = _truncate_password_safely(plain_password)
    try:
        return bcrypt.checkpw(safe_password_bytes, hashed_password.encode("utf-8"))
    except ValueError:
        # Hash corrupto o con formato inválido
        logger.error("Hash de contraseña inválido almacenado")
        return False


def get_password_hash(password: str) -> str:
    """Generar hash de contraseña usando bcrypt"""
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(_truncate_password_safely(password), salt)
    return hashed.decode("utf-8")
