# app/core/security.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Union
from uuid import uuid4

from jose import jwt

from app.core.config import settings

logger = logging.getLogger("unitree.security")

SECRET_KEY = settings.JWT_SECRET_KEY
ALGORITHM = settings.JWT_ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES

# Evita subir com a chave padrão em produção
if SECRET_KEY == "change-me-in-production":
    logger.warning(
        "JWT_SECRET_KEY está usando o valor padrão. Defina JWT_SECRET_KEY em produção."
    )


def create_access_token(
    subject: Union[str, int],
    expires_delta: timedelta | None = None,
) -> str:
    """
    Emite um token no mesmo formato do serviço de autenticação.

    Usado por scripts e testes; o login em si não faz parte deste serviço.
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    expire = datetime.now(timezone.utc) + expires_delta
    to_encode: Dict[str, Any] = {
        "sub": str(subject),
        "exp": expire,
        "jti": uuid4().hex,
    }
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    # levanta JWTError (assinatura inválida, expirado, etc.)
    return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
