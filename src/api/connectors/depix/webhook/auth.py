"""Autenticação do webhook DePix (header Authorization: Basic <segredo>).

A DePix envia o segredo compartilhado em texto, não em base64. A
comparação é feita em tempo constante sobre bytes.
"""

from __future__ import annotations

import hmac

BASIC_SCHEME = "Basic "


def extract_basic_secret(authorization: str | None) -> str | None:
    """Extrai o segredo do header; None se ausente ou em outro esquema."""
    if not authorization or not authorization.startswith(BASIC_SCHEME):
        return None
    secret = authorization[len(BASIC_SCHEME):]
    return secret or None


def authenticate(authorization: str | None, expected_secret: str | None) -> bool:
    """Valida o header Authorization contra o segredo configurado.

    Segredo configurado vazio sempre falha.
    """
    if not expected_secret:
        return False
    provided = extract_basic_secret(authorization)
    if provided is None:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected_secret.encode("utf-8"))
