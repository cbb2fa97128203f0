"""Mascaramento de segredos para logs.

Credenciais de instância (apikey do gateway, page token da Meta) e o
segredo global do gateway nunca são logados em claro.
"""

from __future__ import annotations

_VISIBLE_SUFFIX = 4


def mask_secret(value: str | None) -> str:
    """Mascara um segredo mantendo apenas os 4 últimos caracteres.

    >>> mask_secret("abcdef123456")
    '***3456'
    >>> mask_secret("abc")
    '***'
    """
    if not value:
        return ""
    if len(value) <= _VISIBLE_SUFFIX:
        return "***"
    return f"***{value[-_VISIBLE_SUFFIX:]}"
