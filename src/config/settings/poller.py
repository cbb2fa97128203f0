"""Settings do poller de status e do fan-out de notificações."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class PollerSettings:
    """Configurações de polling e fan-out.

    Attributes:
        interval_seconds: Intervalo entre ticks do poll por tenant
        failure_threshold: Falhas consecutivas até marcar instância conectada como error
        fanout_queue_size: Tamanho da fila de cada assinatura
    """

    interval_seconds: float = 10.0
    failure_threshold: int = 3
    fanout_queue_size: int = 32

    def validate(self) -> list[str]:
        errors: list[str] = []

        if self.interval_seconds <= 0:
            errors.append("POLL_INTERVAL_SECONDS deve ser > 0")

        if self.failure_threshold < 1:
            errors.append("POLL_FAILURE_THRESHOLD deve ser >= 1")

        if self.fanout_queue_size < 1:
            errors.append("FANOUT_QUEUE_SIZE deve ser >= 1")

        return errors


def _load_from_env() -> PollerSettings:
    """Carrega PollerSettings a partir de variáveis de ambiente."""
    return PollerSettings(
        interval_seconds=float(os.getenv("POLL_INTERVAL_SECONDS", "10")),
        failure_threshold=int(os.getenv("POLL_FAILURE_THRESHOLD", "3")),
        fanout_queue_size=int(os.getenv("FANOUT_QUEUE_SIZE", "32")),
    )


@lru_cache(maxsize=1)
def get_poller_settings() -> PollerSettings:
    """Retorna instância cacheada de PollerSettings."""
    return _load_from_env()
