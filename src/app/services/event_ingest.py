"""Ingest de eventos de conexão empurrados pelo gateway.

Recebe ConnectionUpdate já normalizado pela borda HTTP e entrega uma
observação `push` ao mesmo set_status usado pelo poller. Reentrega do
mesmo evento é no-op: o registry descarta observação idêntica.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import TYPE_CHECKING

from app.domain.remote import REMOTE_TO_STATUS
from config.logging import log_discarded
from fsm import ConnectionObservation, ObservationSource
from utils.errors import NotFoundError

if TYPE_CHECKING:
    from app.domain.events import ConnectionUpdate
    from app.services.instance_registry import InstanceRegistry

logger = logging.getLogger(__name__)


class IngestOutcome(StrEnum):
    """Resultado do processamento de um evento."""

    APPLIED = "applied"
    UNCHANGED = "unchanged"
    IGNORED = "ignored"
    UNKNOWN_INSTANCE = "unknown_instance"


class EventIngest:
    """Aplica eventos de conexão do gateway no registry."""

    def __init__(self, registry: InstanceRegistry) -> None:
        self._registry = registry

    async def ingest(
        self,
        update: ConnectionUpdate,
        *,
        strict: bool = False,
    ) -> IngestOutcome:
        """Processa um ConnectionUpdate.

        Args:
            update: Evento normalizado
            strict: Propaga NotFoundError para chave desconhecida
                (chamadores diretos); o webhook usa strict=False

        Returns:
            IngestOutcome
        """
        status = REMOTE_TO_STATUS.get(update.state)
        if status is None:
            log_discarded(
                logger,
                "event_ingest",
                "unmapped_state",
                instance_key=update.instance_key,
                event_type=update.event_type,
            )
            return IngestOutcome.IGNORED

        observation = ConnectionObservation(
            instance_key=update.instance_key,
            status=status,
            remote_id=update.remote_id,
            source=ObservationSource.PUSH,
        )
        try:
            _, changed = await self._registry.apply_observation(observation)
        except NotFoundError:
            if strict:
                raise
            log_discarded(
                logger,
                "event_ingest",
                "unknown_instance_key",
                instance_key=update.instance_key,
            )
            return IngestOutcome.UNKNOWN_INSTANCE

        return IngestOutcome.APPLIED if changed else IngestOutcome.UNCHANGED
