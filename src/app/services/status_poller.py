"""Poller de status por tenant observado.

Uma task asyncio por tenant com sessão ao vivo. Cada tick consulta o
gateway para todas as instâncias configuradas do tenant, em paralelo, e
entrega o resultado como observação `poll` ao registry.

Regras:
- Instância com pedido de pareamento em andamento não é consultada, e
  resultado de consulta disparada antes de um pareamento é descartado
- Resultado UNKNOWN de instância CONNECTED conta como falha consecutiva;
  ao atingir o limite, a instância vira ERROR (uma vez)
- Chamadas ao gateway em andamento quando o tenant deixa de ser
  observado terminam normalmente e o resultado é descartado
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

from app.domain.remote import RemoteStatus
from app.observability import correlation_scope
from config.logging import log_discarded
from fsm import ConnectionStatus, ObservationSource
from utils.errors import ConnectionManagerError

if TYPE_CHECKING:
    from app.domain.channel import ChannelInstance, TenantAccount
    from app.protocols.gateway import GatewayClientProtocol
    from app.services.instance_registry import InstanceRegistry

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 10.0
DEFAULT_FAILURE_THRESHOLD = 3


class StatusPoller:
    """Loop de polling por tenant.

    Args:
        registry: Registry onde as observações são aplicadas
        gateway: Cliente do gateway (fetch_status nunca levanta)
        interval_seconds: Intervalo entre ticks
        failure_threshold: Falhas consecutivas até marcar CONNECTED como ERROR
    """

    def __init__(
        self,
        registry: InstanceRegistry,
        gateway: GatewayClientProtocol,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        failure_threshold: int = DEFAULT_FAILURE_THRESHOLD,
    ) -> None:
        self._registry = registry
        self._gateway = gateway
        self._interval = interval_seconds
        self._failure_threshold = failure_threshold
        self._tasks: dict[str, asyncio.Task[None]] = {}
        self._failures: dict[str, int] = {}
        self._pairing_in_flight: set[str] = set()
        # Incrementado a cada pareamento; consulta com época antiga é obsoleta
        self._pairing_epochs: dict[str, int] = {}

    # ──────────────────────────────────────────────────────────────
    # Ciclo de vida
    # ──────────────────────────────────────────────────────────────

    def is_watching(self, tenant_id: str) -> bool:
        task = self._tasks.get(tenant_id)
        return task is not None and not task.done()

    def watch(self, tenant_id: str) -> None:
        """Inicia o loop do tenant (idempotente)."""
        if self.is_watching(tenant_id):
            return
        self._tasks[tenant_id] = asyncio.create_task(
            self._run(tenant_id),
            name=f"status_poller:{tenant_id}",
        )
        logger.info("poller_started", extra={"tenant_id": tenant_id})

    async def unwatch(self, tenant_id: str) -> None:
        """Cancela o loop do tenant e aguarda o cancelamento."""
        task = self._tasks.pop(tenant_id, None)
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            # Propaga se quem chamou também está sendo cancelado
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
        logger.info("poller_stopped", extra={"tenant_id": tenant_id})

    async def stop_all(self) -> None:
        for tenant_id in list(self._tasks):
            await self.unwatch(tenant_id)

    @contextmanager
    def pairing_in_flight(self, instance_key: str) -> Iterator[None]:
        """Suspende o polling da instância durante o pedido de pareamento.

        Consultas já disparadas para a instância ficam obsoletas: o
        resultado delas é descartado mesmo que chegue depois do fim do
        pareamento.
        """
        self._pairing_epochs[instance_key] = self.pairing_epoch(instance_key) + 1
        self._pairing_in_flight.add(instance_key)
        try:
            yield
        finally:
            self._pairing_in_flight.discard(instance_key)

    def is_pairing(self, instance_key: str) -> bool:
        return instance_key in self._pairing_in_flight

    def pairing_epoch(self, instance_key: str) -> int:
        return self._pairing_epochs.get(instance_key, 0)

    def failure_count(self, instance_key: str) -> int:
        return self._failures.get(instance_key, 0)

    # ──────────────────────────────────────────────────────────────
    # Loop
    # ──────────────────────────────────────────────────────────────

    async def _run(self, tenant_id: str) -> None:
        task = asyncio.current_task()
        while True:
            with correlation_scope():
                try:
                    await self._tick(tenant_id, task)
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    logger.warning(
                        "poller_tick_failed",
                        extra={"tenant_id": tenant_id, "error_type": type(exc).__name__},
                    )
            await asyncio.sleep(self._interval)

    def _is_current(self, tenant_id: str, task: asyncio.Task[None] | None) -> bool:
        return task is None or self._tasks.get(tenant_id) is task

    async def _fetch_all(
        self,
        tenant: TenantAccount,
        instances: list[ChannelInstance],
    ) -> list[RemoteStatus | BaseException]:
        return await asyncio.gather(
            *(self._gateway.fetch_status(tenant, inst) for inst in instances),
            return_exceptions=True,
        )

    async def _tick(self, tenant_id: str, task: asyncio.Task[None] | None) -> None:
        tenant = await self._registry.get_tenant(tenant_id)
        instances = [
            inst
            for inst in await self._registry.list_configured(tenant_id)
            if not self.is_pairing(inst.instance_key or "")
        ]
        if not instances:
            return

        epochs = [self.pairing_epoch(inst.instance_key or "") for inst in instances]
        # shield: cancelar o loop não interrompe chamadas já enviadas
        results = await asyncio.shield(self._fetch_all(tenant, instances))

        if not self._is_current(tenant_id, task):
            log_discarded(logger, "poll_result", "poller_cancelled", tenant_id=tenant_id)
            return

        for instance, epoch, result in zip(instances, epochs, results, strict=True):
            remote = result if isinstance(result, RemoteStatus) else RemoteStatus.unknown()
            await self._apply_result(instance, remote, epoch)

    async def poll_once(self, tenant_id: str) -> None:
        """Consulta imediata de todas as instâncias do tenant (sync sob demanda)."""
        await self._tick(tenant_id, None)

    async def _apply_result(
        self,
        instance: ChannelInstance,
        remote: RemoteStatus,
        epoch: int,
    ) -> None:
        key = instance.instance_key or ""
        if self.is_pairing(key):
            log_discarded(logger, "poll_result", "pairing_in_flight", instance_key=key)
            return
        if self.pairing_epoch(key) != epoch:
            log_discarded(logger, "poll_result", "issued_before_pairing", instance_key=key)
            return

        try:
            status = remote.to_status()
            if status is None:
                await self._register_failure(key)
                return

            self._failures.pop(key, None)
            await self._registry.set_status(
                key,
                status,
                remote_id=remote.remote_id,
                source=ObservationSource.POLL,
            )
        except ConnectionManagerError as exc:
            # Instância removida ou re-chaveada durante o tick
            log_discarded(
                logger,
                "poll_result",
                type(exc).__name__,
                instance_key=key,
            )

    async def _register_failure(self, instance_key: str) -> None:
        current = await self._registry.get_by_key(instance_key)
        if current.status != ConnectionStatus.CONNECTED:
            # Só ticks enquanto conectada contam para o limite
            self._failures.pop(instance_key, None)
            return

        count = self._failures.get(instance_key, 0) + 1
        self._failures[instance_key] = count
        logger.info(
            "poller_fetch_unknown",
            extra={"instance_key": instance_key, "consecutive_failures": count},
        )
        if count < self._failure_threshold:
            return

        self._failures.pop(instance_key, None)
        logger.warning(
            "poller_failure_threshold_reached",
            extra={"instance_key": instance_key, "threshold": self._failure_threshold},
        )
        await self._registry.set_status(
            instance_key,
            ConnectionStatus.ERROR,
            source=ObservationSource.POLL,
        )
