"""Adapter do gateway de pareamento estilo Evolution API (canal primário).

Endpoints usados:
    GET    {url}/instance/connect/{key}           pedir QR de pareamento
    POST   {url}/instance/create                  criar instância (404 no connect)
    POST   {url}/webhook/set/{key}                registrar webhook de eventos
    GET    {url}/instance/connectionState/{key}   status remoto
    DELETE {url}/instance/logout/{key}            desconectar

Autenticação pelo header `apikey`: credencial da instância para
connect/status/logout; segredo global do tenant para create/webhook.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

from app.domain.remote import RemoteState, RemoteStatus
from app.infra.gateway.errors import classify_exception, classify_status
from app.infra.gateway.payloads import parse_connection_state, parse_pairing_response
from app.infra.http import HttpClient, HttpClientConfig
from app.observability import record_gateway_failure, record_latency
from app.protocols.gateway import GatewayClientProtocol
from config.logging import mask_secret
from config.settings import DEFAULT_WEBHOOK_EVENTS, GatewaySettings
from utils.errors import GatewayError, GatewayRejected, GatewayUnavailable, ValidationError

if TYPE_CHECKING:
    import httpx

    from app.domain.channel import ChannelInstance, TenantAccount
    from app.domain.remote import PairingChallenge

logger = logging.getLogger(__name__)

COMPONENT = "evolution_gateway"


def build_webhook_payload(webhook_url: str, events: tuple[str, ...]) -> dict[str, Any]:
    """Payload de webhook/set aceito pelas versões 1 e 2 da API."""
    return {
        "webhook": {
            "enabled": True,
            "url": webhook_url,
            "byEvents": False,
            "base64": False,
            "events": list(events),
        },
        "enabled": True,
        "url": webhook_url,
        "webhook_by_events": False,
        "events": list(events),
    }


def _json_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


class EvolutionGatewayClient(GatewayClientProtocol):
    """Cliente do gateway de pareamento para o canal primário.

    Args:
        settings: GatewaySettings (defaults de URL/segredo, timeouts, create)
        http_client: HttpClient opcional (injeção em testes)
    """

    def __init__(
        self,
        settings: GatewaySettings,
        http_client: HttpClient | None = None,
    ) -> None:
        self._settings = settings
        self._http = http_client or HttpClient(
            HttpClientConfig(
                timeout_seconds=settings.request_timeout_seconds,
                max_retries=settings.max_retries,
                default_headers={"Content-Type": "application/json"},
            )
        )

    # ──────────────────────────────────────────────────────────────
    # Resolução de configuração por tenant
    # ──────────────────────────────────────────────────────────────

    def _base_url(self, tenant: TenantAccount) -> str:
        url = (tenant.gateway_url or self._settings.default_url).rstrip("/")
        if not url:
            raise ValidationError(
                "Gateway não configurado para o tenant",
                field_errors={"gateway_url": "URL do gateway não configurada"},
            )
        return url

    def _gateway_secret(self, tenant: TenantAccount) -> str:
        return tenant.gateway_secret or self._settings.global_secret

    @staticmethod
    def _require_key(instance: ChannelInstance) -> str:
        if not instance.instance_key:
            raise ValidationError(
                "Instância sem chave",
                field_errors={"instance_key": "Chave da instância é obrigatória"},
            )
        return instance.instance_key

    # ──────────────────────────────────────────────────────────────
    # Pareamento
    # ──────────────────────────────────────────────────────────────

    async def request_pairing(
        self,
        tenant: TenantAccount,
        instance: ChannelInstance,
    ) -> PairingChallenge:
        """Pede QR ao gateway, criando a instância remota se não existir.

        Raises:
            ValidationError: Tenant sem gateway ou instância sem chave
            GatewayRejected: Credencial recusada (401/403)
            GatewayUnavailable: Timeout, 5xx, 429 ou resposta sem QR
        """
        base_url = self._base_url(tenant)
        key = self._require_key(instance)
        start = time.perf_counter()

        try:
            response = await self._http.get(
                f"{base_url}/instance/connect/{key}",
                headers={"apikey": instance.credential or ""},
            )
            if response.status_code == 404 and self._settings.auto_create_instance:
                response = await self._create_instance(base_url, tenant, instance)

            if response.status_code >= 400:
                raise classify_status(response.status_code, "gateway_pairing_failed")

            challenge = parse_pairing_response(_json_body(response))
            if challenge is None:
                raise GatewayUnavailable(
                    "gateway_pairing_without_qr", status_code=response.status_code
                )
        except GatewayError as exc:
            self._log_failure("request_pairing", exc, key)
            raise
        except Exception as exc:
            err = classify_exception(exc)
            self._log_failure("request_pairing", err, key)
            raise err from exc
        finally:
            record_latency(COMPONENT, "request_pairing", (time.perf_counter() - start) * 1000)

        logger.info(
            "gateway_pairing_requested",
            extra={"instance_key": key, "challenge": challenge.kind},
        )
        await self._register_webhook(base_url, tenant, instance)
        return challenge

    async def _create_instance(
        self,
        base_url: str,
        tenant: TenantAccount,
        instance: ChannelInstance,
    ) -> httpx.Response:
        key = self._require_key(instance)
        logger.info(
            "gateway_instance_auto_create",
            extra={"instance_key": key, "tenant_id": tenant.tenant_id},
        )
        return await self._http.post(
            f"{base_url}/instance/create",
            json={
                "instanceName": key,
                "token": instance.credential or "",
                "qrcode": True,
                "integration": self._settings.integration,
            },
            headers={"apikey": self._gateway_secret(tenant)},
        )

    async def _register_webhook(
        self,
        base_url: str,
        tenant: TenantAccount,
        instance: ChannelInstance,
    ) -> None:
        """Registra webhook de eventos; falha só é logada."""
        if not tenant.webhook_url:
            return

        key = self._require_key(instance)
        apikey = self._gateway_secret(tenant) or instance.credential or ""
        try:
            response = await self._http.post(
                f"{base_url}/webhook/set/{key}",
                json=build_webhook_payload(tenant.webhook_url, DEFAULT_WEBHOOK_EVENTS),
                headers={"apikey": apikey},
            )
        except Exception as exc:
            logger.warning(
                "gateway_webhook_register_failed",
                extra={"instance_key": key, "error_type": type(exc).__name__},
            )
            return

        if response.status_code >= 400:
            logger.warning(
                "gateway_webhook_register_failed",
                extra={"instance_key": key, "status_code": response.status_code},
            )
            return
        logger.info("gateway_webhook_registered", extra={"instance_key": key})

    # ──────────────────────────────────────────────────────────────
    # Status
    # ──────────────────────────────────────────────────────────────

    async def fetch_status(
        self,
        tenant: TenantAccount,
        instance: ChannelInstance,
    ) -> RemoteStatus:
        """Lê o estado remoto. Nunca levanta: falhas viram UNKNOWN."""
        start = time.perf_counter()
        key = instance.instance_key or ""
        try:
            base_url = self._base_url(tenant)
            key = self._require_key(instance)
            response = await self._http.get(
                f"{base_url}/instance/connectionState/{key}",
                headers={"apikey": instance.credential or ""},
            )
            if response.status_code == 404:
                return RemoteStatus(state=RemoteState.UNLINKED)
            if response.status_code >= 400:
                raise classify_status(response.status_code, "gateway_status_failed")
            return parse_connection_state(_json_body(response))
        except Exception as exc:
            self._log_failure("fetch_status", classify_exception(exc), key)
            return RemoteStatus.unknown()
        finally:
            record_latency(COMPONENT, "fetch_status", (time.perf_counter() - start) * 1000)

    # ──────────────────────────────────────────────────────────────
    # Desconexão
    # ──────────────────────────────────────────────────────────────

    async def disconnect(
        self,
        tenant: TenantAccount,
        instance: ChannelInstance,
    ) -> None:
        """Logout no gateway. 404 (instância já fora) conta como sucesso.

        Com 401 na credencial da instância, tenta uma vez com o segredo global.

        Raises:
            GatewayRejected: Nenhuma das chaves autorizada
            GatewayUnavailable: Timeout, 5xx ou 429
        """
        base_url = self._base_url(tenant)
        key = self._require_key(instance)
        url = f"{base_url}/instance/logout/{key}"
        credential = instance.credential or ""

        try:
            response = await self._http.delete(url, headers={"apikey": credential})
            secret = self._gateway_secret(tenant)
            if response.status_code == 401 and secret and secret != credential:
                logger.info(
                    "gateway_logout_retry_with_secret",
                    extra={"instance_key": key, "secret": mask_secret(secret)},
                )
                response = await self._http.delete(url, headers={"apikey": secret})

            if response.status_code == 404:
                logger.info("gateway_logout_already_disconnected", extra={"instance_key": key})
                return
            if response.status_code >= 400:
                raise classify_status(response.status_code, "gateway_logout_failed")
        except GatewayError as exc:
            self._log_failure("disconnect", exc, key)
            raise
        except Exception as exc:
            err = classify_exception(exc)
            self._log_failure("disconnect", err, key)
            raise err from exc

        logger.info("gateway_logout_ok", extra={"instance_key": key})

    async def aclose(self) -> None:
        await self._http.aclose()

    @staticmethod
    def _log_failure(operation: str, exc: GatewayError, instance_key: str) -> None:
        error_type = type(exc).__name__
        record_gateway_failure(COMPONENT, operation, error_type, exc.status_code)
        level = logging.WARNING if isinstance(exc, GatewayRejected) else logging.INFO
        logger.log(
            level,
            "gateway_call_failed",
            extra={
                "operation": operation,
                "instance_key": instance_key,
                "error_type": error_type,
                "status_code": exc.status_code,
            },
        )
