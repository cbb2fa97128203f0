"""Adapter da Meta Graph API (Instagram e páginas do Messenger).

Não há pareamento por QR: a credencial é um page access token. Validar
o token em `GET /{version}/me?fields=id,name` é o "pareamento"; o id
devolvido é o remote_id da instância.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

from app.domain.remote import LinkedChallenge, RemoteState, RemoteStatus
from app.infra.gateway.errors import classify_exception, classify_status, is_meta_auth_error
from app.infra.http import HttpClient, HttpClientConfig
from app.observability import record_gateway_failure, record_latency
from app.protocols.gateway import GatewayClientProtocol
from utils.errors import GatewayError, GatewayRejected, ValidationError

if TYPE_CHECKING:
    import httpx

    from app.domain.channel import ChannelInstance, TenantAccount
    from config.settings import MetaSettings

logger = logging.getLogger(__name__)

COMPONENT = "meta_gateway"

PROFILE_FIELDS = "id,name"


class MetaGraphGatewayClient(GatewayClientProtocol):
    """Cliente da Graph API para canais photo_sharing e page_messaging.

    Args:
        settings: MetaSettings (base URL, versão, timeout)
        http_client: HttpClient opcional (injeção em testes)
    """

    def __init__(
        self,
        settings: MetaSettings,
        http_client: HttpClient | None = None,
    ) -> None:
        self._settings = settings
        self._http = http_client or HttpClient(
            HttpClientConfig(timeout_seconds=settings.request_timeout_seconds)
        )

    async def _fetch_profile(self, instance: ChannelInstance) -> httpx.Response:
        if not instance.has_credential:
            raise ValidationError(
                "Instância sem credencial",
                field_errors={"credential": "Token de acesso é obrigatório"},
            )
        return await self._http.get(
            f"{self._settings.api_endpoint}/me",
            params={"fields": PROFILE_FIELDS},
            headers={"Authorization": f"Bearer {instance.credential}"},
        )

    @staticmethod
    def _profile_id(response: httpx.Response) -> tuple[str | None, Any]:
        try:
            body = response.json()
        except ValueError:
            return None, None
        if isinstance(body, dict) and body.get("id"):
            return str(body["id"]), body
        return None, body

    async def request_pairing(
        self,
        tenant: TenantAccount,
        instance: ChannelInstance,
    ) -> LinkedChallenge:
        """Valida o token; sucesso devolve LinkedChallenge com o page id.

        Raises:
            GatewayRejected: Token inválido/expirado (OAuthException, 401, 403)
            GatewayUnavailable: Timeout, 5xx ou resposta inesperada
        """
        del tenant
        start = time.perf_counter()
        try:
            response = await self._fetch_profile(instance)
            page_id, body = self._profile_id(response)
            if response.status_code < 400 and page_id:
                logger.info(
                    "meta_token_validated",
                    extra={"instance_key": instance.instance_key},
                )
                return LinkedChallenge(remote_id=page_id)
            if is_meta_auth_error(body):
                raise GatewayRejected("meta_token_rejected", status_code=response.status_code)
            raise classify_status(response.status_code, "meta_profile_failed")
        except ValidationError:
            raise
        except GatewayError as exc:
            self._log_failure("request_pairing", exc, instance)
            raise
        except Exception as exc:
            err = classify_exception(exc)
            self._log_failure("request_pairing", err, instance)
            raise err from exc
        finally:
            record_latency(COMPONENT, "request_pairing", (time.perf_counter() - start) * 1000)

    async def fetch_status(
        self,
        tenant: TenantAccount,
        instance: ChannelInstance,
    ) -> RemoteStatus:
        """Token válido = linked; recusado = unlinked; resto = unknown."""
        del tenant
        start = time.perf_counter()
        try:
            response = await self._fetch_profile(instance)
            page_id, body = self._profile_id(response)
            if response.status_code < 400 and page_id:
                return RemoteStatus(state=RemoteState.LINKED, remote_id=page_id)
            if is_meta_auth_error(body) or response.status_code in (401, 403):
                return RemoteStatus(state=RemoteState.UNLINKED)
            raise classify_status(response.status_code, "meta_profile_failed")
        except Exception as exc:
            self._log_failure("fetch_status", classify_exception(exc), instance)
            return RemoteStatus.unknown()
        finally:
            record_latency(COMPONENT, "fetch_status", (time.perf_counter() - start) * 1000)

    async def disconnect(
        self,
        tenant: TenantAccount,
        instance: ChannelInstance,
    ) -> None:
        """Nada a revogar remotamente; o token só deixa de ser usado."""
        del tenant
        logger.info("meta_disconnect_local_only", extra={"instance_key": instance.instance_key})

    async def aclose(self) -> None:
        await self._http.aclose()

    @staticmethod
    def _log_failure(operation: str, exc: GatewayError, instance: ChannelInstance) -> None:
        error_type = type(exc).__name__
        record_gateway_failure(COMPONENT, operation, error_type, exc.status_code)
        logger.info(
            "gateway_call_failed",
            extra={
                "operation": operation,
                "instance_key": instance.instance_key,
                "error_type": error_type,
                "status_code": exc.status_code,
            },
        )
