"""Serviços de aplicação do gerenciador de conexões.

Orquestração sobre protocolos; implementações de IO ficam em app/infra/.
"""

from app.services.connection_manager import ConnectionManager
from app.services.event_ingest import EventIngest, IngestOutcome
from app.services.fanout import NotificationFanout, Subscription
from app.services.instance_registry import InstanceRegistry
from app.services.status_poller import StatusPoller

__all__ = [
    "ConnectionManager",
    "EventIngest",
    "IngestOutcome",
    "InstanceRegistry",
    "NotificationFanout",
    "StatusPoller",
    "Subscription",
]
