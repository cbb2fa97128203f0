"""Stores: implementações concretas de persistência.

Módulos disponíveis:
    - memory_instance_store: Store em memória para desenvolvimento/testes
    - redis_instance_store: Store Redis para staging/production
"""

from __future__ import annotations

from app.infra.stores.memory_instance_store import MemoryInstanceStore
from app.infra.stores.redis_instance_store import RedisInstanceStore

__all__ = [
    "MemoryInstanceStore",
    "RedisInstanceStore",
]
