"""Rotas HTTP da API: adapters de entrada.

Responsabilidades:
- Definir endpoints HTTP e WebSocket
- Validação inicial de request (path, query, corpo)
- Delegação para o ConnectionManager/EventIngest em app.state
- Mapeamento de erros para respostas HTTP (errors.py)

Estrutura:
- routes/health/: health checks e readiness
- routes/tenants/: onboarding de tenant e limites de slot
- routes/instances/: configuração, pareamento, status e stream ao vivo
- routes/webhooks/: eventos do gateway de pareamento

Agregação:
- router.py: registra todos os routers no app principal
"""

from __future__ import annotations

from api.routes.router import create_api_router

__all__ = ["create_api_router"]
