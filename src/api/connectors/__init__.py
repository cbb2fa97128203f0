"""Connectors: adapters de borda para sistemas externos.

Estrutura:
- gateway/: webhook do gateway de pareamento (eventos de conexão)

Chamadas de saída ao gateway e à Graph API ficam em app/infra/gateway.
"""

__all__: list[str] = []
