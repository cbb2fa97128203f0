"""API: camada de borda HTTP/WebSocket.

Responsabilidades:
- Expor as operações do ConnectionManager (REST e WebSocket)
- Receber webhooks do gateway e normalizá-los em ConnectionUpdate
- Mapear erros de domínio/infra para respostas HTTP

Subpastas:
- connectors/: parse e validação de payloads externos
- routes/: endpoints HTTP por área (health, tenants, instances, webhooks)

NÃO PODE conter: FSM, regras de reconciliação, acesso direto a stores.
"""
