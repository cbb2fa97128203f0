"""App: orquestração do gerenciador de conexões e infraestrutura.

Subpastas:
- bootstrap/: composition root (factories, inicialização, wiring)
- domain/: tenants, instâncias, eventos e respostas do gateway
- services/: registry, poller, ingest, fan-out e a fachada ConnectionManager
- infra/: implementações concretas de IO (HTTP do gateway, stores)
- protocols/: contratos/interfaces
- observability/: correlation_id e métricas via log

Padrão: app executa; api adapta; fsm governa; utils apoia.
"""
