"""App — sessão WhatsApp, envio de mensagens e roteamento inbound.

Subpastas:
- bootstrap/: composition root (GatewayContext, inicialização, wiring)
- sessions/: SessionManager, SessionHandle e política de reconexão
- use_cases/: MessageDispatcher (envio com resultado uniforme)
- coordinators/: InboundRouter (messages.upsert → handlers)
- services/: autoresponder por palavra-chave
- infra/: stores de credenciais
- protocols/: contratos (transporte, store, renderer) e modelos
- observability/: correlation_id e métricas via logs estruturados
- constants/: eventos e códigos de encerramento do transporte

Padrão: app executa; api adapta; config configura; utils apoia.
"""
