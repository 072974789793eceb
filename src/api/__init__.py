"""API — camada de borda HTTP.

Responsabilidades:
- Expor o envio de mensagens e a consulta de contatos via HTTP
- Validar payloads de entrada (pydantic)
- Reportar saúde da sessão WhatsApp

Subpastas:
- routes/: endpoints HTTP (whatsapp, health)

NÃO PODE conter: regras de sessão, política de reconexão, roteamento inbound.
"""
