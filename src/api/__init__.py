"""API — camada de borda.

Responsabilidades:
- Receber o webhook da DePix
- Autenticar e validar o payload
- Traduzir desfechos em respostas HTTP

Subpastas:
- connectors/: autenticação e parse por integração externa
- routes/: endpoints HTTP (webhook, health)

NÃO PODE conter: regras de transição de status, acesso direto a stores.
"""
