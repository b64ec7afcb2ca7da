"""Connectors — adapters de borda para integrações externas.

Estrutura:
- depix/: webhook de status de pagamento da DePix
"""

__all__: list[str] = []
