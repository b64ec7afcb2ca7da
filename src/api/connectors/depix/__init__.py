"""Connector DePix — webhook de status de pagamento Pix."""
