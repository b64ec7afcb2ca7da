"""Rotas do webhook DePix."""
