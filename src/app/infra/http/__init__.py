"""Cliente HTTP compartilhado pelos adapters de saída."""

from app.infra.http.client import HttpClient, HttpClientConfig, HttpError

__all__ = ["HttpClient", "HttpClientConfig", "HttpError"]
