"""Testes do WebhookRouter (local / peer / desconhecido)."""

from __future__ import annotations

import logging

import pytest

from app.infra.stores import MemoryTransactionStore
from app.services.webhook_router import (
    LocalRoute,
    PeerDeployment,
    RemoteRoute,
    UnknownRoute,
    WebhookRouter,
)
from conftest import make_transaction
from utils.errors import FirestoreUnavailableError


class _BrokenReader:
    async def get_by_external_entry_id(self, external_entry_id: str):
        raise FirestoreUnavailableError("peer indisponível")


def _peer(reader, name: str = "testnet") -> PeerDeployment:
    return PeerDeployment(name=name, webhook_url=f"https://{name}.test/hook", reader=reader)


class TestWebhookRouter:
    """Testes da decisão de roteamento."""

    @pytest.mark.asyncio
    async def test_local_transaction_routes_local(self, store) -> None:
        await store.create(make_transaction("qr-1"))
        router = WebhookRouter(store)

        route = await router.route("qr-1")

        assert isinstance(route, LocalRoute)
        assert route.transaction.external_entry_id == "qr-1"

    @pytest.mark.asyncio
    async def test_local_wins_over_peer(self, store) -> None:
        peer_store = MemoryTransactionStore()
        await store.create(make_transaction("qr-1"))
        await peer_store.create(make_transaction("qr-1"))
        router = WebhookRouter(store, [_peer(peer_store)])

        assert isinstance(await router.route("qr-1"), LocalRoute)

    @pytest.mark.asyncio
    async def test_peer_transaction_routes_remote(self, store) -> None:
        peer_store = MemoryTransactionStore()
        await peer_store.create(make_transaction("qr-peer"))
        router = WebhookRouter(store, [_peer(peer_store)])

        route = await router.route("qr-peer")

        assert isinstance(route, RemoteRoute)
        assert route.peer.name == "testnet"

    @pytest.mark.asyncio
    async def test_unknown_everywhere(self, store) -> None:
        router = WebhookRouter(store, [_peer(MemoryTransactionStore())])

        route = await router.route("qr-ghost")

        assert route == UnknownRoute(external_entry_id="qr-ghost")

    @pytest.mark.asyncio
    async def test_peer_failure_is_treated_as_not_found(self, store, caplog) -> None:
        healthy_peer = MemoryTransactionStore()
        await healthy_peer.create(make_transaction("qr-2"))
        router = WebhookRouter(store, [_peer(_BrokenReader(), "broken"), _peer(healthy_peer)])

        with caplog.at_level(logging.WARNING):
            route = await router.route("qr-2")

        assert isinstance(route, RemoteRoute)
        assert route.peer.name == "testnet"
        assert any(r.getMessage() == "peer_lookup_failed" for r in caplog.records)

    @pytest.mark.asyncio
    async def test_local_failure_propagates(self) -> None:
        router = WebhookRouter(_BrokenReader())

        with pytest.raises(FirestoreUnavailableError):
            await router.route("qr-1")
