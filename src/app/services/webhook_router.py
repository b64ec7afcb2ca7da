"""Roteamento do webhook DePix entre deployments.

A mesma integração DePix pode atender mais de um deployment isolado
(ex.: produção e testes), cada um dono das próprias transações. O router
decide quem é dono do qrId recebido:

    LocalRoute   -> transação existe no store local
    RemoteRoute  -> existe no store de um peer; encaminhar o webhook
    UnknownRoute -> não existe em lugar nenhum; 404
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from app.observability import record_route_decision

if TYPE_CHECKING:
    from collections.abc import Sequence

    from app.domain.transaction import Transaction
    from app.protocols.transaction_store import TransactionReaderProtocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PeerDeployment:
    """Deployment par com store próprio (acesso somente-leitura)."""

    name: str
    webhook_url: str
    reader: TransactionReaderProtocol


@dataclass(frozen=True, slots=True)
class LocalRoute:
    transaction: Transaction


@dataclass(frozen=True, slots=True)
class RemoteRoute:
    peer: PeerDeployment


@dataclass(frozen=True, slots=True)
class UnknownRoute:
    external_entry_id: str


Route = LocalRoute | RemoteRoute | UnknownRoute


class WebhookRouter:
    """Resolve o dono de um external_entry_id.

    Erros do store local propagam (o webhook responde 500 e a DePix
    reenvia). Erros ao consultar um peer são registrados e o peer é
    tratado como "não encontrado".
    """

    def __init__(
        self,
        local_store: TransactionReaderProtocol,
        peers: Sequence[PeerDeployment] = (),
    ) -> None:
        self._local = local_store
        self._peers = tuple(peers)

    @property
    def peers(self) -> tuple[PeerDeployment, ...]:
        return self._peers

    async def route(self, external_entry_id: str) -> Route:
        transaction = await self._local.get_by_external_entry_id(external_entry_id)
        if transaction is not None:
            record_route_decision("local")
            return LocalRoute(transaction=transaction)

        for peer in self._peers:
            try:
                found = await peer.reader.get_by_external_entry_id(external_entry_id)
            except Exception as exc:
                logger.warning(
                    "peer_lookup_failed",
                    extra={
                        "peer": peer.name,
                        "external_entry_id": external_entry_id,
                        "error_type": type(exc).__name__,
                    },
                )
                continue
            if found is not None:
                record_route_decision("remote")
                logger.info(
                    "webhook_owned_by_peer",
                    extra={"peer": peer.name, "external_entry_id": external_entry_id},
                )
                return RemoteRoute(peer=peer)

        record_route_decision("unknown")
        return UnknownRoute(external_entry_id=external_entry_id)
