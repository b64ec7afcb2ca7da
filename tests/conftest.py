"""Configuração do pytest para o projeto Atlas Bridge."""

import sys
from decimal import Decimal
from pathlib import Path

import pytest

# Adiciona src/ ao PYTHONPATH para permitir imports absolutos
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

tests_path = Path(__file__).parent
if str(tests_path) not in sys.path:
    sys.path.insert(0, str(tests_path))

from app.domain.transaction import Transaction  # noqa: E402
from app.infra.jobs import MemoryJobScheduler  # noqa: E402
from app.infra.stores import MemoryProcessingLog, MemoryTransactionStore  # noqa: E402
from app.services.notification_dispatcher import NotificationDispatcher  # noqa: E402
from fakes.fake_chat_transport import FakeChatTransport  # noqa: E402


def make_transaction(
    external_entry_id: str = "qr-001",
    owner_id: str = "555001",
    amount: str = "150.00",
) -> Transaction:
    return Transaction(
        owner_id=owner_id,
        external_entry_id=external_entry_id,
        requested_amount=Decimal(amount),
        expected_payout_amount=Decimal(amount) - Decimal("2.99"),
    )


class FollowupRecorder:
    """Substitui schedule_background_task guardando a coroutine."""

    def __init__(self) -> None:
        self.calls: list[dict[str, object]] = []

    def __call__(self, *, name: str, coroutine, delay_seconds: float = 0.0) -> None:
        self.calls.append({"name": name, "coroutine": coroutine, "delay_seconds": delay_seconds})

    async def run_all(self) -> None:
        for call in self.calls:
            await call["coroutine"]

    def close_all(self) -> None:
        for call in self.calls:
            call["coroutine"].close()


@pytest.fixture
def store() -> MemoryTransactionStore:
    return MemoryTransactionStore()


@pytest.fixture
def scheduler() -> MemoryJobScheduler:
    return MemoryJobScheduler(lease_seconds=60.0)


@pytest.fixture
def processing_log() -> MemoryProcessingLog:
    return MemoryProcessingLog()


@pytest.fixture
def transport() -> FakeChatTransport:
    return FakeChatTransport()


@pytest.fixture
def followups():
    recorder = FollowupRecorder()
    yield recorder
    recorder.close_all()


@pytest.fixture
def dispatcher(transport: FakeChatTransport, followups: FollowupRecorder) -> NotificationDispatcher:
    return NotificationDispatcher(
        transport,
        support_contact="@Suporte",
        community_group="https://t.me/grupo",
        followup_delay_seconds=0.0,
        task_scheduler=followups,
    )
