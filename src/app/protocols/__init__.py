"""Protocolos e contratos do core da aplicação."""

from .chat_transport import ChatTransportProtocol
from .job_scheduler import JobSchedulerProtocol
from .processing_log import ProcessingLogProtocol
from .transaction_store import (
    TransactionReaderProtocol,
    TransactionStoreProtocol,
    TransitionOutcome,
    TransitionResult,
)

__all__ = [
    "ChatTransportProtocol",
    "JobSchedulerProtocol",
    "ProcessingLogProtocol",
    "TransactionReaderProtocol",
    "TransactionStoreProtocol",
    "TransitionOutcome",
    "TransitionResult",
]
