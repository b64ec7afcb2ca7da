"""Testes do FirestoreProcessingLog com mock do cliente."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest

from app.infra.stores import FirestoreProcessingLog


class TestFirestoreProcessingLog:
    """Testes da trilha de processamento."""

    @pytest.mark.asyncio
    async def test_append_writes_enriched_document(self) -> None:
        client = MagicMock()
        log = FirestoreProcessingLog(client, "processing_log")

        await log.append({"external_entry_id": "qr-1", "outcome": "reconciled"})

        client.collection.assert_called_once_with("processing_log")
        doc_id = client.collection.return_value.document.call_args[0][0]
        assert doc_id.startswith("qr-1_")
        written = client.collection.return_value.document.return_value.set.call_args[0][0]
        assert written["outcome"] == "reconciled"
        assert "timestamp" in written
        assert "created_at" in written

    @pytest.mark.asyncio
    async def test_append_failure_is_logged_not_raised(self, caplog) -> None:
        client = MagicMock()
        client.collection.return_value.document.return_value.set.side_effect = RuntimeError("down")
        log = FirestoreProcessingLog(client)

        with caplog.at_level(logging.ERROR):
            await log.append({"external_entry_id": "qr-1", "outcome": "reconciled"})

        assert any(r.getMessage() == "processing_log_append_error" for r in caplog.records)
