"""Testes do wiring e da validação de startup."""

from __future__ import annotations

import pytest

from app.bootstrap import (
    build_job_worker,
    get_job_scheduler,
    get_reconcile_use_case,
    get_transaction_store,
    get_webhook_router,
    reset_dependencies,
    validate_runtime_settings,
)
from app.infra.jobs import MemoryJobScheduler
from app.infra.stores import MemoryTransactionStore
from app.jobs.worker import JobWorker
from config.settings import (
    get_base_settings,
    get_depix_settings,
    get_firestore_settings,
    get_job_settings,
    get_telegram_settings,
)

_SETTINGS_GETTERS = (
    get_base_settings,
    get_depix_settings,
    get_firestore_settings,
    get_job_settings,
    get_telegram_settings,
)


@pytest.fixture(autouse=True)
def _fresh_wiring(monkeypatch: pytest.MonkeyPatch):
    for name in ("STORE_BACKEND", "JOB_BACKEND", "DEPIX_PEER_BASE_URL", "REDIS_URL"):
        monkeypatch.delenv(name, raising=False)
    for getter in _SETTINGS_GETTERS:
        getter.cache_clear()
    reset_dependencies()
    yield
    for getter in _SETTINGS_GETTERS:
        getter.cache_clear()
    reset_dependencies()


def test_development_wiring_uses_memory_backends() -> None:
    assert isinstance(get_transaction_store(), MemoryTransactionStore)
    assert isinstance(get_job_scheduler(), MemoryJobScheduler)
    assert get_transaction_store() is get_transaction_store()
    assert get_webhook_router().peers == ()


def test_use_case_and_worker_are_wired(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123:abc")

    use_case = get_reconcile_use_case()
    worker = build_job_worker()

    assert use_case is get_reconcile_use_case()
    assert isinstance(worker, JobWorker)


def test_development_tolerates_missing_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "development")
    monkeypatch.delenv("DEPIX_WEBHOOK_SECRET", raising=False)

    validate_runtime_settings()


def test_production_rejects_memory_backends(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("DEPIX_WEBHOOK_SECRET", "s3cr3t")
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123:abc")

    with pytest.raises(RuntimeError) as exc_info:
        validate_runtime_settings()

    assert "STORE_BACKEND=memory" in str(exc_info.value)
    assert "JOB_BACKEND=memory" in str(exc_info.value)


def test_production_requires_webhook_secret(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.delenv("DEPIX_WEBHOOK_SECRET", raising=False)

    with pytest.raises(RuntimeError, match="DEPIX_WEBHOOK_SECRET"):
        validate_runtime_settings()
