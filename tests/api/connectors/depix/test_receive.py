"""Testes do parse do webhook DePix."""

from __future__ import annotations

import json

import pytest

from api.connectors.depix.webhook import parse_webhook_request
from utils.errors import AuthenticationFailure, ValidationFailure

SECRET = "s3cr3t"
AUTH = {"authorization": f"Basic {SECRET}"}


def _body(**fields: object) -> bytes:
    return json.dumps(fields).encode("utf-8")


def test_parses_depix_field_names() -> None:
    event = parse_webhook_request(
        _body(qrId="qr-1", status="depix_sent", blockchainTxID="tx-1", valueInCents=15000),
        AUTH,
        SECRET,
    )

    assert event.external_entry_id == "qr-1"
    assert event.terminal_signal == "depix_sent"
    assert event.settlement_reference == "tx-1"
    assert event.value_in_cents == 15000


def test_accepts_internal_field_names() -> None:
    event = parse_webhook_request(
        _body(externalEntryId="qr-1", terminalSignal="error"), AUTH, SECRET
    )

    assert event.external_entry_id == "qr-1"
    assert event.settlement_reference is None


def test_blank_settlement_reference_becomes_none() -> None:
    event = parse_webhook_request(
        _body(qrId="qr-1", status="depix_sent", blockchainTxID="  "), AUTH, SECRET
    )

    assert event.settlement_reference is None


def test_authentication_is_checked_before_body() -> None:
    with pytest.raises(AuthenticationFailure):
        parse_webhook_request(b"not json", {"authorization": "Basic wrong"}, SECRET)


def test_missing_authorization_header() -> None:
    with pytest.raises(AuthenticationFailure):
        parse_webhook_request(_body(qrId="qr-1", status="depix_sent"), {}, SECRET)


def test_invalid_json() -> None:
    with pytest.raises(ValidationFailure) as exc_info:
        parse_webhook_request(b"{not-json", AUTH, SECRET)

    assert str(exc_info.value) == "invalid_json"


def test_payload_must_be_object() -> None:
    with pytest.raises(ValidationFailure) as exc_info:
        parse_webhook_request(b'["qr-1"]', AUTH, SECRET)

    assert str(exc_info.value) == "payload_not_object"


@pytest.mark.parametrize(
    "fields",
    [
        {"status": "depix_sent"},
        {"qrId": "qr-1"},
        {"qrId": "   ", "status": "depix_sent"},
        {"qrId": "qr-1", "status": ""},
        {},
    ],
)
def test_missing_required_fields(fields) -> None:
    with pytest.raises(ValidationFailure) as exc_info:
        parse_webhook_request(_body(**fields), AUTH, SECRET)

    assert str(exc_info.value).startswith("invalid_fields:")
