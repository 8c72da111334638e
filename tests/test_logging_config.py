import json
import logging

import pytest
import structlog

from walletdesk.logging_config import redact_custody_secrets, setup_logging
from walletdesk.middleware.logging_middleware import log_level_for


def _last_line(capsys) -> str:
    return capsys.readouterr().out.strip().splitlines()[-1]


def test_json_renderer_includes_bound_context(capsys):
    setup_logging("INFO", "json")
    structlog.contextvars.bind_contextvars(request_id="req-1")
    try:
        logging.getLogger("walletdesk.test").info("ownership_registered")
    finally:
        structlog.contextvars.clear_contextvars()

    record = json.loads(_last_line(capsys))
    assert record["event"] == "ownership_registered"
    assert record["request_id"] == "req-1"
    assert record["level"] == "info"


def test_noisy_loggers_are_quieted():
    setup_logging("DEBUG", "console")

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING


def test_stamps_and_keys_are_redacted(capsys):
    setup_logging("INFO", "json")

    structlog.stdlib.get_logger("walletdesk.test").info(
        "custody_request",
        stamp="eyJwdWJsaWNLZXkiOi",
        api_private_key="c0ffee",
        headers={"X-Stamp": "eyJ...", "Content-Type": "application/json"},
        wallet_id="w1",
    )

    record = json.loads(_last_line(capsys))
    assert record["stamp"] == "***"
    assert record["api_private_key"] == "***"
    assert record["headers"] == {"X-Stamp": "***", "Content-Type": "application/json"}
    assert record["wallet_id"] == "w1"


def test_redaction_leaves_empty_values_alone():
    event = redact_custody_secrets(None, "info", {"event": "x", "stamp": "", "walletId": "w1"})
    assert event == {"event": "x", "stamp": "", "walletId": "w1"}


@pytest.mark.parametrize(
    "path, status, level",
    [
        ("/healthz", 200, logging.DEBUG),
        ("/", 200, logging.DEBUG),
        ("/healthz", 503, logging.ERROR),
        ("/api/list-wallets", 200, logging.INFO),
        ("/api/claim-wallet", 409, logging.WARNING),
        ("/api/list-wallets", 502, logging.ERROR),
    ],
)
def test_request_log_level(path, status, level):
    assert log_level_for(path, status) == level
