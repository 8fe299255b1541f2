"""Unit tests for the ledger gateway and Telegram clients"""

import json
import httpx
import pytest
from layersplit.domain.exceptions import LedgerAPIError, NotificationError
from layersplit.domain.models import Notice
from layersplit.domain.money import Money
from layersplit.infrastructure.clients.ledger import LedgerClient
from layersplit.infrastructure.clients.telegram import TelegramNotifier
from layersplit.infrastructure.sui.builder import SuiTransactionBuilder

BASE_URL = "http://ledger.test"


@pytest.fixture
def query():
    builder = SuiTransactionBuilder(package_id="0x" + "a" * 64, registry_id="0x" + "b" * 64)
    return builder.build_interest_query("0xdebt", "0xbill")


def _ledger(handler, max_retries: int = 3) -> LedgerClient:
    return LedgerClient(
        BASE_URL,
        max_retries=max_retries,
        backoff_base=0,
        transport=httpx.MockTransport(handler),
    )


async def test_fetch_amount_due(query):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"interest": "20", "total_due": "1020"})

    result = await _ledger(handler).fetch_amount_due(query)

    assert result.interest == Money(20)
    assert result.total_due == Money(1020)
    assert seen[0].url == httpx.URL(f"{BASE_URL}/inspect")
    assert json.loads(seen[0].content) == {"transaction": query.serialize()}


async def test_fetch_amount_due_retries_server_errors(query):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) < 3:
            return httpx.Response(503)
        return httpx.Response(200, json={"interest": 0, "total_due": 500})

    result = await _ledger(handler).fetch_amount_due(query)

    assert len(calls) == 3
    assert result.total_due == Money(500)


async def test_fetch_amount_due_gives_up_after_max_retries(query):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(500)

    with pytest.raises(LedgerAPIError):
        await _ledger(handler, max_retries=2).fetch_amount_due(query)
    assert len(calls) == 2


async def test_fetch_amount_due_does_not_retry_client_errors(query):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(400, json={"error": "bad transaction"})

    with pytest.raises(LedgerAPIError, match="400"):
        await _ledger(handler).fetch_amount_due(query)
    assert len(calls) == 1


async def test_fetch_amount_due_network_failure(query):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(LedgerAPIError, match="unreachable"):
        await _ledger(handler).fetch_amount_due(query)


async def test_fetch_amount_due_malformed_response(query):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"interest": "-5", "total_due": "10"})

    with pytest.raises(LedgerAPIError, match="invalid"):
        await _ledger(handler).fetch_amount_due(query)


async def test_telegram_send():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True, "result": {"message_id": 1}})

    notifier = TelegramNotifier("TOKEN", api_base="http://tg.test", transport=httpx.MockTransport(handler))
    await notifier.send(Notice(chat_id=42, text="hello"))

    assert seen[0].url.path == "/botTOKEN/sendMessage"
    body = json.loads(seen[0].content)
    assert body["chat_id"] == 42
    assert body["text"] == "hello"


async def test_telegram_api_rejection():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"ok": False, "description": "chat not found"})

    notifier = TelegramNotifier("TOKEN", api_base="http://tg.test", transport=httpx.MockTransport(handler))
    with pytest.raises(NotificationError, match="chat not found"):
        await notifier.send(Notice(chat_id=42, text="hello"))


async def test_telegram_http_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"ok": False})

    notifier = TelegramNotifier("TOKEN", api_base="http://tg.test", transport=httpx.MockTransport(handler))
    with pytest.raises(NotificationError, match="403"):
        await notifier.send(Notice(chat_id=42, text="hello"))


async def test_telegram_without_token():
    with pytest.raises(NotificationError):
        await TelegramNotifier("").send(Notice(chat_id=42, text="hello"))
