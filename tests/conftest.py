"""Pytest configuration and fixtures."""

import json
from collections.abc import Callable
from datetime import datetime
from typing import Any

import httpx
import pytest
import pytest_asyncio

from smsconnect.models.event import LineItem, OrderContext, SubscriptionContext, UserContext
from smsconnect.models.settings import AdminRecipient, ChannelCredentials, NotificationConfig
from smsconnect.notification.channels.alimtalk import AlimtalkClient
from smsconnect.notification.channels.sms import SmsClient

SMS_URL = "https://sms.test"
ALIMTALK_URL = "https://alimtalk.test"


class FakeRedis:
    """In-memory stand-in for the async Redis commands the stores use."""

    def __init__(self) -> None:
        self.values: dict[str, Any] = {}
        self.expiry: dict[str, float] = {}
        self.now = 0.0

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def _purge(self, key: str) -> None:
        if key in self.expiry and self.expiry[key] <= self.now:
            self.values.pop(key, None)
            self.expiry.pop(key, None)

    async def get(self, key: str) -> Any:
        self._purge(key)
        return self.values.get(key)

    async def set(self, key: str, value: Any, nx: bool = False, ex: int | None = None) -> bool | None:
        self._purge(key)
        if nx and key in self.values:
            return None
        self.values[key] = value
        if ex is not None:
            self.expiry[key] = self.now + ex
        else:
            self.expiry.pop(key, None)
        return True

    async def incr(self, key: str) -> int:
        value = int(self.values.get(key, 0)) + 1
        self.values[key] = str(value)
        return value

    async def exists(self, key: str) -> int:
        self._purge(key)
        return 1 if key in self.values else 0

    async def delete(self, key: str) -> int:
        existed = key in self.values
        self.values.pop(key, None)
        self.expiry.pop(key, None)
        return int(existed)

    async def lpush(self, key: str, value: str) -> int:
        items = self.values.setdefault(key, [])
        items.insert(0, value)
        return len(items)

    async def ltrim(self, key: str, start: int, end: int) -> bool:
        items = self.values.get(key, [])
        self.values[key] = items[start:end + 1]
        return True

    async def lrange(self, key: str, start: int, end: int) -> list[str]:
        items = self.values.get(key, [])
        if end == -1:
            return items[start:]
        return items[start:end + 1]

    async def llen(self, key: str) -> int:
        return len(self.values.get(key, []))


class RecordingTransport:
    """Mock transport that records requests and answers per host."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responders: dict[str, Callable[[httpx.Request], httpx.Response]] = {}

    def respond(self, host: str, status_code: int = 200, body: dict | None = None) -> None:
        self.responders[host] = lambda request: httpx.Response(status_code, json=body or {})

    def fail(self, host: str) -> None:
        def raise_error(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        self.responders[host] = raise_error

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        responder = self.responders.get(request.url.host)
        if responder is None:
            return httpx.Response(200, json={})
        return responder(request)

    def sent_to(self, host: str) -> list[dict]:
        return [json.loads(r.content) for r in self.requests if r.url.host == host and r.content]


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest_asyncio.fixture
async def http_client(transport: RecordingTransport):
    async with httpx.AsyncClient(transport=httpx.MockTransport(transport)) as client:
        yield client


@pytest.fixture
def sms_client(http_client: httpx.AsyncClient) -> SmsClient:
    return SmsClient(http=http_client, base_url=SMS_URL)


@pytest.fixture
def alimtalk_client(http_client: httpx.AsyncClient) -> AlimtalkClient:
    return AlimtalkClient(http=http_client, base_url=ALIMTALK_URL)


@pytest.fixture
def order_context() -> OrderContext:
    return OrderContext(
        order_id=1001,
        order_number="1001",
        status="completed",
        date_created=datetime(2026, 3, 14, 9, 30),
        formatted_total="39,000원",
        billing_first_name="길동",
        billing_full_name="홍길동",
        billing_phone="01012345678",
        items=[
            LineItem(product_id=12, category_ids=[15]),
            LineItem(product_id=20, category_ids=[15, 16]),
        ],
    )


@pytest.fixture
def subscription_context(order_context: OrderContext) -> SubscriptionContext:
    return SubscriptionContext(
        subscription_id=2001,
        status="active",
        date_created=datetime(2026, 3, 1),
        next_payment=datetime(2026, 4, 1),
        billing_first_name="길동",
        billing_full_name="홍길동",
        billing_phone="01012345678",
        parent=order_context,
    )


@pytest.fixture
def user_context() -> UserContext:
    return UserContext(
        user_id=3001,
        user_login="gildong",
        user_email="gildong@example.com",
        display_name="홍길동",
        billing_phone="01099998888",
    )


@pytest.fixture
def notification_config() -> NotificationConfig:
    return NotificationConfig(
        shop_name="테스트샵",
        sender_number="0212345678",
        sms_credentials=ChannelCredentials(api_key="sms-key", secret="sms-secret"),
        alimtalk_credentials=ChannelCredentials(api_key="kakao-key", secret="sender-key"),
        admins=[
            AdminRecipient(enabled=True, name="운영자", phone="01011112222"),
            AdminRecipient(enabled=False, name="휴직자", phone="01033334444"),
        ],
    )
