#!/usr/bin/env python3
"""테스트 이벤트를 API 서버로 전송하는 스크립트.

주문/구독/회원 이벤트를 순서대로 보내 전체 발송 흐름을 확인합니다.
"""

import asyncio
import json
import sys
from datetime import datetime, timezone

import httpx


def order_event(order_id: int, status_key: str, product_ids: list[int]) -> dict:
    """주문 상태 변경 이벤트를 만든다."""
    return {
        "kind": "order_status_changed",
        "status_key": status_key,
        "context": {
            "type": "order",
            "order_id": order_id,
            "order_number": str(order_id),
            "status": status_key,
            "date_created": datetime.now(timezone.utc).isoformat(),
            "formatted_total": "39,000원",
            "billing_first_name": "길동",
            "billing_full_name": "홍길동",
            "billing_phone": "01012345678",
            "items": [{"product_id": pid, "category_ids": [15]} for pid in product_ids],
        },
    }


def subscription_event(subscription_id: int, status: str) -> dict:
    """구독 상태 변경 이벤트를 만든다."""
    return {
        "kind": "subscription_status_changed",
        "status_key": f"wc-subscription-{status}",
        "context": {
            "type": "subscription",
            "subscription_id": subscription_id,
            "status": status,
            "billing_first_name": "길동",
            "billing_full_name": "홍길동",
            "billing_phone": "01012345678",
        },
    }


def user_event(user_id: int, kind: str, status_key: str, extra: dict | None = None) -> dict:
    """회원 이벤트를 만든다."""
    return {
        "kind": kind,
        "status_key": status_key,
        "context": {
            "type": "user",
            "user_id": user_id,
            "user_login": "gildong",
            "user_email": "gildong@example.com",
            "display_name": "홍길동",
            "billing_phone": "01012345678",
        },
        "extra_vars": extra or {},
    }


async def send_event(client: httpx.AsyncClient, event: dict) -> None:
    """이벤트 하나를 전송하고 발송 결과를 출력한다."""
    response = await client.post("/api/v1/events", json=event)
    payload = response.json()

    print(f"✓ 이벤트: {event['kind']} / {event['status_key']}")
    if response.status_code != 200:
        print(f"  오류 {response.status_code}: {json.dumps(payload, ensure_ascii=False)}")
        return

    deliveries = payload["data"]["deliveries"]
    if not deliveries:
        print("  발송 없음 (설정된 템플릿 없음)")
    for entry in deliveries:
        print(f"  {entry['channel_type']} → {entry['recipient']}: {entry['status']}")
    print()


async def send_test_events(base_url: str) -> None:
    """시나리오별 테스트 이벤트를 전송한다."""
    async with httpx.AsyncClient(base_url=base_url, timeout=60.0) as client:
        print(f"대상 서버: {base_url}")
        print("=" * 60)

        print("📦 시나리오1: 주문 완료")
        print("-" * 60)
        await send_event(client, order_event(1001, "wc-completed", [12, 20]))

        print("📦 시나리오2: 주문 처리중")
        print("-" * 60)
        await send_event(client, order_event(1002, "wc-processing", [31]))

        print("🔁 시나리오3: 구독 활성화")
        print("-" * 60)
        await send_event(client, subscription_event(2001, "active"))

        print("👤 시나리오4: 회원 가입 / 등급 변경")
        print("-" * 60)
        await send_event(client, user_event(3001, "user_registered", "user_register"))
        await send_event(
            client,
            user_event(
                3001,
                "user_role_changed",
                "user_role_change",
                {"old_role": "Customer", "new_role": "Subscriber"},
            ),
        )

        print("=" * 60)
        print("✅ 모든 테스트 이벤트 전송 완료")
        print("- 발송 이력: GET /api/v1/history")


def main() -> None:
    """주 함수."""
    base_url = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8000"
    asyncio.run(send_test_events(base_url))


if __name__ == "__main__":
    main()
