"""Tests for notification routing and delivery logging."""

import httpx
import pytest

from smsconnect.models.delivery import ChannelType, DeliveryStatus
from smsconnect.models.event import (
    EventKind,
    NotificationEvent,
    OrderContext,
    SubscriptionContext,
    UserContext,
)
from smsconnect.models.rule import ConditionType, Rule
from smsconnect.models.settings import AdminRecipient, NotificationConfig
from smsconnect.notification.channels.alimtalk import AlimtalkClient
from smsconnect.notification.channels.sms import SmsClient
from smsconnect.notification.dispatcher import NotificationDispatcher
from smsconnect.storage.auxiliary import CooldownFlag
from smsconnect.storage.config_store import ConfigStore
from smsconnect.storage.delivery_log import DeliveryLog
from smsconnect.storage.rule_store import RuleStore



@pytest.fixture
def dispatcher(
    sms_client: SmsClient,
    alimtalk_client: AlimtalkClient,
    fake_redis,
) -> NotificationDispatcher:
    return NotificationDispatcher(
        sms=sms_client,
        alimtalk=alimtalk_client,
        config_store=ConfigStore(fake_redis),
        rule_store=RuleStore(fake_redis),
        delivery_log=DeliveryLog(fake_redis, max_entries=100),
        cooldown_flag=CooldownFlag(fake_redis),
    )


async def save_config(fake_redis, config: NotificationConfig, **updates) -> NotificationConfig:
    config = config.model_copy(update=updates)
    await ConfigStore(fake_redis).save(config)
    return config


def order_event(order: OrderContext, status_key: str = "wc-completed") -> NotificationEvent:
    return NotificationEvent(kind=EventKind.ORDER_STATUS_CHANGED, status_key=status_key, context=order)


@pytest.mark.asyncio
async def test_alimtalk_takes_precedence_over_default_sms(
    dispatcher: NotificationDispatcher,
    fake_redis,
    transport,
    notification_config: NotificationConfig,
    order_context: OrderContext,
) -> None:
    await save_config(
        fake_redis,
        notification_config,
        alimtalk_templates={"wc-completed": "TPL001"},
        sms_templates={"wc-completed": "{customer_name}님 주문 완료"},
    )
    transport.respond("alimtalk.test", 200, {"result": "ok"})

    entries = await dispatcher.dispatch(order_event(order_context))

    assert len(entries) == 1
    assert entries[0].channel_type == ChannelType.ALIMTALK
    assert entries[0].status == DeliveryStatus.SUCCESS
    assert entries[0].template_code == "TPL001"
    assert entries[0].subject_id == 1001
    sent = transport.sent_to("alimtalk.test")
    assert len(sent) == 1
    assert sent[0]["templateCode"] == "TPL001"
    assert sent[0]["variables"]["#{고객명}"] == "길동"
    assert transport.sent_to("sms.test") == []

    logged = await DeliveryLog(fake_redis).recent()
    assert logged == entries


@pytest.mark.asyncio
async def test_alimtalk_failure_is_logged_not_raised(
    dispatcher: NotificationDispatcher,
    fake_redis,
    transport,
    notification_config: NotificationConfig,
    order_context: OrderContext,
) -> None:
    await save_config(
        fake_redis,
        notification_config,
        alimtalk_templates={"wc-completed": "TPL001"},
        sms_templates={"wc-completed": "주문 완료"},
    )
    transport.respond("alimtalk.test", 400, {"error": "template not approved"})

    entries = await dispatcher.dispatch(order_event(order_context))

    assert [(e.channel_type, e.status) for e in entries] == [(ChannelType.ALIMTALK, DeliveryStatus.FAILURE)]
    assert "template not approved" in entries[0].raw_response
    assert transport.sent_to("sms.test") == []


@pytest.mark.asyncio
async def test_default_sms_when_no_alimtalk_template(
    dispatcher: NotificationDispatcher,
    fake_redis,
    transport,
    notification_config: NotificationConfig,
    order_context: OrderContext,
) -> None:
    await save_config(
        fake_redis,
        notification_config,
        alimtalk_templates={"wc-completed": "  "},
        sms_templates={"wc-completed": "[{shop_name}] {customer_name}님 주문({order_number}) 완료"},
    )

    entries = await dispatcher.dispatch(order_event(order_context))

    assert len(entries) == 1
    assert entries[0].channel_type == ChannelType.SMS
    assert entries[0].message_body == "[테스트샵] 길동님 주문(1001) 완료"
    message = transport.sent_to("sms.test")[0]["message"]
    assert message["type"] == "SMS"
    assert message["from"] == "0212345678"
    assert message["to"] == "01012345678"


@pytest.mark.asyncio
async def test_long_sms_is_sent_as_lms(
    dispatcher: NotificationDispatcher,
    fake_redis,
    transport,
    notification_config: NotificationConfig,
    order_context: OrderContext,
) -> None:
    await save_config(fake_redis, notification_config, sms_templates={"wc-completed": "가" * 46})

    entries = await dispatcher.dispatch(order_event(order_context))

    assert entries[0].channel_type == ChannelType.LMS
    assert transport.sent_to("sms.test")[0]["message"]["type"] == "LMS"


@pytest.mark.asyncio
async def test_unconfigured_status_is_noop(
    dispatcher: NotificationDispatcher,
    fake_redis,
    transport,
    notification_config: NotificationConfig,
    order_context: OrderContext,
) -> None:
    await save_config(fake_redis, notification_config, sms_templates={"wc-processing": "처리중"})

    assert await dispatcher.dispatch(order_event(order_context)) == []
    assert transport.requests == []
    assert await DeliveryLog(fake_redis).count() == 0


@pytest.mark.asyncio
async def test_matching_rule_overrides_defaults_and_sends_both(
    dispatcher: NotificationDispatcher,
    fake_redis,
    transport,
    notification_config: NotificationConfig,
    order_context: OrderContext,
) -> None:
    await save_config(
        fake_redis,
        notification_config,
        alimtalk_templates={"wc-completed": "TPL_DEFAULT"},
        sms_templates={"wc-completed": "기본 문자"},
    )
    await RuleStore(fake_redis).create(
        Rule(
            condition_type=ConditionType.PRODUCT,
            condition_values=[20],
            order_status="wc-completed",
            sms_body="{customer_name}님 특별상품 주문 감사합니다",
            alimtalk_template_code="TPL_RULE",
        )
    )

    entries = await dispatcher.dispatch(order_event(order_context))

    assert [e.channel_type for e in entries] == [ChannelType.ALIMTALK, ChannelType.SMS]
    assert transport.sent_to("alimtalk.test")[0]["templateCode"] == "TPL_RULE"
    assert transport.sent_to("sms.test")[0]["message"]["text"] == "길동님 특별상품 주문 감사합니다"
    assert "TPL_DEFAULT" not in [e.template_code for e in entries]


@pytest.mark.asyncio
async def test_rule_path_copies_admins_on_both_channels(
    dispatcher: NotificationDispatcher,
    fake_redis,
    transport,
    notification_config: NotificationConfig,
    order_context: OrderContext,
) -> None:
    await save_config(fake_redis, notification_config, send_to_admin={"wc-completed": True})
    await RuleStore(fake_redis).create(
        Rule(
            condition_type=ConditionType.CATEGORY,
            condition_values=[16],
            order_status="wc-completed",
            sms_body="특별상품 주문 감사합니다",
            alimtalk_template_code="TPL_RULE",
        )
    )

    entries = await dispatcher.dispatch(order_event(order_context))

    assert [(e.channel_type, e.recipient) for e in entries] == [
        (ChannelType.ALIMTALK, "01012345678"),
        (ChannelType.ALIMTALK, "01011112222"),
        (ChannelType.SMS, "01012345678"),
        (ChannelType.SMS, "01011112222"),
    ]
    assert "01033334444" not in [m["message"]["to"] for m in transport.sent_to("sms.test")]


@pytest.mark.asyncio
async def test_rule_for_other_status_is_ignored(
    dispatcher: NotificationDispatcher,
    fake_redis,
    transport,
    notification_config: NotificationConfig,
    order_context: OrderContext,
) -> None:
    await save_config(fake_redis, notification_config, alimtalk_templates={"wc-completed": "TPL001"})
    await RuleStore(fake_redis).create(
        Rule(
            condition_type=ConditionType.PRODUCT,
            condition_values=[12],
            order_status="wc-processing",
            sms_body="처리중 규칙",
        )
    )

    entries = await dispatcher.dispatch(order_event(order_context))

    assert [e.template_code for e in entries] == ["TPL001"]
    assert transport.sent_to("sms.test") == []


@pytest.mark.asyncio
async def test_admin_fan_out_when_flag_set(
    dispatcher: NotificationDispatcher,
    fake_redis,
    transport,
    notification_config: NotificationConfig,
    order_context: OrderContext,
) -> None:
    admins = [
        AdminRecipient(enabled=True, name="A", phone="01011112222"),
        AdminRecipient(enabled=True, name="B", phone="01011112222"),
        AdminRecipient(enabled=True, name="Customer too", phone="01012345678"),
        AdminRecipient(enabled=False, name="C", phone="01033334444"),
    ]
    await save_config(
        fake_redis,
        notification_config,
        admins=admins,
        sms_templates={"wc-completed": "주문 완료"},
        send_to_admin={"wc-completed": True},
    )

    entries = await dispatcher.dispatch(order_event(order_context))

    assert [e.recipient for e in entries] == ["01012345678", "01011112222"]


@pytest.mark.asyncio
async def test_no_admin_copies_without_flag(
    dispatcher: NotificationDispatcher,
    fake_redis,
    notification_config: NotificationConfig,
    order_context: OrderContext,
) -> None:
    await save_config(fake_redis, notification_config, sms_templates={"wc-completed": "주문 완료"})

    entries = await dispatcher.dispatch(order_event(order_context))

    assert [e.recipient for e in entries] == ["01012345678"]


@pytest.mark.asyncio
async def test_one_failure_does_not_stop_other_recipients(
    dispatcher: NotificationDispatcher,
    fake_redis,
    transport,
    notification_config: NotificationConfig,
    order_context: OrderContext,
) -> None:
    await save_config(
        fake_redis,
        notification_config,
        sms_templates={"wc-completed": "주문 완료"},
        send_to_admin={"wc-completed": True},
    )
    calls = {"n": 0}

    def flaky(request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        if calls["n"] == 1:
            raise httpx.ReadTimeout("timeout", request=request)
        return httpx.Response(200, json={"ok": True})

    transport.responders["sms.test"] = flaky

    entries = await dispatcher.dispatch(order_event(order_context))

    assert [e.status for e in entries] == [DeliveryStatus.FAILURE, DeliveryStatus.SUCCESS]
    assert "ReadTimeout" in entries[0].raw_response


@pytest.mark.asyncio
async def test_missing_credentials_logged_as_failure(
    dispatcher: NotificationDispatcher,
    fake_redis,
    transport,
    order_context: OrderContext,
) -> None:
    await ConfigStore(fake_redis).save(NotificationConfig(sms_templates={"wc-completed": "주문 완료"}))

    entries = await dispatcher.dispatch(order_event(order_context))

    assert entries[0].status == DeliveryStatus.FAILURE
    assert "missing" in entries[0].raw_response
    assert transport.requests == []


@pytest.mark.asyncio
async def test_subject_without_phone_only_notifies_admins(
    dispatcher: NotificationDispatcher,
    fake_redis,
    notification_config: NotificationConfig,
    order_context: OrderContext,
) -> None:
    order_context.billing_phone = ""
    await save_config(
        fake_redis,
        notification_config,
        sms_templates={"wc-completed": "주문 완료"},
        send_to_admin={"wc-completed": True},
    )

    entries = await dispatcher.dispatch(order_event(order_context))

    assert [e.recipient for e in entries] == ["01011112222"]


@pytest.mark.asyncio
async def test_subscription_event_uses_defaults_and_parent_values(
    dispatcher: NotificationDispatcher,
    fake_redis,
    transport,
    notification_config: NotificationConfig,
    subscription_context: SubscriptionContext,
) -> None:
    await save_config(
        fake_redis,
        notification_config,
        sms_templates={"wc-subscription-active": "구독 {subscription_id} 활성 (주문 {order_number})"},
    )
    await RuleStore(fake_redis).create(
        Rule(
            condition_type=ConditionType.PRODUCT,
            condition_values=[12],
            order_status="wc-subscription-active",
            alimtalk_template_code="TPL_RULE",
        )
    )
    event = NotificationEvent(
        kind=EventKind.SUBSCRIPTION_STATUS_CHANGED,
        status_key="wc-subscription-active",
        context=subscription_context,
    )

    entries = await dispatcher.dispatch(event)

    assert len(entries) == 1
    assert entries[0].subject_id == 2001
    assert entries[0].message_body == "구독 2001 활성 (주문 1001)"
    assert transport.sent_to("alimtalk.test") == []


@pytest.mark.asyncio
async def test_user_event_single_recipient_alimtalk_first(
    dispatcher: NotificationDispatcher,
    fake_redis,
    transport,
    notification_config: NotificationConfig,
    user_context: UserContext,
) -> None:
    await save_config(
        fake_redis,
        notification_config,
        alimtalk_templates={"user_role_change": "TPL_ROLE"},
        sms_templates={"user_role_change": "등급 변경"},
        send_to_admin={"user_role_change": True},
    )
    event = NotificationEvent(
        kind=EventKind.USER_ROLE_CHANGED,
        status_key="user_role_change",
        context=user_context,
        extra_vars={"old_role": "Customer", "new_role": "Subscriber"},
    )

    entries = await dispatcher.dispatch(event)

    assert [(e.recipient, e.channel_type) for e in entries] == [("01099998888", ChannelType.ALIMTALK)]
    variables = transport.sent_to("alimtalk.test")[0]["variables"]
    assert variables["#{변경등급}"] == "Subscriber"
    assert variables["#{이전등급}"] == "Customer"
    assert variables["#{회원명}"] == "홍길동"


@pytest.mark.asyncio
async def test_user_registered_falls_back_to_sms(
    dispatcher: NotificationDispatcher,
    fake_redis,
    transport,
    notification_config: NotificationConfig,
    user_context: UserContext,
) -> None:
    await save_config(
        fake_redis,
        notification_config,
        sms_templates={"user_register": "{user_display_name}님 가입을 환영합니다"},
    )
    event = NotificationEvent(kind=EventKind.USER_REGISTERED, status_key="user_register", context=user_context)

    entries = await dispatcher.dispatch(event)

    assert entries[0].message_body == "홍길동님 가입을 환영합니다"
    assert entries[0].subject_id == 3001


@pytest.mark.asyncio
async def test_low_balance_alert_triggered_by_send_response(
    dispatcher: NotificationDispatcher,
    fake_redis,
    transport,
    notification_config: NotificationConfig,
    order_context: OrderContext,
) -> None:
    await save_config(
        fake_redis,
        notification_config,
        alimtalk_templates={"wc-completed": "TPL001"},
        low_point_threshold=100,
        low_point_message="[{shop_name}] 포인트 부족: {current_points}",
    )
    transport.respond("alimtalk.test", 200, {"point": 50})

    entries = await dispatcher.dispatch(order_event(order_context))
    await dispatcher.dispatch(order_event(order_context))

    assert len(entries) == 1
    alerts = transport.sent_to("sms.test")
    assert len(alerts) == 1
    assert alerts[0]["message"]["to"] == "01011112222"
    assert alerts[0]["message"]["text"] == "[테스트샵] 포인트 부족: 50"
    assert await DeliveryLog(fake_redis).count() == 2


def test_event_context_must_fit_kind(user_context: UserContext) -> None:
    with pytest.raises(ValueError):
        NotificationEvent(kind=EventKind.ORDER_STATUS_CHANGED, status_key="wc-completed", context=user_context)
