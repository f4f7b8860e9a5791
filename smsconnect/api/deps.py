"""API dependency injection."""

from typing import Annotated

from fastapi import Depends, Query

from smsconnect.core.config import get_settings
from smsconnect.notification.channels.alimtalk import AlimtalkClient
from smsconnect.notification.channels.http_client import get_http_client
from smsconnect.notification.channels.sms import SmsClient
from smsconnect.notification.dispatcher import NotificationDispatcher
from smsconnect.schemas.common import PaginationParams
from smsconnect.storage.auxiliary import CooldownFlag
from smsconnect.storage.config_store import ConfigStore
from smsconnect.storage.delivery_log import DeliveryLog
from smsconnect.storage.redis_client import get_redis
from smsconnect.storage.rule_store import RuleStore


def get_rule_store() -> RuleStore:
    """Get rule store instance."""
    return RuleStore(get_redis())


def get_config_store() -> ConfigStore:
    """Get configuration store instance."""
    return ConfigStore(get_redis())


def get_delivery_log() -> DeliveryLog:
    """Get delivery log instance."""
    return DeliveryLog(get_redis())


def get_sms_client() -> SmsClient:
    """Get an SMS client without credentials; callers bind them."""
    settings = get_settings()
    return SmsClient(
        http=get_http_client(),
        base_url=settings.sms_api_url,
        send_path=settings.sms_send_path,
        balance_path=settings.sms_balance_path,
    )


def get_alimtalk_client() -> AlimtalkClient:
    """Get an Alimtalk client without credentials; callers bind them."""
    settings = get_settings()
    return AlimtalkClient(
        http=get_http_client(),
        base_url=settings.alimtalk_api_url,
        send_path=settings.alimtalk_send_path,
    )


def get_dispatcher() -> NotificationDispatcher:
    """Get a dispatcher wired to Redis and the shared HTTP client."""
    redis = get_redis()
    return NotificationDispatcher(
        sms=get_sms_client(),
        alimtalk=get_alimtalk_client(),
        config_store=ConfigStore(redis),
        rule_store=RuleStore(redis),
        delivery_log=DeliveryLog(redis),
        cooldown_flag=CooldownFlag(redis),
        low_balance_cooldown=get_settings().low_balance_cooldown_seconds,
    )


# Type aliases for dependency injection
RuleStoreDep = Annotated[RuleStore, Depends(get_rule_store)]
ConfigStoreDep = Annotated[ConfigStore, Depends(get_config_store)]
DeliveryLogDep = Annotated[DeliveryLog, Depends(get_delivery_log)]
DispatcherDep = Annotated[NotificationDispatcher, Depends(get_dispatcher)]


def get_pagination(
    page: int = Query(default=1, ge=1, description="Page number"),
    page_size: int = Query(default=20, ge=1, le=100, description="Items per page"),
) -> PaginationParams:
    """Get pagination parameters from query."""
    return PaginationParams(page=page, page_size=page_size)


PaginationDep = Annotated[PaginationParams, Depends(get_pagination)]
