"""Notification configuration and balance API routes."""

from typing import Any

from fastapi import APIRouter, HTTPException

from smsconnect.api.deps import ConfigStoreDep, DispatcherDep
from smsconnect.core.exceptions import ApiError, ChannelError, InvalidCredentials
from smsconnect.core.logging import get_logger
from smsconnect.models.settings import NotificationConfig
from smsconnect.schemas.common import APIResponse

logger = get_logger(__name__)

router = APIRouter(tags=["settings"])


@router.get("/config", response_model=APIResponse[NotificationConfig])
async def get_config(store: ConfigStoreDep) -> APIResponse[NotificationConfig]:
    """Get the notification configuration with credentials masked."""
    config = await store.load()
    return APIResponse(data=config.redacted())


@router.put("/config", response_model=APIResponse[NotificationConfig])
async def replace_config(
    data: NotificationConfig,
    store: ConfigStoreDep,
) -> APIResponse[NotificationConfig]:
    """Replace the notification configuration.

    Credentials sent back empty or in their masked form keep the stored value.
    """
    stored = await store.load()
    config = data.model_copy(
        update={
            "sms_credentials": data.sms_credentials.restore_masked(stored.sms_credentials),
            "alimtalk_credentials": data.alimtalk_credentials.restore_masked(stored.alimtalk_credentials),
        }
    )
    await store.save(config)
    logger.info("Configuration saved", admins=len(config.admins))
    return APIResponse(data=config.redacted())


@router.get("/balance", response_model=APIResponse[dict[str, Any]])
async def get_balance(dispatcher: DispatcherDep) -> APIResponse[dict[str, Any]]:
    """Query the SMS provider balance. Also runs the low balance check."""
    ctx = await dispatcher.load_context()
    try:
        balance = await ctx.sms.get_balance()
    except InvalidCredentials as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except ApiError as e:
        raise HTTPException(status_code=502, detail=f"{e} {e.body}".strip()) from e
    except ChannelError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e

    return APIResponse(data=balance)
