"""SMS/LMS channel using HMAC-signed requests."""

import hashlib
import hmac
import json
import uuid
from datetime import datetime, timezone
from typing import Any

import httpx

from smsconnect.core.exceptions import InvalidCredentials
from smsconnect.core.logging import get_logger
from smsconnect.models.delivery import ChannelResult, ChannelType
from smsconnect.models.settings import ChannelCredentials
from smsconnect.notification.channels.base import ChannelClient, ResponseListener

logger = get_logger(__name__)

DEFAULT_SEND_PATH = "/messages/v4/send"
DEFAULT_BALANCE_PATH = "/cash/v1/balance"


def build_auth_header(api_key: str, api_secret: str, date: str | None = None, salt: str | None = None) -> str:
    """Build the ``HMAC-SHA256`` Authorization header value.

    The signature is HMAC-SHA256 of ``date + salt`` keyed by the API secret.
    """
    date = date or datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"
    salt = salt or uuid.uuid4().hex
    signature = hmac.new(
        api_secret.encode("utf-8"),
        (date + salt).encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    return f"HMAC-SHA256 ApiKey={api_key}, Date={date}, salt={salt}, signature={signature}"


class SmsClient(ChannelClient):
    """Client for the SMS provider."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str,
        credentials: ChannelCredentials | None = None,
        on_response: ResponseListener | None = None,
        send_path: str = DEFAULT_SEND_PATH,
        balance_path: str = DEFAULT_BALANCE_PATH,
    ):
        super().__init__(http, base_url, credentials, on_response)
        self._send_path = send_path
        self._balance_path = balance_path

    @property
    def channel_name(self) -> str:
        return "sms"

    def _copy_options(self) -> dict[str, Any]:
        return {"send_path": self._send_path, "balance_path": self._balance_path}

    def _auth_headers(self) -> dict[str, str]:
        if not self._credentials.is_complete:
            raise InvalidCredentials("SMS API key or secret is missing.")
        return {
            "Authorization": build_auth_header(
                self._credentials.api_key.strip(),
                self._credentials.secret.strip(),
            ),
            "Content-Type": "application/json",
        }

    async def send(
        self,
        to: str,
        from_: str,
        text: str,
        message_type: ChannelType = ChannelType.SMS,
    ) -> ChannelResult:
        """Send one SMS or LMS message.

        Args:
            to: Recipient phone number
            from_: Registered sender number
            text: Final message text
            message_type: SMS or LMS

        Returns:
            Provider result

        Raises:
            InvalidCredentials: Key or secret missing, nothing was sent
            ApiError: Non-2xx response
            TransportError: Network failure or timeout
        """
        headers = self._auth_headers()
        payload = {
            "message": {
                "to": to,
                "from": from_,
                "text": text,
                "type": message_type.value,
            }
        }
        result = await self._request("POST", self._send_path, headers, payload)
        logger.info("SMS sent", to=to, message_type=message_type.value)
        return result

    async def get_balance(self) -> dict[str, Any]:
        """Query the account balance.

        Returns:
            Decoded balance document from the provider
        """
        headers = self._auth_headers()
        result = await self._request("GET", self._balance_path, headers)
        try:
            data = json.loads(result.body)
        except ValueError:
            logger.warning("Balance response is not JSON")
            return {}
        return data if isinstance(data, dict) else {}
