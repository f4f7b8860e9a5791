"""Kakao Alimtalk channel."""

from typing import Any

import httpx

from smsconnect.core.exceptions import InvalidCredentials
from smsconnect.core.logging import get_logger
from smsconnect.models.delivery import ChannelResult
from smsconnect.models.settings import ChannelCredentials
from smsconnect.notification.channels.base import ChannelClient, ResponseListener

logger = get_logger(__name__)

DEFAULT_SEND_PATH = "/send/alimtalk"


class AlimtalkClient(ChannelClient):
    """Client for the Alimtalk provider.

    Credentials: ``api_key`` is sent as a bearer token, ``secret`` is the
    Kakao sender key.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str,
        credentials: ChannelCredentials | None = None,
        on_response: ResponseListener | None = None,
        send_path: str = DEFAULT_SEND_PATH,
    ):
        super().__init__(http, base_url, credentials, on_response)
        self._send_path = send_path

    @property
    def channel_name(self) -> str:
        return "alimtalk"

    def _copy_options(self) -> dict[str, Any]:
        return {"send_path": self._send_path}

    async def send(
        self,
        template_code: str,
        to: str,
        variables: dict[str, str] | None = None,
    ) -> ChannelResult:
        """Send a templated Alimtalk message.

        Args:
            template_code: Approved template code
            to: Recipient phone number
            variables: Values keyed by template variable name (without ``#{}``)

        Returns:
            Provider result

        Raises:
            InvalidCredentials: API key or sender key missing, nothing was sent
            ApiError: Non-2xx response
            TransportError: Network failure or timeout
        """
        if not self._credentials.is_complete:
            raise InvalidCredentials("Alimtalk API key or sender key is missing.")

        headers = {
            "Authorization": f"Bearer {self._credentials.api_key.strip()}",
            "Content-Type": "application/json",
        }
        payload = {
            "senderKey": self._credentials.secret.strip(),
            "templateCode": template_code,
            "recipient": to,
            "variables": {f"#{{{key}}}": value for key, value in (variables or {}).items()},
        }
        result = await self._request("POST", self._send_path, headers, payload)
        logger.info("Alimtalk sent", to=to, template_code=template_code)
        return result
