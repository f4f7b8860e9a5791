"""Base class for outbound message channels."""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any, Self

import httpx

from smsconnect.core.exceptions import ApiError, TransportError
from smsconnect.core.logging import get_logger
from smsconnect.models.delivery import ChannelResult
from smsconnect.models.settings import ChannelCredentials

logger = get_logger(__name__)

# Receives the raw body of every response the provider returned.
ResponseListener = Callable[[str], Awaitable[None]]


class ChannelClient(ABC):
    """Abstract base class for provider clients.

    A client is bound to one set of credentials. Use :meth:`with_credentials`
    to get a copy for the configuration snapshot of a dispatch; the copy
    shares the underlying HTTP client.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str,
        credentials: ChannelCredentials | None = None,
        on_response: ResponseListener | None = None,
    ):
        """Initialize client.

        Args:
            http: Shared HTTP client (timeout is configured on it)
            base_url: Provider base URL
            credentials: Provider credentials
            on_response: Side channel for provider responses
        """
        self._http = http
        self._base_url = base_url.rstrip("/")
        self._credentials = credentials or ChannelCredentials()
        self._on_response = on_response

    @property
    @abstractmethod
    def channel_name(self) -> str:
        """Return channel identifier used in logs."""
        pass

    @property
    def credentials(self) -> ChannelCredentials:
        return self._credentials

    def with_credentials(
        self,
        credentials: ChannelCredentials,
        on_response: ResponseListener | None = None,
    ) -> Self:
        """Return a copy bound to other credentials and response listener."""
        return type(self)(
            http=self._http,
            base_url=self._base_url,
            credentials=credentials,
            on_response=on_response,
            **self._copy_options(),
        )

    def _copy_options(self) -> dict[str, Any]:
        """Extra constructor arguments carried over by with_credentials."""
        return {}

    async def _request(
        self,
        method: str,
        path: str,
        headers: dict[str, str],
        payload: dict[str, Any] | None = None,
    ) -> ChannelResult:
        """Perform one request and classify the outcome.

        Raises:
            TransportError: No response was received
            ApiError: Provider answered with a non-2xx status
        """
        url = f"{self._base_url}{path}"
        try:
            response = await self._http.request(method, url, headers=headers, json=payload)
        except httpx.HTTPError as e:
            logger.warning(
                "Provider request failed",
                channel=self.channel_name,
                url=url,
                error=str(e),
            )
            raise TransportError(f"{type(e).__name__}: {e}") from e

        body = response.text
        await self._notify_response(body)

        if not response.is_success:
            logger.warning(
                "Provider returned error",
                channel=self.channel_name,
                status_code=response.status_code,
            )
            raise ApiError(response.status_code, body)

        return ChannelResult(status_code=response.status_code, body=body)

    async def _notify_response(self, body: str) -> None:
        if self._on_response is None:
            return
        try:
            await self._on_response(body)
        except Exception as e:
            logger.error(
                "Response listener failed",
                channel=self.channel_name,
                error=str(e),
                exc_info=True,
            )
