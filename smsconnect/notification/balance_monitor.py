"""Low balance alerts for shop administrators."""

import json

from smsconnect.core.exceptions import ChannelError
from smsconnect.core.logging import get_logger
from smsconnect.engine.classifier import classify
from smsconnect.engine.template import TemplateRenderer
from smsconnect.models.settings import NotificationConfig
from smsconnect.notification.channels.sms import SmsClient
from smsconnect.observability.metrics import LOW_BALANCE_ALERTS
from smsconnect.storage.auxiliary import CooldownFlag

logger = get_logger(__name__)

DEFAULT_COOLDOWN_SECONDS = 24 * 60 * 60


def extract_points(body: str) -> int | None:
    """Read the remaining point/balance figure from a provider response.

    ``point`` takes precedence over ``balance``. Returns None when the body
    carries no positive figure.
    """
    if not body:
        return None
    try:
        data = json.loads(body)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None

    for key in ("point", "balance"):
        if key not in data:
            continue
        try:
            points = int(float(data[key]))
        except (TypeError, ValueError):
            return None
        return points if points > 0 else None
    return None


class LowBalanceMonitor:
    """Alert admins by SMS when the provider balance drops below a threshold.

    At most one alert goes out per cooldown window. The flag is claimed
    before sending so the alert's own response cannot trigger another one.
    """

    def __init__(
        self,
        sms: SmsClient,
        flag: CooldownFlag,
        config: NotificationConfig,
        cooldown_seconds: int = DEFAULT_COOLDOWN_SECONDS,
    ):
        """Initialize monitor.

        Args:
            sms: SMS client used for the alert (without a response listener)
            flag: Cooldown flag shared by all requests
            config: Configuration snapshot
            cooldown_seconds: Minimum time between alerts
        """
        self._sms = sms
        self._flag = flag
        self._config = config
        self._cooldown = cooldown_seconds

    async def handle_response(self, body: str) -> None:
        """Response listener for channel clients."""
        points = extract_points(body)
        if points is not None:
            await self.check_and_notify(points)

    async def check_and_notify(self, current_points: int) -> bool:
        """Send the low balance alert if due.

        Args:
            current_points: Remaining points reported by the provider

        Returns:
            True if an alert was sent to at least one admin
        """
        if await self._flag.is_active():
            return False

        threshold = self._config.low_point_threshold
        template = self._config.low_point_message.strip()
        if threshold <= 0 or not template or current_points >= threshold:
            return False

        phones = self._config.admin_phones()
        if not phones:
            logger.debug("Low balance but no admin recipients", current_points=current_points)
            return False

        if not await self._flag.acquire(self._cooldown):
            return False

        renderer = TemplateRenderer(shop_name=self._config.shop_name)
        message = renderer.render_text(
            template,
            None,
            {"current_points": str(current_points), "shop_name": self._config.shop_name},
        )
        message_type = classify(message)

        sent = 0
        for phone in phones:
            try:
                await self._sms.send(phone, self._config.sender_number, message, message_type)
                sent += 1
            except ChannelError as e:
                logger.warning("Low balance alert failed", to=phone, error=e.detail)

        LOW_BALANCE_ALERTS.inc()
        logger.info(
            "Low balance alert sent",
            current_points=current_points,
            threshold=threshold,
            recipients=sent,
        )
        return sent > 0
