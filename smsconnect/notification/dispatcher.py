"""Notification dispatcher.

Turns a domain event plus the stored configuration into channel sends and
delivery log entries.

Routing for order events:

1. The first advanced rule matching the new status and the order's products
   or categories wins. Its Alimtalk template and SMS body are both sent when
   both are set, and default templates are not consulted.
2. Otherwise the default Alimtalk template for the status is sent, and the
   default SMS template is not.
3. Otherwise the default SMS template for the status is sent.
4. Otherwise nothing happens.

Subscription events follow steps 2-4. User events follow steps 2-4 for the
user alone, without admin copies.

A failed send never stops the others and is never raised to the caller; it
ends up in the delivery log as a failure.
"""

from dataclasses import dataclass

from redis.exceptions import RedisError

from smsconnect.core.exceptions import ChannelError
from smsconnect.core.logging import get_logger
from smsconnect.engine.classifier import classify
from smsconnect.engine.rule_matcher import find_rule_for_order
from smsconnect.engine.template import TemplateRenderer, VariableHook
from smsconnect.models.delivery import ChannelType, DeliveryLogEntry, DeliveryStatus
from smsconnect.models.event import NotificationEvent, OrderContext
from smsconnect.models.rule import Rule
from smsconnect.models.settings import NotificationConfig
from smsconnect.notification.balance_monitor import DEFAULT_COOLDOWN_SECONDS, LowBalanceMonitor
from smsconnect.notification.channels.alimtalk import AlimtalkClient
from smsconnect.notification.channels.sms import SmsClient
from smsconnect.observability.metrics import EVENTS_RECEIVED, NOTIFICATIONS_SENT, RULES_MATCHED
from smsconnect.observability.tracing import TraceContext
from smsconnect.storage.auxiliary import CooldownFlag
from smsconnect.storage.config_store import ConfigStore
from smsconnect.storage.delivery_log import DeliveryLog
from smsconnect.storage.rule_store import RuleStore

logger = get_logger(__name__)


@dataclass
class DispatchContext:
    """Everything bound to one configuration snapshot."""

    config: NotificationConfig
    renderer: TemplateRenderer
    sms: SmsClient
    alimtalk: AlimtalkClient


class NotificationDispatcher:
    """Route events to Alimtalk and SMS and record every attempt."""

    def __init__(
        self,
        sms: SmsClient,
        alimtalk: AlimtalkClient,
        config_store: ConfigStore,
        rule_store: RuleStore,
        delivery_log: DeliveryLog,
        cooldown_flag: CooldownFlag,
        low_balance_cooldown: int = DEFAULT_COOLDOWN_SECONDS,
        key_map: dict[str, str] | None = None,
        variable_hooks: list[VariableHook] | None = None,
    ):
        """Initialize dispatcher.

        Args:
            sms: SMS client; credentials are rebound per dispatch
            alimtalk: Alimtalk client; credentials are rebound per dispatch
            config_store: Source of the configuration snapshot
            rule_store: Source of advanced rules
            delivery_log: Sink for delivery records
            cooldown_flag: Low balance alert cooldown flag
            low_balance_cooldown: Seconds between low balance alerts
            key_map: Override for the Alimtalk variable name table
            variable_hooks: Value rewriters passed to the template renderer
        """
        self._sms = sms
        self._alimtalk = alimtalk
        self._config_store = config_store
        self._rule_store = rule_store
        self._delivery_log = delivery_log
        self._cooldown_flag = cooldown_flag
        self._low_balance_cooldown = low_balance_cooldown
        self._key_map = key_map
        self._variable_hooks = variable_hooks

    async def load_context(self) -> DispatchContext:
        """Load configuration and bind clients and renderer to it."""
        config = await self._config_store.load()
        monitor = LowBalanceMonitor(
            sms=self._sms.with_credentials(config.sms_credentials),
            flag=self._cooldown_flag,
            config=config,
            cooldown_seconds=self._low_balance_cooldown,
        )
        return DispatchContext(
            config=config,
            renderer=TemplateRenderer(
                shop_name=config.shop_name,
                key_map=self._key_map,
                variable_hooks=self._variable_hooks,
            ),
            sms=self._sms.with_credentials(
                config.sms_credentials,
                on_response=monitor.handle_response,
            ),
            alimtalk=self._alimtalk.with_credentials(
                config.alimtalk_credentials,
                on_response=monitor.handle_response,
            ),
        )

    async def dispatch(self, event: NotificationEvent) -> list[DeliveryLogEntry]:
        """Handle one event.

        Args:
            event: Event to handle

        Returns:
            Delivery log entries written for this event
        """
        EVENTS_RECEIVED.labels(kind=event.kind.value).inc()

        with TraceContext(event.event_id, event_kind=event.kind.value, status_key=event.status_key):
            logger.info("Dispatching event", subject_id=event.context.subject_id)
            ctx = await self.load_context()

            if isinstance(event.context, OrderContext):
                rules = await self._rule_store.list_all()
                rule = find_rule_for_order(rules, event.context, event.status_key)
                if rule:
                    RULES_MATCHED.inc()
                    return await self._send_rule(ctx, event, rule)

            entries = await self._send_defaults(ctx, event)
            if not entries:
                logger.debug("Nothing sent for event")
            return entries

    def recipients(self, event: NotificationEvent, config: NotificationConfig) -> list[str]:
        """Subject phone first, then enabled admins if the status asks for copies."""
        phones: list[str] = []
        subject_phone = event.context.phone.strip()
        if subject_phone:
            phones.append(subject_phone)
        else:
            logger.info("Subject has no phone number", subject_id=event.context.subject_id)

        if not event.is_user_event and config.send_to_admin.get(event.status_key, False):
            for phone in config.admin_phones():
                if phone not in phones:
                    phones.append(phone)
        return phones

    async def _send_rule(
        self,
        ctx: DispatchContext,
        event: NotificationEvent,
        rule: Rule,
    ) -> list[DeliveryLogEntry]:
        logger.info("Routing by advanced rule", rule_id=rule.rule_id)
        entries: list[DeliveryLogEntry] = []
        recipients = self.recipients(event, ctx.config)
        template_code = rule.alimtalk_template_code.strip()

        if template_code:
            variables = ctx.renderer.extract_structured_vars(event.context, event.extra_vars)
            for to in recipients:
                entries.append(await self._send_alimtalk(ctx, event, to, template_code, variables))

        if rule.sms_body.strip():
            text = ctx.renderer.render_text(rule.sms_body, event.context, event.extra_vars)
            for to in recipients:
                entries.append(await self._send_sms(ctx, event, to, text))

        return entries

    async def _send_defaults(
        self,
        ctx: DispatchContext,
        event: NotificationEvent,
    ) -> list[DeliveryLogEntry]:
        entries: list[DeliveryLogEntry] = []

        template_code = ctx.config.alimtalk_template(event.status_key)
        if template_code:
            variables = ctx.renderer.extract_structured_vars(event.context, event.extra_vars)
            for to in self.recipients(event, ctx.config):
                entries.append(await self._send_alimtalk(ctx, event, to, template_code, variables))
            return entries

        sms_template = ctx.config.sms_template(event.status_key)
        if sms_template:
            text = ctx.renderer.render_text(sms_template, event.context, event.extra_vars)
            for to in self.recipients(event, ctx.config):
                entries.append(await self._send_sms(ctx, event, to, text))

        return entries

    async def _send_alimtalk(
        self,
        ctx: DispatchContext,
        event: NotificationEvent,
        to: str,
        template_code: str,
        variables: dict[str, str],
    ) -> DeliveryLogEntry:
        try:
            result = await ctx.alimtalk.send(template_code, to, variables)
            status, raw_response = DeliveryStatus.SUCCESS, result.body
        except ChannelError as e:
            logger.warning("Alimtalk send failed", to=to, template_code=template_code, error=str(e))
            status, raw_response = DeliveryStatus.FAILURE, e.detail

        entry = DeliveryLogEntry(
            subject_id=event.context.subject_id,
            recipient=to,
            channel_type=ChannelType.ALIMTALK,
            status=status,
            template_code=template_code,
            raw_response=raw_response,
        )
        await self._record(entry)
        return entry

    async def _send_sms(
        self,
        ctx: DispatchContext,
        event: NotificationEvent,
        to: str,
        text: str,
    ) -> DeliveryLogEntry:
        message_type = classify(text)
        try:
            result = await ctx.sms.send(to, ctx.config.sender_number, text, message_type)
            status, raw_response = DeliveryStatus.SUCCESS, result.body
        except ChannelError as e:
            logger.warning("SMS send failed", to=to, message_type=message_type.value, error=str(e))
            status, raw_response = DeliveryStatus.FAILURE, e.detail

        entry = DeliveryLogEntry(
            subject_id=event.context.subject_id,
            recipient=to,
            channel_type=message_type,
            status=status,
            message_body=text,
            raw_response=raw_response,
        )
        await self._record(entry)
        return entry

    async def _record(self, entry: DeliveryLogEntry) -> None:
        NOTIFICATIONS_SENT.labels(channel=entry.channel_type.value, status=entry.status.value).inc()
        try:
            await self._delivery_log.append(entry)
        except RedisError as e:
            logger.error(
                "Delivery log write failed",
                recipient=entry.recipient,
                channel=entry.channel_type.value,
                error=str(e),
                exc_info=True,
            )
