"""Template variable substitution.

Two placeholder dialects are supported:

* ``{name}`` for channels that take finished text (SMS/LMS). ``name`` is an
  internal variable name such as ``customer_name``.
* ``#{name}`` for Alimtalk, whose provider expects pre-resolved variables
  keyed by the names used in the approved template, such as ``고객명``.

Rendering never raises. Unknown placeholders are left in place.
"""

import re
from collections.abc import Callable, Mapping
from typing import Any

from smsconnect.models.event import (
    OrderContext,
    SubscriptionContext,
    UserContext,
)

TEXT_PLACEHOLDER = re.compile(r"(?<!#)\{(\w+)\}")

# Internal variable name -> variable name used in Alimtalk templates.
DEFAULT_KEY_MAP: dict[str, str] = {
    "order_id": "주문ID",
    "order_number": "주문번호",
    "order_date": "주문일",
    "order_total": "주문금액",
    "customer_name": "고객명",
    "customer_fullname": "고객전체명",
    "billing_phone": "연락처",
    "shop_name": "쇼핑몰명",
    "subscription_id": "구독번호",
    "subscription_status": "구독상태",
    "subscription_start_date": "구독시작일",
    "subscription_next_payment": "다음결제일",
    "user_id": "회원번호",
    "user_login": "아이디",
    "user_email": "이메일",
    "user_display_name": "회원명",
    "new_role": "변경등급",
    "old_role": "이전등급",
}

# Called as hook(name, value, context, extra); returns the value to use.
VariableHook = Callable[[str, str | None, Any, Mapping[str, str]], str | None]


class TemplateRenderer:
    """Resolve template variables against an event context."""

    def __init__(
        self,
        shop_name: str = "",
        key_map: Mapping[str, str] | None = None,
        variable_hooks: list[VariableHook] | None = None,
    ):
        """Initialize renderer.

        Args:
            shop_name: Value for ``{shop_name}``
            key_map: Replacement for the internal -> Alimtalk name table
            variable_hooks: Callables that may rewrite any resolved value
        """
        self._shop_name = shop_name
        self._key_map = dict(DEFAULT_KEY_MAP if key_map is None else key_map)
        self._hooks = list(variable_hooks or [])

    def variables(
        self,
        ctx: OrderContext | SubscriptionContext | UserContext | None,
        extra: Mapping[str, str] | None = None,
    ) -> dict[str, str]:
        """Build the flat internal-name table for a context.

        A subscription's own values are looked up first and its parent
        order's table fills in anything the subscription does not define.
        ``extra`` overrides both.
        """
        table: dict[str, str] = {}
        if isinstance(ctx, SubscriptionContext):
            if ctx.parent is not None:
                table.update(ctx.parent.variables(self._shop_name))
            table.update(ctx.variables(self._shop_name))
        elif ctx is not None:
            table.update(ctx.variables(self._shop_name))

        if extra:
            table.update({key: str(value) for key, value in extra.items()})
        return table

    def render_text(
        self,
        template: str,
        ctx: OrderContext | SubscriptionContext | UserContext | None,
        extra: Mapping[str, str] | None = None,
    ) -> str:
        """Replace ``{name}`` placeholders in ``template``."""
        if not template or "{" not in template:
            return template

        extra = extra or {}
        table = self.variables(ctx, extra)

        def replace(match: re.Match[str]) -> str:
            name = match.group(1)
            value = self._apply_hooks(name, table.get(name), ctx, extra)
            return match.group(0) if value is None else value

        return TEXT_PLACEHOLDER.sub(replace, template)

    def extract_structured_vars(
        self,
        ctx: OrderContext | SubscriptionContext | UserContext | None,
        extra: Mapping[str, str] | None = None,
    ) -> dict[str, str]:
        """Produce the Alimtalk variable map keyed by external names.

        Every internal variable with an entry in the key map is emitted
        under its external name only. Extra values without a mapping keep
        the name the caller gave them.
        """
        extra = extra or {}
        table = self.variables(ctx, extra)
        result: dict[str, str] = {}

        for internal, external in self._key_map.items():
            value = self._apply_hooks(internal, table.get(internal), ctx, extra)
            if value is not None:
                result[external] = value

        for key, value in extra.items():
            if key not in self._key_map:
                result.setdefault(key, str(value))

        return result

    def _apply_hooks(
        self,
        name: str,
        value: str | None,
        ctx: Any,
        extra: Mapping[str, str],
    ) -> str | None:
        for hook in self._hooks:
            value = hook(name, value, ctx, extra)
        return value
