"""Advanced rule matching for order events."""

from collections.abc import Iterable

from smsconnect.core.logging import get_logger
from smsconnect.models.event import OrderContext
from smsconnect.models.rule import Rule

logger = get_logger(__name__)


def find_matching_rule(
    rules: Iterable[Rule],
    order_status: str,
    order_product_ids: set[int],
    order_category_ids: set[int],
) -> Rule | None:
    """Return the first rule matching both the status and its condition.

    Rules are tested in stored order. The first full match wins even if a
    later rule would match more specifically.

    Args:
        rules: Rules in stored order
        order_status: New status of the order
        order_product_ids: Product IDs of the order's line items
        order_category_ids: Category IDs of those products

    Returns:
        Matching rule, or None
    """
    for rule in rules:
        if rule.order_status != order_status:
            continue
        if rule.matches_condition(order_product_ids, order_category_ids):
            logger.debug(
                "Rule matched",
                rule_id=rule.rule_id,
                order_status=order_status,
                condition_type=rule.condition_type.value,
            )
            return rule
    return None


def find_rule_for_order(rules: Iterable[Rule], order: OrderContext, status_key: str) -> Rule | None:
    """Match rules against an order snapshot."""
    return find_matching_rule(
        rules,
        status_key,
        order.product_ids(),
        order.category_ids(),
    )
