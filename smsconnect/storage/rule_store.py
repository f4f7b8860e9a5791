"""Rule storage operations."""

from pydantic import TypeAdapter
from redis.asyncio import Redis

from smsconnect.core.exceptions import RuleValidationError
from smsconnect.core.logging import get_logger
from smsconnect.models.rule import Rule
from smsconnect.storage.redis_client import RedisKeys, get_redis

logger = get_logger(__name__)

_RULE_LIST = TypeAdapter(list[Rule])


def validate_rule(rule: Rule) -> None:
    """Reject rules that could never send anything.

    Raises:
        RuleValidationError: No condition value or no template
    """
    if not rule.condition_values:
        raise RuleValidationError("Enter at least one product or category ID.")
    if not rule.order_status.strip():
        raise RuleValidationError("Select an order status.")
    if not rule.has_template:
        raise RuleValidationError("Enter an SMS message or an Alimtalk template code.")


class RuleStore:
    """Ordered rule list stored as a single Redis value.

    The list is read and written whole. Order is the match order.
    """

    def __init__(self, redis: Redis | None = None):
        self._redis = redis

    @property
    def redis(self) -> Redis:
        return self._redis or get_redis()

    async def list_all(self) -> list[Rule]:
        """List all rules in match order."""
        data = await self.redis.get(RedisKeys.RULES)
        if not data:
            return []
        return _RULE_LIST.validate_json(data)

    async def get(self, rule_id: str) -> Rule | None:
        """Get a rule by ID.

        Args:
            rule_id: Rule ID

        Returns:
            Rule if found, None otherwise
        """
        for rule in await self.list_all():
            if rule.rule_id == rule_id:
                return rule
        return None

    async def create(self, rule: Rule) -> Rule:
        """Validate and append a rule.

        Args:
            rule: Rule to create

        Returns:
            Created rule

        Raises:
            RuleValidationError: Rule is incomplete
        """
        validate_rule(rule)
        rules = await self.list_all()
        if any(existing.rule_id == rule.rule_id for existing in rules):
            raise RuleValidationError(f"Rule {rule.rule_id} already exists.")
        rules.append(rule)
        await self._save(rules)
        logger.info("Rule created", rule_id=rule.rule_id, order_status=rule.order_status)
        return rule

    async def delete(self, rule_id: str) -> bool:
        """Delete a rule.

        Args:
            rule_id: Rule ID to delete

        Returns:
            True if deleted, False if not found
        """
        rules = await self.list_all()
        remaining = [rule for rule in rules if rule.rule_id != rule_id]
        if len(remaining) == len(rules):
            return False
        await self._save(remaining)
        logger.info("Rule deleted", rule_id=rule_id)
        return True

    async def get_version(self) -> int:
        """Get rules version number, bumped on every change."""
        version = await self.redis.get(RedisKeys.RULES_VERSION)
        return int(version) if version else 0

    async def _save(self, rules: list[Rule]) -> None:
        await self.redis.set(RedisKeys.RULES, _RULE_LIST.dump_json(rules).decode("utf-8"))
        await self.redis.incr(RedisKeys.RULES_VERSION)
