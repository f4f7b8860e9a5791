"""Advanced rule management API routes."""

from fastapi import APIRouter, HTTPException

from smsconnect.api.deps import PaginationDep, RuleStoreDep
from smsconnect.core.exceptions import RuleValidationError
from smsconnect.engine.rule_matcher import find_matching_rule
from smsconnect.models.rule import Rule
from smsconnect.schemas.common import APIResponse, PaginatedResponse
from smsconnect.schemas.rule import (
    RuleCreate,
    RuleMatchRequest,
    RuleMatchResponse,
    RuleResponse,
)

router = APIRouter(prefix="/rules", tags=["rules"])


@router.post("", response_model=APIResponse[RuleResponse])
async def create_rule(
    data: RuleCreate,
    store: RuleStoreDep,
) -> APIResponse[RuleResponse]:
    """Create a rule. New rules are matched after all existing ones."""
    rule = Rule(**data.model_dump())
    try:
        created = await store.create(rule)
    except RuleValidationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    return APIResponse(data=RuleResponse.model_validate(created.model_dump()))


@router.get("", response_model=PaginatedResponse[RuleResponse])
async def list_rules(
    store: RuleStoreDep,
    pagination: PaginationDep,
    order_status: str | None = None,
) -> PaginatedResponse[RuleResponse]:
    """List rules in match order."""
    rules = await store.list_all()
    if order_status:
        rules = [r for r in rules if r.order_status == order_status]

    total = len(rules)
    start = pagination.offset
    end = start + pagination.page_size
    paginated = rules[start:end]

    return PaginatedResponse(
        data=[RuleResponse.model_validate(r.model_dump()) for r in paginated],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


@router.post("/match", response_model=APIResponse[RuleMatchResponse])
async def match_rule(
    data: RuleMatchRequest,
    store: RuleStoreDep,
) -> APIResponse[RuleMatchResponse]:
    """Dry-run: show which rule an order would hit, without sending anything."""
    rule = find_matching_rule(
        await store.list_all(),
        data.order_status,
        set(data.product_ids),
        set(data.category_ids),
    )
    return APIResponse(
        data=RuleMatchResponse(
            matched=rule is not None,
            rule=RuleResponse.model_validate(rule.model_dump()) if rule else None,
        )
    )


@router.get("/{rule_id}", response_model=APIResponse[RuleResponse])
async def get_rule(
    rule_id: str,
    store: RuleStoreDep,
) -> APIResponse[RuleResponse]:
    """Get a single rule by ID."""
    rule = await store.get(rule_id)
    if not rule:
        raise HTTPException(status_code=404, detail=f"Rule {rule_id} not found")

    return APIResponse(data=RuleResponse.model_validate(rule.model_dump()))


@router.delete("/{rule_id}", response_model=APIResponse)
async def delete_rule(
    rule_id: str,
    store: RuleStoreDep,
) -> APIResponse:
    """Delete a rule. Other rules keep their IDs."""
    deleted = await store.delete(rule_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Rule {rule_id} not found")

    return APIResponse(message=f"Rule {rule_id} deleted")
