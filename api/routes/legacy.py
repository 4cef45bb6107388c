"""Legacy plan routes (normalized ``planes`` / ``planRecetas`` collections)"""

from bson import ObjectId
from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder
import logging

from api.dependencies import get_current_user, get_legacy_repository, require_admin
from api.responses import success_response
from app.exceptions import NotFoundError
from repositories import LegacyRepository

router = APIRouter(
    prefix="/legacy/plans", tags=["Legacy"], dependencies=[Depends(get_current_user)]
)
logger = logging.getLogger("recipemanager.api.legacy")


def _public(model) -> dict:
    # legacy documents may carry extra ObjectId fields
    return jsonable_encoder(model.model_dump(by_alias=True), custom_encoder={ObjectId: str})


@router.get("")
async def list_legacy_plans(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    legacy: LegacyRepository = Depends(get_legacy_repository),
):
    plans, total = await legacy.list_plans(skip=(page - 1) * page_size, limit=page_size)
    return success_response(
        {"items": [_public(p) for p in plans], "total": total, "page": page, "page_size": page_size}
    )


@router.get("/{plan_id}")
async def get_legacy_plan(plan_id: str, legacy: LegacyRepository = Depends(get_legacy_repository)):
    plan = await legacy.get_plan(plan_id)
    if plan is None:
        raise NotFoundError(f"Plan {plan_id} not found")
    rows = await legacy.rows_for_plan(plan_id)
    data = _public(plan)
    data["planRecetas"] = [_public(r) for r in rows]
    return success_response(data)


@router.delete("/{plan_id}", dependencies=[Depends(require_admin)])
async def delete_legacy_plan(
    plan_id: str, legacy: LegacyRepository = Depends(get_legacy_repository)
):
    """Delete a legacy plan together with its plan-recipe rows (admin only)"""
    deleted, rows = await legacy.delete_plan(plan_id)
    if not deleted:
        raise NotFoundError(f"Plan {plan_id} not found")
    return success_response({"deletedPlanRecetas": rows}, "Plan deleted")
