"""
Meal plan routes - plan CRUD, shopping list, meal tracking and templates.
"""

from fastapi import APIRouter, Body, Depends, Path, Query, status
from typing import Any, Dict, Optional
import logging

from api.dependencies import get_current_user, get_meal_plan_service
from api.responses import paginated_response, success_response
from domain.enums import PlanStatus
from domain.schemas import (
    InstantiateTemplateRequest,
    MealPreparedRequest,
    ShoppingItemsUpdateRequest,
    TemplateRequest,
)
from services import MealPlanService

router = APIRouter(
    prefix="/meal-plans", tags=["Meal Plans"], dependencies=[Depends(get_current_user)]
)
logger = logging.getLogger("recipemanager.api.meal_plans")


@router.get("")
async def list_meal_plans(
    cliente_id: Optional[str] = Query(default=None),
    estado: Optional[PlanStatus] = Query(default=None),
    plantilla: Optional[bool] = Query(default=None, description="Only templates / only plans"),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    service: MealPlanService = Depends(get_meal_plan_service),
):
    items, total = await service.list_plans(
        client_id=cliente_id,
        status=estado.value if estado else None,
        is_template=plantilla,
        page=page,
        page_size=page_size,
    )
    return paginated_response(items, total, page, page_size)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_meal_plan(
    payload: Dict[str, Any] = Body(...),
    service: MealPlanService = Depends(get_meal_plan_service),
):
    return success_response(await service.create(payload), "Meal plan created")


@router.get("/stats/status")
async def status_stats(service: MealPlanService = Depends(get_meal_plan_service)):
    """Plan count per status"""
    return success_response(await service.status_stats())


@router.post("/templates/{template_id}/instantiate", status_code=status.HTTP_201_CREATED)
async def instantiate_template(
    template_id: str,
    body: InstantiateTemplateRequest,
    service: MealPlanService = Depends(get_meal_plan_service),
):
    plan = await service.instantiate(
        template_id,
        client_id=body.client_id,
        start_date=body.start_date,
        name=body.name,
        base_portions=body.base_portions,
    )
    return success_response(plan, "Meal plan created from template")


@router.get("/{plan_id}")
async def get_meal_plan(plan_id: str, service: MealPlanService = Depends(get_meal_plan_service)):
    return success_response(await service.get(plan_id))


@router.put("/{plan_id}")
async def update_meal_plan(
    plan_id: str,
    payload: Dict[str, Any] = Body(...),
    service: MealPlanService = Depends(get_meal_plan_service),
):
    return success_response(await service.update(plan_id, payload), "Meal plan updated")


@router.delete("/{plan_id}")
async def delete_meal_plan(plan_id: str, service: MealPlanService = Depends(get_meal_plan_service)):
    await service.delete(plan_id)
    return success_response(message="Meal plan deleted")


@router.post("/{plan_id}/shopping-list")
async def generate_shopping_list(
    plan_id: str, service: MealPlanService = Depends(get_meal_plan_service)
):
    """Regenerate the shopping list, keeping purchase state of unchanged items"""
    plan = await service.regenerate_shopping_list(plan_id)
    return success_response(
        {
            "planId": plan.id,
            "listaCompras": [i.model_dump(by_alias=True, mode="json") for i in plan.shopping_list],
        },
        "Shopping list generated",
    )


@router.patch("/{plan_id}/shopping-list/items")
async def update_shopping_items(
    plan_id: str,
    body: ShoppingItemsUpdateRequest,
    service: MealPlanService = Depends(get_meal_plan_service),
):
    updates = [item.model_dump(by_alias=True, exclude_none=True) for item in body.items]
    plan = await service.update_shopping_items(plan_id, updates)
    return success_response(plan, "Shopping list updated")


@router.patch("/{plan_id}/days/{day_index}/meals/{slot}")
async def mark_meal(
    plan_id: str,
    day_index: int = Path(..., ge=0),
    slot: str = Path(..., description="desayuno, almuerzo, comida.sopa, ..., colaciones.<n>"),
    body: Optional[MealPreparedRequest] = None,
    service: MealPlanService = Depends(get_meal_plan_service),
):
    body = body or MealPreparedRequest()
    plan = await service.mark_meal(
        plan_id, day_index, slot, body.prepared, body.rating, body.comments
    )
    return success_response(plan, "Meal updated")


@router.post("/{plan_id}/template", status_code=status.HTTP_201_CREATED)
async def create_template(
    plan_id: str,
    body: Optional[TemplateRequest] = None,
    service: MealPlanService = Depends(get_meal_plan_service),
):
    body = body or TemplateRequest()
    return success_response(await service.create_template(plan_id, body.name), "Template created")
