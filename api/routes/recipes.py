"""
Recipe routes - search, retrieval, scaling and authoring.
Reads are public; writes require a bearer token.
"""

from fastapi import APIRouter, Body, Depends, Query, status
from typing import Any, Dict, Optional
import logging

from api.dependencies import get_current_user, get_recipe_service
from api.responses import paginated_response, success_response
from domain.enums import DietaryRestriction, RecipeCategory
from services import RecipeService

router = APIRouter(prefix="/recipes", tags=["Recipes"])
logger = logging.getLogger("recipemanager.api.recipes")


@router.get("")
async def search_recipes(
    q: Optional[str] = Query(default=None, description="Text in name, description or tags"),
    categoria: Optional[RecipeCategory] = Query(default=None),
    tag: Optional[str] = Query(default=None),
    restriccion: Optional[DietaryRestriction] = Query(default=None),
    costo_max: Optional[float] = Query(default=None, ge=0, description="Max cost per portion"),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    service: RecipeService = Depends(get_recipe_service),
):
    """
    Search recipes with filters.

    - **q**: Search in name, description and tags
    - **categoria**: Recipe category
    - **tag**: Exact tag
    - **restriccion**: Dietary restriction the recipe satisfies
    - **costo_max**: Maximum cost per portion
    """
    items, total = await service.search(
        text=q,
        category=categoria.value if categoria else None,
        tag=tag,
        restriction=restriccion.value if restriccion else None,
        max_cost_per_portion=costo_max,
        page=page,
        page_size=page_size,
    )
    return paginated_response(items, total, page, page_size)


@router.get("/stats/categories")
async def category_stats(service: RecipeService = Depends(get_recipe_service)):
    """Recipe count, average cost per portion and total time per category"""
    return success_response(await service.category_stats())


@router.get("/{recipe_id}")
async def get_recipe(recipe_id: str, service: RecipeService = Depends(get_recipe_service)):
    return success_response(await service.get(recipe_id))


@router.get("/{recipe_id}/scaled")
async def get_scaled_recipe(
    recipe_id: str,
    porciones: float = Query(..., gt=0, description="Target portions"),
    service: RecipeService = Depends(get_recipe_service),
):
    """Recipe scaled to another number of portions (not stored)"""
    return success_response(await service.scaled(recipe_id, porciones))


@router.post("", status_code=status.HTTP_201_CREATED, dependencies=[Depends(get_current_user)])
async def create_recipe(
    payload: Dict[str, Any] = Body(...),
    service: RecipeService = Depends(get_recipe_service),
):
    return success_response(await service.create(payload), "Recipe created")


@router.put("/{recipe_id}", dependencies=[Depends(get_current_user)])
async def update_recipe(
    recipe_id: str,
    payload: Dict[str, Any] = Body(...),
    service: RecipeService = Depends(get_recipe_service),
):
    return success_response(await service.update(recipe_id, payload), "Recipe updated")


@router.delete("/{recipe_id}", dependencies=[Depends(get_current_user)])
async def delete_recipe(recipe_id: str, service: RecipeService = Depends(get_recipe_service)):
    await service.delete(recipe_id)
    return success_response(message="Recipe deleted")
