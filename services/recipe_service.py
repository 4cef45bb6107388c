"""Recipe service: derived cost/nutrition, scaling, CRUD and search."""

import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from app.exceptions import NotFoundError, ServiceValidationError
from domain.models import NUTRIENTS, NutritionFacts, Recipe, ScaledRecipe
from repositories import RecipeRepository

logger = logging.getLogger("recipemanager.recipes")

# Stored fields a client may not author directly
DERIVED_FIELDS = (
    "_id",
    "id",
    "nutricionTotal",
    "nutricionPorPorcion",
    "costoTotal",
    "costoPorPorcion",
    "vecesUsada",
    "ultimoUso",
    "createdAt",
    "updatedAt",
)


def recompute_recipe_derived_fields(recipe: Recipe) -> Recipe:
    """Return a copy of ``recipe`` with cost and nutrition derived from its lines.

    Missing per-ingredient nutrition contributes zero. ``porcionesBase`` is
    validated ``>= 1`` so the per-portion division is always defined.
    """
    total_cost = sum(line.unit_cost * line.quantity for line in recipe.ingredients)

    totals = dict.fromkeys(NUTRIENTS, 0.0)
    for line in recipe.ingredients:
        if line.nutrition is None:
            continue
        for nutrient in NUTRIENTS:
            totals[nutrient] += getattr(line.nutrition, nutrient) * line.quantity

    portions = recipe.base_portions
    return recipe.model_copy(
        update={
            "total_cost": total_cost,
            "cost_per_portion": total_cost / portions,
            "nutrition_total": NutritionFacts(**totals),
            "nutrition_per_portion": NutritionFacts(
                **{n: value / portions for n, value in totals.items()}
            ),
        }
    )


def scale_recipe(recipe: Recipe, target_portions: float) -> ScaledRecipe:
    """Transient view of ``recipe`` for ``target_portions``; the recipe is not modified.

    Quantities, total cost and total nutrition scale by
    ``target_portions / porcionesBase``; per-portion values do not change.
    """
    if target_portions <= 0:
        raise ServiceValidationError.for_field("porciones", "must be greater than 0")

    factor = target_portions / recipe.base_portions
    data = recipe.model_dump()
    for line in data["ingredients"]:
        line["quantity"] = line["quantity"] * factor
    data["total_cost"] = recipe.total_cost * factor
    data["cost_per_portion"] = recipe.cost_per_portion
    data["nutrition_total"] = {
        n: getattr(recipe.nutrition_total, n) * factor for n in NUTRIENTS
    }
    data["current_portions"] = target_portions
    data["scale_factor"] = factor
    return ScaledRecipe.model_validate(data)


def build_recipe(payload: Dict[str, Any]) -> Recipe:
    """Validate an authored recipe document; derived fields in the payload are ignored."""
    clean = {k: v for k, v in payload.items() if k not in DERIVED_FIELDS}
    try:
        return Recipe.model_validate(clean)
    except ValidationError as exc:
        raise ServiceValidationError.from_validation_error(exc) from exc


class RecipeService:
    """Recipe use cases on top of the recipe repository."""

    def __init__(self, recipes: RecipeRepository):
        self.recipes = recipes

    async def save(self, recipe: Recipe) -> Recipe:
        """Persist ``recipe`` after recomputing its derived fields."""
        recipe = recompute_recipe_derived_fields(recipe)
        if recipe.id is None:
            return await self.recipes.insert(recipe)
        return await self.recipes.replace(recipe)

    async def create(self, payload: Dict[str, Any]) -> Recipe:
        recipe = await self.save(build_recipe(payload))
        logger.info(f"Created recipe {recipe.id} '{recipe.name}'")
        return recipe

    async def get(self, recipe_id: str) -> Recipe:
        recipe = await self.recipes.get_by_id(recipe_id)
        if recipe is None:
            raise NotFoundError(f"Recipe {recipe_id} not found")
        return recipe

    async def update(self, recipe_id: str, payload: Dict[str, Any]) -> Recipe:
        """Full replacement of the authored fields; the ingredient list is replaced atomically."""
        current = await self.get(recipe_id)
        recipe = build_recipe(payload)
        recipe = recipe.model_copy(
            update={
                "id": current.id,
                "created_at": current.created_at,
                "times_used": current.times_used,
                "last_used": current.last_used,
                "legacy_id": recipe.legacy_id if recipe.legacy_id is not None else current.legacy_id,
            }
        )
        saved = await self.save(recipe)
        logger.info(f"Updated recipe {recipe_id}")
        return saved

    async def delete(self, recipe_id: str) -> None:
        if not await self.recipes.delete(recipe_id):
            raise NotFoundError(f"Recipe {recipe_id} not found")
        logger.info(f"Deleted recipe {recipe_id}")

    async def scaled(self, recipe_id: str, portions: float) -> ScaledRecipe:
        return scale_recipe(await self.get(recipe_id), portions)

    async def search(
        self,
        text: Optional[str] = None,
        category: Optional[str] = None,
        tag: Optional[str] = None,
        restriction: Optional[str] = None,
        max_cost_per_portion: Optional[float] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Tuple[List[Recipe], int]:
        return await self.recipes.search(
            text=text,
            category=category,
            tag=tag,
            restriction=restriction,
            max_cost_per_portion=max_cost_per_portion,
            skip=(page - 1) * page_size,
            limit=page_size,
        )

    async def category_stats(self) -> List[Dict[str, Any]]:
        return await self.recipes.category_stats()
