"""Shopping list generation from a meal plan's embedded meals."""

import logging
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from domain.enums import IngredientCategory
from domain.models import MealPlan, Recipe, RecipeUsage, ShoppingItem

logger = logging.getLogger("recipemanager.shopping")

RecipeLookup = Callable[[str], Awaitable[Optional[Recipe]]]

# Aisle order used to sort the list; unknown categories go last
CATEGORY_ORDER = [c.value for c in IngredientCategory]

SUPERMARKET_SECTIONS = {
    IngredientCategory.PROTEIN.value: "carnes y pescados",
    IngredientCategory.VEGETABLES.value: "frutas y verduras",
    IngredientCategory.FRUITS.value: "frutas y verduras",
    IngredientCategory.DAIRY.value: "lacteos y huevo",
    IngredientCategory.GRAINS.value: "abarrotes",
    IngredientCategory.SPICES.value: "especias y condimentos",
    IngredientCategory.OILS.value: "abarrotes",
    IngredientCategory.OTHER.value: "otros",
}


def category_rank(category: str) -> int:
    try:
        return CATEGORY_ORDER.index(category)
    except ValueError:
        return len(CATEGORY_ORDER)


def sort_shopping_items(items: List[ShoppingItem]) -> List[ShoppingItem]:
    """Stable sort by aisle order"""
    return sorted(items, key=lambda item: category_rank(item.category))


async def generate_shopping_list(
    plan: MealPlan, recipe_lookup: RecipeLookup
) -> List[ShoppingItem]:
    """
    Consolidate every meal's scaled ingredients into one list.

    Each meal entry contributes its recipe's lines scaled by
    ``(porcionesPersonalizadas or plan.porcionesBase) / recipe.porcionesBase``,
    grouped by ``(ingredient name, unit)``. Entries whose recipe cannot be
    found are skipped.

    Args:
        plan: Meal plan to walk
        recipe_lookup: Async ``recipe_id -> Recipe | None``

    Returns:
        Shopping items sorted by category
    """
    cache: Dict[str, Optional[Recipe]] = {}
    grouped: Dict[Tuple[str, str], ShoppingItem] = {}
    skipped = 0

    for day_index, slot, entry in plan.meal_entries():
        if entry.recipe_id not in cache:
            cache[entry.recipe_id] = await recipe_lookup(entry.recipe_id)
        recipe = cache[entry.recipe_id]
        if recipe is None:
            skipped += 1
            logger.warning(
                f"Plan {plan.id}: day {day_index} {slot} references missing recipe "
                f"{entry.recipe_id}; skipped"
            )
            continue

        portions = entry.custom_portions or plan.base_portions
        factor = portions / recipe.base_portions

        for line in recipe.ingredients:
            key = (line.name, line.unit)
            needed = line.quantity * factor
            item = grouped.get(key)
            if item is None:
                item = ShoppingItem(
                    ingredient=line.name,
                    total_quantity=0,
                    unit=line.unit,
                    category=line.category,
                    section=SUPERMARKET_SECTIONS.get(line.category),
                    estimated_cost=0,
                )
                grouped[key] = item
            item.total_quantity += needed
            item.estimated_cost += line.unit_cost * needed
            item.used_by.append(
                RecipeUsage(
                    recipe_id=entry.recipe_id,
                    recipe_name=recipe.name,
                    quantity_needed=needed,
                )
            )

    logger.info(
        f"Plan {plan.id}: shopping list with {len(grouped)} items "
        f"({skipped} meals skipped)"
    )
    return sort_shopping_items(list(grouped.values()))


def merge_shopping_list(
    existing: List[ShoppingItem], generated: List[ShoppingItem]
) -> List[ShoppingItem]:
    """
    Merge a regenerated list into the stored one.

    Matching ``(ingrediente, unidad)`` keys keep the purchase state and the
    user-set priority and section; quantities, costs and provenance come from
    the regenerated item. Stored items that are no longer needed are dropped.
    """
    previous = {item.key: item for item in existing}
    merged = []
    for item in generated:
        old = previous.get(item.key)
        if old is not None:
            item = item.model_copy(
                update={
                    "purchased": old.purchased,
                    "purchased_at": old.purchased_at,
                    "actual_cost": old.actual_cost,
                    "priority": old.priority,
                    "section": old.section or item.section,
                }
            )
        merged.append(item)
    return merged
