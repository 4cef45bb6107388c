"""
Domain models package - MongoDB document models (pydantic).
"""

from domain.models.base import DocumentModel, EmbeddedModel, ObjectIdStr
from domain.models.recipe import (
    NUTRIENTS,
    IngredientLine,
    IngredientNutrition,
    NutritionFacts,
    Recipe,
    RecipeStep,
    ScaledRecipe,
    Substitute,
)
from domain.models.client import (
    CHILD_PORTION_FACTOR,
    Client,
    ClientSnapshot,
    DietaryPreferences,
    Household,
    PlanningPreferences,
)
from domain.models.meal_plan import (
    DAILY_NUTRIENTS,
    DayMeals,
    DayNutrition,
    LunchCourses,
    MealEntry,
    MealModifications,
    MealPlan,
    PlanDay,
    PlanPreferences,
    PlanSummary,
    RecipeUsage,
    ShoppingItem,
)
from domain.models.user import User
from domain.models.legacy import (
    LegacyIngredient,
    LegacyPlan,
    LegacyPlanRecipe,
    LegacyRecipe,
)

__all__ = [
    # Base
    "DocumentModel",
    "EmbeddedModel",
    "ObjectIdStr",
    # Recipes
    "NUTRIENTS",
    "IngredientLine",
    "IngredientNutrition",
    "NutritionFacts",
    "Recipe",
    "RecipeStep",
    "ScaledRecipe",
    "Substitute",
    # Clients
    "CHILD_PORTION_FACTOR",
    "Client",
    "ClientSnapshot",
    "DietaryPreferences",
    "Household",
    "PlanningPreferences",
    # Meal plans
    "DAILY_NUTRIENTS",
    "DayMeals",
    "DayNutrition",
    "LunchCourses",
    "MealEntry",
    "MealModifications",
    "MealPlan",
    "PlanDay",
    "PlanPreferences",
    "PlanSummary",
    "RecipeUsage",
    "ShoppingItem",
    # Users
    "User",
    # Legacy
    "LegacyIngredient",
    "LegacyPlan",
    "LegacyPlanRecipe",
    "LegacyRecipe",
]
