"""
Services package - business logic on top of the repositories.
"""

from services.recipe_service import (
    RecipeService,
    recompute_recipe_derived_fields,
    scale_recipe,
)
from services.shopping_service import generate_shopping_list, merge_shopping_list
from services.meal_plan_service import MealPlanService, recompute_summary
from services.client_service import ClientService
from services.auth_service import AuthService
from services.migration_service import LegacyMigrator, MigrationOptions, MigrationReport

__all__ = [
    "RecipeService",
    "recompute_recipe_derived_fields",
    "scale_recipe",
    "generate_shopping_list",
    "merge_shopping_list",
    "MealPlanService",
    "recompute_summary",
    "ClientService",
    "AuthService",
    "LegacyMigrator",
    "MigrationOptions",
    "MigrationReport",
]
