"""
Repositories package - async MongoDB data access.
"""

from repositories.base import MongoRepository
from repositories.recipe_repository import RecipeRepository
from repositories.meal_plan_repository import MealPlanRepository
from repositories.client_repository import ClientRepository
from repositories.user_repository import UserRepository
from repositories.legacy_repository import LegacyRepository

__all__ = [
    "MongoRepository",
    "RecipeRepository",
    "MealPlanRepository",
    "ClientRepository",
    "UserRepository",
    "LegacyRepository",
]
