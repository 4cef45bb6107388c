"""API routes package"""

from . import auth, clients, health, legacy, meal_plans, recipes

__all__ = ["auth", "clients", "health", "legacy", "meal_plans", "recipes"]
