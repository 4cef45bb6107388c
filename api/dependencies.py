"""
API dependencies for dependency injection.

Repositories and services are built per request on top of the shared
MongoDB connection; tests override these with in-memory doubles.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from adapters import mongo_adapter
from app.config import settings
from app.exceptions import ForbiddenError, UnauthorizedError
from domain.models import User
from repositories import (
    ClientRepository,
    LegacyRepository,
    MealPlanRepository,
    RecipeRepository,
    UserRepository,
)
from services import (
    AuthService,
    ClientService,
    MealPlanService,
    RecipeService,
)

bearer_scheme = HTTPBearer(auto_error=False)


def get_db():
    """
    MongoDB database dependency for FastAPI routes.

    Usage:
        @router.get("/example")
        async def example(db = Depends(get_db)):
            ...
    """
    return mongo_adapter.get_db()


def get_recipe_repository(db=Depends(get_db)) -> RecipeRepository:
    return RecipeRepository(db, settings.recipes_collection)


def get_meal_plan_repository(db=Depends(get_db)) -> MealPlanRepository:
    return MealPlanRepository(db, settings.meal_plans_collection)


def get_client_repository(db=Depends(get_db)) -> ClientRepository:
    return ClientRepository(db, settings.clients_collection)


def get_user_repository(db=Depends(get_db)) -> UserRepository:
    return UserRepository(db, settings.users_collection)


def get_legacy_repository(db=Depends(get_db)) -> LegacyRepository:
    return LegacyRepository(
        db,
        plans_collection=settings.legacy_plans_collection,
        plan_recipes_collection=settings.legacy_plan_recipes_collection,
        recipes_collection=settings.legacy_recipes_collection,
        ingredients_collection=settings.legacy_ingredients_collection,
    )


def get_recipe_service(
    recipes: RecipeRepository = Depends(get_recipe_repository),
) -> RecipeService:
    return RecipeService(recipes)


def get_meal_plan_service(
    plans: MealPlanRepository = Depends(get_meal_plan_repository),
    recipes: RecipeRepository = Depends(get_recipe_repository),
    clients: ClientRepository = Depends(get_client_repository),
) -> MealPlanService:
    return MealPlanService(plans, recipes, clients)


def get_client_service(
    clients: ClientRepository = Depends(get_client_repository),
    meal_plans: MealPlanService = Depends(get_meal_plan_service),
) -> ClientService:
    return ClientService(clients, meal_plans)


def get_auth_service(
    users: UserRepository = Depends(get_user_repository),
) -> AuthService:
    return AuthService(users, settings)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth: AuthService = Depends(get_auth_service),
) -> User:
    """Resolve the ``Authorization: Bearer <token>`` header to an active user"""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise UnauthorizedError()
    return await auth.authenticate(credentials.credentials)


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise ForbiddenError(f"User role {user.role} is not authorized to access this route")
    return user
