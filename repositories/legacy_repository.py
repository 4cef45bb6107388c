"""
Legacy Repository - read access to the normalized collections the embedded
documents are migrated from (``planes``, ``planRecetas``, ``recetas``,
``ingredientes``).
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from domain.models import LegacyIngredient, LegacyPlan, LegacyPlanRecipe, LegacyRecipe
from repositories.base import to_object_id

logger = logging.getLogger("recipemanager.repositories.legacy")


class LegacyRepository:
    """
    Spans several collections, so it does not derive from MongoRepository.
    Documents are validated permissively; malformed rows surface as
    pydantic errors to the caller.
    """

    def __init__(
        self,
        db,
        plans_collection: str = "planes",
        plan_recipes_collection: str = "planRecetas",
        recipes_collection: str = "recetas",
        ingredients_collection: str = "ingredientes",
    ):
        self.db = db
        self.plans_collection = plans_collection
        self.plan_recipes_collection = plan_recipes_collection
        self.recipes_collection = recipes_collection
        self.plans = db[plans_collection]
        self.plan_recipes = db[plan_recipes_collection]
        self.recipes = db[recipes_collection]
        self.ingredients = db[ingredients_collection]

    async def list_plans(
        self, skip: int = 0, limit: int = 20
    ) -> Tuple[List[LegacyPlan], int]:
        total = await self.plans.count_documents({})
        cursor = self.plans.find({}).sort([("_id", -1)]).skip(skip).limit(limit)
        return [LegacyPlan.model_validate(d) for d in await cursor.to_list(None)], total

    async def get_plan(self, plan_id: str) -> Optional[LegacyPlan]:
        oid = to_object_id(plan_id)
        if oid is None:
            return None
        doc = await self.plans.find_one({"_id": oid})
        return LegacyPlan.model_validate(doc) if doc else None

    async def rows_for_plan(self, plan_id: str) -> List[LegacyPlanRecipe]:
        oid = to_object_id(plan_id)
        keys: List[Any] = [plan_id] + ([oid] if oid else [])
        cursor = self.plan_recipes.find({"idPlan": {"$in": keys}})
        return [LegacyPlanRecipe.model_validate(d) for d in await cursor.to_list(None)]

    async def delete_plan(self, plan_id: str) -> Tuple[bool, int]:
        """Delete a legacy plan and its plan-recipe rows.

        Returns:
            (plan deleted, number of rows deleted)
        """
        oid = to_object_id(plan_id)
        if oid is None:
            return False, 0
        result = await self.plans.delete_one({"_id": oid})
        if result.deleted_count == 0:
            return False, 0
        rows = await self.plan_recipes.delete_many({"idPlan": {"$in": [plan_id, oid]}})
        logger.info(
            f"Deleted legacy plan {plan_id} with {rows.deleted_count} plan-recipe rows"
        )
        return True, rows.deleted_count

    async def raw_plans(self) -> List[Dict[str, Any]]:
        return await self.plans.find({}).to_list(None)

    async def raw_plan_recipes(self) -> List[Dict[str, Any]]:
        return await self.plan_recipes.find({}).to_list(None)

    async def raw_recipes(self) -> List[Dict[str, Any]]:
        return await self.recipes.find({}).to_list(None)

    async def all_ingredients(self) -> List[LegacyIngredient]:
        docs = await self.ingredients.find({}).to_list(None)
        return [LegacyIngredient.model_validate(d) for d in docs]

    async def backup(self, collection_names: List[str], suffix: str) -> Dict[str, int]:
        """Copy whole collections to ``<name>_backup_<suffix>``"""
        copied: Dict[str, int] = {}
        for name in collection_names:
            docs = await self.db[name].find({}).to_list(None)
            target = f"{name}_backup_{suffix}"
            if docs:
                await self.db[target].insert_many(docs)
            copied[target] = len(docs)
            logger.info(f"Backup created: {target} ({len(docs)} documents)")
        return copied

    async def counts(self) -> Dict[str, int]:
        return {
            "legacyPlans": await self.plans.count_documents({}),
            "legacyPlanRecipes": await self.plan_recipes.count_documents({}),
            "legacyRecipes": await self.recipes.count_documents({}),
        }
