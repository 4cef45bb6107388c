"""
Recipe Repository - data access for ``recetas_optimizadas``
"""

import re
from typing import Any, Dict, List, Optional, Tuple

from domain.models import Recipe
from repositories.base import MongoRepository, to_object_id, utcnow

# Tag written by the recipe migration to remember the legacy numeric id
MIGRATED_TAG_PREFIX = "migrado-id-"


class RecipeRepository(MongoRepository[Recipe]):
    model = Recipe

    async def search(
        self,
        text: Optional[str] = None,
        category: Optional[str] = None,
        tag: Optional[str] = None,
        restriction: Optional[str] = None,
        max_cost_per_portion: Optional[float] = None,
        include_inactive: bool = False,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Recipe], int]:
        """Filtered, paginated recipe listing

        Args:
            text: Case-insensitive match on name, description or tags
            category: Recipe category value
            tag: Exact tag
            restriction: Dietary restriction value
            max_cost_per_portion: Upper bound on ``costoPorPorcion``
            include_inactive: Include recipes with ``activa`` false
            skip: Number of documents to skip
            limit: Page size

        Returns:
            (recipes, total matching count)
        """
        query: Dict[str, Any] = {}
        if not include_inactive:
            query["activa"] = True
        if text:
            pattern = {"$regex": re.escape(text.strip()), "$options": "i"}
            query["$or"] = [
                {"nombre": pattern},
                {"descripcion": pattern},
                {"tags": pattern},
            ]
        if category:
            query["categoria"] = category
        if tag:
            query["tags"] = tag.strip().lower()
        if restriction:
            query["restriccionesDieteticas"] = restriction
        if max_cost_per_portion is not None:
            query["costoPorPorcion"] = {"$lte": max_cost_per_portion}

        total = await self.count(query)
        items = await self.find(query, sort=[("nombre", 1)], skip=skip, limit=limit)
        return items, total

    async def category_stats(self) -> List[Dict[str, Any]]:
        """Count, average cost per portion and average total time per category"""
        pipeline = [
            {"$match": {"activa": True}},
            {
                "$group": {
                    "_id": "$categoria",
                    "count": {"$sum": 1},
                    "avgCostPerPortion": {"$avg": "$costoPorPorcion"},
                    "avgTotalTime": {
                        "$avg": {"$add": ["$tiempoPreparacion", "$tiempoCoccion"]}
                    },
                }
            },
            {"$sort": {"count": -1}},
        ]
        rows = await self.aggregate(pipeline)
        return [
            {
                "categoria": row["_id"],
                "count": row["count"],
                "avgCostPerPortion": round(row.get("avgCostPerPortion") or 0, 2),
                "avgTotalTime": round(row.get("avgTotalTime") or 0, 1),
            }
            for row in rows
        ]

    async def legacy_id_map(self) -> Dict[int, str]:
        """Map legacy numeric recipe ids to migrated recipe ids.

        Uses ``legacyId`` and falls back to the ``migrado-id-<n>`` tag for
        recipes migrated before the field existed.
        """
        cursor = self.collection.find(
            {
                "$or": [
                    {"legacyId": {"$ne": None}},
                    {"tags": {"$regex": f"^{MIGRATED_TAG_PREFIX}"}},
                ]
            },
            {"legacyId": 1, "tags": 1},
        )
        mapping: Dict[int, str] = {}
        for doc in await cursor.to_list(None):
            legacy_id = doc.get("legacyId")
            if legacy_id is None:
                legacy_id = legacy_id_from_tags(doc.get("tags") or [])
            if legacy_id is not None:
                mapping.setdefault(int(legacy_id), str(doc["_id"]))
        return mapping

    async def mark_used(self, recipe_ids: List[str]) -> None:
        """Bump usage counters for recipes referenced by a saved plan"""
        oids = [oid for oid in (to_object_id(i) for i in set(recipe_ids)) if oid]
        if not oids:
            return
        await self.collection.update_many(
            {"_id": {"$in": oids}},
            {"$inc": {"vecesUsada": 1}, "$set": {"ultimoUso": utcnow()}},
        )


def legacy_id_from_tags(tags: List[str]) -> Optional[int]:
    for tag in tags:
        if isinstance(tag, str) and tag.startswith(MIGRATED_TAG_PREFIX):
            raw = tag[len(MIGRATED_TAG_PREFIX):]
            if raw.isdigit():
                return int(raw)
    return None
