"""
Meal Plan Repository - data access for ``planes_comidas_optimizados``
"""

from typing import Any, Dict, List, Optional, Tuple

from domain.enums import PlanStatus
from domain.models import MealPlan
from repositories.base import MongoRepository, to_object_id, utcnow


class MealPlanRepository(MongoRepository[MealPlan]):
    model = MealPlan

    async def list_plans(
        self,
        client_id: Optional[str] = None,
        status: Optional[str] = None,
        is_template: Optional[bool] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[MealPlan], int]:
        query: Dict[str, Any] = {}
        if client_id:
            query["clienteId"] = client_id
        if status:
            query["estado"] = status
        if is_template is not None:
            query["esPlantilla"] = is_template
        total = await self.count(query)
        items = await self.find(
            query, sort=[("fechaInicio", -1), ("_id", -1)], skip=skip, limit=limit
        )
        return items, total

    async def active_for_client(self, client_id: str) -> List[MealPlan]:
        """Non-template plans of a client that are draft, active or paused"""
        return await self.find(
            {
                "clienteId": client_id,
                "esPlantilla": False,
                "estado": {
                    "$in": [
                        PlanStatus.DRAFT.value,
                        PlanStatus.ACTIVE.value,
                        PlanStatus.PAUSED.value,
                    ]
                },
            }
        )

    async def status_stats(self) -> List[Dict[str, Any]]:
        """Plan count and average estimated cost per status"""
        pipeline = [
            {"$match": {"esPlantilla": False}},
            {
                "$group": {
                    "_id": "$estado",
                    "count": {"$sum": 1},
                    "avgCost": {"$avg": "$resumen.costoTotalEstimado"},
                }
            },
            {"$sort": {"count": -1}},
        ]
        rows = await self.aggregate(pipeline)
        return [
            {
                "estado": row["_id"],
                "count": row["count"],
                "avgCost": round(row.get("avgCost") or 0, 2),
            }
            for row in rows
        ]

    async def increment_usage(self, plan_id: str) -> None:
        oid = to_object_id(plan_id)
        if oid is None:
            return
        await self.collection.update_one(
            {"_id": oid},
            {"$inc": {"vecesUsado": 1}, "$set": {"ultimaActividad": utcnow()}},
        )
