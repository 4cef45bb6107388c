"""
Client Repository - data access for ``clientes_optimizados``
"""

import re
from typing import Any, Dict, List, Optional, Tuple

from domain.models import Client
from repositories.base import MongoRepository


class ClientRepository(MongoRepository[Client]):
    model = Client

    async def get_by_email(self, email: str) -> Optional[Client]:
        return self._to_model(
            await self.collection.find_one({"email": email.strip().lower()})
        )

    async def search(
        self,
        text: Optional[str] = None,
        active: Optional[bool] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Client], int]:
        query: Dict[str, Any] = {}
        if text:
            pattern = {"$regex": re.escape(text.strip()), "$options": "i"}
            query["$or"] = [{"nombre": pattern}, {"apellido": pattern}, {"email": pattern}]
        if active is not None:
            query["activo"] = active
        total = await self.count(query)
        items = await self.find(
            query, sort=[("apellido", 1), ("nombre", 1)], skip=skip, limit=limit
        )
        return items, total
