"""Client service: CRUD plus propagation of preference changes to meal plans."""

import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from app.exceptions import ConflictError, NotFoundError, ServiceValidationError
from domain.models import Client
from repositories import ClientRepository
from services.meal_plan_service import MealPlanService

logger = logging.getLogger("recipemanager.clients")

# Changes to these fields are copied into the client's active plans
SNAPSHOT_SOURCES = ("household", "dietary_preferences", "planning_preferences")


def build_client(payload: Dict[str, Any]) -> Client:
    clean = {
        k: v
        for k, v in payload.items()
        if k not in ("_id", "id", "createdAt", "updatedAt", "ultimoAcceso")
    }
    try:
        return Client.model_validate(clean)
    except ValidationError as exc:
        raise ServiceValidationError.from_validation_error(exc) from exc


class ClientService:
    def __init__(self, clients: ClientRepository, meal_plans: MealPlanService):
        self.clients = clients
        self.meal_plans = meal_plans

    async def get(self, client_id: str) -> Client:
        client = await self.clients.get_by_id(client_id)
        if client is None:
            raise NotFoundError(f"Client {client_id} not found")
        return client

    async def create(self, payload: Dict[str, Any]) -> Client:
        client = build_client(payload)
        if await self.clients.get_by_email(client.email):
            raise ConflictError(f"A client with email {client.email} already exists")
        client = await self.clients.insert(client)
        logger.info(f"Created client {client.id} ({client.email})")
        return client

    async def update(self, client_id: str, payload: Dict[str, Any]) -> Client:
        current = await self.get(client_id)
        client = build_client(payload)
        if client.email != current.email:
            other = await self.clients.get_by_email(client.email)
            if other is not None and other.id != current.id:
                raise ConflictError(f"A client with email {client.email} already exists")
        client = client.model_copy(
            update={"id": current.id, "created_at": current.created_at}
        )
        client = await self.clients.replace(client)

        if any(getattr(client, f) != getattr(current, f) for f in SNAPSHOT_SOURCES):
            await self.meal_plans.refresh_client_snapshot(client)
        logger.info(f"Updated client {client_id}")
        return client

    async def delete(self, client_id: str) -> None:
        if not await self.clients.delete(client_id):
            raise NotFoundError(f"Client {client_id} not found")
        logger.info(f"Deleted client {client_id}")

    async def search(
        self,
        text: Optional[str] = None,
        active: Optional[bool] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Tuple[List[Client], int]:
        return await self.clients.search(
            text=text, active=active, skip=(page - 1) * page_size, limit=page_size
        )
