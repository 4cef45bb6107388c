"""Client routes"""

from fastapi import APIRouter, Body, Depends, Query, status
from typing import Any, Dict, Optional
import logging

from api.dependencies import get_client_service, get_current_user
from api.responses import paginated_response, success_response, to_public
from services import ClientService

router = APIRouter(
    prefix="/clients", tags=["Clients"], dependencies=[Depends(get_current_user)]
)
logger = logging.getLogger("recipemanager.api.clients")


def client_body(client) -> dict:
    data = to_public(client)
    data["porcionesRecomendadas"] = client.recommended_portions()
    return data


@router.get("")
async def list_clients(
    q: Optional[str] = Query(default=None, description="Text in name, surname or email"),
    activo: Optional[bool] = Query(default=None),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    service: ClientService = Depends(get_client_service),
):
    items, total = await service.search(text=q, active=activo, page=page, page_size=page_size)
    return paginated_response(items, total, page, page_size)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_client(
    payload: Dict[str, Any] = Body(...),
    service: ClientService = Depends(get_client_service),
):
    return success_response(client_body(await service.create(payload)), "Client created")


@router.get("/{client_id}")
async def get_client(client_id: str, service: ClientService = Depends(get_client_service)):
    return success_response(client_body(await service.get(client_id)))


@router.put("/{client_id}")
async def update_client(
    client_id: str,
    payload: Dict[str, Any] = Body(...),
    service: ClientService = Depends(get_client_service),
):
    return success_response(
        client_body(await service.update(client_id, payload)), "Client updated"
    )


@router.delete("/{client_id}")
async def delete_client(client_id: str, service: ClientService = Depends(get_client_service)):
    await service.delete(client_id)
    return success_response(message="Client deleted")
