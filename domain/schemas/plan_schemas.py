"""Request payloads for meal plan operations other than create/update."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from domain.enums import ShoppingPriority
from domain.models.base import UtcDatetime


class _AliasedRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)


class ShoppingItemUpdate(_AliasedRequest):
    ingredient: str = Field(..., min_length=1, alias="ingrediente")
    unit: str = Field(..., min_length=1, alias="unidad")
    purchased: Optional[bool] = Field(default=None, alias="comprado")
    actual_cost: Optional[float] = Field(default=None, ge=0, alias="costoReal")
    priority: Optional[ShoppingPriority] = Field(default=None, alias="prioridad")
    section: Optional[str] = Field(default=None, alias="seccionSupermercado")


class ShoppingItemsUpdateRequest(BaseModel):
    items: List[ShoppingItemUpdate] = Field(..., min_length=1)


class MealPreparedRequest(_AliasedRequest):
    prepared: bool = Field(default=True, alias="preparado")
    rating: Optional[int] = Field(default=None, ge=1, le=5, alias="calificacion")
    comments: Optional[str] = Field(default=None, alias="comentarios")


class TemplateRequest(_AliasedRequest):
    name: Optional[str] = Field(default=None, min_length=1, alias="nombre")


class InstantiateTemplateRequest(_AliasedRequest):
    client_id: str = Field(..., min_length=1, alias="clienteId")
    start_date: UtcDatetime = Field(..., alias="fechaInicio")
    name: Optional[str] = Field(default=None, min_length=1, alias="nombre")
    base_portions: Optional[int] = Field(default=None, ge=1, alias="porcionesBase")
