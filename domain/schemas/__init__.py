"""
Domain schemas package - request payloads that are not documents.
"""

from domain.schemas.auth_schemas import LoginRequest, RefreshRequest, RegisterRequest
from domain.schemas.plan_schemas import (
    InstantiateTemplateRequest,
    MealPreparedRequest,
    ShoppingItemUpdate,
    ShoppingItemsUpdateRequest,
    TemplateRequest,
)

__all__ = [
    "LoginRequest",
    "RefreshRequest",
    "RegisterRequest",
    "InstantiateTemplateRequest",
    "MealPreparedRequest",
    "ShoppingItemUpdate",
    "ShoppingItemsUpdateRequest",
    "TemplateRequest",
]
