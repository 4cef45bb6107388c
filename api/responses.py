"""
Standardized API response helpers.
Documents are returned in their stored shape (camelCase field names, ``_id``).
"""

from datetime import datetime, timezone
from math import ceil
from typing import Any, Dict, List, Optional

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel


def to_public(model: BaseModel) -> Dict[str, Any]:
    """Serialize a model with its stored field names."""
    return model.model_dump(by_alias=True, mode="json")


def success_response(data: Any = None, message: Optional[str] = None) -> dict:
    """Create a standardized success response"""
    if isinstance(data, BaseModel):
        data = to_public(data)
    return jsonable_encoder(
        {
            "success": True,
            "message": message,
            "data": data,
            "timestamp": datetime.now(timezone.utc),
        }
    )


def paginated_response(
    items: List[BaseModel], total: int, page: int, page_size: int
) -> dict:
    """Create a paginated success response"""
    pages = ceil(total / page_size) if page_size else 0
    return success_response(
        {
            "items": [to_public(item) for item in items],
            "total": total,
            "page": page,
            "page_size": page_size,
            "pages": pages,
            "has_next": page < pages,
            "has_prev": page > 1,
        }
    )
