"""
Base pydantic model for MongoDB documents.

Python attributes are snake_case; the stored/serialized field names are the
camelCase names of the existing collections (declared as aliases).
"""

from datetime import datetime, timezone
from typing import Any, Annotated, Dict, Optional

from bson import ObjectId
from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field


def _stringify_object_id(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    return value


# ObjectId values read from MongoDB become hex strings on the model
ObjectIdStr = Annotated[str, BeforeValidator(_stringify_object_id)]


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken as UTC; aware ones are converted to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# MongoDB stores UTC and the client reads it back tz-aware
UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class EmbeddedModel(BaseModel):
    """Sub-document: no identity. Enums are kept as their stored string values."""

    model_config = ConfigDict(
        populate_by_name=True,
        validate_assignment=True,
        validate_default=True,
        use_enum_values=True,
    )


class DocumentModel(EmbeddedModel):
    """Top-level document with ``_id`` and timestamps."""

    id: Optional[ObjectIdStr] = Field(default=None, alias="_id")
    created_at: Optional[UtcDatetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[UtcDatetime] = Field(default=None, alias="updatedAt")

    def to_document(self) -> Dict[str, Any]:
        """Serialize for MongoDB: aliased field names, no ``_id``."""
        return self.model_dump(by_alias=True, mode="python", exclude={"id"})

    @classmethod
    def from_document(cls, doc: Dict[str, Any]):
        return cls.model_validate(doc)
