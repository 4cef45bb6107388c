"""
Read models for the legacy normalized collections (``planes``, ``planRecetas``,
``recetas``, ``ingredientes``).

Legacy documents were written by several generations of the application, so
these models accept unknown fields and tolerate loosely typed ids.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from domain.models.base import ObjectIdStr, UtcDatetime


class LegacyModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


def _to_int(value: Any) -> Optional[int]:
    """Legacy numeric ids are sometimes stored as strings; empty means absent."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError("boolean is not a recipe id")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{value} is not an integer id")
        return int(value)
    return int(value)


class LegacyPlan(LegacyModel):
    id: ObjectIdStr = Field(..., alias="_id")
    client: Optional[Any] = Field(default=None, alias="cliente")
    name: Optional[str] = Field(default=None, alias="nombrePlan")
    portions: Optional[int] = Field(default=None, alias="racion")
    start_date: Optional[UtcDatetime] = Field(default=None, alias="fechaInicio")
    end_date: Optional[UtcDatetime] = Field(default=None, alias="fechaFin")
    planned_days: List[str] = Field(default_factory=list, alias="diasPlanificados")
    status: Optional[str] = Field(default=None, alias="estado")
    description: Optional[str] = Field(default=None, alias="descripcion")
    legacy_id: Optional[int] = Field(default=None, alias="idPlan")
    created_on: Optional[UtcDatetime] = Field(default=None, alias="fechaCreacion")

    @field_validator("portions", "legacy_id", mode="before")
    @classmethod
    def coerce_int(cls, v):
        return _to_int(v)


class LegacyCourses(LegacyModel):
    soup: Optional[int] = Field(default=None, alias="sopa")
    main: Optional[int] = Field(default=None, alias="principal")
    side: Optional[int] = Field(default=None, alias="guarnicion")

    @field_validator("soup", "main", "side", mode="before")
    @classmethod
    def coerce_int(cls, v):
        return _to_int(v)


class LegacyPlanRecipe(LegacyModel):
    """Join row assigning recipes to one weekday/meal type of a legacy plan."""

    id: Optional[ObjectIdStr] = Field(default=None, alias="_id")
    plan_id: Optional[Any] = Field(default=None, alias="idPlan")
    weekday: Optional[str] = Field(default=None, alias="diaSemana")
    meal_type: str = Field(default="comida", alias="tipoComida")
    recipe_id: Optional[int] = Field(default=None, alias="idReceta")
    soup_id: Optional[int] = Field(default=None, alias="idSoup")
    main_id: Optional[int] = Field(default=None, alias="idMain")
    side_id: Optional[int] = Field(default=None, alias="idSide")
    courses: Optional[LegacyCourses] = Field(default=None, alias="recetas")
    notes: Optional[str] = Field(default=None, alias="notas")
    portion_adjustment: int = Field(default=0, ge=-10, le=10, alias="ajusteRacion")

    @field_validator("recipe_id", "soup_id", "main_id", "side_id", mode="before")
    @classmethod
    def coerce_int(cls, v):
        return _to_int(v)

    @field_validator("plan_id", mode="before")
    @classmethod
    def stringify_plan(cls, v):
        return None if v is None else str(v)

    @field_validator("weekday", "meal_type", mode="before")
    @classmethod
    def lower_text(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    def course_ids(self):
        """``(soup, main, side)``; the nested ``recetas`` block wins over flat ids."""
        nested = self.courses
        if nested is not None and (nested.soup or nested.main or nested.side):
            return nested.soup, nested.main, nested.side
        return self.soup_id, self.main_id, self.side_id

    def single_recipe_id(self) -> Optional[int]:
        soup, main, side = self.course_ids()
        return self.recipe_id or main or soup or side


class LegacyRecipeIngredient(LegacyModel):
    name: str = Field(..., alias="ingrediente")
    unit: Optional[str] = Field(default="", alias="unidad")
    per_person: float = Field(default=0, alias="por_persona")
    total_quantity: float = Field(default=0, alias="cantidad_total")

    @field_validator("per_person", "total_quantity", mode="before")
    @classmethod
    def zero_if_missing(cls, v):
        return 0 if v in (None, "") else v


class LegacyRecipe(LegacyModel):
    id: ObjectIdStr = Field(..., alias="_id")
    legacy_id: Optional[int] = Field(default=None, alias="idReceta")
    name: Optional[str] = Field(default=None, alias="nombre")
    description: Optional[str] = Field(default=None, alias="descripcion")
    dish_type: Optional[str] = Field(default=None, alias="tipoPlatillo")
    portions: Optional[int] = Field(default=None, alias="racion")
    source: Optional[str] = Field(default=None, alias="fuente")
    tags: List[str] = Field(default_factory=list)
    ingredients: List[LegacyRecipeIngredient] = Field(
        default_factory=list, alias="ingredientes"
    )

    @field_validator("legacy_id", "portions", mode="before")
    @classmethod
    def coerce_int(cls, v):
        return _to_int(v)

    @field_validator("tags", "ingredients", mode="before")
    @classmethod
    def list_or_empty(cls, v):
        return v if isinstance(v, list) else []


class LegacyIngredient(LegacyModel):
    """Row of the ``ingredientes`` collection (catalog entry or recipe line)."""

    id: Optional[ObjectIdStr] = Field(default=None, alias="_id")
    name: Optional[str] = Field(default=None, alias="nombre")
    line_name: Optional[str] = Field(default=None, alias="ingrediente")
    category: Optional[str] = Field(default=None, alias="categoria")
    price: Optional[float] = Field(default=None, alias="precio")
    unit: Optional[str] = Field(default=None, alias="unidad")
    recipe_id: Optional[int] = Field(default=None, alias="idReceta")
    per_person: float = Field(default=0, alias="porPersona")
    total_quantity: float = Field(default=0, alias="cantidadTotal")

    @field_validator("recipe_id", mode="before")
    @classmethod
    def coerce_int(cls, v):
        return _to_int(v)

    @field_validator("per_person", "total_quantity", mode="before")
    @classmethod
    def zero_if_missing(cls, v):
        return 0 if v in (None, "") else v

    @property
    def display_name(self) -> str:
        return (self.name or self.line_name or "").strip().lower()
