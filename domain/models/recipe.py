"""
Recipe documents (``recetas_optimizadas``) with embedded ingredient lines.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import Field, computed_field, field_validator

from domain.enums import (
    Allergen,
    DietaryRestriction,
    Difficulty,
    IngredientCategory,
    RecipeCategory,
    Unit,
)
from domain.models.base import DocumentModel, EmbeddedModel, UtcDatetime

# Attribute names of the nutrients tracked per recipe
NUTRIENTS = (
    "calories",
    "protein",
    "carbs",
    "fat",
    "fiber",
    "sodium",
    "sugar",
)


class NutritionFacts(EmbeddedModel):
    """Nutrient amounts; used for recipe totals and per-portion values."""

    calories: float = Field(default=0, ge=0, alias="calorias")
    protein: float = Field(default=0, ge=0, alias="proteinas")  # g
    carbs: float = Field(default=0, ge=0, alias="carbohidratos")  # g
    fat: float = Field(default=0, ge=0, alias="grasas")  # g
    fiber: float = Field(default=0, ge=0, alias="fibra")  # g
    sodium: float = Field(default=0, ge=0, alias="sodio")  # mg
    sugar: float = Field(default=0, ge=0, alias="azucar")  # g


class IngredientNutrition(NutritionFacts):
    """Nutrients per unit of an ingredient, bounded to sane values."""

    calories: float = Field(default=0, ge=0, le=10000, alias="calorias")
    protein: float = Field(default=0, ge=0, le=1000, alias="proteinas")
    carbs: float = Field(default=0, ge=0, le=1000, alias="carbohidratos")
    fat: float = Field(default=0, ge=0, le=1000, alias="grasas")
    fiber: float = Field(default=0, ge=0, le=1000, alias="fibra")
    sodium: float = Field(default=0, ge=0, le=100000, alias="sodio")
    sugar: float = Field(default=0, ge=0, le=1000, alias="azucar")


class Substitute(EmbeddedModel):
    name: str = Field(..., min_length=1, alias="nombre")
    factor: float = Field(default=1, gt=0)
    notes: Optional[str] = Field(default=None, alias="notas")


class IngredientLine(EmbeddedModel):
    """One ingredient of a recipe (embedded, no identity of its own)."""

    name: str = Field(..., min_length=2, max_length=100, alias="nombre")
    quantity: float = Field(..., gt=0, alias="cantidad")
    unit: Unit = Field(default=Unit.G, alias="unidad")
    category: IngredientCategory = Field(
        default=IngredientCategory.OTHER, alias="categoria"
    )
    unit_cost: float = Field(default=0, ge=0, alias="costoUnitario")
    supplier: Optional[str] = Field(default=None, alias="proveedor")
    nutrition: Optional[IngredientNutrition] = Field(default=None, alias="nutricion")
    allergens: List[Allergen] = Field(default_factory=list, alias="alergenos")
    substitutes: List[Substitute] = Field(default_factory=list, alias="sustitutos")

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("category", mode="before")
    @classmethod
    def default_category(cls, v):
        # a missing category is stored as "otros"
        return IngredientCategory.OTHER if v in (None, "") else v


class RecipeStep(EmbeddedModel):
    step: int = Field(..., ge=1, alias="paso")
    description: str = Field(..., min_length=1, alias="descripcion")
    minutes: int = Field(default=0, ge=0, alias="tiempo")
    temperature: Optional[str] = Field(default=None, alias="temperatura")
    equipment: List[str] = Field(default_factory=list, alias="equipoNecesario")


class Recipe(DocumentModel):
    """Recipe document. Cost and nutrition fields are derived on every save."""

    name: str = Field(..., min_length=3, max_length=200, alias="nombre")
    description: str = Field(..., min_length=10, max_length=1000, alias="descripcion")
    category: RecipeCategory = Field(..., alias="categoria")
    ingredients: List[IngredientLine] = Field(..., alias="ingredientes")
    prep_time: int = Field(default=0, ge=0, alias="tiempoPreparacion")
    cook_time: int = Field(default=0, ge=0, alias="tiempoCoccion")
    difficulty: Difficulty = Field(default=Difficulty.MEDIUM, alias="dificultad")
    base_portions: int = Field(default=4, ge=1, alias="porcionesBase")
    steps: List[RecipeStep] = Field(default_factory=list, alias="instrucciones")
    tags: List[str] = Field(default_factory=list)
    dietary_restrictions: List[DietaryRestriction] = Field(
        default_factory=list, alias="restriccionesDieteticas"
    )
    source: Optional[str] = Field(default=None, alias="fuente")
    author: Optional[str] = Field(default=None, alias="autor")
    created_on: UtcDatetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="fechaCreacion"
    )
    active: bool = Field(default=True, alias="activa")

    # Derived
    nutrition_total: NutritionFacts = Field(
        default_factory=NutritionFacts, alias="nutricionTotal"
    )
    nutrition_per_portion: NutritionFacts = Field(
        default_factory=NutritionFacts, alias="nutricionPorPorcion"
    )
    total_cost: float = Field(default=0, ge=0, alias="costoTotal")
    cost_per_portion: float = Field(default=0, ge=0, alias="costoPorPorcion")

    # Usage tracking
    times_used: int = Field(default=0, ge=0, alias="vecesUsada")
    last_used: Optional[UtcDatetime] = Field(default=None, alias="ultimoUso")

    # Numeric id of the recipe in the legacy ``recetas`` collection
    legacy_id: Optional[int] = Field(default=None, alias="legacyId")

    @field_validator("name", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("ingredients")
    @classmethod
    def require_ingredients(cls, v):
        if not v:
            raise ValueError("Recipe must have at least one ingredient")
        return v

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v):
        if isinstance(v, list):
            return [t.strip().lower() for t in v if isinstance(t, str) and t.strip()]
        return v

    @computed_field(alias="tiempoTotal")
    @property
    def total_time(self) -> int:
        return self.prep_time + self.cook_time


class ScaledRecipe(Recipe):
    """Transient view of a recipe scaled to another portion count (never stored)."""

    current_portions: float = Field(..., gt=0, alias="porcionesActuales")
    scale_factor: float = Field(..., gt=0, alias="factorEscala")
