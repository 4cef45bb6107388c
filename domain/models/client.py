"""
Client documents (``clientes_optimizados``) and the preference snapshot that
meal plans cache from them.
"""

from typing import List, Optional

from pydantic import EmailStr, Field, field_validator

from domain.enums import (
    Allergen,
    AllergySeverity,
    CookingLevel,
    DietaryRestriction,
    RestrictionLevel,
    Weekday,
)
from domain.models.base import DocumentModel, EmbeddedModel, UtcDatetime

# A child eats roughly this fraction of an adult portion
CHILD_PORTION_FACTOR = 0.7


class Restriction(EmbeddedModel):
    kind: DietaryRestriction = Field(..., alias="tipo")
    level: RestrictionLevel = Field(default=RestrictionLevel.STRICT, alias="nivel")
    since: Optional[UtcDatetime] = Field(default=None, alias="fechaInicio")
    notes: Optional[str] = Field(default=None, alias="notas")


class Allergy(EmbeddedModel):
    allergen: Allergen = Field(..., alias="alergeno")
    severity: AllergySeverity = Field(
        default=AllergySeverity.MODERATE, alias="severidad"
    )
    notes: Optional[str] = Field(default=None, alias="notas")


class DislikedIngredient(EmbeddedModel):
    name: str = Field(..., min_length=1, alias="nombre")
    reason: Optional[str] = Field(default=None, alias="razon")
    alternatives: List[str] = Field(default_factory=list, alias="alternativas")

    @field_validator("name", mode="before")
    @classmethod
    def lower_name(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class DietaryPreferences(EmbeddedModel):
    restrictions: List[Restriction] = Field(default_factory=list, alias="restricciones")
    allergies: List[Allergy] = Field(default_factory=list, alias="alergias")
    disliked_ingredients: List[DislikedIngredient] = Field(
        default_factory=list, alias="ingredientesNoDeseados"
    )


class Household(EmbeddedModel):
    adults: int = Field(default=1, ge=1, alias="adultos")
    children: int = Field(default=0, ge=0, alias="ninos")
    children_ages: List[int] = Field(default_factory=list, alias="edadesNinos")


class BudgetRange(EmbeddedModel):
    min: Optional[float] = Field(default=None, ge=0)
    max: Optional[float] = Field(default=None, ge=0)


class PlanningPreferences(EmbeddedModel):
    preferred_days: List[Weekday] = Field(default_factory=list, alias="diasPreferidos")
    max_prep_time: int = Field(default=60, ge=0, alias="tiempoPreparacionMaximo")
    weekly_budget: Optional[BudgetRange] = Field(
        default=None, alias="presupuestoSemanal"
    )
    kitchen_equipment: List[str] = Field(default_factory=list, alias="equipoCocina")
    cooking_level: CookingLevel = Field(
        default=CookingLevel.INTERMEDIATE, alias="nivelCocina"
    )


class Client(DocumentModel):
    name: str = Field(..., min_length=1, max_length=100, alias="nombre")
    surname: Optional[str] = Field(default=None, alias="apellido")
    email: EmailStr
    phone: Optional[str] = Field(default=None, alias="telefono")
    age: Optional[int] = Field(default=None, ge=0, le=130, alias="edad")
    household: Household = Field(default_factory=Household, alias="miembrosHogar")
    dietary_preferences: DietaryPreferences = Field(
        default_factory=DietaryPreferences, alias="preferenciasDieteticas"
    )
    planning_preferences: PlanningPreferences = Field(
        default_factory=PlanningPreferences, alias="preferenciasPlanes"
    )
    active: bool = Field(default=True, alias="activo")
    last_access: Optional[UtcDatetime] = Field(default=None, alias="ultimoAcceso")
    notes: Optional[str] = Field(default=None, alias="notas")

    @field_validator("name", "surname", mode="before")
    @classmethod
    def strip_names(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.surname or ''}".strip()

    def recommended_portions(self) -> float:
        return self.household.adults + self.household.children * CHILD_PORTION_FACTOR

    def snapshot(self) -> "ClientSnapshot":
        """Preference facts copied into the client's meal plans."""
        prefs = self.dietary_preferences
        return ClientSnapshot(
            restrictions=[
                SnapshotRestriction(kind=r.kind, level=r.level) for r in prefs.restrictions
            ],
            allergies=[
                SnapshotAllergy(allergen=a.allergen, severity=a.severity)
                for a in prefs.allergies
            ],
            household=self.household.model_copy(deep=True),
            cooking=CookingSnapshot(
                cooking_level=self.planning_preferences.cooking_level,
                equipment=list(self.planning_preferences.kitchen_equipment),
                max_prep_time=self.planning_preferences.max_prep_time,
            ),
        )


class SnapshotRestriction(EmbeddedModel):
    kind: DietaryRestriction = Field(..., alias="tipo")
    level: RestrictionLevel = Field(default=RestrictionLevel.STRICT, alias="nivel")


class SnapshotAllergy(EmbeddedModel):
    allergen: Allergen = Field(..., alias="alergeno")
    severity: AllergySeverity = Field(
        default=AllergySeverity.MODERATE, alias="severidad"
    )


class CookingSnapshot(EmbeddedModel):
    cooking_level: CookingLevel = Field(
        default=CookingLevel.INTERMEDIATE, alias="nivelCocina"
    )
    equipment: List[str] = Field(default_factory=list, alias="equipoDisponible")
    max_prep_time: Optional[int] = Field(default=None, alias="tiempoMaximoPreparacion")


class ClientSnapshot(EmbeddedModel):
    """Denormalized copy of a client's dietary facts stored on a meal plan."""

    restrictions: List[SnapshotRestriction] = Field(
        default_factory=list, alias="restriccionesDieteticas"
    )
    allergies: List[SnapshotAllergy] = Field(default_factory=list, alias="alergias")
    household: Household = Field(default_factory=Household, alias="miembrosHogar")
    cooking: CookingSnapshot = Field(
        default_factory=CookingSnapshot, alias="preferenciasCocina"
    )
