"""
Meal plan aggregate (``planes_comidas_optimizados``): days -> meal slots ->
recipe references, plus derived summary and shopping list.
"""

from datetime import datetime
from typing import Iterator, List, Optional, Tuple

from pydantic import Field, computed_field, field_validator, model_validator

from domain.enums import (
    IngredientCategory,
    PlanStatus,
    SharePermission,
    ShoppingPriority,
    Weekday,
)
from domain.models.base import DocumentModel, EmbeddedModel, ObjectIdStr, UtcDatetime, as_utc
from domain.models.client import ClientSnapshot

# Nutrients tracked per day (recipes also track sugar)
DAILY_NUTRIENTS = ("calories", "protein", "carbs", "fat", "fiber", "sodium")

# Addressable single-entry slots, in enumeration order. Snacks are "colaciones.<n>".
SINGLE_SLOTS = (
    "desayuno",
    "almuerzo",
    "comida.sopa",
    "comida.principal",
    "comida.guarnicion",
    "cena",
)
SNACK_SLOT = "colaciones"


class AddedIngredient(EmbeddedModel):
    name: str = Field(..., min_length=1, alias="nombre")
    quantity: Optional[float] = Field(default=None, gt=0, alias="cantidad")
    unit: Optional[str] = Field(default=None, alias="unidad")


class MealModifications(EmbeddedModel):
    omitted_ingredients: List[str] = Field(
        default_factory=list, alias="ingredientesOmitidos"
    )
    added_ingredients: List[AddedIngredient] = Field(
        default_factory=list, alias="ingredientesAdicionales"
    )
    extra_instructions: Optional[str] = Field(
        default=None, alias="instruccionesAdicionales"
    )
    notes: Optional[str] = Field(default=None, alias="notas")


class MealEntry(EmbeddedModel):
    """A recipe assigned to one meal slot of a day."""

    recipe_id: ObjectIdStr = Field(..., min_length=1, alias="recetaId")
    custom_portions: Optional[int] = Field(
        default=None, ge=1, alias="porcionesPersonalizadas"
    )
    modifications: MealModifications = Field(
        default_factory=MealModifications, alias="modificaciones"
    )
    preferred_time: Optional[str] = Field(default=None, alias="horaPreferida")
    prep_time: Optional[int] = Field(default=None, ge=0, alias="tiempoPreparacion")
    prepared: bool = Field(default=False, alias="preparado")
    prepared_at: Optional[UtcDatetime] = Field(default=None, alias="fechaPreparacion")
    rating: Optional[int] = Field(default=None, ge=1, le=5, alias="calificacion")
    comments: Optional[str] = Field(default=None, alias="comentarios")


class LunchCourses(EmbeddedModel):
    """The three-course midday meal."""

    soup: Optional[MealEntry] = Field(default=None, alias="sopa")
    main: Optional[MealEntry] = Field(default=None, alias="principal")
    side: Optional[MealEntry] = Field(default=None, alias="guarnicion")


class DayMeals(EmbeddedModel):
    breakfast: Optional[MealEntry] = Field(default=None, alias="desayuno")
    lunch: Optional[MealEntry] = Field(default=None, alias="almuerzo")
    courses: LunchCourses = Field(default_factory=LunchCourses, alias="comida")
    dinner: Optional[MealEntry] = Field(default=None, alias="cena")
    snacks: List[MealEntry] = Field(default_factory=list, alias="colaciones")

    @field_validator("courses", mode="before")
    @classmethod
    def empty_courses(cls, v):
        return {} if v is None else v

    @field_validator("snacks", mode="before")
    @classmethod
    def drop_empty_snacks(cls, v):
        if v is None:
            return []
        return [s for s in v if s is not None] if isinstance(v, list) else v

    def entries(self) -> Iterator[Tuple[str, MealEntry]]:
        """Yield ``(slot, entry)`` for every filled slot, in fixed order."""
        for slot in SINGLE_SLOTS:
            entry = self.get(slot)
            if entry is not None:
                yield slot, entry
        for index, entry in enumerate(self.snacks):
            yield f"{SNACK_SLOT}.{index}", entry

    def get(self, slot: str) -> Optional[MealEntry]:
        owner, attr, index = self._resolve(slot)
        if index is not None:
            return owner[index] if index < len(owner) else None
        return getattr(owner, attr)

    def set(self, slot: str, entry: MealEntry) -> None:
        owner, attr, index = self._resolve(slot)
        if index is not None:
            if index >= len(owner):
                raise KeyError(slot)
            owner[index] = entry
        else:
            setattr(owner, attr, entry)

    def _resolve(self, slot: str):
        if slot.startswith(f"{SNACK_SLOT}."):
            _, _, raw = slot.partition(".")
            if not raw.isdigit():
                raise KeyError(slot)
            return self.snacks, None, int(raw)
        mapping = {
            "desayuno": (self, "breakfast"),
            "almuerzo": (self, "lunch"),
            "comida.sopa": (self.courses, "soup"),
            "comida.principal": (self.courses, "main"),
            "comida.guarnicion": (self.courses, "side"),
            "cena": (self, "dinner"),
        }
        if slot not in mapping:
            raise KeyError(slot)
        owner, attr = mapping[slot]
        return owner, attr, None


class DayNutrition(EmbeddedModel):
    calories: float = Field(default=0, ge=0, alias="calorias")
    protein: float = Field(default=0, ge=0, alias="proteinas")
    carbs: float = Field(default=0, ge=0, alias="carbohidratos")
    fat: float = Field(default=0, ge=0, alias="grasas")
    fiber: float = Field(default=0, ge=0, alias="fibra")
    sodium: float = Field(default=0, ge=0, alias="sodio")


class PlanDay(EmbeddedModel):
    """One calendar day of a plan.

    ``diaSemana`` is derived from ``fecha`` when omitted and must agree with it
    when both are present. Template days have no date and keep their weekday.
    """

    date: Optional[UtcDatetime] = Field(default=None, alias="fecha")
    weekday: Weekday = Field(..., alias="diaSemana")
    meals: DayMeals = Field(default_factory=DayMeals, alias="comidas")
    daily_nutrition: DayNutrition = Field(
        default_factory=DayNutrition, alias="nutricionDiaria"
    )
    estimated_cost: float = Field(default=0, ge=0, alias="costoEstimadoDia")
    notes: Optional[str] = Field(default=None, alias="notas")
    completed: bool = Field(default=False, alias="completado")
    completion_pct: float = Field(
        default=0, ge=0, le=100, alias="porcentajeCompletado"
    )

    @model_validator(mode="before")
    @classmethod
    def derive_weekday(cls, data):
        if not isinstance(data, dict):
            return data
        day_value = data.get("fecha", data.get("date"))
        has_weekday = data.get("diaSemana") or data.get("weekday")
        if day_value is not None and not has_weekday:
            if isinstance(day_value, str):
                day_value = datetime.fromisoformat(day_value)
            day_value = as_utc(day_value)
            data = dict(data)
            data["diaSemana"] = Weekday.from_date(day_value).value
            data.pop("weekday", None)
        return data

    @model_validator(mode="after")
    def check_weekday(self):
        if self.date is not None and Weekday.from_date(self.date).value != self.weekday:
            raise ValueError(
                f"diaSemana '{self.weekday}' does not match fecha "
                f"{self.date.date().isoformat()}"
            )
        return self


class EatingOut(EmbeddedModel):
    day: str = Field(..., alias="dia")
    meal: str = Field(..., alias="comida")
    restaurant: Optional[str] = Field(default=None, alias="restaurante")
    estimated_cost: Optional[float] = Field(default=None, ge=0, alias="costoEstimado")


class PlanPreferences(EmbeddedModel):
    max_budget: Optional[float] = Field(default=None, ge=0, alias="presupuestoMaximo")
    max_prep_time: Optional[int] = Field(
        default=None, ge=0, alias="tiempoMaximoPreparacion"
    )
    avoid_repeats: bool = Field(default=True, alias="evitarRepetirRecetas")
    no_cook_days: List[str] = Field(default_factory=list, alias="diasSinCocinar")
    eating_out: List[EatingOut] = Field(default_factory=list, alias="comidaFueraCasa")


class RecipeUsage(EmbeddedModel):
    recipe_id: ObjectIdStr = Field(..., alias="recetaId")
    recipe_name: str = Field(..., alias="nombreReceta")
    quantity_needed: float = Field(..., ge=0, alias="cantidadNecesaria")


class ShoppingItem(EmbeddedModel):
    """Consolidated ingredient requirement across every meal of a plan."""

    ingredient: str = Field(..., min_length=1, alias="ingrediente")
    total_quantity: float = Field(..., ge=0, alias="cantidadTotal")
    unit: str = Field(..., min_length=1, alias="unidad")
    category: IngredientCategory = Field(
        default=IngredientCategory.OTHER, alias="categoria"
    )
    section: Optional[str] = Field(default=None, alias="seccionSupermercado")
    priority: ShoppingPriority = Field(
        default=ShoppingPriority.MEDIUM, alias="prioridad"
    )
    estimated_cost: Optional[float] = Field(default=None, ge=0, alias="costoEstimado")
    actual_cost: Optional[float] = Field(default=None, ge=0, alias="costoReal")
    purchased: bool = Field(default=False, alias="comprado")
    purchased_at: Optional[UtcDatetime] = Field(default=None, alias="fechaCompra")
    used_by: List[RecipeUsage] = Field(default_factory=list, alias="recetasQueLoUsan")

    @field_validator("ingredient", mode="before")
    @classmethod
    def lower_ingredient(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("category", mode="before")
    @classmethod
    def known_category(cls, v):
        valid = {c.value for c in IngredientCategory}
        return v if v in valid else IngredientCategory.OTHER

    @property
    def key(self) -> Tuple[str, str]:
        return self.ingredient, self.unit


class CategoryDistribution(EmbeddedModel):
    soups: int = Field(default=0, ge=0, alias="sopas")
    mains: int = Field(default=0, ge=0, alias="platosFuertes")
    sides: int = Field(default=0, ge=0, alias="guarniciones")
    desserts: int = Field(default=0, ge=0, alias="postres")


class PlanSummary(EmbeddedModel):
    total_recipes: int = Field(default=0, ge=0, alias="totalRecetas")
    total_estimated_cost: float = Field(default=0, ge=0, alias="costoTotalEstimado")
    average_daily_cost: float = Field(default=0, ge=0, alias="costoPromedioDiario")
    total_prep_time: int = Field(default=0, ge=0, alias="tiempoTotalPreparacion")
    average_daily_nutrition: DayNutrition = Field(
        default_factory=DayNutrition, alias="nutricionPromedioDiaria"
    )
    category_distribution: CategoryDistribution = Field(
        default_factory=CategoryDistribution, alias="distribucionCategorias"
    )


class SharedUser(EmbeddedModel):
    client_id: ObjectIdStr = Field(..., alias="clienteId")
    permission: SharePermission = Field(default=SharePermission.READ, alias="permisos")


class MealPlan(DocumentModel):
    name: str = Field(..., min_length=1, max_length=200, alias="nombre")
    client_id: Optional[ObjectIdStr] = Field(default=None, alias="clienteId")
    start_date: Optional[UtcDatetime] = Field(default=None, alias="fechaInicio")
    end_date: Optional[UtcDatetime] = Field(default=None, alias="fechaFin")
    base_portions: int = Field(default=4, ge=1, alias="porcionesBase")
    days: List[PlanDay] = Field(default_factory=list, alias="dias")
    preferences: PlanPreferences = Field(
        default_factory=PlanPreferences, alias="preferencias"
    )
    client_snapshot: Optional[ClientSnapshot] = Field(
        default=None, alias="preferenciasCliente"
    )
    shopping_list: List[ShoppingItem] = Field(default_factory=list, alias="listaCompras")
    summary: PlanSummary = Field(default_factory=PlanSummary, alias="resumen")
    status: PlanStatus = Field(default=PlanStatus.DRAFT, alias="estado")

    is_template: bool = Field(default=False, alias="esPlantilla")
    template_origin: Optional[ObjectIdStr] = Field(
        default=None, alias="plantillaOriginal"
    )
    times_used: int = Field(default=0, ge=0, alias="vecesUsado")
    last_activity: Optional[UtcDatetime] = Field(default=None, alias="ultimaActividad")

    rating: Optional[int] = Field(default=None, ge=1, le=5, alias="calificacionGeneral")
    comments: Optional[str] = Field(default=None, alias="comentariosGenerales")
    shared: bool = Field(default=False, alias="compartido")
    shared_with: List[SharedUser] = Field(
        default_factory=list, alias="usuariosCompartidos"
    )

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @model_validator(mode="after")
    def check_plan(self):
        if not self.is_template:
            if not self.client_id:
                raise ValueError("clienteId is required for a meal plan")
            if self.start_date is None or self.end_date is None:
                raise ValueError("fechaInicio and fechaFin are required for a meal plan")
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValueError("fechaFin must be after fechaInicio")
        return self

    @computed_field(alias="duracionDias")
    @property
    def duration_days(self) -> int:
        """Inclusive day span of [fechaInicio, fechaFin]."""
        if self.start_date is None or self.end_date is None:
            return len(self.days)
        return (self.end_date.date() - self.start_date.date()).days + 1

    def meal_entries(self) -> Iterator[Tuple[int, str, MealEntry]]:
        """Yield ``(day_index, slot, entry)`` for every filled slot of every day."""
        for index, day in enumerate(self.days):
            for slot, entry in day.meals.entries():
                yield index, slot, entry
