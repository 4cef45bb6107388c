"""
Legacy-to-embedded migration.

Reads the normalized collections (``planes`` / ``planRecetas`` / ``recetas`` /
``ingredientes``) and writes embedded recipes and meal plans. Records are
processed one at a time; a failing record is logged and added to the report
and the batch moves on. Nothing already written is rolled back.
"""

import logging
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from bson import ObjectId
from pydantic import ValidationError

from app.exceptions import LegacyDataError, ServiceValidationError
from domain.enums import (
    IngredientCategory,
    LegacyMealType,
    PlanStatus,
    RecipeCategory,
    Unit,
    Weekday,
)
from domain.models import (
    IngredientLine,
    LegacyIngredient,
    LegacyPlan,
    LegacyPlanRecipe,
    LegacyRecipe,
    MealEntry,
    MealPlan,
    PlanDay,
    Recipe,
)
from repositories import (
    ClientRepository,
    LegacyRepository,
    MealPlanRepository,
    RecipeRepository,
)
from repositories.recipe_repository import MIGRATED_TAG_PREFIX
from services.meal_plan_service import MealPlanService
from services.recipe_service import RecipeService

logger = logging.getLogger("recipemanager.migration")

DEFAULT_PLAN_DAYS = 7
DEFAULT_PORTIONS = 4
PLACEHOLDER_INGREDIENT = "ingrediente genérico"

STATUS_MAP = {
    "borrador": PlanStatus.DRAFT.value,
    "activo": PlanStatus.ACTIVE.value,
    "completado": PlanStatus.COMPLETED.value,
    "archivado": PlanStatus.PAUSED.value,
}

RECIPE_CATEGORY_MAP = {
    "sopa": RecipeCategory.SOUP.value,
    "plato fuerte": RecipeCategory.MAIN.value,
    "guarnición": RecipeCategory.SIDE.value,
    "guarnicion": RecipeCategory.SIDE.value,
    "postre": RecipeCategory.DESSERT.value,
    "bebida": RecipeCategory.BEVERAGE.value,
    "entrada": RecipeCategory.STARTER.value,
}

UNIT_MAP = {
    "kg": Unit.KG, "kilogramos": Unit.KG, "kilogramo": Unit.KG,
    "g": Unit.G, "gr": Unit.G, "gramos": Unit.G, "gramo": Unit.G,
    "l": Unit.L, "litros": Unit.L, "litro": Unit.L,
    "ml": Unit.ML, "mililitros": Unit.ML,
    "piezas": Unit.PIECES, "pieza": Unit.PIECES, "pza": Unit.PIECES,
    "tazas": Unit.CUPS, "taza": Unit.CUPS,
    "cucharadas": Unit.TABLESPOONS, "cucharada": Unit.TABLESPOONS,
    "cucharaditas": Unit.TEASPOONS, "cucharadita": Unit.TEASPOONS,
    "latas": Unit.CANS, "lata": Unit.CANS,
    "paquetes": Unit.PACKAGES, "paquete": Unit.PACKAGES,
}

INGREDIENT_CATEGORY_MAP = {
    "proteína": IngredientCategory.PROTEIN, "proteina": IngredientCategory.PROTEIN,
    "vegetales": IngredientCategory.VEGETABLES, "verduras": IngredientCategory.VEGETABLES,
    "frutas": IngredientCategory.FRUITS,
    "lácteos": IngredientCategory.DAIRY, "lacteos": IngredientCategory.DAIRY,
    "granos": IngredientCategory.GRAINS, "cereales": IngredientCategory.GRAINS,
    "especias": IngredientCategory.SPICES, "condimentos": IngredientCategory.SPICES,
    "aceites": IngredientCategory.OILS, "grasas": IngredientCategory.OILS,
}


# ------------------ Value mapping ------------------


def map_plan_status(value: Optional[str]) -> str:
    """Legacy plan status to the new status; unknown values become ``borrador``."""
    return STATUS_MAP.get((value or "").strip().lower(), PlanStatus.DRAFT.value)


def map_recipe_category(dish_type: Optional[str]) -> str:
    return RECIPE_CATEGORY_MAP.get((dish_type or "").strip().lower(), RecipeCategory.MAIN.value)


def map_unit(unit: Optional[str]) -> str:
    return UNIT_MAP.get((unit or "").strip().lower(), Unit.G).value


def map_ingredient_category(category: Optional[str]) -> str:
    return INGREDIENT_CATEGORY_MAP.get(
        (category or "").strip().lower(), IngredientCategory.OTHER
    ).value


def date_for_weekday(start: datetime, weekday: str) -> datetime:
    """First date on or after ``start`` that falls on ``weekday``."""
    target = Weekday(weekday).index
    return start + timedelta(days=(target - start.weekday()) % 7)


# ------------------ Record builders ------------------


def build_meal_entry(recipe_id: str, row: LegacyPlanRecipe, base_portions: int) -> MealEntry:
    custom = None
    if row.portion_adjustment:
        custom = max(1, base_portions + row.portion_adjustment)
    return MealEntry(
        recipe_id=recipe_id,
        custom_portions=custom,
        modifications={"notas": row.notes} if row.notes else {},
    )


def build_plan_from_legacy(
    plan: LegacyPlan,
    rows: List[LegacyPlanRecipe],
    recipe_map: Dict[int, str],
    client_id: str,
    now: Optional[datetime] = None,
) -> MealPlan:
    """
    Reshape one legacy plan and its plan-recipe rows into an embedded plan.

    Raises:
        LegacyDataError: a row has an unknown weekday or none of its recipe
            ids resolves to a migrated recipe
    """
    start = plan.start_date or now or datetime.now(timezone.utc)
    end = plan.end_date or start + timedelta(days=DEFAULT_PLAN_DAYS)
    portions = plan.portions if plan.portions and plan.portions >= 1 else DEFAULT_PORTIONS

    days: Dict[str, PlanDay] = {}
    for row in rows:
        weekday = row.weekday
        if weekday not in {w.value for w in Weekday}:
            raise LegacyDataError(f"row {row.id}: unknown weekday '{row.weekday}'")
        day = days.get(weekday)
        if day is None:
            day = PlanDay(date=date_for_weekday(start, weekday))
            days[weekday] = day

        if row.meal_type == LegacyMealType.LUNCH.value:
            slots = dict(zip(("comida.sopa", "comida.principal", "comida.guarnicion"), row.course_ids()))
        else:
            slot = {
                LegacyMealType.BREAKFAST.value: "desayuno",
                LegacyMealType.DINNER.value: "cena",
            }.get(row.meal_type, "almuerzo")
            slots = {slot: row.single_recipe_id()}

        wanted = {slot: legacy for slot, legacy in slots.items() if legacy is not None}
        resolved = {
            slot: recipe_map[legacy] for slot, legacy in wanted.items() if legacy in recipe_map
        }
        if not resolved:
            ids = ", ".join(str(v) for v in wanted.values()) or "none"
            raise LegacyDataError(
                f"row {row.id} ({weekday}/{row.meal_type}): no migrated recipe for ids {ids}"
            )
        for slot, legacy in wanted.items():
            if slot not in resolved:
                logger.warning(
                    f"Plan '{plan.name}': dropped {weekday} {slot}, recipe {legacy} not migrated"
                )
        for slot, recipe_id in resolved.items():
            day.meals.set(slot, build_meal_entry(recipe_id, row, portions))

    return MealPlan(
        name=plan.name or "Plan Migrado",
        client_id=client_id,
        start_date=start,
        end_date=end,
        base_portions=portions,
        days=sorted(days.values(), key=lambda d: d.date),
        status=map_plan_status(plan.status),
        preferences={"evitarRepetirRecetas": True},
    )


def build_recipe_from_legacy(
    recipe: LegacyRecipe,
    catalog: Dict[str, LegacyIngredient],
    lines_by_recipe: Dict[int, List[LegacyIngredient]],
) -> Recipe:
    """Reshape one legacy recipe; ingredients are priced from the catalog by name."""
    portions = recipe.portions if recipe.portions and recipe.portions >= 1 else DEFAULT_PORTIONS

    raw_lines = [
        (ing.name, ing.unit, ing.total_quantity, ing.per_person) for ing in recipe.ingredients
    ]
    if not raw_lines and recipe.legacy_id is not None:
        raw_lines = [
            (row.display_name, row.unit, row.total_quantity, row.per_person)
            for row in lines_by_recipe.get(recipe.legacy_id, [])
        ]

    lines = []
    for name, unit, total, per_person in raw_lines:
        name = (name or "").strip().lower()
        if len(name) < 2:
            continue
        quantity = total or per_person * portions or 1
        entry = catalog.get(name)
        lines.append(
            IngredientLine(
                name=name,
                quantity=quantity,
                unit=map_unit(unit or (entry.unit if entry else None)),
                category=map_ingredient_category(entry.category if entry else None),
                unit_cost=(entry.price or 0) if entry else 0,
            )
        )
    if not lines:
        lines.append(
            IngredientLine(name=PLACEHOLDER_INGREDIENT, quantity=1, unit=Unit.PIECES)
        )

    name = (recipe.name or "").strip() or "Receta sin nombre"
    description = (recipe.description or "").strip()
    if len(description) < 10:
        description = description or "Sin descripción disponible"
        if len(description) < 10:
            description = f"{description} ({name})"

    tags = list(recipe.tags)
    if recipe.legacy_id is not None:
        tags.append(f"{MIGRATED_TAG_PREFIX}{recipe.legacy_id}")

    return Recipe(
        name=name,
        description=description[:1000],
        category=map_recipe_category(recipe.dish_type),
        ingredients=lines,
        base_portions=portions,
        source=recipe.source or "Migrado",
        tags=tags,
        legacy_id=recipe.legacy_id,
    )


# ------------------ Batch runner ------------------


@dataclass
class MigrationOptions:
    dry_run: bool = False
    backup: bool = True
    clear_new: bool = False


@dataclass
class MigrationReport:
    strategy: str
    dry_run: bool = False
    processed: int = 0
    created: List[str] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)
    backups: Dict[str, int] = field(default_factory=dict)
    status: Dict[str, Any] = field(default_factory=dict)

    def add_error(self, record_id: Any, name: Any, error: Exception) -> None:
        self.errors.append({"record": str(record_id), "name": name, "error": str(error)})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _describe(exc: Exception) -> Exception:
    if isinstance(exc, ValidationError):
        return ServiceValidationError.from_validation_error(exc)
    return exc


class LegacyMigrator:
    STRATEGIES = ("basic", "fresh", "sample", "status")

    def __init__(
        self,
        legacy: LegacyRepository,
        recipes: RecipeRepository,
        recipe_service: RecipeService,
        meal_plans: MealPlanService,
        default_client_id: Optional[str] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.legacy = legacy
        self.recipes = recipes
        self.recipe_service = recipe_service
        self.meal_plans = meal_plans
        self.default_client_id = default_client_id
        self.clock = clock

    @classmethod
    def for_database(cls, db, settings) -> "LegacyMigrator":
        """Wire repositories and services on ``db`` using collection names from settings"""
        recipes = RecipeRepository(db, settings.recipes_collection)
        meal_plans = MealPlanService(
            MealPlanRepository(db, settings.meal_plans_collection),
            recipes,
            ClientRepository(db, settings.clients_collection),
        )
        legacy = LegacyRepository(
            db,
            plans_collection=settings.legacy_plans_collection,
            plan_recipes_collection=settings.legacy_plan_recipes_collection,
            recipes_collection=settings.legacy_recipes_collection,
            ingredients_collection=settings.legacy_ingredients_collection,
        )
        return cls(
            legacy,
            recipes,
            RecipeService(recipes),
            meal_plans,
            default_client_id=settings.migration_default_client_id,
        )

    def _client_id(self) -> str:
        # legacy plans reference clients by number; without a mapping they get a placeholder
        return self.default_client_id or str(ObjectId())

    async def run(self, strategy: str, options: Optional[MigrationOptions] = None) -> MigrationReport:
        options = options or MigrationOptions()
        if strategy == "basic":
            return await self.migrate_plans(options)
        if strategy == "fresh":
            return await self.seed_sample_plans(options)
        if strategy in ("sample", "status"):
            return await self.status()
        raise ValueError(f"Unknown migration strategy '{strategy}'")

    async def _prepare(self, options: MigrationOptions, report: MigrationReport, sources: List[str], target) -> None:
        if options.dry_run:
            return
        if options.backup:
            report.backups = await self.legacy.backup(sources, str(int(time.time() * 1000)))
        if options.clear_new:
            deleted = await target.delete_many({})
            logger.info(f"Cleared {deleted} documents from {target.collection_name}")

    async def migrate_recipes(self, options: Optional[MigrationOptions] = None) -> MigrationReport:
        options = options or MigrationOptions()
        report = MigrationReport(strategy="recipes", dry_run=options.dry_run)
        await self._prepare(options, report, [self.legacy.recipes_collection], self.recipes)

        ingredients = await self.legacy.all_ingredients()
        catalog: Dict[str, LegacyIngredient] = {}
        lines_by_recipe: Dict[int, List[LegacyIngredient]] = {}
        for ing in ingredients:
            if ing.display_name and ing.display_name not in catalog:
                catalog[ing.display_name] = ing
            if ing.recipe_id is not None:
                lines_by_recipe.setdefault(ing.recipe_id, []).append(ing)

        for doc in await self.legacy.raw_recipes():
            name = doc.get("nombre")
            try:
                recipe = build_recipe_from_legacy(
                    LegacyRecipe.model_validate(doc), catalog, lines_by_recipe
                )
                if options.dry_run:
                    report.processed += 1
                    logger.info(f"Would migrate recipe: {recipe.name} ({len(recipe.ingredients)} ingredients)")
                    continue
                saved = await self.recipe_service.save(recipe)
                report.processed += 1
                report.created.append(saved.id)
                logger.info(f"Migrated recipe: {saved.name} ({len(saved.ingredients)} ingredients)")
            except (LegacyDataError, ValidationError, ServiceValidationError, ValueError) as exc:
                report.add_error(doc.get("_id"), name, _describe(exc))
                logger.error(f"Error migrating recipe {name}: {_describe(exc)}")
            except Exception as exc:
                report.add_error(doc.get("_id"), name, exc)
                logger.exception(f"Unexpected error migrating recipe {name}: {exc}")

        self._log_summary(report)
        return report

    async def migrate_plans(self, options: Optional[MigrationOptions] = None) -> MigrationReport:
        """``basic`` strategy: legacy plans and their rows to embedded meal plans."""
        options = options or MigrationOptions()
        report = MigrationReport(strategy="basic", dry_run=options.dry_run)
        await self._prepare(
            options,
            report,
            [self.legacy.plans_collection, self.legacy.plan_recipes_collection],
            self.meal_plans.plans,
        )

        recipe_map = await self.recipes.legacy_id_map()
        rows_by_plan: Dict[str, List[Dict[str, Any]]] = {}
        for row in await self.legacy.raw_plan_recipes():
            if row.get("idPlan") is not None:
                rows_by_plan.setdefault(str(row["idPlan"]), []).append(row)
        logger.info(f"{len(recipe_map)} migrated recipes available for plan rows")

        for doc in await self.legacy.raw_plans():
            name = doc.get("nombrePlan")
            try:
                plan = LegacyPlan.model_validate(doc)
                raw_rows = rows_by_plan.get(plan.id, [])
                if plan.legacy_id is not None:
                    raw_rows = raw_rows + rows_by_plan.get(str(plan.legacy_id), [])
                rows = [LegacyPlanRecipe.model_validate(r) for r in raw_rows]
                new_plan = build_plan_from_legacy(
                    plan, rows, recipe_map, self._client_id(), now=self.clock()
                )
                if options.dry_run:
                    report.processed += 1
                    logger.info(f"Would migrate plan: {new_plan.name} ({len(new_plan.days)} days, {len(rows)} rows)")
                    continue
                saved = await self.meal_plans.save(new_plan)
                report.processed += 1
                report.created.append(saved.id)
                logger.info(f"Migrated plan: {saved.name} ({len(saved.days)} days)")
            except (LegacyDataError, ValidationError, ServiceValidationError, ValueError) as exc:
                report.add_error(doc.get("_id"), name, _describe(exc))
                logger.error(f"Error migrating plan {name}: {_describe(exc)}")
            except Exception as exc:
                report.add_error(doc.get("_id"), name, exc)
                logger.exception(f"Unexpected error migrating plan {name}: {exc}")

        self._log_summary(report)
        return report

    async def seed_sample_plans(self, options: Optional[MigrationOptions] = None) -> MigrationReport:
        """``fresh`` strategy: a sample weekly plan built from existing recipes."""
        options = options or MigrationOptions(backup=False)
        report = MigrationReport(strategy="fresh", dry_run=options.dry_run)
        if options.clear_new and not options.dry_run:
            await self.meal_plans.plans.delete_many({})

        recipes = await self.recipes.find({}, limit=10)
        if not recipes:
            report.add_error("-", None, LegacyDataError("No migrated recipes found; run the recipe migration first"))
            self._log_summary(report)
            return report

        def entry(i: int) -> Optional[Dict[str, Any]]:
            return {"recetaId": recipes[i].id} if i < len(recipes) else None

        start = self.clock().replace(hour=0, minute=0, second=0, microsecond=0)
        plan = MealPlan(
            name="Plan Semanal Básico",
            client_id=self._client_id(),
            start_date=start,
            end_date=start + timedelta(days=DEFAULT_PLAN_DAYS),
            base_portions=DEFAULT_PORTIONS,
            status=PlanStatus.ACTIVE,
            days=[
                {
                    "fecha": start,
                    "comidas": {
                        "desayuno": entry(0),
                        "comida": {"sopa": entry(1), "principal": entry(2), "guarnicion": entry(3)},
                        "cena": entry(4),
                    },
                }
            ],
        )
        if not options.dry_run:
            saved = await self.meal_plans.save(plan)
            report.created.append(saved.id)
        report.processed = 1
        self._log_summary(report)
        return report

    async def status(self) -> MigrationReport:
        """Read-only overview of legacy and migrated data."""
        report = MigrationReport(strategy="status", dry_run=True)
        plans, total = await self.meal_plans.list_plans(page_size=5)
        report.status = {
            "mealPlans": total,
            "recentPlans": [
                {"nombre": p.name, "dias": len(p.days), "estado": p.status} for p in plans
            ],
            "recipes": await self.recipes.count(),
            **await self.legacy.counts(),
        }
        return report

    def _log_summary(self, report: MigrationReport) -> None:
        logger.info(
            f"Migration '{report.strategy}' finished: {report.processed} processed, "
            f"{len(report.created)} written, {len(report.errors)} errors"
            + (" (dry run)" if report.dry_run else "")
        )
        for error in report.errors:
            logger.info(f"  - {error['name']}: {error['error']}")
