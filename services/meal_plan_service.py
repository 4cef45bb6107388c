"""
Meal plan service.

Derived plan data (day completion, daily totals, summary) is computed by
pure functions and applied by ``MealPlanService.save`` right before every
write, so callers never persist a stale summary.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from app.exceptions import NotFoundError, ServiceValidationError
from domain.enums import PlanStatus, RecipeCategory
from domain.models import (
    DAILY_NUTRIENTS,
    Client,
    DayNutrition,
    MealPlan,
    PlanSummary,
    Recipe,
)
from domain.models.base import as_utc
from domain.models.meal_plan import CategoryDistribution
from repositories import ClientRepository, MealPlanRepository, RecipeRepository
from services.shopping_service import generate_shopping_list, merge_shopping_list

logger = logging.getLogger("recipemanager.meal_plans")

# Stored fields computed by the service, never taken from a request body
DERIVED_FIELDS = (
    "_id",
    "id",
    "resumen",
    "listaCompras",
    "preferenciasCliente",
    "ultimaActividad",
    "vecesUsado",
    "createdAt",
    "updatedAt",
)

CATEGORY_BUCKETS = {
    RecipeCategory.SOUP.value: "soups",
    RecipeCategory.MAIN.value: "mains",
    RecipeCategory.SIDE.value: "sides",
    RecipeCategory.DESSERT.value: "desserts",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ------------------ Pure computations ------------------


def apply_day_completion(plan: MealPlan) -> MealPlan:
    """Completion percentage and flag per day from the ``preparado`` flags."""
    plan = plan.model_copy(deep=True)
    for day in plan.days:
        entries = [entry for _, entry in day.meals.entries()]
        prepared = sum(1 for entry in entries if entry.prepared)
        day.completion_pct = round(prepared / len(entries) * 100, 2) if entries else 0
        day.completed = bool(entries) and prepared == len(entries)
    return plan


def compute_daily_totals(plan: MealPlan, recipes: Dict[str, Recipe]) -> MealPlan:
    """
    Fill ``costoEstimadoDia``, ``nutricionDiaria`` and the category distribution
    from the referenced recipes.

    Cost is ``costoPorPorcion * effective portions``; nutrition is the recipe's
    per-portion value (one person's intake). Unresolved recipes contribute nothing.
    """
    plan = plan.model_copy(deep=True)
    distribution = dict.fromkeys(CATEGORY_BUCKETS.values(), 0)

    for day in plan.days:
        cost = 0.0
        nutrition = dict.fromkeys(DAILY_NUTRIENTS, 0.0)
        for _, entry in day.meals.entries():
            recipe = recipes.get(entry.recipe_id)
            if recipe is None:
                continue
            portions = entry.custom_portions or plan.base_portions
            cost += recipe.cost_per_portion * portions
            for nutrient in DAILY_NUTRIENTS:
                nutrition[nutrient] += getattr(recipe.nutrition_per_portion, nutrient)
            bucket = CATEGORY_BUCKETS.get(recipe.category)
            if bucket:
                distribution[bucket] += 1
        day.estimated_cost = round(cost, 2)
        day.daily_nutrition = DayNutrition(
            **{n: round(v, 2) for n, v in nutrition.items()}
        )

    plan.summary = plan.summary.model_copy(
        update={"category_distribution": CategoryDistribution(**distribution)}
    )
    return plan


def recompute_summary(plan: MealPlan) -> MealPlan:
    """
    Return a copy of ``plan`` with day completion and ``resumen`` recomputed
    from the embedded days. Idempotent: applying it twice gives the same result.
    """
    plan = apply_day_completion(plan)
    num_days = len(plan.days)

    total_recipes = 0
    total_cost = 0.0
    prep_time = 0
    nutrition = dict.fromkeys(DAILY_NUTRIENTS, 0.0)

    for day in plan.days:
        total_cost += day.estimated_cost
        for nutrient in DAILY_NUTRIENTS:
            nutrition[nutrient] += getattr(day.daily_nutrition, nutrient)
        for _, entry in day.meals.entries():
            total_recipes += 1
            prep_time += entry.prep_time or 0

    plan.summary = PlanSummary(
        total_recipes=total_recipes,
        total_estimated_cost=round(total_cost, 2),
        average_daily_cost=round(total_cost / num_days, 2) if num_days else 0,
        total_prep_time=prep_time,
        average_daily_nutrition=DayNutrition(
            **{
                n: round(v / num_days, 2) if num_days else 0
                for n, v in nutrition.items()
            }
        ),
        category_distribution=plan.summary.category_distribution,
    )
    return plan


def make_template(plan: MealPlan, name: str) -> MealPlan:
    """Copy ``plan`` as a reusable template without client, dates or tracking data."""
    data = plan.model_dump()
    for key in ("id", "client_id", "created_at", "updated_at", "last_activity",
                "start_date", "end_date", "client_snapshot", "rating", "comments"):
        data[key] = None
    data.update(
        name=name,
        is_template=True,
        status=PlanStatus.DRAFT.value,
        template_origin=plan.id,
        times_used=0,
        shopping_list=[],
        shared=False,
        shared_with=[],
    )
    for day in data["days"]:
        day.update(date=None, completed=False, completion_pct=0)
        _reset_meals(day["meals"])
    return MealPlan.model_validate(data)


def _reset_meals(meals: Dict[str, Any]) -> None:
    entries = [meals.get("breakfast"), meals.get("lunch"), meals.get("dinner")]
    entries += list((meals.get("courses") or {}).values())
    entries += meals.get("snacks") or []
    for entry in entries:
        if entry:
            entry.update(prepared=False, prepared_at=None, rating=None, comments=None)


def instantiate_template(
    template: MealPlan,
    client: Client,
    start_date: datetime,
    name: Optional[str] = None,
    base_portions: Optional[int] = None,
) -> MealPlan:
    """New plan for ``client`` from a template; days get consecutive dates from ``start_date``."""
    if not template.is_template:
        raise ServiceValidationError.for_field("esPlantilla", "plan is not a template")
    if not template.days:
        raise ServiceValidationError.for_field("dias", "template has no days")

    data = template.model_dump()
    for key in ("id", "created_at", "updated_at", "last_activity"):
        data[key] = None
    start = as_utc(start_date).replace(hour=0, minute=0, second=0, microsecond=0)
    for offset, day in enumerate(data["days"]):
        day["date"] = start + timedelta(days=offset)
        # weekday is derived again from the new date
        day.pop("weekday")
    data.update(
        name=name or template.name,
        client_id=client.id,
        client_snapshot=client.snapshot().model_dump(),
        start_date=start,
        end_date=start + timedelta(days=len(data["days"])) - timedelta(seconds=1),
        base_portions=base_portions or template.base_portions,
        is_template=False,
        template_origin=template.id,
        status=PlanStatus.DRAFT.value,
        times_used=0,
    )
    try:
        return MealPlan.model_validate(data)
    except ValidationError as exc:
        raise ServiceValidationError.from_validation_error(exc) from exc


def mark_meal_prepared(
    plan: MealPlan,
    day_index: int,
    slot: str,
    prepared: bool = True,
    rating: Optional[int] = None,
    comments: Optional[str] = None,
) -> MealPlan:
    """Flag the meal at ``dias[day_index]`` / ``slot`` as prepared (or not)."""
    if day_index < 0 or day_index >= len(plan.days):
        raise NotFoundError(f"Day {day_index} not found in plan {plan.id}")
    plan = plan.model_copy(deep=True)
    meals = plan.days[day_index].meals
    try:
        entry = meals.get(slot)
    except KeyError:
        raise ServiceValidationError.for_field("slot", f"unknown meal slot '{slot}'") from None
    if entry is None:
        raise NotFoundError(f"No meal in slot '{slot}' of day {day_index}")

    try:
        entry.prepared = prepared
        entry.prepared_at = _utcnow() if prepared else None
        if rating is not None:
            entry.rating = rating
        if comments is not None:
            entry.comments = comments
    except ValidationError as exc:
        raise ServiceValidationError.from_validation_error(exc) from exc
    return plan


def build_plan(payload: Dict[str, Any]) -> MealPlan:
    clean = {k: v for k, v in payload.items() if k not in DERIVED_FIELDS}
    try:
        return MealPlan.model_validate(clean)
    except ValidationError as exc:
        raise ServiceValidationError.from_validation_error(exc) from exc


# ------------------ Service ------------------


class MealPlanService:
    """Meal plan use cases; every write goes through ``save``."""

    def __init__(
        self,
        plans: MealPlanRepository,
        recipes: RecipeRepository,
        clients: ClientRepository,
    ):
        self.plans = plans
        self.recipes = recipes
        self.clients = clients

    async def save(self, plan: MealPlan) -> MealPlan:
        """Recompute derived data from the referenced recipes, then persist."""
        recipe_ids = [entry.recipe_id for _, _, entry in plan.meal_entries()]
        recipes = await self.recipes.get_many(recipe_ids)
        plan = recompute_summary(compute_daily_totals(plan, recipes))
        plan.last_activity = _utcnow()
        if plan.id is None:
            return await self.plans.insert(plan)
        return await self.plans.replace(plan)

    async def get(self, plan_id: str) -> MealPlan:
        plan = await self.plans.get_by_id(plan_id)
        if plan is None:
            raise NotFoundError(f"Meal plan {plan_id} not found")
        return plan

    async def _client(self, client_id: str) -> Client:
        client = await self.clients.get_by_id(client_id)
        if client is None:
            raise NotFoundError(f"Client {client_id} not found")
        return client

    async def create(self, payload: Dict[str, Any]) -> MealPlan:
        plan = build_plan(payload)
        if not plan.is_template and not plan.days:
            raise ServiceValidationError.for_field("dias", "a meal plan needs at least one day")
        if plan.client_id:
            client = await self._client(plan.client_id)
            plan.client_snapshot = client.snapshot()
            if "porcionesBase" not in payload and "base_portions" not in payload:
                plan.base_portions = max(1, round(client.recommended_portions()))
        if plan.days and not any(True for _ in plan.meal_entries()):
            raise ServiceValidationError.for_field("dias", "a meal plan needs at least one meal")
        saved = await self.save(plan)
        await self.recipes.mark_used([e.recipe_id for _, _, e in saved.meal_entries()])
        logger.info(f"Created meal plan {saved.id} '{saved.name}' ({len(saved.days)} days)")
        return saved

    async def update(self, plan_id: str, payload: Dict[str, Any]) -> MealPlan:
        """Replace the authored fields; shopping list and template usage are kept."""
        current = await self.get(plan_id)
        plan = build_plan(payload)
        plan = plan.model_copy(
            update={
                "id": current.id,
                "created_at": current.created_at,
                "shopping_list": current.shopping_list,
                "times_used": current.times_used,
                "client_snapshot": current.client_snapshot,
            }
        )
        if plan.client_id and plan.client_id != current.client_id:
            plan.client_snapshot = (await self._client(plan.client_id)).snapshot()
        saved = await self.save(plan)
        logger.info(f"Updated meal plan {plan_id}")
        return saved

    async def delete(self, plan_id: str) -> None:
        if not await self.plans.delete(plan_id):
            raise NotFoundError(f"Meal plan {plan_id} not found")
        logger.info(f"Deleted meal plan {plan_id}")

    async def list_plans(
        self,
        client_id: Optional[str] = None,
        status: Optional[str] = None,
        is_template: Optional[bool] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Tuple[List[MealPlan], int]:
        return await self.plans.list_plans(
            client_id=client_id,
            status=status,
            is_template=is_template,
            skip=(page - 1) * page_size,
            limit=page_size,
        )

    async def status_stats(self) -> List[Dict[str, Any]]:
        return await self.plans.status_stats()

    async def regenerate_shopping_list(self, plan_id: str) -> MealPlan:
        plan = await self.get(plan_id)
        generated = await generate_shopping_list(plan, self.recipes.get_by_id)
        plan.shopping_list = merge_shopping_list(plan.shopping_list, generated)
        return await self.save(plan)

    async def update_shopping_items(
        self, plan_id: str, updates: List[Dict[str, Any]]
    ) -> MealPlan:
        """
        Record purchases on shopping items identified by ``(ingrediente, unidad)``.

        Each update may set ``comprado``, ``costoReal``, ``prioridad`` and
        ``seccionSupermercado``; marking an item purchased stamps ``fechaCompra``.
        """
        plan = await self.get(plan_id)
        items = {item.key: item for item in plan.shopping_list}
        for update in updates:
            key = (str(update["ingrediente"]).strip().lower(), update["unidad"])
            item = items.get(key)
            if item is None:
                raise NotFoundError(
                    f"Shopping item '{key[0]}' ({key[1]}) not found in plan {plan_id}"
                )
            try:
                if update.get("comprado") is not None:
                    item.purchased = update["comprado"]
                    item.purchased_at = _utcnow() if item.purchased else None
                if update.get("costoReal") is not None:
                    item.actual_cost = update["costoReal"]
                if update.get("prioridad") is not None:
                    item.priority = update["prioridad"]
                if update.get("seccionSupermercado") is not None:
                    item.section = update["seccionSupermercado"]
            except ValidationError as exc:
                raise ServiceValidationError.from_validation_error(exc) from exc
        return await self.save(plan)

    async def mark_meal(
        self,
        plan_id: str,
        day_index: int,
        slot: str,
        prepared: bool = True,
        rating: Optional[int] = None,
        comments: Optional[str] = None,
    ) -> MealPlan:
        plan = await self.get(plan_id)
        plan = mark_meal_prepared(plan, day_index, slot, prepared, rating, comments)
        return await self.save(plan)

    async def create_template(self, plan_id: str, name: Optional[str] = None) -> MealPlan:
        plan = await self.get(plan_id)
        template = make_template(plan, name or f"Plantilla - {plan.name}")
        saved = await self.save(template)
        logger.info(f"Created template {saved.id} from plan {plan_id}")
        return saved

    async def instantiate(
        self,
        template_id: str,
        client_id: str,
        start_date: datetime,
        name: Optional[str] = None,
        base_portions: Optional[int] = None,
    ) -> MealPlan:
        template = await self.get(template_id)
        client = await self._client(client_id)
        plan = instantiate_template(template, client, start_date, name, base_portions)
        saved = await self.save(plan)
        await self.plans.increment_usage(template_id)
        logger.info(f"Instantiated template {template_id} as plan {saved.id}")
        return saved

    async def refresh_client_snapshot(self, client: Client) -> int:
        """Copy the client's current preferences into each of their active plans."""
        plans = await self.plans.active_for_client(client.id)
        snapshot = client.snapshot()
        for plan in plans:
            plan.client_snapshot = snapshot
            await self.save(plan)
        if plans:
            logger.info(f"Refreshed client snapshot on {len(plans)} plans of {client.id}")
        return len(plans)
