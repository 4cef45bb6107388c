"""
Tests for the meal plan aggregate and the meal plan service.

Fixture plan used by most tests (porcionesBase = 4):
====================================================
Recipes (4 portions each)
  - Sopa de tomate: 400 g tomate at 0.01  -> 4.00 total, 1.00 per portion,
                    50 kcal per portion
  - Pollo asado:   1000 g pollo at 0.10  -> 100.00 total, 25.00 per portion,
                    500 kcal per portion

Day 0 (lunes 2026-01-05)
  - comida.sopa:      Sopa de tomate          -> 1.00 * 4  =  4.00
  - comida.principal: Pollo asado, 2 portions -> 25.00 * 2 = 50.00
  costoEstimadoDia = 54.00, calorias = 550
Day 1 (martes 2026-01-06)
  - cena: Pollo asado                         -> 25.00 * 4 = 100.00
  costoEstimadoDia = 100.00, calorias = 500

resumen: 3 recipes, 154.00 total, 77.00 per day, 525 kcal per day
"""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from test_fixtures import (
    InMemoryClientRepository,
    InMemoryMealPlanRepository,
    InMemoryRecipeRepository,
    entry,
    make_client,
    make_plan,
    make_plan_payload,
    make_recipe,
    new_id,
)
from app.exceptions import ConflictError, NotFoundError, ServiceValidationError
from domain.models import MealPlan, PlanDay
from services.client_service import ClientService
from services.meal_plan_service import (
    MealPlanService,
    apply_day_completion,
    build_plan,
    compute_daily_totals,
    instantiate_template,
    make_template,
    mark_meal_prepared,
    recompute_summary,
)


@pytest.fixture
def recipes():
    repo = InMemoryRecipeRepository()
    soup = repo.add(
        make_recipe(
            name="Sopa de tomate",
            ingredients=[
                {"nombre": "tomate", "cantidad": 400, "unidad": "g",
                 "costoUnitario": 0.01, "nutricion": {"calorias": 0.5}},
            ],
        )
    )
    main = repo.add(
        make_recipe(
            name="Pollo asado",
            category="plato-fuerte",
            ingredients=[
                {"nombre": "pollo", "cantidad": 1000, "unidad": "g",
                 "categoria": "proteina", "costoUnitario": 0.1,
                 "nutricion": {"calorias": 2}},
            ],
        )
    )
    repo.soup, repo.main = soup, main
    return repo


def two_days(recipes):
    return [
        {
            "fecha": "2026-01-05T00:00:00",
            "comidas": {
                "comida": {
                    "sopa": entry(recipes.soup.id),
                    "principal": entry(recipes.main.id, porcionesPersonalizadas=2),
                }
            },
        },
        {"fecha": "2026-01-06T00:00:00", "comidas": {"cena": entry(recipes.main.id)}},
    ]


@pytest.fixture
def services(recipes):
    plans = InMemoryMealPlanRepository()
    clients = InMemoryClientRepository()
    meal_plans = MealPlanService(plans, recipes, clients)
    return meal_plans, ClientService(clients, meal_plans)


# =============================================================================
# AGGREGATE VALIDATION
# =============================================================================


def test_weekday_is_derived_from_fecha():
    day = PlanDay.model_validate({"fecha": "2026-01-05T00:00:00"})
    assert day.weekday == "lunes"


def test_weekday_must_match_fecha():
    with pytest.raises(ValidationError):
        PlanDay.model_validate({"fecha": "2026-01-05T00:00:00", "diaSemana": "martes"})


def test_plan_requires_client_and_dates_unless_template():
    with pytest.raises(ValidationError):
        MealPlan.model_validate({"nombre": "Sin cliente"})

    template = MealPlan.model_validate({"nombre": "Plantilla", "esPlantilla": True})
    assert template.client_id is None


def test_plan_end_must_follow_start():
    with pytest.raises(ValidationError):
        make_plan(fechaFin="2026-01-01T00:00:00")


def test_naive_dates_are_read_as_utc_next_to_aware_ones():
    plan = make_plan(
        fechaInicio="2026-01-05T00:00:00Z",
        dias=[{"fecha": "2026-01-05T00:00:00"}],
    )

    assert plan.start_date == datetime(2026, 1, 5, tzinfo=timezone.utc)
    assert plan.end_date == datetime(2026, 1, 11, tzinfo=timezone.utc)
    assert plan.days[0].date.tzinfo is not None
    assert plan.days[0].weekday == "lunes"
    assert plan.duration_days == 7


def test_mixed_offsets_are_compared_in_utc():
    """
    Verifies:
    - an aware end date converted to UTC can fall before the start
    - the ordering failure is a field-level validation error, not a crash
    """
    payload = make_plan_payload(
        new_id(),
        fechaInicio="2026-01-11T00:00:00Z",
        fechaFin="2026-01-11T08:00:00+09:00",
    )

    with pytest.raises(ServiceValidationError):
        build_plan(payload)


def test_duration_days_is_inclusive():
    plan = make_plan()
    assert plan.duration_days == 7
    assert plan.to_document()["duracionDias"] == 7


def test_unknown_slot_is_rejected():
    plan = make_plan(days=[{"fecha": "2026-01-05T00:00:00"}])
    with pytest.raises(KeyError):
        plan.days[0].meals.get("merienda")


# =============================================================================
# DERIVED DATA
# =============================================================================


def test_daily_totals_and_summary(recipes):
    """
    Verifies:
    - daily cost uses costoPorPorcion times effective portions
    - daily nutrition adds per-portion values
    - summary totals and averages over days
    """
    plan = make_plan(days=two_days(recipes))
    by_id = {recipes.soup.id: recipes.soup, recipes.main.id: recipes.main}

    plan = recompute_summary(compute_daily_totals(plan, by_id))

    assert plan.days[0].estimated_cost == pytest.approx(54)
    assert plan.days[0].daily_nutrition.calories == pytest.approx(550)
    assert plan.days[1].estimated_cost == pytest.approx(100)
    assert plan.summary.total_recipes == 3
    assert plan.summary.total_estimated_cost == pytest.approx(154)
    assert plan.summary.average_daily_cost == pytest.approx(77)
    assert plan.summary.average_daily_nutrition.calories == pytest.approx(525)
    assert plan.summary.category_distribution.soups == 1
    assert plan.summary.category_distribution.mains == 2


def test_unresolved_recipes_contribute_nothing(recipes):
    plan = make_plan(days=two_days(recipes))
    plan = recompute_summary(compute_daily_totals(plan, {recipes.soup.id: recipes.soup}))

    assert plan.days[0].estimated_cost == pytest.approx(4)
    assert plan.days[1].estimated_cost == 0
    assert plan.summary.total_recipes == 3


def test_recompute_summary_is_idempotent(recipes):
    plan = make_plan(days=two_days(recipes))
    plan = compute_daily_totals(plan, {recipes.main.id: recipes.main})

    once = recompute_summary(plan)
    twice = recompute_summary(once)

    assert once.summary == twice.summary
    assert once.days == twice.days


def test_summary_of_empty_plan_is_zero():
    plan = recompute_summary(make_plan())
    assert plan.summary.total_recipes == 0
    assert plan.summary.average_daily_cost == 0


def test_summary_adds_prep_time_overrides(recipes):
    days = two_days(recipes)
    days[1]["comidas"]["cena"]["tiempoPreparacion"] = 40
    plan = recompute_summary(make_plan(days=days))
    assert plan.summary.total_prep_time == 40


def test_day_completion_follows_prepared_flags(recipes):
    plan = make_plan(days=two_days(recipes))
    plan = mark_meal_prepared(plan, 0, "comida.sopa")
    plan = mark_meal_prepared(plan, 1, "cena")

    plan = apply_day_completion(plan)

    assert plan.days[0].completion_pct == pytest.approx(50)
    assert plan.days[0].completed is False
    assert plan.days[1].completion_pct == pytest.approx(100)
    assert plan.days[1].completed is True


# =============================================================================
# MEAL TRACKING
# =============================================================================


def test_mark_meal_prepared_sets_timestamp_and_rating(recipes):
    plan = make_plan(days=two_days(recipes))
    updated = mark_meal_prepared(plan, 1, "cena", rating=5, comments="Muy rico")

    meal = updated.days[1].meals.dinner
    assert meal.prepared is True
    assert meal.prepared_at is not None
    assert meal.rating == 5
    assert plan.days[1].meals.dinner.prepared is False


def test_mark_meal_unprepared_clears_timestamp(recipes):
    plan = mark_meal_prepared(make_plan(days=two_days(recipes)), 1, "cena")
    plan = mark_meal_prepared(plan, 1, "cena", prepared=False)
    assert plan.days[1].meals.dinner.prepared_at is None


def test_mark_meal_errors(recipes):
    plan = make_plan(days=two_days(recipes))
    with pytest.raises(NotFoundError):
        mark_meal_prepared(plan, 5, "cena")
    with pytest.raises(NotFoundError):
        mark_meal_prepared(plan, 0, "desayuno")
    with pytest.raises(ServiceValidationError):
        mark_meal_prepared(plan, 0, "merienda")
    with pytest.raises(ServiceValidationError):
        mark_meal_prepared(plan, 1, "cena", rating=9)


# =============================================================================
# TEMPLATES
# =============================================================================


def test_make_template_strips_client_dates_and_tracking(recipes):
    plan = mark_meal_prepared(make_plan(days=two_days(recipes)), 1, "cena", rating=4)
    plan.id = "64b7f0c2a1b2c3d4e5f60718"

    template = make_template(plan, "Semana base")

    assert template.is_template is True
    assert template.client_id is None
    assert template.start_date is None
    assert template.template_origin == plan.id
    assert [d.date for d in template.days] == [None, None]
    assert [d.weekday for d in template.days] == ["lunes", "martes"]
    dinner = template.days[1].meals.dinner
    assert dinner.prepared is False
    assert dinner.rating is None


def test_instantiate_template_assigns_consecutive_dates(recipes):
    template = make_template(make_plan(days=two_days(recipes)), "Semana base")
    client = make_client()
    client.id = "64b7f0c2a1b2c3d4e5f60799"
    start = datetime(2026, 2, 4, 9, 30)  # miercoles

    plan = instantiate_template(template, client, start, base_portions=2)

    assert plan.is_template is False
    assert plan.client_id == client.id
    assert [d.date for d in plan.days] == [
        datetime(2026, 2, 4, tzinfo=timezone.utc),
        datetime(2026, 2, 5, tzinfo=timezone.utc),
    ]
    assert [d.weekday for d in plan.days] == ["miercoles", "jueves"]
    assert plan.end_date == datetime(2026, 2, 6, tzinfo=timezone.utc) - timedelta(seconds=1)
    assert plan.base_portions == 2
    assert plan.client_snapshot is not None


def test_instantiate_requires_template(recipes):
    with pytest.raises(ServiceValidationError):
        instantiate_template(make_plan(days=two_days(recipes)), make_client(), datetime(2026, 2, 2))


# =============================================================================
# SERVICE
# =============================================================================


@pytest.mark.anyio
async def test_create_snapshots_client_and_defaults_portions(services, recipes):
    """
    Verifies:
    - the client's preferences are copied onto the plan
    - porcionesBase defaults to the household's recommended portions
    - referenced recipes get their usage counter bumped
    """
    meal_plans, clients = services
    client = await clients.create(
        make_client(adults=2, children=1).model_dump(by_alias=True, mode="json", exclude={"id"})
    )
    payload = make_plan_payload(client.id, two_days(recipes))
    del payload["porcionesBase"]

    plan = await meal_plans.create(payload)

    assert plan.base_portions == 3
    assert plan.client_snapshot.household.children == 1
    assert plan.summary.total_recipes == 3
    assert recipes.docs[recipes.main.id]["vecesUsada"] == 1
    assert recipes.docs[recipes.soup.id]["vecesUsada"] == 1


@pytest.mark.anyio
async def test_create_rejects_plans_without_days_or_meals(services, recipes):
    meal_plans, clients = services
    client = await clients.create({"nombre": "Ana", "email": "ana@example.com"})

    with pytest.raises(ServiceValidationError):
        await meal_plans.create(make_plan_payload(client.id, []))
    with pytest.raises(ServiceValidationError):
        await meal_plans.create(make_plan_payload(client.id, [{"fecha": "2026-01-05T00:00:00"}]))


@pytest.mark.anyio
async def test_create_with_unknown_client_raises_not_found(services, recipes):
    meal_plans, _ = services
    with pytest.raises(NotFoundError):
        await meal_plans.create(make_plan_payload("64b7f0c2a1b2c3d4e5f60718", two_days(recipes)))


@pytest.mark.anyio
async def test_create_with_invalid_payload_is_a_validation_error(services):
    meal_plans, _ = services
    with pytest.raises(ServiceValidationError):
        await meal_plans.create({"nombre": "Sin fechas", "clienteId": "x"})


@pytest.mark.anyio
async def test_update_recomputes_summary_and_keeps_shopping_list(services, recipes):
    meal_plans, clients = services
    client = await clients.create({"nombre": "Ana", "email": "ana@example.com"})
    plan = await meal_plans.create(make_plan_payload(client.id, two_days(recipes)))
    plan = await meal_plans.regenerate_shopping_list(plan.id)
    assert plan.shopping_list

    payload = make_plan_payload(client.id, two_days(recipes)[:1])
    updated = await meal_plans.update(plan.id, payload)

    assert updated.summary.total_recipes == 2
    assert updated.summary.total_estimated_cost == pytest.approx(54)
    assert len(updated.shopping_list) == len(plan.shopping_list)


@pytest.mark.anyio
async def test_mark_meal_persists_completion(services, recipes):
    meal_plans, clients = services
    client = await clients.create({"nombre": "Ana", "email": "ana@example.com"})
    plan = await meal_plans.create(make_plan_payload(client.id, two_days(recipes)))

    updated = await meal_plans.mark_meal(plan.id, 1, "cena", rating=4)

    assert updated.days[1].completed is True
    stored = await meal_plans.get(plan.id)
    assert stored.days[1].meals.dinner.rating == 4


@pytest.mark.anyio
async def test_template_round_trip_through_service(services, recipes):
    meal_plans, clients = services
    client = await clients.create({"nombre": "Ana", "email": "ana@example.com"})
    plan = await meal_plans.create(make_plan_payload(client.id, two_days(recipes)))

    template = await meal_plans.create_template(plan.id)
    assert template.name == "Plantilla - Plan semanal"

    new_plan = await meal_plans.instantiate(template.id, client.id, datetime(2026, 3, 2))

    assert new_plan.id != plan.id
    assert new_plan.template_origin == template.id
    assert new_plan.summary.total_estimated_cost == pytest.approx(154)
    assert (await meal_plans.get(template.id)).times_used == 1


@pytest.mark.anyio
async def test_delete_missing_plan_raises_not_found(services):
    meal_plans, _ = services
    with pytest.raises(NotFoundError):
        await meal_plans.delete("64b7f0c2a1b2c3d4e5f60718")


# =============================================================================
# CLIENT CHANGES
# =============================================================================


@pytest.mark.anyio
async def test_client_update_refreshes_active_plan_snapshots(services, recipes):
    meal_plans, clients = services
    client = await clients.create({"nombre": "Ana", "email": "ana@example.com"})
    plan = await meal_plans.create(make_plan_payload(client.id, two_days(recipes)))

    await clients.update(
        client.id,
        {
            "nombre": "Ana",
            "email": "ana@example.com",
            "miembrosHogar": {"adultos": 4},
            "preferenciasDieteticas": {"restricciones": [{"tipo": "vegetariano"}]},
        },
    )

    stored = await meal_plans.get(plan.id)
    assert stored.client_snapshot.household.adults == 4
    assert stored.client_snapshot.restrictions[0].kind == "vegetariano"


@pytest.mark.anyio
async def test_duplicate_client_email_conflicts(services):
    _, clients = services
    await clients.create({"nombre": "Ana", "email": "ana@example.com"})
    with pytest.raises(ConflictError):
        await clients.create({"nombre": "Otra Ana", "email": "ANA@example.com"})
