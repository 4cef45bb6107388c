"""
Tests for recipe derived fields, scaling and the recipe service.

Derived fields are never authored by clients: cost and nutrition are
recomputed from the ingredient lines every time a recipe is saved.

Worked example used below:
==========================
Recipe "Sopa de tomate" (4 portions)
  - tomate: 500 g at 0.05 per g     -> 25.00
  - cebolla: 2 piezas at 5 per pieza -> 10.00
  costoTotal      = 35.00
  costoPorPorcion = 35.00 / 4 = 8.75
"""

import pytest

from test_fixtures import InMemoryRecipeRepository, make_recipe
from app.exceptions import NotFoundError, ServiceValidationError
from domain.models import Recipe
from services.recipe_service import (
    RecipeService,
    build_recipe,
    recompute_recipe_derived_fields,
    scale_recipe,
)


def soup_payload(**overrides):
    payload = {
        "nombre": "Sopa de tomate",
        "descripcion": "Sopa casera de tomate asado",
        "categoria": "sopa",
        "porcionesBase": 4,
        "tiempoPreparacion": 15,
        "tiempoCoccion": 30,
        "ingredientes": [
            {
                "nombre": "Tomate",
                "cantidad": 500,
                "unidad": "g",
                "categoria": "vegetales",
                "costoUnitario": 0.05,
                "nutricion": {"calorias": 0.2, "fibra": 0.01},
            },
            {"nombre": "cebolla", "cantidad": 2, "unidad": "piezas", "costoUnitario": 5},
        ],
    }
    payload.update(overrides)
    return payload


# =============================================================================
# DERIVED FIELDS
# =============================================================================


def test_derived_cost_from_ingredient_lines():
    """
    Verifies:
    - costoTotal is the sum of costoUnitario * cantidad
    - costoPorPorcion divides by porcionesBase
    """
    recipe = recompute_recipe_derived_fields(build_recipe(soup_payload()))

    assert recipe.total_cost == pytest.approx(35)
    assert recipe.cost_per_portion == pytest.approx(8.75)


def test_derived_nutrition_skips_lines_without_nutrition():
    """Lines without nutrition contribute zero; per portion divides by porcionesBase."""
    recipe = recompute_recipe_derived_fields(build_recipe(soup_payload()))

    assert recipe.nutrition_total.calories == pytest.approx(100)
    assert recipe.nutrition_total.fiber == pytest.approx(5)
    assert recipe.nutrition_per_portion.calories == pytest.approx(25)
    assert recipe.nutrition_total.protein == 0


def test_recompute_does_not_modify_input():
    recipe = build_recipe(soup_payload())
    recompute_recipe_derived_fields(recipe)
    assert recipe.total_cost == 0


def test_total_time_is_serialized():
    recipe = build_recipe(soup_payload())
    assert recipe.total_time == 45
    assert recipe.to_document()["tiempoTotal"] == 45


def test_ingredient_names_are_normalized_and_category_defaults():
    recipe = build_recipe(soup_payload())
    assert recipe.ingredients[0].name == "tomate"
    assert recipe.ingredients[1].category == "otros"


def test_recipe_requires_an_ingredient():
    with pytest.raises(ServiceValidationError) as exc:
        build_recipe(soup_payload(ingredientes=[]))
    assert "at least one ingredient" in exc.value.message


def test_unknown_unit_is_rejected():
    payload = soup_payload()
    payload["ingredientes"][1]["unidad"] = "bolsas"
    with pytest.raises(ServiceValidationError):
        build_recipe(payload)


def test_build_recipe_drops_client_supplied_derived_fields():
    recipe = build_recipe(soup_payload(costoTotal=999, vecesUsada=12))
    assert recipe.total_cost == 0
    assert recipe.times_used == 0


# =============================================================================
# SCALING
# =============================================================================


def test_scale_recipe_scales_quantities_and_totals():
    """
    Verifies:
    - 100 g for 2 portions becomes 200 g for 4 portions
    - total cost scales, cost per portion does not
    - the stored recipe is left untouched
    """
    recipe = make_recipe(
        name="Arroz blanco",
        category="guarnicion",
        portions=2,
        ingredients=[
            {
                "nombre": "arroz",
                "cantidad": 100,
                "unidad": "g",
                "costoUnitario": 0.03,
                "nutricion": {"calorias": 3.5},
            }
        ],
    )

    scaled = scale_recipe(recipe, 4)

    assert scaled.ingredients[0].quantity == pytest.approx(200)
    assert scaled.scale_factor == pytest.approx(2)
    assert scaled.current_portions == 4
    assert scaled.total_cost == pytest.approx(recipe.total_cost * 2)
    assert scaled.cost_per_portion == pytest.approx(recipe.cost_per_portion)
    assert scaled.nutrition_total.calories == pytest.approx(700)
    assert scaled.nutrition_per_portion.calories == pytest.approx(175)
    assert recipe.ingredients[0].quantity == 100


@pytest.mark.parametrize("portions", [0, -1])
def test_scale_rejects_non_positive_portions(portions):
    with pytest.raises(ServiceValidationError):
        scale_recipe(make_recipe(), portions)


# =============================================================================
# SERVICE
# =============================================================================


@pytest.mark.anyio
async def test_create_persists_derived_fields():
    repo = InMemoryRecipeRepository()
    service = RecipeService(repo)

    recipe = await service.create(soup_payload(costoTotal=999))

    assert recipe.id is not None
    stored = repo.docs[recipe.id]
    assert stored["costoTotal"] == pytest.approx(35)
    assert stored["costoPorPorcion"] == pytest.approx(8.75)
    assert stored["tiempoTotal"] == 45


@pytest.mark.anyio
async def test_update_recomputes_and_keeps_usage():
    repo = InMemoryRecipeRepository()
    service = RecipeService(repo)
    created = await service.create(soup_payload())
    repo.docs[created.id]["vecesUsada"] = 3

    payload = soup_payload()
    payload["ingredientes"][0]["cantidad"] = 1000
    updated = await service.update(created.id, payload)

    assert updated.id == created.id
    assert updated.total_cost == pytest.approx(60)
    assert updated.cost_per_portion == pytest.approx(15)
    assert updated.times_used == 3


@pytest.mark.anyio
async def test_get_missing_recipe_raises_not_found():
    service = RecipeService(InMemoryRecipeRepository())
    with pytest.raises(NotFoundError):
        await service.get("64b7f0c2a1b2c3d4e5f60718")


@pytest.mark.anyio
async def test_delete_missing_recipe_raises_not_found():
    service = RecipeService(InMemoryRecipeRepository())
    with pytest.raises(NotFoundError):
        await service.delete("64b7f0c2a1b2c3d4e5f60718")


@pytest.mark.anyio
async def test_scaled_through_service():
    repo = InMemoryRecipeRepository()
    stored = repo.add(make_recipe(portions=4))
    service = RecipeService(repo)

    scaled = await service.scaled(stored.id, 8)

    assert scaled.ingredients[0].quantity == pytest.approx(1000)
    assert isinstance(scaled, Recipe)


@pytest.mark.anyio
async def test_search_filters_by_category_and_text():
    repo = InMemoryRecipeRepository()
    repo.add(make_recipe(name="Sopa de fideo"))
    repo.add(make_recipe(name="Pollo asado", category="plato-fuerte"))
    service = RecipeService(repo)

    items, total = await service.search(category="plato-fuerte")
    assert total == 1
    assert items[0].name == "Pollo asado"

    items, total = await service.search(text="fideo")
    assert [r.name for r in items] == ["Sopa de fideo"]
