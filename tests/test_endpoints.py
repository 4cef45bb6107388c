"""
HTTP endpoint tests.

Routes run against in-memory repositories installed through
``app.dependency_overrides`` (see the ``api`` fixture); the bearer-token
dependency resolves to a seeded user unless a test removes that override.
"""

import pytest
from bson import ObjectId

from test_fixtures import api, client, entry, make_plan_payload, make_recipe
from api import dependencies as deps


def recipe_payload(**overrides):
    payload = {
        "nombre": "Sopa de tomate",
        "descripcion": "Sopa casera de tomate asado",
        "categoria": "sopa",
        "porcionesBase": 4,
        "ingredientes": [
            {"nombre": "tomate", "cantidad": 500, "unidad": "g", "costoUnitario": 0.05},
            {"nombre": "cebolla", "cantidad": 2, "unidad": "piezas", "costoUnitario": 5},
        ],
    }
    payload.update(overrides)
    return payload


def create_client(email="ana@example.com"):
    response = client.post(
        "/api/clients",
        json={"nombre": "Ana", "email": email, "miembrosHogar": {"adultos": 2, "ninos": 1}},
    )
    assert response.status_code == 201
    return response.json()["data"]


def create_plan(api):
    soup = api.recipes.add(make_recipe(name="Sopa de tomate"))
    main = api.recipes.add(make_recipe(name="Pollo asado", category="plato-fuerte"))
    customer = create_client()
    days = [
        {
            "fecha": "2026-01-05T00:00:00",
            "comidas": {"comida": {"sopa": entry(soup.id), "principal": entry(main.id)}},
        },
        {"fecha": "2026-01-06T00:00:00", "comidas": {"cena": entry(main.id)}},
    ]
    response = client.post("/api/meal-plans", json=make_plan_payload(customer["_id"], days))
    assert response.status_code == 201, response.text
    return response.json()["data"]


# =============================================================================
# HEALTH AND ERROR SHAPE
# =============================================================================


def test_health_check():
    response = client.get("/api/health-check")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_writes_require_bearer_token(api):
    """
    Verifies:
    - missing token gives 401 with the standard error body
    - the response advertises the Bearer scheme
    """
    del client.app.dependency_overrides[deps.get_current_user]

    response = client.post("/api/recipes", json=recipe_payload())

    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "UNAUTHORIZED"
    assert "timestamp" in body
    assert response.headers["www-authenticate"] == "Bearer"


def test_invalid_token_is_rejected(api):
    del client.app.dependency_overrides[deps.get_current_user]

    response = client.get("/api/meal-plans", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Invalid token"


def test_query_validation_error_shape(api):
    stored = api.recipes.add(make_recipe())

    response = client.get(f"/api/recipes/{stored.id}/scaled", params={"porciones": 0})

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


# =============================================================================
# RECIPES
# =============================================================================


def test_create_recipe_computes_derived_fields(api):
    response = client.post("/api/recipes", json=recipe_payload(costoTotal=1))

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["costoTotal"] == pytest.approx(35)
    assert data["costoPorPorcion"] == pytest.approx(8.75)
    assert data["_id"] in api.recipes.docs


def test_create_recipe_without_ingredients_is_400(api):
    response = client.post("/api/recipes", json=recipe_payload(ingredientes=[]))

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "SERVICE_VALIDATION_ERROR"
    assert error["details"]["field"] == "ingredientes"


def test_search_recipes_is_public_and_paginated(api):
    for name in ("Sopa de fideo", "Sopa de papa", "Pollo asado"):
        api.recipes.add(make_recipe(name=name))
    del client.app.dependency_overrides[deps.get_current_user]

    response = client.get("/api/recipes", params={"q": "sopa", "page_size": 1})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["total"] == 2
    assert data["pages"] == 2
    assert data["has_next"] is True
    assert len(data["items"]) == 1


def test_get_unknown_recipe_is_404(api):
    response = client.get(f"/api/recipes/{ObjectId()}")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


def test_scaled_recipe(api):
    stored = api.recipes.add(make_recipe(portions=4))

    response = client.get(f"/api/recipes/{stored.id}/scaled", params={"porciones": 8})

    data = response.json()["data"]
    assert data["factorEscala"] == pytest.approx(2)
    assert data["ingredientes"][0]["cantidad"] == pytest.approx(1000)


def test_delete_recipe(api):
    stored = api.recipes.add(make_recipe())

    assert client.delete(f"/api/recipes/{stored.id}").status_code == 200
    assert stored.id not in api.recipes.docs


# =============================================================================
# CLIENTS
# =============================================================================


def test_create_client_reports_recommended_portions(api):
    data = create_client()
    assert data["porcionesRecomendadas"] == pytest.approx(2.7)


def test_duplicate_client_is_409(api):
    create_client()
    response = client.post("/api/clients", json={"nombre": "Ana", "email": "ana@example.com"})
    assert response.status_code == 409


# =============================================================================
# MEAL PLANS
# =============================================================================


def test_create_meal_plan_computes_summary(api):
    plan = create_plan(api)

    assert plan["porcionesBase"] == 4
    assert plan["duracionDias"] == 7
    assert plan["dias"][0]["diaSemana"] == "lunes"
    assert plan["resumen"]["totalRecetas"] == 3
    assert plan["preferenciasCliente"]["miembrosHogar"]["ninos"] == 1


def test_meal_plan_with_mismatched_weekday_is_400(api):
    customer = create_client()
    days = [{"fecha": "2026-01-05T00:00:00", "diaSemana": "viernes"}]

    response = client.post("/api/meal-plans", json=make_plan_payload(customer["_id"], days))

    assert response.status_code == 400


def test_meal_plan_with_mixed_offset_dates(api):
    """
    Verifies:
    - a UTC start next to a naive end is accepted
    - an offset end that falls before the start in UTC is a 400
    """
    dish = api.recipes.add(make_recipe(name="Pollo asado"))
    customer = create_client()
    days = [{"fecha": "2026-01-05T00:00:00", "comidas": {"cena": entry(dish.id)}}]
    payload = make_plan_payload(customer["_id"], days, fechaInicio="2026-01-05T00:00:00Z")

    response = client.post("/api/meal-plans", json=payload)

    assert response.status_code == 201, response.text
    assert response.json()["data"]["duracionDias"] == 7

    payload.update(fechaInicio="2026-01-11T00:00:00Z", fechaFin="2026-01-11T08:00:00+09:00")
    response = client.post("/api/meal-plans", json=payload)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "SERVICE_VALIDATION_ERROR"


def test_list_meal_plans_by_client(api):
    plan = create_plan(api)

    response = client.get("/api/meal-plans", params={"cliente_id": plan["clienteId"]})

    assert response.json()["data"]["total"] == 1


def test_shopping_list_generation_and_purchase(api):
    """
    Verifies:
    - POST generates the consolidated list
    - PATCH marks an item purchased with its actual cost
    - regenerating keeps the purchase
    """
    plan = create_plan(api)

    response = client.post(f"/api/meal-plans/{plan['_id']}/shopping-list")
    assert response.status_code == 200
    items = {i["ingrediente"]: i for i in response.json()["data"]["listaCompras"]}
    assert items["tomate"]["cantidadTotal"] == pytest.approx(1500)

    response = client.patch(
        f"/api/meal-plans/{plan['_id']}/shopping-list/items",
        json={"items": [{"ingrediente": "tomate", "unidad": "g", "comprado": True, "costoReal": 30}]},
    )
    assert response.status_code == 200
    tomato = next(i for i in response.json()["data"]["listaCompras"] if i["ingrediente"] == "tomate")
    assert tomato["comprado"] is True
    assert tomato["fechaCompra"] is not None

    response = client.post(f"/api/meal-plans/{plan['_id']}/shopping-list")
    items = {i["ingrediente"]: i for i in response.json()["data"]["listaCompras"]}
    assert items["tomate"]["comprado"] is True
    assert items["tomate"]["costoReal"] == 30


def test_update_unknown_shopping_item_is_404(api):
    plan = create_plan(api)

    response = client.patch(
        f"/api/meal-plans/{plan['_id']}/shopping-list/items",
        json={"items": [{"ingrediente": "azafran", "unidad": "g", "comprado": True}]},
    )

    assert response.status_code == 404


def test_mark_meal_prepared(api):
    plan = create_plan(api)

    response = client.patch(
        f"/api/meal-plans/{plan['_id']}/days/1/meals/cena", json={"calificacion": 5}
    )

    assert response.status_code == 200
    day = response.json()["data"]["dias"][1]
    assert day["comidas"]["cena"]["preparado"] is True
    assert day["porcentajeCompletado"] == 100


def test_mark_meal_without_body_defaults_to_prepared(api):
    plan = create_plan(api)

    response = client.patch(f"/api/meal-plans/{plan['_id']}/days/0/meals/comida.sopa")

    assert response.status_code == 200
    assert response.json()["data"]["dias"][0]["porcentajeCompletado"] == 50


def test_template_and_instantiate(api):
    plan = create_plan(api)

    response = client.post(f"/api/meal-plans/{plan['_id']}/template", json={"nombre": "Base"})
    assert response.status_code == 201
    template = response.json()["data"]
    assert template["esPlantilla"] is True
    assert template["clienteId"] is None

    response = client.post(
        f"/api/meal-plans/templates/{template['_id']}/instantiate",
        json={"clienteId": plan["clienteId"], "fechaInicio": "2026-02-04T00:00:00"},
    )
    assert response.status_code == 201
    new_plan = response.json()["data"]
    assert [d["diaSemana"] for d in new_plan["dias"]] == ["miercoles", "jueves"]
    assert new_plan["plantillaOriginal"] == template["_id"]


def test_delete_meal_plan(api):
    plan = create_plan(api)

    assert client.delete(f"/api/meal-plans/{plan['_id']}").status_code == 200
    assert client.get(f"/api/meal-plans/{plan['_id']}").status_code == 404


# =============================================================================
# LEGACY PLANS
# =============================================================================


def test_legacy_plan_detail_and_cascade_delete(api):
    plan_id = ObjectId()
    api.legacy.plans.append({"_id": plan_id, "nombrePlan": "Semana vieja", "estado": "activo"})
    api.legacy.plan_recipes.extend(
        [
            {"_id": ObjectId(), "idPlan": plan_id, "diaSemana": "lunes", "idReceta": 1},
            {"_id": ObjectId(), "idPlan": plan_id, "diaSemana": "martes", "idReceta": 2},
        ]
    )

    listing = client.get("/api/legacy/plans").json()["data"]
    assert listing["total"] == 1

    detail = client.get(f"/api/legacy/plans/{plan_id}").json()["data"]
    assert detail["nombrePlan"] == "Semana vieja"
    assert len(detail["planRecetas"]) == 2

    assert client.delete(f"/api/legacy/plans/{plan_id}").status_code == 403

    api.user.role = "admin"
    response = client.delete(f"/api/legacy/plans/{plan_id}")
    assert response.json()["data"]["deletedPlanRecetas"] == 2
    assert api.legacy.plan_recipes == []
    assert client.get(f"/api/legacy/plans/{plan_id}").status_code == 404


# =============================================================================
# AUTH
# =============================================================================


def test_register_login_and_verify(api):
    del client.app.dependency_overrides[deps.get_current_user]

    response = client.post(
        "/api/auth/register",
        json={"username": "maria", "email": "maria@example.com", "password": "secreto123"},
    )
    assert response.status_code == 201
    assert "passwordHash" not in response.json()["data"]["user"]

    response = client.post("/api/auth/login", json={"username": "maria", "password": "secreto123"})
    token = response.json()["data"]["token"]

    response = client.get("/api/auth/verify", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["data"]["user"]["email"] == "maria@example.com"


def test_login_with_bad_password_is_401(api):
    response = client.post("/api/auth/login", json={"username": "chef", "password": "nope"})
    assert response.status_code == 401
