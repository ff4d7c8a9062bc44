"""Tests for the HTTP API."""

import base64
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from calorie_tracker.api.app import create_app
from tests.conftest import FakeEstimationClient, FakeLookupClient

DAY = "2024-03-01"


def _client(container) -> tuple[TestClient, dict[str, str]]:
    client = TestClient(create_app(container))
    return client, {"X-User-Id": str(uuid4())}


def _product_body(**overrides) -> dict[str, object]:
    product: dict[str, object] = {
        "name": "Granola",
        "calories": 450,
        "protein": 10,
        "carbohydrates": 60,
        "fat": 18,
        "barcode": "4001",
        "nutrients": {"iron": 4.0},
    }
    product.update(overrides)
    return {"product": product}


def test_health(container) -> None:
    client, _ = _client(container)

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_user_header_is_required(container) -> None:
    client, _ = _client(container)

    response = client.get("/products")

    assert response.status_code == 422


def test_save_product_duplicate_flow(container) -> None:
    client, headers = _client(container)

    created = client.post("/products", json=_product_body(), headers=headers)
    duplicate = client.post(
        "/products", json=_product_body(calories=460), headers=headers
    )
    body = _product_body(calories=460)
    body["resolution"] = "update_existing"
    updated = client.post("/products", json=body, headers=headers)

    assert created.status_code == 201
    assert duplicate.status_code == 409
    assert "update_existing" in duplicate.json()["resolutions"]
    assert duplicate.json()["duplicate"]["barcode"] == "4001"
    assert updated.status_code == 200
    assert updated.json()["product"]["id"] == created.json()["product"]["id"]
    assert updated.json()["product"]["calories"] == 460
    listed = client.get("/products", headers=headers).json()["products"]
    assert len(listed) == 1


def test_save_product_rejects_unknown_nutrient(container) -> None:
    client, headers = _client(container)

    response = client.post(
        "/products",
        json=_product_body(nutrients={"unobtainium": 1.0}),
        headers=headers,
    )

    assert response.status_code == 422


def test_delete_missing_product(container) -> None:
    client, headers = _client(container)

    response = client.delete(f"/products/{uuid4()}", headers=headers)

    assert response.status_code == 404


def test_barcode_lookup_not_found_and_failure(container) -> None:
    client, headers = _client(container)
    lookup_client = container.product_service.lookup_client
    assert isinstance(lookup_client, FakeLookupClient)

    missing = client.get("/products/barcode/000", headers=headers)
    lookup_client.failures = 5
    failed = client.get("/products/barcode/111", headers=headers)

    assert missing.status_code == 404
    assert failed.status_code == 502
    assert "debug" not in failed.json()["detail"]


def test_barcode_lookup_returns_remote_draft(container) -> None:
    client, headers = _client(container)
    lookup_client = container.product_service.lookup_client
    lookup_client.payloads["222"] = {
        "status": 1,
        "product": {
            "product_name": "Oat Milk",
            "nutriments": {"energy-kcal_100g": 46, "sodium_100g": 0.04},
        },
    }

    response = client.get("/products/barcode/222", headers=headers)

    product = response.json()["product"]
    assert response.status_code == 200
    assert product["name"] == "Oat Milk"
    assert product["sodium"] == pytest.approx(40)


def test_parse_label_saves_custom_product(container) -> None:
    client, headers = _client(container)
    estimation_client = container.estimation_service.client
    assert isinstance(estimation_client, FakeEstimationClient)
    estimation_client.payloads["nutrition_label"] = {
        "product_name": "Oat Bar",
        "serving_size": 40,
        "serving_size_unit": "g",
        "calories": 180,
        "protein": 5,
        "nutrients": {"iron": 1.2},
    }
    image = base64.b64encode(b"\xff\xd8\xff\xe0label").decode("ascii")

    response = client.post(
        "/products/label", json={"image_base64": image}, headers=headers
    )

    product = response.json()["product"]
    assert response.status_code == 201
    assert product["reference_amount"] == 40
    assert product["is_custom"] is True
    assert estimation_client.calls[-1]["image_data_url"].startswith("data:image/jpeg")


def test_parse_label_rejects_bad_base64(container) -> None:
    client, headers = _client(container)

    response = client.post(
        "/products/label", json={"image_base64": "not base64!!"}, headers=headers
    )

    assert response.status_code == 422


def test_log_product_and_edit_amount(container) -> None:
    client, headers = _client(container)
    product = client.post("/products", json=_product_body(), headers=headers).json()[
        "product"
    ]

    logged = client.post(
        f"/days/{DAY}/entries/product",
        json={"product_id": product["id"], "amount": 50},
        headers=headers,
    )
    entry = logged.json()
    resized = client.put(
        f"/entries/{entry['id']}/amount", json={"amount": 100}, headers=headers
    )
    rejected = client.put(
        f"/entries/{entry['id']}/amount", json={"amount": 0}, headers=headers
    )
    stepped = client.post(
        f"/entries/{entry['id']}/adjust", json={"delta": -500}, headers=headers
    )

    assert logged.status_code == 200
    assert entry["calories"] == 225
    assert entry["nutrients"] == {"iron": 2.0}
    assert resized.json()["calories"] == 450
    assert rejected.status_code == 422
    assert stepped.json()["amount"] == 1
    assert stepped.json()["calories"] == 4.5


def test_log_product_errors(container) -> None:
    client, headers = _client(container)

    missing = client.post(
        f"/days/{DAY}/entries/product",
        json={"product_id": str(uuid4()), "amount": 50},
        headers=headers,
    )
    product = client.post("/products", json=_product_body(), headers=headers).json()[
        "product"
    ]
    invalid = client.post(
        f"/days/{DAY}/entries/product",
        json={"product_id": product["id"], "amount": -1},
        headers=headers,
    )

    assert missing.status_code == 404
    assert invalid.status_code == 422


def test_adjust_rejects_nan_delta(container) -> None:
    client, headers = _client(container)
    entry = client.post(
        f"/days/{DAY}/entries/manual",
        json={"name": "Rice", "amount": 200, "calories": 260},
        headers=headers,
    ).json()

    response = client.post(
        f"/entries/{entry['id']}/adjust",
        content='{"delta": NaN}',
        headers={**headers, "Content-Type": "application/json"},
    )
    stored = client.get(f"/days/{DAY}/entries", headers=headers).json()["entries"]

    assert response.status_code == 422
    assert stored[0]["amount"] == 200
    assert stored[0]["calories"] == 260


def test_log_product_portions(container) -> None:
    client, headers = _client(container)
    product = client.post(
        "/products", json=_product_body(portion_size=40), headers=headers
    ).json()["product"]
    plain = client.post(
        "/products", json=_product_body(barcode="4002"), headers=headers
    ).json()["product"]

    logged = client.post(
        f"/days/{DAY}/entries/product",
        json={"product_id": product["id"], "portions": 1.5},
        headers=headers,
    )
    no_portion_size = client.post(
        f"/days/{DAY}/entries/product",
        json={"product_id": plain["id"], "portions": 2},
        headers=headers,
    )
    no_quantity = client.post(
        f"/days/{DAY}/entries/product",
        json={"product_id": product["id"]},
        headers=headers,
    )

    assert logged.status_code == 200
    assert logged.json()["amount"] == 60
    assert logged.json()["calories"] == pytest.approx(270)
    assert no_portion_size.status_code == 422
    assert no_quantity.status_code == 422


def test_other_users_resources_are_not_found(container) -> None:
    client, owner = _client(container)
    intruder = {"X-User-Id": str(uuid4())}
    product = client.post("/products", json=_product_body(), headers=owner).json()[
        "product"
    ]
    entry = client.post(
        f"/days/{DAY}/entries/product",
        json={"product_id": product["id"], "amount": 50},
        headers=owner,
    ).json()
    client.post(
        f"/days/{DAY}/entries/estimate", json={"description": "Banana"}, headers=owner
    )
    template = client.get("/templates", headers=owner).json()["templates"][0]

    responses = [
        client.post(
            f"/entries/{entry['id']}/adjust", json={"delta": 10}, headers=intruder
        ),
        client.put(
            f"/entries/{entry['id']}/amount", json={"amount": 10}, headers=intruder
        ),
        client.delete(f"/entries/{entry['id']}", headers=intruder),
        client.delete(f"/products/{product['id']}", headers=intruder),
        client.post(
            f"/days/{DAY}/entries/product",
            json={"product_id": product["id"], "amount": 50},
            headers=intruder,
        ),
        client.post(
            f"/days/{DAY}/entries/template/{template['id']}", headers=intruder
        ),
    ]
    owned = client.get(f"/days/{DAY}/entries", headers=owner).json()["entries"]

    assert [response.status_code for response in responses] == [404] * 6
    assert len(client.get("/products", headers=owner).json()["products"]) == 1
    assert owned[0]["amount"] == 50
    assert len(owned) == 2


def test_estimate_reuses_template(container) -> None:
    client, headers = _client(container)
    estimation_client = container.estimation_service.client

    first = client.post(
        f"/days/{DAY}/entries/estimate", json={"description": "Banana"}, headers=headers
    )
    second = client.post(
        f"/days/{DAY}/entries/estimate",
        json={"description": "  banana "},
        headers=headers,
    )
    templates = client.get("/templates", headers=headers).json()["templates"]

    assert first.status_code == 200
    assert first.json()["ai_generated"] is True
    assert first.json()["nutrients"]["vitaminC"] == 10.3
    assert second.json()["calories"] == 105
    assert len(estimation_client.calls) == 1
    assert templates[0]["name"] == "Banana"
    assert templates[0]["use_count"] == 2


def test_estimate_failure_returns_502(container) -> None:
    client, headers = _client(container)
    container.estimation_service.client.error = RuntimeError("model offline")

    response = client.post(
        f"/days/{DAY}/entries/estimate", json={"description": "Soup"}, headers=headers
    )

    assert response.status_code == 502
    assert "couldn't estimate" in response.json()["detail"]


def test_manual_entry_and_summary(container) -> None:
    client, headers = _client(container)
    client.put(
        "/settings/exercise",
        json={"mode": "workouts_only", "manual_earned_calories": None},
        headers=headers,
    )

    logged = client.post(
        f"/days/{DAY}/entries/manual",
        json={
            "name": "Cake",
            "amount": 1,
            "unit": "slice",
            "calories": 400,
            "added_sugar": 30,
            "sodium": 460,
        },
        headers=headers,
    )
    summary = client.get(
        f"/days/{DAY}/summary",
        params={"workout_calories": 200, "active_calories": 300, "authorized": True},
        headers=headers,
    ).json()

    assert logged.status_code == 200
    assert summary["totals"]["calories"] == 400
    assert summary["calories_remaining"] == 1600
    assert summary["net_calorie_target"] == 2300
    assert summary["salt_grams"] == pytest.approx(1.15)
    assert summary["sugar"]["bonus"] == pytest.approx(10)
    assert summary["sugar"]["limit"] == pytest.approx(35)
    assert summary["sugar"]["over_limit"] is False
    assert summary["micronutrient_source"] == "entries"
    entries = client.get(f"/days/{DAY}/entries", headers=headers).json()["entries"]
    assert entries[0]["name"] == "Cake"


def test_delete_entry(container) -> None:
    client, headers = _client(container)
    entry = client.post(
        f"/days/{DAY}/entries/manual",
        json={"name": "Tea", "amount": 1, "unit": "cup", "calories": 2},
        headers=headers,
    ).json()

    deleted = client.delete(f"/entries/{entry['id']}", headers=headers)
    again = client.delete(f"/entries/{entry['id']}", headers=headers)

    assert deleted.status_code == 200
    assert again.status_code == 404


def test_micronutrient_override_and_reset(container) -> None:
    client, headers = _client(container)
    empty = client.post(f"/days/{DAY}/micronutrients/analyze", headers=headers)
    client.post(
        f"/days/{DAY}/entries/manual",
        json={"name": "Salad", "amount": 1, "unit": "bowl", "calories": 150},
        headers=headers,
    )

    analyzed = client.post(f"/days/{DAY}/micronutrients/analyze", headers=headers)
    overridden = client.get(f"/days/{DAY}/summary", headers=headers).json()
    client.delete(f"/days/{DAY}/micronutrients/override", headers=headers)
    reset = client.get(f"/days/{DAY}/summary", headers=headers).json()

    assert empty.json()["analysis_date"] is None
    assert analyzed.json()["nutrients"]["vitaminC"] == 95
    assert overridden["micronutrient_source"] == "ai_override"
    assert reset["micronutrient_source"] == "entries"


def test_history_lists_logged_days(container) -> None:
    client, headers = _client(container)
    client.post(
        f"/days/{DAY}/entries/manual",
        json={"name": "Rice", "amount": 200, "calories": 260, "protein": 5},
        headers=headers,
    )

    days = client.get("/history", headers=headers).json()["days"]

    assert days[0]["day"] == DAY
    assert days[0]["calories"] == 260
    assert days[0]["entry_count"] == 1


def test_settings_endpoints(container) -> None:
    client, headers = _client(container)

    targets = client.put(
        "/settings/targets",
        json={"calories": 1800, "protein": 120, "carbohydrates": 180, "fat": 60},
        headers=headers,
    )
    bad_targets = client.put(
        "/settings/targets",
        json={"calories": 0, "protein": 120, "carbohydrates": 180, "fat": 60},
        headers=headers,
    )
    timezone = client.put(
        "/settings/timezone", json={"timezone": "Europe/Berlin"}, headers=headers
    )
    bad_timezone = client.put(
        "/settings/timezone", json={"timezone": "Mars/Olympus"}, headers=headers
    )
    limits = client.put(
        "/settings/limits",
        json={"sugar_limit_g": 30, "sodium_limit_mg": 1500},
        headers=headers,
    )
    exercise = client.put(
        "/settings/exercise",
        json={"mode": "off", "manual_earned_calories": 250},
        headers=headers,
    )

    assert targets.json()["targets"]["calories"] == 1800
    assert bad_targets.status_code == 422
    assert timezone.json()["timezone"] == "Europe/Berlin"
    assert bad_timezone.status_code == 422
    assert limits.json()["sugar_limit_g"] == 30
    assert limits.json()["sodium_limit_mg"] == 1500
    assert exercise.json()["exercise_mode"] is None
    assert exercise.json()["manual_earned_calories"] == 250


def test_recommended_targets_endpoint(container) -> None:
    client, headers = _client(container)
    profile = {
        "sex": "female",
        "height_cm": 165,
        "weight_kg": 60,
        "date_of_birth": "1984-01-01",
    }

    response = client.post(
        "/settings/targets/recommended", json=profile, headers=headers
    )
    unborn = client.post(
        "/settings/targets/recommended",
        json={**profile, "date_of_birth": "2999-01-01"},
        headers=headers,
    )
    no_height = client.post(
        "/settings/targets/recommended",
        json={**profile, "height_cm": 0},
        headers=headers,
    )

    targets = response.json()["targets"]
    assert response.status_code == 200
    assert targets["calories"] % 50 == 0
    assert targets["carbohydrates"] == targets["calories"] * 0.4 / 4
    assert unborn.status_code == 422
    assert no_height.status_code == 422


def test_exercise_mode_update_keeps_manual_calories(container) -> None:
    client, headers = _client(container)
    client.put(
        "/settings/exercise",
        json={"mode": "workouts_only", "manual_earned_calories": 250},
        headers=headers,
    )

    mode_only = client.put(
        "/settings/exercise", json={"mode": "all_active"}, headers=headers
    )
    cleared = client.put(
        "/settings/exercise",
        json={"mode": "all_active", "manual_earned_calories": None},
        headers=headers,
    )

    assert mode_only.json()["exercise_mode"] == "all-active"
    assert mode_only.json()["manual_earned_calories"] == 250
    assert cleared.json()["manual_earned_calories"] == 0


def test_adjusted_limit_endpoint(container) -> None:
    client, _ = _client(container)

    response = client.post(
        "/limits/adjusted",
        json={
            "base_limit": 2300,
            "mode": "total-burned",
            "activity": {"total_calories": 500, "authorized": True},
        },
    )

    assert response.json() == {"limit": 2800, "bonus": 500}


def test_admin_ai_logs_require_token(container) -> None:
    client, headers = _client(container)
    client.post(
        f"/days/{DAY}/entries/estimate", json={"description": "Banana"}, headers=headers
    )

    unauthorized = client.get("/admin/ai-logs")
    authorized = client.get("/admin/ai-logs", headers={"X-Admin-Token": "admin-token"})

    assert unauthorized.status_code == 401
    logs = authorized.json()["logs"]
    assert logs[0]["request_type"] == "food_estimate"
    assert logs[0]["success"] is True


def test_supplement_endpoints(container) -> None:
    client, headers = _client(container)
    intruder = {"X-User-Id": str(uuid4())}
    supplement = client.post(
        "/supplements",
        json={
            "name": "Vitamin D3",
            "dosage_form": "softgel",
            "serving_unit": "softgel",
            "nutrients": {"vitaminD": 25},
        },
        headers=headers,
    )
    supplement_id = supplement.json()["supplement"]["id"]

    dose = client.post(
        f"/days/{DAY}/supplements",
        json={"supplement_id": supplement_id, "amount": 2},
        headers=headers,
    )
    stolen = client.post(
        f"/days/{DAY}/supplements",
        json={"supplement_id": supplement_id},
        headers=intruder,
    )
    day = client.get(f"/days/{DAY}/supplements", headers=headers).json()
    summary = client.get(f"/days/{DAY}/summary", headers=headers).json()
    foreign_delete = client.delete(
        f"/supplement-entries/{dose.json()['id']}", headers=intruder
    )
    deleted = client.delete(
        f"/supplement-entries/{dose.json()['id']}", headers=headers
    )

    assert supplement.status_code == 201
    assert dose.json()["nutrients"] == {"vitaminD": 50.0}
    assert stolen.status_code == 404
    assert day["totals"] == {"vitaminD": 50.0}
    assert day["entries"][0]["name"] == "Vitamin D3"
    assert summary["entry_count"] == 0
    assert foreign_delete.status_code == 404
    assert deleted.status_code == 200
    assert client.get("/supplements", headers=intruder).json()["supplements"] == []


def test_supplement_validation(container) -> None:
    client, headers = _client(container)

    unknown = client.post(
        "/supplements",
        json={"name": "Mystery", "nutrients": {"unobtainium": 1}},
        headers=headers,
    )
    no_serving = client.post(
        "/supplements", json={"name": "Zinc", "serving_size": 0}, headers=headers
    )
    missing = client.post(
        f"/days/{DAY}/supplements",
        json={"supplement_id": str(uuid4())},
        headers=headers,
    )

    assert unknown.status_code == 422
    assert no_serving.status_code == 422
    assert missing.status_code == 404
