# tracking_core/tests/test_api.py

import pytest
from rest_framework import status

from tracking_core.models import OrderItem, OrderItemTracking
from tracking_core.tests.conftest import PASSWORD
from tracking_core.tracking.visibility import build_visibility

pytestmark = pytest.mark.django_db


def _actor(user, dept, item, **extra):
    payload = {
        "scan_token": item.scan_token,
        "department_id": dept.pk,
        "user_id": user.pk,
        "password": PASSWORD,
    }
    payload.update(extra)
    return payload


# ---------------------------------------------------------------
# Access
# ---------------------------------------------------------------

def test_health_is_public(anon_client):
    resp = anon_client.get("/tracking/health/")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "service": "prod-tracker"}


@pytest.mark.parametrize(
    "method, url",
    [
        ("get", "/tracking/items/"),
        ("get", "/tracking/history/"),
        ("post", "/tracking/check-in/"),
        ("post", "/tracking/items/sync/"),
    ],
)
def test_endpoints_require_authentication(anon_client, method, url):
    if method == "post":
        resp = anon_client.post(url, {}, format="json")
    else:
        resp = anon_client.get(url)
    assert resp.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)


# ---------------------------------------------------------------
# Workflow endpoints
# ---------------------------------------------------------------

def test_check_in_endpoint(api_client, item, cutting, operator):
    resp = api_client.post(
        "/tracking/check-in/",
        _actor(operator, cutting, item, preparation_type="in-house"),
        format="json",
    )

    assert resp.status_code == 200, resp.content
    body = resp.json()
    assert body["message"] == "Order item checked in successfully"
    assert body["tracking"]["action_type"] == "check-in"
    assert body["tracking"]["previous_status"] == "pending"
    assert body["tracking"]["department"]["id"] == cutting.pk
    assert body["item"]["lifecycle_status"] == "checked-in"
    assert body["item"]["current_department"]["code"] == "cutting"
    assert "password" not in body["tracking"]


def test_check_in_wrong_password_is_401(api_client, item, cutting, operator):
    resp = api_client.post(
        "/tracking/check-in/", _actor(operator, cutting, item, password="nope"), format="json"
    )
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid password"


def test_check_in_unknown_token_is_404(api_client, cutting, operator, item):
    payload = _actor(operator, cutting, item, scan_token="ORDER_ITEM_0_gone")
    resp = api_client.post("/tracking/check-in/", payload, format="json")
    assert resp.status_code == 404


def test_double_check_in_is_409(api_client, item_factory, cutting, operator):
    item = item_factory(status="checked-in", department=cutting)
    resp = api_client.post("/tracking/check-in/", _actor(operator, cutting, item), format="json")
    assert resp.status_code == 409


def test_check_in_missing_fields_is_400(api_client):
    resp = api_client.post("/tracking/check-in/", {"scan_token": "x"}, format="json")
    assert resp.status_code == 400
    assert "department_id" in resp.json()


def test_full_route_through_api(api_client, item, cutting, embroidery, quality_control, operator):
    steps = [
        ("/tracking/check-in/", _actor(operator, cutting, item)),
        ("/tracking/update-status/", _actor(
            operator, cutting, item, status="in-progress", sub_status="cutting_in_progress"
        )),
        ("/tracking/check-out/", _actor(
            operator, cutting, item, handover_department_id=embroidery.pk
        )),
        ("/tracking/check-in/", _actor(operator, embroidery, item)),
        ("/tracking/return-to-stage/", _actor(
            operator, cutting, item, target_sub_status="cutting_in_progress", reason="bad cut"
        )),
    ]
    for url, payload in steps:
        resp = api_client.post(url, payload, format="json")
        assert resp.status_code == 200, (url, resp.content)

    item.refresh_from_db()
    assert item.lifecycle_status == "in-progress"
    assert item.current_department_id == cutting.pk
    assert OrderItemTracking.objects.filter(item=item).count() == 5


def test_check_out_by_non_holder_is_409(api_client, item_factory, cutting, stitching, embroidery, operator):
    item = item_factory(status="checked-in", department=cutting)
    resp = api_client.post(
        "/tracking/check-out/",
        _actor(operator, stitching, item, handover_department_id=embroidery.pk),
        format="json",
    )
    assert resp.status_code == 409


def test_handover_mismatch_is_409(api_client, item_factory, cutting, embroidery, stitching, operator):
    item = item_factory(status="checked-out", handover=embroidery, last_department=cutting)
    resp = api_client.post("/tracking/check-in/", _actor(operator, stitching, item), format="json")
    assert resp.status_code == 409
    assert f"Expected department: {embroidery.pk}" in resp.json()["detail"]


def test_invalid_transition_is_400(api_client, item, cutting, operator):
    resp = api_client.post(
        "/tracking/update-status/",
        _actor(operator, cutting, item, status="in-progress"),
        format="json",
    )
    assert resp.status_code == 400


def test_update_status_rejects_unknown_status_value(api_client, item, cutting, operator):
    resp = api_client.post(
        "/tracking/update-status/",
        _actor(operator, cutting, item, status="archived"),
        format="json",
    )
    assert resp.status_code == 400
    assert "status" in resp.json()


# ---------------------------------------------------------------
# Item reads
# ---------------------------------------------------------------

def test_list_items_paginated(api_client, item_factory):
    for _ in range(3):
        item_factory()

    resp = api_client.get("/tracking/items/", {"page": 1, "limit": 2})
    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 3
    assert body["last_page"] == 2
    assert len(body["results"]) == 2


def test_list_items_visibility_params(api_client, item_factory):
    item_factory(visibility=build_visibility(["7"], []))
    item_factory(visibility=build_visibility(["8"], []))
    item_factory(visibility=build_visibility([], ["cutter"]))

    repeated = api_client.get("/tracking/items/?role_ids=7&role_ids=9").json()
    assert repeated["total"] == 1

    as_json = api_client.get("/tracking/items/", {"role_ids": '["8"]'}).json()
    assert as_json["total"] == 1

    comma = api_client.get("/tracking/items/", {"role_ids": "7,8"}).json()
    assert comma["total"] == 2

    by_name = api_client.get("/tracking/items/", {"role_name": "cutter"}).json()
    assert by_name["total"] == 1


def test_list_items_filter_by_status(api_client, item_factory, cutting):
    item_factory(status="checked-in", department=cutting)
    item_factory()
    body = api_client.get("/tracking/items/", {"status": "checked-in"}).json()
    assert body["total"] == 1
    assert body["results"][0]["lifecycle_status"] == "checked-in"


def test_item_by_scan_token(api_client, item_factory):
    item = item_factory(visibility=build_visibility(["7"], []))

    resp = api_client.get(f"/tracking/items/scan/{item.scan_token}/")
    assert resp.status_code == 200
    assert resp.json()["id"] == item.pk

    hidden = api_client.get(f"/tracking/items/scan/{item.scan_token}/", {"role_id": "8"})
    assert hidden.status_code == 404


def test_item_statuses_endpoint(api_client, item, cutting, operator):
    api_client.post("/tracking/check-in/", _actor(operator, cutting, item), format="json")

    resp = api_client.get("/tracking/items/statuses/", {"item_id": item.pk})
    assert resp.status_code == 200
    body = resp.json()
    assert [i["id"] for i in body["items"]] == [item.pk]
    assert [e["action_type"] for e in body["results"]] == ["check-in"]

    assert api_client.get("/tracking/items/statuses/").status_code == 400
    assert api_client.get("/tracking/items/statuses/", {"item_id": 999999}).status_code == 404


def test_history_endpoint(api_client, item, cutting, operator):
    api_client.post("/tracking/check-in/", _actor(operator, cutting, item), format="json")

    body = api_client.get("/tracking/history/", {"item_id": item.pk}).json()
    assert body["total"] == 1
    assert body["results"][0]["item_id"] == item.pk
    assert body["results"][0]["performed_by"]["username"] == "operator"


def test_catalog_endpoint(api_client):
    body = api_client.get("/tracking/catalog/").json()
    assert "checked-in" in body["lifecycle"]["states"]
    assert body["sub_statuses"]["transitions"]["cutting_in_progress"] == ["cutting_completed"]


# ---------------------------------------------------------------
# Item administration
# ---------------------------------------------------------------

def test_sync_endpoint(api_client, role_factory):
    role = role_factory("cutter")
    payload = {
        "store_name": "fineyst-jackets",
        "items": [
            {"external_order_id": "ORD-1", "external_item_id": "1", "product_name": "Aviator"},
            {"external_order_id": "ORD-1", "external_item_id": "2"},
        ],
        "visibility": {"role_ids": [str(role.pk)]},
    }

    resp = api_client.post("/tracking/items/sync/", payload, format="json")
    assert resp.status_code == 200, resp.content
    assert resp.json() == {"message": "Order items synced successfully", "synced": 2, "updated": 0}

    again = api_client.post("/tracking/items/sync/", payload, format="json").json()
    assert again["updated"] == 2
    assert OrderItem.objects.count() == 2


def test_sync_endpoint_duplicate_roles_is_409(api_client, role_factory):
    role = role_factory()
    payload = {
        "store_name": "fineyst-jackets",
        "items": [{"external_order_id": "ORD-1", "external_item_id": "1"}],
        "visibility": {"role_ids": [str(role.pk), str(role.pk)]},
    }
    resp = api_client.post("/tracking/items/sync/", payload, format="json")
    assert resp.status_code == 409
    assert not OrderItem.objects.exists()


def test_sync_endpoint_requires_items(api_client):
    resp = api_client.post(
        "/tracking/items/sync/", {"store_name": "fineyst-jackets", "items": []}, format="json"
    )
    assert resp.status_code == 400


def test_scan_token_endpoint(api_client, item):
    resp = api_client.post(f"/tracking/items/{item.pk}/scan-token/")
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Scan token generated successfully"
    assert body["scan_token"] != item.scan_token


def test_visibility_endpoint(api_client, item, role_factory):
    role_factory("cutter")
    resp = api_client.put(
        f"/tracking/items/{item.pk}/visibility/", {"role_names": ["cutter"]}, format="json"
    )
    assert resp.status_code == 200
    assert resp.json()["visibility"] == {"role_ids": [], "role_names": ["cutter"]}

    bad = api_client.put(
        f"/tracking/items/{item.pk}/visibility/", {"role_names": ["ghost"]}, format="json"
    )
    assert bad.status_code == 400


def test_issues_endpoint(api_client, item):
    resp = api_client.patch(f"/tracking/items/{item.pk}/issues/", {"issues": "stain"}, format="json")
    assert resp.status_code == 200
    assert resp.json()["issues"] == "stain"


def test_delete_endpoint(api_client, item):
    resp = api_client.delete(f"/tracking/items/{item.pk}/")
    assert resp.status_code == 200
    assert resp.json() == {"message": "Order item deleted successfully"}
    assert api_client.delete(f"/tracking/items/{item.pk}/").status_code == 404


def test_store_sync_unconfigured_is_400(api_client):
    resp = api_client.post("/tracking/stores/fineyst-patches/sync/")
    assert resp.status_code == 400
    assert "API URL not configured" in resp.json()["detail"]
