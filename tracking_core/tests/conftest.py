# tracking_core/tests/conftest.py

from __future__ import annotations

import uuid
from typing import Any, Callable, Dict, Optional

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from tracking_core.models import Department, OrderItem, Role, RoleStatus, StaffProfile
from tracking_core.services.ingestion import new_scan_token, scan_url_for
from tracking_core.services.order_tracking import OrderTrackingService
from tracking_core.tracking import CHECKED_OUT, HELD_STATES, PENDING


PASSWORD = "pass123"


def _rand(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


# ---------------------------------------------------------------
# Departments
# ---------------------------------------------------------------

@pytest.fixture
def department_factory(db) -> Callable[..., Department]:
    def _factory(code: Optional[str] = None, **extra: Any) -> Department:
        code = code or _rand("dept").lower()
        defaults = {"name": code.replace("-", " ").title()}
        defaults.update(extra)
        dept, _ = Department.objects.get_or_create(code=code, defaults=defaults)
        return dept

    return _factory


@pytest.fixture
def cutting(department_factory) -> Department:
    return department_factory("cutting")


@pytest.fixture
def embroidery(department_factory) -> Department:
    return department_factory("embroidery")


@pytest.fixture
def stitching(department_factory) -> Department:
    return department_factory("stitching")


@pytest.fixture
def quality_control(department_factory) -> Department:
    return department_factory("quality-control")


# ---------------------------------------------------------------
# Actors
# ---------------------------------------------------------------

@pytest.fixture
def operator(db):
    User = get_user_model()
    user, _ = User.objects.get_or_create(username="operator")
    user.set_password(PASSWORD)
    user.save(update_fields=["password"])
    return user


@pytest.fixture
def supervisor(db):
    User = get_user_model()
    user, _ = User.objects.get_or_create(username="supervisor")
    user.set_password(PASSWORD)
    user.save(update_fields=["password"])
    return user


@pytest.fixture
def role_factory(db) -> Callable[..., Role]:
    def _factory(name: Optional[str] = None, statuses=()) -> Role:
        role = Role.objects.create(name=name or _rand("role"))
        for order, status in enumerate(statuses):
            RoleStatus.objects.create(role=role, status=status, display_order=order)
        return role

    return _factory


@pytest.fixture
def assign_role(db) -> Callable[..., StaffProfile]:
    def _assign(user, role: Optional[Role] = None, department: Optional[Department] = None) -> StaffProfile:
        profile, _ = StaffProfile.objects.update_or_create(
            user=user, defaults={"role": role, "department": department}
        )
        return profile

    return _assign


# ---------------------------------------------------------------
# Items
# ---------------------------------------------------------------

@pytest.fixture
def item_factory(db) -> Callable[..., OrderItem]:
    """
    Creates an item directly in any state. Location fields are filled so
    the database constraints hold:
      - held states need `department`
      - checked-out may carry `handover`
    """

    def _factory(
        *,
        status: str = PENDING,
        department: Optional[Department] = None,
        handover: Optional[Department] = None,
        last_department: Optional[Department] = None,
        sub_status: Optional[str] = None,
        store_name: str = "fineyst-jackets",
        **extra: Any,
    ) -> OrderItem:
        if status in HELD_STATES and department is None:
            raise ValueError("held items need a department")

        kwargs: Dict[str, Any] = {
            "external_order_id": _rand("ORD"),
            "external_item_id": _rand("ITEM"),
            "store_name": store_name,
            "lifecycle_status": status,
            "sub_status": sub_status,
            "current_department": department if status in HELD_STATES else None,
            "handover_department": handover if status == CHECKED_OUT else None,
            "last_department": last_department,
        }
        kwargs.update(extra)

        item = OrderItem(**kwargs)
        item.save(_tracking_bypass=True)
        item.scan_token = new_scan_token(item.pk)
        item.scan_url = scan_url_for(item.pk)
        item.save(update_fields=["scan_token", "scan_url"])
        return item

    return _factory


@pytest.fixture
def item(item_factory) -> OrderItem:
    return item_factory()


# ---------------------------------------------------------------
# Service / API
# ---------------------------------------------------------------

@pytest.fixture
def service() -> OrderTrackingService:
    return OrderTrackingService()


@pytest.fixture
def api_client(operator) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=operator)
    return client


@pytest.fixture
def anon_client() -> APIClient:
    return APIClient()
