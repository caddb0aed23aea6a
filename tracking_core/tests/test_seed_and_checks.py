# tracking_core/tests/test_seed_and_checks.py

from io import StringIO

import pytest
from django.core.management import call_command

from tracking_core import tasks
from tracking_core.checks.status_catalog import check_status_catalog
from tracking_core.models import Department
from tracking_core.tracking import DEPARTMENT_SUB_STATUSES


def test_status_catalog_check_passes():
    assert check_status_catalog(None) == []


def test_status_catalog_check_flags_unknown_target(monkeypatch):
    from tracking_core.checks import status_catalog

    broken = {**status_catalog.SUB_STATUS_TRANSITIONS, "cutting_completed": {"sewing"}}
    monkeypatch.setattr(status_catalog, "SUB_STATUS_TRANSITIONS", broken)

    ids = [e.id for e in check_status_catalog(None)]
    assert ids == ["tracking_core.E002"]


@pytest.mark.django_db
def test_seed_departments_is_idempotent():
    out = StringIO()
    call_command("seed_departments", stdout=out)

    assert set(Department.objects.values_list("code", flat=True)) == set(DEPARTMENT_SUB_STATUSES)
    assert f"{len(DEPARTMENT_SUB_STATUSES)} department(s) created" in out.getvalue()
    assert Department.objects.get(code="quality-control").name == "Quality Control"

    again = StringIO()
    call_command("seed_departments", stdout=again)
    assert "0 department(s) created" in again.getvalue()
    assert "Department already exists: Cutting (cutting)" in again.getvalue()
    assert Department.objects.count() == len(DEPARTMENT_SUB_STATUSES)


def test_sync_all_stores_skips_unconfigured_and_isolates_failures(monkeypatch, tracking_settings):
    tracking_settings["STORES"] = {
        "fineyst-jackets": "http://jackets.test/api",
        "fineyst-patches": "",
        "fineyst-belts": "http://belts.test/api",
    }
    calls = []

    def fake_sync(store_name):
        calls.append(store_name)
        if store_name == "fineyst-belts":
            raise RuntimeError("timeout")
        return {"message": "Orders synced successfully", "synced": 1, "updated": 0}

    monkeypatch.setattr(tasks, "sync_store", fake_sync)

    summary = tasks.sync_all_stores()

    assert calls == ["fineyst-jackets", "fineyst-belts"]
    assert summary["fineyst-jackets"]["synced"] == 1
    assert summary["fineyst-belts"] == {"error": "timeout"}
    assert "fineyst-patches" not in summary
