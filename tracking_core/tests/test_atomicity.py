# tracking_core/tests/test_atomicity.py
"""
Projection and ledger change together or not at all.
"""

import threading

import pytest
from django.db import connection

from tracking_core.exceptions import AlreadyCheckedIn
from tracking_core.models import OrderItemTracking
from tracking_core.services.ledger import TrackingLedger
from tracking_core.services.order_tracking import OrderTrackingService
from tracking_core.tests.conftest import PASSWORD


class ExplodingLedger(TrackingLedger):
    def append(self, *, item, record, actor):
        raise RuntimeError("ledger unavailable")


@pytest.mark.django_db
def test_ledger_failure_rolls_back_projection(item, cutting, operator):
    service = OrderTrackingService(ledger=ExplodingLedger())

    with pytest.raises(RuntimeError):
        service.check_in(
            scan_token=item.scan_token,
            department_id=cutting.pk,
            user_id=operator.pk,
            password=PASSWORD,
        )

    item.refresh_from_db()
    assert item.lifecycle_status == "pending"
    assert item.current_department_id is None
    assert not OrderItemTracking.objects.exists()


@pytest.mark.django_db
def test_ledger_failure_on_check_out_keeps_holder(item_factory, cutting, embroidery, operator):
    item = item_factory(status="in-progress", department=cutting)
    service = OrderTrackingService(ledger=ExplodingLedger())

    with pytest.raises(RuntimeError):
        service.check_out(
            scan_token=item.scan_token,
            department_id=cutting.pk,
            user_id=operator.pk,
            password=PASSWORD,
            handover_department_id=embroidery.pk,
        )

    item.refresh_from_db()
    assert item.lifecycle_status == "in-progress"
    assert item.current_department_id == cutting.pk
    assert item.handover_department_id is None


@pytest.mark.django_db
def test_second_check_in_at_same_department_is_rejected(service, item, cutting, operator):
    kwargs = dict(
        scan_token=item.scan_token,
        department_id=cutting.pk,
        user_id=operator.pk,
        password=PASSWORD,
    )
    service.check_in(**kwargs)
    with pytest.raises(AlreadyCheckedIn):
        service.check_in(**kwargs)

    assert OrderItemTracking.objects.filter(item=item).count() == 1


@pytest.mark.django_db
def test_check_in_at_second_department_sees_first_check_in(service, item, cutting, stitching, operator):
    def check_in(dept):
        return service.check_in(
            scan_token=item.scan_token,
            department_id=dept.pk,
            user_id=operator.pk,
            password=PASSWORD,
        )

    check_in(cutting)
    second = check_in(stitching)

    assert second.entry.previous_status == "checked-in"
    assert second.entry.department_id == stitching.pk

    item.refresh_from_db()
    assert item.lifecycle_status == "checked-in"
    assert item.current_department_id == stitching.pk
    assert item.last_department_id == cutting.pk
    assert OrderItemTracking.objects.filter(item=item).count() == 2

    with pytest.raises(AlreadyCheckedIn):
        check_in(stitching)
    assert OrderItemTracking.objects.filter(item=item).count() == 2


@pytest.mark.django_db(transaction=True)
def test_concurrent_check_ins_serialize_on_row_lock(item, cutting, operator):
    if connection.vendor != "postgresql":
        pytest.skip("row locks need PostgreSQL")

    barrier = threading.Barrier(2)
    outcomes = []

    def worker():
        try:
            barrier.wait(timeout=5)
            OrderTrackingService().check_in(
                scan_token=item.scan_token,
                department_id=cutting.pk,
                user_id=operator.pk,
                password=PASSWORD,
            )
            outcomes.append("ok")
        except AlreadyCheckedIn:
            outcomes.append("already")
        finally:
            connection.close()

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert sorted(outcomes) == ["already", "ok"]
    assert OrderItemTracking.objects.filter(item=item).count() == 1

    item.refresh_from_db()
    assert item.lifecycle_status == "checked-in"
    assert item.current_department_id == cutting.pk
