from decimal import Decimal

import pytest

from cores.models import AuditLog
from payments.models import Payment

pytestmark = pytest.mark.django_db


@pytest.fixture
def partial_student(make_student):
    return make_student(
        full_name="Meera Nair",
        amount_paid=Decimal("5000"),
        pending_amount=Decimal("10000"),
        payment_status="Partial",
    )


def payments_url(student):
    return f"/api/students/{student.id}/payments/"


def test_installments_settle_the_balance(admin_client, staff_user, partial_student):
    resp = admin_client.post(payments_url(partial_student), {"amount": "4000", "mode": "UPI", "reference": "UPI-001"}, format="json")

    assert resp.status_code == 201
    assert resp.data["amount_paid"] == Decimal("9000.00")
    assert resp.data["pending_amount"] == Decimal("6000.00")
    assert resp.data["payment_status"] == "Partial"
    assert resp.data["payment"]["recorded_by_email"] == staff_user.email

    resp = admin_client.post(payments_url(partial_student), {"amount": "6000", "mode": "Bank Transfer"}, format="json")

    assert resp.status_code == 201
    assert resp.data["payment_status"] == "Paid"
    partial_student.refresh_from_db()
    assert partial_student.pending_amount == Decimal("0.00")
    assert partial_student.amount_paid == Decimal("15000.00")
    assert partial_student.payment_mode == "Bank Transfer"
    assert AuditLog.objects.filter(action="PAYMENT", target_object_id=str(partial_student.id)).count() == 2


def test_payment_history_lists_newest_first(admin_client, partial_student):
    admin_client.post(payments_url(partial_student), {"amount": "1000"}, format="json")
    admin_client.post(payments_url(partial_student), {"amount": "2000"}, format="json")

    resp = admin_client.get(payments_url(partial_student))

    assert resp.status_code == 200
    assert [p["amount"] for p in resp.data] == ["2000.00", "1000.00"]


def test_payment_cannot_exceed_pending_balance(admin_client, partial_student):
    resp = admin_client.post(payments_url(partial_student), {"amount": "10000.01"}, format="json")
    assert resp.status_code == 400
    assert "amount" in resp.data
    assert not Payment.objects.exists()


@pytest.mark.parametrize("amount", ["0", "-50"])
def test_payment_amount_must_be_positive(admin_client, partial_student, amount):
    resp = admin_client.post(payments_url(partial_student), {"amount": amount}, format="json")
    assert resp.status_code == 400


def test_duplicate_reference_is_rejected(admin_client, partial_student):
    admin_client.post(payments_url(partial_student), {"amount": "100", "reference": "RZP-42"}, format="json")
    resp = admin_client.post(payments_url(partial_student), {"amount": "100", "reference": "RZP-42"}, format="json")
    assert resp.status_code == 400
    assert "already been used" in str(resp.data["reference"][0])


def test_blank_references_do_not_collide(admin_client, partial_student):
    for _ in range(2):
        resp = admin_client.post(payments_url(partial_student), {"amount": "100", "reference": ""}, format="json")
        assert resp.status_code == 201
    assert list(Payment.objects.values_list("reference", flat=True)) == [None, None]


def test_payment_for_missing_student(admin_client):
    resp = admin_client.post("/api/students/999/payments/", {"amount": "100"}, format="json")
    assert resp.status_code == 404


def test_payments_require_admin(api_client, partial_student):
    assert api_client.get(payments_url(partial_student)).status_code == 401


def test_payment_summary(admin_client, make_student, partial_student):
    make_student(amount_paid=Decimal("20000"), payment_status="Paid")
    admin_client.post(payments_url(partial_student), {"amount": "1500", "mode": "Cash"}, format="json")
    admin_client.post(payments_url(partial_student), {"amount": "500", "mode": "UPI"}, format="json")
    admin_client.post(payments_url(partial_student), {"amount": "250", "mode": "UPI"}, format="json")

    resp = admin_client.get("/api/payments/summary/")

    assert resp.status_code == 200
    assert resp.data["by_mode"] == [
        {"mode": "Cash", "total": 1500.0, "count": 1},
        {"mode": "UPI", "total": 750.0, "count": 2},
    ]
    by_status = {row["status"]: row for row in resp.data["by_status"]}
    assert by_status["Paid"]["students"] == 1
    assert by_status["Paid"]["paid"] == 20000.0
    assert by_status["Partial"]["paid"] == 7250.0
    assert by_status["Partial"]["pending"] == 7750.0
