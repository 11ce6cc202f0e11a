from decimal import Decimal

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from courses.models import Course
from students.models import Student


@pytest.fixture(autouse=True)
def isolated_settings(settings, tmp_path):
    settings.MEDIA_ROOT = str(tmp_path / "media")
    # Small reference canvas keeps rendering fast
    settings.CERTIFICATE_TEMPLATE_SIZE = (397, 562)
    settings.CHANGE_WEBHOOK_URL = ""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def staff_user(django_user_model):
    return django_user_model.objects.create_user(
        username="owner@academy.test",
        email="owner@academy.test",
        password="s3cret-pass-123",
        role="admin",
        is_staff=True,
    )


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def admin_client(staff_user):
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


@pytest.fixture
def make_course(db):
    def _make(name="UI/UX Design", short_name=""):
        return Course.objects.create(name=name, short_name=short_name)
    return _make


@pytest.fixture
def make_student(db, make_course):
    def _make(full_name="Asha Verma", email=None, whatsapp_no=None, courses=None, **extra):
        count = Student.objects.count() + 1
        student = Student.objects.create(
            full_name=full_name,
            email=email or f"student{count}@example.com",
            whatsapp_no=whatsapp_no or f"98765{count:05d}",
            city=extra.pop("city", "Pune"),
            amount_paid=extra.pop("amount_paid", Decimal("0.00")),
            pending_amount=extra.pop("pending_amount", Decimal("0.00")),
            **extra,
        )
        if courses is None:
            courses = [Course.objects.first() or make_course()]
        student.set_courses(courses)
        return student
    return _make
