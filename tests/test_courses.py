import pytest
from django.core.management import call_command

from courses.models import Course, DEFAULT_COURSES, course_code

pytestmark = pytest.mark.django_db


@pytest.mark.parametrize("name, short_name, expected", [
    ("UI/UX Design", "", "UIU"),
    ("Animation & VFX", "", "ANI"),
    ("Photography", "ph", "PH"),
    ("3D", "", "D"),
    ("2024", "", "GEN"),
])
def test_course_code(name, short_name, expected):
    assert course_code(name, short_name) == expected


def test_public_course_list_only_exposes_names(api_client, make_course):
    make_course("Web Development")
    make_course("Graphic Design")

    resp = api_client.get("/api/courses/")

    assert resp.status_code == 200
    assert [c["name"] for c in resp.data] == ["Graphic Design", "Web Development"]
    assert set(resp.data[0]) == {"id", "name"}


def test_admin_creates_course_with_trimmed_name_and_upper_short_name(admin_client):
    resp = admin_client.post("/api/courses/", {"name": "  Photography  ", "short_name": "pho"}, format="json")

    assert resp.status_code == 201
    assert resp.data["name"] == "Photography"
    assert resp.data["short_name"] == "PHO"
    assert resp.data["code"] == "PHO"


def test_duplicate_course_name_is_rejected(admin_client, make_course):
    make_course("Photography")
    resp = admin_client.post("/api/courses/", {"name": "photography"}, format="json")
    assert resp.status_code == 400
    assert "name" in resp.data


def test_blank_course_name_is_rejected(admin_client):
    resp = admin_client.post("/api/courses/", {"name": "   "}, format="json")
    assert resp.status_code == 400


def test_rename_course(admin_client, make_course):
    course = make_course("Web Dev")
    resp = admin_client.patch(f"/api/courses/{course.id}/", {"name": "Web Development", "short_name": "WEB"}, format="json")

    assert resp.status_code == 200
    course.refresh_from_db()
    assert course.name == "Web Development"
    assert course.code == "WEB"


def test_non_admin_cannot_create_course(api_client):
    resp = api_client.post("/api/courses/", {"name": "Photography"}, format="json")
    assert resp.status_code == 401


def test_course_with_students_cannot_be_deleted(admin_client, make_course, make_student):
    course = make_course("Photography")
    make_student(courses=[course])

    resp = admin_client.delete(f"/api/courses/{course.id}/")

    assert resp.status_code == 409
    assert Course.objects.filter(id=course.id).exists()


def test_delete_unused_course(admin_client, make_course):
    course = make_course("Photography")
    resp = admin_client.delete(f"/api/courses/{course.id}/")
    assert resp.status_code == 204
    assert not Course.objects.exists()


def test_seed_courses_is_idempotent():
    call_command("seed_courses")
    call_command("seed_courses")
    assert sorted(Course.objects.values_list("name", flat=True)) == sorted(DEFAULT_COURSES)
