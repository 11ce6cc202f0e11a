import io
import re
from datetime import date
from types import SimpleNamespace

import pytest
from django.core import mail
from django.core.files.base import ContentFile
from PIL import Image, ImageDraw, ImageOps

from certificates import layout
from certificates.models import Certificate, CertificateSettings, generate_certificate_id
from certificates.rendering import draw_element, render_certificate, render_png
from certificates.services import CertificateError, fill_placeholders, issue_certificate
from cores.models import AuditLog
from students.models import Student

pytestmark = pytest.mark.django_db

CERTIFICATE_ID = re.compile(r"^DAA-\d{4}-[A-Z]{3}-\d{5}$")


@pytest.fixture
def enrolled(make_course, make_student):
    course = make_course("UI/UX Design")
    return make_student(full_name="priya kapoor", email="priya@example.com", courses=[course])


def issue(client, student, **extra):
    return client.post("/api/admin/certificates/", {"student": student.id, **extra}, format="json")


# --- Layout helpers ---

@pytest.mark.parametrize("day, suffix", [
    (1, "st"), (2, "nd"), (3, "rd"), (4, "th"), (11, "th"), (12, "th"),
    (13, "th"), (21, "st"), (22, "nd"), (23, "rd"), (30, "th"), (31, "st"),
])
def test_ordinal_suffix(day, suffix):
    assert layout.ordinal_suffix(day) == suffix


def test_format_issue_date():
    assert layout.format_issue_date(date(2025, 12, 22)) == "22nd December, 2025"
    assert layout.format_issue_date("2024-03-01") == "1st March, 2024"


def test_format_name_capitalises_each_word():
    assert layout.format_name("priya  kapoor") == "Priya Kapoor"
    assert layout.format_name("JOHN o'neil") == "JOHN O'neil"


def test_preview_scale_and_drag(settings):
    settings.CERTIFICATE_TEMPLATE_SIZE = (1588, 2246)
    scale = layout.preview_scale(794)
    assert scale == 0.5

    style = layout.default_style("date")
    moved = layout.apply_drag(style, dx=79.4, dy=-112.3, scale=scale)
    assert moved["left"] == pytest.approx(17.5)
    assert moved["top"] == pytest.approx(72.5)
    # The original style is left untouched
    assert style["left"] == 7.5


def test_drag_is_clamped_to_template(settings):
    settings.CERTIFICATE_TEMPLATE_SIZE = (1588, 2246)
    moved = layout.apply_drag(layout.default_style("name"), dx=-5000, dy=5000, scale=1)
    assert moved["left"] == 0.0
    assert moved["top"] == 100.0


def test_to_pixels_uses_percentages():
    assert layout.to_pixels({"left": 50, "top": 25}, (800, 1200)) == (400, 300)


# --- IDs ---

def test_generate_certificate_id_format():
    certificate_id = generate_certificate_id("Photography")
    assert CERTIFICATE_ID.match(certificate_id)
    assert certificate_id.split("-")[2] == "PHO"


def test_generate_certificate_id_uses_short_name():
    class FixedRandom:
        def randint(self, low, high):
            return 12345

    assert generate_certificate_id("UI/UX Design", "UX", year=2025, rng=FixedRandom()) == "DAA-2025-UX-12345"


def test_new_certificate_id_skips_taken_ids(monkeypatch):
    Certificate.objects.create(certificate_id="DAA-2025-UIU-11111", full_name="Taken", course="UI/UX Design")
    draws = iter([11111, 11111, 22222])
    monkeypatch.setattr("certificates.models.random.randint", lambda low, high: next(draws))
    monkeypatch.setattr("certificates.models.timezone.localdate", lambda: date(2025, 6, 1))

    assert Certificate.new_certificate_id("UI/UX Design") == "DAA-2025-UIU-22222"


def test_new_certificate_id_gives_up(monkeypatch):
    Certificate.objects.create(certificate_id="DAA-2025-UIU-11111", full_name="Taken", course="UI/UX Design")
    monkeypatch.setattr("certificates.models.random.randint", lambda low, high: 11111)
    monkeypatch.setattr("certificates.models.timezone.localdate", lambda: date(2025, 6, 1))

    with pytest.raises(RuntimeError):
        Certificate.new_certificate_id("UI/UX Design", attempts=3)


# --- Rendering ---

def test_rendered_png_matches_template_size():
    png = render_png("Priya Kapoor", date(2025, 12, 22), "DAA-2025-UIU-12345", CertificateSettings.load())
    image = Image.open(io.BytesIO(png))
    assert image.format == "PNG"
    assert image.size == (397, 562)


def test_rendering_uses_course_template(make_course):
    course = make_course("Photography")
    buffer = io.BytesIO()
    Image.new("RGB", (794, 1123), "navy").save(buffer, format="PNG")
    course.template.save("photo.png", ContentFile(buffer.getvalue()), save=True)

    png = render_png("Priya Kapoor", date(2025, 12, 22), "DAA-2025-PHO-12345", CertificateSettings.load(), course.template)

    image = Image.open(io.BytesIO(png)).convert("RGB")
    assert image.size == (794, 1123)
    assert image.getpixel((5, 5)) == (0, 0, 128)


def text_style(**overrides):
    style = {
        "top": 50,
        "left": 50,
        "fontSize": 24,
        "color": "#000000",
        "fontWeight": 400,
        "letterSpacing": 0,
        "textAlign": "left",
    }
    style.update(overrides)
    return style


def ink_box(image, box=None):
    """Bounding box of everything that is not white."""
    if box is not None:
        image = image.crop(box)
    return ImageOps.invert(image.convert("L")).getbbox()


def drawn(text, style, size=(397, 562)):
    image = Image.new("RGB", size, "white")
    draw_element(image, ImageDraw.Draw(image), text, style)
    return ink_box(image)


def test_left_aligned_text_starts_at_left_percent():
    left, _, _, _ = drawn("HELLO", text_style(left=50))
    assert 397 * 0.5 - 1 <= left <= 397 * 0.5 + 4


def test_right_aligned_text_is_placed_like_left_aligned():
    assert drawn("HELLO", text_style(textAlign="right")) == drawn("HELLO", text_style(textAlign="left"))


def test_centered_text_ignores_left():
    near = drawn("HELLO", text_style(textAlign="center", left=10))
    far = drawn("HELLO", text_style(textAlign="center", left=80))
    assert near == far
    assert abs((near[0] + near[2]) / 2 - 397 / 2) <= 4


def test_top_is_a_percentage_of_height():
    high = drawn("HELLO", text_style(top=20))
    low = drawn("HELLO", text_style(top=60))
    assert low[1] - high[1] == pytest.approx(562 * 0.4, abs=1.5)
    assert high[1] >= 562 * 0.2


def test_font_size_scales_with_template_width():
    # Reference width is 397 in tests, so a 794 wide template doubles everything
    small = drawn("HELLO", text_style(), size=(397, 562))
    large = drawn("HELLO", text_style(), size=(794, 1124))
    small_width = small[2] - small[0]
    large_width = large[2] - large[0]
    assert large_width == pytest.approx(small_width * 2, rel=0.08)
    assert (large[3] - large[1]) == pytest.approx((small[3] - small[1]) * 2, rel=0.1)


def test_letter_spacing_scales_with_template_width():
    def spacing_added(size):
        plain = drawn("IIII", text_style(), size=size)
        spaced = drawn("IIII", text_style(letterSpacing=10), size=size)
        return (spaced[2] - spaced[0]) - (plain[2] - plain[0])

    assert spacing_added((397, 562)) == pytest.approx(30, abs=2)
    assert spacing_added((794, 1124)) == pytest.approx(60, abs=2)


def test_certificate_id_drawn_only_when_enabled():
    def layout_with_id(show):
        return SimpleNamespace(
            name_style=text_style(top=20, textAlign="center"),
            date_style=text_style(top=50, left=10),
            certificate_id_style=text_style(top=80, left=10),
            show_certificate_id=show,
        )

    id_band = (0, int(562 * 0.78), 397, int(562 * 0.95))
    hidden = render_certificate("Priya Kapoor", date(2025, 12, 22), "DAA-2025-UIU-12345", layout_with_id(False))
    shown = render_certificate("Priya Kapoor", date(2025, 12, 22), "DAA-2025-UIU-12345", layout_with_id(True))

    assert ink_box(hidden, id_band) is None
    assert ink_box(shown, id_band) is not None
    # The other elements are unaffected
    upper = (0, 0, 397, int(562 * 0.78))
    assert ink_box(hidden, upper) == ink_box(shown, upper)


# --- Issue / revoke ---

def test_issue_certificate(admin_client, enrolled):
    resp = issue(admin_client, enrolled, issue_date="2025-12-22")

    assert resp.status_code == 201
    assert CERTIFICATE_ID.match(resp.data["certificate_id"])
    assert resp.data["full_name"] == "priya kapoor"
    assert resp.data["course"] == "UI/UX Design"
    assert resp.data["issue_date"] == "2025-12-22"
    assert resp.data["status"] == "Active"
    assert resp.data["student_row_id"] == enrolled.row_id
    assert resp.data["image_url"].endswith(".png")

    enrolled.refresh_from_db()
    assert enrolled.certificate_status == Student.CertificateStatus.ISSUED
    assert AuditLog.objects.filter(action="CERTIFICATE").exists()


def test_second_active_certificate_for_a_course_conflicts(admin_client, enrolled):
    issue(admin_client, enrolled)
    resp = issue(admin_client, enrolled)
    assert resp.status_code == 409
    assert Certificate.objects.count() == 1


def test_issue_for_other_course_requires_enrollment(admin_client, make_course, enrolled):
    make_course("Photography")
    resp = issue(admin_client, enrolled, course="Photography")
    assert resp.status_code == 400
    assert "not enrolled" in resp.data["error"]


def test_default_course_follows_saved_course_order(admin_client, make_course, enrolled):
    make_course("Graphic Design", "GD")
    admin_client.patch(f"/api/students/{enrolled.id}/", {"courses": ["Graphic Design", "UI/UX Design"]}, format="json")

    resp = issue(admin_client, enrolled)

    assert resp.status_code == 201
    assert resp.data["course"] == "Graphic Design"
    assert resp.data["certificate_id"].split("-")[2] == "GD"


def test_issue_for_missing_student(admin_client):
    assert admin_client.post("/api/admin/certificates/", {"student": 404}, format="json").status_code == 404


def test_student_without_courses_cannot_be_certified(enrolled):
    enrolled.enrollments.all().delete()
    with pytest.raises(CertificateError) as excinfo:
        issue_certificate(enrolled)
    assert excinfo.value.status_code == 400


def test_revoke_certificate(admin_client, enrolled):
    certificate_pk = issue(admin_client, enrolled).data["id"]

    resp = admin_client.post(f"/api/admin/certificates/{certificate_pk}/revoke/")
    assert resp.status_code == 200
    assert resp.data["status"] == "Revoked"
    enrolled.refresh_from_db()
    assert enrolled.certificate_status == Student.CertificateStatus.REVOKED

    resp = admin_client.post(f"/api/admin/certificates/{certificate_pk}/revoke/")
    assert resp.status_code == 400

    # A revoked certificate no longer blocks a new one
    assert issue(admin_client, enrolled).status_code == 201


def test_list_filters_and_stats(admin_client, make_course, make_student):
    design = make_course("Graphic Design", "GD")
    web = make_course("Web Development")
    a = make_student(full_name="Asha Verma", courses=[design])
    b = make_student(full_name="Ravi Kumar", courses=[web])
    issue(admin_client, a)
    revoked = issue(admin_client, b).data
    admin_client.post(f"/api/admin/certificates/{revoked['id']}/revoke/")

    resp = admin_client.get("/api/admin/certificates/")
    assert resp.data["stats"] == {"total": 2, "active": 1, "revoked": 1}
    assert len(resp.data["results"]) == 2

    resp = admin_client.get("/api/admin/certificates/", {"status": "Revoked"})
    assert [c["full_name"] for c in resp.data["results"]] == ["Ravi Kumar"]

    resp = admin_client.get("/api/admin/certificates/", {"course": "graphic design"})
    assert [c["full_name"] for c in resp.data["results"]] == ["Asha Verma"]

    resp = admin_client.get("/api/admin/certificates/", {"search": revoked["certificate_id"].lower()})
    assert [c["full_name"] for c in resp.data["results"]] == ["Ravi Kumar"]


def test_delete_certificate(admin_client, enrolled):
    certificate_pk = issue(admin_client, enrolled).data["id"]
    assert admin_client.delete(f"/api/admin/certificates/{certificate_pk}/").status_code == 204
    assert not Certificate.objects.exists()


def test_download_returns_png(admin_client, enrolled):
    data = issue(admin_client, enrolled).data

    resp = admin_client.get(f"/api/admin/certificates/{data['id']}/download/")

    assert resp.status_code == 200
    assert resp["Content-Type"] == "image/png"
    assert f'{data["certificate_id"]}.png' in resp["Content-Disposition"]
    assert resp.content.startswith(b"\x89PNG")


def test_email_certificate(admin_client, enrolled):
    data = issue(admin_client, enrolled).data

    resp = admin_client.post(f"/api/admin/certificates/{data['id']}/email/")

    assert resp.status_code == 200
    assert len(mail.outbox) == 1
    message = mail.outbox[0]
    assert message.to == ["priya@example.com"]
    assert message.subject == "Your UI/UX Design certificate"
    assert data["certificate_id"] in message.body
    assert "Design Arc Academy" in message.body
    filename, content, mimetype = message.attachments[0]
    assert filename == f"{data['certificate_id']}.png"
    assert mimetype == "image/png"


def test_email_without_student(admin_client, enrolled):
    data = issue(admin_client, enrolled).data
    enrolled.delete()

    resp = admin_client.post(f"/api/admin/certificates/{data['id']}/email/")

    assert resp.status_code == 400
    assert not mail.outbox


def test_fill_placeholders_leaves_unknown_names():
    certificate = Certificate(certificate_id="DAA-2025-UIU-12345", full_name="Priya", course="UI/UX Design", issue_date=date(2025, 1, 2))
    text = "{{ FullName }} / {{Course}} / {{IssueDate}} / {{Nickname}}"
    assert fill_placeholders(text, certificate, "Academy") == "Priya / UI/UX Design / 2025-01-02 / {{Nickname}}"


def test_certificates_require_admin(api_client):
    assert api_client.get("/api/admin/certificates/").status_code == 401


# --- Public verification ---

def test_verify_is_case_insensitive(admin_client, api_client, enrolled):
    certificate_id = issue(admin_client, enrolled).data["certificate_id"]

    resp = api_client.get(f"/api/verify/{certificate_id.lower()}/")

    assert resp.status_code == 200
    assert resp.data["certificate_id"] == certificate_id
    assert resp.data["valid"] is True
    assert resp.data["issued_by"] == "Design Arc Academy"
    assert "student" not in resp.data


def test_verify_revoked_certificate(admin_client, api_client, enrolled):
    data = issue(admin_client, enrolled).data
    admin_client.post(f"/api/admin/certificates/{data['id']}/revoke/")

    resp = api_client.get(f"/api/verify/{data['certificate_id']}/")

    assert resp.data["status"] == "Revoked"
    assert resp.data["valid"] is False


def test_verify_unknown_id(api_client):
    resp = api_client.get("/api/verify/DAA-2025-XXX-00000/")
    assert resp.status_code == 404
    assert resp.data["error"] == 'No certificate was found with the ID "DAA-2025-XXX-00000".'


# --- Layout settings ---

def test_settings_defaults(admin_client):
    resp = admin_client.get("/api/admin/certificate-settings/")

    assert resp.status_code == 200
    assert resp.data["show_certificate_id"] is False
    assert resp.data["institute_display_name"] == "Design Arc Academy"
    assert resp.data["name_style"]["color"] == "#F89A28"
    assert resp.data["name_style"]["textAlign"] == "center"


def test_partial_style_update_keeps_other_keys(admin_client):
    resp = admin_client.patch("/api/admin/certificate-settings/", {
        "name_style": {"top": 45, "color": "#112233"},
        "show_certificate_id": True,
    }, format="json")

    assert resp.status_code == 200
    style = CertificateSettings.objects.get(pk=1).name_style
    assert style["top"] == 45
    assert style["color"] == "#112233"
    assert style["fontSize"] == 50
    assert CertificateSettings.load().show_certificate_id is True
    assert AuditLog.objects.filter(action="SETTINGS").count() == 1


@pytest.mark.parametrize("style", [
    {"color": "orange"},
    {"top": 120},
    {"textAlign": "justify"},
    {"fontWeight": 450},
])
def test_invalid_style_is_rejected(admin_client, style):
    resp = admin_client.put("/api/admin/certificate-settings/", {"date_style": style}, format="json")
    assert resp.status_code == 400
    assert "date_style" in resp.data


def test_reset_style(admin_client):
    admin_client.patch("/api/admin/certificate-settings/", {"date_style": {"left": 60}}, format="json")

    resp = admin_client.post("/api/admin/certificate-settings/reset/", {"element": "date"}, format="json")

    assert resp.status_code == 200
    assert resp.data["date_style"]["left"] == 7.5
    assert CertificateSettings.load().date_style == layout.DEFAULT_STYLES["date"]


def test_reset_unknown_element(admin_client):
    resp = admin_client.post("/api/admin/certificate-settings/reset/", {"element": "logo"}, format="json")
    assert resp.status_code == 400


def test_preview(admin_client):
    resp = admin_client.get("/api/admin/certificate-settings/preview/", {"full_name": "Sample Student", "issue_date": "2025-12-22"})
    assert resp.status_code == 200
    assert resp["Content-Type"] == "image/png"

    resp = admin_client.get("/api/admin/certificate-settings/preview/", {"issue_date": "22/12/2025"})
    assert resp.status_code == 400
