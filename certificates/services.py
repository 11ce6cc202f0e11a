import logging
import re

from django.conf import settings
from django.core.files.base import ContentFile
from django.core.mail import EmailMessage
from django.db import transaction
from django.utils import timezone

from courses.models import Course
from students.models import Student

from .models import Certificate, CertificateSettings
from .rendering import render_png

logger = logging.getLogger(__name__)


class CertificateError(Exception):
    """A certificate operation that cannot go ahead; carries an HTTP status for the view."""
    status_code = 400

    def __init__(self, message, status_code=None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


def course_template(course_name):
    course = Course.objects.filter(name__iexact=course_name).first()
    return course.template if course and course.template else None


def render_for(certificate, layout=None):
    layout = layout or CertificateSettings.load()
    return render_png(
        certificate.full_name,
        certificate.issue_date,
        certificate.certificate_id,
        layout,
        course_template(certificate.course),
    )


def store_render(certificate):
    png = render_for(certificate)
    if certificate.image:
        certificate.image.delete(save=False)
    certificate.image.save(f"{certificate.certificate_id}.png", ContentFile(png), save=True)
    return png


@transaction.atomic
def issue_certificate(student, course_name=None, issue_date=None):
    """Issues an Active certificate for one of the student's courses and marks the student Issued."""
    enrollments = student.enrollments.select_related('course')
    if course_name:
        enrollment = enrollments.filter(course__name__iexact=course_name.strip()).first()
        if enrollment is None:
            raise CertificateError(f"{student.full_name} is not enrolled in {course_name}.")
    else:
        enrollment = enrollments.first()
        if enrollment is None:
            raise CertificateError(f"{student.full_name} is not enrolled in any course.")
    course = enrollment.course

    if Certificate.objects.filter(student=student, course=course.name, status=Certificate.Status.ACTIVE).exists():
        raise CertificateError(
            f"{student.full_name} already holds an active certificate for {course.name}.",
            status_code=409,
        )

    certificate = Certificate.objects.create(
        certificate_id=Certificate.new_certificate_id(course.name, course.short_name),
        student=student,
        full_name=student.full_name,
        course=course.name,
        issue_date=issue_date or timezone.localdate(),
        status=Certificate.Status.ACTIVE,
    )
    store_render(certificate)

    student.certificate_status = Student.CertificateStatus.ISSUED
    student.save(update_fields=['certificate_status', 'updated_at'])

    logger.info("Issued certificate %s to student #%s", certificate.certificate_id, student.row_id)
    return certificate


@transaction.atomic
def revoke_certificate(certificate):
    if certificate.status == Certificate.Status.REVOKED:
        raise CertificateError("Certificate is already revoked.")

    certificate.status = Certificate.Status.REVOKED
    certificate.save(update_fields=['status', 'updated_at'])

    # Also update the student's certificate status
    if certificate.student is not None:
        certificate.student.certificate_status = Student.CertificateStatus.REVOKED
        certificate.student.save(update_fields=['certificate_status', 'updated_at'])

    logger.info("Revoked certificate %s", certificate.certificate_id)
    return certificate


def fill_placeholders(text, certificate, institute):
    values = {
        'FullName': certificate.full_name,
        'Course': certificate.course,
        'CertificateID': certificate.certificate_id,
        'IssueDate': certificate.issue_date.isoformat(),
        'Institute': institute,
    }
    return re.sub(r'\{\{\s*(\w+)\s*\}\}', lambda m: str(values.get(m.group(1), m.group(0))), text)


def email_certificate(certificate):
    """Sends the certificate PNG to the student using the configured email template."""
    if certificate.student is None or not certificate.student.email:
        raise CertificateError("This certificate has no student email address to send to.")

    layout = CertificateSettings.load()
    institute = layout.display_name
    message = EmailMessage(
        subject=fill_placeholders(layout.email_subject, certificate, institute),
        body=fill_placeholders(layout.email_body_template, certificate, institute),
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[certificate.student.email],
    )
    message.attach(f"{certificate.certificate_id}.png", render_for(certificate, layout), "image/png")

    try:
        message.send(fail_silently=False)
    except OSError as e:
        logger.error(f"Sending certificate {certificate.certificate_id} failed: {e}")
        raise CertificateError("Could not send the certificate email. Please try again later.", status_code=503)

    logger.info("Emailed certificate %s to %s", certificate.certificate_id, certificate.student.email)
    return certificate.student.email
