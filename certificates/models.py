# certificates/models.py
import random

from django.conf import settings
from django.core.cache import cache
from django.db import models
from django.utils import timezone

from courses.models import course_code
from students.models import Student

from .layout import default_style


def default_name_style():
    return default_style('name')


def default_date_style():
    return default_style('date')


def default_certificate_id_style():
    return default_style('certificate_id')

DEFAULT_EMAIL_BODY = """Dear {{FullName}},

Congratulations on successfully completing the {{Course}} program at {{Institute}}!

Please find your certificate attached to this email. You can also verify your certificate at our verification portal using your Certificate ID: {{CertificateID}}.

We wish you all the best in your future endeavors.

Best regards,
{{Institute}} Team"""


def generate_certificate_id(course_name, short_name='', year=None, rng=random):
    """PREFIX-YYYY-CODE-NNNNN, e.g. DAA-2025-UIU-48213."""
    year = year or timezone.localdate().year
    number = rng.randint(10000, 99999)
    prefix = getattr(settings, 'CERTIFICATE_ID_PREFIX', 'DAA')
    return f"{prefix}-{year}-{course_code(course_name, short_name)}-{number:05d}"


class Certificate(models.Model):
    class Status(models.TextChoices):
        ACTIVE = "Active", "Active"
        REVOKED = "Revoked", "Revoked"
        EXPIRED = "Expired", "Expired"

    # Unique ID for public verification
    certificate_id = models.CharField(max_length=50, unique=True)
    student = models.ForeignKey(Student, on_delete=models.SET_NULL, null=True, blank=True, related_name='certificates')

    # Snapshot of the student at issue time
    full_name = models.CharField(max_length=100)
    course = models.CharField(max_length=150)

    issue_date = models.DateField(default=timezone.localdate)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.ACTIVE)
    image = models.ImageField(upload_to='certificates/', null=True, blank=True) # Rendered PNG

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Cert {self.certificate_id} for {self.full_name}"

    @property
    def is_valid(self):
        return self.status == self.Status.ACTIVE

    @classmethod
    def new_certificate_id(cls, course_name, short_name='', attempts=20):
        """Draws certificate IDs until one is unused."""
        for _ in range(attempts):
            candidate = generate_certificate_id(course_name, short_name)
            if not cls.objects.filter(certificate_id=candidate).exists():
                return candidate
        raise RuntimeError("Could not generate a unique certificate ID")


class CertificateSettings(models.Model):
    # --- Branding ---
    institute_name = models.CharField(max_length=100, blank=True)
    email_subject = models.CharField(max_length=200, default="Your {{Course}} certificate")
    email_body_template = models.TextField(default=DEFAULT_EMAIL_BODY)

    # --- Layout ---
    show_certificate_id = models.BooleanField(default=False)
    name_style = models.JSONField(default=default_name_style)
    date_style = models.JSONField(default=default_date_style)
    certificate_id_style = models.JSONField(default=default_certificate_id_style)

    def save(self, *args, **kwargs):
        self.pk = 1  # Singleton pattern
        super().save(*args, **kwargs)
        cache.set('certificate_settings', self)

    def delete(self, *args, **kwargs):
        pass

    @classmethod
    def load(cls):
        obj = cache.get('certificate_settings')
        if obj is None:
            obj, created = cls.objects.get_or_create(pk=1)
            cache.set('certificate_settings', obj)
        return obj

    def __str__(self):
        return "Certificate Settings"

    @property
    def display_name(self):
        return self.institute_name or getattr(settings, 'ACADEMY_NAME', '')

    def style_for(self, element):
        return getattr(self, f"{element}_style")
