from django.db import models
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder


class AuditLog(models.Model):
    ACTION_CHOICES = [
        ('CREATE', 'Create'),
        ('UPDATE', 'Update'),
        ('DELETE', 'Delete'),
        ('LOGIN', 'Login'),
        ('PAYMENT', 'Payment Recorded'),
        ('CERTIFICATE', 'Certificate Issued'),
        ('REVOKE', 'Certificate Revoked'),
        ('SETTINGS', 'Settings Changed'),
    ]

    actor = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=20, choices=ACTION_CHOICES)
    target_model = models.CharField(max_length=50, help_text="e.g., Student, Course, Certificate")
    target_object_id = models.CharField(max_length=100, blank=True, null=True)
    details = models.TextField(blank=True, help_text="Description of changes")
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-timestamp']

    def __str__(self):
        return f"{self.actor} - {self.action} - {self.timestamp}"

    @classmethod
    def record(cls, request, action, target_model, target_object_id=None, details=''):
        actor = request.user if request.user.is_authenticated else None
        return cls.objects.create(
            actor=actor,
            action=action,
            target_model=target_model,
            target_object_id=str(target_object_id) if target_object_id is not None else None,
            details=details,
            ip_address=request.META.get('REMOTE_ADDR') or None,
        )


class ChangeEvent(models.Model):
    """One row per insert/update/delete on a watched table."""
    class Event(models.TextChoices):
        INSERT = "INSERT", "Insert"
        UPDATE = "UPDATE", "Update"
        DELETE = "DELETE", "Delete"

    table = models.CharField(max_length=50, db_index=True)
    event = models.CharField(max_length=10, choices=Event.choices)
    object_id = models.CharField(max_length=100)
    payload = models.JSONField(default=dict, encoder=DjangoJSONEncoder)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['id']

    def __str__(self):
        return f"{self.event} {self.table}:{self.object_id}"
