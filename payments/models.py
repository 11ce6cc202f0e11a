# payments/models.py
from django.db import models
from django.conf import settings
from students.models import Student

class Payment(models.Model):
    """One installment received from a student."""
    student = models.ForeignKey(Student, related_name='payments', on_delete=models.CASCADE)
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    mode = models.CharField(max_length=30, choices=Student.PaymentMode.choices, default=Student.PaymentMode.CASH)
    reference = models.CharField(max_length=100, unique=True, null=True, blank=True) # UPI / bank / Razorpay ref
    note = models.CharField(max_length=255, blank=True)
    recorded_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True)
    recorded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-recorded_at', '-id']

    def __str__(self):
        return f"{self.student} - {self.amount} ({self.mode})"
