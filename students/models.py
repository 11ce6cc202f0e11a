# academy_platform/students/models.py
from decimal import Decimal

from django.db import models, transaction
from django.db.models import Max

from courses.models import Course

class Student(models.Model):
    class PaymentMode(models.TextChoices):
        CASH = "Cash", "Cash"
        UPI = "UPI", "UPI"
        BANK_TRANSFER = "Bank Transfer", "Bank Transfer"
        CARD = "Card", "Card"
        UPI_APPS = "UPI/Gpay/Phonepe/Paytm", "UPI/Gpay/Phonepe/Paytm"
        WEBSITE = "Website (Razorpay)", "Website (Razorpay)"
        OTHERS = "Others", "Others"
        OTHER = "Other", "Other"

    class PaymentStatus(models.TextChoices):
        PAID = "Paid", "Paid"
        PENDING = "Pending", "Pending"
        PARTIAL = "Partial", "Partial"

    class CertificateStatus(models.TextChoices):
        PENDING = "Pending", "Pending"
        ISSUED = "Issued", "Issued"
        REVOKED = "Revoked", "Revoked"

    # Human-facing sequential number shown in tables and exports
    row_id = models.PositiveIntegerField(unique=True, editable=False)

    full_name = models.CharField(max_length=100)
    email = models.EmailField()
    whatsapp_no = models.CharField(max_length=15)
    city = models.CharField(max_length=50, blank=True)

    payment_mode = models.CharField(max_length=30, choices=PaymentMode.choices, default=PaymentMode.CASH)
    payment_status = models.CharField(max_length=10, choices=PaymentStatus.choices, default=PaymentStatus.PENDING)
    amount_paid = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    pending_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))

    certificate_status = models.CharField(max_length=10, choices=CertificateStatus.choices, default=CertificateStatus.PENDING)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"#{self.row_id} {self.full_name}"

    def save(self, *args, **kwargs):
        if self.row_id is None:
            with transaction.atomic():
                highest = Student.objects.aggregate(highest=Max('row_id'))['highest'] or 0
                self.row_id = highest + 1
                super().save(*args, **kwargs)
            return
        super().save(*args, **kwargs)

    @property
    def primary_enrollment(self):
        return next(iter(self.enrollments.all()), None)

    @property
    def course(self):
        enrollment = self.primary_enrollment
        return enrollment.course.name if enrollment else ''

    @property
    def course_names(self):
        return [e.course.name for e in self.enrollments.all()]

    @property
    def batch_code(self):
        return ', '.join(e.batch_code for e in self.enrollments.all() if e.batch_code)

    def enroll(self, course, batch_code=None, position=None):
        """Enrolls the student in a course, assigning the course's next batch code."""
        existing = Enrollment.objects.filter(student=self, course=course).first()
        if existing:
            changed = []
            if batch_code and existing.batch_code != batch_code:
                existing.batch_code = batch_code
                changed.append('batch_code')
            if position is not None and existing.position != position:
                existing.position = position
                changed.append('position')
            if changed:
                existing.save(update_fields=changed)
            return existing

        if position is None:
            highest = Enrollment.objects.filter(student=self).aggregate(highest=Max('position'))['highest']
            position = 0 if highest is None else highest + 1
        enrollment = Enrollment.objects.create(
            student=self, course=course, batch_code=batch_code or '', position=position
        )
        self._forget_enrollments()
        return enrollment

    def set_courses(self, courses, batch_codes=None):
        """
        Makes the student's enrollments match `courses`, in order; the first
        one is the primary course. Enrollments that stay keep their batch codes.
        """
        # Course names are matched case-insensitively everywhere else
        codes = {name.casefold(): code for name, code in (batch_codes or {}).items()}
        keep_ids = [c.pk for c in courses]
        Enrollment.objects.filter(student=self).exclude(course_id__in=keep_ids).delete()
        for position, course in enumerate(courses):
            self.enroll(course, codes.get(course.name.casefold()), position=position)
        self._forget_enrollments()

    def _forget_enrollments(self):
        # Drops enrollments cached by prefetch_related so the properties re-read them
        getattr(self, '_prefetched_objects_cache', {}).pop('enrollments', None)

    def record_payment(self, amount):
        """Moves `amount` from pending to paid and re-derives the payment status."""
        self.amount_paid += amount
        self.pending_amount = max(Decimal('0.00'), self.pending_amount - amount)
        self.refresh_payment_status()

    def refresh_payment_status(self):
        if self.pending_amount <= 0 and self.amount_paid > 0:
            self.payment_status = self.PaymentStatus.PAID
        elif self.amount_paid > 0:
            self.payment_status = self.PaymentStatus.PARTIAL
        else:
            self.payment_status = self.PaymentStatus.PENDING


class Enrollment(models.Model):
    student = models.ForeignKey(Student, related_name='enrollments', on_delete=models.CASCADE)
    course = models.ForeignKey(Course, related_name='enrollments', on_delete=models.PROTECT)
    sequence = models.PositiveIntegerField(editable=False)
    batch_code = models.CharField(max_length=20, blank=True)
    # Order within the student's courses; 0 is the primary course
    position = models.PositiveSmallIntegerField(default=0)
    enrolled_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('student', 'course')
        ordering = ['position', 'id']

    def __str__(self):
        return f"{self.student.full_name} - {self.course.name} ({self.batch_code})"

    def save(self, *args, **kwargs):
        if self.sequence is None:
            highest = Enrollment.objects.filter(course=self.course).aggregate(highest=Max('sequence'))['highest'] or 0
            self.sequence = highest + 1
        if not self.batch_code:
            self.batch_code = make_batch_code(self.course.code, self.sequence)
        super().save(*args, **kwargs)


def make_batch_code(code, sequence):
    """Batch code for the n-th enrollment in a course, e.g. UXD07."""
    return f"{code}{sequence:02d}"
