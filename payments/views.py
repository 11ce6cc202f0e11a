import logging

from django.db import transaction
from django.db.models import Count, Sum
from django.shortcuts import get_object_or_404
from rest_framework import generics, permissions, status, views
from rest_framework.response import Response

from cores.models import AuditLog
from students.models import Student
from .models import Payment
from .serializers import PaymentSerializer

logger = logging.getLogger(__name__)

class StudentPaymentListView(generics.ListCreateAPIView):
    """
    Payments recorded against one student.
    POST records an installment and updates the student's balances.
    """
    serializer_class = PaymentSerializer
    permission_classes = [permissions.IsAdminUser]
    pagination_class = None

    def get_student(self):
        return get_object_or_404(Student, id=self.kwargs['student_id'])

    def get_queryset(self):
        return Payment.objects.filter(student_id=self.kwargs['student_id']).select_related('recorded_by')

    def create(self, request, *args, **kwargs):
        student = self.get_student()
        serializer = self.get_serializer(data=request.data, context={'student': student, 'request': request})
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            payment = serializer.save(recorded_by=request.user)
            AuditLog.record(
                request,
                action='PAYMENT',
                target_model='Student',
                target_object_id=student.id,
                details=f"Recorded {payment.amount} ({payment.mode}) for #{student.row_id} {student.full_name}"
            )

        student.refresh_from_db()
        logger.info("Payment of %s recorded for student #%s", payment.amount, student.row_id)
        return Response({
            "payment": PaymentSerializer(payment).data,
            "amount_paid": student.amount_paid,
            "pending_amount": student.pending_amount,
            "payment_status": student.payment_status,
        }, status=status.HTTP_201_CREATED)

class PaymentSummaryView(views.APIView):
    """Totals received per payment mode, and student balances per payment status."""
    permission_classes = [permissions.IsAdminUser]

    def get(self, request):
        by_mode = (
            Payment.objects.values('mode')
            .annotate(total=Sum('amount'), count=Count('id'))
            .order_by('mode')
        )
        by_status = (
            Student.objects.values('payment_status')
            .annotate(students=Count('id'), paid=Sum('amount_paid'), pending=Sum('pending_amount'))
            .order_by('payment_status')
        )
        return Response({
            "by_mode": [
                {"mode": row['mode'], "total": float(row['total'] or 0), "count": row['count']}
                for row in by_mode
            ],
            "by_status": [
                {
                    "status": row['payment_status'],
                    "students": row['students'],
                    "paid": float(row['paid'] or 0),
                    "pending": float(row['pending'] or 0),
                }
                for row in by_status
            ],
        })
