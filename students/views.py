import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.db.models import Count, Q, Sum
from django.http import HttpResponse
from django.utils import timezone
from rest_framework import permissions, status, views, viewsets
from rest_framework.decorators import action
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response

from certificates.models import Certificate
from cores.models import AuditLog
from cores.signals import publish_rows
from courses.models import Course

from .exports import UnknownColumnError, export_filename, select_columns, students_to_csv
from .models import Student
from .serializers import (
    BulkCertificateStatusSerializer,
    BulkIdsSerializer,
    RegistrationSerializer,
    StudentSerializer,
    StudentSummarySerializer,
)

logger = logging.getLogger(__name__)


class StudentPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'page_size'

    def get_page_size(self, request):
        allowed = getattr(settings, 'STUDENT_PAGE_SIZES', (20, 50, 100))
        try:
            size = int(request.query_params.get(self.page_size_query_param, self.page_size))
        except ValueError:
            return self.page_size
        return size if size in allowed else self.page_size

    def get_paginated_response(self, data):
        return Response({
            "count": self.page.paginator.count,
            "total_pages": self.page.paginator.num_pages,
            "page": self.page.number,
            "next": self.get_next_link(),
            "previous": self.get_previous_link(),
            "results": data,
        })


def filter_students(queryset, params):
    """Applies the list filters shared by the table and the CSV export."""
    search = params.get('search', '').strip()
    if search:
        queryset = queryset.filter(
            Q(full_name__icontains=search) |
            Q(email__icontains=search) |
            Q(whatsapp_no__icontains=search) |
            Q(city__icontains=search) |
            Q(enrollments__batch_code__icontains=search)
        ).distinct()

    course = params.get('course', '').strip()
    if course and course != 'all':
        queryset = queryset.filter(enrollments__course__name__iexact=course).distinct()

    days = params.get('days', '').strip()
    if days and days != 'all':
        try:
            days = int(days)
        except ValueError:
            days = None
        if days:
            queryset = queryset.filter(created_at__gte=timezone.now() - timedelta(days=days))

    return queryset.order_by('-created_at', '-row_id')


class StudentViewSet(viewsets.ModelViewSet):
    """
    Admin student records: CRUD, bulk actions and CSV export.
    Every change is written to the audit log.
    """
    serializer_class = StudentSerializer
    permission_classes = [permissions.IsAdminUser]
    pagination_class = StudentPagination

    def get_queryset(self):
        queryset = Student.objects.prefetch_related('enrollments__course')
        return filter_students(queryset, self.request.query_params)

    @transaction.atomic
    def perform_create(self, serializer):
        student = serializer.save()
        AuditLog.record(
            self.request,
            action='CREATE',
            target_model='Student',
            target_object_id=student.id,
            details=f"Added student #{student.row_id}: {student.full_name}"
        )

    @transaction.atomic
    def perform_update(self, serializer):
        student = serializer.save()
        AuditLog.record(
            self.request,
            action='UPDATE',
            target_model='Student',
            target_object_id=student.id,
            details=f"Updated student #{student.row_id}: {student.full_name}"
        )

    def perform_destroy(self, instance):
        AuditLog.record(
            self.request,
            action='DELETE',
            target_model='Student',
            target_object_id=instance.id,
            details=f"Deleted student #{instance.row_id}: {instance.full_name}"
        )
        instance.delete()

    @action(detail=False, methods=['post'], url_path='bulk-delete')
    def bulk_delete(self, request):
        """
        Deletes several students at once.
        Payload: { "ids": [1, 2, 3] }
        """
        serializer = BulkIdsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        ids = serializer.validated_data['ids']

        with transaction.atomic():
            students = Student.objects.filter(id__in=ids)
            deleted_ids = sorted(students.values_list('id', flat=True))
            count = len(deleted_ids)
            students.delete()
            AuditLog.record(
                request,
                action='DELETE',
                target_model='Student',
                details=f"Bulk deleted students: {', '.join(str(i) for i in deleted_ids)}"
            )

        logger.info("Bulk delete of %s students by %s", count, request.user)
        return Response({"status": f"{count} students deleted successfully"})

    @action(detail=False, methods=['post'], url_path='bulk-certificate-status')
    def bulk_certificate_status(self, request):
        """
        Sets certificate_status on several students.
        Payload: { "ids": [1, 2], "status": "Issued" }
        """
        serializer = BulkCertificateStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        ids = serializer.validated_data['ids']
        new_status = serializer.validated_data['status']

        count = Student.objects.filter(id__in=ids).update(certificate_status=new_status, updated_at=timezone.now())
        publish_rows(Student, ids)
        AuditLog.record(
            request,
            action='UPDATE',
            target_model='Student',
            details=f"Set certificate status {new_status} on {count} students"
        )
        return Response({"status": f"{count} students updated to {new_status}", "updated": count})

    @action(detail=False, methods=['get'], url_path='export')
    def export(self, request):
        """
        Downloads the filtered students as CSV.
        ?columns=row_id,full_name,... selects columns (default: all).
        """
        raw = request.query_params.get('columns')
        keys = None
        if raw is not None:
            keys = [k.strip() for k in raw.split(',') if k.strip()]
            if not keys:
                return Response({"error": "Please select at least one column to export"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            columns = select_columns(keys)
        except UnknownColumnError as e:
            return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        students = list(self.get_queryset())
        if not students:
            return Response({"error": "No students to export"}, status=status.HTTP_400_BAD_REQUEST)

        response = HttpResponse(students_to_csv(students, columns), content_type='text/csv; charset=utf-8')
        response['Content-Disposition'] = f'attachment; filename="{export_filename()}"'
        return response


# --- Public Registration ---
class RegisterView(views.APIView):
    """Public registration form. Rejects a second registration with the same email or WhatsApp number."""
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = RegistrationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        duplicate = serializer.duplicate_field()
        if duplicate:
            return Response(
                {"error": f"A student with this {duplicate} is already registered."},
                status=status.HTTP_400_BAD_REQUEST
            )

        with transaction.atomic():
            student = serializer.save()
        logger.info("New registration #%s for %s", student.row_id, student.course)

        return Response(
            {"status": "Registration successful!", "student": StudentSerializer(student).data},
            status=status.HTTP_201_CREATED
        )


# --- Dashboard Stats ---
class DashboardStatsView(views.APIView):
    permission_classes = [permissions.IsAdminUser]

    def get(self, request):
        now = timezone.localtime()
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        students = Student.objects.all()
        total = students.count()

        amounts = students.aggregate(paid=Sum('amount_paid'), pending=Sum('pending_amount'))

        distribution = []
        courses = Course.objects.annotate(students=Count('enrollments')).filter(students__gt=0).order_by('-students', 'name')
        for course in courses:
            distribution.append({
                "course": course.name,
                "count": course.students,
                "percentage": round(course.students * 100 / total) if total else 0,
            })

        recent = students.prefetch_related('enrollments__course').order_by('-created_at')[:5]

        return Response({
            "total_students": total,
            "today_count": students.filter(created_at__gte=today).count(),
            "last_7_days": students.filter(created_at__gte=today - timedelta(days=7)).count(),
            "last_30_days": students.filter(created_at__gte=today - timedelta(days=30)).count(),
            "total_paid_amount": float(amounts['paid'] or 0),
            "total_pending_amount": float(amounts['pending'] or 0),
            "course_distribution": distribution,
            "recent_students": StudentSummarySerializer(recent, many=True).data,
            "certificates": {
                "total": Certificate.objects.count(),
                "active": Certificate.objects.filter(status=Certificate.Status.ACTIVE).count(),
                "revoked": Certificate.objects.filter(status=Certificate.Status.REVOKED).count(),
            },
        })
