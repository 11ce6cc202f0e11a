# certificates/views.py
import logging
from datetime import date

from django.db.models import Q
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import mixins, permissions, status, views, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from cores.models import AuditLog
from students.models import Student

from .layout import ELEMENTS, default_style
from .models import Certificate, CertificateSettings
from .rendering import render_png
from .serializers import (
    CertificateSerializer,
    CertificateSettingsSerializer,
    IssueCertificateSerializer,
    VerificationSerializer,
)
from .services import (
    CertificateError,
    course_template,
    email_certificate,
    issue_certificate,
    render_for,
    revoke_certificate,
)

logger = logging.getLogger(__name__)


class CertificateViewSet(mixins.ListModelMixin,
                         mixins.RetrieveModelMixin,
                         mixins.DestroyModelMixin,
                         viewsets.GenericViewSet):
    """Admin certificate inventory: issue, revoke, delete, download and email."""
    permission_classes = [permissions.IsAdminUser]
    serializer_class = CertificateSerializer

    def get_queryset(self):
        queryset = Certificate.objects.select_related('student').order_by('-created_at')
        params = self.request.query_params

        search = params.get('search', '').strip()
        if search:
            queryset = queryset.filter(Q(full_name__icontains=search) | Q(certificate_id__icontains=search))

        course = params.get('course', '').strip()
        if course and course != 'all':
            queryset = queryset.filter(course__iexact=course)

        cert_status = params.get('status', '').strip()
        if cert_status and cert_status != 'all':
            queryset = queryset.filter(status=cert_status)

        return queryset

    def list(self, request, *args, **kwargs):
        certificates = Certificate.objects.all()
        serializer = self.get_serializer(self.get_queryset(), many=True)
        return Response({
            "stats": {
                "total": certificates.count(),
                "active": certificates.filter(status=Certificate.Status.ACTIVE).count(),
                "revoked": certificates.filter(status=Certificate.Status.REVOKED).count(),
            },
            "results": serializer.data,
        })

    def create(self, request, *args, **kwargs):
        serializer = IssueCertificateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        student = get_object_or_404(Student, id=serializer.validated_data['student'])

        try:
            certificate = issue_certificate(
                student,
                serializer.validated_data.get('course'),
                serializer.validated_data.get('issue_date'),
            )
        except CertificateError as e:
            return Response({"error": str(e)}, status=e.status_code)

        AuditLog.record(
            request,
            action='CERTIFICATE',
            target_model='Certificate',
            target_object_id=certificate.certificate_id,
            details=f"Issued {certificate.certificate_id} to {certificate.full_name} ({certificate.course})"
        )
        return Response(self.get_serializer(certificate).data, status=status.HTTP_201_CREATED)

    def perform_destroy(self, instance):
        AuditLog.record(
            self.request,
            action='DELETE',
            target_model='Certificate',
            target_object_id=instance.certificate_id,
            details=f"Deleted certificate {instance.certificate_id} of {instance.full_name}"
        )
        if instance.image:
            instance.image.delete(save=False)
        instance.delete()

    @action(detail=True, methods=['post'])
    def revoke(self, request, pk=None):
        certificate = self.get_object()
        try:
            revoke_certificate(certificate)
        except CertificateError as e:
            return Response({"error": str(e)}, status=e.status_code)

        AuditLog.record(
            request,
            action='REVOKE',
            target_model='Certificate',
            target_object_id=certificate.certificate_id,
            details=f"Revoked {certificate.certificate_id} of {certificate.full_name}"
        )
        return Response(self.get_serializer(certificate).data)

    @action(detail=True, methods=['get'])
    def download(self, request, pk=None):
        certificate = self.get_object()
        response = HttpResponse(render_for(certificate), content_type='image/png')
        response['Content-Disposition'] = f'attachment; filename="{certificate.certificate_id}.png"'
        return response

    @action(detail=True, methods=['post'])
    def email(self, request, pk=None):
        certificate = self.get_object()
        try:
            recipient = email_certificate(certificate)
        except CertificateError as e:
            return Response({"error": str(e)}, status=e.status_code)
        return Response({"status": f"Certificate sent to {recipient}"})


class CertificateSettingsView(views.APIView):
    permission_classes = [permissions.IsAdminUser]

    def get(self, request):
        settings = CertificateSettings.load()
        serializer = CertificateSettingsSerializer(settings)
        return Response(serializer.data)

    def put(self, request):
        settings = CertificateSettings.load()
        serializer = CertificateSettingsSerializer(settings, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            # Auto-Log this action
            AuditLog.record(
                request,
                action='SETTINGS',
                target_model='CertificateSettings',
                details='Updated certificate layout settings'
            )
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    patch = put


class ResetCertificateStyleView(views.APIView):
    """
    Restores the default style of one text element.
    Payload: { "element": "name" | "date" | "certificate_id" }
    """
    permission_classes = [permissions.IsAdminUser]

    def post(self, request):
        element = request.data.get('element')
        if element not in ELEMENTS:
            return Response(
                {"error": f"element must be one of: {', '.join(ELEMENTS)}"},
                status=status.HTTP_400_BAD_REQUEST
            )

        settings = CertificateSettings.load()
        setattr(settings, f"{element}_style", default_style(element))
        settings.save()
        AuditLog.record(
            request,
            action='SETTINGS',
            target_model='CertificateSettings',
            details=f"Reset {element} style to defaults"
        )
        return Response(CertificateSettingsSerializer(settings).data)


class CertificatePreviewView(views.APIView):
    """Renders sample data with the current layout, for the settings editor."""
    permission_classes = [permissions.IsAdminUser]

    def get(self, request):
        params = request.query_params
        full_name = params.get('full_name') or 'John Doe'
        course = params.get('course', '')
        certificate_id = params.get('certificate_id') or 'DAA-2025-PRO-00001'
        try:
            issue_date = date.fromisoformat(params['issue_date']) if params.get('issue_date') else timezone.localdate()
        except ValueError:
            return Response({"error": "issue_date must be YYYY-MM-DD"}, status=status.HTTP_400_BAD_REQUEST)

        png = render_png(full_name, issue_date, certificate_id, CertificateSettings.load(), course_template(course))
        return HttpResponse(png, content_type='image/png')


class VerifyCertificateView(views.APIView):
    """Public lookup of a certificate ID (case-insensitive)."""
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def get(self, request, certificate_id):
        certificate_id = certificate_id.strip()
        certificate = Certificate.objects.filter(certificate_id__iexact=certificate_id).first()
        if certificate is None:
            return Response(
                {"error": f'No certificate was found with the ID "{certificate_id}".'},
                status=status.HTTP_404_NOT_FOUND
            )

        data = VerificationSerializer(certificate).data
        data['issued_by'] = CertificateSettings.load().display_name
        return Response(data)
