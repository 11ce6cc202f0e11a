import logging

from django.db.models import ProtectedError
from rest_framework import viewsets, permissions, status
from rest_framework.response import Response
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser

from cores.models import AuditLog

from .models import Course
from .serializers import CourseOptionSerializer, CourseSerializer

logger = logging.getLogger(__name__)

class CourseViewSet(viewsets.ModelViewSet):
    queryset = Course.objects.all().order_by('name')
    parser_classes = (JSONParser, MultiPartParser, FormParser)

    def get_serializer_class(self):
        # Anonymous visitors only get the names for the registration form
        if self.action == 'list' and not self.request.user.is_staff:
            return CourseOptionSerializer
        return CourseSerializer

    def get_permissions(self):
        if self.action in ['list', 'retrieve']:
            return [permissions.AllowAny()]
        return [permissions.IsAdminUser()]

    def perform_create(self, serializer):
        course = serializer.save()
        AuditLog.record(
            self.request,
            action='CREATE',
            target_model='Course',
            target_object_id=course.id,
            details=f"Added course: {course.name}"
        )

    def perform_update(self, serializer):
        previous_name = serializer.instance.name
        course = serializer.save()
        details = f"Updated course: {course.name}"
        if previous_name != course.name:
            details = f"Renamed course {previous_name} to {course.name}"
        AuditLog.record(
            self.request,
            action='UPDATE',
            target_model='Course',
            target_object_id=course.id,
            details=details
        )

    def perform_destroy(self, instance):
        course_id, name = instance.id, instance.name
        # Raises ProtectedError while students are enrolled
        instance.delete()
        AuditLog.record(
            self.request,
            action='DELETE',
            target_model='Course',
            target_object_id=course_id,
            details=f"Deleted course: {name}"
        )
        logger.info("Course %s deleted by %s", name, self.request.user)

    def destroy(self, request, *args, **kwargs):
        try:
            return super().destroy(request, *args, **kwargs)
        except ProtectedError:
            return Response(
                {"error": "This course has enrolled students. Move them to another course before deleting it."},
                status=status.HTTP_409_CONFLICT
            )
