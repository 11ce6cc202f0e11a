import logging

from rest_framework import generics, mixins, permissions, status, viewsets
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView
from django.contrib.auth import get_user_model

from cores.models import AuditLog

from .serializers import (
    AdminCreateSerializer,
    AdminSerializer,
    CustomTokenObtainPairSerializer,
    UserSerializer,
)

logger = logging.getLogger(__name__)

User = get_user_model()

# --- 1. Admin Management ---
class AdminViewSet(mixins.ListModelMixin,
                   mixins.CreateModelMixin,
                   mixins.DestroyModelMixin,
                   viewsets.GenericViewSet):
    """
    Lists, creates and revokes administrator accounts.
    Every change is written to the audit log.
    """
    permission_classes = [permissions.IsAdminUser]

    def get_queryset(self):
        return User.objects.filter(is_staff=True).order_by('date_joined')

    def get_serializer_class(self):
        if self.action == 'create':
            return AdminCreateSerializer
        return AdminSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        admin = serializer.save()

        AuditLog.record(
            request,
            action='CREATE',
            target_model='User',
            target_object_id=admin.id,
            details=f"Created admin account: {admin.email}"
        )
        logger.info("Admin %s created by %s", admin.email, request.user)
        return Response(AdminSerializer(admin).data, status=status.HTTP_201_CREATED)

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        if instance.pk == request.user.pk:
            return Response({"error": "You cannot revoke your own admin access."}, status=status.HTTP_400_BAD_REQUEST)

        AuditLog.record(
            request,
            action='DELETE',
            target_model='User',
            target_object_id=instance.id,
            details=f"Revoked admin access: {instance.email}"
        )
        logger.info("Admin %s revoked by %s", instance.email, request.user)
        instance.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

# --- 2. Authentication Views ---
class CustomLoginView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer

class UserProfileView(generics.RetrieveUpdateAPIView):
    serializer_class = UserSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_object(self):
        return self.request.user
