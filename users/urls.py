from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import CustomLoginView, UserProfileView, AdminViewSet

router = DefaultRouter()
router.register(r'admins', AdminViewSet, basename='admins')

urlpatterns = [
    # --- Authentication ---
    path('auth/login/', CustomLoginView.as_view(), name='login'),
    path('auth/me/', UserProfileView.as_view(), name='user-profile'),

    # --- Admin Management ---
    path('', include(router.urls)),
]
