from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import StudentViewSet, RegisterView, DashboardStatsView

router = DefaultRouter()
router.register(r'students', StudentViewSet, basename='students')

urlpatterns = [
    # --- Public Registration ---
    path('register/', RegisterView.as_view(), name='register'),

    # --- Admin Dashboard ---
    path('admin/stats/', DashboardStatsView.as_view(), name='admin-stats'),

    path('', include(router.urls)),
]
