from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import (
    CertificateViewSet,
    CertificateSettingsView,
    ResetCertificateStyleView,
    CertificatePreviewView,
    VerifyCertificateView,
)

router = DefaultRouter()
router.register(r'admin/certificates', CertificateViewSet, basename='admin-certificates')

urlpatterns = [
    # --- Public Verification ---
    path('verify/<str:certificate_id>/', VerifyCertificateView.as_view(), name='verify-certificate'),

    # --- Admin Layout Settings ---
    path('admin/certificate-settings/', CertificateSettingsView.as_view(), name='certificate-settings'),
    path('admin/certificate-settings/reset/', ResetCertificateStyleView.as_view(), name='certificate-settings-reset'),
    path('admin/certificate-settings/preview/', CertificatePreviewView.as_view(), name='certificate-preview'),

    path('', include(router.urls)),
]
