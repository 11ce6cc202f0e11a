from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),

    # --- Authentication & Admin Accounts ---
    path('api/', include('users.urls')),

    # --- Course Catalog ---
    path('api/', include('courses.urls')),

    # --- Students, Registration & Dashboard ---
    path('api/', include('students.urls')),

    # --- Payment Ledger ---
    path('api/', include('payments.urls')),

    # --- Certificates & Public Verification ---
    path('api/', include('certificates.urls')),

    # --- Audit Log & Change Feed ---
    path('api/admin/', include('cores.urls')),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
