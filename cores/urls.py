from django.urls import path
from .views import AuditLogListView, ChangeFeedView

urlpatterns = [
    path('audit-logs/', AuditLogListView.as_view(), name='audit-logs'),
    path('changes/', ChangeFeedView.as_view(), name='change-feed'),
]
