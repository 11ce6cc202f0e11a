from django.contrib import admin

from .models import Certificate, CertificateSettings

@admin.register(Certificate)
class CertificateAdmin(admin.ModelAdmin):
    list_display = ('certificate_id', 'full_name', 'course', 'issue_date', 'status')
    list_filter = ('status', 'course')
    search_fields = ('certificate_id', 'full_name')

admin.site.register(CertificateSettings)
