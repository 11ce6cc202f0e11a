from django.contrib import admin

from .models import AuditLog, ChangeEvent

admin.site.register(AuditLog)
admin.site.register(ChangeEvent)
