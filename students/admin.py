from django.contrib import admin

from .models import Student, Enrollment

class EnrollmentInline(admin.TabularInline):
    model = Enrollment
    extra = 0
    readonly_fields = ('sequence',)

@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ('row_id', 'full_name', 'email', 'whatsapp_no', 'payment_status', 'certificate_status', 'created_at')
    search_fields = ('full_name', 'email', 'whatsapp_no')
    inlines = [EnrollmentInline]
