from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import User

@admin.register(User)
class AcademyUserAdmin(UserAdmin):
    list_display = ('email', 'username', 'role', 'is_staff', 'date_joined')
    fieldsets = UserAdmin.fieldsets + (
        ('Academy', {'fields': ('role', 'phone_number')}),
    )
