from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from .models import User


@admin.register(User)
class CustomUserAdmin(UserAdmin):
    list_display = ['email', 'username', 'is_staff', 'is_active', 'created_at']
    list_filter = ['is_staff', 'is_superuser', 'is_active', 'created_at']
    search_fields = ['email', 'username']
    ordering = ['-created_at']
    add_fieldsets = UserAdmin.add_fieldsets + (
        ('Contact', {'fields': ('email',)}),
    )
