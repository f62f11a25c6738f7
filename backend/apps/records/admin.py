from django.contrib import admin
from .models import PrescoData


@admin.register(PrescoData)
class PrescoDataAdmin(admin.ModelAdmin):
    list_display = ['s_no', 'account_number', 'name', 'units_held', 'rights_due', 'amount']
    search_fields = ['name', 'email', 'mobile_no', '=account_number']
    ordering = ['s_no']
    readonly_fields = ['created_at']
