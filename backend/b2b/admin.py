from django.contrib import admin
from import_export import resources
from import_export.admin import ExportMixin

from .models import B2BRequest


class B2BRequestResource(resources.ModelResource):
    class Meta:
        model = B2BRequest
        fields = (
            'id', 'created_at', 'status', 'company_name', 'contact_name', 'email', 'phone',
            'vat_number', 'products_interested', 'estimated_quantity', 'budget_range',
            'preferred_delivery_date', 'is_existing_customer',
        )


@admin.register(B2BRequest)
class B2BRequestAdmin(ExportMixin, admin.ModelAdmin):
    resource_class = B2BRequestResource
    list_display = ('company_name', 'contact_name', 'email', 'status', 'created_at')
    list_filter = ('status', 'is_existing_customer')
    search_fields = ('company_name', 'contact_name', 'email', 'vat_number')
    readonly_fields = ('created_at', 'updated_at', 'reviewed_at', 'reviewed_by')
