from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import Customer, SavedAddress


class SavedAddressInline(admin.StackedInline):
    model = SavedAddress
    extra = 0
    fields = (('label', 'is_default'), ('full_name', 'company'), 'address', 'address2',
              ('city', 'state'), ('postal_code', 'country'), 'phone')


@admin.register(Customer)
class CustomerAdmin(UserAdmin):
    list_display = ('email', 'full_name', 'company_name', 'is_staff', 'date_joined')
    list_filter = ('is_staff', 'is_active')
    search_fields = ('email', 'full_name', 'company_name', 'phone')
    ordering = ('-date_joined',)
    readonly_fields = ('date_joined', 'last_login')
    inlines = [SavedAddressInline]

    fieldsets = (
        ('Account', {'fields': ('email', 'password')}),
        ('Trade details', {'fields': ('full_name', 'company_name', 'phone')}),
        ('Access', {'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions')}),
        ('History', {'fields': ('date_joined', 'last_login')}),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'full_name', 'company_name', 'password1', 'password2'),
        }),
    )
