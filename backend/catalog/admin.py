from django.contrib import admin
from django.core.exceptions import ValidationError
from django.forms.models import BaseInlineFormSet
from import_export import fields, resources
from import_export.admin import ImportExportModelAdmin
from import_export.widgets import ForeignKeyWidget

from orders.pricing import PricingTier as Tier, validate_tiers_disjoint
from .models import Category, PricingTier, Product, ProductVariant, QuantityOption


class ProductResource(resources.ModelResource):
    category = fields.Field(
        column_name='category',
        attribute='category',
        widget=ForeignKeyWidget(Category, 'slug'),
    )

    class Meta:
        model = Product
        import_id_fields = ('product_code',)
        fields = ('product_code', 'name', 'slug', 'description', 'base_price', 'category', 'image', 'available')
        export_order = ('product_code', 'name', 'slug', 'description', 'base_price', 'category', 'image', 'available')


class ProductVariantResource(resources.ModelResource):
    product = fields.Field(
        column_name='product',
        attribute='product',
        widget=ForeignKeyWidget(Product, 'product_code'),
    )

    class Meta:
        model = ProductVariant
        import_id_fields = ('sku',)
        fields = ('sku', 'product', 'name', 'price_adjustment', 'available')


class PricingTierFormSet(BaseInlineFormSet):
    """Reject overlapping quantity ranges before they reach checkout."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # siblings in the database may be edited in this same request
        for form in self.forms:
            form.instance.checked_with_siblings = True

    def clean(self):
        super().clean()
        tiers = []
        for form in self.forms:
            data = getattr(form, 'cleaned_data', None)
            if not data or data.get('DELETE') or data.get('min_quantity') is None:
                continue
            tiers.append(Tier(
                min_quantity=data['min_quantity'],
                max_quantity=data.get('max_quantity'),
                discount=data.get('discount') or 0,
            ))
        try:
            validate_tiers_disjoint(tiers)
        except ValueError as e:
            raise ValidationError(str(e))


class PricingTierInline(admin.TabularInline):
    model = PricingTier
    formset = PricingTierFormSet
    extra = 1
    fields = ('min_quantity', 'max_quantity', 'discount', 'label')


class ProductVariantInline(admin.TabularInline):
    model = ProductVariant
    extra = 1
    fields = ('name', 'sku', 'price_adjustment', 'available')


class QuantityOptionInline(admin.TabularInline):
    model = QuantityOption
    extra = 1
    fields = ('label', 'quantity', 'unit', 'price_per_unit', 'is_active')


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ('name', 'slug')
    prepopulated_fields = {'slug': ('name',)}
    search_fields = ('name',)


@admin.register(Product)
class ProductAdmin(ImportExportModelAdmin):
    resource_class = ProductResource
    list_display = ('name', 'product_code', 'base_price', 'category', 'available')
    list_filter = ('category', 'available')
    search_fields = ('name', 'product_code', 'description')
    prepopulated_fields = {'slug': ('name',)}
    inlines = [PricingTierInline, ProductVariantInline]


@admin.register(ProductVariant)
class ProductVariantAdmin(ImportExportModelAdmin):
    resource_class = ProductVariantResource
    list_display = ('product', 'name', 'sku', 'price_adjustment', 'available')
    search_fields = ('sku', 'name', 'product__name')
    inlines = [QuantityOptionInline]
