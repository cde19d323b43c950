from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from orders.pricing import CartLine, resolve_unit_price, validate_tiers_disjoint


def price_field(**kwargs):
    return models.DecimalField(max_digits=16, decimal_places=8, **kwargs)


class Category(models.Model):
    name = models.CharField(max_length=100)
    slug = models.SlugField(unique=True)
    description = models.TextField(blank=True)

    class Meta:
        verbose_name_plural = "categories"
        ordering = ('name',)

    def __str__(self):
        return self.name


class Product(models.Model):
    name = models.CharField(max_length=255)
    slug = models.SlugField(unique=True)
    product_code = models.CharField(max_length=64, unique=True)
    description = models.TextField(blank=True)
    base_price = price_field()
    category = models.ForeignKey(Category, on_delete=models.SET_NULL, related_name="products", blank=True, null=True)
    image = models.URLField(max_length=500, blank=True)
    image_alt = models.CharField(max_length=128, blank=True)
    delivery = models.CharField(max_length=255, blank=True)
    available = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ('name',)

    def __str__(self):
        return self.name

    def build_line(self, quantity, variant=None):
        """Price ``quantity`` units of this product (and variant) from the catalogue."""
        adjustment = variant.price_adjustment if variant else Decimal('0')
        options = list(variant.quantity_options.all()) if variant else []
        unit_price = resolve_unit_price(
            quantity,
            self.base_price,
            list(self.pricing_tiers.all()),
            adjustment,
            options,
        )
        return CartLine(
            product_id=str(self.pk),
            product_code=self.product_code,
            name=self.name,
            image=self.image,
            quantity=quantity,
            unit_price=unit_price,
            base_price=self.base_price,
            variant_id=str(variant.pk) if variant else '',
            variant_name=variant.name if variant else '',
            variant_sku=variant.sku if variant else '',
            variant_adjustment=adjustment,
        )


class ProductVariant(models.Model):
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="variants")
    name = models.CharField(max_length=255)
    sku = models.CharField(max_length=64, unique=True)
    price_adjustment = price_field(default=Decimal('0'))
    available = models.BooleanField(default=True)

    def __str__(self):
        return f"{self.product.name} - {self.name}"


class QuantityOption(models.Model):
    """Pack sizes (e.g. 50 pouches) with their own unit price."""
    variant = models.ForeignKey(ProductVariant, on_delete=models.CASCADE, related_name="quantity_options")
    label = models.CharField(max_length=50)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit = models.CharField(max_length=20, default="Pouches")
    price_per_unit = price_field(null=True, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ('quantity',)

    def __str__(self):
        return self.label or f"{self.quantity} {self.unit}"


class PricingTier(models.Model):
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="pricing_tiers")
    min_quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    max_quantity = models.PositiveIntegerField(null=True, blank=True, help_text="Leave empty for unlimited quantity")
    discount = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        help_text="Discount percentage applied to the product base price (0-100)",
    )
    label = models.CharField(max_length=64, blank=True)

    # set when the admin inline validates the whole edited set at once
    checked_with_siblings = False

    class Meta:
        ordering = ('min_quantity',)

    def __str__(self):
        quantity_range = f"{self.min_quantity}-{self.max_quantity}" if self.max_quantity else f"{self.min_quantity}+"
        return f"{quantity_range} units: {self.discount}% off"

    def clean(self):
        if self.max_quantity is not None and self.max_quantity < self.min_quantity:
            raise ValidationError({'max_quantity': "Maximum quantity must not be below the minimum."})
        if not self.product_id or self.checked_with_siblings:
            return
        siblings = list(self.product.pricing_tiers.exclude(pk=self.pk))
        try:
            validate_tiers_disjoint(siblings + [self])
        except ValueError as e:
            raise ValidationError(str(e))
