# orders/pricing.py
"""
Pricing engine and order-total calculator.

Every figure here is an exact ``Decimal``. Nothing in this module rounds:
rounding happens once, when an amount is converted to pence for Stripe
(see ``orders.checkout.to_minor_units``), or when a price is formatted for
display.
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from .shipping import VAT_RATE

ZERO = Decimal('0')
HUNDRED = Decimal('100')


def to_decimal(value) -> Decimal:
    """Exact conversion; floats go through ``str`` so 0.1 stays 0.1."""
    if value is None or value == '':
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class PricingTier:
    min_quantity: int
    max_quantity: Optional[int] = None
    discount: Decimal = ZERO
    label: str = ''


@dataclass(frozen=True)
class QuantityOption:
    label: str
    quantity: int
    unit: str = 'Units'
    price_per_unit: Optional[Decimal] = None
    is_active: bool = True


@dataclass
class CartLine:
    """A priced cart line. ``total_price`` is derived, never stored."""
    product_id: str
    product_code: str
    name: str
    quantity: int
    unit_price: Decimal
    base_price: Decimal = ZERO
    image: str = ''
    variant_id: str = ''
    variant_name: str = ''
    variant_sku: str = ''
    variant_adjustment: Decimal = ZERO

    @property
    def total_price(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def list_price(self) -> Decimal:
        """Undiscounted line total (adjusted base times quantity)."""
        return (self.base_price + self.variant_adjustment) * self.quantity

    @property
    def display_name(self):
        if self.variant_name:
            return f"{self.name} - {self.variant_name}"
        return self.name

    def as_dict(self):
        return {
            'product_id': self.product_id,
            'product_code': self.product_code,
            'name': self.name,
            'image': self.image,
            'variant_id': self.variant_id,
            'variant_name': self.variant_name,
            'variant_sku': self.variant_sku,
            'variant_adjustment': str(self.variant_adjustment),
            'base_price': str(self.base_price),
            'quantity': self.quantity,
            'unit_price': str(self.unit_price),
            'total_price': str(self.total_price),
        }


@dataclass
class OrderTotals:
    subtotal: Decimal
    shipping_cost: Decimal
    vat_amount: Decimal
    total: Decimal
    discount: Decimal = ZERO
    shipping_method: str = ''
    vat_rate: Decimal = field(default=VAT_RATE)

    def as_dict(self):
        return {
            'subtotal': str(self.subtotal),
            'discount': str(self.discount),
            'shipping_cost': str(self.shipping_cost),
            'vat_amount': str(self.vat_amount),
            'vat_rate': str(self.vat_rate),
            'total': str(self.total),
            'shipping_method': self.shipping_method,
        }


# ------------------
# Tiers
# ------------------

def _tier_discount(tier) -> Decimal:
    discount = getattr(tier, 'discount', None)
    try:
        discount = to_decimal(discount)
    except (ArithmeticError, ValueError, TypeError):
        return ZERO
    if discount <= ZERO or discount > HUNDRED:
        return ZERO
    return discount


def _sorted_tiers(tiers):
    valid = [t for t in tiers or [] if getattr(t, 'min_quantity', None) is not None]
    return sorted(valid, key=lambda t: t.min_quantity)


def get_active_pricing_tier(quantity, tiers):
    """
    Return the tier whose range contains ``quantity``.

    Tiers are scanned in ascending ``min_quantity`` order and the first match
    wins, so the result does not depend on how the catalogue stored them.

    Returns:
        the matching tier, or None when there are no tiers or none match
    """
    for tier in _sorted_tiers(tiers):
        max_quantity = getattr(tier, 'max_quantity', None)
        if quantity >= tier.min_quantity and (max_quantity is None or quantity <= max_quantity):
            return tier
    return None


def calculate_discount_percentage(tier) -> Decimal:
    return _tier_discount(tier)


def calculate_price_per_unit(quantity, base_price, tiers, variant_adjustment=0) -> Decimal:
    """
    Unit price after the variant adjustment and the active tier discount.

    Missing or invalid tier data means "no discount"; this never raises for
    bad tiers and does not validate the quantity.
    """
    adjusted_base = to_decimal(base_price) + to_decimal(variant_adjustment)

    active_tier = get_active_pricing_tier(quantity, tiers)
    if active_tier is None:
        return adjusted_base

    discount = _tier_discount(active_tier)
    if discount > ZERO:
        return adjusted_base * (1 - discount / HUNDRED)
    return adjusted_base


def calculate_total_price(quantity, base_price, tiers, variant_adjustment=0) -> Decimal:
    return calculate_price_per_unit(quantity, base_price, tiers, variant_adjustment) * quantity


def find_quantity_option(quantity, options):
    """Largest active pack-size option not exceeding ``quantity``."""
    active = [o for o in options or [] if o.is_active and o.quantity <= quantity]
    if not active:
        return None
    return max(active, key=lambda o: o.quantity)


def resolve_unit_price(quantity, base_price, tiers, variant_adjustment=0, quantity_options=None) -> Decimal:
    # quantity option price > tier pricing > adjusted base
    option = find_quantity_option(quantity, quantity_options)
    if option is not None and option.price_per_unit is not None:
        option_price = to_decimal(option.price_per_unit)
        if option_price > ZERO:
            return option_price
    return calculate_price_per_unit(quantity, base_price, tiers, variant_adjustment)


def validate_tiers_disjoint(tiers):
    """Raise ValueError if any two quantity ranges overlap."""
    ordered = _sorted_tiers(tiers)
    for previous, current in zip(ordered, ordered[1:]):
        if previous.max_quantity is None or current.min_quantity <= previous.max_quantity:
            upper = previous.max_quantity if previous.max_quantity is not None else '∞'
            raise ValueError(
                f"Pricing tiers overlap: {previous.min_quantity}-{upper} "
                f"and {current.min_quantity}-{current.max_quantity or '∞'}"
            )


# ------------------
# Totals & VAT
# ------------------

def calculate_vat(subtotal, shipping_cost, vat_rate=VAT_RATE) -> Decimal:
    """VAT is charged on goods and shipping."""
    return (to_decimal(subtotal) + to_decimal(shipping_cost)) * to_decimal(vat_rate)


def calculate_order_total(subtotal, shipping_cost, vat_rate=VAT_RATE) -> OrderTotals:
    subtotal = to_decimal(subtotal)
    shipping_cost = to_decimal(shipping_cost)
    vat_rate = to_decimal(vat_rate)
    vat_amount = calculate_vat(subtotal, shipping_cost, vat_rate)
    return OrderTotals(
        subtotal=subtotal,
        shipping_cost=shipping_cost,
        vat_amount=vat_amount,
        total=subtotal + shipping_cost + vat_amount,
        vat_rate=vat_rate,
    )


def _plain(value):
    # division can return 1E+2 for 100; same value, without the exponent
    if value.as_tuple().exponent > 0:
        return value.quantize(Decimal('1'))
    return value


def calculate_vat_exclusive(vat_inclusive_amount, vat_rate=VAT_RATE):
    """
    Split a VAT-inclusive amount.

    Returns:
        tuple: (exclusive, vat)
    """
    amount = to_decimal(vat_inclusive_amount)
    exclusive = _plain(amount / (1 + to_decimal(vat_rate)))
    return exclusive, _plain(amount - exclusive)


def calculate_cart_totals(lines, shipping_option, vat_rate=VAT_RATE) -> OrderTotals:
    subtotal = sum((line.total_price for line in lines), ZERO)
    discount = sum((line.list_price - line.total_price for line in lines), ZERO)
    shipping_cost = shipping_option.price if shipping_option else ZERO

    totals = calculate_order_total(subtotal, shipping_cost, vat_rate)
    totals.discount = max(discount, ZERO)
    totals.shipping_method = shipping_option.id if shipping_option else ''
    return totals


def format_price(amount):
    rounded = to_decimal(amount).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    return f"£{rounded}"
