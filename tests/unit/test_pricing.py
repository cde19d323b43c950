from decimal import Decimal

import pytest

from orders.pricing import (
    PricingTier,
    QuantityOption,
    calculate_cart_totals,
    calculate_discount_percentage,
    calculate_order_total,
    calculate_price_per_unit,
    calculate_total_price,
    calculate_vat,
    calculate_vat_exclusive,
    find_quantity_option,
    format_price,
    get_active_pricing_tier,
    resolve_unit_price,
    to_decimal,
    validate_tiers_disjoint,
)
from orders.shipping import get_shipping_option_by_id
from factories import make_line

TIERS = [
    PricingTier(min_quantity=500, max_quantity=None, discount=Decimal('10')),
    PricingTier(min_quantity=1, max_quantity=99, discount=Decimal('0')),
    PricingTier(min_quantity=100, max_quantity=499, discount=Decimal('5')),
]


@pytest.mark.unit
@pytest.mark.parametrize(
    "quantity,expected_min",
    [(1, 1), (99, 1), (100, 100), (499, 100), (500, 500), (100000, 500)],
    ids=["first", "first-edge", "second", "second-edge", "open-ended", "large"],
)
def test_active_tier_ignores_storage_order(quantity, expected_min):
    assert get_active_pricing_tier(quantity, TIERS).min_quantity == expected_min


@pytest.mark.unit
def test_no_tier_matches_below_first_range():
    tiers = [PricingTier(min_quantity=10, max_quantity=None, discount=Decimal('5'))]
    assert get_active_pricing_tier(5, tiers) is None
    assert get_active_pricing_tier(5, []) is None
    assert get_active_pricing_tier(5, None) is None


@pytest.mark.unit
def test_price_per_unit_applies_discount_exactly():
    assert calculate_price_per_unit(750, Decimal('10.00'), TIERS) == Decimal('9')
    assert calculate_price_per_unit(150, Decimal('10.00'), TIERS) == Decimal('9.5')
    assert calculate_price_per_unit(50, Decimal('10.00'), TIERS) == Decimal('10')


@pytest.mark.unit
def test_price_per_unit_keeps_sub_penny_precision():
    tiers = [PricingTier(min_quantity=1, discount=Decimal('33'))]
    # 0.1234 * 0.67, no rounding
    assert calculate_price_per_unit(1, Decimal('0.1234'), tiers) == Decimal('0.082678')


@pytest.mark.unit
def test_variant_adjustment_is_discounted_with_base():
    assert calculate_price_per_unit(750, Decimal('10.00'), TIERS, Decimal('2.00')) == Decimal('10.8')


@pytest.mark.unit
@pytest.mark.parametrize(
    "discount",
    [Decimal('0'), Decimal('-5'), Decimal('150'), None, 'abc'],
    ids=["zero", "negative", "over-100", "missing", "garbage"],
)
def test_invalid_discount_means_no_discount(discount):
    tiers = [PricingTier(min_quantity=1, discount=discount)]
    assert calculate_price_per_unit(10, Decimal('4.00'), tiers) == Decimal('4.00')
    assert calculate_discount_percentage(tiers[0]) == Decimal('0')


@pytest.mark.unit
def test_total_price_is_unit_times_quantity():
    assert calculate_total_price(750, Decimal('10.00'), TIERS) == Decimal('6750')


@pytest.mark.unit
def test_quantity_option_price_wins_over_tiers():
    options = [
        QuantityOption(label='50 Pouches', quantity=50, price_per_unit=Decimal('0.40')),
        QuantityOption(label='500 Pouches', quantity=500, price_per_unit=Decimal('0.25')),
        QuantityOption(label='1000 Pouches', quantity=1000, price_per_unit=Decimal('0.10'), is_active=False),
    ]
    assert resolve_unit_price(1200, Decimal('10.00'), TIERS, quantity_options=options) == Decimal('0.25')
    assert resolve_unit_price(60, Decimal('10.00'), TIERS, quantity_options=options) == Decimal('0.40')
    # below the smallest pack: tier pricing
    assert resolve_unit_price(10, Decimal('10.00'), TIERS, quantity_options=options) == Decimal('10')


@pytest.mark.unit
def test_find_quantity_option_skips_inactive_and_oversized_packs():
    options = [
        QuantityOption(label='50 Pouches', quantity=50),
        QuantityOption(label='500 Pouches', quantity=500, is_active=False),
    ]
    assert find_quantity_option(600, options).quantity == 50
    assert find_quantity_option(49, options) is None
    assert find_quantity_option(10, None) is None


@pytest.mark.unit
def test_overlapping_tiers_are_rejected():
    validate_tiers_disjoint(TIERS)
    with pytest.raises(ValueError, match="overlap"):
        validate_tiers_disjoint([
            PricingTier(min_quantity=1, max_quantity=100),
            PricingTier(min_quantity=100, max_quantity=200),
        ])
    with pytest.raises(ValueError):
        validate_tiers_disjoint([
            PricingTier(min_quantity=1, max_quantity=None),
            PricingTier(min_quantity=500, max_quantity=None),
        ])


@pytest.mark.unit
def test_vat_is_charged_on_goods_and_shipping():
    assert calculate_vat(Decimal('100'), Decimal('5.99')) == Decimal('21.198')
    totals = calculate_order_total(Decimal('100'), Decimal('5.99'))
    assert totals.vat_amount == Decimal('21.198')
    assert totals.total == Decimal('127.188')


@pytest.mark.unit
def test_vat_exclusive_split():
    exclusive, vat = calculate_vat_exclusive(Decimal('120'))
    assert exclusive == Decimal('100')
    assert vat == Decimal('20')
    assert (str(exclusive), str(vat)) == ('100', '20')


@pytest.mark.unit
def test_cart_totals_with_tier_discount_and_next_day_shipping():
    lines = [make_line(quantity=750, unit_price='9.00', base_price='10.00')]
    totals = calculate_cart_totals(lines, get_shipping_option_by_id('dhl-next-day'))

    assert totals.subtotal == Decimal('6750.00')
    assert totals.discount == Decimal('750.00')
    assert totals.shipping_cost == Decimal('5.99')
    assert totals.vat_amount == Decimal('1351.198')
    assert totals.total == Decimal('8107.188')
    assert totals.shipping_method == 'dhl-next-day'


@pytest.mark.unit
def test_to_decimal_goes_through_str():
    assert to_decimal(0.1) == Decimal('0.1')
    assert to_decimal(None) == Decimal('0')
    assert to_decimal('') == Decimal('0')


@pytest.mark.unit
def test_format_price_rounds_half_up():
    assert format_price(Decimal('2.345')) == '£2.35'
    assert format_price(Decimal('8100')) == '£8100.00'
