from decimal import Decimal

from catalog.models import Category, PricingTier, Product, ProductVariant, QuantityOption
from customers.models import Customer
from orders.checkout import build_session_params
from orders.models import Order
from orders.pricing import CartLine, calculate_cart_totals
from orders.shipping import DEFAULT_SHIPPING_OPTION

DEFAULT_TIERS = ((1, 99, '0'), (100, 499, '5'), (500, None, '10'))


def make_customer(email='buyer@example.com', staff=False, **kwargs):
    return Customer.objects.create_user(
        email=email,
        password='correct-horse-battery',
        is_staff=staff,
        **kwargs
    )


def make_product(code='MB-C5', base_price='10.00', tiers=DEFAULT_TIERS, **kwargs):
    category, _ = Category.objects.get_or_create(slug='mailing-bags', defaults={'name': 'Mailing Bags'})
    product = Product.objects.create(
        name=kwargs.pop('name', f'Mailing Bag {code}'),
        slug=kwargs.pop('slug', code.lower()),
        product_code=code,
        base_price=Decimal(base_price),
        category=category,
        **kwargs
    )
    for min_quantity, max_quantity, discount in tiers:
        PricingTier.objects.create(
            product=product,
            min_quantity=min_quantity,
            max_quantity=max_quantity,
            discount=Decimal(discount),
        )
    return product


def make_variant(product, sku='MB-C5-WHT', name='White', adjustment='0', options=()):
    variant = ProductVariant.objects.create(
        product=product,
        name=name,
        sku=sku,
        price_adjustment=Decimal(adjustment),
    )
    for label, quantity, price in options:
        QuantityOption.objects.create(
            variant=variant,
            label=label,
            quantity=quantity,
            price_per_unit=Decimal(price) if price is not None else None,
        )
    return variant


def make_line(quantity=10, unit_price='1.00', base_price=None, **kwargs):
    return CartLine(
        product_id=kwargs.pop('product_id', '1'),
        product_code=kwargs.pop('product_code', 'MB-C5'),
        name=kwargs.pop('name', 'Mailing Bag'),
        quantity=quantity,
        unit_price=Decimal(unit_price),
        base_price=Decimal(base_price if base_price is not None else unit_price),
        **kwargs
    )


def make_paid_session(lines, session_id='sess_123', email='buyer@example.com', user_id=None,
                      payment_status='paid', shipping_option=DEFAULT_SHIPPING_OPTION,
                      shipping_address=None):
    """A retrieved Checkout session, shaped as Stripe returns it with line items expanded."""
    totals = calculate_cart_totals(lines, shipping_option)
    params = build_session_params(
        lines, totals, email, shipping_option,
        user_id=user_id,
        shipping_address=shipping_address,
    )
    line_items = [{
        'quantity': item['quantity'],
        'amount_total': item['price_data']['unit_amount'],
        'price': {'product': item['price_data']['product_data']},
    } for item in params['line_items']]
    return {
        'id': session_id,
        'object': 'checkout.session',
        'status': 'complete' if payment_status == 'paid' else 'open',
        'payment_status': payment_status,
        'amount_total': sum(item['amount_total'] for item in line_items),
        'currency': 'gbp',
        'customer_email': email,
        'customer_details': {
            'email': email,
            'name': 'Jo Buyer',
            'phone': '07700900123',
            'address': {
                'line1': '1 Mill Lane',
                'line2': None,
                'city': 'Manchester',
                'state': None,
                'postal_code': 'M1 1AA',
                'country': 'GB',
            },
        },
        'metadata': params['metadata'],
        'line_items': {'object': 'list', 'data': line_items},
        'payment_intent': {'id': f'pi_{session_id}'},
    }


def make_order(session_id='sess_existing', status='pending', total='12.00', **kwargs):
    return Order.objects.create(
        email=kwargs.pop('email', 'buyer@example.com'),
        customer_name=kwargs.pop('customer_name', 'Jo Buyer'),
        items=kwargs.pop('items', [{'name': 'Mailing Bag', 'quantity': 10, 'unit_price': '1.00', 'total_price': '10.00'}]),
        subtotal=Decimal('10.00'),
        vat_amount=Decimal('2.00'),
        total=Decimal(total),
        stripe_session_id=session_id,
        status=status,
        **kwargs
    )
