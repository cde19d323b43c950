# orders/reconciliation.py
"""
Turns a paid Stripe Checkout session into exactly one Order.

The Stripe session id is the idempotency key: an existing order for the
session is returned untouched, and the unique constraint on
``Order.stripe_session_id`` settles concurrent confirmations.
"""

import json
import logging
from decimal import Decimal

import stripe
from django.contrib.auth import get_user_model
from django.db import DatabaseError, IntegrityError, transaction

from . import stripe_gateway
from .addresses import Address
from .exceptions import (
    OrderNotFoundError,
    OrderPersistenceError,
    PaymentNotCompletedError,
    ReconciliationError,
)
from .models import Order
from .pricing import to_decimal
from .shipping import CURRENCY, VAT_RATE

logger = logging.getLogger(__name__)


def _load_json(value, default):
    if not value:
        return default
    try:
        return json.loads(value)
    except (TypeError, ValueError):
        logger.warning(f"⚠️ Unreadable JSON in session metadata: {value[:80]}")
        return default


def _line_items(session):
    line_items = session.get('line_items') or {}
    return line_items.get('data') or []


def _product_of(line_item):
    product = (line_item.get('price') or {}).get('product')
    return product if isinstance(product, dict) else {}


def snapshot_items(session):
    """
    Frozen copy of what was bought, from the item lines' product metadata.
    Falls back to the ``cart_items`` summary when line items are unavailable.
    """
    items = []
    for line_item in _line_items(session):
        product = _product_of(line_item)
        metadata = product.get('metadata') or {}
        if metadata.get('line_type') != 'item':
            continue
        images = product.get('images') or []
        items.append({
            'product_id': metadata.get('product_id', ''),
            'product_code': metadata.get('product_code', ''),
            'name': metadata.get('product_name') or product.get('name', ''),
            'variant_id': metadata.get('variant_id', ''),
            'variant_name': metadata.get('variant_name', ''),
            'variant_sku': metadata.get('variant_sku', ''),
            'image': images[0] if images else '',
            'quantity': int(metadata.get('exact_quantity') or line_item.get('quantity') or 1),
            'unit_price': metadata.get('exact_unit_price', ''),
            'total_price': metadata.get('exact_total', ''),
            'amount_pence': line_item.get('amount_total'),
        })
    if items:
        return items

    summary = _load_json((session.get('metadata') or {}).get('cart_items'), [])
    return [{
        'product_id': item.get('id', ''),
        'product_code': item.get('code', ''),
        'name': item.get('name', ''),
        'variant_id': item.get('variantId') or '',
        'variant_name': item.get('variantName') or '',
        'variant_sku': item.get('variantSku') or '',
        'image': item.get('image') or '',
        'quantity': int(item.get('quantity') or 0),
        'unit_price': item.get('price', ''),
        'total_price': str(to_decimal(item['price']) * int(item.get('quantity') or 0)) if item.get('price') else '',
    } for item in summary]


def _shipping_details(session):
    collected = session.get('collected_information') or {}
    return collected.get('shipping_details') or session.get('shipping_details')


def resolve_addresses(session):
    """Addresses given at checkout win over the ones Stripe collected."""
    metadata = session.get('metadata') or {}
    customer = session.get('customer_details') or {}

    shipping = Address.from_dict(_load_json(metadata.get('shipping_address'), {}))
    if shipping is None:
        shipping = Address.from_stripe(
            _shipping_details(session),
            fallback_name=customer.get('name') or '',
            phone=customer.get('phone') or '',
        )

    billing = Address.from_dict(_load_json(metadata.get('billing_address'), {}))
    if billing is None:
        billing = Address.from_stripe(customer)
    if billing is None:
        billing = shipping
    if shipping is None:
        shipping = billing
    return shipping, billing


def _payment_intent_id(session):
    payment_intent = session.get('payment_intent')
    if isinstance(payment_intent, dict):
        return payment_intent.get('id')
    return payment_intent


def _resolve_user(user_id):
    if not user_id:
        return None
    try:
        return get_user_model().objects.filter(pk=user_id).first()
    except (TypeError, ValueError):
        logger.warning(f"⚠️ Ignoring malformed user id in session metadata: {user_id}")
        return None


def build_order_fields(session):
    metadata = session.get('metadata') or {}
    customer = session.get('customer_details') or {}
    shipping, billing = resolve_addresses(session)

    email = (
        metadata.get('user_email')
        or customer.get('email')
        or session.get('customer_email')
        or ''
    )
    customer_name = (shipping and shipping.full_name) or (billing and billing.full_name) or customer.get('name') or 'Customer'
    customer_phone = (shipping and shipping.phone) or (billing and billing.phone) or customer.get('phone') or ''

    amount_total = session.get('amount_total')
    return {
        'user': _resolve_user(metadata.get('user_id')),
        'email': email,
        'customer_name': customer_name,
        'customer_phone': customer_phone,
        'items': snapshot_items(session),
        'shipping_address': shipping.as_dict() if shipping else {},
        'billing_address': billing.as_dict() if billing else {},
        'subtotal': to_decimal(metadata.get('subtotal')),
        'discount': to_decimal(metadata.get('discount')),
        'shipping_cost': to_decimal(metadata.get('shipping_cost')),
        'vat_amount': to_decimal(metadata.get('vat_amount')),
        'vat_rate': to_decimal(metadata.get('vat_rate') or VAT_RATE),
        'total': to_decimal(metadata.get('total_amount')),
        'amount_charged': Decimal(amount_total) / 100 if amount_total is not None else None,
        'shipping_method': metadata.get('shipping_method', ''),
        'currency': (session.get('currency') or CURRENCY).upper(),
        'status': 'pending',
        'payment_status': session.get('payment_status', 'paid'),
        'stripe_session_id': session['id'],
        'stripe_payment_intent_id': _payment_intent_id(session),
    }


def fetch_session(session_id):
    try:
        return stripe_gateway.retrieve_session(session_id)
    except stripe.InvalidRequestError as e:
        logger.warning(f"⚠️ Stripe session {session_id} not found: {str(e)}")
        raise OrderNotFoundError() from e
    except stripe.StripeError as e:
        logger.error(f"❌ Could not retrieve Stripe session {session_id}: {str(e)}")
        raise ReconciliationError() from e


def _clear_saved_cart(order):
    if order.user_id is None:
        return
    from cart.services import clear_saved_cart
    clear_saved_cart(order.user_id)


def create_order_from_session(session):
    """
    Insert the order for an already-fetched, paid session.

    Returns:
        tuple: (order, created)
    """
    session_id = session['id']
    if session.get('payment_status') != 'paid':
        raise PaymentNotCompletedError(session.get('payment_status'))

    fields = build_order_fields(session)
    try:
        with transaction.atomic():
            order = Order.objects.create(**fields)
    except IntegrityError:
        # a concurrent confirmation for the same session got there first
        existing = Order.objects.filter(stripe_session_id=session_id).first()
        if existing is None:
            logger.critical(f"🚨 Paid session {session_id} has no order and insert failed integrity checks")
            raise OrderPersistenceError()
        logger.info(f"⏭️  Order for session {session_id} already exists ({existing.order_reference})")
        return existing, False
    except DatabaseError as e:
        logger.critical(
            f"🚨 Payment confirmed for session {session_id} but order could not be saved: {str(e)}"
        )
        raise OrderPersistenceError() from e

    logger.info(f"✅ Order {order.order_reference} created for session {session_id}")
    _clear_saved_cart(order)
    return order, True


def reconcile_checkout_session(session_id):
    """
    Return the order for a Stripe Checkout session, creating it on first
    confirmation.

    Payment status is read from Stripe, never from the caller.

    Returns:
        tuple: (order, created)

    Raises:
        OrderNotFoundError: Stripe has no such session
        PaymentNotCompletedError: session exists but is not paid
        OrderPersistenceError: paid, but the order row could not be written
        ReconciliationError: Stripe could not be reached
    """
    existing = Order.objects.filter(stripe_session_id=session_id).first()
    if existing is not None:
        return existing, False

    session = fetch_session(session_id)
    return create_order_from_session(session)


def find_unreconciled_sessions(created_after):
    """Paid Stripe sessions with no matching order."""
    try:
        sessions = [
            s for s in stripe_gateway.list_completed_sessions(created_after)
            if s.get('payment_status') == 'paid'
        ]
    except stripe.StripeError as e:
        logger.error(f"❌ Could not list recent Stripe sessions: {str(e)}")
        raise ReconciliationError() from e
    known = set(
        Order.objects.filter(stripe_session_id__in=[s['id'] for s in sessions])
        .values_list('stripe_session_id', flat=True)
    )
    return [s for s in sessions if s['id'] not in known]
