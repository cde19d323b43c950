# orders/checkout.py
"""
Checkout session builder.

Each cart line is sent to Stripe as ONE line with quantity 1 whose amount is
the exact line total converted to pence and rounded once. Sending a rounded
per-unit price with a quantity would multiply the rounding error by the
quantity.
"""

import json
import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

import stripe
from django.conf import settings

from . import stripe_gateway
from .exceptions import CheckoutSessionCreationError, ContactRequiredError, EmptyCartError
from .pricing import OrderTotals, calculate_cart_totals, format_price, to_decimal
from .shipping import CURRENCY, DEFAULT_SHIPPING_OPTION, VAT_RATE

logger = logging.getLogger(__name__)

METADATA_VALUE_LIMIT = 500
EXACT_PLACES = Decimal('0.0000000001')


@dataclass
class CheckoutSession:
    session_id: str
    url: str
    totals: OrderTotals


def to_minor_units(amount) -> int:
    """Pounds to pence, rounded half-up exactly once."""
    return int((to_decimal(amount) * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def _exact(amount):
    return str(to_decimal(amount).quantize(EXACT_PLACES, rounding=ROUND_HALF_UP))


def _price_data(name, description, unit_amount, metadata=None, images=None):
    product_data = {'name': name, 'description': description}
    if images:
        product_data['images'] = images
    if metadata:
        product_data['metadata'] = metadata
    return {
        'price_data': {
            'currency': CURRENCY.lower(),
            'product_data': product_data,
            'unit_amount': unit_amount,
        },
        'quantity': 1,
    }


def build_line_items(lines):
    line_items = []
    for line in lines:
        exact_total = line.unit_price * line.quantity
        rounded_total_pence = to_minor_units(exact_total)

        metadata = {
            'line_type': 'item',
            'product_id': str(line.product_id),
            'product_code': line.product_code or '',
            'product_name': line.name,
            'variant_id': str(line.variant_id or ''),
            'variant_name': line.variant_name or '',
            'variant_sku': line.variant_sku or '',
            'exact_unit_price': _exact(line.unit_price),
            'exact_quantity': str(line.quantity),
            'exact_total': _exact(exact_total),
            'rounded_total_pence': str(rounded_total_pence),
        }

        if line.variant_name:
            name = f"{line.name} - {line.variant_name} ({line.variant_sku}) - Qty: {line.quantity}"
        else:
            name = f"{line.name} - Qty: {line.quantity}"

        line_items.append(_price_data(
            name=name,
            description=f"{line.display_name} (Quantity: {line.quantity})",
            unit_amount=rounded_total_pence,
            metadata=metadata,
            images=[line.image] if line.image else None,
        ))
    return line_items


def build_shipping_line(option):
    if option.price > 0:
        name, description = f"Shipping - {option.name}", f"Delivery: {option.delivery_time}"
    else:
        name, description = f"Free Shipping - {option.name}", f"Free delivery: {option.delivery_time}"
    return _price_data(
        name=name,
        description=description,
        unit_amount=to_minor_units(option.price),
        metadata={'line_type': 'shipping', 'shipping_method': option.id},
    )


def build_vat_line(vat_amount, vat_rate=VAT_RATE):
    percent = (to_decimal(vat_rate) * 100).normalize()
    return _price_data(
        name=f"VAT ({percent:f}%)",
        description='Value Added Tax',
        unit_amount=to_minor_units(vat_amount),
        metadata={'line_type': 'vat'},
    )


def _compact(data):
    return json.dumps(data, separators=(',', ':'))


def summarize_cart_items(lines, limit=METADATA_VALUE_LIMIT):
    """JSON summary of the cart that fits in one Stripe metadata value."""
    full = [{
        'id': str(line.product_id),
        'code': line.product_code,
        'name': line.name,
        'image': line.image,
        'variantId': str(line.variant_id) if line.variant_id else None,
        'variantName': line.variant_name or None,
        'variantSku': line.variant_sku or None,
        'quantity': line.quantity,
        'price': str(line.unit_price),
    } for line in lines]
    summary = _compact(full)
    if len(summary) <= limit:
        return summary

    minimal = [{
        'id': str(line.product_id),
        'code': line.product_code,
        'variantId': str(line.variant_id) if line.variant_id else None,
        'variantSku': line.variant_sku or None,
        'quantity': line.quantity,
    } for line in lines]
    while minimal and len(_compact(minimal)) > limit:
        minimal.pop()
    return _compact(minimal)


def summarize_address(address, limit=METADATA_VALUE_LIMIT):
    """Compact JSON of an address, the longest parts shortened until it fits one metadata value."""
    data = address.as_dict()
    summary = _compact(data)
    while len(summary) > limit:
        longest = max(data, key=lambda k: len(data[k]))
        if not data[longest]:
            break
        data[longest] = data[longest][:max(0, len(data[longest]) - (len(summary) - limit))]
        summary = _compact(data)
    return summary


def build_session_metadata(lines, totals, email, user_id=None, shipping_address=None, billing_address=None):
    metadata = {
        'total_amount': str(totals.total),
        'item_count': str(len(lines)),
        'subtotal': str(totals.subtotal),
        'discount': str(totals.discount),
        'shipping_cost': str(totals.shipping_cost),
        'vat_amount': str(totals.vat_amount),
        'vat_rate': str(totals.vat_rate),
        'shipping_method': totals.shipping_method,
        'user_email': email,
        'cart_items': summarize_cart_items(lines),
    }
    if user_id:
        metadata['user_id'] = str(user_id)
    if shipping_address:
        metadata['shipping_address'] = summarize_address(shipping_address)
    if billing_address:
        metadata['billing_address'] = summarize_address(billing_address)
    return metadata


def _check_client_totals(client_totals, totals):
    """Client figures are display hints only; log when they disagree."""
    if not client_totals:
        return
    server = {
        'subtotal': totals.subtotal,
        'shipping_cost': totals.shipping_cost,
        'vat_amount': totals.vat_amount,
        'total': totals.total,
    }
    for key, value in client_totals.items():
        if value is None or key not in server:
            continue
        if abs(to_decimal(value) - server[key]) >= Decimal('0.01'):
            logger.warning(
                f"⚠️ Client {key}={value} differs from server {key}={server[key]}; charging server figure"
            )


def build_session_params(lines, totals, email, shipping_option, user_id=None,
                         shipping_address=None, billing_address=None):
    line_items = build_line_items(lines)
    line_items.append(build_shipping_line(shipping_option))
    if totals.vat_amount > 0:
        line_items.append(build_vat_line(totals.vat_amount, totals.vat_rate))

    metadata = build_session_metadata(
        lines, totals, email,
        user_id=user_id,
        shipping_address=shipping_address,
        billing_address=billing_address,
    )

    params = {
        'payment_method_types': ['card'],
        'line_items': line_items,
        'mode': 'payment',
        'success_url': settings.CHECKOUT_SUCCESS_URL,
        'cancel_url': settings.CHECKOUT_CANCEL_URL,
        'customer_email': email,
        'metadata': metadata,
        'billing_address_collection': 'required',
        'payment_intent_data': {'metadata': metadata},
    }
    if not shipping_address:
        params['shipping_address_collection'] = {
            'allowed_countries': settings.STRIPE_ALLOWED_COUNTRIES,
        }
    return params


def create_checkout_session(lines, *, email, user_id=None, shipping_option=None,
                            shipping_address=None, billing_address=None, client_totals=None):
    """
    Open a Stripe Checkout session for priced cart lines.

    Nothing is persisted here: the cart only becomes an order once Stripe
    confirms payment (see orders.reconciliation).

    Args:
        lines: list of CartLine priced server-side
        email: buyer contact email (authenticated user's or guest's)
        shipping_option: ShippingOption, DEFAULT_SHIPPING_OPTION if None
        shipping_address / billing_address: Address or None
        client_totals: advisory totals sent by the client

    Returns:
        CheckoutSession

    Raises:
        EmptyCartError, ContactRequiredError, CheckoutSessionCreationError
    """
    if not lines:
        raise EmptyCartError()
    if not email:
        raise ContactRequiredError()

    shipping_option = shipping_option or DEFAULT_SHIPPING_OPTION
    totals = calculate_cart_totals(lines, shipping_option)
    _check_client_totals(client_totals, totals)

    params = build_session_params(
        lines, totals, email, shipping_option,
        user_id=user_id,
        shipping_address=shipping_address,
        billing_address=billing_address,
    )

    try:
        session = stripe_gateway.create_session(params)
    except stripe.StripeError as e:
        logger.error(f"❌ Stripe rejected checkout session for {email}: {str(e)}")
        raise CheckoutSessionCreationError() from e

    if not session.get('id') or not session.get('url'):
        logger.error(f"❌ Stripe returned an incomplete checkout session for {email}")
        raise CheckoutSessionCreationError()

    logger.info(f"✅ Checkout session {session['id']} created for {email} (total {format_price(totals.total)})")
    return CheckoutSession(session_id=session['id'], url=session['url'], totals=totals)
