# orders/emails.py

import logging

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string
from django.utils import timezone

from .pricing import format_price

logger = logging.getLogger(__name__)


def order_email_context(order):
    """Template context with every money figure already formatted in pounds."""
    lines = []
    for item in order.items:
        name = item.get('name', '')
        if item.get('variant_name'):
            name = f"{name} - {item['variant_name']}"
        lines.append({
            **item,
            'display_name': name,
            'unit_price_display': format_price(item.get('unit_price')),
            'total_price_display': format_price(item.get('total_price')),
        })

    return {
        'order': order,
        'items': lines,
        'subtotal': format_price(order.subtotal),
        'discount': format_price(order.discount) if order.discount else '',
        'shipping_cost': format_price(order.shipping_cost),
        'vat_amount': format_price(order.vat_amount),
        'vat_percent': int(order.vat_rate * 100),
        'total': format_price(order.total),
        'frontend_url': settings.FRONTEND_URL,
        'current_year': timezone.now().year,
    }


def deliver(template_name, subject, to, context, reply_to=None):
    """Render ``emails/<template_name>.{txt,html}`` and send both parts."""
    message = EmailMultiAlternatives(
        subject=subject,
        body=render_to_string(f'emails/{template_name}.txt', context),
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=to,
        reply_to=reply_to,
    )
    message.attach_alternative(render_to_string(f'emails/{template_name}.html', context), "text/html")
    message.send(fail_silently=False)


def _attempt(order, template_name, subject, to):
    try:
        deliver(template_name, subject, to, order_email_context(order))
    except Exception as e:
        logger.error(f"❌ {template_name} for {order.order_reference} not sent: {str(e)}")
        return False
    logger.info(f"✅ {template_name} sent to {', '.join(to)} for {order.order_reference}")
    return True


def send_customer_confirmation(order):
    recipient = order.get_recipient_email()
    if not recipient:
        logger.warning(f"⚠️ Order {order.order_reference} has no recipient address")
        return False
    return _attempt(
        order,
        'customer_order_confirmation',
        f'Order Confirmation - {order.order_reference}',
        [recipient],
    )


def send_staff_notification(order):
    return _attempt(
        order,
        'staff_order_notification',
        f'🔔 New Order {order.order_reference} - {format_price(order.total)}',
        [settings.STAFF_ORDER_EMAIL],
    )


def send_order_emails(order):
    """
    Customer confirmation plus staff notification, at most once per order.
    The order is only flagged when both went out, so a failed run can be retried.

    Returns:
        tuple: (customer_sent, staff_sent)
    """
    if order.email_sent:
        logger.info(f"⏭️  Confirmation for {order.order_reference} already sent")
        return (True, True)

    results = (send_customer_confirmation(order), send_staff_notification(order))
    if all(results):
        order.email_sent = True
        order.email_sent_at = timezone.now()
        order.save(update_fields=['email_sent', 'email_sent_at'])
    return results


def send_shipping_confirmation(order):
    """Tracking-number email; a no-op once sent, refused without a tracking number."""
    if order.shipping_email_sent:
        logger.info(f"⏭️  Shipping email for {order.order_reference} already sent")
        return True
    if not order.tracking_number:
        logger.warning(f"⚠️ Order {order.order_reference} shipped without a tracking number; customer not emailed")
        return False

    sent = _attempt(
        order,
        'shipping_confirmation',
        f'Your Order Has Shipped - {order.order_reference}',
        [order.get_recipient_email()],
    )
    if sent:
        order.shipping_email_sent = True
        order.save(update_fields=['shipping_email_sent'])
    return sent
