import logging
from datetime import timedelta

from celery import shared_task
from django.utils import timezone

from orders.emails import send_order_emails, send_shipping_confirmation
from orders.exceptions import ReconciliationError
from orders.models import Order
from orders.reconciliation import (
    create_order_from_session,
    fetch_session,
    find_unreconciled_sessions,
)

logger = logging.getLogger(__name__)


@shared_task
def send_order_confirmation_email_task(order_id):
    try:
        order = Order.objects.select_related('user').get(id=order_id)
    except Order.DoesNotExist:
        logger.warning(f"⚠️ Order {order_id} vanished before its confirmation email")
        return
    send_order_emails(order)


@shared_task
def send_order_shipped_email_task(order_id):
    try:
        order = Order.objects.select_related('user').get(id=order_id)
    except Order.DoesNotExist:
        logger.warning(f"⚠️ Order {order_id} vanished before its shipping email")
        return
    send_shipping_confirmation(order)


@shared_task
def reconcile_recent_checkout_sessions(hours=24):
    """
    Safety net for customers who paid but never reached the success page
    and whose webhook was lost. Returns the references of orders created.
    """
    created_after = timezone.now() - timedelta(hours=hours)
    try:
        pending = find_unreconciled_sessions(created_after)
    except ReconciliationError as e:
        logger.error(f"❌ Reconciliation sweep aborted: {str(e)}")
        return []

    created = []
    for listed in pending:
        try:
            # listed sessions carry no expanded line items
            session = fetch_session(listed['id'])
            order, was_created = create_order_from_session(session)
        except ReconciliationError as e:
            logger.error(f"❌ Could not reconcile session {listed['id']}: {str(e)}")
            continue
        if was_created:
            created.append(order.order_reference)

    logger.info(f"✅ Reconciliation sweep created {len(created)} order(s) from {len(pending)} session(s)")
    return created
