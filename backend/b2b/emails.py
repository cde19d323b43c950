import logging

from django.conf import settings

from orders.emails import deliver

logger = logging.getLogger(__name__)


def send_b2b_request_notification(b2b_request):
    """Tell the sales inbox about a new quote request. Replies go to the buyer."""
    context = {
        'request': b2b_request,
        'address': b2b_request.delivery_address or {},
    }
    try:
        deliver(
            'b2b_request_notification',
            f'📦 New B2B request - {b2b_request.company_name}',
            [settings.STAFF_ORDER_EMAIL],
            context,
            reply_to=[b2b_request.email],
        )
    except Exception as e:
        logger.error(f"❌ B2B request {b2b_request.pk} notification not sent: {str(e)}")
        return False

    logger.info(f"✅ B2B request {b2b_request.pk} forwarded to {settings.STAFF_ORDER_EMAIL}")
    return True
