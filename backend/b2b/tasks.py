import logging

from celery import shared_task

from b2b.emails import send_b2b_request_notification
from b2b.models import B2BRequest

logger = logging.getLogger(__name__)


@shared_task
def send_b2b_request_email_task(request_id):
    try:
        b2b_request = B2BRequest.objects.get(pk=request_id)
    except B2BRequest.DoesNotExist:
        logger.warning(f"⚠️ B2B request {request_id} vanished before its notification")
        return False
    return send_b2b_request_notification(b2b_request)
