import logging

from django.db import DatabaseError

from .models import SavedCart

logger = logging.getLogger(__name__)


def save_cart(user, lines, stripe_session_id=''):
    cart, _ = SavedCart.objects.update_or_create(
        user=user,
        defaults={
            'items': [line.as_dict() for line in lines],
            'stripe_session_id': stripe_session_id,
        },
    )
    return cart


def snapshot_pending_cart(user, lines, stripe_session_id):
    """Best effort: a failed snapshot must never block checkout."""
    try:
        return save_cart(user, lines, stripe_session_id)
    except DatabaseError as e:
        logger.error(f"❌ Could not snapshot cart for user {user.pk} (session {stripe_session_id}): {str(e)}")
        return None


def clear_saved_cart(user_id):
    try:
        deleted, _ = SavedCart.objects.filter(user_id=user_id).delete()
    except DatabaseError as e:
        logger.warning(f"⚠️ Could not clear saved cart for user {user_id}: {str(e)}")
        return False
    if deleted:
        logger.info(f"✅ Saved cart cleared for user {user_id}")
    return bool(deleted)
