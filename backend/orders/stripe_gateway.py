# orders/stripe_gateway.py
"""Thin wrapper over the Stripe SDK. Everything returned is a plain dict."""

import logging

import stripe
from django.conf import settings

logger = logging.getLogger(__name__)

stripe.api_key = settings.STRIPE_SECRET_KEY
# A retried create could open a second session for the same cart
stripe.max_network_retries = 0

SESSION_EXPAND = ['line_items.data.price.product', 'payment_intent']


def _as_dict(stripe_object):
    return stripe_object.to_dict()


def create_session(params):
    session = stripe.checkout.Session.create(**params)
    return _as_dict(session)


def retrieve_session(session_id):
    session = stripe.checkout.Session.retrieve(session_id, expand=SESSION_EXPAND)
    return _as_dict(session)


def list_completed_sessions(created_after):
    """Yield completed sessions created at or after ``created_after`` (aware datetime)."""
    sessions = stripe.checkout.Session.list(
        created={'gte': int(created_after.timestamp())},
        status='complete',
        limit=100,
    )
    for session in sessions.auto_paging_iter():
        yield _as_dict(session)


def construct_event(payload, sig_header):
    return stripe.Webhook.construct_event(payload, sig_header, settings.STRIPE_WEBHOOK_SECRET)
