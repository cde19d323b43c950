# orders/exceptions.py


class CheckoutError(Exception):
    """Base class for errors raised while building a checkout session."""
    user_message = 'Failed to create checkout session. Please try again.'

    def __init__(self, message=None):
        super().__init__(message or self.user_message)


class EmptyCartError(CheckoutError):
    user_message = 'Cart is empty'


class ContactRequiredError(CheckoutError):
    user_message = 'Email is required for checkout'


class CheckoutSessionCreationError(CheckoutError):
    """Stripe rejected or never answered the session request."""


class ReconciliationError(Exception):
    user_message = 'Unable to confirm your order. Please try again.'

    def __init__(self, message=None):
        super().__init__(message or self.user_message)


class OrderNotFoundError(ReconciliationError):
    user_message = 'Order not found'


class PaymentNotCompletedError(ReconciliationError):
    def __init__(self, payment_status):
        self.payment_status = payment_status
        super().__init__(f'Payment not completed. Status: {payment_status}')


class OrderPersistenceError(ReconciliationError):
    """Payment succeeded at Stripe but the order row could not be written."""
    user_message = (
        'Your payment was received but we could not save your order. '
        'Please contact support and quote your checkout reference.'
    )


class InvalidStatusTransition(Exception):
    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move order from '{current}' to '{requested}'")
