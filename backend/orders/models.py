# orders/models.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models

from .exceptions import InvalidStatusTransition


def generate_order_reference():
    return f"ORD-{uuid.uuid4().hex[:10].upper()}"


def money_field(**kwargs):
    # exact figures: no rounding to pence until the value is charged or displayed
    return models.DecimalField(max_digits=20, decimal_places=10, default=Decimal('0'), **kwargs)


class Order(models.Model):
    ORDER_STATUS = [
        ('pending', 'Pending'),
        ('processing', 'Processing'),
        ('shipped', 'Shipped'),
        ('delivered', 'Delivered'),
        ('cancelled', 'Cancelled'),
    ]
    PAYMENT_STATUS_CHOICES = [
        ('paid', 'Paid'),
        ('unpaid', 'Unpaid'),
        ('no_payment_required', 'No payment required'),
        ('refunded', 'Refunded'),
    ]
    STATUS_TRANSITIONS = {
        'pending': {'processing', 'cancelled'},
        'processing': {'shipped', 'cancelled'},
        'shipped': {'delivered'},
        'delivered': set(),
        'cancelled': set(),
    }

    order_reference = models.CharField(
        max_length=100,
        unique=True,
        default=generate_order_reference
    )
    # weak reference: the order outlives the account
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='orders'
    )
    email = models.EmailField()
    customer_name = models.CharField(max_length=255, blank=True)
    customer_phone = models.CharField(max_length=32, blank=True)

    # denormalised snapshot taken at purchase time
    items = models.JSONField(default=list)
    shipping_address = models.JSONField(default=dict, blank=True)
    billing_address = models.JSONField(default=dict, blank=True)

    subtotal = money_field()
    discount = money_field()
    shipping_cost = money_field()
    vat_amount = money_field()
    vat_rate = models.DecimalField(max_digits=5, decimal_places=4, default=Decimal('0.20'))
    total = money_field()
    amount_charged = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    shipping_method = models.CharField(max_length=64, blank=True)
    currency = models.CharField(max_length=3, default='GBP')

    status = models.CharField(max_length=20, choices=ORDER_STATUS, default='pending')
    payment_status = models.CharField(max_length=32, choices=PAYMENT_STATUS_CHOICES, default='paid')
    stripe_session_id = models.CharField(max_length=255, unique=True)
    stripe_payment_intent_id = models.CharField(max_length=255, blank=True, null=True)

    tracking_number = models.CharField(max_length=255, blank=True, null=True)
    notes = models.TextField(blank=True)
    email_sent = models.BooleanField(default=False)
    email_sent_at = models.DateTimeField(null=True, blank=True)
    shipping_email_sent = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ('-created_at',)

    def __str__(self):
        return f"Order {self.order_reference} by {self.email}"

    def get_recipient_email(self):
        if self.user and self.user.email:
            return self.user.email
        return self.email

    @property
    def item_count(self):
        return sum(int(item.get('quantity', 0)) for item in self.items)

    def can_transition_to(self, status):
        return status in self.STATUS_TRANSITIONS.get(self.status, set())

    def transition_to(self, status, tracking_number=None):
        """Admin-driven status change. Queues the shipping email on 'shipped'."""
        if not self.can_transition_to(status):
            raise InvalidStatusTransition(self.status, status)

        self.status = status
        update_fields = ['status', 'updated_at']
        if tracking_number:
            self.tracking_number = tracking_number
            update_fields.append('tracking_number')
        self.save(update_fields=update_fields)

        if status == 'shipped' and not self.shipping_email_sent:
            # Import here to avoid circular imports
            from .tasks import send_order_shipped_email_task
            send_order_shipped_email_task.delay(self.pk)
        return self
