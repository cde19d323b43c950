from django.conf import settings
from django.db import models


class B2BRequest(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('reviewed', 'Reviewed'),
        ('quoted', 'Quoted'),
        ('converted', 'Converted'),
        ('rejected', 'Rejected'),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='b2b_requests'
    )
    company_name = models.CharField(max_length=255)
    contact_name = models.CharField(max_length=255)
    email = models.EmailField()
    phone = models.CharField(max_length=32)
    company_website = models.URLField(blank=True)
    vat_number = models.CharField(max_length=64, blank=True)

    products_interested = models.TextField()
    estimated_quantity = models.CharField(max_length=255)
    budget_range = models.CharField(max_length=255, blank=True)
    preferred_delivery_date = models.CharField(max_length=64, blank=True)
    delivery_address = models.JSONField(default=dict)
    additional_notes = models.TextField(blank=True)
    is_existing_customer = models.BooleanField(default=False)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    admin_notes = models.TextField(blank=True)
    reviewed_at = models.DateTimeField(null=True, blank=True)
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ('-created_at',)
        verbose_name = 'B2B request'

    def __str__(self):
        return f"{self.company_name} ({self.status})"
