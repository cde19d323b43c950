from django.conf import settings
from django.db import models

# ------------------
# 🛒 Saved cart
# ------------------

class SavedCart(models.Model):
    """
    Last known cart of a signed-in customer. Written when the cart changes and
    when checkout starts, cleared once the order is reconciled.
    """
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='saved_cart')
    items = models.JSONField(default=list)
    stripe_session_id = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Cart of {self.user}"
