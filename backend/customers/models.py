# customers/models.py

from django.conf import settings
from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.db import models, transaction


class CustomerManager(BaseUserManager):
    use_in_migrations = True

    def _create(self, email, password, **extra_fields):
        if not email:
            raise ValueError('An email address is required to open an account')
        customer = self.model(email=self.normalize_email(email), **extra_fields)
        customer.set_password(password)
        customer.save(using=self._db)
        return customer

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', False)
        extra_fields.setdefault('is_superuser', False)
        return self._create(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.update(is_staff=True, is_superuser=True)
        return self._create(email, password, **extra_fields)


class Customer(AbstractBaseUser, PermissionsMixin):
    """Shop account. Trade buyers fill in ``company_name``."""
    email = models.EmailField(unique=True)
    full_name = models.CharField(max_length=120, blank=True)
    company_name = models.CharField(max_length=120, blank=True)
    phone = models.CharField(max_length=32, blank=True)
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)
    date_joined = models.DateTimeField(auto_now_add=True)

    objects = CustomerManager()

    EMAIL_FIELD = 'email'
    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    class Meta:
        ordering = ('-date_joined',)

    def __str__(self):
        return self.email

    def get_full_name(self):
        return self.full_name or self.email

    def get_short_name(self):
        return self.full_name.split(' ')[0] if self.full_name else self.email

    @property
    def default_address(self):
        return self.addresses.filter(is_default=True).first()


class SavedAddress(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='addresses')
    label = models.CharField(max_length=50, blank=True, help_text="e.g. Warehouse, Head office")
    full_name = models.CharField(max_length=120)
    company = models.CharField(max_length=120, blank=True)
    address = models.CharField(max_length=255)
    address2 = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100)
    state = models.CharField(max_length=100, blank=True)
    postal_code = models.CharField(max_length=20)
    country = models.CharField(max_length=2, default='GB')
    phone = models.CharField(max_length=32, blank=True)
    is_default = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ('-is_default', '-created_at')
        verbose_name_plural = 'saved addresses'

    def __str__(self):
        return f"{self.label or self.full_name}, {self.postal_code}"

    def save(self, *args, **kwargs):
        # one default per customer
        with transaction.atomic():
            if self.is_default:
                SavedAddress.objects.filter(user_id=self.user_id, is_default=True).exclude(pk=self.pk).update(is_default=False)
            super().save(*args, **kwargs)

    def as_address(self):
        from orders.addresses import Address
        return Address(
            full_name=self.full_name,
            address=self.address,
            address2=self.address2,
            city=self.city,
            state=self.state,
            postal_code=self.postal_code,
            country=self.country,
            phone=self.phone,
        )
