# orders/shipping.py

from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings

VAT_RATE = Decimal(str(getattr(settings, 'VAT_RATE', '0.20')))
CURRENCY = getattr(settings, 'CURRENCY', 'GBP')


@dataclass(frozen=True)
class ShippingOption:
    id: str
    name: str
    price: Decimal
    delivery_time: str
    carrier: str
    description: str = ''

    def as_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'price': str(self.price),
            'delivery_time': self.delivery_time,
            'carrier': self.carrier,
            'description': self.description,
        }


SHIPPING_OPTIONS = (
    ShippingOption(
        id='evri-48',
        name='Evri Tracked 48',
        price=Decimal('0.00'),
        delivery_time='Deliver within 3-4 working days',
        carrier='Evri',
        description='Free',
    ),
    ShippingOption(
        id='dhl-next-day',
        name='DHL Next Day UK',
        price=Decimal('5.99'),
        delivery_time='Next Working Day Delivery (Monday - Friday Delivery)',
        carrier='DHL',
        description='£5.99',
    ),
    ShippingOption(
        id='free-collection',
        name='Free Collection From Our Manchester Warehouse',
        price=Decimal('0.00'),
        delivery_time='Collect at your convenience',
        carrier='Collection',
        description='Free',
    ),
)

DEFAULT_SHIPPING_OPTION = SHIPPING_OPTIONS[0]


def get_shipping_option_by_id(option_id):
    for option in SHIPPING_OPTIONS:
        if option.id == option_id:
            return option
    return None


def get_shipping_price(option_id):
    option = get_shipping_option_by_id(option_id)
    return option.price if option else Decimal('0')


def format_shipping_option(option):
    return f"{option.name} - £{option.price:.2f}"
