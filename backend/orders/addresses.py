# orders/addresses.py

from dataclasses import asdict, dataclass, fields


@dataclass(frozen=True)
class Address:
    # required
    full_name: str
    address: str
    city: str
    postal_code: str
    country: str
    # optional
    address2: str = ''
    state: str = ''
    phone: str = ''

    REQUIRED = ('full_name', 'address', 'city', 'postal_code', 'country')

    def as_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, data):
        """Build from a stored/validated mapping; None if required parts are missing."""
        if not data:
            return None
        known = {f.name for f in fields(cls)}
        values = {k: (v or '') for k, v in data.items() if k in known}
        if not all(values.get(name) for name in cls.REQUIRED):
            return None
        return cls(**values)

    @classmethod
    def from_stripe(cls, details, fallback_name='', phone=''):
        """
        Build from a Stripe ``{name, phone?, address: {...}}`` block
        (shipping_details / customer_details).
        """
        if not details or not details.get('address'):
            return None
        address = details['address']
        return cls.from_dict({
            'full_name': details.get('name') or fallback_name,
            'address': address.get('line1'),
            'address2': address.get('line2'),
            'city': address.get('city'),
            'state': address.get('state'),
            'postal_code': address.get('postal_code'),
            'country': address.get('country'),
            'phone': details.get('phone') or phone,
        })
