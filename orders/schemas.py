from typing import Literal, Optional

from django.conf import settings
from pydantic import BaseModel, ConfigDict, Field

ORDER_STATUSES = (
    'Pending', 'Confirmed', 'Processing', 'Shipped',
    'Out for Delivery', 'Delivered', 'Cancelled', 'Returned',
)
PAYMENT_METHODS = ('UPI', 'Card', 'COD', 'Net Banking')
PAYMENT_STATUSES = ('Pending', 'Paid', 'Failed', 'Refunded')

OrderStatus = Literal[ORDER_STATUSES]
PaymentStatus = Literal[PAYMENT_STATUSES]


def _default_country():
    return settings.DEFAULT_COUNTRY


class AddressSchema(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True, str_strip_whitespace=True)

    firstName: str
    lastName: str
    email: str
    phone: str
    address: str
    city: str
    zipCode: str
    state: str
    country: str = Field(default_factory=_default_country)


class StatusUpdateSchema(BaseModel):
    status: Optional[OrderStatus] = None
    trackingNumber: Optional[str] = None
    notes: Optional[str] = None
    paymentStatus: Optional[PaymentStatus] = None
    force: bool = False


def normalize_payment_method(value):
    """Match a payment method case-insensitively to its canonical spelling."""
    if not isinstance(value, str):
        return None
    for method in PAYMENT_METHODS:
        if method.lower() == value.strip().lower():
            return method
    return None
