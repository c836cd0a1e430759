"""
Order arithmetic.

Amounts are plain floats exactly as snapshotted on cart lines; nothing is
rounded, so callers comparing totals should allow for float accumulation.
"""
from django.conf import settings


def shipping_fee_for(subtotal):
    """Free shipping strictly above the threshold, flat fee otherwise."""
    return 0 if subtotal > settings.FREE_SHIPPING_THRESHOLD else settings.SHIPPING_FEE


def line_amounts(price, quantity, original_price=None):
    """Amounts for one order line. totalAmount = subtotal + taxAmount - discountAmount."""
    subtotal = price * quantity
    tax_amount = subtotal * settings.ORDER_TAX_RATE
    discount_amount = (original_price - price) * quantity if original_price else 0
    return {
        'subtotal': subtotal,
        'taxAmount': tax_amount,
        'discountAmount': discount_amount,
        'totalAmount': subtotal + tax_amount - discount_amount,
    }


def order_totals(lines):
    """Aggregate per-line amounts (as returned by line_amounts) into order totals."""
    subtotal = sum(line['subtotal'] for line in lines)
    tax_amount = sum(line['taxAmount'] for line in lines)
    discount_amount = sum(line['discountAmount'] for line in lines)
    shipping_fee = shipping_fee_for(subtotal)
    return {
        'subtotal': subtotal,
        'taxAmount': tax_amount,
        'discountAmount': discount_amount,
        'shippingFee': shipping_fee,
        'totalAmount': subtotal + tax_amount + shipping_fee - discount_amount,
    }
