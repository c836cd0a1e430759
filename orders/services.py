"""
Order placement, cancellation and fulfilment status changes.

Every multi-document change here (order + lines + stock + cart, or status +
stock restore) goes through a single Firestore write batch so it is applied
all-or-nothing. Stock is checked by reading the product documents before
the batch is built; there is no reservation, so two concurrent checkouts can
both pass the check for the last unit.
"""
import logging
from datetime import timedelta

from django.conf import settings
from django.utils import timezone
from google.cloud.firestore import Increment
from pydantic import ValidationError as PydanticValidationError

from nevyra.exceptions import NotFound, ValidationError
from nevyra.firebase import get_db
from nevyra.validators import describe_pydantic_error
from orders import numbering
from orders.pricing import line_amounts, order_totals
from orders.schemas import (
    AddressSchema,
    ORDER_STATUSES,
    StatusUpdateSchema,
    normalize_payment_method,
)

logger = logging.getLogger(__name__)

ORDERS = 'orders'
ORDER_ITEMS = 'order_items'
PRODUCTS = 'products'

CANCELLABLE_STATUSES = ('Pending', 'Confirmed')

# Allowed next statuses for admin updates. Cancelled and Returned are terminal.
ALLOWED_TRANSITIONS = {
    'Pending': ('Confirmed', 'Cancelled'),
    'Confirmed': ('Processing', 'Cancelled'),
    'Processing': ('Shipped', 'Cancelled'),
    'Shipped': ('Out for Delivery', 'Returned'),
    'Out for Delivery': ('Delivered', 'Returned'),
    'Delivered': ('Returned',),
    'Cancelled': (),
    'Returned': (),
}

PRODUCT_SUMMARY_FIELDS = ['title', 'images', 'price', 'attributes']


def can_transition(current, target):
    return current == target or target in ALLOWED_TRANSITIONS.get(current, ())


def parse_address(data):
    if not isinstance(data, dict):
        raise ValidationError('Address must be an object')
    # Blank values count as missing
    cleaned = {key: value for key, value in data.items() if value not in (None, '')}
    try:
        return AddressSchema(**cleaned).model_dump()
    except PydanticValidationError as e:
        raise ValidationError(describe_pydantic_error(e, prefix=' in address'))


def build_order_item(order_id, cart_line):
    """Snapshot a cart line as an order line; amounts are derived here, never taken from input."""
    amounts = line_amounts(cart_line['price'], cart_line['quantity'], cart_line.get('originalPrice'))
    return {
        'orderId': order_id,
        'productId': cart_line['productId'],
        'quantity': cart_line['quantity'],
        'price': cart_line['price'],
        'originalPrice': cart_line.get('originalPrice'),
        'size': cart_line.get('size'),
        'color': cart_line.get('color'),
        'selectedAttributes': cart_line.get('selectedAttributes') or {},
        **amounts,
    }


def place_order(user_id, data):
    payment_method = data.get('paymentMethod')
    shipping_data = data.get('shippingAddress')
    billing_data = data.get('billingAddress')
    if not payment_method or not shipping_data or not billing_data:
        raise ValidationError('Payment method, shipping address, and billing address are required')

    canonical_method = normalize_payment_method(payment_method)
    if canonical_method is None:
        raise ValidationError(f'Invalid payment method: {payment_method}')
    shipping_address = parse_address(shipping_data)
    billing_address = parse_address(billing_data)

    db = get_db()
    cart_docs = list(db.collection('users').document(user_id).collection('cart').stream())
    if not cart_docs:
        raise ValidationError('Cart is empty. Cannot create order.')

    # Validate stock availability line by line
    cart_lines = []
    for cart_doc in cart_docs:
        line = cart_doc.to_dict()
        product_ref = db.collection(PRODUCTS).document(line['productId'])
        product_doc = product_ref.get()
        if not product_doc.exists:
            raise ValidationError(f"Product {line['productId']} is no longer available")
        product = product_doc.to_dict()
        stock = product.get('stockQuantity', 0)
        if line['quantity'] > stock:
            raise ValidationError(f"Insufficient stock for {product.get('title')}. Available: {stock}")
        cart_lines.append((cart_doc, product_ref, line))

    order_ref = db.collection(ORDERS).document()
    order_items = []
    for cart_doc, product_ref, line in cart_lines:
        item_ref = db.collection(ORDER_ITEMS).document()
        order_items.append((item_ref, product_ref, cart_doc, build_order_item(order_ref.id, line)))

    totals = order_totals([item for _, _, _, item in order_items])
    order_number = numbering.generate_order_number()
    now = timezone.now()

    order_data = {
        'userId': user_id,
        'orderNumber': order_number,
        'items': [item_ref.id for item_ref, _, _, _ in order_items],
        **totals,
        'status': 'Pending',
        'paymentMethod': canonical_method,
        'paymentStatus': 'Pending',
        'shippingAddress': shipping_address,
        'billingAddress': billing_address,
        'estimatedDelivery': now + timedelta(days=settings.ESTIMATED_DELIVERY_DAYS),
        'actualDelivery': None,
        'trackingNumber': None,
        'notes': data.get('notes'),
        'createdAt': now,
        'updatedAt': now,
    }

    batch = db.batch()
    batch.set(order_ref, order_data)
    for item_ref, product_ref, cart_doc, item in order_items:
        batch.set(item_ref, {**item, 'createdAt': now, 'updatedAt': now})
        batch.update(product_ref, {
            'stockQuantity': Increment(-item['quantity']),
            'soldCount': Increment(item['quantity']),
        })
        batch.delete(cart_doc.reference)
    batch.commit()

    logger.info(
        f"Order {order_number} ({order_ref.id}) placed by user {user_id}: "
        f"{len(order_items)} lines, total {totals['totalAmount']}"
    )
    return order_ref.get()


def _order_items(order_id):
    return list(get_db().collection(ORDER_ITEMS).where('orderId', '==', order_id).stream())


def _move_stock(batch, order_id, sign):
    """Return an order's units to stock (sign=1) or take them out again (sign=-1)."""
    db = get_db()
    for item_doc in _order_items(order_id):
        item = item_doc.to_dict()
        product_ref = db.collection(PRODUCTS).document(item['productId'])
        if not product_ref.get().exists:
            logger.warning(f"Product {item['productId']} of order {order_id} no longer exists; stock not adjusted")
            continue
        batch.update(product_ref, {
            'stockQuantity': Increment(sign * item['quantity']),
            'soldCount': Increment(-sign * item['quantity']),
        })


def _restore_stock(batch, order_id):
    _move_stock(batch, order_id, 1)


def _reclaim_stock(batch, order_id):
    _move_stock(batch, order_id, -1)


def get_user_order(user_id, order_id):
    order_doc = get_db().collection(ORDERS).document(order_id).get()
    if not order_doc.exists or order_doc.to_dict().get('userId') != user_id:
        raise NotFound('Order not found')
    return order_doc


def cancel_order(user_id, order_id):
    order_doc = get_user_order(user_id, order_id)
    status = order_doc.to_dict().get('status')
    if status not in CANCELLABLE_STATUSES:
        raise ValidationError('Order cannot be cancelled at this stage')

    batch = get_db().batch()
    batch.update(order_doc.reference, {'status': 'Cancelled', 'updatedAt': timezone.now()})
    _restore_stock(batch, order_doc.id)
    batch.commit()

    logger.info(f"Order {order_doc.id} cancelled by user {user_id}")
    return order_doc.reference.get()


def update_order_status(order_id, data, admin_email=None):
    try:
        update = StatusUpdateSchema(**data)
    except PydanticValidationError as e:
        raise ValidationError(describe_pydantic_error(e))

    order_ref = get_db().collection(ORDERS).document(order_id)
    order_doc = order_ref.get()
    if not order_doc.exists:
        raise NotFound('Order not found')
    current = order_doc.to_dict().get('status', 'Pending')

    batch = get_db().batch()
    now = timezone.now()
    payload = {'updatedAt': now}

    if update.status and update.status != current:
        if not can_transition(current, update.status):
            if not update.force:
                raise ValidationError(f'Cannot change order status from {current} to {update.status}')
            logger.warning(f"Admin {admin_email} forced order {order_id} from {current} to {update.status}")
        payload['status'] = update.status
        if update.status == 'Cancelled':
            _restore_stock(batch, order_id)
        elif current == 'Cancelled':
            # Reopening a cancelled order takes its units out of stock again
            _reclaim_stock(batch, order_id)
        if update.status == 'Delivered':
            payload['actualDelivery'] = now
    if update.trackingNumber:
        payload['trackingNumber'] = update.trackingNumber
    if update.notes:
        payload['notes'] = update.notes
    if update.paymentStatus:
        payload['paymentStatus'] = update.paymentStatus

    batch.update(order_ref, payload)
    batch.commit()

    logger.info(f"Order {order_id} updated by admin {admin_email}: {current} -> {payload.get('status', current)}")
    return order_ref.get()


def serialize_order(order_doc, with_user=False):
    """Order document with its lines (and each line's product summary) expanded."""
    db = get_db()
    order = order_doc.to_dict()
    order['id'] = order_doc.id

    items = []
    for item_id in order.get('items') or []:
        item_doc = db.collection(ORDER_ITEMS).document(item_id).get()
        if not item_doc.exists:
            continue
        item = item_doc.to_dict()
        item['id'] = item_doc.id
        product_doc = db.collection(PRODUCTS).document(item['productId']).get()
        if product_doc.exists:
            product = product_doc.to_dict()
            item['product'] = {'id': product_doc.id, **{f: product.get(f) for f in PRODUCT_SUMMARY_FIELDS}}
        else:
            item['product'] = None
        items.append(item)
    order['items'] = items

    if with_user:
        user_doc = db.collection('users').document(order['userId']).get()
        if user_doc.exists:
            user = user_doc.to_dict()
            order['user'] = {
                'id': user_doc.id,
                'firstName': user.get('firstName'),
                'lastName': user.get('lastName'),
                'email': user.get('email'),
            }
        else:
            order['user'] = None
    return order


def valid_status_filter(value):
    if value and value not in ORDER_STATUSES:
        raise ValidationError(f'Unknown order status: {value}')
    return value
