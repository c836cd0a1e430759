from django.views.decorators.csrf import csrf_exempt
from django.utils import timezone
from google.cloud.firestore import Query
from shop_users.utils import user_required
from nevyra.exceptions import NotFound, ValidationError
from nevyra.firebase import get_db
from nevyra.responses import api_response, doc_to_dict, method_not_allowed, parse_json_body
from orders.pricing import shipping_fee_for

PRODUCT_SUMMARY_FIELDS = ['title', 'images', 'price', 'attributes', 'stockQuantity']


def cart_collection(user_id):
    return get_db().collection('users').document(user_id).collection('cart')


def _product_summary(product_id):
    product_doc = get_db().collection('products').document(product_id).get()
    if not product_doc.exists:
        return None
    product_data = product_doc.to_dict()
    summary = {'id': product_doc.id}
    for field in PRODUCT_SUMMARY_FIELDS:
        summary[field] = product_data.get(field)
    return summary


def _with_product(item):
    item['product'] = _product_summary(item.get('productId'))
    return item


def _parse_quantity(value):
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        raise ValidationError('Invalid quantity format')
    if quantity < 1:
        raise ValidationError('Quantity must be at least 1')
    return quantity


def _list_items(user_id):
    items_stream = cart_collection(user_id).order_by('createdAt', direction=Query.DESCENDING).stream()
    return [_with_product(doc_to_dict(item_doc)) for item_doc in items_stream]


@csrf_exempt
@user_required
def cart(request):
    if request.method == 'GET':
        return api_response('Cart items fetched', _list_items(request.user_id))
    if request.method == 'POST':
        return _add_to_cart(request)
    if request.method == 'DELETE':
        for item_doc in cart_collection(request.user_id).stream():
            item_doc.reference.delete()
        return api_response('Cart cleared')
    return method_not_allowed()


def _add_to_cart(request):
    data = parse_json_body(request)
    product_id = data.get('productId')
    if not product_id or data.get('quantity') is None:
        raise ValidationError('Product ID and quantity are required')
    quantity = _parse_quantity(data.get('quantity'))
    size = data.get('size') or None
    color = data.get('color') or None

    # Check if product exists and get its current price
    product_doc = get_db().collection('products').document(product_id).get()
    if not product_doc.exists:
        raise NotFound('Product not found')
    product_data = product_doc.to_dict()
    stock = product_data.get('stockQuantity', 0)

    if not product_data.get('inStock', stock > 0):
        raise ValidationError('Product is out of stock')
    if stock < quantity:
        raise ValidationError(f'Only {stock} items available in stock')

    # One line per (product, size, color)
    existing = None
    for item_doc in cart_collection(request.user_id).where('productId', '==', product_id).stream():
        item_data = item_doc.to_dict()
        if item_data.get('size') == size and item_data.get('color') == color:
            existing = item_doc
            break

    now = timezone.now()
    if existing is not None:
        current_quantity = existing.to_dict().get('quantity', 0)
        new_quantity = current_quantity + quantity
        if new_quantity > stock:
            raise ValidationError(
                f'Cannot add {quantity} more items. Only {stock - current_quantity} additional items available.'
            )
        existing.reference.update({'quantity': new_quantity, 'updatedAt': now})
        return api_response('Cart item quantity updated', _with_product(doc_to_dict(existing.reference.get())))

    # Price is snapshotted here and never refreshed from the product
    sale_price = (product_data.get('attributes') or {}).get('salePrice')
    cart_data = {
        'userId': request.user_id,
        'productId': product_id,
        'quantity': quantity,
        'size': size,
        'color': color,
        'price': sale_price or product_data.get('price'),
        'originalPrice': product_data.get('price') if sale_price else None,
        'selectedAttributes': data.get('selectedAttributes') or {},
        'createdAt': now,
        'updatedAt': now,
    }
    _, item_ref = cart_collection(request.user_id).add(cart_data)
    return api_response('Item added to cart', _with_product(doc_to_dict(item_ref.get())), status=201)


@csrf_exempt
@user_required
def cart_item(request, item_id):
    item_ref = cart_collection(request.user_id).document(item_id)

    if request.method == 'PUT':
        data = parse_json_body(request)
        item_doc = item_ref.get()
        if not item_doc.exists:
            raise NotFound('Cart item not found')

        update_payload = {}
        if data.get('quantity') is not None:
            quantity = _parse_quantity(data['quantity'])
            product_doc = get_db().collection('products').document(item_doc.to_dict().get('productId')).get()
            if not product_doc.exists:
                raise NotFound('Product not found')
            stock = product_doc.to_dict().get('stockQuantity', 0)
            if quantity > stock:
                raise ValidationError(f'Only {stock} items available in stock')
            update_payload['quantity'] = quantity
        for field in ('size', 'color', 'selectedAttributes'):
            if field in data:
                update_payload[field] = data[field]

        if update_payload:
            update_payload['updatedAt'] = timezone.now()
            item_ref.update(update_payload)
        return api_response('Cart item updated', _with_product(doc_to_dict(item_ref.get())))

    if request.method == 'DELETE':
        if not item_ref.get().exists:
            raise NotFound('Cart item not found')
        item_ref.delete()
        return api_response('Cart item removed')

    return method_not_allowed()


@csrf_exempt
@user_required
def cart_summary(request):
    if request.method != 'GET':
        return method_not_allowed()

    items = _list_items(request.user_id)
    subtotal = 0
    total_items = 0
    total_savings = 0
    for item in items:
        subtotal += item['price'] * item['quantity']
        total_items += item['quantity']
        if item.get('originalPrice'):
            total_savings += (item['originalPrice'] - item['price']) * item['quantity']

    shipping_fee = shipping_fee_for(subtotal)
    return api_response('Cart summary fetched', {
        'items': items,
        'summary': {
            'subtotal': subtotal,
            'totalItems': total_items,
            'totalSavings': total_savings,
            'shippingFee': shipping_fee,
            'finalTotal': subtotal + shipping_fee,
        },
    })
