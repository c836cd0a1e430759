from django.core.paginator import Paginator
from django.views.decorators.csrf import csrf_exempt
from django.utils import timezone
import logging
from shop_users.utils import user_required
from shop_admin.utils import admin_required
from nevyra.exceptions import NotFound, ValidationError
from nevyra.firebase import get_db
from nevyra.responses import api_response, doc_to_dict, method_not_allowed, paginate_params, parse_json_body
from products import reviews

PRODUCTS = 'products'

# Fields returned by listing endpoints; detail returns the whole document
LIST_FIELDS = [
    'title', 'price', 'category', 'subCategory', 'images', 'inStock',
    'rating', 'reviews', 'stockQuantity', 'soldCount', 'attributes',
]

REQUIRED_FIELDS = ['title', 'price', 'category', 'subCategory', 'images']

EDITABLE_FIELDS = REQUIRED_FIELDS + ['inStock', 'stockQuantity', 'soldCount', 'attributes']

logger = logging.getLogger(__name__)


def _summary(product_doc):
    product_data = product_doc.to_dict()
    summary = {'id': product_doc.id}
    for field in LIST_FIELDS:
        summary[field] = product_data.get(field)
    return summary


def _all_product_docs():
    return list(get_db().collection(PRODUCTS).stream())


def _matches(product_data, term):
    term = term.lower()
    return any(term in str(product_data.get(field) or '').lower() for field in ('title', 'category', 'subCategory'))


def _top_picks(product_docs, limit):
    ranked = sorted(
        product_docs,
        key=lambda doc: (doc.to_dict().get('rating') or 0, doc.to_dict().get('soldCount') or 0),
        reverse=True,
    )
    return [_summary(doc) for doc in ranked[:limit]]


def _int_param(request, name, default):
    try:
        return max(int(request.GET.get(name, default)), 0)
    except ValueError:
        raise ValidationError(f'{name} must be an integer')


@csrf_exempt
def products(request):
    if request.method == 'GET':
        return _list_products(request)
    if request.method == 'POST':
        return create_product(request)
    return method_not_allowed()


def _list_products(request):
    page, limit = paginate_params(request)
    category = request.GET.get('category')
    search = (request.GET.get('search') or '').strip()

    query = get_db().collection(PRODUCTS)
    if category:
        query = query.where('category', '==', category)
    # Firestore has no substring matching, so search is applied in memory
    product_docs = [doc for doc in query.stream() if not search or _matches(doc.to_dict(), search)]

    paginator = Paginator(product_docs, limit)
    current = paginator.get_page(page)
    pagination = {
        'total': paginator.count,
        'page': page,
        'limit': limit,
        'totalPages': paginator.num_pages if paginator.count else 0,
    }
    data = [_summary(doc) for doc in current.object_list] if page <= paginator.num_pages else []
    return api_response('Products fetched', data, pagination=pagination)


def all_products(request):
    if request.method != 'GET':
        return method_not_allowed()
    return api_response('All products fetched', [doc_to_dict(doc) for doc in _all_product_docs()])


def sections(request):
    if request.method != 'GET':
        return method_not_allowed()
    limit = _int_param(request, 'limit', 10)
    top_limit = _int_param(request, 'topLimit', 12)
    product_docs = _all_product_docs()

    categories = request.GET.get('categories')
    if categories:
        category_list = [category for category in categories.split(',') if category]
    else:
        category_list = sorted({doc.to_dict().get('category') for doc in product_docs if doc.to_dict().get('category')})

    by_category = {}
    for category in category_list:
        matching = [doc for doc in product_docs if doc.to_dict().get('category') == category]
        by_category[category] = [_summary(doc) for doc in matching[:limit]]

    top_picks = _top_picks(product_docs, top_limit) if top_limit > 0 else []
    return api_response('Sections fetched', {'byCategory': by_category, 'topPicks': top_picks})


def top_picks(request):
    if request.method != 'GET':
        return method_not_allowed()
    limit = _int_param(request, 'limit', 12)
    return api_response('Top picks fetched', _top_picks(_all_product_docs(), limit))


def suggest(request):
    if request.method != 'GET':
        return method_not_allowed()
    term = (request.GET.get('q') or '').strip()
    limit = _int_param(request, 'limit', 8)
    if not term:
        return api_response('No query provided', {'suggestions': [], 'products': []})

    matching = [doc for doc in _all_product_docs() if _matches(doc.to_dict(), term)][:limit]
    suggestions = []
    for doc in matching:
        title = doc.to_dict().get('title')
        if title not in suggestions:
            suggestions.append(title)
    return api_response('Suggestions fetched', {'suggestions': suggestions, 'products': [_summary(doc) for doc in matching]})


@csrf_exempt
def product_detail(request, product_id):
    if request.method == 'GET':
        product_doc = get_db().collection(PRODUCTS).document(product_id).get()
        if not product_doc.exists:
            raise NotFound('Product not found')
        return api_response('Product details', doc_to_dict(product_doc))
    if request.method == 'PUT':
        return update_product(request, product_id)
    if request.method == 'DELETE':
        return delete_product(request, product_id)
    return method_not_allowed()


def _validate_product_fields(data, partial=False):
    if not partial:
        missing = [field for field in REQUIRED_FIELDS if not data.get(field)]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    if 'price' in data:
        price = data['price']
        if isinstance(price, bool) or not isinstance(price, (int, float)) or price <= 0:
            raise ValidationError('Price must be a number greater than 0')
    if 'images' in data and (not isinstance(data['images'], list) or not data['images']):
        raise ValidationError('Images must be a non-empty list of URLs')
    for field in ('stockQuantity', 'soldCount'):
        if field in data:
            value = data[field]
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValidationError(f'{field} must be a non-negative integer')
    if 'attributes' in data and data['attributes'] is not None and not isinstance(data['attributes'], dict):
        raise ValidationError('Attributes must be an object')


@user_required
@admin_required
def create_product(request):
    data = parse_json_body(request)
    _validate_product_fields(data)

    product = {field: data[field] for field in EDITABLE_FIELDS if field in data}
    product.setdefault('stockQuantity', 0)
    product.setdefault('soldCount', 0)
    product.setdefault('attributes', {})
    product.setdefault('inStock', product['stockQuantity'] > 0)
    now = timezone.now()
    product.update({'rating': 0, 'reviews': 0, 'reviewsList': [], 'createdAt': now, 'updatedAt': now})

    _, product_ref = get_db().collection(PRODUCTS).add(product)
    logger.info(f"Product '{product['title']}' ({product_ref.id}) created by admin {request.user_email}")
    return api_response('Product created', doc_to_dict(product_ref.get()), status=201)


@user_required
@admin_required
def update_product(request, product_id):
    product_ref = get_db().collection(PRODUCTS).document(product_id)
    if not product_ref.get().exists:
        raise NotFound('Product not found')

    data = parse_json_body(request)
    _validate_product_fields(data, partial=True)
    updates = {field: data[field] for field in EDITABLE_FIELDS if field in data}
    if 'stockQuantity' in updates and 'inStock' not in updates:
        updates['inStock'] = updates['stockQuantity'] > 0
    updates['updatedAt'] = timezone.now()

    product_ref.update(updates)
    logger.info(f"Product {product_id} updated by admin {request.user_email}: {sorted(updates)}")
    return api_response('Product updated', doc_to_dict(product_ref.get()))


@user_required
@admin_required
def delete_product(request, product_id):
    product_ref = get_db().collection(PRODUCTS).document(product_id)
    if not product_ref.get().exists:
        raise NotFound('Product not found')
    product_ref.delete()
    logger.info(f"Product {product_id} deleted by admin {request.user_email}")
    return api_response('Product deleted')


# Reviews

def _reviewer_name(user_id):
    user_doc = get_db().collection('users').document(user_id).get()
    if not user_doc.exists:
        return None
    user_data = user_doc.to_dict()
    name = f"{user_data.get('firstName', '')} {user_data.get('lastName', '')}".strip()
    return name or None


@csrf_exempt
def product_reviews(request, product_id):
    if request.method == 'GET':
        return api_response('Reviews fetched', reviews.list_reviews(product_id))
    if request.method == 'POST':
        return _add_or_update_review(request, product_id)
    if request.method == 'DELETE':
        return _delete_my_review(request, product_id)
    return method_not_allowed()


@user_required
def _add_or_update_review(request, product_id):
    data = parse_json_body(request)
    user_name = data.get('userName') or _reviewer_name(request.user_id)
    product, created = reviews.add_or_update_review(product_id, request.user_id, data, user_name=user_name)
    if created:
        return api_response('Review added', product, status=201)
    return api_response('Review updated', product)


@user_required
def _delete_my_review(request, product_id):
    return api_response('Review deleted', reviews.delete_own_review(product_id, request.user_id))


@csrf_exempt
@user_required
def review_detail(request, product_id, review_id):
    if request.method == 'PUT':
        product = reviews.update_review(product_id, review_id, request.user_id, request.is_admin, parse_json_body(request))
        return api_response('Review updated', product)
    if request.method == 'DELETE':
        product = reviews.delete_review(product_id, review_id, request.user_id, request.is_admin)
        return api_response('Review deleted', product)
    return method_not_allowed()
