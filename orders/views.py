from django.core.paginator import Paginator
from django.views.decorators.csrf import csrf_exempt
import logging
from shop_users.utils import user_required
from shop_admin.utils import admin_required
from nevyra.exceptions import NotFound
from nevyra.firebase import get_db
from nevyra.responses import api_response, method_not_allowed, paginate_params, parse_json_body
from orders import services

logger = logging.getLogger(__name__)


@csrf_exempt
@user_required
def orders(request):
    if request.method == 'POST':
        order_doc = services.place_order(request.user_id, parse_json_body(request))
        return api_response('Order created successfully', services.serialize_order(order_doc), status=201)
    if request.method == 'GET':
        return _user_orders(request)
    return method_not_allowed()


def _user_orders(request):
    page, limit = paginate_params(request)
    order_docs = list(
        get_db().collection(services.ORDERS)
        .where('userId', '==', request.user_id)
        .stream()
    )
    # Sorted here so the equality filter needs no composite index
    order_docs.sort(key=lambda doc: doc.to_dict().get('createdAt'), reverse=True)
    paginator = Paginator(order_docs, limit)
    current = paginator.get_page(page)
    data = [services.serialize_order(order_doc) for order_doc in current.object_list]
    pagination = {
        'total': paginator.count,
        'page': current.number,
        'limit': limit,
        'totalPages': paginator.num_pages,
    }
    return api_response('Orders fetched successfully', data, pagination=pagination)


@csrf_exempt
@user_required
def order_detail(request, order_id):
    if request.method != 'GET':
        return method_not_allowed()
    order_doc = services.get_user_order(request.user_id, order_id)
    return api_response('Order fetched successfully', services.serialize_order(order_doc))


@csrf_exempt
@user_required
def order_by_number(request, order_number):
    if request.method != 'GET':
        return method_not_allowed()
    for order_doc in (
        get_db().collection(services.ORDERS)
        .where('orderNumber', '==', order_number)
        .limit(1)
        .stream()
    ):
        if order_doc.to_dict().get('userId') == request.user_id:
            return api_response('Order fetched successfully', services.serialize_order(order_doc))
    raise NotFound('Order not found')


@csrf_exempt
@user_required
def cancel_order(request, order_id):
    if request.method != 'PUT':
        return method_not_allowed()
    order_doc = services.cancel_order(request.user_id, order_id)
    return api_response('Order cancelled successfully', services.serialize_order(order_doc))


# Admin order endpoints

@csrf_exempt
@user_required
@admin_required
def admin_all_orders(request):
    if request.method != 'GET':
        return method_not_allowed()
    page, limit = paginate_params(request)
    status = services.valid_status_filter(request.GET.get('status'))
    payment_status = request.GET.get('paymentStatus')

    query = get_db().collection(services.ORDERS)
    if status:
        query = query.where('status', '==', status)
    if payment_status:
        query = query.where('paymentStatus', '==', payment_status)
    order_docs = list(query.stream())
    order_docs.sort(key=lambda doc: doc.to_dict().get('createdAt'), reverse=True)

    paginator = Paginator(order_docs, limit)
    current = paginator.get_page(page)
    data = [services.serialize_order(order_doc, with_user=True) for order_doc in current.object_list]
    pagination = {
        'total': paginator.count,
        'page': current.number,
        'limit': limit,
        'totalPages': paginator.num_pages,
    }
    logger.info(f"Admin {request.user_email} listed {len(data)} of {paginator.count} orders")
    return api_response('Orders fetched successfully', data, pagination=pagination)


@csrf_exempt
@user_required
@admin_required
def admin_update_status(request, order_id):
    if request.method != 'PUT':
        return method_not_allowed()
    order_doc = services.update_order_status(order_id, parse_json_body(request), admin_email=request.user_email)
    return api_response('Order status updated successfully', services.serialize_order(order_doc, with_user=True))
