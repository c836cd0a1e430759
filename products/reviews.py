"""
Reviews embedded on product documents (the ``reviewsList`` array).

Every mutation rewrites the whole list and recomputes the cached ``rating``
(mean rounded to 2 decimals, 0 with no reviews) and ``reviews`` count from
it in the same update.
"""
import logging
import uuid

from django.utils import timezone

from nevyra.exceptions import Forbidden, NotFound, ValidationError
from nevyra.firebase import get_db

logger = logging.getLogger(__name__)

PRODUCTS = 'products'


def aggregate(reviews_list):
    if not reviews_list:
        return {'rating': 0, 'reviews': 0}
    total = sum(review.get('rating', 0) for review in reviews_list)
    return {'rating': round(total / len(reviews_list), 2), 'reviews': len(reviews_list)}


def parse_rating(value):
    if isinstance(value, bool):
        raise ValidationError('Rating must be a number between 1 and 5')
    try:
        rating = float(value)
    except (TypeError, ValueError):
        raise ValidationError('Rating must be a number between 1 and 5')
    if not 1 <= rating <= 5:
        raise ValidationError('Rating must be a number between 1 and 5')
    return int(rating) if rating.is_integer() else rating


def _get_product(product_id):
    product_ref = get_db().collection(PRODUCTS).document(product_id)
    product_doc = product_ref.get()
    if not product_doc.exists:
        raise NotFound('Product not found')
    return product_ref, product_doc.to_dict()


def _save(product_ref, reviews_list):
    payload = {'reviewsList': reviews_list, 'updatedAt': timezone.now(), **aggregate(reviews_list)}
    product_ref.update(payload)
    return payload


def list_reviews(product_id):
    _, product = _get_product(product_id)
    return product.get('reviewsList') or []


def add_or_update_review(product_id, user_id, data, user_name=None):
    """Create the caller's review, or overwrite it in place if they already have one."""
    if data.get('rating') is None:
        raise ValidationError('Rating is required')
    rating = parse_rating(data.get('rating'))

    product_ref, product = _get_product(product_id)
    reviews_list = list(product.get('reviewsList') or [])
    now = timezone.now()

    for review in reviews_list:
        if review.get('userId') == user_id:
            review['rating'] = rating
            review['title'] = data.get('title', review.get('title'))
            review['comment'] = data.get('comment', review.get('comment'))
            if user_name:
                review['userName'] = user_name
            review['updatedAt'] = now
            created = False
            break
    else:
        reviews_list.append({
            'id': uuid.uuid4().hex,
            'userId': user_id,
            'userName': user_name,
            'rating': rating,
            'title': data.get('title'),
            'comment': data.get('comment'),
            'createdAt': now,
            'updatedAt': now,
        })
        created = True

    payload = _save(product_ref, reviews_list)
    logger.info(f"Review {'added' if created else 'updated'} on product {product_id} by user {user_id}")
    return {**product, **payload, 'id': product_id}, created


def delete_own_review(product_id, user_id):
    product_ref, product = _get_product(product_id)
    reviews_list = product.get('reviewsList') or []
    remaining = [review for review in reviews_list if review.get('userId') != user_id]
    if len(remaining) == len(reviews_list):
        raise NotFound('Review not found')
    payload = _save(product_ref, remaining)
    logger.info(f"User {user_id} deleted their review on product {product_id}")
    return {**product, **payload, 'id': product_id}


def _find_review(reviews_list, review_id, user_id, is_admin):
    for review in reviews_list:
        if review.get('id') == review_id:
            if not is_admin and review.get('userId') != user_id:
                raise Forbidden('Not authorized to modify this review')
            return review
    raise NotFound('Review not found')


def update_review(product_id, review_id, user_id, is_admin, data):
    product_ref, product = _get_product(product_id)
    reviews_list = list(product.get('reviewsList') or [])
    review = _find_review(reviews_list, review_id, user_id, is_admin)

    if data.get('rating') is not None:
        review['rating'] = parse_rating(data.get('rating'))
    for field in ('title', 'comment'):
        if field in data:
            review[field] = data[field]
    review['updatedAt'] = timezone.now()

    payload = _save(product_ref, reviews_list)
    logger.info(f"Review {review_id} on product {product_id} updated by {'admin' if is_admin else 'owner'} {user_id}")
    return {**product, **payload, 'id': product_id}


def delete_review(product_id, review_id, user_id, is_admin):
    product_ref, product = _get_product(product_id)
    reviews_list = product.get('reviewsList') or []
    _find_review(reviews_list, review_id, user_id, is_admin)

    remaining = [review for review in reviews_list if review.get('id') != review_id]
    payload = _save(product_ref, remaining)
    logger.info(f"Review {review_id} on product {product_id} deleted by {'admin' if is_admin else 'owner'} {user_id}")
    return {**product, **payload, 'id': product_id}
