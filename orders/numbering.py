import logging
import time

from django.conf import settings
from django.utils import timezone
from google.cloud.firestore import transactional

from nevyra.firebase import get_db

logger = logging.getLogger(__name__)

COUNTERS = 'counters'


@transactional
def _increment_counter(transaction, counter_ref):
    snapshot = counter_ref.get(transaction=transaction)
    current = (snapshot.to_dict() or {}).get('sequence', 0) if snapshot.exists else 0
    sequence = current + 1
    transaction.set(counter_ref, {'sequence': sequence, 'updatedAt': timezone.now()})
    return sequence


def next_daily_sequence(day_key):
    """Atomically increment and return the order counter for one calendar day (YYMMDD)."""
    db = get_db()
    counter_ref = db.collection(COUNTERS).document(f'orders-{day_key}')
    return _increment_counter(db.transaction(), counter_ref)


def generate_order_number(now=None):
    """
    Order numbers look like NEV2510170001: prefix, YYMMDD, then the day's
    4-digit sequence. If the counter cannot be used the number falls back to
    the prefix plus the last 8 digits of the millisecond timestamp.
    """
    prefix = settings.ORDER_NUMBER_PREFIX
    day_key = timezone.localtime(now or timezone.now()).strftime('%y%m%d')
    try:
        sequence = next_daily_sequence(day_key)
    except Exception as e:
        logger.warning(f"Order counter unavailable for {day_key}, using timestamp order number: {str(e)}")
        return f'{prefix}{str(int(time.time() * 1000))[-8:]}'
    return f'{prefix}{day_key}{sequence:04d}'
