import copy
import itertools
import json

import pytest
from django.test import Client
from django.utils import timezone
from google.cloud.firestore import Increment, Query

from nevyra import firebase
from nevyra.utils import generate_admin_token, generate_user_token
from orders import numbering

_ids = itertools.count(1)


class FakeSnapshot:
    def __init__(self, reference, data):
        self.reference = reference
        self.id = reference.id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data)


class FakeDocumentRef:
    def __init__(self, db, path, doc_id):
        self._db = db
        self._path = path
        self.id = doc_id

    def _docs(self):
        return self._db.data.setdefault(self._path, {})

    def collection(self, name):
        return FakeCollection(self._db, f'{self._path}/{self.id}/{name}')

    def get(self, transaction=None):
        return FakeSnapshot(self, copy.deepcopy(self._docs().get(self.id)))

    def set(self, data, merge=False):
        if merge and self.id in self._docs():
            self._docs()[self.id].update(copy.deepcopy(data))
        else:
            self._docs()[self.id] = copy.deepcopy(data)

    def update(self, data):
        if self.id not in self._docs():
            raise KeyError(f'No document to update: {self._path}/{self.id}')
        current = self._docs()[self.id]
        for field, value in data.items():
            if isinstance(value, Increment):
                current[field] = current.get(field, 0) + value.value
            else:
                current[field] = copy.deepcopy(value)

    def delete(self):
        self._docs().pop(self.id, None)


class FakeQuery:
    def __init__(self, db, path, filters=(), ordering=None, limit_to=None):
        self._db = db
        self._path = path
        self._filters = list(filters)
        self._ordering = ordering
        self._limit = limit_to

    def _copy(self, **changes):
        params = {'filters': self._filters, 'ordering': self._ordering, 'limit_to': self._limit}
        params.update(changes)
        return FakeQuery(self._db, self._path, **params)

    def where(self, field, op, value):
        assert op == '==', f'unsupported operator {op}'
        return self._copy(filters=self._filters + [(field, value)])

    def order_by(self, field, direction=Query.ASCENDING):
        return self._copy(ordering=(field, direction))

    def limit(self, count):
        return self._copy(limit_to=count)

    def stream(self):
        docs = self._db.data.get(self._path, {})
        matches = [
            doc_id for doc_id, data in docs.items()
            if all(data.get(field) == value for field, value in self._filters)
        ]
        if self._ordering:
            field, direction = self._ordering
            matches.sort(
                key=lambda doc_id: (docs[doc_id].get(field) is not None, docs[doc_id].get(field)),
                reverse=direction == Query.DESCENDING,
            )
        if self._limit is not None:
            matches = matches[:self._limit]
        return iter([FakeDocumentRef(self._db, self._path, doc_id).get() for doc_id in matches])


class FakeCollection(FakeQuery):
    def __init__(self, db, path):
        super().__init__(db, path)

    def document(self, doc_id=None):
        return FakeDocumentRef(self._db, self._path, doc_id or f'doc{next(_ids)}')

    def add(self, data):
        doc_ref = self.document()
        doc_ref.set(data)
        return timezone.now(), doc_ref


class FakeBatch:
    def __init__(self):
        self._ops = []

    def set(self, doc_ref, data, merge=False):
        self._ops.append(lambda: doc_ref.set(data, merge=merge))

    def update(self, doc_ref, data):
        self._ops.append(lambda: doc_ref.update(data))

    def delete(self, doc_ref):
        self._ops.append(doc_ref.delete)

    def commit(self):
        for op in self._ops:
            op()
        self._ops = []


class FakeTransaction(FakeBatch):
    """Buffers writes like a batch; reads go straight to the store."""


class FakeFirestore:
    """In-memory stand-in for the parts of the Firestore client the backend uses."""

    def __init__(self):
        self.data = {}

    def collection(self, name):
        return FakeCollection(self, name)

    def batch(self):
        return FakeBatch()

    def transaction(self):
        return FakeTransaction()

    def docs(self, path):
        return self.data.get(path, {})


@pytest.fixture(autouse=True)
def fake_db(monkeypatch):
    db = FakeFirestore()
    monkeypatch.setattr(firebase, '_client', db)
    return db


@pytest.fixture(autouse=True)
def order_sequence(monkeypatch):
    counters = {}

    def next_daily_sequence(day_key):
        counters[day_key] = counters.get(day_key, 0) + 1
        return counters[day_key]

    monkeypatch.setattr(numbering, 'next_daily_sequence', next_daily_sequence)
    return counters


@pytest.fixture(autouse=True)
def fast_hashing(settings):
    settings.PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']
    settings.JWT_SECRET = 'test-secret'


class ApiClient:
    """Django test client speaking JSON with an optional bearer token."""

    def __init__(self, token=None):
        self._client = Client()
        self.token = token

    def _headers(self):
        return {'HTTP_AUTHORIZATION': f'Bearer {self.token}'} if self.token else {}

    def _send(self, method, path, data=None):
        body = json.dumps(data) if data is not None else ''
        return getattr(self._client, method)(path, data=body, content_type='application/json', **self._headers())

    def get(self, path, params=None):
        return self._client.get(path, params or {}, **self._headers())

    def post(self, path, data=None):
        return self._send('post', path, data)

    def put(self, path, data=None):
        return self._send('put', path, data)

    def patch(self, path, data=None):
        return self._send('patch', path, data)

    def delete(self, path, data=None):
        return self._send('delete', path, data)


@pytest.fixture
def api():
    return ApiClient()


@pytest.fixture
def make_user(fake_db):
    from django.contrib.auth.hashers import make_password

    def _make_user(email='jane@example.com', password='Secret#123', **fields):
        now = timezone.now()
        data = {
            'firstName': 'Jane',
            'lastName': 'Doe',
            'email': email,
            'phone': None,
            'password': make_password(password),
            'isAdmin': False,
            'addresses': [],
            'recentSearches': [],
            'resetPasswordOTP': None,
            'resetPasswordOTPExpires': None,
            'createdAt': now,
            'updatedAt': now,
        }
        data.update(fields)
        _, doc_ref = fake_db.collection('users').add(data)
        return doc_ref.id

    return _make_user


@pytest.fixture
def user_id(make_user):
    return make_user()


@pytest.fixture
def user_api(user_id):
    return ApiClient(generate_user_token(user_id, 'jane@example.com'))


@pytest.fixture
def admin_id(fake_db):
    from shop_admin.models import ShopAdmin
    return ShopAdmin.create(email='admin@nevyra.com', password='Admin#1234', first_name='Admin').admin_id


@pytest.fixture
def admin_api(admin_id):
    return ApiClient(generate_admin_token(admin_id, 'admin@nevyra.com'))


@pytest.fixture
def make_product(fake_db):
    def _make_product(**fields):
        now = timezone.now()
        data = {
            'title': 'Cotton Shirt',
            'price': 500,
            'category': 'Fashion',
            'subCategory': 'Shirts',
            'images': ['https://cdn.example.com/shirt.jpg'],
            'inStock': True,
            'rating': 0,
            'reviews': 0,
            'reviewsList': [],
            'stockQuantity': 10,
            'soldCount': 0,
            'attributes': {},
            'createdAt': now,
            'updatedAt': now,
        }
        data.update(fields)
        _, doc_ref = fake_db.collection('products').add(data)
        return doc_ref.id

    return _make_product


@pytest.fixture
def address():
    return {
        'firstName': 'Jane',
        'lastName': 'Doe',
        'email': 'jane@example.com',
        'phone': '9876543210',
        'address': '12 MG Road',
        'city': 'Bengaluru',
        'zipCode': '560001',
        'state': 'Karnataka',
    }


@pytest.fixture
def api_for():
    def _api_for(user_id, email):
        return ApiClient(generate_user_token(user_id, email))

    return _api_for
