import pytest


@pytest.fixture
def catalog(make_product):
    return {
        'shirt': make_product(title='Linen Shirt', category='Fashion', subCategory='Shirts', rating=4.5, soldCount=3),
        'kurta': make_product(title='Cotton Kurta', category='Fashion', subCategory='Ethnic', rating=4.5, soldCount=9),
        'phone': make_product(title='Pixel Phone', category='Electronics', subCategory='Mobiles', rating=3.9),
    }


def test_list_paginates_and_searches(api, catalog):
    body = api.get('/api/products', {'search': 'shirt'}).json()
    assert [p['id'] for p in body['data']] == [catalog['shirt']]
    assert body['pagination'] == {'total': 1, 'page': 1, 'limit': 10, 'totalPages': 1}

    body = api.get('/api/products', {'category': 'Fashion', 'limit': 1, 'page': 2}).json()
    assert len(body['data']) == 1
    assert body['pagination']['totalPages'] == 2
    assert 'reviewsList' not in body['data'][0]


def test_search_matches_sub_category_case_insensitively(api, catalog):
    body = api.get('/api/products', {'search': 'MOBILE'}).json()
    assert [p['id'] for p in body['data']] == [catalog['phone']]


def test_top_picks_rank_by_rating_then_sales(api, catalog):
    picks = api.get('/api/products/top-picks', {'limit': 2}).json()['data']
    assert [p['id'] for p in picks] == [catalog['kurta'], catalog['shirt']]


def test_sections(api, catalog):
    data = api.get('/api/products/sections', {'categories': 'Electronics', 'topLimit': 1}).json()['data']
    assert list(data['byCategory']) == ['Electronics']
    assert [p['id'] for p in data['topPicks']] == [catalog['kurta']]

    data = api.get('/api/products/sections').json()['data']
    assert sorted(data['byCategory']) == ['Electronics', 'Fashion']


def test_suggest(api, catalog):
    assert api.get('/api/products/suggest', {'q': ' '}).json()['data'] == {'suggestions': [], 'products': []}
    data = api.get('/api/products/suggest', {'q': 'fash'}).json()['data']
    assert sorted(data['suggestions']) == ['Cotton Kurta', 'Linen Shirt']


def test_detail_and_all(api, catalog):
    assert api.get(f"/api/products/{catalog['phone']}").json()['data']['title'] == 'Pixel Phone'
    assert api.get('/api/products/missing').status_code == 404
    assert len(api.get('/api/products/all').json()['data']) == 3


@pytest.fixture
def new_product():
    return {
        'title': 'Desk Lamp',
        'price': 899,
        'category': 'Home',
        'subCategory': 'Lighting',
        'images': ['https://cdn.example.com/lamp.jpg'],
        'stockQuantity': 0,
    }


def test_admin_creates_product(admin_api, new_product):
    response = admin_api.post('/api/products', new_product)

    assert response.status_code == 201
    product = response.json()['data']
    assert product['inStock'] is False
    assert product['rating'] == 0
    assert product['reviews'] == 0


@pytest.mark.parametrize('changes', [
    {'price': 0},
    {'title': ''},
    {'images': []},
    {'stockQuantity': -1},
])
def test_admin_create_validation(admin_api, new_product, changes):
    assert admin_api.post('/api/products', {**new_product, **changes}).status_code == 400


def test_admin_update_derives_in_stock(admin_api, make_product):
    product = make_product(stockQuantity=0, inStock=False)
    response = admin_api.put(f'/api/products/{product}', {'stockQuantity': 5})
    assert response.json()['data']['inStock'] is True


def test_admin_delete(admin_api, fake_db, make_product):
    product = make_product()
    assert admin_api.delete(f'/api/products/{product}').status_code == 200
    assert product not in fake_db.docs('products')
    assert admin_api.delete(f'/api/products/{product}').status_code == 404


def test_catalog_writes_require_admin(api, user_api, new_product):
    assert api.post('/api/products', new_product).status_code == 401
    assert user_api.post('/api/products', new_product).status_code == 403
