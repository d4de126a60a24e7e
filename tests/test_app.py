import math
from unittest.mock import patch

import requests

from app import create_app
from config import TestingConfig
from services.holdings_store import HoldingsStore
from services.portfolio_service import PortfolioService


def test_portfolio_summary(client):
    response = client.get('/api/portfolio_summary')
    data = response.get_json()

    assert response.status_code == 200
    assert data['currency'] == 'USD'
    assert data['total_value'] == 400
    assert data['daily_change'] == 20
    assert data['daily_change_percentage'] == 5.0
    assert [a['id'] for a in data['assets']] == ['alpha', 'beta']


def test_portfolio_summary_in_cad(client):
    data = client.get('/api/portfolio_summary?currency=CAD').get_json()

    assert math.isclose(data['total_value'], 400 * 1.36)
    assert data['daily_change_percentage'] == 5.0
    assert data['assets'][0]['portfolio_percentage'] == 50.0


def test_unknown_currency_is_bad_request(client):
    response = client.get('/api/portfolio_summary?currency=XYZ')

    assert response.status_code == 400
    assert response.get_json()['status'] == 'error'


def test_assets_search_and_sort(client):
    data = client.get('/api/assets?sort=name-z').get_json()
    assert [a['id'] for a in data['assets']] == ['beta', 'alpha']
    assert data['sort'] == 'name-z'

    data = client.get('/api/assets?search=ALP').get_json()
    assert [a['id'] for a in data['assets']] == ['alpha']


def test_assets_bad_sort(client):
    assert client.get('/api/assets?sort=random').status_code == 400


def test_distribution(client):
    data = client.get('/api/distribution?size=200').get_json()

    assert data['outer_radius'] == 100
    assert [s['asset_id'] for s in data['segments']] == ['alpha', 'beta']
    assert math.isclose(data['segments'][0]['end_angle'] - data['segments'][0]['start_angle'], math.pi)
    assert data['segments'][0]['path'].startswith('M')


def test_distribution_hit(client):
    data = client.get('/api/distribution/hit?x=180&y=100&size=200').get_json()
    assert data['segment']['asset_id'] == 'alpha'

    data = client.get('/api/distribution/hit?x=100&y=100&size=200').get_json()
    assert data['segment'] is None


def test_distribution_hit_requires_point(client):
    assert client.get('/api/distribution/hit?x=1').status_code == 400
    assert client.get('/api/distribution/hit?x=1&y=1&size=-5').status_code == 400


def test_sparkline(client):
    data = client.get('/api/sparkline/alpha?width=100&height=40').get_json()

    geometry = data['geometry']
    assert geometry['points'][0] == [0.0, 38.0]
    assert geometry['points'][-1] == [100.0, 2.0]
    assert geometry['fill_path'].endswith('Z')


def test_sparkline_unknown_asset(client):
    assert client.get('/api/sparkline/nope').status_code == 404


def test_refresh(client, portfolio_service):
    calls = portfolio_service.market_data_service.calls
    response = client.post('/refresh')

    assert response.status_code == 200
    assert portfolio_service.market_data_service.calls == calls + 1


def test_export(client):
    response = client.get('/export?sort=value-low')

    assert response.status_code == 200
    assert response.mimetype == 'text/csv'
    assert 'crypto-portfolio-' in response.headers['Content-Disposition']
    lines = response.get_data(as_text=True).strip().split('\n')
    assert lines[0] == 'Coin,Symbol,Price,24h Change,Quantity,Value'
    assert lines[1].startswith('Alpha,ALP,')


def test_home_page(client):
    response = client.get('/')

    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert 'Alpha' in body
    assert '$400.00' in body


def test_home_page_compact_total_and_currency_links(client):
    client.put('/api/holdings/alpha', json={'quantity': 100})

    body = client.get('/').get_data(as_text=True)

    assert '10.20K USD across 2 coins' in body
    assert 'href="?currency=CAD"' in body
    assert 'href="?currency=INR"' in body


def test_holdings_crud(client, portfolio_service):
    response = client.post('/api/holdings', json={'id': 'gamma', 'symbol': 'gam', 'name': 'Gamma',
                                                   'quantity': 3, 'current_price': 1.5})
    assert response.status_code == 201
    assert portfolio_service.holdings_store.get_holdings()['gamma'] == 3

    assert client.post('/api/holdings', json={'id': 'gamma', 'symbol': 'gam', 'name': 'Gamma'}).status_code == 409

    assert client.put('/api/holdings/gamma', json={'quantity': 7}).status_code == 200
    assert portfolio_service.holdings_store.get_holdings()['gamma'] == 7

    assert client.put('/api/holdings/gamma', json={'quantity': -1}).status_code == 400
    assert client.put('/api/holdings/unknown', json={'quantity': 1}).status_code == 404

    assert client.delete('/api/holdings/gamma').status_code == 200
    assert client.delete('/api/holdings/gamma').status_code == 404
    assert 'gamma' not in client.get('/api/holdings').get_json()['mockPortfolio']


def test_holdings_add_requires_fields(client):
    assert client.post('/api/holdings', json={'id': 'x'}).status_code == 400
    assert client.post('/api/holdings', json={'symbol': 'x', 'name': 'X'}).status_code == 400


def test_quantity_change_updates_summary(client):
    client.get('/api/portfolio_summary')
    client.put('/api/holdings/alpha', json={'quantity': 6})

    data = client.get('/api/portfolio_summary').get_json()

    assert data['total_value'] == 800
    assert data['assets'][0]['portfolio_percentage'] == 75.0


def test_non_finite_quantity_is_bad_request(client, portfolio_service):
    before = client.get('/api/portfolio_summary').get_json()

    assert client.put('/api/holdings/alpha', json={'quantity': 'nan'}).status_code == 400
    assert client.put('/api/holdings/alpha', json={'quantity': 'inf'}).status_code == 400
    assert client.post('/api/holdings', json={'id': 'gamma', 'symbol': 'gam', 'name': 'Gamma',
                                              'quantity': 'Infinity'}).status_code == 400

    assert portfolio_service.holdings_store.get_holdings() == {'alpha': 2, 'beta': 4}
    after = client.get('/api/portfolio_summary').get_json()
    assert after['total_value'] == before['total_value']


def test_bad_metadata_is_bad_request(client, portfolio_service):
    store = portfolio_service.holdings_store
    response = client.post('/api/holdings', json={'id': 'gamma', 'symbol': 'gam', 'name': 'Gamma',
                                                   'quantity': 1, 'current_price': 'abc'})
    assert response.status_code == 400
    assert not store.exists('gamma')

    response = client.put('/api/holdings/alpha', json={'quantity': 9, 'price_change_percentage_24h': 'up'})
    assert response.status_code == 400
    assert store.get_holdings()['alpha'] == 2
    assert store.get_metadata()['alpha'].price_change_percentage_24h == 0

    assert client.put('/api/holdings/alpha', json={'name': ''}).status_code == 400
    assert store.get_metadata()['alpha'].name == 'Alpha'


@patch('services.market_data_service.requests.get',
       side_effect=requests.exceptions.ConnectionError('offline'))
def test_added_coin_survives_offline_feed(mock_get, tmp_path):
    """Test a coin added through the API still renders from fallback quotes"""
    store = HoldingsStore(str(tmp_path / 'coins.json'))
    service = PortfolioService(holdings_store=store, config=TestingConfig())
    client = create_app('testing', portfolio_service=service).test_client()

    response = client.post('/api/holdings', json={'id': 'gamma', 'symbol': 'gam', 'name': 'Gamma',
                                                   'quantity': 2, 'current_price': '1.5'})
    assert response.status_code == 201
    assert response.get_json()['metadata']['current_price'] == 1.5

    data = client.get('/api/portfolio_summary').get_json()
    assert data['source'] == 'fallback'
    gamma = next(a for a in data['assets'] if a['id'] == 'gamma')
    assert gamma['total_value'] == 3.0
