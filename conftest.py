import pytest

from app import create_app
from config import TestingConfig
from models.portfolio import AssetQuote, CoinMetadata
from services.holdings_store import HoldingsStore
from services.market_data_service import MarketDataService, QuoteResult
from services.portfolio_service import PortfolioService


class StubMarketData(MarketDataService):
    """Market data source returning fixed quotes without network access"""

    def __init__(self, quotes, source='live'):
        super().__init__(TestingConfig())
        self.quotes = list(quotes)
        self.source = source
        self.calls = 0

    def get_quotes(self, ids, metadata=None):
        self.calls += 1
        return QuoteResult(
            quotes=[q for q in self.quotes if q.id in ids],
            source=self.source,
            error='stubbed failure' if self.source == 'fallback' else None
        )


@pytest.fixture
def sample_quotes():
    return [
        AssetQuote(id='alpha', symbol='alp', name='Alpha', current_price=100.0,
                   price_change_percentage_24h=10.0, price_change_percentage_7d=3.0,
                   sparkline=(1.0, 2.0, 3.0)),
        AssetQuote(id='beta', symbol='bet', name='Beta', current_price=50.0,
                   price_change_percentage_24h=None, price_change_percentage_7d=None,
                   sparkline=(5.0, 4.0)),
    ]


@pytest.fixture
def portfolio_service(tmp_path, sample_quotes):
    """Service over a temporary holdings file and stubbed quotes"""
    store = HoldingsStore(str(tmp_path / 'coins.json'))
    for coin_id in store.coin_ids():
        store.delete_coin(coin_id)
    store.add_coin('alpha', 2, CoinMetadata(symbol='alp', name='Alpha', current_price=100.0))
    store.add_coin('beta', 4, CoinMetadata(symbol='bet', name='Beta', current_price=50.0))
    return PortfolioService(
        market_data_service=StubMarketData(sample_quotes),
        holdings_store=store,
        config=TestingConfig()
    )


@pytest.fixture
def app(portfolio_service):
    """Create application for testing"""
    app = create_app('testing', portfolio_service=portfolio_service)
    return app


@pytest.fixture
def client(app):
    """Test client for making requests"""
    return app.test_client()


@pytest.fixture
def app_context(app):
    """Application context for tests"""
    with app.app_context():
        yield app
