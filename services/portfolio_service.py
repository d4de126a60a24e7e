import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from config import Config
from models.portfolio import ChartSegment, EnrichedAsset, PortfolioSummary, SortKey
from services.holdings_store import HoldingsStore
from services.market_data_service import MarketDataService
from utils import distribution, export, view
from utils.calculations import PortfolioCalculator
from utils.currency import CurrencyConverter

logger = logging.getLogger(__name__)

FALLBACK_NOTICE = "Failed to fetch cryptocurrency data, showing sample prices"


class PortfolioService:
    """Service for portfolio valuation, views and chart data"""

    def __init__(
            self,
            market_data_service: Optional[MarketDataService] = None,
            holdings_store: Optional[HoldingsStore] = None,
            converter: Optional[CurrencyConverter] = None,
            config=None
    ):
        self.config = config or Config()
        self.market_data_service = market_data_service or MarketDataService(self.config)
        self.holdings_store = holdings_store or HoldingsStore(self.config.HOLDINGS_FILE)
        self.converter = converter or CurrencyConverter(self.config.EXCHANGE_RATES, self.config.BASE_CURRENCY)
        self.calculator = PortfolioCalculator()
        self.palette: Sequence[str] = self.config.CHART_PALETTE
        self.inner_radius_ratio: float = self.config.DISTRIBUTION_INNER_RADIUS
        self._summary: Optional[PortfolioSummary] = None
        self._cache_timeout = self.config.CACHE_TIMEOUT

    def _is_cache_valid(self) -> bool:
        """Check if the last summary is still fresh"""
        if self._summary is None:
            return False
        return datetime.now() - self._summary.last_updated < self._cache_timeout

    def refresh(self) -> PortfolioSummary:
        """Fetch quotes, aggregate, and keep the result as the current summary"""
        holdings = self.holdings_store.get_holdings()
        result = self.market_data_service.get_quotes(list(holdings), self.holdings_store.get_metadata())

        assets, totals = self.calculator.aggregate(result.quotes, holdings)

        notice = None
        if result.is_fallback:
            logger.warning(f"Serving fallback quotes: {result.error}")
            notice = FALLBACK_NOTICE

        self._summary = PortfolioSummary(
            totals=totals,
            assets=assets,
            source=result.source,
            last_updated=datetime.now(),
            notice=notice
        )
        logger.info(f"Portfolio refreshed from {result.source} data: "
                    f"{len(assets)} assets, total {totals.total_value:.2f}")
        return self._summary

    def get_portfolio_summary(self) -> PortfolioSummary:
        """Current summary, refreshed when missing or stale"""
        if not self._is_cache_valid():
            return self.refresh()
        return self._summary

    def refresh_cache(self):
        """Drop the current summary so the next read fetches again"""
        logger.info("Portfolio cache cleared")
        self._summary = None

    def get_view(self, search_term: str = '', sort_key: SortKey = SortKey.VALUE_HIGH) -> List[EnrichedAsset]:
        """Filtered and ordered asset list"""
        return view.present(self.get_portfolio_summary().assets, search_term, sort_key)

    def get_asset(self, asset_id: str) -> Optional[EnrichedAsset]:
        for asset in self.get_portfolio_summary().assets:
            if asset.id == asset_id:
                return asset
        return None

    def get_segments(self) -> List[ChartSegment]:
        """Distribution chart segments for the current assets"""
        return distribution.layout(self.get_portfolio_summary().assets, self.palette)

    def ring_geometry(self, size: float) -> distribution.RingGeometry:
        return distribution.RingGeometry.for_size(size, self.inner_radius_ratio)

    def hit_test(self, x: float, y: float, size: float) -> Optional[ChartSegment]:
        """Segment under a pointer position on a chart of the given size"""
        return distribution.hit_test((x, y), self.get_segments(), self.ring_geometry(size))

    def asset_payload(self, asset: EnrichedAsset, currency: str, total_value: float) -> Dict:
        convert = self.converter.convert
        return {
            'id': asset.id,
            'symbol': asset.symbol.upper(),
            'name': asset.name,
            'image': asset.image,
            'current_price': convert(asset.current_price, currency),
            'price_change_percentage_24h': asset.price_change_percentage_24h or 0,
            'price_change_percentage_7d': asset.price_change_percentage_7d or 0,
            'quantity': asset.quantity,
            'total_value': convert(asset.total_value, currency),
            'portfolio_percentage': self.calculator.portfolio_percentage(asset.total_value, total_value),
        }

    def summary_payload(self, currency: Optional[str] = None,
                        assets: Optional[Sequence[EnrichedAsset]] = None) -> Dict:
        """
        JSON-ready summary in the requested display currency.

        Only money amounts are converted; percentages are computed in the
        base currency and passed through.
        """
        currency = (currency or self.converter.base_currency).upper()
        self.converter.rate(currency)  # validate before doing any work

        summary = self.get_portfolio_summary()
        totals = summary.totals
        if assets is None:
            assets = summary.assets

        return {
            'currency': currency,
            'currencies': self.converter.codes(),
            'source': summary.source,
            'notice': summary.notice,
            'last_updated': summary.last_updated.isoformat(),
            'total_value': self.converter.convert(totals.total_value, currency),
            'daily_change': self.converter.convert(totals.daily_change, currency),
            'daily_change_percentage': totals.daily_change_percentage,
            'assets': [self.asset_payload(a, currency, totals.total_value) for a in assets],
        }

    def export_csv(self, search_term: str = '', sort_key: SortKey = SortKey.VALUE_HIGH) -> str:
        """CSV text for the current filtered and ordered asset list"""
        return export.to_csv(self.get_view(search_term, sort_key))
