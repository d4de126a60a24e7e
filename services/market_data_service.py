"""
Market data service for fetching coin quotes with a deterministic fallback
"""

import logging
import zlib
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np
import requests

from config import Config
from models.portfolio import AssetQuote, CoinMetadata

logger = logging.getLogger(__name__)

SPARKLINE_DAYS = 7
SPARKLINE_SAMPLES = SPARKLINE_DAYS * 24  # hourly

# Quotes served when the price API is unavailable, with sparkline base and variation
FALLBACK_COINS: Dict[str, dict] = {
    'bitcoin': dict(symbol='btc', name='Bitcoin', current_price=39840.21,
                    change_24h=2.1, change_7d=5.3, base=39000, variation=3000,
                    image='https://assets.coingecko.com/coins/images/1/large/bitcoin.png'),
    'ethereum': dict(symbol='eth', name='Ethereum', current_price=2104.32,
                     change_24h=3.2, change_7d=7.5, base=2000, variation=200,
                     image='https://assets.coingecko.com/coins/images/279/large/ethereum.png'),
    'cardano': dict(symbol='ada', name='Cardano', current_price=0.43,
                    change_24h=-1.2, change_7d=-3.1, base=0.45, variation=0.05,
                    image='https://assets.coingecko.com/coins/images/975/large/cardano.png'),
    'solana': dict(symbol='sol', name='Solana', current_price=104.23,
                   change_24h=5.7, change_7d=12.3, base=95, variation=15,
                   image='https://assets.coingecko.com/coins/images/4128/large/solana.png'),
    'polkadot': dict(symbol='dot', name='Polkadot', current_price=6.89,
                     change_24h=-0.8, change_7d=2.2, base=6.7, variation=0.6,
                     image='https://assets.coingecko.com/coins/images/12171/large/polkadot.png'),
    'avalanche': dict(symbol='avax', name='Avalanche', current_price=22.17,
                      change_24h=4.1, change_7d=9.2, base=20, variation=3,
                      image='https://assets.coingecko.com/coins/images/12559/large/Avalanche_Circle_RedWhite_Trans.png'),
    'chainlink': dict(symbol='link', name='Chainlink', current_price=13.92,
                      change_24h=1.3, change_7d=4.2, base=13, variation=1.5,
                      image='https://assets.coingecko.com/coins/images/877/large/chainlink-new-logo.png'),
    'polygon': dict(symbol='matic', name='Polygon', current_price=0.82,
                    change_24h=-2.3, change_7d=-1.1, base=0.85, variation=0.08,
                    image='https://assets.coingecko.com/coins/images/4713/large/matic-token-icon.png'),
}


@dataclass
class QuoteResult:
    """Quotes returned by a fetch, and where they came from"""
    quotes: List[AssetQuote] = field(default_factory=list)
    source: str = 'live'  # 'live' or 'fallback'
    error: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.source == 'fallback'


def generate_sparkline(coin_id: str, base_price: float, variation: float,
                       samples: int = SPARKLINE_SAMPLES) -> List[float]:
    """
    Random walk around base_price, seeded by the coin id.

    The same coin always gets the same series, so fallback data is stable
    across refreshes.
    """
    rng = np.random.default_rng(zlib.crc32(coin_id.encode('utf-8')))
    steps = (rng.random(samples) - 0.5) * variation * 0.1
    steps[0] = 0
    return (base_price + np.cumsum(steps)).tolist()


class MarketDataService:
    """Service for fetching coin market quotes from CoinGecko"""

    def __init__(self, config=None):
        self.config = config or Config()

    def get_quotes(self, ids: Sequence[str],
                   metadata: Optional[Mapping[str, CoinMetadata]] = None) -> QuoteResult:
        """
        Fetch quotes for the given coin ids.

        Never raises: on any fetch failure (network error, rate limit, bad
        payload) the fallback quote set is returned with source='fallback'.
        """
        if not ids:
            return QuoteResult()

        params = {
            'vs_currency': 'usd',
            'ids': ','.join(ids),
            'order': 'market_cap_desc',
            'sparkline': 'true',
            'price_change_percentage': '24h,7d',
        }

        try:
            response = requests.get(self.config.COINGECKO_MARKETS_URL, params=params,
                                    timeout=self.config.REQUEST_TIMEOUT)
            if response.status_code != 200:
                # Rate limited or server error
                message = f"Price API returned status {response.status_code}"
                logger.warning(f"{message}, using fallback quotes")
                return self.fallback_quotes(ids, metadata, error=message)

            quotes = [self._parse_quote(item) for item in response.json()]
            logger.info(f"Fetched {len(quotes)} live quotes")
            returned = {quote.id for quote in quotes}
            missing = [coin_id for coin_id in ids if coin_id not in returned]
            if missing:
                logger.warning(f"No live quotes returned for: {', '.join(missing)}")
            return QuoteResult(quotes=quotes, source='live')

        except requests.exceptions.RequestException as e:
            logger.warning(f"Price API request failed: {str(e)}")
            return self.fallback_quotes(ids, metadata, error=str(e))
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Malformed price API payload: {str(e)}")
            return self.fallback_quotes(ids, metadata, error=f"Malformed price data: {str(e)}")

    @staticmethod
    def _parse_quote(item: dict) -> AssetQuote:
        sparkline = (item.get('sparkline_in_7d') or {}).get('price') or []
        return AssetQuote(
            id=item['id'],
            symbol=item.get('symbol', ''),
            name=item.get('name', item['id']),
            current_price=float(item.get('current_price') or 0),
            price_change_percentage_24h=item.get('price_change_percentage_24h'),
            price_change_percentage_7d=item.get('price_change_percentage_7d_in_currency'),
            sparkline=tuple(float(p) for p in sparkline if p is not None),
            image=item.get('image') or ''
        )

    @staticmethod
    def fallback_quotes(ids: Sequence[str],
                        metadata: Optional[Mapping[str, CoinMetadata]] = None,
                        error: Optional[str] = None) -> QuoteResult:
        """Deterministic quotes for the requested ids, in request order"""
        metadata = metadata or {}
        quotes = []

        for coin_id in ids:
            if coin_id in FALLBACK_COINS:
                coin = FALLBACK_COINS[coin_id]
                quotes.append(AssetQuote(
                    id=coin_id,
                    symbol=coin['symbol'],
                    name=coin['name'],
                    current_price=coin['current_price'],
                    price_change_percentage_24h=coin['change_24h'],
                    price_change_percentage_7d=coin['change_7d'],
                    sparkline=tuple(generate_sparkline(coin_id, coin['base'], coin['variation'])),
                    image=coin['image']
                ))
            elif coin_id in metadata:
                meta = metadata[coin_id]
                price = meta.current_price or 0
                quotes.append(AssetQuote(
                    id=coin_id,
                    symbol=meta.symbol,
                    name=meta.name,
                    current_price=price,
                    price_change_percentage_24h=meta.price_change_percentage_24h,
                    price_change_percentage_7d=meta.price_change_percentage_7d,
                    sparkline=tuple(generate_sparkline(coin_id, price, price * 0.1)),
                    image=meta.image
                ))
            else:
                logger.debug(f"No fallback data for {coin_id}")

        return QuoteResult(quotes=quotes, source='fallback', error=error)
