import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Mapping, Optional, Tuple


@dataclass(frozen=True)
class AssetQuote:
    """Price snapshot for a single coin, in the base currency"""
    id: str
    symbol: str
    name: str
    current_price: float
    price_change_percentage_24h: Optional[float] = 0
    price_change_percentage_7d: Optional[float] = 0
    sparkline: Tuple[float, ...] = ()  # Hourly samples over the last 7 days
    image: str = ''


@dataclass(frozen=True)
class EnrichedAsset:
    """Quote joined with the held quantity"""
    quote: AssetQuote
    quantity: float = 0

    @property
    def total_value(self) -> float:
        return self.quote.current_price * self.quantity

    @property
    def id(self) -> str:
        return self.quote.id

    @property
    def symbol(self) -> str:
        return self.quote.symbol

    @property
    def name(self) -> str:
        return self.quote.name

    @property
    def current_price(self) -> float:
        return self.quote.current_price

    @property
    def price_change_percentage_24h(self) -> Optional[float]:
        return self.quote.price_change_percentage_24h

    @property
    def price_change_percentage_7d(self) -> Optional[float]:
        return self.quote.price_change_percentage_7d

    @property
    def sparkline(self) -> Tuple[float, ...]:
        return self.quote.sparkline

    @property
    def image(self) -> str:
        return self.quote.image


@dataclass(frozen=True)
class PortfolioTotals:
    """Portfolio-level aggregates"""
    total_value: float = 0
    daily_change: float = 0
    daily_change_percentage: float = 0


@dataclass
class PortfolioSummary:
    """Portfolio summary data"""
    totals: PortfolioTotals
    assets: List[EnrichedAsset]
    source: str = 'live'  # 'live' or 'fallback'
    last_updated: datetime = field(default_factory=datetime.now)
    notice: Optional[str] = None  # Shown to the user when fallback data is served


@dataclass(frozen=True)
class ChartSegment:
    """One wedge of the distribution ring, angles in radians"""
    asset_id: str
    name: str
    value: float
    start_angle: float
    end_angle: float
    percentage: float
    color: str

    @property
    def span(self) -> float:
        return self.end_angle - self.start_angle

    @property
    def mid_angle(self) -> float:
        return (self.start_angle + self.end_angle) / 2

    def to_dict(self):
        return {
            'asset_id': self.asset_id,
            'name': self.name,
            'value': self.value,
            'start_angle': self.start_angle,
            'end_angle': self.end_angle,
            'start_degrees': math.degrees(self.start_angle),
            'end_degrees': math.degrees(self.end_angle),
            'percentage': self.percentage,
            'color': self.color,
        }


@dataclass
class CoinMetadata:
    """Static coin details kept by the holdings store"""
    symbol: str
    name: str
    image: str = ''
    current_price: float = 0
    price_change_percentage_24h: float = 0
    price_change_percentage_7d: float = 0

    NUMERIC_FIELDS = ('current_price', 'price_change_percentage_24h', 'price_change_percentage_7d')
    TEXT_FIELDS = ('symbol', 'name', 'image')

    @classmethod
    def clean(cls, data: Mapping) -> Dict[str, object]:
        """
        Known fields of data with their values coerced to the field types.

        Numeric fields must be finite numbers (None counts as 0). Raises
        ValueError for anything else.
        """
        values = {}
        for name in cls.TEXT_FIELDS:
            if name in data:
                values[name] = '' if data[name] is None else str(data[name])
        for name in cls.NUMERIC_FIELDS:
            if name not in data:
                continue
            try:
                number = float(data[name] or 0)
            except (TypeError, ValueError):
                raise ValueError(f"Invalid {name}: {data[name]}")
            if not math.isfinite(number):
                raise ValueError(f"Invalid {name}: {data[name]}")
            values[name] = number
        return values

    @classmethod
    def from_dict(cls, data: Mapping) -> 'CoinMetadata':
        values = cls.clean(data)
        if not values.get('symbol') or not values.get('name'):
            raise ValueError("Symbol and name are required")
        return cls(**values)


class SortKey(Enum):
    """Orderings offered by the asset list"""
    VALUE_HIGH = 'value-high'
    VALUE_LOW = 'value-low'
    NAME_A = 'name-a'
    NAME_Z = 'name-z'
    PRICE_HIGH = 'price-high'
    PRICE_LOW = 'price-low'
    CHANGE_HIGH = 'change-high'
    CHANGE_LOW = 'change-low'

    @classmethod
    def parse(cls, value: Optional[str]) -> 'SortKey':
        """Parse a sort option string, defaulting to value-high when empty"""
        if not value:
            return cls.VALUE_HIGH
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown sort option: {value}")
