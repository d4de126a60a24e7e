from typing import List, Mapping, Sequence, Tuple

from models.portfolio import AssetQuote, EnrichedAsset, PortfolioTotals

CURRENCY_SYMBOLS = {
    'USD': '$',
    'CAD': 'CA$',
    'INR': '₹',
}


class PortfolioCalculator:
    """Portfolio valuation and display formatting"""

    @staticmethod
    def aggregate(
            quotes: Sequence[AssetQuote],
            holdings: Mapping[str, float]
    ) -> Tuple[List[EnrichedAsset], PortfolioTotals]:
        """
        Join quotes with held quantities and roll them into portfolio totals.

        Quotes are walked in input order so the floating-point sums are
        reproducible. A coin missing from holdings counts as quantity 0.
        """
        enriched = []
        total_value = 0.0
        daily_change = 0.0

        for quote in quotes:
            asset = EnrichedAsset(quote=quote, quantity=holdings.get(quote.id, 0) or 0)
            value = asset.total_value

            total_value += value
            daily_change += value * (quote.price_change_percentage_24h or 0) / 100
            enriched.append(asset)

        daily_change_percentage = (daily_change / total_value) * 100 if total_value > 0 else 0

        return enriched, PortfolioTotals(
            total_value=total_value,
            daily_change=daily_change,
            daily_change_percentage=daily_change_percentage
        )

    @staticmethod
    def portfolio_percentage(asset_value: float, total_value: float) -> float:
        """Share of the portfolio held in one asset, in percent"""
        if total_value <= 0:
            return 0
        return (asset_value or 0) / total_value * 100

    @staticmethod
    def format_currency(value, currency='USD'):
        """Format currency values for display"""
        symbol = CURRENCY_SYMBOLS.get(currency, f"{currency} ")
        sign = '-' if value < 0 else ''
        return f"{sign}{symbol}{abs(value):,.2f}"

    @staticmethod
    def format_large_number(value):
        """Format large numbers with K/M/B suffixes"""
        if value >= 1e9:
            return f"{value / 1e9:.2f}B"
        elif value >= 1e6:
            return f"{value / 1e6:.2f}M"
        elif value >= 1e3:
            return f"{value / 1e3:.2f}K"
        return f"{value:.2f}"

    @staticmethod
    def format_percentage(value, decimals=2):
        """Format percentage values with an explicit sign"""
        if value == 0:
            return f"{0:.{decimals}f}%"
        sign = '+' if value > 0 else ''
        return f"{sign}{value:.{decimals}f}%"

    @staticmethod
    def format_quantity(quantity, symbol):
        """Format a coin quantity with precision chosen by magnitude"""
        symbol = symbol.upper()
        if quantity >= 1000:
            text = f"{quantity:,.3f}".rstrip('0').rstrip('.')
        elif quantity < 0.001:
            text = f"{quantity:.8f}"
        elif quantity < 1:
            text = f"{quantity:.4f}"
        else:
            text = f"{quantity:,.2f}".rstrip('0').rstrip('.')
        return f"{text} {symbol}"
