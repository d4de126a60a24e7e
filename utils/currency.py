"""
Display-currency conversion using fixed multipliers relative to the base currency.
"""

from typing import Dict, List, Mapping, Optional


class CurrencyConverter:
    """Convert base-currency amounts into a display currency"""

    def __init__(self, rates: Mapping[str, float], base_currency: str = 'USD'):
        self.base_currency = base_currency
        self._rates: Dict[str, float] = {code.upper(): float(rate) for code, rate in rates.items()}
        self._rates[base_currency] = 1.0

    def codes(self) -> List[str]:
        """Supported currency codes, base first"""
        return [self.base_currency] + sorted(c for c in self._rates if c != self.base_currency)

    def rate(self, target: Optional[str]) -> float:
        code = (target or self.base_currency).upper()
        if code not in self._rates:
            raise ValueError(f"Unsupported currency: {target}")
        return self._rates[code]

    def convert(self, amount_in_base: float, target: Optional[str] = None) -> float:
        """Convert an amount from the base currency into target"""
        return (amount_in_base or 0) * self.rate(target)
