import json
import logging
import math
import os
from dataclasses import asdict
from typing import Dict, Mapping

from models.portfolio import CoinMetadata
from services.market_data_service import FALLBACK_COINS

logger = logging.getLogger(__name__)

DEFAULT_PORTFOLIO: Dict[str, float] = {
    'bitcoin': 0.5,
    'ethereum': 2.3,
    'cardano': 500,
    'solana': 10,
    'polkadot': 30,
    'avalanche': 15,
    'chainlink': 40,
    'polygon': 100,
}


def _default_metadata() -> Dict[str, CoinMetadata]:
    return {
        coin_id: CoinMetadata(
            symbol=coin['symbol'],
            name=coin['name'],
            image=coin['image'],
            current_price=coin['current_price'],
            price_change_percentage_24h=coin['change_24h'],
            price_change_percentage_7d=coin['change_7d']
        )
        for coin_id, coin in FALLBACK_COINS.items()
    }


def _valid_quantity(quantity) -> bool:
    """Held quantities are finite and non-negative"""
    return isinstance(quantity, (int, float)) and math.isfinite(quantity) and quantity >= 0


class HoldingsStore:
    """Held quantities and coin metadata, kept in a JSON file"""

    def __init__(self, path: str):
        self.path = path
        self._quantities: Dict[str, float] = {}
        self._metadata: Dict[str, CoinMetadata] = {}
        self.load()

    def load(self):
        """Read the file, falling back to the default portfolio"""
        try:
            with open(self.path, 'r', encoding='utf-8') as fh:
                data = json.load(fh)
            self._quantities = {}
            for coin_id, value in data.get('mockPortfolio', {}).items():
                quantity = float(value)
                if _valid_quantity(quantity):
                    self._quantities[coin_id] = quantity
                else:
                    logger.error(f"Skipping invalid quantity {value} for {coin_id}")
            self._metadata = {}
            for coin_id, entry in data.get('coinMetadata', {}).items():
                try:
                    self._metadata[coin_id] = self._metadata_from_dict(entry)
                except ValueError as e:
                    logger.error(f"Skipping metadata for {coin_id}: {str(e)}")
            logger.info(f"Loaded {len(self._quantities)} holdings from {self.path}")
        except FileNotFoundError:
            logger.info(f"No holdings file at {self.path}, using default portfolio")
            self._reset_defaults()
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.error(f"Could not read holdings file {self.path}: {str(e)}")
            self._reset_defaults()

    def _reset_defaults(self):
        self._quantities = dict(DEFAULT_PORTFOLIO)
        self._metadata = _default_metadata()

    @staticmethod
    def _metadata_from_dict(data: Mapping) -> CoinMetadata:
        return CoinMetadata.from_dict(data)

    def get_holdings(self) -> Dict[str, float]:
        """Snapshot of coin id -> quantity"""
        return dict(self._quantities)

    def get_metadata(self) -> Dict[str, CoinMetadata]:
        return dict(self._metadata)

    def coin_ids(self):
        return list(self._quantities)

    def exists(self, coin_id: str) -> bool:
        return coin_id in self._quantities or coin_id in self._metadata

    def update_quantity(self, coin_id: str, quantity: float) -> bool:
        """Set the held quantity of an existing coin"""
        if not self.exists(coin_id):
            logger.warning(f"Coin {coin_id} does not exist in the portfolio")
            return False
        if not _valid_quantity(quantity):
            logger.warning(f"Rejected quantity {quantity} for {coin_id}")
            return False

        self._quantities[coin_id] = float(quantity)
        self._save()
        logger.info(f"Updated {coin_id} quantity to {quantity}")
        return True

    def add_coin(self, coin_id: str, quantity: float, metadata: CoinMetadata) -> bool:
        """Add a new coin with its metadata"""
        if coin_id in self._metadata:
            logger.warning(f"Coin {coin_id} already exists in the portfolio")
            return False
        if not _valid_quantity(quantity):
            logger.warning(f"Rejected quantity {quantity} for {coin_id}")
            return False

        self._quantities[coin_id] = float(quantity)
        self._metadata[coin_id] = metadata
        self._save()
        logger.info(f"Added {metadata.name} to portfolio")
        return True

    def update_metadata(self, coin_id: str, changes: Mapping) -> bool:
        """
        Merge changed fields into a coin's metadata.

        Raises ValueError when a changed field has the wrong type; the stored
        metadata is left as it was.
        """
        if coin_id not in self._metadata:
            logger.warning(f"Coin {coin_id} does not exist in the portfolio")
            return False

        merged = asdict(self._metadata[coin_id])
        merged.update(changes)
        self._metadata[coin_id] = CoinMetadata.from_dict(merged)
        self._save()
        logger.info(f"Updated {coin_id} metadata")
        return True

    def delete_coin(self, coin_id: str) -> bool:
        """Remove a coin and its metadata"""
        if not self.exists(coin_id):
            logger.warning(f"Coin {coin_id} does not exist in the portfolio")
            return False

        self._quantities.pop(coin_id, None)
        self._metadata.pop(coin_id, None)
        self._save()
        logger.info(f"Deleted {coin_id} from portfolio")
        return True

    def to_dict(self):
        return {
            'mockPortfolio': dict(self._quantities),
            'coinMetadata': {k: asdict(v) for k, v in self._metadata.items()},
        }

    def _save(self):
        # Best effort: the in-memory change stands even if the write fails
        try:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.path, 'w', encoding='utf-8') as fh:
                json.dump(self.to_dict(), fh, indent=2)
        except OSError as e:
            logger.error(f"Failed to save holdings to {self.path}: {str(e)}")
