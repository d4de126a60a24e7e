from datetime import datetime
from typing import Optional, Sequence

import pandas as pd

from models.portfolio import EnrichedAsset

CSV_COLUMNS = ['Coin', 'Symbol', 'Price', '24h Change', 'Quantity', 'Value']


def assets_to_frame(assets: Sequence[EnrichedAsset]) -> pd.DataFrame:
    """Build the export table, one row per asset in the given order"""
    rows = [{
        'Coin': asset.name,
        'Symbol': (asset.symbol or '').upper(),
        'Price': asset.current_price or 0,
        '24h Change': asset.price_change_percentage_24h or 0,
        'Quantity': asset.quantity or 0,
        'Value': asset.total_value or 0,
    } for asset in assets]
    return pd.DataFrame(rows, columns=CSV_COLUMNS)


def to_csv(assets: Sequence[EnrichedAsset]) -> str:
    """Serialize assets as CSV text with a header row"""
    return assets_to_frame(assets).to_csv(index=False, lineterminator='\n')


def export_filename(when: Optional[datetime] = None) -> str:
    """Download name such as crypto-portfolio-Mar 5 2024.csv"""
    when = when or datetime.now()
    return f"crypto-portfolio-{when.strftime('%b')} {when.day} {when.year}.csv"
