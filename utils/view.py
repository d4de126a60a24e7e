import unicodedata
from typing import Callable, Dict, List, Sequence, Tuple

from models.portfolio import EnrichedAsset, SortKey


def _name_key(asset: EnrichedAsset) -> str:
    # Accents fold onto their base letter so "Éther" files under E
    decomposed = unicodedata.normalize('NFKD', asset.name or '')
    return ''.join(c for c in decomposed if not unicodedata.combining(c)).casefold()


def _number(value) -> float:
    return value or 0


# key function and whether the ordering is descending
_SORTS: Dict[SortKey, Tuple[Callable[[EnrichedAsset], object], bool]] = {
    SortKey.VALUE_HIGH: (lambda a: _number(a.total_value), True),
    SortKey.VALUE_LOW: (lambda a: _number(a.total_value), False),
    SortKey.NAME_A: (_name_key, False),
    SortKey.NAME_Z: (_name_key, True),
    SortKey.PRICE_HIGH: (lambda a: _number(a.current_price), True),
    SortKey.PRICE_LOW: (lambda a: _number(a.current_price), False),
    SortKey.CHANGE_HIGH: (lambda a: _number(a.price_change_percentage_24h), True),
    SortKey.CHANGE_LOW: (lambda a: _number(a.price_change_percentage_24h), False),
}


def matches(asset: EnrichedAsset, search_term: str) -> bool:
    """Case-insensitive substring match on name or symbol"""
    term = search_term.strip().lower()
    if not term:
        return True
    return term in (asset.name or '').lower() or term in (asset.symbol or '').lower()


def present(
        assets: Sequence[EnrichedAsset],
        search_term: str = '',
        sort_key: SortKey = SortKey.VALUE_HIGH
) -> List[EnrichedAsset]:
    """
    Filter assets by search term and order them by sort_key.

    Sorting is stable, so assets that compare equal keep their input order
    in both directions. The input sequence is left untouched.
    """
    filtered = [asset for asset in assets if matches(asset, search_term or '')]
    key, descending = _SORTS[sort_key]
    return sorted(filtered, key=key, reverse=descending)
