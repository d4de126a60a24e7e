import unittest

from models.portfolio import AssetQuote, EnrichedAsset, SortKey
from utils.view import matches, present


def make_asset(coin_id, name, symbol, price, quantity, change_24h=0.0):
    quote = AssetQuote(id=coin_id, symbol=symbol, name=name, current_price=price,
                       price_change_percentage_24h=change_24h)
    return EnrichedAsset(quote=quote, quantity=quantity)


class TestViewPipeline(unittest.TestCase):

    def setUp(self):
        self.assets = [
            make_asset('bitcoin', 'Bitcoin', 'btc', 40000, 0.5, 2.1),
            make_asset('ethereum', 'Ethereum', 'eth', 2000, 2, 3.2),
            make_asset('cardano', 'Cardano', 'ada', 0.5, 500, None),
            make_asset('solana', 'Solana', 'sol', 100, 10, -1.5),
        ]

    def ids(self, assets):
        return [asset.id for asset in assets]

    def test_search_matches_name_case_insensitively(self):
        result = present(self.assets, 'BIT', SortKey.VALUE_HIGH)
        self.assertEqual(self.ids(result), ['bitcoin'])

    def test_search_matches_symbol(self):
        result = present(self.assets, 'eth', SortKey.VALUE_HIGH)
        self.assertEqual(self.ids(result), ['ethereum'])

    def test_blank_search_is_noop(self):
        """Test empty and whitespace-only terms keep every asset"""
        self.assertEqual(len(present(self.assets, '', SortKey.NAME_A)), 4)
        self.assertEqual(len(present(self.assets, '   ', SortKey.NAME_A)), 4)
        self.assertTrue(matches(self.assets[0], '\t'))

    def test_no_match_returns_empty(self):
        self.assertEqual(present(self.assets, 'dogecoin', SortKey.VALUE_HIGH), [])

    def test_sort_by_value(self):
        self.assertEqual(self.ids(present(self.assets, '', SortKey.VALUE_HIGH)),
                         ['bitcoin', 'ethereum', 'solana', 'cardano'])
        self.assertEqual(self.ids(present(self.assets, '', SortKey.VALUE_LOW)),
                         ['cardano', 'solana', 'ethereum', 'bitcoin'])

    def test_sort_by_name(self):
        self.assertEqual(self.ids(present(self.assets, '', SortKey.NAME_A)),
                         ['bitcoin', 'cardano', 'ethereum', 'solana'])
        self.assertEqual(self.ids(present(self.assets, '', SortKey.NAME_Z)),
                         ['solana', 'ethereum', 'cardano', 'bitcoin'])

    def test_sort_by_name_folds_accents(self):
        assets = [
            make_asset('zcash', 'Zcash', 'zec', 30, 1),
            make_asset('ether', 'Éther', 'eth', 2000, 1),
            make_asset('filecoin', 'Filecoin', 'fil', 5, 1),
            make_asset('aave', 'aave', 'aave', 90, 1),
        ]

        self.assertEqual([a.name for a in present(assets, '', SortKey.NAME_A)],
                         ['aave', 'Éther', 'Filecoin', 'Zcash'])
        self.assertEqual([a.name for a in present(assets, '', SortKey.NAME_Z)],
                         ['Zcash', 'Filecoin', 'Éther', 'aave'])

    def test_sort_by_price(self):
        self.assertEqual(self.ids(present(self.assets, '', SortKey.PRICE_HIGH)),
                         ['bitcoin', 'ethereum', 'solana', 'cardano'])
        self.assertEqual(self.ids(present(self.assets, '', SortKey.PRICE_LOW)),
                         ['cardano', 'solana', 'ethereum', 'bitcoin'])

    def test_sort_by_change_treats_missing_as_zero(self):
        """Test a missing 24h change sorts as 0"""
        self.assertEqual(self.ids(present(self.assets, '', SortKey.CHANGE_HIGH)),
                         ['ethereum', 'bitcoin', 'cardano', 'solana'])
        self.assertEqual(self.ids(present(self.assets, '', SortKey.CHANGE_LOW)),
                         ['solana', 'cardano', 'bitcoin', 'ethereum'])

    def test_sort_is_stable_in_both_directions(self):
        """Test equal values keep their input order"""
        tied = [
            make_asset('x', 'Xcoin', 'x', 10, 1),
            make_asset('y', 'Ycoin', 'y', 5, 2),
            make_asset('z', 'Zcoin', 'z', 1, 10),
        ]
        self.assertEqual(self.ids(present(tied, '', SortKey.VALUE_HIGH)), ['x', 'y', 'z'])
        self.assertEqual(self.ids(present(tied, '', SortKey.VALUE_LOW)), ['x', 'y', 'z'])

    def test_present_is_idempotent(self):
        first = present(self.assets, 'o', SortKey.PRICE_LOW)
        second = present(first, 'o', SortKey.PRICE_LOW)
        self.assertEqual(first, second)

    def test_input_not_mutated(self):
        before = list(self.assets)
        result = present(self.assets, '', SortKey.NAME_Z)
        self.assertEqual(self.assets, before)
        self.assertIsNot(result, self.assets)

    def test_sort_key_parse(self):
        self.assertIs(SortKey.parse('price-low'), SortKey.PRICE_LOW)
        self.assertIs(SortKey.parse(None), SortKey.VALUE_HIGH)
        self.assertIs(SortKey.parse(''), SortKey.VALUE_HIGH)
        with self.assertRaises(ValueError):
            SortKey.parse('cheapest')


if __name__ == '__main__':
    unittest.main()
