import unittest

from domain.pricing import consolidate_amounts, first_price, select_unit_price, total_quantity


class TotalQuantityTestCase(unittest.TestCase):
    def test_all_four_fields_are_summed(self):
        self.assertEqual(total_quantity(1, 2, 3, 4), 10.0)

    def test_malformed_values_count_as_zero(self):
        self.assertEqual(total_quantity("abc", None, "2,5", float("nan")), 2.5)


class UnitPriceTestCase(unittest.TestCase):
    def test_single_tier_uses_first_price(self):
        amounts = consolidate_amounts(10, 0, 0, 0, 5, None, None)
        self.assertEqual(amounts.quantity, 10.0)
        self.assertEqual(amounts.unit_price, 5.0)
        self.assertEqual(amounts.line_total, 50.0)
        self.assertFalse(amounts.weighted)

    def test_three_populated_tiers_use_weighted_average(self):
        amounts = consolidate_amounts(10, 5, 5, 0, 2, 4, 6)
        self.assertEqual(amounts.quantity, 20.0)
        self.assertAlmostEqual(amounts.unit_price, 3.5)
        self.assertAlmostEqual(amounts.line_total, 70.0)
        self.assertTrue(amounts.weighted)

    def test_partial_tiers_fall_back_to_first_non_zero_price(self):
        amounts = consolidate_amounts(10, 5, 0, 0, 0, 4, 6)
        self.assertEqual(amounts.quantity, 15.0)
        self.assertEqual(amounts.unit_price, 4.0)
        self.assertEqual(amounts.line_total, 60.0)

    def test_tiers_without_prices_fall_back_to_generic_unit_price(self):
        amounts = consolidate_amounts(1, 1, 1, 0, None, None, None, 7)
        self.assertEqual(amounts.unit_price, 7.0)
        self.assertEqual(amounts.line_total, 21.0)
        self.assertFalse(amounts.weighted)

    def test_generic_quantity_and_price_only(self):
        amounts = consolidate_amounts(0, 0, 0, 4, None, None, None, "2,5")
        self.assertEqual(amounts.quantity, 4.0)
        self.assertEqual(amounts.unit_price, 2.5)
        self.assertEqual(amounts.line_total, 10.0)

    def test_generic_quantity_dilutes_weighted_average(self):
        amounts = consolidate_amounts(1, 1, 1, 2, 3, 3, 3)
        self.assertEqual(amounts.quantity, 5.0)
        self.assertAlmostEqual(amounts.unit_price, 1.8)
        self.assertAlmostEqual(amounts.line_total, 9.0)

    def test_no_price_anywhere_gives_zero(self):
        price, weighted = select_unit_price(3, 0, 0, 3.0, None, None, None, None)
        self.assertEqual(price, 0.0)
        self.assertFalse(weighted)

    def test_first_price_skips_zero_and_malformed(self):
        self.assertEqual(first_price(0, "abc", None, "3,2"), 3.2)
        self.assertEqual(first_price(), 0.0)


if __name__ == "__main__":
    unittest.main()
