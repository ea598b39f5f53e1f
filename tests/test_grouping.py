import unittest

from domain.grouping import build_key, group_lines, resolve_line_color
from domain.models import RawQuoteLine


class BuildKeyTestCase(unittest.TestCase):
    def test_key_joins_normalized_code_title_and_color(self):
        line = RawQuoteLine(product_code="ABC", title="Caneta", selected_color_raw='{"cor":"Azul"}')
        self.assertEqual(build_key(line), "abc-caneta-azul")

    def test_structured_and_fallback_colors_give_same_key(self):
        structured = RawQuoteLine(product_code="ABC", title="Caneta", selected_color_raw='{"cor": "Azul"}')
        fallback = RawQuoteLine(product_code="abc ", title=" CANETA", color_fallback="AZUL ")
        self.assertEqual(build_key(structured), build_key(fallback))

    def test_accents_do_not_split_groups(self):
        first = RawQuoteLine(product_code="X1", title="Caneta Ecológica", color_fallback="Vérde")
        second = RawQuoteLine(product_code="x1", title="caneta ecologica", color_fallback="verde")
        self.assertEqual(build_key(first), build_key(second))

    def test_product_id_replaces_missing_code(self):
        line = RawQuoteLine(product_id="991", title="Squeeze")
        self.assertEqual(build_key(line), "991-squeeze-no-color")

    def test_placeholders_when_nothing_is_known(self):
        self.assertEqual(build_key(RawQuoteLine()), "no-code-no-title-no-color")

    def test_different_colors_give_different_keys(self):
        blue = RawQuoteLine(product_code="A", title="T", color_fallback="Azul")
        black = RawQuoteLine(product_code="A", title="T", color_fallback="Preto")
        self.assertNotEqual(build_key(blue), build_key(black))


class ResolveLineColorTestCase(unittest.TestCase):
    def test_selected_color_wins_over_fallback(self):
        line = RawQuoteLine(selected_color_raw='{"nome": "Rosa"}', color_fallback="Azul")
        self.assertEqual(resolve_line_color(line), "Rosa")

    def test_fallback_used_when_selected_color_blank(self):
        line = RawQuoteLine(selected_color_raw="  ", color_fallback=" Azul ")
        self.assertEqual(resolve_line_color(line), "Azul")

    def test_none_when_no_color_known(self):
        self.assertIsNone(resolve_line_color(RawQuoteLine()))


class GroupLinesTestCase(unittest.TestCase):
    def test_groups_partition_input_in_first_seen_order(self):
        lines = [
            RawQuoteLine(product_code="B", title="T", color_fallback="Azul"),
            RawQuoteLine(product_code="A", title="T"),
            RawQuoteLine(product_code="b", title="t", color_fallback="azul"),
            RawQuoteLine(product_code="C", title="T"),
            RawQuoteLine(product_code="A", title="T"),
        ]

        groups = group_lines(lines)

        self.assertEqual(list(groups), ["b-t-azul", "a-t-no-color", "c-t-no-color"])
        self.assertEqual(sum(len(members) for members in groups.values()), len(lines))
        for key, members in groups.items():
            self.assertTrue(all(build_key(member) == key for member in members))


if __name__ == "__main__":
    unittest.main()
