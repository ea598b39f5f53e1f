import unittest

from config.color_slots import DEFAULT_COLOR_ALIASES
from domain.image_chain import (
    ColorAliasVariationResolver,
    ImageResolutionChain,
    build_default_chain,
)
from domain.models import ConsolidatedQuoteLine, VariationRecord


def make_line(**overrides) -> ConsolidatedQuoteLine:
    base = dict(
        key="p1-caneta-azul",
        product_code="P1",
        product_id=None,
        title="Caneta",
        tier_quantity_1=1.0,
        tier_quantity_2=0.0,
        tier_quantity_3=0.0,
        tier_price_1=None,
        tier_price_2=None,
        tier_price_3=None,
        quantity=1.0,
        unit_price=0.0,
        line_total=0.0,
    )
    base.update(overrides)
    return ConsolidatedQuoteLine(**base)


class DefaultChainTestCase(unittest.TestCase):
    def setUp(self):
        self.chain = build_default_chain()

    def test_step_order(self):
        self.assertEqual(
            self.chain.names,
            (
                "captured_image_url",
                "captured_variation_snapshot",
                "captured_variation_image",
                "matching_variation",
                "color_slot",
                "first_default_image",
            ),
        )

    def test_captured_image_wins_over_everything(self):
        line = make_line(
            resolved_color="Azul",
            captured_image_url="https://img/captured.jpg",
            captured_variation_snapshot="https://img/snapshot.jpg",
            variations=(VariationRecord("Azul", "https://img/azul.jpg"),),
            default_images=("https://img/0.jpg", None, None),
        )
        resolution = self.chain.explain(line)
        self.assertEqual(resolution.url, "https://img/captured.jpg")
        self.assertEqual(resolution.source, "captured_image_url")

    def test_snapshot_then_variation_image(self):
        line = make_line(
            captured_variation_snapshot="https://img/snapshot.jpg",
            captured_variation_image="https://img/var.jpg",
        )
        self.assertEqual(self.chain.resolve(line), "https://img/snapshot.jpg")

        line = make_line(captured_variation_snapshot="  ", captured_variation_image="https://img/var.jpg")
        self.assertEqual(self.chain.explain(line).source, "captured_variation_image")

    def test_blank_captured_image_is_ignored(self):
        line = make_line(captured_image_url="   ", default_images=("https://img/0.jpg", None, None))
        self.assertEqual(self.chain.resolve(line), "https://img/0.jpg")

    def test_variation_matched_on_normalized_color(self):
        line = make_line(
            resolved_color="Vérde ",
            variations=(
                VariationRecord("Azul", "https://img/azul.jpg"),
                VariationRecord("VERDE", "https://img/verde.jpg"),
            ),
        )
        resolution = self.chain.explain(line)
        self.assertEqual(resolution.url, "https://img/verde.jpg")
        self.assertEqual(resolution.source, "matching_variation")

    def test_matching_variation_without_image_falls_through(self):
        line = make_line(
            resolved_color="Preto",
            variations=(VariationRecord("Preto", None),),
            default_images=("https://img/0.jpg", "https://img/1.jpg", "https://img/2.jpg"),
        )
        resolution = self.chain.explain(line)
        self.assertEqual(resolution.url, "https://img/2.jpg")
        self.assertEqual(resolution.source, "color_slot")

    def test_unpopulated_slot_falls_back_to_first_default_image(self):
        line = make_line(resolved_color="preto", default_images=(None, "https://img/1.jpg", None))
        resolution = self.chain.explain(line)
        self.assertEqual(resolution.url, "https://img/1.jpg")
        self.assertEqual(resolution.source, "first_default_image")

    def test_unknown_color_uses_first_default_image(self):
        line = make_line(resolved_color="Lilás", default_images=("https://img/0.jpg", "https://img/1.jpg", None))
        self.assertEqual(self.chain.resolve(line), "https://img/0.jpg")

    def test_nothing_available_gives_none(self):
        resolution = self.chain.explain(make_line(resolved_color="Azul"))
        self.assertIsNone(resolution.url)
        self.assertIsNone(resolution.source)

    def test_resolution_is_deterministic(self):
        line = make_line(resolved_color="azul", default_images=("a", "b", "c"))
        self.assertEqual(self.chain.resolve(line), self.chain.resolve(line))


class InjectedColorTableTestCase(unittest.TestCase):
    def test_custom_table_replaces_default(self):
        chain = build_default_chain(color_slots={"Lilás": 1})

        lilac = make_line(resolved_color="lilas", default_images=("a.jpg", "b.jpg", "c.jpg"))
        self.assertEqual(chain.resolve(lilac), "b.jpg")

        black = make_line(resolved_color="preto", default_images=("a.jpg", "b.jpg", "c.jpg"))
        self.assertEqual(chain.explain(black).source, "first_default_image")

    def test_empty_table_disables_slot_step(self):
        chain = build_default_chain(color_slots={})
        line = make_line(resolved_color="preto", default_images=("a.jpg", "b.jpg", "c.jpg"))
        self.assertEqual(chain.resolve(line), "a.jpg")


class AliasVariationTestCase(unittest.TestCase):
    def test_alias_step_is_opt_in(self):
        line = make_line(
            resolved_color="navy",
            variations=(VariationRecord("Azul Marinho", "https://img/marinho.jpg"),),
            default_images=("https://img/0.jpg", None, None),
        )

        self.assertEqual(build_default_chain().resolve(line), "https://img/0.jpg")

        chain = build_default_chain(color_aliases=DEFAULT_COLOR_ALIASES)
        self.assertIn("alias_variation", chain.names)
        resolution = chain.explain(line)
        self.assertEqual(resolution.url, "https://img/marinho.jpg")
        self.assertEqual(resolution.source, "alias_variation")

    def test_family_lookup_is_symmetric(self):
        resolver = ColorAliasVariationResolver({"cinza": ["prata", "silver"]})
        self.assertEqual(resolver.family_of("Prata"), {"cinza", "prata", "silver"})
        self.assertEqual(resolver.family_of("Cinza"), {"cinza", "prata", "silver"})
        self.assertEqual(resolver.family_of("roxo"), {"roxo"})
        self.assertEqual(resolver.family_of(None), set())


class CustomChainTestCase(unittest.TestCase):
    def test_first_non_empty_resolver_wins(self):
        chain = ImageResolutionChain(
            [
                ("never", lambda line: None),
                ("empty", lambda line: ""),
                ("found", lambda line: "https://img/x.jpg"),
                ("later", lambda line: "https://img/y.jpg"),
            ]
        )
        resolution = chain.explain(make_line())
        self.assertEqual(resolution.url, "https://img/x.jpg")
        self.assertEqual(resolution.source, "found")


if __name__ == "__main__":
    unittest.main()
