import unittest

from domain.color_resolver import resolve_color
from domain.models import (
    QuoteHeader,
    RawQuoteLine,
    VariationRecord,
    parse_variations,
    to_number,
)


class ToNumberTestCase(unittest.TestCase):
    def test_missing_and_malformed_values_are_zero(self):
        for value in (None, "", "abc", float("nan"), float("inf"), True, [], {}):
            self.assertEqual(to_number(value), 0.0, msg=repr(value))

    def test_numeric_strings_and_numbers(self):
        self.assertEqual(to_number(3), 3.0)
        self.assertEqual(to_number("12.5"), 12.5)
        self.assertEqual(to_number("12,5"), 12.5)
        self.assertEqual(to_number(" 7 "), 7.0)


class VariationParsingTestCase(unittest.TestCase):
    def test_accepts_source_field_names(self):
        records = parse_variations(
            [
                {"cor": "Azul", "link_image": "https://img/azul.jpg"},
                {"color": "Preto", "image": "https://img/preto.jpg"},
                {"nome": "Rosa", "imagem": "https://img/rosa.jpg"},
                {"link_image": "https://img/sem-cor.jpg"},
                "garbage",
            ]
        )
        self.assertEqual(
            records,
            [
                VariationRecord("Azul", "https://img/azul.jpg"),
                VariationRecord("Preto", "https://img/preto.jpg"),
                VariationRecord("Rosa", "https://img/rosa.jpg"),
            ],
        )

    def test_json_string_is_parsed(self):
        records = parse_variations('[{"cor": "Verde", "link_image": "v.jpg"}]')
        self.assertEqual(records, [VariationRecord("Verde", "v.jpg")])

    def test_unreadable_string_gives_empty_list(self):
        with self.assertLogs("domain.models", level="WARNING"):
            self.assertEqual(parse_variations("[{bad"), [])
        self.assertEqual(parse_variations(None), [])


class RawQuoteLineFromDictTestCase(unittest.TestCase):
    def test_original_column_names_are_mapped(self):
        line = RawQuoteLine.from_dict(
            {
                "codigo": " CAN-01 ",
                "produto_id": 77,
                "titulo": "Caneta Bambu",
                "products_quantidade_01": "100",
                "products_quantidade_02": None,
                "preco1": "2,50",
                "quantidade": 0,
                "valor_unitario": "",
                "valor_total": 250,
                "cor_selecionada": '{"cor": "Azul"}',
                "color": "Azul",
                "img_ref_url": "",
                "imagem_variacao": "https://img/var.jpg",
                "variacoes": [{"cor": "Azul", "link_image": "https://img/azul.jpg"}],
                "img_0": "https://img/0.jpg",
                "img_2": "https://img/2.jpg",
                "descricao": "Caneta ecológica",
            }
        )

        self.assertEqual(line.product_code, "CAN-01")
        self.assertEqual(line.product_id, "77")
        self.assertEqual(line.title, "Caneta Bambu")
        self.assertEqual(line.tier_quantity_1, 100.0)
        self.assertEqual(line.tier_quantity_2, 0.0)
        self.assertEqual(line.tier_price_1, 2.5)
        self.assertIsNone(line.tier_price_2)
        self.assertIsNone(line.unit_price)
        self.assertEqual(line.line_total, 250.0)
        self.assertEqual(line.color_fallback, "Azul")
        self.assertIsNone(line.captured_image_url)
        self.assertEqual(line.captured_variation_image, "https://img/var.jpg")
        self.assertEqual(line.variations, [VariationRecord("Azul", "https://img/azul.jpg")])
        self.assertEqual(line.default_images, ["https://img/0.jpg", None, "https://img/2.jpg"])
        self.assertEqual(line.extra, {"descricao": "Caneta ecológica"})

    def test_item_tier_price_columns_are_mapped(self):
        line = RawQuoteLine.from_dict({"valor_qtd01": "3,10", "valor_qtd02": 2.9, "valor_qtd03": None})
        self.assertEqual(line.tier_price_1, 3.1)
        self.assertEqual(line.tier_price_2, 2.9)
        self.assertIsNone(line.tier_price_3)

    def test_first_populated_price_column_wins(self):
        line = RawQuoteLine.from_dict({"preco1": 4, "valor_qtd01": 9})
        self.assertEqual(line.tier_price_1, 4.0)
        line = RawQuoteLine.from_dict({"preco1": "", "valor_qtd01": 9})
        self.assertEqual(line.tier_price_1, 9.0)

    def test_decoded_color_object_is_kept_resolvable(self):
        line = RawQuoteLine.from_dict({"cor_selecionada": {"cor": "Azul", "hex": "#00f"}})
        self.assertEqual(resolve_color(line.selected_color_raw), "Azul")

    def test_non_mapping_input_gives_empty_line(self):
        with self.assertLogs("domain.models", level="WARNING"):
            line = RawQuoteLine.from_dict("not a record")
        self.assertEqual(line, RawQuoteLine())


class QuoteHeaderTestCase(unittest.TestCase):
    def test_original_names_are_mapped(self):
        header = QuoteHeader.from_dict(
            {
                "numero_solicitacao": 107,
                "condicoes_pagamento": "28 dias",
                "opcao_frete": "FOB",
                "validade_proposta": "15",
                "prazo_entrega": 20,
            }
        )
        self.assertEqual(header.number, "107")
        self.assertEqual(header.payment_terms, "28 dias")
        self.assertEqual(header.freight_option, "FOB")
        self.assertEqual(header.validity_days, 15)
        self.assertEqual(header.delivery_lead_time, "20")

    def test_missing_header_stays_empty(self):
        self.assertEqual(QuoteHeader.from_dict(None), QuoteHeader())
        self.assertIsNone(QuoteHeader.from_dict({"validade_proposta": "abc"}).validity_days)


if __name__ == "__main__":
    unittest.main()
