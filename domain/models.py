# domain/models.py

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from domain.json_utils import parse_optional_json

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_SLOTS = 3


# ---------------------------------------------------------------------------
# Alias de colonnes (noms persistés d'origine -> noms internes)
# ---------------------------------------------------------------------------

RAW_LINE_ALIASES: Dict[str, str] = {
    "codigo": "product_code",
    "code": "product_code",
    "product_code": "product_code",
    "produto_id": "product_id",
    "product_id": "product_id",
    "titulo": "title",
    "title": "title",
    "products_quantidade_01": "tier_quantity_1",
    "products_quantidade_02": "tier_quantity_2",
    "products_quantidade_03": "tier_quantity_3",
    "tier_quantity_1": "tier_quantity_1",
    "tier_quantity_2": "tier_quantity_2",
    "tier_quantity_3": "tier_quantity_3",
    "preco1": "tier_price_1",
    "preco2": "tier_price_2",
    "preco3": "tier_price_3",
    "valor_qtd01": "tier_price_1",
    "valor_qtd02": "tier_price_2",
    "valor_qtd03": "tier_price_3",
    "tier_price_1": "tier_price_1",
    "tier_price_2": "tier_price_2",
    "tier_price_3": "tier_price_3",
    "quantidade": "quantity",
    "quantity": "quantity",
    "valor_unitario": "unit_price",
    "unit_price": "unit_price",
    "valor_total": "line_total",
    "line_total": "line_total",
    "cor_selecionada": "selected_color_raw",
    "selected_color_raw": "selected_color_raw",
    "color": "color_fallback",
    "cor": "color_fallback",
    "color_fallback": "color_fallback",
    "img_ref_url": "captured_image_url",
    "captured_image_url": "captured_image_url",
    "imagem_variacao_capturada": "captured_variation_snapshot",
    "captured_variation_snapshot": "captured_variation_snapshot",
    "imagem_variacao": "captured_variation_image",
    "captured_variation_image": "captured_variation_image",
    "variacoes": "variations",
    "variations": "variations",
}

HEADER_ALIASES: Dict[str, str] = {
    "numero_solicitacao": "number",
    "number": "number",
    "condicoes_pagamento": "payment_terms",
    "payment_terms": "payment_terms",
    "opcao_frete": "freight_option",
    "freight_option": "freight_option",
    "validade_proposta": "validity_days",
    "validity_days": "validity_days",
    "prazo_entrega": "delivery_lead_time",
    "delivery_lead_time": "delivery_lead_time",
}

_TEXT_FIELDS = (
    "product_code",
    "product_id",
    "title",
    "selected_color_raw",
    "color_fallback",
    "captured_image_url",
    "captured_variation_snapshot",
    "captured_variation_image",
)
_QUANTITY_FIELDS = ("tier_quantity_1", "tier_quantity_2", "tier_quantity_3", "quantity")
_PRICE_FIELDS = ("tier_price_1", "tier_price_2", "tier_price_3", "unit_price")


# ---------------------------------------------------------------------------
# Coercitions tolérantes
# ---------------------------------------------------------------------------

def to_number(value: Any) -> float:
    """
    Convertit une valeur numérique brute en float.
    Toute valeur absente, non numérique, NaN ou infinie vaut 0.
    Accepte les chaînes "12.5" et "12,5".
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip().replace(",", ".")
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            logger.debug("to_number: valeur non numérique %r traitée comme 0", value)
            return 0.0
    else:
        logger.debug("to_number: type %s non numérique traité comme 0", type(value).__name__)
        return 0.0

    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def to_optional_price(value: Any) -> Optional[float]:
    """Prix renseigné (> 0 ou < 0) ou None si absent / nul / illisible."""
    number = to_number(value)
    return number if number else None


def to_optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = value.strip() if isinstance(value, str) else str(value).strip()
    return text or None


# ---------------------------------------------------------------------------
# Modèles
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VariationRecord:
    """Correspondance couleur -> image connue pour un produit."""

    color: str
    image: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: Any) -> Optional["VariationRecord"]:
        """
        Construit une variation depuis un dict source.
        Accepte `color`/`cor`/`nome` et `image`/`link_image`/`imagem`.
        Retourne None si l'entrée n'a pas de couleur exploitable.
        """
        if isinstance(raw, VariationRecord):
            return raw
        if not isinstance(raw, Mapping):
            logger.debug("VariationRecord.from_raw: entrée ignorée (non dict): %r", raw)
            return None

        color = to_optional_text(raw.get("color") or raw.get("cor") or raw.get("nome"))
        if not color:
            return None
        image = to_optional_text(raw.get("image") or raw.get("link_image") or raw.get("imagem"))
        return cls(color=color, image=image)

    def to_dict(self) -> Dict[str, Any]:
        return {"color": self.color, "image": self.image}


def parse_variations(raw: Any) -> List[VariationRecord]:
    """
    Normalise le champ `variacoes` : liste de dicts, ou chaîne JSON d'une
    liste. Toute autre forme donne une liste vide.
    """
    if raw is None or raw == "":
        return []

    items = raw
    if isinstance(raw, str):
        items = parse_optional_json(raw)
        if items is None:
            logger.warning("parse_variations: variations illisibles ignorées: %s", raw[:120])
            return []

    if not isinstance(items, (list, tuple)):
        logger.warning("parse_variations: format de variations inattendu (%s)", type(items).__name__)
        return []

    records: List[VariationRecord] = []
    for item in items:
        record = VariationRecord.from_raw(item)
        if record is not None:
            records.append(record)
    return records


@dataclass
class RawQuoteLine:
    """
    Sélection produit persistée telle que lue pour un devis.

    Vue en lecture seule : l'agrégation travaille toujours sur des copies.
    """

    product_code: Optional[str] = None
    product_id: Optional[str] = None
    title: Optional[str] = None

    tier_quantity_1: float = 0.0
    tier_quantity_2: float = 0.0
    tier_quantity_3: float = 0.0
    tier_price_1: Optional[float] = None
    tier_price_2: Optional[float] = None
    tier_price_3: Optional[float] = None

    quantity: float = 0.0
    unit_price: Optional[float] = None
    line_total: float = 0.0

    selected_color_raw: Optional[str] = None
    color_fallback: Optional[str] = None

    captured_image_url: Optional[str] = None
    captured_variation_snapshot: Optional[str] = None
    captured_variation_image: Optional[str] = None

    variations: List[VariationRecord] = field(default_factory=list)
    default_images: List[Optional[str]] = field(default_factory=list)

    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RawQuoteLine":
        """
        Construit une ligne depuis un enregistrement persisté.

        Les noms d'origine (codigo, titulo, preco1, products_quantidade_01,
        cor_selecionada, img_0...) et les noms internes sont acceptés.
        Les colonnes inconnues sont conservées dans `extra`.
        Ne lève pas d'exception pour des valeurs mal formées.
        """
        if isinstance(data, RawQuoteLine):
            return data
        if not isinstance(data, Mapping):
            logger.warning("RawQuoteLine.from_dict: entrée non dict ignorée (%r)", data)
            return cls()

        values: Dict[str, Any] = {}
        default_images: List[Optional[str]] = [None] * DEFAULT_IMAGE_SLOTS
        extra: Dict[str, Any] = {}

        for raw_key, raw_value in data.items():
            key = str(raw_key)
            target = RAW_LINE_ALIASES.get(key) or RAW_LINE_ALIASES.get(key.lower())

            if target is None and key in ("img_0", "img_1", "img_2"):
                default_images[int(key[-1])] = to_optional_text(raw_value)
                continue
            if target is None and key == "default_images":
                images = raw_value if isinstance(raw_value, (list, tuple)) else []
                for index, image in enumerate(list(images)[:DEFAULT_IMAGE_SLOTS]):
                    default_images[index] = to_optional_text(image)
                continue
            if target is None:
                extra[key] = raw_value
                continue

            # Premier alias rencontré prioritaire (ex: "color" vs "cor")
            if target in values and values[target] not in (None, ""):
                continue
            values[target] = raw_value

        # Colonne jsonb : l'objet couleur peut arriver déjà décodé
        selected_color = values.get("selected_color_raw")
        if isinstance(selected_color, Mapping):
            values["selected_color_raw"] = json.dumps(dict(selected_color), ensure_ascii=False, default=str)

        kwargs: Dict[str, Any] = {}
        for name in _TEXT_FIELDS:
            kwargs[name] = to_optional_text(values.get(name))
        for name in _QUANTITY_FIELDS:
            kwargs[name] = to_number(values.get(name))
        for name in _PRICE_FIELDS:
            kwargs[name] = to_optional_price(values.get(name))
        kwargs["line_total"] = to_number(values.get("line_total"))
        kwargs["variations"] = parse_variations(values.get("variations"))
        kwargs["default_images"] = default_images
        kwargs["extra"] = extra

        return cls(**kwargs)


@dataclass(frozen=True)
class ConsolidatedQuoteLine:
    """
    Ligne de devis consolidée, prête pour le rendu (écran, impression, e-mail).

    Calculée à chaque rendu, jamais persistée.
    """

    key: str
    product_code: Optional[str]
    product_id: Optional[str]
    title: Optional[str]

    tier_quantity_1: float
    tier_quantity_2: float
    tier_quantity_3: float
    tier_price_1: Optional[float]
    tier_price_2: Optional[float]
    tier_price_3: Optional[float]

    quantity: float
    unit_price: float
    line_total: float

    resolved_color: Optional[str] = None
    resolved_image_url: Optional[str] = None

    captured_image_url: Optional[str] = None
    captured_variation_snapshot: Optional[str] = None
    captured_variation_image: Optional[str] = None
    variations: Tuple[VariationRecord, ...] = ()
    default_images: Tuple[Optional[str], ...] = ()

    source_count: int = 1
    extra: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def to_dict(self) -> Dict[str, Any]:
        """Sérialise la ligne pour un renderer (JSON-compatible)."""
        return {
            "key": self.key,
            "product_code": self.product_code,
            "product_id": self.product_id,
            "title": self.title,
            "tier_quantity_1": self.tier_quantity_1,
            "tier_quantity_2": self.tier_quantity_2,
            "tier_quantity_3": self.tier_quantity_3,
            "tier_price_1": self.tier_price_1,
            "tier_price_2": self.tier_price_2,
            "tier_price_3": self.tier_price_3,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "line_total": self.line_total,
            "resolved_color": self.resolved_color,
            "resolved_image_url": self.resolved_image_url,
            "source_count": self.source_count,
            "extra": dict(self.extra),
        }


@dataclass(frozen=True)
class QuoteHeader:
    """Conditions commerciales du devis, transmises telles quelles au rendu."""

    number: Optional[str] = None
    payment_terms: Optional[str] = None
    freight_option: Optional[str] = None
    validity_days: Optional[int] = None
    delivery_lead_time: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "QuoteHeader":
        if not isinstance(data, Mapping):
            if data is not None:
                logger.warning("QuoteHeader.from_dict: entête non dict ignorée (%r)", data)
            return cls()

        values: Dict[str, Any] = {}
        for raw_key, raw_value in data.items():
            target = HEADER_ALIASES.get(str(raw_key).lower())
            if target and values.get(target) in (None, ""):
                values[target] = raw_value

        validity = to_number(values.get("validity_days"))
        return cls(
            number=to_optional_text(values.get("number")),
            payment_terms=to_optional_text(values.get("payment_terms")),
            freight_option=to_optional_text(values.get("freight_option")),
            validity_days=int(validity) if validity > 0 else None,
            delivery_lead_time=to_optional_text(values.get("delivery_lead_time")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "number": self.number,
            "payment_terms": self.payment_terms,
            "freight_option": self.freight_option,
            "validity_days": self.validity_days,
            "delivery_lead_time": self.delivery_lead_time,
        }
