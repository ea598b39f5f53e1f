# domain/aggregation.py

"""
Consolidation des lignes de devis.

Les lignes brutes sont repliées (fold) dans un dict ordonné indexé par la
clé canonique :
- première occurrence d'une clé : copie complète de la ligne
- occurrences suivantes : quantités et total additionnés, prix et champs
  de capture (image / couleur) complétés uniquement s'ils sont absents
  (le premier qui écrit gagne)

Chaque accumulateur est ensuite consolidé (quantité totale, prix unitaire,
total de ligne) puis les lignes de quantité nulle ou négative sont écartées.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from domain.grouping import build_key, resolve_line_color
from domain.models import (
    DEFAULT_IMAGE_SLOTS,
    ConsolidatedQuoteLine,
    RawQuoteLine,
    to_number,
    to_optional_price,
)
from domain.pricing import consolidate_amounts

logger = logging.getLogger(__name__)

SUMMED_FIELDS = (
    "tier_quantity_1",
    "tier_quantity_2",
    "tier_quantity_3",
    "quantity",
    "line_total",
)

FIRST_WRITER_PRICE_FIELDS = (
    "tier_price_1",
    "tier_price_2",
    "tier_price_3",
    "unit_price",
)

BACKFILLED_TEXT_FIELDS = (
    "captured_image_url",
    "captured_variation_snapshot",
    "captured_variation_image",
    "selected_color_raw",
    "color_fallback",
)

LineInput = Union[RawQuoteLine, Mapping[str, Any]]


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


@dataclass
class LineAccumulator:
    """État intermédiaire d'une clé pendant le repli."""

    key: str
    line: RawQuoteLine
    source_count: int = 1

    @classmethod
    def seed(cls, key: str, line: RawQuoteLine) -> "LineAccumulator":
        # Copie profonde : les lignes d'entrée ne sont jamais modifiées
        return cls(key=key, line=copy.deepcopy(line))

    def absorb(self, line: RawQuoteLine) -> None:
        """Intègre une ligne supplémentaire portant la même clé."""
        acc = self.line

        for name in SUMMED_FIELDS:
            setattr(acc, name, to_number(getattr(acc, name)) + to_number(getattr(line, name)))

        for name in FIRST_WRITER_PRICE_FIELDS:
            if not to_number(getattr(acc, name)):
                incoming = to_optional_price(getattr(line, name))
                if incoming is not None:
                    setattr(acc, name, incoming)

        for name in BACKFILLED_TEXT_FIELDS:
            if _is_blank(getattr(acc, name)) and not _is_blank(getattr(line, name)):
                setattr(acc, name, getattr(line, name))

        if not acc.variations and line.variations:
            acc.variations = list(line.variations)

        images = list(acc.default_images or [])
        images.extend([None] * (DEFAULT_IMAGE_SLOTS - len(images)))
        for index, image in enumerate(list(line.default_images or [])[:DEFAULT_IMAGE_SLOTS]):
            if _is_blank(images[index]) and not _is_blank(image):
                images[index] = image
        acc.default_images = images

        self.source_count += 1

    def consolidate(self) -> ConsolidatedQuoteLine:
        """Passe de consolidation : quantité totale, prix unitaire, total."""
        acc = self.line
        amounts = consolidate_amounts(
            acc.tier_quantity_1,
            acc.tier_quantity_2,
            acc.tier_quantity_3,
            acc.quantity,
            acc.tier_price_1,
            acc.tier_price_2,
            acc.tier_price_3,
            acc.unit_price,
        )

        images = [image if not _is_blank(image) else None for image in list(acc.default_images or [])]
        images = images[:DEFAULT_IMAGE_SLOTS] + [None] * (DEFAULT_IMAGE_SLOTS - len(images))

        return ConsolidatedQuoteLine(
            key=self.key,
            product_code=acc.product_code,
            product_id=acc.product_id,
            title=acc.title,
            tier_quantity_1=to_number(acc.tier_quantity_1),
            tier_quantity_2=to_number(acc.tier_quantity_2),
            tier_quantity_3=to_number(acc.tier_quantity_3),
            tier_price_1=to_optional_price(acc.tier_price_1),
            tier_price_2=to_optional_price(acc.tier_price_2),
            tier_price_3=to_optional_price(acc.tier_price_3),
            quantity=amounts.quantity,
            unit_price=amounts.unit_price,
            line_total=amounts.line_total,
            resolved_color=resolve_line_color(acc),
            captured_image_url=acc.captured_image_url,
            captured_variation_snapshot=acc.captured_variation_snapshot,
            captured_variation_image=acc.captured_variation_image,
            variations=tuple(acc.variations or ()),
            default_images=tuple(images),
            source_count=self.source_count,
            extra=dict(acc.extra or {}),
        )


def fold_line(state: Dict[str, LineAccumulator], line: RawQuoteLine) -> Dict[str, LineAccumulator]:
    """
    Une étape du repli : ajoute `line` à l'accumulateur de sa clé
    (créé à la première occurrence). Retourne l'état pour chaînage.
    """
    key = build_key(line)
    accumulator = state.get(key)
    if accumulator is None:
        state[key] = LineAccumulator.seed(key, line)
        logger.debug("fold_line: nouvelle clé %s", key)
    else:
        accumulator.absorb(line)
        logger.debug("fold_line: doublon fusionné dans %s (%d lignes)", key, accumulator.source_count)
    return state


def fold_lines(lines: Iterable[LineInput]) -> Dict[str, LineAccumulator]:
    """Replie toutes les lignes, dans l'ordre d'entrée."""
    state: Dict[str, LineAccumulator] = {}
    for raw in lines:
        fold_line(state, RawQuoteLine.from_dict(raw))
    return state


def aggregate(lines: Iterable[LineInput]) -> List[ConsolidatedQuoteLine]:
    """
    Regroupe les lignes brutes par clé canonique et retourne une ligne
    consolidée par clé, dans l'ordre de première apparition.
    Les lignes dont la quantité totale est <= 0 sont écartées.
    """
    state = fold_lines(lines)

    consolidated: List[ConsolidatedQuoteLine] = []
    for key, accumulator in state.items():
        line = accumulator.consolidate()
        if line.quantity <= 0:
            logger.info("aggregate: ligne %s écartée (quantité totale %s).", key, line.quantity)
            continue
        consolidated.append(line)

    logger.debug(
        "aggregate: %d clé(s), %d ligne(s) consolidée(s) retenue(s).",
        len(state),
        len(consolidated),
    )
    return consolidated
