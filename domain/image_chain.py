# domain/image_chain.py

"""
Résolution de l'image représentative d'une ligne consolidée.

Chaîne ordonnée de résolveurs évalués de gauche à droite ; le premier qui
retourne une URL gagne :

1. image capturée à l'enregistrement du devis (`captured_image_url`)
2. instantané de variation capturé (`captured_variation_snapshot`)
3. image de variation capturée (`captured_variation_image`)
4. variation du produit dont la couleur correspond à la couleur résolue
   (4b, optionnel : même famille de couleurs via la table d'alias)
5. table couleur -> slot d'image générique (injectée par configuration)
6. première image générique renseignée
7. None : le rendu affiche "sans image"

Aucune étape ne fait d'accès réseau ; la résolution est une fonction pure
de l'état de la ligne.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from config.color_slots import DEFAULT_COLOR_SLOTS
from domain.models import ConsolidatedQuoteLine
from domain.normalizer import normalize

logger = logging.getLogger(__name__)

ImageResolver = Callable[[ConsolidatedQuoteLine], Optional[str]]


@dataclass(frozen=True)
class ImageResolution:
    """URL retenue et nom de la règle qui l'a fournie (diagnostic)."""

    url: Optional[str]
    source: Optional[str]


def _present(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


# ---------------------------------------------------------------------------
# Résolveurs élémentaires
# ---------------------------------------------------------------------------

def resolve_captured_image_url(line: ConsolidatedQuoteLine) -> Optional[str]:
    return _present(line.captured_image_url)


def resolve_captured_variation_snapshot(line: ConsolidatedQuoteLine) -> Optional[str]:
    return _present(line.captured_variation_snapshot)


def resolve_captured_variation_image(line: ConsolidatedQuoteLine) -> Optional[str]:
    return _present(line.captured_variation_image)


def resolve_matching_variation(line: ConsolidatedQuoteLine) -> Optional[str]:
    """Variation dont la couleur normalisée est égale à la couleur résolue."""
    wanted = normalize(line.resolved_color)
    if not wanted:
        return None

    for variation in line.variations:
        if normalize(variation.color) == wanted:
            image = _present(variation.image)
            if image:
                return image
    return None


class ColorAliasVariationResolver:
    """
    Variation dont la couleur appartient à la même famille que la couleur
    résolue ("navy" <-> "azul marinho").
    """

    def __init__(self, aliases: Mapping[str, Sequence[str]]) -> None:
        self._families: Dict[str, Set[str]] = {}
        for base, members in aliases.items():
            family = {normalize(base)} | {normalize(m) for m in members}
            family.discard("")
            for name in family:
                self._families.setdefault(name, set()).update(family)
        logger.debug("ColorAliasVariationResolver: %d couleurs connues.", len(self._families))

    def family_of(self, color: Optional[str]) -> Set[str]:
        wanted = normalize(color)
        if not wanted:
            return set()
        return {wanted} | self._families.get(wanted, set())

    def __call__(self, line: ConsolidatedQuoteLine) -> Optional[str]:
        family = self.family_of(line.resolved_color)
        if not family:
            return None

        for variation in line.variations:
            if normalize(variation.color) in family:
                image = _present(variation.image)
                if image:
                    return image
        return None


class ColorSlotResolver:
    """Image générique associée à la couleur par la table couleur -> slot."""

    def __init__(self, color_slots: Mapping[str, int]) -> None:
        self._slots: Dict[str, int] = {}
        for color, slot in color_slots.items():
            key = normalize(color)
            if key:
                self._slots[key] = int(slot)

    def __call__(self, line: ConsolidatedQuoteLine) -> Optional[str]:
        slot = self._slots.get(normalize(line.resolved_color))
        if slot is None or slot < 0 or slot >= len(line.default_images):
            return None
        return _present(line.default_images[slot])


def resolve_first_default_image(line: ConsolidatedQuoteLine) -> Optional[str]:
    for image in line.default_images:
        found = _present(image)
        if found:
            return found
    return None


# ---------------------------------------------------------------------------
# Chaîne
# ---------------------------------------------------------------------------

class ImageResolutionChain:
    """Liste ordonnée de (nom, résolveur), premier succès gagnant."""

    def __init__(self, resolvers: Sequence[Tuple[str, ImageResolver]]) -> None:
        self._resolvers: Tuple[Tuple[str, ImageResolver], ...] = tuple(resolvers)

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(name for name, _ in self._resolvers)

    def explain(self, line: ConsolidatedQuoteLine) -> ImageResolution:
        for name, resolver in self._resolvers:
            url = resolver(line)
            if url:
                logger.debug("Image de %s résolue par '%s': %s", line.key, name, url)
                return ImageResolution(url=url, source=name)

        logger.debug("Aucune image pour %s (chaîne épuisée).", line.key)
        return ImageResolution(url=None, source=None)

    def resolve(self, line: ConsolidatedQuoteLine) -> Optional[str]:
        return self.explain(line).url


def build_default_chain(
    color_slots: Optional[Mapping[str, int]] = None,
    color_aliases: Optional[Mapping[str, Sequence[str]]] = None,
) -> ImageResolutionChain:
    """
    Chaîne standard. `color_slots` remplace la table par défaut du catalogue ;
    `color_aliases` active l'étape de rapprochement par famille de couleurs.
    """
    resolvers: List[Tuple[str, ImageResolver]] = [
        ("captured_image_url", resolve_captured_image_url),
        ("captured_variation_snapshot", resolve_captured_variation_snapshot),
        ("captured_variation_image", resolve_captured_variation_image),
        ("matching_variation", resolve_matching_variation),
    ]
    if color_aliases:
        resolvers.append(("alias_variation", ColorAliasVariationResolver(color_aliases)))
    resolvers.append(
        ("color_slot", ColorSlotResolver(DEFAULT_COLOR_SLOTS if color_slots is None else color_slots))
    )
    resolvers.append(("first_default_image", resolve_first_default_image))
    return ImageResolutionChain(resolvers)
