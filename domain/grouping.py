# domain/grouping.py

"""
Clé d'agrupement canonique des lignes de devis.

Deux lignes dont la clé est identique représentent le même produit dans la
même couleur, quel que soit l'enregistrement qui a apporté chaque champ.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from domain.color_resolver import resolve_color
from domain.models import RawQuoteLine
from domain.normalizer import normalize

logger = logging.getLogger(__name__)

NO_CODE = "no-code"
NO_TITLE = "no-title"
NO_COLOR = "no-color"
KEY_SEPARATOR = "-"


def resolve_line_color(line: RawQuoteLine) -> Optional[str]:
    """
    Couleur effective d'une ligne : couleur choisie (texte ou objet
    sérialisé), sinon couleur secondaire. None si aucune n'est connue.
    """
    color = resolve_color(line.selected_color_raw)
    if color and color.strip():
        return color
    fallback = (line.color_fallback or "").strip()
    return fallback or None


def build_key(line: RawQuoteLine) -> str:
    """Construit la clé `code-titre-couleur` normalisée d'une ligne."""
    color = resolve_line_color(line) or NO_COLOR
    code_part = normalize(line.product_code or line.product_id or NO_CODE)
    title_part = normalize(line.title or NO_TITLE)
    return KEY_SEPARATOR.join((code_part, title_part, normalize(color)))


def group_lines(lines: Iterable[RawQuoteLine]) -> Dict[str, List[RawQuoteLine]]:
    """
    Partitionne les lignes par clé canonique.
    L'ordre des clés est celui de leur première apparition.
    """
    groups: Dict[str, List[RawQuoteLine]] = {}
    for line in lines:
        groups.setdefault(build_key(line), []).append(line)
    logger.debug("group_lines: %d groupe(s) distinct(s).", len(groups))
    return groups
