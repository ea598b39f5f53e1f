# domain/color_resolver.py

"""
Extraction d'un libellé de couleur depuis le champ "couleur choisie" d'une
ligne de devis.

Le champ peut contenir :
- un libellé simple ("Verde")
- un objet sérialisé ('{"cor": "Azul", "codigo": "#00f"}') dont le nom de
  couleur se trouve dans `cor`, `nome` ou `color` (dans cet ordre)
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from domain.json_utils import parse_optional_json

logger = logging.getLogger(__name__)

COLOR_FIELD_PRIORITY = ("cor", "nome", "color")


def _looks_structured(text: str) -> bool:
    return text.startswith("{") and text.endswith("}")


def _pick_color_field(obj: Mapping[str, Any]) -> Optional[str]:
    for field_name in COLOR_FIELD_PRIORITY:
        value = obj.get(field_name)
        if value is None:
            continue
        label = str(value).strip()
        if label:
            return label
    return None


def parse_optional_structured_color(raw: Any) -> Optional[str]:
    """
    Retourne le nom de couleur contenu dans une valeur structurée,
    ou None si `raw` n'est pas un objet (sérialisé ou non) portant
    l'un des champs `cor`, `nome`, `color`.

    Ne lève jamais d'exception.
    """
    if isinstance(raw, Mapping):
        return _pick_color_field(raw)

    if not isinstance(raw, str):
        return None

    text = raw.strip()
    if not _looks_structured(text):
        return None

    parsed = parse_optional_json(text)
    if not isinstance(parsed, Mapping):
        return None
    return _pick_color_field(parsed)


def resolve_color(raw: Any) -> str:
    """
    Libellé canonique de la couleur choisie.

    - vide / None                 -> ""
    - objet sérialisé valide      -> cor > nome > color, sinon la chaîne d'origine trimée
    - objet sérialisé invalide    -> la chaîne d'origine inchangée (warning)
    - libellé simple              -> libellé trimé
    """
    if raw is None:
        return ""

    if isinstance(raw, Mapping):
        return parse_optional_structured_color(raw) or ""

    if not isinstance(raw, str):
        return str(raw).strip()

    text = raw.strip()
    if not text:
        return ""

    label = parse_optional_structured_color(text)
    if label:
        return label

    if not _looks_structured(text):
        return text

    # Objet sans champ couleur ou JSON invalide : seul ce dernier est signalé
    if parse_optional_json(text) is None:
        logger.warning("resolve_color: couleur structurée illisible, valeur brute conservée: %r", raw)
        return raw

    logger.debug("resolve_color: aucun champ %s dans %r", COLOR_FIELD_PRIORITY, text)
    return text
