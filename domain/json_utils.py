# domain/json_utils.py

from __future__ import annotations

import json
import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)


def parse_optional_json(text: Any) -> Optional[Any]:
    """
    Parse un texte JSON sans jamais lever d'exception.

    - None, non-str ou chaîne vide -> None
    - JSON invalide -> None (journalisé en debug, l'appelant décide
      s'il s'agit d'un avertissement métier)
    - sinon, la valeur décodée (dict, list, str, nombre...)
    """
    if not isinstance(text, str):
        return None

    raw = text.strip()
    if not raw:
        return None

    try:
        return json.loads(raw)
    except (ValueError, RecursionError) as exc:
        logger.debug("parse_optional_json: JSON invalide (%s), contenu tronqué: %s", exc, raw[:120])
        return None
