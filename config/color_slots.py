# config/color_slots.py

"""
Tables de couleurs du catalogue.

- DEFAULT_COLOR_SLOTS   : couleur nommée -> index de l'image générique du
                          produit (img_0 / img_1 / img_2) à utiliser quand
                          aucune variation ne correspond.
- DEFAULT_COLOR_ALIASES : familles de couleurs équivalentes (pt/en), utilisées
                          pour rapprocher une couleur choisie d'une variation
                          nommée autrement.

Les clés sont saisies "lisibles" ; la normalisation (casse, accents,
espaces) est appliquée au moment de la construction de la chaîne d'images.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from jsonschema import ValidationError, validate

logger = logging.getLogger(__name__)

DEFAULT_COLOR_SLOTS: Dict[str, int] = {
    "verde escuro": 0,
    "marrom": 1,
    "preto": 2,
    "azul": 0,
    "vermelho": 1,
    "branco": 2,
    "inox": 0,
    "rosa": 1,
    "amarelo": 0,
    "cinza": 1,
    "transparente": 0,
    "red": 1,
    "blue": 0,
    "black": 2,
    "white": 2,
    "green": 0,
    "yellow": 0,
    "gray": 1,
    "grey": 1,
}

DEFAULT_COLOR_ALIASES: Dict[str, List[str]] = {
    "azul marinho": ["navy", "azul escuro", "marinho"],
    "verde agua": ["verde-agua", "verde água", "mint"],
    "grafite": ["graphite", "cinza escuro", "chumbo"],
    "marrom": ["cafe", "café", "brown"],
    "cinza": ["prata", "silver", "gray", "grey"],
}

MAX_IMAGE_SLOT = 2

COLOR_SLOTS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "minProperties": 1,
    "additionalProperties": {
        "type": "integer",
        "minimum": 0,
        "maximum": MAX_IMAGE_SLOT,
    },
}


def load_color_slots(path: str | Path) -> Dict[str, int]:
    """
    Charge une table couleur -> slot depuis un fichier JSON.

    Format attendu : {"azul": 0, "preto": 2, ...}

    Lève RuntimeError si le fichier est absent, illisible ou non conforme
    au schéma (l'erreur est journalisée avant d'être propagée).
    """
    file_path = Path(path)
    logger.debug("Chargement de la table de couleurs depuis %s", file_path)

    if not file_path.exists():
        logger.error("Table de couleurs introuvable: %s", file_path)
        raise RuntimeError(f"Table de couleurs introuvable: {file_path}")

    try:
        payload = json.loads(file_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.error("Table de couleurs illisible (%s): %s", file_path, exc)
        raise RuntimeError(f"Table de couleurs illisible ({file_path}): {exc}") from exc

    try:
        validate(instance=payload, schema=COLOR_SLOTS_SCHEMA)
    except ValidationError as exc:
        logger.error("Table de couleurs non conforme (%s): %s", file_path, exc.message)
        raise RuntimeError(f"Table de couleurs non conforme ({file_path}): {exc.message}") from exc

    table = {str(color): int(slot) for color, slot in payload.items()}
    logger.info("Table de couleurs chargée: %d entrées depuis %s.", len(table), file_path)
    return table
