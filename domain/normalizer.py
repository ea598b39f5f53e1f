# domain/normalizer.py

"""
Normalisation des champs texte libres pour comparaison
(codes produit, titres, noms de couleur).
"""

from __future__ import annotations

import re
import unicodedata
from typing import Any

_WHITESPACE_RE = re.compile(r"\s+")


def strip_accents(text: str) -> str:
    """Supprime les marques diacritiques ("vérde" -> "verde")."""
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize(value: Any) -> str:
    """
    Forme canonique d'un texte libre :
    - minuscules
    - accents supprimés
    - espaces de bord retirés, suites d'espaces réduites à un seul

    "Verde", "verde ", "VERDE" et "vérde" donnent tous "verde".
    None ou chaîne vide -> "". Ne lève jamais d'exception.
    """
    if value is None:
        return ""
    text = value if isinstance(value, str) else str(value)
    if not text:
        return ""
    text = strip_accents(text.lower())
    return _WHITESPACE_RE.sub(" ", text).strip()
