# infrastructure/quote_document.py

"""
Lecture d'un document de devis exporté en JSON :

    {"header": {...}, "lines": [{...}, ...]}

ou simplement une liste de lignes. La forme est contrôlée par JSON Schema ;
les écarts non bloquants sont journalisés sans interrompre le traitement.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from jsonschema import Draft7Validator

logger = logging.getLogger(__name__)

QUOTE_DOCUMENT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["lines"],
    "properties": {
        "header": {"type": ["object", "null"]},
        "lines": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "variacoes": {"type": ["array", "string", "null"]},
                    "variations": {"type": ["array", "string", "null"]},
                },
            },
        },
    },
}


class QuoteDocumentError(RuntimeError):
    """Document de devis inexploitable (fichier illisible ou sans lignes)."""


@dataclass
class QuoteDocument:
    header: Optional[Dict[str, Any]] = None
    lines: List[Dict[str, Any]] = field(default_factory=list)


def parse_quote_document(payload: Any) -> QuoteDocument:
    """Valide un document déjà décodé et en extrait entête et lignes."""
    if isinstance(payload, list):
        payload = {"lines": payload}

    if not isinstance(payload, dict) or not isinstance(payload.get("lines"), list):
        logger.error("Document de devis sans liste de lignes.")
        raise QuoteDocumentError("Le document doit contenir une liste 'lines'.")

    for error in Draft7Validator(QUOTE_DOCUMENT_SCHEMA).iter_errors(payload):
        location = "/".join(str(part) for part in error.absolute_path) or "(racine)"
        logger.warning("Document de devis non conforme en %s: %s", location, error.message)

    lines = [line for line in payload["lines"] if isinstance(line, dict)]
    ignored = len(payload["lines"]) - len(lines)
    if ignored:
        logger.warning("%d ligne(s) non objet ignorée(s).", ignored)

    header = payload.get("header")
    return QuoteDocument(header=header if isinstance(header, dict) else None, lines=lines)


def load_quote_document(path: str | Path) -> QuoteDocument:
    """Charge et valide un document de devis depuis un fichier JSON."""
    file_path = Path(path)
    try:
        payload = json.loads(file_path.read_text(encoding="utf-8"))
    except OSError as exc:
        logger.error("Lecture impossible de %s: %s", file_path, exc)
        raise QuoteDocumentError(f"Lecture impossible de {file_path}: {exc}") from exc
    except ValueError as exc:
        logger.error("JSON invalide dans %s: %s", file_path, exc)
        raise QuoteDocumentError(f"JSON invalide dans {file_path}: {exc}") from exc

    document = parse_quote_document(payload)
    logger.info("Document %s chargé: %d ligne(s) brute(s).", file_path, len(document.lines))
    return document
