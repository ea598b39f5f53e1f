# main.py

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from config.log_config import setup_logging
from config.settings import load_settings
from domain.assembler import build_render_payload
from domain.image_chain import build_default_chain
from infrastructure.quote_document import QuoteDocumentError, load_quote_document


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Consolide les lignes d'un devis et résout une image par ligne.",
    )
    parser.add_argument("document", help="Fichier JSON du devis ({'header': ..., 'lines': [...]}).")
    parser.add_argument("-o", "--output", help="Fichier de sortie JSON (stdout par défaut).")
    parser.add_argument("-v", "--verbose", action="store_true", help="Logs détaillés (DEBUG).")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Point d'entrée en ligne de commande.

    - Initialise le logging
    - Charge la configuration (Settings)
    - Lit le document de devis
    - Écrit le devis consolidé (entête, lignes, total) en JSON
    """
    args = _build_parser().parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.INFO)
    logger = logging.getLogger(__name__)

    # ------------------------------------------------------------------
    # Chargement Settings
    # ------------------------------------------------------------------
    try:
        settings = load_settings()
    except Exception as exc:
        logger.critical("Impossible de charger la configuration (Settings). Erreur: %s", exc)
        return 1

    # ------------------------------------------------------------------
    # Lecture du devis
    # ------------------------------------------------------------------
    try:
        document = load_quote_document(args.document)
    except QuoteDocumentError as exc:
        logger.critical("Document de devis inexploitable: %s", exc)
        return 1

    chain = build_default_chain(settings.color_slots, settings.color_aliases)
    payload = build_render_payload(document.header, document.lines, chain)
    output = json.dumps(payload.to_dict(), ensure_ascii=False, indent=2, default=str)

    if args.output:
        try:
            with open(args.output, "w", encoding="utf-8") as handle:
                handle.write(output + "\n")
        except OSError as exc:
            logger.critical("Écriture impossible dans %s: %s", args.output, exc)
            return 1
        logger.success("Devis consolidé écrit dans %s.", args.output)
    else:
        sys.stdout.write(output + "\n")

    return 0


if __name__ == "__main__":
    sys.exit(main())
