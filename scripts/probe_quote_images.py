#!/usr/bin/env python3
"""Diagnostic des images d'un devis.

- Consolide les lignes du document JSON fourni
- Indique, pour chaque ligne, la règle de la chaîne qui a fourni l'image
- Sonde chaque URL résolue (HEAD/GET) pour repérer liens morts et images privées
- Optionnellement, tente la génération des vignettes e-mail

Pensé pour le dépannage : la résolution des images ne dépend jamais du réseau,
seul ce script y accède.
"""
from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import List, Optional

import requests

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config.settings import load_settings  # noqa: E402
from domain.aggregation import aggregate  # noqa: E402
from domain.image_chain import build_default_chain  # noqa: E402
from infrastructure.email_images import build_email_images  # noqa: E402
from infrastructure.image_probe import probe_image_url  # noqa: E402
from infrastructure.quote_document import QuoteDocumentError, load_quote_document  # noqa: E402
from infrastructure.thumbnails import ThumbnailGenerator  # noqa: E402


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )


def run(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Sonde les images résolues d'un devis.")
    parser.add_argument("document", help="Fichier JSON du devis.")
    parser.add_argument("--thumbnails", action="store_true", help="Teste aussi les vignettes e-mail.")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    try:
        settings = load_settings()
        document = load_quote_document(args.document)
    except (RuntimeError, QuoteDocumentError) as exc:
        logging.error("Diagnostic impossible: %s", exc)
        return 1

    chain = build_default_chain(settings.color_slots, settings.color_aliases)
    logging.info("Règles d'image: %s", " > ".join(chain.names))
    session = requests.Session()
    unreachable = 0
    resolved_lines = []

    for line in aggregate(document.lines):
        resolution = chain.explain(line)
        resolved_lines.append(dataclasses.replace(line, resolved_image_url=resolution.url))

        if resolution.url is None:
            logging.warning("%s | couleur=%s | aucune image", line.key, line.resolved_color)
            continue

        probe = probe_image_url(resolution.url, session=session, timeout=settings.http_timeout)
        if not probe.reachable:
            status = f"KO ({probe.error})"
        elif not probe.is_image:
            status = "OK (contenu non image)"
        else:
            status = "OK"
        log = logging.info if status == "OK" else logging.warning
        log(
            "%s | règle=%s | %s | %s | %s",
            line.key,
            resolution.source,
            status,
            probe.content_type or "-",
            resolution.url[:100],
        )
        if not probe.reachable:
            unreachable += 1

    if args.thumbnails:
        generator = ThumbnailGenerator(
            size=settings.thumbnail_size,
            quality=settings.thumbnail_quality,
            timeout=settings.http_timeout,
            session=session,
        )
        bundle = build_email_images(resolved_lines, generator, max_items=settings.email_max_items)
        logging.info(
            "Vignettes: %d pièce(s) jointe(s), %d échec(s).",
            len(bundle.inline_images),
            bundle.failures,
        )

    logging.info("Diagnostic terminé: %d ligne(s), %d image(s) injoignable(s).", len(resolved_lines), unreachable)
    return 0 if unreachable == 0 else 2


if __name__ == "__main__":
    sys.exit(run())
