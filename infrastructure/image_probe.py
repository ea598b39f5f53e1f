# infrastructure/image_probe.py

"""
Diagnostic optionnel : vérifie qu'une URL d'image résolue répond.

Sans effet sur la résolution elle-même ; sert aux outils de dépannage
(liens morts, images privées, mauvais content-type).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import requests

logger = logging.getLogger(__name__)

# Serveurs qui refusent HEAD : on retente en GET (streamé, corps non lu)
_HEAD_REFUSED = {403, 405, 501}


@dataclass(frozen=True)
class ImageProbeResult:
    url: Optional[str]
    reachable: bool
    status_code: Optional[int] = None
    content_type: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_image(self) -> bool:
        return bool(self.content_type and self.content_type.lower().startswith("image/"))


def probe_image_url(
    url: Optional[str],
    session: Optional[requests.Session] = None,
    timeout: float = 10.0,
) -> ImageProbeResult:
    """
    Interroge `url` (HEAD, puis GET si HEAD est refusé).
    Ne lève jamais d'exception : l'erreur est portée par le résultat.
    """
    if not url or not url.strip():
        return ImageProbeResult(url=url, reachable=False, error="aucune URL")

    url = url.strip()
    if url.startswith("data:"):
        content_type = url[5:].split(";", 1)[0].split(",", 1)[0] or None
        return ImageProbeResult(url=url, reachable=True, content_type=content_type)

    if not url.lower().startswith(("http://", "https://")):
        return ImageProbeResult(url=url, reachable=False, error="schéma non supporté")

    http = session or requests.Session()
    try:
        response = http.head(url, timeout=timeout, allow_redirects=True)
        if response.status_code in _HEAD_REFUSED:
            logger.debug("HEAD refusé (%s) pour %s, nouvel essai en GET.", response.status_code, url)
            response = http.get(url, timeout=timeout, stream=True)
            response.close()
    except requests.exceptions.Timeout:
        logger.warning("Timeout en sondant %s", url)
        return ImageProbeResult(url=url, reachable=False, error="timeout")
    except requests.exceptions.RequestException as exc:
        logger.warning("Erreur réseau en sondant %s: %s", url, exc)
        return ImageProbeResult(url=url, reachable=False, error=str(exc))

    result = ImageProbeResult(
        url=url,
        reachable=response.ok,
        status_code=response.status_code,
        content_type=response.headers.get("Content-Type"),
        error=None if response.ok else f"HTTP {response.status_code}",
    )
    logger.debug("Sonde %s -> %r", url, result)
    return result
