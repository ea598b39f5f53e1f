# infrastructure/thumbnails.py

"""
Génération de vignettes JPEG pour les pièces jointes inline des e-mails.

Récupère l'image (URL http(s) ou data URL), la redimensionne et la
ré-encode en JPEG. Toute erreur est remontée sous forme de ThumbnailError ;
c'est à l'appelant d'isoler l'échec image par image.
"""

from __future__ import annotations

import base64
import binascii
import io
import logging
import re
from typing import Optional

import requests
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

DEFAULT_THUMBNAIL_SIZE = 120
DEFAULT_THUMBNAIL_QUALITY = 60
DEFAULT_TIMEOUT = 10.0

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w/+.-]*)(?P<b64>;base64)?,(?P<data>.*)$", re.DOTALL)

PLACEHOLDER_SVG = (
    '<svg width="120" height="120" viewBox="0 0 120 120" fill="none" '
    'xmlns="http://www.w3.org/2000/svg">'
    '<rect width="120" height="120" fill="#f3f4f6"/>'
    '<text x="60" y="65" text-anchor="middle" font-family="Arial" font-size="10" '
    'fill="#6b7280">Sem imagem</text></svg>'
)
PLACEHOLDER_DATA_URL = "data:image/svg+xml;base64," + base64.b64encode(
    PLACEHOLDER_SVG.encode("utf-8")
).decode("ascii")


class ThumbnailError(RuntimeError):
    """Échec de récupération ou de ré-encodage d'une image."""


class ThumbnailGenerator:
    """
    Fabrique de vignettes JPEG carrées.

    - size    : côté en pixels
    - quality : qualité JPEG (1..95)
    - timeout : timeout HTTP en secondes
    - session : session requests réutilisée (injectable pour les tests)
    """

    def __init__(
        self,
        size: int = DEFAULT_THUMBNAIL_SIZE,
        quality: int = DEFAULT_THUMBNAIL_QUALITY,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.size = size
        self.quality = quality
        self.timeout = timeout
        self.session = session or requests.Session()
        logger.debug("ThumbnailGenerator initialisé (%dpx, q%d, timeout=%.1fs).", size, quality, timeout)

    # ------------------------------------------------------------------
    # Récupération
    # ------------------------------------------------------------------

    def fetch(self, url: str) -> bytes:
        """Octets bruts de l'image (data URL décodée ou téléchargement HTTP)."""
        if not url or not url.strip():
            raise ThumbnailError("URL d'image vide.")

        url = url.strip()
        match = _DATA_URL_RE.match(url)
        if match:
            return self._decode_data_url(match)

        if not url.lower().startswith(("http://", "https://")):
            raise ThumbnailError(f"URL d'image non supportée: {url[:80]}")

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.Timeout as exc:
            logger.warning("Timeout lors du téléchargement de %s", url)
            raise ThumbnailError(f"Timeout lors du téléchargement: {url}") from exc
        except requests.exceptions.RequestException as exc:
            logger.warning("Erreur réseau pour %s: %s", url, exc)
            raise ThumbnailError(f"Erreur réseau: {exc}") from exc

        if not response.ok:
            logger.warning("Téléchargement refusé pour %s (HTTP %s).", url, response.status_code)
            raise ThumbnailError(f"Erreur HTTP {response.status_code} pour {url}")

        return response.content

    @staticmethod
    def _decode_data_url(match: "re.Match[str]") -> bytes:
        data = match.group("data")
        if not match.group("b64"):
            return data.encode("utf-8")
        try:
            return base64.b64decode(data, validate=False)
        except (binascii.Error, ValueError) as exc:
            raise ThumbnailError(f"Data URL base64 invalide: {exc}") from exc

    # ------------------------------------------------------------------
    # Ré-encodage
    # ------------------------------------------------------------------

    def render(self, payload: bytes) -> bytes:
        """Redimensionne et ré-encode des octets image en JPEG."""
        try:
            with Image.open(io.BytesIO(payload)) as img:
                img.load()
                if img.mode in ("RGBA", "LA", "P"):
                    rgba = img.convert("RGBA")
                    background = Image.new("RGB", rgba.size, (255, 255, 255))
                    background.paste(rgba, mask=rgba.getchannel("A"))
                    converted = background
                else:
                    converted = img.convert("RGB")

                thumb = converted.resize((self.size, self.size), Image.Resampling.LANCZOS)
                output = io.BytesIO()
                thumb.save(output, format="JPEG", quality=self.quality, optimize=True)
                return output.getvalue()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
            raise ThumbnailError(f"Image illisible: {exc}") from exc

    def generate(self, url: str) -> bytes:
        """Vignette JPEG de l'image pointée par `url`."""
        thumbnail = self.render(self.fetch(url))
        logger.debug("Vignette générée pour %s (%d octets).", url[:80], len(thumbnail))
        return thumbnail

    def generate_base64(self, url: str) -> str:
        """Vignette JPEG encodée en base64 (sans préfixe data:)."""
        return base64.b64encode(self.generate(url)).decode("ascii")
