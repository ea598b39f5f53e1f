# infrastructure/email_images.py

"""
Références d'images pour l'e-mail de devis.

Pour chaque ligne consolidée, l'image résolue est :
- référencée directement si c'est un lien HTTPS public et stable
- sinon jointe inline (vignette JPEG) et référencée par `cid:p{index}.jpg`

La génération des vignettes est tentée indépendamment pour chaque image :
un échec remplace l'image par un placeholder sans interrompre le lot.
"""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence
from urllib.parse import urlparse

from domain.models import ConsolidatedQuoteLine
from infrastructure.thumbnails import PLACEHOLDER_DATA_URL, ThumbnailError, ThumbnailGenerator

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITEMS = 10
MAX_INLINE_BYTES = 15 * 1024 * 1024
KEPT_INLINE_WHEN_OVERSIZED = 4

_DRIVE_FILE_RE = re.compile(r"/file/d/([a-zA-Z0-9_-]+)")
_DRIVE_ID_RE = re.compile(r"[?&]id=([a-zA-Z0-9_-]+)")
_NON_PUBLIC_HOSTS = ("localhost", "127.0.0.1")


# ---------------------------------------------------------------------------
# URLs
# ---------------------------------------------------------------------------

def sanitize_image_url(url: Optional[str]) -> Optional[str]:
    """
    Nettoie une URL d'image issue du catalogue.

    - data:image/... conservée telle quelle
    - lien de partage Google Drive -> lien d'affichage direct
    - http(s) conservée
    - tout le reste -> None
    """
    if not url:
        return None
    text = url.strip()
    if not text:
        return None

    if text.startswith("data:image/"):
        return text

    if "drive.google.com" in text:
        match = _DRIVE_FILE_RE.search(text) or _DRIVE_ID_RE.search(text)
        if match:
            return f"https://drive.google.com/uc?export=view&id={match.group(1)}"
        return text

    if re.match(r"^https?://", text, re.IGNORECASE):
        return text
    return None


def is_public_https_url(url: Optional[str]) -> bool:
    """URL HTTPS accessible publiquement (ni blob, ni data, ni localhost)."""
    if not url:
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False

    if parsed.scheme != "https" or not parsed.netloc:
        return False
    lowered = url.lower()
    if "blob:" in lowered or "data:" in lowered:
        return False
    return not any(host in (parsed.hostname or "") for host in _NON_PUBLIC_HOSTS)


# ---------------------------------------------------------------------------
# Références
# ---------------------------------------------------------------------------

@dataclass
class ImageRef:
    """Source `src` à placer dans le HTML, et pièce jointe associée le cas échéant."""

    src: str
    cid_name: Optional[str] = None
    original_url: Optional[str] = None

    @property
    def is_inline(self) -> bool:
        return self.cid_name is not None


@dataclass(frozen=True)
class InlineImage:
    """Pièce jointe inline : nom (cid) et contenu base64."""

    name: str
    content: str

    @property
    def size_bytes(self) -> int:
        return len(self.content) * 3 // 4


@dataclass
class EmailImageBundle:
    """Références par ligne (dans l'ordre) et pièces jointes inline."""

    refs: List[ImageRef] = field(default_factory=list)
    inline_images: List[InlineImage] = field(default_factory=list)
    failures: int = 0

    @property
    def inline_bytes(self) -> int:
        return sum(image.size_bytes for image in self.inline_images)


def to_image_ref(url: Optional[str], index: int) -> ImageRef:
    """
    Choisit entre lien public et pièce jointe inline.
    Sans URL exploitable, le placeholder "sans image" est utilisé.
    """
    clean = sanitize_image_url(url)
    if clean is None:
        return ImageRef(src=PLACEHOLDER_DATA_URL)
    if is_public_https_url(clean):
        return ImageRef(src=clean, original_url=clean)

    cid_name = f"p{index}.jpg"
    return ImageRef(src=f"cid:{cid_name}", cid_name=cid_name, original_url=clean)


def _degrade_to_placeholder(ref: ImageRef) -> None:
    ref.src = PLACEHOLDER_DATA_URL
    ref.cid_name = None


def build_email_images(
    lines: Sequence[ConsolidatedQuoteLine],
    generator: ThumbnailGenerator,
    max_items: int = DEFAULT_MAX_ITEMS,
    max_workers: int = 4,
    max_inline_bytes: int = MAX_INLINE_BYTES,
) -> EmailImageBundle:
    """
    Prépare les images de l'e-mail pour les `max_items` premières lignes.

    Les vignettes inline sont générées en parallèle ; chaque échec
    (ThumbnailError) est journalisé et remplacé par le placeholder.
    """
    selected = list(lines)[:max_items]
    if len(lines) > max_items:
        logger.info("build_email_images: %d/%d lignes reprises dans l'e-mail.", max_items, len(lines))

    bundle = EmailImageBundle(
        refs=[to_image_ref(line.resolved_image_url, index) for index, line in enumerate(selected)]
    )
    pending = [ref for ref in bundle.refs if ref.is_inline]
    if not pending:
        return bundle

    results: Dict[str, str] = {}
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(pending)))) as executor:
        futures = {
            ref.cid_name: executor.submit(generator.generate_base64, ref.original_url)
            for ref in pending
        }
        for ref in pending:
            try:
                results[ref.cid_name] = futures[ref.cid_name].result()
            except ThumbnailError as exc:
                logger.warning("Vignette impossible pour %s: %s (placeholder utilisé)", ref.original_url, exc)
                bundle.failures += 1
                _degrade_to_placeholder(ref)
            except Exception as exc:
                # Une image ne doit jamais faire échouer tout l'e-mail
                logger.warning(
                    "Erreur inattendue pour la vignette %s: %s (placeholder utilisé)",
                    ref.original_url,
                    exc,
                    exc_info=True,
                )
                bundle.failures += 1
                _degrade_to_placeholder(ref)

    for ref in bundle.refs:
        if ref.is_inline and ref.cid_name in results:
            bundle.inline_images.append(InlineImage(name=ref.cid_name, content=results[ref.cid_name]))

    if bundle.inline_bytes > max_inline_bytes:
        logger.warning(
            "build_email_images: pièces jointes trop lourdes (%d octets), %d premières conservées.",
            bundle.inline_bytes,
            KEPT_INLINE_WHEN_OVERSIZED,
        )
        kept = {image.name for image in bundle.inline_images[:KEPT_INLINE_WHEN_OVERSIZED]}
        bundle.inline_images = bundle.inline_images[:KEPT_INLINE_WHEN_OVERSIZED]
        for ref in bundle.refs:
            if ref.is_inline and ref.cid_name not in kept:
                _degrade_to_placeholder(ref)

    logger.info(
        "build_email_images: %d référence(s), %d pièce(s) jointe(s), %d échec(s).",
        len(bundle.refs),
        len(bundle.inline_images),
        bundle.failures,
    )
    return bundle

