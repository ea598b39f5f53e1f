# domain/assembler.py

"""
Assemblage final des lignes de devis pour les renderers
(écran / impression / e-mail).
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from config.log_config import SUCCESS_LEVEL
from domain.aggregation import LineInput, aggregate
from domain.image_chain import ImageResolutionChain, build_default_chain
from domain.models import ConsolidatedQuoteLine, QuoteHeader

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuoteRenderPayload:
    """Entête + lignes consolidées + total général, remis aux renderers."""

    header: QuoteHeader
    lines: Tuple[ConsolidatedQuoteLine, ...]
    grand_total: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "header": self.header.to_dict(),
            "lines": [line.to_dict() for line in self.lines],
            "grand_total": self.grand_total,
        }


def assemble_consolidated_lines(
    lines: Iterable[LineInput],
    chain: Optional[ImageResolutionChain] = None,
) -> List[ConsolidatedQuoteLine]:
    """
    Consolide les lignes brutes puis résout une image par ligne, dans
    l'ordre. Sans état ni cache : recalculé à chaque appel.
    """
    image_chain = chain or build_default_chain()
    consolidated = aggregate(lines)

    assembled = [
        dataclasses.replace(line, resolved_image_url=image_chain.resolve(line))
        for line in consolidated
    ]

    missing = sum(1 for line in assembled if line.resolved_image_url is None)
    if missing:
        logger.info("assemble_consolidated_lines: %d ligne(s) sans image.", missing)
    logger.debug("assemble_consolidated_lines: %d ligne(s) assemblée(s).", len(assembled))
    return assembled


def build_render_payload(
    header: Optional[QuoteHeader | Mapping[str, Any]],
    lines: Iterable[LineInput],
    chain: Optional[ImageResolutionChain] = None,
) -> QuoteRenderPayload:
    """Prépare le contenu complet d'un devis pour un renderer."""
    quote_header = header if isinstance(header, QuoteHeader) else QuoteHeader.from_dict(header)
    assembled = assemble_consolidated_lines(lines, chain)
    grand_total = sum(line.line_total for line in assembled)

    logger.log(
        SUCCESS_LEVEL,
        "Devis %s assemblé: %d ligne(s), total %.2f.",
        quote_header.number or "(sans numéro)",
        len(assembled),
        grand_total,
    )
    return QuoteRenderPayload(header=quote_header, lines=tuple(assembled), grand_total=grand_total)
