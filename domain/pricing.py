# domain/pricing.py

"""
Calcul des quantités et du prix unitaire d'une ligne consolidée.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Tuple

from domain.models import to_number

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineAmounts:
    """Quantité totale, prix unitaire retenu et total de ligne."""

    quantity: float
    unit_price: float
    line_total: float
    weighted: bool = False


def total_quantity(q1: Any, q2: Any, q3: Any, generic: Any) -> float:
    """
    Somme des quatre champs porteurs de quantité (trois paliers + générique).
    Aucun champ n'est exclu, même si d'autres sont renseignés.
    """
    quantities = [to_number(q1), to_number(q2), to_number(q3), to_number(generic)]
    populated = sum(1 for q in quantities if q)
    if populated > 1:
        logger.debug("total_quantity: %d champs de quantité renseignés simultanément %s", populated, quantities)
    return sum(quantities)


def first_price(*prices: Any) -> float:
    """Premier prix non nul parmi ceux fournis, 0 sinon."""
    for price in prices:
        value = to_number(price)
        if value:
            return value
    return 0.0


def select_unit_price(
    q1: Any,
    q2: Any,
    q3: Any,
    quantity: float,
    p1: Any,
    p2: Any,
    p3: Any,
    unit_price: Optional[Any] = None,
) -> Tuple[float, bool]:
    """
    Prix unitaire de la ligne consolidée.

    - les trois paliers ont une quantité > 0 et au moins un prix de palier > 0 :
      moyenne pondérée (q1·p1 + q2·p2 + q3·p3) / quantité
    - sinon : premier prix non nul parmi p1, p2, p3, prix unitaire générique

    Retourne (prix, pondéré?).
    """
    tq1, tq2, tq3 = to_number(q1), to_number(q2), to_number(q3)
    tp1, tp2, tp3 = to_number(p1), to_number(p2), to_number(p3)

    if tq1 > 0 and tq2 > 0 and tq3 > 0 and (tp1 > 0 or tp2 > 0 or tp3 > 0) and quantity > 0:
        weighted_total = tq1 * tp1 + tq2 * tp2 + tq3 * tp3
        return weighted_total / quantity, True

    return first_price(p1, p2, p3, unit_price), False


def consolidate_amounts(
    q1: Any,
    q2: Any,
    q3: Any,
    generic_quantity: Any,
    p1: Any,
    p2: Any,
    p3: Any,
    unit_price: Optional[Any] = None,
) -> LineAmounts:
    """Quantité, prix unitaire et total (quantité × prix) d'une ligne."""
    quantity = total_quantity(q1, q2, q3, generic_quantity)
    price, weighted = select_unit_price(q1, q2, q3, quantity, p1, p2, p3, unit_price)
    amounts = LineAmounts(
        quantity=quantity,
        unit_price=price,
        line_total=quantity * price,
        weighted=weighted,
    )
    logger.debug("consolidate_amounts: %r", amounts)
    return amounts
