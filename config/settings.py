# config/settings.py

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from config.color_slots import DEFAULT_COLOR_ALIASES, DEFAULT_COLOR_SLOTS, load_color_slots

logger = logging.getLogger(__name__)

DEFAULT_HTTP_TIMEOUT = 10.0
DEFAULT_THUMBNAIL_SIZE = 120
DEFAULT_THUMBNAIL_QUALITY = 60
DEFAULT_EMAIL_MAX_ITEMS = 10

_TRUE_VALUES = {"1", "true", "yes", "on", "oui"}


def _load_dotenv_if_present(env_file: str | Path = ".env") -> None:
    """
    Charge un fichier `.env` local si présent et injecte les variables
    manquantes dans l'environnement process.

    - ignore les lignes vides ou commentées
    - ne surcharge jamais une variable déjà définie dans l'environnement
    - journalise chaque variable ajoutée pour faciliter le diagnostic
    """
    env_path = Path(env_file)
    logger.debug("Recherche d'un fichier .env local à charger: %s", env_path)

    if not env_path.exists():
        logger.debug("Aucun fichier .env trouvé à %s, passage en mode variables système.", env_path)
        return

    try:
        for line_no, raw_line in enumerate(env_path.read_text(encoding="utf-8").splitlines(), start=1):
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                logger.debug("Ligne %d ignorée dans .env (vide ou commentaire).", line_no)
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip()

            if not key:
                logger.warning("Ligne %d du .env ignorée (clé vide).", line_no)
                continue

            if os.getenv(key) is None:
                os.environ[key] = value
                logger.debug("Variable %s chargée depuis .env.", key)
            else:
                logger.debug("Variable %s déjà définie dans l'environnement, .env laissé intact.", key)

        logger.info("Chargement du fichier .env terminé.")
    except Exception as exc:  # pragma: no cover - robustesse
        logger.exception("Echec du chargement du fichier .env: %s", exc)
        raise RuntimeError(f"Erreur lors du chargement du fichier .env: {exc}") from exc


@dataclass
class Settings:
    """
    Configuration applicative centrale.

    - color_slots         : table couleur -> slot d'image générique (0..2)
    - color_aliases       : familles de couleurs équivalentes, ou None si
                            le rapprochement par alias est désactivé
    - http_timeout        : timeout (s) des requêtes d'images
    - thumbnail_size      : côté (px) des vignettes e-mail
    - thumbnail_quality   : qualité JPEG des vignettes
    - email_max_items     : nombre max de lignes reprises dans un e-mail
    """
    color_slots: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_COLOR_SLOTS))
    color_aliases: Optional[Dict[str, List[str]]] = None
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    thumbnail_size: int = DEFAULT_THUMBNAIL_SIZE
    thumbnail_quality: int = DEFAULT_THUMBNAIL_QUALITY
    email_max_items: int = DEFAULT_EMAIL_MAX_ITEMS


def _read_env(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return None
    if not value.strip():
        logger.warning("%s est défini mais vide, valeur par défaut utilisée.", name)
        return None
    return value.strip()


def _read_number_env(name: str, default: float, minimum: float, maximum: float, integer: bool = False):
    raw = _read_env(name)
    if raw is None:
        return int(default) if integer else float(default)

    try:
        value = int(raw) if integer else float(raw)
    except ValueError as exc:
        logger.error("%s invalide (%r): nombre attendu.", name, raw)
        raise RuntimeError(f"{name} invalide ({raw!r}): nombre attendu.") from exc

    if not minimum <= value <= maximum:
        logger.error("%s hors bornes (%s), attendu entre %s et %s.", name, value, minimum, maximum)
        raise RuntimeError(f"{name} hors bornes ({value}), attendu entre {minimum} et {maximum}.")
    return value


def load_settings() -> Settings:
    """
    Charge la configuration à partir des variables d'environnement.

    Variables prises en compte (toutes optionnelles) :
    - QUOTE_COLOR_SLOTS_FILE   : fichier JSON couleur -> slot (remplace la table par défaut)
    - QUOTE_COLOR_ALIASES      : active le rapprochement par alias (1/true/yes/on)
    - QUOTE_HTTP_TIMEOUT       : timeout HTTP en secondes
    - QUOTE_THUMBNAIL_SIZE     : taille des vignettes en pixels
    - QUOTE_THUMBNAIL_QUALITY  : qualité JPEG (1..95)
    - QUOTE_EMAIL_MAX_ITEMS    : nombre max de produits dans un e-mail

    Lève RuntimeError en cas de problème bloquant et loggue en détail l'erreur.
    """
    logger.debug("Chargement des Settings depuis les variables d'environnement.")

    try:
        _load_dotenv_if_present()
    except Exception as env_exc:
        logger.error("Impossible de précharger le fichier .env: %s", env_exc, exc_info=True)
        raise

    try:
        slots_file = _read_env("QUOTE_COLOR_SLOTS_FILE")
        color_slots = load_color_slots(slots_file) if slots_file else dict(DEFAULT_COLOR_SLOTS)

        aliases_flag = _read_env("QUOTE_COLOR_ALIASES")
        color_aliases = (
            {k: list(v) for k, v in DEFAULT_COLOR_ALIASES.items()}
            if aliases_flag and aliases_flag.lower() in _TRUE_VALUES
            else None
        )

        settings = Settings(
            color_slots=color_slots,
            color_aliases=color_aliases,
            http_timeout=_read_number_env("QUOTE_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT, 0.1, 300.0),
            thumbnail_size=_read_number_env(
                "QUOTE_THUMBNAIL_SIZE", DEFAULT_THUMBNAIL_SIZE, 16, 2048, integer=True
            ),
            thumbnail_quality=_read_number_env(
                "QUOTE_THUMBNAIL_QUALITY", DEFAULT_THUMBNAIL_QUALITY, 1, 95, integer=True
            ),
            email_max_items=_read_number_env(
                "QUOTE_EMAIL_MAX_ITEMS", DEFAULT_EMAIL_MAX_ITEMS, 1, 500, integer=True
            ),
        )

        logger.info(
            "Settings chargés (couleurs=%d, alias=%s, timeout=%.1fs, vignette=%dpx q%d).",
            len(settings.color_slots),
            "actifs" if settings.color_aliases else "inactifs",
            settings.http_timeout,
            settings.thumbnail_size,
            settings.thumbnail_quality,
        )
        return settings

    except RuntimeError:
        # Erreur fonctionnelle déjà logguée, on la propage telle quelle
        raise
    except Exception as exc:
        logger.exception("Erreur inattendue lors du chargement des Settings.")
        raise RuntimeError(
            f"Erreur inattendue lors du chargement de la configuration: {exc}"
        ) from exc
