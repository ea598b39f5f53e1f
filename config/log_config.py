# config/log_config.py

from __future__ import annotations

import copy
import logging
import logging.config
from typing import Any, Dict

# -----------------------------
# Niveau custom "SUCCESS"
# -----------------------------
SUCCESS_LEVEL = 25  # entre INFO (20) et WARNING (30)
logging.addLevelName(SUCCESS_LEVEL, "SUCCESS")


def success(self: logging.Logger, msg: str, *args: Any, **kwargs: Any) -> None:
    if self.isEnabledFor(SUCCESS_LEVEL):
        self._log(SUCCESS_LEVEL, msg, args, **kwargs)


if not hasattr(logging.Logger, "success"):
    setattr(logging.Logger, "success", success)


# Bibliothèques tierces ramenées à un niveau lisible
# (urllib3 émet une ligne par requête d'image en DEBUG)
QUIET_LOGGERS: Dict[str, str] = {
    "urllib3": "WARNING",
    "PIL": "INFO",
}

LOGGING_CONFIG: Dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "compact": {
            "format": "%(asctime)s | %(levelname)-8s | %(message)s",
            "datefmt": "%H:%M:%S",
        },
        "verbose": {
            "format": "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "compact",
            "stream": "ext://sys.stderr",
        },
    },
    "loggers": {name: {"level": level} for name, level in QUIET_LOGGERS.items()},
    "root": {
        "handlers": ["console"],
        "level": "INFO",
    },
}


def setup_logging(level: int = logging.INFO) -> None:
    """
    Initialise le logging de l'outil de consolidation.

    Les logs partent sur stderr (stdout reste réservé au JSON produit).
    En DEBUG, le format détaillé (module, fonction, ligne) est utilisé.
    """
    try:
        config = copy.deepcopy(LOGGING_CONFIG)
        config["root"]["level"] = logging.getLevelName(level)
        if level <= logging.DEBUG:
            config["handlers"]["console"]["formatter"] = "verbose"
        logging.config.dictConfig(config)

        logging.getLogger(__name__).debug("Logging initialisé (niveau=%s).", logging.getLevelName(level))

    except Exception:
        # Filet de sécurité : ne jamais casser l'app à cause du logging
        logging.basicConfig(level=level)
        logging.getLogger(__name__).exception("Échec setup_logging, fallback basicConfig.")
