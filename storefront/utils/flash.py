"""
Messages flash en session: écrits par un handler, consommés une seule fois par la page suivante.
"""
from typing import Any, MutableMapping, Optional

FLASH_KEY = "flash"


def set_flash(session: MutableMapping[str, Any], kind: str, message: str) -> None:
    flashes = dict(session.get(FLASH_KEY) or {})
    flashes[kind] = message
    session[FLASH_KEY] = flashes


def pop_flash(session: MutableMapping[str, Any], kind: str) -> Optional[str]:
    """Retourne puis supprime le message `kind` (None si absent)."""
    flashes = dict(session.get(FLASH_KEY) or {})
    message = flashes.pop(kind, None)
    if flashes:
        session[FLASH_KEY] = flashes
    else:
        session.pop(FLASH_KEY, None)
    return message
