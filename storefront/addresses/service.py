"""
Cas d'usage 'addresses': validation (AddressIn) puis persistance.
"""
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from . import repository
from .models import AddressIn, format_address

__all__ = ["create_address", "get_latest_address", "list_user_addresses", "delete_address", "format_address"]


def _error_messages(exc: PydanticValidationError) -> List[str]:
    messages: List[str] = []
    for err in exc.errors():
        original = (err.get("ctx") or {}).get("error")
        messages.append(str(original) if original else err.get("msg", "Valeur invalide"))
    return messages


def create_address(user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """Retour: {"success": bool, "errors": [str], "address": dict|None}."""
    try:
        address = AddressIn.model_validate(data or {})
    except PydanticValidationError as e:
        return {"success": False, "errors": _error_messages(e), "address": None}

    row = repository.insert_address(dict(address.model_dump(), user_id=user_id))
    if not row:
        return {"success": False, "errors": ["Impossible d'enregistrer l'adresse, veuillez réessayer."], "address": None}
    return {"success": True, "errors": [], "address": row}


def get_latest_address(user_id: str) -> Optional[dict]:
    rows = repository.fetch_user_addresses(user_id, limit=1)
    return rows[0] if rows else None


def list_user_addresses(user_id: str) -> List[dict]:
    return repository.fetch_user_addresses(user_id)


def delete_address(address_id: int, user_id: str) -> bool:
    return repository.delete_address(address_id, user_id)
