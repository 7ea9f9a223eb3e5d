"""
Conversions de montants et identifiants envoyés à la passerelle (logique pure).
"""
from decimal import Decimal, InvalidOperation
import time
from typing import Any, Dict, Optional

from storefront.errors import ValidationError

# module storefront.payments.amounts
RECEIPT_MAX_LENGTH = 40


def to_minor_units(amount: Any) -> int:
    """
    Montant en unités mineures (paise, centimes): multiplie par 100 puis tronque.
    - Passe par str() pour éviter les artefacts binaires des floats (199.99 -> 19999).
    - Lève ValidationError si le montant n'est pas strictement positif.
    """
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"Invalid amount: {amount!r}", "Montant invalide.")
    if not value.is_finite() or value <= 0:
        raise ValidationError(f"Amount must be positive: {amount!r}", "Montant invalide.")
    minor = int(value * 100)
    if minor <= 0:
        raise ValidationError(f"Amount below one minor unit: {amount!r}", "Montant invalide.")
    return minor


def make_receipt(order_id: Any, prefix: str = "ORDER", now_ms: Optional[int] = None) -> str:
    """Identifiant de reçu '<prefix>_<order_id>_<epoch_ms>', tronqué à 40 caractères."""
    stamp = int(time.time() * 1000) if now_ms is None else int(now_ms)
    return f"{prefix}_{order_id}_{stamp}"[:RECEIPT_MAX_LENGTH]


def make_notes(order_id: Any, user_id: str, store_name: str) -> Dict[str, str]:
    return {"order_id": str(order_id), "user_id": str(user_id or ""), "store": store_name}
