"""
Contexte explicite d'une requête de checkout: session, utilisateur, panier.
Remplace tout état global: chaque opération du checkout le reçoit en paramètre.
"""
from typing import Any, Dict, MutableMapping, Optional

from storefront.cart.snapshot import CartSnapshot
from storefront.utils import flash

PENDING_ORDER_KEY = "pending_order_id"


class CheckoutContext:
    def __init__(self, session: MutableMapping[str, Any], user_id: str, user: Optional[Dict[str, Any]] = None):
        self.session = session
        self.user_id = user_id
        self.user = user or {}
        self.cart = CartSnapshot(session)

    @classmethod
    def from_request(cls, request, user: Dict[str, Any]) -> "CheckoutContext":
        return cls(request.session, str(user.get("id") or ""), user)

    @property
    def pending_order_id(self) -> Optional[int]:
        value = self.session.get(PENDING_ORDER_KEY)
        try:
            return int(value) if value is not None else None
        except (TypeError, ValueError):
            return None

    def set_pending_order(self, order_id: int) -> None:
        self.session[PENDING_ORDER_KEY] = int(order_id)

    def clear_pending_order(self, order_id: Optional[int] = None) -> None:
        """Retire le marqueur; avec order_id, seulement s'il désigne cette commande."""
        if order_id is None or self.pending_order_id == int(order_id):
            self.session.pop(PENDING_ORDER_KEY, None)

    def flash(self, kind: str, message: str) -> None:
        flash.set_flash(self.session, kind, message)

    def pop_flash(self, kind: str) -> Optional[str]:
        return flash.pop_flash(self.session, kind)
