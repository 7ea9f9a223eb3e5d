"""
Panier en session (pas de DB, pas de passerelle).
Le panier vit dans request.session["cart"] sous la forme {"<product_id>": <quantity>}:
les clés sont des chaînes car la session Starlette est sérialisée en JSON.
"""
from typing import Any, Dict, MutableMapping

# module storefront.cart.snapshot
SESSION_KEY = "cart"


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


class CartSnapshot:
    """
    Vue du panier d'un utilisateur adossée à sa session.
    - Chaque mutation réécrit immédiatement session["cart"] (aucun buffer).
    - Aucune erreur levée: une entrée invalide (qty < 1 sur add, id invalide) est ignorée.
    """

    def __init__(self, session: MutableMapping[str, Any]):
        self._session = session
        if not isinstance(self._session.get(SESSION_KEY), dict):
            self._session[SESSION_KEY] = {}

    def _raw(self) -> Dict[str, int]:
        return dict(self._session.get(SESSION_KEY) or {})

    def _write(self, items: Dict[str, int]) -> None:
        self._session[SESSION_KEY] = items

    def add(self, product_id: Any, quantity: Any = 1) -> None:
        pid = _to_int(product_id)
        qty = _to_int(quantity)
        if pid <= 0 or qty < 1:
            return
        items = self._raw()
        key = str(pid)
        items[key] = _to_int(items.get(key)) + qty
        self._write(items)

    def remove(self, product_id: Any) -> None:
        items = self._raw()
        if items.pop(str(_to_int(product_id)), None) is not None:
            self._write(items)

    def update_quantity(self, product_id: Any, quantity: Any) -> None:
        """Fixe la quantité d'un article déjà présent; qty <= 0 le retire."""
        qty = _to_int(quantity)
        if qty <= 0:
            self.remove(product_id)
            return
        items = self._raw()
        key = str(_to_int(product_id))
        if key in items:
            items[key] = qty
            self._write(items)

    def clear(self) -> None:
        self._write({})

    def items(self) -> Dict[int, int]:
        """Retourne {product_id: quantity} (int -> int), entrées invalides filtrées."""
        out: Dict[int, int] = {}
        for key, qty in self._raw().items():
            pid, q = _to_int(key), _to_int(qty)
            if pid > 0 and q > 0:
                out[pid] = q
        return out

    def item_count(self) -> int:
        return sum(self.items().values())

    def has_items(self) -> bool:
        return self.item_count() > 0
