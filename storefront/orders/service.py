"""
Cas d'usage 'orders' (Order Ledger): commandes en attente, statuts, expiration.
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional
import logging

from storefront.cart.pricing import CENT, to_decimal
from storefront.errors import PersistenceError, ValidationError
from storefront.payments import repository as payments_repository
from storefront.stock import service as stock_service
from . import repository
from .models import OrderStatus, can_transition

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def create_pending_order(user_id: str, total: Any, items: List[Dict[str, Any]]) -> int:
    """
    Crée une commande 'pending' et ses lignes (prix unitaire figé à la création).
    items: [{"product_id": int, "quantity": int, "unit_price": Decimal|str}, ...]
    - Lève ValidationError si aucune ligne exploitable ou si total != somme des lignes.
    - Lève PersistenceError si l'insertion échoue; la commande orpheline est supprimée.
    """
    rows: List[Dict[str, Any]] = []
    computed = Decimal("0")
    for it in items or []:
        qty = int(it.get("quantity") or 0)
        if qty <= 0:
            continue
        unit_price = to_decimal(it.get("unit_price"))
        computed += unit_price * qty
        rows.append({"product_id": int(it["product_id"]), "quantity": qty, "unit_price": f"{unit_price:.2f}"})
    if not rows:
        raise ValidationError("Order has no items", "Votre panier est vide.")

    total_dec = to_decimal(total)
    if total_dec != computed.quantize(CENT):
        raise ValidationError(f"Order total mismatch: total={total_dec} lines={computed}")

    try:
        order = repository.insert_order(user_id, f"{total_dec:.2f}", OrderStatus.PENDING.value)
    except Exception as e:
        logger.exception("orders.service.create_pending_order insert order failed user_id=%s", user_id)
        raise PersistenceError(f"insert order failed: {e}") from e
    order_id = int(order["id"])

    try:
        repository.insert_order_items([dict(r, order_id=order_id) for r in rows])
    except Exception as e:
        logger.exception("orders.service.create_pending_order insert items failed order_id=%s", order_id)
        repository.delete_order(order_id)
        raise PersistenceError(f"insert order_items failed: {e}") from e
    return order_id


def update_status(order_id: int, new_status: Any, expected: Optional[OrderStatus] = None) -> bool:
    """
    Écrit le statut sans contrôle de transition. Statut inconnu -> False sans écriture.
    expected: n'écrit que si le statut courant vaut `expected`.
    """
    status = OrderStatus.parse(new_status)
    if status is None:
        logger.warning("orders.update_status invalid status order_id=%s status=%r", order_id, new_status)
        return False
    try:
        return repository.update_order_status(
            order_id, status.value, _now_iso(), expected_status=expected.value if expected else None
        )
    except Exception:
        logger.exception("orders.service.update_status failed order_id=%s status=%s", order_id, status.value)
        return False


def get_order(order_id: int) -> Optional[dict]:
    return repository.get_order(order_id)


def get_order_items(order_id: int) -> List[dict]:
    """Lignes de la commande. Lève PersistenceError en cas d'erreur de lecture."""
    try:
        rows = repository.get_order_items(order_id)
    except Exception as e:
        logger.exception("orders.service.get_order_items failed order_id=%s", order_id)
        raise PersistenceError(f"read order_items failed: {e}") from e
    return [
        {
            "product_id": int(r.get("product_id")),
            "quantity": int(r.get("quantity") or 0),
            "unit_price": to_decimal(r.get("unit_price")),
        }
        for r in rows
    ]


def list_user_orders(user_id: str) -> List[dict]:
    return repository.fetch_user_orders(user_id)


def transition(order_id: int, new_status: Any) -> dict:
    """
    Transition explicite (admin). Annuler une commande 'paid' réintègre le stock.
    Lève ValidationError si le statut ou la transition est invalide.
    """
    target = OrderStatus.parse(new_status)
    if target is None:
        raise ValidationError(f"Unknown order status: {new_status!r}", "Statut de commande invalide.")
    order = repository.get_order(order_id)
    if not order:
        raise ValidationError(f"Order {order_id} not found", "Commande introuvable.")
    current = OrderStatus.parse(order.get("status"))
    if current is None or not can_transition(current, target):
        raise ValidationError(
            f"Transition {order.get('status')} -> {target.value} not allowed",
            f"Transition {order.get('status')} -> {target.value} impossible.",
        )

    if not update_status(order_id, target, expected=current):
        raise PersistenceError(f"status update failed order_id={order_id}")

    # Le statut est écrit d'abord: une annulation concurrente ne réintègre le stock qu'une fois
    if current is OrderStatus.PAID and target is OrderStatus.CANCELLED:
        for line in get_order_items(order_id):
            if not stock_service.restore(line["product_id"], line["quantity"]):
                raise PersistenceError(f"stock restore failed order_id={order_id} product_id={line['product_id']}")
    logger.info("orders.transition order_id=%s %s -> %s", order_id, current.value, target.value)
    return {"order_id": int(order_id), "from": current.value, "to": target.value}


def expire_stale_orders(ttl_minutes: int) -> int:
    """
    Annule les commandes 'pending' plus vieilles que ttl_minutes et passe leurs paiements 'created' en 'failed'.
    Retourne le nombre de commandes expirées.
    """
    cutoff = (datetime.now(timezone.utc) - timedelta(minutes=int(ttl_minutes))).isoformat()
    expired: List[int] = []
    for row in repository.fetch_pending_orders_before(cutoff):
        order_id = int(row["id"])
        if update_status(order_id, OrderStatus.CANCELLED, expected=OrderStatus.PENDING):
            expired.append(order_id)
    if expired:
        payments_repository.fail_created_payments_for_orders(expired, "expired", _now_iso())
        logger.info("orders.expire_stale_orders expired=%s ttl_minutes=%s", len(expired), ttl_minutes)
    return len(expired)
