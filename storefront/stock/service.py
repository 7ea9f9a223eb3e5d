"""
Stock Ledger: garantit qu'aucun stock ne devient négatif, même sous checkouts concurrents.
- reserve_and_decrement: tout-ou-rien (une seule transaction SQL, lignes verrouillées).
- restore: compensation additive (annulation de commande).
- Lectures pour le tableau de bord (stock bas, statistiques).
"""
from typing import Any, Dict, Iterable, List, Optional
import logging
import re

from postgrest.exceptions import APIError

from storefront.config import LOW_STOCK_THRESHOLD
from storefront.errors import InsufficientStock, PersistenceError, ProductNotFound
from . import repository

logger = logging.getLogger(__name__)

_NOT_FOUND_RE = re.compile(r"product_not_found:(\d+)")
_INSUFFICIENT_RE = re.compile(r"insufficient_stock:(\d+):(\d+):(-?\d+)")


def normalize_items(items: Iterable[Dict[str, Any]]) -> List[Dict[str, int]]:
    """
    Agrège des lignes [{product_id, quantity}, ...] en une ligne par produit, triées par id.
    - Ignore les lignes sans id ou à quantité <= 0.
    """
    merged: Dict[int, int] = {}
    for it in items or []:
        try:
            pid = int(it.get("product_id"))
            qty = int(it.get("quantity") or 0)
        except (TypeError, ValueError):
            continue
        if pid <= 0 or qty <= 0:
            continue
        merged[pid] = merged.get(pid, 0) + qty
    return [{"product_id": pid, "quantity": merged[pid]} for pid in sorted(merged)]


def _translate_api_error(e: APIError) -> Exception:
    message = " ".join(str(x) for x in (getattr(e, "message", None), getattr(e, "details", None), e.args) if x)
    m = _INSUFFICIENT_RE.search(message)
    if m:
        return InsufficientStock(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    m = _NOT_FOUND_RE.search(message)
    if m:
        return ProductNotFound(int(m.group(1)))
    return PersistenceError(f"reserve_and_decrement_stock failed: {message}")


def reserve_and_decrement_or_raise(items: Iterable[Dict[str, Any]]) -> None:
    """
    Vérifie puis décrémente le stock de toutes les lignes en une transaction.
    Lève InsufficientStock / ProductNotFound / PersistenceError; rien n'est décrémenté en cas d'erreur.
    """
    lines = normalize_items(items)
    if not lines:
        return
    try:
        repository.call_reserve_and_decrement(lines)
    except APIError as e:
        raise _translate_api_error(e) from e
    except Exception as e:
        raise PersistenceError(f"reserve_and_decrement_stock failed: {e}") from e


def reserve_and_decrement(items: Iterable[Dict[str, Any]]) -> bool:
    """Variante booléenne: journalise l'erreur et retourne False, ne lève jamais."""
    try:
        reserve_and_decrement_or_raise(items)
        return True
    except (InsufficientStock, ProductNotFound) as e:
        logger.warning("stock.reserve_and_decrement rejected: %s", e.detail)
        return False
    except PersistenceError:
        logger.exception("stock.reserve_and_decrement failed")
        return False


def current_stock(product_id: int) -> int:
    """Stock courant; 0 si produit inconnu ou erreur."""
    try:
        stock = repository.get_product_stock(product_id)
        return stock if stock is not None else 0
    except Exception:
        logger.exception("stock.current_stock failed product_id=%s", product_id)
        return 0


def restore(product_id: int, quantity: int) -> bool:
    """Réintègre `quantity` unités (additif, pas de borne haute: l'appelant est de confiance)."""
    if int(quantity) <= 0:
        return True
    try:
        repository.call_restore_stock(product_id, quantity)
        return True
    except Exception:
        logger.exception("stock.restore failed product_id=%s quantity=%s", product_id, quantity)
        return False


def stock_status(product_id: int) -> Dict[str, Any]:
    stock = current_stock(product_id)
    if stock > 10:
        status = "in_stock"
    elif stock > 0:
        status = "low_stock"
    else:
        status = "out_of_stock"
    return {"stock": stock, "is_available": stock > 0, "status": status}


def low_stock_products(threshold: Optional[int] = None) -> List[dict]:
    return repository.fetch_low_stock_products(LOW_STOCK_THRESHOLD if threshold is None else threshold)


def stock_statistics(threshold: Optional[int] = None) -> Dict[str, int]:
    keys = ("total_products", "total_stock", "out_of_stock", "low_stock", "in_stock")
    row = repository.fetch_stock_statistics(LOW_STOCK_THRESHOLD if threshold is None else threshold) or {}
    return {k: int(row.get(k) or 0) for k in keys}
