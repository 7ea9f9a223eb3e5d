"""
Orchestrateur du checkout (règlement commande/paiement).

Séquence: panier -> commande 'pending' -> intent passerelle -> widget -> vérification
de signature -> décrément de stock atomique -> commande 'paid' -> panier vidé.

Règles:
- Le stock n'est décrémenté qu'après un paiement vérifié, et une seule fois:
  seule la requête qui a fait passer le paiement en 'success' pilote stock et statut.
- Si le stock manque après paiement: remboursement, commande 'cancelled',
  tâche de réconciliation si le remboursement échoue.
- Les erreurs métier sont converties en CheckoutOutcome + message flash.
"""
from typing import Any, Dict, List, Optional
import logging

from storefront import config
from storefront.addresses import service as addresses_service
from storefront.cart.pricing import format_money, price_cart
from storefront.errors import (
    InsufficientStock,
    PersistenceError,
    ProductNotFound,
    StorefrontError,
    ValidationError,
)
from storefront.orders import service as orders_service
from storefront.orders.models import OrderStatus
from storefront.payments import service as payments_service
from storefront.stock import repository as stock_repository
from storefront.stock import service as stock_service
from .context import CheckoutContext
from .models import CheckoutOutcome, CheckoutState

logger = logging.getLogger(__name__)

FLASH_SUCCESS = "payment_success"
FLASH_ERROR = "payment_error"

_FULFILLED = (OrderStatus.PAID, OrderStatus.SHIPPED, OrderStatus.DELIVERED)


def build_summary(ctx: CheckoutContext) -> Dict[str, Any]:
    """
    Récapitulatif du panier valorisé au prix courant du catalogue.
    Retour: {lines, total, total_display, currency, item_count, missing, unavailable, address}
    """
    items = ctx.cart.items()
    products = stock_repository.get_products_map(items.keys()) if items else {}
    priced = price_cart(items, products)
    address = addresses_service.get_latest_address(ctx.user_id) if ctx.user_id else None
    return {
        "lines": priced["lines"],
        "total": priced["total"],
        "total_display": format_money(priced["total"], config.PAYMENT_CURRENCY),
        "currency": config.PAYMENT_CURRENCY,
        "item_count": ctx.cart.item_count(),
        "missing": priced["missing"],
        "unavailable": priced["unavailable"],
        "address": address,
    }


def _check_summary(summary: Dict[str, Any], items: Dict[int, int]) -> None:
    """Vérification optimiste (non bloquante pour les autres clients): le décrément réel a lieu après paiement."""
    if summary["missing"]:
        raise ProductNotFound(summary["missing"][0])
    for line in summary["lines"]:
        if not line["available"]:
            raise InsufficientStock(line["product_id"], items[line["product_id"]], line["stock"])
    if summary["total"] <= 0:
        raise ValidationError(f"Cart total must be positive: {summary['total']}", "Montant du panier invalide.")


def start_checkout(ctx: CheckoutContext) -> CheckoutOutcome:
    """
    Crée la commande 'pending' puis l'intent de paiement.
    - Panier vide, adresse manquante (si exigée), produit inconnu ou stock insuffisant: échec sans écriture.
    - GatewayError: la commande reste 'pending' (expirée plus tard par TTL), l'utilisateur peut réessayer.
    """
    order_id: Optional[int] = None
    try:
        items = ctx.cart.items()
        if not items:
            raise ValidationError("Cart is empty", "Votre panier est vide.")
        summary = build_summary(ctx)
        if config.REQUIRE_ADDRESS_AT_CHECKOUT and not summary["address"]:
            raise ValidationError("Shipping address required", "Veuillez renseigner une adresse de livraison.")
        _check_summary(summary, items)

        lines = [
            {"product_id": line["product_id"], "quantity": line["quantity"], "unit_price": line["unit_price"]}
            for line in summary["lines"]
        ]
        order_id = orders_service.create_pending_order(ctx.user_id, summary["total"], lines)
        ctx.set_pending_order(order_id)
        logger.info("checkout.start order_id=%s user_id=%s total=%s", order_id, ctx.user_id, summary["total"])

        intent = payments_service.open_intent(summary["total"], order_id, ctx.user_id)
    except StorefrontError as e:
        logger.warning("checkout.start failed user_id=%s order_id=%s code=%s detail=%s", ctx.user_id, order_id, e.code, e.detail)
        return CheckoutOutcome.failure(e, order_id)

    return CheckoutOutcome(
        state=CheckoutState.GATEWAY_INTENT_OPEN,
        ok=True,
        order_id=order_id,
        payment_intent=intent,
    )


def _finalize_session(ctx: CheckoutContext, order_id: int) -> None:
    ctx.cart.clear()
    ctx.clear_pending_order()
    ctx.flash(FLASH_SUCCESS, f"Paiement réussi ! Votre commande #{order_id} est confirmée.")


def _fail(ctx: CheckoutContext, error: StorefrontError, order_id: Optional[int] = None) -> CheckoutOutcome:
    ctx.flash(FLASH_ERROR, error.user_message)
    return CheckoutOutcome.failure(error, order_id)


def _compensate(ctx: CheckoutContext, payment: Dict[str, Any], order_id: int, cancel: bool) -> None:
    """Remboursement du paiement capturé (+ annulation de la commande encore 'pending')."""
    refunded = payments_service.refund(payment)
    if cancel:
        orders_service.update_status(order_id, OrderStatus.CANCELLED, expected=OrderStatus.PENDING)
    ctx.clear_pending_order(order_id)
    logger.warning("checkout.compensate order_id=%s refunded=%s cancelled=%s", order_id, refunded, cancel)


def _restore_lines(lines: List[Dict[str, Any]]) -> None:
    for line in lines:
        stock_service.restore(line["product_id"], line["quantity"])


def complete_payment(
    ctx: CheckoutContext,
    gateway_order_id: str,
    gateway_payment_id: str,
    signature: str,
) -> CheckoutOutcome:
    """
    Traite le retour du widget de paiement.
    - Signature invalide / paiement inconnu: échec, panier et stock intacts, commande 'pending'.
    - Ré-entrée sur un paiement déjà réglé et une commande déjà payée: 'completed' sans effet de bord.
    - Stock insuffisant: remboursement + commande 'cancelled'.
    - Succès: commande 'paid', panier vidé, flash payment_success.
    """
    if not (gateway_order_id and gateway_payment_id and signature):
        return _fail(ctx, ValidationError("Missing payment fields", "Informations de paiement incomplètes."))

    existing = payments_service.get_payment(gateway_order_id)
    if existing and str(existing.get("user_id")) != str(ctx.user_id):
        logger.warning("checkout.complete owner mismatch gateway_order_id=%s user_id=%s", gateway_order_id, ctx.user_id)
        return _fail(ctx, ValidationError("Payment belongs to another user", "Paiement introuvable."))

    result = payments_service.settle(gateway_order_id, gateway_payment_id, signature)
    if not result.ok:
        error = result.error if isinstance(result.error, StorefrontError) else ValidationError(
            f"Settlement failed: {result.reason}", "La vérification du paiement a échoué."
        )
        return _fail(ctx, error, (result.payment or {}).get("order_id"))

    payment = result.payment
    order_id = int(payment.get("order_id"))
    order = orders_service.get_order(order_id)
    status = OrderStatus.parse((order or {}).get("status"))
    if status is None:
        return _fail(ctx, PersistenceError(f"Order {order_id} unreadable after settlement"), order_id)

    if result.already_settled:
        if status in _FULFILLED:
            # Ré-entrée: le panier n'est vidé que si cette session portait encore la commande
            if ctx.pending_order_id == order_id:
                _finalize_session(ctx, order_id)
            return CheckoutOutcome(
                state=CheckoutState.COMPLETED, ok=True, order_id=order_id, already_completed=True,
            )
        if status is OrderStatus.PENDING:
            return _fail(ctx, ValidationError(
                f"Settlement of order {order_id} in progress",
                "Votre paiement est en cours de traitement, veuillez patienter.",
            ), order_id)
        return _fail(ctx, ValidationError(f"Order {order_id} is {status.value}", "Cette commande a été annulée."), order_id)

    if status is not OrderStatus.PENDING:
        # Paiement capturé pour une commande expirée/annulée ou déjà payée: on rembourse
        _compensate(ctx, payment, order_id, cancel=False)
        return _fail(ctx, ValidationError(
            f"Order {order_id} is {status.value}, payment refunded",
            "Cette commande n'est plus payable, votre paiement va être remboursé.",
        ), order_id)

    try:
        lines = orders_service.get_order_items(order_id)
        stock_service.reserve_and_decrement_or_raise(lines)
    except (InsufficientStock, ProductNotFound, PersistenceError) as e:
        logger.warning("checkout.complete stock step failed order_id=%s code=%s detail=%s", order_id, e.code, e.detail)
        _compensate(ctx, payment, order_id, cancel=True)
        return _fail(ctx, e, order_id)
    logger.info("checkout.complete stock decremented order_id=%s", order_id)

    if not orders_service.update_status(order_id, OrderStatus.PAID, expected=OrderStatus.PENDING):
        current = OrderStatus.parse((orders_service.get_order(order_id) or {}).get("status"))
        if current is not OrderStatus.PAID:
            # Commande expirée/annulée pendant le traitement: on rend le stock et on rembourse
            _restore_lines(lines)
            _compensate(ctx, payment, order_id, cancel=False)
            return _fail(ctx, ValidationError(
                f"Order {order_id} changed to {current.value if current else None} during settlement",
                "Cette commande n'est plus payable, votre paiement va être remboursé.",
            ), order_id)

    _finalize_session(ctx, order_id)
    logger.info("checkout.complete order_id=%s gateway_order_id=%s", order_id, gateway_order_id)
    return CheckoutOutcome(state=CheckoutState.COMPLETED, ok=True, order_id=order_id)


def abandon_payment(ctx: CheckoutContext, gateway_order_id: str) -> CheckoutOutcome:
    """
    Widget fermé sans paiement: paiement 'failed' (abandoned), commande laissée intacte.
    - Paiement inconnu ou d'un autre utilisateur -> ok=False, 404
    - Paiement déjà terminal (réglé ou échoué) -> ok=False, 409, aucun message flash
    """
    payment = payments_service.get_payment(gateway_order_id)
    if not payment or str(payment.get("user_id")) != str(ctx.user_id):
        outcome = _fail(ctx, ValidationError(f"Unknown payment {gateway_order_id}", "Paiement introuvable."))
        outcome.status_code = 404
        return outcome
    order_id = payment.get("order_id")
    if not payments_service.mark_failed(gateway_order_id, "abandoned"):
        logger.info("checkout.abandon ignored gateway_order_id=%s status=%s", gateway_order_id, payment.get("status"))
        return CheckoutOutcome(
            state=CheckoutState.FAILED,
            ok=False,
            order_id=order_id,
            error_code="payment_closed",
            message="Ce paiement est déjà clôturé.",
            status_code=409,
        )
    ctx.flash(FLASH_ERROR, "Paiement annulé. Votre panier est conservé, vous pouvez réessayer.")
    return CheckoutOutcome(
        state=CheckoutState.FAILED,
        ok=True,
        order_id=order_id,
        error_code="abandoned",
        message="Paiement annulé.",
    )
