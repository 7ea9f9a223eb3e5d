"""
Cas d'usage 'payments': orchestre amounts, gateway_client, signature et repository.
- open_intent: commande distante + ligne 'payments' (status created)
- settle: vérifie la signature du widget et passe le paiement en 'success' (idempotent)
Ne touche jamais au stock ni au statut de commande: c'est le rôle du checkout.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging

from storefront import config
from storefront.cart.pricing import to_decimal
from storefront.errors import PersistenceError, SignatureMismatch
from storefront.reconciliation import service as reconciliation
from . import amounts
from . import gateway_client
from . import repository
from . import signature
from .models import PaymentIntent, PaymentStatus, SettlementResult

logger = logging.getLogger(__name__)

_OPEN_STATUSES = [PaymentStatus.CREATED.value, PaymentStatus.PENDING.value]
# Échecs levés côté boutique seulement: une capture passerelle peut encore les régler
RESETTLEABLE_REASONS = ["abandoned", "expired"]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def open_intent(amount: Any, order_id: int, user_id: str) -> PaymentIntent:
    """
    Ouvre un intent de paiement pour une commande 'pending'.
    - ValidationError si montant <= 0, GatewayError si la passerelle refuse ou n'est pas configurée.
    - PersistenceError si la ligne locale ne peut être écrite; la commande distante
      est alors tracée en réconciliation (orphan_gateway_order).
    """
    amount_minor = amounts.to_minor_units(amount)
    gateway_client.require_gateway()
    currency = config.PAYMENT_CURRENCY
    receipt = amounts.make_receipt(order_id, config.RECEIPT_PREFIX)
    notes = amounts.make_notes(order_id, user_id, config.STORE_NAME)

    gateway_order = gateway_client.create_order(amount_minor, currency, receipt, notes)
    logger.info("payments.open_intent gateway_order_id=%s order_id=%s amount_minor=%s", gateway_order.id, order_id, amount_minor)

    amount_dec = to_decimal(amount)
    try:
        row = repository.insert_payment({
            "user_id": user_id,
            "order_id": int(order_id),
            "gateway_order_id": gateway_order.id,
            "amount": f"{amount_dec:.2f}",
            "currency": currency,
            "status": PaymentStatus.CREATED.value,
        })
    except Exception as e:
        logger.exception("payments.open_intent insert failed gateway_order_id=%s order_id=%s", gateway_order.id, order_id)
        reconciliation.record_task(
            reconciliation.ORPHAN_GATEWAY_ORDER,
            gateway_order_id=gateway_order.id,
            order_id=order_id,
            detail=f"local payment insert failed: {e}",
        )
        raise PersistenceError(f"insert payment failed: {e}") from e

    return PaymentIntent(
        gateway_order_id=gateway_order.id,
        amount=amount_dec,
        amount_minor=amount_minor,
        currency=gateway_order.currency or currency,
        key_id=config.PAYMENT_GATEWAY_KEY_ID,
        payment_id=row.get("id"),
        order_id=int(order_id),
    )


def verify_signature(gateway_order_id: str, gateway_payment_id: str, sig: str) -> bool:
    return signature.verify(gateway_order_id, gateway_payment_id, sig, config.PAYMENT_GATEWAY_KEY_SECRET)


def settle(gateway_order_id: str, gateway_payment_id: str, sig: str) -> SettlementResult:
    """
    Vérifie puis enregistre le succès d'un paiement.
    - Paiement inconnu -> ok=False (unknown_payment)
    - Déjà 'success' avec le même payment_id -> ok=True, already_settled=True, aucune écriture
    - Signature invalide -> paiement 'failed' (signature_mismatch), ok=False
    - Déjà 'failed' pour une autre raison qu'abandon/expiration (ex. signature_mismatch)
      -> ok=False (payment_failed), le paiement reste terminal
    - Sinon -> 'success' avec payment_id + signature
    Un paiement 'failed' abandonné ou expiré peut encore passer en 'success': la capture
    côté passerelle fait foi, le checkout compense si la commande n'est plus 'pending'.
    """
    try:
        payment = repository.get_payment_by_gateway_order_id(gateway_order_id)
    except Exception as e:
        logger.exception("payments.settle read failed gateway_order_id=%s", gateway_order_id)
        return SettlementResult(ok=False, reason="persistence_error", error=PersistenceError(str(e)))
    if not payment:
        logger.warning("payments.settle unknown payment gateway_order_id=%s", gateway_order_id)
        return SettlementResult(ok=False, reason="unknown_payment")

    status = PaymentStatus(payment.get("status") or PaymentStatus.CREATED.value)
    if status is PaymentStatus.SUCCESS:
        if payment.get("gateway_payment_id") == gateway_payment_id:
            return SettlementResult(ok=True, payment=payment, already_settled=True)
        logger.warning(
            "payments.settle conflicting payment id gateway_order_id=%s", gateway_order_id
        )
        return SettlementResult(ok=False, payment=payment, reason="already_settled")

    resettle = status is PaymentStatus.FAILED
    if resettle and payment.get("error_reason") not in RESETTLEABLE_REASONS:
        logger.warning(
            "payments.settle payment already failed gateway_order_id=%s reason=%s",
            gateway_order_id, payment.get("error_reason"),
        )
        return SettlementResult(ok=False, payment=payment, reason="payment_failed")

    if not verify_signature(gateway_order_id, gateway_payment_id, sig):
        # Ne jamais journaliser la signature attendue ni le secret
        logger.warning("payments.settle signature mismatch gateway_order_id=%s", gateway_order_id)
        _safe_update(gateway_order_id, {
            "status": PaymentStatus.FAILED.value,
            "error_reason": "signature_mismatch",
            "updated_at": _now_iso(),
        }, _OPEN_STATUSES)
        return SettlementResult(
            ok=False, payment=payment, reason="signature_mismatch",
            error=SignatureMismatch(f"Signature mismatch for {gateway_order_id}"),
        )

    values = {
        "status": PaymentStatus.SUCCESS.value,
        "gateway_payment_id": gateway_payment_id,
        "gateway_signature": sig,
        "error_reason": None,
        "updated_at": _now_iso(),
    }
    try:
        if resettle:
            rows = repository.update_payment(
                gateway_order_id, values, [PaymentStatus.FAILED.value], only_error_reasons=RESETTLEABLE_REASONS
            )
        else:
            rows = repository.update_payment(gateway_order_id, values, _OPEN_STATUSES)
    except Exception as e:
        logger.exception("payments.settle update failed gateway_order_id=%s", gateway_order_id)
        return SettlementResult(ok=False, payment=payment, reason="persistence_error", error=PersistenceError(str(e)))

    if not rows:
        # Une requête concurrente a réglé le paiement entre la lecture et l'écriture
        current = get_payment(gateway_order_id) or {}
        if current.get("status") == PaymentStatus.SUCCESS.value and current.get("gateway_payment_id") == gateway_payment_id:
            return SettlementResult(ok=True, payment=current, already_settled=True)
        return SettlementResult(ok=False, payment=current or payment, reason="already_settled")

    logger.info("payments.settle success gateway_order_id=%s order_id=%s", gateway_order_id, payment.get("order_id"))
    return SettlementResult(ok=True, payment=rows[0])


def mark_failed(gateway_order_id: str, reason: str) -> bool:
    """Passe un paiement ouvert en 'failed'. Un paiement terminal reste inchangé (False)."""
    if not gateway_order_id:
        return False
    values = {"status": PaymentStatus.FAILED.value, "error_reason": reason, "updated_at": _now_iso()}
    return bool(_safe_update(gateway_order_id, values, _OPEN_STATUSES))


def _safe_update(gateway_order_id: str, values: Dict[str, Any], only_statuses: List[str]) -> List[dict]:
    try:
        return repository.update_payment(gateway_order_id, values, only_statuses)
    except Exception:
        logger.exception("payments.service update failed gateway_order_id=%s", gateway_order_id)
        return []


def get_payment(gateway_order_id: str) -> Optional[dict]:
    try:
        return repository.get_payment_by_gateway_order_id(gateway_order_id)
    except Exception:
        logger.exception("payments.get_payment failed gateway_order_id=%s", gateway_order_id)
        return None


def refund(payment: Dict[str, Any]) -> bool:
    """
    Rembourse intégralement un paiement 'success' (compensation). Ne lève pas:
    en cas d'échec, une tâche refund_failed est enregistrée et False est retourné.
    """
    gateway_payment_id = payment.get("gateway_payment_id") or ""
    gateway_order_id = payment.get("gateway_order_id")
    try:
        amount_minor = amounts.to_minor_units(payment.get("amount"))
        result = gateway_client.refund_payment(gateway_payment_id, amount_minor)
        logger.info("payments.refund ok gateway_order_id=%s refund_id=%s", gateway_order_id, result.id)
        return True
    except Exception as e:
        logger.exception("payments.refund failed gateway_order_id=%s", gateway_order_id)
        reconciliation.record_task(
            reconciliation.REFUND_FAILED,
            gateway_order_id=gateway_order_id,
            order_id=payment.get("order_id"),
            payment_id=gateway_payment_id,
            detail=str(e),
        )
        return False


def list_user_payments(user_id: str) -> List[dict]:
    return repository.list_user_payments(user_id)


def list_payments(limit: int = 50, offset: int = 0) -> List[dict]:
    return repository.list_payments(limit, offset)
