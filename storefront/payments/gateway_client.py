"""
Adaptateur passerelle de paiement (API REST compatible Razorpay): centralise les appels HTTP.
- POST /orders: crée la commande distante (intent) avant l'ouverture du widget
- POST /payments/{id}/refund: remboursement (compensation si le stock manque)
Toute anomalie (non configurée, timeout, non-2xx, JSON invalide) lève GatewayError.
"""
from typing import Any, Dict, Optional
import logging

import httpx
from pydantic import ValidationError as PydanticValidationError

from storefront import config
from storefront.errors import GatewayError
from .models import GatewayOrder, GatewayRefund

logger = logging.getLogger(__name__)

# module storefront.payments.gateway_client
def is_configured() -> bool:
    return bool(config.PAYMENT_GATEWAY_KEY_ID and config.PAYMENT_GATEWAY_KEY_SECRET)


def require_gateway() -> None:
    """Lève GatewayError (sans I/O réseau) si la clé ou le secret manque."""
    if not is_configured():
        raise GatewayError("Payment gateway is not configured (PAYMENT_GATEWAY_KEY_ID/SECRET missing)")


def make_client() -> httpx.Client:
    return httpx.Client(
        base_url=config.PAYMENT_GATEWAY_API_URL,
        auth=(config.PAYMENT_GATEWAY_KEY_ID, config.PAYMENT_GATEWAY_KEY_SECRET),
        timeout=config.PAYMENT_GATEWAY_TIMEOUT,
    )


def _post(path: str, payload: Dict[str, Any], client: Optional[httpx.Client] = None) -> Dict[str, Any]:
    require_gateway()
    owned = client is None
    http = client or make_client()
    try:
        resp = http.post(path, json=payload)
    except httpx.TimeoutException as e:
        logger.warning("gateway POST %s timeout", path)
        raise GatewayError(f"Gateway timeout on {path}") from e
    except httpx.HTTPError as e:
        logger.warning("gateway POST %s transport error: %s", path, e)
        raise GatewayError(f"Gateway transport error on {path}: {e}") from e
    finally:
        if owned:
            http.close()

    if resp.status_code < 200 or resp.status_code >= 300:
        # Le corps d'erreur Razorpay: {"error": {"code": ..., "description": ...}}
        description = ""
        try:
            description = ((resp.json() or {}).get("error") or {}).get("description") or ""
        except ValueError:
            description = resp.text[:200]
        logger.warning("gateway POST %s status=%s description=%s", path, resp.status_code, description)
        raise GatewayError(f"Gateway returned {resp.status_code} on {path}: {description}", status=resp.status_code)

    try:
        data = resp.json()
    except ValueError as e:
        raise GatewayError(f"Gateway returned malformed JSON on {path}") from e
    if not isinstance(data, dict):
        raise GatewayError(f"Gateway returned unexpected payload on {path}")
    return data


def create_order(
    amount_minor: int,
    currency: str,
    receipt: str,
    notes: Optional[Dict[str, str]] = None,
    *,
    client: Optional[httpx.Client] = None,
) -> GatewayOrder:
    """
    Crée une commande côté passerelle.
    Retour: GatewayOrder(id="order_...", amount=<minor>, currency, receipt, status)
    """
    payload = {"amount": int(amount_minor), "currency": currency, "receipt": receipt, "notes": notes or {}}
    data = _post("/orders", payload, client)
    try:
        return GatewayOrder.model_validate(data)
    except PydanticValidationError as e:
        raise GatewayError("Gateway order response is missing fields") from e


def refund_payment(
    gateway_payment_id: str,
    amount_minor: Optional[int] = None,
    *,
    client: Optional[httpx.Client] = None,
) -> GatewayRefund:
    """Rembourse un paiement capturé (totalement si amount_minor est None)."""
    if not gateway_payment_id:
        raise GatewayError("Missing gateway payment id for refund")
    payload: Dict[str, Any] = {}
    if amount_minor is not None:
        payload["amount"] = int(amount_minor)
    data = _post(f"/payments/{gateway_payment_id}/refund", payload, client)
    try:
        return GatewayRefund.model_validate(data)
    except PydanticValidationError as e:
        raise GatewayError("Gateway refund response is missing fields") from e
