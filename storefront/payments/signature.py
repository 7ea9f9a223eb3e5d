import hashlib
import hmac

# module storefront.payments.signature
def compute_signature(gateway_order_id: str, gateway_payment_id: str, secret: str) -> str:
    """HMAC-SHA256 hexadécimal de '<order_id>|<payment_id>' avec le secret de la passerelle."""
    message = f"{gateway_order_id}|{gateway_payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify(gateway_order_id: str, gateway_payment_id: str, signature: str, secret: str) -> bool:
    """Comparaison en temps constant. Toute entrée vide -> False."""
    if not gateway_order_id or not gateway_payment_id or not signature or not secret:
        return False
    expected = compute_signature(gateway_order_id, gateway_payment_id, secret)
    return hmac.compare_digest(expected, str(signature).strip().lower())
