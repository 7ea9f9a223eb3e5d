"""
Taxonomie des erreurs métier du checkout.

- ValidationError: panier/adresse invalide (récupérable, affiché à l'utilisateur)
- GatewayError: création d'intent distante en échec (récupérable, l'utilisateur peut réessayer)
- SignatureMismatch: signature de paiement invalide (terminal pour la tentative, journalisé)
- InsufficientStock / ProductNotFound: règle métier violée (terminal pour la commande)
- PersistenceError: échec base de données (message générique côté utilisateur)

Chaque erreur porte un `user_message` affichable; le détail technique reste dans les logs.
"""
from typing import Optional


class StorefrontError(Exception):
    code = "error"
    status_code = 400
    default_message = "Une erreur est survenue, veuillez réessayer."

    def __init__(self, detail: str = "", user_message: Optional[str] = None):
        super().__init__(detail or self.default_message)
        self.detail = detail or self.default_message
        self.user_message = user_message or self.default_message


class ValidationError(StorefrontError):
    code = "validation_error"
    status_code = 400
    default_message = "Données invalides."

    def __init__(self, detail: str = "", user_message: Optional[str] = None, errors: Optional[list] = None):
        # Les erreurs de validation sont affichées telles quelles
        super().__init__(detail, user_message or detail or None)
        self.errors = list(errors or [])


class GatewayError(StorefrontError):
    code = "gateway_error"
    status_code = 502
    default_message = "Le service de paiement est indisponible, veuillez réessayer."

    def __init__(self, detail: str = "", user_message: Optional[str] = None, status: Optional[int] = None):
        super().__init__(detail, user_message)
        self.status = status


class SignatureMismatch(StorefrontError):
    code = "signature_mismatch"
    status_code = 400
    default_message = "La vérification du paiement a échoué."


class ProductNotFound(StorefrontError):
    code = "product_not_found"
    status_code = 409
    default_message = "Un article de votre panier n'est plus disponible."

    def __init__(self, product_id: int, detail: str = ""):
        super().__init__(detail or f"Product {product_id} not found")
        self.product_id = product_id


class InsufficientStock(StorefrontError):
    code = "insufficient_stock"
    status_code = 409
    default_message = "Stock insuffisant pour un article de votre panier."

    def __init__(self, product_id: int, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for product {product_id}: requested={requested} available={available}",
            f"Stock insuffisant pour l'article #{product_id} (disponible: {max(available, 0)}, demandé: {requested}).",
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available

    @property
    def shortfall(self) -> int:
        return self.requested - max(self.available, 0)


class PersistenceError(StorefrontError):
    code = "persistence_error"
    status_code = 500
    default_message = "Une erreur interne est survenue. Veuillez contacter le support."
