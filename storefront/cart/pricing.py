"""
Valorisation du panier à partir du catalogue (logique pure, pas de DB).
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List

CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """
    Convertit un prix (str|float|int|Decimal) en Decimal arrondi au centime.
    - Retourne Decimal("0.00") si parsing impossible.
    """
    try:
        return Decimal(str(value if value is not None else 0)).quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        return Decimal("0.00")


def price_from_product(product: Dict[str, Any]) -> Decimal:
    return to_decimal((product or {}).get("price"))


def price_cart(items: Dict[int, int], products_by_id: Dict[int, Dict[str, Any]]) -> Dict[str, Any]:
    """
    Construit les lignes valorisées du panier.
    - items: {product_id: quantity} (CartSnapshot.items())
    - products_by_id: {product_id: row products}
    Retour:
      {"lines": [{product_id, name, unit_price, quantity, subtotal, stock, available}],
       "total": Decimal, "missing": [product_id], "unavailable": [product_id]}
    - Les produits introuvables vont dans "missing" et ne comptent pas dans le total.
    - "unavailable" liste les lignes dont la quantité dépasse le stock courant.
    """
    lines: List[Dict[str, Any]] = []
    missing: List[int] = []
    unavailable: List[int] = []
    total = Decimal("0.00")
    for product_id, quantity in items.items():
        product = products_by_id.get(product_id)
        if not product:
            missing.append(product_id)
            continue
        unit_price = price_from_product(product)
        stock = int(product.get("stock") or 0)
        subtotal = (unit_price * quantity).quantize(CENT)
        available = stock >= quantity
        if not available:
            unavailable.append(product_id)
        lines.append({
            "product_id": product_id,
            "name": product.get("name") or f"Produit #{product_id}",
            "unit_price": unit_price,
            "quantity": quantity,
            "subtotal": subtotal,
            "stock": stock,
            "available": available,
        })
        total += subtotal
    return {"lines": lines, "total": total.quantize(CENT), "missing": missing, "unavailable": unavailable}


def format_money(amount: Any, currency: str = "INR") -> str:
    """Formate un montant avec séparateurs de milliers: '₹1,234.50' (INR) ou 'EUR 1,234.50'."""
    value = to_decimal(amount)
    text = f"{value:,.2f}"
    if (currency or "").upper() == "INR":
        return f"₹{text}"
    return f"{(currency or '').upper()} {text}"
