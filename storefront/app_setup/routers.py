"""
Registre central des routers.
- Parcours d'achat: cart, addresses, checkout (+ /payment/*)
- Historique: orders, payments
- Admin: admin (API JSON)
- Health: health_router
"""
from fastapi import FastAPI
from storefront.cart import views as cart_views
from storefront.addresses import views as addresses_views
from storefront.checkout import views as checkout_views
from storefront.orders import views as orders_views
from storefront.payments import views as payments_views
from storefront.admin.views import router as admin_router
from storefront.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    app.include_router(cart_views.router)
    app.include_router(addresses_views.router)
    app.include_router(checkout_views.router)
    app.include_router(orders_views.router)
    app.include_router(payments_views.router)
    # Admin
    app.include_router(admin_router)
    # Health & monitoring
    app.include_router(health_router)
