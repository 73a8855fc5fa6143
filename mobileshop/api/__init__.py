# mobileshop/api/__init__.py
from fastapi import FastAPI

from mobileshop.api.deps import build_gateway
from mobileshop.api.routers import cart, dashboard, health, orders, products, session
from mobileshop.services.gateway import DataGateway
from mobileshop.services.lock_service import LockService
from mobileshop.services.notification_service import NotificationService
from mobileshop.services.session import SessionRegistry


def create_app(
    gateway: DataGateway | None = None,
    lock_service: LockService | None = None,
    notifications: NotificationService | None = None,
) -> FastAPI:
    app = FastAPI(title="MobileShop", version="1.0.0")

    # process-wide collaborators, created once per application
    app.state.gateway = gateway or build_gateway()
    app.state.sessions = SessionRegistry(app.state.gateway)
    app.state.lock_service = lock_service or LockService()
    app.state.notifications = notifications or NotificationService()

    app.include_router(health.router)
    app.include_router(products.router)
    app.include_router(cart.router)
    app.include_router(orders.router)
    app.include_router(dashboard.router)
    app.include_router(session.router)

    return app
