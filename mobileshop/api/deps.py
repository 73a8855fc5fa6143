# mobileshop/api/deps.py
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from mobileshop.domain.errors import PersistenceError
from mobileshop.domain.models import User
from mobileshop.services.gateway import DataGateway
from mobileshop.services.lock_service import LockService
from mobileshop.services.notification_service import NotificationService
from mobileshop.services.session import SessionRegistry
from mobileshop.utils.settings import GATEWAY_BACKEND


def build_gateway() -> DataGateway:
    if GATEWAY_BACKEND == "sql":
        from mobileshop.data.database import get_sessionmaker
        from mobileshop.services.sql_gateway import SqlGateway

        return SqlGateway(get_sessionmaker())

    from mobileshop.services.rest_gateway import RestGateway

    return RestGateway()


def get_sessions(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def get_lock_service(request: Request) -> LockService:
    return request.app.state.lock_service


def get_notifications(request: Request) -> NotificationService:
    return request.app.state.notifications


def get_access_token(authorization: Optional[str] = Header(None)) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        return None
    return token


def get_current_user(
    token: Optional[str] = Depends(get_access_token),
    sessions: SessionRegistry = Depends(get_sessions),
) -> Optional[User]:
    try:
        return sessions.current_user(token)
    except PersistenceError:
        raise HTTPException(status_code=502, detail="Failed to load session")


def get_gateway(
    request: Request,
    token: Optional[str] = Depends(get_access_token),
) -> DataGateway:
    # writes reach the backend with the user's own token
    return request.app.state.gateway.with_token(token)
