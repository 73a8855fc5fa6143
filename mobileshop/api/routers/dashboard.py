from typing import Optional

from fastapi import APIRouter, Depends

from mobileshop.api.deps import get_current_user, get_gateway
from mobileshop.api.errors import to_http
from mobileshop.domain.errors import StorefrontError
from mobileshop.domain.models import User
from mobileshop.domain.schemas import DashboardOut
from mobileshop.services.analytics_service import AnalyticsService
from mobileshop.services.gateway import DataGateway

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardOut)
def get_dashboard(
    user: Optional[User] = Depends(get_current_user),
    gateway: DataGateway = Depends(get_gateway),
):
    svc = AnalyticsService(gateway)
    try:
        return svc.dashboard(user)
    except StorefrontError as e:
        raise to_http(e, "Failed to load statistics")
