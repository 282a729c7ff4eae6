"""Admin dashboard endpoints."""
from fastapi import APIRouter, Depends

from ...data.models import User
from ...services.analytics import AnalyticsService
from ..dependencies import get_analytics_service, require_admin

router = APIRouter(prefix="/api", tags=["admin"])


@router.get("/admin/sales")
def monthly_sales(_: User = Depends(require_admin), analytics: AnalyticsService = Depends(get_analytics_service)):
    return analytics.monthly_sales()


@router.get("/admin/orders")
def order_distribution(_: User = Depends(require_admin),
                       analytics: AnalyticsService = Depends(get_analytics_service)):
    return analytics.order_distribution()


@router.get("/admin/category-sales")
def category_sales(_: User = Depends(require_admin),
                   analytics: AnalyticsService = Depends(get_analytics_service)):
    return analytics.category_sales()


@router.get("/admin/stats")
def stats(_: User = Depends(require_admin), analytics: AnalyticsService = Depends(get_analytics_service)):
    return analytics.stats()


@router.get("/users/activity")
def users_activity(_: User = Depends(require_admin),
                   analytics: AnalyticsService = Depends(get_analytics_service)):
    return analytics.users_activity()
