from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from services.analytics import AnalyticsService
from web.dependencies import get_session, require_admin

admin_router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@admin_router.get("/dashboard")
async def get_dashboard(session: AsyncSession = Depends(get_session)):
    stats = await AnalyticsService.get_dashboard_stats(session)
    return {"success": True, "data": stats}


@admin_router.get("/analytics/sales")
async def get_sales_analytics(start: datetime | None = Query(None),
                              end: datetime | None = Query(None),
                              session: AsyncSession = Depends(get_session)):
    sales = await AnalyticsService.get_sales_analytics(session, start, end)
    return {"success": True, "data": sales}


@admin_router.get("/analytics/inventory")
async def get_inventory_analytics(session: AsyncSession = Depends(get_session)):
    inventory = await AnalyticsService.get_inventory_analytics(session)
    return {"success": True, "data": inventory}


@admin_router.get("/analytics/best-sellers")
async def get_best_sellers(limit: int = Query(10, ge=1, le=100),
                           session: AsyncSession = Depends(get_session)):
    best_sellers = await AnalyticsService.get_best_sellers(limit, session)
    return {"success": True, "data": best_sellers}
