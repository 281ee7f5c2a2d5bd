"""
Analytics Service - Aggregates for the admin dashboard

Read-only queries over users, orders and products. Nothing here mutates
state, all numbers are computed on request.
"""

from datetime import datetime, timedelta, date

from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

import config
from enums.order_status import OrderStatus
from models.product import ProductDTO
from repositories.order import OrderRepository
from repositories.product import ProductRepository
from repositories.user import UserRepository

# Orders that count as sales
SALE_STATUSES = [OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED]


class CategoryCountDTO(BaseModel):
    category: str
    product_count: int


class DashboardStatsDTO(BaseModel):
    new_users_30d: int
    new_users_7d: int
    orders_30d: int
    revenue_30d: float
    average_order_value: float
    total_products: int
    average_price: float
    low_stock_count: int
    top_categories: list[CategoryCountDTO] = Field(default_factory=list)


class DailySalesDTO(BaseModel):
    date: str
    orders: int
    revenue: float


class SalesAnalyticsDTO(BaseModel):
    start: date
    end: date
    days: list[DailySalesDTO] = Field(default_factory=list)
    total_orders: int = 0
    total_revenue: float = 0.0


class CategoryStockDTO(BaseModel):
    category: str | None
    total_stock: int
    average_price: float


class InventoryAnalyticsDTO(BaseModel):
    low_stock_threshold: int
    low_stock_products: list[ProductDTO] = Field(default_factory=list)
    category_stock: list[CategoryStockDTO] = Field(default_factory=list)
    total_stock_value: float = 0.0


class BestSellerDTO(BaseModel):
    product_id: int
    name: str
    sold_count: int
    price: float
    stock: int


class AnalyticsService:

    @staticmethod
    async def get_dashboard_stats(session: AsyncSession | Session, now: datetime | None = None) -> DashboardStatsDTO:
        """
        Dashboard numbers over the last 30 and 7 days.

        Includes new users (30d and 7d), orders and revenue of the last 30 days
        with the average order value, catalog size with average price and the
        number of products under LOW_STOCK_THRESHOLD, and the top 5 categories
        by product count.
        """
        now = now or datetime.now()
        last_30_days = now - timedelta(days=30)
        last_7_days = now - timedelta(days=7)

        new_users_30d = await UserRepository.count_created_since(last_30_days, session)
        new_users_7d = await UserRepository.count_created_since(last_7_days, session)
        orders_30d, revenue_30d = await OrderRepository.get_revenue_stats(last_30_days, session)
        catalog_stats = await ProductRepository.get_catalog_stats(config.LOW_STOCK_THRESHOLD, session)
        top_categories = await ProductRepository.get_top_categories(5, session)

        return DashboardStatsDTO(
            new_users_30d=new_users_30d,
            new_users_7d=new_users_7d,
            orders_30d=orders_30d,
            revenue_30d=revenue_30d,
            average_order_value=round(revenue_30d / orders_30d, 2) if orders_30d > 0 else 0.0,
            top_categories=[CategoryCountDTO(category=category, product_count=count)
                            for category, count in top_categories],
            **catalog_stats
        )

    @staticmethod
    async def get_sales_analytics(session: AsyncSession | Session,
                                  start: datetime | None = None,
                                  end: datetime | None = None) -> SalesAnalyticsDTO:
        """Orders and revenue per day, default window is the last 30 days."""
        end = end or datetime.now()
        start = start or end - timedelta(days=30)

        daily_sales = await OrderRepository.get_daily_sales(start, end, SALE_STATUSES, session)
        days = [DailySalesDTO(date=day, orders=orders, revenue=revenue) for day, orders, revenue in daily_sales]
        return SalesAnalyticsDTO(
            start=start.date(),
            end=end.date(),
            days=days,
            total_orders=sum(day.orders for day in days),
            total_revenue=round(sum(day.revenue for day in days), 2)
        )

    @staticmethod
    async def get_inventory_analytics(session: AsyncSession | Session) -> InventoryAnalyticsDTO:
        threshold = config.LOW_STOCK_THRESHOLD
        low_stock_products = await ProductRepository.get_low_stock(threshold, session)
        category_stock = await ProductRepository.get_category_stock(session)
        total_stock_value = await ProductRepository.get_total_stock_value(session)
        return InventoryAnalyticsDTO(
            low_stock_threshold=threshold,
            low_stock_products=low_stock_products,
            category_stock=[CategoryStockDTO(category=category, total_stock=total_stock, average_price=avg_price)
                            for category, total_stock, avg_price in category_stock],
            total_stock_value=total_stock_value
        )

    @staticmethod
    async def get_best_sellers(limit: int, session: AsyncSession | Session) -> list[BestSellerDTO]:
        products = await ProductRepository.get_best_sellers(limit, session)
        return [BestSellerDTO(product_id=product.id, name=product.name, sold_count=product.sold_count,
                              price=product.price, stock=product.stock)
                for product in products]
