from sqlalchemy import select, update, func, case
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from models.product import Product, ProductDTO, ProductVariant, ProductColor


class ProductRepository:

    @staticmethod
    async def get_by_id(product_id: int, session: AsyncSession | Session) -> ProductDTO | None:
        # populate_existing: stock counters are mutated with UPDATE statements,
        # identity-map copies would be stale otherwise
        stmt = (select(Product)
                .where(Product.id == product_id)
                .execution_options(populate_existing=True))
        product = await session_execute(stmt, session)
        product = product.scalar()
        if product is not None:
            return ProductDTO.model_validate(product, from_attributes=True)
        else:
            return None

    @staticmethod
    async def get_by_ids(product_ids: list[int], session: AsyncSession | Session) -> dict[int, ProductDTO]:
        """
        Batch load products (with variants and colors) for multiple product ids.

        Returns:
            Dict mapping product_id -> ProductDTO, missing ids are absent
        """
        if not product_ids:
            return {}
        stmt = (select(Product)
                .where(Product.id.in_(set(product_ids)))
                .execution_options(populate_existing=True))
        products = await session_execute(stmt, session)
        return {product.id: ProductDTO.model_validate(product, from_attributes=True)
                for product in products.scalars().all()}

    @staticmethod
    async def create(product_dto: ProductDTO, session: AsyncSession | Session) -> int:
        product_data = product_dto.model_dump(exclude={"id", "variants", "colors", "created_at"}, exclude_none=True)
        product = Product(**product_data)
        product.variants = [ProductVariant(label=variant.label, price=variant.price, stock=variant.stock)
                            for variant in product_dto.variants]
        product.colors = [ProductColor(name=color.name, code=color.code, stock=color.stock)
                          for color in product_dto.colors]
        session.add(product)
        await session_flush(session)
        return product.id

    @staticmethod
    async def decrement_stock(product_id: int, quantity: int, session: AsyncSession | Session) -> bool:
        """Conditional decrement, returns False when the guard `stock >= quantity` did not hold."""
        stmt = (update(Product)
                .where(Product.id == product_id, Product.stock >= quantity)
                .values(stock=Product.stock - quantity)
                .execution_options(synchronize_session=False))
        result = await session_execute(stmt, session)
        return result.rowcount == 1

    @staticmethod
    async def decrement_variant_stock(variant_id: int, quantity: int, session: AsyncSession | Session) -> bool:
        stmt = (update(ProductVariant)
                .where(ProductVariant.id == variant_id, ProductVariant.stock >= quantity)
                .values(stock=ProductVariant.stock - quantity)
                .execution_options(synchronize_session=False))
        result = await session_execute(stmt, session)
        return result.rowcount == 1

    @staticmethod
    async def decrement_color_stock(color_id: int, quantity: int, session: AsyncSession | Session) -> bool:
        stmt = (update(ProductColor)
                .where(ProductColor.id == color_id, ProductColor.stock >= quantity)
                .values(stock=ProductColor.stock - quantity)
                .execution_options(synchronize_session=False))
        result = await session_execute(stmt, session)
        return result.rowcount == 1

    @staticmethod
    async def increment_stock(product_id: int, quantity: int, session: AsyncSession | Session) -> None:
        stmt = (update(Product)
                .where(Product.id == product_id)
                .values(stock=Product.stock + quantity)
                .execution_options(synchronize_session=False))
        await session_execute(stmt, session)

    @staticmethod
    async def increment_variant_stock(variant_id: int, quantity: int, session: AsyncSession | Session) -> None:
        stmt = (update(ProductVariant)
                .where(ProductVariant.id == variant_id)
                .values(stock=ProductVariant.stock + quantity)
                .execution_options(synchronize_session=False))
        await session_execute(stmt, session)

    @staticmethod
    async def increment_color_stock(color_id: int, quantity: int, session: AsyncSession | Session) -> None:
        stmt = (update(ProductColor)
                .where(ProductColor.id == color_id)
                .values(stock=ProductColor.stock + quantity)
                .execution_options(synchronize_session=False))
        await session_execute(stmt, session)

    @staticmethod
    async def increment_sold_count(product_id: int, quantity: int, session: AsyncSession | Session) -> None:
        stmt = (update(Product)
                .where(Product.id == product_id)
                .values(sold_count=Product.sold_count + quantity)
                .execution_options(synchronize_session=False))
        await session_execute(stmt, session)

    @staticmethod
    async def decrement_sold_count(product_id: int, quantity: int, session: AsyncSession | Session) -> None:
        # Floored at 0
        stmt = (update(Product)
                .where(Product.id == product_id)
                .values(sold_count=case((Product.sold_count > quantity, Product.sold_count - quantity), else_=0))
                .execution_options(synchronize_session=False))
        await session_execute(stmt, session)

    @staticmethod
    async def get_stock(product_id: int, session: AsyncSession | Session) -> int | None:
        stmt = select(Product.stock).where(Product.id == product_id)
        stock = await session_execute(stmt, session)
        return stock.scalar()

    @staticmethod
    async def get_sold_count(product_id: int, session: AsyncSession | Session) -> int | None:
        stmt = select(Product.sold_count).where(Product.id == product_id)
        sold_count = await session_execute(stmt, session)
        return sold_count.scalar()

    # Analytics queries

    @staticmethod
    async def get_catalog_stats(low_stock_threshold: int, session: AsyncSession | Session) -> dict:
        stmt = select(
            func.count(Product.id),
            func.avg(Product.price),
            func.sum(case((Product.stock < low_stock_threshold, 1), else_=0)),
        )
        result = await session_execute(stmt, session)
        total, avg_price, low_stock = result.one()
        return {
            "total_products": total or 0,
            "average_price": round(avg_price or 0.0, 2),
            "low_stock_count": low_stock or 0,
        }

    @staticmethod
    async def get_top_categories(limit: int, session: AsyncSession | Session) -> list[tuple[str, int]]:
        product_count = func.count(Product.id).label("product_count")
        stmt = (select(Product.category, product_count)
                .where(Product.category.is_not(None))
                .group_by(Product.category)
                .order_by(product_count.desc(), Product.category)
                .limit(limit))
        result = await session_execute(stmt, session)
        return [(row[0], row[1]) for row in result.all()]

    @staticmethod
    async def get_low_stock(threshold: int, session: AsyncSession | Session) -> list[ProductDTO]:
        stmt = (select(Product)
                .where(Product.stock < threshold)
                .order_by(Product.stock, Product.id)
                .execution_options(populate_existing=True))
        products = await session_execute(stmt, session)
        return [ProductDTO.model_validate(product, from_attributes=True) for product in products.scalars().all()]

    @staticmethod
    async def get_category_stock(session: AsyncSession | Session) -> list[tuple[str | None, int, float]]:
        stmt = (select(Product.category, func.sum(Product.stock), func.avg(Product.price))
                .group_by(Product.category)
                .order_by(Product.category))
        result = await session_execute(stmt, session)
        return [(row[0], row[1] or 0, round(row[2] or 0.0, 2)) for row in result.all()]

    @staticmethod
    async def get_total_stock_value(session: AsyncSession | Session) -> float:
        stmt = select(func.coalesce(func.sum(Product.price * Product.stock), 0.0))
        result = await session_execute(stmt, session)
        return round(result.scalar() or 0.0, 2)

    @staticmethod
    async def get_best_sellers(limit: int, session: AsyncSession | Session) -> list[ProductDTO]:
        stmt = (select(Product)
                .where(Product.sold_count > 0)
                .order_by(Product.sold_count.desc(), Product.id)
                .limit(limit)
                .execution_options(populate_existing=True))
        products = await session_execute(stmt, session)
        return [ProductDTO.model_validate(product, from_attributes=True) for product in products.scalars().all()]
